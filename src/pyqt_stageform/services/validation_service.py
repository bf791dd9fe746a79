"""
Reference validation policy.

Checks the rules a schema can express through ``required`` and the field
attribute bag: ``minlength``/``maxlength``, ``pattern`` (whole value must
match), ``min``/``max`` for number fields, and the basic shape of email
fields. Messages come from the field's ``error_messages`` keyed by rule
name, falling back to the configured defaults. A missing ``required``
message is returned as an empty string so the engine shows its own
generic text.
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional

from pyqt_stageform.protocols.form_config import StageFormConfig, get_form_config
from pyqt_stageform.protocols.form_policy import ValidationPolicy
from pyqt_stageform.schema.model import Field, FieldType, FormSchema
from pyqt_stageform.schema.queries import visible_fields

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def is_empty_value(field: Field, value: Any) -> bool:
    """A required field with this value counts as unanswered."""
    if field.type is FieldType.CHECKBOX:
        return value is not True
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def _as_number(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


class RequiredFieldValidator(ValidationPolicy):
    """Validates visible fields of one stage, or of the whole schema."""

    def __init__(self, config: Optional[StageFormConfig] = None):
        self.config = config or get_form_config()

    def validate_stage(
        self,
        schema: FormSchema,
        state: Mapping[str, Any],
        stage_index: Optional[int],
    ) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for field in visible_fields(schema, state, stage_index):
            message = self.validate_field(field, state.get(field.name))
            if message is not None:
                errors[field.name] = message

        if errors:
            scope = "schema" if stage_index is None else f"stage {stage_index}"
            logger.debug(f"Validation of {scope} failed for {sorted(errors)}")
        return errors

    def validate_field(self, field: Field, value: Any) -> Optional[str]:
        """Return an error message for value, or None when it is valid."""
        if is_empty_value(field, value):
            if field.required:
                return field.error_messages.get("required", "")
            return None

        if field.type is FieldType.CHECKBOX or not isinstance(value, str):
            return None

        minlength = _as_number(field.attribute("minlength"))
        if minlength is not None and len(value) < minlength:
            return self._message(field, "minlength", self.config.too_short_message)

        maxlength = _as_number(field.attribute("maxlength"))
        if maxlength is not None and len(value) > maxlength:
            return self._message(field, "maxlength", self.config.too_long_message)

        pattern = field.attribute("pattern")
        if isinstance(pattern, str) and pattern:
            try:
                matched = re.fullmatch(pattern, value) is not None
            except re.error:
                logger.warning(f"Field '{field.name}': ignoring invalid pattern {pattern!r}")
                matched = True
            if not matched:
                return self._message(field, "pattern", self.config.invalid_format_message)

        if field.type is FieldType.EMAIL and not EMAIL_PATTERN.fullmatch(value.strip()):
            return self._message(field, "email", self.config.invalid_format_message)

        if field.type is FieldType.NUMBER:
            number = _as_number(value)
            if number is None:
                return self._message(field, "number", self.config.invalid_format_message)
            minimum = _as_number(field.attribute("min"))
            maximum = _as_number(field.attribute("max"))
            if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
                return self._message(field, "range", self.config.out_of_range_message)

        return None

    @staticmethod
    def _message(field: Field, rule: str, default: str) -> str:
        return field.error_messages.get(rule) or default
