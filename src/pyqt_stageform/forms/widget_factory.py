"""
Widget factory with explicit field-type dispatch.

Design:
- FIELD_TYPE_REGISTRY: FieldType → factory function mapping
- Fail-loud if a type is not registered
- Custom attributes are applied verbatim as dynamic Qt properties; a few
  well-known names also drive native widget behavior
"""

from typing import Any, Callable, Dict
import logging

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QLineEdit, QPlainTextEdit, QWidget

from pyqt_stageform.protocols.form_config import StageFormConfig, get_form_config
from pyqt_stageform.protocols.widget_adapters import (
    CheckBoxAdapter, ComboBoxAdapter, LineEditAdapter, RadioGroupAdapter,
    TextAreaAdapter,
)
from pyqt_stageform.schema.model import Field, FieldType

logger = logging.getLogger(__name__)

# Field type → widget factory function. Plain text is not a control.
FIELD_TYPE_REGISTRY: Dict[FieldType, Callable[[Field, StageFormConfig], QWidget]] = {}

# Input method hints per single-line type
_INPUT_HINTS = {
    FieldType.EMAIL: Qt.InputMethodHint.ImhEmailCharactersOnly,
    FieldType.TEL: Qt.InputMethodHint.ImhDialableCharactersOnly,
    FieldType.NUMBER: Qt.InputMethodHint.ImhFormattedNumbersOnly,
    FieldType.URL: Qt.InputMethodHint.ImhUrlCharactersOnly,
    FieldType.DATE: Qt.InputMethodHint.ImhDate,
}


def _create_line_edit(field: Field, config: StageFormConfig) -> QWidget:
    widget = LineEditAdapter()
    if field.type is FieldType.PASSWORD:
        widget.setEchoMode(QLineEdit.EchoMode.Password)
        widget.setInputMethodHints(Qt.InputMethodHint.ImhHiddenText | Qt.InputMethodHint.ImhSensitiveData)
    elif field.type in _INPUT_HINTS:
        widget.setInputMethodHints(_INPUT_HINTS[field.type])
    if field.type is FieldType.SEARCH:
        widget.setClearButtonEnabled(True)
    if field.placeholder:
        widget.set_placeholder(field.placeholder)
    return widget


def _create_text_area(field: Field, config: StageFormConfig) -> QWidget:
    widget = TextAreaAdapter()
    widget.set_rows(field.rows)
    if field.placeholder:
        widget.set_placeholder(field.placeholder)
    return widget


def _create_combo_box(field: Field, config: StageFormConfig) -> QWidget:
    widget = ComboBoxAdapter()
    widget.populate([(option.value, option.label) for option in field.options], config.select_placeholder)
    return widget


def _create_check_box(field: Field, config: StageFormConfig) -> QWidget:
    return CheckBoxAdapter(field.display_label)


def _create_radio_group(field: Field, config: StageFormConfig) -> QWidget:
    # Buttons are added by the renderer, which owns object naming
    return RadioGroupAdapter()


def _init_field_type_registry():
    """Initialize the field type registry with Qt adapters."""
    if FIELD_TYPE_REGISTRY:
        return

    FIELD_TYPE_REGISTRY.update({
        FieldType.TEXT: _create_line_edit,
        FieldType.EMAIL: _create_line_edit,
        FieldType.TEL: _create_line_edit,
        FieldType.NUMBER: _create_line_edit,
        FieldType.DATE: _create_line_edit,
        FieldType.SEARCH: _create_line_edit,
        FieldType.URL: _create_line_edit,
        FieldType.PASSWORD: _create_line_edit,
        FieldType.TEXTAREA: _create_text_area,
        FieldType.SELECT: _create_combo_box,
        FieldType.CHECKBOX: _create_check_box,
        FieldType.RADIO: _create_radio_group,
    })
    logger.debug("Initialized FIELD_TYPE_REGISTRY with Qt adapters")


def apply_attributes(widget: QWidget, field: Field) -> None:
    """
    Apply a field's custom attribute bag to a control.

    Every applied entry becomes a dynamic property: PRESENT entries as True,
    VALUE entries verbatim. Names that are already declared Qt properties of
    the widget are left alone so a schema cannot clobber widget state.
    """
    meta = widget.metaObject()
    for name, attr in field.applied_attributes().items():
        if meta.indexOfProperty(name) != -1:
            logger.debug(f"Field '{field.name}': attribute '{name}' shadows a Qt property, not applied")
            continue
        widget.setProperty(name, attr.to_raw())

    maxlength = field.attribute("maxlength")
    if isinstance(widget, QLineEdit) and maxlength is not None and not isinstance(maxlength, bool):
        try:
            widget.setMaxLength(int(maxlength))
        except (TypeError, ValueError):
            logger.warning(f"Field '{field.name}': ignoring non-numeric maxlength {maxlength!r}")

    if field.attribute("readonly") is not None and isinstance(widget, (QLineEdit, QPlainTextEdit)):
        widget.setReadOnly(True)

    if field.attribute("disabled") is not None:
        widget.setEnabled(False)


class WidgetFactory:
    """
    Widget factory using explicit field-type dispatch.

    Example:
        factory = WidgetFactory()
        widget = factory.create_widget(field)
        # LineEditAdapter for text-like fields, ComboBoxAdapter for selects, ...
    """

    def __init__(self, config: StageFormConfig = None):
        _init_field_type_registry()
        self.config = config or get_form_config()

    def create_widget(self, field: Field) -> Any:
        """
        Create the control for a field.

        Raises:
            TypeError: If no widget registered for the field type
        """
        factory_func = FIELD_TYPE_REGISTRY.get(field.type)
        if factory_func is None:
            raise TypeError(
                f"No widget registered for field type {field.type.value!r} (field: '{field.name}'). "
                f"Available types: {[t.value for t in FIELD_TYPE_REGISTRY]}. "
                f"Add a factory to FIELD_TYPE_REGISTRY or create a custom adapter."
            )

        widget = factory_func(field, self.config)
        if field.required:
            widget.setProperty("required", True)
        apply_attributes(widget, field)
        logger.debug(f"Created {type(widget).__name__} for field '{field.name}' (type: {field.type.value})")
        return widget
