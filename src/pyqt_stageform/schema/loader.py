"""
Schema parsing and structural validation.

Turns a parsed JSON-like mapping into the typed model and rejects schemas
the engine cannot run safely: missing or non-list stages/fields, duplicate
stage ids, duplicate field names, unknown field types, ``show_if``
references to unknown fields and circular ``show_if`` chains.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .model import (
    AttributeValue, Field, FieldOption, FieldType, FormSchema, SchemaError,
    ShowIf, Stage,
)
from .visibility import find_visibility_cycles

logger = logging.getLogger(__name__)


def _parse_show_if(raw: Any, owner: str, problems: List[str]) -> Optional[ShowIf]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping) or not raw.get("field"):
        problems.append(f"Field '{owner}': showIf must be an object with a 'field' key")
        return None
    return ShowIf(field=str(raw["field"]), equals=raw.get("equals"))


def _parse_rows(raw: Any, owner: str, problems: List[str]) -> int:
    if raw is None or raw == "":
        return 3
    try:
        rows = int(raw)
    except (TypeError, ValueError, OverflowError):
        rows = 0
    if isinstance(raw, bool) or rows < 1:
        problems.append(f"Field '{owner}': rows must be a positive integer, got {raw!r}")
        return 3
    return rows


def _parse_field(raw: Any, location: str, prefix: str, position: int, problems: List[str]) -> Optional[Field]:
    if not isinstance(raw, Mapping):
        problems.append(f"{location}, field {position + 1}: expected an object")
        return None

    try:
        field_type = FieldType.parse(raw.get("type"))
    except ValueError:
        problems.append(f"{location}, field {position + 1}: unknown type {raw.get('type')!r}")
        return None

    name = raw.get("name")
    if not name:
        if not field_type.is_plain_text:
            problems.append(f"{location}, field {position + 1}: name is required")
            return None
        # Plain text blocks never hold state; give them a stable synthetic name
        name = f"{prefix}-plain-text-{position + 1}"

    options = raw.get("options") or []
    if not isinstance(options, list):
        problems.append(f"Field '{name}': options must be a list")
        options = []

    attributes = raw.get("attributes") or {}
    if not isinstance(attributes, Mapping):
        problems.append(f"Field '{name}': attributes must be an object")
        attributes = {}

    error_messages = raw.get("errorMessages") or {}
    if not isinstance(error_messages, Mapping):
        problems.append(f"Field '{name}': errorMessages must be an object")
        error_messages = {}

    rows = _parse_rows(raw.get("rows"), str(name), problems)

    text = raw.get("text")
    if text is None:
        text = raw.get("content", raw.get("description"))

    return Field(
        name=str(name),
        type=field_type,
        label=raw.get("label"),
        title=raw.get("title"),
        text=text,
        placeholder=raw.get("placeholder"),
        helper_text=raw.get("helperText"),
        required=bool(raw.get("required", False)),
        options=[FieldOption.from_raw(option) for option in options],
        attributes={str(key): AttributeValue.from_raw(value) for key, value in attributes.items()},
        error_messages={str(key): str(value) for key, value in error_messages.items()},
        show_if=_parse_show_if(raw.get("showIf"), str(name), problems),
        rows=rows,
    )


def _parse_fields(raw_fields: Any, location: str, prefix: str, problems: List[str]) -> List[Field]:
    if not isinstance(raw_fields, list):
        problems.append(f"{location}: 'fields' must be a list")
        return []

    parsed = (_parse_field(raw, location, prefix, position, problems) for position, raw in enumerate(raw_fields))
    return [field for field in parsed if field is not None]


def _parse_stage(raw: Any, position: int, problems: List[str]) -> Optional[Stage]:
    if not isinstance(raw, Mapping):
        problems.append(f"Stage {position + 1}: expected an object")
        return None

    stage_id = raw.get("id")
    if not stage_id:
        problems.append(f"Stage {position + 1}: id is required")
        stage_id = f"stage-{position + 1}"

    stage_type = raw.get("type")
    raw_fields = raw.get("fields")
    if raw_fields is None and stage_type == "summary":
        raw_fields = []

    return Stage(
        id=str(stage_id),
        label=raw.get("label"),
        type=stage_type,
        optional=bool(raw.get("optional", False)),
        fields=_parse_fields(raw_fields if raw_fields is not None else [], f"Stage '{stage_id}'", str(stage_id), problems),
    )


def lint_schema(schema: FormSchema) -> List[str]:
    """Return structural problems of an already parsed schema."""
    problems: List[str] = []

    seen_stage_ids = set()
    for stage in schema.stages:
        if stage.id in seen_stage_ids:
            problems.append(f"Duplicate stage id '{stage.id}'")
        seen_stage_ids.add(stage.id)

    summary_stages = [stage.id for stage in schema.stages if stage.is_summary]
    if len(summary_stages) > 1:
        problems.append(f"Only one summary stage is allowed, found {summary_stages}")

    all_fields = [field for stage in schema.stages for field in stage.fields] or list(schema.fields)
    names = set()
    for field in all_fields:
        if field.name in names:
            problems.append(f"Duplicate field name '{field.name}'")
        names.add(field.name)

    for field in all_fields:
        if field.show_if is not None and field.show_if.field not in names:
            problems.append(
                f"Field '{field.name}': showIf references non-existent field '{field.show_if.field}'"
            )
        if field.type.is_choice and not field.options:
            problems.append(f"Field '{field.name}': select/radio fields must have options")

    for cycle in find_visibility_cycles(schema):
        problems.append(f"Circular showIf dependency: {' -> '.join(cycle + cycle[:1])}")

    return problems


def parse_schema(raw: Any) -> FormSchema:
    """
    Parse a JSON-like mapping into a FormSchema.

    Raises:
        SchemaError: with every problem found when the schema is unusable
    """
    if isinstance(raw, FormSchema):
        schema = raw
    else:
        if not isinstance(raw, Mapping):
            raise SchemaError("Schema must be an object")

        problems: List[str] = []
        schema_id = str(raw.get("id") or "form")

        if "stages" in raw:
            if not isinstance(raw["stages"], list) or not raw["stages"]:
                raise SchemaError("Schema 'stages' must be a non-empty list")
            parsed = (_parse_stage(stage, position, problems) for position, stage in enumerate(raw["stages"]))
            schema = FormSchema(id=schema_id, stages=[stage for stage in parsed if stage is not None])
            if "fields" in raw:
                schema.fields = _parse_fields(raw["fields"], "Schema", schema_id, problems)
        elif "fields" in raw:
            schema = FormSchema(id=schema_id, fields=_parse_fields(raw["fields"], "Schema", schema_id, problems))
        else:
            raise SchemaError("Schema must declare 'stages' or 'fields'")

        if problems:
            raise SchemaError(problems)

    problems = lint_schema(schema)
    if problems:
        raise SchemaError(problems)

    logger.debug(f"Parsed schema '{schema.id}' with {len(schema.stages)} stage(s)")
    return schema


def load_schema_file(path: Union[str, Path]) -> FormSchema:
    """Read a JSON schema file and parse it."""
    path = Path(path)
    try:
        raw: Dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SchemaError(f"{path.name}: invalid JSON ({e.msg} at line {e.lineno})") from e

    logger.info(f"Loaded schema file {path}")
    return parse_schema(raw)
