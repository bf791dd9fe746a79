"""
Declarative form schemas.

Typed model, structural queries, visibility evaluation and loading.
"""

from .model import (
    AttributeKind,
    AttributeValue,
    Field,
    FieldOption,
    FieldType,
    FieldValue,
    FormSchema,
    FormState,
    SchemaError,
    ShowIf,
    Stage,
    TEXT_LIKE_TYPES,
)
from .queries import (
    fields_for,
    find_stage_index_for_field,
    is_multi_stage,
    is_optional_summary,
    is_plain_text,
    last_data_stage_index,
    stage_count,
    summary_stage_index,
    visible_fields,
)
from .visibility import (
    controller_field_names,
    evaluate_condition,
    find_visibility_cycles,
    prune_hidden,
    should_display,
    strict_equals,
)
from .loader import lint_schema, load_schema_file, parse_schema

__all__ = [
    "AttributeKind",
    "AttributeValue",
    "Field",
    "FieldOption",
    "FieldType",
    "FieldValue",
    "FormSchema",
    "FormState",
    "SchemaError",
    "ShowIf",
    "Stage",
    "TEXT_LIKE_TYPES",
    "fields_for",
    "find_stage_index_for_field",
    "is_multi_stage",
    "is_optional_summary",
    "is_plain_text",
    "last_data_stage_index",
    "stage_count",
    "summary_stage_index",
    "visible_fields",
    "controller_field_names",
    "evaluate_condition",
    "find_visibility_cycles",
    "prune_hidden",
    "should_display",
    "strict_equals",
    "lint_schema",
    "load_schema_file",
    "parse_schema",
]
