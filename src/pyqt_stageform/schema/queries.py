"""
Schema query utilities.

Pure functions answering structural questions about a schema. No caching:
schemas are small and every caller wants the answer for the current state.
"""

from typing import List, Mapping, Optional

from .model import Field, FormSchema
from .visibility import should_display


def is_multi_stage(schema: FormSchema) -> bool:
    """True iff the schema declares a non-empty stage sequence."""
    return bool(schema.stages)


def stage_count(schema: FormSchema) -> int:
    """Number of stages, or 1 for single-stage schemas."""
    return len(schema.stages) if is_multi_stage(schema) else 1


def is_plain_text(field: Field) -> bool:
    return field.type.is_plain_text


def fields_for(schema: FormSchema, stage_index: Optional[int] = None) -> List[Field]:
    """
    Field sequence for one stage, or for the whole schema.

    Without a stage index a multi-stage schema yields its declared top-level
    fields when present, otherwise every stage's fields in order. An
    out-of-range stage index yields an empty list. Always returns a new list.
    """
    if is_multi_stage(schema):
        if stage_index is not None:
            if 0 <= stage_index < len(schema.stages):
                return list(schema.stages[stage_index].fields)
            return []
        if schema.fields:
            return list(schema.fields)
        return [field for stage in schema.stages for field in stage.fields]

    return list(schema.fields)


def visible_fields(schema: FormSchema, state: Mapping, stage_index: Optional[int] = None) -> List[Field]:
    """Fields of the stage that are displayed and carry a value (no plain text)."""
    return [
        field for field in fields_for(schema, stage_index)
        if not is_plain_text(field) and should_display(field, state)
    ]


def find_stage_index_for_field(schema: FormSchema, field_name: str) -> int:
    """Index of the stage declaring field_name; 0 for single-stage, -1 if unknown."""
    if not is_multi_stage(schema):
        return 0

    for index, stage in enumerate(schema.stages):
        if any(field.name == field_name for field in stage.fields):
            return index
    return -1


def summary_stage_index(schema: FormSchema) -> int:
    """Index of the synthesized summary stage, or -1."""
    if not is_multi_stage(schema):
        return -1

    for index, stage in enumerate(schema.stages):
        if stage.is_summary:
            return index
    return -1


def is_optional_summary(schema: FormSchema) -> bool:
    index = summary_stage_index(schema)
    return index != -1 and schema.stages[index].optional


def last_data_stage_index(schema: FormSchema) -> int:
    """Index of the last stage holding ordinary fields (the one before the summary)."""
    if not is_multi_stage(schema):
        return 0

    summary_index = summary_stage_index(schema)
    if summary_index == -1:
        return stage_count(schema) - 1
    return max(summary_index - 1, 0)
