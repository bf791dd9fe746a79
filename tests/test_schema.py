"""Tests for schema loading and structural queries."""

import json

import pytest

from conftest import CONTROLLER_SCHEMA, PET_SCHEMA
from pyqt_stageform.schema import (
    AttributeKind,
    AttributeValue,
    FieldType,
    SchemaError,
    fields_for,
    find_stage_index_for_field,
    is_multi_stage,
    is_optional_summary,
    last_data_stage_index,
    load_schema_file,
    parse_schema,
    stage_count,
    summary_stage_index,
    visible_fields,
)


@pytest.fixture
def pets():
    return parse_schema(PET_SCHEMA)


@pytest.fixture
def contact():
    return parse_schema(CONTROLLER_SCHEMA)


class TestParseSchema:
    """Test parse_schema and the typed model it produces."""

    def test_multi_stage(self, pets):
        assert pets.id == "pets"
        assert [stage.id for stage in pets.stages] == ["owner", "pet", "review"]
        assert pets.stages[2].is_summary
        email = pets.stages[0].fields[1]
        assert email.type is FieldType.EMAIL
        assert email.required
        assert email.helper_text == "We never share it"

    def test_single_stage(self, contact):
        assert contact.stages == []
        assert [field.name for field in contact.fields] == ["code", "secret", "notes"]
        assert contact.fields[1].show_if.field == "code"
        assert contact.fields[1].show_if.equals == "open"

    def test_options_accept_strings_and_objects(self):
        schema = parse_schema({
            "id": "o",
            "fields": [{
                "type": "select", "name": "pick",
                "options": ["a", {"value": 2, "label": "Two"}],
            }],
        })
        options = schema.fields[0].options
        assert [(o.value, o.label) for o in options] == [("a", "a"), (2, "Two")]

    def test_plain_text_gets_synthetic_name(self):
        schema = parse_schema({
            "id": "p",
            "stages": [{"id": "intro", "fields": [{"type": "plain text", "title": "Hello"}]}],
        })
        field = schema.stages[0].fields[0]
        assert field.type is FieldType.PLAIN_TEXT
        assert field.name == "intro-plain-text-1"

    def test_attribute_bag(self):
        schema = parse_schema({
            "id": "a",
            "fields": [{
                "type": "text", "name": "t",
                "attributes": {"maxlength": 5, "readonly": True, "hidden": False},
            }],
        })
        field = schema.fields[0]
        assert field.attribute("maxlength") == 5
        assert field.attribute("readonly") is True
        assert field.attribute("hidden") is None
        assert set(field.applied_attributes()) == {"maxlength", "readonly"}

    def test_attribute_value_kinds(self):
        assert AttributeValue.from_raw(None).kind is AttributeKind.ABSENT
        assert AttributeValue.from_raw(False).kind is AttributeKind.ABSENT
        assert AttributeValue.from_raw(True).kind is AttributeKind.PRESENT
        assert AttributeValue.from_raw("x").to_raw() == "x"

    def test_parsed_schema_passes_through(self, pets):
        assert parse_schema(pets) is pets


class TestSchemaErrors:
    """Test rejection of unusable schemas."""

    @pytest.mark.parametrize("raw", [
        None,
        [],
        {"id": "x"},
        {"id": "x", "stages": []},
        {"id": "x", "stages": "nope"},
    ])
    def test_shape_errors(self, raw):
        with pytest.raises(SchemaError):
            parse_schema(raw)

    def test_collects_every_problem(self):
        with pytest.raises(SchemaError) as excinfo:
            parse_schema({
                "id": "x",
                "fields": [
                    {"type": "bogus", "name": "a"},
                    {"type": "text"},
                    {"type": "radio", "name": "r"},
                ],
            })
        problems = excinfo.value.problems
        assert any("unknown type" in p for p in problems)
        assert any("name is required" in p for p in problems)

    def test_duplicate_names(self):
        with pytest.raises(SchemaError, match="Duplicate field name 'a'"):
            parse_schema({
                "id": "x",
                "stages": [
                    {"id": "one", "fields": [{"type": "text", "name": "a"}]},
                    {"id": "two", "fields": [{"type": "text", "name": "a"}]},
                ],
            })

    def test_duplicate_stage_ids(self):
        with pytest.raises(SchemaError, match="Duplicate stage id"):
            parse_schema({"id": "x", "stages": [{"id": "s", "fields": []}, {"id": "s", "fields": []}]})

    def test_unknown_controller(self):
        with pytest.raises(SchemaError, match="non-existent field 'ghost'"):
            parse_schema({
                "id": "x",
                "fields": [{"type": "text", "name": "a", "showIf": {"field": "ghost", "equals": 1}}],
            })

    def test_choice_without_options(self):
        with pytest.raises(SchemaError, match="must have options"):
            parse_schema({"id": "x", "fields": [{"type": "select", "name": "s"}]})

    @pytest.mark.parametrize("rows", ["big", 0, -2, True, [4]])
    def test_bad_textarea_rows(self, rows):
        with pytest.raises(SchemaError, match="rows must be a positive integer"):
            parse_schema({"id": "x", "fields": [{"type": "textarea", "name": "t", "rows": rows}]})

    def test_textarea_rows(self):
        schema = parse_schema({
            "id": "x",
            "fields": [
                {"type": "textarea", "name": "t", "rows": "5"},
                {"type": "textarea", "name": "u"},
            ],
        })
        assert [field.rows for field in schema.fields] == [5, 3]

    def test_circular_show_if(self):
        with pytest.raises(SchemaError, match="Circular showIf dependency"):
            parse_schema({
                "id": "x",
                "fields": [
                    {"type": "text", "name": "a", "showIf": {"field": "b", "equals": "x"}},
                    {"type": "text", "name": "b", "showIf": {"field": "a", "equals": "y"}},
                ],
            })


class TestLoadSchemaFile:

    def test_reads_json(self, tmp_path):
        path = tmp_path / "contact.json"
        path.write_text(json.dumps(CONTROLLER_SCHEMA), encoding="utf-8")
        assert load_schema_file(path).id == "contact"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(SchemaError, match="invalid JSON"):
            load_schema_file(path)


class TestQueries:
    """Test structural schema queries."""

    def test_stage_shape(self, pets, contact):
        assert is_multi_stage(pets)
        assert not is_multi_stage(contact)
        assert stage_count(pets) == 3
        assert stage_count(contact) == 1

    def test_fields_for(self, pets, contact):
        assert [f.name for f in fields_for(pets, 1)] == ["hasPet", "petName", "size"]
        assert fields_for(pets, 2) == []
        assert fields_for(pets, 7) == []
        assert [f.name for f in fields_for(pets)] == ["name", "email", "hasPet", "petName", "size"]
        assert [f.name for f in fields_for(contact, 3)] == ["code", "secret", "notes"]

    def test_fields_for_returns_copy(self, contact):
        fields_for(contact).clear()
        assert len(contact.fields) == 3

    def test_visible_fields(self, pets):
        assert [f.name for f in visible_fields(pets, {}, 1)] == ["hasPet", "size"]
        assert [f.name for f in visible_fields(pets, {"hasPet": True}, 1)] == ["hasPet", "petName", "size"]

    def test_visible_fields_skip_plain_text(self):
        schema = parse_schema({
            "id": "p",
            "fields": [{"type": "plain text", "text": "Hi"}, {"type": "text", "name": "t"}],
        })
        assert [f.name for f in visible_fields(schema, {})] == ["t"]

    def test_find_stage_index(self, pets, contact):
        assert find_stage_index_for_field(pets, "size") == 1
        assert find_stage_index_for_field(pets, "ghost") == -1
        assert find_stage_index_for_field(contact, "anything") == 0

    def test_summary_queries(self, pets, contact):
        assert summary_stage_index(pets) == 2
        assert last_data_stage_index(pets) == 1
        assert not is_optional_summary(pets)
        assert summary_stage_index(contact) == -1
        assert last_data_stage_index(contact) == 0

    def test_last_data_stage_without_summary(self):
        schema = parse_schema({"id": "x", "stages": [{"id": "a", "fields": []}, {"id": "b", "fields": []}]})
        assert last_data_stage_index(schema) == 1
