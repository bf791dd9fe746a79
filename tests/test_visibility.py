"""Tests for showIf evaluation, pruning and cycle detection."""

from pyqt_stageform.schema.model import Field, FieldType, FormSchema, ShowIf, Stage
from pyqt_stageform.schema.visibility import (
    controller_field_names,
    evaluate_condition,
    find_visibility_cycles,
    prune_hidden,
    should_display,
    strict_equals,
)


def text_field(name, show_if=None):
    return Field(name=name, type=FieldType.TEXT, show_if=show_if)


def chain_schema():
    """a reveals b, b reveals c."""
    return FormSchema(id="chain", fields=[
        text_field("a"),
        text_field("b", ShowIf("a", "yes")),
        text_field("c", ShowIf("b", "more")),
    ])


def test_strict_equals_does_not_coerce():
    assert strict_equals("open", "open")
    assert strict_equals(True, True)
    assert not strict_equals("true", True)
    assert not strict_equals(1, True)
    assert not strict_equals(0, False)
    assert not strict_equals(1, 1.0)
    assert not strict_equals(None, "")


def test_evaluate_condition_missing_value():
    assert not evaluate_condition(ShowIf("a", "x"), {})
    assert evaluate_condition(ShowIf("a", None), {})


def test_should_display():
    assert should_display(text_field("plain"), {})
    conditional = text_field("b", ShowIf("a", True))
    assert should_display(conditional, {"a": True})
    assert not should_display(conditional, {"a": "true"})


def test_controller_field_names_multi_stage():
    schema = FormSchema(id="s", stages=[
        Stage(id="one", fields=[text_field("a")]),
        Stage(id="two", fields=[text_field("b", ShowIf("a", "x")), text_field("c", ShowIf("a", "y"))]),
    ])
    assert controller_field_names(schema) == {"a"}


def test_prune_hidden_reaches_fixed_point():
    schema = chain_schema()
    state = {"a": "no", "b": "more", "c": "deep"}

    removed = prune_hidden(schema, state)

    assert state == {"a": "no"}
    assert set(removed) == {"b", "c"}


def test_prune_hidden_keeps_visible_values():
    schema = chain_schema()
    state = {"a": "yes", "b": "more", "c": "deep"}

    assert prune_hidden(schema, state) == []
    assert state == {"a": "yes", "b": "more", "c": "deep"}


def test_prune_is_idempotent():
    schema = chain_schema()
    state = {"a": "no", "b": "more"}
    prune_hidden(schema, state)
    snapshot = dict(state)

    assert prune_hidden(schema, state) == []
    assert state == snapshot


def test_no_cycles_in_chain():
    assert find_visibility_cycles(chain_schema()) == []


def test_detects_cycle():
    schema = FormSchema(id="loop", fields=[
        text_field("a", ShowIf("c", 1)),
        text_field("b", ShowIf("a", 1)),
        text_field("c", ShowIf("b", 1)),
        text_field("d", ShowIf("a", 1)),
    ])

    cycles = find_visibility_cycles(schema)

    assert len(cycles) == 1
    assert set(cycles[0]) == {"a", "b", "c"}


def test_detects_self_reference():
    schema = FormSchema(id="self", fields=[text_field("a", ShowIf("a", 1))])
    assert find_visibility_cycles(schema) == [["a"]]
