"""
Visibility evaluator.

A field with ``show_if`` is displayed only while the controlling field's
current value strictly equals the condition's ``equals``: the string
``"true"`` and the boolean ``True`` are different values, and so are
``1`` and ``True``.
"""

import logging
from typing import Any, Dict, List, Mapping, MutableMapping, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from .model import Field, FormSchema, ShowIf

logger = logging.getLogger(__name__)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without coercion between types."""
    return type(left) is type(right) and left == right


def evaluate_condition(condition: 'ShowIf', state: Mapping) -> bool:
    return strict_equals(state.get(condition.field), condition.equals)


def should_display(field: 'Field', state: Mapping) -> bool:
    if field is None or field.show_if is None:
        return True
    return evaluate_condition(field.show_if, state)


def _all_fields(schema: 'FormSchema') -> List['Field']:
    if schema.stages:
        return [field for stage in schema.stages for field in stage.fields]
    return list(schema.fields)


def controller_field_names(schema: 'FormSchema') -> Set[str]:
    """Names referenced by some field's show_if condition."""
    return {
        field.show_if.field
        for field in _all_fields(schema)
        if field.show_if is not None and field.show_if.field
    }


def prune_hidden(schema: 'FormSchema', state: MutableMapping) -> List[str]:
    """
    Remove values of conditional fields that are currently hidden.

    Runs to a fixed point so that hiding a controller also prunes the
    fields it was revealing. Returns the removed names.
    """
    removed: List[str] = []
    changed = True
    while changed:
        changed = False
        for field in _all_fields(schema):
            if field.show_if is None or field.name not in state:
                continue
            if not should_display(field, state):
                del state[field.name]
                removed.append(field.name)
                changed = True

    if removed:
        logger.debug(f"Pruned hidden fields: {removed}")
    return removed


def find_visibility_cycles(schema: 'FormSchema') -> List[List[str]]:
    """
    Detect circular show_if dependencies.

    Each field points at most at one controller, so the dependency graph
    is a functional graph and every cycle is found by walking forward.
    Returns each cycle once as a list of field names.
    """
    depends_on: Dict[str, str] = {
        field.name: field.show_if.field
        for field in _all_fields(schema)
        if field.show_if is not None
    }

    cycles: List[List[str]] = []
    finished: Set[str] = set()
    for start in depends_on:
        path: List[str] = []
        on_path: Set[str] = set()
        node = start
        while node in depends_on and node not in finished:
            if node in on_path:
                cycles.append(path[path.index(node):])
                break
            path.append(node)
            on_path.add(node)
            node = depends_on[node]
        finished.update(path)

    return cycles
