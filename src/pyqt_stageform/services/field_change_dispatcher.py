"""
Unified Field Change Dispatcher.

Every control built by a render reports edits here as a FieldChangeEvent.
The dispatcher drops events from controls of an outdated render, applies
the value to the manager's state and decides between an immediate and a
debounced re-render.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from .flag_context_manager import FlagContextManager, ManagerFlag

if TYPE_CHECKING:
    from pyqt_stageform.forms.stage_form_manager import StageFormManager
    from pyqt_stageform.forms.stage_renderer import RenderGeneration

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    COMMIT = "commit"   # blur/Enter/click: immediate re-render
    INPUT = "input"     # keystroke in a controller field: debounced re-render


@dataclass(frozen=True)
class FieldChangeEvent:
    """Immutable event representing one edit of one field."""
    field_name: str
    value: Any
    source_manager: 'StageFormManager'
    generation: 'RenderGeneration'     # Render that built the emitting control
    stage_index: Optional[int] = None  # Stage the control was rendered on
    kind: ChangeKind = ChangeKind.COMMIT


class FieldChangeDispatcher:
    """Singleton dispatcher for all field changes. Stateless."""

    _instance = None

    @classmethod
    def instance(cls) -> 'FieldChangeDispatcher':
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def dispatch(self, event: FieldChangeEvent) -> bool:
        """
        Handle a field change event.

        Returns:
            True if the event was applied, False if it was ignored
        """
        source = event.source_manager

        if not event.generation.is_current:
            logger.debug(f"Ignoring {event.kind.value} for '{event.field_name}' from stale render {event.generation.number}")
            return False

        if FlagContextManager.is_flag_set(source, ManagerFlag.RENDERING):
            logger.debug(f"Ignoring {event.kind.value} for '{event.field_name}' during render")
            return False

        # Reentrancy guard
        if FlagContextManager.is_flag_set(source, ManagerFlag.DISPATCHING):
            logger.warning(f"Ignoring nested {event.kind.value} for '{event.field_name}' while dispatching")
            return False

        with FlagContextManager.manage_flags(source, **{ManagerFlag.DISPATCHING.value: True}):
            if event.kind is ChangeKind.COMMIT:
                self._dispatch_commit(source, event)
            else:
                self._dispatch_input(source, event)
        return True

    def _dispatch_commit(self, source: 'StageFormManager', event: FieldChangeEvent) -> None:
        # A committed value supersedes any pending debounced render for this field
        source.cancel_pending_render(event.field_name)
        focus_target = source.focus_manager.capture_active_target()
        source.apply_field_value(event.field_name, event.value)
        logger.debug(f"Commit '{event.field_name}' = {event.value!r}, rendering immediately")
        source.render_stage(event.stage_index, restore_focus_target=focus_target)

    def _dispatch_input(self, source: 'StageFormManager', event: FieldChangeEvent) -> None:
        focus_target = source.focus_manager.capture_active_target()
        source.apply_field_value(event.field_name, event.value)
        source.schedule_render(event.field_name, event.stage_index, focus_target)
