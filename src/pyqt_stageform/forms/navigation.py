"""
Navigation state machine.

Pure bookkeeping of where the user is (``current_stage``) and how far they
have legitimately progressed (``furthest_stage_reached``). The engine asks
it which stage to show, which controls to expose and how each stage
indicator step should look. It never touches widgets.

Invariants:
- 0 <= current_stage < stage_count
- furthest_stage_reached >= current_stage
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pyqt_stageform.schema.model import FormSchema
from pyqt_stageform.schema.queries import (
    is_multi_stage, is_optional_summary, last_data_stage_index, stage_count,
    summary_stage_index,
)

logger = logging.getLogger(__name__)


class StepState(Enum):
    """Appearance of one stage indicator step."""
    CURRENT = "current"   # the stage on screen, not clickable
    DONE = "done"         # visited, clickable
    NEXT = "next"         # the furthest unlocked stage, clickable
    UNDONE = "undone"     # locked, not clickable

    @property
    def is_clickable(self) -> bool:
        return self in (StepState.DONE, StepState.NEXT)


@dataclass(frozen=True)
class NavigationControls:
    """Which of prev/next/submit are exposed. Reset is always available."""
    show_prev: bool
    show_next: bool
    show_submit: bool


@dataclass(frozen=True)
class StageLayout:
    """Structural facts about a schema's stages that navigation depends on."""
    stage_count: int = 1
    multi_stage: bool = False
    summary_index: int = -1
    optional_summary: bool = False
    last_data_index: int = 0

    @classmethod
    def from_schema(cls, schema: Optional[FormSchema]) -> 'StageLayout':
        if schema is None:
            return cls()
        return cls(
            stage_count=stage_count(schema),
            multi_stage=is_multi_stage(schema),
            summary_index=summary_stage_index(schema),
            optional_summary=is_optional_summary(schema),
            last_data_index=last_data_stage_index(schema),
        )

    @property
    def has_summary(self) -> bool:
        return self.summary_index != -1

    @property
    def last_index(self) -> int:
        return self.stage_count - 1


class NavigationState:
    """Current/furthest stage tracking for one form instance."""

    def __init__(self, schema: Optional[FormSchema] = None):
        self.layout = StageLayout.from_schema(schema)
        self.current_stage = 0
        self.furthest_stage_reached = 0

    def reset(self, schema: Optional[FormSchema] = None) -> None:
        """Back to (0, 0). A schema, when given, replaces the stage layout."""
        if schema is not None:
            self.layout = StageLayout.from_schema(schema)
        self.current_stage = 0
        self.furthest_stage_reached = 0

    def clamp(self, index: Optional[int]) -> int:
        if not self.layout.multi_stage:
            return 0
        target = index if index is not None else 0
        return min(max(target, 0), self.layout.last_index)

    def is_summary(self, index: Optional[int] = None) -> bool:
        index = self.current_stage if index is None else index
        return self.layout.has_summary and index == self.layout.summary_index

    def go_to(self, index: Optional[int]) -> bool:
        """
        Move to index (clamped) and advance the furthest stage.

        Reaching the last data stage also unlocks an optional summary stage
        right after it, so the direct-submit path needs no summary visit.

        Returns:
            True if the current stage changed
        """
        previous = self.current_stage
        self.current_stage = self.clamp(index)
        self.furthest_stage_reached = max(self.furthest_stage_reached, self.current_stage)

        if self.layout.optional_summary and self.current_stage == self.layout.last_data_index:
            unlocked = min(self.current_stage + 1, self.layout.last_index)
            self.furthest_stage_reached = max(self.furthest_stage_reached, unlocked)

        return previous != self.current_stage

    def can_jump_to(self, index: int) -> bool:
        """Indicator jumps are allowed only to unlocked stages."""
        return self.layout.multi_stage and 0 <= index <= min(self.furthest_stage_reached, self.layout.last_index)

    def previous_index(self) -> int:
        return max(self.current_stage - 1, 0)

    def next_index(self) -> int:
        return self.current_stage + 1

    def controls(self) -> NavigationControls:
        return self.controls_for(self.current_stage)

    def controls_for(self, index: int) -> NavigationControls:
        layout = self.layout
        if not layout.multi_stage:
            return NavigationControls(show_prev=False, show_next=False, show_submit=True)

        show_prev = index != 0

        if self.is_summary(index):
            return NavigationControls(show_prev=show_prev, show_next=False, show_submit=True)

        if layout.has_summary and index == layout.last_data_index:
            return NavigationControls(show_prev=show_prev, show_next=True, show_submit=layout.optional_summary)

        return NavigationControls(
            show_prev=show_prev,
            show_next=index < layout.last_index,
            show_submit=index == layout.last_index,
        )

    def step_states(self) -> List[StepState]:
        """Indicator appearance per stage. Empty for single-stage forms."""
        if not self.layout.multi_stage:
            return []

        states = []
        for index in range(self.layout.stage_count):
            if index == self.current_stage:
                states.append(StepState.CURRENT)
            elif index < self.furthest_stage_reached:
                states.append(StepState.DONE)
            elif index == self.furthest_stage_reached:
                states.append(StepState.NEXT)
            else:
                states.append(StepState.UNDONE)
        return states

    def __repr__(self) -> str:
        return f"NavigationState(current={self.current_stage}, furthest={self.furthest_stage_reached})"
