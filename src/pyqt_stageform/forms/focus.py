"""
Focus continuity across re-renders.

A re-render replaces every control of the page, which destroys keyboard
focus. The manager remembers what had focus as a FocusTarget (object name,
``name`` property and a version stamp) and puts focus back on the control
that replaced it.

The version is a per-instance counter bumped on every application focus
change. A target captured before a render is only restored if no focus
change happened in between; otherwise the user has moved on and the render
must not steal focus back.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from PyQt6.QtCore import QObject, Qt
from PyQt6.QtWidgets import QApplication, QRadioButton, QWidget

logger = logging.getLogger(__name__)

_TAB_POLICIES = (Qt.FocusPolicy.TabFocus, Qt.FocusPolicy.StrongFocus, Qt.FocusPolicy.WheelFocus)


def widget_name(widget: Optional[QWidget]) -> Optional[str]:
    """The ``name`` property the renderer stamps on every control."""
    if widget is None:
        return None
    value = widget.property("name")
    return str(value) if value else None


def accepts_tab_focus(widget: QWidget) -> bool:
    return widget.focusPolicy() in _TAB_POLICIES


@dataclass(frozen=True)
class FocusTarget:
    """What should regain focus after a render."""
    id: Optional[str]
    name: Optional[str]
    version: int

    @classmethod
    def from_widget(cls, widget: Optional[QWidget], version: int) -> Optional['FocusTarget']:
        if widget is None:
            return None
        return cls(id=widget.objectName() or None, name=widget_name(widget), version=version)


@dataclass(frozen=True)
class FocusResolution:
    index: int
    source: str   # "active", "fallback" or "none"


def resolve_focusable_index(
    focusables: Sequence[QWidget],
    active: Optional[QWidget],
    fallback: Optional[FocusTarget],
) -> FocusResolution:
    """
    Locate the position focus is considered to be at.

    The active widget wins when it is one of the focusables. Otherwise the
    fallback target is matched by object name, then by ``name`` preferring a
    checked radio button, then by ``name`` alone.
    """
    if active is not None:
        for index, widget in enumerate(focusables):
            if widget is active:
                return FocusResolution(index, "active")

    if fallback is not None:
        if fallback.id:
            for index, widget in enumerate(focusables):
                if widget.objectName() == fallback.id:
                    return FocusResolution(index, "fallback")

        if fallback.name:
            named = [
                (index, widget) for index, widget in enumerate(focusables)
                if widget_name(widget) == fallback.name
            ]
            for index, widget in named:
                if not isinstance(widget, QRadioButton) or widget.isChecked():
                    return FocusResolution(index, "fallback")
            if named:
                return FocusResolution(named[0][0], "fallback")

    return FocusResolution(-1, "none")


def next_focus_index(current_index: int, count: int, forward: bool = True) -> int:
    """
    Index Tab (forward) or Shift+Tab should move to, wrapping at both ends.

    An unresolved position (-1) enters at the first or last focusable.
    Returns -1 when there is nothing to focus.
    """
    if count <= 0:
        return -1
    if current_index < 0 or current_index >= count:
        return 0 if forward else count - 1
    if forward:
        return current_index + 1 if current_index < count - 1 else 0
    return current_index - 1 if current_index > 0 else count - 1


class FocusContinuityManager(QObject):
    """
    Tracks and restores focus for one form instance.

    Args:
        scopes: Returns the widgets whose descendants count as "in the form"
            (the page host and the controls bar)
        candidates: Returns the focusable controls in tab order
        is_suspended: True while a render tears down and rebuilds the page
        owner: The engine widget; focus moving to one of its descendants
            outside the scopes (e.g. the stage indicator) forgets the target
    """

    def __init__(
        self,
        owner: QWidget,
        scopes: Callable[[], List[QWidget]],
        candidates: Callable[[], List[QWidget]],
        is_suspended: Callable[[], bool],
    ):
        super().__init__(owner)
        self._owner = owner
        self._scopes = scopes
        self._candidates = candidates
        self._is_suspended = is_suspended
        self.version = 0
        self.last_target: Optional[FocusTarget] = None

        app = QApplication.instance()
        if app is not None:
            app.focusChanged.connect(self._on_focus_changed)

    # --- tracking ---

    def _on_focus_changed(self, old: Optional[QWidget], now: Optional[QWidget]) -> None:
        if self._is_suspended():
            return
        self.note_focus(now)

    def note_focus(self, widget: Optional[QWidget]) -> None:
        """Record a focus change to widget."""
        self.version += 1
        if self.is_in_scope(widget):
            self.last_target = FocusTarget.from_widget(widget, self.version)
        elif widget is not None and self._owner.isAncestorOf(widget):
            self.last_target = None

    def forget(self) -> None:
        self.last_target = None

    def is_in_scope(self, widget: Optional[QWidget]) -> bool:
        if widget is None:
            return False
        return any(scope is widget or scope.isAncestorOf(widget) for scope in self._scopes())

    def capture_active_target(self) -> Optional[FocusTarget]:
        return FocusTarget.from_widget(QApplication.focusWidget(), self.version)

    def has_focus_in_scope(self) -> bool:
        active = QApplication.focusWidget()
        return self.is_in_scope(active) and active.isVisible()

    # --- restoration ---

    def focusables(self) -> List[QWidget]:
        """Controls that can take keyboard focus right now, in tab order."""
        return [
            widget for widget in self._candidates()
            if widget.isVisibleTo(self._owner) and widget.isEnabled() and accepts_tab_focus(widget)
        ]

    def find_restore_widget(self, target: Optional[FocusTarget]) -> Optional[QWidget]:
        if target is None:
            return None
        resolution = resolve_focusable_index(self.focusables(), None, target)
        if resolution.index == -1:
            return None
        return self.focusables()[resolution.index]

    def restore(self, target: Optional[FocusTarget]) -> bool:
        widget = self.find_restore_widget(target)
        if widget is None:
            logger.debug(f"No control to restore focus to for {target}")
            return False
        widget.setFocus(Qt.FocusReason.OtherFocusReason)
        return True

    def restore_after_render(self, target: Optional[FocusTarget]) -> None:
        """
        Same-stage re-render: restore a fresh target, else fall back to the
        last in-scope target when nothing in the form holds focus.
        """
        if target is not None and target.version == self.version:
            self.restore(target)
            return

        if target is not None:
            logger.debug(f"Skipping stale focus target {target} (version now {self.version})")
        if not self.has_focus_in_scope() and self.last_target is not None:
            self.restore(self.last_target)

    def focus_first(self) -> bool:
        focusables = self.focusables()
        if not focusables:
            return False
        focusables[0].setFocus(Qt.FocusReason.OtherFocusReason)
        return True

    # --- tab cycling ---

    def cycle(self, forward: bool) -> bool:
        """
        Move focus for Tab/Shift+Tab pressed inside the form.

        Returns:
            False when focus is outside the form so Qt's default chain applies
        """
        active = QApplication.focusWidget()
        if not self.is_in_scope(active):
            return False

        focusables = self.focusables()
        if not focusables:
            return False

        resolution = resolve_focusable_index(focusables, active, self.last_target)
        index = next_focus_index(resolution.index, len(focusables), forward)
        reason = Qt.FocusReason.TabFocusReason if forward else Qt.FocusReason.BacktabFocusReason
        focusables[index].setFocus(reason)
        return True
