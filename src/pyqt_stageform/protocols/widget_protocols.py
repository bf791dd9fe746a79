"""
Widget ABC contracts for rendered form controls.

Every control the render engine creates implements these explicitly, so the
engine reads, writes and wires controls the same way regardless of the Qt
class underneath.

Two event flavours exist, matching how users edit:
- commit: the value is final for now (focus left the field, Enter, a click
  on a choice). Always followed by an immediate re-render.
- input: a keystroke in a free-text control. Only wired for fields that
  control another field's visibility, and followed by a debounced re-render.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable


class ValueGettable(ABC):
    """ABC for controls that report a form state value."""

    @abstractmethod
    def get_value(self) -> Any:
        """
        Get the control's current value.

        Returns:
            str for free-text controls, the selected option value for choice
            controls ("" when nothing is selected), bool for checkboxes.
        """
        pass


class ValueSettable(ABC):
    """ABC for controls that display a form state value."""

    @abstractmethod
    def set_value(self, value: Any) -> None:
        """
        Set the control's value.

        Args:
            value: The value to show. None clears the control.
        """
        pass


class PlaceholderCapable(ABC):
    """ABC for controls that can show placeholder text."""

    @abstractmethod
    def set_placeholder(self, text: str) -> None:
        pass


class CommitSignalEmitter(ABC):
    """ABC for controls that announce a committed value."""

    @abstractmethod
    def connect_commit_signal(self, callback: Callable[[Any], None]) -> None:
        """
        Call callback with the value whenever the user commits an edit.

        Programmatic set_value() under blocked signals must not trigger it.
        """
        pass


class InputSignalEmitter(ABC):
    """ABC for free-text controls that announce every user keystroke."""

    @abstractmethod
    def connect_input_signal(self, callback: Callable[[Any], None]) -> None:
        pass
