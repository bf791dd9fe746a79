"""
Signal blocking for programmatic widget updates.

The render engine writes state into freshly built controls. Doing so with
signals blocked keeps a render from re-entering the change handlers it is
in the middle of wiring.
"""

from contextlib import contextmanager
from typing import Any
from PyQt6.QtWidgets import QWidget
import logging

from pyqt_stageform.protocols.widget_protocols import ValueSettable

logger = logging.getLogger(__name__)


class SignalService:
    """
    Signal blocking helpers.

    Examples:
        # Block signals (context manager):
        with SignalService.block_signals(checkbox):
            checkbox.setChecked(True)

        # Multiple widgets:
        with SignalService.block_signals(widget1, widget2):
            widget1.set_value("a")
            widget2.set_value(True)

        # Write a value through the control ABC:
        SignalService.update_widget_value(control, state.get(field.name))
    """

    @staticmethod
    @contextmanager
    def block_signals(*widgets: QWidget):
        """Context manager for blocking widget signals."""
        previous = []
        for widget in widgets:
            if widget is not None:
                previous.append((widget, widget.blockSignals(True)))

        try:
            yield
        finally:
            for widget, was_blocked in reversed(previous):
                widget.blockSignals(was_blocked)

    @staticmethod
    def update_widget_value(widget: QWidget, value: Any) -> None:
        """Update a control's value with signals blocked."""
        if not isinstance(widget, ValueSettable):
            raise TypeError(f"{type(widget).__name__} does not implement ValueSettable")

        children = widget.findChildren(QWidget)
        with SignalService.block_signals(widget, *children):
            widget.set_value(value)
        logger.debug(f"Set {widget.objectName() or type(widget).__name__} = {value!r}")
