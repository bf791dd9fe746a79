"""Navigation controls bar and the dismissable submission feedback."""

import logging
from typing import List

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QFrame, QHBoxLayout, QLabel, QPushButton, QWidget

from pyqt_stageform.protocols.form_config import StageFormConfig
from .layout_constants import CURRENT_LAYOUT, StageFormLayoutConfig
from .navigation import NavigationControls

logger = logging.getLogger(__name__)


class FormControls(QWidget):
    """Prev / next / submit / reset buttons."""

    prev_requested = pyqtSignal()
    next_requested = pyqtSignal()
    submit_requested = pyqtSignal()
    reset_requested = pyqtSignal()

    def __init__(
        self,
        instance_id: str,
        config: StageFormConfig,
        layout_config: StageFormLayoutConfig = CURRENT_LAYOUT,
        parent=None,
    ):
        super().__init__(parent)
        self._config = config
        self.setObjectName(f"{instance_id}--controls")

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(layout_config.controls_spacing)

        self.prev_button = self._make_button(instance_id, "prev", config.prev_label, "secondary")
        self.next_button = self._make_button(instance_id, "next", config.next_label, "primary")
        self.submit_button = self._make_button(instance_id, "submit", config.submit_label, "success")
        self.reset_button = self._make_button(instance_id, "reset", config.reset_label, "danger")

        for button in self.buttons:
            layout.addWidget(button, 1)

        self.prev_button.clicked.connect(lambda: self.prev_requested.emit())
        self.next_button.clicked.connect(lambda: self.next_requested.emit())
        self.submit_button.clicked.connect(lambda: self.submit_requested.emit())
        self.reset_button.clicked.connect(lambda: self.reset_requested.emit())
        self.submit_button.setProperty("busy", False)

    @staticmethod
    def _make_button(instance_id: str, role: str, text: str, variant: str) -> QPushButton:
        button = QPushButton(text)
        button.setObjectName(f"{instance_id}--{role}")
        button.setProperty("variant", variant)
        button.setAutoDefault(False)
        return button

    @property
    def buttons(self) -> List[QPushButton]:
        return [self.prev_button, self.next_button, self.submit_button, self.reset_button]

    def apply(self, controls: NavigationControls) -> None:
        self.prev_button.setVisible(controls.show_prev)
        self.next_button.setVisible(controls.show_next)
        self.submit_button.setVisible(controls.show_submit)
        self.reset_button.setVisible(True)

    def set_busy(self, busy: bool) -> None:
        """Disable every button and mark submit as busy while a submission runs."""
        for button in self.buttons:
            button.setEnabled(not busy)
        self.submit_button.setProperty("busy", busy)
        self.submit_button.setAccessibleDescription(self._config.busy_description if busy else "")
        style = self.submit_button.style()
        style.unpolish(self.submit_button)
        style.polish(self.submit_button)

    @property
    def is_busy(self) -> bool:
        return bool(self.submit_button.property("busy"))


class SubmitFeedback(QFrame):
    """Status message shown after a submission. Dismissable, hidden when empty."""

    def __init__(self, instance_id: str, parent=None):
        super().__init__(parent)
        self.setObjectName(f"{instance_id}--submit-feedback")
        self.setProperty("alert", "")

        layout = QHBoxLayout(self)
        self._label = QLabel()
        self._label.setWordWrap(True)
        self._close = QPushButton("×")
        self._close.setObjectName(f"{instance_id}--submit-feedback-close")
        self._close.setAccessibleName("Dismiss")
        self._close.setFlat(True)
        self._close.clicked.connect(self.clear)
        layout.addWidget(self._label, 1)
        layout.addWidget(self._close)

        self.setVisible(False)

    @property
    def message(self) -> str:
        return self._label.text()

    @property
    def tone(self) -> str:
        return self.property("alert") or ""

    def show_message(self, tone: str, message: str) -> None:
        """tone is one of success, danger, warning."""
        self._label.setText(message)
        self.setProperty("alert", tone)
        self.style().unpolish(self)
        self.style().polish(self)
        self.setVisible(True)
        logger.debug(f"Feedback ({tone}): {message}")

    def clear(self) -> None:
        self._label.clear()
        self.setProperty("alert", "")
        self.setVisible(False)
