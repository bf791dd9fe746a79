"""Stage indicator: current stage title, "Stage n of N" and one step button per stage."""

import logging
from typing import List, Optional

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from pyqt_stageform.protocols.form_config import StageFormConfig
from pyqt_stageform.schema.model import FormSchema
from .layout_constants import CURRENT_LAYOUT, StageFormLayoutConfig
from .navigation import NavigationState, StepState

logger = logging.getLogger(__name__)


class StageIndicator(QWidget):
    """
    Stage indicator for multi-stage forms. Hidden for single-stage forms.

    Steps carry a ``stepState`` property (current/done/next/undone) for
    styling. Current and locked steps are disabled; clicking an enabled step
    emits step_clicked with its index and the engine decides whether to jump.
    """

    step_clicked = pyqtSignal(int)

    def __init__(
        self,
        instance_id: str,
        config: StageFormConfig,
        layout_config: StageFormLayoutConfig = CURRENT_LAYOUT,
        parent=None,
    ):
        super().__init__(parent)
        self._instance_id = instance_id
        self._config = config
        self._layout_config = layout_config
        self._steps: List[QPushButton] = []
        self.setObjectName(f"{instance_id}--stage-indicator")
        self._setup_ui()
        self.setVisible(False)

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        header = QHBoxLayout()
        self._title = QLabel()
        self._title.setProperty("heading", True)
        self._count = QLabel()
        self._count.setProperty("muted", True)
        header.addWidget(self._title, 1)
        header.addWidget(self._count)
        layout.addLayout(header)

        self._steps_layout = QHBoxLayout()
        self._steps_layout.setSpacing(self._layout_config.step_spacing)
        self._steps_layout.addStretch(1)
        layout.addLayout(self._steps_layout)

    @property
    def steps(self) -> List[QPushButton]:
        return list(self._steps)

    @property
    def title_text(self) -> str:
        return self._title.text()

    @property
    def count_text(self) -> str:
        return self._count.text()

    def clear(self) -> None:
        for step in self._steps:
            self._steps_layout.removeWidget(step)
            step.deleteLater()
        self._steps = []
        self._title.clear()
        self._count.clear()
        self.setVisible(False)

    def update_for(self, schema: Optional[FormSchema], navigation: NavigationState) -> None:
        """Rebuild the indicator for the navigation's current stage."""
        self.clear()
        if schema is None or not navigation.layout.multi_stage:
            return

        current = navigation.current_stage
        stage = schema.stages[current]
        self._title.setText(stage.label if stage.label is not None else self._config.stage_label(current))
        self._count.setText(self._config.stage_count(current, navigation.layout.stage_count))

        size = self._layout_config.step_button_size
        for index, (stage_item, state) in enumerate(zip(schema.stages, navigation.step_states())):
            label = stage_item.label if stage_item.label is not None else self._config.stage_label(index)
            step = QPushButton(str(index + 1))
            step.setObjectName(f"{self._instance_id}--step-{index}")
            step.setFixedSize(size, size)
            step.setToolTip(label)
            step.setAccessibleName(label)
            step.setProperty("stepState", state.value)
            step.setProperty("current", state is StepState.CURRENT)
            step.setEnabled(state.is_clickable)
            step.clicked.connect(lambda checked=False, i=index: self.step_clicked.emit(i))
            # Keep the trailing stretch last
            self._steps_layout.insertWidget(self._steps_layout.count() - 1, step)
            self._steps.append(step)

        self.setVisible(True)
