"""
Preview window for schema authoring.

Hosts a StageFormManager wired to preview policies: submissions are logged
and echoed into a payload panel instead of being delivered, drafts are not
persisted and reset never asks for confirmation.
"""

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QFileDialog, QLabel, QMainWindow, QPlainTextEdit, QSplitter, QVBoxLayout, QWidget,
)

from pyqt_stageform.forms.layout_constants import CURRENT_LAYOUT, StageFormLayoutConfig
from pyqt_stageform.forms.stage_form_manager import FormManagerConfig, StageFormManager
from pyqt_stageform.protocols.form_config import StageFormConfig, get_form_config
from pyqt_stageform.protocols.form_policy import FormPolicies
from pyqt_stageform.services.draft_store import NullDraftStore
from pyqt_stageform.services.submission_service import LoggingSubmission
from pyqt_stageform.theming.color_scheme import ColorScheme

logger = logging.getLogger(__name__)


def preview_config(base: Optional[StageFormConfig] = None) -> StageFormConfig:
    """Copy of base with reset confirmation off and synchronous submission."""
    return replace(base or get_form_config(), confirm_reset=False, background_submission=False)


class FormPreviewWindow(QMainWindow):
    """Main window showing a live preview of one schema."""

    def __init__(
        self,
        config: Optional[StageFormConfig] = None,
        color_scheme: Optional[ColorScheme] = None,
        layout_config: StageFormLayoutConfig = CURRENT_LAYOUT,
        parent=None,
    ):
        super().__init__(parent)
        self.setWindowTitle("Form Preview")
        self._schema_path: Optional[Path] = None

        self.form = StageFormManager(FormManagerConfig(
            config=preview_config(config),
            instance_id="preview",
            policies=FormPolicies(drafts=NullDraftStore(), submission=LoggingSubmission()),
            color_scheme=color_scheme,
            layout_config=layout_config,
            use_scroll_area=True,
        ))
        self.form.submitted.connect(self._show_payload)

        self.setup_ui()
        self._create_actions()

    def setup_ui(self):
        splitter = QSplitter(Qt.Orientation.Vertical)
        splitter.addWidget(self.form)

        payload_panel = QWidget()
        layout = QVBoxLayout(payload_panel)
        layout.setContentsMargins(8, 0, 8, 8)
        heading = QLabel("Submitted data")
        heading.setProperty("heading", True)
        self.payload_view = QPlainTextEdit()
        self.payload_view.setObjectName("preview--payload")
        self.payload_view.setReadOnly(True)
        layout.addWidget(heading)
        layout.addWidget(self.payload_view)
        splitter.addWidget(payload_panel)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)

        self.setCentralWidget(splitter)

    def _create_actions(self):
        file_menu = self.menuBar().addMenu("&File")

        open_action = QAction("&Open Schema...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self._choose_schema_file)
        file_menu.addAction(open_action)

        self.reload_action = QAction("&Reload", self)
        self.reload_action.setShortcut(QKeySequence.StandardKey.Refresh)
        self.reload_action.triggered.connect(self.reload)
        self.reload_action.setEnabled(False)
        file_menu.addAction(self.reload_action)

        file_menu.addSeparator()
        close_action = QAction("&Close", self)
        close_action.setShortcut(QKeySequence.StandardKey.Close)
        close_action.triggered.connect(self.close)
        file_menu.addAction(close_action)

    # ========== LOADING ==========

    def load_schema(self, schema: Union[Dict[str, Any], Any]) -> bool:
        """Preview a parsed schema. Anything without stages or fields shows a warning."""
        self.payload_view.clear()
        if not isinstance(schema, dict) or not ("stages" in schema or "fields" in schema):
            self.form.show_error("Invalid schema")
            return False
        return self.form.load_schema(schema)

    def load_schema_text(self, text: str) -> bool:
        """Preview schema JSON as typed in an editor."""
        try:
            schema = json.loads(text)
        except json.JSONDecodeError as e:
            self.form.show_error(f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})")
            return False
        return self.load_schema(schema)

    def load_schema_file(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        self._schema_path = path
        self.reload_action.setEnabled(True)
        self.setWindowTitle(f"Form Preview - {path.name}")
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot read schema file {path}: {e}")
            self.form.show_error(f"Cannot read {path.name}: {e.strerror}")
            return False
        return self.load_schema_text(text)

    def reload(self) -> bool:
        if self._schema_path is None:
            return False
        return self.load_schema_file(self._schema_path)

    def _choose_schema_file(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open Schema", "", "JSON files (*.json);;All files (*)")
        if path:
            self.load_schema_file(path)

    # ========== SUBMISSION ==========

    def _show_payload(self, payload: Dict[str, Any]):
        self.payload_view.setPlainText(json.dumps(payload, indent=2, ensure_ascii=False))
