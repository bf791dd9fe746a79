"""
Summary stage.

The summary stage is synthesized: it is never authored with fields of its
own. It lists, per data stage, the visible answers formatted for reading.
"""

import logging
from typing import Any, Mapping

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QFormLayout, QGroupBox, QLabel, QVBoxLayout, QWidget

from pyqt_stageform.core.performance_monitor import timed
from pyqt_stageform.protocols.form_config import StageFormConfig
from pyqt_stageform.schema.model import Field, FieldType, FormSchema
from pyqt_stageform.schema.queries import visible_fields
from pyqt_stageform.schema.visibility import strict_equals
from .layout_constants import CURRENT_LAYOUT, StageFormLayoutConfig

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def resolve_option_label(field: Field, value: Any) -> Any:
    """Display label of the option holding value, or value itself."""
    for option in field.options:
        if strict_equals(option.value, value):
            return option.label
    return value


def format_field_value(field: Field, value: Any, config: StageFormConfig) -> str:
    """
    Format a state value for the summary.

    Checkboxes read as yes/no, choices as their option label, and anything
    unanswered as the configured empty marker.
    """
    if field.type is FieldType.CHECKBOX:
        if _is_blank(value):
            return config.empty_value
        return config.yes_token if value else config.no_token

    if _is_blank(value):
        return config.empty_value

    if field.type.is_choice:
        label = resolve_option_label(field, value)
        return config.empty_value if label is None else str(label)

    return str(value)


@timed("build summary page", threshold_ms=10.0)
def build_summary_page(
    schema: FormSchema,
    state: Mapping[str, Any],
    config: StageFormConfig,
    instance_id: str,
    layout_config: StageFormLayoutConfig = CURRENT_LAYOUT,
) -> QWidget:
    """Build the read-only review page."""
    page = QWidget()
    page.setObjectName(f"{instance_id}--summary")
    layout = QVBoxLayout(page)
    layout.setContentsMargins(*layout_config.page_layout_margins)
    layout.setSpacing(layout_config.summary_spacing)

    intro = QLabel(config.summary_intro)
    intro.setObjectName(f"{instance_id}--summary-intro")
    intro.setWordWrap(True)
    intro.setProperty("muted", True)
    layout.addWidget(intro)

    sections = 0
    for index, stage in enumerate(schema.stages):
        if stage.is_summary:
            continue

        fields = visible_fields(schema, state, index)
        if not fields:
            continue

        section = QGroupBox(stage.label if stage.label is not None else config.stage_label(index))
        section.setObjectName(f"{instance_id}--summary-{stage.id}")
        rows = QFormLayout(section)
        rows.setContentsMargins(*layout_config.summary_section_margins)
        rows.setVerticalSpacing(layout_config.summary_row_spacing)
        rows.setRowWrapPolicy(QFormLayout.RowWrapPolicy.WrapLongRows)

        for field in fields:
            term = QLabel(field.display_label)
            term.setProperty("muted", True)
            detail = QLabel(format_field_value(field, state.get(field.name), config))
            detail.setObjectName(f"{instance_id}--summary-value-{field.name}")
            detail.setWordWrap(True)
            detail.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
            rows.addRow(term, detail)

        layout.addWidget(section)
        sections += 1

    layout.addStretch(1)
    logger.debug(f"Built summary page with {sections} section(s)")
    return page
