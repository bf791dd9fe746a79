"""
Form rendering and management.

StageFormManager and the pieces it is assembled from: page builder,
navigation state machine, focus continuity, stage indicator and controls.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .stage_form_manager import StageFormManager, FormManagerConfig
    from .stage_renderer import StagePageBuilder, RenderedPage, RenderGeneration, FieldControl
    from .navigation import NavigationState, NavigationControls, StepState
    from .focus import FocusContinuityManager, FocusTarget, resolve_focusable_index, next_focus_index
    from .widget_factory import WidgetFactory
    from .layout_constants import StageFormLayoutConfig

_EXPORTS = {
    "StageFormManager": ("pyqt_stageform.forms.stage_form_manager", "StageFormManager"),
    "FormManagerConfig": ("pyqt_stageform.forms.stage_form_manager", "FormManagerConfig"),
    "StagePageBuilder": ("pyqt_stageform.forms.stage_renderer", "StagePageBuilder"),
    "RenderedPage": ("pyqt_stageform.forms.stage_renderer", "RenderedPage"),
    "RenderGeneration": ("pyqt_stageform.forms.stage_renderer", "RenderGeneration"),
    "FieldControl": ("pyqt_stageform.forms.stage_renderer", "FieldControl"),
    "NavigationState": ("pyqt_stageform.forms.navigation", "NavigationState"),
    "NavigationControls": ("pyqt_stageform.forms.navigation", "NavigationControls"),
    "StepState": ("pyqt_stageform.forms.navigation", "StepState"),
    "FocusContinuityManager": ("pyqt_stageform.forms.focus", "FocusContinuityManager"),
    "FocusTarget": ("pyqt_stageform.forms.focus", "FocusTarget"),
    "resolve_focusable_index": ("pyqt_stageform.forms.focus", "resolve_focusable_index"),
    "next_focus_index": ("pyqt_stageform.forms.focus", "next_focus_index"),
    "StageIndicator": ("pyqt_stageform.forms.stage_indicator", "StageIndicator"),
    "FormControls": ("pyqt_stageform.forms.form_controls", "FormControls"),
    "SubmitFeedback": ("pyqt_stageform.forms.form_controls", "SubmitFeedback"),
    "WidgetFactory": ("pyqt_stageform.forms.widget_factory", "WidgetFactory"),
    "build_summary_page": ("pyqt_stageform.forms.summary", "build_summary_page"),
    "format_field_value": ("pyqt_stageform.forms.summary", "format_field_value"),
    "StageFormLayoutConfig": ("pyqt_stageform.forms.layout_constants", "StageFormLayoutConfig"),
    "CURRENT_LAYOUT": ("pyqt_stageform.forms.layout_constants", "CURRENT_LAYOUT"),
    "COMPACT_LAYOUT": ("pyqt_stageform.forms.layout_constants", "COMPACT_LAYOUT"),
}


def __getattr__(name: str):
    if name in _EXPORTS:
        module_name, attr = _EXPORTS[name]
        module = importlib.import_module(module_name)
        value = getattr(module, attr)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = list(_EXPORTS.keys())
