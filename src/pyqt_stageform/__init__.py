"""
pyqt-stageform: multi-stage form rendering and state engine for PyQt6.

Renders an interactive, possibly multi-stage form from a declarative schema
and manages all runtime state: field values, conditional visibility,
validation, stage navigation, focus continuity across re-renders and
submission.

Architecture:
- Tier 1 (Core): Pure PyQt6 utilities (debounce timers, background tasks, timing)
- Tier 2 (Schema): Typed schema model, query utilities, visibility evaluator, loader
- Tier 3 (Protocols): Configuration, policy ABCs, widget ABCs and adapters
- Tier 4 (Services): Signal/flag helpers, change dispatch, reference policies
- Tier 5 (Forms): StageFormManager and the page builder it renders with

Key Features:
- Conditional fields (show_if) with hidden-value pruning
- Stage navigation with an unlockable stage indicator and optional summary stage
- Focus restoration across full re-renders
- Debounced re-render while typing in controller fields
- Injected validation, draft and submission policies
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .forms.stage_form_manager import StageFormManager, FormManagerConfig
    from .protocols.form_config import StageFormConfig
    from .protocols.form_policy import FormPolicies, SubmissionResult
    from .schema.loader import parse_schema, load_schema_file
    from .schema.model import FormSchema, SchemaError

__version__ = "0.1.0"

_EXPORTS = {
    "StageFormManager": ("pyqt_stageform.forms.stage_form_manager", "StageFormManager"),
    "FormManagerConfig": ("pyqt_stageform.forms.stage_form_manager", "FormManagerConfig"),
    "StageFormConfig": ("pyqt_stageform.protocols.form_config", "StageFormConfig"),
    "set_form_config": ("pyqt_stageform.protocols.form_config", "set_form_config"),
    "get_form_config": ("pyqt_stageform.protocols.form_config", "get_form_config"),
    "FormPolicies": ("pyqt_stageform.protocols.form_policy", "FormPolicies"),
    "SubmissionResult": ("pyqt_stageform.protocols.form_policy", "SubmissionResult"),
    "DraftSnapshot": ("pyqt_stageform.protocols.form_policy", "DraftSnapshot"),
    "FormSchema": ("pyqt_stageform.schema.model", "FormSchema"),
    "SchemaError": ("pyqt_stageform.schema.model", "SchemaError"),
    "parse_schema": ("pyqt_stageform.schema.loader", "parse_schema"),
    "load_schema_file": ("pyqt_stageform.schema.loader", "load_schema_file"),
    "FormPreviewWindow": ("pyqt_stageform.widgets.form_preview", "FormPreviewWindow"),
}


def __getattr__(name: str):
    if name in _EXPORTS:
        module_name, attr = _EXPORTS[name]
        module = importlib.import_module(module_name)
        value = getattr(module, attr)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["__version__"] + list(_EXPORTS.keys())
