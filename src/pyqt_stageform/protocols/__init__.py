"""
Contracts of the form engine.

Configuration, injected policies and the ABC-based control contracts with
their Qt adapters.
"""

from .form_config import StageFormConfig, get_form_config, set_form_config
from .form_policy import (
    DraftPolicy,
    DraftSnapshot,
    FormPolicies,
    SubmissionPolicy,
    SubmissionResult,
    ValidationPolicy,
)
from .widget_protocols import (
    CommitSignalEmitter,
    InputSignalEmitter,
    PlaceholderCapable,
    ValueGettable,
    ValueSettable,
)
from .widget_adapters import (
    CheckBoxAdapter,
    ComboBoxAdapter,
    LineEditAdapter,
    PyQtWidgetMeta,
    RadioGroupAdapter,
    TextAreaAdapter,
)

__all__ = [
    "StageFormConfig",
    "get_form_config",
    "set_form_config",
    "DraftPolicy",
    "DraftSnapshot",
    "FormPolicies",
    "SubmissionPolicy",
    "SubmissionResult",
    "ValidationPolicy",
    "CommitSignalEmitter",
    "InputSignalEmitter",
    "PlaceholderCapable",
    "ValueGettable",
    "ValueSettable",
    "CheckBoxAdapter",
    "ComboBoxAdapter",
    "LineEditAdapter",
    "PyQtWidgetMeta",
    "RadioGroupAdapter",
    "TextAreaAdapter",
]
