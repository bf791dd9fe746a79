"""
Host widgets built on the form engine.
"""

from .form_preview import FormPreviewWindow, preview_config

__all__ = [
    "FormPreviewWindow",
    "preview_config",
]
