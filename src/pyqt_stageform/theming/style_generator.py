"""
QStyleSheet generator for stage forms.

The engine never sets colors on widgets directly. It sets dynamic
properties (``invalid``, ``stepState``, ``alert``, ``variant``, ``busy``,
``muted``, ``heading``) and this stylesheet maps them to the color scheme.
"""

import logging

from pyqt_stageform.forms.layout_constants import CURRENT_LAYOUT
from .color_scheme import ColorScheme

logger = logging.getLogger(__name__)


class StyleSheetGenerator:
    """
    Generates QStyleSheet strings from ColorScheme objects.
    """

    def __init__(self, color_scheme: ColorScheme):
        self.color_scheme = color_scheme

    def update_color_scheme(self, color_scheme: ColorScheme):
        self.color_scheme = color_scheme

    def get_status_color_hex(self, status_type: str) -> str:
        """Hex color for an alert tone (success, warning, danger)."""
        cs = self.color_scheme
        status_colors = {
            "success": cs.status_success,
            "warning": cs.status_warning,
            "danger": cs.status_error,
        }
        return cs.to_hex(status_colors.get(status_type, cs.text_secondary))

    def generate_input_style(self) -> str:
        cs = self.color_scheme
        return f"""
            QLineEdit, QPlainTextEdit, QComboBox {{
                background-color: {cs.to_hex(cs.input_bg)};
                color: {cs.to_hex(cs.input_text)};
                border: 1px solid {cs.to_hex(cs.input_border)};
                border-radius: 3px;
                padding: 4px;
            }}
            QLineEdit:focus, QPlainTextEdit:focus, QComboBox:focus {{
                border: 1px solid {cs.to_hex(cs.input_focus_border)};
            }}
            QLineEdit:disabled, QPlainTextEdit:disabled, QComboBox:disabled {{
                color: {cs.to_hex(cs.text_disabled)};
            }}
            QLineEdit[invalid="true"], QPlainTextEdit[invalid="true"], QComboBox[invalid="true"] {{
                border: 1px solid {cs.to_hex(cs.input_invalid_border)};
            }}
            QCheckBox, QRadioButton {{
                color: {cs.to_hex(cs.text_primary)};
            }}
            QCheckBox[invalid="true"], QRadioButton[invalid="true"] {{
                color: {cs.to_hex(cs.input_invalid_border)};
            }}
            QLabel[role="alert"] {{
                color: {cs.to_hex(cs.status_error)};
            }}
        """

    def generate_button_style(self) -> str:
        """Controls bar buttons, one color per ``variant`` property."""
        cs = self.color_scheme
        variants = {
            "primary": cs.variant_primary,
            "success": cs.variant_success,
            "danger": cs.variant_danger,
        }
        variant_rules = "".join(
            f"""
            QPushButton[variant="{name}"] {{
                background-color: {cs.to_hex(color)};
                color: #ffffff;
            }}"""
            for name, color in variants.items()
        )
        return f"""
            QPushButton {{
                background-color: {cs.to_hex(cs.button_normal_bg)};
                color: {cs.to_hex(cs.button_text)};
                border: none;
                border-radius: 3px;
                padding: 6px 12px;
            }}
            QPushButton:hover {{
                background-color: {cs.to_hex(cs.button_hover_bg)};
            }}{variant_rules}
            QPushButton:disabled {{
                background-color: {cs.to_hex(cs.button_disabled_bg)};
                color: {cs.to_hex(cs.button_disabled_text)};
            }}
            QPushButton[busy="true"] {{
                font-style: italic;
            }}
        """

    def generate_stage_indicator_style(self) -> str:
        cs = self.color_scheme
        steps = {
            "current": cs.step_current,
            "done": cs.step_done,
            "next": cs.step_next,
            "undone": cs.step_undone,
        }
        return "".join(
            f"""
            QPushButton[stepState="{state}"] {{
                background-color: {cs.to_hex(color)};
                border-radius: {CURRENT_LAYOUT.step_button_size // 2}px;
                padding: 0px;
            }}"""
            for state, color in steps.items()
        ) + f"""
            QPushButton[stepState="undone"] {{
                color: {cs.to_hex(cs.text_disabled)};
            }}
            QPushButton[current="true"] {{
                font-weight: bold;
                color: #ffffff;
            }}
        """

    def generate_alert_style(self) -> str:
        """Submit feedback and blocking schema error, keyed by the ``alert`` tone."""
        cs = self.color_scheme
        rules = []
        for tone in ("success", "warning", "danger"):
            color = self.get_status_color_hex(tone)
            rules.append(f"""
            QFrame[alert="{tone}"] {{
                background-color: {cs.to_hex(cs.panel_bg)};
                border: 1px solid {color};
                border-radius: 3px;
            }}
            QFrame[alert="{tone}"] QLabel {{
                color: {color};
            }}""")
        return "".join(rules)

    def generate_form_style(self) -> str:
        """
        Complete stylesheet for a StageFormManager.

        Returns:
            str: QStyleSheet covering inputs, buttons, indicator steps and alerts
        """
        cs = self.color_scheme
        layout = CURRENT_LAYOUT
        base = f"""
            QWidget {{
                background-color: {cs.to_hex(cs.window_bg)};
                color: {cs.to_hex(cs.text_primary)};
            }}
            QGroupBox {{
                font-weight: bold;
                border: 1px solid {cs.to_hex(cs.border_color)};
                border-radius: 3px;
                margin-top: {layout.summary_spacing}px;
                padding-top: {layout.summary_spacing}px;
                background-color: {cs.to_hex(cs.panel_bg)};
            }}
            QGroupBox::title {{
                subcontrol-origin: margin;
                left: 10px;
                padding: 0 3px 0 3px;
                color: {cs.to_hex(cs.text_accent)};
            }}
            QLabel[heading="true"] {{
                font-weight: bold;
                color: {cs.to_hex(cs.text_accent)};
            }}
            QLabel[muted="true"], QLabel[liveRegion="true"] {{
                color: {cs.to_hex(cs.text_secondary)};
            }}
        """
        return "".join((
            base,
            self.generate_input_style(),
            self.generate_button_style(),
            self.generate_stage_indicator_style(),
            self.generate_alert_style(),
        ))
