"""
Color scheme for stage forms.

Semantic color names for every visual state the engine exposes through
dynamic properties: invalid fields, stage indicator steps, alert tones and
button variants. Light and dark variants keep text at a WCAG 4.5:1
contrast ratio against their backgrounds.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]


@dataclass
class ColorScheme:
    """
    Semantic colors for the form engine. Defaults are the dark theme.
    """

    # ========== BASE ==========
    window_bg: RGB = (43, 43, 43)           # #2b2b2b - Engine background
    panel_bg: RGB = (30, 30, 30)            # #1e1e1e - Summary sections, alerts
    border_color: RGB = (85, 85, 85)        # #555555 - Group and input borders

    # ========== TEXT ==========
    text_primary: RGB = (255, 255, 255)     # #ffffff - Labels and values
    text_secondary: RGB = (204, 204, 204)   # #cccccc - Helper text, stage count
    text_accent: RGB = (0, 170, 255)        # #00aaff - Headings
    text_disabled: RGB = (102, 102, 102)    # #666666 - Disabled controls

    # ========== INPUTS ==========
    input_bg: RGB = (64, 64, 64)
    input_border: RGB = (102, 102, 102)
    input_text: RGB = (255, 255, 255)
    input_focus_border: RGB = (0, 170, 255)
    input_invalid_border: RGB = (255, 85, 85)

    # ========== BUTTONS ==========
    button_normal_bg: RGB = (64, 64, 64)
    button_hover_bg: RGB = (80, 80, 80)
    button_disabled_bg: RGB = (42, 42, 42)
    button_text: RGB = (255, 255, 255)
    button_disabled_text: RGB = (102, 102, 102)
    variant_primary: RGB = (0, 120, 212)
    variant_success: RGB = (0, 140, 70)
    variant_danger: RGB = (190, 40, 40)

    # ========== STATUS (alerts, errors) ==========
    status_success: RGB = (0, 200, 90)
    status_warning: RGB = (255, 170, 0)
    status_error: RGB = (255, 85, 85)

    # ========== STAGE INDICATOR ==========
    step_current: RGB = (0, 120, 212)
    step_done: RGB = (0, 140, 70)
    step_next: RGB = (64, 64, 64)
    step_undone: RGB = (42, 42, 42)

    def to_hex(self, color_tuple: RGB) -> str:
        """
        Convert RGB tuple to hex color string.

        Args:
            color_tuple: RGB color tuple (r, g, b)

        Returns:
            str: Hex color string (e.g., "#ff0000")
        """
        r, g, b = color_tuple
        return f"#{r:02x}{g:02x}{b:02x}"

    @classmethod
    def create_dark_theme(cls) -> 'ColorScheme':
        return cls()

    @classmethod
    def create_light_theme(cls) -> 'ColorScheme':
        """Light variant with darker status colors for contrast on white."""
        return cls(
            window_bg=(245, 245, 245),
            panel_bg=(255, 255, 255),
            border_color=(180, 180, 180),

            text_primary=(0, 0, 0),
            text_secondary=(80, 80, 80),
            text_accent=(0, 100, 200),
            text_disabled=(160, 160, 160),

            input_bg=(255, 255, 255),
            input_border=(180, 180, 180),
            input_text=(0, 0, 0),
            input_focus_border=(0, 100, 200),
            input_invalid_border=(200, 0, 0),

            button_normal_bg=(230, 230, 230),
            button_hover_bg=(210, 210, 210),
            button_disabled_bg=(250, 250, 250),
            button_text=(0, 0, 0),
            button_disabled_text=(160, 160, 160),

            status_success=(0, 130, 0),
            status_warning=(170, 90, 0),
            status_error=(200, 0, 0),

            step_next=(230, 230, 230),
            step_undone=(250, 250, 250),
        )

    @classmethod
    def load_from_json(cls, config_path: Optional[Union[str, Path]] = None) -> 'ColorScheme':
        """
        Load a color scheme from a JSON file of ``name: [r, g, b]`` entries.

        Unknown names are ignored. A missing or unreadable file yields the
        default scheme.
        """
        if not config_path or not Path(config_path).exists():
            return cls()

        try:
            raw = json.loads(Path(config_path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load color scheme from {config_path}: {e}")
            return cls()

        known = set(cls.__dataclass_fields__)
        scheme_kwargs = {
            key: tuple(value) for key, value in raw.items()
            if key in known and isinstance(value, list) and len(value) == 3
        }
        return cls(**scheme_kwargs)

    def validate_wcag_contrast(self, foreground: RGB, background: RGB, min_ratio: float = 4.5) -> bool:
        """True if foreground on background meets min_ratio (4.5 for normal text)."""
        def relative_luminance(color: RGB) -> float:
            def gamma_correct(c):
                return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

            r, g, b = (gamma_correct(c / 255.0) for c in color)
            return 0.2126 * r + 0.7152 * g + 0.0722 * b

        l1 = relative_luminance(foreground)
        l2 = relative_luminance(background)
        if l1 < l2:
            l1, l2 = l2, l1
        return (l1 + 0.05) / (l2 + 0.05) >= min_ratio

    def get_color_dict(self) -> Dict[str, RGB]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}
