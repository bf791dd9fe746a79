"""
Layout constants for stage forms.

Centralizes spacing and margins so every page the render engine builds
looks the same.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class StageFormLayoutConfig:
    """Configuration for stage form layout spacing and margins."""

    # Outer engine layout (indicator, page, feedback, controls)
    main_layout_spacing: int = 8
    main_layout_margins: tuple = (8, 8, 8, 8)

    # Page layout (between field wrappers)
    page_layout_spacing: int = 12
    page_layout_margins: tuple = (0, 0, 0, 0)

    # Field wrapper layout (label, control, helper, error)
    field_spacing: int = 4
    field_margins: tuple = (0, 0, 0, 0)

    # Summary sections
    summary_spacing: int = 12
    summary_row_spacing: int = 6
    summary_section_margins: tuple = (12, 12, 12, 12)

    # Stage indicator step buttons
    step_button_size: int = 28
    step_spacing: int = 6

    # Controls bar
    controls_spacing: int = 8


# Default configuration
DEFAULT_LAYOUT = StageFormLayoutConfig()

COMPACT_LAYOUT = StageFormLayoutConfig(
    main_layout_spacing=4,
    main_layout_margins=(4, 4, 4, 4),
    page_layout_spacing=6,
    field_spacing=2,
    summary_spacing=6,
    summary_row_spacing=2,
    summary_section_margins=(6, 6, 6, 6),
    step_button_size=22,
    step_spacing=3,
    controls_spacing=4,
)

# Current active configuration - change this to switch layouts globally
CURRENT_LAYOUT = DEFAULT_LAYOUT
