"""Configuration for the stage form engine.

Holds timing constants, user-facing text tokens and logging settings.
Applications either install a global config once at startup or hand a
config to an individual StageFormManager.
"""

from typing import Optional
from dataclasses import dataclass


@dataclass
class StageFormConfig:
    """Engine-wide configuration.

    Attributes:
        render_debounce_ms: Delay for debounced re-renders during text input
        announce_delay_ms: Delay before the live region receives an announcement,
            so assistive technology notices the cleared-then-set change
        background_submission: Run the submission policy on a worker thread
        confirm_reset: Ask the user before resetting the form
        log_dir: Directory for the performance log file (None = no file)
    """

    render_debounce_ms: int = 200
    announce_delay_ms: int = 100
    background_submission: bool = True
    confirm_reset: bool = True

    # Summary formatting
    yes_token: str = "Yes"
    no_token: str = "No"
    empty_value: str = "—"
    summary_intro: str = "Review your answers before submitting."

    # Field copy
    required_message: str = "This field is required"
    invalid_format_message: str = "The value has an invalid format"
    too_short_message: str = "The value is too short"
    too_long_message: str = "The value is too long"
    out_of_range_message: str = "The value is out of range"
    select_placeholder: str = "-- Select --"

    # Stage copy
    stage_label_format: str = "Stage {number}"
    stage_count_format: str = "Stage {number} of {total}"

    # Controls
    prev_label: str = "Back"
    next_label: str = "Continue"
    submit_label: str = "Submit"
    reset_label: str = "Reset"
    busy_description: str = "Submitting..."

    # Feedback
    schema_error_title: str = "Could not load the form"
    submit_success_message: str = "The form was submitted successfully."
    submit_failure_message: str = "Submission failed. Please try again."
    reset_confirmation: str = "Are you sure you want to reset the form?"
    reset_announcement: str = "The form was reset"

    # Logging
    log_dir: Optional[str] = None
    performance_logger_name: str = "pyqt_stageform.performance"
    performance_log_filename: str = "performance.log"

    def stage_label(self, index: int) -> str:
        return self.stage_label_format.format(number=index + 1)

    def stage_count(self, index: int, total: int) -> str:
        return self.stage_count_format.format(number=index + 1, total=total)


# Global config instance (set by application)
_form_config: Optional[StageFormConfig] = None


def set_form_config(config: StageFormConfig) -> None:
    """Set the global engine configuration.

    Args:
        config: StageFormConfig instance
    """
    global _form_config
    _form_config = config


def get_form_config() -> StageFormConfig:
    """Get the current engine configuration.

    Returns:
        Current StageFormConfig or default if not set
    """
    if _form_config is None:
        return StageFormConfig()
    return _form_config
