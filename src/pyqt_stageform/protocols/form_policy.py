"""
Policy contracts injected into the form engine.

The engine never decides how validation rules are written, where drafts
are stored or what a successful submission means. It calls through these
three ABCs, which the host application implements (or picks from the
reference implementations in ``pyqt_stageform.services``).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from pyqt_stageform.schema.model import FormSchema


@dataclass
class DraftSnapshot:
    """Serializable in-progress form state plus the moment it was taken."""
    schema_id: str
    state: Dict[str, Any]
    current_stage: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaId": self.schema_id,
            "state": dict(self.state),
            "currentStage": self.current_stage,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> 'DraftSnapshot':
        return cls(
            schema_id=str(raw["schemaId"]),
            state=dict(raw.get("state") or {}),
            current_stage=int(raw.get("currentStage") or 0),
            timestamp=str(raw.get("timestamp") or ""),
        )


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a submission. ``message`` overrides the default feedback text."""
    success: bool
    message: Optional[str] = None

    @classmethod
    def coerce(cls, result: Union['SubmissionResult', bool, None]) -> 'SubmissionResult':
        if isinstance(result, SubmissionResult):
            return result
        return cls(success=bool(result))


class ValidationPolicy(ABC):
    """Decides which visible fields are invalid."""

    @abstractmethod
    def validate_stage(
        self,
        schema: 'FormSchema',
        state: Mapping[str, Any],
        stage_index: Optional[int],
    ) -> Dict[str, str]:
        """
        Validate one stage, or the whole schema when stage_index is None.

        Returns:
            Mapping of field name to error message. Empty means valid. An
            empty message makes the engine fall back to its generic
            "required" text.
        """
        pass


class DraftPolicy(ABC):
    """Persists in-progress state. The engine never inspects the medium."""

    @abstractmethod
    def save_draft(self, snapshot: DraftSnapshot) -> None:
        pass

    @abstractmethod
    def load_draft(self, schema_id: str) -> Optional[DraftSnapshot]:
        pass

    @abstractmethod
    def clear_draft(self, schema_id: str) -> None:
        pass


class SubmissionPolicy(ABC):
    """Receives the flat payload of visible fields."""

    @abstractmethod
    def submit(self, payload: Dict[str, Any]) -> Union[SubmissionResult, bool]:
        """
        Deliver the payload.

        May run on a worker thread, so implementations must not touch widgets.

        Returns:
            True/False or a SubmissionResult carrying a feedback message.
        """
        pass


def _default_validation() -> ValidationPolicy:
    from pyqt_stageform.services.validation_service import RequiredFieldValidator
    return RequiredFieldValidator()


def _default_drafts() -> DraftPolicy:
    from pyqt_stageform.services.draft_store import MemoryDraftStore
    return MemoryDraftStore()


def _default_submission() -> SubmissionPolicy:
    from pyqt_stageform.services.submission_service import LoggingSubmission
    return LoggingSubmission()


@dataclass
class FormPolicies:
    """The three policies a StageFormManager is parameterized by."""
    validation: ValidationPolicy = field(default_factory=_default_validation)
    drafts: DraftPolicy = field(default_factory=_default_drafts)
    submission: SubmissionPolicy = field(default_factory=_default_submission)

    def __post_init__(self):
        expected = (
            ("validation", ValidationPolicy),
            ("drafts", DraftPolicy),
            ("submission", SubmissionPolicy),
        )
        for attr, policy_type in expected:
            value = getattr(self, attr)
            if not isinstance(value, policy_type):
                raise TypeError(
                    f"FormPolicies.{attr} must be a {policy_type.__name__}, "
                    f"got {type(value).__name__}"
                )
