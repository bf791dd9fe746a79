"""
Service layer for the form engine.

Signal and flag management, field change dispatch, and the reference
validation, draft and submission policies.
"""

from .signal_service import SignalService
from .flag_context_manager import FlagContextManager, ManagerFlag
from .field_change_dispatcher import ChangeKind, FieldChangeDispatcher, FieldChangeEvent
from .validation_service import RequiredFieldValidator, is_empty_value
from .draft_store import JsonFileDraftStore, MemoryDraftStore, NullDraftStore
from .submission_service import CallbackSubmission, LoggingSubmission

__all__ = [
    "SignalService",
    "FlagContextManager",
    "ManagerFlag",
    "ChangeKind",
    "FieldChangeDispatcher",
    "FieldChangeEvent",
    "RequiredFieldValidator",
    "is_empty_value",
    "JsonFileDraftStore",
    "MemoryDraftStore",
    "NullDraftStore",
    "CallbackSubmission",
    "LoggingSubmission",
]
