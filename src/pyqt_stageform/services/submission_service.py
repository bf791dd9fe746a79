"""Reference submission policies."""

import json
import logging
from typing import Any, Callable, Dict, Union

from pyqt_stageform.protocols.form_policy import SubmissionPolicy, SubmissionResult

logger = logging.getLogger(__name__)


class CallbackSubmission(SubmissionPolicy):
    """
    Submission policy delegating to a plain callable.

    Usage:
        policies = FormPolicies(submission=CallbackSubmission(api_client.post_form))
    """

    def __init__(self, callback: Callable[[Dict[str, Any]], Union[SubmissionResult, bool, None]]):
        if not callable(callback):
            raise TypeError(f"CallbackSubmission needs a callable, got {type(callback).__name__}")
        self._callback = callback

    def submit(self, payload: Dict[str, Any]) -> SubmissionResult:
        return SubmissionResult.coerce(self._callback(payload))


class LoggingSubmission(SubmissionPolicy):
    """Accepts every payload and logs it. Used by the preview window."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def submit(self, payload: Dict[str, Any]) -> SubmissionResult:
        logger.log(self.level, f"Form data:\n{json.dumps(payload, ensure_ascii=False, indent=2, default=str)}")
        return SubmissionResult(success=True)
