"""Worker thread for submission policies, with cancellation and cleanup."""

import logging
from typing import Any, Callable, List, Optional, Tuple

from PyQt6.QtCore import QThread, pyqtSignal

logger = logging.getLogger(__name__)

# --- Module-level constants ---
CANCEL_WAIT_MS = 100      # Wait for a superseded task before starting the next
CLEANUP_WAIT_MS = 200     # Wait during widget close or schema replacement


class BackgroundTask(QThread):
    """
    Runs one callable off the GUI thread and reports back through signals.

    Results are delivered to the GUI thread by Qt's queued connections, so
    slots connected to result_ready/error_occurred may touch widgets. The
    callable itself must not.

    Usage:
        task = BackgroundTask(policy.submit, args=(payload,), label="submit 'pets'")
        task.result_ready.connect(on_result)
        task.error_occurred.connect(on_error)   # receives the Exception
        task.start()

        task.cancel()   # the outcome is dropped, the thread still runs to completion
    """

    result_ready = pyqtSignal(object)
    error_occurred = pyqtSignal(Exception)

    def __init__(
        self,
        target: Callable[..., Any],
        args: Tuple = (),
        kwargs: Optional[dict] = None,
        label: str = "",
        parent=None,
    ):
        super().__init__(parent)
        self._target = target
        self._args = args
        self._kwargs = kwargs or {}
        self.label = label or getattr(target, "__qualname__", repr(target))
        self.cancelled = False

    def run(self):
        try:
            result = self._target(*self._args, **self._kwargs)
        except Exception as e:
            if self.cancelled:
                logger.debug(f"Dropping error of cancelled task {self.label}: {e!r}")
                return
            self.error_occurred.emit(e)
            return

        if self.cancelled:
            logger.debug(f"Dropping result of cancelled task {self.label}")
            return
        self.result_ready.emit(result)

    def cancel(self):
        self.cancelled = True


class BackgroundTaskManager:
    """
    Keeps at most one BackgroundTask alive for its owner.

    A new run supersedes the previous task: the old outcome is discarded
    even if the old thread has not finished yet.

    Usage:
        self._task_manager = BackgroundTaskManager()

        self._task_manager.run(
            target=self.policies.submission.submit,
            args=(payload,),
            on_success=self._on_submit_result,
            on_error=self._on_submit_error,
        )

        def closeEvent(self, event):
            self._task_manager.cleanup()
            super().closeEvent(event)
    """

    def __init__(self):
        self._current_task: Optional[BackgroundTask] = None
        # Superseded tasks whose threads are still running must stay referenced
        self._retired: List[BackgroundTask] = []

    @property
    def current_task(self) -> Optional[BackgroundTask]:
        return self._current_task

    @property
    def is_running(self) -> bool:
        return self._current_task is not None and self._current_task.isRunning()

    def run(
        self,
        target: Callable[..., Any],
        args: Tuple = (),
        kwargs: Optional[dict] = None,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        label: str = "",
    ) -> BackgroundTask:
        """
        Start target on a worker thread, superseding any running task.

        Args:
            target: Callable executed on the worker thread
            args: Positional arguments for target
            kwargs: Keyword arguments for target
            on_success: Receives the return value on the GUI thread
            on_error: Receives the raised Exception on the GUI thread
            label: Name used in log messages

        Returns:
            The started task
        """
        self._stop_current(CANCEL_WAIT_MS)

        task = BackgroundTask(target, args=args, kwargs=kwargs, label=label)
        if on_success is not None:
            task.result_ready.connect(lambda result: self._deliver(task, on_success, result))
        if on_error is not None:
            task.error_occurred.connect(lambda error: self._deliver(task, on_error, error))

        self._current_task = task
        task.start()
        logger.debug(f"Started background task {task.label}")
        return task

    def cleanup(self):
        """Cancel the current task and wait briefly for its thread."""
        self._stop_current(CLEANUP_WAIT_MS)
        self._current_task = None

    @staticmethod
    def _deliver(task: BackgroundTask, callback: Callable[[Any], None], outcome: Any):
        # Outcomes emitted before cancel() may still be queued for the GUI thread
        if task.cancelled:
            logger.debug(f"Discarding queued outcome of cancelled task {task.label}")
            return
        callback(outcome)

    def _stop_current(self, wait_ms: int):
        task = self._current_task
        if task is None:
            return
        task.cancel()
        if not task.isRunning():
            return
        if not task.wait(wait_ms):
            logger.warning(f"Background task {task.label} still running after {wait_ms}ms, outcome discarded")
            self._retired.append(task)
        self._retired = [retired for retired in self._retired if retired.isRunning()]
