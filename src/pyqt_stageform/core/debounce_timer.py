"""Reusable trailing debounce timers."""

import logging
from typing import Callable, Dict, List, Optional
from PyQt6.QtCore import QTimer

logger = logging.getLogger(__name__)


class DebounceTimer:
    """
    Reusable trailing debounce timer.

    Restarts timer on each call. Handler fires only after delay_ms of inactivity.

    Usage:
        self._debounce = DebounceTimer(delay_ms=200, handler=self._do_update)

        def on_text_edited(self):
            self._debounce.trigger()  # Restarts timer
    """

    def __init__(self, delay_ms: int, handler: Callable[[], None]):
        self._delay_ms = delay_ms
        self._handler = handler
        self._timer: Optional[QTimer] = None

    @property
    def is_pending(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def trigger(self):
        """Trigger debounce, restarting the timer."""
        if self._timer is not None:
            self._timer.stop()

        self._timer = QTimer()
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)
        self._timer.start(self._delay_ms)

    def cancel(self):
        """Cancel pending trigger."""
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def force(self):
        """Cancel timer and fire handler immediately."""
        self.cancel()
        self._handler()

    def _fire(self):
        self._timer = None
        self._handler()


class KeyedDebounceScheduler:
    """
    One trailing debounce timer per key.

    Scheduling a key again replaces that key's callback and restarts its
    timer; other keys are untouched. Used by the form engine with field
    names as keys so that a burst of keystrokes in one field collapses into
    a single re-render.

    Usage:
        scheduler = KeyedDebounceScheduler(delay_ms=200)
        scheduler.schedule("email", lambda: self.render_stage(2))
        scheduler.cancel("email")      # commit arrived first
        scheduler.cancel_all()         # schema replaced
    """

    def __init__(self, delay_ms: int):
        self._delay_ms = delay_ms
        self._timers: Dict[str, DebounceTimer] = {}

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def schedule(self, key: str, callback: Callable[[], None]) -> None:
        """Cancel any pending run for key and start a fresh delay."""
        self.cancel(key)

        def fire():
            # Drop the entry before running so the callback may reschedule
            self._timers.pop(key, None)
            callback()

        timer = DebounceTimer(self._delay_ms, fire)
        self._timers[key] = timer
        timer.trigger()
        logger.debug(f"Scheduled debounced run for '{key}' in {self._delay_ms}ms")

    def cancel(self, key: str) -> bool:
        """Cancel the pending run for key. Returns True if one was pending."""
        timer = self._timers.pop(key, None)
        if timer is None:
            return False
        timer.cancel()
        logger.debug(f"Cancelled pending run for '{key}'")
        return True

    def cancel_all(self) -> None:
        """Cancel every pending run."""
        for timer in self._timers.values():
            timer.cancel()
        if self._timers:
            logger.debug(f"Cancelled {len(self._timers)} pending run(s)")
        self._timers.clear()

    def is_pending(self, key: str) -> bool:
        timer = self._timers.get(key)
        return timer is not None and timer.is_pending

    def pending_keys(self) -> List[str]:
        return [key for key, timer in self._timers.items() if timer.is_pending]
