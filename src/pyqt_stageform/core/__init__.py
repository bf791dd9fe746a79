"""
Core PyQt6 utilities.

Timers, background execution and timing helpers with no form-specific logic.
"""

from .debounce_timer import DebounceTimer, KeyedDebounceScheduler
from .background_task import BackgroundTask, BackgroundTaskManager
from .performance_monitor import timer, timed, configure_performance_logging

__all__ = [
    "DebounceTimer",
    "KeyedDebounceScheduler",
    "BackgroundTask",
    "BackgroundTaskManager",
    "timer",
    "timed",
    "configure_performance_logging",
]
