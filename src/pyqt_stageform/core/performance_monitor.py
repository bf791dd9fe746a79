"""Performance monitoring utilities for pyqt-stageform.

Provides a decorator and a context manager for timing renders and
logging the elapsed time to a dedicated performance logger.
"""

import time
import functools
import logging
from contextlib import contextmanager
from typing import Optional, Callable
from pathlib import Path

from pyqt_stageform.protocols.form_config import get_form_config

perf_logger = logging.getLogger(get_form_config().performance_logger_name)


def configure_performance_logging(log_dir: Optional[str] = None) -> Optional[Path]:
    """Attach a file handler to the performance logger.

    Uses the configured log_dir when none is given. Does nothing when no
    directory is configured.

    Returns:
        Path of the log file, or None when file logging is disabled
    """
    config = get_form_config()
    directory = log_dir or config.log_dir
    if not directory:
        return None

    log_file = Path(directory) / config.performance_log_filename
    log_file.parent.mkdir(parents=True, exist_ok=True)

    for handler in perf_logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_file.resolve():
            return log_file

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    perf_logger.addHandler(file_handler)
    perf_logger.setLevel(logging.DEBUG)
    return log_file


@contextmanager
def timer(operation_name: str, threshold_ms: float = 0.0, log_args: bool = False, **kwargs):
    """Context manager for timing operations.

    Args:
        operation_name: Name of the operation being timed
        threshold_ms: Only log if operation takes longer than this (in milliseconds)
        log_args: Whether to log kwargs in the message
        **kwargs: Additional context to include in log message

    Example:
        with timer("render_stage", threshold_ms=5.0, stage=2):
            self._build_page(2)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000

        if elapsed_ms >= threshold_ms:
            msg = f"{operation_name}: {elapsed_ms:.2f}ms"
            if log_args and kwargs:
                args_str = ", ".join(f"{k}={v}" for k, v in kwargs.items())
                msg += f" ({args_str})"

            perf_logger.debug(msg)


def timed(operation_name: Optional[str] = None, threshold_ms: float = 0.0):
    """Decorator for timing function calls.

    Args:
        operation_name: Name for the operation (defaults to function name)
        threshold_ms: Only log if operation takes longer than this (in milliseconds)
    """
    def decorator(func: Callable) -> Callable:
        name = operation_name or f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with timer(name, threshold_ms=threshold_ms):
                return func(*args, **kwargs)

        return wrapper
    return decorator
