"""
Context manager factory for boolean flag management.

Pattern:
    Instead of:
        self._rendering = True
        try:
            # ... logic
        finally:
            self._rendering = False

    Use:
        with FlagContextManager.manage_flags(self, _rendering=True):
            # ... logic

This eliminates duplicate try/finally patterns and ensures flags are always
restored, also when a render raises.
"""

from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Set
import logging

logger = logging.getLogger(__name__)


class ManagerFlag(Enum):
    """
    Registry of valid StageFormManager flags.

    Add new flags here as they're introduced to the codebase.
    """
    RENDERING = '_rendering'
    SUBMITTING = '_is_submitting'
    LOADING_SCHEMA = '_loading_schema'
    DISPATCHING = '_dispatching'


class FlagContextManager:
    """
    Context manager factory for boolean flag management.

    Examples:
        # Single flag:
        with FlagContextManager.manage_flags(self, _rendering=True):
            self._build_page()

        # Convenience method for renders:
        with FlagContextManager.rendering_context(self):
            self._swap_page(page)
    """

    VALID_FLAGS: Set[str] = {flag.value for flag in ManagerFlag}

    @staticmethod
    @contextmanager
    def manage_flags(obj: Any, **flags: bool):
        """
        Set flags on entry and restore previous values on exit.

        Args:
            obj: Object to set flags on (typically a StageFormManager)
            **flags: Flag names and values to set (e.g., _rendering=True)

        Raises:
            ValueError: If any flag name is not in VALID_FLAGS registry
        """
        invalid_flags = set(flags.keys()) - FlagContextManager.VALID_FLAGS
        if invalid_flags:
            raise ValueError(
                f"Invalid flags: {invalid_flags}. "
                f"Valid flags: {FlagContextManager.VALID_FLAGS}. "
                f"Add new flags to ManagerFlag enum."
            )

        # No default - all flags must be initialized in the manager's __init__
        prev_values: Dict[str, bool] = {name: getattr(obj, name) for name in flags}

        for flag_name, flag_value in flags.items():
            setattr(obj, flag_name, flag_value)

        try:
            yield
        finally:
            for flag_name, prev_value in prev_values.items():
                setattr(obj, flag_name, prev_value)

    @staticmethod
    @contextmanager
    def rendering_context(obj: Any):
        """Mark obj as rendering so handlers fired by widget teardown are ignored."""
        with FlagContextManager.manage_flags(obj, **{ManagerFlag.RENDERING.value: True}):
            yield

    @staticmethod
    def is_flag_set(obj: Any, flag: ManagerFlag) -> bool:
        return getattr(obj, flag.value)
