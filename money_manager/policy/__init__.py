"""Ledger policy package."""

from money_manager.policy.clock import Clock, SystemClock
from money_manager.policy.edit_window import (
    DEFAULT_EDIT_WINDOW,
    EditWindowExpiredError,
    EditWindowPolicy,
    is_editable,
)

__all__ = [
    "Clock",
    "DEFAULT_EDIT_WINDOW",
    "EditWindowExpiredError",
    "EditWindowPolicy",
    "SystemClock",
    "is_editable",
]
