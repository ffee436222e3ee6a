"""
Edit-Window Policy

A stored transaction may be edited for a limited time after it was
created. The window is inclusive: a record exactly 12h old can still
be edited, one a second older cannot.

IMPORTANT: The anchor is always the created_at held by the store.
It is never taken from client input.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from money_manager.models.transaction import Transaction, to_utc
from money_manager.policy.clock import Clock, SystemClock


DEFAULT_EDIT_WINDOW = timedelta(hours=12)


class EditWindowExpiredError(Exception):
    """Update attempted after the edit window closed."""

    def __init__(
        self,
        transaction_id: UUID,
        created_at: datetime,
        elapsed: timedelta,
        window: timedelta = DEFAULT_EDIT_WINDOW,
    ):
        self.transaction_id = transaction_id
        self.created_at = created_at
        self.elapsed = elapsed
        self.window = window
        super().__init__(
            f"Editing is allowed only within {self.window_hours:g} hours of creation "
            f"(transaction {transaction_id} is {self.elapsed_hours:.2f} hours old)"
        )

    @property
    def elapsed_hours(self) -> float:
        return self.elapsed.total_seconds() / 3600

    @property
    def window_hours(self) -> float:
        return self.window.total_seconds() / 3600


def is_editable(
    created_at: datetime,
    now: datetime,
    window: timedelta = DEFAULT_EDIT_WINDOW,
) -> bool:
    """
    True while now - created_at <= window.

    A now earlier than created_at (clock skew) counts as editable.
    """
    return to_utc(now) - to_utc(created_at) <= window


class EditWindowPolicy:
    """Applies the edit window to stored records using one clock."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        window_hours: float = 12.0,
    ):
        self._clock = clock or SystemClock()
        self._window = timedelta(hours=window_hours)

    @property
    def window(self) -> timedelta:
        return self._window

    def is_editable(self, record: Transaction) -> bool:
        return is_editable(record.created_at, self._clock.now(), self._window)

    def ensure_editable(self, record: Transaction) -> None:
        """
        Raise if the record can no longer be edited.

        Suitable as a store replace precondition.

        Raises:
            EditWindowExpiredError: If the window has closed
        """
        now = self._clock.now()
        if not is_editable(record.created_at, now, self._window):
            raise EditWindowExpiredError(
                transaction_id=record.id,
                created_at=record.created_at,
                elapsed=to_utc(now) - record.created_at,
                window=self._window,
            )
