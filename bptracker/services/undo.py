"""
Reversible delete with a single, time-bounded undo slot.

State machine:
    IDLE --delete--> PENDING_UNDO --undo / expiry--> IDLE
    PENDING_UNDO --delete--> PENDING_UNDO (previous deletion becomes permanent)

The countdown is a cancellable one-shot callback supplied by a Scheduler, so
nothing here blocks. Cancelling the old countdown and registering the new
pending deletion happen under one lock, and an expiry callback only clears
the deletion it was scheduled for.
"""

import asyncio
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol

from bptracker.domain.models import PendingDeletion, Reading, UndoState
from bptracker.log import logger
from bptracker.services.reading_store import ReadingStore

DEFAULT_UNDO_WINDOW_SECONDS = 5.0


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay; the returned handle cancels it."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop's ``call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        # Without an explicit loop this must be called from inside a running one
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class UndoController:
    """Tracks the most recent deletion and lets it be reversed until it expires."""

    def __init__(
        self,
        store: ReadingStore,
        scheduler: Scheduler,
        *,
        window_seconds: float = DEFAULT_UNDO_WINDOW_SECONDS,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.store = store
        self.scheduler = scheduler
        self.window_seconds = window_seconds
        self._clock = clock
        self._pending: PendingDeletion | None = None
        self._timer: Cancellable | None = None
        self._lock = threading.RLock()
        self.logger = logger.bind(component="undo_controller")

    @property
    def state(self) -> UndoState:
        return UndoState.IDLE if self._pending is None else UndoState.PENDING_UNDO

    @property
    def pending(self) -> PendingDeletion | None:
        return self._pending

    @property
    def can_undo(self) -> bool:
        return self._pending is not None

    def remaining_seconds(self) -> float:
        """Time left in the undo window, 0.0 when idle."""
        pending = self._pending
        if pending is None:
            return 0.0
        return max(0.0, (pending.expires_at - self._clock()).total_seconds())

    def delete(self, index: int) -> Reading:
        """
        Remove the reading at ``index`` and open an undo window for it.

        Any earlier pending deletion is discarded for good. If the index is
        invalid, or the countdown cannot be scheduled, the error propagates,
        the collection is left as it was and the previous pending deletion
        stays recoverable.
        """
        with self._lock:
            removed = self.store.remove_at(index)
            pending = PendingDeletion(
                reading=removed,
                original_index=index,
                expires_at=self._clock() + timedelta(seconds=self.window_seconds),
            )
            try:
                timer = self.scheduler.call_later(
                    self.window_seconds, lambda: self._expire(pending)
                )
            except Exception:
                self.store.insert_at(index, removed)
                raise

            superseded = self._pending
            self._cancel_timer()
            if superseded is not None:
                self.logger.info(
                    "deletion_finalized",
                    reason="superseded",
                    original_index=superseded.original_index,
                )

            self._pending = pending
            self._timer = timer

        self.logger.info(
            "deletion_pending", original_index=index, window_seconds=self.window_seconds
        )
        return removed

    def undo(self) -> Reading | None:
        """Put the pending reading back at its original index; no-op when idle."""
        with self._lock:
            pending = self._pending
            if pending is None:
                return None
            self.store.insert_at(pending.original_index, pending.reading)
            self._cancel_timer()
            self._pending = None

        self.logger.info("deletion_undone", original_index=pending.original_index)
        return pending.reading

    def finalize(self) -> Reading | None:
        """Close the undo window now, making the pending deletion permanent."""
        with self._lock:
            pending = self._pending
            self._cancel_timer()
            self._pending = None
        if pending is not None:
            self.logger.info(
                "deletion_finalized", reason="finalized", original_index=pending.original_index
            )
            return pending.reading
        return None

    def _expire(self, token: PendingDeletion) -> None:
        with self._lock:
            if self._pending is not token:
                return
            self._pending = None
            self._timer = None
        self.logger.info(
            "deletion_finalized", reason="expired", original_index=token.original_index
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
