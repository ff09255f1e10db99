"""
Debouncer for draw and edit events.

Dragging a vertex emits a burst of shape updates. Only the last one should
trigger a statistics run, and only once the edits have settled.
"""

import time
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    Pull-based debouncer.

    submit() records the latest event. poll() hands it back once no new
    event has arrived for wait_seconds, and then forgets it, so each burst
    is released exactly once.

    Usage:
        debouncer = Debouncer(0.5)
        debouncer.submit(shape)       # on every draw/edit event
        ready = debouncer.poll()      # on every rerun; None while settling
    """

    def __init__(self, wait_seconds: float = 0.5, clock: Callable[[], float] = time.monotonic):
        if wait_seconds < 0:
            raise ValueError("wait_seconds must be >= 0")
        self.wait_seconds = wait_seconds
        self._clock = clock
        self._pending: Optional[T] = None
        self._has_pending = False
        self._last_submit = 0.0

    def submit(self, event: T) -> None:
        """Record an event, restarting the quiet interval."""
        self._pending = event
        self._has_pending = True
        self._last_submit = self._clock()

    @property
    def pending(self) -> bool:
        return self._has_pending

    def remaining(self) -> float:
        """Seconds until the pending event is released, 0 if ready or idle."""
        if not self._has_pending:
            return 0.0
        return max(0.0, self.wait_seconds - (self._clock() - self._last_submit))

    def poll(self) -> Optional[T]:
        """The settled event, or None if nothing is pending or still settling."""
        if not self._has_pending or self.remaining() > 0:
            return None
        event = self._pending
        self.cancel()
        return event

    def cancel(self) -> None:
        """Drop any pending event."""
        self._pending = None
        self._has_pending = False

    def dispatch(self, handler: Callable[[T], Any]) -> Optional[Any]:
        """Call handler with the settled event, if there is one."""
        if not self._has_pending or self.remaining() > 0:
            return None
        return handler(self.poll())
