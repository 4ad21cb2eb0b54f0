"""
Request guards shared by the wizards and sessions.

SingleFlight admits at most one collaborator request at a time; a second
submission while one is pending is rejected rather than queued.
RequestSequencer tags requests with a monotonically increasing number so
that only the newest response is applied.
"""

import logging
from contextlib import contextmanager
from typing import Iterator


logger = logging.getLogger(__name__)


class SingleFlight:
    """At most one in-flight request per owner."""

    def __init__(self, name: str = ""):
        self.name = name
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def try_acquire(self) -> bool:
        if self._busy:
            logger.info(f"Rejected concurrent {self.name or 'request'}: one is already in flight")
            return False
        self._busy = True
        return True

    def release(self) -> None:
        self._busy = False

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Release the guard when the block exits. Caller must have acquired it."""
        try:
            yield
        finally:
            self.release()


class RequestSequencer:
    """Last-request-wins bookkeeping for overlapping lookups."""

    def __init__(self):
        self._issued = 0

    def issue(self) -> int:
        self._issued += 1
        return self._issued

    def is_current(self, ticket: int) -> bool:
        return ticket == self._issued

    def invalidate(self) -> None:
        """Make every outstanding ticket stale."""
        self._issued += 1
