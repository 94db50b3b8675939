"""Cooperative cancellation for long-running reads."""

from __future__ import annotations

import time
from typing import Callable, Iterator, Optional, TypeVar

from modcore.common.types import Page
from modcore.errors import DeadlineExceeded

T = TypeVar("T")


class Deadline:
    """A point on the monotonic clock after which work should stop.

    Callers pass one into list operations; the operation calls ``check()``
    between page fetches.  ``cancel()`` trips it early.
    """

    def __init__(self, seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._expires_at = None if seconds is None else clock() + seconds
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def expired(self) -> bool:
        if self._cancelled:
            return True
        return self._expires_at is not None and self._clock() >= self._expires_at

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def check(self) -> None:
        if self.expired:
            raise DeadlineExceeded("operation cancelled or deadline exceeded")


def check_deadline(deadline: Optional[Deadline]) -> None:
    if deadline is not None:
        deadline.check()


def iter_pages(
    fetch: Callable[[int, int], Page[T]],
    page_size: int = 100,
    deadline: Optional[Deadline] = None,
) -> Iterator[T]:
    """Yield every item of a paged listing, honouring *deadline* between pages."""
    page = 1
    while True:
        check_deadline(deadline)
        result = fetch(page, page_size)
        yield from result.items
        if page >= result.pages:
            return
        page += 1
