from __future__ import annotations

import threading
from collections.abc import Callable

from ..errors import IngestCancelled

"""Cooperative cancellation.

A CancelToken can be tripped from any thread; the pipeline polls it at stage
boundaries and between row chunks. ``Checkpoint`` bundles the caller's token
with the background context's teardown flag so the pipeline has a single
thing to poll.
"""

__all__ = [
    "CancelToken",
    "Checkpoint",
]


class CancelToken:
    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = "ingestion cancelled"

    def cancel(self, reason: str | None = None) -> None:
        if reason:
            self._reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise IngestCancelled(self._reason)

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


class Checkpoint:
    """Callable polled by the pipeline; raises IngestCancelled when tripped."""

    def __init__(
        self,
        token: CancelToken | None = None,
        aborted: Callable[[], bool] | None = None,
    ) -> None:
        self.token = token
        self.aborted = aborted
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1
        if self.token is not None:
            self.token.raise_if_cancelled()
        if self.aborted is not None and self.aborted():
            raise IngestCancelled("background context torn down")
