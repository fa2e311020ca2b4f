from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..errors import ExecutionError, IngestCancelled, IngestError, IngestTimeoutError
from ..models.config_models import DEFAULT_CONFIG, IngestConfig
from ..models.ingest_result import IngestResult
from .cancellation import CancelToken, Checkpoint
from .progress import ProgressEvent, ProgressReporter

logger = logging.getLogger(__name__)

"""Isolated background execution context for one ingestion call.

The pipeline runs on a dedicated worker thread and talks to its owner only
through a message queue (progress, result, error). The owner waits on the
queue and resolves exactly one of: result, timeout, cancellation, worker
error.

A context is single-use. ``terminate`` is idempotent: it raises the abort
flag the worker polls at every checkpoint, drops pending messages, then joins
the worker for at most ``teardown_grace_ms``. A worker stuck in a stage
without checkpoints (e.g. workbook decoding) may outlive the grace period;
that is logged at WARNING and its output is discarded.
"""

__all__ = [
    "BackgroundContext",
    "POLL_INTERVAL_SECONDS",
]

POLL_INTERVAL_SECONDS = 0.05

PipelineTarget = Callable[..., IngestResult]


@dataclass(frozen=True)
class _Message:
    kind: str  # "progress" | "result" | "error"
    payload: Any


class BackgroundContext:
    """Owns one worker thread and its message queue."""

    _counter = 0
    _counter_lock = threading.Lock()

    def __init__(
        self,
        target: PipelineTarget,
        *,
        teardown_grace_ms: int = DEFAULT_CONFIG.teardown_grace_ms,
    ) -> None:
        self.target = target
        self.teardown_grace_ms = max(0, teardown_grace_ms)
        self._messages: queue.Queue[_Message] = queue.Queue()
        self._abort = threading.Event()
        self._thread: threading.Thread | None = None
        self._torn_down = False
        with BackgroundContext._counter_lock:
            BackgroundContext._counter += 1
            self.name = f"statement-ingest-worker-{BackgroundContext._counter}"

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _post(self, kind: str, payload: Any) -> None:
        if not self._abort.is_set():
            self._messages.put(_Message(kind, payload))

    def start(
        self,
        data: bytes,
        operation_date: str,
        *,
        config: IngestConfig,
        cancel_token: CancelToken | None = None,
    ) -> None:
        if self._torn_down or self._thread is not None:
            raise ExecutionError("background context is single-use")

        reporter = ProgressReporter(
            lambda pct, stage, msg: self._post("progress", ProgressEvent(pct, stage, msg))
        )
        checkpoint = Checkpoint(cancel_token, aborted=self._abort.is_set)

        def work() -> None:
            try:
                result = self.target(
                    data,
                    operation_date,
                    reporter=reporter,
                    checkpoint=checkpoint,
                    config=config,
                )
            except Exception as e:  # reported to the owner, never raised on this thread
                self._post("error", e)
            else:
                self._post("result", result)

        self._thread = threading.Thread(target=work, name=self.name, daemon=True)
        self._thread.start()
        logger.debug("%s started (%d bytes)", self.name, len(data))

    def wait(
        self,
        *,
        timeout_ms: int | None,
        on_progress: Callable[[ProgressEvent], None] | None = None,
        cancel_token: CancelToken | None = None,
    ) -> IngestResult:
        """Block until the worker resolves; progress is forwarded as it arrives.

        Raises IngestTimeoutError, IngestCancelled, the worker's IngestError,
        or ExecutionError wrapping any other worker failure.
        """
        if self._thread is None:
            raise ExecutionError("background context was not started")
        deadline = None
        if timeout_ms is not None and timeout_ms > 0:
            deadline = time.monotonic() + timeout_ms / 1000

        while True:
            if cancel_token is not None and cancel_token.is_cancelled:
                raise IngestCancelled(cancel_token.reason)
            poll = POLL_INTERVAL_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise IngestTimeoutError(timeout_ms or 0)
                poll = min(poll, remaining)
            try:
                message = self._messages.get(timeout=poll)
            except queue.Empty:
                if not self.is_alive and self._messages.empty():
                    raise ExecutionError(f"{self.name} exited without a result") from None
                continue

            if message.kind == "progress":
                if on_progress is not None:
                    on_progress(message.payload)
            elif message.kind == "result":
                return message.payload
            elif message.kind == "error":
                error = message.payload
                if isinstance(error, IngestError):
                    raise error
                raise ExecutionError(f"{self.name} crashed: {type(error).__name__}: {error}") from error
            else:
                raise ExecutionError(f"{self.name} sent an unknown message: {message.kind!r}")

    def _drain(self) -> None:
        while True:
            try:
                self._messages.get_nowait()
            except queue.Empty:
                return

    def terminate(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        self._abort.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.teardown_grace_ms / 1000)
        self._drain()
        if self.is_alive:
            logger.warning(
                "%s still running %d ms after teardown; its output will be discarded",
                self.name,
                self.teardown_grace_ms,
            )
        else:
            logger.debug("%s torn down", self.name)

    def __enter__(self) -> BackgroundContext:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.terminate()
