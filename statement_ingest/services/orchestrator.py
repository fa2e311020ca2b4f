from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from ..errors import (
    ExecutionError,
    FallbackFailed,
    IngestCancelled,
    IngestError,
    IngestTimeoutError,
    StructuralError,
)
from ..logging.error_log import IssueLogBuffer, IssueRecord, issues_from_report
from ..logging.init import SUMMARY_LEVEL
from ..models.config_models import DEFAULT_CONFIG, IngestConfig
from ..models.ingest_result import ExecutionPath, IngestResult, IngestState
from .background import BackgroundContext, PipelineTarget
from .cancellation import CancelToken, Checkpoint
from .pipeline import run_pipeline
from .progress import ProgressCallback, ProgressReporter
from .summary import SUMMARY_PREFIX, render_summary_line
from .value_index import RecordLike, ValueCentsIndex, reindex as _reindex

logger = logging.getLogger(__name__)

"""Ingestion orchestration: path decision, background run, timeout, fallback.

One ``IngestionRun`` per call (a fresh state machine every time):

1. decide the path from the input size (or the forced mode)
2. run the pipeline synchronously, or in a background context raced
   against a wall-clock timeout
3. on timeout or execution failure, tear the context down and re-run the
   whole pipeline synchronously on the same bytes (once)
4. flush the issue log and emit the SUMMARY line

Structural errors and cancellation are never retried.
"""

__all__ = [
    "DEFAULT_FILE_LABEL",
    "UNEXPECTED_ERROR",
    "ExecutionMode",
    "IngestOptions",
    "IngestionRun",
    "ingest",
    "reindex",
]

DEFAULT_FILE_LABEL = "<memory>"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ExecutionMode(Enum):
    AUTO = "auto"
    SYNC = "sync"
    BACKGROUND = "background"


@dataclass(frozen=True)
class IngestOptions:
    """Per-call options of ``ingest``.

    Attributes:
        timeout_ms: background budget; None uses the configured default,
            0 or less disables the timer
        cancel_token: cooperative cancellation, checked at stage boundaries
            and between row chunks
        on_progress: ``(percentage, stage, message)`` callback, called on the
            caller's thread
        fallback: re-run synchronously after a background timeout/failure
        mode: AUTO picks the path by input size; SYNC/BACKGROUND force it
        file_label: name used in the issue log
    """
    timeout_ms: int | None = None
    cancel_token: CancelToken | None = None
    on_progress: ProgressCallback | None = None
    fallback: bool = True
    mode: ExecutionMode = ExecutionMode.AUTO
    file_label: str | None = None


class IngestionRun:
    """Single-use state machine driving one ingestion call."""

    def __init__(
        self,
        data: bytes,
        operation_date: str,
        options: IngestOptions | None = None,
        *,
        config: IngestConfig = DEFAULT_CONFIG,
        background_target: PipelineTarget | None = None,
    ) -> None:
        self.data = data
        self.operation_date = operation_date
        self.options = options or IngestOptions()
        self.config = config
        self.background_target = background_target or run_pipeline
        self.file_label = self.options.file_label or DEFAULT_FILE_LABEL
        self.reporter = ProgressReporter(self.options.on_progress)
        self.issues = IssueLogBuffer(config.error_log_dir) if config.error_log_dir else None
        self.state = IngestState.IDLE
        self.history: list[IngestState] = [IngestState.IDLE]
        self._started = False

    @property
    def timeout_ms(self) -> int | None:
        timeout = self.options.timeout_ms
        if timeout is None:
            timeout = self.config.timeout_ms
        return timeout if timeout > 0 else None

    def _transition(self, state: IngestState) -> None:
        if self.state.is_terminal:
            raise ExecutionError(f"run already {self.state.value}, cannot move to {state.value}")
        logger.debug("ingest %s: %s -> %s", self.file_label, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _record_issue(self, error: Exception) -> None:
        if self.issues is not None:
            issue_type = error.code if isinstance(error, IngestError) else UNEXPECTED_ERROR
            self.issues.append(
                IssueRecord.create(file=self.file_label, row=-1, issue_type=issue_type, message=str(error))
            )

    def _flush_issues(self) -> None:
        if self.issues is None:
            return
        try:
            path = self.issues.flush()
        except OSError as e:
            logger.warning("issue log flush failed: %s", e)
            return
        if path is not None:
            logger.info("issues written to %s", path)

    def decide(self) -> ExecutionPath:
        mode = self.options.mode
        if mode is ExecutionMode.SYNC:
            return ExecutionPath.SYNC
        if mode is ExecutionMode.BACKGROUND:
            return ExecutionPath.BACKGROUND
        if len(self.data) < self.config.background_threshold_bytes:
            return ExecutionPath.SYNC
        return ExecutionPath.BACKGROUND

    def execute(self) -> IngestResult:
        if self._started:
            raise ExecutionError("ingestion run is single-use")
        self._started = True
        started = time.perf_counter()

        try:
            result, path = self._run()
        except IngestError as e:
            self._record_issue(e)
            logger.error("ingest %s failed (%s): %s", self.file_label, e.code, e)
            self._flush_issues()
            raise
        except Exception as e:
            # e.g. raised by the caller's on_progress callback
            if not self.state.is_terminal:
                self._transition(IngestState.FAILED)
            self._record_issue(e)
            logger.error(
                "ingest %s failed (%s): %s: %s", self.file_label, UNEXPECTED_ERROR, type(e).__name__, e
            )
            self._flush_issues()
            raise

        if self.issues is not None:
            self.issues.extend(issues_from_report(result.report, self.file_label))
        self._flush_issues()

        result = replace(
            result,
            path=path,
            state_history=tuple(self.history),
            elapsed_seconds=time.perf_counter() - started,
        )
        logger.log(SUMMARY_LEVEL, render_summary_line(result)[len(SUMMARY_PREFIX):])
        return result

    def _run(self) -> tuple[IngestResult, ExecutionPath]:
        self._transition(IngestState.DECIDING)
        path = self.decide()
        if path is ExecutionPath.SYNC:
            return self._run_sync(), ExecutionPath.SYNC

        try:
            return self._run_background(), ExecutionPath.BACKGROUND
        except IngestCancelled:
            self._transition(IngestState.CANCELLED)
            raise
        except StructuralError:
            self._transition(IngestState.FAILED)
            raise
        except IngestTimeoutError as e:
            self._transition(IngestState.TIMED_OUT)
            primary: ExecutionError = e
        except ExecutionError as e:
            self._transition(IngestState.FAILED_FALLBACK)
            primary = e

        if not self.options.fallback:
            self._transition(IngestState.FAILED)
            raise primary

        logger.warning("background run failed (%s), falling back to sync: %s", primary.code, primary)
        self._record_issue(primary)
        try:
            result = self._run_sync()
        except (IngestCancelled, StructuralError):
            raise
        except Exception as e:
            raise FallbackFailed(primary, e) from e
        return result, ExecutionPath.FALLBACK

    def _run_sync(self) -> IngestResult:
        self._transition(IngestState.SYNC_RUNNING)
        checkpoint = Checkpoint(self.options.cancel_token)
        try:
            result = run_pipeline(
                self.data,
                self.operation_date,
                reporter=self.reporter,
                checkpoint=checkpoint,
                config=self.config,
            )
        except IngestCancelled:
            self._transition(IngestState.CANCELLED)
            raise
        except Exception:
            self._transition(IngestState.FAILED)
            raise
        self._transition(IngestState.SUCCEEDED)
        return result

    def _run_background(self) -> IngestResult:
        self._transition(IngestState.BACKGROUND_RUNNING)
        context = BackgroundContext(self.background_target, teardown_grace_ms=self.config.teardown_grace_ms)
        try:
            context.start(
                self.data,
                self.operation_date,
                config=self.config,
                cancel_token=self.options.cancel_token,
            )
            result = context.wait(
                timeout_ms=self.timeout_ms,
                on_progress=self.reporter.deliver,
                cancel_token=self.options.cancel_token,
            )
        finally:
            context.terminate()
        self._transition(IngestState.SUCCEEDED)
        return result


def ingest(
    data: bytes,
    operation_date: str,
    options: IngestOptions | None = None,
    *,
    config: IngestConfig | None = None,
) -> IngestResult:
    """Ingest one single-sheet statement spreadsheet.

    Args:
        data: raw workbook bytes
        operation_date: reference date stamped on every record
        options: per-call options (timeout, cancellation, progress, mode)
        config: tunables; defaults apply when omitted

    Returns:
        IngestResult with report, value-cents index and records

    Raises:
        StructuralError: input unusable (missing columns, empty, undecodable, too large)
        IngestCancelled: cancel token tripped
        ExecutionError / IngestTimeoutError: background failure with fallback disabled
        FallbackFailed: background failure followed by a failing sync re-run
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"data must be bytes, got {type(data).__name__}")
    run = IngestionRun(bytes(data), operation_date, options, config=config or DEFAULT_CONFIG)
    return run.execute()


def reindex(records: Iterable[RecordLike]) -> ValueCentsIndex:
    """Rebuild a value-cents index from persisted records (no re-parsing)."""
    return _reindex(records)
