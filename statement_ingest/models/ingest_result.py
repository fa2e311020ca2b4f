from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .parse_report import ParseReport
from .transaction_record import TransactionRecord

if TYPE_CHECKING:
    from ..services.value_index import ValueCentsIndex

"""Ingestion run state and the successful result of ``ingest``.

State transitions (one fresh instance per call):
    idle -> deciding -> (sync_running | background_running)
    background_running -> (succeeded | timed_out | failed_fallback | cancelled)
    timed_out / failed_fallback -> sync_running (unless fallback disabled)
    sync_running -> (succeeded | failed | cancelled)
"""

__all__ = [
    "ExecutionPath",
    "IngestResult",
    "IngestState",
]


class IngestState(Enum):
    IDLE = "idle"
    DECIDING = "deciding"
    SYNC_RUNNING = "sync_running"
    BACKGROUND_RUNNING = "background_running"
    SUCCEEDED = "succeeded"
    FAILED_FALLBACK = "failed_fallback"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (IngestState.SUCCEEDED, IngestState.CANCELLED, IngestState.FAILED)


class ExecutionPath(Enum):
    SYNC = "sync"
    BACKGROUND = "background"
    FALLBACK = "fallback"  # background failed, result produced by the sync path


@dataclass(frozen=True)
class IngestResult:
    report: ParseReport
    index: ValueCentsIndex
    records: tuple[TransactionRecord, ...]
    path: ExecutionPath = ExecutionPath.SYNC
    state_history: tuple[IngestState, ...] = ()
    elapsed_seconds: float = 0.0
