from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress events for ingestion, plus a tqdm console sink (TTY only).

Stages and their percentages:
    reading 5 -> parsing 15 -> converting 25 -> analyzing 35
    -> processing 45..80 (per row chunk) -> normalizing 85 -> indexing 95 -> done 100

``ProgressReporter`` enforces monotonic delivery: an event whose percentage is
lower than one already delivered is dropped (this happens when a sync
fallback restarts after a background run had progressed). Delivery is
best-effort; a consumer may not observe every percentage.
"""

__all__ = [
    "STAGE_PERCENT",
    "PROCESSING_START",
    "PROCESSING_END",
    "ProgressCallback",
    "ProgressEvent",
    "ProgressReporter",
    "ConsoleProgress",
    "is_tty_enabled",
    "processing_percent",
]

STAGE_PERCENT: dict[str, int] = {
    "reading": 5,
    "parsing": 15,
    "converting": 25,
    "analyzing": 35,
    "processing": 45,
    "normalizing": 85,
    "indexing": 95,
    "done": 100,
}
PROCESSING_START = 45
PROCESSING_END = 80

ProgressCallback = Callable[[int, str, str], None]


@dataclass(frozen=True)
class ProgressEvent:
    percentage: int
    stage: str
    message: str


def processing_percent(done_rows: int, total_rows: int) -> int:
    """Linear 45..80 interpolation over processed rows."""
    if total_rows <= 0:
        return PROCESSING_END
    span = PROCESSING_END - PROCESSING_START
    return PROCESSING_START + (span * min(done_rows, total_rows)) // total_rows


class ProgressReporter:
    """Forwards monotonic progress events to an optional callback."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self.callback = callback
        self.last_percentage = -1
        self.events: list[ProgressEvent] = []

    def emit(self, percentage: int, stage: str, message: str = "") -> None:
        if percentage < self.last_percentage:
            return
        if percentage == self.last_percentage and self.events and self.events[-1].stage == stage:
            return
        self.last_percentage = percentage
        event = ProgressEvent(percentage, stage, message)
        self.events.append(event)
        if self.callback is not None:
            self.callback(event.percentage, event.stage, event.message)

    def stage(self, stage: str, message: str = "") -> None:
        self.emit(STAGE_PERCENT[stage], stage, message)

    def deliver(self, event: ProgressEvent) -> None:
        self.emit(event.percentage, event.stage, event.message)


def is_tty_enabled() -> bool:
    """Check if stdout is a TTY (progress bars are disabled otherwise)."""
    return sys.stdout.isatty()


class ConsoleProgress:
    """tqdm progress bar usable as an ``on_progress`` callback.

    In non-TTY environments (CI, logs redirected to file) no bar is created
    and calls are no-ops.
    """

    def __init__(self, *, description: str = "Ingesting statement") -> None:
        self.description = description
        self.last_percentage = 0
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=description,
                unit="%",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def __call__(self, percentage: int, stage: str, message: str) -> None:
        if not self.enabled or self.pbar is None:
            return
        delta = percentage - self.last_percentage
        if delta > 0:
            self.pbar.update(delta)
            self.last_percentage = percentage
        self.pbar.set_description(f"{self.description} ({stage})")
        if message:
            self.pbar.set_postfix_str(message)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ConsoleProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
