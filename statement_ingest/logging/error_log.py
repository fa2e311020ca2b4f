from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import IssueRecord
from ..models.parse_report import ParseReport

logger = logging.getLogger(__name__)

"""Issue log: buffered JSON Lines file of the problems seen in one call.

- fixed record schema (IssueRecord, no extra keys)
- one file per buffer: ``<dir>/ingest-issues-YYYYMMDD-HHMMSS.log`` (UTC),
  created lazily on the first non-empty flush
- records are appended in memory and written in a single flush
- not thread-safe: a buffer belongs to one ingestion run
"""

__all__ = [
    "IssueRecord",
    "IssueLogBuffer",
    "issues_from_report",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

_ROW_MESSAGE_RE = re.compile(r"^Row (\d+): (.*)$", re.DOTALL)


class IssueLogBuffer:
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self._records: list[IssueRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.directory / f"ingest-issues-{stamp}.log"
        return self._file_path

    def append(self, record: IssueRecord) -> None:
        self._records.append(record)

    def extend(self, records: list[IssueRecord]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; returns its path (None if nothing written)."""
        if not self._records:
            return None
        self.directory.mkdir(parents=True, exist_ok=True)
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        written = len(self._records)
        self._records.clear()
        logger.debug("wrote %d issue records to %s", written, fp)
        return fp


def _split_row_message(message: str) -> tuple[int, str]:
    m = _ROW_MESSAGE_RE.match(message)
    if m:
        return int(m.group(1)), m.group(2)
    return -1, message


def issues_from_report(report: ParseReport, file_label: str) -> list[IssueRecord]:
    """Row errors then row/report warnings of a report, as IssueRecords."""
    records: list[IssueRecord] = []
    for issue_type, messages in (("ROW_ERROR", report.errors), ("ROW_WARNING", report.warnings)):
        for message in messages:
            row, text = _split_row_message(message)
            kind = issue_type if row != -1 else "REPORT_WARNING"
            records.append(IssueRecord.create(file=file_label, row=row, issue_type=kind, message=text))
    return records
