from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""IssueRecord model for the JSON Lines issue log.

Each record describes one row error, row warning or call-level failure of an
ingestion. ``row`` is the 1-based spreadsheet row, or -1 for issues that are
not tied to a row (structural, timeout, execution failures).
"""

__all__ = [
    "IssueRecord",
]


@dataclass(frozen=True)
class IssueRecord:
    """Structured issue record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: file label of the ingested statement
        row: 1-based row number, -1 when not row-specific
        issue_type: classification in UPPER_SNAKE_CASE (ROW_ERROR, ROW_WARNING, ...)
        message: human readable description
    """
    timestamp: str
    file: str
    row: int
    issue_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, issue_type: str, message: str) -> IssueRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return IssueRecord(
            timestamp=ts,
            file=file,
            row=row,
            issue_type=issue_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # fixed key set: dataclass -> dict -> json
        return json.dumps(asdict(self), ensure_ascii=False)
