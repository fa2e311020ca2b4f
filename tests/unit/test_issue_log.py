from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

from statement_ingest.logging.error_log import IssueLogBuffer, issues_from_report
from statement_ingest.models import IssueRecord, ParseReport, ParseStats

KEYS = {"timestamp", "file", "row", "issue_type", "message"}


def test_issue_record_json_line():
    record = IssueRecord.create(file="extrato.xlsx", row=3, issue_type="ROW_ERROR", message="data inválida")
    data = json.loads(record.to_json_line())
    assert set(data) == KEYS
    assert data["timestamp"].endswith("Z")
    assert data["message"] == "data inválida"
    assert "\\u" not in record.to_json_line()


def test_flush_writes_json_lines(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path / "logs")
    buf.append(IssueRecord.create("a.xlsx", 2, "ROW_ERROR", "invalid date"))
    buf.append(IssueRecord.create("a.xlsx", -1, "TIMEOUT", "slow"))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == tmp_path / "logs"
    assert path.name.startswith("ingest-issues-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(x)["issue_type"] for x in lines] == ["ROW_ERROR", "TIMEOUT"]
    assert len(buf) == 0


def test_second_flush_appends_to_same_file(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path)
    buf.append(IssueRecord.create("a.xlsx", 2, "ROW_ERROR", "x"))
    first = buf.flush()
    buf.extend([IssueRecord.create("a.xlsx", 3, "ROW_ERROR", "y")])
    second = buf.flush()
    assert first == second
    assert len(second.read_text(encoding="utf-8").splitlines()) == 2


def test_empty_flush_creates_nothing(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path / "never")
    assert buf.flush() is None
    assert not (tmp_path / "never").exists()


def test_issues_from_report_splits_row_numbers():
    report = ParseReport(
        errors=("Row 4: invalid date",),
        warnings=("no value column detected", "Row 3: zero value"),
        stats=ParseStats(3, 1, 1, 1, Decimal(0)),
    )
    issues = issues_from_report(report, "extrato.xlsx")
    assert [(i.row, i.issue_type, i.message) for i in issues] == [
        (4, "ROW_ERROR", "invalid date"),
        (-1, "REPORT_WARNING", "no value column detected"),
        (3, "ROW_WARNING", "zero value"),
    ]
    assert all(i.file == "extrato.xlsx" for i in issues)
