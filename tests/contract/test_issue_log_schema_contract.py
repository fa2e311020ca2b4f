from __future__ import annotations

import json
import re
from pathlib import Path

from statement_ingest import IngestOptions, ingest
from statement_ingest.models import DEFAULT_CONFIG

"""Issue log contract: one JSON object per line, fixed key set.

{"timestamp": "...Z", "file": str, "row": int (>= 1 or -1), "issue_type": UPPER_SNAKE, "message": str}
"""

KEYS = {"timestamp", "file", "row", "issue_type", "message"}
TS_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")
TYPE_RE = re.compile(r"^[A-Z][A-Z_]*$")
NAME_RE = re.compile(r"^ingest-issues-\d{8}-\d{6}\.log$")


def test_issue_log_lines_follow_contract(make_workbook, tmp_path: Path):
    data = make_workbook(
        [
            ["Data", "Histórico"],
            ["15/01/2024", "PIX RECEBIDO"],
            ["data ruim", "TED"],
        ]
    )
    config = DEFAULT_CONFIG.with_overrides(error_log_dir=str(tmp_path))
    ingest(data, "20-01-2024", IngestOptions(file_label="contract.xlsx"), config=config)

    (log_file,) = tmp_path.iterdir()
    assert NAME_RE.match(log_file.name)
    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines
    for raw in lines:
        obj = json.loads(raw)
        assert set(obj) == KEYS
        assert TS_RE.match(obj["timestamp"])
        assert obj["file"] == "contract.xlsx"
        assert isinstance(obj["row"], int) and (obj["row"] >= 1 or obj["row"] == -1)
        assert TYPE_RE.match(obj["issue_type"])
        assert isinstance(obj["message"], str) and obj["message"]

    kinds = [json.loads(raw)["issue_type"] for raw in lines]
    assert kinds == ["ROW_ERROR", "REPORT_WARNING", "ROW_WARNING"]
