# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from statement_ingest.logging.init import reset_logging

Rows = list[list[Any]]


def build_workbook(rows: Rows, sheet_name: str = "Extrato") -> bytes:
    """Write ``rows`` (no header handling) to an in-memory .xlsx."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return buf.getvalue()


def statement_rows(count: int) -> Rows:
    """Header + ``count`` deterministic transactions in Brazilian notation."""
    kinds = ["PIX RECEBIDO DE 123.456.789-01", "TED ENVIADA", "PAGAMENTO BOLETO", "SAQUE", "Compra cartão"]
    rows: Rows = [["Data", "Histórico", "Valor"]]
    for i in range(count):
        day = i % 28 + 1
        cents = (i * 7919) % 500_000 + 1
        sign = "-" if i % 3 == 0 else ""
        rows.append([f"{day:02d}/03/2024", f"{kinds[i % len(kinds)]} #{i}", f"{sign}{cents // 100},{cents % 100:02d}"])
    return rows


@pytest.fixture()
def temp_workdir(monkeypatch) -> Iterator[Path]:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def make_workbook() -> Callable[..., bytes]:
    return build_workbook


@pytest.fixture()
def scenario_rows() -> Rows:
    """Two-row statement: a PIX credit and a zero-value TED."""
    return [
        ["Data", "Histórico", "Valor"],
        ["15/01/2024", "PIX RECEBIDO DE 123.456.789-01", "150,50"],
        ["16/01/2024", "TED", 0],
    ]


@pytest.fixture()
def scenario_bytes(scenario_rows: Rows) -> bytes:
    return build_workbook(scenario_rows)


@pytest.fixture()
def large_statement_bytes() -> bytes:
    return build_workbook(statement_rows(2_000))


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    reset_logging()
