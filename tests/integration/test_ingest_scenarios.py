from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from statement_ingest import (
    CancelToken,
    ExecutionMode,
    IngestCancelled,
    IngestOptions,
    MissingRequiredColumns,
    ingest,
)
from statement_ingest.models import RecordStatus, ValidationStatus
from statement_ingest.services.value_index import extend_value_index, reindex


def test_two_row_statement(scenario_bytes):
    result = ingest(scenario_bytes, "20-01-2024")

    assert len(result.records) == 2
    first, second = result.records
    assert first.payment_type == "PIX RECEBIDO"
    assert first.identifier == "12345678901"
    assert first.value_cents == 15050
    assert first.date == "15-01-2024"
    assert first.status is RecordStatus.PENDING
    assert first.operation_date == "20-01-2024"

    assert second.row.validation_status is ValidationStatus.WARNING
    assert second.row.validation_message == "zero value"
    assert second.payment_type == "TED"

    stats = result.report.stats
    assert stats.total_value == Decimal("150.50")
    assert (stats.total_rows, stats.valid_rows, stats.rows_with_warnings, stats.rows_with_errors) == (2, 1, 1, 0)
    assert result.report.success
    assert result.report.warnings == ("Row 3: zero value",)
    assert result.index.lookup(15050) == [0]
    assert result.index.lookup(0) == [1]


def test_missing_date_column(make_workbook):
    data = make_workbook([["Histórico", "Valor"], ["PIX RECEBIDO", "10,00"], ["TED", "5,00"]])
    with pytest.raises(MissingRequiredColumns) as exc_info:
        ingest(data, "20-01-2024")
    assert "date" in exc_info.value.missing


def test_header_on_third_row(make_workbook):
    data = make_workbook(
        [
            ["Banco Exemplo S.A.", None, None],
            ["Extrato de conta corrente", None, None],
            ["Data", "Histórico", "Valor"],
            ["15/01/2024", "PIX ENVIADO PARA 111.222.333-44", "-80,00"],
            ["16/01/2024", "PAGAMENTO BOLETO", "-120,35"],
        ]
    )
    result = ingest(data, "20-01-2024")
    assert [r.row.row_number for r in result.records] == [4, 5]
    assert [r.payment_type for r in result.records] == ["PIX ENVIADO", "BOLETO"]
    assert result.records[0].identifier == "11122233344"
    assert result.index.lookup(-12035) == [1]
    assert result.report.stats.total_value == Decimal("200.35")


def test_native_dates_and_numbers(make_workbook):
    data = make_workbook(
        [
            ["Data Movimento", "Descrição", "Valor (R$)"],
            [datetime(2024, 2, 1), "DEPOSITO IDENTIFICADO", 1500.75],
            [datetime(2024, 2, 2), "SAQUE 24H", -200],
        ]
    )
    result = ingest(data, "2024-02-05")
    assert [r.date for r in result.records] == ["01-02-2024", "02-02-2024"]
    assert [r.value_cents for r in result.records] == [150075, -20000]
    assert result.records[0].operation_date == "05-02-2024"


def test_invalid_rows_are_reported_not_raised(make_workbook):
    data = make_workbook(
        [
            ["Data", "Histórico", "Valor"],
            ["15/01/2024", "PIX RECEBIDO", "10,00"],
            ["31/02/2024", "TED", "5,00"],
            ["17/01/2024", "DOC", "7,00"],
        ]
    )
    result = ingest(data, "20-01-2024")
    assert result.report.errors == ("Row 3: invalid date",)
    assert [r.record_id for r in result.records] == [0, 1]
    assert [r.row.row_number for r in result.records] == [2, 4]
    assert not result.report.success


def test_reupload_keeps_origin_hashes(scenario_rows, make_workbook):
    noisy = [list(r) for r in scenario_rows]
    noisy[1][1] = "  pix recebido de 123.456.789-01  "
    a = ingest(make_workbook(scenario_rows), "20-01-2024")
    b = ingest(make_workbook(noisy), "21-01-2024")
    assert [r.origin_hash for r in a.records] == [r.origin_hash for r in b.records]


def test_incremental_merge_with_history(scenario_bytes, make_workbook):
    history = ingest(scenario_bytes, "20-01-2024")
    stored = [r.to_mapping() for r in history.records]
    rebuilt = reindex(stored)
    assert rebuilt == history.index

    new_batch = ingest(make_workbook([["Data", "Histórico", "Valor"], ["22/01/2024", "PIX", "150,50"]]), "22-01-2024")
    merged = extend_value_index(rebuilt, new_batch.records)
    # ids are per batch; the reconciliation side keys them by origin hash
    assert merged.lookup(15050) == [0, 0]
    assert rebuilt.lookup(15050) == [0]


def test_cancellation_discards_everything(large_statement_bytes):
    token = CancelToken()

    def on_progress(pct, stage, msg):
        if stage == "processing" and pct > 45:
            token.cancel("closed")

    options = IngestOptions(mode=ExecutionMode.SYNC, cancel_token=token, on_progress=on_progress)
    with pytest.raises(IngestCancelled):
        ingest(large_statement_bytes, "20-01-2024", options)


CSV_STATEMENT = "Data;Histórico;Valor\n15/01/2024;PIX RECEBIDO DE 123.456.789-01;150,50\n"


def test_semicolon_csv_statement():
    result = ingest(CSV_STATEMENT.encode(), "20-01-2024")

    (record,) = result.records
    assert record.payment_type == "PIX RECEBIDO"
    assert record.identifier == "12345678901"
    assert record.value_cents == 15050
    assert record.date == "15-01-2024"
    assert result.index.lookup(15050) == [0]


@pytest.mark.parametrize("encoding", ["utf-8", "utf-8-sig", "cp1252"])
def test_csv_matches_workbook_hashes(make_workbook, encoding):
    rows = [line.split(";") for line in CSV_STATEMENT.splitlines()]
    from_csv = ingest(CSV_STATEMENT.encode(encoding), "20-01-2024")
    from_xlsx = ingest(make_workbook(rows), "20-01-2024")
    assert [r.origin_hash for r in from_csv.records] == [r.origin_hash for r in from_xlsx.records]


def test_csv_without_required_columns():
    with pytest.raises(MissingRequiredColumns):
        ingest(b"this is not a statement", "20-01-2024")
