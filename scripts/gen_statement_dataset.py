#!/usr/bin/env python3
"""Generate synthetic bank-statement workbooks for ingestion performance runs.

The generated sheet looks like a typical bank export:
- Rows 1-2: bank name and account metadata (not a header)
- Row 3: header (Data | Histórico | Valor, or Data | Histórico | Crédito | Débito)
- Row 4+: transactions
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

DESCRIPTIONS = [
    "PIX RECEBIDO DE {cpf}",
    "PIX ENVIADO PARA {cpf}",
    "TED RECEBIDA {cpf}",
    "DOC COMPENSADO",
    "COMPRA CARTAO DEBITO",
    "PAGAMENTO BOLETO",
    "TRANSFERENCIA ENTRE CONTAS",
    "DEPOSITO EM DINHEIRO",
    "SAQUE CAIXA ELETRONICO",
    "TARIFA BANCARIA",
]


def _fake_cpf(rng: np.random.Generator) -> str:
    d = rng.integers(0, 10, 11)
    s = "".join(str(x) for x in d)
    return f"{s[:3]}.{s[3:6]}.{s[6:9]}-{s[9:]}"


def generate_statement_rows(rows: int, *, split: bool = False, seed: int = 42) -> list[list[Any]]:
    """Build header + data rows (values formatted the Brazilian way)."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2024-01-01", "2024-12-31", periods=rows)
    amounts = np.round(rng.uniform(-5000, 5000, rows), 2)

    header: list[Any] = ["Data", "Histórico", "Crédito", "Débito"] if split else ["Data", "Histórico", "Valor"]
    out: list[list[Any]] = [header]
    for i in range(rows):
        template = DESCRIPTIONS[int(rng.integers(0, len(DESCRIPTIONS)))]
        description = template.format(cpf=_fake_cpf(rng))
        date = dates[i].strftime("%d/%m/%Y")
        amount = float(amounts[i])
        text = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
        if split:
            out.append([date, description, text if amount >= 0 else "", text if amount < 0 else ""])
        else:
            out.append([date, description, ("-" if amount < 0 else "") + text])
    return out


def create_statement_file(
    output_path: Path,
    rows: int,
    *,
    split: bool = False,
    bank: str = "Banco Exemplo S.A.",
    seed: int = 42,
) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    body = generate_statement_rows(rows, split=split, seed=seed)
    width = len(body[0])
    sheet = [
        [bank] + [""] * (width - 1),
        ["Agência 0001 Conta 12345-6"] + [""] * (width - 1),
        *body,
    ]
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        pd.DataFrame(sheet).to_excel(writer, sheet_name="Extrato", header=False, index=False)

    print(f"Created statement: {output_path}")
    print(f"  Transactions: {rows:,}")
    print(f"  Layout: {'credit/debit' if split else 'signed value'}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic bank-statement workbooks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s statement.xlsx --rows 20000
  %(prog)s split.xlsx --rows 5000 --split --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=10_000, help="Number of transactions (default: 10,000)")
    parser.add_argument("--split", action="store_true", help="Use separate Crédito/Débito columns")
    parser.add_argument("--bank", default="Banco Exemplo S.A.", help="Text of the first metadata row")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1

    try:
        create_statement_file(args.output, args.rows, split=args.split, bank=args.bank, seed=args.seed)
    except OSError as e:
        print(f"Error generating statement: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
