import json
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from billing_insight.io import (
    INVOICE_COLUMNS,
    TRANSACTION_COLUMNS,
    invoices_to_frame,
    load_snapshot,
    read_invoices,
    read_transactions,
    transactions_to_frame,
    write_invoices,
    write_transactions,
)
from billing_insight.records import InvoiceStatus, TransactionType

INVOICES = [
    {
        "id": "INV-1",
        "clientName": "ABC Corporation",
        "clientEmail": "billing@abccorp.com",
        "issueDate": "2023-06-10",
        "dueDate": "2023-07-10",
        "items": [],
        "subtotal": 1000.0,
        "taxRate": 0,
        "taxAmount": 0,
        "total": 1000.0,
        "status": "Paid",
        "paymentDate": "2023-07-05",
    },
    {
        "id": "INV-2",
        "clientName": "XYZ Ltd",
        "clientEmail": "accounts@xyzltd.com",
        "issueDate": "2023-07-01",
        "dueDate": "2023-07-31",
        "items": [],
        "subtotal": 500.0,
        "taxRate": 0,
        "taxAmount": 0,
        "total": 500.0,
        "status": "Unpaid",
        "paymentDate": None,
    },
]

TRANSACTIONS_CSV = (
    "ID,Date,Description,Category,Account,Type,Amount,Status,Reference,Notes\n"
    "TRX-001,2023-06-10,Client payment,Income,Main Account,Credit,5000.00,Completed,INV-1,\n"
    'TRX-002,2023-06-08,Office rent,Rent,Main Account,Debit,1200.00,Completed,,"June, 2023"\n'
)


def _write_invoices_json(tmp_path: Path) -> Path:
    path = tmp_path / "invoices.json"
    path.write_text(json.dumps(INVOICES), encoding="utf-8")
    return path


def test_read_invoices_from_json(tmp_path: Path) -> None:
    invoices = read_invoices(_write_invoices_json(tmp_path))

    assert [inv.id for inv in invoices] == ["INV-1", "INV-2"]
    assert invoices[1].status is InvoiceStatus.UNPAID
    assert invoices[0].payment_date == date(2023, 7, 5)


def test_read_invoices_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_invoices(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        read_invoices(bad)

    not_array = tmp_path / "object.json"
    not_array.write_text('{"id": "INV-1"}', encoding="utf-8")
    with pytest.raises(ValueError, match="expected an array"):
        read_invoices(not_array)


def test_read_transactions_csv_is_case_insensitive(tmp_path: Path) -> None:
    path = tmp_path / "transactions.csv"
    path.write_text(TRANSACTIONS_CSV, encoding="utf-8")

    transactions = read_transactions(path)

    assert len(transactions) == 2
    assert transactions[0].type is TransactionType.CREDIT
    assert transactions[0].amount == pytest.approx(5000.0)
    assert transactions[0].notes is None
    assert transactions[1].reference is None
    assert transactions[1].notes == "June, 2023"


def test_read_transactions_csv_missing_columns(tmp_path: Path) -> None:
    path = tmp_path / "transactions.csv"
    path.write_text("id,date,amount\nTRX-1,2023-01-01,10\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Missing column"):
        read_transactions(path)


def test_load_snapshot_without_paths_is_empty() -> None:
    assert load_snapshot(None, None) == ((), ())


def test_write_then_read_back(tmp_path: Path) -> None:
    invoices = read_invoices(_write_invoices_json(tmp_path))
    csv_path = tmp_path / "transactions.csv"
    csv_path.write_text(TRANSACTIONS_CSV, encoding="utf-8")
    transactions = read_transactions(csv_path)

    out_inv = tmp_path / "out" / "invoices.json"
    out_csv = tmp_path / "out" / "transactions.csv"
    out_json = tmp_path / "out" / "transactions.json"
    write_invoices(out_inv, invoices)
    write_transactions(out_csv, transactions)
    write_transactions(out_json, transactions)

    assert read_invoices(out_inv) == invoices
    assert read_transactions(out_csv) == transactions
    assert read_transactions(out_json) == transactions
    assert json.loads(out_inv.read_text(encoding="utf-8"))[0]["clientName"] == (
        "ABC Corporation"
    )


def test_frames_have_fixed_columns_and_datetime_dtypes(tmp_path: Path) -> None:
    invoices = read_invoices(_write_invoices_json(tmp_path))
    frame = invoices_to_frame(invoices)

    assert list(frame.columns) == list(INVOICE_COLUMNS)
    assert pd.api.types.is_datetime64_any_dtype(frame["issue_date"])
    assert pd.isna(frame.loc[1, "payment_date"])
    assert frame["total"].sum() == pytest.approx(1500.0)

    empty = invoices_to_frame(())
    assert empty.empty
    assert list(empty.columns) == list(INVOICE_COLUMNS)

    empty_tx = transactions_to_frame(())
    assert list(empty_tx.columns) == list(TRANSACTION_COLUMNS)
    assert pd.api.types.is_datetime64_any_dtype(empty_tx["date"])
