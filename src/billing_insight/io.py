# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for Billing Insight.

This module handles reading invoice and transaction snapshots from disk,
writing them back, and normalizing records into simple, consistent pandas
DataFrames suitable for aggregation by the analytics stages.

Expected input formats
----------------------

1) Invoices (JSON)
   ---------------
   A JSON array of invoice objects, as exported from the browser dashboard's
   local storage:

       [{"id": "INV-2023-001", "clientName": "ABC Corporation",
         "issueDate": "2023-06-10", "dueDate": "2023-07-10",
         "items": [...], "subtotal": 3650.0, "taxRate": 8.5,
         "taxAmount": 310.25, "total": 3960.25, "status": "Paid",
         "paymentDate": "2023-07-05", ...}, ...]

   snake_case keys are accepted as well (see records.invoice_from_dict).

2) Transactions (JSON or CSV)
   --------------------------
   Either a JSON array of transaction objects, or a CSV file with the
   columns (case-insensitive):

       id, date, description, category, account, type, amount, status

   and the optional columns ``reference`` and ``notes``.

Output schema
-------------
``invoices_to_frame`` returns a DataFrame with the columns:

    - ``id``           (str)
    - ``client_name``  (str)
    - ``issue_date``   (datetime64[ns])
    - ``due_date``     (datetime64[ns])
    - ``payment_date`` (datetime64[ns], NaT when unpaid)
    - ``status``       (str, InvoiceStatus label)
    - ``total``        (float)

``transactions_to_frame`` returns:

    - ``id``, ``date`` (datetime64[ns]), ``category``, ``account``,
      ``type`` (str, 'Credit' | 'Debit'), ``amount`` (float), ``status``

In both frames the index is the position of the record in the input
sequence, so filtered frames can be mapped back to the original records.

If a file does not match the expected structure, a clear ValueError is raised.
"""

import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from .records import (
    InvoiceRecord,
    TransactionRecord,
    invoice_from_dict,
    invoice_to_dict,
    transaction_from_dict,
    transaction_to_dict,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

INVOICE_COLUMNS: tuple[str, ...] = (
    "id",
    "client_name",
    "issue_date",
    "due_date",
    "payment_date",
    "status",
    "total",
)

TRANSACTION_COLUMNS: tuple[str, ...] = (
    "id",
    "date",
    "category",
    "account",
    "type",
    "amount",
    "status",
)

_REQUIRED_TRANSACTION_CSV = {
    "id",
    "date",
    "description",
    "category",
    "account",
    "type",
    "amount",
    "status",
}


def _read_json_array(path: Path, what: str) -> list[Any]:
    if not path.is_file():
        raise FileNotFoundError(f"{what} file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse {what} JSON file: {path}") from exc

    if not isinstance(data, list):
        raise ValueError(f"Invalid JSON root type in {path}, expected an array.")

    return data


def read_invoices(path: PathLike) -> tuple[InvoiceRecord, ...]:
    """
    Read invoices from a JSON file.

    Returns:
        A tuple of InvoiceRecord, in file order.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the JSON is invalid or a record is malformed.
    """
    p = Path(path)
    rows = _read_json_array(p, "Invoices")
    invoices = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValueError(f"Invalid invoice entry in {p}: expected an object.")
        invoices.append(invoice_from_dict(row))
    logger.info("Loaded %d invoices from %s", len(invoices), p)
    return tuple(invoices)


def read_transactions(path: PathLike) -> tuple[TransactionRecord, ...]:
    """
    Read transactions from a JSON or CSV file.

    The format is chosen from the file extension ('.csv' → CSV, anything
    else → JSON).

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file structure is invalid or a record is malformed.
    """
    p = Path(path)
    if p.suffix.lower() == ".csv":
        rows = _read_transactions_csv(p)
    else:
        rows = _read_json_array(p, "Transactions")

    transactions = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValueError(f"Invalid transaction entry in {p}: expected an object.")
        transactions.append(transaction_from_dict(row))
    logger.info("Loaded %d transactions from %s", len(transactions), p)
    return tuple(transactions)


def _read_transactions_csv(path: Path) -> list[dict[str, Any]]:
    if not path.is_file():
        raise FileNotFoundError(f"Transactions file not found: {path}")

    # Read everything as text: numeric and date parsing happens in the record
    # parsers so that errors name the offending transaction.
    df = pd.read_csv(path, dtype=str, keep_default_na=False)

    # Normalize column names to lowercase (to make the check case-insensitive)
    df.columns = [c.lower().strip() for c in df.columns]

    missing = _REQUIRED_TRANSACTION_CSV - set(df.columns)
    if missing:
        raise ValueError(
            "Invalid transactions CSV structure. Missing column(s): "
            + ", ".join(sorted(missing))
            + ". Expected: id, date, description, category, account, type, "
            "amount, status (+ optional reference, notes)."
        )

    return df.to_dict(orient="records")


def load_snapshot(
    invoices_path: Optional[PathLike], transactions_path: Optional[PathLike]
) -> tuple[tuple[InvoiceRecord, ...], tuple[TransactionRecord, ...]]:
    """
    Read both collections. A None path yields an empty collection.
    """
    invoices = read_invoices(invoices_path) if invoices_path else ()
    transactions = read_transactions(transactions_path) if transactions_path else ()
    return invoices, transactions


def write_invoices(path: PathLike, invoices: Sequence[InvoiceRecord]) -> None:
    """Write invoices as a JSON array (camelCase keys)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = [invoice_to_dict(inv) for inv in invoices]
    p.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Wrote %d invoices to %s", len(payload), p)


def write_transactions(path: PathLike, transactions: Sequence[TransactionRecord]) -> None:
    """
    Write transactions to JSON, or to CSV when the path ends with '.csv'.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = [transaction_to_dict(t) for t in transactions]

    if p.suffix.lower() == ".csv":
        columns = [
            "id",
            "date",
            "description",
            "category",
            "account",
            "type",
            "amount",
            "status",
            "reference",
            "notes",
        ]
        pd.DataFrame(payload, columns=columns).to_csv(p, index=False)
    else:
        p.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Wrote %d transactions to %s", len(payload), p)


# ---------------------------------------------------------------------------
# DataFrame normalization
# ---------------------------------------------------------------------------


def invoices_to_frame(invoices: Sequence[InvoiceRecord]) -> pd.DataFrame:
    """
    Normalize invoices into a DataFrame (see module docstring for the schema).

    An empty input yields an empty DataFrame with the same columns and dtypes.
    """
    df = pd.DataFrame(
        {
            "id": [inv.id for inv in invoices],
            "client_name": [inv.client_name for inv in invoices],
            "issue_date": pd.to_datetime([inv.issue_date for inv in invoices]),
            "due_date": pd.to_datetime([inv.due_date for inv in invoices]),
            "payment_date": pd.to_datetime([inv.payment_date for inv in invoices]),
            "status": [inv.status.value for inv in invoices],
            "total": pd.Series([inv.total for inv in invoices], dtype="float64"),
        },
        columns=list(INVOICE_COLUMNS),
    )
    return df


def transactions_to_frame(transactions: Sequence[TransactionRecord]) -> pd.DataFrame:
    """
    Normalize transactions into a DataFrame (see module docstring for the schema).
    """
    df = pd.DataFrame(
        {
            "id": [t.id for t in transactions],
            "date": pd.to_datetime([t.date for t in transactions]),
            "category": [t.category for t in transactions],
            "account": [t.account for t in transactions],
            "type": [t.type.value for t in transactions],
            "amount": pd.Series([t.amount for t in transactions], dtype="float64"),
            "status": [t.status for t in transactions],
        },
        columns=list(TRANSACTION_COLUMNS),
    )
    return df
