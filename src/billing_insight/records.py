# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Record types for Billing Insight.

This module defines the typed records that every analytics stage consumes:

- ``InvoiceRecord`` (with its ``LineItem`` rows),
- ``TransactionRecord``,
- the ``InvoiceStatus`` and ``TransactionType`` enumerations,
- the suggested income / expense category vocabularies.

Records are validated once, when they enter the application (JSON/CSV files,
CLI input). The ``*_from_dict`` parsers accept both the camelCase shape used by
the browser dashboard's local storage (``clientName``, ``issueDate`` ...) and
plain snake_case field names. Any malformed value raises a ``ValueError``
naming the record and the offending field, so analytics code never has to
re-check record shapes or deal with unparseable dates.

Monetary amounts are kept as floats. Rounding only happens at render time
(see views.py).
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status. Values are the display labels."""

    PAID = "Paid"
    UNPAID = "Unpaid"
    PARTIALLY_PAID = "Partially Paid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


class TransactionType(str, Enum):
    """Direction of a cash movement: Credit = money in, Debit = money out."""

    CREDIT = "Credit"
    DEBIT = "Debit"


# Statuses that count as "money still owed" across the dashboard.
OUTSTANDING_STATUSES: frozenset[InvoiceStatus] = frozenset(
    {InvoiceStatus.UNPAID, InvoiceStatus.OVERDUE}
)

INCOME_CATEGORIES: tuple[str, ...] = (
    "Sales Revenue",
    "Consulting Services",
    "Subscription Fees",
    "Project Income",
    "Refunds",
    "Interest Income",
    "Other Income",
)

EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Office Rent",
    "Utilities",
    "Salaries & Payroll",
    "Software & Subscriptions",
    "Marketing & Advertising",
    "Travel & Transportation",
    "Office Supplies",
    "Professional Services",
    "Insurance",
    "Equipment & Maintenance",
    "Taxes",
    "Meals & Entertainment",
    "Training & Education",
    "Miscellaneous",
)


@dataclass(frozen=True)
class LineItem:
    """One billed line of an invoice. ``amount`` is quantity * unit_price."""

    description: str
    quantity: float
    unit_price: float
    amount: float


@dataclass(frozen=True)
class InvoiceRecord:
    """
    An invoice as held by the external store.

    Attributes:
        id: Invoice identifier (e.g. 'INV-2023-001').
        client_name: Client display name, used as the grouping key.
        client_email: Billing e-mail address.
        client_address: Optional postal address.
        issue_date: Date the invoice was issued.
        due_date: Payment due date.
        items: Ordered line items.
        subtotal: Sum of the line item amounts.
        tax_rate: Tax rate in percent (8.5 means 8.5 %).
        tax_amount: Tax applied on the subtotal.
        total: subtotal + tax_amount.
        notes: Free-text notes.
        status: Current InvoiceStatus.
        payment_date: Date the payment was received, if any.
        created_at: Creation timestamp, if known.
        updated_at: Last update timestamp, if known.
    """

    id: str
    client_name: str
    client_email: str
    issue_date: date
    due_date: date
    items: tuple[LineItem, ...]
    subtotal: float
    tax_rate: float
    tax_amount: float
    total: float
    status: InvoiceStatus
    payment_date: Optional[date] = None
    client_address: Optional[str] = None
    notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_outstanding(self) -> bool:
        return self.status in OUTSTANDING_STATUSES


@dataclass(frozen=True)
class TransactionRecord:
    """
    A bank/cash transaction as held by the external store.

    Attributes:
        id: Transaction identifier (e.g. 'TRX-001').
        date: Value date.
        description: Free-text label.
        category: Category label, usually one of INCOME_CATEGORIES or
            EXPENSE_CATEGORIES (not enforced).
        account: Account name (free text).
        type: Credit (income) or Debit (expense).
        amount: Non-negative amount; the direction is given by ``type``.
        status: Free-text status ('Completed', 'Pending', ...).
        reference: Optional external reference (invoice number, ...).
        notes: Optional notes.
        created_at: Creation timestamp, if known.
        updated_at: Last update timestamp, if known.
    """

    id: str
    date: date
    description: str
    category: str
    account: str
    type: TransactionType
    amount: float
    status: str = "Completed"
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def new_line_item(description: str, quantity: float, unit_price: float) -> LineItem:
    """Build a LineItem, computing its amount."""
    return LineItem(
        description=description,
        quantity=float(quantity),
        unit_price=float(unit_price),
        amount=float(quantity) * float(unit_price),
    )


def new_invoice(
    *,
    invoice_id: str,
    client_name: str,
    client_email: str,
    issue_date: date,
    due_date: date,
    items: list[LineItem],
    tax_rate: float,
    status: InvoiceStatus = InvoiceStatus.UNPAID,
    payment_date: Optional[date] = None,
    client_address: Optional[str] = None,
    notes: str = "",
    created_at: Optional[datetime] = None,
) -> InvoiceRecord:
    """
    Build an InvoiceRecord and compute its totals.

    subtotal = sum(item.amount), tax_amount = subtotal * tax_rate / 100
    (rounded to the cent), total = subtotal + tax_amount. The amounts are
    computed here only; records built elsewhere are trusted as-is.
    """
    subtotal = sum(item.amount for item in items)
    tax_amount = round(subtotal * float(tax_rate) / 100.0, 2)
    return InvoiceRecord(
        id=invoice_id,
        client_name=client_name,
        client_email=client_email,
        client_address=client_address,
        issue_date=issue_date,
        due_date=due_date,
        items=tuple(items),
        subtotal=subtotal,
        tax_rate=float(tax_rate),
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        notes=notes,
        status=status,
        payment_date=payment_date,
        created_at=created_at,
        updated_at=created_at,
    )


def with_payment(invoice: InvoiceRecord, payment_date: date) -> InvoiceRecord:
    """Return a copy of the invoice marked as Paid on ``payment_date``."""
    return replace(invoice, status=InvoiceStatus.PAID, payment_date=payment_date)


# ---------------------------------------------------------------------------
# Boundary parsing
# ---------------------------------------------------------------------------


def parse_status(value: Any) -> InvoiceStatus:
    """
    Parse an invoice status label (case-insensitive, '_' or ' ' separators).

    Raises:
        ValueError: if the label is not one of the five known statuses.
    """
    if isinstance(value, InvoiceStatus):
        return value
    norm = str(value).strip().lower().replace("_", " ")
    for status in InvoiceStatus:
        if status.value.lower() == norm:
            return status
    raise ValueError(f"Unknown invoice status: {value!r}")


def parse_transaction_type(value: Any) -> TransactionType:
    """
    Parse a transaction type ('credit' / 'debit', case-insensitive).

    Raises:
        ValueError: if the value is neither Credit nor Debit.
    """
    if isinstance(value, TransactionType):
        return value
    norm = str(value).strip().lower()
    for ttype in TransactionType:
        if ttype.value.lower() == norm:
            return ttype
    raise ValueError(f"Unknown transaction type: {value!r}")


def parse_date(value: Any) -> date:
    """
    Parse an ISO date ('YYYY-MM-DD') or the date part of an ISO timestamp.

    Raises:
        ValueError: if the value cannot be interpreted as a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value!r}, expected YYYY-MM-DD.") from exc


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp: {value!r}") from exc


def _field(data: Mapping[str, Any], camel: str, snake: str, default: Any = ...) -> Any:
    """Read a field under its camelCase or snake_case name."""
    if camel in data:
        return data[camel]
    if snake in data:
        return data[snake]
    if default is ...:
        raise KeyError(camel)
    return default


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def line_item_from_dict(data: Mapping[str, Any]) -> LineItem:
    quantity = float(data.get("quantity", 0))
    unit_price = float(_field(data, "unitPrice", "unit_price", 0))
    amount = data.get("amount")
    return LineItem(
        description=str(data.get("description", "")),
        quantity=quantity,
        unit_price=unit_price,
        amount=float(amount) if amount is not None else quantity * unit_price,
    )


def invoice_from_dict(data: Mapping[str, Any]) -> InvoiceRecord:
    """
    Build an InvoiceRecord from a JSON-like mapping.

    Both camelCase keys (as stored by the browser dashboard) and snake_case
    keys are accepted. Totals are taken as given; they are not recomputed.

    Raises:
        ValueError: if a required field is missing or a value is malformed.
    """
    record_id = str(data.get("id", "<unknown>"))
    try:
        payment_raw = _field(data, "paymentDate", "payment_date", None)
        return InvoiceRecord(
            id=str(data["id"]),
            client_name=str(_field(data, "clientName", "client_name")),
            client_email=str(_field(data, "clientEmail", "client_email", "")),
            client_address=_optional_str(
                _field(data, "clientAddress", "client_address", None)
            ),
            issue_date=parse_date(_field(data, "issueDate", "issue_date")),
            due_date=parse_date(_field(data, "dueDate", "due_date")),
            items=tuple(line_item_from_dict(i) for i in data.get("items") or []),
            subtotal=float(data.get("subtotal", 0.0)),
            tax_rate=float(_field(data, "taxRate", "tax_rate", 0.0)),
            tax_amount=float(_field(data, "taxAmount", "tax_amount", 0.0)),
            total=float(data["total"]),
            notes=str(data.get("notes") or ""),
            status=parse_status(data["status"]),
            payment_date=parse_date(payment_raw) if payment_raw else None,
            created_at=_parse_timestamp(_field(data, "createdAt", "created_at", None)),
            updated_at=_parse_timestamp(_field(data, "updatedAt", "updated_at", None)),
        )
    except KeyError as exc:
        raise ValueError(
            f"Invoice {record_id}: missing required field {exc.args[0]!r}."
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invoice {record_id}: {exc}") from exc


def transaction_from_dict(data: Mapping[str, Any]) -> TransactionRecord:
    """
    Build a TransactionRecord from a JSON-like mapping or CSV row.

    Raises:
        ValueError: if a required field is missing, a value is malformed or
            the amount is negative.
    """
    record_id = str(data.get("id", "<unknown>"))
    try:
        amount = float(data["amount"])
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        return TransactionRecord(
            id=str(data["id"]),
            date=parse_date(data["date"]),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or ""),
            account=str(data.get("account") or ""),
            type=parse_transaction_type(data["type"]),
            amount=amount,
            status=str(data.get("status") or "Completed"),
            reference=_optional_str(data.get("reference")),
            notes=_optional_str(data.get("notes")),
            created_at=_parse_timestamp(_field(data, "createdAt", "created_at", None)),
            updated_at=_parse_timestamp(_field(data, "updatedAt", "updated_at", None)),
        )
    except KeyError as exc:
        raise ValueError(
            f"Transaction {record_id}: missing required field {exc.args[0]!r}."
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Transaction {record_id}: {exc}") from exc


def _iso_or_none(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def invoice_to_dict(invoice: InvoiceRecord) -> dict[str, Any]:
    """Serialize an invoice to the camelCase JSON shape."""
    return {
        "id": invoice.id,
        "clientName": invoice.client_name,
        "clientEmail": invoice.client_email,
        "clientAddress": invoice.client_address,
        "issueDate": invoice.issue_date.isoformat(),
        "dueDate": invoice.due_date.isoformat(),
        "items": [
            {
                "description": item.description,
                "quantity": item.quantity,
                "unitPrice": item.unit_price,
                "amount": item.amount,
            }
            for item in invoice.items
        ],
        "subtotal": invoice.subtotal,
        "taxRate": invoice.tax_rate,
        "taxAmount": invoice.tax_amount,
        "total": invoice.total,
        "notes": invoice.notes,
        "status": invoice.status.value,
        "paymentDate": _iso_or_none(invoice.payment_date),
        "createdAt": _iso_or_none(invoice.created_at),
        "updatedAt": _iso_or_none(invoice.updated_at),
    }


def transaction_to_dict(transaction: TransactionRecord) -> dict[str, Any]:
    """Serialize a transaction to the camelCase JSON shape."""
    return {
        "id": transaction.id,
        "date": transaction.date.isoformat(),
        "description": transaction.description,
        "category": transaction.category,
        "account": transaction.account,
        "type": transaction.type.value,
        "amount": transaction.amount,
        "status": transaction.status,
        "reference": transaction.reference,
        "notes": transaction.notes,
        "createdAt": _iso_or_none(transaction.created_at),
        "updatedAt": _iso_or_none(transaction.updated_at),
    }
