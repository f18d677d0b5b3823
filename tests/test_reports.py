from datetime import date

import pytest

from billing_insight.records import (
    InvoiceRecord,
    InvoiceStatus,
    TransactionRecord,
    TransactionType,
)
from billing_insight.reports import (
    available_years,
    compute_financial_summary,
    compute_period_breakdown,
    expense_categories,
    status_amounts,
)


def _invoice(invoice_id: str, issue: date, total: float, status: InvoiceStatus) -> InvoiceRecord:
    return InvoiceRecord(
        id=invoice_id,
        client_name="Acme",
        client_email="",
        issue_date=issue,
        due_date=issue,
        items=(),
        subtotal=total,
        tax_rate=0.0,
        tax_amount=0.0,
        total=total,
        status=status,
    )


def _tx(tx_id: str, when: date, amount: float, ttype: TransactionType, category: str) -> TransactionRecord:
    return TransactionRecord(
        id=tx_id,
        date=when,
        description="",
        category=category,
        account="Main",
        type=ttype,
        amount=amount,
    )


INVOICES = (
    _invoice("I1", date(2023, 1, 15), 1000.0, InvoiceStatus.PAID),
    _invoice("I2", date(2023, 2, 10), 500.0, InvoiceStatus.UNPAID),
    _invoice("I3", date(2023, 5, 3), 200.0, InvoiceStatus.OVERDUE),
    _invoice("I4", date(2023, 11, 20), 300.0, InvoiceStatus.PARTIALLY_PAID),
    _invoice("I5", date(2022, 12, 31), 9999.0, InvoiceStatus.PAID),
)

TRANSACTIONS = (
    _tx("T1", date(2023, 1, 20), 2000.0, TransactionType.CREDIT, "Sales"),
    _tx("T2", date(2023, 1, 25), 500.0, TransactionType.DEBIT, "Rent"),
    _tx("T3", date(2023, 4, 2), 300.0, TransactionType.DEBIT, "Utilities"),
    _tx("T4", date(2023, 4, 30), 300.0, TransactionType.DEBIT, "Software"),
    _tx("T5", date(2023, 6, 1), 500.0, TransactionType.DEBIT, "Rent"),
)


def test_financial_summary() -> None:
    summary = compute_financial_summary(INVOICES[:4], TRANSACTIONS[:3])

    assert summary.total_revenue == pytest.approx(2000.0)
    assert summary.total_paid == pytest.approx(1000.0)
    assert summary.total_unpaid == pytest.approx(700.0)
    assert summary.invoice_count == 4
    assert summary.paid_count == 1
    assert summary.unpaid_count == 2
    assert summary.avg_invoice_value == pytest.approx(500.0)
    assert summary.total_income == pytest.approx(2000.0)
    assert summary.total_expenses == pytest.approx(800.0)
    assert summary.net_cash_flow == pytest.approx(
        summary.total_income - summary.total_expenses
    )
    assert summary.profit_margin == pytest.approx(60.0)


def test_financial_summary_empty() -> None:
    summary = compute_financial_summary((), ())

    assert summary.total_revenue == 0
    assert summary.avg_invoice_value == 0
    assert summary.profit_margin == 0


def test_monthly_breakdown() -> None:
    b = compute_period_breakdown(INVOICES, TRANSACTIONS, 2023, "monthly")

    assert b.labels[0] == "Jan"
    assert len(b.labels) == 12
    assert b.revenue[0] == pytest.approx(1000.0)
    assert b.paid[0] == pytest.approx(1000.0)
    assert b.unpaid[1] == pytest.approx(500.0)
    assert b.unpaid[4] == pytest.approx(200.0)
    # Partially Paid counts towards revenue only.
    assert b.revenue[10] == pytest.approx(300.0)
    assert b.paid[10] == 0 and b.unpaid[10] == 0
    # The 2022 invoice is excluded.
    assert sum(b.revenue) == pytest.approx(2000.0)

    assert b.income[0] == pytest.approx(2000.0)
    assert b.expense[3] == pytest.approx(600.0)
    assert b.cash_flow == tuple(i - e for i, e in zip(b.income, b.expense))
    assert b.cash_flow[0] == pytest.approx(1500.0)


def test_quarterly_breakdown() -> None:
    b = compute_period_breakdown(INVOICES, TRANSACTIONS, 2023, "quarterly")

    assert b.labels == ("Q1", "Q2", "Q3", "Q4")
    assert b.revenue == pytest.approx((1500.0, 200.0, 0.0, 300.0))
    assert b.expense == pytest.approx((500.0, 1100.0, 0.0, 0.0))


def test_breakdown_rejects_unknown_timeframe() -> None:
    with pytest.raises(ValueError, match="timeframe"):
        compute_period_breakdown(INVOICES, TRANSACTIONS, 2023, "weekly")


def test_status_amounts_has_every_status() -> None:
    amounts = status_amounts(INVOICES)

    assert list(amounts) == ["Paid", "Unpaid", "Partially Paid", "Overdue", "Cancelled"]
    assert amounts["Paid"] == pytest.approx(10999.0)
    assert amounts["Cancelled"] == 0


def test_expense_categories_descending_with_stable_ties() -> None:
    assert expense_categories(TRANSACTIONS) == [
        ("Rent", 1000.0),
        ("Utilities", 300.0),
        ("Software", 300.0),
    ]
    assert expense_categories(()) == []


def test_available_years() -> None:
    assert available_years(INVOICES, TRANSACTIONS) == [2022, 2023]
