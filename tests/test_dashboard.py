from datetime import date
from typing import Optional

import pytest

from billing_insight.dashboard import compute_dashboard
from billing_insight.records import (
    InvoiceRecord,
    InvoiceStatus,
    TransactionRecord,
    TransactionType,
)
from billing_insight.store import Snapshot

TODAY = date(2023, 8, 15)


def _invoice(
    invoice_id: str,
    client: str,
    issue: date,
    total: float,
    status: InvoiceStatus,
    paid_on: Optional[date] = None,
) -> InvoiceRecord:
    return InvoiceRecord(
        id=invoice_id,
        client_name=client,
        client_email="",
        issue_date=issue,
        due_date=date.fromordinal(issue.toordinal() + 30),
        items=(),
        subtotal=total,
        tax_rate=0.0,
        tax_amount=0.0,
        total=total,
        status=status,
        payment_date=paid_on,
    )


SNAPSHOT = Snapshot(
    invoices=(
        _invoice("I0", "Acme", date(2022, 11, 1), 700.0, InvoiceStatus.PAID, date(2023, 1, 15)),
        _invoice("I1", "Acme", date(2023, 4, 1), 1000.0, InvoiceStatus.PAID, date(2023, 4, 20)),
        _invoice("I2", "Beta", date(2023, 5, 1), 2000.0, InvoiceStatus.UNPAID),
        _invoice("I3", "Acme", date(2023, 6, 1), 3000.0, InvoiceStatus.PAID, date(2023, 6, 10)),
        _invoice("I4", "Beta", date(2023, 7, 1), 4000.0, InvoiceStatus.OVERDUE),
    ),
    transactions=(
        TransactionRecord(
            id="T1",
            date=date(2023, 6, 5),
            description="Rent",
            category="Rent",
            account="Main",
            type=TransactionType.DEBIT,
            amount=1200.0,
        ),
        TransactionRecord(
            id="T2",
            date=date(2023, 6, 10),
            description="Payment",
            category="Sales",
            account="Main",
            type=TransactionType.CREDIT,
            amount=3000.0,
        ),
    ),
)


def test_dashboard_uses_one_reference_date() -> None:
    dash = compute_dashboard(SNAPSHOT, time_range="6m", today=TODAY)

    assert dash.today == TODAY
    assert dash.time_range == "6m"
    assert dash.breakdown.year == 2023
    assert dash.breakdown.timeframe == "monthly"


def test_time_range_only_narrows_invoice_kpis() -> None:
    dash = compute_dashboard(SNAPSHOT, time_range="6m", today=TODAY)

    # The November 2022 invoice is outside the window...
    assert [inv.id for inv in dash.invoices.filtered_invoices] == ["I1", "I2", "I3", "I4"]
    # ...but still part of the client history and the financial summary.
    assert dash.clients.client_behavior["Acme"].invoice_count == 3
    assert dash.summary.invoice_count == 5


def test_forecast_and_subscription_are_consistent() -> None:
    dash = compute_dashboard(SNAPSHOT, today=TODAY)

    assert dash.forecast.has_forecast
    assert len(dash.forecast.forecasts) == 3
    assert dash.subscription.has_data
    assert dash.subscription.estimated_arr == pytest.approx(
        dash.subscription.estimated_mrr * 12
    )
    assert dash.clients.client_count == 2


def test_breakdown_year_and_timeframe_overrides() -> None:
    dash = compute_dashboard(SNAPSHOT, today=TODAY, year=2022, timeframe="quarterly")

    assert dash.breakdown.year == 2022
    assert dash.breakdown.revenue == pytest.approx((0.0, 0.0, 0.0, 700.0))


def test_empty_snapshot() -> None:
    dash = compute_dashboard(Snapshot(), today=TODAY)

    assert dash.invoices.invoice_count == 0
    assert dash.clients.client_count == 0
    assert dash.forecast.has_forecast is False
    assert dash.subscription.estimated_mrr == 0
    assert dash.summary.net_cash_flow == 0


def test_invalid_options_raise() -> None:
    with pytest.raises(ValueError):
        compute_dashboard(SNAPSHOT, time_range="2y", today=TODAY)
    with pytest.raises(ValueError):
        compute_dashboard(SNAPSHOT, today=TODAY, timeframe="weekly")
