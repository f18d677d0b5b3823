from datetime import date
from typing import Optional

import pytest

from billing_insight.invoice_analytics import compute_invoice_analytics
from billing_insight.records import InvoiceRecord, InvoiceStatus

TODAY = date(2023, 8, 1)


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


INVOICES = (
    _invoice("A", "Acme", date(2023, 1, 10), 1000.0, InvoiceStatus.PAID, date(2023, 1, 20)),
    _invoice("B", "Beta", date(2023, 3, 5), 500.0, InvoiceStatus.UNPAID),
    _invoice("C", "Acme", date(2023, 3, 20), 1500.0, InvoiceStatus.PAID, date(2023, 4, 9)),
    _invoice("D", "Gamma", date(2023, 6, 1), 200.0, InvoiceStatus.OVERDUE),
    _invoice("E", "Beta", date(2023, 7, 15), 800.0, InvoiceStatus.CANCELLED),
)


def test_scalar_kpis_all_time() -> None:
    a = compute_invoice_analytics(INVOICES, "all", TODAY)

    assert a.invoice_count == 5
    assert a.total_revenue == pytest.approx(4000.0)
    assert a.avg_invoice_value == pytest.approx(800.0)
    assert a.paid_count == 2
    # Unpaid + Overdue; Cancelled is neither paid nor unpaid.
    assert a.unpaid_count == 2
    assert a.payment_rate == pytest.approx(40.0)
    assert a.avg_time_to_payment == pytest.approx(15.0)


def test_status_counts_cover_every_status() -> None:
    a = compute_invoice_analytics(INVOICES, "all", TODAY)

    assert a.status_counts == {
        "Paid": 2,
        "Unpaid": 1,
        "Partially Paid": 0,
        "Overdue": 1,
        "Cancelled": 1,
    }
    assert sum(a.status_counts.values()) == len(a.filtered_invoices)


def test_six_month_window_excludes_older_invoices() -> None:
    a = compute_invoice_analytics(INVOICES, "6m", TODAY)

    assert [inv.id for inv in a.filtered_invoices] == ["B", "C", "D", "E"]
    assert a.total_revenue == pytest.approx(3000.0)
    assert a.time_range == "6m"
    assert sum(a.status_counts.values()) == 4

    assert compute_invoice_analytics(INVOICES, "last-year", TODAY).invoice_count == 5


def test_top_clients_rankings_are_stable() -> None:
    a = compute_invoice_analytics(INVOICES, "all", TODAY)

    # Acme and Beta both have 2 invoices: first-seen order wins.
    assert [(c.name, c.count) for c in a.top_clients_by_count] == [
        ("Acme", 2),
        ("Beta", 2),
        ("Gamma", 1),
    ]
    assert [c.name for c in a.top_clients_by_value] == ["Acme", "Beta", "Gamma"]
    assert a.top_clients_by_value[0].value == pytest.approx(2500.0)


def test_top_clients_limited_to_five() -> None:
    invoices = [
        _invoice(f"I{i}", f"Client {i}", date(2023, 7, 1), 100.0 * i, InvoiceStatus.UNPAID)
        for i in range(1, 8)
    ]
    a = compute_invoice_analytics(invoices, "all", TODAY)

    assert len(a.top_clients_by_value) == 5
    values = [c.value for c in a.top_clients_by_value]
    assert values == sorted(values, reverse=True)
    assert a.top_clients_by_value[0].name == "Client 7"
    assert len(a.top_clients_by_count) == 5


def test_monthly_views() -> None:
    a = compute_invoice_analytics(INVOICES, "all", TODAY)

    assert a.monthly_avg.labels == ("01/23", "03/23", "06/23", "07/23")
    assert a.monthly_avg.values == pytest.approx((1000.0, 1000.0, 200.0, 800.0))

    assert [(m.month, m.total) for m in a.top_months] == [
        ("March", 2000.0),
        ("January", 1000.0),
        ("July", 800.0),
    ]
    assert a.top_months[0].date == date(2023, 3, 1)


def test_monthly_avg_is_the_mean_of_each_month() -> None:
    invoices = [
        _invoice("J1", "Acme", date(2023, 7, 3), 10.0, InvoiceStatus.UNPAID),
        _invoice("J2", "Beta", date(2023, 7, 12), 20.0, InvoiceStatus.UNPAID),
        _invoice("J3", "Acme", date(2023, 7, 28), 60.0, InvoiceStatus.UNPAID),
    ]
    a = compute_invoice_analytics(invoices, "all", TODAY)

    assert a.monthly_avg.labels == ("07/23",)
    assert a.monthly_avg.values == pytest.approx((30.0,))


def test_monthly_avg_keeps_the_last_twelve_months() -> None:
    invoices = [
        _invoice(
            f"M{i}",
            "Acme",
            date(2022 + i // 12, i % 12 + 1, 15),
            100.0 * (i + 1),
            InvoiceStatus.PAID,
            date(2022 + i // 12, i % 12 + 1, 20),
        )
        for i in range(19)
    ]
    # Out of chronological order on input.
    invoices.reverse()
    a = compute_invoice_analytics(invoices, "all", TODAY)

    assert len(a.monthly_avg) == 12
    assert a.monthly_avg.labels[0] == "08/22"
    assert a.monthly_avg.labels[-1] == "07/23"
    assert a.monthly_avg.values[0] == pytest.approx(800.0)
    assert a.monthly_avg.values[-1] == pytest.approx(1900.0)


def test_revenue_changes_sorted_by_magnitude() -> None:
    a = compute_invoice_analytics(INVOICES, "all", TODAY)

    pcts = [round(c.percent_change, 2) for c in a.revenue_changes]
    assert pcts == [300.0, 100.0, -90.0]
    assert all(c.is_significant for c in a.revenue_changes)

    swing = a.biggest_revenue_swing
    assert swing is not None
    assert (swing.prev_month, swing.month) == ("June", "July")
    assert swing.prev_revenue == pytest.approx(200.0)


def test_small_changes_are_not_significant() -> None:
    invoices = [
        _invoice("X1", "Acme", date(2023, 5, 1), 1000.0, InvoiceStatus.PAID, date(2023, 5, 5)),
        _invoice("X2", "Acme", date(2023, 6, 1), 1100.0, InvoiceStatus.PAID, date(2023, 6, 5)),
    ]
    a = compute_invoice_analytics(invoices, "all", TODAY)

    assert len(a.revenue_changes) == 1
    assert a.revenue_changes[0].percent_change == pytest.approx(10.0)
    assert not a.revenue_changes[0].is_significant


def test_empty_input_gives_zero_kpis() -> None:
    a = compute_invoice_analytics((), "all", TODAY)

    assert a.invoice_count == 0
    assert a.total_revenue == 0
    assert a.avg_invoice_value == 0
    assert a.payment_rate == 0
    assert a.avg_time_to_payment == 0
    assert set(a.status_counts.values()) == {0}
    assert a.top_clients_by_count == ()
    assert len(a.monthly_avg) == 0
    assert a.top_months == ()
    assert a.biggest_revenue_swing is None


def test_unknown_time_range_raises() -> None:
    with pytest.raises(ValueError):
        compute_invoice_analytics(INVOICES, "forever", TODAY)
