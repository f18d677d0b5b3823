# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Invoice aggregation engine for Billing Insight.

This module computes the headline invoice KPIs of the dashboard for a
selected time range ("all", "6m", "1y"):

1. Scalar KPIs
   -----------
   - total revenue (sum of invoice totals),
   - average invoice value (total / max(count, 1), so 0 for an empty window),
   - paid count, unpaid count (Unpaid + Overdue),
   - payment rate in percent (paid / max(count, 1) * 100),
   - average time to payment in days, over Paid invoices that carry a
     payment date (0 when there are none).

2. Distributions
   -------------
   - status histogram: the five status labels are always present,
   - per-client totals (count, value) and the top-5 clients by count and by
     value. Ties keep the order in which clients first appear.

3. Monthly views
   -------------
   - average invoice value per calendar month of issue, chronological,
     limited to the 12 most recent months (labels "MM/YY"),
   - top 3 months by revenue,
   - month-over-month revenue changes, flagged as significant above a 20 %
     swing, sorted by magnitude, and the biggest swing.

Empty inputs never raise: every ratio and average falls back to zero.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

from .io import invoices_to_frame
from .periods import (
    filter_invoices_by_range,
    month_key,
    month_start,
    parse_time_range,
    resolve_today,
)
from .records import InvoiceRecord, InvoiceStatus
from .series import ChartSeries

logger = logging.getLogger(__name__)

TOP_CLIENTS = 5
TOP_MONTHS = 3
MONTHLY_AVG_WINDOW = 12
# Month-over-month change (in percent) above which a swing is flagged.
SIGNIFICANT_CHANGE_PCT = 20.0


@dataclass(frozen=True)
class ClientTotals:
    """Invoice count and summed value for one client."""

    name: str
    count: int
    value: float


@dataclass(frozen=True)
class RevenueMonth:
    """Revenue of one calendar month. ``month`` is the full month name."""

    month: str
    total: float
    date: date


@dataclass(frozen=True)
class RevenueChange:
    """Revenue change between two consecutive months with activity."""

    month: str
    prev_month: str
    percent_change: float
    revenue: float
    prev_revenue: float
    is_significant: bool


@dataclass(frozen=True)
class InvoiceAnalytics:
    """
    Invoice KPIs for one time range.

    Attributes:
        time_range: Normalized time range ('all', '6m', '1y').
        filtered_invoices: Invoices inside the window, in input order.
        total_revenue: Sum of ``total`` over the window.
        avg_invoice_value: total_revenue / max(count, 1).
        paid_count: Number of Paid invoices.
        unpaid_count: Number of Unpaid or Overdue invoices.
        payment_rate: paid_count / max(count, 1) * 100.
        status_counts: Invoice count per status label (all five keys).
        top_clients_by_count: Up to 5 clients, most invoices first.
        top_clients_by_value: Up to 5 clients, highest billed value first.
        avg_time_to_payment: Mean days from issue to payment (Paid only).
        monthly_avg: Average invoice value per month (last 12 months).
        top_months: Up to 3 months with the highest revenue.
        revenue_changes: Month-over-month changes, biggest magnitude first.
        biggest_revenue_swing: First element of revenue_changes, if any.
    """

    time_range: str
    filtered_invoices: tuple[InvoiceRecord, ...]
    total_revenue: float
    avg_invoice_value: float
    paid_count: int
    unpaid_count: int
    payment_rate: float
    status_counts: dict[str, int]
    top_clients_by_count: tuple[ClientTotals, ...]
    top_clients_by_value: tuple[ClientTotals, ...]
    avg_time_to_payment: float
    monthly_avg: ChartSeries
    top_months: tuple[RevenueMonth, ...]
    revenue_changes: tuple[RevenueChange, ...]
    biggest_revenue_swing: Optional[RevenueChange]

    @property
    def invoice_count(self) -> int:
        return len(self.filtered_invoices)


def _client_totals(frame: pd.DataFrame) -> list[ClientTotals]:
    """Per-client (count, value), in order of first appearance."""
    if frame.empty:
        return []
    grouped = frame.groupby("client_name", sort=False)["total"].agg(["size", "sum"])
    return [
        ClientTotals(name=str(name), count=int(row["size"]), value=float(row["sum"]))
        for name, row in grouped.iterrows()
    ]


def _status_counts(frame: pd.DataFrame) -> dict[str, int]:
    counts = frame["status"].value_counts()
    return {s.value: int(counts.get(s.value, 0)) for s in InvoiceStatus}


def _avg_time_to_payment(frame: pd.DataFrame) -> float:
    paid = frame[
        (frame["status"] == InvoiceStatus.PAID.value) & frame["payment_date"].notna()
    ]
    if paid.empty:
        return 0.0
    days = (paid["payment_date"] - paid["issue_date"]).dt.days
    return float(days.mean())


def _monthly_avg_series(frame: pd.DataFrame) -> ChartSeries:
    if frame.empty:
        return ChartSeries()
    keys = frame["issue_date"].map(month_key)
    monthly = frame.groupby(keys)["total"].mean().sort_index()
    recent = monthly.tail(MONTHLY_AVG_WINDOW)
    # 'YYYY-MM' -> 'MM/YY'
    labels = tuple(f"{key[5:7]}/{key[2:4]}" for key in recent.index)
    return ChartSeries(labels=labels, values=tuple(float(v) for v in recent.values))


def _monthly_revenue(frame: pd.DataFrame, sort: bool) -> list[RevenueMonth]:
    """
    Revenue per calendar month of issue.

    With ``sort=False`` months are listed in order of first appearance,
    otherwise chronologically.
    """
    if frame.empty:
        return []
    starts = frame["issue_date"].dt.to_period("M").dt.start_time
    totals = frame.groupby(starts, sort=sort)["total"].sum()
    return [
        RevenueMonth(month=ts.strftime("%B"), total=float(total), date=month_start(ts))
        for ts, total in totals.items()
    ]


def _revenue_changes(months: list[RevenueMonth]) -> list[RevenueChange]:
    changes: list[RevenueChange] = []
    for prev, curr in zip(months, months[1:]):
        if prev.total <= 0:
            continue
        pct = (curr.total - prev.total) / prev.total * 100.0
        changes.append(
            RevenueChange(
                month=curr.month,
                prev_month=prev.month,
                percent_change=pct,
                revenue=curr.total,
                prev_revenue=prev.total,
                is_significant=abs(pct) > SIGNIFICANT_CHANGE_PCT,
            )
        )
    return sorted(changes, key=lambda c: abs(c.percent_change), reverse=True)


def compute_invoice_analytics(
    invoices: Sequence[InvoiceRecord],
    time_range: str = "all",
    today: Optional[date] = None,
) -> InvoiceAnalytics:
    """
    Compute the invoice KPIs for a time range.

    Args:
        invoices: Invoice snapshot (read-only).
        time_range: 'all', '6m' or '1y' (aliases accepted).
        today: Reference date for the window; defaults to the system date.

    Returns:
        An InvoiceAnalytics value. Empty inputs yield zero KPIs, empty lists
        and a status histogram with five zero entries.
    """
    tr = parse_time_range(time_range)
    ref = resolve_today(today)

    frame = invoices_to_frame(invoices)
    filtered = filter_invoices_by_range(frame, tr, ref)
    count = len(filtered)
    logger.debug(
        "Invoice analytics: %d/%d invoices in window %r", count, len(frame), tr
    )

    total_revenue = float(filtered["total"].sum())
    status = filtered["status"]
    paid_count = int((status == InvoiceStatus.PAID.value).sum())
    unpaid_count = int(
        status.isin([InvoiceStatus.UNPAID.value, InvoiceStatus.OVERDUE.value]).sum()
    )

    clients = _client_totals(filtered)
    # sorted() is stable, also with reverse=True: ties keep first-seen order.
    by_count = sorted(clients, key=lambda c: c.count, reverse=True)[:TOP_CLIENTS]
    by_value = sorted(clients, key=lambda c: c.value, reverse=True)[:TOP_CLIENTS]

    months_seen = _monthly_revenue(filtered, sort=False)
    top_months = sorted(months_seen, key=lambda m: m.total, reverse=True)[:TOP_MONTHS]
    changes = _revenue_changes(_monthly_revenue(filtered, sort=True))

    return InvoiceAnalytics(
        time_range=tr,
        filtered_invoices=tuple(invoices[i] for i in filtered.index),
        total_revenue=total_revenue,
        avg_invoice_value=total_revenue / max(count, 1),
        paid_count=paid_count,
        unpaid_count=unpaid_count,
        payment_rate=paid_count / max(count, 1) * 100.0,
        status_counts=_status_counts(filtered),
        top_clients_by_count=tuple(by_count),
        top_clients_by_value=tuple(by_value),
        avg_time_to_payment=_avg_time_to_payment(filtered),
        monthly_avg=_monthly_avg_series(filtered),
        top_months=tuple(top_months),
        revenue_changes=tuple(changes),
        biggest_revenue_swing=changes[0] if changes else None,
    )
