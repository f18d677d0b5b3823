# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Presentation helpers for Billing Insight.

This module turns analytics results into things a rendering layer can use
directly:

1. Chart series
   ------------
   Chart-library-agnostic ``ChartSeries`` / ``MultiSeries`` values (label
   tuples + numeric tuples) for the status distribution, top clients, the
   revenue forecast, the yearly breakdown and expense categories.

2. Tables
   ------
   pandas DataFrames with a stable column order, used by the CLI for console
   tables and CSV exports. Numbers are rounded here, and only here, to the
   requested number of decimals.

3. Display strings
   ---------------
   ``format_currency`` and ``format_date`` follow the user's preferences
   (currency code, date format template).
"""

import math
from collections.abc import Sequence
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

from .client_analytics import ChurnRiskClient, LatePaymentClient, ValuableClient
from .forecast import RevenueForecast, SubscriptionMetrics
from .invoice_analytics import ClientTotals, InvoiceAnalytics, RevenueChange
from .records import InvoiceRecord, TransactionRecord
from .reports import FinancialSummary, PeriodBreakdown
from .series import ChartSeries, MultiSeries

DATE_FORMATS: tuple[str, ...] = ("MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD")
DEFAULT_DATE_FORMAT = "MM/DD/YYYY"

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CAD": "CA$",
    "AUD": "A$",
}

# Currencies displayed without minor units.
_ZERO_DECIMAL_CURRENCIES = {"JPY"}


# ---------------------------------------------------------------------------
# Display strings
# ---------------------------------------------------------------------------


def format_currency(amount: float, currency: str = "USD") -> str:
    """
    Format an amount for display, en-US style.

    Known currency codes use their symbol ('$1,234.50', '€1,234.50'); other
    codes are used as a prefix ('CHF 1,234.50'). Negative amounts get a
    leading minus sign ('-$12.00').
    """
    code = currency.upper()
    decimals = 0 if code in _ZERO_DECIMAL_CURRENCIES else 2
    body = f"{abs(amount):,.{decimals}f}"
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = "-" if amount < 0 and round(abs(amount), decimals) != 0 else ""
    return f"{sign}{symbol}{body}"


def format_date(
    value: Union[date, datetime, str, None], date_format: str = DEFAULT_DATE_FORMAT
) -> str:
    """
    Format a date following a template: 'MM/DD/YYYY', 'DD/MM/YYYY' or
    'YYYY-MM-DD'. Unknown templates fall back to 'MM/DD/YYYY'.

    Strings are parsed as ISO dates; values that cannot be parsed are
    rendered as 'Invalid date'.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value.strip()[:10])
        except ValueError:
            return "Invalid date"

    day = f"{value.day:02d}"
    month = f"{value.month:02d}"
    year = f"{value.year:04d}"

    if date_format == "DD/MM/YYYY":
        return f"{day}/{month}/{year}"
    if date_format == "YYYY-MM-DD":
        return f"{year}-{month}-{day}"
    return f"{month}/{day}/{year}"


# ---------------------------------------------------------------------------
# Chart series
# ---------------------------------------------------------------------------


def status_distribution_series(analytics: InvoiceAnalytics) -> ChartSeries:
    """Invoice count per status, in the canonical status order."""
    labels = tuple(analytics.status_counts)
    return ChartSeries(
        labels=labels,
        values=tuple(float(analytics.status_counts[k]) for k in labels),
    )


def top_clients_series(clients: Sequence[ClientTotals], by: str = "value") -> ChartSeries:
    """
    Series of client names with either their invoice count or billed value.

    Raises:
        ValueError: if ``by`` is not 'count' or 'value'.
    """
    if by not in {"count", "value"}:
        raise ValueError(f"Unknown ranking key: {by!r}. Expected 'count' or 'value'.")
    return ChartSeries(
        labels=tuple(c.name for c in clients),
        values=tuple(float(getattr(c, by)) for c in clients),
    )


def forecast_series(forecast: RevenueForecast) -> MultiSeries:
    """
    Historical and projected revenue on a shared month axis.

    The 'Forecast' dataset starts at the last historical month so that the
    two lines connect; every other position is None.
    """
    hist = forecast.historical
    proj = forecast.forecasts
    labels = tuple(p.month for p in hist) + tuple(p.month for p in proj)

    historical: list[Optional[float]] = [p.revenue for p in hist] + [None] * len(proj)
    projected: list[Optional[float]] = [None] * len(labels)
    if proj:
        if hist:
            projected[len(hist) - 1] = hist[-1].revenue
        for i, p in enumerate(proj):
            projected[len(hist) + i] = p.revenue

    return MultiSeries(
        labels=labels,
        datasets={"Historical": tuple(historical), "Forecast": tuple(projected)},
    )


def breakdown_series(breakdown: PeriodBreakdown) -> MultiSeries:
    """Revenue / paid / unpaid / income / expense / cash flow per bucket."""
    return MultiSeries(
        labels=breakdown.labels,
        datasets={
            "Revenue": breakdown.revenue,
            "Paid": breakdown.paid,
            "Unpaid": breakdown.unpaid,
            "Income": breakdown.income,
            "Expenses": breakdown.expense,
            "Cash flow": breakdown.cash_flow,
        },
    )


def expense_categories_series(categories: Sequence[tuple[str, float]]) -> ChartSeries:
    return ChartSeries(
        labels=tuple(name for name, _ in categories),
        values=tuple(amount for _, amount in categories),
    )


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def _round(value: Optional[float], decimals: int) -> float:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return float("nan")
    return round(float(value), decimals)


def kpis_to_dataframe(analytics: InvoiceAnalytics, decimals: int) -> pd.DataFrame:
    """
    Headline invoice KPIs as a two-column table (metric, value) plus unit.
    """
    rows = [
        ("invoice_count", "Invoices", analytics.invoice_count, "count"),
        ("total_revenue", "Total revenue", analytics.total_revenue, "amount"),
        ("avg_invoice_value", "Average invoice", analytics.avg_invoice_value, "amount"),
        ("paid_count", "Paid invoices", analytics.paid_count, "count"),
        ("unpaid_count", "Unpaid / overdue invoices", analytics.unpaid_count, "count"),
        ("payment_rate", "Payment rate", analytics.payment_rate, "percent"),
        (
            "avg_time_to_payment",
            "Average time to payment",
            analytics.avg_time_to_payment,
            "days",
        ),
    ]
    for status, count in analytics.status_counts.items():
        rows.append((f"status_{status.lower().replace(' ', '_')}", status, count, "count"))

    return pd.DataFrame(
        [
            {"key": key, "label": label, "value": _round(value, decimals), "unit": unit}
            for key, label, value, unit in rows
        ],
        columns=["key", "label", "value", "unit"],
    )


def client_totals_to_dataframe(
    clients: Sequence[ClientTotals], decimals: int
) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"client": c.name, "invoices": c.count, "value": _round(c.value, decimals)}
            for c in clients
        ],
        columns=["client", "invoices", "value"],
    )


def revenue_changes_to_dataframe(
    changes: Sequence[RevenueChange], decimals: int
) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "month": c.month,
                "prev_month": c.prev_month,
                "revenue": _round(c.revenue, decimals),
                "prev_revenue": _round(c.prev_revenue, decimals),
                "percent_change": _round(c.percent_change, decimals),
                "significant": c.is_significant,
            }
            for c in changes
        ],
        columns=[
            "month",
            "prev_month",
            "revenue",
            "prev_revenue",
            "percent_change",
            "significant",
        ],
    )


def late_payers_to_dataframe(
    clients: Sequence[LatePaymentClient], decimals: int
) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "client": c.name,
                "late_payments": c.late_payments,
                "invoices": c.invoice_count,
                "late_rate": _round(c.late_rate, decimals),
                "avg_payment_days": _round(c.avg_payment_time, decimals),
                "late_streak": c.consecutive_late_payments,
                "active": c.is_active,
            }
            for c in clients
        ],
        columns=[
            "client",
            "late_payments",
            "invoices",
            "late_rate",
            "avg_payment_days",
            "late_streak",
            "active",
        ],
    )


def churn_risk_to_dataframe(
    clients: Sequence[ChurnRiskClient], decimals: int
) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "client": c.name,
                "risk_score": c.risk_score,
                "late_streak": c.has_consecutive_late_payments,
                "slow_payer": c.has_slow_payments,
                "unpaid_invoices": c.has_unpaid_invoices,
                "total_spent": _round(c.total_spent, decimals),
            }
            for c in clients
        ],
        columns=[
            "client",
            "risk_score",
            "late_streak",
            "slow_payer",
            "unpaid_invoices",
            "total_spent",
        ],
    )


def valuable_clients_to_dataframe(
    clients: Sequence[ValuableClient], decimals: int
) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "client": c.name,
                "value_score": _round(c.value_score, decimals),
                "total_spent": _round(c.total_spent, decimals),
                "avg_invoice": _round(c.avg_invoice_value, decimals),
                "invoices": c.invoice_count,
                "active": c.is_active,
            }
            for c in clients
        ],
        columns=[
            "client",
            "value_score",
            "total_spent",
            "avg_invoice",
            "invoices",
            "active",
        ],
    )


def forecast_to_dataframe(forecast: RevenueForecast, decimals: int) -> pd.DataFrame:
    """Historical then projected months, one row each."""
    points = list(forecast.historical) + list(forecast.forecasts)
    return pd.DataFrame(
        [
            {
                "month": p.month,
                "date": p.date.isoformat(),
                "revenue": _round(p.revenue, decimals),
                "projection": p.is_projection,
            }
            for p in points
        ],
        columns=["month", "date", "revenue", "projection"],
    )


def forecast_metrics_to_dataframe(
    forecast: RevenueForecast, subscription: SubscriptionMetrics, decimals: int
) -> pd.DataFrame:
    rows = [
        ("avg_revenue", "Average monthly revenue", forecast.avg_revenue, "amount"),
        ("avg_expense", "Average monthly expense", forecast.avg_expense, "amount"),
        ("revenue_trend", "Revenue trend", forecast.revenue_trend, "percent"),
        (
            "recurring_clients",
            "Recurring clients",
            forecast.recurring_clients_count,
            "count",
        ),
        ("estimated_mrr", "Estimated MRR", subscription.estimated_mrr, "amount"),
        ("estimated_arr", "Estimated ARR", subscription.estimated_arr, "amount"),
        (
            "recurring_share",
            "Recurring share of clients",
            subscription.recurring_share,
            "percent",
        ),
    ]
    return pd.DataFrame(
        [
            {"key": key, "label": label, "value": _round(value, decimals), "unit": unit}
            for key, label, value, unit in rows
        ],
        columns=["key", "label", "value", "unit"],
    )


def summary_to_dataframe(summary: FinancialSummary, decimals: int) -> pd.DataFrame:
    rows = [
        ("total_revenue", "Total revenue", summary.total_revenue, "amount"),
        ("total_paid", "Total paid", summary.total_paid, "amount"),
        ("total_unpaid", "Total unpaid", summary.total_unpaid, "amount"),
        ("invoice_count", "Invoices", summary.invoice_count, "count"),
        ("paid_count", "Paid invoices", summary.paid_count, "count"),
        ("unpaid_count", "Unpaid invoices", summary.unpaid_count, "count"),
        ("avg_invoice_value", "Average invoice", summary.avg_invoice_value, "amount"),
        ("total_income", "Total income", summary.total_income, "amount"),
        ("total_expenses", "Total expenses", summary.total_expenses, "amount"),
        ("net_cash_flow", "Net cash flow", summary.net_cash_flow, "amount"),
        ("profit_margin", "Profit margin", summary.profit_margin, "percent"),
    ]
    return pd.DataFrame(
        [
            {"key": key, "label": label, "value": _round(value, decimals), "unit": unit}
            for key, label, value, unit in rows
        ],
        columns=["key", "label", "value", "unit"],
    )


def breakdown_to_dataframe(breakdown: PeriodBreakdown, decimals: int) -> pd.DataFrame:
    series = breakdown_series(breakdown)
    data: dict[str, list] = {"period": list(series.labels)}
    for name, values in series.datasets.items():
        data[name.lower().replace(" ", "_")] = [_round(v, decimals) for v in values]
    return pd.DataFrame(data)


def invoices_to_display_dataframe(
    invoices: Sequence[InvoiceRecord],
    currency: str = "USD",
    date_format: str = DEFAULT_DATE_FORMAT,
) -> pd.DataFrame:
    """Invoice list with formatted dates and amounts (for console display)."""
    return pd.DataFrame(
        [
            {
                "id": inv.id,
                "client": inv.client_name,
                "issued": format_date(inv.issue_date, date_format),
                "due": format_date(inv.due_date, date_format),
                "status": inv.status.value,
                "paid_on": format_date(inv.payment_date, date_format),
                "total": format_currency(inv.total, currency),
            }
            for inv in invoices
        ],
        columns=["id", "client", "issued", "due", "status", "paid_on", "total"],
    )


def transactions_to_display_dataframe(
    transactions: Sequence[TransactionRecord],
    currency: str = "USD",
    date_format: str = DEFAULT_DATE_FORMAT,
) -> pd.DataFrame:
    """Transaction list with formatted dates and amounts (for console display)."""
    return pd.DataFrame(
        [
            {
                "id": t.id,
                "date": format_date(t.date, date_format),
                "description": t.description,
                "category": t.category,
                "type": t.type.value,
                "amount": format_currency(t.amount, currency),
                "status": t.status,
            }
            for t in transactions
        ],
        columns=["id", "date", "description", "category", "type", "amount", "status"],
    )
