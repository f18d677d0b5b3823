# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Revenue forecasting for Billing Insight.

The forecast looks at the trailing 6 months only:

1. Monthly buckets
   ---------------
   Invoice totals are summed into the calendar month of their issue date
   (revenue). Debit transactions are summed into the month of their date
   (expenses). A month exists as soon as either source touched it.

2. Degraded mode
   -------------
   With fewer than 3 monthly buckets no forecast is produced: the result has
   ``has_forecast=False``, a human-readable ``message``, the historical
   series and zero metrics. This is a normal result, not an error.

3. Linear regression
   -----------------
   Ordinary least squares on (bucket index, monthly revenue):

       m = (n*Sxy - Sx*Sy) / (n*Sxx - Sx^2)
       b = (Sy - m*Sx) / n

   The next 3 months are projected at x = n, n+1, n+2 as max(0, m*x + b).

4. Side metrics
   ------------
   - average monthly revenue and expense,
   - revenue trend: percent change between the first and the last bucket
     (0 if the first bucket is 0). This two-point trend ignores the months
     in between and is kept separate from the regression slope,
   - recurring clients (3+ invoices in the window) and their average monthly
     revenue, which feeds the MRR / ARR estimates of
     ``compute_subscription_metrics``.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

from .io import invoices_to_frame, transactions_to_frame
from .periods import (
    FORECAST_WINDOW_MONTHS,
    add_months,
    filter_frame_since,
    month_start,
    months_before,
    resolve_today,
)
from .records import InvoiceRecord, TransactionRecord, TransactionType

logger = logging.getLogger(__name__)

MIN_FORECAST_MONTHS = 3
FORECAST_HORIZON = 3
RECURRING_MIN_INVOICES = 3
INSUFFICIENT_DATA_MESSAGE = "Need at least 3 months of data for forecasting"


@dataclass(frozen=True)
class ForecastPoint:
    """One month of revenue, historical or projected."""

    month: str
    date: date
    revenue: float
    is_projection: bool = False


@dataclass(frozen=True)
class RevenueForecast:
    """
    Result of compute_revenue_forecast.

    Attributes:
        has_forecast: False when fewer than 3 monthly buckets were found.
        message: Explanation when has_forecast is False.
        historical: Monthly revenue buckets, chronological.
        forecasts: The 3 projected months (empty without forecast).
        avg_revenue: Mean monthly revenue.
        avg_expense: Mean monthly Debit total.
        revenue_trend: First-to-last bucket change, in percent.
        recurring_clients_count: Clients with 3+ invoices in the window.
        recurring_revenue: Recurring clients' revenue per bucket (MRR).
        slope: Regression slope m (0 without forecast).
        intercept: Regression intercept b (0 without forecast).
    """

    has_forecast: bool
    historical: tuple[ForecastPoint, ...]
    forecasts: tuple[ForecastPoint, ...]
    avg_revenue: float
    avg_expense: float
    revenue_trend: float
    recurring_clients_count: int
    recurring_revenue: float
    message: Optional[str] = None
    slope: float = 0.0
    intercept: float = 0.0


@dataclass(frozen=True)
class SubscriptionMetrics:
    """Recurring-revenue view of a forecast."""

    has_data: bool
    recurring_clients_count: int
    estimated_mrr: float
    estimated_arr: float
    revenue_trend: float
    recurring_share: float


def fit_linear_trend(values: Sequence[float]) -> tuple[float, float]:
    """
    Least-squares fit of ``values`` against their index 0..n-1.

    Returns:
        (slope, intercept).

    Raises:
        ValueError: with fewer than 2 values (the slope is undefined).
    """
    n = len(values)
    if n < 2:
        raise ValueError("At least 2 points are required to fit a trend.")

    sum_x = sum(range(n))
    sum_y = sum(values)
    sum_xy = sum(i * y for i, y in enumerate(values))
    sum_xx = sum(i * i for i in range(n))

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def _monthly_buckets(invoices: pd.DataFrame, expenses: pd.DataFrame) -> pd.DataFrame:
    """
    Revenue and expenses per calendar month, chronological.

    Returns a DataFrame indexed by month start (Timestamp) with the columns
    'revenue' and 'expenses'.
    """
    revenue = invoices.groupby(
        invoices["issue_date"].dt.to_period("M").dt.start_time
    )["total"].sum()
    spent = expenses.groupby(expenses["date"].dt.to_period("M").dt.start_time)[
        "amount"
    ].sum()

    buckets = pd.DataFrame({"revenue": revenue, "expenses": spent}).fillna(0.0)
    return buckets.sort_index()


def _trend_pct(first: float, last: float) -> float:
    if first > 0:
        return (last - first) / first * 100.0
    return 0.0


def compute_revenue_forecast(
    invoices: Sequence[InvoiceRecord],
    transactions: Sequence[TransactionRecord],
    today: Optional[date] = None,
) -> RevenueForecast:
    """
    Forecast the next 3 months of revenue from the trailing 6 months.

    Args:
        invoices: Invoice snapshot.
        transactions: Transaction snapshot (only Debits are used, as expenses).
        today: Reference date for the 6-month window.

    Returns:
        A RevenueForecast. With fewer than 3 monthly buckets, has_forecast is
        False and every metric is 0.
    """
    ref = resolve_today(today)
    start = months_before(ref, FORECAST_WINDOW_MONTHS)

    inv_frame = filter_frame_since(invoices_to_frame(invoices), "issue_date", start)
    tx_frame = transactions_to_frame(transactions)
    debits = tx_frame[tx_frame["type"] == TransactionType.DEBIT.value]
    debits = filter_frame_since(debits, "date", start)

    buckets = _monthly_buckets(inv_frame, debits)
    historical = tuple(
        ForecastPoint(
            month=ts.strftime("%b"),
            date=month_start(ts),
            revenue=float(row["revenue"]),
        )
        for ts, row in buckets.iterrows()
    )
    n = len(historical)

    if n < MIN_FORECAST_MONTHS:
        logger.info(
            "Revenue forecast skipped: %d monthly bucket(s) since %s", n, start
        )
        return RevenueForecast(
            has_forecast=False,
            message=INSUFFICIENT_DATA_MESSAGE,
            historical=historical,
            forecasts=(),
            avg_revenue=0.0,
            avg_expense=0.0,
            revenue_trend=0.0,
            recurring_clients_count=0,
            recurring_revenue=0.0,
        )

    revenues = [p.revenue for p in historical]
    slope, intercept = fit_linear_trend(revenues)

    last_month = historical[-1].date
    forecasts = []
    for step in range(1, FORECAST_HORIZON + 1):
        x = n + step - 1
        projected_date = add_months(last_month, step)
        forecasts.append(
            ForecastPoint(
                month=projected_date.strftime("%b"),
                date=projected_date,
                revenue=max(0.0, slope * x + intercept),
                is_projection=True,
            )
        )

    invoice_counts = inv_frame["client_name"].value_counts()
    recurring = set(
        invoice_counts[invoice_counts >= RECURRING_MIN_INVOICES].index.astype(str)
    )
    recurring_total = float(
        inv_frame.loc[inv_frame["client_name"].isin(recurring), "total"].sum()
    )

    logger.debug(
        "Revenue forecast: n=%d slope=%.4f intercept=%.4f", n, slope, intercept
    )
    return RevenueForecast(
        has_forecast=True,
        historical=historical,
        forecasts=tuple(forecasts),
        avg_revenue=sum(revenues) / n,
        avg_expense=float(buckets["expenses"].sum()) / n,
        revenue_trend=_trend_pct(revenues[0], revenues[-1]),
        recurring_clients_count=len(recurring),
        recurring_revenue=recurring_total / n,
        slope=slope,
        intercept=intercept,
    )


def compute_subscription_metrics(
    forecast: RevenueForecast, client_count: int
) -> SubscriptionMetrics:
    """
    Derive MRR / ARR estimates from a forecast.

    Args:
        forecast: Result of compute_revenue_forecast.
        client_count: Number of distinct clients (full history), used for the
            share of recurring clients.
    """
    share = forecast.recurring_clients_count / max(1, client_count) * 100.0
    return SubscriptionMetrics(
        has_data=forecast.has_forecast,
        recurring_clients_count=forecast.recurring_clients_count,
        estimated_mrr=forecast.recurring_revenue,
        estimated_arr=forecast.recurring_revenue * 12,
        revenue_trend=forecast.revenue_trend,
        recurring_share=min(100.0, share),
    )
