# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Single-pass dashboard orchestration.

``compute_dashboard()`` is the high-level entry point used by the CLI (and
by any other presentation layer). For one snapshot and one reference date it
runs every analytics stage exactly once:

1. invoice KPIs for the selected time range (invoice_analytics.py),
2. client profiles and rankings over the full history (client_analytics.py),
3. the 6-month revenue forecast and its subscription metrics (forecast.py),
4. the financial summary and the yearly breakdown (reports.py).

Using a single reference date for every stage keeps the results consistent
with each other: the "active in the last 90 days" flag, the time-range
cutoff and the forecast window are all computed against the same day.

Separation of concerns
----------------------
- The stage modules remain the single source of truth for each computation.
- ``dashboard.py`` only wires them together and bundles their results.
- Rendering (tables, CSV, chart series) is handled by views.py.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .client_analytics import ClientAnalytics, compute_client_analytics
from .forecast import (
    RevenueForecast,
    SubscriptionMetrics,
    compute_revenue_forecast,
    compute_subscription_metrics,
)
from .invoice_analytics import InvoiceAnalytics, compute_invoice_analytics
from .periods import parse_time_range, resolve_today
from .reports import (
    FinancialSummary,
    PeriodBreakdown,
    compute_financial_summary,
    compute_period_breakdown,
)
from .store import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dashboard:
    """
    Every analytics result for one snapshot and one reference date.

    Attributes
    ----------
    today :
        Reference date used by every stage.
    time_range :
        Normalized time range applied to the invoice KPIs.
    invoices :
        Invoice KPIs for ``time_range``.
    clients :
        Client profiles and rankings (full history).
    forecast :
        Revenue forecast over the trailing 6 months.
    subscription :
        MRR / ARR estimates derived from ``forecast``.
    summary :
        Financial summary over the full snapshot.
    breakdown :
        Monthly or quarterly split of ``breakdown.year``.
    """

    today: date
    time_range: str
    invoices: InvoiceAnalytics
    clients: ClientAnalytics
    forecast: RevenueForecast
    subscription: SubscriptionMetrics
    summary: FinancialSummary
    breakdown: PeriodBreakdown


def compute_dashboard(
    snapshot: Snapshot,
    time_range: str = "all",
    today: Optional[date] = None,
    year: Optional[int] = None,
    timeframe: str = "monthly",
) -> Dashboard:
    """
    Compute every dashboard section for a snapshot.

    Parameters
    ----------
    snapshot :
        Invoices and transactions to analyse (read-only).
    time_range :
        'all', '6m' or '1y' for the invoice KPIs.
    today :
        Reference date; defaults to the system date.
    year :
        Year of the period breakdown; defaults to the reference year.
    timeframe :
        'monthly' or 'quarterly' for the period breakdown.
    """
    ref = resolve_today(today)
    tr = parse_time_range(time_range)
    logger.debug(
        "Computing dashboard: %d invoices, %d transactions, range=%s, today=%s",
        len(snapshot.invoices),
        len(snapshot.transactions),
        tr,
        ref,
    )

    clients = compute_client_analytics(snapshot.invoices, ref)
    forecast = compute_revenue_forecast(snapshot.invoices, snapshot.transactions, ref)

    return Dashboard(
        today=ref,
        time_range=tr,
        invoices=compute_invoice_analytics(snapshot.invoices, tr, ref),
        clients=clients,
        forecast=forecast,
        subscription=compute_subscription_metrics(forecast, clients.client_count),
        summary=compute_financial_summary(snapshot.invoices, snapshot.transactions),
        breakdown=compute_period_breakdown(
            snapshot.invoices,
            snapshot.transactions,
            year if year is not None else ref.year,
            timeframe,
        ),
    )
