# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Client behaviour and risk scoring for Billing Insight.

Client profiles are always built from the *full* invoice history, whatever
time range the dashboard displays. The profile of a client is obtained by
folding over its invoices in snapshot order:

- every invoice adds its total to ``total_spent`` and increments
  ``invoice_count``;
- a Paid invoice with a payment date is late when paid after its due date.
  A late payment increments ``late_payments`` and the consecutive-late
  streak; an on-time payment resets the streak. Invoices that are not paid
  do not touch the streak;
- ``avg_payment_time`` is updated with a two-point average:
  ``new`` if the current value is 0, else ``(current + new) / 2``. This
  weights recent payments more than a cumulative mean would, and the risk
  thresholds below are tuned against it;
- a client is active when its latest invoice was issued within the last
  90 days.

Three rankings are derived from the profiles:

1. Late payers
   -----------
   Clients with at least one late payment, most late payments first, top 5.

2. Churn risk
   ----------
   risk_score = 30 * (streak >= 2)
              + 20 * (avg_payment_time > 1.5 * mean of all clients)
              + 50 * (client has an Unpaid or Overdue invoice)
   Only active clients with a score above 20 are listed, highest first.

3. Valuable clients
   ----------------
   value_score = 0.4 * total_spent + 0.3 * avg_invoice_value
               + 0.15 * (100 if active else 50)
               + 0.15 * (100 - late_rate)
   Highest first, top 5. This is a heuristic weighted sum, not a normalized
   score.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from .periods import resolve_today
from .records import InvoiceRecord, InvoiceStatus

logger = logging.getLogger(__name__)

ACTIVE_WINDOW_DAYS = 90
TOP_N = 5

RISK_WEIGHT_LATE_STREAK = 30
RISK_WEIGHT_SLOW_PAYMENTS = 20
RISK_WEIGHT_UNPAID = 50
LATE_STREAK_THRESHOLD = 2
SLOW_PAYMENT_FACTOR = 1.5
RISK_THRESHOLD = 20

VALUE_WEIGHT_TOTAL_SPENT = 0.4
VALUE_WEIGHT_AVG_INVOICE = 0.3
VALUE_WEIGHT_RECENCY = 0.15
VALUE_WEIGHT_RELIABILITY = 0.15
RECENCY_ACTIVE = 100.0
RECENCY_INACTIVE = 50.0


@dataclass
class ClientBehavior:
    """
    Payment profile of one client, rebuilt on every analytics pass.

    Attributes:
        total_spent: Sum of invoice totals, all statuses.
        invoice_count: Number of invoices.
        late_payments: Number of Paid invoices paid after their due date.
        avg_payment_time: Two-point running average of days to payment.
        last_invoice_date: Latest issue date seen.
        consecutive_late_payments: Current streak of late payments.
        is_active: Latest invoice issued within ACTIVE_WINDOW_DAYS.
    """

    total_spent: float = 0.0
    invoice_count: int = 0
    late_payments: int = 0
    avg_payment_time: float = 0.0
    last_invoice_date: Optional[date] = None
    consecutive_late_payments: int = 0
    is_active: bool = False

    @property
    def late_rate(self) -> float:
        """Late payments as a percentage of invoices."""
        return self.late_payments / max(1, self.invoice_count) * 100.0


@dataclass(frozen=True)
class LatePaymentClient:
    name: str
    late_payments: int
    invoice_count: int
    late_rate: float
    avg_payment_time: float
    consecutive_late_payments: int
    is_active: bool


@dataclass(frozen=True)
class ChurnRiskClient:
    name: str
    is_active: bool
    risk_score: int
    has_consecutive_late_payments: bool
    has_slow_payments: bool
    has_unpaid_invoices: bool
    total_spent: float


@dataclass(frozen=True)
class ValuableClient:
    name: str
    total_spent: float
    avg_invoice_value: float
    invoice_count: int
    is_active: bool
    value_score: float


@dataclass(frozen=True)
class ClientAnalytics:
    """Client profiles and the rankings derived from them."""

    client_behavior: dict[str, ClientBehavior]
    late_payment_clients: tuple[LatePaymentClient, ...]
    churn_risk_clients: tuple[ChurnRiskClient, ...]
    valuable_clients: tuple[ValuableClient, ...]

    @property
    def client_count(self) -> int:
        return len(self.client_behavior)


def build_client_behavior(
    invoices: Sequence[InvoiceRecord], today: Optional[date] = None
) -> dict[str, ClientBehavior]:
    """
    Build one ClientBehavior per client name from the full invoice history.

    Invoices are processed in the given order; the order matters for the
    consecutive-late streak and the two-point payment-time average.
    The returned dict keeps clients in order of first appearance.
    """
    ref = resolve_today(today)
    active_since = ref - timedelta(days=ACTIVE_WINDOW_DAYS)
    profiles: dict[str, ClientBehavior] = {}

    for inv in invoices:
        client = profiles.setdefault(inv.client_name, ClientBehavior())
        client.total_spent += inv.total
        client.invoice_count += 1

        if inv.status == InvoiceStatus.PAID and inv.payment_date is not None:
            if inv.payment_date > inv.due_date:
                client.late_payments += 1
                client.consecutive_late_payments += 1
            else:
                client.consecutive_late_payments = 0

            days_to_payment = (inv.payment_date - inv.issue_date).days
            if client.avg_payment_time == 0:
                client.avg_payment_time = float(days_to_payment)
            else:
                client.avg_payment_time = (
                    client.avg_payment_time + days_to_payment
                ) / 2

        if client.last_invoice_date is None or inv.issue_date > client.last_invoice_date:
            client.last_invoice_date = inv.issue_date
        client.is_active = client.last_invoice_date >= active_since

    logger.debug(
        "Built %d client profiles from %d invoices", len(profiles), len(invoices)
    )
    return profiles


def late_payment_clients(
    profiles: dict[str, ClientBehavior], limit: int = TOP_N
) -> list[LatePaymentClient]:
    """Clients with late payments, most late payments first (stable)."""
    late = [
        LatePaymentClient(
            name=name,
            late_payments=p.late_payments,
            invoice_count=p.invoice_count,
            late_rate=p.late_payments / p.invoice_count * 100.0,
            avg_payment_time=p.avg_payment_time,
            consecutive_late_payments=p.consecutive_late_payments,
            is_active=p.is_active,
        )
        for name, p in profiles.items()
        if p.late_payments > 0
    ]
    late.sort(key=lambda c: c.late_payments, reverse=True)
    return late[:limit]


def overall_avg_payment_time(profiles: dict[str, ClientBehavior]) -> float:
    """Mean of every client's avg_payment_time (0 when there are no clients)."""
    if not profiles:
        return 0.0
    return sum(p.avg_payment_time for p in profiles.values()) / len(profiles)


def churn_risk_clients(
    profiles: dict[str, ClientBehavior], invoices: Sequence[InvoiceRecord]
) -> list[ChurnRiskClient]:
    """
    Score every client and keep the active ones with a score above 20.

    The list is sorted by descending score (stable) and is not truncated.
    """
    overall_avg = overall_avg_payment_time(profiles)
    with_unpaid = {inv.client_name for inv in invoices if inv.is_outstanding}

    scored = []
    for name, p in profiles.items():
        has_streak = p.consecutive_late_payments >= LATE_STREAK_THRESHOLD
        has_slow = p.avg_payment_time > overall_avg * SLOW_PAYMENT_FACTOR
        has_unpaid = name in with_unpaid

        score = 0
        if has_streak:
            score += RISK_WEIGHT_LATE_STREAK
        if has_slow:
            score += RISK_WEIGHT_SLOW_PAYMENTS
        if has_unpaid:
            score += RISK_WEIGHT_UNPAID

        scored.append(
            ChurnRiskClient(
                name=name,
                is_active=p.is_active,
                risk_score=score,
                has_consecutive_late_payments=has_streak,
                has_slow_payments=has_slow,
                has_unpaid_invoices=has_unpaid,
                total_spent=p.total_spent,
            )
        )

    at_risk = [c for c in scored if c.is_active and c.risk_score > RISK_THRESHOLD]
    at_risk.sort(key=lambda c: c.risk_score, reverse=True)
    return at_risk


def valuable_clients(
    profiles: dict[str, ClientBehavior], limit: int = TOP_N
) -> list[ValuableClient]:
    """Rank clients by value_score, highest first (stable), top ``limit``."""
    ranked = []
    for name, p in profiles.items():
        avg_invoice_value = p.total_spent / p.invoice_count
        recency = RECENCY_ACTIVE if p.is_active else RECENCY_INACTIVE
        reliability = 100.0 - p.late_rate

        score = (
            p.total_spent * VALUE_WEIGHT_TOTAL_SPENT
            + avg_invoice_value * VALUE_WEIGHT_AVG_INVOICE
            + recency * VALUE_WEIGHT_RECENCY
            + reliability * VALUE_WEIGHT_RELIABILITY
        )
        ranked.append(
            ValuableClient(
                name=name,
                total_spent=p.total_spent,
                avg_invoice_value=avg_invoice_value,
                invoice_count=p.invoice_count,
                is_active=p.is_active,
                value_score=score,
            )
        )

    ranked.sort(key=lambda c: c.value_score, reverse=True)
    return ranked[:limit]


def compute_client_analytics(
    invoices: Sequence[InvoiceRecord], today: Optional[date] = None
) -> ClientAnalytics:
    """
    Build client profiles and the late-payer, churn-risk and valuable-client
    rankings from the full invoice history.

    Args:
        invoices: Invoice snapshot (read-only, never time-windowed).
        today: Reference date for the 90-day activity window.
    """
    profiles = build_client_behavior(invoices, today)
    return ClientAnalytics(
        client_behavior=profiles,
        late_payment_clients=tuple(late_payment_clients(profiles)),
        churn_risk_clients=tuple(churn_risk_clients(profiles, invoices)),
        valuable_clients=tuple(valuable_clients(profiles)),
    )
