# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Financial reports for Billing Insight.

This module complements the dashboard analytics with report-style views:

- ``compute_financial_summary``: invoice totals (billed, paid, outstanding)
  next to cash totals from transactions (income, expenses, net cash flow,
  profit margin);
- ``compute_period_breakdown``: one calendar year split into 12 months or
  4 quarters, with revenue, paid, unpaid, income, expense and cash flow per
  bucket;
- ``status_amounts``: billed value per invoice status;
- ``expense_categories``: Debit totals per category, largest first;
- ``available_years``: years present in either collection.

All functions are pure and return zero-filled structures for empty inputs.
"""

import calendar
from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from .io import invoices_to_frame, transactions_to_frame
from .records import InvoiceRecord, InvoiceStatus, TransactionRecord, TransactionType

TIMEFRAMES: tuple[str, ...] = ("monthly", "quarterly")

_OUTSTANDING = [InvoiceStatus.UNPAID.value, InvoiceStatus.OVERDUE.value]


@dataclass(frozen=True)
class FinancialSummary:
    """
    Headline totals over the full snapshot.

    Attributes:
        total_revenue: Sum of invoice totals (all statuses).
        total_paid: Sum of Paid invoice totals.
        total_unpaid: Sum of Unpaid + Overdue invoice totals.
        invoice_count: Number of invoices.
        paid_count: Number of Paid invoices.
        unpaid_count: Number of Unpaid + Overdue invoices.
        avg_invoice_value: total_revenue / max(invoice_count, 1).
        total_income: Sum of Credit transactions.
        total_expenses: Sum of Debit transactions.
        net_cash_flow: total_income - total_expenses.
        profit_margin: net_cash_flow / total_income * 100 (0 without income).
    """

    total_revenue: float
    total_paid: float
    total_unpaid: float
    invoice_count: int
    paid_count: int
    unpaid_count: int
    avg_invoice_value: float
    total_income: float
    total_expenses: float
    net_cash_flow: float
    profit_margin: float


@dataclass(frozen=True)
class PeriodBreakdown:
    """One year split into monthly or quarterly buckets (parallel tuples)."""

    year: int
    timeframe: str
    labels: tuple[str, ...]
    revenue: tuple[float, ...]
    paid: tuple[float, ...]
    unpaid: tuple[float, ...]
    income: tuple[float, ...]
    expense: tuple[float, ...]

    @property
    def cash_flow(self) -> tuple[float, ...]:
        return tuple(i - e for i, e in zip(self.income, self.expense))


def compute_financial_summary(
    invoices: Sequence[InvoiceRecord], transactions: Sequence[TransactionRecord]
) -> FinancialSummary:
    """Compute invoice and cash totals over the whole snapshot."""
    inv = invoices_to_frame(invoices)
    tx = transactions_to_frame(transactions)

    paid_mask = inv["status"] == InvoiceStatus.PAID.value
    unpaid_mask = inv["status"].isin(_OUTSTANDING)

    total_revenue = float(inv["total"].sum())
    total_income = float(tx.loc[tx["type"] == TransactionType.CREDIT.value, "amount"].sum())
    total_expenses = float(tx.loc[tx["type"] == TransactionType.DEBIT.value, "amount"].sum())
    net = total_income - total_expenses

    return FinancialSummary(
        total_revenue=total_revenue,
        total_paid=float(inv.loc[paid_mask, "total"].sum()),
        total_unpaid=float(inv.loc[unpaid_mask, "total"].sum()),
        invoice_count=len(inv),
        paid_count=int(paid_mask.sum()),
        unpaid_count=int(unpaid_mask.sum()),
        avg_invoice_value=total_revenue / max(len(inv), 1),
        total_income=total_income,
        total_expenses=total_expenses,
        net_cash_flow=net,
        profit_margin=net / total_income * 100.0 if total_income > 0 else 0.0,
    )


def _bucket_sums(
    frame: pd.DataFrame, buckets: pd.Series, value_col: str, size: int
) -> tuple[float, ...]:
    """Sum ``value_col`` per bucket index 0..size-1 (missing buckets → 0)."""
    sums = frame.groupby(buckets)[value_col].sum()
    return tuple(float(sums.get(i, 0.0)) for i in range(size))


def compute_period_breakdown(
    invoices: Sequence[InvoiceRecord],
    transactions: Sequence[TransactionRecord],
    year: int,
    timeframe: str = "monthly",
) -> PeriodBreakdown:
    """
    Split one calendar year into monthly or quarterly buckets.

    Invoices are placed by issue date, transactions by value date. Unpaid
    covers Unpaid and Overdue invoices; Partially Paid and Cancelled invoices
    only count towards revenue.

    Raises:
        ValueError: if ``timeframe`` is not 'monthly' or 'quarterly'.
    """
    if timeframe not in TIMEFRAMES:
        raise ValueError(
            f"Unknown timeframe: {timeframe!r}. Expected 'monthly' or 'quarterly'."
        )

    if timeframe == "monthly":
        labels = tuple(calendar.month_abbr[m] for m in range(1, 13))
    else:
        labels = ("Q1", "Q2", "Q3", "Q4")
    size = len(labels)

    def _bucket(dates: pd.Series) -> pd.Series:
        months = dates.dt.month - 1
        return months if timeframe == "monthly" else months // 3

    inv = invoices_to_frame(invoices)
    inv = inv[inv["issue_date"].dt.year == year]
    inv_bucket = _bucket(inv["issue_date"])

    tx = transactions_to_frame(transactions)
    tx = tx[tx["date"].dt.year == year]
    tx_bucket = _bucket(tx["date"])

    paid = inv["status"] == InvoiceStatus.PAID.value
    unpaid = inv["status"].isin(_OUTSTANDING)
    credit = tx["type"] == TransactionType.CREDIT.value
    debit = tx["type"] == TransactionType.DEBIT.value

    return PeriodBreakdown(
        year=year,
        timeframe=timeframe,
        labels=labels,
        revenue=_bucket_sums(inv, inv_bucket, "total", size),
        paid=_bucket_sums(inv[paid], inv_bucket[paid], "total", size),
        unpaid=_bucket_sums(inv[unpaid], inv_bucket[unpaid], "total", size),
        income=_bucket_sums(tx[credit], tx_bucket[credit], "amount", size),
        expense=_bucket_sums(tx[debit], tx_bucket[debit], "amount", size),
    )


def status_amounts(invoices: Sequence[InvoiceRecord]) -> dict[str, float]:
    """Billed value per status label; the five labels are always present."""
    inv = invoices_to_frame(invoices)
    sums = inv.groupby("status")["total"].sum()
    return {s.value: float(sums.get(s.value, 0.0)) for s in InvoiceStatus}


def expense_categories(
    transactions: Sequence[TransactionRecord],
) -> list[tuple[str, float]]:
    """
    Debit totals per category, largest first.

    Categories with equal totals keep the order in which they first appear.
    """
    tx = transactions_to_frame(transactions)
    debits = tx[tx["type"] == TransactionType.DEBIT.value]
    if debits.empty:
        return []
    sums = debits.groupby("category", sort=False)["amount"].sum()
    pairs = [(str(cat), float(total)) for cat, total in sums.items()]
    pairs.sort(key=lambda p: p[1], reverse=True)
    return pairs


def available_years(
    invoices: Sequence[InvoiceRecord], transactions: Sequence[TransactionRecord]
) -> list[int]:
    """Sorted distinct years of invoice issue dates and transaction dates."""
    years = {inv.issue_date.year for inv in invoices}
    years.update(t.date.year for t in transactions)
    return sorted(years)
