# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Time-window helpers for Billing Insight.

This module defines the dashboard time ranges ("all", "6m", "1y"), the
reference date used by every analytics call, and helpers to filter record
DataFrames and to bucket dates into calendar months.

All windows are relative to a reference date ("today"). Analytics entry
points accept an explicit ``today`` argument; when it is omitted the system
date is used, via ``today()`` which is isolated here for easier testing.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

TIME_RANGES: tuple[str, ...] = ("all", "6m", "1y")

_TIME_RANGE_ALIASES = {
    "all": "all",
    "6m": "6m",
    "last-6-months": "6m",
    "1y": "1y",
    "last-year": "1y",
}

_TIME_RANGE_LABELS = {
    "all": "All time",
    "6m": "Last 6 months",
    "1y": "Last year",
}

# Window used by the revenue forecast, independent of the selected range.
FORECAST_WINDOW_MONTHS = 6


@dataclass(frozen=True)
class Window:
    """A resolved time window: inclusive start (None = unbounded) and label."""

    start: Optional[date]
    end: date
    label: str


def today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def resolve_today(value: Optional[date]) -> date:
    """Return ``value`` if given, else the system date."""
    return value if value is not None else today()


def parse_time_range(value: Optional[str]) -> str:
    """
    Normalize a time range selector.

    Accepted values: 'all', '6m', '1y' and the long aliases 'last-6-months'
    and 'last-year'. None means 'all'.

    Raises:
        ValueError: if the selector is unknown.
    """
    if value is None:
        return "all"
    key = str(value).strip().lower()
    try:
        return _TIME_RANGE_ALIASES[key]
    except KeyError as exc:
        raise ValueError(
            f"Unknown time range: {value!r}. Expected one of: "
            + ", ".join(sorted(_TIME_RANGE_ALIASES))
        ) from exc


def months_before(ref: date, months: int) -> date:
    """
    Return ``ref`` shifted back by a number of calendar months.

    The day of month is clamped to the end of the target month
    (31 Aug minus 6 months gives 28/29 Feb).
    """
    return (pd.Timestamp(ref) - pd.DateOffset(months=months)).date()


def cutoff_date(time_range: str, ref: date) -> Optional[date]:
    """
    Return the inclusive lower bound for a time range, or None for 'all'.

    '6m' is six calendar months before ``ref``; '1y' is one year before.
    """
    tr = parse_time_range(time_range)
    if tr == "6m":
        return months_before(ref, 6)
    if tr == "1y":
        return months_before(ref, 12)
    return None


def resolve_window(time_range: str, ref: Optional[date] = None) -> Window:
    """Resolve a time range into a Window relative to ``ref`` (default: today)."""
    ref_date = resolve_today(ref)
    tr = parse_time_range(time_range)
    return Window(
        start=cutoff_date(tr, ref_date),
        end=ref_date,
        label=_TIME_RANGE_LABELS[tr],
    )


def filter_frame_since(
    frame: pd.DataFrame, column: str, start: Optional[date]
) -> pd.DataFrame:
    """
    Keep rows whose ``column`` is on or after ``start``.

    The column is expected to be of type datetime64[ns] (as produced by
    io.invoices_to_frame / io.transactions_to_frame). ``start=None`` keeps
    every row. Row order is preserved.
    """
    if start is None:
        return frame
    mask = frame[column] >= pd.Timestamp(start)
    return frame.loc[mask].copy()


def filter_invoices_by_range(
    invoices: pd.DataFrame, time_range: str, ref: Optional[date] = None
) -> pd.DataFrame:
    """
    Restrict an invoices DataFrame to a dashboard time range.

    Parameters
    ----------
    invoices:
        DataFrame with at least an 'issue_date' datetime column.
    time_range:
        'all', '6m' or '1y' (aliases accepted, see parse_time_range).
    ref:
        Reference date; defaults to today.

    Returns
    -------
    pandas.DataFrame
        The rows issued on or after the cutoff, in their original order.
    """
    window = resolve_window(time_range, ref)
    return filter_frame_since(invoices, "issue_date", window.start)


def month_key(value: Union[date, pd.Timestamp]) -> str:
    """Calendar bucket key 'YYYY-MM'."""
    return f"{value.year:04d}-{value.month:02d}"


def month_start(value: Union[date, pd.Timestamp]) -> date:
    """First day of the calendar month containing ``value``."""
    return date(value.year, value.month, 1)


def add_months(value: date, months: int) -> date:
    """Shift a date forward by a number of calendar months (end-of-month clamped)."""
    return (pd.Timestamp(value) + pd.DateOffset(months=months)).date()
