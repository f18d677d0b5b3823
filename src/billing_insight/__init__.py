# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Billing Insight
---------------

A Python-based analytics engine for the invoices and cash transactions of
Small and Medium-sized Businesses (SMBs). It reads invoice and transaction
snapshots and derives the figures an accounting dashboard shows.

Main capabilities:
- invoice KPIs over a selectable time range (all time, 6 months, 1 year),
- client payment behaviour, late payers and churn-risk scoring,
- a most-valuable-clients ranking,
- a 3-month linear revenue forecast with MRR / ARR estimates,
- financial summary and monthly / quarterly breakdowns,
- chart series, tables and CSV exports for any presentation layer,
- a command-line interface to inspect and update the snapshot files.

Billing Insight separates computation (analytics modules), configuration
(TOML), and presentation (views / CLI), making it suitable for scripting,
automation and reporting.


Version: 0.2.0

Usage:
    python -m billing_insight.cli --help
"""

__all__ = [
    "client_analytics",
    "dashboard",
    "forecast",
    "invoice_analytics",
    "io",
    "reports",
    "views",
]

__version__ = "0.2.0"
