# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for Billing Insight.

This module wires together the main building blocks of Billing Insight:

- configuration (data paths, preferences, analytics and display options),
- snapshot loading (invoices JSON, transactions JSON/CSV),
- the dashboard analytics (invoice KPIs, client behaviour, forecast,
  reports),
- view helpers (tables, CSV exports, display formatting).

The CLI is intentionally thin: it does not implement any analytics itself.
It loads a snapshot, calls ``compute_dashboard()`` once and renders the
sections selected by ``--scope``.


Configuration and overrides
---------------------------

By default, the CLI reads ``billing_insight_config.toml`` from the current
working directory (when present). You can override this path using:

    --config PATH

The snapshot files configured in ``[data]`` can be overridden for a single
run with ``--invoices PATH`` and ``--transactions PATH``.


Reference date and time range
-----------------------------

Every analytics stage is computed relative to one reference date. It is,
by priority: ``--today YYYY-MM-DD``, ``[analytics].reference_date``, then
the system date.

``--time-range {all,6m,1y}`` selects the window of the invoice KPIs. Client
behaviour is always computed over the full history, and the forecast always
uses the trailing 6 months.


Scopes: what to render
----------------------

- ``summary`` (default):
    Invoice KPIs, status distribution, top clients, top months and
    month-over-month revenue changes.

- ``clients``:
    Late payers, churn-risk clients and most valuable clients.

- ``forecast``:
    Historical and projected monthly revenue plus recurring-revenue
    metrics, or the reason why no forecast could be made.

- ``reports``:
    Financial summary, monthly or quarterly breakdown of ``--year``
    (``--timeframe``), billed value per status and expense categories.

- ``all``:
    Every section above.


Display modes and output
------------------------

- ``table``: print results to stdout (pandas.DataFrame.to_string),
- ``csv``: write CSV files only,
- ``both``: do both.

CSV files are written into ``--output DIR`` (or ``[display].output_dir``)
with timestamp-based names, for example ``kpis_YYYY-MM-DD-HH-MM-SS.csv``.


Records subcommands
-------------------

    python -m billing_insight.cli invoices list
    python -m billing_insight.cli invoices show INV-2023-001
    python -m billing_insight.cli invoices mark-paid INV-2023-002 --payment-date 2023-08-01
    python -m billing_insight.cli invoices delete INV-2023-003

    python -m billing_insight.cli transactions list
    python -m billing_insight.cli transactions show TRX-001
    python -m billing_insight.cli transactions delete TRX-001

``delete`` and ``mark-paid`` write the updated collection back to its
snapshot file.


Examples
--------

1) KPIs for the last 6 months as a table:

    python -m billing_insight.cli --time-range 6m

2) Everything, as of a fixed date, exported as CSV files:

    python -m billing_insight.cli --scope all --today 2023-09-15 \\
        --display-mode csv --output reports/2023-09

3) Quarterly report for 2023:

    python -m billing_insight.cli --scope reports --year 2023 --timeframe quarterly
"""

import argparse
import logging
from collections.abc import Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import (
    DEFAULT_CONFIG_FILE,
    DISPLAY_MODES,
    LOG_LEVELS,
    AppConfig,
    default_config,
    load_app_config,
)
from .dashboard import Dashboard, compute_dashboard
from .io import load_snapshot, write_invoices, write_transactions
from .periods import TIME_RANGES, resolve_today, resolve_window
from .reports import TIMEFRAMES, expense_categories, status_amounts
from .store import Snapshot
from .views import (
    breakdown_to_dataframe,
    churn_risk_to_dataframe,
    client_totals_to_dataframe,
    forecast_metrics_to_dataframe,
    forecast_to_dataframe,
    format_currency,
    format_date,
    invoices_to_display_dataframe,
    kpis_to_dataframe,
    late_payers_to_dataframe,
    revenue_changes_to_dataframe,
    summary_to_dataframe,
    transactions_to_display_dataframe,
    valuable_clients_to_dataframe,
)

logger = logging.getLogger(__name__)

SCOPES: tuple[str, ...] = ("summary", "clients", "forecast", "reports", "all")

# (title, CSV file stem, table)
Section = tuple[str, str, pd.DataFrame]


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m billing_insight.cli",
        description=(
            "Billing Insight - Invoice & cash-flow analytics for SMBs. "
            "Reads invoice and transaction snapshots, computes invoice KPIs, "
            "client payment behaviour, churn risk and a revenue forecast, and "
            "renders them as tables or CSV files."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of billing_insight and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            f"'{DEFAULT_CONFIG_FILE}' in the current directory is used when present."
        ),
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the [logging].level setting from the configuration file.",
    )

    # Snapshot overrides
    ap.add_argument(
        "--invoices",
        dest="invoices_path",
        help="Invoices JSON file (overrides [data].invoices).",
    )
    ap.add_argument(
        "--transactions",
        dest="transactions_path",
        help="Transactions JSON or CSV file (overrides [data].transactions).",
    )

    # Analytics options
    ap.add_argument(
        "--time-range",
        dest="time_range",
        choices=TIME_RANGES,
        help=(
            "Window of the invoice KPIs: 'all', '6m' (last 6 months) or "
            "'1y' (last year). Defaults to [analytics].default_time_range."
        ),
    )
    ap.add_argument(
        "--today",
        dest="today",
        help=(
            "Reference date (YYYY-MM-DD) used instead of the system date. "
            "Overrides [analytics].reference_date."
        ),
    )
    ap.add_argument(
        "--scope",
        choices=SCOPES,
        default="summary",
        help=(
            "Select what to render: 'summary' = invoice KPIs; "
            "'clients' = client behaviour and risk; "
            "'forecast' = revenue forecast; "
            "'reports' = financial summary and period breakdown; "
            "'all' = everything."
        ),
    )
    ap.add_argument(
        "--year",
        type=int,
        help="Year of the period breakdown (default: year of the reference date).",
    )
    ap.add_argument(
        "--timeframe",
        choices=TIMEFRAMES,
        default="monthly",
        help="Buckets of the period breakdown (default: monthly).",
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=DISPLAY_MODES,
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. If omitted, [display].output_dir is used."
        ),
    )

    # ------------------------------------------------------------------
    # Subcommands: invoices, transactions
    # ------------------------------------------------------------------
    subparsers = ap.add_subparsers(
        dest="command",
        metavar="command",
        help="Optional subcommands ('invoices', 'transactions') to manage records.",
    )

    invoices_parser = subparsers.add_parser(
        "invoices",
        help="List, inspect and update invoices.",
    )
    invoices_sub = invoices_parser.add_subparsers(
        dest="invoices_command",
        metavar="invoices-command",
    )
    invoices_sub.add_parser("list", help="List every invoice.")
    inv_show = invoices_sub.add_parser("show", help="Show one invoice in detail.")
    inv_show.add_argument("record_id", help="Invoice identifier.")
    inv_delete = invoices_sub.add_parser("delete", help="Delete an invoice.")
    inv_delete.add_argument("record_id", help="Invoice identifier.")
    inv_paid = invoices_sub.add_parser(
        "mark-paid",
        help="Mark an invoice as Paid.",
    )
    inv_paid.add_argument("record_id", help="Invoice identifier.")
    inv_paid.add_argument(
        "--payment-date",
        dest="payment_date",
        help="Payment date (YYYY-MM-DD). Defaults to the reference date.",
    )

    transactions_parser = subparsers.add_parser(
        "transactions",
        help="List, inspect and delete transactions.",
    )
    transactions_sub = transactions_parser.add_subparsers(
        dest="transactions_command",
        metavar="transactions-command",
    )
    transactions_sub.add_parser("list", help="List every transaction.")
    tx_show = transactions_sub.add_parser("show", help="Show one transaction in detail.")
    tx_show.add_argument("record_id", help="Transaction identifier.")
    tx_delete = transactions_sub.add_parser("delete", help="Delete a transaction.")
    tx_delete.add_argument("record_id", help="Transaction identifier.")

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises:
        ValueError: if the date format is invalid.
    """
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid date format: {value!r}. Expected YYYY-MM-DD.") from exc


def _load_config(args: argparse.Namespace) -> AppConfig:
    if args.config_path:
        return load_app_config(args.config_path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_app_config()
    return default_config()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ----------------------------------------------------------------------
# Dashboard sections
# ----------------------------------------------------------------------


def _summary_sections(dash: Dashboard, decimals: int) -> list[Section]:
    analytics = dash.invoices
    top_months = pd.DataFrame(
        [
            {"month": m.month, "date": m.date.isoformat(), "total": round(m.total, decimals)}
            for m in analytics.top_months
        ],
        columns=["month", "date", "total"],
    )
    return [
        ("Invoice KPIs", "kpis", kpis_to_dataframe(analytics, decimals)),
        (
            "Top clients by invoice count",
            "top_clients_by_count",
            client_totals_to_dataframe(analytics.top_clients_by_count, decimals),
        ),
        (
            "Top clients by value",
            "top_clients_by_value",
            client_totals_to_dataframe(analytics.top_clients_by_value, decimals),
        ),
        ("Top revenue months", "top_months", top_months),
        (
            "Month-over-month revenue changes",
            "revenue_changes",
            revenue_changes_to_dataframe(analytics.revenue_changes, decimals),
        ),
    ]


def _client_sections(dash: Dashboard, decimals: int) -> list[Section]:
    clients = dash.clients
    return [
        (
            "Late payers",
            "late_payers",
            late_payers_to_dataframe(clients.late_payment_clients, decimals),
        ),
        (
            "Churn risk",
            "churn_risk",
            churn_risk_to_dataframe(clients.churn_risk_clients, decimals),
        ),
        (
            "Most valuable clients",
            "valuable_clients",
            valuable_clients_to_dataframe(clients.valuable_clients, decimals),
        ),
    ]


def _forecast_sections(dash: Dashboard, decimals: int) -> list[Section]:
    return [
        ("Revenue forecast", "forecast", forecast_to_dataframe(dash.forecast, decimals)),
        (
            "Forecast metrics",
            "forecast_metrics",
            forecast_metrics_to_dataframe(dash.forecast, dash.subscription, decimals),
        ),
    ]


def _report_sections(dash: Dashboard, snapshot: Snapshot, decimals: int) -> list[Section]:
    amounts = pd.DataFrame(
        [
            {"status": status, "amount": round(value, decimals)}
            for status, value in status_amounts(snapshot.invoices).items()
        ],
        columns=["status", "amount"],
    )
    categories = pd.DataFrame(
        [
            {"category": name, "amount": round(value, decimals)}
            for name, value in expense_categories(snapshot.transactions)
        ],
        columns=["category", "amount"],
    )
    breakdown = dash.breakdown
    return [
        (
            "Financial summary",
            "financial_summary",
            summary_to_dataframe(dash.summary, decimals),
        ),
        (
            f"{breakdown.timeframe.capitalize()} breakdown {breakdown.year}",
            f"breakdown_{breakdown.timeframe}_{breakdown.year}",
            breakdown_to_dataframe(breakdown, decimals),
        ),
        ("Billed value by status", "status_amounts", amounts),
        ("Expenses by category", "expense_categories", categories),
    ]


def _render_sections(
    sections: Sequence[Section], display_mode: str, output_dir: Path
) -> None:
    """Print sections as tables and/or write them as timestamped CSV files."""
    if display_mode in {"table", "both"}:
        for title, _, df in sections:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("(no data)")
            else:
                print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for _, stem, df in sections:
            path = output_dir / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


# ----------------------------------------------------------------------
# Records subcommands
# ----------------------------------------------------------------------


def _handle_invoices_command(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
    snapshot: Snapshot,
    invoices_path: Optional[Path],
    config: AppConfig,
    ref: date,
) -> None:
    prefs = config.preferences
    subcmd = getattr(args, "invoices_command", None)

    if subcmd == "list":
        if not snapshot.invoices:
            print("No invoices found.")
            return
        df = invoices_to_display_dataframe(
            snapshot.invoices, prefs.currency, prefs.date_format
        )
        print(df.to_string(index=False))
        print()
        total = sum(inv.total for inv in snapshot.invoices)
        print(
            f"Total invoices: {len(snapshot.invoices)} | "
            f"Total billed: {format_currency(total, prefs.currency)}"
        )
    elif subcmd == "show":
        invoice = snapshot.get_invoice(args.record_id)
        if invoice is None:
            raise KeyError(f"Invoice {args.record_id} not found.")
        fmt = prefs.date_format
        print(f"Invoice {invoice.id}")
        print(f"  client        : {invoice.client_name} <{invoice.client_email}>")
        if invoice.client_address:
            print(f"  address       : {invoice.client_address}")
        print(f"  status        : {invoice.status.value}")
        print(f"  issued        : {format_date(invoice.issue_date, fmt)}")
        print(f"  due           : {format_date(invoice.due_date, fmt)}")
        print(f"  paid on       : {format_date(invoice.payment_date, fmt)}")
        print("  items         :")
        for item in invoice.items:
            print(
                f"    - {item.description}: {item.quantity:g} x "
                f"{format_currency(item.unit_price, prefs.currency)} = "
                f"{format_currency(item.amount, prefs.currency)}"
            )
        print(f"  subtotal      : {format_currency(invoice.subtotal, prefs.currency)}")
        print(
            f"  tax ({invoice.tax_rate:g}%)   : "
            f"{format_currency(invoice.tax_amount, prefs.currency)}"
        )
        print(f"  total         : {format_currency(invoice.total, prefs.currency)}")
        if invoice.notes:
            print(f"  notes         : {invoice.notes}")
    elif subcmd in {"delete", "mark-paid"}:
        if invoices_path is None:
            parser.error("No invoices file configured. Set [data].invoices or --invoices.")
        if subcmd == "delete":
            updated = snapshot.delete_invoice(args.record_id)
            message = f"Invoice {args.record_id} deleted."
        else:
            payment_date = _parse_optional_date(args.payment_date) or ref
            updated = snapshot.mark_invoice_paid(
                args.record_id, payment_date, updated_at=datetime.now()
            )
            message = (
                f"Invoice {args.record_id} marked as Paid on "
                f"{format_date(payment_date, prefs.date_format)}."
            )
        write_invoices(invoices_path, updated.invoices)
        print(message)
    else:
        print(
            "No invoices subcommand specified. "
            "Available subcommands are: 'list', 'show', 'delete', 'mark-paid'."
        )


def _handle_transactions_command(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
    snapshot: Snapshot,
    transactions_path: Optional[Path],
    config: AppConfig,
) -> None:
    prefs = config.preferences
    subcmd = getattr(args, "transactions_command", None)

    if subcmd == "list":
        if not snapshot.transactions:
            print("No transactions found.")
            return
        df = transactions_to_display_dataframe(
            snapshot.transactions, prefs.currency, prefs.date_format
        )
        print(df.to_string(index=False))
        print()
        print(f"Total transactions: {len(snapshot.transactions)}")
    elif subcmd == "show":
        t = snapshot.get_transaction(args.record_id)
        if t is None:
            raise KeyError(f"Transaction {args.record_id} not found.")
        print(f"Transaction {t.id}")
        print(f"  date          : {format_date(t.date, prefs.date_format)}")
        print(f"  description   : {t.description}")
        print(f"  category      : {t.category}")
        print(f"  account       : {t.account}")
        print(f"  type          : {t.type.value}")
        print(f"  amount        : {format_currency(t.amount, prefs.currency)}")
        print(f"  status        : {t.status}")
        if t.reference:
            print(f"  reference     : {t.reference}")
        if t.notes:
            print(f"  notes         : {t.notes}")
    elif subcmd == "delete":
        if transactions_path is None:
            parser.error(
                "No transactions file configured. Set [data].transactions or "
                "--transactions."
            )
        updated = snapshot.delete_transaction(args.record_id)
        write_transactions(transactions_path, updated.transactions)
        print(f"Transaction {args.record_id} deleted.")
    else:
        print(
            "No transactions subcommand specified. "
            "Available subcommands are: 'list', 'show', 'delete'."
        )


def _run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    # 1) Configuration and logging
    config = _load_config(args)
    _configure_logging(args.log_level or config.log_level)

    # 2) Snapshot paths: CLI overrides, then config
    invoices_path = Path(args.invoices_path) if args.invoices_path else config.data.invoices
    transactions_path = (
        Path(args.transactions_path)
        if args.transactions_path
        else config.data.transactions
    )
    invoices, transactions = load_snapshot(invoices_path, transactions_path)
    snapshot = Snapshot(invoices=invoices, transactions=transactions)

    # 3) Reference date
    ref = resolve_today(_parse_optional_date(args.today) or config.reference_date)

    command = getattr(args, "command", None)
    if command == "invoices":
        _handle_invoices_command(args, parser, snapshot, invoices_path, config, ref)
        return
    if command == "transactions":
        _handle_transactions_command(args, parser, snapshot, transactions_path, config)
        return

    if not snapshot.invoices and not snapshot.transactions:
        print(
            "Warning: no invoices or transactions loaded. Configure [data] or "
            "use --invoices / --transactions."
        )

    # 4) Analytics
    time_range = args.time_range or config.default_time_range
    dash = compute_dashboard(
        snapshot,
        time_range=time_range,
        today=ref,
        year=args.year,
        timeframe=args.timeframe,
    )

    window = resolve_window(dash.time_range, ref)
    start = window.start.isoformat() if window.start else "beginning"
    print(f"Applied time range: {window.label} ({start} → {ref.isoformat()})")
    print(
        f"Invoices in range: {dash.invoices.invoice_count} of {len(snapshot.invoices)} | "
        f"Transactions: {len(snapshot.transactions)}"
    )

    # 5) Sections selected by scope
    decimals = config.decimals
    scope = args.scope
    sections: list[Section] = []
    if scope in {"summary", "all"}:
        sections += _summary_sections(dash, decimals)
    if scope in {"clients", "all"}:
        sections += _client_sections(dash, decimals)
    if scope in {"forecast", "all"}:
        if not dash.forecast.has_forecast:
            print()
            print(f"Revenue forecast unavailable: {dash.forecast.message}.")
        sections += _forecast_sections(dash, decimals)
    if scope in {"reports", "all"}:
        sections += _report_sections(dash, snapshot, decimals)

    # 6) Render
    display_mode = args.display_mode or config.display_mode
    output_dir = Path(args.output_dir) if args.output_dir else config.output_dir
    _render_sections(sections, display_mode, output_dir)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the Billing Insight CLI.

    This function parses command-line arguments, loads the configuration and
    the invoice/transaction snapshot, then either runs a records subcommand
    or computes the dashboard and renders the selected scope as console
    tables and/or CSV files. Configuration, parsing and lookup errors are
    reported through ``parser.error`` (exit status 2).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"billing_insight version {__version__}")
        return

    try:
        _run(args, parser)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))
    except KeyError as exc:
        parser.error(str(exc.args[0]) if exc.args else str(exc))


if __name__ == "__main__":
    main()
