# Billing Insight - Invoice & cash-flow analytics for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Billing Insight.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating user preferences (currency, date format) and analytics options,
- exposing typed dataclasses used by the rest of the application.
"""

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional

from .periods import parse_time_range
from .views import DATE_FORMATS, DEFAULT_DATE_FORMAT

DEFAULT_CONFIG_FILE = "billing_insight_config.toml"
DISPLAY_MODES: tuple[str, ...] = ("table", "csv", "both")
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DataPaths:
    """Location of the invoice and transaction snapshot files."""

    invoices: Optional[Path] = None
    transactions: Optional[Path] = None


@dataclass(frozen=True)
class Preferences:
    """User display preferences."""

    currency: str = "USD"
    date_format: str = DEFAULT_DATE_FORMAT


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Billing Insight.

    This aggregates:
    - where the snapshot files live,
    - the user's currency and date format,
    - the default dashboard time range and an optional fixed reference date,
    - display options for tables and CSV exports,
    - the logging level.
    """

    data: DataPaths = field(default_factory=DataPaths)
    preferences: Preferences = field(default_factory=Preferences)
    default_time_range: str = "all"
    reference_date: Optional[date] = None
    display_mode: str = "table"
    decimals: int = 2
    output_dir: Path = Path("data/output")
    log_level: str = "WARNING"


def default_config() -> AppConfig:
    """Return a configuration with every option at its default value."""
    return AppConfig()


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Invalid [{name}] section in config, expected a table.")
    return value


def _parse_reference_date(raw_value: Any) -> Optional[date]:
    if raw_value is None or raw_value == "":
        return None
    if isinstance(raw_value, date):
        return raw_value
    try:
        return date.fromisoformat(str(raw_value))
    except ValueError as exc:
        raise ValueError(
            f"Invalid [analytics].reference_date: {raw_value!r}, "
            "expected YYYY-MM-DD format."
        ) from exc


def _parse_preferences(section: Mapping[str, Any]) -> Preferences:
    currency = str(section.get("currency") or "USD").strip().upper()
    date_format = str(section.get("date_format") or DEFAULT_DATE_FORMAT)
    if date_format not in DATE_FORMATS:
        raise ValueError(
            f"Invalid [preferences].date_format: {date_format!r}. "
            "Expected one of: " + ", ".join(DATE_FORMATS)
        )
    return Preferences(currency=currency, date_format=date_format)


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Billing Insight configuration from a TOML file.

    Expected sections in the TOML file
    ----------------------------------
    [data]
        ``invoices`` and ``transactions`` snapshot paths.

    [preferences]
        ``currency`` (ISO code) and ``date_format``
        ('MM/DD/YYYY', 'DD/MM/YYYY' or 'YYYY-MM-DD').

    [analytics]
        ``default_time_range`` ('all', '6m', '1y') and an optional
        ``reference_date`` used instead of the system date.

    [display]
        ``mode`` ('table', 'csv', 'both'), ``decimals`` and ``output_dir``.

    [logging]
        ``level`` (standard logging level name).

    Every section is optional. All file paths are resolved relative to the
    directory of the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML file; defaults to ``billing_insight_config.toml``
        in the working directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    def _resolve_optional(rel: Any) -> Optional[Path]:
        if not rel:
            return None
        return (base_dir / str(rel)).resolve()

    # 1) Data files
    data_section = _section(raw, "data")
    data = DataPaths(
        invoices=_resolve_optional(data_section.get("invoices")),
        transactions=_resolve_optional(data_section.get("transactions")),
    )

    # 2) Preferences
    preferences = _parse_preferences(_section(raw, "preferences"))

    # 3) Analytics options
    analytics_section = _section(raw, "analytics")
    time_range = parse_time_range(analytics_section.get("default_time_range") or "all")
    reference_date = _parse_reference_date(analytics_section.get("reference_date"))

    # 4) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid [display].mode: {display_mode!r}. "
            "Expected one of: " + ", ".join(DISPLAY_MODES)
        )
    raw_decimals = display_section.get("decimals", 2)
    try:
        decimals = int(raw_decimals)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid [display].decimals: {raw_decimals!r}. Expected an integer."
        ) from exc
    output_dir = _resolve_optional(display_section.get("output_dir")) or (
        base_dir / "data" / "output"
    )

    # 5) Logging
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid [logging].level: {log_level!r}. "
            "Expected one of: " + ", ".join(LOG_LEVELS)
        )

    return AppConfig(
        data=data,
        preferences=preferences,
        default_time_range=time_range,
        reference_date=reference_date,
        display_mode=display_mode,
        decimals=decimals,
        output_dir=output_dir,
        log_level=log_level,
    )
