from datetime import date
from pathlib import Path

import pytest

from billing_insight.config import AppConfig, default_config, load_app_config

FULL_CONFIG = """
[data]
invoices = "data/invoices.json"
transactions = "data/transactions.csv"

[preferences]
currency = "eur"
date_format = "DD/MM/YYYY"

[analytics]
default_time_range = "last-6-months"
reference_date = "2023-08-01"

[display]
mode = "both"
decimals = 1
output_dir = "out"

[logging]
level = "debug"
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "billing_insight_config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_full_config_resolves_relative_paths(tmp_path: Path) -> None:
    config = load_app_config(str(_write(tmp_path, FULL_CONFIG)))

    assert config.data.invoices == (tmp_path / "data" / "invoices.json").resolve()
    assert config.data.transactions == (tmp_path / "data" / "transactions.csv").resolve()
    assert config.preferences.currency == "EUR"
    assert config.preferences.date_format == "DD/MM/YYYY"
    assert config.default_time_range == "6m"
    assert config.reference_date == date(2023, 8, 1)
    assert config.display_mode == "both"
    assert config.decimals == 1
    assert config.output_dir == (tmp_path / "out").resolve()
    assert config.log_level == "DEBUG"


def test_empty_config_uses_defaults(tmp_path: Path) -> None:
    config = load_app_config(str(_write(tmp_path, "")))

    assert config.data.invoices is None
    assert config.preferences.currency == "USD"
    assert config.preferences.date_format == "MM/DD/YYYY"
    assert config.default_time_range == "all"
    assert config.reference_date is None
    assert config.display_mode == "table"
    assert config.decimals == 2
    assert config.log_level == "WARNING"


def test_toml_date_literal_is_accepted(tmp_path: Path) -> None:
    config = load_app_config(
        str(_write(tmp_path, "[analytics]\nreference_date = 2023-09-15\n"))
    )
    assert config.reference_date == date(2023, 9, 15)


def test_default_config() -> None:
    config = default_config()

    assert isinstance(config, AppConfig)
    assert config.data.transactions is None
    assert config.default_time_range == "all"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))


def test_default_path_is_read_from_working_directory(tmp_path: Path, monkeypatch) -> None:
    _write(tmp_path, '[preferences]\ncurrency = "GBP"\n')
    monkeypatch.chdir(tmp_path)

    assert load_app_config().preferences.currency == "GBP"


@pytest.mark.parametrize(
    "text, message",
    [
        ("[data\n", "Failed to parse"),
        ('[preferences]\ndate_format = "YYYY/MM/DD"\n', "date_format"),
        ('[analytics]\ndefault_time_range = "3m"\n', "time range"),
        ('[analytics]\nreference_date = "01/08/2023"\n', "reference_date"),
        ('[display]\nmode = "html"\n', "mode"),
        ('[display]\ndecimals = "two"\n', "decimals"),
        ('[logging]\nlevel = "LOUD"\n', "level"),
        ('data = "oops"\n', r"\[data\]"),
    ],
)
def test_invalid_values_raise_value_error(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        load_app_config(str(_write(tmp_path, text)))
