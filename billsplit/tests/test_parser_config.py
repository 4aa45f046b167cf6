from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
from _pytest.monkeypatch import MonkeyPatch

from billsplit.receipt.parser_config import DEFAULT_PARSER_CONFIG, ParserConfig, build_parser_config
from billsplit.runtime.parser_config import CONFIG_ENV_VAR, load_parser_config


def test_defaults_match_tuned_thresholds() -> None:
    config = ParserConfig()

    assert config.min_text_length == 5
    assert config.integer_price_threshold == 5
    assert config.min_name_length == 2
    assert config.reconcile_tolerance == Decimal("0.01")


def test_invalid_values_raise() -> None:
    with pytest.raises(ValueError):
        ParserConfig(min_line_length=-1)
    with pytest.raises(ValueError):
        ParserConfig(integer_price_threshold=True)
    with pytest.raises(ValueError):
        ParserConfig(fallback_item_name="  ")


def test_build_parser_config_ignores_unknown_keys() -> None:
    config = build_parser_config({"parser": {"integer_price_threshold": 20, "colour": "blue"}})

    assert config.integer_price_threshold == 20
    assert config.min_text_length == DEFAULT_PARSER_CONFIG.min_text_length


def test_build_parser_config_without_overrides_returns_defaults() -> None:
    assert build_parser_config(None) is DEFAULT_PARSER_CONFIG
    assert build_parser_config({"other": {}}) is DEFAULT_PARSER_CONFIG


def test_build_parser_config_rejects_non_table() -> None:
    with pytest.raises(ValueError):
        build_parser_config({"parser": "strict"})


def test_load_parser_config_from_toml(tmp_path: Path) -> None:
    path = tmp_path / "parser.toml"
    path.write_text('[parser]\nreconcile_tolerance = 0.05\nfallback_item_name = "รายการ"\n', encoding="utf-8")

    config = load_parser_config(path)

    assert config.reconcile_tolerance == Decimal("0.05")
    assert config.fallback_item_name == "รายการ"


def test_load_parser_config_missing_file_uses_defaults(tmp_path: Path) -> None:
    assert load_parser_config(tmp_path / "absent.toml") == DEFAULT_PARSER_CONFIG


def test_load_parser_config_reads_env_var(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    path = tmp_path / "parser.toml"
    path.write_text("[parser]\nmin_line_length = 6\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert load_parser_config().min_line_length == 6


def test_load_parser_config_without_env_var(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    assert load_parser_config() is DEFAULT_PARSER_CONFIG


def test_malformed_toml_propagates(tmp_path: Path) -> None:
    path = tmp_path / "parser.toml"
    path.write_text("[parser\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_parser_config(path)
