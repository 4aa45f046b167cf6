"""Tuning knobs for the receipt text parser.

The parser heuristics (minimum line lengths, the integer-as-price threshold,
placeholder names) are empirically tuned for Thai/English restaurant receipts.
Deployments can override them per locale; see
``billsplit.runtime.parser_config`` for the TOML loader.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Any

logger = logging.getLogger(__name__)

_INT_FIELDS = (
    "min_text_length",
    "min_line_length",
    "min_name_length",
    "fallback_min_line_length",
    "integer_price_threshold",
    "header_min_length",
    "placeholder_prefix_length",
)


@dataclass(frozen=True)
class ParserConfig:
    """Heuristic thresholds used by the receipt text parser."""

    # Inputs shorter than this skip every pass and synthesize one item.
    min_text_length: int = 5
    # Primary/aggressive passes ignore lines shorter than this.
    min_line_length: int = 3
    min_name_length: int = 2
    fallback_min_line_length: int = 4
    # Last-resort pass: whole numbers above this are promoted to prices.
    integer_price_threshold: int = 5
    # All-caps lines longer than this are treated as headers.
    header_min_length: int = 5
    placeholder_prefix_length: int = 20
    short_text_item_name: str = "Receipt Item"
    fallback_item_name: str = "Menu Item"
    reconcile_tolerance: Decimal = Decimal("0.01")

    def __post_init__(self) -> None:
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"ParserConfig.{name} must be a non-negative integer, got {value!r}")
        if not isinstance(self.reconcile_tolerance, Decimal) or self.reconcile_tolerance < 0:
            raise ValueError(
                f"ParserConfig.reconcile_tolerance must be a non-negative Decimal, got {self.reconcile_tolerance!r}"
            )
        for name in ("short_text_item_name", "fallback_item_name"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"ParserConfig.{name} must be a non-empty string")


DEFAULT_PARSER_CONFIG = ParserConfig()


def build_parser_config(raw: Mapping[str, Any] | None = None) -> ParserConfig:
    """Build a ParserConfig from the ``[parser]`` table of an in-memory config."""
    section = (raw or {}).get("parser", {})
    if not isinstance(section, Mapping):
        raise ValueError("[parser] must be a table")

    known = {f.name for f in fields(ParserConfig)}
    overrides: dict[str, Any] = {}
    for key, value in section.items():
        if key not in known:
            logger.warning("Ignoring unknown parser config key: %s", key)
            continue
        if key == "reconcile_tolerance":
            try:
                value = Decimal(str(value))
            except InvalidOperation as exc:
                raise ValueError(f"Invalid reconcile_tolerance: {value!r}") from exc
        overrides[key] = value

    if not overrides:
        return DEFAULT_PARSER_CONFIG
    return ParserConfig(**overrides)
