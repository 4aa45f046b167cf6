"""Runtime loader for receipt parser configuration.

Example file:

    [parser]
    integer_price_threshold = 20
    fallback_item_name = "รายการ"

The path comes from the ``path`` argument or BILLSPLIT_PARSER_CONFIG.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

from billsplit.receipt.parser_config import DEFAULT_PARSER_CONFIG, ParserConfig, build_parser_config
from billsplit.runtime.logging import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "BILLSPLIT_PARSER_CONFIG"


def _load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not path.exists():
        logger.warning("Parser config not found: %s", path)
        return {}

    with open(path, "rb") as f:
        data = tomllib.load(f, parse_float=Decimal)
    return data if isinstance(data, dict) else {}


def load_parser_config(path: Path | str | None = None) -> ParserConfig:
    """Load parser configuration from TOML, falling back to defaults."""
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
        if not env_path:
            return DEFAULT_PARSER_CONFIG
        path = env_path

    config = build_parser_config(_load_toml(Path(path)))
    logger.debug("Loaded parser config from %s: %s", path, config)
    return config
