"""Text-line based receipt item extraction.

Items are recovered through tiers of increasingly permissive strategies:

1. ``_parse_line_item``: dotted-leader or whitespace-separated "name price".
2. ``_parse_line_item_aggressive``: last price-like token on the line.
3. ``_parse_line_item_fallback``: any number at all, only when tiers 1-2
   found nothing on the whole receipt.

Tiers 1 and 2 form a first-success-wins chain per line. The tier order is
part of the parser's contract: reordering changes which name/price pair a
noisy line produces.
"""

import logging
from collections.abc import Callable, Sequence
from decimal import Decimal

from billsplit.domain.bill import LineItemDraft

from ..normalization import convert_thai_digits
from ..parser_config import DEFAULT_PARSER_CONFIG, ParserConfig
from .common import (
    DOTTED_LINE_ITEM_PATTERN,
    NUMBER_TOKEN_PATTERN,
    NUMERIC_RUN_PATTERN,
    PRICE_PATTERN,
    SPACED_LINE_ITEM_PATTERN,
    build_draft,
    clean_price,
    is_footer_line,
    is_header_line,
    is_noise_line,
)
from .fields_parser import _is_summary_line

logger = logging.getLogger(__name__)

LineItemStrategy = Callable[[str, ParserConfig], LineItemDraft | None]


def _is_valid_item_name(name: str, config: ParserConfig) -> bool:
    """Names must have some length and not be a bare number (item code)."""
    return len(name) >= config.min_name_length and not name.isdigit()


def _parse_line_item(line: str, config: ParserConfig = DEFAULT_PARSER_CONFIG) -> LineItemDraft | None:
    """Parse "Pad Thai ..... 90.00" or "Pad Thai   90.00"."""
    if is_header_line(line, config.header_min_length) or is_footer_line(line):
        return None

    match = DOTTED_LINE_ITEM_PATTERN.match(line) or SPACED_LINE_ITEM_PATTERN.match(line)
    if not match:
        return None

    name = match.group(1).strip()
    if not _is_valid_item_name(name, config):
        return None

    price = clean_price(match.group(2))
    if price is None or price <= 0:
        return None

    return build_draft(name, price, line)


def _parse_line_item_aggressive(line: str, config: ParserConfig = DEFAULT_PARSER_CONFIG) -> LineItemDraft | None:
    """Take the last price-like token as the price and everything before it as the name."""
    matches = list(PRICE_PATTERN.finditer(line))
    if not matches:
        return None

    last = matches[-1]
    price = clean_price(last.group(0))
    if price is None or price <= 0:
        return None

    name = line[: last.start()].strip()
    name = name.rstrip(". \t").strip()
    if len(name) < config.min_name_length:
        name = f"Item ({line[: config.placeholder_prefix_length]}...)"

    return build_draft(name, price, line)


def _parse_line_item_fallback(line: str, config: ParserConfig = DEFAULT_PARSER_CONFIG) -> LineItemDraft | None:
    """Last resort: promote any decimal, or a large enough integer, to a price."""
    if is_noise_line(line, config.fallback_min_line_length):
        return None

    best_price: str | None = None
    for token in NUMBER_TOKEN_PATTERN.findall(line):
        normalized = convert_thai_digits(token)
        if "." in normalized or "," in normalized:
            best_price = token
            break
        if Decimal(normalized) > config.integer_price_threshold:
            best_price = f"{token}.00"

    if best_price is None:
        return None

    price = clean_price(best_price)
    if price is None or price <= 0:
        return None

    name = " ".join(NUMERIC_RUN_PATTERN.sub("", line).split())
    if len(name) < config.min_name_length:
        name = config.fallback_item_name

    return build_draft(name, price, line, infer_quantity=False)


# First success wins, in this order.
LINE_ITEM_STRATEGIES: tuple[LineItemStrategy, ...] = (
    _parse_line_item,
    _parse_line_item_aggressive,
)


def _first_success(
    line: str,
    strategies: Sequence[LineItemStrategy],
    config: ParserConfig,
) -> LineItemDraft | None:
    for strategy in strategies:
        item = strategy(line, config)
        if item is not None:
            return item
    return None


def _extract_items(
    lines: list[str],
    config: ParserConfig = DEFAULT_PARSER_CONFIG,
    strategies: Sequence[LineItemStrategy] = LINE_ITEM_STRATEGIES,
) -> list[LineItemDraft]:
    """
    Extract line items from receipt lines.

    Lines claimed by a summary label (subtotal/tax/tip/total) are never items.
    When the strategy chain yields nothing for the whole receipt, every
    remaining line is retried with the last-resort fallback.
    """
    candidates = [line for line in lines if not _is_summary_line(line)]

    items: list[LineItemDraft] = []
    for line in candidates:
        if len(line) < config.min_line_length:
            continue
        item = _first_success(line, strategies, config)
        if item is not None:
            logger.debug("Found line item: %s", item)
            items.append(item)

    if items:
        return items

    logger.debug("No items found, trying fallback parsing")
    for line in candidates:
        item = _parse_line_item_fallback(line, config)
        if item is not None:
            logger.debug("Fallback found item: %s", item)
            items.append(item)
    return items
