"""Composable OCR receipt parser components."""

from .fields_parser import SummaryAmounts, _extract_summary_amounts, _is_summary_line
from .items_text_parser import (
    LINE_ITEM_STRATEGIES,
    _extract_items,
    _parse_line_item,
    _parse_line_item_aggressive,
    _parse_line_item_fallback,
)

__all__ = [
    "LINE_ITEM_STRATEGIES",
    "SummaryAmounts",
    "_extract_items",
    "_extract_summary_amounts",
    "_is_summary_line",
    "_parse_line_item",
    "_parse_line_item_aggressive",
    "_parse_line_item_fallback",
]
