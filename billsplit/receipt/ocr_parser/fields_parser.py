"""Summary amount (subtotal/tax/tip/total) extraction helpers."""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal

from .common import PRICE_TOKEN, clean_price

logger = logging.getLogger(__name__)

# Optional rate printed between the label and the amount, e.g. "VAT 7% 7.00".
_RATE = r"(?:\s*\d+(?:\.\d+)?\s*%)?"

# Order matters: a line is claimed by the first pattern that matches, so
# "Subtotal" and "รวมย่อย" are tested before the bare "total"/"รวม" labels.
SUMMARY_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "subtotal",
        re.compile(
            rf"(?:subtotal|sub total|sub-total|รวมย่อย|ยอดย่อย)\s*:?\s*({PRICE_TOKEN})",
            re.IGNORECASE,
        ),
    ),
    (
        "tax",
        re.compile(
            rf"(?:tax|hst|gst|sales tax|vat|ภาษี|ภ\.ม\.){_RATE}\s*:?\s*({PRICE_TOKEN})",
            re.IGNORECASE,
        ),
    ),
    (
        "tip",
        re.compile(
            rf"(?:tip|gratuity|service charge|เบี้ยเพิ่ม|ค่าบริการ){_RATE}\s*:?\s*({PRICE_TOKEN})",
            re.IGNORECASE,
        ),
    ),
    (
        "total",
        re.compile(
            rf"(?:total|amount due|balance|grand total|รวม|ยอดรวม|ยอดสุทธิ)\s*:?\s*({PRICE_TOKEN})",
            re.IGNORECASE,
        ),
    ),
)


@dataclass
class SummaryAmounts:
    """Labelled amounts found on the receipt; None when not printed."""

    subtotal: Decimal | None = None
    tax: Decimal | None = None
    tip: Decimal | None = None
    total: Decimal | None = None


def _match_summary_line(line: str) -> tuple[str, Decimal | None] | None:
    """Return (field, amount) for the first summary label the line carries."""
    for field_name, pattern in SUMMARY_PATTERNS:
        match = pattern.search(line)
        if match:
            return field_name, clean_price(match.group(1))
    return None


def _is_summary_line(line: str) -> bool:
    """Return True if any summary pattern claims this line."""
    return _match_summary_line(line) is not None


def _extract_summary_amounts(lines: list[str]) -> SummaryAmounts:
    """
    Extract labelled summary amounts from receipt lines.

    Each line feeds at most one field. The first line found for a field wins;
    later lines with the same label never overwrite it.
    """
    amounts = SummaryAmounts()
    for line in lines:
        matched = _match_summary_line(line)
        if matched is None:
            continue
        field_name, amount = matched
        if amount is None or getattr(amounts, field_name) is not None:
            continue
        setattr(amounts, field_name, amount)
        logger.debug("Found %s: %s", field_name, amount)
    return amounts
