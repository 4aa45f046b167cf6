"""Shared patterns and helpers for OCR receipt text parsing."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from billsplit.domain.bill import LineItemDraft

from ..normalization import DIGIT_CLASS, clean_and_normalize_price, convert_thai_digits

CENTS = Decimal("0.01")
# Tokens at or above this are misread codes or barcodes, not prices.
MAX_PRICE = Decimal("1000000000000")
# Longer digit runs next to an "x" are item codes, not counts.
MAX_QUANTITY_DIGITS = 4

# "$12.34", "12.34", "฿12,34", "๑๒.๓๔"
PRICE_TOKEN = rf"[฿$]?\s*[{DIGIT_CLASS}]+[.,][{DIGIT_CLASS}]{{2}}|[{DIGIT_CLASS}]+[.,][{DIGIT_CLASS}]{{2}}\s*[฿$]?"
PRICE_PATTERN = re.compile(PRICE_TOKEN)

# "name ..... 12.00"
DOTTED_LINE_ITEM_PATTERN = re.compile(rf"^(.+?)\s*[.\s]{{2,}}\s*({PRICE_TOKEN})\s*$")
# "name   12.00"
SPACED_LINE_ITEM_PATTERN = re.compile(rf"^(.+?)\s+({PRICE_TOKEN})\s*$")

# "2 x Pad Thai", "Pad Thai x2", "Coke × 3"
QUANTITY_PREFIX_PATTERN = re.compile(rf"^([{DIGIT_CLASS}]+)\s*[x×](?![A-Za-z])\s*(.+)$", re.IGNORECASE)
QUANTITY_SUFFIX_PATTERN = re.compile(rf"^(.+?)\s+[x×]\s*([{DIGIT_CLASS}]+)$", re.IGNORECASE)

DATE_PATTERN = re.compile(rf"[{DIGIT_CLASS}]{{1,2}}[/\-][{DIGIT_CLASS}]{{1,2}}[/\-][{DIGIT_CLASS}]{{2,4}}")
# Store names and section banners: capitals (or Thai) with light punctuation only.
HEADER_ONLY_PATTERN = re.compile(r"^[A-Zก-๛\s&'.-]+$")
ADDRESS_PATTERN = re.compile(r"\d+\s+[A-Za-z\s]+(?:st|ave|rd|blvd|drive|street)\b", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"\(\d{3}\)\s*\d{3}-\d{4}|\d{3}-\d{3}-\d{4}")
FOOTER_TEXT_PATTERN = re.compile(r"thank you|thanks|visit|welcome|receipt", re.IGNORECASE)
WEB_CONTACT_PATTERN = re.compile(r"www\.|\.com|@")
BOILERPLATE_PATTERN = re.compile(r"receipt|thank|welcome", re.IGNORECASE)
NUMERIC_ONLY_PATTERN = re.compile(r"^[\d\s.,-]+$")
DOTS_ONLY_PATTERN = re.compile(r"^[.\s-]+$")
NUMBER_TOKEN_PATTERN = re.compile(rf"[{DIGIT_CLASS}]+[.,][{DIGIT_CLASS}]{{2}}|[{DIGIT_CLASS}]+")
NUMERIC_RUN_PATTERN = re.compile(rf"[{DIGIT_CLASS}.,฿$]+")


def clean_price(price: str) -> Decimal | None:
    """Normalize a price token to a two-decimal Decimal; None if unusable."""
    cleaned = clean_and_normalize_price(price)
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0 or value >= MAX_PRICE:
        return None
    try:
        return value.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def is_header_line(line: str, min_length: int = 5) -> bool:
    """Return True if the line looks like a store name, address or phone line."""
    if line == line.upper() and len(line) > min_length:
        return True
    if ADDRESS_PATTERN.search(line):
        return True
    if PHONE_PATTERN.search(line):
        return True
    return False


def is_footer_line(line: str) -> bool:
    """Return True for thank-you banners and web/email contact lines."""
    return bool(FOOTER_TEXT_PATTERN.search(line) or WEB_CONTACT_PATTERN.search(line))


def is_noise_line(line: str, min_length: int = 4) -> bool:
    """Return True for lines the last-resort pass must never turn into items."""
    return bool(
        len(line) < min_length
        or NUMERIC_ONLY_PATTERN.match(line)
        or DOTS_ONLY_PATTERN.match(line)
        or HEADER_ONLY_PATTERN.match(line)
        or DATE_PATTERN.search(line)
        or PHONE_PATTERN.search(line)
        or WEB_CONTACT_PATTERN.search(line)
        or BOILERPLATE_PATTERN.search(line)
    )


def _quantity_from_digits(digits: str) -> int:
    """Parse a quantity digit run; 0 when it is not a usable count."""
    if len(digits) > MAX_QUANTITY_DIGITS:
        return 0
    return int(convert_thai_digits(digits))


def extract_quantity(name: str) -> tuple[str, int]:
    """Split "2 x Pad Thai" / "Pad Thai x2" into (name, quantity).

    Digit runs too long to be a count leave the name untouched with quantity 1.
    """
    match = QUANTITY_PREFIX_PATTERN.match(name)
    if match:
        quantity = _quantity_from_digits(match.group(1))
        if quantity > 0:
            return match.group(2).strip(), quantity

    match = QUANTITY_SUFFIX_PATTERN.match(name)
    if match:
        quantity = _quantity_from_digits(match.group(2))
        if quantity > 0:
            return match.group(1).strip(), quantity

    return name, 1


def build_draft(name: str, price: Decimal, line: str, *, infer_quantity: bool = True) -> LineItemDraft:
    """Create a parser-originated line item; unit price is derived, never parsed."""
    quantity = 1
    if infer_quantity:
        name, quantity = extract_quantity(name)
    unit_price = (price / quantity).quantize(CENTS, rounding=ROUND_HALF_UP) if quantity != 1 else price
    return LineItemDraft(
        name=name,
        quantity=quantity,
        unit_price=unit_price,
        total_price=price,
        extracted_text=line,
    )
