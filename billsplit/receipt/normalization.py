"""Text normalization for localized receipt numerals and currency glyphs.

Receipts from Thai merchants mix Thai digits (๐-๙), baht glyphs and
comma decimal separators with ASCII text. Everything downstream (parser
patterns, Decimal construction) expects ASCII digits and a dot separator.
"""

import re

THAI_DIGITS = "๐๑๒๓๔๕๖๗๘๙"
_THAI_TO_ASCII = str.maketrans({thai: str(ascii_digit) for ascii_digit, thai in enumerate(THAI_DIGITS)})

# Character class fragment matching both ASCII and Thai digits.
DIGIT_CLASS = r"\d๐-๙"

_PRICE_NOISE = re.compile(r"บาท|[฿$\s]")
_CURRENCY_GLYPHS = re.compile(r"[฿$]")
# "120 บาท" -> "120"; the word on its own is left alone.
_TRAILING_BAHT_WORD = re.compile(r"(?<=\d)(?:\s*บาท)+")
# Grouping comma before a dotted decimal: "1,250.00" -> "1250.00".
_THOUSANDS_COMMA = re.compile(r"(?<=\d),(?=\d{3}(?:,\d{3})*\.\d{2}(?!\d))")
# Decimal comma: "12,50" -> "12.50" but not bare groups like "1,234".
_DECIMAL_COMMA = re.compile(r"(?<=\d),(?=\d{2}(?!\d))")


def convert_thai_digits(text: str) -> str:
    """Replace Thai digit glyphs with ASCII digits."""
    return text.translate(_THAI_TO_ASCII)


def clean_and_normalize_price(price: str) -> str:
    """Normalize a single price token: ASCII digits, no currency, dot separator."""
    cleaned = convert_thai_digits(price)
    cleaned = _PRICE_NOISE.sub("", cleaned)
    cleaned = _THOUSANDS_COMMA.sub("", cleaned)
    return cleaned.replace(",", ".", 1)


def normalize_line(line: str) -> str:
    """Normalize one line of receipt text."""
    normalized = convert_thai_digits(line)
    normalized = _CURRENCY_GLYPHS.sub("", normalized)
    normalized = _TRAILING_BAHT_WORD.sub("", normalized)
    normalized = _DECIMAL_COMMA.sub(".", normalized)
    return _THOUSANDS_COMMA.sub("", normalized)


def normalize_text(text: str) -> str:
    """Normalize a whole block of OCR text line by line.

    Deterministic and idempotent: normalizing already-normalized text
    returns it unchanged.
    """
    if not text:
        return ""
    return "\n".join(normalize_line(line) for line in text.split("\n"))
