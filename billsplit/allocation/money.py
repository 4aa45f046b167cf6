"""Exact decimal arithmetic for bill splitting.

All money flows through ``decimal.Decimal`` evaluated in MONEY_CONTEXT
(20 significant digits, ROUND_HALF_UP). Public monetary results are
quantized to 2 decimal places, share percentages to 4. Binary floats are
rejected outright.

Operations use Context methods rather than the thread-local decimal
context, so callers' own decimal settings never leak into results and the
functions are safe to call from any thread.
"""

import decimal
import logging
import re
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 20
DEFAULT_ROUNDING = ROUND_HALF_UP

CENTS = Decimal("0.01")
SHARE_QUANTUM = Decimal("0.0001")
ZERO = Decimal("0.00")
ONE = Decimal("1")
# Input boundaries reject magnitudes at or above these; line totals built
# from values below them stay inside MONEY_CONTEXT.
MAX_AMOUNT = Decimal("1000000000000")
MAX_QUANTITY = Decimal("10000")

_ROUNDING_MODES = frozenset(
    {
        decimal.ROUND_CEILING,
        decimal.ROUND_DOWN,
        decimal.ROUND_FLOOR,
        decimal.ROUND_HALF_DOWN,
        decimal.ROUND_HALF_EVEN,
        decimal.ROUND_HALF_UP,
        decimal.ROUND_UP,
        decimal.ROUND_05UP,
    }
)

_NON_NUMERIC = re.compile(r"[^0-9.-]")

Amount = Decimal | str | int


def make_context(precision: int = DEFAULT_PRECISION, rounding: str = DEFAULT_ROUNDING) -> Context:
    """Build a decimal context for money arithmetic.

    Raises:
        ValueError: precision below 1 or an unknown rounding mode. These are
            programming errors, not data errors.
    """
    if not isinstance(precision, int) or isinstance(precision, bool) or precision < 1:
        raise ValueError(f"Decimal precision must be a positive integer, got {precision!r}")
    if rounding not in _ROUNDING_MODES:
        raise ValueError(f"Unknown decimal rounding mode: {rounding!r}")
    return Context(prec=precision, rounding=rounding, traps=[InvalidOperation, decimal.DivisionByZero])


MONEY_CONTEXT = make_context()


def to_decimal(value: Amount | None) -> Decimal:
    """Coerce an amount to Decimal; malformed strings and None become 0.00.

    Raises:
        TypeError: for floats (and bools). Money never travels as binary float.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Monetary values must be Decimal, str or int, not {type(value).__name__}")
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    if not isinstance(value, str):
        raise TypeError(f"Monetary values must be Decimal, str or int, not {type(value).__name__}")

    try:
        parsed = Decimal(value.strip())
    except InvalidOperation:
        logger.debug("Malformed decimal string %r; using 0.00", value)
        return ZERO
    if not parsed.is_finite():
        logger.debug("Non-finite decimal string %r; using 0.00", value)
        return ZERO
    return parsed


def round2(value: Amount, context: Context = MONEY_CONTEXT) -> Decimal:
    """Quantize to cents with the context's rounding rule."""
    return to_decimal(value).quantize(CENTS, rounding=context.rounding, context=context)


def round4(value: Amount, context: Context = MONEY_CONTEXT) -> Decimal:
    """Quantize to four decimal places (share percentages)."""
    return to_decimal(value).quantize(SHARE_QUANTUM, rounding=context.rounding, context=context)


def add(a: Amount, b: Amount, context: Context = MONEY_CONTEXT) -> Decimal:
    return round2(context.add(to_decimal(a), to_decimal(b)), context)


def subtract(a: Amount, b: Amount, context: Context = MONEY_CONTEXT) -> Decimal:
    return round2(context.subtract(to_decimal(a), to_decimal(b)), context)


def multiply(a: Amount, b: Amount, context: Context = MONEY_CONTEXT) -> Decimal:
    return round2(context.multiply(to_decimal(a), to_decimal(b)), context)


def divide(a: Amount, b: Amount, context: Context = MONEY_CONTEXT) -> Decimal:
    """Divide and round to cents.

    Raises:
        ZeroDivisionError: when b is zero; callers decide what an empty
            divisor means.
    """
    divisor = to_decimal(b)
    if divisor.is_zero():
        raise ZeroDivisionError(f"Cannot divide {a!r} by zero")
    return round2(context.divide(to_decimal(a), divisor), context)


def decimal_equals(a: Amount, b: Amount, tolerance: Amount = "0.01") -> bool:
    """Compare two amounts within a tolerance (inclusive)."""
    diff = MONEY_CONTEXT.subtract(to_decimal(a), to_decimal(b)).copy_abs()
    return diff <= to_decimal(tolerance)


def format_currency(amount: Amount, currency: str = "$") -> str:
    """Render an amount for display, e.g. "$12.50" or "฿180.00"."""
    return f"{currency}{round2(amount)}"


def parse_currency(value: str) -> Decimal:
    """Parse a display string back into cents; garbage becomes 0.00."""
    cleaned = _NON_NUMERIC.sub("", value or "")
    return round2(cleaned or "0")
