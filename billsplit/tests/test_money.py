from decimal import ROUND_HALF_EVEN, Decimal

import pytest

from billsplit.allocation.money import (
    add,
    decimal_equals,
    divide,
    format_currency,
    make_context,
    multiply,
    parse_currency,
    round2,
    round4,
    subtract,
    to_decimal,
)


def test_round2_uses_half_up() -> None:
    assert round2("2.675") == Decimal("2.68")
    assert round2("0.125") == Decimal("0.13")
    assert round2("-0.125") == Decimal("-0.13")
    assert str(round2(5)) == "5.00"


def test_round4_quantizes_shares() -> None:
    assert round4("0.33335") == Decimal("0.3334")
    assert str(round4(1)) == "1.0000"


def test_arithmetic_is_exact_where_floats_drift() -> None:
    assert add("0.1", "0.2") == Decimal("0.30")
    assert subtract("10.00", "3.33") == Decimal("6.67")
    assert multiply("19.99", "3") == Decimal("59.97")
    assert divide("10.00", "3") == Decimal("3.33")


def test_divide_by_zero_raises() -> None:
    with pytest.raises(ZeroDivisionError):
        divide("1.00", "0")
    with pytest.raises(ZeroDivisionError):
        divide("0", "0.00")


def test_floats_are_rejected() -> None:
    with pytest.raises(TypeError):
        to_decimal(0.1)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        add("1.00", 2.5)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        to_decimal(True)  # type: ignore[arg-type]


def test_malformed_values_become_zero() -> None:
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("abc") == Decimal("0")
    assert to_decimal("NaN") == Decimal("0")
    assert to_decimal(" 12.50 ") == Decimal("12.50")


def test_make_context_validates_configuration() -> None:
    assert make_context(10, ROUND_HALF_EVEN).prec == 10
    with pytest.raises(ValueError):
        make_context(0)
    with pytest.raises(ValueError):
        make_context(20, "ROUND_SIDEWAYS")


def test_round2_honours_explicit_context() -> None:
    banker = make_context(20, ROUND_HALF_EVEN)

    assert round2("0.125", banker) == Decimal("0.12")
    assert round2("0.125") == Decimal("0.13")


def test_decimal_equals_tolerance_is_inclusive() -> None:
    assert decimal_equals("10.00", "10.01")
    assert not decimal_equals("10.00", "10.02")
    assert decimal_equals("10.00", "10.05", tolerance="0.05")


def test_currency_round_trip() -> None:
    assert format_currency("12.5") == "$12.50"
    assert format_currency(180, "฿") == "฿180.00"
    assert parse_currency("฿1,234.50") == Decimal("1234.50")
    assert parse_currency("") == Decimal("0.00")
    assert parse_currency("free") == Decimal("0.00")
