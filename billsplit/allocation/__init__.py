"""Decimal-exact allocation engine.

Usage:
    from billsplit.allocation import create_equal_assignments, calculate_person_totals

    assignments = create_equal_assignments(line_items, people)
    people = calculate_person_totals(line_items, assignments, people, tax, tip)

Nothing here depends on the receipt parser.
"""

from billsplit.allocation.money import (
    MONEY_CONTEXT,
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
from billsplit.allocation.split import (
    calculate_assignment_amounts,
    calculate_bill_summary,
    calculate_person_totals,
    calculate_subtotal,
    calculate_tax,
    calculate_total,
    create_equal_assignments,
    line_item_total,
    reconcile,
    validate_assignments,
)

__all__ = [
    "MONEY_CONTEXT",
    "add",
    "calculate_assignment_amounts",
    "calculate_bill_summary",
    "calculate_person_totals",
    "calculate_subtotal",
    "calculate_tax",
    "calculate_total",
    "create_equal_assignments",
    "decimal_equals",
    "divide",
    "format_currency",
    "line_item_total",
    "make_context",
    "multiply",
    "parse_currency",
    "reconcile",
    "round2",
    "round4",
    "subtract",
    "to_decimal",
    "validate_assignments",
]
