"""Bill splitting: line totals, per-person allocation and assignment checks.

Every function here is pure. Inputs are never mutated; updated records are
returned as new dataclass instances.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from billsplit.domain.bill import BillSummary, ItemAssignment, LineItem, Person, ValidationResult

from .money import (
    MONEY_CONTEXT,
    ONE,
    ZERO,
    Amount,
    add,
    decimal_equals,
    multiply,
    round2,
    round4,
    to_decimal,
)

logger = logging.getLogger(__name__)

Quantity = int | Decimal | str | float


def _to_quantity(quantity: Quantity) -> Decimal:
    """Quantities are counts or weights, not money; floats go through their repr."""
    if isinstance(quantity, bool):
        raise TypeError("Quantity must be numeric, not bool")
    if isinstance(quantity, float):
        return Decimal(repr(quantity))
    return to_decimal(quantity)


def line_item_total(quantity: Quantity, unit_price: Amount) -> Decimal:
    """round2(quantity * unit_price)."""
    return round2(MONEY_CONTEXT.multiply(_to_quantity(quantity), to_decimal(unit_price)))


def calculate_subtotal(line_items: Iterable[LineItem]) -> Decimal:
    """Sum of line totals. Exact addition, so item order never matters."""
    total = ZERO
    for item in line_items:
        total = MONEY_CONTEXT.add(total, to_decimal(item.total_price))
    return round2(total)


def calculate_tax(subtotal: Amount, tax_rate: Amount) -> Decimal:
    return multiply(subtotal, tax_rate)


def calculate_total(subtotal: Amount, tax_amount: Amount, tip_amount: Amount) -> Decimal:
    return add(add(subtotal, tax_amount), tip_amount)


def _zeroed(person: Person) -> Person:
    return replace(person, subtotal=ZERO, tax_amount=ZERO, tip_amount=ZERO, total_owed=ZERO)


def calculate_person_totals(
    line_items: Sequence[LineItem],
    assignments: Sequence[ItemAssignment],
    people: Sequence[Person],
    tax_amount: Amount,
    tip_amount: Amount,
) -> list[Person]:
    """
    Calculate how much each person owes.

    Tax and tip are allocated in proportion to each person's share of the
    item subtotal, so whoever ordered the costlier items carries more of them.
    With no assignments, or a zero subtotal, everyone owes 0.00.
    """
    subtotal = to_decimal(calculate_subtotal(line_items))

    if not assignments or subtotal == 0:
        return [_zeroed(person) for person in people]

    ctx = MONEY_CONTEXT
    tax = to_decimal(tax_amount)
    tip = to_decimal(tip_amount)

    owed_by_person: dict[str, Decimal] = {}
    for assignment in assignments:
        current = owed_by_person.get(assignment.person_id, ZERO)
        owed_by_person[assignment.person_id] = ctx.add(current, to_decimal(assignment.assigned_amount))

    updated: list[Person] = []
    for person in people:
        person_subtotal = owed_by_person.get(person.id, ZERO)
        percentage = ctx.divide(person_subtotal, subtotal)
        person_tax = ctx.multiply(tax, percentage)
        person_tip = ctx.multiply(tip, percentage)
        person_total = ctx.add(ctx.add(person_subtotal, person_tax), person_tip)
        updated.append(
            replace(
                person,
                subtotal=round2(person_subtotal),
                tax_amount=round2(person_tax),
                tip_amount=round2(person_tip),
                total_owed=round2(person_total),
            )
        )
    return updated


def calculate_assignment_amounts(
    line_items: Sequence[LineItem],
    assignments: Sequence[ItemAssignment],
) -> list[ItemAssignment]:
    """Price every assignment as round2(item total * share).

    An assignment pointing at a line item that no longer exists is priced at
    0.00 instead of failing the whole bill.
    """
    items_by_id = {item.id: item for item in line_items}
    priced: list[ItemAssignment] = []
    for assignment in assignments:
        line_item = items_by_id.get(assignment.line_item_id)
        if line_item is None:
            logger.debug("Assignment references missing line item %s", assignment.line_item_id)
            priced.append(replace(assignment, assigned_amount=ZERO))
            continue
        amount = multiply(line_item.total_price, assignment.share_percentage)
        priced.append(replace(assignment, assigned_amount=amount))
    return priced


def validate_assignments(
    line_items: Sequence[LineItem],
    assignments: Sequence[ItemAssignment],
) -> ValidationResult:
    """Check that every line item is fully assigned (shares sum to exactly 1).

    Reports problems for the user to fix; never corrects anything.
    """
    shares_by_item: dict[str, list[Decimal]] = {}
    for assignment in assignments:
        shares_by_item.setdefault(assignment.line_item_id, []).append(to_decimal(assignment.share_percentage))

    errors: list[str] = []
    for line_item in line_items:
        shares = shares_by_item.get(line_item.id)
        if not shares:
            errors.append(f'Item "{line_item.name}" has no assignments')
            continue

        total_share = ZERO
        for share in shares:
            total_share = MONEY_CONTEXT.add(total_share, share)

        if total_share != ONE:
            errors.append(f'Item "{line_item.name}" assignments total {round4(total_share)} instead of 1.0000')

    return ValidationResult(is_valid=not errors, errors=errors)


def create_equal_assignments(
    line_items: Sequence[LineItem],
    people: Sequence[Person],
) -> list[ItemAssignment]:
    """Assign every item equally to everyone.

    Each share is round4(1 / N). When 1/N does not terminate within four
    decimals (N=3 gives 0.3333 x 3 = 0.9999) the residue is kept, and
    validate_assignments reports the item as not fully assigned.
    """
    if not people:
        return []

    share = round4(MONEY_CONTEXT.divide(ONE, Decimal(len(people))))
    assignments = [
        ItemAssignment(line_item_id=line_item.id, person_id=person.id, share_percentage=share)
        for line_item in line_items
        for person in people
    ]
    return calculate_assignment_amounts(line_items, assignments)


def calculate_bill_summary(
    receipt_id: str,
    line_items: Sequence[LineItem],
    people: Sequence[Person],
    tax_amount: Amount,
    tip_amount: Amount,
    calculated_at: datetime | None = None,
) -> BillSummary:
    """Build a fresh summary snapshot of the bill."""
    subtotal = calculate_subtotal(line_items)
    tax = round2(tax_amount)
    tip = round2(tip_amount)
    return BillSummary(
        receipt_id=receipt_id,
        subtotal=subtotal,
        tax_amount=tax,
        tip_amount=tip,
        total_amount=calculate_total(subtotal, tax, tip),
        people_count=len(people),
        calculated_at=calculated_at or datetime.now(timezone.utc),
    )


def reconcile(
    people: Sequence[Person],
    subtotal: Amount,
    tax_amount: Amount,
    tip_amount: Amount,
    tolerance: Amount = "0.01",
) -> bool:
    """Whether what people owe adds up to subtotal + tax + tip."""
    owed = ZERO
    for person in people:
        owed = MONEY_CONTEXT.add(owed, to_decimal(person.total_owed))
    return decimal_equals(owed, calculate_total(subtotal, tax_amount, tip_amount), tolerance)
