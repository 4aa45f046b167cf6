"""Bill editing workflow.

A ``BillState`` is an immutable snapshot of one bill being split. Every
edit returns a new state with assignment amounts, per-person totals, the
summary and the validation report already recomputed, so derived values
are never stale. Persistence is the caller's concern.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from billsplit.allocation.money import ZERO, round2, round4, to_decimal
from billsplit.allocation.split import (
    calculate_assignment_amounts,
    calculate_bill_summary,
    calculate_person_totals,
    create_equal_assignments,
    line_item_total,
    validate_assignments,
)
from billsplit.domain.bill import (
    BillSummary,
    ItemAssignment,
    LineItem,
    ParsedReceipt,
    Person,
    ValidationResult,
    next_person_color,
)
from billsplit.receipt.ocr_result_parser import create_line_items_from_parsed, generate_line_item_id
from billsplit.runtime import get_logger

logger = get_logger(__name__)

_PRICE_FIELDS = {"quantity", "unit_price"}


@dataclass(frozen=True)
class BillState:
    """One bill: items, people, who-owes-what, plus derived totals."""

    receipt_id: str
    line_items: tuple[LineItem, ...] = ()
    people: tuple[Person, ...] = ()
    assignments: tuple[ItemAssignment, ...] = ()
    tax_amount: Decimal = ZERO
    tip_amount: Decimal = ZERO
    summary: BillSummary | None = None
    validation: ValidationResult = field(default_factory=lambda: ValidationResult(is_valid=True))


def recalculate(state: BillState, calculated_at: datetime | None = None) -> BillState:
    """Recompute every derived value from the authoritative inputs."""
    assignments = tuple(calculate_assignment_amounts(state.line_items, state.assignments))
    people = tuple(
        calculate_person_totals(state.line_items, assignments, state.people, state.tax_amount, state.tip_amount)
    )
    summary = calculate_bill_summary(
        state.receipt_id,
        state.line_items,
        people,
        state.tax_amount,
        state.tip_amount,
        calculated_at=calculated_at,
    )
    validation = validate_assignments(state.line_items, assignments)
    if not validation.is_valid:
        logger.debug("Bill %s has %d assignment problems", state.receipt_id, len(validation.errors))
    return replace(state, assignments=assignments, people=people, summary=summary, validation=validation)


def new_bill(
    receipt_id: str,
    line_items: Iterable[LineItem] = (),
    people: Iterable[Person] = (),
    assignments: Iterable[ItemAssignment] = (),
    tax_amount: Decimal | str | int = ZERO,
    tip_amount: Decimal | str | int = ZERO,
) -> BillState:
    """Build a recalculated bill from explicit inputs."""
    return recalculate(
        BillState(
            receipt_id=receipt_id,
            line_items=tuple(line_items),
            people=tuple(people),
            assignments=tuple(assignments),
            tax_amount=round2(tax_amount),
            tip_amount=round2(tip_amount),
        )
    )


def start_bill_from_parsed(parsed: ParsedReceipt, receipt_id: str | None = None) -> BillState:
    """Turn a parser result into an editable bill with no people yet."""
    receipt_id = receipt_id or str(uuid.uuid4())
    return new_bill(
        receipt_id,
        line_items=create_line_items_from_parsed(parsed, receipt_id),
        tax_amount=parsed.tax_amount or ZERO,
        tip_amount=parsed.tip_amount or ZERO,
    )


# --- Line items ---


def add_line_item(
    state: BillState,
    name: str,
    quantity: int | Decimal = 1,
    unit_price: Decimal | str | int = ZERO,
    **extra: Any,
) -> BillState:
    """Add a user-entered item; its total is derived from quantity and unit price."""
    item = LineItem(
        id=generate_line_item_id(),
        receipt_id=state.receipt_id,
        name=name,
        quantity=quantity,
        unit_price=round2(unit_price),
        total_price=line_item_total(quantity, unit_price),
        manually_edited=True,
        **extra,
    )
    return recalculate(replace(state, line_items=state.line_items + (item,)))


def update_line_item(state: BillState, line_item_id: str, **changes: Any) -> BillState:
    """Edit an item.

    Changing quantity or unit price re-derives the total. Setting
    ``total_price`` directly is a manual override and is kept as given.
    """
    items: list[LineItem] = []
    found = False
    for item in state.line_items:
        if item.id != line_item_id:
            items.append(item)
            continue
        found = True
        updated = replace(item, **changes, manually_edited=True)
        if "total_price" in changes:
            updated = replace(updated, total_price=round2(changes["total_price"]))
        elif _PRICE_FIELDS & changes.keys():
            updated = replace(updated, total_price=line_item_total(updated.quantity, updated.unit_price))
        items.append(updated)

    if not found:
        logger.warning("Cannot update unknown line item %s", line_item_id)
        return state
    return recalculate(replace(state, line_items=tuple(items)))


def remove_line_item(state: BillState, line_item_id: str) -> BillState:
    """Remove an item together with every assignment that referenced it."""
    return recalculate(
        replace(
            state,
            line_items=tuple(item for item in state.line_items if item.id != line_item_id),
            assignments=tuple(a for a in state.assignments if a.line_item_id != line_item_id),
        )
    )


# --- People ---


def add_person(state: BillState, name: str, email: str | None = None, person_id: str | None = None) -> BillState:
    """Append a person; an explicit person_id must not already be on the bill."""
    if person_id and any(p.id == person_id for p in state.people):
        raise ValueError(f"Person id already on the bill: {person_id!r}")
    person = Person(
        id=person_id or str(uuid.uuid4()),
        name=name,
        email=email,
        color=next_person_color(len(state.people)),
    )
    return recalculate(replace(state, people=state.people + (person,)))


def update_person(state: BillState, person_id: str, **changes: Any) -> BillState:
    """Edit a person's name, email or colour. Money fields are derived and cannot be set."""
    derived = {"subtotal", "tax_amount", "tip_amount", "total_owed"} & changes.keys()
    if derived:
        raise ValueError(f"Derived person fields cannot be edited: {', '.join(sorted(derived))}")
    new_id = changes.get("id")
    if new_id is not None and any(p.id == new_id and p.id != person_id for p in state.people):
        raise ValueError(f"Person id already on the bill: {new_id!r}")
    people = tuple(replace(p, **changes) if p.id == person_id else p for p in state.people)
    return recalculate(replace(state, people=people))


def remove_person(state: BillState, person_id: str) -> BillState:
    """Remove a person together with their assignments."""
    return recalculate(
        replace(
            state,
            people=tuple(p for p in state.people if p.id != person_id),
            assignments=tuple(a for a in state.assignments if a.person_id != person_id),
        )
    )


# --- Assignments ---


def set_assignments(state: BillState, assignments: Sequence[ItemAssignment]) -> BillState:
    return recalculate(replace(state, assignments=tuple(assignments)))


def upsert_assignment(
    state: BillState,
    line_item_id: str,
    person_id: str,
    share_percentage: Decimal | str | int,
) -> BillState:
    """Set one person's share of one item, adding the assignment if needed."""
    share = round4(to_decimal(share_percentage))
    assignments: list[ItemAssignment] = []
    replaced = False
    for assignment in state.assignments:
        if assignment.line_item_id == line_item_id and assignment.person_id == person_id:
            assignments.append(replace(assignment, share_percentage=share))
            replaced = True
        else:
            assignments.append(assignment)
    if not replaced:
        assignments.append(ItemAssignment(line_item_id=line_item_id, person_id=person_id, share_percentage=share))
    return recalculate(replace(state, assignments=tuple(assignments)))


def remove_assignments(
    state: BillState,
    line_item_id: str | None = None,
    person_id: str | None = None,
) -> BillState:
    """Drop assignments matching the given item and/or person."""

    def _keep(assignment: ItemAssignment) -> bool:
        if line_item_id and assignment.line_item_id == line_item_id:
            return False
        if person_id and assignment.person_id == person_id:
            return False
        return True

    return recalculate(replace(state, assignments=tuple(a for a in state.assignments if _keep(a))))


def split_equally(state: BillState) -> BillState:
    """Replace all assignments with an equal split among everyone."""
    return recalculate(replace(state, assignments=tuple(create_equal_assignments(state.line_items, state.people))))


def split_item_among(state: BillState, line_item_id: str, person_ids: Sequence[str]) -> BillState:
    """Share one item equally among some people, replacing its previous assignments."""
    kept = tuple(a for a in state.assignments if a.line_item_id != line_item_id)
    if not person_ids:
        return recalculate(replace(state, assignments=kept))
    share = round4(Decimal(1) / Decimal(len(person_ids)))
    added = tuple(
        ItemAssignment(line_item_id=line_item_id, person_id=person_id, share_percentage=share)
        for person_id in person_ids
    )
    return recalculate(replace(state, assignments=kept + added))


# --- Charges ---


def set_tax(state: BillState, tax_amount: Decimal | str | int) -> BillState:
    return recalculate(replace(state, tax_amount=round2(tax_amount)))


def set_tip(state: BillState, tip_amount: Decimal | str | int) -> BillState:
    return recalculate(replace(state, tip_amount=round2(tip_amount)))
