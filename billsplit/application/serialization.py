"""JSON mapping for bills and parse results.

Amounts are written as strings ("12.50") so no consumer ever sees a
binary float. Input documents should be decoded with
``json.loads(..., parse_float=Decimal)``; see ``load_json_document``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import asdict
from decimal import Decimal, InvalidOperation
from typing import Any

from billsplit.allocation.money import MAX_AMOUNT, MAX_QUANTITY, ZERO, round2, round4
from billsplit.allocation.split import line_item_total
from billsplit.domain.bill import (
    BillSummary,
    ItemAssignment,
    LineItem,
    LineItemDraft,
    ParsedReceipt,
    ParseValidation,
    Person,
    ValidationResult,
    next_person_color,
)

from .bill_session import BillState, new_bill


class BillFormatError(ValueError):
    """A bill document is missing required fields or has unusable values."""


def load_json_document(text: str | bytes) -> Any:
    """Decode JSON keeping every number exact.

    Raises:
        json.JSONDecodeError: not valid JSON.
    """
    return json.loads(text, parse_float=Decimal)


def _money_str(value: Decimal | None) -> str | None:
    return None if value is None else str(round2(value))


def _quantity_json(quantity: int | Decimal) -> int | str:
    return quantity if isinstance(quantity, int) else str(quantity)


def _amount(value: Any, field_name: str, default: Decimal | None = ZERO) -> Decimal:
    if value is None:
        if default is None:
            raise BillFormatError(f"Missing required amount: {field_name}")
        return default
    if isinstance(value, bool):
        raise BillFormatError(f"Invalid amount for {field_name}: {value!r}")
    if isinstance(value, float):
        value = repr(value)
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise BillFormatError(f"Invalid amount for {field_name}: {value!r}") from exc
    if not parsed.is_finite():
        raise BillFormatError(f"Invalid amount for {field_name}: {value!r}")
    if parsed.copy_abs() >= MAX_AMOUNT:
        raise BillFormatError(f"Amount out of range for {field_name}: {value!r}")
    return parsed


def _quantity(value: Any) -> int | Decimal:
    if value is None:
        return 1
    quantity = _amount(value, "quantity")
    if quantity <= 0:
        raise BillFormatError(f"Quantity must be positive, got {value!r}")
    if quantity >= MAX_QUANTITY:
        raise BillFormatError(f"Quantity out of range: {value!r}")
    return int(quantity) if quantity == quantity.to_integral_value() else quantity


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise BillFormatError(f"{what} is missing '{key}'")
    return value


# --- Output ---


def draft_to_dict(draft: LineItemDraft) -> dict[str, Any]:
    return {
        "name": draft.name,
        "quantity": _quantity_json(draft.quantity),
        "unit_price": _money_str(draft.unit_price),
        "total_price": _money_str(draft.total_price),
        "category": draft.category,
        "is_shared": draft.is_shared,
        "extracted_text": draft.extracted_text,
        "manually_edited": draft.manually_edited,
    }


def line_item_to_dict(item: LineItem) -> dict[str, Any]:
    data = draft_to_dict(
        LineItemDraft(
            name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
            category=item.category,
            is_shared=item.is_shared,
            extracted_text=item.extracted_text,
            manually_edited=item.manually_edited,
        )
    )
    return {"id": item.id, "receipt_id": item.receipt_id, **data}


def person_to_dict(person: Person) -> dict[str, Any]:
    return {
        "id": person.id,
        "name": person.name,
        "email": person.email,
        "color": person.color,
        "subtotal": _money_str(person.subtotal),
        "tax_amount": _money_str(person.tax_amount),
        "tip_amount": _money_str(person.tip_amount),
        "total_owed": _money_str(person.total_owed),
    }


def assignment_to_dict(assignment: ItemAssignment) -> dict[str, Any]:
    return {
        "line_item_id": assignment.line_item_id,
        "person_id": assignment.person_id,
        "share_percentage": str(round4(assignment.share_percentage)),
        "assigned_amount": _money_str(assignment.assigned_amount),
    }


def summary_to_dict(summary: BillSummary) -> dict[str, Any]:
    return {
        "receipt_id": summary.receipt_id,
        "subtotal": _money_str(summary.subtotal),
        "tax_amount": _money_str(summary.tax_amount),
        "tip_amount": _money_str(summary.tip_amount),
        "total_amount": _money_str(summary.total_amount),
        "people_count": summary.people_count,
        "calculated_at": summary.calculated_at.isoformat(),
    }


def validation_to_dict(validation: ValidationResult | ParseValidation) -> dict[str, Any]:
    return asdict(validation)


def parsed_receipt_to_dict(parsed: ParsedReceipt) -> dict[str, Any]:
    return {
        "line_items": [draft_to_dict(draft) for draft in parsed.line_items],
        "subtotal": _money_str(parsed.subtotal),
        "tax_amount": _money_str(parsed.tax_amount),
        "tip_amount": _money_str(parsed.tip_amount),
        "total_amount": _money_str(parsed.total_amount),
        "confidence": parsed.confidence,
        "raw_text": parsed.raw_text,
    }


def bill_state_to_dict(state: BillState) -> dict[str, Any]:
    return {
        "receipt_id": state.receipt_id,
        "line_items": [line_item_to_dict(item) for item in state.line_items],
        "people": [person_to_dict(person) for person in state.people],
        "assignments": [assignment_to_dict(a) for a in state.assignments],
        "tax": _money_str(state.tax_amount),
        "tip": _money_str(state.tip_amount),
        "summary": summary_to_dict(state.summary) if state.summary else None,
        "validation": validation_to_dict(state.validation),
    }


# --- Input ---


def line_item_from_dict(data: Mapping[str, Any], receipt_id: str, index: int) -> LineItem:
    """Read one line item. ``total_price`` defaults to quantity x unit price."""
    if not isinstance(data, Mapping):
        raise BillFormatError(f"Line item {index} must be an object")
    quantity = _quantity(data.get("quantity"))
    unit_price = round2(_amount(data.get("unit_price"), "unit_price"))
    if data.get("total_price") is None:
        total_price = line_item_total(quantity, unit_price)
    else:
        total_price = round2(_amount(data.get("total_price"), "total_price"))
    return LineItem(
        id=str(data.get("id") or f"{receipt_id}-item-{index}"),
        receipt_id=receipt_id,
        name=str(_require(data, "name", f"Line item {index}")),
        quantity=quantity,
        unit_price=unit_price,
        total_price=total_price,
        category=data.get("category"),
        is_shared=bool(data.get("is_shared", False)),
        extracted_text=str(data.get("extracted_text") or ""),
        manually_edited=bool(data.get("manually_edited", False)),
    )


def person_from_dict(data: Mapping[str, Any], index: int) -> Person:
    if not isinstance(data, Mapping):
        raise BillFormatError(f"Person {index} must be an object")
    name = str(_require(data, "name", f"Person {index}"))
    return Person(
        id=str(data.get("id") or name),
        name=name,
        email=data.get("email"),
        color=str(data.get("color") or next_person_color(index - 1)),
    )


def assignment_from_dict(data: Mapping[str, Any], index: int) -> ItemAssignment:
    if not isinstance(data, Mapping):
        raise BillFormatError(f"Assignment {index} must be an object")
    what = f"Assignment {index}"
    return ItemAssignment(
        line_item_id=str(_require(data, "line_item_id", what)),
        person_id=str(_require(data, "person_id", what)),
        share_percentage=round4(_amount(data.get("share_percentage"), "share_percentage", default=None)),
    )


def _list_field(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise BillFormatError(f"'{key}' must be a list")
    return value


def bill_from_dict(data: Any, default_receipt_id: str = "bill") -> BillState:
    """Build a recalculated bill from a JSON document.

    Expected keys: ``line_items``, ``people``, optional ``assignments``,
    ``tax`` (or ``tax_amount``), ``tip`` (or ``tip_amount``), ``receipt_id``.

    Raises:
        BillFormatError: the document is structurally unusable.
    """
    if not isinstance(data, Mapping):
        raise BillFormatError("Bill must be a JSON object")

    receipt_id = str(data.get("receipt_id") or default_receipt_id)
    line_items = [
        line_item_from_dict(raw, receipt_id, index)
        for index, raw in enumerate(_list_field(data, "line_items"), start=1)
    ]
    people = [person_from_dict(raw, index) for index, raw in enumerate(_list_field(data, "people"), start=1)]
    seen_ids: set[str] = set()
    for index, person in enumerate(people, start=1):
        if person.id in seen_ids:
            raise BillFormatError(f"Person {index} reuses id '{person.id}'; give each person a unique 'id'")
        seen_ids.add(person.id)
    assignments = [
        assignment_from_dict(raw, index) for index, raw in enumerate(_list_field(data, "assignments"), start=1)
    ]
    tax = _amount(data.get("tax", data.get("tax_amount")), "tax")
    tip = _amount(data.get("tip", data.get("tip_amount")), "tip")

    return new_bill(
        receipt_id,
        line_items=line_items,
        people=people,
        assignments=assignments,
        tax_amount=tax,
        tip_amount=tip,
    )
