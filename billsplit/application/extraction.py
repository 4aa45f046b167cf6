"""Adapter for structured receipt data returned by vision/LLM backends.

Backends are prompted to reply with JSON shaped like:

    {
      "restaurant_name": "...", "date": "YYYY-MM-DD",
      "items": [{"name": "...", "price": 90.0, "quantity": 2}],
      "tax": 0, "service_charge": 0, "discount": 0, "total": 180.0,
      "currency": "THB"
    }

Replies are often wrapped in Markdown code fences and may omit fields.
Item ``price`` is a unit price.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from billsplit.allocation.money import MAX_AMOUNT, MAX_QUANTITY, ZERO, add, round2, subtract
from billsplit.allocation.split import line_item_total
from billsplit.domain.bill import LineItemDraft, ParsedReceipt
from billsplit.receipt.ocr_result_parser import calculate_parsing_confidence
from billsplit.runtime import get_logger

logger = get_logger(__name__)

DEFAULT_RESTAURANT_NAME = "Unknown Restaurant"
DEFAULT_ITEM_NAME = "Unknown Item"
DEFAULT_CURRENCY = "THB"

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


@dataclass(frozen=True)
class ExtractedItem:
    name: str
    price: Decimal
    quantity: int = 1


@dataclass(frozen=True)
class ExtractedReceiptData:
    """Backend reply with every field defaulted."""

    restaurant_name: str
    date: str
    items: list[ExtractedItem] = field(default_factory=list)
    tax: Decimal = ZERO
    service_charge: Decimal = ZERO
    discount: Decimal = ZERO
    total: Decimal = ZERO
    currency: str = DEFAULT_CURRENCY


def strip_code_fences(reply: str) -> str:
    """Remove Markdown code fences some models wrap around JSON."""
    return _CODE_FENCE.sub("", reply).strip()


def load_extracted_json(reply: str) -> dict[str, Any]:
    """Decode a backend reply, keeping every JSON number exact.

    Raises:
        json.JSONDecodeError: the reply is not JSON after fence stripping.
        ValueError: the reply is JSON but not an object.
    """
    data = json.loads(strip_code_fences(reply), parse_float=Decimal)
    if not isinstance(data, dict):
        raise ValueError("Extracted receipt data must be a JSON object")
    return data


def _coerce_amount(value: Any) -> Decimal:
    """Lenient amount parsing: anything unusable becomes 0.00."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, float):
        # Decoded without parse_float=Decimal; the shortest repr is what the backend sent.
        value = repr(value)
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not parsed.is_finite() or parsed.copy_abs() >= MAX_AMOUNT:
        logger.debug("Unusable extracted amount %r; using 0.00", value)
        return ZERO
    return round2(parsed)


def _coerce_quantity(value: Any) -> int:
    """Whole positive counts below MAX_QUANTITY; anything else is 1."""
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return 1
    if not parsed.is_finite() or not 1 <= parsed < MAX_QUANTITY:
        return 1
    return int(parsed)


def validate_extracted_data(data: Mapping[str, Any]) -> ExtractedReceiptData:
    """Fill defaults for missing or malformed fields."""
    raw_items = data.get("items")
    items: list[ExtractedItem] = []
    if isinstance(raw_items, list):
        for raw in raw_items:
            if not isinstance(raw, Mapping):
                logger.debug("Skipping non-object item in extracted data: %r", raw)
                continue
            items.append(
                ExtractedItem(
                    name=str(raw.get("name") or DEFAULT_ITEM_NAME),
                    price=_coerce_amount(raw.get("price")),
                    quantity=_coerce_quantity(raw.get("quantity", 1)),
                )
            )

    return ExtractedReceiptData(
        restaurant_name=str(data.get("restaurant_name") or DEFAULT_RESTAURANT_NAME),
        date=str(data.get("date") or date.today().isoformat()),
        items=items,
        tax=_coerce_amount(data.get("tax")),
        service_charge=_coerce_amount(data.get("service_charge")),
        discount=_coerce_amount(data.get("discount")),
        total=_coerce_amount(data.get("total")),
        currency=str(data.get("currency") or DEFAULT_CURRENCY),
    )


def calculate_receipt_total(data: ExtractedReceiptData) -> Decimal:
    """Items + tax + service charge - discount."""
    items_total = ZERO
    for item in data.items:
        items_total = add(items_total, line_item_total(item.quantity, item.price))
    return subtract(add(add(items_total, data.tax), data.service_charge), data.discount)


def parsed_receipt_from_extracted(data: ExtractedReceiptData, raw_text: str = "") -> ParsedReceipt:
    """
    Convert backend data into the parser's intermediate form.

    Service charge minus discount becomes the tip, so both are spread over
    people in proportion to what they ordered, like tax.
    """
    drafts = [
        LineItemDraft(
            name=item.name,
            quantity=item.quantity,
            unit_price=item.price,
            total_price=line_item_total(item.quantity, item.price),
            extracted_text=item.name,
        )
        for item in data.items
    ]

    subtotal = ZERO
    for draft in drafts:
        subtotal = add(subtotal, draft.total_price)

    tax = data.tax if data.tax != 0 else None
    tip_value = subtract(data.service_charge, data.discount)
    tip = tip_value if tip_value != 0 else None
    total = data.total if data.total != 0 else None

    confidence = calculate_parsing_confidence(drafts, subtotal if drafts else None, tax, total)
    if total is not None and total != calculate_receipt_total(data):
        logger.info("Extracted total %s does not match computed %s", total, calculate_receipt_total(data))

    return ParsedReceipt(
        line_items=drafts,
        subtotal=subtotal if drafts else None,
        tax_amount=tax,
        tip_amount=tip,
        total_amount=total,
        confidence=confidence,
        raw_text=raw_text,
    )


def parse_extracted_reply(reply: str) -> ParsedReceipt:
    """Decode, default and convert a raw backend reply in one step."""
    data = validate_extracted_data(load_extracted_json(reply))
    return parsed_receipt_from_extracted(data, raw_text=reply)
