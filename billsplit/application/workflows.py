"""Parse and split workflows shared by the CLI and the HTTP server.

Each workflow takes a frozen request and returns a frozen result with a
status instead of raising for bad input, so both front ends can map the
outcome to an exit code or an HTTP status.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import InvalidOperation
from typing import Any, Literal

from billsplit.allocation.split import calculate_subtotal, reconcile
from billsplit.domain.bill import LineItem, ParsedReceipt, ParseValidation
from billsplit.receipt.ocr_result_parser import (
    combine_confidence,
    create_line_items_from_parsed,
    parse_receipt_text,
    validate_parsed_receipt,
)
from billsplit.receipt.parser_config import ParserConfig
from billsplit.runtime import get_logger

from .bill_session import BillState, split_equally
from .extraction import load_extracted_json, parsed_receipt_from_extracted, validate_extracted_data
from .serialization import BillFormatError, bill_from_dict

logger = get_logger(__name__)

WorkflowStatus = Literal["ok", "error"]

DEFAULT_RECEIPT_ID = "receipt"


@dataclass(frozen=True)
class ParseReceiptRequest:
    """Inputs for parsing recognized receipt text."""

    text: str
    ocr_confidence: float | None = None
    config: ParserConfig | None = None
    receipt_id: str = DEFAULT_RECEIPT_ID


@dataclass(frozen=True)
class ParseReceiptResult:
    """Outcome of a parse; ``confidence`` blends in the OCR score when given."""

    status: WorkflowStatus
    parsed: ParsedReceipt | None = None
    line_items: list[LineItem] = field(default_factory=list)
    validation: ParseValidation | None = None
    confidence: int = 0
    error: str | None = None


@dataclass(frozen=True)
class SplitBillRequest:
    """A decoded bill document. Equal split is applied when it has no assignments."""

    document: Any
    split_equally_when_unassigned: bool = True


@dataclass(frozen=True)
class SplitBillResult:
    status: WorkflowStatus
    bill: BillState | None = None
    reconciled: bool = False
    error: str | None = None


def _finish_parse(parsed: ParsedReceipt, receipt_id: str, ocr_confidence: float | None) -> ParseReceiptResult:
    return ParseReceiptResult(
        status="ok",
        parsed=parsed,
        line_items=create_line_items_from_parsed(parsed, receipt_id),
        validation=validate_parsed_receipt(parsed),
        confidence=combine_confidence(parsed.confidence, ocr_confidence),
    )


def run_parse_receipt(request: ParseReceiptRequest) -> ParseReceiptResult:
    """Parse text and attach ids, validation warnings and the blended confidence."""
    if not isinstance(request.text, str):
        return ParseReceiptResult(status="error", error="Receipt text must be a string")
    parsed = parse_receipt_text(request.text, request.config)
    logger.info(
        "Parsed receipt %s: %d items, confidence %d",
        request.receipt_id,
        len(parsed.line_items),
        parsed.confidence,
    )
    return _finish_parse(parsed, request.receipt_id, request.ocr_confidence)


def run_parse_extracted(
    payload: str | Mapping[str, Any],
    receipt_id: str = DEFAULT_RECEIPT_ID,
) -> ParseReceiptResult:
    """Convert a structured-extraction reply (raw text or decoded object)."""
    raw_text = payload if isinstance(payload, str) else ""
    try:
        data = load_extracted_json(payload) if isinstance(payload, str) else payload
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning("Rejected extracted receipt data: %s", exc)
        return ParseReceiptResult(status="error", error=f"Invalid extracted receipt data: {exc}")
    if not isinstance(data, Mapping):
        return ParseReceiptResult(status="error", error="Extracted receipt data must be a JSON object")

    try:
        parsed = parsed_receipt_from_extracted(validate_extracted_data(data), raw_text=raw_text)
    except InvalidOperation:
        logger.warning("Extracted receipt totals exceed exact decimal range")
        return ParseReceiptResult(status="error", error="Extracted receipt amounts are too large to total exactly")
    return _finish_parse(parsed, receipt_id, None)


def run_split_bill(request: SplitBillRequest) -> SplitBillResult:
    """Recompute a bill and report whether what people owe reconciles."""
    try:
        bill = bill_from_dict(request.document)
        if request.split_equally_when_unassigned and not bill.assignments and bill.people:
            bill = split_equally(bill)
        subtotal = calculate_subtotal(bill.line_items)
    except BillFormatError as exc:
        logger.warning("Rejected bill document: %s", exc)
        return SplitBillResult(status="error", error=str(exc))
    except InvalidOperation:
        logger.warning("Bill totals exceed exact decimal range")
        return SplitBillResult(status="error", error="Bill amounts are too large to split exactly")

    reconciled = reconcile(bill.people, subtotal, bill.tax_amount, bill.tip_amount)
    if not reconciled:
        logger.info("Bill %s does not reconcile: %s", bill.receipt_id, bill.validation.errors)
    return SplitBillResult(status="ok", bill=bill, reconciled=reconciled)
