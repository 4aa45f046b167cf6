"""Parse raw OCR text into structured ParsedReceipt data."""

import logging
import re
import secrets
import time
from decimal import Decimal

from billsplit.domain.bill import LineItem, LineItemDraft, ParsedReceipt, ParseValidation

from .normalization import normalize_text
from .ocr_parser import _extract_items, _extract_summary_amounts
from .ocr_parser.common import clean_price
from .parser_config import DEFAULT_PARSER_CONFIG, ParserConfig

logger = logging.getLogger(__name__)

SHORT_TEXT_CONFIDENCE = 10
LOW_CONFIDENCE_THRESHOLD = 50

_SHORT_TEXT_NUMBER = re.compile(r"[\d๐-๙]+[.,]?[\d๐-๙]*")
_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def parse_receipt_text(ocr_text: str | None, config: ParserConfig | None = None) -> ParsedReceipt:
    """
    Parse OCR text into structured receipt data.

    Never raises on bad input: unparseable lines are skipped and the result
    may carry zero items and confidence 0.

    Args:
        ocr_text: Raw text from the recognition backend (may mix Thai/English)
        config: Heuristic thresholds; defaults to DEFAULT_PARSER_CONFIG
    """
    config = config or DEFAULT_PARSER_CONFIG
    raw_text = ocr_text or ""

    if not raw_text.strip():
        logger.debug("No text provided for parsing")
        return ParsedReceipt(confidence=0, raw_text=raw_text)

    if len(raw_text.strip()) < config.min_text_length:
        logger.debug("Very short text, creating basic item")
        return _parse_short_text(raw_text, config)

    normalized = normalize_text(raw_text)
    lines = [line.strip() for line in normalized.splitlines() if line.strip()]

    summary = _extract_summary_amounts(lines)
    line_items = _extract_items(lines, config)

    subtotal = summary.subtotal
    if subtotal is None:
        subtotal = _infer_subtotal(line_items, summary.tax, summary.tip, summary.total, config)

    confidence = calculate_parsing_confidence(
        line_items,
        subtotal,
        summary.tax,
        summary.total,
        tolerance=config.reconcile_tolerance,
    )

    result = ParsedReceipt(
        line_items=line_items,
        subtotal=subtotal,
        tax_amount=summary.tax,
        tip_amount=summary.tip,
        total_amount=summary.total,
        confidence=confidence,
        raw_text=raw_text,
    )
    logger.debug(
        "Parsing complete: %d items, subtotal=%s tax=%s tip=%s total=%s confidence=%d",
        len(line_items),
        subtotal,
        summary.tax,
        summary.tip,
        summary.total,
        confidence,
    )
    return result


def _parse_short_text(raw_text: str, config: ParserConfig) -> ParsedReceipt:
    """Degenerate input: synthesize at most one item from the last number found."""
    stripped = raw_text.strip()
    numbers = _SHORT_TEXT_NUMBER.findall(stripped)

    item: LineItemDraft | None = None
    if numbers:
        token = numbers[-1]
        if "." not in token and "," not in token:
            token = f"{token}.00"
        price = clean_price(token)
        if price is not None:
            item = LineItemDraft(
                name=config.short_text_item_name,
                quantity=1,
                unit_price=price,
                total_price=price,
                extracted_text=stripped,
            )

    return ParsedReceipt(
        line_items=[item] if item else [],
        total_amount=item.total_price if item else None,
        confidence=SHORT_TEXT_CONFIDENCE,
        raw_text=raw_text,
    )


def _infer_subtotal(
    line_items: list[LineItemDraft],
    tax: Decimal | None,
    tip: Decimal | None,
    total: Decimal | None,
    config: ParserConfig,
) -> Decimal | None:
    """
    Use the item sum as subtotal when the receipt prints none.

    Only done when the items, plus any printed tax and tip, reconcile with the
    printed total; otherwise the subtotal stays unknown.
    """
    if not line_items or total is None:
        return None
    items_sum = sum((item.total_price for item in line_items), Decimal("0.00"))
    expected_total = items_sum + (tax or Decimal("0")) + (tip or Decimal("0"))
    if abs(expected_total - total) < config.reconcile_tolerance:
        logger.debug("Inferred subtotal %s from %d items", items_sum, len(line_items))
        return items_sum
    return None


def calculate_parsing_confidence(
    line_items: list[LineItemDraft],
    subtotal: Decimal | None,
    tax_amount: Decimal | None,
    total_amount: Decimal | None,
    tolerance: Decimal = Decimal("0.01"),
) -> int:
    """Score 0-100 for how trustworthy a parse looks."""
    score = min(len(line_items) * 20, 60)

    if subtotal is not None:
        score += 15
    if tax_amount is not None:
        score += 10
    if total_amount is not None:
        score += 15

    # Bonus for mathematical consistency
    if subtotal is not None and total_amount is not None:
        calculated_total = subtotal + (tax_amount if tax_amount is not None else Decimal("0"))
        if abs(calculated_total - total_amount) < tolerance:
            score += 10

    return max(0, min(score, 100))


def combine_confidence(parse_confidence: int, ocr_confidence: float | int | None) -> int:
    """Blend the recognition backend's confidence with the parse confidence."""
    if ocr_confidence is None:
        return parse_confidence
    ocr_score = max(0, min(int(round(ocr_confidence)), 100))
    return max(0, min((parse_confidence + ocr_score) // 2, 100))


def generate_line_item_id() -> str:
    """Generate a unique id for a user-created line item."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"item-{millis}-{suffix}"


def create_line_items_from_parsed(parsed: ParsedReceipt, receipt_id: str) -> list[LineItem]:
    """Give parsed drafts stable, ordered ids scoped to the receipt."""
    return [
        LineItem(
            id=f"{receipt_id}-item-{index}",
            receipt_id=receipt_id,
            name=draft.name,
            quantity=draft.quantity,
            unit_price=draft.unit_price,
            total_price=draft.total_price,
            category=draft.category,
            is_shared=draft.is_shared,
            extracted_text=draft.extracted_text,
            manually_edited=draft.manually_edited,
        )
        for index, draft in enumerate(parsed.line_items, start=1)
    ]


def validate_parsed_receipt(parsed: ParsedReceipt) -> ParseValidation:
    """Check a parsed receipt for completeness before handing it to the editor."""
    warnings: list[str] = []

    if not parsed.line_items:
        warnings.append("No line items found - you may need to add them manually")

    if parsed.subtotal is None and parsed.total_amount is None:
        warnings.append("No total amounts found - please verify the extracted data")

    if parsed.confidence < LOW_CONFIDENCE_THRESHOLD:
        warnings.append("Low confidence in OCR results - please review all extracted data carefully")

    return ParseValidation(
        is_valid=bool(parsed.line_items) or parsed.total_amount is not None,
        warnings=warnings,
    )
