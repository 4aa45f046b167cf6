"""Receipt text normalization and parsing.

Usage:
    from billsplit.receipt import parse_receipt_text
    parsed = parse_receipt_text(ocr_text)
"""

from billsplit.receipt.normalization import normalize_text
from billsplit.receipt.ocr_result_parser import (
    create_line_items_from_parsed,
    parse_receipt_text,
    validate_parsed_receipt,
)
from billsplit.receipt.parser_config import DEFAULT_PARSER_CONFIG, ParserConfig

__all__ = [
    "DEFAULT_PARSER_CONFIG",
    "ParserConfig",
    "create_line_items_from_parsed",
    "normalize_text",
    "parse_receipt_text",
    "validate_parsed_receipt",
]
