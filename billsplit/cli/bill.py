"""Bill CLI command handlers."""

import argparse
import json
from pathlib import Path

from billsplit.application.serialization import load_json_document
from billsplit.application.workflows import (
    ParseReceiptRequest,
    ParseReceiptResult,
    SplitBillRequest,
    run_parse_extracted,
    run_parse_receipt,
    run_split_bill,
)
from billsplit.receipt.formatter import format_parsed_receipt, format_split
from billsplit.runtime import get_logger, load_parser_config

logger = get_logger(__name__)


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line)


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        _print_error(f"File not found: {path}")
    except UnicodeDecodeError:
        _print_error(f"File is not UTF-8 text: {path}")
    return None


def _print_parse_result(result: ParseReceiptResult) -> int:
    if result.status == "error" or result.parsed is None:
        _print_error(result.error or "Could not parse receipt")
        return 1
    warnings = result.validation.warnings if result.validation else []
    print(format_parsed_receipt(result.parsed, warnings=warnings, confidence=result.confidence))
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a text file of recognized receipt text."""
    text = _read_text(Path(args.text_file))
    if text is None:
        return 1

    try:
        config = load_parser_config(args.config)
    except ValueError as exc:
        # tomllib.TOMLDecodeError is a ValueError too.
        _print_error(f"Invalid parser config: {exc}")
        return 1

    result = run_parse_receipt(ParseReceiptRequest(text=text, ocr_confidence=args.ocr_confidence, config=config))
    return _print_parse_result(result)


def cmd_extracted(args: argparse.Namespace) -> int:
    """Convert a structured-extraction JSON reply into a parsed receipt."""
    reply = _read_text(Path(args.json_file))
    if reply is None:
        return 1
    return _print_parse_result(run_parse_extracted(reply))


def cmd_split(args: argparse.Namespace) -> int:
    """Split a bill described by a JSON file."""
    raw = _read_text(Path(args.bill_json))
    if raw is None:
        return 1

    try:
        document = load_json_document(raw)
    except json.JSONDecodeError as exc:
        _print_error(f"Invalid JSON in {args.bill_json}: {exc.msg} (line {exc.lineno})")
        return 1

    result = run_split_bill(SplitBillRequest(document=document))
    if result.status == "error" or result.bill is None:
        _print_error(result.error or "Invalid bill")
        return 1

    bill = result.bill
    if bill.summary is None:
        _print_error("Bill summary was not computed")
        return 1
    print(format_split(bill.people, bill.summary, errors=bill.validation.errors, reconciled=result.reconciled))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the FastAPI server."""
    import uvicorn

    from billsplit.application import bill_server as server

    print(f"Starting bill server on {args.host}:{args.port}")
    print(f"Endpoints: http://{args.host}:{args.port}/parse | /split | /extracted | /health")
    print("Press Ctrl+C to stop")

    uvicorn.run(server.app, host=args.host, port=args.port)
    return 0
