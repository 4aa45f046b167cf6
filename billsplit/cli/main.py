#!/usr/bin/env python3

import argparse
from collections.abc import Sequence
from decimal import Decimal


def _ocr_confidence(value: str) -> float:
    """argparse type for an OCR confidence between 0 and 100."""
    try:
        confidence = Decimal(value)
    except ArithmeticError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc
    if not confidence.is_finite() or not 0 <= confidence <= 100:
        raise argparse.ArgumentTypeError(f"must be between 0 and 100, got {value}")
    return float(confidence)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Receipt parsing and bill splitting CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  parse <text_file>          Parse recognized receipt text
  extracted <json_file>      Convert structured-extraction JSON into a receipt
  split <bill_json>          Split a bill (equal split if no assignments)
  serve [--host] [--port]    Start the HTTP API

Environment:
  BILLSPLIT_PARSER_CONFIG    Parser config TOML used when --config is omitted
  BILLSPLIT_LOG_LEVEL        DEBUG, INFO, WARNING or ERROR
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # parse command
    parse_parser = subparsers.add_parser("parse", help="Parse recognized receipt text")
    parse_parser.add_argument("text_file", help="UTF-8 text file produced by OCR")
    parse_parser.add_argument(
        "--ocr-confidence",
        type=_ocr_confidence,
        default=None,
        help="Recognition confidence (0-100) to blend into the parse confidence",
    )
    parse_parser.add_argument("--config", default=None, help="Parser config TOML file")

    # extracted command
    extracted_parser = subparsers.add_parser("extracted", help="Convert structured-extraction JSON")
    extracted_parser.add_argument("json_file", help="JSON reply from the extraction backend")

    # split command
    split_parser = subparsers.add_parser("split", help="Split a bill")
    split_parser.add_argument("bill_json", help="Bill JSON file")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "parse":
        from billsplit.cli.bill import cmd_parse

        return cmd_parse(args)
    elif args.command == "extracted":
        from billsplit.cli.bill import cmd_extracted

        return cmd_extracted(args)
    elif args.command == "split":
        from billsplit.cli.bill import cmd_split

        return cmd_split(args)
    elif args.command == "serve":
        from billsplit.cli.bill import cmd_serve

        return cmd_serve(args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
