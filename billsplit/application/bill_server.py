"""FastAPI server exposing receipt parsing and bill splitting over HTTP."""

import json
import math
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

from billsplit.application.serialization import (
    bill_state_to_dict,
    line_item_to_dict,
    load_json_document,
    parsed_receipt_to_dict,
    validation_to_dict,
)
from billsplit.application.workflows import (
    ParseReceiptRequest,
    ParseReceiptResult,
    SplitBillRequest,
    run_parse_extracted,
    run_parse_receipt,
    run_split_bill,
)
from billsplit.runtime import get_logger, load_parser_config
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = get_logger(__name__)

_ERROR_NAMES = {400: "bad_request", 404: "not_found", 405: "method_not_allowed", 500: "internal_error"}


class BadRequest(Exception):
    """Client sent an unusable request body."""


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"error": _ERROR_NAMES.get(status_code, "error"), "message": message, "status": status_code},
        status_code=status_code,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load parser configuration once on startup."""
    app.state.parser_config = load_parser_config()
    yield


app = FastAPI(title="Bill Splitter", lifespan=lifespan)


@app.exception_handler(BadRequest)
async def bad_request_handler(request: Request, exc: BadRequest) -> JSONResponse:
    logger.warning(f"Bad request to {request.url.path}: {exc}")
    return error_response(400, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return error_response(500, "Internal server error")


async def _read_json(request: Request) -> Any:
    body = await request.body()
    if not body:
        raise BadRequest("Request body is empty")
    try:
        return load_json_document(body)
    except json.JSONDecodeError as exc:
        raise BadRequest(f"Invalid JSON: {exc.msg}") from exc


def _ocr_confidence(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise BadRequest("ocr_confidence must be a number")
    confidence = float(value)
    if not math.isfinite(confidence):
        raise BadRequest("ocr_confidence must be a finite number")
    return confidence


def _parse_response(result: ParseReceiptResult) -> dict[str, Any]:
    if result.status == "error" or result.parsed is None:
        raise BadRequest(result.error or "Could not parse receipt")
    return {
        "status": "ok",
        "receipt": parsed_receipt_to_dict(result.parsed),
        "line_items": [line_item_to_dict(item) for item in result.line_items],
        "confidence": result.confidence,
        "validation": validation_to_dict(result.validation) if result.validation else None,
    }


@app.post("/parse")
async def parse_text(request: Request) -> dict[str, Any]:
    """Parse recognized receipt text: {"text": "...", "ocr_confidence": 87}."""
    payload = await _read_json(request)
    if not isinstance(payload, dict) or not isinstance(payload.get("text"), str):
        raise BadRequest("Body must be an object with a 'text' string")

    result = run_parse_receipt(
        ParseReceiptRequest(
            text=payload["text"],
            ocr_confidence=_ocr_confidence(payload.get("ocr_confidence")),
            config=getattr(request.app.state, "parser_config", None),
            receipt_id=str(payload.get("receipt_id") or "receipt"),
        )
    )
    return _parse_response(result)


@app.post("/extracted")
async def parse_extracted(request: Request) -> dict[str, Any]:
    """Normalize structured data returned by an extraction backend."""
    payload = await _read_json(request)
    return _parse_response(run_parse_extracted(payload))


@app.post("/split")
async def split_bill(request: Request) -> dict[str, Any]:
    """Recompute per-person totals for a bill document."""
    payload = await _read_json(request)
    result = run_split_bill(SplitBillRequest(document=payload))
    if result.status == "error" or result.bill is None:
        raise BadRequest(result.error or "Invalid bill")
    return {"status": "ok", "reconciled": result.reconciled, **bill_state_to_dict(result.bill)}


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
