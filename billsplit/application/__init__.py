"""Bill workflows: editing sessions, JSON mapping and parse/split entry points."""

from billsplit.application.bill_session import BillState, new_bill, recalculate, start_bill_from_parsed
from billsplit.application.workflows import (
    ParseReceiptRequest,
    ParseReceiptResult,
    SplitBillRequest,
    SplitBillResult,
    run_parse_extracted,
    run_parse_receipt,
    run_split_bill,
)

__all__ = [
    "BillState",
    "new_bill",
    "recalculate",
    "start_bill_from_parsed",
    "ParseReceiptRequest",
    "ParseReceiptResult",
    "SplitBillRequest",
    "SplitBillResult",
    "run_parse_receipt",
    "run_parse_extracted",
    "run_split_bill",
]
