"""Tests for the JSON-facing parse/split workflows."""

from __future__ import annotations

import json
from decimal import Decimal

from billsplit.application.serialization import (
    bill_from_dict,
    bill_state_to_dict,
    load_json_document,
    parsed_receipt_to_dict,
)
from billsplit.application.workflows import (
    ParseReceiptRequest,
    SplitBillRequest,
    run_parse_extracted,
    run_parse_receipt,
    run_split_bill,
)
from billsplit.receipt.ocr_result_parser import parse_receipt_text

_BILL = """
{
  "receipt_id": "dinner",
  "line_items": [
    {"id": "soup", "name": "Tom Yum", "quantity": 1, "unit_price": 120.00},
    {"id": "rice", "name": "Rice", "quantity": 3, "unit_price": "15.50"}
  ],
  "people": [{"id": "a", "name": "Ann"}, {"id": "b", "name": "Ben"}],
  "assignments": [
    {"line_item_id": "soup", "person_id": "a", "share_percentage": 0.5},
    {"line_item_id": "soup", "person_id": "b", "share_percentage": 0.5},
    {"line_item_id": "rice", "person_id": "b", "share_percentage": 1}
  ],
  "tax": "16.65",
  "tip": 0
}
"""


def test_bill_from_dict_reads_exact_amounts() -> None:
    bill = bill_from_dict(load_json_document(_BILL))

    assert bill.receipt_id == "dinner"
    assert [item.total_price for item in bill.line_items] == [Decimal("120.00"), Decimal("46.50")]
    assert bill.people[1].color != bill.people[0].color
    assert bill.tax_amount == Decimal("16.65")


def test_bill_state_to_dict_writes_strings() -> None:
    data = bill_state_to_dict(bill_from_dict(load_json_document(_BILL)))

    assert data["people"][0]["total_owed"] == "66.00"
    assert data["people"][1]["total_owed"] == "117.15"
    assert data["assignments"][0]["share_percentage"] == "0.5000"
    assert data["summary"]["total_amount"] == "183.15"
    assert data["validation"] == {"is_valid": True, "errors": []}
    json.dumps(data)


def test_parsed_receipt_to_dict_keeps_missing_amounts_null() -> None:
    data = parsed_receipt_to_dict(parse_receipt_text("Pad Thai 90.00\nSom Tum 60.00"))

    assert data["total_amount"] is None
    assert data["line_items"][0]["total_price"] == "90.00"
    assert data["line_items"][0]["quantity"] == 1


def test_run_split_bill_reconciles() -> None:
    result = run_split_bill(SplitBillRequest(document=load_json_document(_BILL)))

    assert result.status == "ok"
    assert result.reconciled


def test_run_split_bill_equal_split_without_assignments() -> None:
    document = {
        "line_items": [{"name": "Pizza", "unit_price": "10.00"}],
        "people": [{"name": "A"}, {"name": "B"}, {"name": "C"}],
    }

    result = run_split_bill(SplitBillRequest(document=document))

    assert result.status == "ok"
    assert result.bill is not None
    assert [str(a.share_percentage) for a in result.bill.assignments] == ["0.3333"] * 3
    assert result.bill.validation.errors == ['Item "Pizza" assignments total 0.9999 instead of 1.0000']
    # 3 x 3.33 is within the 0.01 reconciliation tolerance.
    assert result.reconciled


def test_run_split_bill_rejects_bad_documents() -> None:
    for document in ([], {"line_items": [{"unit_price": "1"}]}, {"people": "nobody"}, {"tax": "lots"}):
        result = run_split_bill(SplitBillRequest(document=document))
        assert result.status == "error"
        assert result.error


def test_run_parse_receipt_blends_ocr_confidence() -> None:
    result = run_parse_receipt(ParseReceiptRequest(text="Pad Thai 180.00\nTotal 180.00", ocr_confidence=80))

    assert result.status == "ok"
    assert result.parsed is not None
    assert result.parsed.confidence == 60
    assert result.confidence == 70
    assert [item.id for item in result.line_items] == ["receipt-item-1"]
    assert result.validation is not None
    assert result.validation.warnings == []


def test_run_parse_extracted_reports_bad_json() -> None:
    result = run_parse_extracted("the model said no")

    assert result.status == "error"
    assert result.error is not None


def test_run_parse_extracted_accepts_decoded_objects() -> None:
    result = run_parse_extracted({"items": [{"name": "Tea", "price": "25", "quantity": 2}], "total": "50"})

    assert result.status == "ok"
    assert result.parsed is not None
    assert result.parsed.total_amount == Decimal("50.00")
    assert result.line_items[0].total_price == Decimal("50.00")


def test_run_split_bill_rejects_duplicate_person_ids() -> None:
    document = {
        "line_items": [{"name": "Pizza", "unit_price": "100.00"}],
        "people": [{"name": "Alex"}, {"name": "Alex"}],
    }

    result = run_split_bill(SplitBillRequest(document=document))

    assert result.status == "error"
    assert result.error is not None
    assert "unique" in result.error

    document["people"] = [{"id": "alex-1", "name": "Alex"}, {"id": "alex-2", "name": "Alex"}]
    result = run_split_bill(SplitBillRequest(document=document))
    assert result.status == "ok"
    assert result.bill is not None
    assert [person.total_owed for person in result.bill.people] == [Decimal("50.00"), Decimal("50.00")]


def test_run_split_bill_rejects_out_of_range_amounts() -> None:
    for document in (
        {"line_items": [{"name": "A", "unit_price": "1e25"}], "people": [{"name": "x"}]},
        {"line_items": [{"name": "A", "unit_price": "1.00", "quantity": 1000000}], "people": [{"name": "x"}]},
        {"line_items": [{"name": "A", "unit_price": "1.00"}], "tax": "-1e20"},
    ):
        result = run_split_bill(SplitBillRequest(document=document))
        assert result.status == "error"
        assert result.error is not None
        assert "out of range" in result.error


def test_run_split_bill_reports_totals_too_large_to_compute() -> None:
    document = {
        "line_items": [{"name": f"Crate {n}", "quantity": 9999, "unit_price": "999999999999.00"} for n in range(200)],
        "people": [{"name": "x"}],
    }

    result = run_split_bill(SplitBillRequest(document=document))

    assert result.status == "error"
    assert result.error == "Bill amounts are too large to split exactly"


def test_run_parse_extracted_zeroes_out_of_range_values() -> None:
    result = run_parse_extracted(
        {"items": [{"name": "Tea", "price": "1e25", "quantity": "1e30"}, {"name": "Rice", "price": "20"}], "tax": 1e20}
    )

    assert result.status == "ok"
    assert result.parsed is not None
    assert [(item.unit_price, item.quantity) for item in result.parsed.line_items] == [
        (Decimal("0.00"), 1),
        (Decimal("20.00"), 1),
    ]
    assert result.parsed.tax_amount is None
