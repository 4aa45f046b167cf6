from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

import pytest

from billsplit.allocation.split import (
    calculate_assignment_amounts,
    calculate_bill_summary,
    calculate_person_totals,
    calculate_subtotal,
    calculate_tax,
    calculate_total,
    create_equal_assignments,
    line_item_total,
    reconcile,
    validate_assignments,
)
from billsplit.domain.bill import ItemAssignment, LineItem, Person


def _item(item_id: str, total: str, name: str | None = None) -> LineItem:
    return LineItem(
        id=item_id,
        name=name or item_id,
        quantity=1,
        unit_price=Decimal(total),
        total_price=Decimal(total),
    )


def _share(item_id: str, person_id: str, share: str) -> ItemAssignment:
    return ItemAssignment(line_item_id=item_id, person_id=person_id, share_percentage=Decimal(share))


@pytest.mark.parametrize("quantity", [1, 2, 3.5])
@pytest.mark.parametrize("unit_price", ["0.00", "12.34", "999999.99"])
def test_line_item_total_is_rounded_product(quantity: int | float, unit_price: str) -> None:
    expected = (Decimal(str(quantity)) * Decimal(unit_price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    assert line_item_total(quantity, unit_price) == expected


def test_line_item_total_half_up() -> None:
    assert line_item_total(3, "0.335") == Decimal("1.01")
    assert line_item_total(Decimal("0.5"), "0.05") == Decimal("0.03")


def test_subtotal_is_order_independent() -> None:
    items = [_item("a", "0.10"), _item("b", "0.20"), _item("c", "999999.99"), _item("d", "12.34")]

    forward = calculate_subtotal(items)
    backward = calculate_subtotal(list(reversed(items)))

    assert forward == backward == Decimal("1000012.63")


def test_tax_and_total_helpers() -> None:
    assert calculate_tax("100.00", "0.07") == Decimal("7.00")
    assert calculate_total("100.00", "7.00", "10.00") == Decimal("117.00")


def test_single_person_owes_whole_item() -> None:
    pad_thai = LineItem(
        id="i1",
        name="Pad Thai",
        quantity=2,
        unit_price=Decimal("90.00"),
        total_price=Decimal("180.00"),
    )
    alice = Person(id="p1", name="Alice")
    assignments = calculate_assignment_amounts([pad_thai], [_share("i1", "p1", "1.0000")])

    (result,) = calculate_person_totals([pad_thai], assignments, [alice], "0.00", "0.00")

    assert result.total_owed == Decimal("180.00")
    assert result.subtotal == Decimal("180.00")
    assert alice.total_owed == Decimal("0.00")


def test_tax_and_tip_follow_item_share() -> None:
    items = [_item("i1", "10.00"), _item("i2", "20.00")]
    people = [Person(id="a", name="A"), Person(id="b", name="B")]
    assignments = calculate_assignment_amounts(items, [_share("i1", "a", "1"), _share("i2", "b", "1")])

    a, b = calculate_person_totals(items, assignments, people, "3.00", "4.50")

    assert (a.subtotal, a.tax_amount, a.tip_amount, a.total_owed) == (
        Decimal("10.00"),
        Decimal("1.00"),
        Decimal("1.50"),
        Decimal("12.50"),
    )
    assert b.total_owed == Decimal("25.00")
    assert reconcile([a, b], "30.00", "3.00", "4.50")


def test_full_coverage_reconciles_with_uneven_shares() -> None:
    items = [_item("i1", "33.33"), _item("i2", "17.01"), _item("i3", "5.55")]
    people = [Person(id="a", name="A"), Person(id="b", name="B"), Person(id="c", name="C")]
    raw = [
        _share("i1", "a", "0.5"),
        _share("i1", "b", "0.25"),
        _share("i1", "c", "0.25"),
        _share("i2", "b", "1"),
        _share("i3", "a", "0.2"),
        _share("i3", "c", "0.8"),
    ]
    assignments = calculate_assignment_amounts(items, raw)
    assert validate_assignments(items, assignments).is_valid

    updated = calculate_person_totals(items, assignments, people, "3.92", "5.00")

    assert reconcile(updated, calculate_subtotal(items), "3.92", "5.00")


def test_no_assignments_means_everyone_owes_zero() -> None:
    people = [Person(id="a", name="A", total_owed=Decimal("9.99"))]

    (person,) = calculate_person_totals([_item("i1", "10.00")], [], people, "1.00", "1.00")

    assert person.total_owed == Decimal("0.00")
    assert person.tax_amount == Decimal("0.00")


def test_zero_subtotal_means_everyone_owes_zero() -> None:
    items = [_item("i1", "0.00")]
    assignments = calculate_assignment_amounts(items, [_share("i1", "a", "1")])

    (person,) = calculate_person_totals(items, assignments, [Person(id="a", name="A")], "1.00", "0.00")

    assert person.total_owed == Decimal("0.00")


def test_assignment_for_missing_item_is_priced_at_zero() -> None:
    (priced,) = calculate_assignment_amounts([_item("i1", "10.00")], [_share("gone", "a", "1")])

    assert priced.assigned_amount == Decimal("0.00")


def test_assignment_amount_is_rounded_share() -> None:
    (priced,) = calculate_assignment_amounts([_item("i1", "10.00")], [_share("i1", "a", "0.3333")])

    assert priced.assigned_amount == Decimal("3.33")


def test_validate_assignments_reports_missing_and_partial_items() -> None:
    items = [_item("i1", "10.00", "Soup"), _item("i2", "5.00", "Rice")]

    result = validate_assignments(items, [_share("i1", "a", "0.5")])

    assert not result.is_valid
    assert result.errors == [
        'Item "Soup" assignments total 0.5000 instead of 1.0000',
        'Item "Rice" has no assignments',
    ]


def test_validate_assignments_flags_overassignment() -> None:
    result = validate_assignments([_item("i1", "10.00", "Soup")], [_share("i1", "a", "1"), _share("i1", "b", "0.1")])

    assert result.errors == ['Item "Soup" assignments total 1.1000 instead of 1.0000']


def test_validate_assignments_accepts_exact_cover() -> None:
    result = validate_assignments([_item("i1", "10.00")], [_share("i1", "a", "0.25"), _share("i1", "b", "0.75")])

    assert result.is_valid
    assert result.errors == []


def test_equal_split_among_three_keeps_residue() -> None:
    item = _item("i1", "10.00", "Pizza")
    people = [Person(id=p, name=p) for p in ("a", "b", "c")]

    assignments = create_equal_assignments([item], people)

    assert [str(a.share_percentage) for a in assignments] == ["0.3333", "0.3333", "0.3333"]
    assert [a.assigned_amount for a in assignments] == [Decimal("3.33")] * 3
    result = validate_assignments([item], assignments)
    assert result.errors == ['Item "Pizza" assignments total 0.9999 instead of 1.0000']


def test_equal_split_with_nobody_is_empty() -> None:
    assert create_equal_assignments([_item("i1", "10.00")], []) == []


def test_equal_split_among_four_is_valid() -> None:
    items = [_item("i1", "10.00"), _item("i2", "7.00")]
    people = [Person(id=p, name=p) for p in ("a", "b", "c", "d")]

    assignments = create_equal_assignments(items, people)

    assert len(assignments) == 8
    assert validate_assignments(items, assignments).is_valid


def test_bill_summary() -> None:
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    items = [_item("i1", "10.00"), _item("i2", "5.50")]

    summary = calculate_bill_summary("r1", items, [Person(id="a", name="A")], "1.09", "2", calculated_at=stamp)

    assert summary.subtotal == Decimal("15.50")
    assert summary.tax_amount == Decimal("1.09")
    assert summary.tip_amount == Decimal("2.00")
    assert summary.total_amount == Decimal("18.59")
    assert summary.people_count == 1
    assert summary.calculated_at == stamp


def test_reconcile_detects_mismatch() -> None:
    people = [Person(id="a", name="A", total_owed=Decimal("10.00"))]

    assert reconcile(people, "10.00", "0.00", "0.01")
    assert not reconcile(people, "10.00", "0.00", "0.02")
