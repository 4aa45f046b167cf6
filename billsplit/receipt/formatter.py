"""Format parsed receipts and split bills as plain text."""

from decimal import Decimal

from billsplit.domain.bill import BillSummary, LineItemDraft, ParsedReceipt, Person


def _money(value: Decimal | None) -> str:
    return "-" if value is None else f"{value:.2f}"


def _format_rows_aligned(
    rows: list[tuple[str, str, str | None]],
    indent: str = "  ",
) -> list[str]:
    """
    Format label/amount rows with aligned amounts and notes.

    Args:
        rows: List of (label, amount, note_or_none) tuples
        indent: Indentation prefix for each line

    Returns:
        List of formatted lines with left-aligned labels and right-aligned amounts
    """
    if not rows:
        return []

    max_label_len = max(len(label) for label, _, _ in rows)
    max_amount_len = max(len(amount) for _, amount, _ in rows)

    lines = []
    for label, amount, note in rows:
        base = f"{indent}{label.ljust(max_label_len)}  {amount.rjust(max_amount_len)}"
        if note:
            lines.append(f"{base}  # {note}")
        else:
            lines.append(base)
    return lines


def _item_label(item: LineItemDraft) -> str:
    if item.quantity != 1:
        return f"{item.quantity} x {item.name}"
    return item.name


def format_parsed_receipt(
    parsed: ParsedReceipt,
    warnings: list[str] | None = None,
    confidence: int | None = None,
) -> str:
    """Render parser output for review."""
    lines = [f"Confidence: {parsed.confidence if confidence is None else confidence}/100", ""]

    item_rows: list[tuple[str, str, str | None]] = []
    for item in parsed.line_items:
        note = f"@ {_money(item.unit_price)}" if item.quantity != 1 else None
        item_rows.append((_item_label(item), _money(item.total_price), note))
    if item_rows:
        lines.append("Items:")
        lines.extend(_format_rows_aligned(item_rows))
    else:
        lines.append("Items: (none found)")

    lines.append("")
    lines.extend(
        _format_rows_aligned(
            [
                ("Subtotal", _money(parsed.subtotal), None),
                ("Tax", _money(parsed.tax_amount), None),
                ("Tip", _money(parsed.tip_amount), None),
                ("Total", _money(parsed.total_amount), None),
            ],
            indent="",
        )
    )

    if warnings:
        lines.append("")
        lines.extend(f"WARNING: {warning}" for warning in warnings)

    return "\n".join(lines)


def format_person_totals(people: list[Person] | tuple[Person, ...]) -> list[str]:
    rows = [
        (
            person.name,
            _money(person.total_owed),
            f"items {_money(person.subtotal)}, tax {_money(person.tax_amount)}, tip {_money(person.tip_amount)}",
        )
        for person in people
    ]
    return _format_rows_aligned(rows)


def format_bill_summary(summary: BillSummary) -> list[str]:
    return _format_rows_aligned(
        [
            ("Subtotal", _money(summary.subtotal), None),
            ("Tax", _money(summary.tax_amount), None),
            ("Tip", _money(summary.tip_amount), None),
            ("Total", _money(summary.total_amount), f"{summary.people_count} people"),
        ],
        indent="",
    )


def format_split(
    people: list[Person] | tuple[Person, ...],
    summary: BillSummary,
    errors: list[str] | None = None,
    reconciled: bool = True,
) -> str:
    """Render who owes what, followed by the bill totals."""
    lines = ["Per person:"]
    lines.extend(format_person_totals(people) or ["  (nobody on this bill)"])
    lines.append("")
    lines.extend(format_bill_summary(summary))

    if errors:
        lines.append("")
        lines.extend(f"WARNING: {error}" for error in errors)
    if not reconciled:
        lines.append("")
        lines.append("WARNING: per-person totals do not add up to the bill total")

    return "\n".join(lines)
