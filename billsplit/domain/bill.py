"""Data models for receipt parsing and bill splitting."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

ZERO_MONEY = Decimal("0.00")

PERSON_COLORS: tuple[str, ...] = (
    "#FF5733",
    "#33FF57",
    "#3357FF",
    "#FF33F1",
    "#F1FF33",
    "#FF8C33",
    "#33FFF1",
    "#8C33FF",
)


def next_person_color(index: int) -> str:
    """Pick a display colour for the index-th person, cycling the palette."""
    return PERSON_COLORS[index % len(PERSON_COLORS)]


@dataclass
class LineItemDraft:
    """A line item as emitted by the parser, before it has an id."""

    name: str
    quantity: int | Decimal
    unit_price: Decimal
    total_price: Decimal
    category: str | None = None
    is_shared: bool = False
    extracted_text: str = ""
    manually_edited: bool = False


@dataclass
class LineItem:
    """A purchased entry on the bill.

    total_price == round2(quantity * unit_price) unless manually_edited.
    """

    id: str
    name: str
    quantity: int | Decimal
    unit_price: Decimal
    total_price: Decimal
    category: str | None = None
    is_shared: bool = False
    extracted_text: str = ""
    manually_edited: bool = False
    receipt_id: str | None = None


@dataclass
class Person:
    """A participant. Money fields are derived and recomputed on every change."""

    id: str
    name: str
    email: str | None = None
    subtotal: Decimal = ZERO_MONEY
    tax_amount: Decimal = ZERO_MONEY
    tip_amount: Decimal = ZERO_MONEY
    total_owed: Decimal = ZERO_MONEY
    color: str = PERSON_COLORS[0]


@dataclass
class ItemAssignment:
    """Fractional share (0..1, four decimals) of one line item owed by one person."""

    line_item_id: str
    person_id: str
    share_percentage: Decimal
    assigned_amount: Decimal = ZERO_MONEY


@dataclass
class BillSummary:
    """Snapshot of bill totals; rebuilt, never mutated in place."""

    receipt_id: str
    subtotal: Decimal
    tax_amount: Decimal
    tip_amount: Decimal
    total_amount: Decimal
    people_count: int
    calculated_at: datetime


@dataclass
class ParsedReceipt:
    """Parser output. Converted to LineItem records and then discarded."""

    line_items: list[LineItemDraft] = field(default_factory=list)
    subtotal: Decimal | None = None
    tax_amount: Decimal | None = None
    tip_amount: Decimal | None = None
    total_amount: Decimal | None = None
    confidence: int = 0
    raw_text: str = ""


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of assignment validation."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParseValidation:
    """Completeness check for a parsed receipt."""

    is_valid: bool
    warnings: list[str] = field(default_factory=list)
