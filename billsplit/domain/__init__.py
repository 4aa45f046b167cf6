"""Core domain models for billsplit.

This module provides the data models shared by the parser and the
allocation engine:
- LineItem, LineItemDraft, ParsedReceipt: receipt parsing models
- Person, ItemAssignment, BillSummary: bill splitting models

Usage:
    from billsplit.domain import LineItem, Person, ItemAssignment
"""

from billsplit.domain.bill import (
    PERSON_COLORS,
    ZERO_MONEY,
    BillSummary,
    ItemAssignment,
    LineItem,
    LineItemDraft,
    ParsedReceipt,
    ParseValidation,
    Person,
    ValidationResult,
    next_person_color,
)

__all__ = [
    "PERSON_COLORS",
    "ZERO_MONEY",
    "BillSummary",
    "ItemAssignment",
    "LineItem",
    "LineItemDraft",
    "ParsedReceipt",
    "ParseValidation",
    "Person",
    "ValidationResult",
    "next_person_color",
]
