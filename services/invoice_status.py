"""
Invoice status resolution.

Statuses are not a strict state machine: any explicit transition is allowed.
Only the derivation for new saves is fixed - Overdue when the due date has
passed, Unpaid otherwise. Draft is never produced here; it can only be set
explicitly.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from .errors import ValidationError


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    UNPAID = "Unpaid"
    PAID = "Paid"
    OVERDUE = "Overdue"


# Dashboard badge colors
STATUS_COLORS = {
    InvoiceStatus.PAID: "#198754",
    InvoiceStatus.UNPAID: "#b58105",
    InvoiceStatus.OVERDUE: "#dc3545",
    InvoiceStatus.DRAFT: "#6c757d",
}


@dataclass(frozen=True)
class Derive:
    """Compute the status from the due date at save time."""


@dataclass(frozen=True)
class Explicit:
    """Persist this status verbatim."""
    status: InvoiceStatus


NewInvoiceStatus = Union[Derive, Explicit]


def parse_status(value) -> InvoiceStatus:
    """Parse a stored or submitted status string."""
    if isinstance(value, InvoiceStatus):
        return value
    try:
        return InvoiceStatus(str(value).strip().capitalize())
    except ValueError:
        raise ValidationError(f"Unknown invoice status: {value}")


def to_date(value: Union[date, datetime, str]) -> date:
    """Accept a date, datetime or ISO string and return the calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def derive_status(due_date, today: Optional[date] = None) -> InvoiceStatus:
    """
    Derive the status of a new invoice from its due date.

    Args:
        due_date: Due date (date, datetime or ISO string); time is ignored
        today: Reference date, defaults to date.today()

    Returns:
        InvoiceStatus.OVERDUE if due_date is before today, else UNPAID
    """
    today = today or date.today()
    if to_date(due_date) < today:
        return InvoiceStatus.OVERDUE
    return InvoiceStatus.UNPAID


def resolve_status(choice: NewInvoiceStatus, due_date, today: Optional[date] = None) -> InvoiceStatus:
    if isinstance(choice, Explicit):
        return parse_status(choice.status)
    return derive_status(due_date, today)
