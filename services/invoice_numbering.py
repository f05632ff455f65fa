"""
Invoice number allocation: INV-<year>-<3 digit sequence>.

The next number continues from the owner's most recently created invoice,
whatever year it belongs to; only the prefix takes the current year. Nothing
is reserved, so two allocations made at the same time can return the same
number.
"""

import logging
from datetime import date
from typing import Optional

from .database import AvailableStore, RecordStore, execute, get_owner_id
from .errors import InvoiceAppError

logger = logging.getLogger(__name__)

INVOICE_NUMBER_PREFIX = "INV"
SEQUENCE_WIDTH = 3


def format_invoice_number(year: int, sequence: int) -> str:
    return f"{INVOICE_NUMBER_PREFIX}-{year}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(invoice_number: Optional[str]) -> Optional[int]:
    """Trailing numeric segment after the last '-', or None."""
    if not invoice_number:
        return None
    tail = str(invoice_number).rsplit("-", 1)[-1].strip()
    if not tail.isdigit():
        return None
    return int(tail)


def next_invoice_number_after(last_number: Optional[str], year: int) -> str:
    """
    Compute the number following last_number.

    Example:
        >>> next_invoice_number_after("INV-2025-007", 2025)
        'INV-2025-008'
    """
    sequence = parse_sequence(last_number)
    if sequence is None:
        return format_invoice_number(year, 1)
    return format_invoice_number(year, sequence + 1)


async def get_next_invoice_number(store: RecordStore, today: Optional[date] = None) -> str:
    """
    Allocate the next invoice number for the signed-in owner.

    Falls back to INV-<year>-001 when storage is unavailable, nobody is
    signed in, the owner has no invoices or the lookup fails.
    """
    year = (today or date.today()).year
    first = format_invoice_number(year, 1)

    if not isinstance(store, AvailableStore):
        logger.warning("Storage unavailable, returning default invoice number.")
        return first

    owner_id = await get_owner_id(store)
    if not owner_id:
        return first

    query = store.client.table("invoices").select("invoice_number")\
        .eq("user_id", owner_id)\
        .order("created_at", desc=True)\
        .limit(1)

    try:
        result = await execute(query, "fetching latest invoice number", "invoices")
    except InvoiceAppError as e:
        logger.warning(f"Could not fetch next invoice number: {e}. Starting from 001.")
        return first

    if not result.data:
        return first

    return next_invoice_number_after(result.data[0].get("invoice_number"), year)
