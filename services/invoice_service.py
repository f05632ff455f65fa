"""
Invoice Service - assembly and CRUD for the invoices table

Invoices are stored normalized: a customer_id reference plus an embedded JSON
list of items. The rest of the application works with the denormalized
Invoice view, which carries the full Customer.

Read path:
- Fetch invoice rows
- Batch-fetch every referenced customer in one query
- Pair them; invoices whose customer was deleted are dropped with a warning

Write path:
- Build an InvoiceSaveRequest holding only stored fields (totals recomputed)
- Resolve the status (derived or explicit) before writing
- Insert, or update by id and owner
- Re-assemble the written row so callers always get a full Invoice
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from .customer_service import Customer, get_customers_by_ids, parse_timestamp
from .database import RecordStore, execute, get_owner_id, require_client, require_owner_id
from .errors import RecordNotFoundError, StorageError, ValidationError
from .invoice_calculator import InvoiceItem, build_item, compute_totals, safe_float
from .invoice_status import (
    Derive,
    Explicit,
    InvoiceStatus,
    NewInvoiceStatus,
    parse_status,
    resolve_status,
    to_date,
)

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class Invoice:
    """
    Denormalized invoice view: the stored row plus its customer.
    """
    id: str
    invoice_number: str
    invoice_date: date
    due_date: date
    customer: Customer
    items: List[InvoiceItem] = field(default_factory=list)
    subtotal: float = 0.0
    gst_percent: float = 0.0
    gst_amount: float = 0.0
    total_amount: float = 0.0
    notes: str = ""
    status: InvoiceStatus = InvoiceStatus.UNPAID
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def customer_id(self) -> str:
        return self.customer.id


@dataclass
class InvoiceSaveRequest:
    """
    Exactly the fields persisted in the invoices table, minus owner and
    status which save_invoice injects.
    """
    invoice_number: str
    invoice_date: date
    due_date: date
    customer_id: str
    items: List[InvoiceItem]
    subtotal: float
    gst_percent: float
    gst_amount: float
    total_amount: float
    notes: str = ""
    id: Optional[str] = None

    def to_row(self, owner_id: str, status: InvoiceStatus) -> Dict[str, Any]:
        return {
            "invoice_number": self.invoice_number,
            "invoice_date": self.invoice_date.isoformat(),
            "due_date": self.due_date.isoformat(),
            "customer_id": self.customer_id,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "gst_percent": self.gst_percent,
            "gst_amount": self.gst_amount,
            "total_amount": self.total_amount,
            "notes": self.notes,
            "status": status.value,
            "user_id": owner_id,
        }


@dataclass
class InvoiceSummary:
    total_invoiced: float
    total_paid: float
    outstanding: float


def _parse_amount(value: Any, label: str) -> float:
    """Parse a submitted number; blank means 0."""
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number, got: {value}")
    if not math.isfinite(number):
        raise ValidationError(f"{label} must be a finite number, got: {value}")
    return number


def validate_item_input(raw: Dict[str, Any]) -> None:
    """
    Check a named line item before it is built.

    Raises:
        ValidationError: Unit price negative or not a number, quantity
            negative or not a whole number
    """
    name = str(raw.get("name") or "").strip()

    unit_price = _parse_amount(raw.get("unit_price"), f"Unit price of '{name}'")
    if unit_price < 0:
        raise ValidationError(f"Unit price of '{name}' must be zero or more, got: {raw.get('unit_price')}")

    quantity = _parse_amount(raw.get("quantity"), f"Quantity of '{name}'")
    if quantity < 0 or quantity != int(quantity):
        raise ValidationError(f"Quantity of '{name}' must be a whole number of zero or more, got: {raw.get('quantity')}")


def build_save_request(
    *,
    invoice_number: str,
    invoice_date,
    due_date,
    customer_id: Optional[str],
    items: Iterable[Any],
    gst_percent: Any,
    notes: str = "",
    invoice_id: Optional[str] = None,
) -> InvoiceSaveRequest:
    """
    Build a save request, recomputing line totals and invoice totals.

    Args:
        items: InvoiceItem objects or dicts (name, unit_price, quantity)

    Raises:
        ValidationError: Missing customer, invoice number or items, or an
            invalid item price, quantity or GST %
    """
    if not customer_id:
        raise ValidationError("Please select a customer.")
    if not (invoice_number or "").strip():
        raise ValidationError("Invoice number is required.")

    built = []
    for item in items:
        raw = item.to_dict() if isinstance(item, InvoiceItem) else item
        if not str(raw.get("name") or "").strip():
            continue
        validate_item_input(raw)
        built.append(build_item(raw))
    if not built:
        raise ValidationError("Add at least one line item.")

    percent = _parse_amount(gst_percent, "GST %")
    if percent < 0:
        raise ValidationError(f"GST % must be zero or more, got: {gst_percent}")
    totals = compute_totals(built, percent)

    return InvoiceSaveRequest(
        id=invoice_id or None,
        invoice_number=invoice_number.strip(),
        invoice_date=to_date(invoice_date),
        due_date=to_date(due_date),
        customer_id=customer_id,
        items=built,
        subtotal=totals.subtotal,
        gst_percent=percent,
        gst_amount=totals.tax_amount,
        total_amount=totals.total,
        notes=notes or "",
    )


def save_request_from_invoice(invoice: Invoice) -> InvoiceSaveRequest:
    """Project a view-model Invoice onto its stored fields."""
    return build_save_request(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
        customer_id=invoice.customer.id,
        items=invoice.items,
        gst_percent=invoice.gst_percent,
        notes=invoice.notes,
    )


def _parse_invoice(data: dict, customer: Customer) -> Invoice:
    """Parse database row plus its customer into an Invoice."""
    return Invoice(
        id=data["id"],
        invoice_number=data.get("invoice_number") or "",
        invoice_date=to_date(data["invoice_date"]),
        due_date=to_date(data["due_date"]),
        customer=customer,
        items=[build_item(raw) for raw in (data.get("items") or [])],
        subtotal=safe_float(data.get("subtotal")),
        gst_percent=safe_float(data.get("gst_percent")),
        gst_amount=safe_float(data.get("gst_amount")),
        total_amount=safe_float(data.get("total_amount")),
        notes=data.get("notes") or "",
        status=parse_status(data.get("status") or InvoiceStatus.UNPAID),
        user_id=data.get("user_id"),
        created_at=parse_timestamp(data.get("created_at")),
    )


# =============================================================================
# ASSEMBLY
# =============================================================================

async def assemble_invoices(store: RecordStore, rows: List[dict]) -> List[Invoice]:
    """
    Pair invoice rows with their customers.

    All distinct customer ids are fetched in one query. Rows whose customer
    no longer exists are left out of the result.

    Raises:
        StorageError: The customer batch-fetch failed
    """
    if not rows:
        return []
    require_client(store, "fetch related customers")

    customer_ids = list(dict.fromkeys(row["customer_id"] for row in rows))
    customers = await get_customers_by_ids(store, customer_ids)

    invoices = []
    for row in rows:
        customer = customers.get(row["customer_id"])
        if not customer:
            logger.warning(f"Customer with ID {row['customer_id']} not found for invoice {row.get('id')}")
            continue
        invoices.append(_parse_invoice(row, customer))
    return invoices


# =============================================================================
# READ
# =============================================================================

async def get_invoices(store: RecordStore) -> List[Invoice]:
    """
    Get the signed-in owner's invoices, newest invoice number first.

    Returns an empty list when nobody is signed in.

    Raises:
        ConfigurationError: Storage is unavailable
    """
    client = require_client(store, "fetch invoices")
    owner_id = await get_owner_id(store)
    if not owner_id:
        return []

    query = client.table("invoices").select("*")\
        .eq("user_id", owner_id)\
        .order("invoice_number", desc=True)
    result = await execute(query, "fetching invoices", "invoices")

    return await assemble_invoices(store, result.data or [])


async def get_invoice_by_id(store: RecordStore, invoice_id: str) -> Optional[Invoice]:
    """Get one invoice; None if it does not exist or its customer is gone."""
    client = require_client(store, "fetch invoice")

    query = client.table("invoices").select("*").eq("id", invoice_id).limit(1)
    result = await execute(query, f"fetching invoice {invoice_id}", "invoices")

    if not result.data:
        return None

    assembled = await assemble_invoices(store, result.data[:1])
    return assembled[0] if assembled else None


# =============================================================================
# WRITE
# =============================================================================

async def save_invoice(
    store: RecordStore,
    request: InvoiceSaveRequest,
    *,
    status: NewInvoiceStatus,
    today: Optional[date] = None,
) -> Invoice:
    """
    Insert or update an invoice and return the assembled view.

    Args:
        store: Record store
        request: Stored fields of the invoice (id set for updates)
        status: Derive() to compute from the due date, Explicit(s) to keep s
        today: Reference date for derivation (defaults to today)

    Raises:
        NotAuthenticatedError: Nobody is signed in
        RecordNotFoundError: Update target missing, or customer gone after save
        StorageError / AccessDeniedError / SchemaMismatchError: Write failed
    """
    owner_id = await require_owner_id(store, "save an invoice")
    client = require_client(store, "save an invoice")

    resolved = resolve_status(status, request.due_date, today)
    payload = request.to_row(owner_id, resolved)

    if request.id:
        query = client.table("invoices").update(payload)\
            .eq("id", request.id)\
            .eq("user_id", owner_id)
    else:
        query = client.table("invoices").insert(payload)

    result = await execute(query, "saving invoice", "invoices")

    if not result.data:
        if request.id:
            logger.warning(f"Invoice with id {request.id} not found for update.")
            raise RecordNotFoundError(f"Invoice {request.id} was not found.")
        raise StorageError("Invoice was not returned after saving.")

    assembled = await assemble_invoices(store, result.data[:1])
    if not assembled:
        raise RecordNotFoundError("Could not find customer for the saved invoice.")

    invoice = assembled[0]
    logger.info(f"Invoice saved: {invoice.invoice_number} ({invoice.status.value})")
    return invoice


async def update_invoice_status(
    store: RecordStore,
    invoice_id: str,
    status: InvoiceStatus,
) -> Optional[Invoice]:
    """
    Explicitly set an invoice's status (e.g. mark as Paid).

    Returns:
        Updated Invoice, or None when the invoice does not exist
    """
    status = parse_status(status)
    owner_id = await require_owner_id(store, "update invoice status")
    client = require_client(store, "update invoice status")

    query = client.table("invoices").update({"status": status.value})\
        .eq("id", invoice_id)\
        .eq("user_id", owner_id)
    result = await execute(query, "updating invoice status", "invoices")

    if not result.data:
        logger.warning(f"Invoice with id {invoice_id} not found for status update.")
        return None

    assembled = await assemble_invoices(store, result.data[:1])
    return assembled[0] if assembled else None


async def delete_invoice(store: RecordStore, invoice_id: str) -> None:
    owner_id = await require_owner_id(store, "delete an invoice")
    client = require_client(store, "delete an invoice")

    query = client.table("invoices").delete()\
        .eq("id", invoice_id)\
        .eq("user_id", owner_id)
    await execute(query, "deleting invoice", "invoices")
    logger.info(f"Invoice deleted: {invoice_id}")


# =============================================================================
# DASHBOARD HELPERS
# =============================================================================

def filter_invoices(
    invoices: List[Invoice],
    search: str = "",
    status: Optional[str] = None,
) -> List[Invoice]:
    """
    Filter by a case-insensitive search on number or customer name,
    and optionally by status ("all" or None means any).
    """
    term = (search or "").strip().lower()
    wanted = parse_status(status) if status and status != "all" else None

    filtered = []
    for invoice in invoices:
        if term and term not in invoice.invoice_number.lower() and term not in invoice.customer.name.lower():
            continue
        if wanted and invoice.status != wanted:
            continue
        filtered.append(invoice)
    return filtered


def summarize_invoices(invoices: List[Invoice]) -> InvoiceSummary:
    total_invoiced = sum(inv.total_amount for inv in invoices)
    total_paid = sum(inv.total_amount for inv in invoices if inv.status == InvoiceStatus.PAID)
    return InvoiceSummary(
        total_invoiced=total_invoiced,
        total_paid=total_paid,
        outstanding=total_invoiced - total_paid,
    )


def status_for_resave(invoice: Optional[Invoice]) -> NewInvoiceStatus:
    """New invoices derive their status; edits keep the current one."""
    if invoice is None:
        return Derive()
    return Explicit(invoice.status)
