"""
Customer Service - CRUD operations for the customers table

Customers are the "bill to" parties on invoices. Every row belongs to one
owner (user_id). Deleting a customer does not touch its invoices; those are
hidden from invoice listings afterwards (see invoice_service).
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .database import AvailableStore, RecordStore, execute, get_owner_id, require_client, require_owner_id
from .errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

GSTIN_PATTERN = re.compile(r"^\d{2}[A-Z]{5}\d{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class Customer:
    """
    Represents a customer.

    Maps to customers table in database.
    """
    id: str
    name: str
    address: str = ""
    phone: str = ""
    gstin: str = ""  # Optional GST registration number
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "gstin": self.gstin,
        }


def parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_customer(data: dict) -> Customer:
    """Parse database row into Customer object."""
    return Customer(
        id=data["id"],
        name=data.get("name") or "",
        address=data.get("address") or "",
        phone=data.get("phone") or "",
        gstin=data.get("gstin") or "",
        user_id=data.get("user_id"),
        created_at=parse_timestamp(data.get("created_at")),
    )


# =============================================================================
# VALIDATION
# =============================================================================

def validate_gstin(gstin: Optional[str]) -> bool:
    """
    Validate Indian GSTIN format (15 characters).

    Empty GSTIN is valid, the field is optional.
    """
    if not gstin:
        return True
    return bool(GSTIN_PATTERN.match(gstin.strip().upper()))


def validate_phone(phone: Optional[str]) -> bool:
    """Loose phone check: at least 7 digits once separators are removed."""
    if not phone:
        return True
    digits = re.sub(r'[\s\-\(\)\+]', '', phone)
    return len(digits) >= 7 and digits.isdigit()


# =============================================================================
# READ
# =============================================================================

async def get_customers(store: RecordStore) -> List[Customer]:
    """
    Get all customers of the signed-in owner, ordered by name.

    Returns an empty list when storage is unavailable or nobody is signed in.
    """
    if not isinstance(store, AvailableStore):
        logger.warning("Storage unavailable, returning empty customers list.")
        return []

    owner_id = await get_owner_id(store)
    if not owner_id:
        return []

    query = store.client.table("customers").select("*")\
        .eq("user_id", owner_id)\
        .order("name")
    result = await execute(query, "fetching customers", "customers")

    return [_parse_customer(row) for row in result.data] if result.data else []


async def get_customer_by_id(store: RecordStore, customer_id: str) -> Optional[Customer]:
    """Get a customer by ID, None if it does not exist."""
    if not isinstance(store, AvailableStore):
        logger.warning("Storage unavailable, returning None for customer.")
        return None

    query = store.client.table("customers").select("*").eq("id", customer_id).limit(1)
    result = await execute(query, "fetching customer by ID", "customers")

    if result.data:
        return _parse_customer(result.data[0])
    return None


async def get_customers_by_ids(store: RecordStore, customer_ids: List[str]) -> Dict[str, Customer]:
    """
    Batch-fetch customers in a single query.

    Returns:
        Mapping of customer id -> Customer for the ids that exist
    """
    client = require_client(store, "fetch related customers")
    if not customer_ids:
        return {}

    query = client.table("customers").select("*").in_("id", customer_ids)
    result = await execute(query, "fetching related customers", "customers")

    return {row["id"]: _parse_customer(row) for row in (result.data or [])}


# =============================================================================
# WRITE
# =============================================================================

async def save_customer(
    store: RecordStore,
    name: str,
    *,
    address: str = "",
    phone: str = "",
    gstin: str = "",
    customer_id: Optional[str] = None,
) -> Customer:
    """
    Create a customer, or update it when customer_id is given.

    Raises:
        ValidationError: Name missing or GSTIN/phone malformed
        NotAuthenticatedError: Nobody is signed in
        StorageError: The write failed or returned nothing
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Customer name is required.")
    gstin = (gstin or "").strip().upper()
    if not validate_gstin(gstin):
        raise ValidationError(f"Invalid GSTIN format: {gstin}. Must be 15 characters, e.g. 29ABCDE1234F1Z5.")
    if not validate_phone(phone):
        raise ValidationError(f"Invalid phone number: {phone}")

    owner_id = await require_owner_id(store, "save a customer")
    client = require_client(store, "save a customer")

    payload = {
        "name": name,
        "address": (address or "").strip(),
        "phone": (phone or "").strip(),
        "gstin": gstin,
        "user_id": owner_id,
    }

    if customer_id:
        query = client.table("customers").update(payload)\
            .eq("id", customer_id)\
            .eq("user_id", owner_id)
    else:
        query = client.table("customers").insert(payload)

    result = await execute(query, "saving customer", "customers")

    if not result.data:
        raise StorageError("Customer was not returned after saving.")

    customer = _parse_customer(result.data[0])
    logger.info(f"Customer saved: {customer.id}")
    return customer


async def delete_customer(store: RecordStore, customer_id: str) -> None:
    """
    Delete a customer.

    Invoices referencing it are kept in storage.
    """
    owner_id = await require_owner_id(store, "delete a customer")
    client = require_client(store, "delete a customer")

    query = client.table("customers").delete()\
        .eq("id", customer_id)\
        .eq("user_id", owner_id)
    await execute(query, "deleting customer", "customers")
    logger.info(f"Customer deleted: {customer_id}")
