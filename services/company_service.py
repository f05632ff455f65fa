"""
Company profile service - the "from" party printed on invoices

One company_info row per owner. Until the owner saves one, a default profile
is returned.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .database import AvailableStore, RecordStore, execute, get_owner_id, require_client, require_owner_id
from .errors import StorageError, ValidationError
from .customer_service import validate_gstin

logger = logging.getLogger(__name__)


@dataclass
class CompanyInfo:
    name: str
    address: str
    phone: str
    gstin: str
    id: Optional[int] = None
    user_id: Optional[str] = None


DEFAULT_COMPANY_INFO = CompanyInfo(
    name="Sriyantra Solutions",
    address="123 Tech Park, Bangalore, Karnataka 560001",
    phone="+91 80 1234 5678",
    gstin="29ABCDE1234F1Z5",
)


def _parse_company(data: dict) -> CompanyInfo:
    return CompanyInfo(
        id=data.get("id"),
        name=data.get("name") or "",
        address=data.get("address") or "",
        phone=data.get("phone") or "",
        gstin=data.get("gstin") or "",
        user_id=data.get("user_id"),
    )


async def _find_company_row(client, owner_id: str, action: str):
    query = client.table("company_info").select("*").eq("user_id", owner_id).limit(1)
    result = await execute(query, action, "company_info")
    return result.data[0] if result.data else None


async def get_company_info(store: RecordStore) -> CompanyInfo:
    """
    Get the signed-in owner's company profile.

    Returns the default profile when storage is unavailable, nobody is signed
    in or no profile was saved yet.
    """
    if not isinstance(store, AvailableStore):
        logger.warning("Storage unavailable, returning default company info.")
        return replace(DEFAULT_COMPANY_INFO)

    owner_id = await get_owner_id(store)
    if not owner_id:
        logger.warning("User not logged in, returning default company info.")
        return replace(DEFAULT_COMPANY_INFO)

    row = await _find_company_row(store.client, owner_id, "fetching company info")
    if not row:
        return replace(DEFAULT_COMPANY_INFO, user_id=owner_id)
    return _parse_company(row)


async def save_company_info(store: RecordStore, info: CompanyInfo) -> CompanyInfo:
    """
    Save the company profile: update the owner's row if there is one,
    insert otherwise.
    """
    if not (info.name or "").strip():
        raise ValidationError("Company name is required.")
    if not validate_gstin(info.gstin):
        raise ValidationError(f"Invalid GSTIN format: {info.gstin}")

    owner_id = await require_owner_id(store, "save company info")
    client = require_client(store, "save company info")

    payload = {
        "name": info.name.strip(),
        "address": (info.address or "").strip(),
        "phone": (info.phone or "").strip(),
        "gstin": (info.gstin or "").strip().upper(),
        "user_id": owner_id,
    }

    existing = await _find_company_row(client, owner_id, "checking for company info")

    if existing:
        query = client.table("company_info").update(payload).eq("user_id", owner_id)
    else:
        query = client.table("company_info").insert(payload)

    result = await execute(query, "saving company info", "company_info")

    if not result.data:
        raise StorageError("Company info was not returned after saving.")
    return _parse_company(result.data[0])
