"""
Product Service - CRUD for the products table

Products are price templates used when composing invoice lines. Changing a
product never changes invoices that were already created from it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from .customer_service import parse_timestamp
from .database import AvailableStore, RecordStore, execute, get_owner_id, require_client, require_owner_id
from .errors import StorageError, ValidationError
from .invoice_calculator import safe_float

logger = logging.getLogger(__name__)


@dataclass
class Product:
    id: str
    name: str
    unit_price: float = 0.0
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None


def _parse_product(data: dict) -> Product:
    """Parse database row into Product object."""
    return Product(
        id=data["id"],
        name=data.get("name") or "",
        unit_price=safe_float(data.get("unit_price")),
        user_id=data.get("user_id"),
        created_at=parse_timestamp(data.get("created_at")),
    )


def validate_unit_price(unit_price: Any) -> float:
    """
    Parse and check a unit price.

    Raises:
        ValidationError: Not a number or negative
    """
    try:
        value = float(unit_price)
    except (TypeError, ValueError):
        raise ValidationError(f"Unit price must be a number, got: {unit_price}")
    if value != value or value < 0:
        raise ValidationError(f"Unit price must be zero or more, got: {unit_price}")
    return value


async def get_products(store: RecordStore) -> List[Product]:
    """Get the signed-in owner's products ordered by name."""
    if not isinstance(store, AvailableStore):
        logger.warning("Storage unavailable, returning empty products list.")
        return []

    owner_id = await get_owner_id(store)
    if not owner_id:
        return []

    query = store.client.table("products").select("*")\
        .eq("user_id", owner_id)\
        .order("name")
    result = await execute(query, "fetching products", "products")

    return [_parse_product(row) for row in result.data] if result.data else []


async def get_product_by_id(store: RecordStore, product_id: str) -> Optional[Product]:
    if not isinstance(store, AvailableStore):
        logger.warning("Storage unavailable, returning None for product.")
        return None

    query = store.client.table("products").select("*").eq("id", product_id).limit(1)
    result = await execute(query, "fetching product by ID", "products")

    if result.data:
        return _parse_product(result.data[0])
    return None


async def save_product(
    store: RecordStore,
    name: str,
    unit_price: Any,
    *,
    product_id: Optional[str] = None,
) -> Product:
    """
    Create a product, or update it when product_id is given.

    Raises:
        ValidationError: Name missing or price invalid
        NotAuthenticatedError: Nobody is signed in
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Product name is required.")
    price = validate_unit_price(unit_price)

    owner_id = await require_owner_id(store, "save a product")
    client = require_client(store, "save a product")

    payload = {"name": name, "unit_price": price, "user_id": owner_id}

    if product_id:
        query = client.table("products").update(payload)\
            .eq("id", product_id)\
            .eq("user_id", owner_id)
    else:
        query = client.table("products").insert(payload)

    result = await execute(query, "saving product", "products")

    if not result.data:
        raise StorageError("Product was not returned after saving.")
    return _parse_product(result.data[0])


async def delete_product(store: RecordStore, product_id: str) -> None:
    owner_id = await require_owner_id(store, "delete a product")
    client = require_client(store, "delete a product")

    query = client.table("products").delete()\
        .eq("id", product_id)\
        .eq("user_id", owner_id)
    await execute(query, "deleting product", "products")
