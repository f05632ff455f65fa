"""
Tests for Product Service.
"""

import pytest

from services.errors import NotAuthenticatedError, ValidationError
from services.product_service import (
    delete_product,
    get_product_by_id,
    get_products,
    save_product,
    validate_unit_price,
)
from tests.conftest import OWNER_ID


def make_product(product_id, name, unit_price, user_id=OWNER_ID):
    return {"id": product_id, "name": name, "unit_price": unit_price, "user_id": user_id}


class TestValidateUnitPrice:

    def test_valid(self):
        assert validate_unit_price("12.50") == 12.5
        assert validate_unit_price(0) == 0

    def test_negative(self):
        with pytest.raises(ValidationError):
            validate_unit_price(-1)

    def test_not_a_number(self):
        with pytest.raises(ValidationError):
            validate_unit_price("free")


class TestProducts:

    @pytest.mark.asyncio
    async def test_list_scoped_and_sorted(self, store, mock_supabase):
        mock_supabase.set_table_data("products", [
            make_product("p2", "Web Hosting", 1200),
            make_product("p1", "Domain", 800),
            make_product("p3", "Foreign", 1, user_id="someone-else"),
        ])
        products = await get_products(store)
        assert [p.name for p in products] == ["Domain", "Web Hosting"]
        assert products[0].unit_price == 800.0

    @pytest.mark.asyncio
    async def test_list_no_owner(self, anonymous_store):
        assert await get_products(anonymous_store) == []

    @pytest.mark.asyncio
    async def test_get_by_id(self, store, mock_supabase):
        mock_supabase.set_table_data("products", [make_product("p1", "Domain", 800)])
        assert (await get_product_by_id(store, "p1")).name == "Domain"
        assert await get_product_by_id(store, "p9") is None

    @pytest.mark.asyncio
    async def test_create_and_update(self, store, mock_supabase):
        created = await save_product(store, "Domain", "799")
        assert created.unit_price == 799.0

        updated = await save_product(store, "Domain (1 yr)", 899, product_id=created.id)
        assert updated.name == "Domain (1 yr)"
        assert updated.unit_price == 899.0
        assert len(mock_supabase.tables["products"]) == 1

    @pytest.mark.asyncio
    async def test_create_requires_owner(self, anonymous_store):
        with pytest.raises(NotAuthenticatedError):
            await save_product(anonymous_store, "Domain", 10)

    @pytest.mark.asyncio
    async def test_delete(self, store, mock_supabase):
        mock_supabase.set_table_data("products", [make_product("p1", "Domain", 800)])
        await delete_product(store, "p1")
        assert mock_supabase.tables["products"] == []
