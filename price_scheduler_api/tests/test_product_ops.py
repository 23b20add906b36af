import pytest
from pydantic import ValidationError

from price_scheduler.core.errors import InventoryUpdateError
from price_scheduler.core.ops.bulk_price_adjust import preview_price_adjustment, apply_price_adjustment
from price_scheduler.core.ops.inventory import set_available_quantities
from price_scheduler.core.ops.product_status import update_products_status
from price_scheduler.schemas.prices import PriceAdjustmentRequest


def _request(**overrides):
    data = {
        "productIds": ["1", "404"],
        "adjustType": "decrease",
        "amountType": "percentage",
        "percentage": 10,
        "rounding": "up_99",
    }
    data.update(overrides)
    return PriceAdjustmentRequest(**data)


def test_request_rejects_bad_amount():
    with pytest.raises(ValidationError, match="percentage must be between 0 and 100"):
        _request(percentage=120)
    with pytest.raises(ValidationError, match="fixedAmount is required"):
        _request(amountType="fixed", percentage=None)


@pytest.mark.asyncio
async def test_preview_reports_missing_products(catalog):
    catalog.add_product("1", [("11", "20.00"), ("12", "35.50")], title="Shirt")

    preview = await preview_price_adjustment(catalog, _request())

    assert preview[0].title == "Shirt"
    assert [(v.old_price, v.new_price) for v in preview[0].variants] == [(20.0, 18.99), (35.5, 31.99)]
    assert preview[1].title == "(Product not found)"
    assert preview[1].variants == []
    assert catalog.bulk_updates == []


@pytest.mark.asyncio
async def test_apply_updates_found_products_and_collects_errors(catalog):
    catalog.add_product("1", [("11", "20.00")])
    catalog.add_product("2", [])

    result = await apply_price_adjustment(catalog, _request(productIds=["1", "2", "404"]))

    assert result.ok is False
    assert [(r.product_id, r.updated, r.note) for r in result.results] == [
        ("1", 1, None),
        ("2", 0, "No variants found"),
    ]
    assert [(e.product_id, e.message) for e in result.errors] == [("404", "Product not found")]
    assert catalog.bulk_updates == [
        ("gid://shopify/Product/1", [{"id": "gid://shopify/ProductVariant/11", "price": "18.99"}])
    ]


@pytest.mark.asyncio
async def test_apply_reports_user_errors(catalog):
    catalog.add_product("1", [("11", "20.00")])
    catalog.user_errors = [{"field": ["price"], "message": "Price too low"}]

    result = await apply_price_adjustment(catalog, _request(productIds=["1"]))

    assert result.ok is False
    assert result.errors[0].message == "Price too low"
    assert result.message == "Bulk price adjustment completed with some errors."


@pytest.mark.asyncio
async def test_status_update_collects_failures(catalog):
    catalog.add_product("1", [("11", "1")])

    result = await update_products_status(catalog, ["1", "404"], "ARCHIVED")

    assert result["ok"] is False
    assert result["updated"] == [{"id": "gid://shopify/Product/1", "status": "ARCHIVED"}]
    assert result["errors"] == [{"id": "404", "error": "Product does not exist"}]


@pytest.mark.asyncio
async def test_inventory_skips_incomplete_updates(catalog):
    count = await set_available_quantities(catalog, "gid://shopify/Location/1", [
        {"inventoryItemId": "gid://shopify/InventoryItem/1", "quantity": 5},
        {"inventoryItemId": "", "quantity": 3},
        {"inventoryItemId": "gid://shopify/InventoryItem/2"},
    ])

    assert count == 1
    assert catalog.inventory_sets == [[{
        "inventoryItemId": "gid://shopify/InventoryItem/1",
        "locationId": "gid://shopify/Location/1",
        "quantity": 5,
    }]]


@pytest.mark.asyncio
async def test_inventory_errors(catalog):
    with pytest.raises(InventoryUpdateError, match="No valid updates"):
        await set_available_quantities(catalog, "gid://shopify/Location/1", [])

    catalog.user_errors = [{"field": ["quantity"], "message": "Quantity is too large"}]
    with pytest.raises(InventoryUpdateError, match="Quantity is too large") as exc:
        await set_available_quantities(catalog, "gid://shopify/Location/1", [
            {"inventoryItemId": "gid://shopify/InventoryItem/1", "quantity": 10**9},
        ])
    assert exc.value.user_errors
