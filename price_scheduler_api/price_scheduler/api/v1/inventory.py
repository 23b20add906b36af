"""
Inventory API endpoints.
"""

from fastapi import APIRouter, Depends, Query, HTTPException, status

from price_scheduler.core.auth import get_shop_client
from price_scheduler.core.errors import InventoryUpdateError
from price_scheduler.core.shopify_client import ShopifyClient, ShopifyError
from price_scheduler.core.ops.inventory import set_available_quantities
from price_scheduler.schemas.inventory import (
    InventoryLevelRequest, InventoryLevelResponse,
    InventoryUpdateRequest, InventoryBulkUpdateRequest, InventoryUpdateResponse,
    LocationListResponse, InventoryProductListResponse
)

router = APIRouter()


def _catalog_failure(action: str, e: ShopifyError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Failed to {action}: {str(e)}"
    )


@router.get("/locations", response_model=LocationListResponse)
async def list_locations(
    first: int = Query(50, ge=1, le=250),
    client: ShopifyClient = Depends(get_shop_client)
):
    """List inventory locations."""
    try:
        locations = await client.list_locations(first=first)
    except ShopifyError as e:
        raise _catalog_failure("load locations", e)
    return LocationListResponse(locations=locations)


@router.get("/products", response_model=InventoryProductListResponse)
async def list_inventory_products(
    first: int = Query(50, ge=1, le=250),
    client: ShopifyClient = Depends(get_shop_client)
):
    """List products with variant inventory item ids."""
    try:
        products = await client.list_inventory_products(first=first)
    except ShopifyError as e:
        raise _catalog_failure("load inventory products", e)
    return InventoryProductListResponse(products=products)


@router.post("/level", response_model=InventoryLevelResponse)
async def get_inventory_level(
    request: InventoryLevelRequest,
    client: ShopifyClient = Depends(get_shop_client)
):
    """Read the available quantity of an item at a location."""
    try:
        available = await client.get_inventory_level(request.inventory_item_id, request.location_id)
    except ShopifyError as e:
        raise _catalog_failure("read inventory level", e)
    return InventoryLevelResponse(available=available)


async def _set_quantities(client: ShopifyClient, location_id: str, updates: list) -> InventoryUpdateResponse:
    try:
        updated = await set_available_quantities(client, location_id, updates)
    except InventoryUpdateError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except ShopifyError as e:
        raise _catalog_failure("update inventory", e)
    return InventoryUpdateResponse(updated=updated)


@router.post("/update", response_model=InventoryUpdateResponse)
async def update_inventory(
    request: InventoryUpdateRequest,
    client: ShopifyClient = Depends(get_shop_client)
):
    """Set the available quantity of one item at a location."""
    return await _set_quantities(
        client,
        request.location_id,
        [{"inventoryItemId": request.inventory_item_id, "quantity": request.quantity}]
    )


@router.post("/update-bulk", response_model=InventoryUpdateResponse)
async def update_inventory_bulk(
    request: InventoryBulkUpdateRequest,
    client: ShopifyClient = Depends(get_shop_client)
):
    """Set available quantities of several items at one location."""
    return await _set_quantities(
        client,
        request.location_id,
        [{"inventoryItemId": u.inventory_item_id, "quantity": u.quantity} for u in request.updates]
    )
