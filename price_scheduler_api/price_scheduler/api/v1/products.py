"""
Products API endpoints: listing, price preview, apply-now price adjustment
and status changes.
"""

from fastapi import APIRouter, Depends, Query, HTTPException, status

from price_scheduler.core.auth import get_shop_client
from price_scheduler.core.shopify_client import ShopifyClient, ShopifyError
from price_scheduler.core.ops.bulk_price_adjust import preview_price_adjustment, apply_price_adjustment
from price_scheduler.core.ops.product_status import update_products_status
from price_scheduler.schemas.prices import PriceAdjustmentRequest, PricePreviewResponse, PriceAdjustResponse
from price_scheduler.schemas.products import ProductListResponse, ProductStatusRequest, ProductStatusResponse

router = APIRouter()


@router.get("", response_model=ProductListResponse)
async def list_products(
    first: int = Query(50, ge=1, le=250),
    client: ShopifyClient = Depends(get_shop_client)
):
    """List products of the shop."""
    try:
        products = await client.list_products(first=first)
    except ShopifyError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to load products: {str(e)}"
        )
    return ProductListResponse(products=products)


@router.post("/price-preview", response_model=PricePreviewResponse)
async def preview_prices(
    request: PriceAdjustmentRequest,
    client: ShopifyClient = Depends(get_shop_client)
):
    """Show old and new prices for every variant of the selected products."""
    try:
        preview = await preview_price_adjustment(client, request)
    except ShopifyError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Preview failed: {str(e)}"
        )
    return PricePreviewResponse(preview=preview)


@router.post("/price-adjust", response_model=PriceAdjustResponse)
async def adjust_prices(
    request: PriceAdjustmentRequest,
    client: ShopifyClient = Depends(get_shop_client)
):
    """Apply a price adjustment to the selected products now."""
    return await apply_price_adjustment(client, request)


@router.post("/status", response_model=ProductStatusResponse)
async def set_products_status(
    request: ProductStatusRequest,
    client: ShopifyClient = Depends(get_shop_client)
):
    """Set DRAFT, ACTIVE or ARCHIVED on the selected products."""
    return await update_products_status(client, request.product_ids, request.status)
