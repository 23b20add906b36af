"""
Preview and apply-now bulk price adjustment operations.
"""

import logging
from typing import Any, Dict, List, Optional

from price_scheduler.core.price_calculator import compute_price, to_number
from price_scheduler.core.shopify_client import ShopifyClient, ShopifyError
from price_scheduler.core.utils import to_product_gid
from price_scheduler.schemas.prices import (
    PriceAdjustmentRequest, ProductPricePreview, VariantPricePreview,
    PriceAdjustResponse, ProductAdjustResult, ProductAdjustError
)

logger = logging.getLogger(__name__)


def _new_price(request: PriceAdjustmentRequest, old_price: Any) -> float:
    return compute_price(
        old_price,
        request.adjust_type,
        request.amount_type,
        request.percentage,
        request.fixed_amount,
        request.rounding
    )


def _image(node: Optional[Dict[str, Any]], fallback_alt: str) -> Optional[Dict[str, Any]]:
    if not node:
        return None
    return {"url": node.get("url"), "alt_text": node.get("altText") or fallback_alt}


async def preview_price_adjustment(
    client: ShopifyClient,
    request: PriceAdjustmentRequest
) -> List[ProductPricePreview]:
    """
    Compute new prices for every variant of the selected products.

    Products that no longer exist are reported as "(Product not found)".
    """
    preview = []

    for product_id in request.product_ids:
        product = await client.get_product_preview(to_product_gid(product_id))

        if not product:
            preview.append(ProductPricePreview(product_id=product_id, title="(Product not found)"))
            continue

        title = product.get("title") or ""
        variants = (product.get("variants") or {}).get("nodes") or []

        preview.append(ProductPricePreview(
            product_id=product_id,
            title=title,
            image=_image(product.get("featuredImage"), title),
            variants=[
                VariantPricePreview(
                    variant_id=v.get("id"),
                    variant_title=v.get("title"),
                    image=_image(v.get("image"), f"{title} - {v.get('title')}"),
                    old_price=to_number(v.get("price"), 0.0),
                    new_price=_new_price(request, v.get("price")),
                )
                for v in variants
            ]
        ))

    return preview


async def apply_price_adjustment(
    client: ShopifyClient,
    request: PriceAdjustmentRequest
) -> PriceAdjustResponse:
    """
    Recompute and update prices of the selected products right away.

    Each product is fetched and updated on its own; a failing product is
    recorded and the rest continue.
    """
    results: List[ProductAdjustResult] = []
    errors: List[ProductAdjustError] = []

    for product_id in request.product_ids:
        product_gid = to_product_gid(product_id)

        try:
            product = await client.query_variants_for_product(product_gid)
            if not product:
                errors.append(ProductAdjustError(product_id=product_id, message="Product not found"))
                continue

            variants = product.get("variants") or []
            if not variants:
                results.append(ProductAdjustResult(product_id=product_id, updated=0, note="No variants found"))
                continue

            updates = [
                {"id": v.get("id"), "price": str(_new_price(request, v.get("price")))}
                for v in variants
            ]
            result = await client.bulk_update_variant_prices(product_gid, updates)

        except ShopifyError as e:
            logger.warning(f"Price adjustment failed for product {product_id}: {e}")
            errors.append(ProductAdjustError(product_id=product_id, message=str(e)))
            continue

        failures = result.get("user_errors") or []
        if result.get("errors") or failures:
            message = (result.get("errors") or [None])[0] or failures[0].get("message") or "Variant update failed"
            errors.append(ProductAdjustError(product_id=product_id, message=message, user_errors=failures))
            continue

        results.append(ProductAdjustResult(product_id=product_id, updated=len(updates)))

    logger.info(f"Bulk price adjustment: {len(results)} products updated, {len(errors)} failed")

    return PriceAdjustResponse(
        ok=not errors,
        results=results,
        errors=errors,
        message=(
            "Bulk price adjustment completed."
            if not errors
            else "Bulk price adjustment completed with some errors."
        )
    )
