"""
Bulk product status change operation.
"""

import logging
from typing import Any, Dict, List

from price_scheduler.core.shopify_client import ShopifyClient, ShopifyError

logger = logging.getLogger(__name__)


async def update_products_status(
    client: ShopifyClient,
    product_ids: List[str],
    status: str
) -> Dict[str, Any]:
    """
    Set the status of several products.

    Returns:
        {"ok", "message", "updated": [product], "errors": [{"id", "error"}]}
    """
    updated = []
    errors = []

    for product_id in product_ids:
        try:
            result = await client.update_product_status(product_id, status)
        except ShopifyError as e:
            errors.append({"id": product_id, "error": str(e) or "Failed"})
            continue

        if result["errors"]:
            errors.append({"id": product_id, "error": result["errors"][0]})
            continue

        if result["user_errors"]:
            errors.append({
                "id": product_id,
                "error": ", ".join(e.get("message", "") for e in result["user_errors"]),
            })
            continue

        updated.append(result["product"])

    if errors:
        logger.warning(f"Status update to {status}: {len(errors)} of {len(product_ids)} products failed")

    return {
        "ok": not errors,
        "message": "Status update failed" if errors else "Status updated",
        "updated": updated,
        "errors": errors,
    }
