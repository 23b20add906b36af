"""
Inventory quantity operations.
"""

import logging
from typing import Any, Dict, List

from price_scheduler.core.errors import InventoryUpdateError
from price_scheduler.core.shopify_client import ShopifyClient

logger = logging.getLogger(__name__)


async def set_available_quantities(
    client: ShopifyClient,
    location_id: str,
    updates: List[Dict[str, Any]]
) -> int:
    """
    Set "available" quantities of several inventory items at one location.

    Updates without an inventoryItemId or quantity are ignored.

    Args:
        client: Catalog client
        location_id: Location GID
        updates: [{"inventoryItemId", "quantity"}]

    Returns:
        Number of quantities sent

    Raises:
        InventoryUpdateError: No valid update, or the catalog rejected the change
    """
    quantities = [
        {
            "inventoryItemId": u["inventoryItemId"],
            "locationId": location_id,
            "quantity": int(u["quantity"]),
        }
        for u in updates
        if u.get("inventoryItemId") and u.get("quantity") is not None
    ]

    if not quantities:
        raise InventoryUpdateError("No valid updates")

    user_errors = await client.set_inventory_quantities(quantities)
    if user_errors:
        raise InventoryUpdateError(user_errors[0].get("message") or "Inventory update failed", user_errors)

    logger.info(f"Set {len(quantities)} inventory quantities at {location_id}")
    return len(quantities)
