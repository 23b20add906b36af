"""
Canonical shape of schedule items.

Items have been stored with the product id under several names over time;
everything past this module only sees "productId".
"""

from collections import OrderedDict
from typing import Any, Dict, List, Optional

from price_scheduler.core.errors import ScheduleExecutionError
from price_scheduler.core.utils import to_product_gid, to_variant_gid

PRODUCT_ID_ALIASES = ("productId", "productGid", "pid")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def extract_product_id(item: Dict[str, Any]) -> Optional[str]:
    """First non-empty product id among the known field names."""
    for name in PRODUCT_ID_ALIASES:
        value = item.get(name)
        if not _is_blank(value):
            return str(value)
    return None


def normalize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of an item with the product id under "productId" only.
    """
    normalized = {k: v for k, v in item.items() if k not in PRODUCT_ID_ALIASES}
    product_id = extract_product_id(item)
    if product_id is not None:
        normalized["productId"] = product_id
    return normalized


def group_price_updates(items: Any, price_field: str = "newPrice") -> "OrderedDict[str, List[Dict[str, str]]]":
    """
    Validate items and group them by product GID in first-seen order.

    Args:
        items: Stored schedule items
        price_field: "newPrice" to apply, "oldPrice" to revert

    Returns:
        {product_gid: [{"id": variant_gid, "price": str}]}

    Raises:
        ScheduleExecutionError: No items, or an item lacks a required field
    """
    if not isinstance(items, list) or not items:
        raise ScheduleExecutionError("No items found in schedule payload")

    grouped: "OrderedDict[str, List[Dict[str, str]]]" = OrderedDict()

    for index, raw in enumerate(items, 1):
        item = normalize_item(raw) if isinstance(raw, dict) else {}
        product_id = item.get("productId")
        variant_id = item.get("variantId")
        price = item.get(price_field)

        if _is_blank(product_id):
            raise ScheduleExecutionError(f"Item {index} missing productId")
        if _is_blank(variant_id):
            raise ScheduleExecutionError(f"Item {index} missing variantId")
        if _is_blank(price):
            raise ScheduleExecutionError(f"Item {index} (variant {variant_id}) missing {price_field}")

        product_gid = to_product_gid(product_id)
        grouped.setdefault(product_gid, []).append({
            "id": to_variant_gid(variant_id),
            "price": str(price),
        })

    return grouped
