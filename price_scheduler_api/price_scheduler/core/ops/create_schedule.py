"""
Create scheduled price change operation.
"""

import copy
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from price_scheduler.core.errors import ScheduleValidationError, ProductResolutionError
from price_scheduler.core.price_calculator import validate_adjustment
from price_scheduler.core.schedule_items import normalize_item
from price_scheduler.core.schedule_store import ScheduleStore
from price_scheduler.core.shopify_client import ShopifyClient
from price_scheduler.core.utils import parse_iso_datetime, to_product_gid, to_variant_gid
from price_scheduler.schemas.schedules import ScheduleRecord

logger = logging.getLogger(__name__)


def validate_schedule_request(body: Any) -> Tuple[datetime, Optional[datetime], List[Dict[str, Any]]]:
    """
    Validate a deferred price change request. First failure wins.

    Args:
        body: Decoded JSON request body

    Returns:
        (run_at, revert_at, items)

    Raises:
        ScheduleValidationError: With a human-readable reason
    """
    if not isinstance(body, dict):
        raise ScheduleValidationError("Invalid JSON")

    schedule = body.get("schedule")
    if (
        not isinstance(schedule, dict)
        or schedule.get("changeMode") != "later"
        or not schedule.get("runAtIso")
    ):
        raise ScheduleValidationError("Schedule details missing")

    items = body.get("items") if isinstance(body.get("items"), list) else []
    items_valid = bool(items) and all(
        isinstance(item, dict)
        and item.get("variantId")
        and item.get("newPrice") is not None
        for item in items
    )
    if not items_valid:
        raise ScheduleValidationError("items required (variantId + newPrice)")

    run_at = parse_iso_datetime(schedule.get("runAtIso"))
    if run_at is None:
        raise ScheduleValidationError("Invalid runAtIso")

    revert_at = None
    if schedule.get("revertEnabled") and schedule.get("revertAtIso"):
        revert_at = parse_iso_datetime(schedule.get("revertAtIso"))
        if revert_at is None:
            raise ScheduleValidationError("Invalid revertAtIso")
        if revert_at <= run_at:
            raise ScheduleValidationError("revertAtIso must be later than runAtIso")

    if body.get("adjustType") is not None:
        problem = validate_adjustment(
            body.get("adjustType"),
            body.get("amountType"),
            body.get("percentage"),
            body.get("fixedAmount"),
            body.get("rounding") or "none",
        )
        if problem:
            raise ScheduleValidationError(problem)

    return run_at, revert_at, items


async def resolve_item_products(
    client: ShopifyClient,
    items: List[Dict[str, Any]],
    product_ids: Any
) -> List[Dict[str, Any]]:
    """
    Give every item a productId.

    Order: the item's own id, the single top-level product id, then a catalog
    lookup by variant (cached for this call).

    Raises:
        ProductResolutionError: If a variant's product cannot be found
    """
    fallback = None
    if isinstance(product_ids, list) and len(product_ids) == 1 and product_ids[0]:
        fallback = str(product_ids[0])

    variant_products: Dict[str, str] = {}
    resolved = []

    for raw in items:
        item = normalize_item(raw)
        if not item.get("productId"):
            if fallback:
                item["productId"] = fallback
            else:
                variant_gid = to_variant_gid(item["variantId"])
                if variant_gid not in variant_products:
                    product_gid = await client.resolve_product_for_variant(variant_gid)
                    if not product_gid:
                        raise ProductResolutionError(str(item["variantId"]))
                    variant_products[variant_gid] = product_gid
                item["productId"] = variant_products[variant_gid]
        resolved.append(item)

    return resolved


async def backfill_old_prices(client: ShopifyClient, items: List[Dict[str, Any]]) -> None:
    """
    Fill missing oldPrice from the catalog's current variant prices.

    Items whose product or variant cannot be found keep no oldPrice.
    """
    current_prices: Dict[str, Dict[str, Any]] = {}

    for item in items:
        if item.get("oldPrice") is not None:
            continue
        product_gid = to_product_gid(item["productId"])
        if product_gid not in current_prices:
            product = await client.query_variants_for_product(product_gid)
            variants = (product or {}).get("variants") or []
            current_prices[product_gid] = {
                to_variant_gid(v.get("id")): v.get("price") for v in variants
            }
        price = current_prices[product_gid].get(to_variant_gid(item["variantId"]))
        if price is not None:
            item["oldPrice"] = price


async def create_schedule(
    store: ScheduleStore,
    client: ShopifyClient,
    shop: str,
    body: Any
) -> ScheduleRecord:
    """
    Validate a deferred price change and store it as PENDING.

    All-or-nothing: any validation or resolution failure raises before
    anything is written.

    Args:
        store: Schedule store
        client: Catalog client of the shop
        shop: Tenant from the authenticated session
        body: Decoded JSON request body

    Returns:
        The created schedule record
    """
    run_at, revert_at, items = validate_schedule_request(body)

    resolved_items = await resolve_item_products(client, items, body.get("productIds"))
    if revert_at is not None:
        await backfill_old_prices(client, resolved_items)

    payload = copy.deepcopy(body)
    payload["items"] = resolved_items

    record = await store.create(shop, run_at, payload, revert_at=revert_at)
    logger.info(
        f"Schedule {record.id} created for {shop}: {len(resolved_items)} items, "
        f"run_at={record.run_at.isoformat()}, revert_at={revert_at.isoformat() if revert_at else None}"
    )
    return record
