"""
Run due scheduled price changes operation.

Records are processed one at a time, and product groups within a record one
at a time, so the first catalog error stops the record and is attributed to
it alone.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from price_scheduler.core.errors import ScheduleExecutionError
from price_scheduler.core.schedule_items import group_price_updates
from price_scheduler.core.schedule_store import ScheduleStore
from price_scheduler.core.shopify_client import ShopifyClient
from price_scheduler.core.utils import utcnow, to_iso
from price_scheduler.schemas.schedules import ScheduleRecord

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


async def apply_price_groups(client: ShopifyClient, items: Any, price_field: str = "newPrice") -> int:
    """
    Push item prices to the catalog, one bulk update per product.

    Args:
        client: Catalog client
        items: Stored schedule items
        price_field: Item field holding the target price

    Returns:
        Number of variants updated

    Raises:
        ScheduleExecutionError: On invalid items or the first rejected update
    """
    grouped = group_price_updates(items, price_field)
    updated = 0

    for product_gid, variants in grouped.items():
        result = await client.bulk_update_variant_prices(product_gid, variants)

        errors = result.get("errors") or []
        if errors:
            raise ScheduleExecutionError(", ".join(str(e) for e in errors))

        user_errors = result.get("user_errors") or []
        if user_errors:
            raise ScheduleExecutionError(
                ", ".join(str(e.get("message") if isinstance(e, dict) else e) for e in user_errors)
            )

        updated += len(variants)

    return updated


def _error_text(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


async def _apply_schedule(
    store: ScheduleStore,
    client: ShopifyClient,
    record: ScheduleRecord
) -> Optional[Dict[str, Any]]:
    if not await store.claim(record.shop, record.id):
        logger.info(f"Schedule {record.id} already claimed, skipping")
        return None

    try:
        updated = await apply_price_groups(client, record.payload.get("items"), "newPrice")
    except Exception as e:
        error = _error_text(e)
        logger.warning(f"Schedule {record.id} failed: {error}")
        await store.mark_failed(record.shop, record.id, error)
        return {"id": record.id, "ok": False, "error": error}

    await store.mark_done(record.shop, record.id, revert_at=record.revert_at)
    logger.info(f"Schedule {record.id} done: {updated} variants updated")
    return {"id": record.id, "ok": True}


async def _revert_schedule(
    store: ScheduleStore,
    client: ShopifyClient,
    record: ScheduleRecord
) -> Optional[Dict[str, Any]]:
    if not await store.claim_revert(record.shop, record.id):
        logger.info(f"Revert of schedule {record.id} already claimed, skipping")
        return None

    try:
        updated = await apply_price_groups(client, record.payload.get("items"), "oldPrice")
    except Exception as e:
        error = _error_text(e)
        logger.warning(f"Revert of schedule {record.id} failed: {error}")
        await store.finish_revert(record.shop, record.id, error)
        return {"id": record.id, "ok": False, "error": error}

    await store.finish_revert(record.shop, record.id)
    logger.info(f"Schedule {record.id} reverted: {updated} variants restored")
    return {"id": record.id, "ok": True}


async def _isolated(
    step,
    store: ScheduleStore,
    client: ShopifyClient,
    record: ScheduleRecord
) -> Optional[Dict[str, Any]]:
    """
    Run an apply or revert step for one record, turning any error (including
    a failed status write) into that record's outcome.
    """
    try:
        return await step(store, client, record)
    except Exception as e:
        error = _error_text(e)
        logger.exception(f"Schedule {record.id} of {record.shop} could not be completed: {error}")
        return {"id": record.id, "ok": False, "error": error}


async def run_due_schedules(
    store: ScheduleStore,
    client: ShopifyClient,
    shop: str,
    now: Optional[datetime] = None,
    batch_size: int = DEFAULT_BATCH_SIZE
) -> Dict[str, Any]:
    """
    Execute the shop's due schedules, then its due reverts.

    One record's failure never stops the rest of the batch.

    Args:
        store: Schedule store
        client: Catalog client of the shop
        shop: Tenant
        now: Pass timestamp (defaults to current UTC time)
        batch_size: Max schedules (and max reverts) per pass

    Returns:
        {"now": iso, "processed": [{id, ok, error?}], "reverted": [{id, ok, error?}]}
    """
    now = now or utcnow()
    processed: List[Dict[str, Any]] = []
    reverted: List[Dict[str, Any]] = []

    due = await store.find_due(shop, now, batch_size)
    if due:
        logger.info(f"Running {len(due)} due schedules for {shop}")

    for record in due:
        outcome = await _isolated(_apply_schedule, store, client, record)
        if outcome is not None:
            processed.append(outcome)

    for record in await store.find_due_reverts(shop, now, batch_size):
        outcome = await _isolated(_revert_schedule, store, client, record)
        if outcome is not None:
            reverted.append(outcome)

    return {"now": to_iso(now), "processed": processed, "reverted": reverted}
