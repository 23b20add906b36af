#!/usr/bin/env python3
"""
Run one scheduler pass for every configured shop.

Meant for cron, e.g. every minute:
    * * * * * cd /srv/price-scheduler && python scripts/run_due_schedules.py

Requires the package to be installed (pip install -e .).
"""

import asyncio
import logging
import sys
from typing import Dict

from redis.exceptions import RedisError

from price_scheduler.config import get_settings, get_all_shops, normalize_shop_domain, validate_shop_config
from price_scheduler.core.schedule_store import ScheduleStore
from price_scheduler.core.ops.run_due_schedules import run_due_schedules
from price_scheduler.deps import get_redis, close_redis, build_shopify_client

logger = logging.getLogger("run_due_schedules")


async def run_shop(store: ScheduleStore, name: str, shop_config: Dict, batch_size: int) -> int:
    """
    One pass for one shop.

    Returns:
        Number of schedules and reverts that failed
    """
    shop = normalize_shop_domain(name)
    client = build_shopify_client({**shop_config, "shop": shop})
    try:
        result = await run_due_schedules(store, client, shop, batch_size=batch_size)
    finally:
        await client.close()

    failed = [r for r in result["processed"] + result["reverted"] if not r["ok"]]
    print(
        f"{shop}: {len(result['processed'])} processed, "
        f"{len(result['reverted'])} reverted, {len(failed)} failed"
    )
    return len(failed)


async def run_all_shops(store: ScheduleStore, shops: Dict[str, Dict], batch_size: int = 10) -> int:
    """
    Run due schedules and reverts of each shop.

    A shop whose pass raises is logged and counted as one failure; the
    remaining shops still run.

    Returns:
        Number of failures in this pass
    """
    failures = 0

    for name, shop_config in shops.items():
        is_valid, error = validate_shop_config(shop_config)
        if not is_valid:
            logger.warning(f"Skipping shop {name}: {error}")
            continue

        try:
            failures += await run_shop(store, name, shop_config, batch_size)
        except Exception:
            logger.exception(f"Scheduler pass failed for shop {name}")
            failures += 1

    return failures


async def run_configured_shops() -> int:
    settings = get_settings()
    store = ScheduleStore(await get_redis(), key_prefix=settings.schedule_key_prefix)
    try:
        return await run_all_shops(store, get_all_shops(), settings.schedule_batch_size)
    finally:
        await close_redis()


def main():
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        failures = asyncio.run(run_configured_shops())
    except (OSError, ValueError, RedisError) as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)

    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
