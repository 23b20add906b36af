"""
Dependency injection for FastAPI.
"""

from typing import Dict, Optional
import redis.asyncio as aioredis
from fastapi import HTTPException, status

from price_scheduler.config import get_settings, get_shop_config, normalize_shop_domain
from price_scheduler.core.schedule_store import ScheduleStore
from price_scheduler.core.shopify_client import ShopifyClient


_redis_client: Optional[aioredis.Redis] = None


async def get_redis() -> aioredis.Redis:
    """Get Redis client (singleton) with lazy connection."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=1.0,
            socket_timeout=3.0,
            retry_on_timeout=True,
            health_check_interval=30,
        )
    return _redis_client


async def close_redis():
    """Close Redis connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_schedule_store() -> ScheduleStore:
    """Schedule store bound to the shared Redis client."""
    redis = await get_redis()
    return ScheduleStore(redis, key_prefix=get_settings().schedule_key_prefix)


def get_shop_by_id(shop: str) -> Dict:
    """
    Get shop configuration by shop domain.

    Args:
        shop: Shop domain.

    Returns:
        Shop config dict with a normalized "shop" key.

    Raises:
        HTTPException: If shop not found.
    """
    try:
        shop_config = get_shop_config(shop)
    except FileNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    if shop_config is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Shop '{shop}' not found"
        )

    return {**shop_config, "shop": normalize_shop_domain(shop)}


def build_shopify_client(shop_config: Dict) -> ShopifyClient:
    """
    Create ShopifyClient for a shop config.

    Raises:
        HTTPException: If the shop is missing credentials.
    """
    if not shop_config.get("access_token"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Shop access token not configured"
        )

    settings = get_settings()
    return ShopifyClient(
        shop_domain=shop_config["shop"],
        access_token=shop_config["access_token"],
        api_version=shop_config.get("api_version") or settings.shopify_api_version,
        rate_limit_rps=settings.catalog_rate_limit_rps,
        timeout=settings.catalog_timeout_seconds,
        max_retries=settings.catalog_max_retries,
    )
