"""
Shop authentication dependencies.
"""

import secrets
import logging
from typing import AsyncIterator, Dict, Optional
from fastapi import Depends, HTTPException, status, Header

from price_scheduler.deps import get_shop_by_id, build_shopify_client
from price_scheduler.core.shopify_client import ShopifyClient

logger = logging.getLogger(__name__)


def verify_shop_key(shop: str, shop_key: Optional[str] = None) -> Dict:
    """
    Verify the X-Shop-Key header matches the shop's configured API key.

    Args:
        shop: Shop domain from path
        shop_key: Shop API key from X-Shop-Key header

    Returns:
        Shop config dict (with "shop")

    Raises:
        HTTPException: If key is missing, invalid, or doesn't match shop
    """
    if not shop_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing X-Shop-Key header",
            headers={"X-Error-Code": "missing_shop_key"}
        )

    shop_config = get_shop_by_id(shop)

    shop_api_key = shop_config.get("api_key")
    if not shop_api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Shop '{shop}' does not have an API key configured",
            headers={"X-Error-Code": "missing_shop_key"}
        )

    # Constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(shop_key, shop_api_key):
        logger.warning(f"Rejected request for {shop}: invalid X-Shop-Key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid X-Shop-Key",
            headers={"X-Error-Code": "invalid_shop_key"}
        )

    return shop_config


async def get_verified_shop(
    shop: str,
    x_shop_key: Optional[str] = Header(None, alias="X-Shop-Key")
) -> Dict:
    """
    FastAPI dependency to verify shop authentication.

    Usage:
        @router.get("/endpoint")
        async def endpoint(shop: Dict = Depends(get_verified_shop)):
            ...
    """
    return verify_shop_key(shop, x_shop_key)


async def get_shop_client(shop: Dict = Depends(get_verified_shop)) -> AsyncIterator[ShopifyClient]:
    """Authorized catalog client for the verified shop, closed after the request."""
    client = build_shopify_client(shop)
    try:
        yield client
    finally:
        await client.close()
