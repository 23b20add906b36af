"""
Utility functions.
"""

from datetime import datetime, timezone
from typing import Any, Optional

GID_PREFIX = "gid://"
SHOPIFY_GID_NAMESPACE = "gid://shopify"


def to_gid(raw_id: Any, resource: str = "Product") -> str:
    """
    Normalize a catalog identifier to its prefixed GID form.

    Accepts "gid://shopify/Product/123" or a bare "123". Idempotent.

    Args:
        raw_id: Raw or prefixed id
        resource: GID resource type (Product, ProductVariant, Location, ...)

    Returns:
        Prefixed GID, or "" for empty input
    """
    if raw_id is None:
        return ""
    value = str(raw_id).strip()
    if not value:
        return ""
    if value.startswith(GID_PREFIX):
        return value
    return f"{SHOPIFY_GID_NAMESPACE}/{resource}/{value}"


def to_product_gid(raw_id: Any) -> str:
    return to_gid(raw_id, "Product")


def to_variant_gid(raw_id: Any) -> str:
    return to_gid(raw_id, "ProductVariant")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken as UTC and a trailing "Z" is accepted.

    Returns:
        datetime or None if the value is missing or unparseable
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO-8601 UTC with a trailing Z."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
