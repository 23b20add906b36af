from datetime import datetime, timezone

from price_scheduler.core.utils import to_gid, to_product_gid, to_variant_gid, parse_iso_datetime, to_iso
from price_scheduler.core.security import sanitize_dict_for_logging, sanitize_string_for_logging
from price_scheduler.core.schedule_items import normalize_item, extract_product_id


def test_to_gid_prefixes_bare_ids():
    assert to_product_gid("123") == "gid://shopify/Product/123"
    assert to_variant_gid(456) == "gid://shopify/ProductVariant/456"
    assert to_gid("9", "Location") == "gid://shopify/Location/9"


def test_to_gid_is_idempotent():
    gid = "gid://shopify/ProductVariant/77"
    assert to_variant_gid(gid) == gid
    assert to_variant_gid(to_variant_gid("77")) == to_variant_gid("77")


def test_to_gid_empty():
    assert to_gid(None) == ""
    assert to_gid("  ") == ""


def test_parse_iso_datetime():
    parsed = parse_iso_datetime("2030-01-02T03:04:05Z")
    assert parsed == datetime(2030, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    offset = parse_iso_datetime("2030-01-02T05:04:05+02:00")
    assert offset == parsed

    naive = parse_iso_datetime("2030-01-02T03:04:05")
    assert naive.tzinfo is not None

    assert parse_iso_datetime("now") is None
    assert parse_iso_datetime("") is None
    assert parse_iso_datetime(None) is None


def test_to_iso_uses_z_suffix():
    assert to_iso(datetime(2030, 1, 2, tzinfo=timezone.utc)) == "2030-01-02T00:00:00Z"
    assert to_iso(None) is None


def test_product_id_aliases():
    assert extract_product_id({"productGid": "gid://shopify/Product/1"}) == "gid://shopify/Product/1"
    assert extract_product_id({"pid": 5}) == "5"
    assert extract_product_id({"productId": "", "pid": "6"}) == "6"
    assert extract_product_id({"variantId": "1"}) is None

    item = normalize_item({"pid": "7", "productGid": "8", "variantId": "v", "newPrice": "1.00"})
    assert item == {"productId": "8", "variantId": "v", "newPrice": "1.00"}


def test_sanitize_for_logging():
    data = {"access_token": "shpat_x", "schedule": {"api_key": "k", "runAtIso": "x"}}
    clean = sanitize_dict_for_logging(data)
    assert clean["access_token"] == "***REDACTED***"
    assert clean["schedule"]["api_key"] == "***REDACTED***"
    assert clean["schedule"]["runAtIso"] == "x"
    assert data["access_token"] == "shpat_x"

    text = sanitize_string_for_logging("token shpat_0123456789abcdef0123 leaked")
    assert "0123456789abcdef" not in text
