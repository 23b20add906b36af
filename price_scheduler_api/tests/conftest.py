import json
import pytest
import fakeredis
import fakeredis.aioredis
from fastapi.testclient import TestClient

from price_scheduler.main import app
from price_scheduler.deps import get_schedule_store
from price_scheduler.core.auth import get_verified_shop, get_shop_client
from price_scheduler.core.schedule_store import ScheduleStore
from price_scheduler.core.utils import to_product_gid, to_variant_gid

SHOP = "demo.myshopify.com"
OTHER_SHOP = "other.myshopify.com"
SHOP_KEY = "test-shop-key"


class FakeCatalog:
    """In-memory stand-in for ShopifyClient that records every mutation."""

    def __init__(self, products=None, variant_products=None):
        # {product_gid: {"title": str, "variants": [{"id", "price"}]}}
        self.products = products or {}
        # {variant_gid: product_gid}
        self.variant_products = variant_products or {}
        self.user_errors = []
        self.errors = []
        self.bulk_updates = []
        self.resolve_calls = []
        self.status_updates = []
        self.inventory_sets = []
        self.closed = False

    def add_product(self, product_id, variants, title="Product"):
        product_gid = to_product_gid(product_id)
        self.products[product_gid] = {
            "title": title,
            "variants": [{"id": to_variant_gid(v), "price": str(p)} for v, p in variants],
        }
        for v, _ in variants:
            self.variant_products[to_variant_gid(v)] = product_gid

    async def resolve_product_for_variant(self, variant_id):
        self.resolve_calls.append(variant_id)
        return self.variant_products.get(to_variant_gid(variant_id))

    async def query_variants_for_product(self, product_id):
        product_gid = to_product_gid(product_id)
        product = self.products.get(product_gid)
        if product is None:
            return None
        return {"id": product_gid, "title": product["title"], "variants": list(product["variants"])}

    async def get_product_preview(self, product_id):
        product_gid = to_product_gid(product_id)
        product = self.products.get(product_gid)
        if product is None:
            return None
        return {
            "id": product_gid,
            "title": product["title"],
            "featuredImage": None,
            "variants": {"nodes": [
                {"id": v["id"], "title": "Default", "price": v["price"], "image": None}
                for v in product["variants"]
            ]},
        }

    async def bulk_update_variant_prices(self, product_id, variants):
        self.bulk_updates.append((to_product_gid(product_id), [dict(v) for v in variants]))
        return {
            "errors": list(self.errors),
            "user_errors": list(self.user_errors),
            "product_variants": [] if self.errors or self.user_errors else variants,
        }

    async def update_product_status(self, product_id, status):
        self.status_updates.append((product_id, status))
        product_gid = to_product_gid(product_id)
        if product_gid not in self.products:
            return {"product": None, "errors": [], "user_errors": [{"field": ["id"], "message": "Product does not exist"}]}
        return {"product": {"id": product_gid, "status": status}, "errors": [], "user_errors": []}

    async def set_inventory_quantities(self, quantities):
        self.inventory_sets.append(quantities)
        return list(self.user_errors)

    async def get_inventory_level(self, inventory_item_id, location_id):
        return 7

    async def list_products(self, first=50):
        return [{"id": gid, "title": p["title"]} for gid, p in self.products.items()][:first]

    async def list_locations(self, first=50):
        return [{"id": "gid://shopify/Location/1", "name": "Main"}]

    async def list_inventory_products(self, first=50):
        return []

    async def close(self):
        self.closed = True


@pytest.fixture
def redis_client():
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(redis_client):
    return ScheduleStore(redis_client, key_prefix="test_schedule")


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def shops_config(tmp_path, monkeypatch):
    """Point the settings at a temporary shops_config.json."""
    from price_scheduler import config

    path = tmp_path / "shops_config.json"
    path.write_text(json.dumps({
        "shops": {
            SHOP: {"access_token": "shpat_test", "api_key": SHOP_KEY},
            "nokey.myshopify.com": {"access_token": "shpat_test"},
        }
    }), encoding="utf-8")
    monkeypatch.setattr(config._settings, "shops_config_path", str(path))
    return path


@pytest.fixture
def api_client(catalog):
    """
    TestClient authenticated as SHOP, backed by a shared fake Redis server
    and the FakeCatalog. Yields (client, catalog).
    """
    server = fakeredis.FakeServer()

    async def override_store():
        redis = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
        return ScheduleStore(redis, key_prefix="test_schedule")

    async def override_shop(shop: str):
        return {"shop": shop, "access_token": "shpat_test", "api_key": SHOP_KEY}

    async def override_client():
        yield catalog

    app.dependency_overrides[get_schedule_store] = override_store
    app.dependency_overrides[get_verified_shop] = override_shop
    app.dependency_overrides[get_shop_client] = override_client

    with TestClient(app) as client:
        yield client, catalog

    app.dependency_overrides.clear()
