"""
Shopify Admin GraphQL client with retry logic and rate limiting.
"""

import time
import random
import asyncio
import logging
from typing import Optional, Dict, List, Any
import httpx

from price_scheduler.core.security import sanitize_string_for_logging
from price_scheduler.core.utils import to_product_gid, to_variant_gid

logger = logging.getLogger(__name__)


PRODUCTS_LIST_QUERY = """
query ListProducts($first: Int!) {
  products(first: $first) {
    edges {
      node {
        id
        title
        handle
        status
        totalInventory
        hasOnlyDefaultVariant
        options { name values }
        images(first: 1) { nodes { url altText } }
      }
    }
  }
}
"""

PRODUCT_PREVIEW_QUERY = """
query GetProductPreview($id: ID!) {
  product(id: $id) {
    id
    title
    featuredImage { url altText }
    variants(first: 100) {
      nodes {
        id
        title
        price
        image { url altText }
      }
    }
  }
}
"""

PRODUCT_VARIANTS_QUERY = """
query GetProductVariants($id: ID!) {
  product(id: $id) {
    id
    title
    variants(first: 250) {
      nodes { id price }
    }
  }
}
"""

VARIANT_PRODUCT_QUERY = """
query GetVariantProduct($id: ID!) {
  productVariant(id: $id) {
    id
    product { id }
  }
}
"""

VARIANTS_BULK_UPDATE_MUTATION = """
mutation ProductVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    productVariants { id price }
    userErrors { field message }
  }
}
"""

PRODUCT_STATUS_MUTATION = """
mutation UpdateProductStatus($product: ProductUpdateInput!) {
  productUpdate(product: $product) {
    product { id status }
    userErrors { field message }
  }
}
"""

LOCATIONS_QUERY = """
query ListLocations($first: Int!) {
  locations(first: $first) {
    nodes { id name isActive }
  }
}
"""

INVENTORY_PRODUCTS_QUERY = """
query InventoryProducts($first: Int!) {
  products(first: $first) {
    nodes {
      id
      title
      featuredImage { url altText }
      variants(first: 50) {
        nodes {
          id
          title
          sku
          inventoryItem { id }
        }
      }
    }
  }
}
"""

INVENTORY_LEVEL_QUERY = """
query GetInventoryLevel($inventoryItemId: ID!, $locationId: ID!) {
  inventoryItem(id: $inventoryItemId) {
    id
    inventoryLevel(locationId: $locationId) {
      quantities(names: ["available"]) { name quantity }
    }
  }
}
"""

INVENTORY_SET_QUANTITIES_MUTATION = """
mutation SetQuantities($input: InventorySetQuantitiesInput!) {
  inventorySetQuantities(input: $input) {
    inventoryAdjustmentGroup { id }
    userErrors { field message }
  }
}
"""


class ShopifyError(Exception):
    """Base exception for Shopify Admin API errors."""
    pass


def _error_messages(errors: Any) -> List[str]:
    messages = []
    for err in errors or []:
        if isinstance(err, dict):
            messages.append(str(err.get("message") or err))
        else:
            messages.append(str(err))
    return messages


def _is_throttled(body: Dict[str, Any]) -> bool:
    for err in body.get("errors") or []:
        if isinstance(err, dict) and (err.get("extensions") or {}).get("code") == "THROTTLED":
            return True
    return False


class ShopifyClient:
    """
    Async Shopify Admin GraphQL client.

    Covers the catalog operations the price tools need: variant prices,
    product status and inventory levels.
    """

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = "2025-01",
        rate_limit_rps: float = 2.0,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_initial_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Shopify client.

        Args:
            shop_domain: Shop domain (e.g., demo.myshopify.com)
            access_token: Admin API access token
            api_version: Admin API version
            rate_limit_rps: Rate limit (requests per second)
            timeout: Request timeout in seconds, bounds every catalog call
            max_retries: Retries for throttled/5xx/timeouts
            retry_initial_delay: First backoff delay in seconds
            transport: Optional httpx transport (tests)
        """
        if not shop_domain or not access_token:
            raise ValueError("Must provide shop_domain and access_token")

        self.shop_domain = shop_domain
        self.api_version = api_version
        self.endpoint = f"https://{shop_domain}/admin/api/{api_version}/graphql.json"
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay

        # Rate limiting state
        self._last_request_time = 0.0
        self._min_interval = 1.0 / rate_limit_rps if rate_limit_rps > 0 else 0

        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
            },
            transport=transport
        )

    async def _wait_for_rate_limit(self):
        """Wait if needed to respect rate limit."""
        now = time.time()
        elapsed = now - self._last_request_time
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)
        self._last_request_time = time.time()

    async def _backoff(self, attempt: int, backoff_factor: float = 2.0):
        delay = min(self.retry_initial_delay * (backoff_factor ** attempt), 30.0)
        delay += random.uniform(0, 0.2) * self.retry_initial_delay  # Jitter
        await asyncio.sleep(delay)

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a GraphQL document with retry logic.

        Args:
            query: GraphQL query or mutation
            variables: GraphQL variables

        Returns:
            Decoded response body ({"data": ..., "errors": ...})

        Raises:
            ShopifyError: If request fails after retries
        """
        payload = {"query": query, "variables": variables or {}}
        last_error = None

        for attempt in range(self.max_retries + 1):
            await self._wait_for_rate_limit()

            try:
                response = await self.client.post(self.endpoint, json=payload)
            except httpx.TimeoutException as e:
                last_error = f"Timeout: {e}"
            except httpx.RequestError as e:
                last_error = f"Request error: {e}"
            else:
                if response.status_code == 200:
                    try:
                        body = response.json()
                    except ValueError:
                        raise ShopifyError(f"Invalid JSON from Shopify: {response.text[:200]}")
                    if not isinstance(body, dict):
                        raise ShopifyError("Unexpected response shape from Shopify")
                    if not _is_throttled(body):
                        return body
                    last_error = "Throttled"
                elif response.status_code in (429, 500, 502, 503, 504):
                    last_error = f"HTTP {response.status_code}"
                else:
                    # Non-retryable (400, 401, 403, 404, 422, ...)
                    raise ShopifyError(
                        f"HTTP {response.status_code}: "
                        f"{sanitize_string_for_logging(response.text[:200])}"
                    )

            if attempt < self.max_retries:
                logger.warning(
                    f"Shopify request to {self.shop_domain} failed ({last_error}), "
                    f"retry {attempt + 1}/{self.max_retries}"
                )
                await self._backoff(attempt)

        raise ShopifyError(f"Request failed after {self.max_retries} retries: {last_error}")

    async def _query_data(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a read query, raising on top-level GraphQL errors."""
        body = await self.graphql(query, variables)
        messages = _error_messages(body.get("errors"))
        if messages:
            raise ShopifyError(", ".join(messages))
        return body.get("data") or {}

    async def list_products(self, first: int = 50) -> List[Dict[str, Any]]:
        """List the first products of the shop."""
        data = await self._query_data(PRODUCTS_LIST_QUERY, {"first": first})
        edges = (data.get("products") or {}).get("edges") or []
        return [edge.get("node") for edge in edges if edge.get("node")]

    async def get_product_preview(self, product_id: Any) -> Optional[Dict[str, Any]]:
        """
        Get product with title, image and variant prices.

        Returns:
            Product dict or None if not found
        """
        data = await self._query_data(PRODUCT_PREVIEW_QUERY, {"id": to_product_gid(product_id)})
        return data.get("product")

    async def query_variants_for_product(self, product_id: Any) -> Optional[Dict[str, Any]]:
        """
        Get a product's variants with their current prices.

        Returns:
            {"id", "title", "variants": [{"id", "price"}]} or None if not found
        """
        data = await self._query_data(PRODUCT_VARIANTS_QUERY, {"id": to_product_gid(product_id)})
        product = data.get("product")
        if not product:
            return None
        return {
            "id": product.get("id"),
            "title": product.get("title"),
            "variants": (product.get("variants") or {}).get("nodes") or [],
        }

    async def resolve_product_for_variant(self, variant_id: Any) -> Optional[str]:
        """
        Find the product that owns a variant.

        Returns:
            Product GID or None if the variant does not exist
        """
        data = await self._query_data(VARIANT_PRODUCT_QUERY, {"id": to_variant_gid(variant_id)})
        variant = data.get("productVariant")
        if not variant:
            return None
        return (variant.get("product") or {}).get("id")

    async def bulk_update_variant_prices(
        self,
        product_id: Any,
        variants: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Update prices of several variants of one product.

        Args:
            product_id: Product id or GID
            variants: [{"id": variant id or GID, "price": price}]

        Returns:
            {"errors": [top-level messages], "user_errors": [{field, message}],
             "product_variants": [...]}
        """
        variables = {
            "productId": to_product_gid(product_id),
            "variants": [
                {"id": to_variant_gid(v.get("id")), "price": str(v.get("price"))}
                for v in variants
            ],
        }
        body = await self.graphql(VARIANTS_BULK_UPDATE_MUTATION, variables)
        result = ((body.get("data") or {}).get("productVariantsBulkUpdate")) or {}
        return {
            "errors": _error_messages(body.get("errors")),
            "user_errors": result.get("userErrors") or [],
            "product_variants": result.get("productVariants") or [],
        }

    async def update_product_status(self, product_id: Any, status: str) -> Dict[str, Any]:
        """
        Set a product's status (DRAFT, ACTIVE, ARCHIVED).

        Returns:
            {"product": {...} | None, "errors": [...], "user_errors": [...]}
        """
        body = await self.graphql(
            PRODUCT_STATUS_MUTATION,
            {"product": {"id": to_product_gid(product_id), "status": status}}
        )
        result = ((body.get("data") or {}).get("productUpdate")) or {}
        return {
            "product": result.get("product"),
            "errors": _error_messages(body.get("errors")),
            "user_errors": result.get("userErrors") or [],
        }

    async def list_locations(self, first: int = 50) -> List[Dict[str, Any]]:
        """List inventory locations."""
        data = await self._query_data(LOCATIONS_QUERY, {"first": first})
        return (data.get("locations") or {}).get("nodes") or []

    async def list_inventory_products(self, first: int = 50) -> List[Dict[str, Any]]:
        """List products with variants and their inventory item ids."""
        data = await self._query_data(INVENTORY_PRODUCTS_QUERY, {"first": first})
        return (data.get("products") or {}).get("nodes") or []

    async def get_inventory_level(self, inventory_item_id: str, location_id: str) -> int:
        """
        Get the "available" quantity of an inventory item at a location.

        Returns:
            Available quantity (0 if the item is not stocked there)
        """
        data = await self._query_data(
            INVENTORY_LEVEL_QUERY,
            {"inventoryItemId": inventory_item_id, "locationId": location_id}
        )
        level = (data.get("inventoryItem") or {}).get("inventoryLevel") or {}
        for quantity in level.get("quantities") or []:
            if quantity.get("name") == "available":
                return int(quantity.get("quantity") or 0)
        return 0

    async def set_inventory_quantities(self, quantities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Set "available" quantities.

        Args:
            quantities: [{"inventoryItemId", "locationId", "quantity"}]

        Returns:
            List of user errors (empty on success)
        """
        variables = {
            "input": {
                "name": "available",
                "reason": "correction",
                "ignoreCompareQuantity": True,
                "quantities": quantities,
            }
        }
        body = await self.graphql(INVENTORY_SET_QUANTITIES_MUTATION, variables)
        messages = _error_messages(body.get("errors"))
        if messages:
            raise ShopifyError(", ".join(messages))
        result = ((body.get("data") or {}).get("inventorySetQuantities")) or {}
        return result.get("userErrors") or []

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
