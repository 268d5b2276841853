import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class ShopifyError(Exception):
    pass


class ShopifyAuthError(ShopifyError):
    pass


class ShopifyRateLimitError(ShopifyError):
    pass


class ShopifyAPIError(ShopifyError):
    pass


class ShopifyConfigurationError(ShopifyError):
    pass


VARIANT_LOOKUP_QUERY = """
query VariantLookup($q: String!) {
  productVariants(first: 1, query: $q) {
    edges {
      node {
        id
        sku
        barcode
        product { id handle title }
      }
    }
  }
}
"""

PRODUCT_LOOKUP_QUERY = """
query ProductLookup($q: String!) {
  products(first: 3, query: $q) {
    edges {
      node {
        id
        handle
        title
        variants(first: 1) { edges { node { id } } }
      }
    }
  }
}
"""


@dataclass(frozen=True)
class VariantMatch:
    id: str
    sku: Optional[str]
    barcode: Optional[str]
    product_id: Optional[str]
    handle: Optional[str]
    title: Optional[str]


@dataclass(frozen=True)
class ProductMatch:
    id: str
    handle: Optional[str]
    title: Optional[str]
    first_variant_id: Optional[str]


def _edge_nodes(connection: Any) -> list[dict[str, Any]]:
    if not isinstance(connection, dict):
        return []
    edges = connection.get("edges")
    if not isinstance(edges, list):
        return []
    return [
        edge["node"]
        for edge in edges
        if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
    ]


class ShopifyGateway:
    """Async client for the Shopify Admin GraphQL endpoint.

    One instance per request; close it with ``aclose()`` or use it as an
    async context manager. Failures are never retried.
    """

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: str = "2023-10",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.shop = shop
        self.api_version = api_version

        self._client = httpx.AsyncClient(
            base_url=f"https://{shop}/admin/api/{api_version}",
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(30.0),
            transport=transport,
        )

    async def __aenter__(self) -> "ShopifyGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def query(self, query_document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` object.

        Raises a ``ShopifyError`` subclass on transport failure, non-2xx
        status, or a non-empty ``errors`` envelope.
        """
        payload = {"query": query_document, "variables": variables or {}}
        try:
            response = await self._client.post("/graphql.json", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Shopify request failed: %s", exc)
            raise ShopifyAPIError(f"Shopify request failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise ShopifyAuthError(
                f"Shopify auth failed ({response.status_code}). Check SHOPIFY_ADMIN_TOKEN."
            )
        if response.status_code == 429:
            raise ShopifyRateLimitError(f"Shopify rate limited (429): {response.text}")
        if response.status_code < 200 or response.status_code >= 300:
            logger.warning("Shopify API error (%s)", response.status_code)
            raise ShopifyAPIError(f"Shopify API error ({response.status_code}): {response.text}")

        try:
            body = response.json()
        except ValueError as exc:
            raise ShopifyAPIError("Shopify returned a non-JSON response") from exc
        if not isinstance(body, dict):
            raise ShopifyAPIError("Shopify returned an unexpected response envelope")

        errors = body.get("errors")
        if errors:
            logger.warning("Shopify GraphQL errors: %s", errors)
            raise ShopifyAPIError(f"Shopify GraphQL errors: {errors}")

        data = body.get("data")
        return data if isinstance(data, dict) else {}

    async def lookup_variant(self, search: str) -> VariantMatch | None:
        """Top variant matching a ``productVariants`` search string."""
        data = await self.query(VARIANT_LOOKUP_QUERY, {"q": search})
        nodes = _edge_nodes(data.get("productVariants"))
        if not nodes:
            return None

        node = nodes[0]
        product = node.get("product") if isinstance(node.get("product"), dict) else {}
        return VariantMatch(
            id=str(node.get("id", "")),
            sku=node.get("sku"),
            barcode=node.get("barcode"),
            product_id=product.get("id"),
            handle=product.get("handle"),
            title=product.get("title"),
        )

    async def lookup_products(self, search: str) -> list[ProductMatch]:
        """Up to three products matching a ``products`` search string."""
        data = await self.query(PRODUCT_LOOKUP_QUERY, {"q": search})
        matches: list[ProductMatch] = []
        for node in _edge_nodes(data.get("products")):
            variants = _edge_nodes(node.get("variants"))
            matches.append(
                ProductMatch(
                    id=str(node.get("id", "")),
                    handle=node.get("handle"),
                    title=node.get("title"),
                    first_variant_id=variants[0].get("id") if variants else None,
                )
            )
        return matches


def get_shopify_gateway() -> ShopifyGateway:
    if not settings.shopify_shop:
        raise ShopifyConfigurationError("SHOPIFY_SHOP not set")
    if not settings.shopify_admin_token:
        raise ShopifyConfigurationError("SHOPIFY_ADMIN_TOKEN not set")

    return ShopifyGateway(
        shop=settings.shopify_shop,
        access_token=settings.shopify_admin_token,
        api_version=settings.shopify_api_version,
    )
