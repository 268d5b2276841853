"""Tests for the Shopify Admin GraphQL gateway."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from product_finder.services.shopify import (
    PRODUCT_LOOKUP_QUERY,
    VARIANT_LOOKUP_QUERY,
    ShopifyAPIError,
    ShopifyAuthError,
    ShopifyConfigurationError,
    ShopifyError,
    ShopifyGateway,
    ShopifyRateLimitError,
    get_shopify_gateway,
)


def _gateway(handler) -> ShopifyGateway:
    return ShopifyGateway(
        shop="demo.myshopify.com",
        access_token="shpat_test",
        transport=httpx.MockTransport(handler),
    )


def _json(payload: dict, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payload)
    return handler


class TestQuery:
    @pytest.mark.asyncio
    async def test_posts_query_with_token_header(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"ok": True}})

        async with _gateway(handler) as gateway:
            data = await gateway.query("query { shop { name } }", {"a": 1})

        assert data == {"ok": True}
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://demo.myshopify.com/admin/api/2023-10/graphql.json"
        assert request.headers["X-Shopify-Access-Token"] == "shpat_test"
        assert json.loads(request.content) == {"query": "query { shop { name } }", "variables": {"a": 1}}

    @pytest.mark.asyncio
    async def test_missing_data_returns_empty_dict(self):
        async with _gateway(_json({})) as gateway:
            assert await gateway.query("query { x }") == {}

    @pytest.mark.asyncio
    async def test_graphql_errors_envelope_raises(self):
        async with _gateway(_json({"errors": [{"message": "Field 'x' doesn't exist"}]})) as gateway:
            with pytest.raises(ShopifyAPIError):
                await gateway.query("query { x }")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error", [
        (401, ShopifyAuthError),
        (403, ShopifyAuthError),
        (429, ShopifyRateLimitError),
        (500, ShopifyAPIError),
        (404, ShopifyAPIError),
    ])
    async def test_http_status_mapping(self, status, error):
        async with _gateway(_json({}, status=status)) as gateway:
            with pytest.raises(error):
                await gateway.query("query { x }")

    @pytest.mark.asyncio
    async def test_transport_failure_raises_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _gateway(handler) as gateway:
            with pytest.raises(ShopifyAPIError):
                await gateway.query("query { x }")

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        async with _gateway(handler) as gateway:
            with pytest.raises(ShopifyAPIError):
                await gateway.query("query { x }")

    @pytest.mark.asyncio
    async def test_errors_share_a_base_class(self):
        async with _gateway(_json({}, status=502)) as gateway:
            with pytest.raises(ShopifyError):
                await gateway.query("query { x }")


class TestLookups:
    @pytest.mark.asyncio
    async def test_lookup_variant_parses_first_edge(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {"productVariants": {"edges": [{"node": {
                "id": "gid://shopify/ProductVariant/12345",
                "sku": "SKU-1",
                "barcode": "3608459693135",
                "product": {"id": "gid://shopify/Product/9", "handle": "some-product", "title": "Some"},
            }}]}}})

        async with _gateway(handler) as gateway:
            match = await gateway.lookup_variant("barcode:3608459693135")

        assert seen[0]["query"] == VARIANT_LOOKUP_QUERY
        assert seen[0]["variables"] == {"q": "barcode:3608459693135"}
        assert match.id == "gid://shopify/ProductVariant/12345"
        assert match.handle == "some-product"
        assert match.product_id == "gid://shopify/Product/9"
        assert match.barcode == "3608459693135"

    @pytest.mark.asyncio
    async def test_lookup_variant_no_edges(self):
        async with _gateway(_json({"data": {"productVariants": {"edges": []}}})) as gateway:
            assert await gateway.lookup_variant("sku:nope") is None

    @pytest.mark.asyncio
    async def test_lookup_products_reads_first_variant(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {"products": {"edges": [
                {"node": {
                    "id": "gid://shopify/Product/1",
                    "handle": "with-variant",
                    "title": "A",
                    "variants": {"edges": [{"node": {"id": "gid://shopify/ProductVariant/5"}}]},
                }},
                {"node": {"id": "gid://shopify/Product/2", "handle": "no-variant", "title": "B",
                          "variants": {"edges": []}}},
            ]}}})

        async with _gateway(handler) as gateway:
            matches = await gateway.lookup_products('tag:"Model: 8524471"')

        assert seen[0]["query"] == PRODUCT_LOOKUP_QUERY
        assert [m.handle for m in matches] == ["with-variant", "no-variant"]
        assert matches[0].first_variant_id == "gid://shopify/ProductVariant/5"
        assert matches[1].first_variant_id is None

    @pytest.mark.asyncio
    async def test_lookup_products_tolerates_missing_connection(self):
        async with _gateway(_json({"data": {"products": None}})) as gateway:
            assert await gateway.lookup_products("anything") == []


class TestFactory:
    def test_requires_shop(self):
        with patch("product_finder.services.shopify.settings") as mock_settings:
            mock_settings.shopify_shop = ""
            mock_settings.shopify_admin_token = "tok"
            with pytest.raises(ShopifyConfigurationError):
                get_shopify_gateway()

    def test_requires_token(self):
        with patch("product_finder.services.shopify.settings") as mock_settings:
            mock_settings.shopify_shop = "demo.myshopify.com"
            mock_settings.shopify_admin_token = ""
            with pytest.raises(ShopifyConfigurationError):
                get_shopify_gateway()

    @pytest.mark.asyncio
    async def test_builds_gateway_from_settings(self):
        with patch("product_finder.services.shopify.settings") as mock_settings:
            mock_settings.shopify_shop = "demo.myshopify.com"
            mock_settings.shopify_admin_token = "tok"
            mock_settings.shopify_api_version = "2024-01"
            gateway = get_shopify_gateway()
        assert gateway.shop == "demo.myshopify.com"
        assert gateway.api_version == "2024-01"
        await gateway.aclose()
