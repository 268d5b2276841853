"""Storefront link builders."""

from __future__ import annotations

from urllib.parse import quote_plus


def short_variant_id(variant_id: str | None) -> str | None:
    """Trailing segment of a ``gid://shopify/ProductVariant/<n>`` id."""
    if not variant_id:
        return None
    return str(variant_id).rstrip("/").split("/")[-1] or None


def product_url(base: str, handle: str, variant_id: str | None = None) -> str:
    url = f"{base.rstrip('/')}/products/{handle}"
    short_id = short_variant_id(variant_id)
    if short_id:
        url += f"?variant={short_id}"
    return url


def search_url(base: str, raw: str | None) -> str:
    return f"{base.rstrip('/')}/search?q={quote_plus(raw or '')}"
