"""Resolve raw scanner/typed input to a storefront product page.

Each extracted candidate is run through a fixed, ranked strategy table:

1. barcode      variant lookup ``barcode:<code>``        (EAN-shaped)
2. sku          variant lookup ``sku:<code>``            (SKU-shaped)
3. option:model variant lookup on the Model Code option  (model-shaped, opt-in)
4. tag:model    product lookup ``tag:"Model: <code>"``   (model-shaped)
5. search:model product full-text ``<code>``             (model-shaped)
6. search:any   product full-text ``<code>``             (any)

Candidates and strategies run strictly in sequence; the first hit wins.
When nothing matches, the result is a search-page fallback built from the
original input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Final, Literal, Protocol

from ..shopify import ProductMatch, VariantMatch
from .classifier import is_ean, is_model, is_sku
from .extractor import extract_candidates
from .links import product_url, search_url

logger = logging.getLogger(__name__)

FALLBACK_SOURCE: Final[str] = "fallback:search"


class InputError(ValueError):
    """Raw input was missing or blank."""


class CatalogGateway(Protocol):
    async def lookup_variant(self, search: str) -> VariantMatch | None: ...

    async def lookup_products(self, search: str) -> list[ProductMatch]: ...


@dataclass(frozen=True)
class LookupStrategy:
    source: str
    kind: Literal["variant", "product"]
    applies: Callable[[str], bool]
    build_query: Callable[[str], str]


def _any_shape(_code: str) -> bool:
    return True


BARCODE_STRATEGY = LookupStrategy("barcode", "variant", is_ean, lambda code: f"barcode:{code}")
SKU_STRATEGY = LookupStrategy("sku", "variant", is_sku, lambda code: f"sku:{code}")
MODEL_OPTION_STRATEGY = LookupStrategy(
    "option:model", "variant", is_model, lambda code: f"option:Model Code:'{code}'"
)
MODEL_TAG_STRATEGY = LookupStrategy("tag:model", "product", is_model, lambda code: f'tag:"Model: {code}"')
MODEL_SEARCH_STRATEGY = LookupStrategy("search:model", "product", is_model, lambda code: code)
ANY_SEARCH_STRATEGY = LookupStrategy("search:any", "product", _any_shape, lambda code: code)


def build_strategy_table(*, model_option_lookup: bool = False) -> tuple[LookupStrategy, ...]:
    table = [BARCODE_STRATEGY, SKU_STRATEGY]
    if model_option_lookup:
        table.append(MODEL_OPTION_STRATEGY)
    table.extend([MODEL_TAG_STRATEGY, MODEL_SEARCH_STRATEGY, ANY_SEARCH_STRATEGY])
    return tuple(table)


@dataclass(frozen=True)
class ResolutionResult:
    handle: str | None
    variant_id: str | None
    source: str
    tried: tuple[str, ...] = field(default_factory=tuple)
    url: str | None = None

    @property
    def found(self) -> bool:
        return self.handle is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "handle": self.handle,
            "variantId": self.variant_id,
            "source": self.source,
            "url": self.url,
            "tried": list(self.tried),
        }


class ProductResolver:
    def __init__(
        self,
        gateway: CatalogGateway,
        storefront_base: str,
        *,
        model_option_lookup: bool = False,
    ) -> None:
        self.gateway = gateway
        self.storefront_base = storefront_base
        self.strategies = build_strategy_table(model_option_lookup=model_option_lookup)

    async def _run(self, strategy: LookupStrategy, query: str) -> tuple[str, str | None] | None:
        if strategy.kind == "variant":
            variant = await self.gateway.lookup_variant(query)
            if variant and variant.handle:
                return variant.handle, variant.id or None
            return None

        for product in await self.gateway.lookup_products(query):
            if product.handle:
                return product.handle, product.first_variant_id
        return None

    async def resolve_handle_from_code(self, code: str) -> ResolutionResult | None:
        """Run the strategy table for a single candidate code."""
        code = (code or "").strip()
        if not code:
            return None

        issued: set[tuple[str, str]] = set()
        for strategy in self.strategies:
            if not strategy.applies(code):
                continue
            query = strategy.build_query(code)
            if (strategy.kind, query) in issued:
                continue
            issued.add((strategy.kind, query))

            hit = await self._run(strategy, query)
            if hit:
                handle, variant_id = hit
                logger.info("Resolved %r via %s -> %s", code, strategy.source, handle)
                return ResolutionResult(handle=handle, variant_id=variant_id, source=strategy.source)
        return None

    async def resolve(self, raw: str | None) -> ResolutionResult:
        """Resolve *raw* to a product link, or a search fallback.

        Raises ``InputError`` for blank input. Gateway errors propagate.
        """
        if raw is None or not raw.strip():
            raise InputError("Missing code param")

        candidates = tuple(extract_candidates(raw))
        for candidate in candidates:
            result = await self.resolve_handle_from_code(candidate)
            if result is None:
                continue
            return replace(
                result,
                tried=candidates,
                url=product_url(self.storefront_base, result.handle, result.variant_id),
            )

        logger.info("No catalog match for %r; tried %s", raw, list(candidates))
        return ResolutionResult(
            handle=None,
            variant_id=None,
            source=FALLBACK_SOURCE,
            tried=candidates,
            url=search_url(self.storefront_base, raw),
        )
