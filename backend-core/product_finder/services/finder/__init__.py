"""Product finder: candidate extraction and catalog resolution."""

from .classifier import is_ean, is_model, is_sku, is_url, priority_score
from .extractor import MalformedURLError, extract_candidates
from .links import product_url, search_url, short_variant_id
from .resolver import (
    FALLBACK_SOURCE,
    InputError,
    ProductResolver,
    ResolutionResult,
    build_strategy_table,
)

__all__ = [
    "is_ean",
    "is_model",
    "is_sku",
    "is_url",
    "priority_score",
    "MalformedURLError",
    "extract_candidates",
    "product_url",
    "search_url",
    "short_variant_id",
    "FALLBACK_SOURCE",
    "InputError",
    "ProductResolver",
    "ResolutionResult",
    "build_strategy_table",
]
