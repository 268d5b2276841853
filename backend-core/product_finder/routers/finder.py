"""Product finder routes: JSON lookup and redirect."""

import asyncio
import logging
import time

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field

from ..config import settings
from ..event_logging import event_logger
from ..services.finder import (
    InputError,
    ProductResolver,
    ResolutionResult,
    search_url,
)
from ..services.shopify import (
    ShopifyConfigurationError,
    ShopifyError,
    ShopifyGateway,
    get_shopify_gateway,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["finder"])


class FindProductResponse(BaseModel):
    handle: str | None = None
    variantId: str | None = None
    source: str
    url: str | None = None
    tried: list[str] = Field(default_factory=list)


def _raw_code(code: str | None, model_code: str | None) -> str:
    return code if code is not None and code.strip() else (model_code or "")


async def _resolve(raw: str) -> ResolutionResult:
    if not raw.strip():
        raise InputError("Missing code param")

    gateway: ShopifyGateway | None = None
    try:
        gateway = get_shopify_gateway()
        resolver = ProductResolver(
            gateway,
            settings.storefront_base,
            model_option_lookup=settings.model_option_lookup_enabled,
        )
        return await asyncio.wait_for(resolver.resolve(raw), timeout=settings.finder_timeout_s)
    finally:
        if gateway:
            await gateway.aclose()


def _record(route: str, status: str, started: float, result: ResolutionResult | None = None) -> None:
    payload: dict = {
        "status": status,
        "duration_ms": int((time.time() - started) * 1000),
        "route": route,
    }
    if result is not None:
        payload["source"] = result.source
        payload["tried"] = list(result.tried)
    event_logger.log_usage(payload)


@router.get(
    "/find-product",
    response_model=FindProductResponse,
    responses={404: {"model": FindProductResponse}},
)
async def find_product(
    code: str | None = Query(default=None),
    model_code: str | None = Query(default=None, alias="modelCode"),
):
    """Resolve a scanned code or URL to a product page reference."""
    started = time.time()
    raw = _raw_code(code, model_code)
    try:
        result = await _resolve(raw)
    except InputError as exc:
        _record("/find-product", "invalid", started)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ShopifyConfigurationError as exc:
        _record("/find-product", "config_error", started)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except asyncio.TimeoutError as exc:
        _record("/find-product", "timeout", started)
        raise HTTPException(status_code=504, detail="lookup timed out") from exc
    except ShopifyError as exc:
        logger.warning("Catalog lookup failed for %r: %s", raw, exc)
        event_logger.log_error({
            "message": str(exc),
            "route": "/find-product",
            "method": "GET",
            "status_code": 502,
            "code": raw,
        })
        _record("/find-product", "error", started)
        raise HTTPException(status_code=502, detail="lookup failed") from exc

    _record("/find-product", "found" if result.found else "not_found", started, result)
    body = FindProductResponse(**result.to_dict())
    return JSONResponse(status_code=200 if result.found else 404, content=body.model_dump())


@router.get("/go")
async def go_to_product(
    code: str | None = Query(default=None),
    model_code: str | None = Query(default=None, alias="modelCode"),
):
    """Redirect to the resolved product page, or to storefront search."""
    started = time.time()
    raw = _raw_code(code, model_code)
    fallback = search_url(settings.storefront_base, raw)
    try:
        result = await _resolve(raw)
    except InputError:
        _record("/go", "invalid", started)
        return RedirectResponse(fallback, status_code=302)
    except ShopifyConfigurationError as exc:
        logger.warning("Redirect lookup degraded to search: %s", exc)
        _record("/go", "config_error", started)
        return RedirectResponse(fallback, status_code=302)
    except (ShopifyError, asyncio.TimeoutError) as exc:
        logger.warning("Redirect lookup degraded to search for %r: %r", raw, exc)
        _record("/go", "error", started)
        return RedirectResponse(fallback, status_code=302)

    _record("/go", "found" if result.found else "not_found", started, result)
    return RedirectResponse(result.url or fallback, status_code=302)
