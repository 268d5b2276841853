"""Turn one raw scan/typed input into ranked lookup candidates."""

from __future__ import annotations

import logging
import re
from typing import Final
from urllib.parse import parse_qs, urlsplit

from .classifier import is_url, priority_score

logger = logging.getLogger(__name__)

QUERY_KEYS: Final[tuple[str, ...]] = ("ean", "gtin", "barcode", "sku", "model", "code", "id")

_SEGMENT_RE: Final = re.compile(r"^[A-Za-z0-9._-]+$")
_FRAGMENT_RE: Final = re.compile(r"(?<![A-Za-z0-9_])(?:ean|gtin|barcode|sku|model|code)=([A-Za-z0-9._-]+)", re.IGNORECASE)


class MalformedURLError(ValueError):
    """URL-shaped input that cannot be parsed into a host and path."""


def _parse_url(text: str):
    try:
        parts = urlsplit(text)
    except ValueError as exc:
        raise MalformedURLError(str(exc)) from exc
    if not parts.netloc:
        raise MalformedURLError(f"URL has no host: {text!r}")
    return parts


def _url_candidates(text: str) -> list[str]:
    parts = _parse_url(text)
    found: list[str] = []

    params = parse_qs(parts.query, keep_blank_values=False)
    for key in QUERY_KEYS:
        values = params.get(key)
        if values and values[0].strip():
            found.append(values[0].strip())

    segments = [segment for segment in parts.path.split("/") if segment]
    if segments and _SEGMENT_RE.match(segments[-1]):
        found.append(segments[-1])

    match = _FRAGMENT_RE.search(parts.fragment)
    if match:
        found.append(match.group(1))

    return found


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        unique.append(value)
    return unique


def extract_candidates(raw: str | None) -> list[str]:
    """Ordered, de-duplicated candidates for *raw*; never raises.

    Ordering is priority descending (EAN, SKU, model, other), then
    first-seen position. Python's sort is stable, so equal scores keep their
    extraction order.
    """
    text = (raw or "").strip()
    if not text:
        return []

    if not is_url(text):
        return [text]

    try:
        found = _url_candidates(text)
    except MalformedURLError as exc:
        logger.info("Treating malformed URL as a bare code: %s", exc)
        return [text]

    if not found:
        found = [text]

    return sorted(_dedupe(found), key=priority_score, reverse=True)
