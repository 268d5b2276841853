"""Optional Supabase sinks for finder usage and gateway error events.

Both sinks are no-ops unless ``ENABLE_USAGE_LOGGING=1`` and Supabase service
role credentials are configured. Neither ever raises into the request path.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client, create_client

from .config import settings

logger = logging.getLogger(__name__)

TOOL_NAME = "product_finder"

USAGE_COLUMNS = frozenset({
    "occurred_at",
    "ip",
    "status",
    "duration_ms",
    "app_version",
    "tool",
    "meta",
})

ERROR_COLUMNS = frozenset({
    "occurred_at",
    "tool",
    "severity",
    "message",
    "route",
    "method",
    "status_code",
    "meta",
})


def build_event_row(payload: Dict[str, Any], columns: frozenset[str]) -> Dict[str, Any]:
    """Split *payload* into table columns, folding the rest into ``meta``."""
    base_row = {k: v for k, v in payload.items() if k in columns and v is not None}
    extra = {k: v for k, v in payload.items() if k not in columns and v is not None}
    if extra:
        meta = base_row.get("meta") if isinstance(base_row.get("meta"), dict) else {}
        base_row["meta"] = {**meta, **extra}
    base_row.setdefault("tool", TOOL_NAME)
    base_row.setdefault("occurred_at", datetime.now(timezone.utc).isoformat())
    return base_row


class EventLogger:
    """Thin wrapper around Supabase inserts for `usage_events` and `app_error_events`."""

    def __init__(self) -> None:
        self._client: Optional[Client] = None

    def _get_client(self) -> Optional[Client]:
        if not settings.usage_logging_enabled:
            return None
        if not settings.supabase_url or not settings.supabase_service_role:
            logger.warning("Event logging enabled but Supabase service role credentials missing.")
            return None
        if not self._client:
            self._client = create_client(settings.supabase_url, settings.supabase_service_role)
        return self._client

    def _insert(self, table: str, row: Dict[str, Any]) -> None:
        client = self._get_client()
        if not client:
            return
        try:
            client.table(table).insert(row).execute()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to record %s row: %s", table, exc)

    def log_usage(self, payload: Dict[str, Any]) -> None:
        row = build_event_row({"app_version": settings.app_version, **payload}, USAGE_COLUMNS)
        self._insert("usage_events", row)

    def log_error(self, payload: Dict[str, Any]) -> None:
        row = build_event_row({"severity": "error", **payload}, ERROR_COLUMNS)
        self._insert("app_error_events", row)


event_logger = EventLogger()
