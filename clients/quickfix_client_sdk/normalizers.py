from __future__ import annotations

from typing import Any

from clients.quickfix_client_sdk.errors import ApiError
from clients.quickfix_client_sdk.models import ResourceSet


def normalize_listing(payload: Any, *, page: int = 1, page_size: int = 10) -> ResourceSet:
    safe_page = max(1, int(page or 1))
    safe_page_size = max(1, int(page_size or 10))

    rows: list[Any] | None = None
    total: int | None = None

    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict):
        for key in ("data", "items", "rows"):
            if isinstance(payload.get(key), list):
                rows = payload[key]
                break

        meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
        # Listing endpoints report the overall match count as "count".
        total = _to_int(payload.get("count"))
        total = total if total is not None else _to_int(payload.get("total"))
        total = total if total is not None else _to_int(meta.get("total"))
        safe_page = _to_int(payload.get("page")) or _to_int(meta.get("page")) or safe_page

    if rows is None:
        raise ApiError(
            code="INVALID_RESPONSE",
            message="The listing response did not contain a list of records.",
            details=None if payload is None else str(type(payload).__name__),
        )

    items = [row for row in rows if isinstance(row, dict)]
    if total is None:
        total = (safe_page - 1) * safe_page_size + len(items)

    return ResourceSet(items=tuple(items), total=total, page=max(1, safe_page), page_size=safe_page_size)


def _to_int(value: Any) -> int | None:
    try:
        if value is None or value == "" or isinstance(value, bool):
            return None
        return int(value)
    except (TypeError, ValueError):
        return None
