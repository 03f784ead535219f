from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

EMPTY_VALUE = "—"
SENSITIVE_KEYS = {"token", "secret", "password", "resetpasswordtoken", "emailverificationtoken"}


@dataclass(frozen=True)
class ColumnDef:
    key: str
    label: str


def normalize_value(value: Any) -> str:
    if value is None:
        return EMPTY_VALUE
    if isinstance(value, str):
        clean = value.strip()
        return clean or EMPTY_VALUE
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.astimezone().strftime("%Y-%m-%d %H:%M")
    if isinstance(value, dict):
        # Populated references, e.g. {"_id": ..., "name": "Plumbing"}.
        for key in ("name", "username", "email", "title", "_id"):
            if value.get(key):
                return str(value[key])
        return EMPTY_VALUE
    return str(value)


def sanitize_row(row: dict[str, Any], columns: list[ColumnDef]) -> dict[str, str]:
    sanitized: dict[str, str] = {}
    for column in columns:
        if any(token in column.key.lower() for token in SENSITIVE_KEYS):
            sanitized[column.key] = EMPTY_VALUE
            continue
        sanitized[column.key] = normalize_value(_lookup(row, column.key))
    return sanitized


def _lookup(row: dict[str, Any], dotted_key: str) -> Any:
    value: Any = row
    for part in dotted_key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value
