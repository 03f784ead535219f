from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

ContextListener = Callable[["AdminContext", "AdminContext"], None]


@dataclass(frozen=True)
class AdminContext:
    """Read-only view of the signed-in admin and the public site settings."""

    access_token: str | None = None
    user: Mapping[str, Any] | None = None
    role: str | None = None
    settings: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def is_admin(self) -> bool:
        return (self.role or "").lower() == "admin"

    def fingerprint(self) -> str:
        role = self.role or "anonymous"
        user_id = str((self.user or {}).get("_id") or "no-user")
        return f"{role}:{user_id}"


class AdminContextStore:
    def __init__(self, initial: AdminContext | None = None) -> None:
        self._current = initial or AdminContext()
        self._listeners: list[ContextListener] = []

    @property
    def current(self) -> AdminContext:
        return self._current

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def replace(self, **changes: Any) -> AdminContext:
        if "settings" in changes:
            changes["settings"] = MappingProxyType(dict(changes["settings"] or {}))
        if "role" in changes and changes["role"]:
            changes["role"] = str(changes["role"]).lower()
        return self._publish(replace(self._current, **changes))

    def apply_profile(self, access_token: str, profile: Mapping[str, Any]) -> AdminContext:
        return self.replace(access_token=access_token, user=MappingProxyType(dict(profile)), role=profile.get("role"))

    def update_settings(self, values: Mapping[str, Any]) -> AdminContext:
        merged = {**self._current.settings, **values}
        return self.replace(settings=merged)

    def clear(self) -> AdminContext:
        return self._publish(AdminContext(settings=self._current.settings))

    def _publish(self, updated: AdminContext) -> AdminContext:
        previous = self._current
        if updated == previous:
            return previous
        self._current = updated
        for listener in list(self._listeners):
            listener(previous, updated)
        return updated
