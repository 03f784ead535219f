from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


CallLater = Callable[..., TimerHandle]


def clean_filters(filters: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in filters.items() if value not in (None, "")}


class DebouncedSearch:
    """Coalesce rapid search input into one settled value.

    Every ``push`` restarts the timer; ``on_settle`` only runs once the input
    has been quiet for ``delay_ms`` and the value differs from the last one
    settled. ``call_later`` defaults to the running loop's ``call_later``.
    """

    def __init__(
        self,
        on_settle: Callable[[str], None],
        delay_ms: int = 500,
        call_later: CallLater | None = None,
        initial: str = "",
    ) -> None:
        self.delay_ms = max(0, delay_ms)
        self._on_settle = on_settle
        self._call_later = call_later
        self._value = initial
        self._handle: TimerHandle | None = None
        self._closed = False

    @property
    def value(self) -> str:
        return self._value

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, raw: str) -> None:
        if self._closed:
            return
        self.cancel()
        if self.delay_ms == 0:
            self._settle(raw)
            return
        schedule = self._call_later or asyncio.get_running_loop().call_later
        self._handle = schedule(self.delay_ms / 1000, self._settle, raw)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def close(self) -> None:
        self.cancel()
        self._closed = True

    def _settle(self, raw: str) -> None:
        self._handle = None
        if self._closed or raw == self._value:
            return
        self._value = raw
        self._on_settle(raw)
