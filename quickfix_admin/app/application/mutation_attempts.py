from __future__ import annotations

from typing import Any


class MutationInFlightError(RuntimeError):
    def __init__(self, target: Any) -> None:
        super().__init__(f"A change to {target} is still being saved.")
        self.target = target


class MutationTracker:
    """Guards against double submits on the same row while a save is in flight."""

    def __init__(self) -> None:
        self._in_flight: set[str] = set()

    def begin(self, key: str) -> bool:
        if key in self._in_flight:
            return False
        self._in_flight.add(key)
        return True

    def end(self, key: str) -> None:
        self._in_flight.discard(key)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def __len__(self) -> int:
        return len(self._in_flight)
