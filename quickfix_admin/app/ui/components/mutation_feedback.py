from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from quickfix_admin.app.application.list_controller import (
    FETCH_FAILED,
    MUTATION_FAILED,
    MUTATION_REJECTED,
    MUTATION_SUCCEEDED,
    ControllerEvent,
    ListController,
)
from quickfix_admin.app.application.optimistic_mutator import MutationKind
from quickfix_admin.app.infrastructure.logging.logger import get_logger, log_action

_PAST_TENSE = {
    MutationKind.CREATE: "created",
    MutationKind.UPDATE: "updated",
    MutationKind.DELETE: "deleted",
    MutationKind.STATUS_CHANGE: "updated",
}


@dataclass(frozen=True)
class Notice:
    level: str
    text: str
    trace_id: str | None = None


class Notifier:
    """Turns controller events into toasts so list logic never shows messages itself."""

    def __init__(self, logger: logging.Logger | None = None, max_notices: int = 20) -> None:
        self.notices: list[Notice] = []
        self.max_notices = max(1, max_notices)
        self._logger = logger or get_logger("quickfix_admin.notifier")
        self._unsubscribers: list[Callable[[], None]] = []

    def attach(self, controller: ListController) -> None:
        self._unsubscribers.append(controller.subscribe(self.handle))

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def handle(self, event: ControllerEvent) -> None:
        notice = self.to_notice(event)
        if notice is None:
            return
        self.notices.append(notice)
        del self.notices[: -self.max_notices]
        log_action(
            self._logger,
            event.screen,
            "notify",
            notice.level,
            target=event.target,
            trace_id=event.trace_id,
            level=logging.WARNING if notice.level == "error" else logging.INFO,
        )

    def drain(self) -> list[Notice]:
        pending, self.notices = self.notices, []
        return pending

    @staticmethod
    def to_notice(event: ControllerEvent) -> Notice | None:
        if event.kind == MUTATION_SUCCEEDED:
            verb = _PAST_TENSE.get(event.mutation, "saved") if event.mutation else "saved"
            subject = f"{event.label.capitalize()} {event.target}" if event.target is not None else event.label.capitalize()
            return Notice("success", f"{subject} {verb} successfully.")
        if event.kind == MUTATION_FAILED:
            return Notice("error", event.message or f"Could not save the {event.label}.", event.trace_id)
        if event.kind == MUTATION_REJECTED:
            if event.field_errors:
                first_field, first_error = next(iter(event.field_errors.items()))
                return Notice("warning", f"{first_field}: {first_error}")
            return Notice("warning", event.message or "The change was not sent.")
        if event.kind == FETCH_FAILED:
            return Notice("error", event.message or f"Failed to fetch {event.screen}.", event.trace_id)
        return None
