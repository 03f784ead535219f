from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Mapping

from clients.quickfix_client_sdk.errors import ApiError
from clients.quickfix_client_sdk.resource_client import AdminClient, NewsletterClient, SupportClient

from quickfix_admin.app.infrastructure.errors.error_mapper import ErrorMapper
from quickfix_admin.app.infrastructure.logging.logger import get_logger, log_action
from quickfix_admin.app.state import AdminContextStore
from quickfix_admin.app.ui.forms import (
    FormResult,
    map_api_validation_errors,
    validate_individual_email,
    validate_newsletter_broadcast,
    validate_setting,
    validate_ticket_reply,
)


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    data: Any = None
    message: str | None = None
    field_errors: Mapping[str, str] = field(default_factory=dict)
    trace_id: str | None = None


async def _run(
    logger: logging.Logger,
    module: str,
    action: str,
    call: Awaitable[Any],
    *,
    target: Any = None,
    fallback: str,
) -> ActionResult:
    try:
        data = await call
    except ApiError as error:
        log_action(
            logger,
            module,
            action,
            "error",
            target=target,
            trace_id=error.trace_id,
            error_code=error.code,
            level=logging.WARNING,
        )
        return ActionResult(
            ok=False,
            message=ErrorMapper.to_display_message(error, fallback),
            field_errors=map_api_validation_errors(error.details),
            trace_id=error.trace_id,
        )
    log_action(logger, module, action, "success", target=target)
    return ActionResult(ok=True, data=data)


def _invalid(logger: logging.Logger, module: str, action: str, result: FormResult, target: Any = None) -> ActionResult:
    log_action(logger, module, action, "rejected", target=target)
    return ActionResult(ok=False, message="Please correct the form errors.", field_errors=dict(result.field_errors))


class LoadSettingsUseCase:
    """Fetch the site settings and publish them on the admin context."""

    def __init__(self, client: AdminClient, store: AdminContextStore, logger: logging.Logger | None = None) -> None:
        self.client = client
        self.store = store
        self._logger = logger or get_logger("quickfix_admin.settings")

    async def execute(self) -> ActionResult:
        result = await _run(
            self._logger,
            "settings",
            "load",
            self.client.get_settings(),
            fallback="Failed to fetch settings.",
        )
        if result.ok:
            self.store.update_settings(result.data or {})
        return result


class SaveSettingUseCase:
    def __init__(self, client: AdminClient, store: AdminContextStore, logger: logging.Logger | None = None) -> None:
        self.client = client
        self.store = store
        self._logger = logger or get_logger("quickfix_admin.settings")

    async def execute(self, setting_name: str, setting_value: Any, description: str | None = None) -> ActionResult:
        form = validate_setting(setting_name, setting_value, description)
        if not form.is_valid:
            return _invalid(self._logger, "settings", "update", form, target=setting_name)
        values = form.values
        result = await _run(
            self._logger,
            "settings",
            "update",
            self.client.update_setting(values["settingName"], values["settingValue"], values.get("description")),
            target=values["settingName"],
            fallback="Failed to update setting.",
        )
        if result.ok:
            self.store.update_settings({values["settingName"]: values["settingValue"]})
        return result


class SendNewsletterUseCase:
    def __init__(self, client: NewsletterClient, logger: logging.Logger | None = None) -> None:
        self.client = client
        self._logger = logger or get_logger("quickfix_admin.newsletter")

    async def broadcast(self, subject: str | None, html_content: str | None) -> ActionResult:
        form = validate_newsletter_broadcast(subject, html_content)
        if not form.is_valid:
            return _invalid(self._logger, "newsletter", "send_bulk", form)
        return await _run(
            self._logger,
            "newsletter",
            "send_bulk",
            self.client.send_bulk(form.values["subject"], form.values["htmlContent"]),
            fallback="Failed to send newsletter.",
        )

    async def send_individual(self, email: str | None, subject: str | None, html_content: str | None) -> ActionResult:
        form = validate_individual_email(email, subject, html_content)
        if not form.is_valid:
            return _invalid(self._logger, "newsletter", "send_individual", form)
        return await _run(
            self._logger,
            "newsletter",
            "send_individual",
            self.client.send_individual(form.values["email"], form.values["subject"], form.values["htmlContent"]),
            target=form.values["email"],
            fallback="Failed to send email.",
        )


class ReplyToTicketUseCase:
    def __init__(self, client: SupportClient, logger: logging.Logger | None = None) -> None:
        self.client = client
        self._logger = logger or get_logger("quickfix_admin.tickets")

    async def execute(self, ticket_id: Any, reply_message: str | None) -> ActionResult:
        if ticket_id in (None, ""):
            return ActionResult(ok=False, message="Select a ticket to reply to.")
        form = validate_ticket_reply(reply_message)
        if not form.is_valid:
            return _invalid(self._logger, "tickets", "reply", form, target=ticket_id)
        return await _run(
            self._logger,
            "tickets",
            "reply",
            self.client.reply_to_ticket(ticket_id, form.values["replyMessage"]),
            target=ticket_id,
            fallback="Failed to send reply.",
        )


class LoadDashboardStatsUseCase:
    def __init__(self, client: AdminClient, logger: logging.Logger | None = None) -> None:
        self.client = client
        self._logger = logger or get_logger("quickfix_admin.dashboard")

    async def execute(self) -> ActionResult:
        return await _run(
            self._logger,
            "dashboard",
            "stats",
            self.client.dashboard_stats(),
            fallback="Failed to fetch dashboard statistics.",
        )
