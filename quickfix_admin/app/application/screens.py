from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from clients.quickfix_client_sdk import bindings
from clients.quickfix_client_sdk.resource_client import ResourceBinding

from quickfix_admin.app.ui.forms import (
    FormResult,
    validate_announcement_form,
    validate_category_form,
    validate_guide_form,
    validate_subscription_status,
    validate_ticket_form,
    validate_user_form,
)
from quickfix_admin.app.ui.listing_view import ColumnDef

PayloadValidator = Callable[[Mapping[str, Any]], FormResult]
FieldValidator = Callable[[str, Any, str | None, str | None], FormResult]


@dataclass(frozen=True)
class ScreenConfig:
    """Declarative description of one admin list screen."""

    name: str
    label: str
    binding: ResourceBinding
    columns: tuple[ColumnDef, ...]
    filter_keys: tuple[str, ...] = ()
    id_field: str = "_id"
    create_validator: PayloadValidator | None = None
    update_validator: PayloadValidator | None = None
    field_validator: FieldValidator | None = None
    toggle_fields: tuple[str, ...] = ()
    fallback_error: str = "Failed to fetch records."

    def validate_payload(self, kind: str, payload: Mapping[str, Any]) -> FormResult:
        validator = self.create_validator if kind == "create" else self.update_validator
        if validator is None:
            return FormResult(values=dict(payload), field_errors={})
        return validator(payload)

    def validate_field(
        self,
        field_name: str,
        value: Any,
        note: str | None = None,
        reason: str | None = None,
    ) -> FormResult:
        if self.toggle_fields and field_name not in self.toggle_fields:
            return FormResult(values={}, field_errors={field_name: f"'{field_name}' cannot be changed from this list."})
        if self.field_validator is None:
            return FormResult(values={field_name: value}, field_errors={})
        return self.field_validator(field_name, value, note, reason)


def _boolean_field(field_name: str, value: Any, _note: str | None, _reason: str | None) -> FormResult:
    if not isinstance(value, bool):
        return FormResult(values={}, field_errors={field_name: f"{field_name} must be true or false."})
    return FormResult(values={field_name: value}, field_errors={})


def _subscription_field(field_name: str, value: Any, note: str | None, reason: str | None) -> FormResult:
    result = validate_subscription_status(value, note, reason)
    return FormResult(
        values={field_name: result.values["status"], "adminNotes": result.values["adminNotes"]},
        field_errors=result.field_errors,
    )


def _ticket_field(field_name: str, value: Any, _note: str | None, _reason: str | None) -> FormResult:
    if field_name == "isRead":
        return _boolean_field(field_name, value, None, None)
    return validate_ticket_form({field_name: value})


SCREENS: dict[str, ScreenConfig] = {
    "users": ScreenConfig(
        name="users",
        label="user",
        binding=bindings.USERS,
        columns=(
            ColumnDef("username", "Username"),
            ColumnDef("email", "Email"),
            ColumnDef("role", "Role"),
            ColumnDef("isPremium", "Premium"),
            ColumnDef("active", "Active"),
            ColumnDef("newsletterSubscriber", "Newsletter"),
            ColumnDef("createdAt", "Joined"),
        ),
        filter_keys=("role", "isPremium", "active"),
        update_validator=lambda payload: validate_user_form(payload, partial=True),
        field_validator=_boolean_field,
        toggle_fields=("newsletterSubscriber", "active", "isPremium"),
        fallback_error="Failed to fetch users.",
    ),
    "guides": ScreenConfig(
        name="guides",
        label="guide",
        binding=bindings.GUIDES,
        columns=(
            ColumnDef("title", "Title"),
            ColumnDef("category", "Category"),
            ColumnDef("isPremium", "Premium"),
            ColumnDef("user", "Author"),
            ColumnDef("createdAt", "Created"),
        ),
        filter_keys=("category", "isPremium"),
        create_validator=lambda payload: validate_guide_form(payload),
        update_validator=lambda payload: validate_guide_form(payload, partial=True),
        field_validator=_boolean_field,
        toggle_fields=("isPremium",),
        fallback_error="Failed to fetch guides.",
    ),
    "categories": ScreenConfig(
        name="categories",
        label="category",
        binding=bindings.CATEGORIES,
        columns=(ColumnDef("name", "Name"), ColumnDef("slug", "Slug"), ColumnDef("description", "Description")),
        create_validator=lambda payload: validate_category_form(payload),
        update_validator=lambda payload: validate_category_form(payload, partial=True),
        fallback_error="Failed to fetch categories.",
    ),
    "subscriptions": ScreenConfig(
        name="subscriptions",
        label="subscription",
        binding=bindings.SUBSCRIPTIONS,
        columns=(
            ColumnDef("user.email", "User"),
            ColumnDef("plan", "Plan"),
            ColumnDef("status", "Status"),
            ColumnDef("transactionId", "Transaction ID"),
            ColumnDef("referenceCode", "Reference"),
            ColumnDef("createdAt", "Submitted"),
        ),
        filter_keys=("status",),
        field_validator=_subscription_field,
        toggle_fields=("status",),
        fallback_error="Failed to fetch subscriptions.",
    ),
    "newsletter_subscribers": ScreenConfig(
        name="newsletter_subscribers",
        label="subscriber",
        binding=bindings.NEWSLETTER_SUBSCRIBERS,
        columns=(
            ColumnDef("email", "Email"),
            ColumnDef("active", "Active"),
            ColumnDef("user", "Linked account"),
            ColumnDef("subscribedAt", "Subscribed"),
        ),
        field_validator=_boolean_field,
        toggle_fields=("active",),
        fallback_error="Failed to fetch newsletter subscribers.",
    ),
    "tickets": ScreenConfig(
        name="tickets",
        label="ticket",
        binding=bindings.TICKETS,
        columns=(
            ColumnDef("ticketNumber", "Ticket"),
            ColumnDef("name", "Name"),
            ColumnDef("subject", "Subject"),
            ColumnDef("status", "Status"),
            ColumnDef("isRead", "Read"),
            ColumnDef("createdAt", "Received"),
        ),
        filter_keys=("status", "isRead"),
        update_validator=lambda payload: validate_ticket_form(payload),
        field_validator=_ticket_field,
        toggle_fields=("status", "isRead"),
        fallback_error="Failed to fetch tickets.",
    ),
    "announcements": ScreenConfig(
        name="announcements",
        label="announcement",
        binding=bindings.ANNOUNCEMENTS,
        columns=(
            ColumnDef("title", "Title"),
            ColumnDef("type", "Type"),
            ColumnDef("startDate", "Starts"),
            ColumnDef("endDate", "Ends"),
            ColumnDef("isActive", "Active"),
        ),
        create_validator=lambda payload: validate_announcement_form(payload),
        update_validator=lambda payload: validate_announcement_form(payload, partial=True),
        field_validator=_boolean_field,
        toggle_fields=("isActive",),
        fallback_error="Failed to fetch announcements.",
    ),
}


def get_screen(name: str) -> ScreenConfig:
    try:
        return SCREENS[name]
    except KeyError as exc:
        raise KeyError(f"unknown admin screen '{name}'") from exc
