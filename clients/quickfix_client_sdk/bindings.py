from __future__ import annotations

from clients.quickfix_client_sdk.resource_client import ResourceBinding, ToggleRoute

_NEWSLETTER_STATUS_PATH = "/admin/users/{id}/newsletter-status"

USERS = ResourceBinding(
    name="users",
    path="/admin/users",
    toggle_routes={"newsletterSubscriber": ToggleRoute(_NEWSLETTER_STATUS_PATH, "newsletterSubscriber")},
    # Accounts are created through registration, not from the admin list.
    operations=frozenset({"list", "update", "delete", "set_field"}),
)

GUIDES = ResourceBinding(name="guides", path="/guides")

CATEGORIES = ResourceBinding(name="categories", path="/categories")

SUBSCRIPTIONS = ResourceBinding(
    name="subscriptions",
    path="/admin/subscriptions/all",
    item_path="/admin/subscriptions/{id}",
    toggle_routes={
        "status": ToggleRoute("/admin/subscriptions/{id}/status", "status", note_field="adminNotes"),
    },
    operations=frozenset({"list", "set_field"}),
)

NEWSLETTER_SUBSCRIBERS = ResourceBinding(
    name="newsletter_subscribers",
    path="/newsletter/admin/subscribers",
    param_map={"page": "page", "page_size": "limit", "keyword": "keyword"},
    toggle_routes={
        "active": ToggleRoute(_NEWSLETTER_STATUS_PATH, "newsletterSubscriber", dependency_field="user"),
    },
    operations=frozenset({"list", "set_field"}),
)

TICKETS = ResourceBinding(
    name="tickets",
    path="/contact/admin",
    operations=frozenset({"list", "update", "delete", "set_field"}),
)

ANNOUNCEMENTS = ResourceBinding(name="announcements", path="/admin/announcements")

ALL_BINDINGS = {
    binding.name: binding
    for binding in (USERS, GUIDES, CATEGORIES, SUBSCRIPTIONS, NEWSLETTER_SUBSCRIBERS, TICKETS, ANNOUNCEMENTS)
}
