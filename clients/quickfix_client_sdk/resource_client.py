from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from clients.quickfix_client_sdk.http_client import HttpClient
from clients.quickfix_client_sdk.models import Resource, ResourceSet
from clients.quickfix_client_sdk.normalizers import normalize_listing

DEFAULT_PARAM_MAP = {"page": "pageNumber", "page_size": "pageSize", "keyword": "keyword"}
ALL_OPERATIONS = frozenset({"list", "create", "update", "delete", "set_field"})


@dataclass(frozen=True)
class ToggleRoute:
    """Narrow endpoint used to flip a single field.

    When ``dependency_field`` is set the request targets the linked record
    (for example a subscriber's user account) instead of the row itself.
    """

    path: str
    body_field: str
    method: str = "PUT"
    dependency_field: str | None = None
    note_field: str | None = None


@dataclass(frozen=True)
class ResourceBinding:
    name: str
    path: str
    item_path: str | None = None
    param_map: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_PARAM_MAP))
    toggle_routes: Mapping[str, ToggleRoute] = field(default_factory=dict)
    operations: frozenset[str] = ALL_OPERATIONS

    def item_url(self, resource_id: Any) -> str:
        template = self.item_path or f"{self.path}/{{id}}"
        return template.format(id=resource_id)

    def supports(self, operation: str) -> bool:
        return operation in self.operations


class ResourceClient:
    def __init__(
        self,
        http_client: HttpClient,
        binding: ResourceBinding,
        token_provider: Callable[[], str | None] | None = None,
    ) -> None:
        self.http_client = http_client
        self.binding = binding
        self._token_provider = token_provider or (lambda: None)

    async def list(self, query: Mapping[str, Any]) -> ResourceSet:
        params = _build_query_params(query, self.binding.param_map)
        payload = await self.http_client.request(
            "GET",
            self.binding.path,
            token=self._token_provider(),
            params=params,
        )
        return normalize_listing(payload, page=int(query.get("page") or 1), page_size=int(query.get("page_size") or 10))

    async def create(self, payload: Mapping[str, Any]) -> Resource:
        response = await self.http_client.request(
            "POST",
            self.binding.path,
            token=self._token_provider(),
            json_body=dict(payload),
        )
        return _unwrap(response)

    async def update(self, resource_id: Any, payload: Mapping[str, Any]) -> Resource:
        response = await self.http_client.request(
            "PUT",
            self.binding.item_url(resource_id),
            token=self._token_provider(),
            json_body=dict(payload),
        )
        return _unwrap(response)

    async def delete(self, resource_id: Any) -> None:
        await self.http_client.request(
            "DELETE",
            self.binding.item_url(resource_id),
            token=self._token_provider(),
        )

    async def set_field(
        self,
        resource_id: Any,
        field_name: str,
        value: Any,
        *,
        dependency_id: Any = None,
        note: str | None = None,
    ) -> Resource:
        route = self.binding.toggle_routes.get(field_name)
        if route is None:
            return await self.update(resource_id, {field_name: value})

        target_id = resource_id
        if route.dependency_field:
            if dependency_id in (None, ""):
                raise ValueError(f"{self.binding.name}.{field_name} requires a linked {route.dependency_field} id")
            target_id = dependency_id

        body: dict[str, Any] = {route.body_field: value}
        if route.note_field and note is not None:
            body[route.note_field] = note
        response = await self.http_client.request(
            route.method,
            route.path.format(id=target_id),
            token=self._token_provider(),
            json_body=body,
        )
        return _unwrap(response)


class NewsletterClient:
    def __init__(self, http_client: HttpClient, token_provider: Callable[[], str | None] | None = None) -> None:
        self.http_client = http_client
        self._token_provider = token_provider or (lambda: None)

    async def send_bulk(self, subject: str, html_content: str) -> dict[str, Any]:
        return await self.http_client.request(
            "POST",
            "/newsletter/admin/bulk-send",
            token=self._token_provider(),
            json_body={"subject": subject, "htmlContent": html_content},
        )

    async def send_individual(self, email: str, subject: str, html_content: str) -> dict[str, Any]:
        return await self.http_client.request(
            "POST",
            "/newsletter/admin/send-individual",
            token=self._token_provider(),
            json_body={"email": email, "subject": subject, "htmlContent": html_content},
        )


class SupportClient:
    def __init__(self, http_client: HttpClient, token_provider: Callable[[], str | None] | None = None) -> None:
        self.http_client = http_client
        self._token_provider = token_provider or (lambda: None)

    async def reply_to_ticket(self, ticket_id: Any, reply_message: str) -> Resource:
        response = await self.http_client.request(
            "POST",
            f"/contact/admin/{ticket_id}/reply",
            token=self._token_provider(),
            json_body={"replyMessage": reply_message},
        )
        return _unwrap(response)


class AdminClient:
    """Site-wide admin endpoints that are not paginated lists."""

    def __init__(self, http_client: HttpClient, token_provider: Callable[[], str | None] | None = None) -> None:
        self.http_client = http_client
        self._token_provider = token_provider or (lambda: None)

    async def dashboard_stats(self) -> dict[str, Any]:
        response = await self.http_client.request("GET", "/admin/dashboard-stats", token=self._token_provider())
        return _unwrap(response)

    async def get_settings(self) -> dict[str, Any]:
        response = await self.http_client.request("GET", "/admin/settings", token=self._token_provider())
        return _unwrap(response)

    async def update_setting(self, name: str, value: Any, description: str | None = None) -> Resource:
        body: dict[str, Any] = {"settingName": name, "settingValue": value}
        if description is not None:
            body["description"] = description
        response = await self.http_client.request(
            "PUT",
            "/admin/settings",
            token=self._token_provider(),
            json_body=body,
        )
        return _unwrap(response)


def _build_query_params(query: Mapping[str, Any], param_map: Mapping[str, str]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for key, value in query.items():
        if value in (None, ""):
            continue
        params[param_map.get(key, key)] = value
    return params


def _unwrap(response: dict[str, Any]) -> Resource:
    data = response.get("data")
    return data if isinstance(data, dict) else response
