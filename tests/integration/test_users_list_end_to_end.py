import asyncio
import json

import httpx

from clients.quickfix_client_sdk.config import SDKConfig
from clients.quickfix_client_sdk.http_client import HttpClient

from quickfix_admin.app.application.list_controller import build_controller
from quickfix_admin.app.state import AdminContext, AdminContextStore
from tests.list_helpers import ManualClock, app_config


def _sdk_config() -> SDKConfig:
    return SDKConfig(
        base_url="http://quickfix.test/api/",
        timeout_seconds=30,
        verify_ssl=True,
        retry_max_attempts=1,
        retry_backoff_ms=0,
    )


def _http(handler) -> HttpClient:
    client = httpx.AsyncClient(base_url="http://quickfix.test/api/", transport=httpx.MockTransport(handler))
    return HttpClient(_sdk_config(), client=client)


def _user(index: int, name: str) -> dict:
    return {"_id": f"u{index}", "username": name, "email": f"{name}@quickfix.test", "role": "user", "isPremium": False}


def test_keyword_search_resets_page_and_hides_pagination() -> None:
    requests: list[httpx.Request] = []
    everyone = [_user(index, f"user{index}") for index in range(1, 26)]
    johns = [_user(100, "john"), _user(101, "johnny")]

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.params.get("keyword") == "john":
            return httpx.Response(200, json={"success": True, "count": 2, "data": johns})
        page = int(request.url.params["pageNumber"])
        size = int(request.url.params["pageSize"])
        rows = everyone[(page - 1) * size : page * size]
        return httpx.Response(200, json={"success": True, "count": 25, "data": rows})

    async def scenario():
        clock = ManualClock()
        store = AdminContextStore(AdminContext(access_token="admin-token", user={"_id": "a1"}, role="admin"))
        http = _http(handler)
        controller = build_controller("users", app_config(), store, http_client=http, call_later=clock.call_later)

        await controller.start()
        first_view = controller.view()
        await controller.on_page_change(2)

        controller.on_search_change("john")
        clock.advance(0.5)
        await controller.wait_idle()
        final_view = controller.view()

        await controller.aclose()
        await http.aclose()
        return first_view, final_view

    first_view, final_view = asyncio.run(scenario())

    assert first_view.total == 25
    assert first_view.page_count == 3
    assert first_view.show_pagination is True

    last = requests[-1]
    assert last.url.path == "/api/admin/users"
    assert last.url.params["keyword"] == "john"
    assert last.url.params["pageNumber"] == "1"
    assert last.url.params["pageSize"] == "10"
    assert last.headers["Authorization"] == "Bearer admin-token"
    assert "keyword" not in requests[0].url.params

    assert len(final_view.items) == 2
    assert final_view.page == 1
    assert final_view.page_count == 1
    assert final_view.show_pagination is False
    assert final_view.page_numbers == ()


def test_user_update_refetches_current_page() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "PUT":
            body = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": {**_user(1, "user1"), **body}})
        return httpx.Response(200, json={"success": True, "count": 1, "data": [_user(1, "user1")]})

    async def scenario():
        http = _http(handler)
        controller = build_controller("users", app_config(), http_client=http)
        await controller.start()
        outcome = await controller.on_update("u1", {"username": "renamed", "email": "Renamed@QuickFix.test"})
        await http.aclose()
        return outcome

    outcome = asyncio.run(scenario())

    assert outcome.ok
    assert [request.method for request in requests] == ["GET", "PUT", "GET"]
    assert requests[1].url.path == "/api/admin/users/u1"
    assert json.loads(requests[1].content) == {"username": "renamed", "email": "renamed@quickfix.test"}
