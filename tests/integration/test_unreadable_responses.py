import asyncio

import httpx

from clients.quickfix_client_sdk.config import SDKConfig
from clients.quickfix_client_sdk.http_client import HttpClient

from quickfix_admin.app.application.list_controller import FETCH_FAILED, MUTATION_FAILED, build_controller
from quickfix_admin.app.application.optimistic_mutator import MutationStatus
from quickfix_admin.app.application.resource_fetcher import ListStatus
from tests.list_helpers import app_config

GUIDE = {"_id": "g1", "title": "Fix a dripping tap", "isPremium": False}


def _http(handler) -> HttpClient:
    config = SDKConfig(
        base_url="http://quickfix.test/api/",
        timeout_seconds=30,
        verify_ssl=True,
        retry_max_attempts=3,
        retry_backoff_ms=0,
    )
    client = httpx.AsyncClient(base_url=config.base_url, transport=httpx.MockTransport(handler))
    return HttpClient(config, client=client)


def test_garbled_toggle_response_rolls_the_row_back() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            raise httpx.DecodingError("bad gzip", request=request)
        return httpx.Response(200, json={"success": True, "count": 1, "data": [GUIDE]})

    async def scenario():
        http = _http(handler)
        controller = build_controller("guides", app_config(), http_client=http)
        events = []
        controller.subscribe(events.append)
        await controller.start()

        future = controller.on_toggle_field("g1", "isPremium", True)
        projected = controller.view().items[0]["isPremium"]
        outcome = await future
        view = controller.view()
        retry = await controller.on_toggle_field("g1", "isPremium", True)
        await controller.aclose()
        await http.aclose()
        return projected, outcome, view, retry, events

    projected, outcome, view, retry, events = asyncio.run(scenario())

    assert projected is True
    assert outcome.status is MutationStatus.FAILED
    assert view.items[0]["isPremium"] is False
    assert view.error.startswith("Could not update guide g1")
    assert events[0].kind == MUTATION_FAILED
    # The row is not left locked by the failed save.
    assert retry.status is MutationStatus.FAILED


def test_garbled_list_response_ends_in_an_error_state() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.DecodingError("bad gzip", request=request)

    async def scenario():
        http = _http(handler)
        controller = build_controller("guides", app_config(), http_client=http)
        events = []
        controller.subscribe(events.append)
        await controller.start()
        view = controller.view()
        await controller.aclose()
        await http.aclose()
        return view, events

    view, events = asyncio.run(scenario())

    assert view.loading is False
    assert view.status is ListStatus.ERRORED
    assert view.error
    assert [event.kind for event in events] == [FETCH_FAILED]
