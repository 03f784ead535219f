import asyncio
import itertools

import pytest

from clients.quickfix_client_sdk.models import ResourceSet

from quickfix_admin.app.application.list_query import ListQuery
from quickfix_admin.app.application.resource_fetcher import FetchOutcome, ListState, ListStatus, ResourceFetcher
from tests.list_helpers import GatedSource, server_error


def _page(label: str, total: int = 1) -> ResourceSet:
    return ResourceSet(items=({"_id": label, "name": label},), total=total, page=1, page_size=10)


@pytest.mark.parametrize("resolve_order", list(itertools.permutations(["A", "B"])))
def test_latest_fetch_wins_for_every_resolution_order(resolve_order) -> None:
    async def scenario():
        source = GatedSource()
        state = ListState()
        fetcher = ResourceFetcher(source, state)
        snapshot = ListQuery(page_size=10).snapshot()

        tasks = {
            "A": asyncio.create_task(fetcher.fetch(snapshot)),
            "B": asyncio.create_task(fetcher.fetch(snapshot)),
        }
        await asyncio.sleep(0)
        futures = {"A": source.calls[0][3], "B": source.calls[1][3]}

        for label in resolve_order:
            futures[label].set_result(_page(label))
            await tasks[label]
        return state, {label: task.result() for label, task in tasks.items()}

    state, outcomes = asyncio.run(scenario())

    assert state.result.items[0]["_id"] == "B"
    assert outcomes == {"A": FetchOutcome.STALE, "B": FetchOutcome.APPLIED}
    assert state.loading is False
    assert state.status is ListStatus.LOADED


def test_loading_stays_on_while_newer_fetch_is_pending() -> None:
    async def scenario():
        source = GatedSource()
        state = ListState()
        fetcher = ResourceFetcher(source, state)
        snapshot = ListQuery(page_size=10).snapshot()

        first = asyncio.create_task(fetcher.fetch(snapshot))
        second = asyncio.create_task(fetcher.fetch(snapshot))
        await asyncio.sleep(0)

        source.calls[0][3].set_result(_page("A"))
        await first
        loading_after_stale = state.loading
        items_after_stale = state.result.items

        source.calls[1][3].set_result(_page("B"))
        await second
        return loading_after_stale, items_after_stale, state

    loading_after_stale, items_after_stale, state = asyncio.run(scenario())

    assert loading_after_stale is True
    assert items_after_stale == ()
    assert state.loading is False


def test_stale_failure_does_not_surface_an_error() -> None:
    async def scenario():
        source = GatedSource()
        state = ListState()
        fetcher = ResourceFetcher(source, state)
        snapshot = ListQuery(page_size=10).snapshot()

        first = asyncio.create_task(fetcher.fetch(snapshot))
        second = asyncio.create_task(fetcher.fetch(snapshot))
        await asyncio.sleep(0)

        source.calls[1][3].set_result(_page("B"))
        await second
        source.calls[0][3].set_exception(server_error())
        return await first, state

    outcome, state = asyncio.run(scenario())

    assert outcome is FetchOutcome.STALE
    assert state.error is None
    assert state.result.items[0]["_id"] == "B"


def test_current_failure_clears_items_and_sets_message() -> None:
    async def scenario():
        source = GatedSource()
        state = ListState(result=_page("old", total=1))
        fetcher = ResourceFetcher(source, state, fallback_error="Failed to fetch users.")

        task = asyncio.create_task(fetcher.fetch(ListQuery(page_size=10).snapshot()))
        await asyncio.sleep(0)
        source.calls[0][3].set_exception(server_error("Database unavailable"))
        return await task, state

    outcome, state = asyncio.run(scenario())

    assert outcome is FetchOutcome.FAILED
    assert state.result.items == ()
    assert state.result.total == 0
    assert state.error == "Database unavailable"
    assert state.error_trace_id == "trace-1"
    assert state.status is ListStatus.ERRORED
    assert state.loading is False


def test_invalidate_makes_in_flight_fetch_stale() -> None:
    async def scenario():
        source = GatedSource()
        state = ListState()
        fetcher = ResourceFetcher(source, state)

        task = asyncio.create_task(fetcher.fetch(ListQuery(page_size=10).snapshot()))
        await asyncio.sleep(0)
        fetcher.invalidate()
        source.calls[0][3].set_result(_page("late"))
        return await task, state

    outcome, state = asyncio.run(scenario())

    assert outcome is FetchOutcome.STALE
    assert state.result.items == ()


def test_each_applied_fetch_bumps_generation() -> None:
    async def scenario():
        source = GatedSource()
        state = ListState()
        fetcher = ResourceFetcher(source, state)
        for label in ("first", "second"):
            task = asyncio.create_task(fetcher.fetch(ListQuery(page_size=10).snapshot()))
            await asyncio.sleep(0)
            source.calls[-1][3].set_result(_page(label))
            await task
        return state

    state = asyncio.run(scenario())

    assert state.generation == 2


def test_reserved_epoch_makes_older_fetch_stale_before_the_new_one_starts() -> None:
    async def scenario():
        source = GatedSource()
        state = ListState()
        fetcher = ResourceFetcher(source, state)
        snapshot = ListQuery(page_size=10).snapshot()

        old = asyncio.create_task(fetcher.fetch(snapshot))
        await asyncio.sleep(0)
        reserved = fetcher.begin()
        source.calls[0][3].set_result(_page("old"))
        old_outcome = await old
        loading_after_old = state.loading
        skipped = await fetcher.fetch(snapshot, reserved - 1)
        return old_outcome, loading_after_old, skipped, state, len(source.calls)

    old_outcome, loading_after_old, skipped, state, calls = asyncio.run(scenario())

    assert old_outcome is FetchOutcome.STALE
    assert loading_after_old is True
    assert state.status is ListStatus.LOADING
    assert skipped is FetchOutcome.STALE
    assert calls == 1


def test_unexpected_error_leaves_an_errored_list_not_a_spinner() -> None:
    async def scenario():
        source = GatedSource()
        state = ListState()
        fetcher = ResourceFetcher(source, state, fallback_error="Failed to fetch guides.")

        task = asyncio.create_task(fetcher.fetch(ListQuery(page_size=10).snapshot()))
        await asyncio.sleep(0)
        source.calls[0][3].set_exception(RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            await task
        return state

    state = asyncio.run(scenario())

    assert state.status is ListStatus.ERRORED
    assert state.error == "Failed to fetch guides."
    assert state.loading is False
