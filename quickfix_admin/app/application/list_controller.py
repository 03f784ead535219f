from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Mapping
from dataclasses import dataclass, field
from typing import Any

from clients.quickfix_client_sdk.http_client import HttpClient
from clients.quickfix_client_sdk.models import Resource
from clients.quickfix_client_sdk.resource_client import ResourceClient

from quickfix_admin.app.application.list_query import ListQuery, QuerySnapshot
from quickfix_admin.app.application.mutation_attempts import MutationInFlightError
from quickfix_admin.app.application.optimistic_mutator import (
    MissingDependencyError,
    MutationIntent,
    MutationKind,
    MutationOutcome,
    MutationStatus,
    OptimisticMutator,
    PendingMutation,
)
from quickfix_admin.app.application.resource_fetcher import FetchOutcome, ListState, ListStatus, ResourceFetcher
from quickfix_admin.app.application.screens import ScreenConfig, get_screen
from quickfix_admin.app.config import AppConfig
from quickfix_admin.app.infrastructure.logging.logger import get_logger, log_action
from quickfix_admin.app.state import AdminContext, AdminContextStore
from quickfix_admin.app.ui.filters import CallLater, DebouncedSearch
from quickfix_admin.app.ui.listing_view import sanitize_row
from quickfix_admin.app.ui.pagination import page_window

FETCH_FAILED = "fetch_failed"
MUTATION_SUCCEEDED = "mutation_succeeded"
MUTATION_FAILED = "mutation_failed"
MUTATION_REJECTED = "mutation_rejected"


@dataclass(frozen=True)
class ControllerEvent:
    kind: str
    screen: str
    label: str
    target: Any = None
    mutation: MutationKind | None = None
    message: str | None = None
    trace_id: str | None = None
    field_errors: Mapping[str, str] = field(default_factory=dict)


EventListener = Callable[[ControllerEvent], None]


@dataclass(frozen=True)
class ListView:
    items: tuple[Resource, ...]
    loading: bool
    error: str | None
    page: int
    page_count: int
    total: int
    status: ListStatus
    page_numbers: tuple[int, ...] = ()

    @property
    def show_pagination(self) -> bool:
        return self.page_count > 1


class ListController:
    """Paginated, filterable, optimistically updated list for one admin screen.

    Query callbacks return the fetch task they scheduled (or ``None`` when the
    query did not change). Mutation callbacks always return an awaitable that
    resolves to a ``MutationOutcome``; local rejections resolve immediately and
    never reach the network.
    """

    def __init__(
        self,
        screen: ScreenConfig,
        source: ResourceClient,
        config: AppConfig,
        *,
        context: AdminContextStore | None = None,
        call_later: CallLater | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.screen = screen
        self.source = source
        self.state = ListState()
        self.query = ListQuery(page_size=config.page_size, filter_keys=screen.filter_keys)
        self._logger = logger or get_logger("quickfix_admin.controller")
        self.fetcher = ResourceFetcher(
            source,
            self.state,
            module=screen.name,
            fallback_error=screen.fallback_error,
            logger=self._logger,
        )
        self.mutator = OptimisticMutator(
            source,
            self.state,
            id_field=screen.id_field,
            label=screen.label,
            toggle_routes=screen.binding.toggle_routes,
            module=screen.name,
            logger=self._logger,
        )
        self.search = DebouncedSearch(self._on_search_settled, delay_ms=config.search_debounce_ms, call_later=call_later)
        self._context = context
        self._unsubscribe_context = context.subscribe(self._on_context_changed) if context else None
        self._listeners: list[EventListener] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._started = False
        self._closed = False
        self._final_view: ListView | None = None

    @property
    def context(self) -> AdminContext | None:
        return self._context.current if self._context else None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> asyncio.Task[FetchOutcome] | None:
        if self._started:
            return None
        self._started = True
        return self._schedule_fetch()

    def refresh(self) -> asyncio.Task[FetchOutcome] | None:
        return self._schedule_fetch()

    def view(self) -> ListView:
        if self._final_view is not None:
            return self._final_view
        result = self.state.result
        return ListView(
            items=result.items,
            loading=self.state.loading,
            error=self.state.error,
            page=self.query.page,
            page_count=result.page_count,
            total=result.total,
            status=self.state.status,
            page_numbers=tuple(page_window(self.query.page, result.page_count)),
        )

    def display_rows(self) -> list[dict[str, str]]:
        columns = list(self.screen.columns)
        return [sanitize_row(item, columns) for item in self.view().items]

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # Query callbacks

    def on_page_change(self, page: int) -> asyncio.Task[FetchOutcome] | None:
        if self._closed or not self.query.set_page(page):
            return None
        return self._schedule_fetch()

    def on_filter_change(self, key: str, value: Any) -> asyncio.Task[FetchOutcome] | None:
        if self._closed or not self.query.set_filter(key, value):
            return None
        return self._schedule_fetch()

    def on_search_change(self, term: str) -> None:
        if self._closed:
            return
        self.query.set_search_term(term)
        self.search.push(term)

    # Mutation callbacks

    def on_create(self, payload: Mapping[str, Any]) -> asyncio.Future[MutationOutcome]:
        return self._submit_payload(MutationKind.CREATE, None, payload, operation="create")

    def on_update(self, resource_id: Any, payload: Mapping[str, Any]) -> asyncio.Future[MutationOutcome]:
        return self._submit_payload(MutationKind.UPDATE, resource_id, payload, operation="update")

    def on_delete(self, resource_id: Any) -> asyncio.Future[MutationOutcome]:
        if not self.screen.binding.supports("delete"):
            return self._reject(MutationKind.DELETE, resource_id, f"Deleting a {self.screen.label} is not supported.")
        return self._submit_intent(MutationKind.DELETE, resource_id)

    def on_toggle_field(
        self,
        resource_id: Any,
        field_name: str,
        value: Any,
        note: str | None = None,
        *,
        reason: str | None = None,
    ) -> asyncio.Future[MutationOutcome]:
        kind = MutationKind.STATUS_CHANGE
        if not self.screen.binding.supports("set_field"):
            return self._reject(kind, resource_id, f"Changing a {self.screen.label} from this list is not supported.")
        result = self.screen.validate_field(field_name, value, note, reason)
        if not result.is_valid:
            return self._reject(kind, resource_id, "Please correct the form errors.", result.field_errors)
        route = self.screen.binding.toggle_routes.get(field_name)
        if route and route.note_field and route.note_field in result.values:
            note = result.values[route.note_field]
        return self._submit_intent(kind, resource_id, {field_name: result.values[field_name]}, note=note or None)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        if self._closed:
            return
        self._final_view = self.view()
        self._closed = True
        self.search.close()
        self.fetcher.invalidate()
        if self._unsubscribe_context:
            self._unsubscribe_context()
            self._unsubscribe_context = None
        self._listeners.clear()
        log_action(self._logger, self.screen.name, "close", "success", level=logging.DEBUG)
        # In-flight saves still complete on the server; their results are no longer shown.
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _submit_payload(
        self,
        kind: MutationKind,
        resource_id: Any,
        payload: Mapping[str, Any],
        *,
        operation: str,
    ) -> asyncio.Future[MutationOutcome]:
        if not self.screen.binding.supports(operation):
            return self._reject(kind, resource_id, f"Cannot {operation} a {self.screen.label} from this list.")
        result = self.screen.validate_payload(operation, payload)
        if not result.is_valid:
            return self._reject(kind, resource_id, "Please correct the form errors.", result.field_errors)
        return self._submit_intent(kind, resource_id, result.values)

    def _submit_intent(
        self,
        kind: MutationKind,
        resource_id: Any,
        payload: Mapping[str, Any] | None = None,
        *,
        note: str | None = None,
    ) -> asyncio.Future[MutationOutcome]:
        try:
            intent = MutationIntent(kind, target=resource_id, payload=dict(payload or {}), note=note)
        except ValueError as error:
            return self._reject(kind, resource_id, str(error))
        return self._submit(intent)

    def _submit(self, intent: MutationIntent) -> asyncio.Future[MutationOutcome]:
        if self._closed:
            return self._reject(intent.kind, intent.target, "This list is closed.", intent=intent)
        try:
            pending = self.mutator.project(intent)
        except (MissingDependencyError, MutationInFlightError) as error:
            return self._reject(intent.kind, intent.target, str(error), intent=intent)
        return self._spawn(self._settle(pending))

    async def _settle(self, pending: PendingMutation) -> MutationOutcome:
        outcome = await self.mutator.commit(pending)
        if self._closed:
            return outcome
        intent = pending.intent

        if not outcome.ok:
            self.state.error = outcome.message
            self.state.error_trace_id = outcome.trace_id
            self._emit(
                ControllerEvent(
                    kind=MUTATION_FAILED,
                    screen=self.screen.name,
                    label=self.screen.label,
                    target=intent.target,
                    mutation=intent.kind,
                    message=outcome.message,
                    trace_id=outcome.trace_id,
                    field_errors=outcome.field_errors,
                )
            )
            return outcome

        self._emit(
            ControllerEvent(
                kind=MUTATION_SUCCEEDED,
                screen=self.screen.name,
                label=self.screen.label,
                target=intent.target if intent.target is not None else _created_id(outcome, self.screen.id_field),
                mutation=intent.kind,
            )
        )
        if intent.kind is MutationKind.DELETE and not self.state.result.items and self.query.page > 1:
            self.query.set_page(self.query.page - 1)
        if outcome.refetch:
            await self._run_fetch(self.query.snapshot(), self.fetcher.begin())
        return outcome

    def _reject(
        self,
        kind: MutationKind,
        target: Any,
        message: str,
        field_errors: Mapping[str, str] | None = None,
        *,
        intent: MutationIntent | None = None,
    ) -> asyncio.Future[MutationOutcome]:
        outcome = MutationOutcome(
            status=MutationStatus.REJECTED,
            intent=intent,
            message=message,
            field_errors=dict(field_errors or {}),
        )
        log_action(self._logger, self.screen.name, kind.value, "rejected", target=target)
        if not self._closed:
            self._emit(
                ControllerEvent(
                    kind=MUTATION_REJECTED,
                    screen=self.screen.name,
                    label=self.screen.label,
                    target=target,
                    mutation=kind,
                    message=message,
                    field_errors=outcome.field_errors,
                )
            )
        future: asyncio.Future[MutationOutcome] = asyncio.get_running_loop().create_future()
        future.set_result(outcome)
        return future

    def _schedule_fetch(self) -> asyncio.Task[FetchOutcome] | None:
        if self._closed:
            return None
        # Reserved before the task starts; older fetches resolving in between are stale.
        epoch = self.fetcher.begin()
        return self._spawn(self._run_fetch(self.query.snapshot(), epoch))

    async def _run_fetch(self, snapshot: QuerySnapshot, epoch: int) -> FetchOutcome:
        if self._closed:
            return FetchOutcome.STALE
        outcome = await self.fetcher.fetch(snapshot, epoch)
        if not self._closed:
            self._after_fetch(outcome)
        return outcome

    def _after_fetch(self, outcome: FetchOutcome) -> None:
        if outcome is not FetchOutcome.STALE:
            self.query.update_page_count(self.state.result.page_count)
        if outcome is FetchOutcome.FAILED:
            self._emit(
                ControllerEvent(
                    kind=FETCH_FAILED,
                    screen=self.screen.name,
                    label=self.screen.label,
                    message=self.state.error,
                    trace_id=self.state.error_trace_id,
                )
            )

    def _on_search_settled(self, term: str) -> None:
        log_action(self._logger, self.screen.name, "search", "settled", level=logging.DEBUG)
        if self.query.apply_debounced_term(term):
            self._schedule_fetch()

    def _on_context_changed(self, previous: AdminContext, current: AdminContext) -> None:
        if not self._started or self._closed:
            return
        if previous.fingerprint() != current.fingerprint() and current.is_authenticated():
            self._schedule_fetch()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _emit(self, event: ControllerEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self._logger.exception("listener failed for %s event on %s", event.kind, event.screen)


def _created_id(outcome: MutationOutcome, id_field: str) -> Any:
    return (outcome.resource or {}).get(id_field)


def build_controller(
    screen_name: str,
    config: AppConfig,
    context: AdminContextStore | None = None,
    *,
    http_client: HttpClient | None = None,
    call_later: CallLater | None = None,
) -> ListController:
    """Wire a controller for ``screen_name``.

    Without an explicit ``http_client`` one is built from ``config`` so the
    base URL, timeout and retry settings come from the same place as the page
    size and debounce delay.
    """
    screen = get_screen(screen_name)
    http_client = http_client or HttpClient(config.to_sdk_config())
    token_provider = (lambda: context.current.access_token) if context else None
    source = ResourceClient(http_client, screen.binding, token_provider=token_provider)
    return ListController(screen, source, config, context=context, call_later=call_later)
