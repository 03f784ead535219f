from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol

from clients.quickfix_client_sdk.errors import ApiError
from clients.quickfix_client_sdk.models import Resource, ResourceSet
from clients.quickfix_client_sdk.resource_client import ToggleRoute

from quickfix_admin.app.application.mutation_attempts import MutationInFlightError, MutationTracker
from quickfix_admin.app.application.resource_fetcher import ListState
from quickfix_admin.app.infrastructure.errors.error_mapper import ErrorMapper
from quickfix_admin.app.infrastructure.logging.logger import get_logger, log_action
from quickfix_admin.app.ui.forms import map_api_validation_errors

PENDING_ID_PREFIX = "pending-"


class MutationSource(Protocol):
    async def create(self, payload: Mapping[str, Any]) -> Resource: ...

    async def update(self, resource_id: Any, payload: Mapping[str, Any]) -> Resource: ...

    async def delete(self, resource_id: Any) -> None: ...

    async def set_field(
        self,
        resource_id: Any,
        field_name: str,
        value: Any,
        *,
        dependency_id: Any = None,
        note: str | None = None,
    ) -> Resource: ...


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    STATUS_CHANGE = "status_change"


class MutationStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"


class MissingDependencyError(ValueError):
    def __init__(self, resource_id: Any, field_name: str, dependency_field: str) -> None:
        super().__init__(f"Cannot change {field_name} for {resource_id}: missing linked {dependency_field}.")
        self.resource_id = resource_id
        self.field_name = field_name
        self.dependency_field = dependency_field


@dataclass(frozen=True)
class MutationIntent:
    kind: MutationKind
    target: Any = None
    payload: Mapping[str, Any] = field(default_factory=dict)
    note: str | None = None

    def __post_init__(self) -> None:
        if self.kind is MutationKind.CREATE and self.target is not None:
            raise ValueError("create intents cannot carry a target id")
        if self.kind is not MutationKind.CREATE and self.target in (None, ""):
            raise ValueError(f"{self.kind.value} intents need a target id")
        if self.kind is MutationKind.STATUS_CHANGE and len(self.payload) != 1:
            raise ValueError("status_change intents carry exactly one field")

    @property
    def field_name(self) -> str | None:
        if self.kind is not MutationKind.STATUS_CHANGE:
            return None
        return next(iter(self.payload))


@dataclass
class PendingMutation:
    intent: MutationIntent
    snapshot: ResourceSet
    projected: ResourceSet
    generation: int
    tracking_key: str
    original: Resource | None = None
    original_index: int | None = None
    provisional_id: str | None = None
    dependency_id: Any = None


@dataclass(frozen=True)
class MutationOutcome:
    status: MutationStatus
    intent: MutationIntent | None
    resource: Resource | None = None
    message: str | None = None
    field_errors: Mapping[str, str] = field(default_factory=dict)
    refetch: bool = False
    trace_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is MutationStatus.SUCCEEDED


class OptimisticMutator:
    def __init__(
        self,
        source: MutationSource,
        state: ListState,
        *,
        id_field: str = "_id",
        label: str = "record",
        toggle_routes: Mapping[str, ToggleRoute] | None = None,
        module: str = "list",
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.state = state
        self.id_field = id_field
        self.label = label
        self.toggle_routes = dict(toggle_routes or {})
        self.module = module
        self.tracker = MutationTracker()
        self._logger = logger or get_logger("quickfix_admin.mutator")

    def mutate(self, intent: MutationIntent) -> "asyncio.Task[MutationOutcome]":
        pending = self.project(intent)
        return asyncio.get_running_loop().create_task(self.commit(pending))

    def project(self, intent: MutationIntent) -> PendingMutation:
        """Apply ``intent`` to the displayed set right away and remember how to undo it."""
        current = self.state.result
        dependency_id = self._resolve_dependency(intent, current)
        tracking_key = str(intent.target) if intent.target is not None else f"create:{uuid.uuid4().hex}"
        if not self.tracker.begin(tracking_key):
            raise MutationInFlightError(intent.target)

        pending = PendingMutation(
            intent=intent,
            snapshot=current,
            projected=current,
            generation=self.state.generation,
            tracking_key=tracking_key,
            dependency_id=dependency_id,
        )
        pending.projected = self._apply(pending, current)
        self.state.result = pending.projected
        log_action(self._logger, self.module, intent.kind.value, "projected", target=intent.target, level=logging.DEBUG)
        return pending

    async def commit(self, pending: PendingMutation) -> MutationOutcome:
        intent = pending.intent
        try:
            resource = await self._call(pending)
        except ApiError as error:
            self._rollback(pending)
            reason = ErrorMapper.to_display_message(error, "Request failed.")
            log_action(
                self._logger,
                self.module,
                intent.kind.value,
                "rolled_back",
                target=intent.target,
                trace_id=error.trace_id,
                error_code=error.code,
                level=logging.WARNING,
            )
            return MutationOutcome(
                status=MutationStatus.FAILED,
                intent=intent,
                message=f"Could not {_verb(intent)} {self.label} {intent.target or ''}".rstrip() + f": {reason}",
                field_errors=map_api_validation_errors(error.details),
                trace_id=error.trace_id,
            )
        except Exception:
            self._rollback(pending)
            log_action(
                self._logger,
                self.module,
                intent.kind.value,
                "rolled_back",
                target=intent.target,
                error_code="UNEXPECTED",
                level=logging.ERROR,
            )
            raise
        finally:
            self.tracker.end(pending.tracking_key)

        refetch = intent.kind is not MutationKind.STATUS_CHANGE
        if not refetch:
            self._reconcile(pending, resource)
        log_action(self._logger, self.module, intent.kind.value, "success", target=intent.target)
        return MutationOutcome(status=MutationStatus.SUCCEEDED, intent=intent, resource=resource, refetch=refetch)

    def _resolve_dependency(self, intent: MutationIntent, current: ResourceSet) -> Any:
        field_name = intent.field_name
        route = self.toggle_routes.get(field_name) if field_name else None
        if route is None or not route.dependency_field:
            return None
        row = current.get(intent.target, self.id_field) or {}
        linked = row.get(route.dependency_field)
        if isinstance(linked, dict):
            linked = linked.get(self.id_field) or linked.get("id")
        if linked in (None, ""):
            raise MissingDependencyError(intent.target, field_name or "", route.dependency_field)
        return linked

    def _apply(self, pending: PendingMutation, current: ResourceSet) -> ResourceSet:
        intent = pending.intent
        items = list(current.items)

        if intent.kind is MutationKind.CREATE:
            pending.provisional_id = f"{PENDING_ID_PREFIX}{uuid.uuid4().hex[:12]}"
            provisional = {**intent.payload, self.id_field: pending.provisional_id}
            return current.with_items([provisional, *items], total=current.total + 1)

        index = current.index_of(intent.target, self.id_field)
        if index is None:
            return current
        pending.original = items[index]
        pending.original_index = index

        if intent.kind is MutationKind.DELETE:
            del items[index]
            return current.with_items(items, total=max(0, current.total - 1))

        items[index] = {**items[index], **intent.payload}
        return current.with_items(items)

    async def _call(self, pending: PendingMutation) -> Resource | None:
        intent = pending.intent
        if intent.kind is MutationKind.CREATE:
            return await self.source.create(intent.payload)
        if intent.kind is MutationKind.UPDATE:
            return await self.source.update(intent.target, intent.payload)
        if intent.kind is MutationKind.DELETE:
            await self.source.delete(intent.target)
            return None
        field_name = intent.field_name or ""
        return await self.source.set_field(
            intent.target,
            field_name,
            intent.payload[field_name],
            dependency_id=pending.dependency_id,
            note=intent.note,
        )

    def _rollback(self, pending: PendingMutation) -> None:
        current = self.state.result
        if current is pending.projected:
            self.state.result = pending.snapshot
            return
        if self.state.generation != pending.generation:
            # A fetch already replaced the rows with server data.
            return

        # Another mutation projected on top of ours; undo only our row.
        intent = pending.intent
        items = list(current.items)
        if intent.kind is MutationKind.CREATE:
            index = current.index_of(pending.provisional_id, self.id_field)
            if index is not None:
                del items[index]
                self.state.result = current.with_items(items, total=max(0, current.total - 1))
            return
        if pending.original is None:
            return
        if intent.kind is MutationKind.DELETE:
            position = min(pending.original_index or 0, len(items))
            items.insert(position, pending.original)
            self.state.result = current.with_items(items, total=current.total + 1)
            return
        index = current.index_of(intent.target, self.id_field)
        if index is not None:
            items[index] = pending.original
            self.state.result = current.with_items(items)

    def _reconcile(self, pending: PendingMutation, resource: Resource | None) -> None:
        """Write the confirmed value into the displayed row.

        This also runs when a fetch replaced the rows while the save was in
        flight, since that fetch may have read the value from before the save.
        """
        current = self.state.result
        index = current.index_of(pending.intent.target, self.id_field)
        if index is None:
            return
        confirmed = dict(pending.intent.payload)
        # Toggles routed through a linked record return that record, not the row.
        if isinstance(resource, dict) and str(resource.get(self.id_field)) == str(pending.intent.target):
            confirmed.update(resource)
        items = list(current.items)
        items[index] = {**items[index], **confirmed}
        self.state.result = current.with_items(items)


def _verb(intent: MutationIntent) -> str:
    return "update" if intent.kind is MutationKind.STATUS_CHANGE else intent.kind.value
