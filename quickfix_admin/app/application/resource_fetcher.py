from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from clients.quickfix_client_sdk.errors import ApiError
from clients.quickfix_client_sdk.models import ResourceSet

from quickfix_admin.app.application.list_query import QuerySnapshot
from quickfix_admin.app.infrastructure.errors.error_mapper import ErrorMapper
from quickfix_admin.app.infrastructure.logging.logger import get_logger, log_action


class ListSource(Protocol):
    async def list(self, query: Mapping[str, Any]) -> ResourceSet: ...


class FetchOutcome(str, Enum):
    APPLIED = "applied"
    FAILED = "failed"
    STALE = "stale"


class ListStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


@dataclass
class ListState:
    """Displayed state shared by the fetcher and the mutator of one screen."""

    result: ResourceSet = field(default_factory=ResourceSet)
    loading: bool = False
    error: str | None = None
    error_trace_id: str | None = None
    status: ListStatus = ListStatus.IDLE
    generation: int = 0

    def replace_result(self, result: ResourceSet) -> None:
        self.result = result
        self.generation += 1


class ResourceFetcher:
    def __init__(
        self,
        source: ListSource,
        state: ListState,
        *,
        module: str = "list",
        fallback_error: str = "Failed to fetch records.",
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.state = state
        self.module = module
        self.fallback_error = fallback_error
        self._logger = logger or get_logger("quickfix_admin.fetcher")
        self._epoch = 0

    @property
    def epoch(self) -> int:
        return self._epoch

    def invalidate(self) -> None:
        """Make every in-flight fetch stale without issuing a new one."""
        self._epoch += 1

    def begin(self) -> int:
        """Reserve the next epoch and mark the list as loading.

        Any fetch holding an older epoch is stale from this point on, even if
        the fetch that owns the new epoch has not started yet.
        """
        self._epoch += 1
        self.state.loading = True
        self.state.error = None
        self.state.error_trace_id = None
        self.state.status = ListStatus.LOADING
        log_action(self._logger, self.module, "fetch", "started", epoch=self._epoch, level=logging.DEBUG)
        return self._epoch

    async def fetch(self, snapshot: QuerySnapshot, epoch: int | None = None) -> FetchOutcome:
        if epoch is None:
            epoch = self.begin()
        elif epoch != self._epoch:
            log_action(self._logger, self.module, "fetch", "stale_discarded", epoch=epoch, level=logging.DEBUG)
            return FetchOutcome.STALE

        try:
            result = await self.source.list(snapshot.to_params())
        except ApiError as error:
            if epoch != self._epoch:
                log_action(self._logger, self.module, "fetch", "stale_discarded", epoch=epoch, level=logging.DEBUG)
                return FetchOutcome.STALE
            self.state.replace_result(ResourceSet.empty(page_size=snapshot.page_size, page=snapshot.page))
            self.state.error = ErrorMapper.to_display_message(error, self.fallback_error)
            self.state.error_trace_id = error.trace_id
            self.state.status = ListStatus.ERRORED
            log_action(
                self._logger,
                self.module,
                "fetch",
                "error",
                epoch=epoch,
                trace_id=error.trace_id,
                error_code=error.code,
                level=logging.WARNING,
            )
            return FetchOutcome.FAILED
        except Exception:
            if epoch == self._epoch:
                self.state.error = self.fallback_error
                self.state.status = ListStatus.ERRORED
            log_action(self._logger, self.module, "fetch", "error", epoch=epoch, error_code="UNEXPECTED", level=logging.ERROR)
            raise
        finally:
            if epoch == self._epoch:
                self.state.loading = False

        if epoch != self._epoch:
            log_action(self._logger, self.module, "fetch", "stale_discarded", epoch=epoch, level=logging.DEBUG)
            return FetchOutcome.STALE
        self.state.replace_result(result)
        self.state.status = ListStatus.LOADED
        log_action(self._logger, self.module, "fetch", "success", epoch=epoch, level=logging.DEBUG)
        return FetchOutcome.APPLIED
