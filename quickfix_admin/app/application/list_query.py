from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from quickfix_admin.app.ui.filters import clean_filters
from quickfix_admin.app.ui.pagination import PaginationState, goto_page


@dataclass(frozen=True)
class QuerySnapshot:
    page: int
    page_size: int
    search_term: str
    filters: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_params(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "keyword": self.search_term,
            **clean_filters(dict(self.filters)),
        }


class ListQuery:
    """Page, search and filter state for one admin list.

    Filter keys are fixed when the query is built; setting an unknown key is a
    programming error and raises ``KeyError``.
    """

    def __init__(self, page_size: int, filter_keys: Iterable[str] = ()) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be greater than 0")
        self._pagination = PaginationState(page=1, page_size=page_size)
        self._filters: dict[str, Any] = {key: None for key in filter_keys}
        self.raw_search_term = ""
        self._search_term = ""

    @property
    def page(self) -> int:
        return self._pagination.page

    @property
    def page_size(self) -> int:
        return self._pagination.page_size

    @property
    def search_term(self) -> str:
        return self._search_term

    @property
    def filters(self) -> dict[str, Any]:
        return dict(self._filters)

    def set_filter(self, key: str, value: Any) -> bool:
        if key not in self._filters:
            raise KeyError(f"unknown filter '{key}'")
        changed = self._filters[key] != value
        self._filters[key] = value
        page_reset = self._reset_page()
        return changed or page_reset

    def set_search_term(self, term: str) -> None:
        self.raw_search_term = term

    def apply_debounced_term(self, term: str) -> bool:
        if term == self._search_term:
            return False
        self._search_term = term
        self._reset_page()
        return True

    def set_page(self, page: int) -> bool:
        previous = self._pagination.page
        goto_page(self._pagination, page)
        return self._pagination.page != previous

    def update_page_count(self, page_count: int) -> None:
        self._pagination.page_count = max(0, page_count)

    def snapshot(self) -> QuerySnapshot:
        return QuerySnapshot(
            page=self._pagination.page,
            page_size=self._pagination.page_size,
            search_term=self._search_term,
            filters=MappingProxyType(dict(self._filters)),
        )

    def _reset_page(self) -> bool:
        changed = self._pagination.page != 1
        self._pagination.page = 1
        return changed
