from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable

Resource = dict[str, Any]


@dataclass(frozen=True)
class ResourceSet:
    """One page of resources as the backend returned it.

    ``page_count`` is always derived from ``total`` and ``page_size``; the
    backend's own ``pages`` value is ignored so the two can never disagree.
    """

    items: tuple[Resource, ...] = field(default_factory=tuple)
    total: int = 0
    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        page_size = max(1, int(self.page_size))
        object.__setattr__(self, "page_size", page_size)
        object.__setattr__(self, "page", max(1, int(self.page)))
        object.__setattr__(self, "total", max(0, int(self.total)))
        object.__setattr__(self, "items", tuple(self.items)[:page_size])

    @classmethod
    def empty(cls, page_size: int = 10, page: int = 1) -> "ResourceSet":
        return cls(items=(), total=0, page=page, page_size=page_size)

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.page_size)

    def index_of(self, resource_id: Any, id_field: str = "_id") -> int | None:
        wanted = str(resource_id)
        for index, item in enumerate(self.items):
            if str(item.get(id_field)) == wanted:
                return index
        return None

    def get(self, resource_id: Any, id_field: str = "_id") -> Resource | None:
        index = self.index_of(resource_id, id_field)
        return None if index is None else self.items[index]

    def with_items(self, items: Iterable[Resource], total: int | None = None) -> "ResourceSet":
        return replace(self, items=tuple(items), total=self.total if total is None else total)
