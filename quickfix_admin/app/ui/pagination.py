from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class PaginationState:
    page: int = 1
    page_size: int = 10
    page_count: int = 0


def page_count(total: int, page_size: int) -> int:
    return math.ceil(max(0, total) / max(1, page_size))


def clamp_page(page: int, pages: int) -> int:
    return min(max(1, page), max(1, pages))


def goto_page(state: PaginationState, page: int) -> PaginationState:
    state.page = clamp_page(page, state.page_count)
    return state


def next_page(state: PaginationState) -> PaginationState:
    return goto_page(state, state.page + 1)


def prev_page(state: PaginationState) -> PaginationState:
    return goto_page(state, state.page - 1)


def page_window(current: int, total_pages: int, max_numbers: int = 5) -> list[int]:
    """Page numbers shown around ``current``; empty when there is nothing to paginate."""
    if total_pages <= 1:
        return []
    start = max(1, current - max_numbers // 2)
    end = min(total_pages, start + max_numbers - 1)
    if end - start + 1 < max_numbers and end == total_pages:
        start = max(1, total_pages - max_numbers + 1)
    return list(range(start, end + 1))
