from clients.quickfix_client_sdk.models import ResourceSet

from quickfix_admin.app.ui.pagination import PaginationState, clamp_page, next_page, page_count, page_window, prev_page


def test_page_count_rounds_up() -> None:
    assert page_count(95, 10) == 10
    assert page_count(25, 10) == 3
    assert page_count(30, 10) == 3
    assert page_count(0, 10) == 0


def test_resource_set_page_count_and_items_never_exceed_page_size() -> None:
    rows = [{"_id": str(index)} for index in range(15)]

    result = ResourceSet(items=tuple(rows), total=95, page=10, page_size=10)

    assert result.page_count == 10
    assert len(result.items) <= 10


def test_clamp_page_keeps_page_in_range() -> None:
    assert clamp_page(0, 3) == 1
    assert clamp_page(7, 3) == 3
    assert clamp_page(2, 0) == 1


def test_next_and_prev_page_stop_at_bounds() -> None:
    state = PaginationState(page=1, page_size=10, page_count=2)

    prev_page(state)
    assert state.page == 1
    next_page(state)
    next_page(state)
    assert state.page == 2


def test_page_window_is_hidden_for_single_page() -> None:
    assert page_window(1, 1) == []
    assert page_window(1, 0) == []


def test_page_window_centers_on_current_page() -> None:
    assert page_window(1, 10) == [1, 2, 3, 4, 5]
    assert page_window(5, 10) == [3, 4, 5, 6, 7]
    assert page_window(10, 10) == [6, 7, 8, 9, 10]
    assert page_window(2, 3) == [1, 2, 3]
