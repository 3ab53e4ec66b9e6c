from __future__ import annotations

import random

import pytest

from mbr_cli.api.models import ResultSet
from mbr_cli.mbr_tui.pipeline import (
    Pagination,
    ResultTable,
    ScrollState,
    SortOrder,
    filter_indices,
    search_indices,
    sort_indices,
)

PEOPLE = ResultSet.build(1, "People", ["name", "age"], [["Alice", "30"], ["bob", "25"], ["Carol", "30"]])


def _random_result(seed: int) -> ResultSet:
    rng = random.Random(seed)
    alphabet = "abcABC01 "
    rows = [
        ["".join(rng.choice(alphabet) for _ in range(rng.randint(0, 5))) for _ in range(3)]
        for _ in range(rng.randint(0, 25))
    ]
    return ResultSet.build(seed, "random", ["a", "b", "c"], rows)


def test_search_matches_any_cell_case_insensitively() -> None:
    assert search_indices(PEOPLE, None, "o") == [1, 2]
    assert search_indices(PEOPLE, None, "ALI") == [0]
    assert search_indices(PEOPLE, None, "") is None


@pytest.mark.parametrize("seed", range(20))
def test_search_equals_brute_force(seed: int) -> None:
    result = _random_result(seed)
    for needle in ("a", "B", "0", "ab", " "):
        expected = [
            index
            for index, row in enumerate(result.rows)
            if any(needle.lower() in cell.lower() for cell in row)
        ]
        assert search_indices(result, None, needle) == expected


def test_filter_narrows_search_output() -> None:
    searched = search_indices(PEOPLE, None, "o")
    assert filter_indices(PEOPLE, searched, 1, "30") == [2]
    assert filter_indices(PEOPLE, None, 1, "30") == [0, 2]
    assert filter_indices(PEOPLE, None, 1, "") is None
    assert filter_indices(PEOPLE, None, 5, "30") is None


def test_sort_is_stable_and_permutes_upstream() -> None:
    result = ResultSet.build(2, "dupes", ["k", "v"], [["b", "1"], ["a", "2"], ["b", "3"], ["a", "4"]])
    assert sort_indices(result, None, 0, SortOrder.ASCENDING) == [1, 3, 0, 2]
    assert sort_indices(result, None, 0, SortOrder.DESCENDING) == [0, 2, 1, 3]
    assert sort_indices(result, [2, 1], 0, SortOrder.ASCENDING) == [1, 2]
    assert sort_indices(result, None, 0, SortOrder.NONE) is None


@pytest.mark.parametrize("seed", range(20))
def test_stage_composition_properties(seed: int) -> None:
    result = _random_result(seed)
    searched = search_indices(result, None, "a")
    filtered = filter_indices(result, searched, 1, "b")
    upstream = filtered if filtered is not None else searched
    ordered = sort_indices(result, upstream, 2, SortOrder.DESCENDING)

    base = upstream if upstream is not None else list(range(result.row_count))
    assert set(filtered or []) <= set(searched or [])
    assert sorted(ordered or []) == sorted(base)
    assert all(0 <= index < result.row_count for index in ordered or [])


def test_end_to_end_scenario() -> None:
    table = ResultTable.create(PEOPLE, page_size=100)

    table.set_search("o")
    assert table.search_idx == [1, 2]

    table.set_filter(1, "30")
    assert table.filter_idx == [2]

    table.cycle_sort(0)
    assert table.sort_idx == [2]

    table.resize_pages(1)
    assert table.pagination.page == 0
    assert table.page_rows() == [("Carol", "30")]


def test_search_change_cascades_through_active_stages() -> None:
    table = ResultTable.create(PEOPLE, page_size=1)
    table.set_filter(1, "30")
    table.cycle_sort(0)
    table.cycle_sort(0)  # descending
    assert table.visible_indices() == [2, 0]

    table.set_search("car")
    assert table.filter_idx == [2]
    assert table.visible_indices() == [2]

    table.clear_search()
    assert table.search_idx is None
    assert table.visible_indices() == [2, 0]


def test_clearing_stages_restores_identity() -> None:
    table = ResultTable.create(PEOPLE, page_size=10)
    table.set_search("o")
    table.set_filter(1, "30")
    table.cycle_sort(0)

    table.clear_filter()
    assert table.filter_idx is None
    # Uppercase sorts before lowercase.
    assert table.sort_idx == [2, 1]

    table.clear_sort()
    table.clear_search()
    assert table.visible_indices() == [0, 1, 2]
    assert table.describe() == []


def test_sort_cycles_asc_desc_none() -> None:
    table = ResultTable.create(PEOPLE, page_size=10)
    table.cycle_sort(0)
    assert table.sort_order is SortOrder.ASCENDING
    assert table.visible_indices() == [0, 2, 1]
    table.cycle_sort(0)
    assert table.sort_order is SortOrder.DESCENDING
    assert table.visible_indices() == [1, 2, 0]
    table.cycle_sort(0)
    assert table.sort_order is SortOrder.NONE
    assert table.sort_column is None
    assert table.visible_indices() == [0, 1, 2]
    table.cycle_sort(1)
    table.cycle_sort(0)
    assert table.sort_column == 0
    assert table.sort_order is SortOrder.ASCENDING


def test_predicate_change_resets_page_but_navigation_keeps_it() -> None:
    rows = [[f"row{i}", str(i % 3)] for i in range(10)]
    table = ResultTable.create(ResultSet.build(9, "rows", ["name", "n"], rows), page_size=3)

    table.change_page("next")
    table.change_page("next")
    assert table.pagination.page == 2

    table.set_search("row")
    assert table.pagination.page == 0

    table.change_page("last")
    assert table.pagination.page == 3
    table.change_page("next")
    assert table.pagination.page == 3


def test_applying_same_search_twice_is_idempotent() -> None:
    rows = [[f"item{i}"] for i in range(8)]
    table = ResultTable.create(ResultSet.build(4, "items", ["name"], rows), page_size=2)
    table.set_search("item")
    table.change_page("next")
    first = table.visible_indices()

    assert table.set_search("item") is False
    assert table.visible_indices() == first
    assert table.pagination.page == 1


def test_resize_preserves_page_modulo_page_count() -> None:
    pagination = Pagination(page_size=2)
    pagination.reset(10)
    pagination.page = 4
    pagination.resize(3)
    assert pagination.page_count == 4
    assert pagination.page == 0
    pagination.page = 3
    pagination.resize(4)
    assert pagination.page == 3 % 3


def test_pagination_invariant_holds() -> None:
    pagination = Pagination(page_size=4)
    pagination.reset(9)
    for step in ("next", "next", "next", "prev", "next"):
        if step == "next":
            pagination.next_page()
        else:
            pagination.prev_page()
        assert pagination.page * pagination.page_size < pagination.visible_count
    pagination.reset(0)
    assert pagination.page == 0
    assert pagination.page_count == 1


def test_selected_record_pairs_columns_with_values() -> None:
    table = ResultTable.create(PEOPLE, page_size=2)
    table.change_page("next")
    assert table.selected_record() == [("name", "Carol"), ("age", "30")]
    assert table.row_at(1) == ("bob", "25")
    assert table.row_at(5) is None


def test_describe_reports_active_stages() -> None:
    table = ResultTable.create(PEOPLE, page_size=2)
    table.set_search("o")
    table.set_filter(1, "30")
    table.cycle_sort(0)
    assert table.describe() == ["search 'o': 2/3 rows", "filter age~'30'", "sort name ↑"]


@pytest.mark.parametrize("seed", range(25))
def test_scroll_state_invariant_under_random_scrolling(seed: int) -> None:
    rng = random.Random(seed)
    total = rng.randint(0, 50)
    scroll = ScrollState(offset=rng.randint(0, 60), total=total, visible=rng.randint(0, 60))
    assert scroll.offset + scroll.visible <= scroll.total
    for _ in range(100):
        amount = rng.randint(0, 10)
        if rng.random() < 0.5:
            scroll.scroll_up(amount)
        else:
            scroll.scroll_down(amount)
        assert 0 <= scroll.offset
        assert scroll.offset + scroll.visible <= scroll.total


def test_scroll_ensure_visible() -> None:
    scroll = ScrollState(total=20, visible=5)
    scroll.ensure_visible(7)
    assert scroll.offset == 3
    scroll.ensure_visible(1)
    assert scroll.offset == 1
    scroll.set_total(3)
    assert scroll.visible == 3
    assert scroll.offset == 0


def test_column_scrolling_is_bounded() -> None:
    table = ResultTable.create(PEOPLE, page_size=2)
    table.scroll_columns(5)
    assert table.columns.offset == 1
    table.scroll_columns(-3)
    assert table.columns.offset == 0
