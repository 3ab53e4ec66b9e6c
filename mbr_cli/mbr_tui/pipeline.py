"""Search, filter, sort and paginate over a loaded result set.

The stages compose by sequential narrowing: search runs over every row, filter
over the search output, sort over the filter output, and pagination slices the
final ordering. Every stage produces row indices into the original result set
(never copies of row data), or ``None`` when the stage is inactive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from mbr_cli.api.models import ResultSet


class SortOrder(str, Enum):
    NONE = "none"
    ASCENDING = "asc"
    DESCENDING = "desc"

    def cycled(self) -> SortOrder:
        return _SORT_CYCLE[self]

    @property
    def arrow(self) -> str:
        return {"asc": "↑", "desc": "↓"}.get(self.value, "")


_SORT_CYCLE = {
    SortOrder.NONE: SortOrder.ASCENDING,
    SortOrder.ASCENDING: SortOrder.DESCENDING,
    SortOrder.DESCENDING: SortOrder.NONE,
}


def _candidates(result: ResultSet, upstream: Sequence[int] | None) -> Iterable[int]:
    return range(result.row_count) if upstream is None else upstream


def search_indices(
    result: ResultSet,
    upstream: Sequence[int] | None,
    text: str,
) -> list[int] | None:
    """Rows where any cell contains ``text``, case-insensitively."""
    if not text:
        return None
    needle = text.lower()
    return [
        index
        for index in _candidates(result, upstream)
        if any(needle in cell.lower() for cell in result.rows[index])
    ]


def filter_indices(
    result: ResultSet,
    upstream: Sequence[int] | None,
    column: int | None,
    text: str,
) -> list[int] | None:
    """Rows whose ``column`` cell contains ``text``, case-insensitively."""
    if not text or column is None or not 0 <= column < len(result.columns):
        return None
    needle = text.lower()
    return [
        index
        for index in _candidates(result, upstream)
        if column < len(result.rows[index]) and needle in result.rows[index][column].lower()
    ]


def sort_indices(
    result: ResultSet,
    upstream: Sequence[int] | None,
    column: int | None,
    order: SortOrder,
) -> list[int] | None:
    """Stable ordering of the upstream rows by ``column``.

    The output is always a permutation of the upstream indices. Rows with equal
    keys keep their upstream order in both directions.
    """
    if order is SortOrder.NONE or column is None or not 0 <= column < len(result.columns):
        return None

    def key(index: int) -> str:
        row = result.rows[index]
        return row[column] if column < len(row) else ""

    return sorted(_candidates(result, upstream), key=key, reverse=order is SortOrder.DESCENDING)


@dataclass(slots=True)
class Pagination:
    """Page cursor over the visible row set."""

    page_size: int
    page: int = 0
    visible_count: int = 0

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be at least 1")
        self._clamp()

    @property
    def page_count(self) -> int:
        if self.visible_count <= 0:
            return 1
        return -(-self.visible_count // self.page_size)

    @property
    def start(self) -> int:
        return self.page * self.page_size

    @property
    def end(self) -> int:
        return min(self.start + self.page_size, self.visible_count)

    def reset(self, visible_count: int) -> None:
        self.visible_count = max(0, visible_count)
        self.page = 0

    def next_page(self) -> bool:
        if self.page + 1 < self.page_count:
            self.page += 1
            return True
        return False

    def prev_page(self) -> bool:
        if self.page > 0:
            self.page -= 1
            return True
        return False

    def first_page(self) -> None:
        self.page = 0

    def last_page(self) -> None:
        self.page = self.page_count - 1

    def resize(self, page_size: int) -> None:
        """Change the page size, keeping the current page modulo the new page count."""
        if page_size <= 0:
            raise ValueError("page_size must be at least 1")
        self.page_size = page_size
        self.page = self.page % self.page_count

    def _clamp(self) -> None:
        self.page = min(max(self.page, 0), self.page_count - 1)


@dataclass(slots=True)
class ScrollState:
    """Viewport over a scrollable list; ``offset + visible <= total`` always holds."""

    offset: int = 0
    total: int = 0
    visible: int = 0

    def __post_init__(self) -> None:
        self._clamp()

    def scroll_down(self, amount: int = 1) -> None:
        self.offset += max(0, amount)
        self._clamp()

    def scroll_up(self, amount: int = 1) -> None:
        self.offset -= max(0, amount)
        self._clamp()

    def set_total(self, total: int) -> None:
        self.total = max(0, total)
        self._clamp()

    def set_visible(self, visible: int) -> None:
        self.visible = max(0, visible)
        self._clamp()

    def ensure_visible(self, index: int) -> None:
        """Move the viewport the minimum amount needed to show ``index``."""
        if index < self.offset:
            self.offset = index
        elif self.visible and index >= self.offset + self.visible:
            self.offset = index - self.visible + 1
        self._clamp()

    def _clamp(self) -> None:
        self.total = max(0, self.total)
        self.visible = min(max(0, self.visible), self.total)
        self.offset = min(max(0, self.offset), self.total - self.visible)


@dataclass(slots=True)
class ResultTable:
    """Pipeline state for one loaded result set."""

    result: ResultSet
    pagination: Pagination
    search_text: str = ""
    search_buffer: str = ""
    search_open: bool = False
    filter_column: int | None = None
    filter_text: str = ""
    sort_column: int | None = None
    sort_order: SortOrder = SortOrder.NONE
    cursor: int = 0
    columns: ScrollState = field(default_factory=ScrollState)
    search_idx: list[int] | None = None
    filter_idx: list[int] | None = None
    sort_idx: list[int] | None = None

    @classmethod
    def create(cls, result: ResultSet, page_size: int) -> ResultTable:
        table = cls(result=result, pagination=Pagination(page_size=page_size))
        table.pagination.reset(result.row_count)
        table.columns.set_total(len(result.columns))
        table.columns.set_visible(1 if result.columns else 0)
        return table

    # ------------------------------------------------------------------
    # Derived views

    def visible_indices(self) -> list[int]:
        for stage in (self.sort_idx, self.filter_idx, self.search_idx):
            if stage is not None:
                return stage
        return list(range(self.result.row_count))

    @property
    def visible_count(self) -> int:
        for stage in (self.sort_idx, self.filter_idx, self.search_idx):
            if stage is not None:
                return len(stage)
        return self.result.row_count

    def page_indices(self) -> list[int]:
        return self.visible_indices()[self.pagination.start : self.pagination.end]

    def page_rows(self) -> list[tuple[str, ...]]:
        return [self.result.rows[index] for index in self.page_indices()]

    def row_at(self, logical_index: int) -> tuple[str, ...] | None:
        """Row at position ``logical_index`` of the visible ordering."""
        visible = self.visible_indices()
        if 0 <= logical_index < len(visible):
            return self.result.rows[visible[logical_index]]
        return None

    def selected_record(self) -> list[tuple[str, str]]:
        row = self.row_at(self.pagination.start + self.cursor)
        if row is None:
            return []
        return list(zip(self.result.columns, row))

    def describe(self) -> list[str]:
        parts: list[str] = []
        if self.search_idx is not None:
            parts.append(f"search '{self.search_text}': {len(self.search_idx)}/{self.result.row_count} rows")
        if self.filter_idx is not None and self.filter_column is not None:
            parts.append(f"filter {self.result.columns[self.filter_column]}~'{self.filter_text}'")
        if self.sort_idx is not None and self.sort_column is not None:
            parts.append(f"sort {self.result.columns[self.sort_column]} {self.sort_order.arrow}")
        return parts

    # ------------------------------------------------------------------
    # Stage mutations

    def set_search(self, text: str) -> bool:
        """Re-derive search and cascade downstream; no-op for unchanged text."""
        if text == self.search_text:
            return False
        self.search_text = text
        self._derive_from_search()
        return True

    def clear_search(self) -> bool:
        self.search_buffer = ""
        self.search_open = False
        return self.set_search("")

    def set_filter(self, column: int, text: str) -> bool:
        if not 0 <= column < len(self.result.columns):
            return False
        if column == self.filter_column and text == self.filter_text:
            return False
        self.filter_column = column if text else None
        self.filter_text = text
        self._derive_from_filter()
        return True

    def clear_filter(self) -> bool:
        if self.filter_column is None and not self.filter_text:
            return False
        self.filter_column = None
        self.filter_text = ""
        self._derive_from_filter()
        return True

    def cycle_sort(self, column: int) -> bool:
        """Ascending, then descending, then unsorted on the same column."""
        if not 0 <= column < len(self.result.columns):
            return False
        if column == self.sort_column:
            self.sort_order = self.sort_order.cycled()
            if self.sort_order is SortOrder.NONE:
                self.sort_column = None
        else:
            self.sort_column = column
            self.sort_order = SortOrder.ASCENDING
        self._derive_from_sort()
        return True

    def clear_sort(self) -> bool:
        if self.sort_column is None and self.sort_order is SortOrder.NONE:
            return False
        self.sort_column = None
        self.sort_order = SortOrder.NONE
        self._derive_from_sort()
        return True

    # ------------------------------------------------------------------
    # Navigation

    def change_page(self, target: str) -> None:
        moved = {
            "next": self.pagination.next_page,
            "prev": self.pagination.prev_page,
        }.get(target)
        if moved is not None:
            if moved():
                self.cursor = 0
            return
        if target == "first":
            self.pagination.first_page()
        elif target == "last":
            self.pagination.last_page()
        else:
            raise ValueError(f"Unknown page target: {target}")
        self.cursor = 0

    def resize_pages(self, page_size: int) -> None:
        self.pagination.resize(page_size)
        self._clamp_cursor()

    def move_cursor(self, delta: int) -> None:
        self.cursor += delta
        self._clamp_cursor()

    def cursor_home(self) -> None:
        self.cursor = 0

    def cursor_end(self) -> None:
        self.cursor = max(0, self.pagination.end - self.pagination.start - 1)

    def scroll_columns(self, delta: int) -> None:
        if delta >= 0:
            self.columns.scroll_down(delta)
        else:
            self.columns.scroll_up(-delta)

    # ------------------------------------------------------------------
    # Re-derivation cascade

    def _derive_from_search(self) -> None:
        self.search_idx = search_indices(self.result, None, self.search_text)
        self._derive_from_filter()

    def _derive_from_filter(self) -> None:
        if self.filter_column is not None and self.filter_text:
            self.filter_idx = filter_indices(self.result, self.search_idx, self.filter_column, self.filter_text)
        else:
            self.filter_idx = None
        self._derive_from_sort()

    def _derive_from_sort(self) -> None:
        if self.sort_order is not SortOrder.NONE and self.sort_column is not None:
            upstream = self.filter_idx if self.filter_idx is not None else self.search_idx
            self.sort_idx = sort_indices(self.result, upstream, self.sort_column, self.sort_order)
        else:
            self.sort_idx = None
        self.pagination.reset(self.visible_count)
        self.cursor = 0

    def _clamp_cursor(self) -> None:
        rows_on_page = self.pagination.end - self.pagination.start
        self.cursor = min(max(self.cursor, 0), max(0, rows_on_page - 1))
