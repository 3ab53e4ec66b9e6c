"""The single application state owned by the browser's main loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable

from .clipboard import COPY_FORMATS
from .load_state import Resource, ResourceKey, new_resources
from .pipeline import ResultTable, ScrollState
from .views import (
    TABS,
    CollectionDrillDown,
    DatabaseSchemas,
    QueryResult,
    ResourceKind,
    ResourceList,
    SchemaTables,
    TablePreview,
    View,
    Welcome,
)

# Rows taken by chrome (tab bar, title, header, status line, key hints).
CHROME_ROWS = 6


@dataclass(slots=True)
class ListCursor:
    """Selection within a loaded list and the window of rows on screen."""

    index: int = 0
    scroll: ScrollState = field(default_factory=ScrollState)

    def reset(self, total: int, visible: int) -> None:
        self.index = 0
        self.scroll.offset = 0
        self.scroll.set_total(total)
        self.scroll.set_visible(visible)

    def move(self, delta: int) -> None:
        self.jump(self.index + delta)

    def jump(self, index: int) -> None:
        total = self.scroll.total
        self.index = min(max(index, 0), max(total - 1, 0))
        self.scroll.ensure_visible(self.index)


@dataclass(slots=True)
class Prompt:
    """An open input line or column picker over the current view."""

    kind: str
    text: str = ""
    column: int = 0


@dataclass(slots=True)
class CopyMenu:
    """Format picker for copying one record to the clipboard."""

    record: list[tuple[str, str]]
    selected: int = 0
    include_header: bool = True

    @property
    def format(self) -> str:
        return COPY_FORMATS[self.selected]

    def move(self, delta: int) -> None:
        self.selected = min(max(self.selected + delta, 0), len(COPY_FORMATS) - 1)


@dataclass(slots=True)
class AppState:
    page_size: int = 100
    list_limit: int = 50
    preview_limit: int = 100
    view: View = field(default_factory=Welcome)
    focus: int = 0
    resources: dict[ResourceKey, Resource[Any]] = field(default_factory=new_resources)
    lists: dict[ResourceKey, ListCursor] = field(default_factory=dict)
    result_table: ResultTable | None = None
    status: str | None = None
    error: str | None = None
    connection: str | None = None
    question_search: str = ""
    prompt: Prompt | None = None
    record: list[tuple[str, str]] | None = None
    copy_menu: CopyMenu | None = None
    show_help: bool = False
    should_quit: bool = False
    width: int = 80
    height: int = 24

    def resource(self, key: ResourceKey) -> Resource[Any]:
        return self.resources[key]

    def cursor(self, key: ResourceKey) -> ListCursor:
        if key not in self.lists:
            self.lists[key] = ListCursor()
        return self.lists[key]

    @property
    def focused_tab(self) -> ResourceKind:
        return TABS[self.focus % len(TABS)]

    @property
    def list_height(self) -> int:
        return max(1, self.height - CHROME_ROWS)

    @property
    def has_overlay(self) -> bool:
        return (
            self.show_help
            or self.record is not None
            or self.copy_menu is not None
            or self.prompt is not None
        )

    def selected_item(self) -> Any:
        """The item under the list cursor for the current view, if loaded."""
        key = key_for_view(self.view)
        if key is None or key is ResourceKey.QUERY_RESULT:
            return None
        items = self.resource(key).value
        if not items:
            return None
        index = self.cursor(key).index
        return items[index] if 0 <= index < len(items) else None


def key_for_view(view: View) -> ResourceKey | None:
    """The resource backing ``view``, if any."""
    if isinstance(view, ResourceList):
        return ResourceKey(view.kind.value)
    if isinstance(view, CollectionDrillDown):
        return ResourceKey.QUESTIONS
    if isinstance(view, DatabaseSchemas):
        return ResourceKey.SCHEMAS
    if isinstance(view, SchemaTables):
        return ResourceKey.TABLES
    if isinstance(view, (QueryResult, TablePreview)):
        return ResourceKey.QUERY_RESULT
    return None


def context_for_view(view: View, question_search: str = "") -> Hashable:
    """The load context ``view`` needs its backing resource to match."""
    if isinstance(view, ResourceList):
        if view.kind is ResourceKind.QUESTIONS:
            return ("search", question_search) if question_search else None
        return None
    if isinstance(view, CollectionDrillDown):
        return ("collection", view.id)
    if isinstance(view, DatabaseSchemas):
        return ("database", view.db_id)
    if isinstance(view, SchemaTables):
        return ("schema", view.db_id, view.schema_name)
    if isinstance(view, QueryResult):
        return ("question", view.question_id)
    if isinstance(view, TablePreview):
        return ("table", view.db_id, view.table_id)
    return None
