"""Navigation views for the interactive browser.

Each view is an immutable value carrying its own drill-down context. Navigation
replaces the current view; the parent of any view is derived from the view itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ResourceKind(str, Enum):
    QUESTIONS = "questions"
    COLLECTIONS = "collections"
    DATABASES = "databases"
    SCHEMAS = "schemas"
    TABLES = "tables"


# Top-level tabs, in focus order.
TABS: tuple[ResourceKind, ...] = (
    ResourceKind.QUESTIONS,
    ResourceKind.COLLECTIONS,
    ResourceKind.DATABASES,
)


@dataclass(frozen=True, slots=True)
class Welcome:
    pass


@dataclass(frozen=True, slots=True)
class ResourceList:
    kind: ResourceKind


@dataclass(frozen=True, slots=True)
class CollectionDrillDown:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class DatabaseSchemas:
    db_id: int
    name: str


@dataclass(frozen=True, slots=True)
class SchemaTables:
    db_id: int
    schema_name: str
    db_name: str = ""


@dataclass(frozen=True, slots=True)
class TablePreview:
    db_id: int
    table_id: int
    table_name: str
    schema_name: str = ""
    db_name: str = ""


@dataclass(frozen=True, slots=True)
class QueryResult:
    question_id: int = 0
    name: str = ""
    origin: View | None = None


View = Union[
    Welcome,
    ResourceList,
    CollectionDrillDown,
    DatabaseSchemas,
    SchemaTables,
    TablePreview,
    QueryResult,
]


def parent_view(view: View) -> View:
    """Return the immediate ancestor of ``view`` in the navigation taxonomy."""
    if isinstance(view, TablePreview):
        return SchemaTables(db_id=view.db_id, schema_name=view.schema_name, db_name=view.db_name)
    if isinstance(view, SchemaTables):
        return DatabaseSchemas(db_id=view.db_id, name=view.db_name)
    if isinstance(view, DatabaseSchemas):
        return ResourceList(ResourceKind.DATABASES)
    if isinstance(view, CollectionDrillDown):
        return ResourceList(ResourceKind.COLLECTIONS)
    if isinstance(view, QueryResult):
        return view.origin if view.origin is not None else ResourceList(ResourceKind.QUESTIONS)
    return Welcome()


def is_result_view(view: View) -> bool:
    return isinstance(view, (QueryResult, TablePreview))


def tab_for(view: View) -> ResourceKind | None:
    """Return the top-level tab a view belongs to, if any."""
    if isinstance(view, ResourceList):
        if view.kind in TABS:
            return view.kind
        return ResourceKind.DATABASES
    if isinstance(view, CollectionDrillDown):
        return ResourceKind.COLLECTIONS
    if isinstance(view, (DatabaseSchemas, SchemaTables, TablePreview)):
        return ResourceKind.DATABASES
    if isinstance(view, QueryResult):
        origin_tab = tab_for(view.origin) if view.origin is not None else None
        return origin_tab or ResourceKind.QUESTIONS
    return None


def view_title(view: View) -> str:
    """Breadcrumb-style title for the content pane."""
    if isinstance(view, Welcome):
        return "Welcome"
    if isinstance(view, ResourceList):
        return view.kind.value.capitalize()
    if isinstance(view, CollectionDrillDown):
        return f"Collections > {view.name}"
    if isinstance(view, DatabaseSchemas):
        return f"Databases > {view.name}"
    if isinstance(view, SchemaTables):
        prefix = f"Databases > {view.db_name} > " if view.db_name else "Databases > "
        return f"{prefix}{view.schema_name}"
    if isinstance(view, TablePreview):
        parts = ["Databases"]
        parts.extend(part for part in (view.db_name, view.schema_name) if part)
        parts.append(view.table_name)
        return " > ".join(parts)
    if isinstance(view, QueryResult):
        return f"Query: {view.name}" if view.name else "Query result"
    return ""
