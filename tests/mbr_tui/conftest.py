from __future__ import annotations

from typing import Any, Sequence

import pytest

from mbr_cli.api.models import (
    CollectionItem,
    CurrentUser,
    Database,
    Question,
    ResultSet,
    TableInfo,
)
from mbr_cli.mbr_tui.views import ResourceKind
from mbr_cli.shared.exceptions import NotFoundError


class StubLogger:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str, *args) -> None:
        self.messages.append(("info", message % args if args else message))

    def warning(self, message: str, *args) -> None:
        self.messages.append(("warning", message % args if args else message))

    def debug(self, message: str, *args) -> None:
        self.messages.append(("debug", message % args if args else message))

    def error(self, message: str, *args) -> None:
        self.messages.append(("error", message % args if args else message))


class FakeService:
    """In-memory stand-in for the remote API that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.questions = [
            Question(id=1, name="Revenue", collection_id=5, collection_name="Finance"),
            Question(id=2, name="Churn", collection_id=None),
        ]
        self.collections = [
            CollectionItem(id=None, name="Our analytics"),
            CollectionItem(id=5, name="Finance"),
        ]
        self.databases = [Database(id=1, name="Sample", engine="h2")]
        self.schemas = {1: ["PUBLIC"]}
        self.tables = [TableInfo(id=10, name="ORDERS", display_name="Orders", schema="PUBLIC")]
        self.results = {
            1: ResultSet.build(1, "Revenue", ["month", "total"], [["Jan", 10], ["Feb", 20]]),
        }

    def fetch_resource_list(
        self,
        kind: ResourceKind,
        *,
        search: str | None = None,
        limit: int | None = None,
        collection: int | None = None,
        database: int | None = None,
        schema: str | None = None,
    ) -> Sequence[Any]:
        self.calls.append(("list", kind, search, collection, database, schema))
        if kind is ResourceKind.QUESTIONS:
            items = self.questions
            if search:
                items = [q for q in items if search.lower() in q.name.lower()]
            if collection is not None:
                items = [q for q in items if q.collection_id == collection]
            return items[:limit] if limit else items
        if kind is ResourceKind.COLLECTIONS:
            return self.collections
        if kind is ResourceKind.DATABASES:
            return self.databases
        if kind is ResourceKind.SCHEMAS:
            return self.schemas.get(database or 0, [])
        return [t for t in self.tables if t.schema == schema]

    def fetch_resource_detail(self, kind: ResourceKind, item_id: int) -> Any:
        self.calls.append(("detail", kind, item_id))
        raise NotFoundError(f"{kind.value} {item_id} not found")

    def execute_query(self, question_id: int, name: str | None = None) -> ResultSet:
        self.calls.append(("query", question_id, name))
        if question_id not in self.results:
            raise NotFoundError(f"Question with ID {question_id} not found", status=404)
        return self.results[question_id]

    def preview_table(
        self,
        database_id: int,
        table_id: int,
        limit: int,
        name: str | None = None,
    ) -> ResultSet:
        self.calls.append(("preview", database_id, table_id, limit))
        return ResultSet.build(table_id, name or "table", ["id"], [[1], [2], [3]])

    def validate_identity(self) -> CurrentUser:
        self.calls.append(("whoami",))
        return CurrentUser(id=1, email="ada@example.com", common_name="Ada Lovelace")


@pytest.fixture
def stub_logger() -> StubLogger:
    return StubLogger()


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService()
