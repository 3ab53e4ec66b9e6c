"""Typed payload models for the Metabase REST API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from mbr_cli.shared.exceptions import ApiError

NULL_DISPLAY = "—"


def parse_collection_id(value: Any) -> int | None:
    """Decode a collection id; the special "root" collection maps to ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str):
        if value == "root":
            return None
        try:
            return int(value)
        except ValueError:
            return None
    return None


def stringify_cell(value: Any) -> str:
    """Render a JSON cell value the way result tables display it."""
    if value is None:
        return NULL_DISPLAY
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _require(payload: Mapping[str, Any], key: str, kind: str) -> Any:
    try:
        return payload[key]
    except (KeyError, TypeError) as exc:
        raise ApiError(f"Malformed {kind} payload: missing '{key}'") from exc


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


@dataclass(frozen=True, slots=True)
class Question:
    """A saved query ("card")."""

    id: int
    name: str
    description: str | None = None
    collection_id: int | None = None
    collection_name: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Question:
        collection = payload.get("collection") if isinstance(payload, Mapping) else None
        collection_name = None
        if isinstance(collection, Mapping):
            collection_name = _optional_str(collection.get("name"))
        return cls(
            id=int(_require(payload, "id", "question")),
            name=str(_require(payload, "name", "question")),
            description=_optional_str(payload.get("description")),
            collection_id=parse_collection_id(payload.get("collection_id")),
            collection_name=collection_name,
        )


@dataclass(frozen=True, slots=True)
class CollectionItem:
    """A collection; ``id`` is ``None`` for the root collection."""

    id: int | None
    name: str
    description: str | None = None
    personal_owner_id: int | None = None
    archived: bool = False

    @property
    def location(self) -> str:
        return "Personal" if self.personal_owner_id is not None else "Shared"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> CollectionItem:
        owner = payload.get("personal_owner_id")
        return cls(
            id=parse_collection_id(_require(payload, "id", "collection")),
            name=str(_require(payload, "name", "collection")),
            description=_optional_str(payload.get("description")),
            personal_owner_id=int(owner) if isinstance(owner, int) else None,
            archived=bool(payload.get("archived", False)),
        )


@dataclass(frozen=True, slots=True)
class Database:
    """A connected database."""

    id: int
    name: str
    engine: str | None = None
    description: str | None = None
    is_sample: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Database:
        return cls(
            id=int(_require(payload, "id", "database")),
            name=str(_require(payload, "name", "database")),
            engine=_optional_str(payload.get("engine")),
            description=_optional_str(payload.get("description")),
            is_sample=bool(payload.get("is_sample", False)),
        )


@dataclass(frozen=True, slots=True)
class TableInfo:
    """A table inside a database schema."""

    id: int
    name: str
    display_name: str | None = None
    schema: str | None = None
    description: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TableInfo:
        return cls(
            id=int(_require(payload, "id", "table")),
            name=str(_require(payload, "name", "table")),
            display_name=_optional_str(payload.get("display_name")),
            schema=_optional_str(payload.get("schema")),
            description=_optional_str(payload.get("description")),
        )


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """The user the API key belongs to."""

    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    common_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.common_name or self.first_name or self.email

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> CurrentUser:
        return cls(
            id=int(_require(payload, "id", "user")),
            email=str(_require(payload, "email", "user")),
            first_name=_optional_str(payload.get("first_name")),
            last_name=_optional_str(payload.get("last_name")),
            common_name=_optional_str(payload.get("common_name")),
        )


@dataclass(frozen=True, slots=True)
class ResultSet:
    """Immutable tabular output of an executed query or table preview."""

    source_id: int
    name: str
    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @classmethod
    def build(
        cls,
        source_id: int,
        name: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> ResultSet:
        """Create a result set, stringifying every cell."""
        return cls(
            source_id=source_id,
            name=name,
            columns=tuple(str(column) for column in columns),
            rows=tuple(tuple(stringify_cell(cell) for cell in row) for row in rows),
        )

    @classmethod
    def from_query_payload(cls, source_id: int, name: str, payload: Mapping[str, Any]) -> ResultSet:
        """Decode a ``{"data": {"cols": [...], "rows": [...]}}`` query response."""
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(data, Mapping):
            raise ApiError(f"Malformed query result for '{name}': missing 'data'")
        cols = data.get("cols") or []
        rows = data.get("rows") or []
        columns = []
        for col in cols:
            if isinstance(col, Mapping):
                columns.append(str(col.get("display_name") or col.get("name") or ""))
            else:
                columns.append(str(col))
        return cls.build(source_id, name, columns, rows)
