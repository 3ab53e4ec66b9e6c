"""Fetch helpers for mbr-query: call the API and shape results into tables."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from mbr_cli.api.client import MetabaseClient
from mbr_cli.api.models import (
    NULL_DISPLAY,
    CollectionItem,
    CurrentUser,
    Database,
    Question,
    ResultSet,
    TableInfo,
    stringify_cell,
)
from mbr_cli.shared.exceptions import ValidationError
from mbr_cli.shared.logging import Logger

from .types import QueryOutput

DEFAULT_LIST_LIMIT = 50


def list_questions(
    client: MetabaseClient,
    *,
    search: str | None = None,
    collection: str | None = None,
    limit: int | None = DEFAULT_LIST_LIMIT,
) -> QueryOutput:
    questions = client.list_questions(search=search, limit=limit, collection=collection)
    return questions_output(questions)


def run_question(
    client: MetabaseClient,
    question_id: int,
    *,
    offset: int = 0,
    limit: int | None = None,
    columns: Sequence[str] | None = None,
    parameters: Mapping[str, str] | None = None,
) -> QueryOutput:
    """Execute a saved question and return the requested window of its result."""
    _require_positive(question_id, "question")
    result = client.execute_question(question_id, parameters=parameters)
    return window(result, offset=offset, limit=limit, columns=columns)


def parse_parameters(values: Sequence[str], logger: Logger) -> dict[str, str] | None:
    """Turn ``KEY=VALUE`` strings into question parameters.

    Entries without ``=`` are skipped with a warning; the value keeps any further ``=``.
    Returns ``None`` when nothing usable was given.
    """
    parameters: dict[str, str] = {}
    for value in values:
        key, sep, rest = value.partition("=")
        if not sep:
            logger.warning(f"Invalid parameter format '{value}'. Expected 'key=value'")
            continue
        parameters[key] = rest
    return parameters or None


def list_collections(client: MetabaseClient) -> QueryOutput:
    return collections_output(client.list_collections())


def list_databases(client: MetabaseClient) -> QueryOutput:
    return databases_output(client.list_databases())


def list_schemas(client: MetabaseClient, database_id: int) -> QueryOutput:
    _require_positive(database_id, "database")
    return schemas_output(client.list_schemas(database_id), title=f"Schemas in database {database_id}")


def list_tables(client: MetabaseClient, database_id: int, schema: str) -> QueryOutput:
    _require_positive(database_id, "database")
    if not schema.strip():
        raise ValidationError("Schema name must not be empty")
    return tables_output(client.list_tables(database_id, schema), title=f"Tables in {schema}")


def whoami(client: MetabaseClient) -> QueryOutput:
    return user_output(client.get_current_user())


def window(
    result: ResultSet,
    *,
    offset: int = 0,
    limit: int | None = None,
    columns: Sequence[str] | None = None,
) -> QueryOutput:
    """Slice rows and project columns of a result set."""
    if offset < 0:
        raise ValidationError("Offset must not be negative")
    if limit is not None and limit <= 0:
        raise ValidationError("Limit must be at least 1")

    indices = list(range(len(result.columns)))
    if columns:
        lookup = {name.lower(): index for index, name in enumerate(result.columns)}
        missing = [name for name in columns if name.lower() not in lookup]
        if missing:
            available = ", ".join(result.columns)
            raise ValidationError(f"Unknown column(s): {', '.join(missing)}. Available: {available}")
        indices = [lookup[name.lower()] for name in columns]

    end = None if limit is None else offset + limit
    rows = tuple(tuple(row[i] for i in indices) for row in result.rows[offset:end])
    return QueryOutput(
        columns=tuple(result.columns[i] for i in indices),
        rows=rows,
        title=f"{result.name} ({result.row_count} rows)",
        total_rows=result.row_count,
        offset=offset,
    )


def questions_output(questions: Sequence[Question]) -> QueryOutput:
    return _output(
        ("ID", "Name", "Collection", "Description"),
        [
            (q.id, q.name, q.collection_name or q.collection_id or "root", q.description)
            for q in questions
        ],
    )


def collections_output(collections: Sequence[CollectionItem]) -> QueryOutput:
    return _output(
        ("ID", "Name", "Location", "Description"),
        [
            (c.id if c.id is not None else "root", c.name, c.location, c.description)
            for c in collections
        ],
    )


def databases_output(databases: Sequence[Database]) -> QueryOutput:
    return _output(
        ("ID", "Name", "Engine", "Description"),
        [(d.id, d.name, d.engine, d.description) for d in databases],
    )


def schemas_output(schemas: Sequence[str], *, title: str | None = None) -> QueryOutput:
    return _output(("#", "Schema Name"), [(i + 1, name) for i, name in enumerate(schemas)], title=title)


def tables_output(tables: Sequence[TableInfo], *, title: str | None = None) -> QueryOutput:
    return _output(
        ("ID", "Name", "Display Name", "Description"),
        [(t.id, t.name, t.display_name, t.description) for t in tables],
        title=title,
    )


def user_output(user: CurrentUser) -> QueryOutput:
    full_name = " ".join(part for part in (user.first_name, user.last_name) if part) or NULL_DISPLAY
    return _output(("ID", "Email", "Name"), [(user.id, user.email, full_name)])


def _output(
    columns: Sequence[str],
    rows: Sequence[Sequence[object]],
    *,
    title: str | None = None,
) -> QueryOutput:
    return QueryOutput(
        columns=tuple(columns),
        rows=tuple(tuple(stringify_cell(cell) for cell in row) for row in rows),
        title=title,
    )


def _require_positive(value: int, label: str) -> None:
    if value <= 0:
        raise ValidationError(f"Invalid {label} ID: {value}")
