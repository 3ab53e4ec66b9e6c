"""Service boundary between the browser core and the remote API.

The core never performs I/O. ``dispatch`` returns ``LoadRequest`` descriptors,
the ``TaskRunner`` executes each one on a worker thread, and the outcome comes
back as exactly one completion action on a queue drained by the main loop.
"""

from __future__ import annotations

import queue
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from mbr_cli.api.client import MetabaseClient
from mbr_cli.api.models import CurrentUser, ResultSet
from mbr_cli.shared.exceptions import MbrError, ValidationError
from mbr_cli.shared.logging import Logger

from .action import (
    Action,
    QueryExecuted,
    QueryExecutionFailed,
    ResourceLoaded,
    ResourceLoadFailed,
)
from .load_state import LoadTicket, ResourceKey
from .views import ResourceKind


class ServiceBoundary(Protocol):
    """Remote operations the browser depends on; failures raise ``MbrError``."""

    def fetch_resource_list(
        self,
        kind: ResourceKind,
        *,
        search: str | None = None,
        limit: int | None = None,
        collection: int | None = None,
        database: int | None = None,
        schema: str | None = None,
    ) -> Sequence[Any]: ...

    def fetch_resource_detail(self, kind: ResourceKind, item_id: int) -> Any: ...

    def execute_query(self, question_id: int, name: str | None = None) -> ResultSet: ...

    def preview_table(
        self,
        database_id: int,
        table_id: int,
        limit: int,
        name: str | None = None,
    ) -> ResultSet: ...

    def validate_identity(self) -> CurrentUser: ...


@dataclass(frozen=True, slots=True)
class LoadRequest:
    """Everything a worker needs to perform one load, detached from app state."""

    ticket: LoadTicket
    kind: ResourceKind | None = None
    search: str | None = None
    limit: int | None = None
    collection: int | None = None
    database: int | None = None
    schema: str | None = None
    question_id: int | None = None
    table_id: int | None = None
    name: str | None = None

    @property
    def key(self) -> ResourceKey:
        return self.ticket.key

    @property
    def generation(self) -> int:
        return self.ticket.generation

    def describe(self) -> str:
        details = [
            f"{field}={value!r}"
            for field, value in (
                ("search", self.search),
                ("collection", self.collection),
                ("database", self.database),
                ("schema", self.schema),
                ("question", self.question_id),
                ("table", self.table_id),
            )
            if value is not None
        ]
        suffix = f" ({', '.join(details)})" if details else ""
        return f"{self.key.value}#{self.generation}{suffix}"


class ServiceClient:
    """``ServiceBoundary`` implementation backed by ``MetabaseClient``."""

    def __init__(self, client: MetabaseClient) -> None:
        self.client = client

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
        if kind is ResourceKind.QUESTIONS:
            return self.client.list_questions(search=search, limit=limit, collection=collection)
        if kind is ResourceKind.COLLECTIONS:
            collections = self.client.list_collections()
            return collections[:limit] if limit else collections
        if kind is ResourceKind.DATABASES:
            return self.client.list_databases()
        if kind is ResourceKind.SCHEMAS:
            return self.client.list_schemas(_require_id(database, "database"))
        if kind is ResourceKind.TABLES:
            if not schema or not schema.strip():
                raise ValidationError("Schema name must not be empty")
            return self.client.list_tables(_require_id(database, "database"), schema)
        raise ValidationError(f"Unsupported resource kind: {kind}")

    def fetch_resource_detail(self, kind: ResourceKind, item_id: int) -> Any:
        item_id = _require_id(item_id, kind.value.rstrip("s"))
        if kind is ResourceKind.QUESTIONS:
            return self.client.get_question(item_id)
        if kind is ResourceKind.COLLECTIONS:
            return self.client.get_collection(item_id)
        if kind is ResourceKind.DATABASES:
            return self.client.get_database(item_id)
        if kind is ResourceKind.TABLES:
            return self.client.get_table(item_id)
        raise ValidationError(f"Resource kind '{kind.value}' has no detail lookup")

    def execute_query(self, question_id: int, name: str | None = None) -> ResultSet:
        return self.client.execute_question(_require_id(question_id, "question"), name=name)

    def preview_table(
        self,
        database_id: int,
        table_id: int,
        limit: int,
        name: str | None = None,
    ) -> ResultSet:
        return self.client.preview_table(
            _require_id(database_id, "database"),
            _require_id(table_id, "table"),
            limit,
            name=name,
        )

    def validate_identity(self) -> CurrentUser:
        return self.client.get_current_user()


def _require_id(value: int | None, label: str) -> int:
    if value is None or value <= 0:
        raise ValidationError(f"Invalid {label} ID: {value}")
    return value


def perform(service: ServiceBoundary, request: LoadRequest) -> Action:
    """Run ``request`` against ``service`` and wrap the outcome in a completion action."""
    is_query = request.key is ResourceKey.QUERY_RESULT
    try:
        if is_query:
            if request.table_id is not None:
                result = service.preview_table(
                    request.database or 0,
                    request.table_id,
                    request.limit or 0,
                    name=request.name,
                )
            else:
                result = service.execute_query(request.question_id or 0, name=request.name)
            return QueryExecuted(result=result, generation=request.generation)
        if request.key is ResourceKey.CURRENT_USER:
            payload: Any = service.validate_identity()
        else:
            if request.kind is None:
                raise ValidationError(f"No resource kind given for {request.key.value}")
            payload = list(
                service.fetch_resource_list(
                    request.kind,
                    search=request.search,
                    limit=request.limit,
                    collection=request.collection,
                    database=request.database,
                    schema=request.schema,
                )
            )
        return ResourceLoaded(key=request.key, payload=payload, generation=request.generation)
    except MbrError as exc:
        message = str(exc)
    except Exception as exc:  # noqa: BLE001
        message = f"Unexpected error: {exc}"
    if is_query:
        return QueryExecutionFailed(message=message, generation=request.generation)
    return ResourceLoadFailed(key=request.key, message=message, generation=request.generation)


class TaskRunner:
    """Runs load requests on a thread pool and queues their completion actions."""

    def __init__(
        self,
        service: ServiceBoundary,
        *,
        logger: Logger | None = None,
        max_workers: int = 4,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.service = service
        self.logger = logger
        self.completions: queue.SimpleQueue[Action] = queue.SimpleQueue()
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mbr-load")

    def submit(self, request: LoadRequest) -> None:
        if self.logger:
            self.logger.debug(f"Submitting load {request.describe()}")
        self._executor.submit(self._run, request)

    def submit_all(self, requests: Sequence[LoadRequest]) -> None:
        for request in requests:
            self.submit(request)

    def drain(self) -> list[Action]:
        """Return every completion queued so far, in arrival order."""
        actions: list[Action] = []
        while True:
            try:
                actions.append(self.completions.get_nowait())
            except queue.Empty:
                return actions

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _run(self, request: LoadRequest) -> None:
        self.completions.put(perform(self.service, request))
