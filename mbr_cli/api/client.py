"""HTTP client for the Metabase REST API."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import httpx

from mbr_cli import __version__
from mbr_cli.shared.config import AppConfig
from mbr_cli.shared.exceptions import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    RequestTimeoutError,
)

from .models import CollectionItem, CurrentUser, Database, Question, ResultSet, TableInfo

DEFAULT_TIMEOUT_SECS = 30.0
QUERY_TIMEOUT_SECS = 60.0
USER_AGENT = f"mbr-cli/{__version__}"
API_KEY_HEADER = "x-api-key"


class MetabaseClient:
    """Thin synchronous wrapper around ``httpx.Client``.

    Every method either returns decoded models or raises an ``ApiError`` subclass;
    callers never see raw httpx exceptions.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECS,
        query_timeout: float = QUERY_TIMEOUT_SECS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.query_timeout = query_timeout
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key
        self._http = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: Any) -> MetabaseClient:
        return cls(
            config.server.url,
            config.api_key(),
            timeout=config.server.timeout_seconds,
            query_timeout=config.server.query_timeout_seconds,
            **kwargs,
        )

    @property
    def is_authenticated(self) -> bool:
        return self.api_key is not None

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> MetabaseClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Identity

    def get_current_user(self) -> CurrentUser:
        """Fetch the user behind the API key; used to validate authentication."""
        payload = self._request("GET", "/api/user/current")
        return CurrentUser.from_payload(payload)

    # ------------------------------------------------------------------
    # Questions

    def list_questions(
        self,
        *,
        search: str | None = None,
        limit: int | None = None,
        collection: int | str | None = None,
    ) -> list[Question]:
        """List questions, using ``/api/search`` when a search term is given."""
        if search and search.strip():
            return self._search_questions(search.strip(), limit)

        params: dict[str, Any] = {"f": "all"}
        if collection not in (None, ""):
            params["collection"] = collection
        payload = self._request("GET", "/api/card", params=params)
        questions = [Question.from_payload(item) for item in _as_list(payload, "/api/card")]
        return _truncate(questions, limit)

    def _search_questions(self, term: str, limit: int | None) -> list[Question]:
        payload = self._request("GET", "/api/search", params={"q": term, "models": "card"})
        items = payload.get("data", []) if isinstance(payload, Mapping) else payload
        questions = [
            Question.from_payload(item)
            for item in _as_list(items, "/api/search")
            if isinstance(item, Mapping) and item.get("model", "card") == "card"
        ]
        return _truncate(questions, limit)

    def get_question(self, question_id: int) -> Question:
        payload = self._request(
            "GET",
            f"/api/card/{question_id}",
            not_found=f"Question with ID {question_id} not found",
        )
        return Question.from_payload(payload)

    def execute_question(
        self,
        question_id: int,
        *,
        name: str | None = None,
        parameters: Mapping[str, Any] | None = None,
    ) -> ResultSet:
        """Run a saved question and return its stringified result set."""
        payload = self._request(
            "POST",
            f"/api/card/{question_id}/query",
            json=dict(parameters) if parameters else None,
            timeout=self.query_timeout,
            not_found=f"Question with ID {question_id} not found",
        )
        return ResultSet.from_query_payload(question_id, name or f"Question #{question_id}", payload)

    # ------------------------------------------------------------------
    # Collections

    def list_collections(self) -> list[CollectionItem]:
        payload = self._request("GET", "/api/collection")
        collections = [CollectionItem.from_payload(item) for item in _as_list(payload, "/api/collection")]
        return [collection for collection in collections if not collection.archived]

    def get_collection(self, collection_id: int) -> CollectionItem:
        payload = self._request(
            "GET",
            f"/api/collection/{collection_id}",
            not_found=f"Collection with ID {collection_id} not found",
        )
        return CollectionItem.from_payload(payload)

    # ------------------------------------------------------------------
    # Databases

    def list_databases(self) -> list[Database]:
        payload = self._request("GET", "/api/database")
        # Metabase wraps the database list in {"data": [...]}.
        items = payload.get("data", []) if isinstance(payload, Mapping) else payload
        return [Database.from_payload(item) for item in _as_list(items, "/api/database")]

    def get_database(self, database_id: int) -> Database:
        payload = self._request(
            "GET",
            f"/api/database/{database_id}",
            not_found=f"Database with ID {database_id} not found",
        )
        return Database.from_payload(payload)

    def list_schemas(self, database_id: int) -> list[str]:
        payload = self._request(
            "GET",
            f"/api/database/{database_id}/schemas",
            not_found=f"Database with ID {database_id} not found",
        )
        return [str(name) for name in _as_list(payload, "schemas")]

    def list_tables(self, database_id: int, schema: str) -> list[TableInfo]:
        payload = self._request(
            "GET",
            f"/api/database/{database_id}/schema/{schema}",
            not_found=f"Schema '{schema}' not found in database {database_id}",
        )
        return [TableInfo.from_payload(item) for item in _as_list(payload, "tables")]

    def get_table(self, table_id: int) -> TableInfo:
        payload = self._request(
            "GET",
            f"/api/table/{table_id}",
            not_found=f"Table with ID {table_id} not found",
        )
        return TableInfo.from_payload(payload)

    def preview_table(
        self,
        database_id: int,
        table_id: int,
        limit: int,
        *,
        name: str | None = None,
    ) -> ResultSet:
        """Fetch sample rows from a table through ``/api/dataset``."""
        query_payload = {
            "database": database_id,
            "type": "query",
            "query": {"source-table": table_id, "limit": limit},
        }
        payload = self._request(
            "POST",
            "/api/dataset",
            json=query_payload,
            timeout=self.query_timeout,
        )
        return ResultSet.from_query_payload(table_id, name or f"Table #{table_id}", payload)

    # ------------------------------------------------------------------
    # Internal helpers

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        timeout: float | None = None,
        not_found: str | None = None,
    ) -> Any:
        effective_timeout = timeout if timeout is not None else self.timeout
        try:
            response = self._http.request(
                method,
                endpoint,
                params=params,
                json=json,
                timeout=effective_timeout,
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                f"Request to {endpoint} timed out after {effective_timeout:g}s",
                endpoint=endpoint,
            ) from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"Could not reach {self.base_url}: {exc}", endpoint=endpoint) from exc
        return _handle_response(response, endpoint, effective_timeout, not_found)


def _handle_response(
    response: httpx.Response,
    endpoint: str,
    timeout: float,
    not_found: str | None,
) -> Any:
    status = response.status_code
    if 200 <= status < 300:
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"Invalid JSON in response from {endpoint}: {exc}",
                status=status,
                endpoint=endpoint,
            ) from exc

    body = response.text.strip() or "Unknown error"
    if status in (401, 403):
        raise AuthenticationError(
            f"Authentication failed ({status}) for {endpoint}: {body}",
            status=status,
            endpoint=endpoint,
        )
    if status == 404:
        raise NotFoundError(not_found or f"Not found: {endpoint}", status=status, endpoint=endpoint)
    if status in (408, 504):
        raise RequestTimeoutError(
            f"Request to {endpoint} timed out after {timeout:g}s",
            status=status,
            endpoint=endpoint,
        )
    raise ApiError(f"HTTP {status} from {endpoint}: {body}", status=status, endpoint=endpoint)


def _as_list(payload: Any, endpoint: str) -> Sequence[Any]:
    if not isinstance(payload, list):
        raise ApiError(f"Expected a list from {endpoint}, got {type(payload).__name__}", endpoint=endpoint)
    return payload


def _truncate(items: list[Any], limit: int | None) -> list[Any]:
    if limit is not None and limit > 0:
        return items[:limit]
    return items
