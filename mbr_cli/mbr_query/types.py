"""Data structures shared across mbr-query modules."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class QueryOutput:
    """A stringified table ready for rendering in any output format."""

    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    title: str | None = None
    total_rows: int | None = None
    offset: int = 0

    @property
    def truncated(self) -> bool:
        return self.total_rows is not None and self.offset + len(self.rows) < self.total_rows
