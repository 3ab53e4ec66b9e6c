from __future__ import annotations

import io
import json

from mbr_cli.mbr_query import render
from mbr_cli.mbr_query.types import QueryOutput


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


def test_render_csv_blanks_nulls_and_warns_on_truncation() -> None:
    buffer = io.StringIO()
    logger = StubLogger()
    output = QueryOutput(
        columns=("name", "total"),
        rows=(("Bob", "—"), ("Carol", "7")),
        total_rows=5,
        offset=1,
    )

    render.render_output(output, output_format="csv", logger=logger, stream=buffer)

    assert buffer.getvalue() == "name,total\nBob,\nCarol,7\n"
    assert logger.messages == [
        ("warning", "Showing rows 2-3 of 5. Use --offset and --limit to page through the rest.")
    ]


def test_render_tsv() -> None:
    buffer = io.StringIO()
    output = QueryOutput(columns=("a", "b"), rows=(("x y", "1"),))

    render.render_output(output, output_format="tsv", logger=StubLogger(), stream=buffer)

    assert buffer.getvalue().splitlines() == ["a\tb", "x y\t1"]


def test_render_json_maps_nulls() -> None:
    buffer = io.StringIO()
    output = QueryOutput(columns=("name", "total"), rows=(("Bob", "—"),))

    render.render_output(output, output_format="json", logger=StubLogger(), stream=buffer)

    assert json.loads(buffer.getvalue()) == [{"name": "Bob", "total": None}]


def test_render_table_includes_title_and_rows() -> None:
    buffer = io.StringIO()
    logger = StubLogger()
    output = QueryOutput(columns=("ID", "Name"), rows=(("1", "Revenue"),), title="Questions")

    render.render_output(output, output_format="table", logger=logger, stream=buffer)

    text = buffer.getvalue()
    assert "Questions" in text
    assert "Revenue" in text
    assert logger.messages == []


def test_render_table_reports_empty_result() -> None:
    buffer = io.StringIO()
    logger = StubLogger()

    render.render_output(QueryOutput(columns=("ID",), rows=()), output_format="table", logger=logger, stream=buffer)

    assert ("info", "No rows returned.") in logger.messages
