"""Output rendering helpers for mbr-query."""

from __future__ import annotations

import csv
import json
import sys
from typing import IO

from rich import box
from rich.console import Console
from rich.table import Table

from mbr_cli.api.models import NULL_DISPLAY
from mbr_cli.shared.logging import Logger

from .types import QueryOutput

OUTPUT_FORMAT_CHOICES = ("table", "csv", "tsv", "json")


def render_output(
    output: QueryOutput,
    *,
    output_format: str,
    logger: Logger,
    stream=None,
) -> None:
    """Render a table to the desired format."""
    output_stream = stream or sys.stdout
    fmt = (output_format or "table").lower()

    if fmt == "table":
        _render_table(output, logger=logger, stream=output_stream)
    elif fmt == "csv":
        _render_delimited(output, stream=output_stream, delimiter=",")
    elif fmt == "tsv":
        _render_delimited(output, stream=output_stream, delimiter="\t")
    elif fmt == "json":
        _render_json(output, stream=output_stream)
    else:  # pragma: no cover - Click validation should prevent this
        raise ValueError(f"Unsupported output format '{output_format}'.")

    if output.truncated and output.total_rows is not None:
        shown_from = output.offset + 1 if output.rows else output.offset
        logger.warning(
            f"Showing rows {shown_from}-{output.offset + len(output.rows)} of {output.total_rows}. "
            "Use --offset and --limit to page through the rest."
        )


def _render_table(output: QueryOutput, *, logger: Logger, stream: IO[str]) -> None:
    console = Console(file=stream, highlight=False, force_terminal=False)
    if output.title:
        console.print(f"[bold]{output.title}[/bold]")

    table = Table(box=box.SIMPLE_HEAVY, show_header=bool(output.columns), header_style="bold")
    for column in output.columns:
        table.add_column(column or "")

    if output.rows:
        for row in output.rows:
            table.add_row(*row)
    else:
        logger.info("No rows returned.")

    console.print(table)


def _render_delimited(output: QueryOutput, *, stream: IO[str], delimiter: str) -> None:
    writer = csv.writer(stream, delimiter=delimiter, lineterminator="\n")
    if output.columns:
        writer.writerow(output.columns)
    for row in output.rows:
        writer.writerow(_plain(cell) for cell in row)


def _render_json(output: QueryOutput, *, stream: IO[str]) -> None:
    records = [
        {column: _json_value(value) for column, value in zip(output.columns, row)}
        for row in output.rows
    ]
    json.dump(records, stream, indent=2, ensure_ascii=False)
    stream.write("\n")


def _plain(value: str) -> str:
    return "" if value == NULL_DISPLAY else value


def _json_value(value: str) -> str | None:
    return None if value == NULL_DISPLAY else value
