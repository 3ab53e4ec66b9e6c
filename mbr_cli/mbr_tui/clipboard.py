"""Serialize a result record and place it on the system clipboard."""

from __future__ import annotations

import csv
import io
import json
import re
from collections.abc import Sequence

import pyperclip

from mbr_cli.shared.exceptions import MbrError

FORMAT_LABELS = {"json": "JSON", "csv": "CSV", "tsv": "TSV"}
COPY_FORMATS = tuple(FORMAT_LABELS)

Record = Sequence[tuple[str, str]]

_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s\-_]+")


class ClipboardError(MbrError):
    """Raised when the system clipboard cannot be written."""


def snake_case(name: str) -> str:
    """Turn a column label into a JSON key: ``HTTPRequest`` becomes ``http_request``."""
    spaced = _CASE_BOUNDARY.sub("_", name.strip())
    return _SEPARATORS.sub("_", spaced).strip("_").lower()


def format_json(record: Record) -> str:
    """A pretty-printed object keyed by snake_case column names, in column order."""
    return json.dumps({snake_case(name): value for name, value in record}, indent=2, ensure_ascii=False)


def format_csv(record: Record, *, include_header: bool = True) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    if include_header:
        writer.writerow([name for name, _ in record])
    writer.writerow([value for _, value in record])
    return buffer.getvalue()[:-1]


def format_tsv(record: Record, *, include_header: bool = True) -> str:
    lines = [[value for _, value in record]]
    if include_header:
        lines.insert(0, [name for name, _ in record])
    return "\n".join("\t".join(_tsv_cell(cell) for cell in line) for line in lines)


def format_record(record: Record, fmt: str, *, include_header: bool = True) -> str:
    if fmt == "json":
        return format_json(record)
    if fmt == "csv":
        return format_csv(record, include_header=include_header)
    if fmt == "tsv":
        return format_tsv(record, include_header=include_header)
    raise ValueError(f"Unsupported copy format: {fmt}")


def copy_text(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        raise ClipboardError(f"Clipboard unavailable: {exc}") from exc


def _tsv_cell(value: str) -> str:
    return value.replace("\t", " ").replace("\r", " ").replace("\n", " ")
