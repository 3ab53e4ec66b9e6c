"""Curses drawing for the browser. Reads ``AppState``; never mutates it."""

from __future__ import annotations

import curses
from typing import Any, Callable, Sequence

from mbr_cli.api.models import NULL_DISPLAY

from .clipboard import COPY_FORMATS, FORMAT_LABELS
from .keymap import COPY_KEYS, HELP_LINES
from .load_state import Error, Idle, Loaded, Loading, ResourceKey
from .pipeline import ResultTable
from .state import AppState, CopyMenu, key_for_view
from .views import TABS, ResourceList, Welcome, is_result_view, view_title

# Colour pairs
C_NORMAL = 1
C_HEADER = 2
C_ACCENT = 3
C_SELECTED = 4
C_ERROR = 5
C_SUCCESS = 6
C_MUTED = 7
C_WARN = 8

MIN_COL_WIDTH = 4
MAX_COL_WIDTH = 40

_COPY_KEY_FOR = {fmt: key for key, fmt in COPY_KEYS.items()}

_colors_enabled = False


def init_colors(enabled: bool = True) -> None:
    global _colors_enabled
    _colors_enabled = False
    if not enabled or not curses.has_colors():
        return
    curses.start_color()
    curses.use_default_colors()
    bg = -1
    for pair, fg, pair_bg in [
        (C_NORMAL, curses.COLOR_WHITE, bg),
        (C_HEADER, curses.COLOR_BLACK, curses.COLOR_CYAN),
        (C_ACCENT, curses.COLOR_CYAN, bg),
        (C_SELECTED, curses.COLOR_BLACK, curses.COLOR_WHITE),
        (C_ERROR, curses.COLOR_RED, bg),
        (C_SUCCESS, curses.COLOR_GREEN, bg),
        (C_MUTED, curses.COLOR_BLUE, bg),
        (C_WARN, curses.COLOR_YELLOW, bg),
    ]:
        try:
            curses.init_pair(pair, fg, pair_bg)
        except curses.error:
            return
    _colors_enabled = True


def cp(pair: int, bold: bool = False) -> int:
    if _colors_enabled:
        attr = curses.color_pair(pair)
    elif pair in (C_HEADER, C_SELECTED):
        attr = curses.A_REVERSE
    else:
        attr = curses.A_NORMAL
    if bold:
        attr |= curses.A_BOLD
    return attr


# ----------------------------------------------------------------------
# Low-level helpers


def safe_addstr(win: Any, y: int, x: int, text: str, attr: int = 0) -> None:
    h, w = win.getmaxyx()
    if y < 0 or y >= h or x >= w:
        return
    if x < 0:
        text = text[-x:]
        x = 0
    avail = w - x
    if avail <= 0:
        return
    try:
        win.addstr(y, x, text[:avail], attr)
    except curses.error:
        # Writing the bottom-right cell moves the cursor off-screen.
        pass


def draw_box(win: Any, y: int, x: int, h: int, w: int, title: str = "", attr: int = 0) -> None:
    if h < 2 or w < 2:
        return
    safe_addstr(win, y, x, "╭" + "─" * (w - 2) + "╮", attr)
    safe_addstr(win, y + h - 1, x, "╰" + "─" * (w - 2) + "╯", attr)
    for row in range(1, h - 1):
        safe_addstr(win, y + row, x, "│" + " " * (w - 2) + "│", attr)
    if title:
        label = f" {title} "
        safe_addstr(win, y, x + max(1, (w - len(label)) // 2), label, attr | curses.A_BOLD)


def fit(text: str, width: int) -> str:
    text = text.replace("\n", " ")
    if width <= 0:
        return ""
    if len(text) > width:
        return text[: max(0, width - 1)] + "…"
    return text.ljust(width)


def column_widths(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> list[int]:
    widths = [len(header) for header in headers]
    for row in rows:
        for index, cell in enumerate(row[: len(widths)]):
            widths[index] = max(widths[index], len(cell))
    return [min(max(width, MIN_COL_WIDTH), MAX_COL_WIDTH) for width in widths]


# ----------------------------------------------------------------------
# List columns


def _text(value: Any) -> str:
    return NULL_DISPLAY if value is None else str(value)


ListColumns = tuple[tuple[str, ...], Callable[[int, Any], tuple[str, ...]]]

_LIST_COLUMNS: dict[ResourceKey, ListColumns] = {
    ResourceKey.QUESTIONS: (
        ("ID", "Name", "Collection"),
        lambda _, q: (str(q.id), q.name, _text(q.collection_name or q.collection_id)),
    ),
    ResourceKey.COLLECTIONS: (
        ("ID", "Name", "Location", "Description"),
        lambda _, c: (_text(c.id if c.id is not None else "root"), c.name, c.location, _text(c.description)),
    ),
    ResourceKey.DATABASES: (
        ("ID", "Name", "Engine", "Description"),
        lambda _, d: (str(d.id), d.name, _text(d.engine), _text(d.description)),
    ),
    ResourceKey.SCHEMAS: (
        ("#", "Schema Name"),
        lambda index, name: (str(index + 1), str(name)),
    ),
    ResourceKey.TABLES: (
        ("ID", "Name", "Display Name", "Description"),
        lambda _, t: (str(t.id), t.name, _text(t.display_name), _text(t.description)),
    ),
}

_DRILL_DOWN_QUESTION_COLUMNS: ListColumns = (
    ("ID", "Name", "Description"),
    lambda _, q: (str(q.id), q.name, _text(q.description)),
)


# ----------------------------------------------------------------------
# Screen


def draw(win: Any, state: AppState) -> None:
    win.erase()
    h, w = win.getmaxyx()
    if h < 6 or w < 20:
        safe_addstr(win, 0, 0, "Terminal too small", cp(C_WARN, bold=True))
        return
    _draw_tabs(win, state, w)
    safe_addstr(win, 1, 1, fit(view_title(state.view), w - 2), cp(C_ACCENT, bold=True))
    safe_addstr(win, 3, 0, "─" * w, cp(C_MUTED))
    _draw_content(win, state, top=2, height=h - 4, width=w)
    _draw_status(win, state, h - 2, w)
    _draw_hints(win, state, h - 1, w)
    if state.prompt is not None:
        _draw_prompt(win, state, h, w)
    if state.record is not None:
        _draw_record(win, state.record, h, w)
    if state.copy_menu is not None:
        _draw_copy_menu(win, state.copy_menu, h, w)
    if state.show_help:
        _draw_help(win, h, w)


def _draw_tabs(win: Any, state: AppState, w: int) -> None:
    safe_addstr(win, 0, 0, " " * w, cp(C_HEADER))
    safe_addstr(win, 0, 1, "mbr-tui", cp(C_HEADER, bold=True))
    x = 10
    for index, kind in enumerate(TABS):
        label = f" {index + 1} {kind.value.capitalize()} "
        active = not isinstance(state.view, Welcome) and state.focused_tab is kind
        safe_addstr(win, 0, x, label, cp(C_SELECTED, bold=True) if active else cp(C_HEADER))
        x += len(label) + 1
    connection = f"● {state.connection}" if state.connection else "○ not connected"
    safe_addstr(win, 0, max(x, w - len(connection) - 1), connection, cp(C_HEADER))


def _draw_content(win: Any, state: AppState, top: int, height: int, width: int) -> None:
    view = state.view
    if isinstance(view, Welcome):
        _draw_welcome(win, state, top + 2, width)
        return
    key = key_for_view(view)
    if key is None:
        return
    load = state.resource(key).state
    body_top = top + 2
    if isinstance(load, Idle):
        _placeholder(win, body_top, "Press r to load")
        return
    if isinstance(load, Loading):
        _placeholder(win, body_top, "Loading…")
        return
    if isinstance(load, Error):
        safe_addstr(win, body_top, 2, fit(f"Error: {load.message}", width - 4), cp(C_ERROR, bold=True))
        safe_addstr(win, body_top + 1, 2, "Press r to retry or Esc to go back", cp(C_MUTED))
        return
    if not isinstance(load, Loaded):
        return
    if is_result_view(view):
        if state.result_table is not None:
            _draw_result(win, state.result_table, top, height - 2, width)
        return
    _draw_list(win, state, key, load.value, top, height - 2, width)


def _placeholder(win: Any, y: int, text: str) -> None:
    safe_addstr(win, y, 2, text, cp(C_MUTED))


def _draw_welcome(win: Any, state: AppState, y: int, width: int) -> None:
    lines = [
        ("Metabase terminal browser", cp(C_ACCENT, bold=True)),
        ("", 0),
        ("1  Questions    2  Collections    3  Databases", cp(C_NORMAL)),
        ("Enter opens questions, ? shows every key binding, q quits.", cp(C_MUTED)),
    ]
    user = state.resource(ResourceKey.CURRENT_USER)
    if user.is_loading:
        lines.append(("Checking connection…", cp(C_WARN)))
    elif user.error:
        lines.append((f"Connection failed: {user.error}", cp(C_ERROR)))
    for offset, (text, attr) in enumerate(lines):
        safe_addstr(win, y + offset, 2, fit(text, width - 4), attr)


def _draw_grid(
    win: Any,
    top: int,
    height: int,
    width: int,
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    selected: int,
    first_row: int,
    header_marks: dict[int, str] | None = None,
    column_offset: int = 0,
) -> None:
    widths = column_widths(headers, rows)
    visible_cols: list[int] = []
    used = 1
    for index in range(column_offset, len(headers)):
        if visible_cols and used + widths[index] > width:
            break
        visible_cols.append(index)
        used += widths[index] + 2

    def line(cells: Sequence[str]) -> str:
        parts = []
        for index in visible_cols:
            cell = cells[index] if index < len(cells) else ""
            parts.append(fit(cell, widths[index]))
        return " " + "  ".join(parts)

    marks = header_marks or {}
    labels = [f"{header}{marks.get(index, '')}" for index, header in enumerate(headers)]
    safe_addstr(win, top, 0, fit(line(labels), width), cp(C_ACCENT, bold=True))
    for offset, row in enumerate(rows[first_row : first_row + height]):
        index = first_row + offset
        attr = cp(C_SELECTED, bold=True) if index == selected else cp(C_NORMAL)
        safe_addstr(win, top + 2 + offset, 0, fit(line(row), width), attr)


def _draw_list(
    win: Any,
    state: AppState,
    key: ResourceKey,
    items: Sequence[Any],
    top: int,
    height: int,
    width: int,
) -> None:
    if not items:
        _placeholder(win, top + 2, f"No {key.value} found")
        return
    headers, to_row = _LIST_COLUMNS[key]
    if key is ResourceKey.QUESTIONS and not isinstance(state.view, ResourceList):
        headers, to_row = _DRILL_DOWN_QUESTION_COLUMNS
    cursor = state.lists.get(key)
    selected = cursor.index if cursor else 0
    first_row = cursor.scroll.offset if cursor else 0
    rows = [to_row(index, item) for index, item in enumerate(items)]
    _draw_grid(win, top, height, width, headers, rows, selected, first_row)


def _draw_result(win: Any, table: ResultTable, top: int, height: int, width: int) -> None:
    result = table.result
    if not result.columns:
        _placeholder(win, top + 2, "Query returned no columns")
        return
    rows = table.page_rows()
    if not rows:
        message = "No rows match" if table.visible_count != result.row_count else "Query returned no rows"
        _placeholder(win, top + 2, message)
    first_row = max(0, table.cursor - height + 1)
    marks: dict[int, str] = {}
    if table.sort_column is not None:
        marks[table.sort_column] = f" {table.sort_order.arrow}"
    if table.filter_column is not None:
        marks[table.filter_column] = marks.get(table.filter_column, "") + " ⧩"
    _draw_grid(
        win,
        top,
        height,
        width,
        result.columns,
        rows,
        table.cursor,
        first_row,
        header_marks=marks,
        column_offset=table.columns.offset,
    )


def _draw_status(win: Any, state: AppState, y: int, w: int) -> None:
    safe_addstr(win, y, 0, " " * w, cp(C_NORMAL))
    if state.error:
        safe_addstr(win, y, 1, fit(f"Error: {state.error}  (x to dismiss)", w - 2), cp(C_ERROR, bold=True))
        return
    table = state.result_table if is_result_view(state.view) else None
    if table is not None and table.search_open:
        safe_addstr(win, y, 1, fit(f"/{table.search_buffer}▏", w - 2), cp(C_WARN, bold=True))
        return
    text = state.status or ""
    if table is not None:
        pagination = table.pagination
        position = (
            f"Page {pagination.page + 1}/{pagination.page_count}"
            f" | rows {pagination.start + 1 if table.visible_count else 0}-{pagination.end}"
            f" of {table.visible_count}"
            f" | col {table.columns.offset + 1}/{len(table.result.columns)}"
        )
        text = " | ".join(part for part in (position, *table.describe()) if part)
        if state.record is not None and state.status:
            text = state.status
    safe_addstr(win, y, 1, fit(text, w - 2), cp(C_SUCCESS))


def _draw_hints(win: Any, state: AppState, y: int, w: int) -> None:
    if state.copy_menu is not None:
        hints = "j JSON  c CSV  t TSV  ↑/↓ select  Enter copy  h header  Esc cancel"
    elif state.record is not None:
        hints = "c copy  Esc close"
    elif state.has_overlay:
        hints = "Enter confirm  Esc close"
    elif is_result_view(state.view):
        hints = "j/k move  h/l columns  n/p page  / search  f filter  s sort  Enter record  Esc back  ? help"
    elif isinstance(state.view, Welcome):
        hints = "1-3 panels  Enter questions  ? help  q quit"
    else:
        hints = "j/k move  Enter open  / search  r refresh  Tab panel  Esc back  ? help  q quit"
    safe_addstr(win, y, 0, fit(" " + hints, w), cp(C_MUTED))


def _centered_box(win: Any, h: int, w: int, box_h: int, box_w: int, title: str) -> tuple[int, int, int, int]:
    box_h = min(box_h, h - 2)
    box_w = min(box_w, w - 2)
    y = max(0, (h - box_h) // 2)
    x = max(0, (w - box_w) // 2)
    draw_box(win, y, x, box_h, box_w, title, cp(C_ACCENT))
    return y, x, box_h, box_w


def _draw_prompt(win: Any, state: AppState, h: int, w: int) -> None:
    prompt = state.prompt
    if prompt is None:
        return
    if prompt.kind == "questions":
        y, x, _, box_w = _centered_box(win, h, w, 3, 60, "Search questions")
        safe_addstr(win, y + 1, x + 2, fit(f"{prompt.text}▏", box_w - 4), cp(C_NORMAL, bold=True))
        return
    table = state.result_table
    if table is None:
        return
    columns = table.result.columns
    title = "Sort by column" if prompt.kind == "sort" else "Filter column"
    extra = 2 if prompt.kind == "filter" else 0
    y, x, box_h, box_w = _centered_box(win, h, w, len(columns) + 2 + extra, 50, title)
    list_height = max(1, box_h - 2 - extra)
    first = max(0, prompt.column - list_height + 1)
    for offset, name in enumerate(columns[first : first + list_height]):
        index = first + offset
        marker = ""
        if prompt.kind == "sort" and index == table.sort_column:
            marker = f" {table.sort_order.arrow}"
        attr = cp(C_SELECTED, bold=True) if index == prompt.column else cp(C_NORMAL)
        safe_addstr(win, y + 1 + offset, x + 2, fit(f"{name}{marker}", box_w - 4), attr)
    if prompt.kind == "filter":
        safe_addstr(win, y + box_h - 2, x + 2, fit(f"contains: {prompt.text}▏", box_w - 4), cp(C_WARN, bold=True))


def _draw_record(win: Any, record: Sequence[tuple[str, str]], h: int, w: int) -> None:
    y, x, box_h, box_w = _centered_box(win, h, w, len(record) + 2, 80, "Record detail")
    label_width = min(max((len(name) for name, _ in record), default=0), box_w // 3)
    for offset, (name, value) in enumerate(record[: box_h - 2]):
        safe_addstr(win, y + 1 + offset, x + 2, fit(name, label_width), cp(C_ACCENT, bold=True))
        safe_addstr(win, y + 1 + offset, x + 3 + label_width, fit(value, box_w - label_width - 5), cp(C_NORMAL))


def _draw_copy_menu(win: Any, menu: CopyMenu, h: int, w: int) -> None:
    y, x, _, box_w = _centered_box(win, h, w, len(COPY_FORMATS) + 4, 36, "Copy record")
    for offset, fmt in enumerate(COPY_FORMATS):
        label = f"[{_COPY_KEY_FOR[fmt]}] {FORMAT_LABELS[fmt]}"
        attr = cp(C_SELECTED, bold=True) if offset == menu.selected else cp(C_NORMAL)
        safe_addstr(win, y + 1 + offset, x + 2, fit(label, box_w - 4), attr)
    header = "[x]" if menu.include_header else "[ ]"
    safe_addstr(win, y + len(COPY_FORMATS) + 2, x + 2, fit(f"[h] {header} Include header", box_w - 4), cp(C_MUTED))


def _draw_help(win: Any, h: int, w: int) -> None:
    y, x, box_h, box_w = _centered_box(win, h, w, len(HELP_LINES) + 2, 64, "Keys")
    for offset, (keys, description) in enumerate(HELP_LINES[: box_h - 2]):
        safe_addstr(win, y + 1 + offset, x + 2, fit(keys, 18), cp(C_ACCENT, bold=True))
        safe_addstr(win, y + 1 + offset, x + 21, fit(description, box_w - 23), cp(C_NORMAL))
