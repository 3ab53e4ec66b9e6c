"""Key press to action translation."""

from __future__ import annotations

import curses
from typing import Union

from . import action as act
from .state import AppState
from .views import TABS, ResourceKind, ResourceList, Welcome, is_result_view

Key = Union[str, int]

ESCAPE = "\x1b"
ENTER_KEYS: tuple[Key, ...] = ("\n", "\r", curses.KEY_ENTER)
BACKSPACE_KEYS: tuple[Key, ...] = (curses.KEY_BACKSPACE, "\x7f", "\b")
UP_KEYS: tuple[Key, ...] = (curses.KEY_UP, "k")
DOWN_KEYS: tuple[Key, ...] = (curses.KEY_DOWN, "j")
COPY_KEYS: dict[Key, str] = {"j": "json", "c": "csv", "t": "tsv"}

HELP_LINES: tuple[tuple[str, str], ...] = (
    ("q / Ctrl-C", "Quit"),
    ("Esc", "Back / close overlay"),
    ("?", "Toggle help"),
    ("1 2 3", "Questions / Collections / Databases"),
    ("Tab / Shift-Tab", "Next / previous panel"),
    ("r", "Refresh current view"),
    ("x", "Dismiss error"),
    ("j k ↑ ↓", "Move selection"),
    ("g / G", "First / last row"),
    ("Enter", "Run question / open item / record detail"),
    ("c", "Copy record detail as JSON / CSV / TSV"),
    ("/", "Search questions, or search results"),
    ("h l ← →", "Scroll result columns"),
    ("n p PgDn PgUp", "Next / previous result page"),
    ("Home / End", "First / last result page"),
    ("s / S", "Sort by column / clear sort"),
    ("f / F", "Filter by column / clear filter"),
    ("+ / -", "Double / halve page size"),
)


def _is_text(key: Key) -> bool:
    return isinstance(key, str) and key.isprintable()


def translate(state: AppState, key: Key) -> act.Action | None:
    """Map one key press to an action for the current state, or ``None``."""
    if state.show_help:
        return act.CloseOverlay()
    if state.copy_menu is not None:
        return _copy_menu_key(key)
    if state.record is not None:
        if key in (ESCAPE, "q", *ENTER_KEYS):
            return act.CloseOverlay()
        if key == "c":
            return act.OpenCopyMenu()
        return None
    if state.prompt is not None:
        return _prompt_key(state, key)
    table = state.result_table if is_result_view(state.view) else None
    if table is not None and table.search_open:
        return _result_search_key(key)

    global_action = _global_key(key)
    if global_action is not None:
        return global_action
    if is_result_view(state.view):
        return _result_key(state, key)
    if isinstance(state.view, Welcome):
        if key in ENTER_KEYS:
            return act.Navigate(ResourceList(ResourceKind.QUESTIONS))
        return None
    return _list_key(state, key)


def _global_key(key: Key) -> act.Action | None:
    if key in ("q", "\x03"):
        return act.Quit()
    if key == ESCAPE:
        return act.NavigateBack()
    if key == "?":
        return act.ToggleHelp()
    if key == "x":
        return act.ClearError()
    if key == "r":
        return act.Refresh()
    if key == "\t":
        return act.FocusNext()
    if key == curses.KEY_BTAB:
        return act.FocusPrevious()
    if key in ("1", "2", "3"):
        return act.Navigate(ResourceList(TABS[int(key) - 1]))
    return None


def _copy_menu_key(key: Key) -> act.Action | None:
    if key == ESCAPE:
        return act.CloseOverlay()
    if key == curses.KEY_UP:
        return act.CopyMenuMove(-1)
    if key == curses.KEY_DOWN:
        return act.CopyMenuMove(1)
    if key == "h":
        return act.ToggleCopyHeader()
    if key in COPY_KEYS:
        return act.CopyRecord(COPY_KEYS[key])
    if key in ENTER_KEYS:
        return act.CopyRecord()
    return None


def _prompt_key(state: AppState, key: Key) -> act.Action | None:
    prompt = state.prompt
    if key == ESCAPE:
        return act.CloseOverlay()
    if key in ENTER_KEYS:
        return act.PromptSubmit()
    if key in BACKSPACE_KEYS:
        return act.PromptBackspace()
    if prompt is not None and prompt.kind in ("filter", "sort"):
        if key == curses.KEY_UP or (prompt.kind == "sort" and key == "k"):
            return act.PromptSelectColumn(-1)
        if key == curses.KEY_DOWN or (prompt.kind == "sort" and key == "j"):
            return act.PromptSelectColumn(1)
    if _is_text(key):
        return act.PromptInput(str(key))
    return None


def _result_search_key(key: Key) -> act.Action | None:
    if key == ESCAPE:
        return act.ResultSearchClear()
    if key in ENTER_KEYS:
        return act.ResultSearchApply()
    if key in BACKSPACE_KEYS:
        return act.ResultSearchBackspace()
    if _is_text(key):
        return act.ResultSearchInput(str(key))
    return None


def _result_key(state: AppState, key: Key) -> act.Action | None:
    if key in UP_KEYS:
        return act.MoveCursor(-1)
    if key in DOWN_KEYS:
        return act.MoveCursor(1)
    if key == "g":
        return act.CursorHome()
    if key == "G":
        return act.CursorEnd()
    if key in ("h", curses.KEY_LEFT):
        return act.ScrollColumns(-1)
    if key in ("l", curses.KEY_RIGHT):
        return act.ScrollColumns(1)
    if key in ("n", curses.KEY_NPAGE):
        return act.ChangePage("next")
    if key in ("p", curses.KEY_PPAGE):
        return act.ChangePage("prev")
    if key == curses.KEY_HOME:
        return act.ChangePage("first")
    if key == curses.KEY_END:
        return act.ChangePage("last")
    if key == "/":
        return act.ResultSearchOpen()
    if key == "s":
        return act.OpenPrompt("sort")
    if key == "S":
        return act.ClearSort()
    if key == "f":
        return act.OpenPrompt("filter")
    if key == "F":
        return act.ClearFilter()
    if key == "+":
        return act.SetPageSize(state.page_size * 2)
    if key == "-":
        return act.SetPageSize(max(1, state.page_size // 2))
    if key in ENTER_KEYS:
        return act.OpenSelection()
    return None


def _list_key(state: AppState, key: Key) -> act.Action | None:
    if key in UP_KEYS:
        return act.MoveCursor(-1)
    if key in DOWN_KEYS:
        return act.MoveCursor(1)
    if key == curses.KEY_PPAGE:
        return act.MoveCursor(-state.list_height)
    if key == curses.KEY_NPAGE:
        return act.MoveCursor(state.list_height)
    if key in ("g", curses.KEY_HOME):
        return act.CursorHome()
    if key in ("G", curses.KEY_END):
        return act.CursorEnd()
    if key in ENTER_KEYS:
        return act.OpenSelection()
    if key == "/" and state.view == ResourceList(ResourceKind.QUESTIONS):
        return act.OpenPrompt("questions")
    return None
