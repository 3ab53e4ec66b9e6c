"""Actions accepted by the dispatch loop.

Every state change in the browser is expressed as one of these values. Input
handling produces them from key presses; the task runner produces the
completion actions from finished background loads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from mbr_cli.api.models import ResultSet

from .load_state import ResourceKey
from .views import View


@dataclass(frozen=True, slots=True)
class Quit:
    pass


@dataclass(frozen=True, slots=True)
class FocusNext:
    pass


@dataclass(frozen=True, slots=True)
class FocusPrevious:
    pass


@dataclass(frozen=True, slots=True)
class Navigate:
    view: View


@dataclass(frozen=True, slots=True)
class NavigateBack:
    pass


@dataclass(frozen=True, slots=True)
class RequestLoad:
    """Ask for ``key`` to be (re)loaded for the current view."""

    key: ResourceKey
    force: bool = False


@dataclass(frozen=True, slots=True)
class ShowError:
    message: str


@dataclass(frozen=True, slots=True)
class ClearError:
    pass


@dataclass(frozen=True, slots=True)
class SetStatus:
    message: str


@dataclass(frozen=True, slots=True)
class ClearStatus:
    pass


@dataclass(frozen=True, slots=True)
class ResourceLoaded:
    key: ResourceKey
    payload: Any
    generation: int


@dataclass(frozen=True, slots=True)
class ResourceLoadFailed:
    key: ResourceKey
    message: str
    generation: int


@dataclass(frozen=True, slots=True)
class QueryExecuted:
    result: ResultSet
    generation: int


@dataclass(frozen=True, slots=True)
class QueryExecutionFailed:
    message: str
    generation: int


@dataclass(frozen=True, slots=True)
class ExecuteQuestion:
    question_id: int
    name: str = ""


@dataclass(frozen=True, slots=True)
class Refresh:
    pass


@dataclass(frozen=True, slots=True)
class SearchQuestions:
    text: str


@dataclass(frozen=True, slots=True)
class ToggleHelp:
    pass


@dataclass(frozen=True, slots=True)
class MoveCursor:
    delta: int


@dataclass(frozen=True, slots=True)
class CursorHome:
    pass


@dataclass(frozen=True, slots=True)
class CursorEnd:
    pass


@dataclass(frozen=True, slots=True)
class OpenSelection:
    pass


@dataclass(frozen=True, slots=True)
class CloseOverlay:
    pass


@dataclass(frozen=True, slots=True)
class OpenCopyMenu:
    pass


@dataclass(frozen=True, slots=True)
class CopyMenuMove:
    delta: int


@dataclass(frozen=True, slots=True)
class ToggleCopyHeader:
    pass


@dataclass(frozen=True, slots=True)
class CopyRecord:
    """Copy the record in the open copy menu; ``fmt`` of ``None`` uses the highlighted format."""

    fmt: str | None = None


@dataclass(frozen=True, slots=True)
class OpenPrompt:
    """Open a text or column prompt: ``search``, ``questions``, ``filter`` or ``sort``."""

    kind: str


@dataclass(frozen=True, slots=True)
class PromptInput:
    char: str


@dataclass(frozen=True, slots=True)
class PromptBackspace:
    pass


@dataclass(frozen=True, slots=True)
class PromptSelectColumn:
    delta: int


@dataclass(frozen=True, slots=True)
class PromptSubmit:
    pass


@dataclass(frozen=True, slots=True)
class ResultSearchOpen:
    pass


@dataclass(frozen=True, slots=True)
class ResultSearchInput:
    char: str


@dataclass(frozen=True, slots=True)
class ResultSearchBackspace:
    pass


@dataclass(frozen=True, slots=True)
class ResultSearchApply:
    pass


@dataclass(frozen=True, slots=True)
class ResultSearchClear:
    pass


@dataclass(frozen=True, slots=True)
class ApplyFilter:
    column: int
    text: str


@dataclass(frozen=True, slots=True)
class ClearFilter:
    pass


@dataclass(frozen=True, slots=True)
class ApplySort:
    column: int


@dataclass(frozen=True, slots=True)
class ClearSort:
    pass


@dataclass(frozen=True, slots=True)
class ChangePage:
    target: str


@dataclass(frozen=True, slots=True)
class ScrollColumns:
    delta: int


@dataclass(frozen=True, slots=True)
class SetPageSize:
    size: int


@dataclass(frozen=True, slots=True)
class Resize:
    width: int
    height: int


Action = Union[
    Quit,
    FocusNext,
    FocusPrevious,
    Navigate,
    NavigateBack,
    RequestLoad,
    ShowError,
    ClearError,
    SetStatus,
    ClearStatus,
    ResourceLoaded,
    ResourceLoadFailed,
    QueryExecuted,
    QueryExecutionFailed,
    ExecuteQuestion,
    Refresh,
    SearchQuestions,
    ToggleHelp,
    MoveCursor,
    CursorHome,
    CursorEnd,
    OpenSelection,
    CloseOverlay,
    OpenCopyMenu,
    CopyMenuMove,
    ToggleCopyHeader,
    CopyRecord,
    OpenPrompt,
    PromptInput,
    PromptBackspace,
    PromptSelectColumn,
    PromptSubmit,
    ResultSearchOpen,
    ResultSearchInput,
    ResultSearchBackspace,
    ResultSearchApply,
    ResultSearchClear,
    ApplyFilter,
    ClearFilter,
    ApplySort,
    ClearSort,
    ChangePage,
    ScrollColumns,
    SetPageSize,
    Resize,
]
