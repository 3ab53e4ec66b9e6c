"""The reducer: the only code that mutates ``AppState``.

``dispatch`` applies one action to the state and returns the load requests the
caller must hand to the task runner. Actions that make no sense for the current
view are ignored.
"""

from __future__ import annotations

from typing import Any, Callable

from mbr_cli.api.models import CollectionItem, Database, Question, TableInfo

from . import action as act
from .load_state import ResourceKey
from .pipeline import ResultTable
from .service import LoadRequest
from .state import AppState, CopyMenu, Prompt, context_for_view, key_for_view
from .views import (
    TABS,
    CollectionDrillDown,
    DatabaseSchemas,
    QueryResult,
    ResourceKind,
    ResourceList,
    SchemaTables,
    TablePreview,
    View,
    Welcome,
    is_result_view,
    parent_view,
    tab_for,
)

COLLECTION_QUESTION_LIMIT = 100
PAGE_TARGETS = frozenset({"next", "prev", "first", "last"})

Requests = list[LoadRequest]
Handler = Callable[[AppState, Any], "Requests | None"]

_HANDLERS: dict[type, Handler] = {}


def handles(*action_types: type) -> Callable[[Handler], Handler]:
    def decorator(func: Handler) -> Handler:
        for action_type in action_types:
            _HANDLERS[action_type] = func
        return func

    return decorator


def dispatch(state: AppState, action: act.Action) -> Requests:
    """Apply ``action`` to ``state`` and return any loads to start."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return []
    return handler(state, action) or []


# ----------------------------------------------------------------------
# Session and chrome


@handles(act.Quit)
def _quit(state: AppState, action: act.Quit) -> None:
    state.should_quit = True


@handles(act.FocusNext, act.FocusPrevious)
def _focus(state: AppState, action: act.FocusNext | act.FocusPrevious) -> Requests:
    step = 1 if isinstance(action, act.FocusNext) else -1
    current = tab_for(state.view)
    if current is None:
        state.focus = 0 if step > 0 else len(TABS) - 1
    else:
        state.focus = (TABS.index(current) + step) % len(TABS)
    return _navigate(state, ResourceList(TABS[state.focus]))


@handles(act.ShowError)
def _show_error(state: AppState, action: act.ShowError) -> None:
    _set_error(state, action.message)


@handles(act.ClearError)
def _clear_error(state: AppState, action: act.ClearError) -> None:
    state.error = None


@handles(act.SetStatus)
def _set_status(state: AppState, action: act.SetStatus) -> None:
    state.status = action.message


@handles(act.ClearStatus)
def _clear_status(state: AppState, action: act.ClearStatus) -> None:
    state.status = None


@handles(act.ToggleHelp)
def _toggle_help(state: AppState, action: act.ToggleHelp) -> None:
    state.show_help = not state.show_help


@handles(act.CloseOverlay)
def _close_overlay(state: AppState, action: act.CloseOverlay) -> None:
    if state.copy_menu is not None:
        state.copy_menu = None
        return
    state.show_help = False
    state.record = None
    state.prompt = None
    if state.result_table is not None:
        state.result_table.search_open = False


@handles(act.Resize)
def _resize(state: AppState, action: act.Resize) -> None:
    state.width = max(1, action.width)
    state.height = max(1, action.height)
    for cursor in state.lists.values():
        cursor.scroll.set_visible(state.list_height)
        cursor.scroll.ensure_visible(cursor.index)


# ----------------------------------------------------------------------
# Navigation


@handles(act.Navigate)
def _navigate_action(state: AppState, action: act.Navigate) -> Requests:
    return _navigate(state, action.view)


@handles(act.NavigateBack)
def _navigate_back(state: AppState, action: act.NavigateBack) -> Requests:
    if state.view == ResourceList(ResourceKind.QUESTIONS) and state.question_search:
        return _search_questions(state, act.SearchQuestions(""))
    return _navigate(state, parent_view(state.view))


@handles(act.ExecuteQuestion)
def _execute_question(state: AppState, action: act.ExecuteQuestion) -> Requests:
    origin = state.view if isinstance(state.view, (ResourceList, CollectionDrillDown)) else None
    target = QueryResult(question_id=action.question_id, name=action.name, origin=origin)
    return _navigate(state, target, force=True)


@handles(act.SearchQuestions)
def _search_questions(state: AppState, action: act.SearchQuestions) -> Requests:
    state.question_search = action.text.strip()
    return _navigate(state, ResourceList(ResourceKind.QUESTIONS))


@handles(act.Refresh)
def _refresh(state: AppState, action: act.Refresh) -> Requests:
    if isinstance(state.view, Welcome):
        return _request_load(state, act.RequestLoad(ResourceKey.CURRENT_USER, force=True))
    return _load_for_view(state, force=True)


@handles(act.RequestLoad)
def _request_load(state: AppState, action: act.RequestLoad) -> Requests:
    if action.key is key_for_view(state.view):
        return _load_for_view(state, force=action.force)
    if action.key is ResourceKey.CURRENT_USER:
        ticket = state.resource(action.key).begin(supersede=action.force)
        if ticket is None:
            return []
        state.status = "Checking connection..."
        return [LoadRequest(ticket=ticket)]
    if action.key.value in {kind.value for kind in TABS}:
        # Loads for a tab panel that is not on screen.
        view = ResourceList(ResourceKind(action.key.value))
        return _begin_load(state, view, action.key, force=action.force)
    return []


def _navigate(state: AppState, view: View, *, force: bool = False) -> Requests:
    previous = state.view
    if is_result_view(previous) and previous != view:
        _leave_result(state)
    state.view = view
    state.record = None
    state.copy_menu = None
    state.prompt = None
    tab = tab_for(view)
    if tab is not None:
        state.focus = TABS.index(tab)
    requests = _load_for_view(state, force=force)
    if isinstance(view, CollectionDrillDown) and view != previous and _validate(view) is None:
        state.status = f"Viewing questions in '{view.name}'"
    elif isinstance(previous, CollectionDrillDown) and view == ResourceList(ResourceKind.COLLECTIONS):
        if not requests:
            state.status = "Returned to Collections list"
    return requests


def _leave_result(state: AppState) -> None:
    state.resource(ResourceKey.QUERY_RESULT).reset()
    state.result_table = None


def _load_for_view(state: AppState, *, force: bool = False) -> Requests:
    key = key_for_view(state.view)
    if key is None:
        return []
    problem = _validate(state.view)
    if problem is not None:
        state.resource(key).reject(problem, context_for_view(state.view, state.question_search))
        _set_error(state, problem)
        if key is ResourceKey.QUERY_RESULT:
            state.result_table = None
        return []
    return _begin_load(state, state.view, key, force=force)


def _begin_load(state: AppState, view: View, key: ResourceKey, *, force: bool) -> Requests:
    context = context_for_view(view, state.question_search)
    resource = state.resource(key)
    if not force and resource.matches(context):
        return []
    ticket = resource.begin(context, supersede=True)
    if ticket is None:
        return []
    if key is ResourceKey.QUERY_RESULT:
        state.result_table = None
    state.status = _loading_message(view)
    return [_build_request(state, view, ticket)]


def _validate(view: View) -> str | None:
    if isinstance(view, ResourceList) and view.kind in (ResourceKind.SCHEMAS, ResourceKind.TABLES):
        return "Select a database first"
    if isinstance(view, CollectionDrillDown) and view.id <= 0:
        return f"Invalid collection ID: {view.id}"
    if isinstance(view, (DatabaseSchemas, SchemaTables, TablePreview)) and view.db_id <= 0:
        return f"Invalid database ID: {view.db_id}"
    if isinstance(view, SchemaTables) and not view.schema_name.strip():
        return "Schema name must not be empty"
    if isinstance(view, TablePreview) and view.table_id <= 0:
        return f"Invalid table ID: {view.table_id}"
    if isinstance(view, QueryResult) and view.question_id <= 0:
        return f"Invalid question ID: {view.question_id}"
    return None


def _build_request(state: AppState, view: View, ticket: Any) -> LoadRequest:
    if isinstance(view, ResourceList):
        if view.kind is ResourceKind.QUESTIONS:
            return LoadRequest(
                ticket=ticket,
                kind=view.kind,
                search=state.question_search or None,
                limit=state.list_limit,
            )
        return LoadRequest(ticket=ticket, kind=view.kind)
    if isinstance(view, CollectionDrillDown):
        return LoadRequest(
            ticket=ticket,
            kind=ResourceKind.QUESTIONS,
            collection=view.id,
            limit=COLLECTION_QUESTION_LIMIT,
        )
    if isinstance(view, DatabaseSchemas):
        return LoadRequest(ticket=ticket, kind=ResourceKind.SCHEMAS, database=view.db_id)
    if isinstance(view, SchemaTables):
        return LoadRequest(
            ticket=ticket,
            kind=ResourceKind.TABLES,
            database=view.db_id,
            schema=view.schema_name,
        )
    if isinstance(view, TablePreview):
        return LoadRequest(
            ticket=ticket,
            database=view.db_id,
            table_id=view.table_id,
            limit=state.preview_limit,
            name=view.table_name,
        )
    if isinstance(view, QueryResult):
        return LoadRequest(ticket=ticket, question_id=view.question_id, name=view.name or None)
    raise ValueError(f"No load defined for view {view!r}")


def _loading_message(view: View) -> str:
    if isinstance(view, ResourceList):
        if view.kind is ResourceKind.QUESTIONS:
            return "Loading questions..."
        return f"Loading {view.kind.value}..."
    if isinstance(view, CollectionDrillDown):
        return f"Loading questions in '{view.name}'..."
    if isinstance(view, DatabaseSchemas):
        return f"Loading schemas for '{view.name}'..."
    if isinstance(view, SchemaTables):
        return f"Loading tables in '{view.schema_name}'..."
    if isinstance(view, TablePreview):
        return f"Loading preview of '{view.table_name}'..."
    if isinstance(view, QueryResult):
        label = view.name or f"#{view.question_id}"
        return f"Executing query '{label}'..."
    return "Loading..."


# ----------------------------------------------------------------------
# Completions


_LIST_LABELS = {
    ResourceKey.QUESTIONS: "questions",
    ResourceKey.COLLECTIONS: "collections",
    ResourceKey.DATABASES: "databases",
    ResourceKey.SCHEMAS: "schemas",
    ResourceKey.TABLES: "tables",
}


@handles(act.ResourceLoaded)
def _resource_loaded(state: AppState, action: act.ResourceLoaded) -> None:
    resource = state.resource(action.key)
    if not resource.resolve(action.generation, action.payload):
        return
    state.error = None
    if action.key is ResourceKey.CURRENT_USER:
        user = action.payload
        state.connection = getattr(user, "display_name", None) or str(user)
        state.status = f"Connected as {state.connection}"
        return
    items = action.payload or []
    state.cursor(action.key).reset(len(items), state.list_height)
    state.status = f"Loaded {len(items)} {_LIST_LABELS.get(action.key, action.key.value)}"


@handles(act.ResourceLoadFailed)
def _resource_load_failed(state: AppState, action: act.ResourceLoadFailed) -> None:
    if not state.resource(action.key).fail(action.generation, action.message):
        return
    if action.key is ResourceKey.CURRENT_USER:
        state.connection = None
    _set_error(state, action.message)


@handles(act.QueryExecuted)
def _query_executed(state: AppState, action: act.QueryExecuted) -> None:
    if not state.resource(ResourceKey.QUERY_RESULT).resolve(action.generation, action.result):
        return
    state.error = None
    state.result_table = ResultTable.create(action.result, state.page_size)
    state.status = f"Query '{action.result.name}': {action.result.row_count} rows"


@handles(act.QueryExecutionFailed)
def _query_failed(state: AppState, action: act.QueryExecutionFailed) -> None:
    if not state.resource(ResourceKey.QUERY_RESULT).fail(action.generation, action.message):
        return
    state.result_table = None
    _set_error(state, action.message)


def _set_error(state: AppState, message: str) -> None:
    state.error = message
    state.status = f"Error: {message}"


# ----------------------------------------------------------------------
# Lists and selection


@handles(act.MoveCursor)
def _move_cursor(state: AppState, action: act.MoveCursor) -> None:
    if state.result_table is not None and is_result_view(state.view):
        state.result_table.move_cursor(action.delta)
        return
    key = _list_key(state)
    if key is not None:
        state.cursor(key).move(action.delta)


@handles(act.CursorHome, act.CursorEnd)
def _cursor_edge(state: AppState, action: act.CursorHome | act.CursorEnd) -> None:
    to_end = isinstance(action, act.CursorEnd)
    table = state.result_table
    if table is not None and is_result_view(state.view):
        if to_end:
            table.cursor_end()
        else:
            table.cursor_home()
        return
    key = _list_key(state)
    if key is not None:
        cursor = state.cursor(key)
        cursor.jump(cursor.scroll.total - 1 if to_end else 0)


@handles(act.OpenSelection)
def _open_selection(state: AppState, action: act.OpenSelection) -> Requests:
    view = state.view
    if is_result_view(view):
        if state.result_table is not None:
            table = state.result_table
            record = table.selected_record()
            state.record = record or None
            if record:
                state.status = f"Record {table.pagination.start + table.cursor + 1} of {table.visible_count}"
        return []
    item = state.selected_item()
    if item is None:
        return []
    if isinstance(item, Question):
        return _execute_question(state, act.ExecuteQuestion(item.id, item.name))
    if isinstance(item, CollectionItem):
        return _navigate(state, CollectionDrillDown(id=item.id or 0, name=item.name))
    if isinstance(item, Database):
        return _navigate(state, DatabaseSchemas(db_id=item.id, name=item.name))
    if isinstance(item, TableInfo) and isinstance(view, SchemaTables):
        return _navigate(
            state,
            TablePreview(
                db_id=view.db_id,
                table_id=item.id,
                table_name=item.display_name or item.name,
                schema_name=view.schema_name,
                db_name=view.db_name,
            ),
        )
    if isinstance(item, str) and isinstance(view, DatabaseSchemas):
        return _navigate(state, SchemaTables(db_id=view.db_id, schema_name=item, db_name=view.name))
    return []


@handles(act.OpenCopyMenu)
def _open_copy_menu(state: AppState, action: act.OpenCopyMenu) -> None:
    if state.record:
        state.copy_menu = CopyMenu(record=list(state.record))


@handles(act.CopyMenuMove)
def _copy_menu_move(state: AppState, action: act.CopyMenuMove) -> None:
    if state.copy_menu is not None:
        state.copy_menu.move(action.delta)


@handles(act.ToggleCopyHeader)
def _toggle_copy_header(state: AppState, action: act.ToggleCopyHeader) -> None:
    if state.copy_menu is not None:
        state.copy_menu.include_header = not state.copy_menu.include_header


def _list_key(state: AppState) -> ResourceKey | None:
    key = key_for_view(state.view)
    if key is None or key is ResourceKey.QUERY_RESULT:
        return None
    if not state.resource(key).is_loaded:
        return None
    return key


# ----------------------------------------------------------------------
# Prompts


@handles(act.OpenPrompt)
def _open_prompt(state: AppState, action: act.OpenPrompt) -> None:
    table = state.result_table if is_result_view(state.view) else None
    if action.kind == "questions":
        if isinstance(state.view, ResourceList) and state.view.kind is ResourceKind.QUESTIONS:
            state.prompt = Prompt(kind="questions", text=state.question_search)
        return
    if action.kind == "search":
        _result_search_open(state, act.ResultSearchOpen())
        return
    if table is None or not table.result.columns:
        return
    if action.kind == "filter":
        column = table.filter_column if table.filter_column is not None else table.columns.offset
        state.prompt = Prompt(kind="filter", text=table.filter_text, column=column)
    elif action.kind == "sort":
        column = table.sort_column if table.sort_column is not None else table.columns.offset
        state.prompt = Prompt(kind="sort", column=column)


@handles(act.PromptInput)
def _prompt_input(state: AppState, action: act.PromptInput) -> None:
    if state.prompt is not None and state.prompt.kind != "sort":
        state.prompt.text += action.char


@handles(act.PromptBackspace)
def _prompt_backspace(state: AppState, action: act.PromptBackspace) -> None:
    if state.prompt is not None:
        state.prompt.text = state.prompt.text[:-1]


@handles(act.PromptSelectColumn)
def _prompt_select_column(state: AppState, action: act.PromptSelectColumn) -> None:
    prompt = state.prompt
    table = state.result_table
    if prompt is None or table is None or prompt.kind not in ("filter", "sort"):
        return
    last = len(table.result.columns) - 1
    prompt.column = min(max(prompt.column + action.delta, 0), max(last, 0))


@handles(act.PromptSubmit)
def _prompt_submit(state: AppState, action: act.PromptSubmit) -> Requests:
    prompt = state.prompt
    if prompt is None:
        return []
    state.prompt = None
    if prompt.kind == "questions":
        return _search_questions(state, act.SearchQuestions(prompt.text))
    if prompt.kind == "filter":
        _apply_filter(state, act.ApplyFilter(prompt.column, prompt.text))
    elif prompt.kind == "sort":
        _apply_sort(state, act.ApplySort(prompt.column))
    return []


# ----------------------------------------------------------------------
# Result table pipeline


def _table(state: AppState) -> ResultTable | None:
    if not is_result_view(state.view):
        return None
    return state.result_table


def _pipeline_status(state: AppState, table: ResultTable) -> None:
    summary = f"{table.visible_count}/{table.result.row_count} rows"
    state.status = " | ".join([summary, *table.describe()])


@handles(act.ResultSearchOpen)
def _result_search_open(state: AppState, action: act.ResultSearchOpen) -> None:
    table = _table(state)
    if table is not None:
        table.search_open = True
        table.search_buffer = table.search_text


@handles(act.ResultSearchInput, act.ResultSearchBackspace)
def _result_search_edit(state: AppState, action: act.ResultSearchInput | act.ResultSearchBackspace) -> None:
    table = _table(state)
    if table is None or not table.search_open:
        return
    if isinstance(action, act.ResultSearchInput):
        table.search_buffer += action.char
    else:
        table.search_buffer = table.search_buffer[:-1]
    if table.set_search(table.search_buffer):
        _pipeline_status(state, table)


@handles(act.ResultSearchApply)
def _result_search_apply(state: AppState, action: act.ResultSearchApply) -> None:
    table = _table(state)
    if table is None:
        return
    table.search_open = False
    table.set_search(table.search_buffer)
    _pipeline_status(state, table)


@handles(act.ResultSearchClear)
def _result_search_clear(state: AppState, action: act.ResultSearchClear) -> None:
    table = _table(state)
    if table is not None and table.clear_search():
        _pipeline_status(state, table)


@handles(act.ApplyFilter)
def _apply_filter(state: AppState, action: act.ApplyFilter) -> None:
    table = _table(state)
    if table is None:
        return
    text = action.text.strip()
    changed = table.set_filter(action.column, text) if text else table.clear_filter()
    if changed:
        _pipeline_status(state, table)


@handles(act.ClearFilter)
def _clear_filter(state: AppState, action: act.ClearFilter) -> None:
    table = _table(state)
    if table is not None and table.clear_filter():
        _pipeline_status(state, table)


@handles(act.ApplySort)
def _apply_sort(state: AppState, action: act.ApplySort) -> None:
    table = _table(state)
    if table is not None and table.cycle_sort(action.column):
        _pipeline_status(state, table)


@handles(act.ClearSort)
def _clear_sort(state: AppState, action: act.ClearSort) -> None:
    table = _table(state)
    if table is not None and table.clear_sort():
        _pipeline_status(state, table)


@handles(act.ChangePage)
def _change_page(state: AppState, action: act.ChangePage) -> None:
    table = _table(state)
    if table is None or action.target not in PAGE_TARGETS:
        return
    table.change_page(action.target)
    pagination = table.pagination
    state.status = f"Page {pagination.page + 1}/{pagination.page_count}"


@handles(act.ScrollColumns)
def _scroll_columns(state: AppState, action: act.ScrollColumns) -> None:
    table = _table(state)
    if table is not None:
        table.scroll_columns(action.delta)


@handles(act.SetPageSize)
def _set_page_size(state: AppState, action: act.SetPageSize) -> None:
    if action.size <= 0:
        return
    state.page_size = action.size
    table = _table(state)
    if table is not None:
        table.resize_pages(action.size)
