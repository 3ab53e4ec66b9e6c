from __future__ import annotations

from mbr_cli.mbr_tui import action as act
from mbr_cli.mbr_tui.dispatch import COLLECTION_QUESTION_LIMIT, dispatch
from mbr_cli.mbr_tui.load_state import Error, Idle, ResourceKey
from mbr_cli.mbr_tui.service import LoadRequest, perform
from mbr_cli.mbr_tui.state import AppState, CopyMenu
from mbr_cli.mbr_tui.views import (
    CollectionDrillDown,
    DatabaseSchemas,
    QueryResult,
    ResourceKind,
    ResourceList,
    SchemaTables,
    TablePreview,
    Welcome,
)


def _complete(state: AppState, service, requests: list[LoadRequest]) -> None:
    for request in requests:
        dispatch(state, perform(service, request))


def _open_result(state: AppState, service) -> None:
    _complete(state, service, dispatch(state, act.ExecuteQuestion(1, "Revenue")))
    assert state.result_table is not None


def test_unknown_action_is_ignored() -> None:
    state = AppState()
    assert dispatch(state, object()) == []  # type: ignore[arg-type]
    assert state.view == Welcome()


def test_focus_from_welcome_opens_first_tab_and_loads(fake_service) -> None:
    state = AppState()

    requests = dispatch(state, act.FocusNext())

    assert state.view == ResourceList(ResourceKind.QUESTIONS)
    assert state.focus == 0
    assert len(requests) == 1
    assert requests[0].kind is ResourceKind.QUESTIONS
    assert requests[0].limit == state.list_limit
    assert state.resource(ResourceKey.QUESTIONS).is_loading
    assert state.status == "Loading questions..."

    _complete(state, fake_service, requests)

    assert state.resource(ResourceKey.QUESTIONS).value == fake_service.questions
    assert state.status == "Loaded 2 questions"


def test_focus_previous_from_welcome_wraps_to_last_tab() -> None:
    state = AppState()
    dispatch(state, act.FocusPrevious())
    assert state.view == ResourceList(ResourceKind.DATABASES)
    dispatch(state, act.FocusNext())
    assert state.view == ResourceList(ResourceKind.QUESTIONS)


def test_revisiting_loaded_list_does_not_refetch(fake_service) -> None:
    state = AppState()
    _complete(state, fake_service, dispatch(state, act.Navigate(ResourceList(ResourceKind.DATABASES))))

    dispatch(state, act.Navigate(ResourceList(ResourceKind.QUESTIONS)))
    assert dispatch(state, act.Navigate(ResourceList(ResourceKind.DATABASES))) == []
    assert state.resource(ResourceKey.DATABASES).is_loaded


def test_request_load_is_noop_while_loading() -> None:
    state = AppState()
    dispatch(state, act.Navigate(ResourceList(ResourceKind.COLLECTIONS)))
    assert dispatch(state, act.RequestLoad(ResourceKey.COLLECTIONS)) == []


def test_refresh_supersedes_in_flight_load(fake_service) -> None:
    state = AppState()
    first = dispatch(state, act.Navigate(ResourceList(ResourceKind.QUESTIONS)))
    second = dispatch(state, act.Refresh())
    assert [r.generation for r in first + second] == [1, 2]

    _complete(state, fake_service, first)
    assert state.resource(ResourceKey.QUESTIONS).is_loading

    _complete(state, fake_service, second)
    assert state.resource(ResourceKey.QUESTIONS).is_loaded


def test_collection_drill_down_run_and_back(fake_service) -> None:
    state = AppState()
    finance = CollectionDrillDown(id=5, name="Finance")

    requests = dispatch(state, act.Navigate(finance))
    assert requests[0].collection == 5
    assert requests[0].limit == COLLECTION_QUESTION_LIMIT
    assert state.status == "Viewing questions in 'Finance'"
    assert state.focus == 1
    _complete(state, fake_service, requests)
    assert [q.id for q in state.resource(ResourceKey.QUESTIONS).value] == [1]

    requests = dispatch(state, act.OpenSelection())
    assert state.view == QueryResult(question_id=1, name="Revenue", origin=finance)
    _complete(state, fake_service, requests)
    assert state.status == "Query 'Revenue': 2 rows"
    assert state.result_table is not None

    assert dispatch(state, act.NavigateBack()) == []
    assert state.view == finance
    assert state.result_table is None
    assert isinstance(state.resource(ResourceKey.QUERY_RESULT).state, Idle)

    requests = dispatch(state, act.NavigateBack())
    assert state.view == ResourceList(ResourceKind.COLLECTIONS)
    assert [r.key for r in requests] == [ResourceKey.COLLECTIONS]


def test_root_collection_cannot_be_drilled_into(fake_service) -> None:
    state = AppState()
    _complete(state, fake_service, dispatch(state, act.Navigate(ResourceList(ResourceKind.COLLECTIONS))))

    # The first collection is the root, which has no numeric ID.
    requests = dispatch(state, act.OpenSelection())

    assert requests == []
    assert state.view == CollectionDrillDown(id=0, name="Our analytics")
    assert state.error == "Invalid collection ID: 0"
    assert state.status == "Error: Invalid collection ID: 0"


def test_schema_list_without_database_is_rejected() -> None:
    state = AppState()
    assert dispatch(state, act.Navigate(ResourceList(ResourceKind.SCHEMAS))) == []
    assert state.resource(ResourceKey.SCHEMAS).state == Error("Select a database first")


def test_leaving_result_discards_late_completion(fake_service) -> None:
    state = AppState()
    requests = dispatch(state, act.ExecuteQuestion(1, "Revenue"))
    dispatch(state, act.NavigateBack())

    _complete(state, fake_service, requests)

    assert state.view == ResourceList(ResourceKind.QUESTIONS)
    assert state.result_table is None
    assert isinstance(state.resource(ResourceKey.QUERY_RESULT).state, Idle)


def test_rerunning_question_supersedes_previous_run(fake_service) -> None:
    state = AppState()
    first = dispatch(state, act.ExecuteQuestion(1, "Revenue"))
    second = dispatch(state, act.Refresh())

    _complete(state, fake_service, second)
    loaded = state.resource(ResourceKey.QUERY_RESULT).value
    _complete(state, fake_service, first)

    assert state.resource(ResourceKey.QUERY_RESULT).value is loaded
    assert second[0].generation > first[0].generation


def test_query_failure_sets_error_and_clear_error(fake_service) -> None:
    state = AppState()
    _complete(state, fake_service, dispatch(state, act.ExecuteQuestion(99, "Missing")))

    assert state.error == "Question with ID 99 not found"
    assert state.status == "Error: Question with ID 99 not found"
    assert state.result_table is None

    dispatch(state, act.ClearError())
    assert state.error is None


def test_invalid_question_id_is_rejected_without_request() -> None:
    state = AppState()
    assert dispatch(state, act.ExecuteQuestion(0)) == []
    assert state.error == "Invalid question ID: 0"


def test_question_search_prompt_and_back_clears_search(fake_service) -> None:
    state = AppState()
    _complete(state, fake_service, dispatch(state, act.Navigate(ResourceList(ResourceKind.QUESTIONS))))

    dispatch(state, act.OpenPrompt("questions"))
    for char in "rev":
        dispatch(state, act.PromptInput(char))
    requests = dispatch(state, act.PromptSubmit())

    assert state.prompt is None
    assert state.question_search == "rev"
    assert requests[0].search == "rev"
    _complete(state, fake_service, requests)
    assert [q.name for q in state.resource(ResourceKey.QUESTIONS).value] == ["Revenue"]

    requests = dispatch(state, act.NavigateBack())
    assert state.view == ResourceList(ResourceKind.QUESTIONS)
    assert state.question_search == ""
    assert requests[0].search is None


def test_database_drill_down_to_table_preview(fake_service) -> None:
    state = AppState(preview_limit=25)
    _complete(state, fake_service, dispatch(state, act.Navigate(ResourceList(ResourceKind.DATABASES))))

    _complete(state, fake_service, dispatch(state, act.OpenSelection()))
    assert state.view == DatabaseSchemas(db_id=1, name="Sample")

    _complete(state, fake_service, dispatch(state, act.OpenSelection()))
    assert state.view == SchemaTables(db_id=1, schema_name="PUBLIC", db_name="Sample")

    requests = dispatch(state, act.OpenSelection())
    assert state.view == TablePreview(
        db_id=1, table_id=10, table_name="Orders", schema_name="PUBLIC", db_name="Sample"
    )
    assert requests[0].limit == 25
    _complete(state, fake_service, requests)

    assert ("preview", 1, 10, 25) in fake_service.calls
    assert state.result_table is not None
    assert state.result_table.result.row_count == 3


def test_result_pipeline_actions_update_status(fake_service) -> None:
    state = AppState()
    _open_result(state, fake_service)

    dispatch(state, act.ApplyFilter(0, "jan"))
    assert state.status == "1/2 rows | filter month~'jan'"

    dispatch(state, act.ClearFilter())
    dispatch(state, act.ApplySort(1))
    assert state.status == "2/2 rows | sort total ↑"

    dispatch(state, act.ChangePage("next"))
    assert state.status == "Page 1/1"


def test_result_search_edits_apply_incrementally(fake_service) -> None:
    state = AppState()
    _open_result(state, fake_service)

    dispatch(state, act.ResultSearchOpen())
    dispatch(state, act.ResultSearchInput("f"))
    assert state.result_table.visible_indices() == [1]

    dispatch(state, act.ResultSearchBackspace())
    assert state.result_table.visible_indices() == [0, 1]

    dispatch(state, act.ResultSearchInput("j"))
    dispatch(state, act.ResultSearchApply())
    assert state.result_table.search_open is False
    assert state.result_table.search_text == "j"

    dispatch(state, act.ResultSearchClear())
    assert state.result_table.search_idx is None


def test_filter_prompt_selects_column(fake_service) -> None:
    state = AppState()
    _open_result(state, fake_service)

    dispatch(state, act.OpenPrompt("filter"))
    dispatch(state, act.PromptSelectColumn(5))
    assert state.prompt.column == 1
    dispatch(state, act.PromptInput("2"))
    dispatch(state, act.PromptSubmit())

    assert state.result_table.filter_column == 1
    assert state.result_table.visible_indices() == [1]


def test_set_page_size_ignores_non_positive(fake_service) -> None:
    state = AppState()
    _open_result(state, fake_service)

    dispatch(state, act.SetPageSize(0))
    assert state.page_size == 100

    dispatch(state, act.SetPageSize(1))
    assert state.result_table.pagination.page_size == 1
    assert state.result_table.pagination.page_count == 2


def test_record_detail_opens_and_closes(fake_service) -> None:
    state = AppState()
    _open_result(state, fake_service)

    dispatch(state, act.OpenSelection())
    assert state.record == [("month", "Jan"), ("total", "10")]

    dispatch(state, act.CloseOverlay())
    assert state.record is None


def test_refresh_on_welcome_checks_connection(fake_service) -> None:
    state = AppState()
    requests = dispatch(state, act.Refresh())
    assert state.status == "Checking connection..."

    _complete(state, fake_service, requests)

    assert state.connection == "Ada Lovelace"
    assert state.status == "Connected as Ada Lovelace"


def test_resize_updates_list_height() -> None:
    state = AppState()
    dispatch(state, act.Resize(120, 40))
    assert (state.width, state.height) == (120, 40)
    assert state.list_height == 34


def test_quit_sets_should_quit() -> None:
    state = AppState()
    assert dispatch(state, act.Quit()) == []
    assert state.should_quit is True


def test_status_messages_set_and_clear() -> None:
    state = AppState()
    dispatch(state, act.SetStatus("Copied as CSV"))
    assert state.status == "Copied as CSV"

    dispatch(state, act.ClearStatus())
    assert state.status is None


def test_show_error_sets_error_and_status() -> None:
    state = AppState()
    dispatch(state, act.ShowError("Clipboard unavailable"))
    assert state.error == "Clipboard unavailable"
    assert state.status == "Error: Clipboard unavailable"

    dispatch(state, act.ClearError())
    assert state.error is None


def test_error_survives_navigation_until_next_load_succeeds(fake_service) -> None:
    state = AppState()
    dispatch(state, act.ShowError("HTTP 500"))

    requests = dispatch(state, act.Navigate(ResourceList(ResourceKind.DATABASES)))
    assert state.resource(ResourceKey.DATABASES).is_loading
    assert state.error == "HTTP 500"

    _complete(state, fake_service, requests)
    assert state.error is None
    assert state.status == "Loaded 1 databases"


def test_stale_completion_keeps_error(fake_service) -> None:
    state = AppState()
    requests = dispatch(state, act.Navigate(ResourceList(ResourceKind.DATABASES)))
    dispatch(state, act.ShowError("HTTP 500"))
    dispatch(state, act.Refresh())

    _complete(state, fake_service, requests)

    assert state.error == "HTTP 500"


def test_copy_menu_opens_from_record_detail(fake_service) -> None:
    state = AppState()
    _open_result(state, fake_service)

    dispatch(state, act.OpenCopyMenu())
    assert state.copy_menu is None

    dispatch(state, act.OpenSelection())
    assert state.status == "Record 1 of 2"
    dispatch(state, act.OpenCopyMenu())
    assert state.copy_menu == CopyMenu(record=[("month", "Jan"), ("total", "10")])

    dispatch(state, act.CopyMenuMove(5))
    dispatch(state, act.ToggleCopyHeader())
    assert state.copy_menu.format == "tsv"
    assert state.copy_menu.include_header is False


def test_close_overlay_closes_copy_menu_before_record(fake_service) -> None:
    state = AppState()
    _open_result(state, fake_service)
    dispatch(state, act.OpenSelection())
    dispatch(state, act.OpenCopyMenu())

    dispatch(state, act.CloseOverlay())
    assert state.copy_menu is None
    assert state.record is not None

    dispatch(state, act.CloseOverlay())
    assert state.record is None


def test_navigation_drops_copy_menu(fake_service) -> None:
    state = AppState()
    _open_result(state, fake_service)
    dispatch(state, act.OpenSelection())
    dispatch(state, act.OpenCopyMenu())

    dispatch(state, act.Navigate(ResourceList(ResourceKind.QUESTIONS)))

    assert state.copy_menu is None
    assert state.record is None
