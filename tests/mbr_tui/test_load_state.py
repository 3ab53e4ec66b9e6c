from __future__ import annotations

from mbr_cli.mbr_tui.load_state import Error, Idle, Loaded, Loading, Resource, ResourceKey


def test_lifecycle_goes_through_loading() -> None:
    resource: Resource[list[str]] = Resource(ResourceKey.QUESTIONS)
    assert isinstance(resource.state, Idle)
    assert resource.value is None

    ticket = resource.begin()
    assert ticket is not None
    assert isinstance(resource.state, Loading)

    assert resource.resolve(ticket.generation, ["a"]) is True
    assert resource.state == Loaded(["a"])
    assert resource.value == ["a"]


def test_begin_is_noop_while_loading() -> None:
    resource: Resource[int] = Resource(ResourceKey.DATABASES)
    first = resource.begin()
    assert first is not None
    assert resource.begin() is None
    assert resource.generation == first.generation


def test_superseded_completion_is_discarded() -> None:
    resource: Resource[str] = Resource(ResourceKey.QUERY_RESULT)
    request_a = resource.begin(context="x")
    request_b = resource.begin(context="x", supersede=True)
    assert request_a is not None and request_b is not None
    assert (request_a.generation, request_b.generation) == (1, 2)

    assert resource.resolve(request_b.generation, "V2") is True
    assert resource.resolve(request_a.generation, "V1") is False
    assert resource.state == Loaded("V2")


def test_stale_failure_is_discarded() -> None:
    resource: Resource[str] = Resource(ResourceKey.TABLES)
    old = resource.begin()
    new = resource.begin(supersede=True)
    assert old is not None and new is not None

    assert resource.fail(old.generation, "boom") is False
    assert resource.is_loading
    assert resource.fail(new.generation, "timeout") is True
    assert resource.state == Error("timeout")
    assert resource.error == "timeout"


def test_reload_from_loaded_blanks_previous_value() -> None:
    resource: Resource[str] = Resource(ResourceKey.COLLECTIONS)
    ticket = resource.begin()
    assert ticket is not None
    resource.resolve(ticket.generation, "first")

    again = resource.begin()
    assert again is not None
    assert isinstance(resource.state, Loading)
    assert resource.value is None


def test_retry_after_error() -> None:
    resource: Resource[str] = Resource(ResourceKey.SCHEMAS)
    ticket = resource.begin()
    assert ticket is not None
    resource.fail(ticket.generation, "down")

    retry = resource.begin()
    assert retry is not None
    assert resource.resolve(retry.generation, "up") is True


def test_reset_discards_in_flight_completion() -> None:
    resource: Resource[str] = Resource(ResourceKey.QUERY_RESULT)
    ticket = resource.begin(context=("question", 1))
    assert ticket is not None

    resource.reset()

    assert isinstance(resource.state, Idle)
    assert resource.context is None
    assert resource.resolve(ticket.generation, "late") is False
    assert isinstance(resource.state, Idle)


def test_reject_records_error_without_loading() -> None:
    resource: Resource[str] = Resource(ResourceKey.QUERY_RESULT)
    in_flight = resource.begin()
    assert in_flight is not None

    resource.reject("Invalid question ID: 0")

    assert resource.state == Error("Invalid question ID: 0")
    assert resource.resolve(in_flight.generation, "late") is False


def test_matches_only_active_context() -> None:
    resource: Resource[str] = Resource(ResourceKey.SCHEMAS)
    assert resource.matches(None) is False
    ticket = resource.begin(context=("database", 1))
    assert ticket is not None
    assert resource.matches(("database", 1)) is True
    assert resource.matches(("database", 2)) is False
    resource.fail(ticket.generation, "nope")
    assert resource.matches(("database", 1)) is False
