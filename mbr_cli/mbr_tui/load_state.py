"""Generation-tagged load lifecycle for remotely fetched resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Hashable, TypeVar, Union

T = TypeVar("T")


class ResourceKey(str, Enum):
    QUESTIONS = "questions"
    COLLECTIONS = "collections"
    DATABASES = "databases"
    SCHEMAS = "schemas"
    TABLES = "tables"
    QUERY_RESULT = "query_result"
    CURRENT_USER = "current_user"


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Loading:
    pass


@dataclass(frozen=True, slots=True)
class Loaded(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Error:
    message: str


LoadState = Union[Idle, Loading, Loaded, Error]


@dataclass(frozen=True, slots=True)
class LoadTicket:
    """Capability to complete one particular load of a resource."""

    key: ResourceKey
    generation: int
    context: Hashable = None


@dataclass(slots=True)
class Resource(Generic[T]):
    """A ``LoadState`` plus the generation counter that guards it.

    Completions carry the generation of the ticket they were issued for; any
    completion that is not for the latest generation is discarded unchanged.
    """

    key: ResourceKey
    state: LoadState = field(default_factory=Idle)
    generation: int = 0
    context: Hashable = None

    @property
    def is_loading(self) -> bool:
        return isinstance(self.state, Loading)

    @property
    def is_loaded(self) -> bool:
        return isinstance(self.state, Loaded)

    @property
    def value(self) -> Any:
        """The loaded value, or ``None`` in every other state."""
        if isinstance(self.state, Loaded):
            return self.state.value
        return None

    @property
    def error(self) -> str | None:
        if isinstance(self.state, Error):
            return self.state.message
        return None

    def begin(self, context: Hashable = None, *, supersede: bool = False) -> LoadTicket | None:
        """Start a load; returns ``None`` if one is already in flight.

        ``supersede`` forces a new generation even while loading, so a pending
        completion for the older request is ignored when it lands.
        """
        if self.is_loading and not supersede:
            return None
        self.generation += 1
        self.context = context
        self.state = Loading()
        return LoadTicket(key=self.key, generation=self.generation, context=context)

    def resolve(self, generation: int, value: T) -> bool:
        if generation != self.generation or not self.is_loading:
            return False
        self.state = Loaded(value)
        return True

    def fail(self, generation: int, message: str) -> bool:
        if generation != self.generation or not self.is_loading:
            return False
        self.state = Error(message)
        return True

    def reset(self) -> None:
        self.generation += 1
        self.context = None
        self.state = Idle()

    def reject(self, message: str, context: Hashable = None) -> None:
        """Record a validation failure without starting a load."""
        self.generation += 1
        self.context = context
        self.state = Error(message)

    def matches(self, context: Hashable) -> bool:
        return self.context == context and isinstance(self.state, (Loading, Loaded))


def new_resources() -> dict[ResourceKey, Resource[Any]]:
    return {key: Resource(key) for key in ResourceKey}
