"""Terminal input polling with a fixed tick cadence."""

from __future__ import annotations

import curses
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class KeyEvent:
    """A key press: a one-character string or a ``curses.KEY_*`` code."""

    key: Union[str, int]


@dataclass(frozen=True, slots=True)
class ResizeEvent:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class TickEvent:
    pass


Event = Union[KeyEvent, ResizeEvent, TickEvent]


class EventSource:
    """One blocking-with-timeout poll per loop iteration.

    Input is returned as soon as it is available; otherwise a ``TickEvent`` is
    returned once ``tick_ms`` elapses, so the loop redraws at least once per tick.
    """

    def __init__(self, screen: Any, tick_ms: int) -> None:
        if tick_ms <= 0:
            raise ValueError("tick_ms must be positive")
        self.screen = screen
        self.tick_ms = tick_ms
        screen.timeout(tick_ms)

    def next(self) -> Event:
        try:
            key = self.screen.get_wch()
        except curses.error:
            # get_wch raises when the timeout expires with no input.
            return TickEvent()
        if key == curses.KEY_RESIZE:
            height, width = self.screen.getmaxyx()
            return ResizeEvent(width=width, height=height)
        return KeyEvent(key)
