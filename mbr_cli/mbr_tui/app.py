"""Main loop for the interactive browser."""

from __future__ import annotations

import curses
from pathlib import Path
from typing import Any

from mbr_cli.shared.config import TUISettings
from mbr_cli.shared.exceptions import TerminalError
from mbr_cli.shared.logging import Logger

from . import action as act
from . import clipboard
from .dispatch import dispatch
from .events import EventSource, KeyEvent, ResizeEvent
from .keymap import translate
from .load_state import ResourceKey
from .render import draw, init_colors
from .service import ServiceBoundary, TaskRunner
from .state import AppState


def _completion_key(action: act.Action) -> tuple[ResourceKey, int] | None:
    if isinstance(action, (act.ResourceLoaded, act.ResourceLoadFailed)):
        return action.key, action.generation
    if isinstance(action, (act.QueryExecuted, act.QueryExecutionFailed)):
        return ResourceKey.QUERY_RESULT, action.generation
    return None


class App:
    """Owns the state, feeds it actions, and hands load requests to the runner."""

    def __init__(
        self,
        service: ServiceBoundary,
        settings: TUISettings,
        logger: Logger,
        *,
        runner: TaskRunner | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.state = AppState(
            page_size=settings.page_size,
            list_limit=settings.list_limit,
            preview_limit=settings.preview_limit,
        )
        self.runner = runner or TaskRunner(service, logger=logger)

    def handle(self, action: act.Action) -> None:
        if isinstance(action, act.CopyRecord):
            self.copy_record(action.fmt)
            return
        requests = dispatch(self.state, action)
        self.runner.submit_all(requests)

    def copy_record(self, fmt: str | None = None) -> None:
        """Copy the record in the open copy menu, then close the menu."""
        menu = self.state.copy_menu
        if menu is None:
            return
        fmt = fmt or menu.format
        text = clipboard.format_record(menu.record, fmt, include_header=menu.include_header)
        self.handle(act.CloseOverlay())
        try:
            clipboard.copy_text(text)
        except clipboard.ClipboardError as exc:
            self.logger.warning(f"Copy failed: {exc}")
            self.handle(act.ShowError(f"Copy failed: {exc}"))
            return
        self.logger.debug(f"Copied {len(text)} characters as {fmt}")
        self.handle(act.SetStatus(f"Copied as {clipboard.FORMAT_LABELS[fmt]}"))

    def drain(self) -> int:
        """Apply every queued completion; returns how many were drained."""
        completions = self.runner.drain()
        for completion in completions:
            tagged = _completion_key(completion)
            if tagged is not None:
                key, generation = tagged
                if generation != self.state.resource(key).generation:
                    self.logger.debug(f"Discarding stale completion {key.value}#{generation}")
            self.handle(completion)
        return len(completions)

    def start(self) -> None:
        self.handle(act.RequestLoad(ResourceKey.CURRENT_USER))

    def step(self, event: Any) -> None:
        if isinstance(event, KeyEvent):
            action = translate(self.state, event.key)
            if action is not None:
                self.handle(action)
        elif isinstance(event, ResizeEvent):
            self.handle(act.Resize(event.width, event.height))

    def run(self, screen: Any) -> None:
        """Drive the loop until quit; ``screen`` is the curses root window."""
        init_colors(self.settings.color)
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        screen.keypad(True)
        events = EventSource(screen, self.settings.tick_ms)
        height, width = screen.getmaxyx()
        self.handle(act.Resize(width, height))
        self.start()
        while True:
            self.drain()
            draw(screen, self.state)
            screen.refresh()
            if self.state.should_quit:
                break
            self.step(events.next())

    def close(self) -> None:
        self.runner.shutdown(wait=False)


def run_app(
    service: ServiceBoundary,
    settings: TUISettings,
    logger: Logger,
    *,
    log_file: str | Path | None = None,
) -> None:
    """Run the browser, restoring the terminal on every exit path."""
    if log_file:
        logger.redirect(log_file)
    else:
        logger.silence()
    app = App(service, settings, logger)
    logger.info("Starting interactive session.")
    try:
        curses.wrapper(app.run)
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    except curses.error as exc:
        raise TerminalError(f"Terminal error: {exc}") from exc
    finally:
        app.close()
        logger.info("Session ended.")
        logger.restore()
