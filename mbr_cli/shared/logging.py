"""Rich-based logging helpers shared across CLI tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from rich.console import Console
from rich.theme import Theme
from rich.traceback import install

install(show_locals=False)

_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "debug": "dim",
    }
)

# Rich consoles separate stdout (for structured payloads) and stderr (for log chatter).
#
# Highlighting is disabled for plain strings so question names such as "Revenue 2024-Q1"
# are printed verbatim and CLI output stays stable under FORCE_COLOR.
_stdout_console = Console(theme=_THEME, highlight=False)
_stderr_console = Console(stderr=True, theme=_THEME, highlight=False)
_verbose_console = Console(stderr=True, theme=_THEME, highlight=False)


@dataclass(slots=True)
class Logger:
    """Lightweight logger facade backed by Rich consoles.

    While the curses session owns the terminal, nothing may be written to stdout or
    stderr. ``redirect`` points every level at a file-backed console instead, and
    ``silence`` drops messages entirely when no log file was requested.
    """

    verbose: bool = False
    sink: Console | None = None
    muted: bool = False
    _handle: IO[str] | None = field(default=None, repr=False)

    @property
    def console(self) -> Console:
        return _stdout_console

    def info(self, message: str) -> None:
        self._emit(_stderr_console, message, "info")

    def success(self, message: str) -> None:
        self._emit(_stderr_console, message, "success")

    def warning(self, message: str) -> None:
        self._emit(_stderr_console, message, "warning")

    def error(self, message: str) -> None:
        self._emit(_stderr_console, message, "error")

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit(_verbose_console, message, "debug")

    def redirect(self, path: str | Path) -> None:
        """Send all further messages to ``path`` (appending)."""
        self.close()
        target = Path(path).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        self._handle = target.open("a", encoding="utf-8")
        self.sink = Console(file=self._handle, theme=_THEME, highlight=False, no_color=True, log_path=False)
        self.muted = False

    def silence(self) -> None:
        self.muted = True

    def restore(self) -> None:
        """Return to terminal output after a redirect or silence."""
        self.close()
        self.muted = False

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self.sink = None

    def _emit(self, default: Console, message: str, style: str) -> None:
        if self.sink is not None:
            self.sink.log(f"[{style}] {message}", markup=False)
            return
        if self.muted:
            return
        default.print(message, style=style, markup=False)


def get_logger(verbose: bool = False) -> Logger:
    """Return a configured Logger instance."""
    return Logger(verbose=verbose)
