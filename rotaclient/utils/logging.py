from __future__ import annotations
"""Rich-backed logger for rotaclient.

The package logs under ``rotaclient``; :func:`get` attaches a
:class:`rich.logging.RichHandler` once and sets the level.
"""
from logging import Formatter, Logger, getLogger, INFO, DEBUG, WARNING, ERROR

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["console", "log", "get"]

console = Console()

_LEVEL_MAP = {
    "info": INFO,
    "debug": DEBUG,
    "warning": WARNING,
    "error": ERROR,
}

log: Logger = getLogger("rotaclient")


def _ensure_handler(lg: Logger) -> None:
    if any(isinstance(h, RichHandler) for h in lg.handlers):
        return
    handler = RichHandler(console=console, rich_tracebacks=True, markup=False, show_path=False)
    handler.setFormatter(Formatter("%(message)s", datefmt="%H:%M:%S"))
    lg.addHandler(handler)


def get(level: str = "info") -> Logger:  # noqa: D401
    """Return the package logger with *level* (str) and a Rich handler."""
    lvl = _LEVEL_MAP.get(level.lower(), INFO)
    lg = getLogger("rotaclient")
    _ensure_handler(lg)
    lg.setLevel(lvl)
    return lg
