"""Message and error reporting for subtree operations.

The command builder never talks to a global logger. It receives a reporter
at construction time and sends every user-facing message through it, so the
CLI can route messages to :mod:`logging` while tests record them.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

from subtree_builder.errors import SubtreeError

LOG = logging.getLogger(__name__)

Severity = Literal["ok", "info", "warning", "notice"]

_LEVELS: dict[str, int] = {
    "ok": logging.INFO,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
}


class Reporter(Protocol):
    """Sink for operation messages and registered errors."""

    def log(self, text: str, severity: Severity = "ok") -> None:
        """Record a message; never raises and never blocks."""

    def error(self, text: str) -> SubtreeError:
        """Register a user-visible error and return it for the caller to raise."""


class LoggingReporter:
    """Reporter backed by the standard :mod:`logging` module."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or LOG
        self.errors: list[SubtreeError] = []

    def log(self, text: str, severity: Severity = "ok") -> None:
        level = _LEVELS.get(severity, logging.INFO)
        if severity == "notice":
            text = f"Notice: {text}"
        self.logger.log(level, text)

    def error(self, text: str) -> SubtreeError:
        exc = SubtreeError(text)
        self.errors.append(exc)
        return exc


def configure_logging(verbosity: int) -> None:
    """Set the root log level from a -v count: WARNING, then INFO, then DEBUG."""
    levels = (logging.WARNING, logging.INFO, logging.DEBUG)
    level = levels[min(max(verbosity, 0), len(levels) - 1)]
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
