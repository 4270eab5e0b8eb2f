"""
Progress reporting for long-running project scans.

Population of the metadata cache can take a while on large projects, so the
scan accepts an optional progress sink. A sink receives human-readable
messages as the scan advances and a single error if the scan fails.

Classes:
    ProgressSink: Protocol implemented by all sinks
    ProgressLog: Sink that records messages (handy for tests and batch tools)
    CallbackProgressSink: Sink that forwards messages to callables
    LoggingProgressSink: Sink that writes messages to the package logger
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from ..utils.logging_config import get_logger


@runtime_checkable
class ProgressSink(Protocol):
    def report(self, message: str) -> None: ...

    def error(self, exception: BaseException) -> None: ...


class ProgressLog:
    """Collects progress messages and errors in memory."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.errors: list[BaseException] = []

    def report(self, message: str) -> None:
        self.messages.append(message)

    def error(self, exception: BaseException) -> None:
        self.errors.append(exception)

    @property
    def failed(self) -> bool:
        return bool(self.errors)


class CallbackProgressSink:
    """Forwards progress to callables (e.g. a rich status line)."""

    def __init__(
        self,
        on_report: Callable[[str], None],
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self._on_report = on_report
        self._on_error = on_error

    def report(self, message: str) -> None:
        self._on_report(message)

    def error(self, exception: BaseException) -> None:
        if self._on_error:
            self._on_error(exception)


class LoggingProgressSink:
    """Writes progress to the package logger at debug level."""

    def __init__(self) -> None:
        self.logger = get_logger()

    def report(self, message: str) -> None:
        self.logger.debug(message, operation="progress")

    def error(self, exception: BaseException) -> None:
        self.logger.error(f"Scan failed: {exception}", operation="progress")
