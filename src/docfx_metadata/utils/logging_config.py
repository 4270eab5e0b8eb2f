from __future__ import annotations

import json
import logging
import logging.handlers
import sys
import time
from enum import Enum
from pathlib import Path
from typing import Any

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class LogLevel(str, Enum):
    """Available log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Available log formats."""

    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"
    STRUCTURED = "structured"


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}


class MetadataLogger:
    """
    Logging front-end for docfx-metadata with configurable output format,
    console/file handlers and helpers for scan and cache events.
    """

    def __init__(
        self,
        name: str = "docfx_metadata",
        level: LogLevel = LogLevel.INFO,
        format_type: LogFormat = LogFormat.SIMPLE,
        log_file: Path | None = None,
        max_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        enable_console: bool = True,
        enable_file: bool = False,
    ):
        self.name = name
        self.level = level
        self.format_type = format_type
        self.log_file = log_file
        self.max_file_size = max_file_size
        self.backup_count = backup_count
        self.enable_console = enable_console
        self.enable_file = enable_file

        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.value))
        self.logger.handlers.clear()

        self._setup_handlers()

    def _setup_handlers(self) -> None:
        if self.enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, self.level.value))
            console_handler.setFormatter(self._get_formatter())
            self.logger.addHandler(console_handler)

        if self.enable_file and self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=self.max_file_size,
                backupCount=self.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(getattr(logging, self.level.value))
            file_handler.setFormatter(self._get_formatter())
            self.logger.addHandler(file_handler)

    def _get_formatter(self) -> logging.Formatter:
        if self.format_type == LogFormat.DETAILED:
            return logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
            )
        if self.format_type == LogFormat.JSON:
            return JsonFormatter()
        if self.format_type == LogFormat.STRUCTURED:
            return StructuredFormatter()
        return logging.Formatter("%(levelname)s: %(message)s")

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.logger.error(message, extra=kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self.logger.critical(message, extra=kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self.logger.exception(message, extra=kwargs)

    def log_scan_start(self, project_file: str, file_count: int, **kwargs: Any) -> None:
        self.info(
            f"Scanning {file_count} content files in project: '{project_file}'",
            operation="scan_start",
            project_file=project_file,
            file_count=file_count,
            **kwargs,
        )

    def log_scan_complete(
        self, project_file: str, topic_count: int, elapsed_ms: float, **kwargs: Any
    ) -> None:
        self.info(
            f"Scan completed: project='{project_file}', topics={topic_count}, time={elapsed_ms:.2f}ms",
            operation="scan_complete",
            project_file=project_file,
            topic_count=topic_count,
            elapsed_ms=elapsed_ms,
            **kwargs,
        )

    def log_file_error(self, file_path: str, error: str, **kwargs: Any) -> None:
        self.error(
            f"File error: {file_path} - {error}",
            operation=kwargs.pop("operation", "file_error"),
            file_path=file_path,
            error=error,
            **kwargs,
        )

    def log_cache_event(self, event: str, topic_count: int, **kwargs: Any) -> None:
        self.debug(
            f"Metadata cache {event}: topics={topic_count}",
            operation=f"cache_{event}",
            topic_count=topic_count,
            **kwargs,
        )


class JsonFormatter(logging.Formatter):
    """One JSON object per log line, including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": time.time(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        log_entry.update(_extra_fields(record))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class StructuredFormatter(logging.Formatter):
    """Human-readable line followed by ``key=value`` pairs for ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        base = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"

        extra = _extra_fields(record)
        if extra:
            base += " | " + " ".join(f"{key}={value}" for key, value in extra.items())

        if record.exc_info:
            base += f"\n{self.formatException(record.exc_info)}"

        return base


_global_logger: MetadataLogger | None = None


def get_logger() -> MetadataLogger:
    """Get the global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = MetadataLogger()
    return _global_logger


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    format_type: LogFormat = LogFormat.SIMPLE,
    log_file: Path | None = None,
    enable_console: bool = True,
    enable_file: bool = False,
    **kwargs: Any,
) -> MetadataLogger:
    """Configure global logging settings."""
    global _global_logger
    _global_logger = MetadataLogger(
        level=level,
        format_type=format_type,
        log_file=log_file,
        enable_console=enable_console,
        enable_file=enable_file,
        **kwargs,
    )
    return _global_logger


def disable_logging() -> None:
    global _global_logger
    if _global_logger:
        _global_logger.logger.setLevel(logging.CRITICAL + 1)


def enable_debug_logging() -> None:
    """Enable debug logging for troubleshooting."""
    global _global_logger
    if _global_logger:
        _global_logger.level = LogLevel.DEBUG
        _global_logger.logger.setLevel(logging.DEBUG)
        for handler in _global_logger.logger.handlers:
            handler.setLevel(logging.DEBUG)
