"""
Error handling and reporting for docfx-metadata.

Every error raised by this package derives from :class:`DocFXMetadataError`,
which carries a category and a severity so callers can tell configuration
problems, cache-state problems and content-file problems apart without
inspecting messages.

Error Categories:
    - CONFIGURATION: Project file missing, unparsable or structurally invalid
    - CACHE_STATE: Metadata cache used without an open project
    - FILE_ACCESS: Content file missing or unreadable
    - PERMISSION: Permission denied while reading a file
    - ENCODING: Content file is not valid text
    - PARSING: Front matter or reference YAML could not be parsed

Example:
    >>> from docfx_metadata.utils.error_handling import ErrorCollector, handle_file_error
    >>> collector = ErrorCollector()
    >>> try:
    ...     Path("missing.md").read_text()
    ... except OSError as e:
    ...     handle_file_error(Path("missing.md"), "read", e, error_collector=collector)
    >>> collector.get_summary()["total_errors"]
    1
"""

from __future__ import annotations

import builtins
import sys
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

BuiltinPermissionError = builtins.PermissionError


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""

    CONFIGURATION = "configuration"
    CACHE_STATE = "cache_state"
    FILE_ACCESS = "file_access"
    PERMISSION = "permission"
    ENCODING = "encoding"
    PARSING = "parsing"
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """Detailed error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    file_path: Path | None = None
    exception_type: str | None = None
    traceback_str: str | None = None
    timestamp: float = field(default_factory=time.time)
    context: dict[str, Any] = field(default_factory=dict)
    suggestions: list[str] = field(default_factory=list)


class DocFXMetadataError(Exception):
    """Base exception for docfx-metadata errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        file_path: Path | None = None,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.category: ErrorCategory = category
        self.severity: ErrorSeverity = severity
        self.file_path: Path | None = file_path
        self.suggestions: list[str] = suggestions or []
        self.context: dict[str, Any] = context or {}
        self.timestamp: float = time.time()


class ConfigurationError(DocFXMetadataError):
    """Invalid package configuration (see MetadataConfig.validate)."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            suggestions=["Check the MetadataConfig values passed to the cache or project"],
            context=context,
        )


class ProjectLoadError(DocFXMetadataError):
    """A DocFX project file could not be loaded."""

    def __init__(
        self, message: str, project_file: Path, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            file_path=project_file,
            suggestions=[
                "Check that the project file exists and is valid JSON",
                'Verify the project file has a "build.content" array',
            ],
            context=context,
        )


class MetadataCacheError(DocFXMetadataError):
    """
    The metadata cache was used in a state that does not support the operation
    (for example, querying topics with no project open).
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CACHE_STATE,
            severity=severity,
            suggestions=["Open a DocFX project before using the metadata cache"],
            context=context,
        )

    @property
    def is_warning(self) -> bool:
        """Should the error be presented as a warning rather than a failure?"""
        return self.severity == ErrorSeverity.LOW

    @classmethod
    def warning(cls, message: str) -> MetadataCacheError:
        return cls(message, severity=ErrorSeverity.LOW)


class FileAccessError(DocFXMetadataError):
    """Error accessing files."""

    def __init__(
        self, message: str, file_path: Path, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.FILE_ACCESS,
            severity=ErrorSeverity.MEDIUM,
            file_path=file_path,
            context=context,
        )


class PermissionError(DocFXMetadataError):
    """Permission-related errors."""

    def __init__(
        self, message: str, file_path: Path, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.PERMISSION,
            severity=ErrorSeverity.HIGH,
            file_path=file_path,
            suggestions=["Check file permissions", "Verify file ownership"],
            context=context,
        )


class EncodingError(DocFXMetadataError):
    """Content file is not valid UTF-8 text."""

    def __init__(
        self,
        message: str,
        file_path: Path,
        encoding: str = "utf-8",
        context: dict[str, Any] | None = None,
    ) -> None:
        merged_context: dict[str, Any] = dict(context or {})
        merged_context["encoding"] = encoding

        super().__init__(
            message,
            category=ErrorCategory.ENCODING,
            severity=ErrorSeverity.LOW,
            file_path=file_path,
            suggestions=[f"Save the file as {encoding}", "Check if the file is binary"],
            context=merged_context,
        )


class ParsingError(DocFXMetadataError):
    """Structured content (YAML front matter, reference YAML) could not be parsed."""

    def __init__(
        self,
        message: str,
        file_path: Path,
        line_number: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.PARSING,
            severity=ErrorSeverity.LOW,
            file_path=file_path,
            suggestions=["Check the file's YAML syntax"],
            context=context,
        )
        self.line_number: int | None = line_number


class TopicParseError(ParsingError):
    """Topic metadata in a content file could not be parsed."""


class ErrorCollector:
    """Collects errors seen while scanning or watching content files."""

    def __init__(self, max_errors: int = 100) -> None:
        self.max_errors = max_errors
        self.errors: list[ErrorInfo] = []
        self.error_counts: dict[ErrorCategory, int] = {}

    def add_error(
        self,
        exception: Exception,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        file_path: Path | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Add an error to the collection."""
        if isinstance(exception, DocFXMetadataError):
            error_category = exception.category
            error_severity = exception.severity
            error_file_path = exception.file_path or file_path
            error_suggestions = exception.suggestions
            error_context = {**exception.context, **(context or {})}
        else:
            error_category = category or classify_exception(exception)
            error_severity = severity or ErrorSeverity.MEDIUM
            error_file_path = file_path
            error_suggestions = []
            error_context = context or {}

        error_info = ErrorInfo(
            category=error_category,
            severity=error_severity,
            message=str(exception),
            file_path=error_file_path,
            exception_type=type(exception).__name__,
            traceback_str=traceback.format_exc() if sys.exc_info()[0] else None,
            context=error_context,
            suggestions=error_suggestions,
        )

        if len(self.errors) < self.max_errors:
            self.errors.append(error_info)

        self.error_counts[error_category] = self.error_counts.get(error_category, 0) + 1

    def get_errors_by_category(self, category: ErrorCategory) -> list[ErrorInfo]:
        return [error for error in self.errors if error.category == category]

    def get_errors_by_severity(self, severity: ErrorSeverity) -> list[ErrorInfo]:
        return [error for error in self.errors if error.severity == severity]

    def get_summary(self) -> dict[str, Any]:
        """Get error summary statistics."""
        return {
            "total_errors": sum(self.error_counts.values()),
            "by_category": {category.value: n for category, n in self.error_counts.items()},
            "by_severity": {
                severity.value: len(self.get_errors_by_severity(severity))
                for severity in ErrorSeverity
            },
        }

    def clear(self) -> None:
        self.errors.clear()
        self.error_counts.clear()


def classify_exception(exception: BaseException) -> ErrorCategory:
    """Map a builtin or library exception onto an error category."""
    if isinstance(exception, (FileNotFoundError, IsADirectoryError, NotADirectoryError)):
        return ErrorCategory.FILE_ACCESS
    if isinstance(exception, BuiltinPermissionError):
        return ErrorCategory.PERMISSION
    if isinstance(exception, UnicodeError):
        return ErrorCategory.ENCODING
    if isinstance(exception, yaml.YAMLError):
        return ErrorCategory.PARSING
    if isinstance(exception, OSError):
        return ErrorCategory.FILE_ACCESS
    return ErrorCategory.UNKNOWN


def handle_file_error(
    file_path: Path,
    operation: str,
    exception: Exception,
    error_collector: ErrorCollector | None = None,
    logger: Any | None = None,
) -> DocFXMetadataError:
    """
    Classify a content-file error, record it and log it.

    Args:
        file_path: Path to the file that caused the error
        operation: Operation being performed (e.g. "read", "parse", "extract")
        exception: The exception that occurred
        error_collector: Optional error collector to add the error to
        logger: Optional MetadataLogger to log the error

    Returns:
        The classified error (not raised).
    """
    error: DocFXMetadataError
    if isinstance(exception, DocFXMetadataError):
        error = exception
    elif isinstance(exception, BuiltinPermissionError):
        error = PermissionError(f"Permission denied during {operation}: {exception}", file_path)
    elif isinstance(exception, OSError):
        error = FileAccessError(f"Cannot {operation} file: {exception}", file_path)
    elif isinstance(exception, UnicodeError):
        error = EncodingError(f"Encoding error during {operation}: {exception}", file_path)
    elif isinstance(exception, yaml.YAMLError):
        mark = getattr(exception, "problem_mark", None)
        line_number = mark.line + 1 if mark is not None else None
        error = ParsingError(
            f"Parsing error during {operation}: {exception}", file_path, line_number
        )
    else:
        error = DocFXMetadataError(
            f"Unexpected error during {operation}: {exception}", file_path=file_path
        )

    if error_collector:
        error_collector.add_error(error)

    if logger:
        logger.log_file_error(str(file_path), str(error), operation=operation)

    return error


def create_error_report(error_collector: ErrorCollector) -> str:
    """Create a human-readable error report."""
    if not error_collector.errors:
        return "No errors occurred while processing content files."

    summary = error_collector.get_summary()

    report = ["Content File Error Report", "=" * 50, ""]
    report.append(f"Total errors: {summary['total_errors']}")
    report.append("")

    report.append("Errors by category:")
    for category, count in summary["by_category"].items():
        report.append(f"  {category}: {count}")
    report.append("")

    for category in ErrorCategory:
        errors = error_collector.get_errors_by_category(category)
        if not errors:
            continue
        report.append(f"{category.value} errors:")
        for error in errors:
            location = f" ({error.file_path})" if error.file_path else ""
            report.append(f"  - [{error.severity.value}] {error.message}{location}")
        report.append("")

    return "\n".join(report).rstrip()
