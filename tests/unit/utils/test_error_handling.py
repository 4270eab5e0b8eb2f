"""Tests for docfx_metadata.utils.error_handling module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

from docfx_metadata.utils.error_handling import (
    ConfigurationError,
    DocFXMetadataError,
    EncodingError,
    ErrorCategory,
    ErrorCollector,
    ErrorSeverity,
    FileAccessError,
    MetadataCacheError,
    ParsingError,
    PermissionError,
    ProjectLoadError,
    TopicParseError,
    classify_exception,
    create_error_report,
    handle_file_error,
)


class TestDocFXMetadataError:
    """Tests for the base error and its subclasses."""

    def test_defaults(self):
        error = DocFXMetadataError("boom")
        assert str(error) == "boom"
        assert error.message == "boom"
        assert error.category == ErrorCategory.UNKNOWN
        assert error.severity == ErrorSeverity.MEDIUM
        assert error.suggestions == []
        assert error.context == {}

    def test_configuration_error(self):
        error = ConfigurationError("bad", context={"field": "x"})
        assert error.category == ErrorCategory.CONFIGURATION
        assert error.severity == ErrorSeverity.HIGH
        assert error.context == {"field": "x"}

    def test_project_load_error(self):
        error = ProjectLoadError("missing", Path("docfx.json"))
        assert error.category == ErrorCategory.CONFIGURATION
        assert error.file_path == Path("docfx.json")
        assert error.suggestions

    def test_metadata_cache_error(self):
        error = MetadataCacheError("No project")
        assert error.category == ErrorCategory.CACHE_STATE
        assert not error.is_warning

        warning = MetadataCacheError.warning("Not yet populated")
        assert warning.severity == ErrorSeverity.LOW
        assert warning.is_warning

    def test_encoding_error_context(self):
        error = EncodingError("bad bytes", Path("a.md"), encoding="utf-16")
        assert error.category == ErrorCategory.ENCODING
        assert error.context["encoding"] == "utf-16"

    def test_topic_parse_error_is_parsing_error(self):
        error = TopicParseError("bad yaml", Path("a.yml"))
        assert isinstance(error, ParsingError)
        assert error.category == ErrorCategory.PARSING
        assert error.line_number is None

    def test_permission_error_shadows_builtin(self):
        error = PermissionError("denied", Path("a.md"))
        assert isinstance(error, DocFXMetadataError)
        assert error.category == ErrorCategory.PERMISSION


class TestClassifyException:
    @pytest.mark.parametrize(
        "exception,expected",
        [
            (FileNotFoundError("x"), ErrorCategory.FILE_ACCESS),
            (IsADirectoryError("x"), ErrorCategory.FILE_ACCESS),
            (OSError("x"), ErrorCategory.FILE_ACCESS),
            (UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid"), ErrorCategory.ENCODING),
            (yaml.YAMLError("x"), ErrorCategory.PARSING),
            (ValueError("x"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_classify(self, exception, expected):
        assert classify_exception(exception) == expected

    def test_builtin_permission_error(self):
        import builtins

        assert classify_exception(builtins.PermissionError("x")) == ErrorCategory.PERMISSION


class TestErrorCollector:
    def test_add_docfx_error(self):
        collector = ErrorCollector()
        collector.add_error(ParsingError("bad", Path("a.md")), context={"extra": 1})

        assert len(collector.errors) == 1
        info = collector.errors[0]
        assert info.category == ErrorCategory.PARSING
        assert info.severity == ErrorSeverity.LOW
        assert info.file_path == Path("a.md")
        assert info.exception_type == "ParsingError"
        assert info.context == {"extra": 1}

    def test_add_builtin_error(self):
        collector = ErrorCollector()
        collector.add_error(FileNotFoundError("gone"), file_path=Path("b.md"))

        info = collector.errors[0]
        assert info.category == ErrorCategory.FILE_ACCESS
        assert info.severity == ErrorSeverity.MEDIUM
        assert info.file_path == Path("b.md")

    def test_max_errors_still_counts(self):
        collector = ErrorCollector(max_errors=2)
        for _ in range(5):
            collector.add_error(OSError("x"))

        assert len(collector.errors) == 2
        assert collector.get_summary()["total_errors"] == 5

    def test_summary_and_filters(self):
        collector = ErrorCollector()
        collector.add_error(ParsingError("a", Path("a.md")))
        collector.add_error(FileAccessError("b", Path("b.md")))

        summary = collector.get_summary()
        assert summary["by_category"] == {"parsing": 1, "file_access": 1}
        assert summary["by_severity"]["low"] == 1
        assert summary["by_severity"]["medium"] == 1
        assert len(collector.get_errors_by_category(ErrorCategory.PARSING)) == 1
        assert len(collector.get_errors_by_severity(ErrorSeverity.MEDIUM)) == 1

    def test_clear(self):
        collector = ErrorCollector()
        collector.add_error(OSError("x"))
        collector.clear()
        assert collector.errors == []
        assert collector.get_summary()["total_errors"] == 0


class TestHandleFileError:
    @pytest.mark.parametrize(
        "exception,error_type",
        [
            (OSError("unreadable"), FileAccessError),
            (UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid"), EncodingError),
            (yaml.YAMLError("bad"), ParsingError),
            (RuntimeError("odd"), DocFXMetadataError),
        ],
    )
    def test_classifies(self, exception, error_type):
        error = handle_file_error(Path("a.md"), "extract", exception)
        assert isinstance(error, error_type)
        assert "extract" in error.message

    def test_builtin_permission_error(self):
        import builtins

        error = handle_file_error(Path("a.md"), "read", builtins.PermissionError("denied"))
        assert isinstance(error, PermissionError)
        assert error.category == ErrorCategory.PERMISSION

    def test_docfx_error_passes_through(self):
        original = TopicParseError("bad yaml", Path("a.yml"))
        assert handle_file_error(Path("a.yml"), "extract", original) is original

    def test_records_and_logs(self):
        collector = ErrorCollector()
        logger = MagicMock()

        handle_file_error(Path("a.md"), "extract", OSError("gone"), collector, logger)

        assert collector.get_summary()["total_errors"] == 1
        logger.log_file_error.assert_called_once()
        args, kwargs = logger.log_file_error.call_args
        assert args[0] == "a.md"
        assert kwargs["operation"] == "extract"


class TestCreateErrorReport:
    def test_no_errors(self):
        assert "No errors" in create_error_report(ErrorCollector())

    def test_report(self):
        collector = ErrorCollector()
        collector.add_error(ParsingError("bad front matter", Path("a.md")))

        report = create_error_report(collector)
        assert "Total errors: 1" in report
        assert "parsing: 1" in report
        assert "[low] bad front matter (a.md)" in report

    def test_report_groups_errors_by_category(self):
        collector = ErrorCollector()
        collector.add_error(ParsingError("bad front matter", Path("a.md")))
        collector.add_error(FileAccessError("cannot read", Path("b.md")))
        collector.add_error(ParsingError("bad yaml", Path("c.yml")))

        lines = create_error_report(collector).splitlines()
        access = lines.index("file_access errors:")
        parsing = lines.index("parsing errors:")
        assert access < parsing
        assert "cannot read (b.md)" in lines[access + 1]
        assert "bad front matter (a.md)" in lines[parsing + 1]
        assert "bad yaml (c.yml)" in lines[parsing + 2]
        assert lines[-1].endswith("bad yaml (c.yml)")
