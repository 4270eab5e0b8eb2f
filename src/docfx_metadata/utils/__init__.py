"""
Utility functions and helper modules.

This module contains the helpers shared by the core components:
- Structured file reading (JSON, tagged YAML, Markdown front matter)
- Glob pattern compilation and expansion
- File watching
- Error handling and logging
"""

from .error_handling import (
    DocFXMetadataError,
    EncodingError,
    ErrorCollector,
    FileAccessError,
    MetadataCacheError,
    ParsingError,
    PermissionError,
    ProjectLoadError,
    TopicParseError,
    create_error_report,
    handle_file_error,
)
from .file_watcher import EventType, FileEvent, FileWatcher
from .helpers import (
    compile_patterns,
    expand_pattern,
    read_json,
    read_yaml,
    read_yaml_front_matter,
    relative_posix_path,
)
from .logging_config import configure_logging, disable_logging, enable_debug_logging, get_logger

__all__ = [
    # Error handling
    "DocFXMetadataError",
    "EncodingError",
    "ErrorCollector",
    "FileAccessError",
    "MetadataCacheError",
    "ParsingError",
    "PermissionError",
    "ProjectLoadError",
    "TopicParseError",
    "create_error_report",
    "handle_file_error",
    # File watching
    "EventType",
    "FileEvent",
    "FileWatcher",
    # Helpers
    "compile_patterns",
    "expand_pattern",
    "read_json",
    "read_yaml",
    "read_yaml_front_matter",
    "relative_posix_path",
    # Logging
    "configure_logging",
    "disable_logging",
    "enable_debug_logging",
    "get_logger",
]
