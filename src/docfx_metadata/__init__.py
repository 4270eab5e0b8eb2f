"""
docfx_metadata: Topic metadata for DocFX documentation projects.

This package works out which files belong to a DocFX project (from the
``build.content`` file groups in ``docfx.json``), extracts lightweight topic
metadata (UIDs, names, titles, types) from those files, and keeps a persisted
cache of that metadata in step with changes on disk.

Main Classes:
    MetadataCache: Topic metadata cache with lazy population and change tracking
    DocFXProject: A loaded DocFX project; answers "which files are content?"
    FileGroup: One ``build.content`` entry (base directory + patterns)
    FileFilter: Include/exclude glob matching relative to a base directory
    TopicChangeFeed: Shared file watcher that publishes topic changes
    MetadataConfig: Tunables shared by all of the above

Example Usage:
    >>> from docfx_metadata import MetadataCache
    >>> cache = MetadataCache(".docfx-state")
    >>> await cache.open_project("docs/docfx.json")
    >>> await cache.ensure_populated()
    True
    >>> cache.get_topic("Index").title
    'Example article'

    CLI usage:
        $ docfx-metadata files docs/docfx.json --ext .md
        $ docfx-metadata topics docs/docfx.json --prefix System.
"""

from .core.config import MetadataConfig
from .core.file_filter import FileFilter
from .core.file_group import FileGroup
from .core.managers.topic_changes import (
    TopicChangeFeed,
    TopicChangeSubscription,
    observe_topic_changes,
)
from .core.metadata_cache import CacheState, MetadataCache
from .core.progress import ProgressLog, ProgressSink
from .core.project import DocFXProject, load_project
from .core.topics import categorize_topic, get_file_topics
from .core.types import TopicChange, TopicChangeType, TopicMetadata, TopicType
from .utils.error_handling import (
    ConfigurationError,
    DocFXMetadataError,
    MetadataCacheError,
    ProjectLoadError,
    TopicParseError,
)
from .utils.logging_config import configure_logging, disable_logging, enable_debug_logging, get_logger

# Package metadata
__version__ = "0.1.0"
__description__ = "Topic metadata cache for DocFX documentation projects"

# Public API
__all__ = [
    # Main classes
    "MetadataCache",
    "CacheState",
    "DocFXProject",
    "FileGroup",
    "FileFilter",
    "MetadataConfig",
    "TopicChangeFeed",
    "TopicChangeSubscription",
    "ProgressSink",
    "ProgressLog",
    # Data types
    "TopicType",
    "TopicChangeType",
    "TopicMetadata",
    "TopicChange",
    # Functions
    "categorize_topic",
    "get_file_topics",
    "load_project",
    "observe_topic_changes",
    # Logging and configuration
    "configure_logging",
    "get_logger",
    "enable_debug_logging",
    "disable_logging",
    # Exception classes
    "DocFXMetadataError",
    "ConfigurationError",
    "ProjectLoadError",
    "MetadataCacheError",
    "TopicParseError",
    # Package metadata
    "__version__",
    "__description__",
]
