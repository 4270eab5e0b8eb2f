"""
Core functionality for the docfx_metadata package.

This module contains the membership and metadata components:
- File filters and file groups (which files belong to a project)
- The DocFX project model
- Topic extraction and classification
- The metadata cache and its change feed
"""

from .config import MetadataConfig
from .file_filter import FileFilter
from .file_group import FileGroup
from .managers import TopicChangeFeed, TopicChangeSubscription, observe_topic_changes
from .metadata_cache import CacheState, MetadataCache
from .progress import CallbackProgressSink, LoggingProgressSink, ProgressLog, ProgressSink
from .project import DocFXProject, load_project
from .topics import categorize_topic, get_file_topics
from .types import TopicChange, TopicChangeType, TopicMetadata, TopicType

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
    # Progress
    "ProgressSink",
    "ProgressLog",
    "CallbackProgressSink",
    "LoggingProgressSink",
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
]
