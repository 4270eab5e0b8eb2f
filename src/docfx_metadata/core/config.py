"""
Configuration module for docfx-metadata.

This module defines the MetadataConfig class which collects the tunables shared
by the project model, topic extractor, change feed and metadata cache.

Key Configuration Areas:
    - Content formats: which extensions carry conceptual and reference topics
    - Membership: patterns ignored when reading file groups, symlink handling,
      directory pruning while expanding globs
    - Persistence: cache file name and JSON indentation
    - Watching: whether the cache follows file changes, and event debouncing

Example:
    >>> from docfx_metadata.core.config import MetadataConfig
    >>> config = MetadataConfig(watch_changes=True, debounce_delay=0.2)
    >>> config.topic_extensions()
    ('.md', '.yml')
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..utils.error_handling import ConfigurationError

DEFAULT_CACHE_FILE = "topic-cache.json"


@dataclass(slots=True)
class MetadataConfig:
    # Content formats
    conceptual_extensions: tuple[str, ...] = (".md",)
    reference_extensions: tuple[str, ...] = (".yml",)

    # Membership
    # Swagger files are declared in file groups but never carry topics
    ignored_pattern_suffixes: tuple[str, ...] = (".json",)
    follow_symlinks: bool = False
    # if True, prune excluded directories while expanding include patterns
    dir_prune_exclude: bool = True

    # Persistence
    cache_file_name: str = DEFAULT_CACHE_FILE
    persist_indent: int | None = 4

    # Watching
    watch_changes: bool = False
    debounce_delay: float = 0.1

    def topic_extensions(self) -> tuple[str, ...]:
        """Extensions of all files that may contain topics."""
        return self.conceptual_extensions + self.reference_extensions

    def watch_patterns(self) -> list[str]:
        """Glob patterns (relative to a base directory) for files worth watching."""
        return [f"**/*{extension}" for extension in self.topic_extensions()]

    def is_conceptual_file(self, path: Path | str) -> bool:
        return Path(path).suffix.lower() in self.conceptual_extensions

    def is_reference_file(self, path: Path | str) -> bool:
        return Path(path).suffix.lower() in self.reference_extensions

    def is_content_pattern(self, pattern: str) -> bool:
        """Should a file-group pattern be considered when resolving content files?"""
        return not pattern.lower().endswith(self.ignored_pattern_suffixes)

    def resolve_cache_file(self, state_directory: Path | str) -> Path:
        return Path(state_directory) / self.cache_file_name

    def validate(self) -> None:
        """Validate configuration and raise ConfigurationError on issues.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        for field_name in ("conceptual_extensions", "reference_extensions"):
            extensions = getattr(self, field_name)
            bad = [ext for ext in extensions if not ext.startswith(".") or ext != ext.lower()]
            if bad:
                raise ConfigurationError(
                    "Extensions must be lower-case and start with '.'",
                    context={"field": field_name, "value": bad},
                )

        overlap = set(self.conceptual_extensions) & set(self.reference_extensions)
        if overlap:
            raise ConfigurationError(
                "An extension cannot be both conceptual and reference",
                context={"value": sorted(overlap)},
            )

        if not self.cache_file_name or Path(self.cache_file_name).name != self.cache_file_name:
            raise ConfigurationError(
                "Cache file name must be a plain file name",
                context={"field": "cache_file_name", "value": self.cache_file_name},
            )

        if self.debounce_delay < 0:
            raise ConfigurationError(
                "Debounce delay must be non-negative",
                context={"field": "debounce_delay", "value": self.debounce_delay},
            )

        if self.persist_indent is not None and self.persist_indent < 0:
            raise ConfigurationError(
                "Persist indent must be non-negative (or None for compact output)",
                context={"field": "persist_indent", "value": self.persist_indent},
            )
