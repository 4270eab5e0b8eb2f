"""
File groups declared in a DocFX project's ``build.content`` section.

Each group has its own base directory (the project directory joined with the
group's optional ``src``) and its own include/exclude patterns, so membership
has to be resolved per group rather than through a single merged filter.

Example:
    >>> group = FileGroup.from_config(
    ...     Path("/docs"), {"files": ["articles/**.md"], "exclude": ["**/drafts/**"]}
    ... )
    >>> group.includes_file("/docs/articles/intro.md")
    True
    >>> files = await group.list_files(".md")
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from ..utils.helpers import expand_pattern
from ..utils.logging_config import get_logger
from .config import MetadataConfig
from .file_filter import FileFilter


def _as_pattern_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(pattern) for pattern in value if pattern]


def normalize_extensions(extensions: tuple[str, ...] | list[str]) -> set[str]:
    """Lower-case extensions and give each a leading dot."""
    return {
        extension.lower() if extension.startswith(".") else f".{extension.lower()}"
        for extension in extensions
        if extension
    }


class FileGroup:
    """A group of content files: a base directory plus include/exclude patterns."""

    def __init__(
        self,
        base_dir: Path | str,
        include_patterns: list[str],
        exclude_patterns: list[str] | None = None,
        relative_base_dir: str = "",
        dest: str | None = None,
        config: MetadataConfig | None = None,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.relative_base_dir = relative_base_dir
        self.dest = dest
        self.config = config or MetadataConfig()
        self.filter = FileFilter(self.base_dir, include_patterns, exclude_patterns)

    @classmethod
    def from_config(
        cls,
        project_dir: Path,
        entry: dict[str, Any],
        config: MetadataConfig | None = None,
    ) -> FileGroup | None:
        """
        Create a file group from one ``build.content`` entry.

        Returns:
            The file group, or None if the entry declares no content patterns
            (for example, a group that only lists Swagger JSON files).
        """
        config = config or MetadataConfig()

        include_patterns = [
            pattern
            for pattern in _as_pattern_list(entry.get("files"))
            if config.is_content_pattern(pattern)
        ]
        if not include_patterns:
            return None

        exclude_patterns = [
            pattern
            for pattern in _as_pattern_list(entry.get("exclude"))
            if config.is_content_pattern(pattern)
        ]

        src = str(entry.get("src") or "")
        dest = entry.get("dest")
        return cls(
            base_dir=project_dir / src,
            include_patterns=include_patterns,
            exclude_patterns=exclude_patterns,
            relative_base_dir=src,
            dest=str(dest) if dest is not None else None,
            config=config,
        )

    @property
    def include_patterns(self) -> list[str]:
        return self.filter.include_patterns

    @property
    def exclude_patterns(self) -> list[str]:
        return self.filter.exclude_patterns

    def includes_file(self, file_path: Path | str) -> bool:
        """Is the specified file included in the group?"""
        return self.filter.should_include(file_path)

    async def list_files(self, *extensions: str) -> list[Path]:
        """
        List the files in the group.

        Args:
            *extensions: Optional file extensions (case-insensitive) used to
                filter the results.

        Returns:
            Sorted, de-duplicated absolute paths of the group's files.
        """
        return await asyncio.to_thread(self._list_files, extensions)

    def _list_files(self, extensions: tuple[str, ...]) -> list[Path]:
        files: dict[str, Path] = {}
        for include_pattern in self.filter.include_patterns:
            for path in expand_pattern(
                self.base_dir,
                include_pattern,
                self.filter.exclude_patterns,
                follow_symlinks=self.config.follow_symlinks,
                prune_excluded_dirs=self.config.dir_prune_exclude,
            ):
                files.setdefault(str(path), path)

        # The walk only prunes by exclude patterns; re-check the full decision.
        matched = [path for path in files.values() if self.filter.should_include(path)]

        if extensions:
            wanted = normalize_extensions(extensions)
            matched = [path for path in matched if path.suffix.lower() in wanted]

        matched.sort(key=str)
        get_logger().debug(
            f"File group '{self.relative_base_dir or '.'}' matched {len(matched)} files",
            operation="list_files",
            base_dir=str(self.base_dir),
        )
        return matched

    def __repr__(self) -> str:
        return (
            f"FileGroup(src={self.relative_base_dir!r}, include={self.include_patterns!r}, "
            f"exclude={self.exclude_patterns!r})"
        )
