"""
Include/exclude pattern matching for content files.

A FileFilter decides whether a single path belongs to a set of files described
by glob patterns relative to a base directory. Exclude patterns only apply to
paths that matched an include pattern, and always win when both match.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from ..utils.helpers import compile_patterns, relative_posix_path


class FileFilter:
    """Matchers for files (include / exclude)."""

    def __init__(
        self,
        base_dir: Path | str,
        include_patterns: Iterable[str] | None,
        exclude_patterns: Iterable[str] | None = None,
    ) -> None:
        """
        Create a new content file matcher.

        Args:
            base_dir: The base directory that patterns are relative to
            include_patterns: Glob patterns for files to include
            exclude_patterns: Glob patterns for files to exclude
        """
        self._base_dir = Path(base_dir)
        self._include_patterns: tuple[str, ...] = tuple(include_patterns or ())
        self._exclude_patterns: tuple[str, ...] = tuple(exclude_patterns or ())
        self._include_spec = compile_patterns(self._include_patterns)
        self._exclude_spec = compile_patterns(self._exclude_patterns)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def include_patterns(self) -> list[str]:
        return list(self._include_patterns)

    @property
    def exclude_patterns(self) -> list[str]:
        return list(self._exclude_patterns)

    def should_include(self, file_path: Path | str) -> bool:
        """
        Determine whether the specified file should be included.

        Args:
            file_path: The absolute path of the file, or its path relative to
                the filter's base directory.
        """
        relative_path = relative_posix_path(file_path, self._base_dir)
        if relative_path is None or relative_path == ".":
            return False

        if not self._include_spec.match_file(relative_path):
            return False

        return not self._exclude_spec.match_file(relative_path)

    def __repr__(self) -> str:
        return (
            f"FileFilter(base_dir={str(self._base_dir)!r}, "
            f"include={list(self._include_patterns)!r}, exclude={list(self._exclude_patterns)!r})"
        )
