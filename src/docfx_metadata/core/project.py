"""
DocFX project model.

A DocFXProject is loaded from a ``docfx.json`` file and answers membership
questions about the project's content: which files it includes, which of those
files exist on disk, and which topics they define.

Example:
    >>> project = await DocFXProject.load(Path("docs/docfx.json"))
    >>> project.includes_content_file("articles/index.md")
    True
    >>> topics = await project.get_topics(ProgressLog())
"""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Any

from ..utils.error_handling import ProjectLoadError
from ..utils.helpers import read_json
from ..utils.logging_config import get_logger
from .config import MetadataConfig
from .file_group import FileGroup
from .progress import ProgressSink
from .topics import get_file_topics
from .types import TopicMetadata


class DocFXProject:
    """Represents a DocFX project."""

    def __init__(
        self,
        project_file: Path,
        file_groups: list[FileGroup],
        config: MetadataConfig | None = None,
    ) -> None:
        self._project_file = Path(project_file)
        self._project_dir = self._project_file.parent
        self._file_groups = tuple(file_groups)
        self.config = config or MetadataConfig()
        self.logger = get_logger()

    @classmethod
    async def load(
        cls, project_file: Path | str, config: MetadataConfig | None = None
    ) -> DocFXProject:
        """
        Load a DocFX project from its project file.

        Args:
            project_file: The full path to ``docfx.json``.
            config: Tunables shared with the rest of the package.

        Raises:
            ProjectLoadError: The project file is missing, unreadable or has
                no ``build.content`` section.
        """
        config = config or MetadataConfig()
        project_file = Path(project_file).absolute()

        try:
            project_json = await asyncio.to_thread(read_json, project_file)
        except FileNotFoundError as e:
            raise ProjectLoadError(
                f"Project file not found: {project_file}", project_file
            ) from e
        except (OSError, UnicodeError) as e:
            raise ProjectLoadError(
                f"Cannot read project file '{project_file}': {e}", project_file
            ) from e
        except json.JSONDecodeError as e:
            raise ProjectLoadError(
                f"Project file '{project_file}' is not valid JSON: {e}",
                project_file,
                context={"line": e.lineno, "column": e.colno},
            ) from e

        content = cls._read_content_section(project_file, project_json)
        project_dir = project_file.parent
        file_groups: list[FileGroup] = []
        for entry in content:
            if not isinstance(entry, dict):
                continue
            file_group = FileGroup.from_config(project_dir, entry, config)
            if file_group:
                file_groups.append(file_group)

        get_logger().debug(
            f"Loaded project '{project_file}' with {len(file_groups)} file groups",
            operation="load_project",
            project_file=str(project_file),
        )
        return cls(project_file, file_groups, config)

    @staticmethod
    def _read_content_section(project_file: Path, project_json: Any) -> list[Any]:
        if not isinstance(project_json, dict):
            raise ProjectLoadError(
                f"Project file '{project_file}' does not contain a JSON object", project_file
            )

        build = project_json.get("build")
        if not isinstance(build, dict):
            raise ProjectLoadError(
                f"Project file '{project_file}' has no 'build' section", project_file
            )

        content = build.get("content")
        if not isinstance(content, list):
            raise ProjectLoadError(
                f"Project file '{project_file}' has no 'build.content' array", project_file
            )

        return content

    @property
    def project_file(self) -> Path:
        """The full path to the project file."""
        return self._project_file

    @property
    def project_dir(self) -> Path:
        """The full path to the project directory."""
        return self._project_dir

    @property
    def file_groups(self) -> tuple[FileGroup, ...]:
        return self._file_groups

    def includes_content_file(self, file_path: Path | str) -> bool:
        """
        Determine whether the project includes the specified content file.

        Args:
            file_path: The full path of the file, or its path relative to the
                project directory.
        """
        file_path = Path(file_path)
        if not file_path.is_absolute():
            file_path = self._project_dir / file_path

        return any(file_group.includes_file(file_path) for file_group in self._file_groups)

    async def get_content_files(self, *extensions: str) -> list[Path]:
        """
        Get all content files from the project.

        Args:
            *extensions: Optional file extensions used to filter the results.

        Returns:
            The full paths of the content files, sorted and without duplicates.
        """
        content_files: dict[str, Path] = {}
        for file_group in self._file_groups:
            for file_path in await file_group.list_files(*extensions):
                content_files.setdefault(str(file_path), file_path)

        return sorted(content_files.values(), key=str)

    async def get_topics(self, progress: ProgressSink | None = None) -> list[TopicMetadata]:
        """
        Get metadata for all topics defined in the project.

        Args:
            progress: Optional sink for progress messages.

        Returns:
            The topics, in content-file order.
        """
        start_time = time.perf_counter()
        if progress:
            progress.report("Scanning DocFX project...")

        content_files = await self.get_content_files(*self.config.topic_extensions())
        self.logger.log_scan_start(str(self._project_file), len(content_files))

        topics: list[TopicMetadata] = []
        total = len(content_files)
        for index, content_file in enumerate(content_files, start=1):
            topics.extend(await get_file_topics(content_file, self.config))

            if progress:
                percent_complete = int(index * 100 / total)
                progress.report(f"Scanning content files ({percent_complete}% complete)...")

        if progress:
            progress.report(f"Scan complete ({len(topics)} topics found).")

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self.logger.log_scan_complete(str(self._project_file), len(topics), elapsed_ms)
        return topics

    def __repr__(self) -> str:
        return f"DocFXProject({str(self._project_file)!r}, groups={len(self._file_groups)})"


async def load_project(
    project_file: Path | str, config: MetadataConfig | None = None
) -> DocFXProject:
    """Load a DocFX project (see DocFXProject.load)."""
    return await DocFXProject.load(project_file, config)
