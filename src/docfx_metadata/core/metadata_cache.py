"""
Cache for DocFX topic metadata.

The MetadataCache owns two mutually consistent indexes for the open project:

    - topics by UID
    - topics by content file (path relative to the project directory)

It is populated lazily (from the persisted cache file when one exists,
otherwise by scanning the project), kept up to date from TopicChange
notifications, and written back to ``<state_directory>/topic-cache.json``
after every population and every handled change.

Concurrency model:
    - At most one population runs at a time; concurrent callers of
      ensure_populated() share its result.
    - Changes are handled one at a time, in order, by a single consumer task.
      A change is not started until the previous one (including its persist)
      has completed.
    - Changes that arrive before the cache is populated are deferred and
      replayed once population succeeds.

Example:
    >>> async with MetadataCache(state_dir) as cache:
    ...     await cache.open_project("docs/docfx.json")
    ...     if await cache.ensure_populated():
    ...         print(cache.get_topic("Index"))
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from ..utils.error_handling import MetadataCacheError
from ..utils.helpers import relative_posix_path
from ..utils.logging_config import get_logger
from .config import MetadataConfig
from .managers.topic_changes import TopicChangeFeed, TopicChangeSubscription
from .progress import ProgressSink
from .project import DocFXProject
from .types import TopicChange, TopicChangeType, TopicMetadata


class CacheState(str, Enum):
    """Lifecycle state of a metadata cache."""

    NO_PROJECT = "NoProject"
    UNPOPULATED = "Unpopulated"
    POPULATING = "Populating"
    POPULATED = "Populated"


_QueuedChange = tuple[TopicChange, "asyncio.Future[None] | None"]


class MetadataCache:
    """Cache for topic metadata."""

    def __init__(self, state_directory: Path | str, config: MetadataConfig | None = None) -> None:
        """
        Create a new topic metadata cache.

        Args:
            state_directory: The directory for persisted cache state.
            config: Tunables; validated on construction.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config = config or MetadataConfig()
        self.config.validate()

        self.state_directory = Path(state_directory)
        self.cache_file = self.config.resolve_cache_file(self.state_directory)
        self.logger = get_logger()

        self._project: DocFXProject | None = None
        self._state = CacheState.NO_PROJECT
        self._topics: dict[str, TopicMetadata] = {}
        self._topics_by_content_file: dict[str, list[TopicMetadata]] = {}

        self._populating: asyncio.Task[bool] | None = None
        self._persist_lock = asyncio.Lock()

        self._changes: asyncio.Queue[_QueuedChange] | None = None
        self._consumer_task: asyncio.Task[None] | None = None
        # Latest deferred change per content file, in arrival order
        self._deferred_changes: dict[str, TopicChange] = {}

        self._feed: TopicChangeFeed | None = None
        self._subscription: TopicChangeSubscription | None = None
        self._forwarder_task: asyncio.Task[None] | None = None

        # Number of full project scans performed by this cache
        self.scan_count = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def is_populated(self) -> bool:
        """Is the cache currently populated?"""
        return self._state == CacheState.POPULATED

    @property
    def has_open_project(self) -> bool:
        return self._project is not None

    @property
    def project(self) -> DocFXProject | None:
        """The cache's underlying DocFX project."""
        return self._project

    @property
    def project_file(self) -> Path | None:
        return self._project.project_file if self._project else None

    @property
    def topic_count(self) -> int:
        self._require_project()
        return len(self._topics)

    @property
    def is_watching(self) -> bool:
        return self._subscription is not None

    def _require_project(self) -> DocFXProject:
        if self._project is None:
            raise MetadataCacheError("No DocFX project is currently open.")
        return self._project

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_topic(self, uid: str) -> TopicMetadata | None:
        """
        Get the metadata for the topic (if any) associated with the specified UID.

        Raises:
            MetadataCacheError: If no project is open.
        """
        self._require_project()
        return self._topics.get(uid)

    def get_topics(self, uid_prefix: str | None = None) -> list[TopicMetadata]:
        """
        Get metadata for some or all of the topics in the cache.

        Args:
            uid_prefix: If specified, only topics whose UID starts with the
                prefix are returned.

        Returns:
            The topics, in no particular order.
        """
        self._require_project()
        if not uid_prefix:
            return list(self._topics.values())
        return [topic for topic in self._topics.values() if topic.uid.startswith(uid_prefix)]

    def get_content_file_topics(self, content_file: Path | str) -> list[TopicMetadata]:
        """Get the topics defined by one content file (absolute or project-relative)."""
        project = self._require_project()
        key = self._content_file_key(project, content_file)
        if key is None:
            return []
        return list(self._topics_by_content_file.get(key, ()))

    # ------------------------------------------------------------------
    # Project lifecycle
    # ------------------------------------------------------------------

    async def open_project(self, project_file: Path | str) -> None:
        """
        Open a DocFX project.

        Opening the project that is already open does nothing. If a different
        project is open, the cache is flushed (including its persisted state)
        before the new project is loaded.

        Raises:
            ProjectLoadError: If the project cannot be loaded.
        """
        project_file = Path(project_file).absolute()
        if self._project and self._project.project_file == project_file:
            return

        if self._project:
            await self.close_project(clear_persisted=True)

        project = await DocFXProject.load(project_file, self.config)
        self._project = project
        self._state = CacheState.UNPOPULATED
        self._ensure_consumer()
        self.logger.info(f"Opened DocFX project: '{project_file}'", operation="open_project")

        if self.config.watch_changes:
            self._start_watching(project)

    async def close_project(self, clear_persisted: bool = False) -> None:
        """Close the current DocFX project (if any)."""
        if self._project is None:
            return

        await self._stop_watching()
        await self.flush(clear_persisted)
        project_file = self._project.project_file
        self._project = None
        self._state = CacheState.NO_PROJECT
        self.logger.info(f"Closed DocFX project: '{project_file}'", operation="close_project")

    async def flush(self, clear_persisted: bool = False) -> None:
        """
        Flush the metadata cache.

        Args:
            clear_persisted: Also delete the persisted cache file?
        """
        self._drop_queued_changes()
        self._topics.clear()
        self._topics_by_content_file.clear()
        self._deferred_changes.clear()
        self._state = CacheState.UNPOPULATED if self._project else CacheState.NO_PROJECT
        self.logger.log_cache_event("flushed", 0)

        if clear_persisted:
            async with self._persist_lock:
                await asyncio.to_thread(self.cache_file.unlink, missing_ok=True)

    async def aclose(self) -> None:
        """Close the open project and stop the change consumer."""
        await self.close_project()

        consumer_task, self._consumer_task = self._consumer_task, None
        if consumer_task:
            consumer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer_task
        self._changes = None

    async def __aenter__(self) -> MetadataCache:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    async def ensure_populated(self, progress: ProgressSink | None = None) -> bool:
        """
        Ensure that the cache is populated.

        Args:
            progress: Optional sink for progress messages and scan errors.

        Returns:
            True if the cache was successfully populated; otherwise, False.

        Raises:
            MetadataCacheError: If no project is open.
        """
        project = self._require_project()
        if self._state == CacheState.POPULATED:
            return True

        if self._populating is None or self._populating.done():
            task = asyncio.get_running_loop().create_task(self._populate(project, progress))
            task.add_done_callback(self._population_finished)
            self._populating = task

        return await asyncio.shield(self._populating)

    def _population_finished(self, task: asyncio.Task[bool]) -> None:
        if self._populating is task:
            self._populating = None

    async def _populate(self, project: DocFXProject, progress: ProgressSink | None) -> bool:
        if project is not self._project:
            return False

        self._state = CacheState.POPULATING
        try:
            topics = await self._load_topics_from_cache_file(progress)
            if topics is None:
                if progress:
                    progress.report(f'Scanning DocFX project "{project.project_file}"...')
                self.scan_count += 1
                topics = await project.get_topics(progress)
        except Exception as e:
            self.logger.exception(f"Failed to populate metadata cache: {e}", operation="populate")
            if project is self._project:
                self._state = CacheState.UNPOPULATED
            if progress:
                progress.error(e)
            return False

        if project is not self._project:
            # The project was closed or replaced while we were scanning
            return False

        self._topics.clear()
        self._topics_by_content_file.clear()
        for topic in topics:
            self._index_topic(self._normalize_topic(project, topic))

        deferred, self._deferred_changes = self._deferred_changes, {}
        for change in deferred.values():
            self._apply_change_to_indexes(project, change)

        self._state = CacheState.POPULATED
        self.logger.log_cache_event("populated", len(self._topics))
        if progress:
            progress.report(f"Found {len(self._topics)} topics in DocFX project.")

        try:
            await self.persist()
        except OSError as e:
            self.logger.error(f"Failed to persist metadata cache: {e}", operation="persist")

        return True

    async def _load_topics_from_cache_file(
        self, progress: ProgressSink | None
    ) -> list[TopicMetadata] | None:
        """
        Load persisted topic metadata from the cache file (if it exists).

        Returns:
            The topics, or None if the file is missing or cannot be parsed.
        """
        if progress:
            progress.report(f'Attempting to load DocFX topic metadata cache from "{self.cache_file}"...')

        try:
            data = await asyncio.to_thread(self._read_cache_file)
        except FileNotFoundError:
            if progress:
                progress.report(f'Cache file "{self.cache_file}" not found.')
            return None
        except (OSError, UnicodeError, ValueError) as e:
            self.logger.warning(
                f"Ignoring unreadable cache file '{self.cache_file}': {e}", operation="load_cache"
            )
            return None

        if progress:
            progress.report(f'Read {len(data)} topics from "{self.cache_file}".')
        return data

    def _read_cache_file(self) -> list[TopicMetadata]:
        raw: Any = json.loads(self.cache_file.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError("Topic cache must contain a JSON array")
        topics: list[TopicMetadata] = []
        for item in raw:
            if not isinstance(item, dict):
                raise ValueError(
                    f"Topic cache entry must be a JSON object, not {type(item).__name__}"
                )
            topics.append(TopicMetadata.from_dict(item))
        return topics

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def persist(self) -> None:
        """
        Persist the metadata cache state.

        The file is deleted rather than written when the cache holds no topics.
        """
        self._require_project()
        async with self._persist_lock:
            data = [topic.to_dict() for topic in self._topics.values()]
            await asyncio.to_thread(self._write_cache_file, data)
        self.logger.log_cache_event("persisted", len(data))

    def _write_cache_file(self, data: list[dict[str, Any]]) -> None:
        if not data:
            self.cache_file.unlink(missing_ok=True)
            return

        self.cache_file.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.cache_file.with_suffix(".tmp")
        tmp.write_text(
            json.dumps(data, indent=self.config.persist_indent, ensure_ascii=False),
            encoding="utf-8",
        )
        os.replace(tmp, self.cache_file)

    # ------------------------------------------------------------------
    # Incremental updates
    # ------------------------------------------------------------------

    def post_change(self, change: TopicChange) -> None:
        """Queue a topic change for handling without waiting for it."""
        self._enqueue(change, None)

    async def apply_change(self, change: TopicChange) -> None:
        """
        Queue a topic change and wait until it has been handled (or deferred,
        if the cache is not yet populated).
        """
        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._enqueue(change, done)
        await done

    async def wait_for_changes(self) -> None:
        """Wait until every queued change has been handled."""
        if self._changes is not None:
            await self._changes.join()

    def _enqueue(self, change: TopicChange, done: asyncio.Future[None] | None) -> None:
        self._ensure_consumer()
        assert self._changes is not None
        self._changes.put_nowait((change, done))

    def _ensure_consumer(self) -> None:
        if self._changes is None:
            self._changes = asyncio.Queue()
        if self._consumer_task is None or self._consumer_task.done():
            self._consumer_task = asyncio.get_running_loop().create_task(
                self._consume_changes(self._changes)
            )

    async def _consume_changes(self, changes: asyncio.Queue[_QueuedChange]) -> None:
        while True:
            change, done = await changes.get()
            try:
                await self._handle_change(change)
            except Exception as e:
                self.logger.exception(
                    f"Error handling topic change for '{change.content_file}': {e}",
                    operation="topic_change",
                )
            finally:
                if done is not None and not done.done():
                    done.set_result(None)
                changes.task_done()

    async def _handle_change(self, change: TopicChange) -> None:
        project = self._project
        if project is None:
            self.logger.debug(f"Ignoring topic change with no open project: {change.content_file}")
            return

        if self._state != CacheState.POPULATED:
            self._defer_change(project, change)
            return

        if self._apply_change_to_indexes(project, change):
            await self.persist()

    def _defer_change(self, project: DocFXProject, change: TopicChange) -> None:
        content_file = self._content_file_key(project, change.content_file)
        if content_file is None:
            return

        # Only the latest change for a file matters on replay
        self._deferred_changes.pop(content_file, None)
        self._deferred_changes[content_file] = change

    def _drop_queued_changes(self) -> None:
        """Discard changes that are queued but not yet handled."""
        changes = self._changes
        if changes is None:
            return

        while not changes.empty():
            _, done = changes.get_nowait()
            if done is not None and not done.done():
                done.set_result(None)
            changes.task_done()

    def _apply_change_to_indexes(self, project: DocFXProject, change: TopicChange) -> bool:
        """
        Apply a change to both indexes.

        Returns:
            True if the indexes were modified.
        """
        try:
            change_type = TopicChangeType(change.change_type)
        except ValueError:
            self.logger.warning(
                f"Received unexpected type of topic change notification: {change.change_type!r}",
                operation="topic_change",
            )
            return False

        content_file = self._content_file_key(project, change.content_file)
        if content_file is None or not project.includes_content_file(content_file):
            return False

        if change_type == TopicChangeType.REMOVED:
            self._remove_content_file(content_file)
        else:
            self._remove_content_file(content_file)
            self._topics_by_content_file[content_file] = []
            for topic in change.topics or []:
                self._index_topic(topic.with_source_file(content_file))

        self.logger.log_cache_event(
            change_type.value.lower(), len(self._topics), content_file=content_file
        )
        return True

    def _index_topic(self, topic: TopicMetadata) -> None:
        existing = self._topics.get(topic.uid)
        if existing is not None:
            # A UID belongs to one content file; the newest definition wins
            previous_file_topics = self._topics_by_content_file.get(existing.source_file)
            if previous_file_topics and existing in previous_file_topics:
                previous_file_topics.remove(existing)

        self._topics[topic.uid] = topic
        self._topics_by_content_file.setdefault(topic.source_file, []).append(topic)

    def _remove_content_file(self, content_file: str) -> None:
        for topic in self._topics_by_content_file.pop(content_file, ()):
            if self._topics.get(topic.uid) is topic:
                del self._topics[topic.uid]

    def _content_file_key(self, project: DocFXProject, content_file: Path | str) -> str | None:
        return relative_posix_path(content_file, project.project_dir)

    def _normalize_topic(self, project: DocFXProject, topic: TopicMetadata) -> TopicMetadata:
        key = self._content_file_key(project, topic.source_file)
        if key is None or key == topic.source_file:
            return topic
        return topic.with_source_file(key)

    # ------------------------------------------------------------------
    # Watching
    # ------------------------------------------------------------------

    def _start_watching(self, project: DocFXProject) -> None:
        self._feed = TopicChangeFeed(project.project_dir, self.config)
        self._subscription = self._feed.subscribe()
        self._forwarder_task = asyncio.get_running_loop().create_task(
            self._forward_changes(self._subscription)
        )

    async def _forward_changes(self, subscription: TopicChangeSubscription) -> None:
        async for change in subscription:
            self.post_change(change)

    async def _stop_watching(self) -> None:
        feed, self._feed = self._feed, None
        self._subscription = None
        forwarder_task, self._forwarder_task = self._forwarder_task, None

        if feed:
            await feed.close()
        if forwarder_task:
            # Closing the subscription ends the forwarder's iteration
            await forwarder_task
