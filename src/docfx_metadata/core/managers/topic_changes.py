"""
Topic change notifications driven by file system events.

A TopicChangeFeed watches a base directory for conceptual and reference
content files and turns raw file events into TopicChange notifications,
re-extracting topics for added and changed files.

The feed is shared: every subscriber receives every notification, and one
watchdog observer serves all of them. The observer starts with the first
subscription and stops when the last subscription is closed.

Classes:
    TopicChangeSubscription: One subscriber's ordered stream of changes
    TopicChangeFeed: Shared watcher that publishes TopicChanges

Example:
    >>> feed = observe_topic_changes(Path("docs"))
    >>> subscription = feed.subscribe()
    >>> async for change in subscription:
    ...     print(change.change_type, change.content_file)
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from pathlib import Path

from ...utils.error_handling import ErrorCollector, handle_file_error
from ...utils.file_watcher import EventType, FileEvent, FileWatcher
from ...utils.helpers import relative_posix_path
from ...utils.logging_config import get_logger
from ..config import MetadataConfig
from ..topics import get_file_topics
from ..types import TopicChange, TopicChangeType

_CLOSED = object()


def coalesce_event_types(first: EventType, last: EventType) -> TopicChangeType | None:
    """
    Reduce the events seen for one path within a debounce window to a single
    change, given the first and last event types.

    Returns:
        The change to report, or None if the file came and went.
    """
    if last == EventType.DELETED:
        return None if first == EventType.CREATED else TopicChangeType.REMOVED

    if first == EventType.CREATED:
        return TopicChangeType.ADDED

    return TopicChangeType.CHANGED


class TopicChangeSubscription:
    """An ordered stream of topic changes for one subscriber."""

    def __init__(self, feed: TopicChangeFeed) -> None:
        self._feed = feed
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, change: TopicChange) -> None:
        if not self._closed:
            self._queue.put_nowait(change)

    async def get(self) -> TopicChange | None:
        """
        Wait for the next change.

        Returns:
            The next change, or None once the subscription has been closed.
        """
        if self._closed:
            return None

        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Stop receiving changes; pending changes are discarded."""
        if self._closed:
            return

        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)
        self._feed._unsubscribe(self)

    def __aiter__(self) -> AsyncIterator[TopicChange]:
        return self

    async def __anext__(self) -> TopicChange:
        change = await self.get()
        if change is None:
            raise StopAsyncIteration
        return change


class TopicChangeFeed:
    """Publishes topic changes for content files under a base directory."""

    def __init__(self, base_dir: Path | str, config: MetadataConfig | None = None) -> None:
        self.base_dir = Path(base_dir).resolve()
        self.config = config or MetadataConfig()
        self.logger = get_logger()
        self.error_collector = ErrorCollector()

        self._subscriptions: list[TopicChangeSubscription] = []
        self._watcher: FileWatcher | None = None
        self._events: asyncio.Queue[FileEvent] | None = None
        self._pump_task: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    @property
    def is_watching(self) -> bool:
        return self._watcher is not None and self._watcher.is_watching

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> TopicChangeSubscription:
        """
        Subscribe to the feed. Must be called from a running event loop.

        Raises:
            RuntimeError: If the feed has been closed.
        """
        if self._closed:
            raise RuntimeError("Topic change feed is closed")

        subscription = TopicChangeSubscription(self)
        self._subscriptions.append(subscription)
        if self._watcher is None:
            self._start_watching()

        return subscription

    def _unsubscribe(self, subscription: TopicChangeSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
        if not self._subscriptions:
            self._stop_watching()

    def _start_watching(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()
        self._watcher = FileWatcher(
            self.base_dir, self.config.watch_patterns(), self._on_file_event
        )
        self._watcher.start()
        self._pump_task = self._loop.create_task(self._pump())

    def _stop_watching(self) -> None:
        watcher, self._watcher = self._watcher, None
        if watcher:
            watcher.stop()

        pump_task, self._pump_task = self._pump_task, None
        if pump_task and not pump_task.done():
            pump_task.cancel()

        self._events = None

    def _on_file_event(self, event: FileEvent) -> None:
        # Runs on the watchdog observer thread
        loop, events = self._loop, self._events
        if loop is None or events is None or loop.is_closed():
            return

        try:
            loop.call_soon_threadsafe(events.put_nowait, event)
        except RuntimeError:
            self.logger.debug(f"Dropped file event after loop shutdown: {event.path}")

    async def _pump(self) -> None:
        events = self._events
        assert events is not None

        while True:
            event = await events.get()
            pending: dict[Path, tuple[EventType, EventType]] = {
                event.path: (event.event_type, event.event_type)
            }

            if self.config.debounce_delay:
                await asyncio.sleep(self.config.debounce_delay)

            while not events.empty():
                event = events.get_nowait()
                first, _ = pending.get(event.path, (event.event_type, event.event_type))
                pending[event.path] = (first, event.event_type)

            for path, (first, last) in pending.items():
                change_type = coalesce_event_types(first, last)
                if change_type is None:
                    continue

                change = await self._build_change(path, change_type)
                if change:
                    self._publish(change)

    async def _build_change(
        self, path: Path, change_type: TopicChangeType
    ) -> TopicChange | None:
        content_file = relative_posix_path(path, self.base_dir)
        if content_file is None:
            return None

        if change_type == TopicChangeType.REMOVED:
            return TopicChange(change_type, content_file)

        try:
            topics = await get_file_topics(path, self.config)
        except FileNotFoundError:
            # Deleted again before it could be read; the deletion follows.
            self.logger.debug(f"Content file vanished before extraction: {path}")
            return None
        except Exception as e:
            handle_file_error(path, "extract", e, self.error_collector, self.logger)
            return None

        return TopicChange(
            change_type,
            content_file,
            [topic.with_source_file(content_file) for topic in topics],
        )

    def _publish(self, change: TopicChange) -> None:
        self.logger.debug(
            f"Topic change: {change.change_type.value} {change.content_file}",
            operation="topic_change",
        )
        for subscription in list(self._subscriptions):
            subscription._deliver(change)

    async def close(self) -> None:
        """Close every subscription and stop watching."""
        if self._closed:
            return

        self._closed = True
        pump_task = self._pump_task
        for subscription in list(self._subscriptions):
            subscription.close()
        self._stop_watching()

        if pump_task:
            with contextlib.suppress(asyncio.CancelledError):
                await pump_task

    async def __aenter__(self) -> TopicChangeFeed:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def observe_topic_changes(
    base_dir: Path | str, config: MetadataConfig | None = None
) -> TopicChangeFeed:
    """
    Observe changes to topics in content files under the specified directory.

    Only changes made after the first subscription are reported. Content file
    paths in notifications are relative to ``base_dir``.
    """
    return TopicChangeFeed(base_dir, config)
