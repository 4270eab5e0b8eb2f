"""
File system watching for docfx-metadata.

This module wraps the watchdog library:
- Events are filtered by glob patterns relative to the watched directory
- Directory events are ignored
- Moves are reported as a deletion of the source plus a creation of the
  destination
- Repeated identical events for the same path are suppressed

Events are delivered to a callback on the watchdog observer thread. Callers
that live on an asyncio loop must hand them over with
``loop.call_soon_threadsafe`` (see TopicChangeFeed).

Classes:
    EventType: Types of file system events
    FileEvent: Represents a file system event
    TopicFileEventHandler: watchdog handler that filters and forwards events
    FileWatcher: Starts and stops a watchdog observer for one directory

Example:
    >>> events = []
    >>> watcher = FileWatcher("/path/to/docs", ["**/*.md"], events.append)
    >>> watcher.start()
    >>> # ... edit files ...
    >>> watcher.stop()
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .helpers import compile_patterns, relative_posix_path
from .logging_config import get_logger


class EventType(Enum):
    """Types of file system events."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class FileEvent:
    """Represents a file system event."""

    path: Path
    event_type: EventType
    timestamp: float


class TopicFileEventHandler(FileSystemEventHandler):
    """
    Filters watchdog events by glob pattern and forwards them as FileEvents.
    """

    def __init__(
        self,
        root: Path,
        patterns: Iterable[str],
        event_sink: Callable[[FileEvent], None],
        duplicate_threshold: float = 0.05,
    ) -> None:
        super().__init__()
        self.root = root
        self.event_sink = event_sink
        self.logger = get_logger()
        self._spec = compile_patterns(patterns)

        self._recent_events: deque[tuple[str, EventType, float]] = deque(maxlen=1000)
        self._duplicate_threshold = duplicate_threshold

    def should_process_path(self, path: Path) -> bool:
        relative_path = relative_posix_path(path, self.root)
        if relative_path is None:
            return False
        return self._spec.match_file(relative_path)

    def _is_duplicate_event(self, path: str, event_type: EventType, timestamp: float) -> bool:
        cutoff = timestamp - self._duplicate_threshold
        while self._recent_events and self._recent_events[0][2] < cutoff:
            self._recent_events.popleft()

        for event_path, recent_type, _ in self._recent_events:
            if event_path == path and recent_type == event_type:
                return True

        self._recent_events.append((path, event_type, timestamp))
        return False

    def _emit(self, src_path: Any, event_type: EventType) -> None:
        if isinstance(src_path, bytes):
            src_path = src_path.decode()
        path = Path(src_path)
        if not self.should_process_path(path):
            return

        timestamp = time.time()
        if self._is_duplicate_event(str(path), event_type, timestamp):
            return

        try:
            self.event_sink(FileEvent(path=path, event_type=event_type, timestamp=timestamp))
        except Exception as e:
            self.logger.error(f"Error forwarding file event {path}: {e}", operation="watch")

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, EventType.CREATED)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, EventType.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, EventType.DELETED)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(event.src_path, EventType.DELETED)
        self._emit(event.dest_path, EventType.CREATED)


class FileWatcher:
    """
    Watches one directory tree for changes to files matching glob patterns.

    Pre-existing files are never reported; only changes made after start().
    """

    def __init__(
        self,
        path: Path | str,
        patterns: Iterable[str],
        event_sink: Callable[[FileEvent], None],
        recursive: bool = True,
    ) -> None:
        """
        Initialize file watcher.

        Args:
            path: Directory to watch
            patterns: Glob patterns (relative to ``path``) of files to report
            event_sink: Called on the observer thread for each event
            recursive: Whether to watch subdirectories recursively
        """
        self.path = Path(path)
        self.patterns = list(patterns)
        self.recursive = recursive
        self.logger = get_logger()

        self._event_handler = TopicFileEventHandler(self.path, self.patterns, event_sink)
        self._observer: Any = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    def start(self) -> bool:
        """
        Start watching for file changes.

        Returns:
            True if watching started successfully, False otherwise
        """
        if self._observer is not None:
            self.logger.warning("File watcher already running", operation="watch")
            return True

        if not self.path.is_dir():
            self.logger.error(f"Cannot watch missing directory: {self.path}", operation="watch")
            return False

        # watchdog observers are threads and cannot be restarted
        observer = Observer()
        try:
            observer.schedule(self._event_handler, str(self.path), recursive=self.recursive)
            observer.start()
        except OSError as e:
            self.logger.error(f"Failed to start file watcher: {e}", operation="watch")
            return False

        self._observer = observer
        self.logger.info(
            f"Started watching: {self.path} (recursive={self.recursive})", operation="watch"
        )
        return True

    def stop(self) -> None:
        """Stop watching for file changes."""
        observer = self._observer
        if observer is None:
            return

        self._observer = None
        observer.stop()
        observer.join(timeout=5.0)
        self.logger.info(f"Stopped watching: {self.path}", operation="watch")

    def __enter__(self) -> FileWatcher:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
