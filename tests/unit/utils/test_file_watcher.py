"""Tests for docfx_metadata.utils.file_watcher module."""

from __future__ import annotations

import time
from pathlib import Path

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from docfx_metadata.utils.file_watcher import (
    EventType,
    FileEvent,
    FileWatcher,
    TopicFileEventHandler,
)

PATTERNS = ["**/*.md", "**/*.yml"]


@pytest.fixture
def events() -> list[FileEvent]:
    return []


@pytest.fixture
def handler(tmp_path: Path, events: list[FileEvent]) -> TopicFileEventHandler:
    return TopicFileEventHandler(tmp_path, PATTERNS, events.append)


def _summary(events: list[FileEvent]) -> list[tuple[str, EventType]]:
    return [(event.path.name, event.event_type) for event in events]


class TestFileEvent:
    """Tests for FileEvent dataclass."""

    def test_creation(self):
        evt = FileEvent(path=Path("index.md"), event_type=EventType.CREATED, timestamp=1.0)
        assert evt.event_type == EventType.CREATED
        assert evt.path == Path("index.md")
        assert evt.timestamp == 1.0


class TestTopicFileEventHandler:
    def test_should_process_path(self, handler: TopicFileEventHandler, tmp_path: Path):
        assert handler.should_process_path(tmp_path / "index.md")
        assert handler.should_process_path(tmp_path / "api" / "toc.yml")
        assert not handler.should_process_path(tmp_path / "docfx.json")
        assert not handler.should_process_path(tmp_path.parent / "elsewhere.md")

    def test_created_modified_deleted(
        self, handler: TopicFileEventHandler, events: list[FileEvent], tmp_path: Path
    ):
        path = str(tmp_path / "index.md")
        handler.on_created(FileCreatedEvent(path))
        handler.on_modified(FileModifiedEvent(path))
        handler.on_deleted(FileDeletedEvent(path))

        assert _summary(events) == [
            ("index.md", EventType.CREATED),
            ("index.md", EventType.MODIFIED),
            ("index.md", EventType.DELETED),
        ]
        assert all(event.timestamp > 0 for event in events)

    def test_ignores_unmatched_files(
        self, handler: TopicFileEventHandler, events: list[FileEvent], tmp_path: Path
    ):
        handler.on_modified(FileModifiedEvent(str(tmp_path / "docfx.json")))
        assert events == []

    def test_ignores_directories(
        self, handler: TopicFileEventHandler, events: list[FileEvent], tmp_path: Path
    ):
        handler.on_created(DirCreatedEvent(str(tmp_path / "folder.md")))
        assert events == []

    def test_move_is_delete_then_create(
        self, handler: TopicFileEventHandler, events: list[FileEvent], tmp_path: Path
    ):
        handler.on_moved(FileMovedEvent(str(tmp_path / "old.md"), str(tmp_path / "new.md")))
        assert _summary(events) == [
            ("old.md", EventType.DELETED),
            ("new.md", EventType.CREATED),
        ]

    def test_move_from_unwatched_name(
        self, handler: TopicFileEventHandler, events: list[FileEvent], tmp_path: Path
    ):
        # Editors often save through a temporary file
        handler.on_moved(FileMovedEvent(str(tmp_path / "index.md.tmp"), str(tmp_path / "index.md")))
        assert _summary(events) == [("index.md", EventType.CREATED)]

    def test_suppresses_duplicates(
        self, handler: TopicFileEventHandler, events: list[FileEvent], tmp_path: Path
    ):
        path = str(tmp_path / "index.md")
        handler.on_modified(FileModifiedEvent(path))
        handler.on_modified(FileModifiedEvent(path))
        assert len(events) == 1

    def test_duplicates_allowed_after_threshold(self, tmp_path: Path):
        events: list[FileEvent] = []
        handler = TopicFileEventHandler(tmp_path, PATTERNS, events.append, duplicate_threshold=0.0)
        path = str(tmp_path / "index.md")

        handler.on_modified(FileModifiedEvent(path))
        time.sleep(0.01)
        handler.on_modified(FileModifiedEvent(path))
        assert len(events) == 2

    def test_bytes_paths(
        self, handler: TopicFileEventHandler, events: list[FileEvent], tmp_path: Path
    ):
        handler.on_created(FileCreatedEvent(str(tmp_path / "bytes.md").encode()))
        assert _summary(events) == [("bytes.md", EventType.CREATED)]

    def test_sink_errors_are_logged(self, tmp_path: Path, caplog):
        def failing_sink(event: FileEvent) -> None:
            raise RuntimeError("sink failed")

        handler = TopicFileEventHandler(tmp_path, PATTERNS, failing_sink)
        handler.on_created(FileCreatedEvent(str(tmp_path / "index.md")))
        assert "sink failed" in caplog.text


class TestFileWatcher:
    def test_start_and_stop(self, tmp_path: Path, events: list[FileEvent]):
        watcher = FileWatcher(tmp_path, PATTERNS, events.append)
        assert not watcher.is_watching

        assert watcher.start()
        assert watcher.is_watching
        assert watcher.start()

        watcher.stop()
        assert not watcher.is_watching
        watcher.stop()

    def test_restart(self, tmp_path: Path, events: list[FileEvent]):
        watcher = FileWatcher(tmp_path, PATTERNS, events.append)
        assert watcher.start()
        watcher.stop()
        assert watcher.start()
        watcher.stop()

    def test_missing_directory(self, tmp_path: Path, events: list[FileEvent]):
        watcher = FileWatcher(tmp_path / "missing", PATTERNS, events.append)
        assert watcher.start() is False
        assert not watcher.is_watching

    def test_context_manager(self, tmp_path: Path, events: list[FileEvent]):
        with FileWatcher(tmp_path, PATTERNS, events.append) as watcher:
            assert watcher.is_watching
        assert not watcher.is_watching

    @pytest.mark.integration
    def test_reports_real_changes(self, tmp_path: Path, events: list[FileEvent]):
        with FileWatcher(tmp_path, PATTERNS, events.append):
            time.sleep(0.2)
            (tmp_path / "index.md").write_text("# Index\n", encoding="utf-8")
            (tmp_path / "ignored.txt").write_text("x", encoding="utf-8")

            deadline = time.time() + 5
            while not events and time.time() < deadline:
                time.sleep(0.05)

        assert events
        assert {event.path.name for event in events} == {"index.md"}
