"""
Integration tests: a metadata cache kept up to date by a real file watcher.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest

from docfx_metadata.core.config import MetadataConfig
from docfx_metadata.core.managers.topic_changes import observe_topic_changes
from docfx_metadata.core.metadata_cache import MetadataCache
from docfx_metadata.core.types import TopicChangeType

pytestmark = pytest.mark.integration

ARTICLE = """---
uid: {uid}
---

# {uid}
"""

# Give the observer thread time to install its watches
WATCH_STARTUP_DELAY = 0.3


async def _wait_for(condition: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if condition():
            return True
        await asyncio.sleep(0.05)
    return condition()


@pytest.fixture
async def watched_cache(state_dir: Path, simple_project: Path):
    config = MetadataConfig(watch_changes=True, debounce_delay=0.05)
    cache = MetadataCache(state_dir, config)
    await cache.open_project(simple_project)
    assert await cache.ensure_populated()
    await asyncio.sleep(WATCH_STARTUP_DELAY)
    yield cache
    await cache.aclose()


@pytest.mark.asyncio
async def test_new_article_is_added(watched_cache: MetadataCache, simple_project: Path):
    assert watched_cache.is_watching
    article = simple_project.parent / "articles" / "new.md"
    article.write_text(ARTICLE.format(uid="New"), encoding="utf-8")

    assert await _wait_for(lambda: watched_cache.get_topic("New") is not None)
    assert watched_cache.get_topic("New").source_file == "articles/new.md"


@pytest.mark.asyncio
async def test_deleted_article_is_removed(watched_cache: MetadataCache, simple_project: Path):
    (simple_project.parent / "articles" / "index.md").unlink()

    assert await _wait_for(lambda: watched_cache.get_topic("Index") is None)
    assert watched_cache.topic_count == 0


@pytest.mark.asyncio
async def test_changed_article_is_reindexed(
    watched_cache: MetadataCache, simple_project: Path, state_dir: Path
):
    article = simple_project.parent / "articles" / "index.md"
    article.write_text(ARTICLE.format(uid="Renamed"), encoding="utf-8")

    assert await _wait_for(lambda: watched_cache.get_topic("Renamed") is not None)
    assert watched_cache.get_topic("Index") is None

    await watched_cache.wait_for_changes()
    assert "Renamed" in (state_dir / "topic-cache.json").read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_files_outside_project_are_ignored(
    watched_cache: MetadataCache, simple_project: Path
):
    project_dir = simple_project.parent
    (project_dir / "folder1" / "stray.md").write_text(ARTICLE.format(uid="Stray"), encoding="utf-8")
    (project_dir / "articles" / "excluded.md").write_text(
        ARTICLE.format(uid="StillExcluded"), encoding="utf-8"
    )
    (project_dir / "articles" / "marker.md").write_text(
        ARTICLE.format(uid="Marker"), encoding="utf-8"
    )

    assert await _wait_for(lambda: watched_cache.get_topic("Marker") is not None)
    await watched_cache.wait_for_changes()
    assert watched_cache.get_topic("Stray") is None
    assert watched_cache.get_topic("StillExcluded") is None


@pytest.mark.asyncio
async def test_closing_project_stops_watching(watched_cache: MetadataCache):
    await watched_cache.close_project()
    assert not watched_cache.is_watching


@pytest.mark.asyncio
async def test_feed_reports_moves(tmp_path: Path):
    docs = tmp_path / "docs"
    docs.mkdir()
    source = docs / "draft.md"
    source.write_text(ARTICLE.format(uid="Draft"), encoding="utf-8")

    async with observe_topic_changes(docs, MetadataConfig(debounce_delay=0.05)) as feed:
        subscription = feed.subscribe()
        await asyncio.sleep(WATCH_STARTUP_DELAY)
        source.rename(docs / "final.md")

        seen = {}
        while len(seen) < 2:
            change = await asyncio.wait_for(subscription.get(), 5)
            assert change is not None
            seen[change.content_file] = change.change_type

    assert seen == {"draft.md": TopicChangeType.REMOVED, "final.md": TopicChangeType.ADDED}
