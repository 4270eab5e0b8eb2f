"""
Shared test fixtures and utilities for docfx-metadata tests.

This module builds small DocFX projects on disk so tests can exercise file
membership, topic extraction and the metadata cache against real files.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from docfx_metadata.core.types import TopicMetadata, TopicType
from docfx_metadata.utils import logging_config

# Test data constants
INDEX_ARTICLE = """---
uid: Index
title: Example article
---

# Example article

Some content.
"""

EXCLUDED_ARTICLE = """---
uid: Excluded
---

Not part of the project.
"""

MANAGED_REFERENCE = """### YamlMime:ManagedReference
items:
- uid: MyLib.Widgets
  name: MyLib.Widgets
  fullName: MyLib.Widgets
  nameWithType: MyLib.Widgets
  type: Namespace
- uid: MyLib.Widgets.Widget
  name: Widget
  fullName: MyLib.Widgets.Widget
  nameWithType: Widget
  type: Class
- uid: MyLib.Widgets.Widget.Name
  name: Name
  fullName: MyLib.Widgets.Widget.Name
  nameWithType: Widget.Name
  type: Property
- name: Undocumented
  type: Method
"""

TABLE_OF_CONTENTS = """- name: Widgets
  href: MyLib.Widgets.yml
"""


def write_file(path: Path, content: str) -> Path:
    """Write a UTF-8 file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def write_project(project_dir: Path, content: list[dict]) -> Path:
    """Write a docfx.json with the given ``build.content`` entries."""
    return write_file(
        project_dir / "docfx.json", json.dumps({"build": {"content": content}}, indent=2)
    )


def conceptual(uid: str, **fields: str) -> str:
    lines = ["---", f"uid: {uid}"]
    lines.extend(f"{key}: {value}" for key, value in fields.items())
    lines.extend(["---", "", f"# {uid}", ""])
    return "\n".join(lines)


@pytest.fixture(autouse=True)
def reset_global_logger():
    """Give every test a fresh package logger."""
    yield
    logging_config._global_logger = None
    logging.getLogger("docfx_metadata").handlers.clear()


@pytest.fixture
def simple_project(tmp_path: Path) -> Path:
    """
    A simple project with 1 conceptual topic.

    ``articles/excluded.md`` is excluded and ``folder1/index.md`` is outside
    every file group.
    """
    project_dir = tmp_path / "simple"
    write_file(project_dir / "articles" / "index.md", INDEX_ARTICLE)
    write_file(project_dir / "articles" / "excluded.md", EXCLUDED_ARTICLE)
    write_file(project_dir / "folder1" / "index.md", conceptual("Folder1"))
    write_file(project_dir / "toc.yml", TABLE_OF_CONTENTS)
    return write_project(
        project_dir,
        [{"files": ["articles/**.md"], "exclude": ["articles/excluded.md"]}],
    )


@pytest.fixture
def expected_index_topic(simple_project: Path) -> TopicMetadata:
    return TopicMetadata(
        uid="Index",
        type="Conceptual",
        source_file=str(simple_project.parent / "articles" / "index.md"),
        name="Index",
        title="Example article",
        detailed_type=TopicType.CONCEPTUAL,
    )


@pytest.fixture
def reference_project(tmp_path: Path) -> Path:
    """
    A project with several file groups: a ``src`` group with an exclusion,
    an API group (whose JSON pattern is ignored), a Swagger-only group and a
    group whose ``files`` is a plain string.
    """
    project_dir = tmp_path / "reference"
    write_file(project_dir / "conceptual" / "index.md", conceptual("Home", title="Welcome"))
    write_file(
        project_dir / "conceptual" / "guide" / "setup.md",
        conceptual("Setup", name="Setup guide"),
    )
    write_file(project_dir / "conceptual" / "drafts" / "wip.md", conceptual("Draft"))
    write_file(project_dir / "conceptual" / "nofront.md", "# No front matter\n")
    write_file(project_dir / "api" / "MyLib.Widgets.yml", MANAGED_REFERENCE)
    write_file(project_dir / "api" / "toc.yml", TABLE_OF_CONTENTS)
    write_file(project_dir / "swagger" / "petstore.json", "{}")
    write_file(project_dir / "extra" / "notes.md", conceptual("Notes"))
    return write_project(
        project_dir,
        [
            {"files": ["**.md"], "exclude": ["drafts/**"], "src": "conceptual", "dest": "articles"},
            {"files": ["api/**.yml", "api/**.json"]},
            {"files": ["swagger/**.json"]},
            {"files": "extra/*.md"},
        ],
    )


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Directory for persisted cache state (not created up front)."""
    return tmp_path / "state"
