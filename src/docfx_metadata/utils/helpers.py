"""
Utility functions for docfx-metadata.

Key Functions:
    Structured files:
        - read_json: Parse a JSON file
        - read_yaml: Parse a YAML file, optionally requiring a ``### YamlMime:`` tag
        - read_yaml_front_matter: Parse the YAML front matter of a Markdown file

    Patterns and paths:
        - expand_glob_shorthand: Rewrite ``**.ext`` into patterns pathspec understands
        - compile_patterns: Build an anchored gitignore-style PathSpec
        - relative_posix_path: Path relative to a base directory, POSIX style
        - expand_pattern: Walk a directory for files matching one include pattern

Example:
    >>> from docfx_metadata.utils.helpers import compile_patterns
    >>> spec = compile_patterns(["articles/**.md"])
    >>> spec.match_file("articles/index.md"), spec.match_file("articles/a/b.md")
    (True, True)
    >>> spec.match_file("index.md")
    False
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pathspec
import yaml

YAML_MIME_PREFIX = "### YamlMime:"
FRONT_MATTER_DELIMITER = "---"
_FRONT_MATTER_END = ("---", "...")
_GLOB_CHARS = frozenset("*?[")


def read_text(path: Path) -> str:
    """Read a UTF-8 text file, dropping a leading byte-order mark."""
    text = path.read_text(encoding="utf-8")
    if text.startswith("\ufeff"):
        text = text[1:]
    return text


def read_json(path: Path) -> Any:
    return json.loads(read_text(path))


def read_yaml(path: Path, expected_mime_type: str | None = None) -> Any | None:
    """
    Read and parse a YAML file.

    Args:
        path: The file to read
        expected_mime_type: If given, the file must start with
            ``### YamlMime:<expected_mime_type>``; otherwise None is returned

    Returns:
        The parsed document, or None if the MIME tag did not match.
    """
    text = read_text(path)
    if expected_mime_type:
        first_line = text.split("\n", 1)[0].strip()
        if first_line != f"{YAML_MIME_PREFIX}{expected_mime_type}":
            return None

    return yaml.safe_load(text)


def split_front_matter(text: str) -> str | None:
    """Return the raw YAML between leading ``---`` delimiters, or None if there is none."""
    lines = text.splitlines()
    if not lines or lines[0].rstrip() != FRONT_MATTER_DELIMITER:
        return None

    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip() in _FRONT_MATTER_END:
            return "\n".join(lines[1:index])

    return None


def read_yaml_front_matter(path: Path) -> dict[str, Any] | None:
    """
    Read the YAML front matter from a Markdown file.

    Returns:
        The front-matter mapping, or None if the file has no front matter (or
        the front matter is not a mapping).
    """
    block = split_front_matter(read_text(path))
    if block is None:
        return None

    data = yaml.safe_load(block)
    if not isinstance(data, dict):
        return None

    return data


def expand_glob_shorthand(pattern: str) -> list[str]:
    """
    Expand the ``**.ext`` shorthand used by DocFX file groups.

    ``articles/**.md`` means "Markdown files in articles, at any depth", which
    gitwildmatch cannot express directly, so it becomes two patterns:
    ``articles/*.md`` and ``articles/**/*.md``.
    """
    pattern = pattern.replace("\\", "/")
    segments = pattern.split("/")
    for index, segment in enumerate(segments):
        if segment.startswith("**."):
            shallow = segments[:index] + ["*" + segment[2:]] + segments[index + 1 :]
            deep = segments[:index] + ["**", "*" + segment[2:]] + segments[index + 1 :]
            return ["/".join(shallow), "/".join(deep)]

    return [pattern]


def _anchor(pattern: str) -> str:
    if pattern.startswith("./"):
        pattern = pattern[2:]
    return "/" + pattern.lstrip("/")


def compile_patterns(patterns: Iterable[str]) -> pathspec.GitIgnoreSpec:
    """
    Compile glob patterns into a gitignore-style PathSpec.

    Every pattern is anchored to the base directory, so ``*.md`` only matches
    top-level files while ``**/*.md`` matches at any depth.
    """
    lines: list[str] = []
    for pattern in patterns:
        if not pattern or not pattern.strip():
            continue
        lines.extend(_anchor(expanded) for expanded in expand_glob_shorthand(pattern.strip()))

    return pathspec.GitIgnoreSpec.from_lines(lines)


def relative_posix_path(path: Path | str, base_dir: Path | str) -> str | None:
    """
    Express ``path`` relative to ``base_dir`` using forward slashes.

    Relative paths are returned normalised but otherwise unchanged. Returns
    None when ``path`` lies outside ``base_dir``.
    """
    path = Path(path)
    if path.is_absolute():
        try:
            relative = os.path.relpath(path, base_dir)
        except ValueError:
            # Different drive on Windows
            return None
    else:
        relative = os.path.normpath(path)

    relative = Path(relative).as_posix()
    if relative == ".." or relative.startswith("../"):
        return None

    return relative


def literal_prefix(pattern: str) -> str:
    """The leading directory segments of a pattern that contain no glob characters."""
    segments = pattern.replace("\\", "/").strip("/").split("/")[:-1]
    prefix: list[str] = []
    for segment in segments:
        if segment in ("", ".") or _GLOB_CHARS & set(segment):
            break
        prefix.append(segment)
    return "/".join(prefix)


def _join(rel_dir: str, name: str) -> str:
    return name if rel_dir == "." else f"{rel_dir}/{name}"


def expand_pattern(
    base_dir: Path,
    include_pattern: str,
    exclude_patterns: Iterable[str] = (),
    *,
    follow_symlinks: bool = False,
    prune_excluded_dirs: bool = True,
) -> list[Path]:
    """
    Find the files under ``base_dir`` that match a single include pattern.

    The walk starts at the pattern's literal directory prefix. When
    ``prune_excluded_dirs`` is set, directories matched by an exclude pattern
    are not descended into; files matched by an exclude pattern are always
    dropped.

    Returns:
        Absolute (base-joined) paths of the matching files, in walk order.
    """
    base_dir = Path(base_dir)
    include = compile_patterns([include_pattern])
    exclude = compile_patterns(exclude_patterns)

    start_dir = base_dir / literal_prefix(include_pattern)
    if not start_dir.is_dir():
        return []

    matches: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(start_dir, followlinks=follow_symlinks):
        rel_dir = Path(os.path.relpath(dirpath, base_dir)).as_posix()

        if prune_excluded_dirs and dirnames:
            dirnames[:] = [
                name for name in dirnames if not exclude.match_file(_join(rel_dir, name) + "/")
            ]
        dirnames.sort()

        for name in sorted(filenames):
            rel = _join(rel_dir, name)
            if not include.match_file(rel):
                continue
            if exclude.match_file(rel):
                continue
            matches.append(Path(dirpath) / name)

    return matches
