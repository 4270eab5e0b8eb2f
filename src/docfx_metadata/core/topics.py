"""
Topic metadata extraction from DocFX content files.

Two kinds of content file carry topics:

    - Conceptual (Markdown) files declare a single topic in their YAML front
      matter. A file without front matter, or whose front matter has no
      ``uid``, contributes no topics.
    - Managed reference (YAML) files start with ``### YamlMime:ManagedReference``
      and declare one topic per item with a ``uid``. A YAML file without that
      tag (a table of contents, for example) contributes no topics.

Every extracted topic is categorised into a TopicType.

Example:
    >>> topics = await get_file_topics(Path("docs/articles/index.md"))
    >>> [(t.uid, t.detailed_type) for t in topics]
    [('Index', <TopicType.CONCEPTUAL: 1>)]
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import yaml

from ..utils.error_handling import TopicParseError
from ..utils.helpers import read_yaml, read_yaml_front_matter
from .config import MetadataConfig
from .types import TopicMetadata, TopicType

CONCEPTUAL = "Conceptual"
MANAGED_REFERENCE = "Reference.Managed"
POWERSHELL_REFERENCE = "Reference.PowerShell"

MANAGED_REFERENCE_MIME_TYPE = "ManagedReference"

_MANAGED_MEMBER_TYPES: dict[str, TopicType] = {
    "Namespace": TopicType.NAMESPACE,
    "Class": TopicType.TYPE,
    "Struct": TopicType.TYPE,
    "Interface": TopicType.TYPE,
    "Delegate": TopicType.TYPE,
    "Property": TopicType.PROPERTY,
    "Method": TopicType.METHOD,
    "Constructor": TopicType.METHOD,
}

_POWERSHELL_MEMBER_TYPES: dict[str, TopicType] = {
    "Cmdlet": TopicType.POWERSHELL_CMDLET,
}


def categorize_topic(topic: TopicMetadata) -> TopicType:
    """Determine the type of topic represented by the specified topic metadata."""
    if topic.type == CONCEPTUAL:
        return TopicType.CONCEPTUAL
    if topic.type == MANAGED_REFERENCE:
        return _MANAGED_MEMBER_TYPES.get(topic.member_type or "", TopicType.OTHER)
    if topic.type == POWERSHELL_REFERENCE:
        return _POWERSHELL_MEMBER_TYPES.get(topic.member_type or "", TopicType.OTHER)
    return TopicType.OTHER


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def parse_conceptual_topic(path: Path) -> TopicMetadata | None:
    """Parse topic metadata from a Markdown file's YAML front matter."""
    try:
        front_matter = read_yaml_front_matter(path)
    except yaml.YAMLError as e:
        raise TopicParseError(f"Invalid YAML front matter: {e}", path) from e

    if not front_matter or not front_matter.get("uid"):
        return None

    uid = str(front_matter["uid"])
    name = _optional_str(front_matter.get("name")) or uid
    return TopicMetadata(
        uid=uid,
        type=_optional_str(front_matter.get("type")) or CONCEPTUAL,
        source_file=str(path),
        name=name,
        title=_optional_str(front_matter.get("title")) or name,
        member_type=_optional_str(front_matter.get("memberType")),
    )


def parse_managed_reference_topics(path: Path) -> list[TopicMetadata]:
    """Parse topic metadata from DocFX managed reference YAML."""
    try:
        document = read_yaml(path, MANAGED_REFERENCE_MIME_TYPE)
    except yaml.YAMLError as e:
        raise TopicParseError(f"Invalid managed reference YAML: {e}", path) from e

    if not isinstance(document, dict):
        return []

    topics: list[TopicMetadata] = []
    for item in document.get("items") or []:
        if not isinstance(item, dict) or not item.get("uid"):
            continue

        uid = str(item["uid"])
        topics.append(
            TopicMetadata(
                uid=uid,
                type=MANAGED_REFERENCE,
                source_file=str(path),
                name=_optional_str(item.get("fullName") or item.get("name")) or uid,
                title=_optional_str(item.get("nameWithType") or item.get("name")),
                member_type=_optional_str(item.get("type")),
            )
        )

    return topics


def extract_file_topics(path: Path, config: MetadataConfig | None = None) -> list[TopicMetadata]:
    """Synchronous core of get_file_topics."""
    config = config or MetadataConfig()
    path = Path(path)

    if config.is_conceptual_file(path):
        conceptual_topic = parse_conceptual_topic(path)
        topics = [conceptual_topic] if conceptual_topic else []
    elif config.is_reference_file(path):
        topics = parse_managed_reference_topics(path)
    else:
        return []

    for topic in topics:
        topic.detailed_type = categorize_topic(topic)

    return topics


async def get_file_topics(
    path: Path | str, config: MetadataConfig | None = None
) -> list[TopicMetadata]:
    """
    Get metadata for the topic(s) defined in the specified content file.

    Args:
        path: The full path of the content file.
        config: Controls which extensions are conceptual / reference files.

    Returns:
        The topics (possibly none) defined in the file.

    Raises:
        TopicParseError: If the file's YAML cannot be parsed.
        OSError: If the file cannot be read.
    """
    return await asyncio.to_thread(extract_file_topics, Path(path), config)
