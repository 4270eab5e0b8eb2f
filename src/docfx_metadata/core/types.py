"""
Core type definitions for docfx-metadata.

Key Types:
    TopicType: Well-known detailed topic categories (used to filter topic lists)
    TopicChangeType: Kind of change reported for a content file
    TopicMetadata: Metadata for one topic defined in a content file
    TopicChange: A change to the topics defined by one content file

Topic records serialise to the camelCase shape used by the persisted topic
cache and by change notifications:

    >>> topic = TopicMetadata(uid="Index", type="Conceptual", source_file="articles/index.md")
    >>> topic.to_dict()
    {'uid': 'Index', 'type': 'Conceptual', 'sourceFile': 'articles/index.md'}
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any


class TopicType(IntEnum):
    """Well-known topic types used to filter topic lists."""

    CONCEPTUAL = 1
    NAMESPACE = 2
    TYPE = 3
    PROPERTY = 4
    METHOD = 5
    POWERSHELL_CMDLET = 6
    OTHER = 7


class TopicChangeType(str, Enum):
    """The kind of change made to a content file."""

    ADDED = "Added"
    CHANGED = "Changed"
    REMOVED = "Removed"


@dataclass
class TopicMetadata:
    """
    Metadata for a single DocFX topic.

    Attributes:
        uid: The topic UID (required, unique within a project)
        type: The topic type ("Conceptual", "Reference.Managed", ...)
        source_file: The content file that defines the topic
        name: The topic name
        title: The topic title
        member_type: The member type (for reference topics)
        detailed_type: The topic's well-known sub-type
    """

    uid: str
    type: str
    source_file: str
    name: str | None = None
    title: str | None = None
    member_type: str | None = None
    detailed_type: TopicType | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "uid": self.uid,
            "type": self.type,
            "sourceFile": self.source_file,
        }
        if self.name is not None:
            data["name"] = self.name
        if self.title is not None:
            data["title"] = self.title
        if self.member_type is not None:
            data["memberType"] = self.member_type
        if self.detailed_type is not None:
            data["detailedType"] = int(self.detailed_type)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TopicMetadata:
        """Build a topic from its serialised form; ``uid`` is required."""
        uid = data.get("uid")
        if not uid:
            raise ValueError("Topic metadata requires a uid")

        detailed_type = data.get("detailedType")
        return cls(
            uid=str(uid),
            type=str(data.get("type") or ""),
            source_file=str(data.get("sourceFile") or ""),
            name=data.get("name"),
            title=data.get("title"),
            member_type=data.get("memberType"),
            detailed_type=TopicType(detailed_type) if detailed_type is not None else None,
        )

    def with_source_file(self, source_file: Path | str) -> TopicMetadata:
        return replace(self, source_file=str(source_file))


@dataclass
class TopicChange:
    """
    A change to the topics defined by one content file.

    ``topics`` is populated for ADDED and CHANGED notifications and is None
    for REMOVED.
    """

    change_type: TopicChangeType
    content_file: str
    topics: list[TopicMetadata] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "changeType": self.change_type.value,
            "contentFile": self.content_file,
        }
        if self.topics is not None:
            data["topics"] = [topic.to_dict() for topic in self.topics]
        return data
