"""
Manager modules that sit between the file system and the metadata cache.

- topic_changes: Shared file watching that publishes TopicChange notifications
"""

from .topic_changes import TopicChangeFeed, TopicChangeSubscription, observe_topic_changes

__all__ = ["TopicChangeFeed", "TopicChangeSubscription", "observe_topic_changes"]
