"""Tests for docfx_metadata.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from docfx_metadata.core.config import DEFAULT_CACHE_FILE, MetadataConfig
from docfx_metadata.utils.error_handling import ConfigurationError, ErrorCategory


class TestMetadataConfig:
    def test_defaults(self):
        config = MetadataConfig()
        assert config.topic_extensions() == (".md", ".yml")
        assert config.watch_patterns() == ["**/*.md", "**/*.yml"]
        assert config.cache_file_name == DEFAULT_CACHE_FILE == "topic-cache.json"
        assert config.watch_changes is False
        config.validate()

    def test_file_kinds(self):
        config = MetadataConfig()
        assert config.is_conceptual_file("a/Index.MD")
        assert not config.is_conceptual_file("a/index.yml")
        assert config.is_reference_file(Path("api/x.yml"))
        assert not config.is_reference_file("api/x.yaml")

    def test_is_content_pattern(self):
        config = MetadataConfig()
        assert config.is_content_pattern("articles/**.md")
        assert not config.is_content_pattern("restapi/**.json")
        assert not config.is_content_pattern("restapi/**.JSON")

    def test_resolve_cache_file(self, tmp_path: Path):
        config = MetadataConfig(cache_file_name="topics.json")
        assert config.resolve_cache_file(tmp_path) == tmp_path / "topics.json"

    def test_slots(self):
        config = MetadataConfig()
        with pytest.raises(AttributeError):
            config.unknown_option = True  # type: ignore[attr-defined]


class TestValidate:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"conceptual_extensions": ("md",)},
            {"reference_extensions": (".YML",)},
            {"conceptual_extensions": (".md",), "reference_extensions": (".md",)},
            {"cache_file_name": ""},
            {"cache_file_name": "nested/topics.json"},
            {"debounce_delay": -1.0},
            {"persist_indent": -2},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError) as exc_info:
            MetadataConfig(**kwargs).validate()
        assert exc_info.value.category == ErrorCategory.CONFIGURATION

    def test_compact_output_is_valid(self):
        MetadataConfig(persist_indent=None).validate()
