"""Tests for shared data structures in pocket_memory.interfaces."""

import pytest

from pocket_memory.interfaces import (
    ChunkingConfig,
    MemoryCategory,
    MemoryEntry,
    MemoryManagerConfig,
    MemoryMetadata,
    SearchResult,
    ValidationError,
)


class TestMemoryMetadata:

    def test_wire_format_is_flat_camel_case(self):
        meta = MemoryMetadata(source="file", path="MEMORY.md", start_line=1, end_line=4, chunk_index=0)
        assert meta.to_store() == {
            "source": "file",
            "path": "MEMORY.md",
            "startLine": 1,
            "endLine": 4,
            "chunkIndex": 0,
            "schemaVersion": 1,
        }

    def test_category_serialized_as_value(self):
        meta = MemoryMetadata(category=MemoryCategory.FACT, importance=0.7, auto=True)
        assert meta.to_store()["category"] == "fact"

    @pytest.mark.parametrize("raw", [None, "", "not json", "[1, 2]", {"startLine": "many"}])
    def test_unparseable_metadata_is_empty(self, raw):
        meta = MemoryMetadata.from_store(raw)
        assert meta.category_or_default == MemoryCategory.OTHER
        assert meta.start_line is None

    def test_json_string_accepted(self):
        meta = MemoryMetadata.from_store('{"category": "decision", "startLine": 3}')
        assert meta.category == MemoryCategory.DECISION
        assert meta.start_line == 3

    def test_unknown_category_maps_to_other(self):
        assert MemoryMetadata.from_store({"category": "hobby"}).category == MemoryCategory.OTHER


class TestMemoryEntry:

    def test_from_search_result(self):
        entry = MemoryEntry.from_search_result(
            SearchResult(key="mem-1", text="I prefer tea", score=0.8, metadata={"category": "preference"})
        )
        assert entry.category == MemoryCategory.PREFERENCE
        assert entry.score == 0.8

    def test_missing_metadata_defaults(self):
        entry = MemoryEntry.from_search_result(SearchResult(key="k", text="t", score=0.5))
        assert entry.category == MemoryCategory.OTHER


class TestConfigs:

    def test_manager_defaults(self):
        config = MemoryManagerConfig()
        assert config.embedding_dim == 1536
        assert config.db_path == "memory-lancedb"
        assert config.agent_id == "main"
        assert config.recall_limit == 3
        assert config.recall_min_score == 0.3
        assert config.capture_max_chars == 500
        assert config.dup_threshold == 0.95
        assert config.openai_api_key is None

    def test_manager_rejects_non_positive(self):
        with pytest.raises(ValueError):
            MemoryManagerConfig(recall_limit=0)
        config = MemoryManagerConfig()
        with pytest.raises(ValueError):
            config.capture_max_chars = -1

    def test_chunking_config(self):
        config = ChunkingConfig(tokens=10, overlap=2)
        assert config.max_chars == 40
        assert config.overlap_chars == 8
        with pytest.raises(ValidationError):
            ChunkingConfig(overlap=-1)
