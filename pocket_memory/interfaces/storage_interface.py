"""
Storage Interface - Shared Data Structures

⚠️ IMPORTANT: These are PUBLIC interfaces that the Memory Manager depends on!
   - DO NOT change data structure fields without updating the manager and indexer
   - DO NOT remove or rename existing metadata keys (persisted data outlives the code)
   - You MAY add new optional fields; bump METADATA_SCHEMA_VERSION when you do

This file contains ONLY shared data structures for the Storage layer.
For implementation, see pocket_memory/storage/
"""

import json
from typing import List, Dict, Any, Optional, Protocol, Union, runtime_checkable
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


METADATA_SCHEMA_VERSION = 1

# Opaque, store-defined predicate. The bundled stores treat it as an
# equality match over metadata fields.
SearchFilter = Dict[str, Any]


# ============================================================================
# PUBLIC DATA STRUCTURES
# ============================================================================


class MemoryCategory(str, Enum):
    """Category assigned to a stored memory"""
    PREFERENCE = "preference"
    FACT = "fact"
    DECISION = "decision"
    ENTITY = "entity"
    OTHER = "other"


class MemoryMetadata(BaseModel):
    """Typed view of the metadata blob stored next to each vector.

    On the wire the line-range keys are camelCase (``startLine``, ``endLine``,
    ``chunkIndex``) so entries written by other clients of the same store
    stay readable.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source: Optional[str] = None
    category: Optional[MemoryCategory] = None
    path: Optional[str] = None
    start_line: Optional[int] = Field(None, alias="startLine")
    end_line: Optional[int] = Field(None, alias="endLine")
    chunk_index: Optional[int] = Field(None, alias="chunkIndex")
    importance: Optional[float] = None
    auto: Optional[bool] = None
    schema_version: int = Field(METADATA_SCHEMA_VERSION, alias="schemaVersion")

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        if value is None or isinstance(value, MemoryCategory):
            return value
        try:
            return MemoryCategory(str(value).lower())
        except ValueError:
            return MemoryCategory.OTHER

    def to_store(self) -> Dict[str, Any]:
        """Flatten into a JSON-compatible dict for the vector store"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @classmethod
    def from_store(cls, raw: Union[str, Dict[str, Any], None]) -> "MemoryMetadata":
        """Parse metadata as returned by the store.

        Missing or unparseable metadata yields an empty instance rather than
        raising; callers fall back to defaults.
        """
        if not raw:
            return cls()
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                return cls()
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValueError:
            return cls()

    @property
    def category_or_default(self) -> MemoryCategory:
        return self.category or MemoryCategory.OTHER


@dataclass
class SearchResult:
    """Raw nearest-neighbour hit returned by a VectorStore.

    ``score`` is a similarity: higher means more relevant.
    """
    key: str
    text: str
    score: float
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class MemoryEntry:
    """A stored memory as seen by the Memory Manager"""
    key: str
    text: str
    score: float
    category: MemoryCategory = MemoryCategory.OTHER
    metadata: MemoryMetadata = field(default_factory=MemoryMetadata)

    @classmethod
    def from_search_result(cls, result: SearchResult) -> "MemoryEntry":
        meta = MemoryMetadata.from_store(result.metadata)
        return cls(
            key=result.key,
            text=result.text,
            score=result.score,
            category=meta.category_or_default,
            metadata=meta,
        )


# ============================================================================
# COLLABORATOR CONTRACT
# ============================================================================


@runtime_checkable
class VectorStore(Protocol):
    """Vector store collaborator consumed by the Memory Manager.

    Metric direction: ``search`` MUST return similarities where higher means
    closer. Every threshold in the manager compares with ``>=``; a store
    returning distances would silently invert them.
    """

    async def open(self, path: str, embedding_dim: int) -> None: ...

    async def store(
        self,
        key: str,
        agent_id: str,
        text: str,
        embedding: List[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None: ...

    async def search(
        self,
        query_vector: List[float],
        limit: int,
        filter: Optional[SearchFilter] = None,
    ) -> List[SearchResult]: ...

    async def delete(self, key: str) -> None: ...

    async def list(self, prefix: Optional[str] = None, limit: Optional[int] = None) -> List[str]: ...

    async def clear(self, collection: Optional[str] = None) -> None: ...
