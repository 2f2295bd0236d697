"""
Low-level vector store tools.

These pass raw keys, vectors and metadata straight to a VectorStore, with
no embedding, classification or duplicate checks. Hosts use them when the
agent (or another component) already has vectors to work with. Store
failures, including use before the store is opened, come back as
``{"error": "<message>"}``.
"""

import json
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, field_validator

from pocket_memory.interfaces import VectorStore

from .tools import DEFAULT_TOOL_LIMIT, MemoryTool, ToolInput


class StoreEntryInput(ToolInput):
    """Arguments for the raw memory_store tool."""
    key: str = Field(..., min_length=1, description="Unique identifier for this memory entry")
    agent_id: str = Field(..., alias="agentId", description='Agent that owns this memory (e.g. "main")')
    text: str = Field(..., description="The text content to store")
    embedding: List[float] = Field(..., min_length=1, description="Embedding vector")
    metadata: Optional[Union[Dict[str, Any], str]] = Field(
        None, description="Optional metadata, as an object or a JSON string"
    )

    @field_validator("metadata")
    @classmethod
    def _parse_metadata(cls, value):
        if isinstance(value, str):
            parsed = json.loads(value)
            if not isinstance(parsed, dict):
                raise ValueError("metadata must be a JSON object")
            return parsed
        return value


class VectorSearchInput(ToolInput):
    """Arguments for the raw memory_search tool."""
    query_vector: List[float] = Field(..., min_length=1, alias="queryVector", description="Query embedding vector")
    limit: int = Field(DEFAULT_TOOL_LIMIT, ge=1, description="Maximum number of results (default: 5)")
    filter: Optional[Dict[str, Any]] = Field(
        None, description='Metadata equality filter (e.g. {"source": "file"})'
    )


class DeleteInput(ToolInput):
    """Arguments for the memory_delete tool."""
    key: str = Field(..., min_length=1, description="Key of the memory entry to delete")


class ListInput(ToolInput):
    """Arguments for the memory_list tool."""
    prefix: Optional[str] = Field(None, description="Only return keys starting with this prefix")
    limit: Optional[int] = Field(None, ge=0, description="Maximum number of keys to return")


class ClearInput(ToolInput):
    """Arguments for the memory_clear tool."""
    collection: Optional[str] = Field(None, description="Named collection to clear (default: memories)")


def create_store_tools(store: VectorStore) -> List[MemoryTool]:
    """
    Create the raw store tools bound to ``store``.

    Returns:
        [memory_store, memory_search, memory_delete, memory_list, memory_clear]
    """

    async def memory_store(args: StoreEntryInput) -> Dict[str, Any]:
        await store.store(args.key, args.agent_id, args.text, args.embedding, args.metadata)
        return {"success": True}

    async def memory_search(args: VectorSearchInput) -> Dict[str, Any]:
        results = await store.search(args.query_vector, args.limit, args.filter)
        return {"results": [asdict(r) for r in results]}

    async def memory_delete(args: DeleteInput) -> Dict[str, Any]:
        await store.delete(args.key)
        return {"success": True}

    async def memory_list(args: ListInput) -> Dict[str, Any]:
        return {"keys": await store.list(prefix=args.prefix, limit=args.limit)}

    async def memory_clear(args: ClearInput) -> Dict[str, Any]:
        await store.clear(args.collection)
        return {"success": True}

    return [
        MemoryTool(
            name="memory_store",
            description=(
                "Store a text chunk with its embedding vector in persistent memory. "
                "If a key already exists it is overwritten."
            ),
            args_schema=StoreEntryInput,
            handler=memory_store,
        ),
        MemoryTool(
            name="memory_search",
            description=(
                "Search for similar memories using a query embedding vector. Returns the "
                "top-k nearest neighbours with similarity scores."
            ),
            args_schema=VectorSearchInput,
            handler=memory_search,
        ),
        MemoryTool(
            name="memory_delete",
            description="Delete a specific memory entry by its key.",
            args_schema=DeleteInput,
            handler=memory_delete,
        ),
        MemoryTool(
            name="memory_list",
            description="List memory keys, optionally filtered by a key prefix.",
            args_schema=ListInput,
            handler=memory_list,
        ),
        MemoryTool(
            name="memory_clear",
            description="Drop all data from the memory table. Optionally specify a named collection.",
            args_schema=ClearInput,
            handler=memory_clear,
        ),
    ]
