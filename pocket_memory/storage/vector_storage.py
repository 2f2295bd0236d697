"""
Vector Storage Implementation

ChromaDB-backed implementation of the VectorStore collaborator. Any store
honouring pocket_memory.interfaces.VectorStore can replace it (the mobile
LanceDB bridge, an in-memory fake in tests, ...).

Chroma calls are blocking; they run in a worker thread so a slow query
does not stall the event loop.
"""

import asyncio
import json
import logging
import os
from typing import List, Dict, Any, Optional

import chromadb

from pocket_memory.interfaces import (
    FILES_SCHEME,
    SearchFilter,
    SearchResult,
    StorageError,
    ConnectionError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "memories"


class ChromaVectorStore:
    """
    Vector Database Storage Backend
    Implementation using ChromaDB, cosine space (score = 1 - distance)
    """

    def __init__(self, collection_name: str = DEFAULT_COLLECTION, sandbox_root: Optional[str] = None):
        """
        Args:
            collection_name: Chroma collection holding the memories
            sandbox_root: Directory that ``files://`` paths resolve under.
                Defaults to the current working directory.
        """
        self.collection_name = collection_name
        self.sandbox_root = sandbox_root
        self.client = None
        self.collection = None
        self.embedding_dim: Optional[int] = None
        self.persist_path: Optional[str] = None

    # ========================================================================
    # PUBLIC INTERFACE - Called by the Memory Manager
    # ========================================================================

    async def open(self, path: str, embedding_dim: int) -> None:
        """Open (or create) the store at ``path``"""
        if embedding_dim <= 0:
            raise ConfigurationError(f"Invalid embedding dimension: {embedding_dim}")
        try:
            self.persist_path = self.resolve_path(path)
            logger.info(f"Opening vector store at {self.persist_path} (dim={embedding_dim})")

            self.client = await asyncio.to_thread(chromadb.PersistentClient, path=self.persist_path)
            self.collection = await asyncio.to_thread(self._get_or_create_collection, self.collection_name)
            self.embedding_dim = embedding_dim
        except Exception as e:
            self.client = None
            self.collection = None
            raise ConnectionError(f"Failed to open vector store: {e}") from e

    async def store(
        self,
        key: str,
        agent_id: str,
        text: str,
        embedding: List[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Upsert an entry; the same key overwrites"""
        collection = self._require_open()
        self._check_dimension(embedding)
        try:
            await asyncio.to_thread(
                collection.upsert,
                ids=[key],
                documents=[text],
                embeddings=[list(embedding)],
                metadatas=[self._prepare_metadata(agent_id, metadata)],
            )
        except Exception as e:
            raise StorageError(f"Store failed for {key}: {e}") from e

    async def search(
        self,
        query_vector: List[float],
        limit: int,
        filter: Optional[SearchFilter] = None,
    ) -> List[SearchResult]:
        """Nearest neighbours of ``query_vector``, most similar first"""
        collection = self._require_open()
        self._check_dimension(query_vector)
        try:
            total = await asyncio.to_thread(collection.count)
            if total == 0 or limit <= 0:
                return []

            query: Dict[str, Any] = {
                "query_embeddings": [list(query_vector)],
                "n_results": min(limit, total),
                "include": ["documents", "metadatas", "distances"],
            }
            where = self._build_where(filter)
            if where:
                query["where"] = where
            results = await asyncio.to_thread(collection.query, **query)

            search_results = []
            if results["ids"]:
                for i in range(len(results["ids"][0])):
                    distance = results["distances"][0][i]
                    search_results.append(SearchResult(
                        key=results["ids"][0][i],
                        text=results["documents"][0][i],
                        score=1 - distance,
                        metadata=self._restore_metadata(results["metadatas"][0][i]),
                    ))
            return search_results
        except Exception as e:
            raise StorageError(f"Search failed: {e}") from e

    async def delete(self, key: str) -> None:
        """Delete an entry by key (missing keys are ignored)"""
        collection = self._require_open()
        try:
            await asyncio.to_thread(collection.delete, ids=[key])
        except Exception as e:
            raise StorageError(f"Delete failed for {key}: {e}") from e

    async def list(self, prefix: Optional[str] = None, limit: Optional[int] = None) -> List[str]:
        """List keys, optionally filtered by prefix"""
        collection = self._require_open()
        try:
            ids = (await asyncio.to_thread(collection.get, include=[]))["ids"]
        except Exception as e:
            raise StorageError(f"List failed: {e}") from e

        if prefix:
            ids = [i for i in ids if i.startswith(prefix)]
        if limit is not None:
            ids = ids[:limit]
        return ids

    async def clear(self, collection: Optional[str] = None) -> None:
        """Drop all entries of a collection (default: this store's)"""
        self._require_open()
        name = collection or self.collection_name
        try:
            await asyncio.to_thread(self.client.delete_collection, name)
            if name == self.collection_name:
                self.collection = await asyncio.to_thread(self._get_or_create_collection, name)
        except Exception as e:
            raise StorageError(f"Clear failed for collection {name}: {e}") from e

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    def resolve_path(self, path: str) -> str:
        """Map a ``files://`` path onto the sandbox root"""
        if path.startswith(FILES_SCHEME):
            root = self.sandbox_root or os.getcwd()
            return os.path.join(root, path[len(FILES_SCHEME):])
        return path

    def _get_or_create_collection(self, name: str):
        return self.client.get_or_create_collection(
            name=name,
            metadata={"hnsw:space": "cosine"},
        )

    def _require_open(self):
        if self.collection is None:
            raise StorageError("Vector store is not open")
        return self.collection

    def _check_dimension(self, vector: List[float]) -> None:
        if len(vector) != self.embedding_dim:
            raise ConfigurationError(
                f"Vector dimension {len(vector)} does not match store dimension {self.embedding_dim}"
            )

    def _prepare_metadata(self, agent_id: str, metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Flatten metadata into Chroma's scalar-only metadata"""
        meta: Dict[str, Any] = {}
        for name, value in (metadata or {}).items():
            if value is None:
                continue
            if isinstance(value, (dict, list, tuple)):
                value = json.dumps(value)
            meta[name] = value
        meta["agent_id"] = agent_id
        return meta

    def _restore_metadata(self, res_meta: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        meta = dict(res_meta or {})
        meta.pop("agent_id", None)
        return meta

    def _build_where(self, filter: Optional[SearchFilter]) -> Optional[Dict[str, Any]]:
        """Equality filter over metadata fields, in Chroma's where syntax"""
        if not filter:
            return None
        clauses = [{name: value} for name, value in filter.items()]
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}
