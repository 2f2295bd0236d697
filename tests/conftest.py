"""
Pytest configuration and shared fixtures.

Provides an in-memory VectorStore, a fake workspace file system, a scripted
embeddings transport and a factory for initialized MemoryManager instances.
"""

import asyncio
import json
import math
from typing import Any, Dict, List, Optional

import pytest

from pocket_memory.interfaces import ConfigurationError, HttpResponse, SearchResult, StorageError
from pocket_memory.memory import MemoryManager
from pocket_memory.storage import local_hash_embed

TEST_DIM = 512


def cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


def unit(*weights: float, dim: int = TEST_DIM) -> List[float]:
    """Unit vector whose leading components are proportional to ``weights``."""
    norm = math.sqrt(sum(w * w for w in weights)) or 1.0
    vec = [0.0] * dim
    for i, w in enumerate(weights):
        vec[i] = w / norm
    return vec


class ScriptedTransport:
    """Embeddings-endpoint transport serving fixed vectors per input text.

    Unknown texts get the local hash embedding so incidental calls still work.
    """

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, delay: float = 0.0):
        self.vectors = dict(vectors or {})
        self.delay = delay
        self.inputs: List[str] = []

    async def __call__(self, request):
        text = json.loads(request.body)["input"]
        self.inputs.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        vec = self.vectors.get(text) or local_hash_embed(text, TEST_DIM)
        return HttpResponse(status_code=200, body={"data": [{"embedding": vec}]})


class InMemoryVectorStore:
    """VectorStore fake with exact cosine search and equality filters."""

    def __init__(self, fail_open: bool = False):
        self.fail_open = fail_open
        self.open_calls: List[tuple] = []
        self.entries: Dict[str, Dict[str, Any]] = {}
        self.embedding_dim: Optional[int] = None
        self.fail_search = False

    async def open(self, path: str, embedding_dim: int) -> None:
        self.open_calls.append((path, embedding_dim))
        if self.fail_open:
            raise StorageError("cannot open store")
        self.embedding_dim = embedding_dim

    async def store(self, key, agent_id, text, embedding, metadata=None) -> None:
        if len(embedding) != self.embedding_dim:
            raise ConfigurationError("dimension mismatch")
        self.entries[key] = {
            "agent_id": agent_id,
            "text": text,
            "embedding": list(embedding),
            "metadata": dict(metadata or {}),
        }

    async def search(self, query_vector, limit, filter=None) -> List[SearchResult]:
        if self.fail_search:
            raise StorageError("search unavailable")
        hits = []
        for key, entry in self.entries.items():
            if filter and any(entry["metadata"].get(k) != v for k, v in filter.items()):
                continue
            hits.append(SearchResult(
                key=key,
                text=entry["text"],
                score=cosine(query_vector, entry["embedding"]),
                metadata=dict(entry["metadata"]),
            ))
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]

    async def delete(self, key: str) -> None:
        self.entries.pop(key, None)

    async def list(self, prefix=None, limit=None) -> List[str]:
        keys = [k for k in self.entries if not prefix or k.startswith(prefix)]
        return keys if limit is None else keys[:limit]

    async def clear(self, collection=None) -> None:
        self.entries.clear()


class FakeWorkspace:
    """Workspace file system keyed by relative path."""

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = dict(files or {})
        self.broken: set = set()

    async def read_file(self, path: str) -> Dict[str, Any]:
        if path in self.broken:
            raise OSError(f"read error on {path}")
        if path not in self.files:
            raise FileNotFoundError(path)
        return {"content": self.files[path]}

    async def list_files(self, dir_path: str) -> Dict[str, Any]:
        prefix = f"{dir_path}/"
        names = [p[len(prefix):] for p in self.files if p.startswith(prefix)]
        names += [p[len(prefix):] for p in self.broken if p.startswith(prefix)]
        if not names:
            raise FileNotFoundError(dir_path)
        return {"files": [{"name": n, "type": "file"} for n in sorted(set(names))]}


@pytest.fixture
def store():
    return InMemoryVectorStore()


@pytest.fixture
def workspace():
    return FakeWorkspace()


@pytest.fixture
def make_manager(store, workspace):
    """Factory for initialized managers using local hash embeddings."""
    async def _make(**config):
        manager = MemoryManager(store, read_file=workspace.read_file, list_files=workspace.list_files)
        await manager.init({"embedding_dim": TEST_DIM, **config})
        return manager
    return _make
