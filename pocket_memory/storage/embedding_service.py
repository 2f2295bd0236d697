"""
Embedding Service Implementation

Two sources of vectors:
- the OpenAI embeddings endpoint, reached through an injectable HTTP
  transport (hosts with a sandboxed network stack pass their own), and
- a deterministic local hash embedding used when no API key is configured,
  so the memory layer works fully offline.

A remote failure raises EmbeddingError; it never falls back to a local
vector, the two vector spaces are not comparable.
"""

import asyncio
import json
import logging
from typing import Any, List, Optional

import numpy as np
import requests

from pocket_memory.interfaces import (
    DEFAULT_EMBEDDING_DIM,
    EmbeddingError,
    HttpRequest,
    HttpRequestFn,
    HttpResponse,
)

logger = logging.getLogger(__name__)

OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"
OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"
REMOTE_TIMEOUT_SECONDS = 15.0

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193
_DIM_MIX = 2654435761
_ROUND_MIX = 0x45D9F3B


# ============================================================================
# LOCAL HASH EMBEDDING
# ============================================================================


def fnv1a(token: str) -> int:
    """32-bit FNV-1a over the UTF-8 bytes of ``token``."""
    h = _FNV_OFFSET
    for byte in token.encode("utf-8"):
        h ^= byte
        h = (h * _FNV_PRIME) & _MASK32
    return h


def seeded_random(seed: int, dims: np.ndarray) -> np.ndarray:
    """Pseudo-random values in [-1, 1] for (seed, dim) pairs.

    ``dims`` is an unsigned integer array of dimension indices. All
    arithmetic is unsigned 32-bit; products stay below 2**64 so uint64 holds
    them without wrapping.
    """
    h = np.uint64(seed) ^ ((dims * np.uint64(_DIM_MIX)) & np.uint64(_MASK32))
    for _ in range(2):
        h = (((h >> np.uint64(16)) ^ h) * np.uint64(_ROUND_MIX)) & np.uint64(_MASK32)
    h = (h >> np.uint64(16)) ^ h
    return h.astype(np.float64) / float(_MASK32) * 2.0 - 1.0


def local_hash_embed(text: str, dim: int) -> List[float]:
    """Deterministic random-projection bag-of-words embedding.

    Identical ``text`` and ``dim`` always give a bit-identical vector. Empty
    text gives the zero vector.
    """
    dims = np.arange(dim, dtype=np.uint64)
    vec = np.zeros(dim, dtype=np.float64)
    for token in text.lower().split():
        vec += seeded_random(fnv1a(token), dims)

    norm = float(np.sqrt(np.dot(vec, vec))) or 1.0
    return (vec / norm).tolist()


# ============================================================================
# TRANSPORT
# ============================================================================


async def requests_transport(request: HttpRequest) -> HttpResponse:
    """Default transport: ``requests`` run off the event loop."""
    resp = await asyncio.to_thread(
        requests.request,
        request.method,
        request.url,
        headers=request.headers,
        data=request.body.encode("utf-8"),
        timeout=request.timeout,
    )
    return HttpResponse(status_code=resp.status_code, body=resp.text)


# ============================================================================
# SERVICES
# ============================================================================


class LocalEmbeddingService:
    """Embedding service using the offline hash projection"""

    def __init__(self, dimension: int = DEFAULT_EMBEDDING_DIM):
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension

    async def embed_text(self, text: str) -> List[float]:
        """Generate embedding for a single text"""
        return local_hash_embed(text, self.dimension)

    async def embed_texts_batch(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts"""
        return [local_hash_embed(t, self.dimension) for t in texts]

    def get_embedding_dimension(self) -> int:
        return self.dimension


class OpenAIEmbeddingService:
    """Embedding service using the OpenAI embeddings endpoint"""

    def __init__(
        self,
        api_key: str,
        dimension: int = DEFAULT_EMBEDDING_DIM,
        http_request: Optional[HttpRequestFn] = None,
        model: str = OPENAI_EMBEDDING_MODEL,
        timeout: float = REMOTE_TIMEOUT_SECONDS,
    ):
        if not api_key:
            raise ValueError("api_key is required for OpenAI embeddings")
        self.api_key = api_key
        self.dimension = dimension
        self.model = model
        self.timeout = timeout
        self._transport = http_request or requests_transport

    async def embed_text(self, text: str) -> List[float]:
        """Generate embedding for a single text.

        Raises:
            EmbeddingError: on transport failure, timeout, provider error or
                a malformed response.
        """
        request = HttpRequest(
            url=OPENAI_EMBEDDINGS_URL,
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            body=json.dumps({"model": self.model, "input": text}),
            timeout=self.timeout,
        )

        try:
            response = await asyncio.wait_for(self._transport(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise EmbeddingError(f"OpenAI embedding timed out after {self.timeout}s")
        except Exception as e:
            logger.error(f"OpenAI embedding request failed: {e}")
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

        return self._parse_response(response)

    async def embed_texts_batch(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts (one request each)"""
        return [await self.embed_text(t) for t in texts]

    def get_embedding_dimension(self) -> int:
        return self.dimension

    def _parse_response(self, response: HttpResponse) -> List[float]:
        data: Any = response.body
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except ValueError as e:
                raise EmbeddingError(
                    f"OpenAI embedding error: invalid JSON (HTTP {response.status_code})"
                ) from e

        if not isinstance(data, dict):
            raise EmbeddingError(f"OpenAI embedding error: unexpected body (HTTP {response.status_code})")

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            raise EmbeddingError(f"OpenAI embedding error: {message or json.dumps(error)}")

        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise EmbeddingError(
                f"OpenAI embedding error: no embedding in response (HTTP {response.status_code})"
            ) from e

        if len(embedding) != self.dimension:
            raise EmbeddingError(
                f"OpenAI embedding error: expected dimension {self.dimension}, got {len(embedding)}"
            )
        return [float(v) for v in embedding]


def create_embedding_service(provider: str = "local", **kwargs):
    """
    Factory function to create embedding service
    """
    if provider == "openai":
        return OpenAIEmbeddingService(**kwargs)
    elif provider == "local":
        return LocalEmbeddingService(**kwargs)
    else:
        raise ValueError(f"Unknown embedding provider: {provider}")


def embedding_service_for(
    dimension: int,
    api_key: Optional[str] = None,
    http_request: Optional[HttpRequestFn] = None,
):
    """Pick the remote service when a key is configured, else the local one."""
    if api_key:
        return create_embedding_service(
            "openai", api_key=api_key, dimension=dimension, http_request=http_request
        )
    return create_embedding_service("local", dimension=dimension)
