"""
Storage Module

Export vector storage and embedding service implementations.
"""

from .vector_storage import ChromaVectorStore, FILES_SCHEME
from .embedding_service import (
    LocalEmbeddingService,
    OpenAIEmbeddingService,
    create_embedding_service,
    embedding_service_for,
    local_hash_embed,
    requests_transport,
)

__all__ = [
    "ChromaVectorStore",
    "FILES_SCHEME",
    "LocalEmbeddingService",
    "OpenAIEmbeddingService",
    "create_embedding_service",
    "embedding_service_for",
    "local_hash_embed",
    "requests_transport",
]
