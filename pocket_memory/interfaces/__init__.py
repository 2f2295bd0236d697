"""
Memory Core Interfaces - Shared Definitions

This package contains ONLY shared data structures, enums, protocols and
exceptions. Implementation classes are in their respective modules:
- pocket_memory/memory/manager.py (MemoryManager)
- pocket_memory/storage/vector_storage.py (ChromaVectorStore)
- pocket_memory/storage/embedding_service.py (embedding services)
- pocket_memory/extraction/ (classifier, markdown chunker)

Usage example:
    from pocket_memory.interfaces import (
        # Data structures
        MemoryEntry,
        FileChunk,
        MemoryManagerConfig,

        # Enums
        MemoryCategory,

        # Exceptions
        EmbeddingError,
        StorageError,
    )
"""

# Memory data structures
from .memory_interface import (
    MemoryManagerConfig,
    FileChunk,
    IndexResult,
    HttpRequest,
    HttpResponse,
    HttpRequestFn,
    ReadFileFn,
    ListFilesFn,
    DEFAULT_EMBEDDING_DIM,
    DEFAULT_DB_PATH,
    DEFAULT_AGENT_ID,
    DEFAULT_RECALL_LIMIT,
    DEFAULT_RECALL_MIN_SCORE,
    DEFAULT_CAPTURE_MAX_CHARS,
    DEFAULT_DUP_THRESHOLD,
    FILES_SCHEME,
)

# Storage data structures
from .storage_interface import (
    MemoryCategory,
    MemoryMetadata,
    MemoryEntry,
    SearchResult,
    SearchFilter,
    VectorStore,
    METADATA_SCHEMA_VERSION,
)

# Extraction data structures
from .extraction_interface import (
    ChunkingConfig,
    CHARS_PER_TOKEN,
    DEFAULT_CHUNK_TOKENS,
    DEFAULT_CHUNK_OVERLAP,
)

# Exception classes
from .exceptions import (
    MemoryError,
    MemoryNotInitializedError,
    EmbeddingError,
    ValidationError,
    StorageError,
    ConnectionError,
    ConfigurationError,
)

__all__ = [
    # Memory data structures
    "MemoryManagerConfig",
    "FileChunk",
    "IndexResult",
    "HttpRequest",
    "HttpResponse",
    "HttpRequestFn",
    "ReadFileFn",
    "ListFilesFn",
    "DEFAULT_EMBEDDING_DIM",
    "DEFAULT_DB_PATH",
    "DEFAULT_AGENT_ID",
    "DEFAULT_RECALL_LIMIT",
    "DEFAULT_RECALL_MIN_SCORE",
    "DEFAULT_CAPTURE_MAX_CHARS",
    "DEFAULT_DUP_THRESHOLD",
    "FILES_SCHEME",

    # Storage data structures
    "MemoryCategory",
    "MemoryMetadata",
    "MemoryEntry",
    "SearchResult",
    "SearchFilter",
    "VectorStore",
    "METADATA_SCHEMA_VERSION",

    # Extraction data structures
    "ChunkingConfig",
    "CHARS_PER_TOKEN",
    "DEFAULT_CHUNK_TOKENS",
    "DEFAULT_CHUNK_OVERLAP",

    # Exceptions
    "MemoryError",
    "MemoryNotInitializedError",
    "EmbeddingError",
    "ValidationError",
    "StorageError",
    "ConnectionError",
    "ConfigurationError",
]
