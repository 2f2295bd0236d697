"""
Memory Core Implementation

MemoryManager wraps a raw vector store with:
- Embedding generation (OpenAI endpoint or local hash fallback)
- High-level agent tools (recall, store, forget, search, get)
- Auto-recall (inject relevant memories before each turn)
- Auto-capture (detect and store memorable content after each turn)
- File indexing (chunk MEMORY.md + memory/*.md into the store)
- Memory flush prompt (pre-compaction durable memory save)

Concurrency: everything runs on one event loop. Two concurrent capture()
calls for the same content can both pass the duplicate check before either
stores; the result is two near-identical entries. No lock guards this.
init() is the only guarded section: concurrent callers share one task and
the store is opened at most once.
"""

import asyncio
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pocket_memory.extraction import (
    detect_category,
    format_relevant_memories_context,
    should_capture,
)
from pocket_memory.interfaces import (
    FILES_SCHEME,
    IndexResult,
    ListFilesFn,
    MemoryEntry,
    MemoryManagerConfig,
    MemoryMetadata,
    MemoryNotInitializedError,
    ReadFileFn,
    ValidationError,
    SearchFilter,
    SearchResult,
    VectorStore,
)
from pocket_memory.storage.embedding_service import embedding_service_for
from pocket_memory.utils import get_logger

from .indexer import index_workspace_memory
from .tools import MemoryTool, create_memory_tools

logger = get_logger(__name__)

# Recall must never hold up a turn for longer than this
RECALL_EMBED_TIMEOUT_SECONDS = 2.0
RECALL_MIN_PROMPT_CHARS = 5
AUTO_CAPTURE_IMPORTANCE = 0.7
NO_REPLY_SENTINEL = "[NO_REPLY]"

# Fields that may change after init(); the rest are bound to the open store
_RUNTIME_FIELDS = {"openai_api_key", "auto_recall", "auto_capture", "http_request"}


def normalize_store_path(path: str) -> str:
    """Tag relative store paths as sandbox-relative.

    Absolute paths and already tagged paths pass through unchanged.
    """
    if path.startswith(FILES_SCHEME) or path.startswith("/") or os.path.isabs(path):
        return path
    return f"{FILES_SCHEME}{path}"


def generate_key(prefix: str) -> str:
    """Time-based unique key with a random suffix, e.g. ``auto-1719922-3f9a1c``"""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class MemoryManager:
    """
    Main Memory Core implementation

    Coordinates between:
    - the vector store collaborator (owned handle, not the persisted data)
    - the embedding service
    - the content classifier and markdown chunker
    - the agent (tools, recall/capture hooks)
    """

    def __init__(
        self,
        store: VectorStore,
        read_file: Optional[ReadFileFn] = None,
        list_files: Optional[ListFilesFn] = None,
    ):
        """
        Args:
            store: Vector store collaborator; opened by init()
            read_file: Workspace file reader used by memory_get and indexing
            list_files: Workspace directory lister used by indexing
        """
        self._store = store
        self._read_file = read_file
        self._list_files = list_files
        self._config = MemoryManagerConfig()
        self._embedding = embedding_service_for(self._config.embedding_dim)
        self._initialized = False
        self._init_task: Optional[asyncio.Task] = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> MemoryManagerConfig:
        """Snapshot of the active configuration; change it with update_config()"""
        return self._config.model_copy()

    @property
    def read_file(self) -> Optional[ReadFileFn]:
        return self._read_file

    # ========================================================================
    # INIT
    # ========================================================================

    async def init(self, config: Union[MemoryManagerConfig, Dict[str, Any], None] = None) -> None:
        """Resolve configuration and open the store.

        Concurrent and repeated calls share the same outcome; the store is
        opened at most once. A failed open propagates and leaves the manager
        uninitialized, so a later call may try again.
        """
        if self._init_task is None:
            if isinstance(config, dict):
                config = MemoryManagerConfig(**config)
            elif config is not None:
                config = config.model_copy()
            self._init_task = asyncio.ensure_future(self._do_init(config or MemoryManagerConfig()))
        await asyncio.shield(self._init_task)

    async def _do_init(self, config: MemoryManagerConfig) -> None:
        try:
            resolved_path = normalize_store_path(config.db_path)
            await self._store.open(resolved_path, config.embedding_dim)
        except Exception:
            logger.error(f"Failed to open memory store at {config.db_path}", exc_info=True)
            self._init_task = None
            raise

        self._config = config
        self._embedding = embedding_service_for(
            config.embedding_dim, config.openai_api_key, config.http_request
        )
        self._initialized = True
        logger.info(
            f"Memory initialized at {resolved_path} "
            f"({'openai' if config.openai_api_key else 'local'} embeddings, dim={config.embedding_dim})",
            extra={"agent_id": config.agent_id},
        )

    def update_config(self, **partial: Any) -> None:
        """Update config at runtime (e.g. after the user sets an API key).

        Only ``openai_api_key``, ``auto_recall``, ``auto_capture`` and
        ``http_request`` may change; everything else is tied to the open store.
        """
        unknown = set(partial) - _RUNTIME_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update {', '.join(sorted(unknown))} at runtime")

        for name, value in partial.items():
            setattr(self._config, name, value)

        if {"openai_api_key", "http_request"} & set(partial):
            self._embedding = embedding_service_for(
                self._config.embedding_dim, self._config.openai_api_key, self._config.http_request
            )

    def set_read_file(self, fn: Optional[ReadFileFn]) -> None:
        """Late-bind the file reader for hosts that only have it after construction"""
        self._read_file = fn

    def require_initialized(self) -> None:
        if not self._initialized:
            raise MemoryNotInitializedError("Memory not initialized")

    # ========================================================================
    # STORE ACCESS
    # ========================================================================

    async def embed(self, text: str) -> List[float]:
        """Embed text with the configured service; errors propagate"""
        return await self._embedding.embed_text(text)

    async def search(
        self,
        vector: List[float],
        limit: int,
        filter: Optional[SearchFilter] = None,
    ) -> List[SearchResult]:
        self.require_initialized()
        return await self._store.search(vector, limit, filter)

    async def find_duplicate(self, vector: List[float]) -> Optional[SearchResult]:
        """Nearest existing entry if it is at or above the duplicate threshold"""
        results = await self.search(vector, 1)
        if results and results[0].score >= self._config.dup_threshold:
            return results[0]
        return None

    async def store_memory(
        self,
        text: str,
        vector: List[float],
        metadata: MemoryMetadata,
        prefix: str = "mem",
    ) -> str:
        """Store a new entry under a fresh key and return the key"""
        self.require_initialized()
        key = generate_key(prefix)
        await self._store.store(key, self._config.agent_id, text, vector, metadata.to_store())
        logger.debug(f"Stored memory {key}", extra={"agent_id": self._config.agent_id, "key": key})
        return key

    async def delete(self, key: str) -> None:
        self.require_initialized()
        await self._store.delete(key)

    # ========================================================================
    # AUTO-RECALL
    # ========================================================================

    async def recall(self, prompt: str) -> Optional[str]:
        """
        Search for memories relevant to the prompt and return a formatted
        context block, or None if nothing relevant is found.

        Best-effort: never raises. An embedding that misses the deadline
        counts as "nothing relevant".
        """
        if not self._initialized or not self._config.auto_recall:
            return None
        if not prompt or len(prompt) < RECALL_MIN_PROMPT_CHARS:
            return None

        try:
            vector = await asyncio.wait_for(self.embed(prompt), timeout=RECALL_EMBED_TIMEOUT_SECONDS)
            results = await self._store.search(vector, self._config.recall_limit)
        except asyncio.TimeoutError:
            logger.warning(f"Recall embedding exceeded {RECALL_EMBED_TIMEOUT_SECONDS}s, skipping")
            return None
        except Exception as e:
            logger.warning(f"Recall failed: {e}")
            return None

        relevant = [
            MemoryEntry.from_search_result(r)
            for r in results
            if r.score >= self._config.recall_min_score
        ]
        if not relevant:
            return None
        return format_relevant_memories_context(relevant)

    # ========================================================================
    # AUTO-CAPTURE
    # ========================================================================

    async def capture(self, text: str) -> bool:
        """
        Analyze a user message and store it if it contains memorable content.

        Returns True only when a new entry was stored. Never raises.
        """
        if not self._initialized or not self._config.auto_capture:
            return False
        if not should_capture(text, max_chars=self._config.capture_max_chars):
            return False

        try:
            category = detect_category(text)
            vector = await self.embed(text)

            duplicate = await self.find_duplicate(vector)
            if duplicate is not None:
                logger.debug(f"Skipping capture, duplicate of {duplicate.key}")
                return False

            await self.store_memory(
                text,
                vector,
                MemoryMetadata(category=category, importance=AUTO_CAPTURE_IMPORTANCE, auto=True),
                prefix="auto",
            )
            return True
        except Exception as e:
            logger.warning(f"Capture failed: {e}")
            return False

    # ========================================================================
    # TOOLS, INDEXING, FLUSH
    # ========================================================================

    def get_tools(self) -> List[MemoryTool]:
        """Return the five memory tools for the agent"""
        return create_memory_tools(self)

    async def index_files(
        self,
        read_file: Optional[ReadFileFn] = None,
        list_files: Optional[ListFilesFn] = None,
    ) -> IndexResult:
        """Index workspace memory files (MEMORY.md + memory/*.md)."""
        if not self._initialized:
            return IndexResult(errors=["MemoryManager not initialized"])

        read_file = read_file or self._read_file
        list_files = list_files or self._list_files
        if read_file is None or list_files is None:
            return IndexResult(errors=["File access not available"])

        return await index_workspace_memory(
            self._store, read_file, list_files, self.embed, self._config.agent_id
        )

    def get_flush_prompt(self, now: Optional[datetime] = None) -> str:
        """Prompt sent to the agent before context compaction."""
        date_stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
        return " ".join([
            "Pre-compaction memory flush.",
            f"Store durable memories now (use memory/{date_stamp}.md; create memory/ if needed).",
            "IMPORTANT: If the file already exists, APPEND new content only and do not overwrite existing entries.",
            f"If nothing to store, reply with {NO_REPLY_SENTINEL}.",
        ])

    # ========================================================================
    # STATS
    # ========================================================================

    async def count(self) -> int:
        """Total number of stored entries (0 if unavailable)"""
        if not self._initialized:
            return 0
        try:
            return len(await self._store.list())
        except Exception as e:
            logger.warning(f"Count failed: {e}")
            return 0

    async def clear(self) -> bool:
        """Clear all memories. Returns False if the store could not be cleared."""
        if not self._initialized:
            return False
        try:
            await self._store.clear()
        except Exception as e:
            logger.warning(f"Clear failed: {e}")
            return False
        return True
