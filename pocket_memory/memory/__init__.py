"""
Memory Module

Provides memory management capabilities:
- MemoryManager: recall, capture, tools, file indexing (see manager.py)
- index_workspace_memory: chunk and index MEMORY.md + memory/*.md (see indexer.py)
- Agent tools with JSON-schema inputs, optionally wrapped as LangChain tools (see tools.py)
- Raw vector store tools over keys and vectors (see store_tools.py)
"""

from .manager import MemoryManager, normalize_store_path, generate_key
from .indexer import index_workspace_memory, file_chunk_key, FILE_KEY_PREFIX
from .tools import MemoryTool, create_memory_tools
from .store_tools import create_store_tools

__all__ = [
    "MemoryManager",
    "normalize_store_path",
    "generate_key",
    "index_workspace_memory",
    "file_chunk_key",
    "FILE_KEY_PREFIX",
    "MemoryTool",
    "create_memory_tools",
    "create_store_tools",
]
