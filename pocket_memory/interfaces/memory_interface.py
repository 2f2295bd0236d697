"""
Memory Interface - Shared Data Structures

This file contains ONLY shared data structures for the Memory Manager.
For implementation, see pocket_memory/memory/manager.py
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_EMBEDDING_DIM = 1536
DEFAULT_DB_PATH = "memory-lancedb"
DEFAULT_AGENT_ID = "main"
DEFAULT_RECALL_LIMIT = 3
DEFAULT_RECALL_MIN_SCORE = 0.3
DEFAULT_CAPTURE_MAX_CHARS = 500
DEFAULT_DUP_THRESHOLD = 0.95

# Marks a store path as relative to the host's private sandbox directory
FILES_SCHEME = "files://"


@dataclass
class HttpRequest:
    """Request handed to an injectable HTTP transport"""
    url: str
    method: str
    headers: Dict[str, str]
    body: str
    timeout: Optional[float] = None


@dataclass
class HttpResponse:
    """Response returned by an injectable HTTP transport"""
    status_code: int
    body: Union[str, Dict[str, Any]]


HttpRequestFn = Callable[[HttpRequest], Awaitable[HttpResponse]]

# File-system collaborator. read_file returns {"content": str};
# list_files returns {"files": [{"name": str, "type": "file" | "directory"}]}.
# Both raise when the path does not exist.
ReadFileFn = Callable[[str], Awaitable[Dict[str, Any]]]
ListFilesFn = Callable[[str], Awaitable[Dict[str, Any]]]


class MemoryManagerConfig(BaseModel):
    """Configuration for MemoryManager.init()

    The embedding dimension must stay the same for the lifetime of a store
    path; vectors of another size are rejected by the store.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True, arbitrary_types_allowed=True)

    embedding_dim: int = Field(DEFAULT_EMBEDDING_DIM, gt=0)
    db_path: str = DEFAULT_DB_PATH
    agent_id: str = DEFAULT_AGENT_ID
    # If unset, embeddings come from the local hash fallback.
    openai_api_key: Optional[str] = None
    auto_recall: bool = True
    auto_capture: bool = True
    recall_limit: int = Field(DEFAULT_RECALL_LIMIT, gt=0)
    recall_min_score: float = DEFAULT_RECALL_MIN_SCORE
    capture_max_chars: int = Field(DEFAULT_CAPTURE_MAX_CHARS, gt=0)
    dup_threshold: float = DEFAULT_DUP_THRESHOLD
    # Injectable transport for hosts where the default network stack is blocked.
    http_request: Optional[HttpRequestFn] = Field(default=None, exclude=True, repr=False)


@dataclass
class FileChunk:
    """A line-range slice of a markdown document"""
    path: str
    start_line: int  # 1-indexed, inclusive
    end_line: int  # inclusive
    text: str


@dataclass
class IndexResult:
    """Outcome of a workspace indexing run"""
    indexed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"indexed": self.indexed, "errors": list(self.errors)}
