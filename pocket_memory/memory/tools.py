"""
Agent-facing memory tools.

Five tools close over a MemoryManager: memory_recall, memory_store,
memory_forget, memory_search and memory_get. Embedding happens inside the
tools; the agent only passes natural language.

Every tool returns a JSON-compatible dict. Failures come back as
``{"error": "<message>"}``, never as an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TYPE_CHECKING

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pocket_memory.extraction import detect_category, looks_like_prompt_injection
from pocket_memory.interfaces import (
    MemoryCategory,
    MemoryEntry,
    MemoryMetadata,
    MemoryNotInitializedError,
)
from pocket_memory.utils import get_logger

from .indexer import FILE_SOURCE, MEMORY_DIR, ROOT_MEMORY_FILE

if TYPE_CHECKING:
    from .manager import MemoryManager

logger = get_logger(__name__)

DEFAULT_TOOL_LIMIT = 5
# Minimum similarity shown by memory_recall
DISPLAY_MIN_SCORE = 0.3
# Minimum similarity for a memory_forget candidate
FORGET_CANDIDATE_SCORE = 0.7
# A single candidate above this is deleted without asking
FORGET_AUTO_DELETE_SCORE = 0.9

INJECTION_REJECTED = "Content rejected: suspected prompt injection"


# ============================================================================
# INPUT SCHEMAS
# ============================================================================


class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class RecallInput(ToolInput):
    """Arguments for the memory_recall tool."""
    query: str = Field(..., description="Natural language search query")
    limit: int = Field(DEFAULT_TOOL_LIMIT, ge=1, description="Max results (default: 5)")


class StoreInput(ToolInput):
    """Arguments for the memory_store tool."""
    text: str = Field(..., min_length=1, description="Information to remember")
    category: Optional[MemoryCategory] = Field(
        None, description="Category (auto-detected if omitted)"
    )


class ForgetInput(ToolInput):
    """Arguments for the memory_forget tool. Provide query or key."""
    query: Optional[str] = Field(None, description="Search query to find memory to forget")
    key: Optional[str] = Field(None, description="Specific memory key to delete")


class SearchInput(ToolInput):
    """Arguments for the memory_search tool."""
    query: str = Field(..., description="Search query")
    max_results: int = Field(
        DEFAULT_TOOL_LIMIT, ge=1, alias="maxResults", description="Max results (default: 5)"
    )


class GetInput(ToolInput):
    """Arguments for the memory_get tool."""
    path: str = Field(
        ..., description='Relative path (e.g. "MEMORY.md" or "memory/2026-02-26.md")'
    )
    from_: int = Field(1, ge=1, alias="from", description="Start line (1-indexed)")
    lines: Optional[int] = Field(None, ge=0, description="Number of lines to read")


# ============================================================================
# TOOL DESCRIPTOR
# ============================================================================


@dataclass
class MemoryTool:
    """Capability descriptor an agent framework binds against"""
    name: str
    description: str
    args_schema: Type[BaseModel]
    handler: Callable[[Any], Awaitable[Dict[str, Any]]]

    @property
    def input_schema(self) -> Dict[str, Any]:
        """JSON schema of the accepted arguments"""
        return self.args_schema.model_json_schema(by_alias=True)

    async def execute(self, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            parsed = self.args_schema.model_validate(args or {})
        except ValidationError as e:
            return {"error": f"Invalid arguments for {self.name}: {_describe(e)}"}

        try:
            return await self.handler(parsed)
        except MemoryNotInitializedError:
            return {"error": "Memory not initialized"}
        except Exception as e:
            logger.error(f"Error in {self.name} tool: {e}")
            return {"error": f"{self.name} failed: {e}"}

    def as_langchain_tool(self) -> StructuredTool:
        """Wrap as a LangChain tool for graph/agent integrations"""
        async def _run(**kwargs: Any) -> Dict[str, Any]:
            return await self.execute(kwargs)

        return StructuredTool.from_function(
            coroutine=_run,
            name=self.name,
            description=self.description,
            args_schema=self.args_schema,
        )


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "input"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


# ============================================================================
# TOOL FACTORY
# ============================================================================


def create_memory_tools(manager: "MemoryManager") -> List[MemoryTool]:
    """
    Create the five memory tools bound to ``manager``.

    Args:
        manager: The MemoryManager instance the tools operate on

    Returns:
        [memory_recall, memory_store, memory_forget, memory_search, memory_get]
    """

    async def memory_recall(args: RecallInput) -> Dict[str, Any]:
        manager.require_initialized()
        vector = await manager.embed(args.query)
        results = await manager.search(vector, args.limit)
        entries = [MemoryEntry.from_search_result(r) for r in results if r.score >= DISPLAY_MIN_SCORE]

        if not entries:
            return {"message": "No relevant memories found."}

        text = "\n".join(
            f"{i}. [{e.category.value}] {e.text} ({e.score * 100:.0f}%)"
            for i, e in enumerate(entries, 1)
        )
        return {"count": len(entries), "memories": text}

    async def memory_store(args: StoreInput) -> Dict[str, Any]:
        manager.require_initialized()
        if looks_like_prompt_injection(args.text):
            logger.warning("memory_store rejected suspected prompt injection")
            return {"error": INJECTION_REJECTED}

        vector = await manager.embed(args.text)
        duplicate = await manager.find_duplicate(vector)
        if duplicate is not None:
            return {"action": "duplicate", "existing": duplicate.text}

        category = args.category or detect_category(args.text)
        key = await manager.store_memory(
            args.text, vector, MemoryMetadata(category=category, importance=0.7), prefix="mem"
        )
        return {"action": "stored", "key": key, "category": category.value}

    async def memory_forget(args: ForgetInput) -> Dict[str, Any]:
        manager.require_initialized()

        if args.key:
            await manager.delete(args.key)
            return {"action": "deleted", "key": args.key}

        if args.query:
            vector = await manager.embed(args.query)
            results = await manager.search(vector, DEFAULT_TOOL_LIMIT)
            candidates = [r for r in results if r.score >= FORGET_CANDIDATE_SCORE]

            if not candidates:
                return {"message": "No matching memories found."}

            if len(candidates) == 1 and candidates[0].score > FORGET_AUTO_DELETE_SCORE:
                await manager.delete(candidates[0].key)
                return {"action": "deleted", "key": candidates[0].key, "text": candidates[0].text}

            return {
                "action": "candidates",
                "candidates": [{"key": r.key, "text": r.text, "score": r.score} for r in candidates],
                "message": "Multiple matches found. Specify a key to delete.",
            }

        return {"error": "Provide query or key."}

    async def memory_search(args: SearchInput) -> Dict[str, Any]:
        manager.require_initialized()
        vector = await manager.embed(args.query)
        results = await manager.search(vector, args.max_results, filter={"source": FILE_SOURCE})

        formatted = []
        for r in results:
            meta = MemoryMetadata.from_store(r.metadata)
            path = meta.path or "unknown"
            formatted.append({
                "path": path,
                "startLine": meta.start_line,
                "endLine": meta.end_line,
                "snippet": r.text,
                "score": r.score,
                "citation": f"{meta.path or ''}#L{meta.start_line or 0}-L{meta.end_line or 0}",
            })
        return {"results": formatted, "count": len(formatted)}

    async def memory_get(args: GetInput) -> Dict[str, Any]:
        normalized = args.path.replace("\\", "/")
        if normalized != ROOT_MEMORY_FILE and not normalized.startswith(f"{MEMORY_DIR}/"):
            return {"error": f"path must be {ROOT_MEMORY_FILE} or {MEMORY_DIR}/*.md"}
        if ".." in normalized or "//" in normalized:
            return {"error": "Invalid path"}

        read_file = manager.read_file
        if read_file is None:
            return {"error": "File read not available. Use workspace_read instead."}

        try:
            content = (await read_file(normalized)).get("content") or ""
        except Exception as e:
            return {"error": f"Could not read {normalized}: {e}"}

        if not content:
            return {"path": normalized, "text": ""}

        all_lines = content.split("\n")
        start = args.from_ - 1
        count = len(all_lines) if args.lines is None else args.lines
        return {"path": normalized, "text": "\n".join(all_lines[start:start + count])}

    return [
        MemoryTool(
            name="memory_recall",
            description=(
                "Search through long-term memories. Use when you need context about user "
                "preferences, past decisions, or previously discussed topics. Returns "
                "semantically similar entries."
            ),
            args_schema=RecallInput,
            handler=memory_recall,
        ),
        MemoryTool(
            name="memory_store",
            description=(
                "Save important information in long-term memory. Use for preferences, facts, "
                "decisions, entities. Automatically checks for duplicates."
            ),
            args_schema=StoreInput,
            handler=memory_store,
        ),
        MemoryTool(
            name="memory_forget",
            description=(
                "Delete specific memories. Provide a search query to find memories, or a "
                "specific memory key to delete directly."
            ),
            args_schema=ForgetInput,
            handler=memory_forget,
        ),
        MemoryTool(
            name="memory_search",
            description=(
                "Semantic search across MEMORY.md and memory/*.md files. Returns snippets with "
                "file path and line range. Use after memory_recall for file-specific lookups."
            ),
            args_schema=SearchInput,
            handler=memory_search,
        ),
        MemoryTool(
            name="memory_get",
            description=(
                "Read a specific memory file (MEMORY.md or memory/*.md) with optional line "
                "range. Use after memory_search to pull specific lines."
            ),
            args_schema=GetInput,
            handler=memory_get,
        ),
    ]
