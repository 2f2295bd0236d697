"""
Extraction Module

Export content classification heuristics and the markdown chunker.
"""

from .classifier import (
    looks_like_prompt_injection,
    escape_memory_for_prompt,
    format_relevant_memories_context,
    should_capture,
    detect_category,
    RELEVANT_MEMORIES_TAG,
)
from .chunker import chunk_markdown, iter_chunks

__all__ = [
    "looks_like_prompt_injection",
    "escape_memory_for_prompt",
    "format_relevant_memories_context",
    "should_capture",
    "detect_category",
    "RELEVANT_MEMORIES_TAG",
    "chunk_markdown",
    "iter_chunks",
]
