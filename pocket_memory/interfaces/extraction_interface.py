"""
Extraction Interface - Shared Data Structures
This file contains ONLY shared data structures for the Extraction layer.
For implementation, see pocket_memory/extraction/
"""

from dataclasses import dataclass

from .exceptions import ValidationError


# Rough estimate used everywhere token budgets are converted: 1 token ≈ 4 chars
CHARS_PER_TOKEN = 4

DEFAULT_CHUNK_TOKENS = 400
DEFAULT_CHUNK_OVERLAP = 80


@dataclass
class ChunkingConfig:
    """Token budgets for markdown chunking"""
    tokens: int = DEFAULT_CHUNK_TOKENS
    overlap: int = DEFAULT_CHUNK_OVERLAP

    def __post_init__(self):
        if self.tokens <= 0:
            raise ValidationError("tokens must be positive")
        if self.overlap < 0:
            raise ValidationError("overlap must not be negative")

    @property
    def max_chars(self) -> int:
        return self.tokens * CHARS_PER_TOKEN

    @property
    def overlap_chars(self) -> int:
        return self.overlap * CHARS_PER_TOKEN
