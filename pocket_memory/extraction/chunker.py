"""
Markdown chunker for file indexing.

Splits a document into overlapping chunks that each carry their 1-indexed
line range. The last seen section header is carried into the next chunk so
a chunk taken from the middle of a section still says which section it is.
"""

import math
import re
from typing import Iterator, List, Optional

from pocket_memory.interfaces import ChunkingConfig, FileChunk

HEADER_PATTERN = re.compile(r"^#{1,4}\s")

# Lines assumed per 40 chars when checking whether the header is already in
# the overlap window.
_CHARS_PER_WINDOW_LINE = 40


def iter_chunks(text: str, path: str, config: Optional[ChunkingConfig] = None) -> Iterator[FileChunk]:
    """Yield chunks of ``text`` in document order (single pass).

    Every line number in ``[1, total_lines]`` holding non-blank text falls
    inside at least one chunk; consecutive chunks may overlap but never
    leave a gap.
    """
    config = config or ChunkingConfig()
    max_chars = config.max_chars
    overlap_chars = config.overlap_chars
    header_window = math.ceil(overlap_chars / _CHARS_PER_WINDOW_LINE)

    lines = text.split("\n")
    chunk_lines: List[str] = []
    chunk_start = 1
    chunk_chars = 0
    last_header = ""

    for line_num, line in enumerate(lines, 1):
        if HEADER_PATTERN.match(line):
            last_header = line

        chunk_lines.append(line)
        chunk_chars += len(line) + 1

        if chunk_chars < max_chars:
            continue

        chunk_text = "\n".join(chunk_lines).strip()
        if chunk_text:
            yield FileChunk(path=path, start_line=chunk_start, end_line=line_num, text=chunk_text)

        overlap_lines: List[str] = []
        overlap_len = 0
        tail = chunk_lines[-header_window:] if header_window else chunk_lines
        if last_header and last_header not in tail:
            overlap_lines.append(last_header)
            overlap_len += len(last_header) + 1
        j = len(chunk_lines) - 1
        while j >= 0 and overlap_len < overlap_chars:
            overlap_lines.insert(0, chunk_lines[j])
            overlap_len += len(chunk_lines[j]) + 1
            j -= 1

        chunk_lines = overlap_lines
        chunk_start = max(1, line_num - len(overlap_lines) + 1)
        chunk_chars = overlap_len

    remaining = "\n".join(chunk_lines).strip()
    if remaining:
        yield FileChunk(path=path, start_line=chunk_start, end_line=len(lines), text=remaining)


def chunk_markdown(
    text: str,
    path: str,
    tokens: Optional[int] = None,
    overlap: Optional[int] = None,
) -> List[FileChunk]:
    """Split markdown text into overlapping, line-tracked chunks.

    Args:
        text: Document content
        path: Source path recorded on every chunk
        tokens: Chunk budget in tokens (default 400, 1 token ≈ 4 chars)
        overlap: Overlap budget in tokens (default 80)
    """
    options = {}
    if tokens is not None:
        options["tokens"] = tokens
    if overlap is not None:
        options["overlap"] = overlap
    config = ChunkingConfig(**options)
    return list(iter_chunks(text, path, config))
