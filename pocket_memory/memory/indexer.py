"""
File indexer: chunks MEMORY.md and memory/*.md and stores every chunk in
the vector store so the agent can search its own notes semantically.
"""

from typing import Awaitable, Callable, List

from pocket_memory.extraction import chunk_markdown
from pocket_memory.interfaces import (
    IndexResult,
    ListFilesFn,
    MemoryMetadata,
    ReadFileFn,
    VectorStore,
)
from pocket_memory.utils import get_logger, log_call

logger = get_logger(__name__)

FILE_KEY_PREFIX = "file:"
FILE_SOURCE = "file"
ROOT_MEMORY_FILE = "MEMORY.md"
MEMORY_DIR = "memory"


def file_chunk_key(path: str, chunk_index: int) -> str:
    """Deterministic key of a file chunk; re-indexing overwrites in place."""
    return f"{FILE_KEY_PREFIX}{path}:{chunk_index}"


async def _clear_file_entries(store: VectorStore) -> None:
    try:
        keys = await store.list(prefix=FILE_KEY_PREFIX)
        for key in keys:
            await store.delete(key)
    except Exception as e:
        # The table may not exist before the first store() call
        logger.debug(f"Skipping clear of file-indexed entries: {e}")


async def _collect_files(read_file: ReadFileFn, list_files: ListFilesFn) -> List[str]:
    files: List[str] = []

    try:
        result = await read_file(ROOT_MEMORY_FILE)
        if (result.get("content") or "").strip():
            files.append(ROOT_MEMORY_FILE)
    except Exception:
        logger.debug(f"{ROOT_MEMORY_FILE} not found")

    try:
        listing = await list_files(MEMORY_DIR)
        for entry in listing.get("files", []):
            if entry.get("type") == "file" and entry.get("name", "").endswith(".md"):
                files.append(f"{MEMORY_DIR}/{entry['name']}")
    except Exception:
        logger.debug(f"{MEMORY_DIR}/ not found")

    return files


@log_call(logger)
async def index_workspace_memory(
    store: VectorStore,
    read_file: ReadFileFn,
    list_files: ListFilesFn,
    embed: Callable[[str], Awaitable[List[float]]],
    agent_id: str,
) -> IndexResult:
    """
    Index workspace memory files (MEMORY.md + memory/*.md) into the store.

    Previously indexed file chunks are removed first. A failure in one file
    is recorded in ``errors`` and indexing continues with the next file.

    Args:
        store: Vector store collaborator
        read_file: Reads a workspace file by relative path, returns {"content": str}
        list_files: Lists a workspace directory, returns {"files": [{"name", "type"}]}
        embed: Generates an embedding vector for a text
        agent_id: Agent that owns the entries
    """
    result = IndexResult()

    await _clear_file_entries(store)

    for file_path in await _collect_files(read_file, list_files):
        try:
            content = (await read_file(file_path)).get("content") or ""
            if not content.strip():
                continue

            for i, chunk in enumerate(chunk_markdown(content, file_path)):
                embedding = await embed(chunk.text)
                metadata = MemoryMetadata(
                    source=FILE_SOURCE,
                    path=chunk.path,
                    start_line=chunk.start_line,
                    end_line=chunk.end_line,
                    chunk_index=i,
                )
                await store.store(
                    file_chunk_key(file_path, i),
                    agent_id,
                    chunk.text,
                    embedding,
                    metadata.to_store(),
                )
                result.indexed += 1
        except Exception as e:
            logger.warning(f"Failed to index {file_path}: {e}", extra={"path": file_path})
            result.errors.append(f"{file_path}: {e}")

    logger.info(
        f"Indexed {result.indexed} chunks ({len(result.errors)} errors)",
        extra={"agent_id": agent_id},
    )
    return result
