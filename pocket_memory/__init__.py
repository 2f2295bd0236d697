"""
pocket-memory: semantic memory layer for an AI agent on a constrained host.

Usage example:
    from pocket_memory.memory import MemoryManager
    from pocket_memory.storage import ChromaVectorStore

    manager = MemoryManager(ChromaVectorStore())
    await manager.init({"embedding_dim": 256})
    await manager.capture("I prefer dark mode.")
    context = await manager.recall("Which theme do I prefer?")
"""

__version__ = "0.1.0"
