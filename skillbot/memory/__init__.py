from skillbot.memory.memory_store import InMemoryStore, MemoryStore

__all__ = ["InMemoryStore", "MemoryStore"]
