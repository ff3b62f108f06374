from .in_memory_local_key_value_store import InMemoryLocalKeyValueStore

__all__ = ["InMemoryLocalKeyValueStore"]
