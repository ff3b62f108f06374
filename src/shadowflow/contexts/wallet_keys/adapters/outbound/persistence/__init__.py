from .in_memory import InMemoryLocalKeyValueStore
from .json_file import JsonFileLocalKeyValueStore
from .local_key_value_key_store import LocalKeyValueKeyStore

__all__ = [
    "InMemoryLocalKeyValueStore",
    "JsonFileLocalKeyValueStore",
    "LocalKeyValueKeyStore",
]
