from .security import AesGcmKeyStoreCipher, build_key_store_aad
from .persistence import (
    InMemoryLocalKeyValueStore,
    JsonFileLocalKeyValueStore,
    LocalKeyValueKeyStore,
)

__all__ = [
    "AesGcmKeyStoreCipher",
    "InMemoryLocalKeyValueStore",
    "JsonFileLocalKeyValueStore",
    "LocalKeyValueKeyStore",
    "build_key_store_aad",
]
