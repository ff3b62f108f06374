from .key_store import KeyStore
from .key_store_secret_cipher import KeyStoreSecretCipher
from .local_key_value_store import LocalKeyValueStore

__all__ = [
    "KeyStore",
    "KeyStoreSecretCipher",
    "LocalKeyValueStore",
]
