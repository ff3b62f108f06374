from .aes_gcm_key_store_cipher import AesGcmKeyStoreCipher, build_key_store_aad

__all__ = [
    "AesGcmKeyStoreCipher",
    "build_key_store_aad",
]
