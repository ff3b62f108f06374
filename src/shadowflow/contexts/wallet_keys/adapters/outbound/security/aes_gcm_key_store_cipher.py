from __future__ import annotations

import base64
import binascii
import os
import struct

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from shadowflow.contexts.wallet_keys.application.ports import KeyStoreSecretCipher

_BLOB_VERSION_V1 = 1
_NONCE_LENGTH = 12
_HEADER_STRUCT = struct.Struct(">BBBH")
AAD_NAMESPACE_PREFIX = "shadowflow.keystore.v1|"
_SUPPORTED_KEK_LENGTHS = {16, 24, 32}


class AesGcmKeyStoreCipher(KeyStoreSecretCipher):
    """
    AesGcmKeyStoreCipher — AES-GCM envelope cipher for decryption keys at rest.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/ports/key_store_secret_cipher.py
      - src/shadowflow/contexts/wallet_keys/adapters/outbound/persistence/
        local_key_value_key_store.py
      - apps/api/wiring/modules/shadowflow.py
    """

    def __init__(self, *, kek_b64: str) -> None:
        """
        Initialize envelope cipher from base64 KEK (`SHADOWFLOW_KEYSTORE_KEK_B64`).

        Args:
            kek_b64: Base64-encoded KEK bytes.
        Returns:
            None.
        Assumptions:
            KEK length must be valid AES key size (16/24/32 bytes).
        Raises:
            ValueError: If KEK is blank, malformed, or unsupported length.
        Side Effects:
            None.
        """
        normalized_kek_b64 = kek_b64.strip()
        if not normalized_kek_b64:
            raise ValueError("AesGcmKeyStoreCipher requires non-empty kek_b64")
        try:
            kek_bytes = base64.b64decode(normalized_kek_b64, validate=True)
        except binascii.Error as error:
            raise ValueError("SHADOWFLOW_KEYSTORE_KEK_B64 must be valid base64") from error
        if len(kek_bytes) not in _SUPPORTED_KEK_LENGTHS:
            raise ValueError(
                "SHADOWFLOW_KEYSTORE_KEK_B64 must decode to 16, 24, or 32 bytes for AES-GCM"
            )
        self._kek = kek_bytes

    def encrypt_secret(self, *, secret: str, aad: str) -> bytes:
        """
        Encrypt key string using DEK+KEK envelope AES-GCM format.

        Args:
            secret: Plaintext decryption key.
            aad: Scope-bound AAD (`shadowflow.keystore.v1|{mode}|{address}`).
        Returns:
            bytes: Versioned encrypted opaque blob.
        Assumptions:
            Key string is stored exactly; it is not trimmed.
        Raises:
            ValueError: If secret or aad is invalid.
        Side Effects:
            Uses OS CSPRNG for DEK and nonces.
        """
        if not secret.strip():
            raise ValueError("AesGcmKeyStoreCipher secret must be non-empty")
        aad_bytes = _normalize_aad(aad=aad)

        dek = os.urandom(32)
        dek_nonce = os.urandom(_NONCE_LENGTH)
        secret_nonce = os.urandom(_NONCE_LENGTH)
        encrypted_dek = AESGCM(self._kek).encrypt(dek_nonce, dek, aad_bytes)
        encrypted_secret = AESGCM(dek).encrypt(secret_nonce, secret.encode("utf-8"), aad_bytes)

        header = _HEADER_STRUCT.pack(
            _BLOB_VERSION_V1,
            len(dek_nonce),
            len(secret_nonce),
            len(encrypted_dek),
        )
        return b"".join((header, dek_nonce, encrypted_dek, secret_nonce, encrypted_secret))

    def decrypt_secret(self, *, secret_enc: bytes, aad: str) -> str:
        """
        Decrypt versioned envelope blob and return plaintext key.

        Args:
            secret_enc: Encrypted blob from local storage.
            aad: Scope-bound AAD used at encryption time.
        Returns:
            str: Plaintext key string.
        Assumptions:
            A blob moved to another scope fails authentication because AAD differs.
        Raises:
            ValueError: If blob format is invalid or authentication fails.
        Side Effects:
            None.
        """
        blob = bytes(secret_enc)
        if not blob:
            raise ValueError("AesGcmKeyStoreCipher secret_enc must be non-empty")
        aad_bytes = _normalize_aad(aad=aad)

        if len(blob) < _HEADER_STRUCT.size:
            raise ValueError("Encrypted key store blob is too short")
        version, dek_nonce_len, secret_nonce_len, encrypted_dek_len = _HEADER_STRUCT.unpack_from(
            blob
        )
        payload = blob[_HEADER_STRUCT.size :]
        if version != _BLOB_VERSION_V1:
            raise ValueError("Unsupported encrypted key store blob version")
        if dek_nonce_len != _NONCE_LENGTH or secret_nonce_len != _NONCE_LENGTH:
            raise ValueError("Encrypted key store blob contains invalid nonce length")
        if len(payload) < dek_nonce_len + encrypted_dek_len + secret_nonce_len + 17:
            raise ValueError("Encrypted key store blob payload is truncated")

        dek_nonce = payload[:dek_nonce_len]
        encrypted_dek_end = dek_nonce_len + encrypted_dek_len
        encrypted_dek = payload[dek_nonce_len:encrypted_dek_end]
        secret_nonce = payload[encrypted_dek_end : encrypted_dek_end + secret_nonce_len]
        encrypted_secret = payload[encrypted_dek_end + secret_nonce_len :]

        try:
            dek = AESGCM(self._kek).decrypt(dek_nonce, encrypted_dek, aad_bytes)
            plaintext = AESGCM(dek).decrypt(secret_nonce, encrypted_secret, aad_bytes)
        except InvalidTag as error:
            raise ValueError("Encrypted key store blob authentication failed") from error

        try:
            secret = plaintext.decode("utf-8")
        except UnicodeDecodeError as error:
            raise ValueError("Encrypted key store plaintext is not valid UTF-8") from error
        if not secret:
            raise ValueError("Encrypted key store plaintext is empty")
        return secret


def build_key_store_aad(*, mode: str, address: str) -> str:
    return f"{AAD_NAMESPACE_PREFIX}{mode}|{address}"


def _normalize_aad(*, aad: str) -> bytes:
    normalized = aad.strip()
    if not normalized.startswith(AAD_NAMESPACE_PREFIX):
        raise ValueError(f"AesGcmKeyStoreCipher aad must use {AAD_NAMESPACE_PREFIX!r} prefix")
    return normalized.encode("utf-8")
