from __future__ import annotations

import pytest

from shadowflow.contexts.wallet_keys.adapters.outbound import (
    AesGcmKeyStoreCipher,
    build_key_store_aad,
)

_KEK_B64 = "c2hhZG93Zmxvdy1kZXYta2V5c3RvcmUta2VrLTAwMDE="
_OTHER_KEK_B64 = "c2hhZG93Zmxvdy1vdGhlci1rZXlzdG9yZS1rZWstMDI="
_AAD = build_key_store_aad(mode="standalone", address="0x" + "a" * 40)


def test_aes_gcm_cipher_roundtrip_hides_plaintext() -> None:
    """
    Verify encrypt/decrypt roundtrip and that blob does not embed plaintext.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Every encryption uses fresh DEK and nonces.
    Raises:
        AssertionError: If roundtrip fails or plaintext leaks into blob.
    Side Effects:
        None.
    """
    cipher = AesGcmKeyStoreCipher(kek_b64=_KEK_B64)

    first = cipher.encrypt_secret(secret="secret-key-material", aad=_AAD)
    second = cipher.encrypt_secret(secret="secret-key-material", aad=_AAD)

    assert b"secret-key-material" not in first
    assert first != second
    assert cipher.decrypt_secret(secret_enc=first, aad=_AAD) == "secret-key-material"


def test_aes_gcm_cipher_rejects_tampered_blob_and_foreign_scope() -> None:
    """
    Verify authentication fails for modified ciphertext, other scope AAD and other KEK.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        AAD binds blob to `(mode, address)`.
    Raises:
        AssertionError: If tampered or misplaced blob is accepted.
    Side Effects:
        None.
    """
    cipher = AesGcmKeyStoreCipher(kek_b64=_KEK_B64)
    blob = cipher.encrypt_secret(secret="secret-key-material", aad=_AAD)
    tampered = blob[:-1] + bytes([blob[-1] ^ 0x01])
    other_scope = build_key_store_aad(mode="converter", address="0x" + "a" * 40)

    with pytest.raises(ValueError, match="authentication failed"):
        cipher.decrypt_secret(secret_enc=tampered, aad=_AAD)
    with pytest.raises(ValueError, match="authentication failed"):
        cipher.decrypt_secret(secret_enc=blob, aad=other_scope)
    with pytest.raises(ValueError, match="authentication failed"):
        AesGcmKeyStoreCipher(kek_b64=_OTHER_KEK_B64).decrypt_secret(secret_enc=blob, aad=_AAD)
    with pytest.raises(ValueError, match="too short"):
        cipher.decrypt_secret(secret_enc=b"\x01\x0c", aad=_AAD)


def test_aes_gcm_cipher_validates_kek_and_aad() -> None:
    with pytest.raises(ValueError, match="non-empty"):
        AesGcmKeyStoreCipher(kek_b64="  ")
    with pytest.raises(ValueError, match="valid base64"):
        AesGcmKeyStoreCipher(kek_b64="not base64!!")
    with pytest.raises(ValueError, match="16, 24, or 32 bytes"):
        AesGcmKeyStoreCipher(kek_b64="MDEyMzQ1Njc4OQ==")
    with pytest.raises(ValueError, match="aad must use"):
        AesGcmKeyStoreCipher(kek_b64=_KEK_B64).encrypt_secret(secret="k", aad="other|aad")
