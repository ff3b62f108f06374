from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

_STRUCTURED_PREFIXES = ("{", "[")


@dataclass(frozen=True, slots=True)
class DecryptionKey:
    """
    DecryptionKey — opaque per-scope secret used to decrypt balances and messages.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/services/key_lifecycle_manager.py
      - src/shadowflow/contexts/wallet_keys/application/services/key_recovery_service.py
    """

    value: str = field(repr=False)

    def __post_init__(self) -> None:
        """
        Validate that key material is a non-empty string.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Stored value is kept byte-for-byte; no trimming is applied.
        Raises:
            ValueError: If value is not a string or is blank.
        Side Effects:
            None.
        """
        if not isinstance(self.value, str):
            raise ValueError("DecryptionKey value must be str")
        if not self.value.strip():
            raise ValueError("DecryptionKey value must be non-empty")

    @classmethod
    def from_generated(cls, raw_key: str | Mapping[str, Any]) -> DecryptionKey:
        """
        Normalize raw generator output into storable key string.

        Args:
            raw_key: Key string or structured key object returned by the generator.
        Returns:
            DecryptionKey: Key with raw string or deterministic JSON value.
        Assumptions:
            Structured keys are JSON-serializable.
        Raises:
            ValueError: If output is neither string nor mapping, or serializes to blank.
        Side Effects:
            None.
        """
        if isinstance(raw_key, str):
            return cls(value=raw_key)
        if isinstance(raw_key, Mapping):
            try:
                serialized = json.dumps(
                    dict(raw_key),
                    sort_keys=True,
                    separators=(",", ":"),
                    ensure_ascii=True,
                )
            except TypeError as error:
                raise ValueError("structured decryption key must be JSON-serializable") from error
            return cls(value=serialized)
        raise ValueError(
            f"decryption key generator returned unsupported type {type(raw_key).__name__}"
        )

    def looks_structured(self) -> bool:
        return self.value.lstrip().startswith(_STRUCTURED_PREFIXES)

    def is_well_formed(self) -> bool:
        """
        Check stored shape: raw strings pass, JSON-looking strings must parse.

        Args:
            None.
        Returns:
            bool: `False` only for JSON-looking values that fail to parse.
        Assumptions:
            This is a shape check, never a cryptographic validation.
        Raises:
            None.
        Side Effects:
            None.
        """
        if not self.looks_structured():
            return True
        try:
            json.loads(self.value)
        except ValueError:
            return False
        return True

    def __repr__(self) -> str:
        return "DecryptionKey(value='***')"

    def __str__(self) -> str:
        return "***"
