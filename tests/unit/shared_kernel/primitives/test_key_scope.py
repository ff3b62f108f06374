from __future__ import annotations

import pytest

from shadowflow.shared_kernel.primitives import KeyScope, OperatingMode, WalletAddress

_ADDRESS = "0x" + "Ab" * 20


def test_key_scope_storage_key_uses_mode_and_lower_case_address() -> None:
    """
    Verify storage entry name format `key:{mode}:{address}`.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Mixed-case input maps to the same entry as lower-case input.
    Raises:
        AssertionError: If entry naming changes.
    Side Effects:
        None.
    """
    scope = KeyScope.of(_ADDRESS, "Converter")

    assert scope.mode is OperatingMode.CONVERTER
    assert scope.storage_key() == f"key:converter:{_ADDRESS.lower()}"
    assert str(scope) == f"converter:{_ADDRESS.lower()}"


def test_key_scopes_differ_per_mode() -> None:
    """Verify one address owns independent scopes for each operating mode."""
    standalone = KeyScope.of(_ADDRESS, OperatingMode.STANDALONE)
    converter = KeyScope.of(WalletAddress(_ADDRESS), OperatingMode.CONVERTER)

    assert standalone != converter
    assert standalone.storage_key() != converter.storage_key()
    assert KeyScope.of(_ADDRESS.lower(), "standalone") == standalone


def test_operating_mode_parse_rejects_unknown_literal() -> None:
    with pytest.raises(ValueError, match="standalone, converter"):
        OperatingMode.parse("bridge")
