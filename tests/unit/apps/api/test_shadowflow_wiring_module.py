from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from apps.api.wiring.modules import build_shadowflow_api_module
from shadowflow.contexts.wallet_keys.adapters.outbound import InMemoryLocalKeyValueStore
from shadowflow.platform.config import (
    ShadowflowRuntimeConfig,
    load_shadowflow_runtime_config,
)
from shadowflow.shared_kernel.primitives import KeyScope

_TEST_CONFIG_PATH = Path(__file__).resolve().parents[4] / "configs" / "test" / "shadowflow.yaml"
_KEK_B64 = "c2hhZG93Zmxvdy1kZXYta2V5c3RvcmUta2VrLTAwMDE="
_SCOPE = KeyScope.of("0x1111111111111111111111111111111111111111", "standalone")


def _load_patched_config(
    tmp_path: Path,
    replacements: dict[str, str],
    *,
    environ: dict[str, str] | None = None,
) -> ShadowflowRuntimeConfig:
    """
    Load shipped test config with textual replacements applied.

    Args:
        tmp_path: Pytest temporary directory.
        replacements: Mapping of YAML fragment to its replacement.
        environ: Optional environment mapping for scalar overrides.
    Returns:
        ShadowflowRuntimeConfig: Validated runtime config.
    Assumptions:
        Every replaced fragment exists in shipped test config.
    Raises:
        AssertionError: If one of fragments is missing.
        ValueError: If patched config is invalid.
    Side Effects:
        Writes one YAML file under `tmp_path`.
    """
    text = _TEST_CONFIG_PATH.read_text(encoding="utf-8")
    for old, new in replacements.items():
        assert old in text
        text = text.replace(old, new)
    path = tmp_path / "shadowflow.yaml"
    path.write_text(text, encoding="utf-8")
    return load_shadowflow_runtime_config(path, environ=environ or {})


def test_build_shadowflow_api_module_uses_sandbox_by_default() -> None:
    config = load_shadowflow_runtime_config(_TEST_CONFIG_PATH, environ={})

    module = build_shadowflow_api_module(config=config, environ={})

    assert module.sandbox is not None
    assert module.sandbox.decimals == 2
    assert isinstance(module.storage, InMemoryLocalKeyValueStore)
    assert module.withdrawals.reserve == config.gas_reserve
    assert module.deposits.operation_kind == "deposit"


def test_build_shadowflow_api_module_requires_gateway_for_external_sdk(tmp_path: Path) -> None:
    config = _load_patched_config(tmp_path, {"backend: sandbox": "backend: external"})

    with pytest.raises(ValueError, match="requires an injected PrivacySdkGateway"):
        build_shadowflow_api_module(config=config, environ={})


def test_build_shadowflow_api_module_requires_kek_when_encryption_is_required(
    tmp_path: Path,
) -> None:
    config = _load_patched_config(
        tmp_path,
        {"require_encryption: false": "require_encryption: true"},
    )

    with pytest.raises(ValueError, match="SHADOWFLOW_KEYSTORE_KEK_B64"):
        build_shadowflow_api_module(config=config, environ={})


def test_build_shadowflow_api_module_encrypts_keys_at_rest_when_kek_is_set(
    tmp_path: Path,
) -> None:
    """
    Verify generated decryption key is stored as `aesgcm.v1:` envelope and still loads.

    Args:
        tmp_path: Pytest temporary directory.
    Returns:
        None.
    Assumptions:
        KEK is a base64 encoded 32-byte value.
    Raises:
        AssertionError: If key is stored in plaintext or cannot be read back.
    Side Effects:
        None.
    """
    config = _load_patched_config(
        tmp_path,
        {"require_encryption: false": "require_encryption: true"},
    )
    module = build_shadowflow_api_module(
        config=config,
        environ={"SHADOWFLOW_KEYSTORE_KEK_B64": _KEK_B64},
    )

    key = asyncio.run(module.coordinator.generate_key(_SCOPE))
    stored = module.storage.get(_SCOPE.storage_key())

    assert stored is not None
    assert stored.startswith("aesgcm.v1:")
    assert key.value not in stored
    assert module.coordinator.key_manager.load_key(_SCOPE) == key


def test_build_shadowflow_api_module_persists_keys_in_json_file(tmp_path: Path) -> None:
    keystore_path = tmp_path / "keystore.json"
    config = _load_patched_config(
        tmp_path,
        {"backend: in_memory": "backend: json_file"},
        environ={"SHADOWFLOW_KEYSTORE_PATH": str(keystore_path)},
    )
    first = build_shadowflow_api_module(config=config, environ={})

    key = asyncio.run(first.coordinator.generate_key(_SCOPE))
    second = build_shadowflow_api_module(config=config, environ={})

    assert keystore_path.exists()
    assert second.coordinator.key_manager.load_key(_SCOPE) == key


def test_build_shadowflow_api_module_metrics_registries_are_isolated() -> None:
    config = load_shadowflow_runtime_config(_TEST_CONFIG_PATH, environ={})

    first = build_shadowflow_api_module(config=config, environ={})
    second = build_shadowflow_api_module(config=config, environ={})

    first.metrics.operations_total.labels(kind="donation").inc()

    assert first.metrics.registry is not second.metrics.registry
    assert second.metrics.registry.get_sample_value(
        "shadowflow_private_operations_total",
        {"kind": "donation"},
    ) is None
