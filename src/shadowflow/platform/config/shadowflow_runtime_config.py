from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping

import yaml

from shadowflow.shared_kernel.primitives import OperatingMode, is_wallet_address

_ENV_NAME_KEY = "SHADOWFLOW_ENV"
_CONFIG_PATH_KEY = "SHADOWFLOW_CONFIG_PATH"
_ALLOWED_ENVS = ("dev", "prod", "test")

_MODE_ENV_KEY = "SHADOWFLOW_MODE"
_KEYSTORE_PATH_ENV_KEY = "SHADOWFLOW_KEYSTORE_PATH"
_HISTORY_MAX_CONCURRENCY_ENV_KEY = "SHADOWFLOW_HISTORY_MAX_CONCURRENCY"
_METRICS_ENABLED_ENV_KEY = "SHADOWFLOW_METRICS_ENABLED"
_ENV_FLAG_LITERALS = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}

_KEYSTORE_BACKENDS = ("json_file", "in_memory")
_SDK_BACKENDS = ("sandbox", "external")


@dataclass(frozen=True, slots=True)
class ContractsRuntimeConfig:
    """
    ContractsRuntimeConfig — encrypted token contract address per operating mode.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - configs/dev/shadowflow.yaml
      - apps/api/routes/wallet.py
    """

    standalone: str
    converter: str

    def __post_init__(self) -> None:
        if not is_wallet_address(self.standalone):
            raise ValueError("shadowflow.contracts.standalone must be a contract address")
        if not is_wallet_address(self.converter):
            raise ValueError("shadowflow.contracts.converter must be a contract address")

    def for_mode(self, mode: OperatingMode) -> str:
        if mode is OperatingMode.CONVERTER:
            return self.converter
        return self.standalone


@dataclass(frozen=True, slots=True)
class KeyStoreRuntimeConfig:
    """
    KeyStoreRuntimeConfig — local decryption key storage settings.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/adapters/outbound/persistence/
        local_key_value_key_store.py
      - apps/api/wiring/modules/shadowflow.py
    """

    backend: str
    path: str
    kek_env: str | None
    require_encryption: bool

    def __post_init__(self) -> None:
        """
        Validate key store backend settings.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            File path is used only by `json_file` backend.
        Raises:
            ValueError: If backend is unknown, path is blank, or required encryption has no
                KEK env name.
        Side Effects:
            None.
        """
        if self.backend not in _KEYSTORE_BACKENDS:
            raise ValueError(
                f"shadowflow.keystore.backend must be one of {_KEYSTORE_BACKENDS}, "
                f"got {self.backend!r}"
            )
        if self.backend == "json_file" and not self.path.strip():
            raise ValueError("shadowflow.keystore.path must be non-empty")
        if self.require_encryption and self.kek_env is None:
            raise ValueError("shadowflow.keystore.kek_env is required when encryption is required")


@dataclass(frozen=True, slots=True)
class SdkRuntimeConfig:
    """
    SdkRuntimeConfig — privacy SDK backend selection and readiness polling.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - src/shadowflow/contexts/privacy_sdk/adapters/outbound/sandbox/sandbox_privacy_sdk.py
    """

    backend: str
    ready_attempts: int
    ready_interval_seconds: float
    sandbox_decimals: int

    def __post_init__(self) -> None:
        if self.backend not in _SDK_BACKENDS:
            raise ValueError(
                f"shadowflow.sdk.backend must be one of {_SDK_BACKENDS}, got {self.backend!r}"
            )
        if self.ready_attempts <= 0:
            raise ValueError("shadowflow.sdk.ready_attempts must be > 0")
        if self.ready_interval_seconds < 0:
            raise ValueError("shadowflow.sdk.ready_interval_seconds must be >= 0")
        if self.sandbox_decimals < 0:
            raise ValueError("shadowflow.sdk.sandbox_decimals must be >= 0")


@dataclass(frozen=True, slots=True)
class ShadowflowRuntimeConfig:
    """
    ShadowflowRuntimeConfig — source-of-truth runtime config (`shadowflow.yaml`).

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - configs/dev/shadowflow.yaml
      - apps/api/main/app.py
      - apps/api/wiring/modules/shadowflow.py
    """

    version: int
    mode: OperatingMode
    chain_id: int
    contracts: ContractsRuntimeConfig
    keystore: KeyStoreRuntimeConfig
    sdk: SdkRuntimeConfig
    gas_reserve: Decimal
    history_max_concurrency: int
    image_retention_days: int
    metrics_enabled: bool

    def __post_init__(self) -> None:
        """
        Validate top-level runtime config invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Runtime schema version is fixed to `1`.
        Raises:
            ValueError: If one of scalar values is out of range.
        Side Effects:
            None.
        """
        if self.version != 1:
            raise ValueError(f"shadowflow config version must be 1, got {self.version}")
        if self.chain_id <= 0:
            raise ValueError("shadowflow.chain_id must be > 0")
        if self.gas_reserve < 0:
            raise ValueError("shadowflow.withdrawal.gas_reserve must be >= 0")
        if self.history_max_concurrency <= 0:
            raise ValueError("shadowflow.history.max_concurrency must be > 0")
        if self.image_retention_days <= 0:
            raise ValueError("shadowflow.campaign_images.retention_days must be > 0")


def resolve_shadowflow_config_path(
    *,
    environ: Mapping[str, str],
    cli_config_path: str | Path | None = None,
) -> Path:
    """
    Resolve runtime config path using CLI/env/fallback precedence.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - apps/api/main/app.py
      - apps/api/main/main.py

    Args:
        environ: Runtime environment mapping.
        cli_config_path: Optional explicit CLI override path.
    Returns:
        Path: Resolved path to runtime config.
    Assumptions:
        Precedence is CLI `--config` > `SHADOWFLOW_CONFIG_PATH` >
        `configs/<env>/shadowflow.yaml`.
    Raises:
        ValueError: If `SHADOWFLOW_ENV` value is invalid.
    Side Effects:
        None.
    """
    if cli_config_path is not None:
        raw_cli_path = str(cli_config_path).strip()
        if raw_cli_path:
            return Path(raw_cli_path)

    override_path = environ.get(_CONFIG_PATH_KEY, "").strip()
    if override_path:
        return Path(override_path)

    env_name = resolve_env_name(environ=environ)
    return Path("configs") / env_name / "shadowflow.yaml"


def load_shadowflow_runtime_config(
    path: str | Path,
    *,
    environ: Mapping[str, str] | None = None,
) -> ShadowflowRuntimeConfig:
    """
    Load and validate runtime YAML config.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - configs/dev/shadowflow.yaml
      - apps/api/main/app.py

    Args:
        path: Path to `shadowflow.yaml`.
        environ: Optional runtime environment mapping used for scalar overrides.
    Returns:
        ShadowflowRuntimeConfig: Parsed and validated runtime config.
    Assumptions:
        YAML payload contains top-level `version` and `shadowflow` mapping.
    Raises:
        FileNotFoundError: If config path does not exist.
        ValueError: If YAML structure, values, or scalar env overrides are invalid.
    Side Effects:
        Reads one UTF-8 YAML file from filesystem.
    """
    effective_environ = os.environ if environ is None else environ
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"shadowflow config not found: {config_path}")

    payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if not isinstance(payload, Mapping):
        raise ValueError("shadowflow config must be mapping at top-level")

    version = _get_int(payload, "version", required=True)
    root_map = _get_mapping(payload, "shadowflow", required=True)
    contracts_map = _get_mapping(root_map, "contracts", required=True)
    keystore_map = _get_mapping(root_map, "keystore", required=False)
    sdk_map = _get_mapping(root_map, "sdk", required=False)
    withdrawal_map = _get_mapping(root_map, "withdrawal", required=False)
    history_map = _get_mapping(root_map, "history", required=False)
    images_map = _get_mapping(root_map, "campaign_images", required=False)
    metrics_map = _get_mapping(root_map, "metrics", required=False)

    mode = OperatingMode.parse(
        _env_str(
            environ=effective_environ,
            key=_MODE_ENV_KEY,
            default=_get_str_with_default(root_map, "mode", default="standalone"),
        )
    )
    keystore_path = _env_str(
        environ=effective_environ,
        key=_KEYSTORE_PATH_ENV_KEY,
        default=_get_str_with_default(keystore_map, "path", default=".shadowflow/keystore.json"),
    )
    history_max_concurrency = _env_positive_int(
        environ=effective_environ,
        key=_HISTORY_MAX_CONCURRENCY_ENV_KEY,
        default=_get_int_with_default(history_map, "max_concurrency", default=8),
    )
    metrics_enabled = _env_flag(
        environ=effective_environ,
        key=_METRICS_ENABLED_ENV_KEY,
        default=_get_bool_with_default(metrics_map, "enabled", default=True),
    )

    return ShadowflowRuntimeConfig(
        version=version,
        mode=mode,
        chain_id=_get_int(root_map, "chain_id", required=True),
        contracts=ContractsRuntimeConfig(
            standalone=_get_str_with_default(contracts_map, "standalone", default=""),
            converter=_get_str_with_default(contracts_map, "converter", default=""),
        ),
        keystore=KeyStoreRuntimeConfig(
            backend=_get_str_with_default(keystore_map, "backend", default="json_file"),
            path=keystore_path,
            kek_env=_get_optional_str_with_default(
                keystore_map,
                "kek_env",
                default="SHADOWFLOW_KEYSTORE_KEK_B64",
            ),
            require_encryption=_get_bool_with_default(
                keystore_map,
                "require_encryption",
                default=False,
            ),
        ),
        sdk=SdkRuntimeConfig(
            backend=_get_str_with_default(sdk_map, "backend", default="sandbox"),
            ready_attempts=_get_int_with_default(sdk_map, "ready_attempts", default=30),
            ready_interval_seconds=_get_float_with_default(
                sdk_map,
                "ready_interval_seconds",
                default=1.0,
            ),
            sandbox_decimals=_get_int_with_default(sdk_map, "sandbox_decimals", default=2),
        ),
        gas_reserve=_get_decimal_with_default(
            withdrawal_map,
            "gas_reserve",
            default=Decimal("0.01"),
        ),
        history_max_concurrency=history_max_concurrency,
        image_retention_days=_get_int_with_default(images_map, "retention_days", default=30),
        metrics_enabled=metrics_enabled,
    )


def resolve_env_name(*, environ: Mapping[str, str]) -> str:
    """
    Resolve normalized runtime environment name.

    Args:
        environ: Runtime environment mapping.
    Returns:
        str: One of `dev`, `prod`, or `test`.
    Assumptions:
        Missing `SHADOWFLOW_ENV` defaults to `dev`.
    Raises:
        ValueError: If value is outside allowed environment literals.
    Side Effects:
        None.
    """
    raw_env_name = environ.get(_ENV_NAME_KEY, "dev").strip().lower()
    if raw_env_name not in _ALLOWED_ENVS:
        raise ValueError(
            f"{_ENV_NAME_KEY} must be one of {_ALLOWED_ENVS}, got {raw_env_name!r}"
        )
    return raw_env_name


def _get_mapping(data: Mapping[str, Any], key: str, *, required: bool) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        if required:
            raise ValueError(f"missing required key: {key}")
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"expected mapping at key '{key}', got {type(value).__name__}")
    return value


def _get_int(data: Mapping[str, Any], key: str, *, required: bool) -> int:
    """
    Read integer config value with bool rejection.

    Args:
        data: Source mapping.
        key: Integer key name.
        required: Whether key is required.
    Returns:
        int: Parsed integer value.
    Assumptions:
        Boolean values are rejected even though bool is an int subclass.
    Raises:
        ValueError: If required key missing or value type is invalid.
    Side Effects:
        None.
    """
    value = data.get(key)
    if value is None:
        if required:
            raise ValueError(f"missing required key: {key}")
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected int at key '{key}', got {type(value).__name__}")
    return value


def _get_int_with_default(data: Mapping[str, Any], key: str, *, default: int) -> int:
    if key not in data:
        return default
    return _get_int(data, key, required=True)


def _get_float_with_default(data: Mapping[str, Any], key: str, *, default: float) -> float:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected float at key '{key}', got {type(value).__name__}")
    return float(value)


def _get_decimal_with_default(data: Mapping[str, Any], key: str, *, default: Decimal) -> Decimal:
    """
    Read decimal config value from string or number.

    Args:
        data: Source mapping.
        key: Decimal key name.
        default: Value used when key is absent.
    Returns:
        Decimal: Parsed finite decimal.
    Assumptions:
        Strings are preferred in YAML to avoid binary float rounding.
    Raises:
        ValueError: If value is not a finite decimal literal.
    Side Effects:
        None.
    """
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValueError(f"expected decimal at key '{key}', got {type(value).__name__}")
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation as error:
        raise ValueError(f"expected decimal at key '{key}', got {value!r}") from error
    if not parsed.is_finite():
        raise ValueError(f"key '{key}' must be finite")
    return parsed


def _get_str_with_default(data: Mapping[str, Any], key: str, *, default: str) -> str:
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"expected string at key '{key}', got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"key '{key}' must be non-empty")
    return normalized


def _get_optional_str_with_default(
    data: Mapping[str, Any],
    key: str,
    *,
    default: str | None,
) -> str | None:
    if key not in data:
        return default
    value = data[key]
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected string or null at key '{key}', got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        return None
    return normalized


def _get_bool_with_default(data: Mapping[str, Any], key: str, *, default: bool) -> bool:
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, bool):
        raise ValueError(f"expected bool at key '{key}', got {type(value).__name__}")
    return value


def _env_str(*, environ: Mapping[str, str], key: str, default: str) -> str:
    return environ.get(key, "").strip() or default


def _env_positive_int(*, environ: Mapping[str, str], key: str, default: int) -> int:
    raw_value = environ.get(key, "").strip()
    if not raw_value:
        return default
    try:
        parsed = int(raw_value, 10)
    except ValueError as error:
        raise ValueError(f"{key} must be int, got {raw_value!r}") from error
    if parsed <= 0:
        raise ValueError(f"{key} must be > 0, got {parsed}")
    return parsed


def _env_flag(*, environ: Mapping[str, str], key: str, default: bool) -> bool:
    """
    Resolve boolean environment override, treating blank values as unset.

    Args:
        environ: Runtime environment mapping.
        key: Environment variable key, named in the error message.
        default: Value from YAML or built-in default.
    Returns:
        bool: Override value or `default`.
    Assumptions:
        Literals are case-insensitive `1/0/true/false/yes/no/on/off`.
    Raises:
        ValueError: If a non-blank value is not one of the literals.
    Side Effects:
        None.
    """
    raw_value = environ.get(key, "").strip()
    if not raw_value:
        return default
    parsed = _ENV_FLAG_LITERALS.get(raw_value.lower())
    if parsed is None:
        raise ValueError(
            f"{key} must be a boolean literal (1/0/true/false/yes/no/on/off), got {raw_value!r}"
        )
    return parsed


__all__ = [
    "ContractsRuntimeConfig",
    "KeyStoreRuntimeConfig",
    "SdkRuntimeConfig",
    "ShadowflowRuntimeConfig",
    "load_shadowflow_runtime_config",
    "resolve_env_name",
    "resolve_shadowflow_config_path",
]
