from .shadowflow_runtime_config import (
    ContractsRuntimeConfig,
    KeyStoreRuntimeConfig,
    SdkRuntimeConfig,
    ShadowflowRuntimeConfig,
    load_shadowflow_runtime_config,
    resolve_env_name,
    resolve_shadowflow_config_path,
)

__all__ = [
    "ContractsRuntimeConfig",
    "KeyStoreRuntimeConfig",
    "SdkRuntimeConfig",
    "ShadowflowRuntimeConfig",
    "load_shadowflow_runtime_config",
    "resolve_env_name",
    "resolve_shadowflow_config_path",
]
