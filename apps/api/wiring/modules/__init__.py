from .shadowflow import (
    ShadowflowApiMetrics,
    ShadowflowApiModule,
    build_shadowflow_api_module,
)

__all__ = [
    "ShadowflowApiMetrics",
    "ShadowflowApiModule",
    "build_shadowflow_api_module",
]
