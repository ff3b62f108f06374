"""
FastAPI application factory for the ShadowFlow private donations API.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from apps.api.common import register_api_error_handlers
from apps.api.wiring.modules import build_shadowflow_api_module
from shadowflow.contexts.donations.application.ports import CampaignLedger
from shadowflow.contexts.privacy_sdk.application.ports import PrivacySdkGateway
from shadowflow.contexts.wallet_keys.application.ports import LocalKeyValueStore
from shadowflow.platform.config import (
    load_shadowflow_runtime_config,
    resolve_shadowflow_config_path,
)

log = logging.getLogger(__name__)


def create_app(
    *,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    gateway: PrivacySdkGateway | None = None,
    ledger: CampaignLedger | None = None,
    storage: LocalKeyValueStore | None = None,
) -> FastAPI:
    """
    Build FastAPI app with the private donations module wired at startup.

    Docs: docs/architecture/shadowflow/privacy-donations-v1.md
    Related: apps.api.wiring.modules.shadowflow,
      apps.api.common.errors,
      shadowflow.platform.config.shadowflow_runtime_config

    Args:
        environ: Optional environment mapping override.
        config_path: Optional explicit config path (CLI `--config`).
        gateway: Optional privacy SDK gateway; sandbox gateway is used when omitted.
        ledger: Optional campaign ledger; in-memory ledger is used when omitted.
        storage: Optional local key-value store override.
    Returns:
        FastAPI: Application instance with registered routers.
    Assumptions:
        Wiring performs fail-fast validation before first request.
    Raises:
        FileNotFoundError: If runtime config path is missing.
        ValueError: If config parsing/validation or wiring fails.
    Side Effects:
        Reads runtime YAML and removes expired campaign image entries.
    """
    effective_environ = os.environ if environ is None else environ
    resolved_path = resolve_shadowflow_config_path(
        environ=effective_environ,
        cli_config_path=config_path,
    )
    config = load_shadowflow_runtime_config(resolved_path, environ=effective_environ)
    module = build_shadowflow_api_module(
        config=config,
        environ=effective_environ,
        gateway=gateway,
        ledger=ledger,
        storage=storage,
    )
    module.images.cleanup_expired()

    app = FastAPI(
        title="ShadowFlow API",
        version="1.0.0",
    )
    register_api_error_handlers(app=app)
    app.include_router(module.router)
    if config.metrics_enabled:
        app.mount("/metrics", make_asgi_app(registry=module.metrics.registry))
    app.state.shadowflow = module
    log.info("shadowflow api configured from %s (mode=%s)", resolved_path, config.mode.value)
    return app
