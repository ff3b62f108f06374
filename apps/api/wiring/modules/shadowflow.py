"""
Composition helpers for the private donations API module.

Docs: docs/architecture/shadowflow/privacy-donations-v1.md
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from fastapi import APIRouter
from prometheus_client import CollectorRegistry, Counter

from apps.api.routes import (
    build_balance_router,
    build_campaigns_router,
    build_deposits_router,
    build_donations_router,
    build_wallet_router,
    build_withdrawals_router,
)
from shadowflow.contexts.donations.adapters.outbound import (
    InMemoryCampaignLedger,
    InMemoryWalletSession,
)
from shadowflow.contexts.donations.application.ports import CampaignLedger
from shadowflow.contexts.donations.application.services import (
    BalanceService,
    CampaignImageIndex,
    DepositOrchestrator,
    DonationHistoryDecryptor,
    DonationHistoryService,
    DonationOrchestrator,
    PrivateOperationHooks,
    WithdrawalOrchestrator,
)
from shadowflow.contexts.privacy_sdk.adapters.outbound import (
    SandboxPrivacyLedger,
    SandboxPrivacySdkGateway,
)
from shadowflow.contexts.privacy_sdk.application.ports import PrivacySdkGateway
from shadowflow.contexts.wallet_keys.adapters.outbound import (
    AesGcmKeyStoreCipher,
    InMemoryLocalKeyValueStore,
    JsonFileLocalKeyValueStore,
    LocalKeyValueKeyStore,
)
from shadowflow.contexts.wallet_keys.application.ports import (
    KeyStoreSecretCipher,
    LocalKeyValueStore,
)
from shadowflow.contexts.wallet_keys.application.services import (
    KeyLifecycleManager,
    KeyRecoveryService,
    RegistrationCoordinator,
    RegistrationCoordinatorHooks,
)
from shadowflow.platform.concurrency import InFlightGuard
from shadowflow.platform.config import ShadowflowRuntimeConfig
from shadowflow.platform.time import SystemClock

log = logging.getLogger(__name__)


class ShadowflowApiMetrics:
    """
    ShadowflowApiMetrics — Prometheus metrics bundle for private donation flows.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/operation_hooks.py
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - apps/api/main/app.py
    """

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        """
        Register Prometheus metrics used by the API process.

        Args:
            registry: Optional collector registry; a private one is created when omitted.
        Returns:
            None.
        Assumptions:
            One bundle per application instance; private registry keeps app factories
            repeatable in one process.
        Raises:
            ValueError: Propagated by prometheus client on duplicate metric names.
        Side Effects:
            Registers metrics in the registry.
        """
        self.registry = registry if registry is not None else CollectorRegistry()
        self.operations_total = Counter(
            "shadowflow_private_operations_total",
            "Successful private donations, withdrawals and deposits",
            ["kind"],
            registry=self.registry,
        )
        self.operation_failures_total = Counter(
            "shadowflow_private_operation_failures_total",
            "Rejected or failed private donations, withdrawals and deposits",
            ["kind", "code"],
            registry=self.registry,
        )
        self.linkage_failures_total = Counter(
            "shadowflow_campaign_linkage_failures_total",
            "Transfers that succeeded but failed campaign linkage",
            ["kind"],
            registry=self.registry,
        )
        self.history_item_failures_total = Counter(
            "shadowflow_history_decrypt_failures_total",
            "Donation history items that could not be decrypted",
            registry=self.registry,
        )
        self.registrations_total = Counter(
            "shadowflow_registrations_total",
            "Submitted privacy registrations",
            registry=self.registry,
        )
        self.registration_failures_total = Counter(
            "shadowflow_registration_failures_total",
            "Failed privacy registrations",
            registry=self.registry,
        )

    def operation_hooks(self) -> PrivateOperationHooks:
        return PrivateOperationHooks(
            on_operation_succeeded=lambda kind: self.operations_total.labels(kind=kind).inc(),
            on_operation_failed=lambda kind, code: self.operation_failures_total.labels(
                kind=kind,
                code=code,
            ).inc(),
            on_linkage_failed=lambda kind: self.linkage_failures_total.labels(kind=kind).inc(),
            on_history_item_failed=self.history_item_failures_total.inc,
        )

    def registration_hooks(self) -> RegistrationCoordinatorHooks:
        return RegistrationCoordinatorHooks(
            on_registration_submitted=lambda _scope: self.registrations_total.inc(),
            on_registration_failed=lambda _scope: self.registration_failures_total.inc(),
        )


@dataclass(frozen=True, slots=True)
class ShadowflowApiModule:
    """
    ShadowflowApiModule — wired services and router of the private donations API.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - apps/api/main/app.py
      - apps/api/routes/wallet.py
      - apps/api/routes/donations.py
    """

    config: ShadowflowRuntimeConfig
    router: APIRouter
    wallet: InMemoryWalletSession
    storage: LocalKeyValueStore
    coordinator: RegistrationCoordinator
    recovery: KeyRecoveryService
    balances: BalanceService
    donations: DonationOrchestrator
    withdrawals: WithdrawalOrchestrator
    deposits: DepositOrchestrator
    history: DonationHistoryService
    images: CampaignImageIndex
    ledger: CampaignLedger
    metrics: ShadowflowApiMetrics
    sandbox: SandboxPrivacyLedger | None


def build_shadowflow_api_module(
    *,
    config: ShadowflowRuntimeConfig,
    environ: Mapping[str, str],
    gateway: PrivacySdkGateway | None = None,
    ledger: CampaignLedger | None = None,
    storage: LocalKeyValueStore | None = None,
) -> ShadowflowApiModule:
    """
    Build fully wired private donations module from runtime config.

    Docs: docs/architecture/shadowflow/privacy-donations-v1.md
    Related: apps.api.main.app,
      apps.api.routes.wallet,
      shadowflow.contexts.wallet_keys.application.services.registration_coordinator

    Args:
        config: Validated runtime config.
        environ: Runtime environment mapping (KEK lookup).
        gateway: Privacy SDK gateway; required when `sdk.backend=external`.
        ledger: Campaign ledger; in-memory ledger is used when omitted.
        storage: Local key-value store override; built from `keystore` config when omitted.
    Returns:
        ShadowflowApiModule: Wired services and router.
    Assumptions:
        Donation, withdrawal and deposit flows share one in-flight guard, so one scope
        never moves funds twice concurrently.
    Raises:
        ValueError: If external SDK has no gateway or required KEK is missing/invalid.
    Side Effects:
        None.
    """
    clock = SystemClock()
    metrics = ShadowflowApiMetrics()

    sandbox: SandboxPrivacyLedger | None = None
    if gateway is None:
        if config.sdk.backend != "sandbox":
            raise ValueError(
                "shadowflow.sdk.backend=external requires an injected PrivacySdkGateway"
            )
        sandbox = SandboxPrivacyLedger(decimals=config.sdk.sandbox_decimals, clock=clock)
        gateway = SandboxPrivacySdkGateway(ledger=sandbox)
        log.info("using sandbox privacy SDK (decimals=%s)", config.sdk.sandbox_decimals)

    effective_storage = storage if storage is not None else _build_storage(config=config)
    key_store = LocalKeyValueKeyStore(
        storage=effective_storage,
        cipher=_build_cipher(config=config, environ=environ),
    )
    coordinator = RegistrationCoordinator(
        gateway=gateway,
        key_manager=KeyLifecycleManager(key_store=key_store),
        ready_attempts=config.sdk.ready_attempts,
        ready_interval_seconds=config.sdk.ready_interval_seconds,
        hooks=metrics.registration_hooks(),
    )
    recovery = KeyRecoveryService(key_store=key_store, coordinator=coordinator)
    balances = BalanceService(coordinator=coordinator)
    wallet = InMemoryWalletSession(mode=config.mode)
    effective_ledger = ledger if ledger is not None else InMemoryCampaignLedger()
    guard = InFlightGuard(name="private-transfers")
    operation_hooks = metrics.operation_hooks()

    donations = DonationOrchestrator(
        coordinator=coordinator,
        balances=balances,
        wallet=wallet,
        ledger=effective_ledger,
        expected_chain_id=config.chain_id,
        guard=guard,
        hooks=operation_hooks,
    )
    withdrawals = WithdrawalOrchestrator(
        coordinator=coordinator,
        balances=balances,
        wallet=wallet,
        ledger=effective_ledger,
        expected_chain_id=config.chain_id,
        guard=guard,
        hooks=operation_hooks,
        reserve=config.gas_reserve,
    )
    deposits = DepositOrchestrator(
        coordinator=coordinator,
        balances=balances,
        wallet=wallet,
        ledger=effective_ledger,
        expected_chain_id=config.chain_id,
        guard=guard,
        hooks=operation_hooks,
    )
    history = DonationHistoryService(
        coordinator=coordinator,
        wallet=wallet,
        ledger=effective_ledger,
        decryptor=DonationHistoryDecryptor(
            clock=clock,
            max_concurrency=config.history_max_concurrency,
            hooks=operation_hooks,
        ),
        expected_chain_id=config.chain_id,
    )
    images = CampaignImageIndex(
        storage=effective_storage,
        clock=clock,
        retention_days=config.image_retention_days,
    )

    router = APIRouter()
    router.include_router(
        build_wallet_router(
            wallet=wallet,
            coordinator=coordinator,
            recovery=recovery,
            balances=balances,
            contracts=config.contracts,
            expected_chain_id=config.chain_id,
        )
    )
    router.include_router(
        build_balance_router(
            wallet=wallet,
            balances=balances,
            expected_chain_id=config.chain_id,
        )
    )
    router.include_router(build_donations_router(orchestrator=donations))
    router.include_router(build_withdrawals_router(orchestrator=withdrawals))
    router.include_router(build_deposits_router(orchestrator=deposits))
    router.include_router(build_campaigns_router(history=history, images=images))

    return ShadowflowApiModule(
        config=config,
        router=router,
        wallet=wallet,
        storage=effective_storage,
        coordinator=coordinator,
        recovery=recovery,
        balances=balances,
        donations=donations,
        withdrawals=withdrawals,
        deposits=deposits,
        history=history,
        images=images,
        ledger=effective_ledger,
        metrics=metrics,
        sandbox=sandbox,
    )


def _build_storage(*, config: ShadowflowRuntimeConfig) -> LocalKeyValueStore:
    if config.keystore.backend == "in_memory":
        return InMemoryLocalKeyValueStore()
    return JsonFileLocalKeyValueStore(path=config.keystore.path)


def _build_cipher(
    *,
    config: ShadowflowRuntimeConfig,
    environ: Mapping[str, str],
) -> KeyStoreSecretCipher | None:
    """
    Build at-rest key store cipher from KEK environment variable.

    Args:
        config: Validated runtime config.
        environ: Runtime environment mapping.
    Returns:
        KeyStoreSecretCipher | None: Cipher, or `None` when no KEK is configured.
    Assumptions:
        Plaintext storage is allowed only when `keystore.require_encryption` is false.
    Raises:
        ValueError: If encryption is required but KEK is missing, or KEK is invalid.
    Side Effects:
        None.
    """
    kek_env = config.keystore.kek_env
    kek_b64 = environ.get(kek_env, "").strip() if kek_env is not None else ""
    if not kek_b64:
        if config.keystore.require_encryption:
            raise ValueError(f"{kek_env} is required when keystore encryption is required")
        log.warning("decryption keys are stored without at-rest encryption")
        return None
    return AesGcmKeyStoreCipher(kek_b64=kek_b64)
