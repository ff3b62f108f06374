"""
Wallet, decryption key and registration API routes.

Docs:
  - docs/architecture/shadowflow/privacy-donations-v1.md
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from shadowflow.contexts.donations.adapters.outbound import InMemoryWalletSession
from shadowflow.contexts.donations.application.services import (
    BalanceService,
    resolve_active_scope,
)
from shadowflow.contexts.wallet_keys.application.services import (
    KeyRecoveryService,
    RegistrationCoordinator,
)
from shadowflow.platform.config import ContractsRuntimeConfig
from shadowflow.platform.errors import InvalidRecipientError
from shadowflow.shared_kernel.primitives import KeyScope, OperatingMode


class ConnectWalletRequest(BaseModel):
    """
    ConnectWalletRequest — API payload for `POST /wallet/connect`.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/adapters/outbound/wallet/in_memory_wallet_session.py
    """

    address: str
    chain_id: int = Field(gt=0)
    mode: Literal["standalone", "converter"] | None = None


class GenerateKeyRequest(BaseModel):
    allow_rotation: bool = False


class WalletStatusResponse(BaseModel):
    """
    WalletStatusResponse — connection and registration view; never contains key material.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/domain/registration_state.py
      - apps/api/routes/wallet.py
    """

    connected: bool
    address: str | None
    chain_id: int | None
    mode: Literal["standalone", "converter"]
    token_address: str
    registration_state: str | None
    is_initialized: bool
    is_registered: bool
    has_key: bool


class KeyGeneratedResponse(BaseModel):
    generated: bool
    registration_state: str


class KeyClearedResponse(BaseModel):
    cleared: bool


class RegistrationResponse(BaseModel):
    transaction_hash: str | None
    already_registered: bool
    registration_state: str


class RecoveryResponse(BaseModel):
    recovered: bool
    registration_state: str


def build_wallet_router(
    *,
    wallet: InMemoryWalletSession,
    coordinator: RegistrationCoordinator,
    recovery: KeyRecoveryService,
    balances: BalanceService,
    contracts: ContractsRuntimeConfig,
    expected_chain_id: int | None,
) -> APIRouter:
    """
    Build router exposing wallet session, key lifecycle and registration endpoints.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/wallet_keys/application/services/registration_coordinator.py
      - src/shadowflow/contexts/wallet_keys/application/services/key_recovery_service.py
      - apps/api/wiring/modules/shadowflow.py

    Args:
        wallet: Wallet session driven by the local UI.
        coordinator: Registration coordinator.
        recovery: Corrupted key recovery service.
        balances: Balance service; cached snapshots are dropped on key changes.
        contracts: Encrypted token contract per operating mode.
        expected_chain_id: Required network, or `None` to accept any.
    Returns:
        APIRouter: Configured wallet router.
    Assumptions:
        Responses never include decryption key values.
    Raises:
        ValueError: If required dependencies are missing.
    Side Effects:
        None.
    """
    if wallet is None:  # type: ignore[truthy-bool]
        raise ValueError("build_wallet_router requires wallet")
    if coordinator is None:  # type: ignore[truthy-bool]
        raise ValueError("build_wallet_router requires coordinator")
    if recovery is None:  # type: ignore[truthy-bool]
        raise ValueError("build_wallet_router requires recovery")
    if balances is None:  # type: ignore[truthy-bool]
        raise ValueError("build_wallet_router requires balances")

    router = APIRouter(prefix="/wallet", tags=["wallet"])

    def active_scope() -> KeyScope:
        return resolve_active_scope(wallet, expected_chain_id=expected_chain_id)

    async def current_status() -> WalletStatusResponse:
        mode = wallet.mode()
        address = wallet.connected_address()
        response = WalletStatusResponse(
            connected=address is not None,
            address=address.value if address is not None else None,
            chain_id=wallet.chain_id(),
            mode=mode.value,
            token_address=contracts.for_mode(mode),
            registration_state=None,
            is_initialized=False,
            is_registered=False,
            has_key=False,
        )
        if address is None:
            return response
        scope = KeyScope(address=address, mode=mode)
        state = await coordinator.state(scope)
        return response.model_copy(
            update={
                "registration_state": state.value,
                "is_initialized": await coordinator.is_initialized(scope),
                "is_registered": await coordinator.is_registered(scope),
                "has_key": coordinator.key_manager.has_stored_key(scope),
            }
        )

    @router.get("/status", response_model=WalletStatusResponse)
    async def get_wallet_status() -> WalletStatusResponse:
        return await current_status()

    @router.post("/connect", response_model=WalletStatusResponse)
    async def post_wallet_connect(request: ConnectWalletRequest) -> WalletStatusResponse:
        """
        Connect wallet and initialize privacy SDK for its scope.

        Args:
            request: Wallet address, network and optional mode.
        Returns:
            WalletStatusResponse: Status after SDK initialization polling.
        Assumptions:
            Malformed address is reported as `invalid_recipient`.
        Raises:
            PrivacyOperationError: Mapped by the shared error handler.
        Side Effects:
            Replaces wallet session and resolves SDK capability.
        """
        mode = OperatingMode.parse(request.mode) if request.mode is not None else None
        try:
            wallet.connect(address=request.address, chain_id=request.chain_id, mode=mode)
        except ValueError as error:
            raise InvalidRecipientError("Invalid wallet address.") from error
        address = wallet.connected_address()
        if address is not None and (
            expected_chain_id is None or wallet.chain_id() == expected_chain_id
        ):
            await coordinator.initialize(KeyScope(address=address, mode=wallet.mode()))
        return await current_status()

    @router.post("/disconnect", response_model=WalletStatusResponse)
    async def post_wallet_disconnect() -> WalletStatusResponse:
        wallet.disconnect()
        return await current_status()

    @router.post("/key", response_model=KeyGeneratedResponse, status_code=201)
    async def post_wallet_key(request: GenerateKeyRequest | None = None) -> KeyGeneratedResponse:
        scope = active_scope()
        allow_rotation = request.allow_rotation if request is not None else False
        await coordinator.generate_key(scope, allow_rotation=allow_rotation)
        balances.forget(scope)
        state = await coordinator.state(scope)
        return KeyGeneratedResponse(generated=True, registration_state=state.value)

    @router.delete("/key", response_model=KeyClearedResponse)
    async def delete_wallet_key() -> KeyClearedResponse:
        scope = active_scope()
        cleared = coordinator.clear_key(scope)
        balances.forget(scope)
        return KeyClearedResponse(cleared=cleared)

    @router.post("/register", response_model=RegistrationResponse)
    async def post_wallet_register() -> RegistrationResponse:
        """
        Generate key when absent and register the wallet with the privacy registrar.

        Args:
            None.
        Returns:
            RegistrationResponse: Registration transaction hash and resulting state.
        Assumptions:
            Concurrent requests for one scope share one registration submission.
        Raises:
            PrivacyOperationError: Mapped by the shared error handler.
        Side Effects:
            May write one key entry and submit one registration transaction.
        """
        scope = active_scope()
        receipt = await coordinator.register_with_key(scope)
        state = await coordinator.state(scope)
        return RegistrationResponse(
            transaction_hash=receipt.transaction_hash,
            already_registered=receipt.already_registered,
            registration_state=state.value,
        )

    @router.post("/key/recover", response_model=RecoveryResponse)
    async def post_wallet_key_recover() -> RecoveryResponse:
        scope = active_scope()
        recovered = recovery.recover(scope)
        if recovered:
            balances.forget(scope)
        state = await coordinator.state(scope)
        return RecoveryResponse(recovered=recovered, registration_state=state.value)

    return router
