"""
Encrypted and decrypted balance API routes.

Docs:
  - docs/architecture/shadowflow/privacy-donations-v1.md
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from shadowflow.contexts.donations.application.ports import WalletSession
from shadowflow.contexts.donations.application.services import (
    BalanceService,
    resolve_active_scope,
)
from shadowflow.contexts.donations.domain import BalanceSnapshot, format_units


class BalanceResponse(BaseModel):
    """
    BalanceResponse — encrypted ciphertext plus decrypted amount when known.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/balance_service.py
      - src/shadowflow/contexts/donations/domain/models.py
    """

    encrypted: list[str] | None
    decrypted: str | None
    decrypted_units: int | None
    decimals: int | None
    error: str | None


def build_balance_router(
    *,
    wallet: WalletSession,
    balances: BalanceService,
    expected_chain_id: int | None,
) -> APIRouter:
    """
    Build router exposing balance snapshot endpoints.

    Args:
        wallet: Wallet session port.
        balances: Balance service.
        expected_chain_id: Required network, or `None` to accept any.
    Returns:
        APIRouter: Configured balance router.
    Assumptions:
        Unknown decrypted balance is `null`, never `0`.
    Raises:
        ValueError: If required dependencies are missing.
    Side Effects:
        None.
    """
    if wallet is None:  # type: ignore[truthy-bool]
        raise ValueError("build_balance_router requires wallet")
    if balances is None:  # type: ignore[truthy-bool]
        raise ValueError("build_balance_router requires balances")

    router = APIRouter(prefix="/balance", tags=["balance"])

    @router.get("", response_model=BalanceResponse)
    async def get_balance() -> BalanceResponse:
        scope = resolve_active_scope(wallet, expected_chain_id=expected_chain_id)
        snapshot = balances.snapshot(scope)
        if snapshot is None:
            snapshot = await balances.refresh(scope)
        return _to_balance_response(snapshot=snapshot)

    @router.post("/refresh", response_model=BalanceResponse)
    async def post_balance_refresh() -> BalanceResponse:
        scope = resolve_active_scope(wallet, expected_chain_id=expected_chain_id)
        return _to_balance_response(snapshot=await balances.refresh(scope))

    return router


def _to_balance_response(*, snapshot: BalanceSnapshot) -> BalanceResponse:
    """
    Convert balance snapshot into API response.

    Args:
        snapshot: Applied balance snapshot.
    Returns:
        BalanceResponse: Ciphertext words as decimal strings and formatted amount.
    Assumptions:
        Ciphertext integers exceed JSON safe integer range, so they are sent as strings.
    Raises:
        None.
    Side Effects:
        None.
    """
    encrypted = None
    if snapshot.encrypted is not None:
        encrypted = [str(word) for word in snapshot.encrypted.ciphertext]
    decrypted = None
    if snapshot.decrypted is not None and snapshot.decimals is not None:
        decrypted = format_units(snapshot.decrypted, snapshot.decimals)
    return BalanceResponse(
        encrypted=encrypted,
        decrypted=decrypted,
        decrypted_units=snapshot.decrypted,
        decimals=snapshot.decimals,
        error=snapshot.error,
    )
