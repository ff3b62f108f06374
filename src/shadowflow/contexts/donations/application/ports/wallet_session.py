from __future__ import annotations

from typing import Protocol

from shadowflow.shared_kernel.primitives import OperatingMode, WalletAddress


class WalletSession(Protocol):
    """
    WalletSession — wallet/network layer exposing connected address, chain and active mode.

    Related:
      - src/shadowflow/contexts/donations/adapters/outbound/wallet/in_memory_wallet_session.py
      - src/shadowflow/contexts/donations/application/services/wallet_scope.py
    """

    def connected_address(self) -> WalletAddress | None:
        ...

    def chain_id(self) -> int | None:
        ...

    def mode(self) -> OperatingMode:
        ...
