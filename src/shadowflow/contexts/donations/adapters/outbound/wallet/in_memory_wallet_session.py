from __future__ import annotations

import logging

from shadowflow.contexts.donations.application.ports import WalletSession
from shadowflow.shared_kernel.primitives import OperatingMode, WalletAddress

log = logging.getLogger(__name__)


class InMemoryWalletSession(WalletSession):
    """
    InMemoryWalletSession — wallet connection state driven by the local UI through the API.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/ports/wallet_session.py
      - apps/api/routes/wallet.py
    """

    def __init__(self, *, mode: OperatingMode = OperatingMode.STANDALONE) -> None:
        self._address: WalletAddress | None = None
        self._chain_id: int | None = None
        self._mode = mode

    def connect(self, *, address: str, chain_id: int, mode: OperatingMode | None = None) -> None:
        """
        Mark wallet as connected.

        Args:
            address: Wallet address reported by the wallet extension.
            chain_id: Network the wallet is connected to.
            mode: Optional operating mode switch.
        Returns:
            None.
        Assumptions:
            Connecting another address replaces the previous session.
        Raises:
            ValueError: If address is malformed or chain id is not positive.
        Side Effects:
            Mutates session state.
        """
        typed_address = WalletAddress(address)
        if chain_id <= 0:
            raise ValueError("chain_id must be > 0")
        self._address = typed_address
        self._chain_id = chain_id
        if mode is not None:
            self._mode = mode
        log.info("wallet %s connected on chain %s", typed_address.short(), chain_id)

    def disconnect(self) -> None:
        self._address = None
        self._chain_id = None

    def switch_mode(self, mode: OperatingMode) -> None:
        self._mode = mode

    def connected_address(self) -> WalletAddress | None:
        return self._address

    def chain_id(self) -> int | None:
        return self._chain_id

    def mode(self) -> OperatingMode:
        return self._mode
