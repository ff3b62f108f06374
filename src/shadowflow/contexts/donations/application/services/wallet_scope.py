from __future__ import annotations

from shadowflow.contexts.donations.application.ports import WalletSession
from shadowflow.platform.errors import WalletNotConnectedError
from shadowflow.shared_kernel.primitives import KeyScope


def resolve_active_scope(wallet: WalletSession, *, expected_chain_id: int | None) -> KeyScope:
    """
    Resolve key scope of the connected wallet on the expected network.

    Args:
        wallet: Wallet session port.
        expected_chain_id: Required chain id, or `None` to accept any network.
    Returns:
        KeyScope: Connected address with the session's active operating mode.
    Assumptions:
        A wallet on the wrong network is treated as not connected for private operations.
    Raises:
        WalletNotConnectedError: If no wallet is connected or network differs.
    Side Effects:
        None.
    """
    address = wallet.connected_address()
    if address is None:
        raise WalletNotConnectedError()
    if expected_chain_id is not None and wallet.chain_id() != expected_chain_id:
        raise WalletNotConnectedError(
            f"Please switch your wallet to chain id {expected_chain_id}."
        )
    return KeyScope(address=address, mode=wallet.mode())
