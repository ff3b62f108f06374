"""
Shared Kernel primitives.

This package re-exports the minimal set of domain primitives so that other
modules can import them from one place:

    from shadowflow.shared_kernel.primitives import KeyScope, OperatingMode, WalletAddress
"""

from .key_scope import KeyScope
from .operating_mode import OperatingMode
from .wallet_address import WalletAddress, is_wallet_address

__all__ = [
    "KeyScope",
    "OperatingMode",
    "WalletAddress",
    "is_wallet_address",
]
