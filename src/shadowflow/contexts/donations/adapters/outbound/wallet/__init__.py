from .in_memory_wallet_session import InMemoryWalletSession

__all__ = ["InMemoryWalletSession"]
