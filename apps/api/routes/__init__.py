from .balance import build_balance_router
from .campaigns import build_campaigns_router
from .deposits import build_deposits_router
from .donations import build_donations_router
from .wallet import build_wallet_router
from .withdrawals import build_withdrawals_router

__all__ = [
    "build_balance_router",
    "build_campaigns_router",
    "build_deposits_router",
    "build_donations_router",
    "build_wallet_router",
    "build_withdrawals_router",
]
