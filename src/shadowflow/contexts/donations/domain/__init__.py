from .amounts import (
    DEFAULT_GAS_RESERVE,
    compute_max_withdrawal,
    format_units,
    from_base_units,
    parse_amount,
    to_base_units,
)
from .message_codec import (
    ANONYMOUS_DONATION_TEXT,
    DONATION_TAG,
    WITHDRAWAL_TAG,
    DecodedDonation,
    DecodedWithdrawal,
    decode_donation,
    decode_withdrawal,
    encode_donation,
    encode_withdrawal,
)
from .models import (
    DECRYPTION_FAILED_MESSAGE,
    UNKNOWN_DONOR,
    BalanceSnapshot,
    DonationRecord,
    FlowState,
    OperationOutcome,
    OutcomeState,
    PhaseResult,
)

__all__ = [
    "ANONYMOUS_DONATION_TEXT",
    "BalanceSnapshot",
    "DECRYPTION_FAILED_MESSAGE",
    "DEFAULT_GAS_RESERVE",
    "DONATION_TAG",
    "DecodedDonation",
    "DecodedWithdrawal",
    "DonationRecord",
    "FlowState",
    "OperationOutcome",
    "OutcomeState",
    "PhaseResult",
    "UNKNOWN_DONOR",
    "WITHDRAWAL_TAG",
    "compute_max_withdrawal",
    "decode_donation",
    "decode_withdrawal",
    "encode_donation",
    "encode_withdrawal",
    "format_units",
    "from_base_units",
    "parse_amount",
    "to_base_units",
]
