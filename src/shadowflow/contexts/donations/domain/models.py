from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from shadowflow.contexts.privacy_sdk.application.ports import EncryptedAmount
from shadowflow.platform.errors import PrivacyOperationError

UNKNOWN_DONOR = "Unknown"
DECRYPTION_FAILED_MESSAGE = "Failed to decrypt message"


class FlowState(str, Enum):
    """Donation and withdrawal form lifecycle: `Form -> Validating -> Processing -> terminal`."""

    FORM = "form"
    VALIDATING = "validating"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class OutcomeState(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class PhaseResult:
    """
    PhaseResult — result of one phase (transfer or campaign linkage) of a private operation.

    Docs:
      - docs/architecture/shadowflow/privacy-donations-v1.md
    Related:
      - src/shadowflow/contexts/donations/application/services/donation_orchestrator.py
      - src/shadowflow/contexts/donations/application/services/withdrawal_orchestrator.py
    """

    ok: bool
    transaction_hash: str | None = None
    error: PrivacyOperationError | None = None

    def __post_init__(self) -> None:
        """
        Validate that failed phases carry an error and successful phases do not.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            A successful phase may have no transaction hash (linkage calls return none).
        Raises:
            ValueError: If ok/error combination is inconsistent.
        Side Effects:
            None.
        """
        if self.ok and self.error is not None:
            raise ValueError("successful PhaseResult must not carry an error")
        if not self.ok and self.error is None:
            raise ValueError("failed PhaseResult requires an error")

    @classmethod
    def succeeded(cls, transaction_hash: str | None = None) -> PhaseResult:
        return cls(ok=True, transaction_hash=transaction_hash)

    @classmethod
    def failed(cls, error: PrivacyOperationError) -> PhaseResult:
        return cls(ok=False, error=error)


@dataclass(frozen=True, slots=True)
class OperationOutcome:
    """
    OperationOutcome — terminal two-phase result of a donation or withdrawal.

    `primary` is the private transfer; `secondary` is best-effort campaign linkage and is
    `None` when no campaign contract was involved. Linkage failure never turns a successful
    transfer into an error outcome.
    """

    state: OutcomeState
    message: str
    primary: PhaseResult
    secondary: PhaseResult | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is OutcomeState.SUCCESS

    @property
    def transaction_hash(self) -> str | None:
        return self.primary.transaction_hash

    @property
    def error(self) -> PrivacyOperationError | None:
        return self.primary.error

    @property
    def linkage_warning(self) -> str | None:
        if self.secondary is None or self.secondary.error is None:
            return None
        return self.secondary.error.message

    @classmethod
    def failure(cls, error: PrivacyOperationError) -> OperationOutcome:
        return cls(
            state=OutcomeState.ERROR,
            message=error.message,
            primary=PhaseResult.failed(error),
        )


@dataclass(frozen=True, slots=True)
class DonationRecord:
    """
    One decrypted (or failed-to-decrypt) donation of a campaign history.

    Failed entries keep their slot with donor `Unknown` so history length matches the index.
    """

    tx_hash: str
    donor: str
    message: str
    timestamp: datetime
    campaign_address: str | None = None
    decryption_failed: bool = False


@dataclass(frozen=True, slots=True)
class BalanceSnapshot:
    """
    Last applied balance view of one scope.

    `decrypted` is `None` when unknown, which is different from a zero balance.
    """

    encrypted: EncryptedAmount | None
    decrypted: int | None
    decimals: int | None
    error: str | None
    sequence: int
