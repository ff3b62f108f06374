from __future__ import annotations

from dataclasses import dataclass

DONATION_TAG = "DONATION"
WITHDRAWAL_TAG = "WITHDRAWAL"
ANONYMOUS_DONATION_TEXT = "Anonymous donation"
_SEPARATOR = ":"
_NUL = "\x00"


@dataclass(frozen=True, slots=True)
class DecodedDonation:
    """
    Parsed donation message.

    `campaign_address` is `None` when the raw message is unstructured text.
    """

    text: str
    campaign_address: str | None = None

    @property
    def is_structured(self) -> bool:
        return self.campaign_address is not None


@dataclass(frozen=True, slots=True)
class DecodedWithdrawal:
    is_withdrawal: bool
    campaign_address: str | None = None
    text: str = ""


def encode_donation(campaign_address: str, text: str | None) -> str:
    """
    Build `DONATION:<campaign>:<text>` wire message.

    Args:
        campaign_address: Campaign reference (contract address or campaign id).
        text: Free donor text; blank text becomes `Anonymous donation`.
    Returns:
        str: Encoded message travelling inside the encrypted channel.
    Assumptions:
        Campaign reference contains no `:`; free text may contain it.
    Raises:
        None.
    Side Effects:
        None.
    """
    normalized_text = (text or "").strip() or ANONYMOUS_DONATION_TEXT
    return _SEPARATOR.join((DONATION_TAG, campaign_address.strip(), normalized_text))


def decode_donation(raw: str | None) -> DecodedDonation:
    """
    Parse donation wire message, degrading malformed input to unstructured text.

    Args:
        raw: Decrypted message, possibly with trailing NUL terminators.
    Returns:
        DecodedDonation: Structured result or whole message as text.
    Assumptions:
        Text after the campaign token is rejoined with `:`.
    Raises:
        None.
    Side Effects:
        None.
    """
    message = _strip_terminators(raw)
    parts = message.split(_SEPARATOR)
    if len(parts) >= 3 and parts[0] == DONATION_TAG:
        return DecodedDonation(text=_SEPARATOR.join(parts[2:]), campaign_address=parts[1])
    return DecodedDonation(text=message)


def encode_withdrawal(campaign_address: str | None = None) -> str:
    normalized = (campaign_address or "").strip()
    if not normalized:
        return WITHDRAWAL_TAG
    return f"{WITHDRAWAL_TAG}{_SEPARATOR}{normalized}"


def decode_withdrawal(raw: str | None) -> DecodedWithdrawal:
    message = _strip_terminators(raw)
    if message == WITHDRAWAL_TAG:
        return DecodedWithdrawal(is_withdrawal=True)
    prefix = WITHDRAWAL_TAG + _SEPARATOR
    if message.startswith(prefix):
        campaign = message[len(prefix) :]
        return DecodedWithdrawal(is_withdrawal=True, campaign_address=campaign or None)
    return DecodedWithdrawal(is_withdrawal=False, text=message)


def _strip_terminators(raw: str | None) -> str:
    if raw is None:
        return ""
    return str(raw).rstrip(_NUL)
