from __future__ import annotations

_KNOWN_SDK_MESSAGES: tuple[tuple[str, str], ...] = (
    ("last element of the message must be 0", "Message formatting error. Please try again."),
    ("Token address is not set", "Token not registered with eERC20 contract."),
    ("UserNotRegistered", "Please register with eERC20 first."),
    ("insufficient allowance", "Token approval failed. Please try again."),
    ("User rejected", "Transaction was rejected."),
)
_REJECTION_MARKERS = ("user rejected", "user denied", "rejected the request")


def describe_sdk_error(error: BaseException | None, *, fallback: str) -> str:
    """
    Convert raw privacy SDK exception into a stable human-readable message.

    Args:
        error: Exception raised by an external primitive, or `None`.
        fallback: Message used when the exception carries no text.
    Returns:
        str: Known SDK failures mapped to friendly text, otherwise original message.
    Assumptions:
        SDK error text never contains decryption key material.
    Raises:
        None.
    Side Effects:
        None.
    """
    if error is None:
        return fallback
    raw_message = str(error).strip()
    if not raw_message:
        return fallback
    for marker, friendly in _KNOWN_SDK_MESSAGES:
        if marker in raw_message:
            return friendly
    return raw_message


def is_user_rejection(error: BaseException) -> bool:
    """
    Detect wallet-side user rejection of a transaction prompt.

    Args:
        error: Exception raised by an external transfer primitive.
    Returns:
        bool: `True` when message matches a known rejection marker.
    Assumptions:
        Wallet providers report rejections through message text only.
    Raises:
        None.
    Side Effects:
        None.
    """
    normalized = str(error).strip().lower()
    return any(marker in normalized for marker in _REJECTION_MARKERS)
