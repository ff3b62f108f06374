from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation

from shadowflow.platform.errors import InvalidAmountError

DEFAULT_GAS_RESERVE = Decimal("0.01")


def parse_amount(raw_amount: str | None) -> Decimal:
    """
    Parse user-entered token amount.

    Parameters:
    - raw_amount: decimal string in token units (for example `"1.5"`).

    Returns:
    - Positive finite `Decimal`.

    Assumptions/Invariants:
    - Parsing is locale-free; only `.` is accepted as decimal separator.

    Errors/Exceptions:
    - Raises `InvalidAmountError` for blank, non-numeric, non-finite, or non-positive input.

    Side effects:
    - None.
    """
    normalized = (raw_amount or "").strip()
    if not normalized:
        raise InvalidAmountError()
    try:
        amount = Decimal(normalized)
    except InvalidOperation as error:
        raise InvalidAmountError() from error
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError()
    return amount


def to_base_units(amount: Decimal, decimals: int) -> int:
    """
    Convert token amount to integer base units, truncating extra precision.

    Parameters:
    - amount: positive token amount.
    - decimals: token scale.

    Returns:
    - Base units as `int`.

    Assumptions/Invariants:
    - Digits beyond `decimals` are dropped, never rounded up.

    Errors/Exceptions:
    - Raises `InvalidAmountError` when amount truncates to zero base units.
    - Raises `ValueError` when decimals is negative.

    Side effects:
    - None.
    """
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    units = int((amount * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN))
    if units <= 0:
        raise InvalidAmountError(
            f"Amount is smaller than the token precision ({decimals} decimals)."
        )
    return units


def from_base_units(units: int, decimals: int) -> Decimal:
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    return Decimal(units).scaleb(-decimals)


def format_units(units: int, decimals: int) -> str:
    """Render base units as a plain decimal string without exponent or trailing zeros."""
    value = from_base_units(units, decimals)
    rendered = format(value.normalize(), "f")
    return rendered


def compute_max_withdrawal(
    balance_units: int,
    decimals: int,
    *,
    reserve: Decimal = DEFAULT_GAS_RESERVE,
) -> int:
    """
    Compute maximum withdrawable base units, keeping a reserve for network fees.

    Parameters:
    - balance_units: decrypted balance in base units.
    - decimals: token scale.
    - reserve: reserve in token units (default `0.01`).

    Returns:
    - `balance - reserve` when balance exceeds reserve, otherwise full balance.

    Assumptions/Invariants:
    - Result is never negative and never exceeds the balance.

    Errors/Exceptions:
    - Raises `ValueError` for negative balance, decimals, or reserve.

    Side effects:
    - None.
    """
    if balance_units < 0:
        raise ValueError("balance_units must be >= 0")
    if reserve < 0:
        raise ValueError("reserve must be >= 0")
    balance = from_base_units(balance_units, decimals)
    if balance <= reserve:
        return balance_units
    remaining = (balance - reserve) * (Decimal(10) ** decimals)
    return int(remaining.to_integral_value(rounding=ROUND_DOWN))
