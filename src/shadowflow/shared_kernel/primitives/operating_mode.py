from __future__ import annotations

from enum import Enum


class OperatingMode(str, Enum):
    """
    OperatingMode — selects which encrypted token contract pairing is active.

    Keys and registration state are scoped per mode.
    """

    STANDALONE = "standalone"
    CONVERTER = "converter"

    @classmethod
    def parse(cls, raw_value: str) -> OperatingMode:
        """
        Parse mode literal case-insensitively.

        Args:
            raw_value: Raw mode literal.
        Returns:
            OperatingMode: Parsed mode.
        Assumptions:
            Only `standalone` and `converter` are supported.
        Raises:
            ValueError: If literal is unknown.
        Side Effects:
            None.
        """
        normalized = raw_value.strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"mode must be one of: standalone, converter, got {raw_value!r}")

    def __str__(self) -> str:
        return self.value
