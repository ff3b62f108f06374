from __future__ import annotations

import asyncio
from typing import Hashable


class InFlightGuard:
    """
    Registry of operation keys currently in flight on the running event loop.

    Parameters:
    - name: label used in diagnostics only.

    Assumptions/Invariants:
    - One guard instance is shared by every caller that must be mutually exclusive.
    - A key is released in `finally`, so an operation never stays "processing forever".
    """

    def __init__(self, *, name: str) -> None:
        self._name = name
        self._pending_keys: set[Hashable] = set()
        self._pending_lock = asyncio.Lock()

    async def try_acquire(self, key: Hashable) -> bool:
        """
        Mark key as in flight if it is not already pending.

        Parameters:
        - key: hashable operation key, usually a `KeyScope`.

        Returns:
        - `True` when acquired, `False` when another operation holds the key.

        Assumptions/Invariants:
        - Caller must call `release` for every successful acquire.

        Errors/Exceptions:
        - None.

        Side effects:
        - Adds key into in-memory pending registry.
        """
        async with self._pending_lock:
            if key in self._pending_keys:
                return False
            self._pending_keys.add(key)
            return True

    async def release(self, key: Hashable) -> None:
        async with self._pending_lock:
            self._pending_keys.discard(key)

    def is_in_flight(self, key: Hashable) -> bool:
        return key in self._pending_keys

    def __repr__(self) -> str:
        return f"InFlightGuard(name={self._name!r}, pending={len(self._pending_keys)})"
