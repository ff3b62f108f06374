from __future__ import annotations

import asyncio

from shadowflow.platform.concurrency import InFlightGuard


def test_in_flight_guard_rejects_second_acquire_until_release() -> None:
    """Ensure one key can be held by one operation at a time."""
    async def _scenario() -> None:
        guard = InFlightGuard(name="test")

        assert await guard.try_acquire("scope-a") is True
        assert await guard.try_acquire("scope-a") is False
        assert await guard.try_acquire("scope-b") is True
        assert guard.is_in_flight("scope-a") is True

        await guard.release("scope-a")

        assert guard.is_in_flight("scope-a") is False
        assert await guard.try_acquire("scope-a") is True

    asyncio.run(_scenario())


def test_in_flight_guard_release_of_unknown_key_is_noop() -> None:
    """
    Ensure releasing a key nobody holds leaves other keys untouched.

    Parameters:
    - None.

    Returns:
    - None.
    """
    async def _scenario() -> None:
        guard = InFlightGuard(name="test")
        assert await guard.try_acquire("scope") is True

        await guard.release("other")

        assert guard.is_in_flight("scope") is True
        assert repr(guard) == "InFlightGuard(name='test', pending=1)"

    asyncio.run(_scenario())
