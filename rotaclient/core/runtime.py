from __future__ import annotations

"""Bounded close calls for the cleanup sweep.

A close that overruns its bound is cancelled and *abandoned*: the sweep stops
waiting for it even if the close ignores the cancellation. Abandoned tasks are
parked in a caller-owned set until they finish, and their late outcome is
logged then.
"""

import asyncio
from typing import Awaitable, Optional, Set

from rotaclient.errors import CloseTimeout
from rotaclient.utils.logging import log

__all__ = ["settle_within", "CloseTimeout"]


def _report_late(label: str, parked: Set[asyncio.Task]):
    def _done(task: asyncio.Task) -> None:
        parked.discard(task)
        if task.cancelled():
            log.debug("abandoned close of %s cancelled", label)
        elif task.exception() is not None:
            log.warning("abandoned close of %s failed: %r", label, task.exception())
        else:
            log.debug("abandoned close of %s finished late", label)

    return _done


async def settle_within(
    aw: Awaitable[None],
    timeout_seconds: Optional[float],
    parked: Set[asyncio.Task],
    label: str = "client",
) -> None:
    """Await *aw* for at most *timeout_seconds* (``None``: no bound).

    Raises :class:`CloseTimeout` when the bound is hit. The overrunning task
    is cancelled and added to *parked* instead of being waited for.
    """
    if timeout_seconds is None:
        await aw
        return

    task = asyncio.ensure_future(aw)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise
    if task in done:
        task.result()
        return

    task.cancel()
    parked.add(task)
    task.add_done_callback(_report_late(label, parked))
    raise CloseTimeout(f"Closing {label} did not finish within {timeout_seconds} seconds")
