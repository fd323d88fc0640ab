from __future__ import annotations
"""Adapters for client factories that are not natively async."""

from functools import partial
from typing import Any, Callable

import anyio

from .base import Client, CreateClientFn

__all__ = ["blocking_factory"]


def blocking_factory(fn: Callable[..., Client], *args: Any, **kwargs: Any) -> CreateClientFn:
    """Turn a blocking constructor into an async factory.

    The constructor runs on a worker thread so slow setup (spawning a server,
    loading credentials from disk) does not stall the event loop.
    """

    async def _create() -> Client:
        return await anyio.to_thread.run_sync(partial(fn, *args, **kwargs))

    return _create
