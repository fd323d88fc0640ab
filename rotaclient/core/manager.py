from __future__ import annotations
"""RotatingClient – a stable client handle over periodically replaced clients.

The rotating client keeps at most one *active* underlying client and hands it
out to callers. The active client is retired (and a fresh one created on the
next call) once it served more than ``request_limit`` requests, lived longer
than ``time_limit``, or, when configured, after an operation failed on it.
Retired clients are closed in the background by a periodic sweep, or at
shutdown::

    from rotaclient import RotatingClient
    from rotaclient.transport import HttpxClient

    async with RotatingClient(HttpxClient.factory(), request_limit=500) as rc:
        resp = await rc.with_client(lambda c: c.send(req), invalidate_on_error=True)

Everything runs on one event loop. State changes happen between awaits; the
only await that could race with itself, client creation, is serialised by a
lock so concurrent callers share a single new client.
"""

import asyncio
import contextlib
import time
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Set, TypeVar

from rotaclient.config import RotationConfig
from rotaclient.errors import ClosedError
from rotaclient.transport.base import (
    CloseClientFn,
    CountableClient,
    CreateClientFn,
    default_close,
)
from rotaclient.transport.tracking import TrackingClient
from rotaclient.utils.events import (
    CleanupFinished,
    InstanceClosed,
    InstanceCreated,
    InstanceRetired,
    publish,
)
from rotaclient.utils.logging import log

from .instance import ManagedInstance
from .runtime import settle_within

__all__ = ["RotatingClient"]

R = TypeVar("R")


class RotatingClient:
    """Client handle that transparently rotates its underlying client.

    Args:
        create_client_fn: async zero-arg factory for new clients. Results that
            already report ``ongoing_count``/``completed_count`` are used as-is,
            anything else is wrapped in a :class:`TrackingClient`.
        close_client_fn: async ``(client, force)`` closer; defaults to
            ``client.close(force=force)``.
        config: base :class:`RotationConfig`; keyword *overrides* (e.g.
            ``request_limit=10``) are applied on top of it.
        clock: zero-arg callable returning seconds, used for expiry.
    """

    def __init__(
        self,
        create_client_fn: CreateClientFn,
        *,
        close_client_fn: Optional[CloseClientFn] = None,
        config: Optional[RotationConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        **overrides: Any,
    ):
        base = config or RotationConfig()
        self.config = base.merged(**overrides) if overrides else base

        self._create_client_fn = create_client_fn
        self._close_client_fn = close_client_fn or default_close
        self._clock = clock

        self._request_limit = self.config.request_limit
        self._time_limit = self.config.time_limit.total_seconds()
        self._cleanup_interval = self.config.cleanup_interval.total_seconds()
        self._cleanup_timeout = self.config.cleanup_timeout.total_seconds()

        self._active: Optional[ManagedInstance] = None
        self._retiring: List[ManagedInstance] = []
        self._draining: Set[int] = set()  # ids with a close call in flight
        self._create_lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None
        self._sweep_task: Optional[asyncio.Task] = None
        self._shutdown: Optional[asyncio.Task] = None
        self._abandoned: Set[asyncio.Task] = set()  # overran cleanup_timeout, still running
        self._closing = False
        self._next_id = 0

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    @property
    def active(self) -> Optional[ManagedInstance]:
        return self._active

    @property
    def retiring(self) -> tuple[ManagedInstance, ...]:
        return tuple(self._retiring)

    @property
    def closing(self) -> bool:
        return self._closing

    @property
    def abandoned(self) -> tuple[asyncio.Task, ...]:
        """Close calls the sweep gave up on that have not finished yet."""
        return tuple(self._abandoned)

    @property
    def creating(self) -> bool:
        """True while a new client is being created."""
        return self._create_lock.locked()

    # ------------------------------------------------------------------ #
    # Client interface
    # ------------------------------------------------------------------ #
    async def send(self, request: Any) -> Any:
        """Send *request* through the current underlying client."""
        return await self.with_client(lambda c: c.send(request))

    async def with_client(
        self,
        fn: Callable[[CountableClient], Awaitable[R]],
        *,
        invalidate_on_error: bool = False,
        force_close_on_error: bool = False,
    ) -> R:
        """Run *fn* with the current client, which stays the same until it returns.

        If *fn* raises and invalidation is requested here or in the config, the
        client is retired so the next call gets a fresh one. The error from
        *fn* is always re-raised as is.
        """
        instance = await self.acquire()
        try:
            return await fn(instance.client)
        except Exception:
            self._invalidate(instance, invalidate_on_error, force_close_on_error)
            raise
        finally:
            self.release(instance)

    @contextlib.asynccontextmanager
    async def client(
        self,
        *,
        invalidate_on_error: bool = False,
        force_close_on_error: bool = False,
    ) -> AsyncIterator[CountableClient]:
        """Context-manager flavour of :meth:`with_client`."""
        instance = await self.acquire()
        try:
            yield instance.client
        except Exception:
            self._invalidate(instance, invalidate_on_error, force_close_on_error)
            raise
        finally:
            self.release(instance)

    # ------------------------------------------------------------------ #
    # Acquire / release
    # ------------------------------------------------------------------ #
    async def acquire(self) -> ManagedInstance:
        """Return the active instance, creating one if needed.

        Every successful acquire must be paired with :meth:`release`.
        """
        if self._closing:
            raise ClosedError("Rotating client is closing.")
        self._start_cleanup()

        current = self._active
        if current is not None and current.is_expired(
            self._request_limit, self._time_limit, self._clock()
        ):
            self._expire(False, "expired")

        if self._active is not None and not self._create_lock.locked():
            self._active.use_count += 1
            return self._active

        # Waiters queue here while a creation is in flight, then reuse its result.
        async with self._create_lock:
            if self._closing:
                raise ClosedError("Rotating client is closing.")
            if self._active is not None:
                self._active.use_count += 1
                return self._active
            return await self._create()

    def release(self, instance: ManagedInstance) -> None:
        if instance.use_count <= 0:
            log.warning("client #%d released more often than acquired", instance.id)
            return
        instance.use_count -= 1

    async def _create(self) -> ManagedInstance:
        client = await self._create_client_fn()
        wrapped = not isinstance(client, CountableClient)
        countable: CountableClient = TrackingClient(client) if wrapped else client  # type: ignore[assignment]

        self._next_id += 1
        instance = ManagedInstance(self._next_id, countable, self._clock())

        if self._closing:
            # Shutdown began while we were creating; nobody else will close it.
            await self._close_instance(instance, True)
            raise ClosedError("Rotating client is closing.")

        self._expire(False, "replaced")
        self._active = instance
        instance.use_count += 1
        log.debug("created client #%d", instance.id)
        publish(InstanceCreated(instance_id=instance.id, wrapped=wrapped))
        return instance

    # ------------------------------------------------------------------ #
    # Retirement
    # ------------------------------------------------------------------ #
    def expire_current(self, force: bool = False) -> None:
        """Retire the active client; the next call creates a new one.

        No-op when there is no active client.
        """
        self._expire(force, "explicit")

    def _expire(self, force: bool, reason: str) -> None:
        current = self._active
        if current is None:
            return
        current.force_close = force
        self._active = None
        self._retiring.append(current)
        log.debug("retired client #%d (%s)", current.id, reason)
        publish(InstanceRetired(instance_id=current.id, reason=reason, force_close=force))

    def _invalidate(self, instance: ManagedInstance, invalidate: bool, force_close: bool) -> None:
        force = self.config.force_close_on_error or force_close
        if not (self.config.invalidate_on_error or invalidate or force):
            return
        instance.force_close = force
        if self._active is instance:
            self._active = None
            self._retiring.append(instance)
            log.info("client #%d invalidated after error", instance.id)
            publish(InstanceRetired(instance_id=instance.id, reason="error", force_close=force))

    # ------------------------------------------------------------------ #
    # Cleanup
    # ------------------------------------------------------------------ #
    def _start_cleanup(self) -> None:
        if self._cleanup_task is not None or self._closing:
            return
        self._cleanup_task = asyncio.get_running_loop().create_task(
            self._cleanup_loop(), name=f"rotaclient-cleanup-{id(self):x}"
        )

    async def _cleanup_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._cleanup_interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += self._cleanup_interval
            if not self._retiring:
                continue
            self._sweep_task = loop.create_task(
                self._cleanup_retiring(False, self._cleanup_timeout)
            )
            # Shielded: stopping the loop must not abort closes already issued.
            await asyncio.shield(self._sweep_task)

    async def _stop_cleanup(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        sweep, self._sweep_task = self._sweep_task, None
        if sweep is not None and not sweep.done():
            await sweep

    async def _cleanup_retiring(
        self,
        force: bool,
        timeout: Optional[float] = None,
        exclude: Optional[ManagedInstance] = None,
    ) -> int:
        batch = [
            i for i in self._retiring
            if i.id not in self._draining and i is not exclude
        ]
        if not batch:
            return 0
        self._draining.update(i.id for i in batch)
        try:
            await asyncio.gather(
                *(self._close_instance(i, force or i.force_close, timeout) for i in batch)
            )
        finally:
            self._draining.difference_update(i.id for i in batch)
        for i in batch:
            self._discard(i)
        publish(CleanupFinished(closed=len(batch)))
        return len(batch)

    async def _close_instance(
        self, instance: ManagedInstance, force: bool, timeout: Optional[float] = None
    ) -> None:
        """Close one client; failures and timeouts are logged, not raised."""
        try:
            await settle_within(
                self._close_client_fn(instance.client, force),
                timeout,
                self._abandoned,
                f"client #{instance.id}",
            )
        except Exception as e:  # noqa: BLE001
            log.warning("closing client #%d failed: %r", instance.id, e)
            publish(InstanceClosed(instance_id=instance.id, forced=force, error=repr(e)))
        else:
            log.debug("closed client #%d (force=%s)", instance.id, force)
            publish(InstanceClosed(instance_id=instance.id, forced=force))

    def _discard(self, instance: ManagedInstance) -> None:
        with contextlib.suppress(ValueError):
            self._retiring.remove(instance)

    # ------------------------------------------------------------------ #
    # Shutdown
    # ------------------------------------------------------------------ #
    async def close(self, force: bool = False) -> None:
        """Close every client this rotating client created.

        New calls fail with :class:`ClosedError` from here on. Operations
        already running are not waited for; they may fail on their closed
        client. Later calls wait for the first shutdown to finish and do
        nothing else.
        """
        if self._shutdown is None:
            self._closing = True
            former = self._active
            self._expire(force, "shutdown")
            self._shutdown = asyncio.get_running_loop().create_task(
                self._drain_all(force, former), name=f"rotaclient-shutdown-{id(self):x}"
            )
        # Shielded: a cancelled caller must not abort the drain other callers wait on.
        await asyncio.shield(self._shutdown)

    async def _drain_all(self, force: bool, former: Optional[ManagedInstance]) -> None:
        await self._stop_cleanup()
        await self._cleanup_retiring(force, None, exclude=former)
        if former is not None:
            await self._close_instance(former, force or former.force_close)
            self._discard(former)

    async def __aenter__(self) -> "RotatingClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:  # pragma: no cover
        active = self._active.id if self._active else None
        return (
            f"RotatingClient(active={active}, retiring={len(self._retiring)}, "
            f"closing={self._closing})"
        )
