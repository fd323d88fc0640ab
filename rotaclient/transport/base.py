from __future__ import annotations
"""Client capabilities consumed by the rotating client.

A :class:`Client` can send one request and be closed. A
:class:`CountableClient` additionally reports how many operations are in
flight and how many have completed, which is what rotation by request count
needs. Both are structural protocols: any object with the right members
qualifies, no subclassing required.
"""

from typing import Any, Awaitable, Callable, Protocol, Union, runtime_checkable

__all__ = [
    "Client",
    "CountableClient",
    "CreateClientFn",
    "CloseClientFn",
    "default_close",
]


@runtime_checkable
class Client(Protocol):
    async def send(self, request: Any) -> Any: ...

    async def close(self, force: bool = False) -> None: ...


@runtime_checkable
class CountableClient(Client, Protocol):
    @property
    def ongoing_count(self) -> int: ...

    @property
    def completed_count(self) -> int: ...


CreateClientFn = Callable[[], Awaitable[Union[Client, CountableClient]]]
CloseClientFn = Callable[[CountableClient, bool], Awaitable[None]]


async def default_close(client: CountableClient, force: bool) -> None:
    """Ask *client* to close itself with the given *force* flag."""
    await client.close(force=force)
