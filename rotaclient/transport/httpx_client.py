from __future__ import annotations
"""HTTP transport backed by :class:`httpx.AsyncClient`.

`HttpxClient` satisfies the :class:`~rotaclient.transport.base.Client`
capability, so a rotating client can wrap it in counting behaviour and swap it
out periodically::

    from rotaclient import RotatingClient
    from rotaclient.transport import HttpxClient

    rc = RotatingClient(create_client_fn=HttpxClient.factory(base_url="https://api.example.com"))
    resp = await rc.send(httpx.Request("GET", "https://api.example.com/ping"))
"""

import os
from typing import Any, Awaitable, Callable

import httpx

__all__ = ["HttpxClient"]


class HttpxClient:
    """One ``httpx.AsyncClient`` = one rotatable connection set."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **client_kwargs: Any,
    ):
        self.base_url = base_url or os.getenv("ROTACLIENT_BASE_URL", "")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
            **client_kwargs,
        )

    # ------------------------------------------------------------------ #
    @classmethod
    def factory(cls, base_url: str | None = None, **kwargs: Any) -> Callable[[], Awaitable["HttpxClient"]]:
        """Return an async zero-arg factory building fresh clients."""

        async def _create() -> "HttpxClient":
            return cls(base_url, **kwargs)

        return _create

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def build_request(self, method: str, url: str, **kwargs: Any) -> httpx.Request:
        return self._client.build_request(method, url, **kwargs)

    async def send(self, request: httpx.Request) -> httpx.Response:
        return await self._client.send(request)

    async def close(self, force: bool = False) -> None:
        # httpx has no forced shutdown; aclose() drops pooled connections.
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
