from __future__ import annotations
"""TrackingClient – counts in-flight and finished ``send`` calls."""

from typing import Any

from .base import Client

__all__ = ["TrackingClient"]


class TrackingClient:
    """Wrap a plain :class:`Client` and report operation counts.

    A send that raises still counts as completed; the counters only answer
    "how much has this client been used".
    """

    __slots__ = ("_client", "_ongoing", "_completed")

    def __init__(self, client: Client):
        self._client = client
        self._ongoing = 0
        self._completed = 0

    @property
    def inner(self) -> Client:
        return self._client

    @property
    def ongoing_count(self) -> int:
        return self._ongoing

    @property
    def completed_count(self) -> int:
        return self._completed

    async def send(self, request: Any) -> Any:
        self._ongoing += 1
        try:
            return await self._client.send(request)
        finally:
            self._ongoing -= 1
            self._completed += 1

    async def close(self, force: bool = False) -> None:
        await self._client.close(force=force)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"TrackingClient({self._client!r}, ongoing={self._ongoing}, "
            f"completed={self._completed})"
        )
