from __future__ import annotations
"""ManagedInstance – one countable client plus rotation bookkeeping."""

from rotaclient.transport.base import CountableClient

__all__ = ["ManagedInstance"]


class ManagedInstance:  # noqa: D101
    __slots__ = ("id", "client", "created_at", "use_count", "force_close")

    def __init__(self, id: int, client: CountableClient, created_at: float):
        self.id = id
        self.client = client
        self.created_at = created_at  # clock seconds, never changes
        self.use_count = 0
        self.force_close = False

    @property
    def request_count(self) -> int:
        return self.client.ongoing_count + self.client.completed_count

    def is_expired(self, request_limit: int, time_limit: float, now: float) -> bool:
        """True once the client served more than *request_limit* requests
        or lived longer than *time_limit* seconds."""
        if self.request_count > request_limit:
            return True
        return now - self.created_at > time_limit

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"ManagedInstance(id={self.id}, uses={self.use_count}, "
            f"requests={self.request_count}, force_close={self.force_close})"
        )
