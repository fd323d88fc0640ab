from __future__ import annotations

"""Exception types raised by rotaclient.

Only :class:`ClosedError` ever reaches callers of the rotating client; errors
raised by a caller's own operation are re-raised untouched.
"""

__all__ = ["RotaClientError", "ClosedError", "CloseTimeout"]


class RotaClientError(Exception):
    """Base class for rotaclient errors."""


class ClosedError(RotaClientError):
    """Raised when a client is requested after shutdown has started."""


class CloseTimeout(RotaClientError):
    """Raised when closing a retired client exceeds its time bound."""
