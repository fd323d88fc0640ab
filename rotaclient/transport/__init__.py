"""Transport-side building blocks: capabilities, counting, HTTP."""

from .base import Client, CountableClient, CreateClientFn, CloseClientFn, default_close  # noqa: F401
from .tracking import TrackingClient  # noqa: F401
from .httpx_client import HttpxClient  # noqa: F401
from .factories import blocking_factory  # noqa: F401
