"""rotaclient: one stable client handle over periodically replaced clients.

Main components:
* `RotatingClient`: hands out the current client, retires it by request
  count, age, or error, and closes retired clients in the background
* `RotationConfig`: limits and cleanup cadence
* `TrackingClient`: counts requests on clients that do not count themselves
* `HttpxClient`: ready-made HTTP transport on top of httpx
"""

# Version info
__version__ = "0.1.0"

from rotaclient.config import RotationConfig, load_config_from_yaml
from rotaclient.core.instance import ManagedInstance
from rotaclient.core.manager import RotatingClient
from rotaclient.errors import ClosedError, CloseTimeout, RotaClientError
from rotaclient.transport.base import Client, CountableClient
from rotaclient.transport.factories import blocking_factory
from rotaclient.transport.httpx_client import HttpxClient
from rotaclient.transport.tracking import TrackingClient

__all__ = [
    # Core classes
    "RotatingClient",
    "ManagedInstance",
    "RotationConfig",

    # Transports
    "Client",
    "CountableClient",
    "TrackingClient",
    "HttpxClient",

    # Functions
    "load_config_from_yaml",
    "blocking_factory",

    # Errors
    "RotaClientError",
    "ClosedError",
    "CloseTimeout",
]
