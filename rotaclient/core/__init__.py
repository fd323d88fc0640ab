# Rotation core: managed instances and the rotating client.

from .instance import ManagedInstance  # noqa: F401
from .manager import RotatingClient  # noqa: F401
