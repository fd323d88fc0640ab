from __future__ import annotations
"""Tiny pub/sub **EventBus** for client lifecycle notifications.

Example
-------
```python
from rotaclient.utils.events import Event, InstanceRetired, listening, subscribe

@subscribe(InstanceRetired)
def _on_retired(evt: InstanceRetired):
    print(f"instance #{evt.instance_id} retired ({evt.reason})")

# or only for a while:
with listening({Event: print}):
    ...
```

Handlers run synchronously inside the rotating client; keep them short.
"""

import contextlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Type, TypeVar

from rotaclient.utils.logging import log

__all__ = [
    "Event",
    "InstanceCreated",
    "InstanceRetired",
    "InstanceClosed",
    "CleanupFinished",
    "EventBus",
    "bus",
    "listening",
    "subscribe",
    "unsubscribe",
    "publish",
]

T = TypeVar("T", bound="Event")
_Handler = Callable[[Any], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, kw_only=True)
class Event:  # noqa: D101 – base event
    ts: datetime = field(default_factory=_now)


# --------------------------------------------------------------------------- #
# Concrete events
# --------------------------------------------------------------------------- #
@dataclass(slots=True)
class InstanceCreated(Event):
    instance_id: int
    wrapped: bool  # True when the factory result needed a TrackingClient


@dataclass(slots=True)
class InstanceRetired(Event):
    instance_id: int
    reason: str  # "expired" | "error" | "explicit" | "shutdown"
    force_close: bool = False


@dataclass(slots=True)
class InstanceClosed(Event):
    instance_id: int
    forced: bool
    error: str | None = None


@dataclass(slots=True)
class CleanupFinished(Event):
    closed: int


# --------------------------------------------------------------------------- #
# Bus
# --------------------------------------------------------------------------- #
class EventBus:
    """Synchronous dispatcher keyed by event class.

    A handler subscribed to a base class also receives its subclasses, so
    ``bus.subscribe(Event, fn)`` sees every lifecycle event.
    """

    __slots__ = ("_handlers",)

    def __init__(self):
        self._handlers: Dict[Type[Event], List[_Handler]] = {}

    def subscribe(self, event_type: Type[T], func: _Handler | None = None):
        """Register *func* for *event_type*; without *func*, act as a decorator."""
        if func is None:
            return lambda f: self.subscribe(event_type, f)
        self._handlers.setdefault(event_type, []).append(func)
        return func

    def unsubscribe(self, event_type: Type[Event], func: _Handler) -> None:
        with contextlib.suppress(KeyError, ValueError):
            self._handlers[event_type].remove(func)

    @contextlib.contextmanager
    def listening(self, handlers: Mapping[Type[Event], _Handler]) -> Iterator[None]:
        """Subscribe *handlers* for the duration of a ``with`` block."""
        for event_type, func in handlers.items():
            self.subscribe(event_type, func)
        try:
            yield
        finally:
            for event_type, func in handlers.items():
                self.unsubscribe(event_type, func)

    def publish(self, evt: Event) -> None:
        targets = [
            func
            for cls in type(evt).__mro__
            for func in self._handlers.get(cls, ())
        ]
        for func in targets:
            try:
                func(evt)
            except Exception as e:  # noqa: BLE001
                log.warning("event handler %s failed on %s: %r", getattr(func, "__name__", func), type(evt).__name__, e)


bus = EventBus()

subscribe = bus.subscribe
unsubscribe = bus.unsubscribe
listening = bus.listening
publish = bus.publish
