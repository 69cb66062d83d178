"""Pipeline event publishing."""

from chronos.infrastructure.events.base import EventDispatcherBase, EventDispatchError
from chronos.infrastructure.events.http_dispatcher import HttpEventDispatcher

__all__ = [
    # Base classes
    "EventDispatcherBase",
    "EventDispatchError",
    # Implementations
    "HttpEventDispatcher",
]
