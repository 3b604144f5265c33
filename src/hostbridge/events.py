"""Document lifecycle events and the bus host document services publish them on.

The document event bridge subscribes to these events and forwards each one to
the matching sink of the host shell.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for the notifications published on an :class:`EventBus`."""


@dataclass(slots=True)
class DocumentDeleted(Event):
    """Emitted when the hosted document is deleted.

    Attributes:
        moniker: Opaque identifier of the document instance.
    """

    moniker: str


@dataclass(slots=True)
class DocumentExternallyStopped(Event):
    """Emitted when the build or session behind a document is stopped elsewhere.

    Attributes:
        moniker: Opaque identifier of the document instance.
    """

    moniker: str


@dataclass(slots=True)
class DocumentPropertyChanged(Event):
    """Emitted when a named property of the document changes.

    Attributes:
        moniker: Opaque identifier of the document instance.
        property_name: Name of the property that changed.
        value: The new property value.
    """

    moniker: str
    property_name: str
    value: Any = None


@dataclass(slots=True)
class DocumentDirtyChanged(Event):
    """Emitted when the document's modified (dirty) state flips.

    Attributes:
        moniker: Opaque identifier of the document instance.
        dirty: The modified state after the change.
    """

    moniker: str
    dirty: bool = True


class EventBus(Generic[E]):
    """Synchronous publish/subscribe channel of a host document service.

    Handlers receive events of exactly the type they subscribed to, in
    subscription order, on the publishing thread. A bound method is held
    through :class:`weakref.WeakMethod`, so a subscriber object may go away
    without unsubscribing; any other callable is held strongly. A handler
    that raises is logged and never reaches the publisher.

    Example::

        bus = EventBus()
        bus.subscribe(DocumentDeleted, shell_view.on_deleted)
        bus.publish(DocumentDeleted(moniker="build-17"))
    """

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: Dict[type[Event], List[_Subscriber]] = {}

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._subscribers.setdefault(event_type, []).append(_Subscriber.wrap(handler))
        logger.debug("Subscribed %r to %s", handler, event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> bool:
        """Remove the first subscription of *handler*; returns ``False`` if there was none."""

        subscribers = self._subscribers.get(event_type, [])
        for index, subscriber in enumerate(subscribers):
            if subscriber.target() == handler:
                del subscribers[index]
                if not subscribers:
                    del self._subscribers[event_type]
                return True
        return False

    def publish(self, event: E) -> int:
        """Deliver *event* and return how many live handlers it was offered to."""

        event_type = type(event)
        subscribers = self._subscribers.get(event_type)
        if not subscribers:
            return 0
        offered = 0
        # Snapshot so handlers may unsubscribe while the event is delivered
        for subscriber in list(subscribers):
            handler = subscriber.target()
            if handler is None:
                self._drop(event_type, subscriber)
                continue
            offered += 1
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %r failed for %s", handler, event_type.__name__)
        return offered

    def _drop(self, event_type: type[Event], subscriber: "_Subscriber") -> None:
        subscribers = self._subscribers.get(event_type, [])
        if subscriber in subscribers:
            subscribers.remove(subscriber)
        if not subscribers:
            self._subscribers.pop(event_type, None)


class _Subscriber:
    """Resolves to the subscribed handler, or ``None`` once its owner is collected."""

    __slots__ = ("target",)

    def __init__(self, target: Callable[[], Handler | None]) -> None:
        self.target = target

    @classmethod
    def wrap(cls, handler: Handler) -> "_Subscriber":
        if inspect.ismethod(handler):
            return cls(WeakMethod(handler))
        return cls(lambda: handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "DocumentDeleted",
    "DocumentExternallyStopped",
    "DocumentPropertyChanged",
    "DocumentDirtyChanged",
]
