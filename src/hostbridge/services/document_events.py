"""Forwards host document lifecycle events to the host shell."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Tuple

from . import telemetry
from ..events import (
    DocumentDeleted,
    DocumentDirtyChanged,
    DocumentExternallyStopped,
    DocumentPropertyChanged,
    Event,
    EventBus,
)
from .sinks import SinkCall, SinkName, SinkTable

_LOGGER = logging.getLogger(__name__)

# Event type -> (sink, argument extractor)
FORWARDING_TABLE: dict[type[Event], tuple[SinkName, Callable[[Any], tuple[Any, ...]]]] = {
    DocumentDeleted: (SinkName.DOCUMENT_DELETED, lambda event: (event.moniker,)),
    DocumentExternallyStopped: (SinkName.DOCUMENT_EXTERNALLY_STOPPED, lambda event: (event.moniker,)),
    DocumentPropertyChanged: (
        SinkName.DOCUMENT_PROPERTY_CHANGED,
        lambda event: (event.moniker, event.property_name, event.value),
    ),
    DocumentDirtyChanged: (SinkName.DOCUMENT_DIRTY_CHANGED, lambda event: (event.moniker,)),
}


class DocumentEventBridge:
    """Subscribes to document service events and forwards them by moniker.

    The subscribed handlers are closures owned by this bridge, so they stay
    alive for as long as the bridge does regardless of the event bus's weak
    reference handling for bound methods.
    """

    def __init__(self, events: EventBus, sinks: SinkTable) -> None:
        self._events = events
        self._sinks = sinks
        self._subscriptions: List[Tuple[type[Event], Callable[[Any], None]]] = []

    @property
    def subscribed(self) -> bool:
        return bool(self._subscriptions)

    def subscribe(self) -> None:
        if self._subscriptions:
            return
        for event_type, (sink, extract) in FORWARDING_TABLE.items():
            handler = self._make_forwarder(sink, extract)
            self._events.subscribe(event_type, handler)
            self._subscriptions.append((event_type, handler))
        _LOGGER.debug("Document event bridge subscribed to %d event type(s)", len(self._subscriptions))

    def unsubscribe(self) -> None:
        while self._subscriptions:
            event_type, handler = self._subscriptions.pop()
            self._events.unsubscribe(event_type, handler)

    def forward(self, event: Event) -> SinkCall | None:
        """Forward a single event to its sink; returns ``None`` for unknown event types."""

        entry = FORWARDING_TABLE.get(type(event))
        if entry is None:
            return None
        sink, extract = entry
        return self._deliver(sink, extract(event))

    def _make_forwarder(
        self, sink: SinkName, extract: Callable[[Any], tuple[Any, ...]]
    ) -> Callable[[Any], None]:
        def _forward(event: Any) -> None:
            self._deliver(sink, extract(event))

        _forward.__name__ = f"forward_{sink.value}"
        return _forward

    def _deliver(self, sink: SinkName, args: tuple[Any, ...]) -> SinkCall:
        call = self._sinks.call(sink, *args)
        if call.delivered:
            telemetry.emit(telemetry.NOTIFICATION_FORWARDED, {"sink": sink.value})
        return call


__all__ = ["DocumentEventBridge", "FORWARDING_TABLE"]
