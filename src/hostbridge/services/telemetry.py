"""In-process telemetry for bridge dispatch, forwarding and save activity.

Bridge services report through :func:`emit` using one of the event names
declared here. Every listener receives its own :class:`BridgeTelemetryEvent`,
so a listener that edits the payload cannot change what the next one sees.
Listeners registered under :data:`ALL_EVENTS` hear every name.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Mapping

LOGGER = logging.getLogger(__name__)

ACTION_DISPATCHED = "bridge.action.dispatched"
SINK_FAILED = "bridge.sink.failed"
NOTIFICATION_FORWARDED = "bridge.notification.forwarded"
SAVE_COMPLETED = "bridge.save.completed"
ALL_EVENTS = "*"


@dataclass(frozen=True, slots=True)
class BridgeTelemetryEvent:
    """One delivery of an emitted event."""

    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


Listener = Callable[[BridgeTelemetryEvent], None]

_LISTENERS: dict[str, list[Listener]] = {}


def register_event_listener(event_name: str, listener: Listener) -> None:
    """Call *listener* whenever *event_name* is emitted; registering twice is a no-op."""

    if not event_name:
        raise ValueError("Telemetry listeners need an event name")
    bucket = _LISTENERS.setdefault(event_name, [])
    if listener not in bucket:
        bucket.append(listener)


def unregister_event_listener(event_name: str, listener: Listener) -> bool:
    bucket = _LISTENERS.get(event_name, [])
    if listener not in bucket:
        return False
    bucket.remove(listener)
    if not bucket:
        del _LISTENERS[event_name]
    return True


def emit(event_name: str, payload: Mapping[str, Any] | None = None) -> int:
    """Deliver *event_name* and return how many listeners accepted it.

    A listener that raises is logged and skipped; emitters never see the error.
    """

    fields = dict(payload or {})
    targets = [*_LISTENERS.get(event_name, ()), *_LISTENERS.get(ALL_EVENTS, ())]
    LOGGER.debug("Telemetry %s %s (%d listener(s))", event_name, fields, len(targets))
    stamp = time.time()
    delivered = 0
    for listener in targets:
        try:
            listener(BridgeTelemetryEvent(event_name, dict(fields), stamp))
        except Exception:
            LOGGER.debug("Telemetry listener %r rejected %s", listener, event_name, exc_info=True)
            continue
        delivered += 1
    return delivered


def reset_listeners() -> None:
    """Forget every listener; test suites call this between cases."""

    _LISTENERS.clear()


class InMemoryTelemetrySink:
    """Keeps the most recent bridge events for a registration or a test."""

    def __init__(self, capacity: int = 200) -> None:
        self._events: deque[BridgeTelemetryEvent] = deque(maxlen=max(10, capacity))
        self._lock = Lock()

    @property
    def capacity(self) -> int:
        return self._events.maxlen or 0

    def record(self, event: BridgeTelemetryEvent) -> None:
        with self._lock:
            self._events.append(event)

    def attach(self) -> None:
        register_event_listener(ALL_EVENTS, self.record)

    def detach(self) -> None:
        unregister_event_listener(ALL_EVENTS, self.record)

    def tail(self, limit: int | None = None) -> list[BridgeTelemetryEvent]:
        with self._lock:
            snapshot = list(self._events)
        if limit is None:
            return snapshot
        return snapshot[max(0, len(snapshot) - limit):]

    def named(self, name: str) -> list[BridgeTelemetryEvent]:
        return [event for event in self.tail() if event.name == name]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


__all__ = [
    "ACTION_DISPATCHED",
    "ALL_EVENTS",
    "BridgeTelemetryEvent",
    "InMemoryTelemetrySink",
    "Listener",
    "NOTIFICATION_FORWARDED",
    "SAVE_COMPLETED",
    "SINK_FAILED",
    "emit",
    "register_event_listener",
    "reset_listeners",
    "unregister_event_listener",
]
