"""Capability table mapping host shell sink names to optional callbacks.

The host shell binds the callbacks it supports; the bridges look them up by
name every time they need one, so a sink may be bound, replaced or removed
at any point of the session without re-initializing anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Mapping

from . import telemetry
from .bridge_types import UnknownSinkError

LOGGER = logging.getLogger(__name__)

SinkCallback = Callable[..., Any]


class SinkName(str, Enum):
    """Outbound callbacks the host shell may bind."""

    OPEN_ARTIFACT_LINK = "OpenArtifactLink"
    OPEN_WORK_ITEM_LINK = "OpenWorkItemLink"
    OPEN_URL = "OpenUrl"
    DISCARD_NEW_DOCUMENT = "DiscardNewDocument"
    DOCUMENT_DIRTY_CHANGED = "DocumentDirtyChanged"
    DOCUMENT_SAVED = "DocumentSaved"
    DOCUMENT_SAVE_FAILED = "DocumentSaveFailed"
    DOCUMENT_DELETED = "DocumentDeleted"
    DOCUMENT_EXTERNALLY_STOPPED = "DocumentExternallyStopped"
    DOCUMENT_PROPERTY_CHANGED = "DocumentPropertyChanged"


_KNOWN_NAMES = frozenset(member.value for member in SinkName)


class SinkStatus(Enum):
    ABSENT = "absent"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SinkCall:
    """Result of a best-effort sink invocation."""

    sink: str
    status: SinkStatus
    value: Any = None
    error: Exception | None = None

    @property
    def delivered(self) -> bool:
        return self.status is SinkStatus.DELIVERED


class SinkTable:
    """Explicit table of sink callbacks, optionally backed by a source object.

    Lookups consult the explicitly bound entries first. An entry bound to
    ``None`` marks the sink as absent even when the source provides it.
    Otherwise the source object is searched for ``prefix + name`` (attribute
    access, or item access for mappings) at lookup time.
    """

    def __init__(
        self,
        sinks: Mapping[str, SinkCallback | None] | None = None,
        *,
        source: object | None = None,
        prefix: str = "",
        strict: bool = False,
    ) -> None:
        self._entries: Dict[str, SinkCallback | None] = {}
        self._source = source
        self._prefix = prefix
        self._strict = strict
        for name, callback in (sinks or {}).items():
            self.bind(name, callback)

    @classmethod
    def from_object(cls, source: object, *, prefix: str = "Host_", strict: bool = False) -> "SinkTable":
        """Create a table resolving sinks lazily from *source* attributes."""

        return cls(source=source, prefix=prefix, strict=strict)

    @property
    def source(self) -> object | None:
        return self._source

    @property
    def prefix(self) -> str:
        return self._prefix

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------
    def bind(self, name: SinkName | str, callback: SinkCallback | None) -> None:
        key = self._key(name)
        if self._strict and key not in _KNOWN_NAMES:
            raise UnknownSinkError(key)
        if callback is not None and not callable(callback):
            raise TypeError(f"Sink {key!r} must be callable, got {type(callback).__name__}")
        self._entries[key] = callback
        LOGGER.debug("Sink %s %s", key, "bound" if callback is not None else "marked absent")

    def unbind(self, name: SinkName | str) -> None:
        key = self._key(name)
        if self._entries.pop(key, None) is not None:
            LOGGER.debug("Sink %s unbound", key)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def lookup(self, name: SinkName | str) -> SinkCallback | None:
        key = self._key(name)
        if key in self._entries:
            return self._entries[key]
        if self._source is None:
            return None
        candidate = self._resolve_from_source(self._prefix + key)
        if candidate is None:
            return None
        if not callable(candidate):
            LOGGER.debug("Ignoring non-callable sink %s%s on source", self._prefix, key)
            return None
        return candidate

    def is_bound(self, name: SinkName | str) -> bool:
        return self.lookup(name) is not None

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return self.is_bound(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.bound_names())

    def bound_names(self) -> list[str]:
        """Return the known sink names currently resolvable, in declaration order."""

        names = [member.value for member in SinkName if self.is_bound(member)]
        extras = sorted(
            key for key, value in self._entries.items() if value is not None and key not in _KNOWN_NAMES
        )
        return names + extras

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------
    def call(self, name: SinkName | str, *args: Any) -> SinkCall:
        """Invoke the sink if present; never raises on sink failure."""

        key = self._key(name)
        try:
            callback = self.lookup(key)
        except Exception as exc:
            return self._failed(key, exc, stage="lookup")
        if callback is None:
            LOGGER.debug("Sink %s not bound; skipping", key)
            return SinkCall(sink=key, status=SinkStatus.ABSENT)
        try:
            value = callback(*args)
        except Exception as exc:
            return self._failed(key, exc, stage="invoke")
        return SinkCall(sink=key, status=SinkStatus.DELIVERED, value=value)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _key(name: SinkName | str) -> str:
        if isinstance(name, SinkName):
            return name.value
        return str(name)

    def _resolve_from_source(self, attribute: str) -> Any:
        source = self._source
        if isinstance(source, Mapping):
            return source.get(attribute)
        return getattr(source, attribute, None)

    @staticmethod
    def _failed(key: str, exc: Exception, *, stage: str) -> SinkCall:
        LOGGER.exception("Sink %s failed during %s", key, stage)
        telemetry.emit(
            telemetry.SINK_FAILED,
            {"sink": key, "stage": stage, "error": f"{type(exc).__name__}: {exc}"},
        )
        return SinkCall(sink=key, status=SinkStatus.FAILED, error=exc)


__all__ = ["SinkCall", "SinkCallback", "SinkName", "SinkStatus", "SinkTable"]
