"""Contracts of the host framework consumed by the bridge.

The host framework owns the action registry, the document service and the
documents themselves. The bridge only depends on the structural interfaces
below, so any host (or a test stub) satisfying them can be bridged.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from ..events import EventBus
from ..services.bridge_types import ActionHandler
from .action_chain import HandlerRegistration


@runtime_checkable
class ArtifactReference(Protocol):
    """Artifact handed to the open-artifact action; only its URI is read."""

    @property
    def uri(self) -> str:
        ...


class ActionRegistry(Protocol):
    """Registry of prioritized action handlers."""

    def register(self, action: str, handler: ActionHandler, *, priority: int) -> HandlerRegistration:
        ...

    def unregister(self, registration: HandlerRegistration) -> bool:
        ...


class HostDocument(Protocol):
    """The active document of the hosted surface."""

    @property
    def moniker(self) -> str:
        ...

    @property
    def document_id(self) -> Any:
        ...

    @property
    def is_dirty(self) -> bool:
        ...

    def save(self, on_success: Callable[..., None], on_failure: Callable[[Any], None]) -> None:
        """Start saving; exactly one of the callbacks is expected to fire later."""
        ...


class HostDocumentService(Protocol):
    """Document service publishing lifecycle events for the active document."""

    @property
    def events(self) -> EventBus:
        ...

    def active_document(self) -> HostDocument | None:
        ...


class HostFacade(Protocol):
    """Everything the bridge needs from the host framework."""

    @property
    def actions(self) -> ActionRegistry:
        ...

    @property
    def documents(self) -> HostDocumentService:
        ...


__all__ = [
    "ActionRegistry",
    "ArtifactReference",
    "HostDocument",
    "HostDocumentService",
    "HostFacade",
]
