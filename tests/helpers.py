"""Shared test helpers and stub classes.

These stubs stand in for the host framework (document, document service,
facade) and the host shell (recording sinks). Import from here instead of
duplicating them in individual test files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from hostbridge.events import EventBus
from hostbridge.host.action_chain import ActionChain


class RecordingSink:
    """Callable sink that records every call and returns a configurable value."""

    def __init__(self, return_value: Any = None, *, raises: Exception | None = None) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.return_value = return_value
        self.raises = raises

    def __call__(self, *args: Any) -> Any:
        self.calls.append(args)
        if self.raises is not None:
            raise self.raises
        return self.return_value

    @property
    def call_count(self) -> int:
        return len(self.calls)


class StubDocument:
    """Document exposing the public accessors; save completes when told to."""

    def __init__(self, moniker: str = "doc-42", document_id: Any = 42, *, dirty: bool = False) -> None:
        self.moniker = moniker
        self.document_id = document_id
        self.is_dirty = dirty
        self.save_requests: list[tuple[Callable[..., None], Callable[[Any], None]]] = []

    def save(self, on_success: Callable[..., None], on_failure: Callable[[Any], None]) -> None:
        self.save_requests.append((on_success, on_failure))

    def complete_save(self) -> None:
        on_success, _ = self.save_requests[-1]
        on_success()

    def fail_save(self, error: Any) -> None:
        _, on_failure = self.save_requests[-1]
        on_failure(error)


class LegacyDocument:
    """Document that only carries its identifier on an internal field."""

    def __init__(self, moniker: str = "wi-7", internal_id: Any = 7) -> None:
        self.moniker = moniker
        self._id = internal_id
        self.is_dirty = False

    def save(self, on_success: Callable[..., None], on_failure: Callable[[Any], None]) -> None:
        on_success()


@dataclass
class StubDocumentService:
    events: EventBus = field(default_factory=EventBus)
    document: Any = None

    def active_document(self) -> Any:
        return self.document


@dataclass
class StubHost:
    actions: ActionChain = field(default_factory=ActionChain)
    documents: StubDocumentService = field(default_factory=StubDocumentService)


class SaveError:
    """Structured failure value the way a host reports save errors."""

    def __init__(self, message: str) -> None:
        self.message = message
