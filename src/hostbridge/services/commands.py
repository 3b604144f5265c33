"""Inbound commands the host shell runs against the active document."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Mapping

from . import telemetry
from .bridge_types import DocumentIdentityError, SaveFailed, SaveResult, SaveSucceeded
from .sinks import SinkName, SinkTable

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..host.protocols import HostDocument, HostDocumentService

_LOGGER = logging.getLogger(__name__)

NO_ACTIVE_DOCUMENT = "No active document"
_DEFAULT_FAILURE_MESSAGE = "Save failed"
_MISSING = object()


class CommandBridge:
    """Save / query commands forwarded to the host document service.

    Nothing is cached: every command asks the document service for the
    active document and reads its state at call time.
    """

    def __init__(
        self,
        documents: "HostDocumentService",
        sinks: SinkTable,
        *,
        legacy_id_field: str | None = "_id",
    ) -> None:
        self._documents = documents
        self._sinks = sinks
        self._legacy_id_field = legacy_id_field
        self._legacy_id_warned = False

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------
    def save(self) -> "Future[SaveResult]":
        """Start saving the active document.

        Returns immediately. The returned future resolves once, with
        :class:`SaveSucceeded` or :class:`SaveFailed`, when the host reports
        completion; the matching sink is notified at the same moment.
        """

        future: "Future[SaveResult]" = Future()
        future.set_running_or_notify_cancel()
        document = self._documents.active_document()
        attempt = _SaveAttempt(self._sinks, document, future)
        if document is None:
            _LOGGER.warning("Save requested without an active document")
            attempt.fail(NO_ACTIVE_DOCUMENT)
            return future
        try:
            document.save(attempt.succeed, attempt.fail)
        except Exception as exc:
            _LOGGER.exception("Document save raised before completion")
            attempt.fail(exc)
        return future

    async def save_async(self) -> SaveResult:
        """Await the result of :meth:`save` on the running event loop."""

        return await asyncio.wrap_future(self.save())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def query_is_modified(self) -> bool:
        document = self._documents.active_document()
        if document is None:
            return False
        return bool(document.is_dirty)

    def query_document_id(self) -> Any:
        """Return the active document's identifier, or ``None`` without a document.

        The public ``document_id`` accessor is preferred. Hosts that only
        carry the identifier on an internal field are still supported through
        ``legacy_id_field``; when neither exists the call fails loudly.
        """

        document = self._documents.active_document()
        if document is None:
            return None
        identifier = getattr(document, "document_id", _MISSING)
        if identifier is not _MISSING:
            return identifier
        field_name = self._legacy_id_field
        if field_name:
            identifier = getattr(document, field_name, _MISSING)
            if identifier is not _MISSING:
                if not self._legacy_id_warned:
                    _LOGGER.warning(
                        "Document %s has no document_id accessor; reading internal field %r",
                        type(document).__name__,
                        field_name,
                    )
                    self._legacy_id_warned = True
                return identifier
        raise DocumentIdentityError(
            f"{type(document).__name__} exposes neither 'document_id' nor {field_name!r}"
        )


class _SaveAttempt:
    """Settles one save attempt at most once."""

    __slots__ = ("_sinks", "_document", "_future", "_settled")

    def __init__(self, sinks: SinkTable, document: "HostDocument | None", future: "Future[SaveResult]") -> None:
        self._sinks = sinks
        self._document = document
        self._future = future
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def succeed(self, *args: Any) -> None:
        del args
        if not self._claim("success"):
            return
        try:
            moniker = self._document.moniker  # type: ignore[union-attr]
        except Exception as exc:
            _LOGGER.exception("Saved document has no readable moniker")
            self._finish(SaveFailed(_failure_message(exc)))
            return
        self._finish(SaveSucceeded(moniker))

    def fail(self, error: Any = None) -> None:
        if not self._claim("failure"):
            return
        self._finish(SaveFailed(_failure_message(error)))

    def _claim(self, kind: str) -> bool:
        if self._settled:
            _LOGGER.warning("Ignoring %s callback for an already completed save", kind)
            return False
        self._settled = True
        return True

    def _finish(self, result: SaveResult) -> None:
        if isinstance(result, SaveSucceeded):
            self._sinks.call(SinkName.DOCUMENT_SAVED, result.moniker)
            _LOGGER.info("Document %s saved", result.moniker)
        else:
            self._sinks.call(SinkName.DOCUMENT_SAVE_FAILED, result.message)
            _LOGGER.warning("Document save failed: %s", result.message)
        telemetry.emit(telemetry.SAVE_COMPLETED, {"status": "ok" if result.ok else "error"})
        self._future.set_result(result)


def _failure_message(error: Any) -> str:
    if error is None:
        return _DEFAULT_FAILURE_MESSAGE
    if isinstance(error, str):
        return error
    if isinstance(error, Mapping):
        message = error.get("message")
        if message:
            return str(message)
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    text = str(error)
    return text or type(error).__name__


__all__ = ["CommandBridge", "NO_ACTIVE_DOCUMENT"]
