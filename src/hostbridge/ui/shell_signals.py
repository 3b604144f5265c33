"""PySide6 adapters exposing the bridge to a Qt host shell.

:class:`ShellSignals` turns fire-and-forget sinks into Qt signals so a Qt
shell can connect slots instead of binding plain callables.
:class:`CommandEndpoint` exposes the inbound commands as Qt slots, which
makes it suitable for registration on a ``QWebChannel``.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any

from PySide6.QtCore import QObject, Signal, Slot

from ..services.bridge_types import SaveFailed, SaveResult, SaveSucceeded
from ..services.commands import CommandBridge
from ..services.sinks import SinkName, SinkTable

_LOGGER = logging.getLogger(__name__)


class ShellSignals(QObject):
    """Qt signals mirroring the notification sinks of the host shell.

    ``OpenArtifactLink`` and ``OpenUrl`` are not covered: their return value
    decides whether the action chain continues, and signals carry none.
    """

    workItemLinkOpened = Signal(object)
    newDocumentDiscarded = Signal()
    documentDirtyChanged = Signal(str)
    documentSaved = Signal(str)
    documentSaveFailed = Signal(str)
    documentDeleted = Signal(str)
    documentExternallyStopped = Signal(str)
    documentPropertyChanged = Signal(str, str, object)

    def sink_callbacks(self) -> dict[str, Any]:
        return {
            SinkName.OPEN_WORK_ITEM_LINK.value: self.workItemLinkOpened.emit,
            SinkName.DISCARD_NEW_DOCUMENT.value: self.newDocumentDiscarded.emit,
            SinkName.DOCUMENT_DIRTY_CHANGED.value: self.documentDirtyChanged.emit,
            SinkName.DOCUMENT_SAVED.value: self.documentSaved.emit,
            SinkName.DOCUMENT_SAVE_FAILED.value: self.documentSaveFailed.emit,
            SinkName.DOCUMENT_DELETED.value: self.documentDeleted.emit,
            SinkName.DOCUMENT_EXTERNALLY_STOPPED.value: self.documentExternallyStopped.emit,
            SinkName.DOCUMENT_PROPERTY_CHANGED.value: self._emit_property_changed,
        }

    def bind_to(self, table: SinkTable) -> SinkTable:
        """Bind every signal-backed sink into *table* and return it."""

        for name, callback in self.sink_callbacks().items():
            table.bind(name, callback)
        _LOGGER.debug("Bound %d Qt signal sinks", len(self.sink_callbacks()))
        return table

    def _emit_property_changed(self, moniker: str, property_name: str, value: Any) -> None:
        self.documentPropertyChanged.emit(moniker, property_name, value)


class CommandEndpoint(QObject):
    """Qt slot surface over :class:`CommandBridge`."""

    saveCompleted = Signal(bool, str)

    def __init__(self, commands: CommandBridge, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._commands = commands

    @Slot()
    def save(self) -> None:
        future = self._commands.save()
        future.add_done_callback(self._on_save_done)

    @Slot(result=bool)
    def queryIsModified(self) -> bool:  # noqa: N802 - Qt naming
        return self._commands.query_is_modified()

    @Slot(result=object)
    def queryDocumentId(self) -> Any:  # noqa: N802 - Qt naming
        return self._commands.query_document_id()

    def _on_save_done(self, future: "Future[SaveResult]") -> None:
        result = future.result()
        if isinstance(result, SaveSucceeded):
            self.saveCompleted.emit(True, result.moniker)
        elif isinstance(result, SaveFailed):
            self.saveCompleted.emit(False, result.message)


__all__ = ["CommandEndpoint", "ShellSignals"]
