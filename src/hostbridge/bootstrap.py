"""Bridge bootstrap module.

:func:`initialize` wires the three bridges to a host framework and returns a
:class:`BridgeRegistration` that keeps them alive for the hosting session.

The bootstrap process:
1. Resolves settings and the sink table
2. Registers the action interceptors for the configured surface
3. Subscribes the document event forwarders
4. Creates the command bridge

Usage:
    from hostbridge.bootstrap import initialize

    registration = initialize(host, {"OpenUrl": shell.open_url})
    registration.commands.save()
    ...
    registration.dispose()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from .services.action_bridge import ActionBridge
from .services.bridge_types import BridgeSurface, RegistrationDisposedError
from .services.commands import CommandBridge
from .services.document_events import DocumentEventBridge
from .services.settings import BridgeSettings
from .services.sinks import SinkTable
from .services.telemetry import InMemoryTelemetrySink

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .host.protocols import HostFacade

_LOGGER = logging.getLogger(__name__)


class BridgeRegistration:
    """Disposable handle owning every registration made by :func:`initialize`."""

    __slots__ = ("_actions", "_documents", "_commands", "_sinks", "_settings", "_telemetry", "_disposed")

    def __init__(
        self,
        *,
        actions: ActionBridge,
        documents: DocumentEventBridge,
        commands: CommandBridge,
        sinks: SinkTable,
        settings: BridgeSettings,
        telemetry: InMemoryTelemetrySink,
    ) -> None:
        self._actions = actions
        self._documents = documents
        self._commands = commands
        self._sinks = sinks
        self._settings = settings
        self._telemetry = telemetry
        self._disposed = False

    @property
    def actions(self) -> ActionBridge:
        return self._actions

    @property
    def documents(self) -> DocumentEventBridge:
        return self._documents

    @property
    def commands(self) -> CommandBridge:
        if self._disposed:
            raise RegistrationDisposedError("Bridge registration has been disposed")
        return self._commands

    @property
    def sinks(self) -> SinkTable:
        return self._sinks

    @property
    def settings(self) -> BridgeSettings:
        return self._settings

    @property
    def telemetry(self) -> InMemoryTelemetrySink:
        """Ring buffer of the bridge telemetry recorded during this session."""

        return self._telemetry

    @property
    def disposed(self) -> bool:
        return self._disposed

    def registered_actions(self) -> list[str]:
        return self._actions.registered_actions()

    def dispose(self) -> None:
        """Remove every interceptor and subscription; safe to call twice."""

        if self._disposed:
            return
        self._actions.unregister()
        self._documents.unsubscribe()
        self._telemetry.detach()
        self._disposed = True
        _LOGGER.info("Bridge registration disposed")

    def __enter__(self) -> "BridgeRegistration":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()


def initialize(
    host: "HostFacade",
    sinks: SinkTable | Mapping[str, Any] | object | None = None,
    *,
    settings: BridgeSettings | None = None,
    surface: BridgeSurface | str | None = None,
) -> BridgeRegistration:
    """Wire the bridge into *host* and return the registration handle.

    Args:
        host: Host framework facade exposing ``actions`` and ``documents``.
        sinks: A :class:`SinkTable`, a mapping of sink name to callback, or
               an object whose prefixed attributes (``settings.sink_prefix``)
               are resolved as sinks at call time.
        settings: Bridge settings; defaults are used when omitted.
        surface: Overrides ``settings.surface`` when provided.
    """

    resolved_settings = settings or BridgeSettings()
    resolved_surface = BridgeSurface.coerce(surface or resolved_settings.surface)
    table = _coerce_sinks(sinks, resolved_settings)

    _LOGGER.info("Initializing host bridge for %s", resolved_surface.value)

    action_bridge = ActionBridge(
        host.actions,
        table,
        surface=resolved_surface,
        priority=resolved_settings.handler_priority,
    )
    document_bridge = DocumentEventBridge(host.documents.events, table)
    try:
        action_bridge.register()
        document_bridge.subscribe()
    except Exception:
        _LOGGER.exception("Host rejected bridge registration; rolling back")
        action_bridge.unregister()
        document_bridge.unsubscribe()
        raise

    # Attached only once the host has accepted every registration
    telemetry_sink = InMemoryTelemetrySink(resolved_settings.telemetry_capacity)
    telemetry_sink.attach()

    command_bridge = CommandBridge(
        host.documents,
        table,
        legacy_id_field=resolved_settings.legacy_id_field,
    )

    return BridgeRegistration(
        actions=action_bridge,
        documents=document_bridge,
        commands=command_bridge,
        sinks=table,
        settings=resolved_settings,
        telemetry=telemetry_sink,
    )


def _coerce_sinks(sinks: Any, settings: BridgeSettings) -> SinkTable:
    if isinstance(sinks, SinkTable):
        return sinks
    if sinks is None:
        return SinkTable(strict=settings.strict_sinks)
    if isinstance(sinks, Mapping):
        return SinkTable(sinks, strict=settings.strict_sinks)
    return SinkTable.from_object(sinks, prefix=settings.sink_prefix, strict=settings.strict_sinks)


__all__ = ["BridgeRegistration", "initialize"]
