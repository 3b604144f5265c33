"""Action interceptors forwarding host framework actions to host shell sinks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Sequence

from . import telemetry
from .bridge_types import (
    DEFAULT_HANDLER_PRIORITY,
    ActionArgs,
    ActionName,
    ActionOutcome,
    BridgeSurface,
    Handled,
    NOT_HANDLED,
)
from .sinks import SinkCall, SinkName, SinkTable

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..host.action_chain import HandlerRegistration
    from ..host.protocols import ActionRegistry

_LOGGER = logging.getLogger(__name__)

# Returned by the unload interceptor so the host never shows its own leave-page prompt
SUPPRESS_UNLOAD_PROMPT = Handled(None)

_MISSING = object()


@dataclass(frozen=True, slots=True)
class InterceptorSpec:
    """Describes one interceptor: the action, the sink gating it and the surfaces using it."""

    action: ActionName
    sink: SinkName | None
    surfaces: tuple[BridgeSurface, ...]


INTERCEPTORS: tuple[InterceptorSpec, ...] = (
    InterceptorSpec(
        ActionName.OPEN_ARTIFACT_LINK,
        SinkName.OPEN_ARTIFACT_LINK,
        (BridgeSurface.BUILD_REPORT, BridgeSurface.WORK_ITEM_EDITOR),
    ),
    InterceptorSpec(
        ActionName.OPEN_WORK_ITEM,
        SinkName.OPEN_WORK_ITEM_LINK,
        (BridgeSurface.BUILD_REPORT, BridgeSurface.WORK_ITEM_EDITOR),
    ),
    InterceptorSpec(
        ActionName.WINDOW_OPEN,
        SinkName.OPEN_URL,
        (BridgeSurface.BUILD_REPORT, BridgeSurface.WORK_ITEM_EDITOR),
    ),
    InterceptorSpec(
        ActionName.DISCARD_NEW_WORK_ITEM,
        SinkName.DISCARD_NEW_DOCUMENT,
        (BridgeSurface.WORK_ITEM_EDITOR,),
    ),
    InterceptorSpec(
        ActionName.WINDOW_UNLOAD,
        None,
        (BridgeSurface.WORK_ITEM_EDITOR,),
    ),
)


def interceptors_for(surface: BridgeSurface | str) -> tuple[InterceptorSpec, ...]:
    resolved = BridgeSurface.coerce(surface)
    return tuple(interceptor for interceptor in INTERCEPTORS if resolved in interceptor.surfaces)


class ActionBridge:
    """Registers prioritized interceptors and maps sink results to chain outcomes.

    Interceptors gated by a sink are registered only when that sink is bound
    at registration time. Each invocation looks the sink up again, so a sink
    removed later makes the interceptor defer instead of failing.
    """

    def __init__(
        self,
        registry: "ActionRegistry",
        sinks: SinkTable,
        *,
        surface: BridgeSurface | str = BridgeSurface.WORK_ITEM_EDITOR,
        priority: int = DEFAULT_HANDLER_PRIORITY,
    ) -> None:
        self._registry = registry
        self._sinks = sinks
        self._surface = BridgeSurface.coerce(surface)
        self._priority = priority
        self._registrations: List["HandlerRegistration"] = []
        self._registered = False

    @property
    def surface(self) -> BridgeSurface:
        return self._surface

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def registrations(self) -> tuple["HandlerRegistration", ...]:
        return tuple(self._registrations)

    def registered_actions(self) -> list[str]:
        return [registration.action for registration in self._registrations]

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(self) -> Sequence["HandlerRegistration"]:
        if self._registered:
            return self.registrations
        for interceptor in interceptors_for(self._surface):
            if interceptor.sink is not None and not self._sinks.is_bound(interceptor.sink):
                _LOGGER.debug(
                    "Sink %s not bound; skipping %s interceptor",
                    interceptor.sink.value,
                    interceptor.action.value,
                )
                continue
            handler = self._handler_for(interceptor.action)
            registration = self._registry.register(interceptor.action.value, handler, priority=self._priority)
            self._registrations.append(registration)
        self._registered = True
        _LOGGER.info(
            "Action bridge registered %d interceptor(s) for %s: %s",
            len(self._registrations),
            self._surface.value,
            ", ".join(self.registered_actions()) or "none",
        )
        return self.registrations

    def unregister(self) -> None:
        while self._registrations:
            registration = self._registrations.pop()
            self._registry.unregister(registration)
        self._registered = False

    def _handler_for(self, action: ActionName) -> Callable[[ActionArgs], ActionOutcome]:
        handlers = {
            ActionName.OPEN_ARTIFACT_LINK: self.handle_open_artifact,
            ActionName.OPEN_WORK_ITEM: self.handle_open_work_item,
            ActionName.WINDOW_OPEN: self.handle_window_open,
            ActionName.DISCARD_NEW_WORK_ITEM: self.handle_discard_new_document,
            ActionName.WINDOW_UNLOAD: self.handle_unload,
        }
        return handlers[action]

    # ------------------------------------------------------------------
    # Interceptors
    # ------------------------------------------------------------------
    def handle_open_artifact(self, args: ActionArgs) -> ActionOutcome:
        try:
            uri = _artifact_uri(args)
        except Exception:
            _LOGGER.exception("Could not read artifact URI from %r", args)
            return self._report(ActionName.OPEN_ARTIFACT_LINK, NOT_HANDLED)
        if uri is None:
            _LOGGER.warning("open-artifact-link raised without an artifact")
            return self._report(ActionName.OPEN_ARTIFACT_LINK, NOT_HANDLED)
        call = self._sinks.call(SinkName.OPEN_ARTIFACT_LINK, uri)
        return self._report(ActionName.OPEN_ARTIFACT_LINK, _chain_outcome(call), call)

    def handle_open_work_item(self, args: ActionArgs) -> ActionOutcome:
        work_item_id = _payload(args, "id")
        if work_item_id is _MISSING:
            _LOGGER.warning("open-work-item raised without an id")
            return self._report(ActionName.OPEN_WORK_ITEM, NOT_HANDLED)
        call = self._sinks.call(SinkName.OPEN_WORK_ITEM_LINK, work_item_id)
        # Notify and consume: any delivered call stops the chain
        outcome: ActionOutcome = Handled(None) if call.delivered else NOT_HANDLED
        return self._report(ActionName.OPEN_WORK_ITEM, outcome, call)

    def handle_window_open(self, args: ActionArgs) -> ActionOutcome:
        url = _payload(args, "url")
        if url is _MISSING or url is None:
            _LOGGER.warning("window-open raised without a url")
            return self._report(ActionName.WINDOW_OPEN, NOT_HANDLED)
        call = self._sinks.call(SinkName.OPEN_URL, url)
        return self._report(ActionName.WINDOW_OPEN, _chain_outcome(call), call)

    def handle_discard_new_document(self, args: ActionArgs) -> ActionOutcome:
        del args
        call = self._sinks.call(SinkName.DISCARD_NEW_DOCUMENT)
        return self._report(ActionName.DISCARD_NEW_WORK_ITEM, NOT_HANDLED, call)

    def handle_unload(self, args: ActionArgs) -> ActionOutcome:
        del args
        return self._report(ActionName.WINDOW_UNLOAD, SUPPRESS_UNLOAD_PROMPT)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _report(action: ActionName, outcome: ActionOutcome, call: SinkCall | None = None) -> ActionOutcome:
        handled = isinstance(outcome, Handled)
        telemetry.emit(
            telemetry.ACTION_DISPATCHED,
            {
                "action": action.value,
                "outcome": "handled" if handled else "not_handled",
                "sink_status": call.status.value if call is not None else None,
            },
        )
        _LOGGER.debug("Action %s -> %s", action.value, "handled" if handled else "not handled")
        return outcome


def _chain_outcome(call: SinkCall) -> ActionOutcome:
    """Only an explicit ``False`` from the sink lets the chain continue."""

    if not call.delivered:
        return NOT_HANDLED
    if call.value is False:
        return NOT_HANDLED
    return Handled(call.value)


def _payload(args: ActionArgs | None, key: str) -> Any:
    if not args:
        return _MISSING
    return args.get(key, _MISSING)


def _artifact_uri(args: ActionArgs | None) -> str | None:
    artifact = _payload(args, "artifact")
    if artifact is _MISSING or artifact is None:
        uri = _payload(args, "uri")
        return None if uri is _MISSING else uri
    if isinstance(artifact, str):
        return artifact
    uri = getattr(artifact, "uri", None)
    if uri is None:
        getter = getattr(artifact, "get_uri", None)
        if callable(getter):
            uri = getter()
    return uri


__all__ = [
    "ActionBridge",
    "INTERCEPTORS",
    "InterceptorSpec",
    "SUPPRESS_UNLOAD_PROMPT",
    "interceptors_for",
]
