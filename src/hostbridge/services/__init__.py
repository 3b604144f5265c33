"""Service layer helpers (bridges, sinks, settings, telemetry)."""

from .bridge_types import (
    DEFAULT_HANDLER_PRIORITY,
    ActionName,
    ActionOutcome,
    BridgeError,
    BridgeSurface,
    DocumentIdentityError,
    Handled,
    NOT_HANDLED,
    NotHandled,
    RegistrationDisposedError,
    SaveFailed,
    SaveResult,
    SaveSucceeded,
    UnknownSinkError,
)
from .sinks import SinkCall, SinkName, SinkStatus, SinkTable

__all__ = [
    "DEFAULT_HANDLER_PRIORITY",
    "ActionName",
    "ActionOutcome",
    "BridgeError",
    "BridgeSurface",
    "DocumentIdentityError",
    "Handled",
    "NOT_HANDLED",
    "NotHandled",
    "RegistrationDisposedError",
    "SaveFailed",
    "SaveResult",
    "SaveSucceeded",
    "SinkCall",
    "SinkName",
    "SinkStatus",
    "SinkTable",
    "UnknownSinkError",
]
