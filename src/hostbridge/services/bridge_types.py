"""Type definitions shared by the action, document and command bridges."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Final, Mapping, Union

DEFAULT_HANDLER_PRIORITY: Final[int] = 50


class ActionName(str, Enum):
    """Host framework actions the bridge intercepts."""

    OPEN_ARTIFACT_LINK = "open-artifact-link"
    OPEN_WORK_ITEM = "open-work-item"
    WINDOW_OPEN = "window-open"
    DISCARD_NEW_WORK_ITEM = "discard-new-work-item"
    WINDOW_UNLOAD = "window-unload"


class BridgeSurface(str, Enum):
    """Hosted views the bridge can be initialized for."""

    BUILD_REPORT = "build_report"
    WORK_ITEM_EDITOR = "work_item_editor"

    @classmethod
    def coerce(cls, value: "BridgeSurface | str") -> "BridgeSurface":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        return cls(normalized)


@dataclass(frozen=True, slots=True)
class Handled:
    """Outcome that consumes the action and stops the chain."""

    result: Any = None


@dataclass(frozen=True, slots=True)
class NotHandled:
    """Outcome that defers the action to the next handler."""


NOT_HANDLED: Final[NotHandled] = NotHandled()

ActionOutcome = Union[Handled, NotHandled]
ActionArgs = Mapping[str, Any]
ActionHandler = Callable[[ActionArgs], ActionOutcome]


@dataclass(frozen=True, slots=True)
class SaveSucceeded:
    """Save completed; carries the moniker of the saved document."""

    moniker: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class SaveFailed:
    """Save failed; carries the host's failure message verbatim."""

    message: str

    @property
    def ok(self) -> bool:
        return False


SaveResult = Union[SaveSucceeded, SaveFailed]


class BridgeError(RuntimeError):
    """Base class for errors raised by the bridge to its own callers."""


class UnknownSinkError(BridgeError):
    """Raised when a strict sink table is asked to bind an unknown name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown sink name: {name!r}")
        self.name = name


class DocumentIdentityError(BridgeError):
    """Raised when the active document exposes no usable identifier."""


class RegistrationDisposedError(BridgeError):
    """Raised when a disposed bridge registration is used."""


__all__ = [
    "DEFAULT_HANDLER_PRIORITY",
    "ActionArgs",
    "ActionHandler",
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
    "UnknownSinkError",
]
