"""Ordered chain-of-responsibility dispatcher for host actions."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from ..services.bridge_types import (
    DEFAULT_HANDLER_PRIORITY,
    ActionArgs,
    ActionHandler,
    ActionOutcome,
    Handled,
    NOT_HANDLED,
    NotHandled,
)

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HandlerRegistration:
    """A handler registered for one action at one priority."""

    action: str
    priority: int
    handler: ActionHandler = field(compare=False)
    sequence: int = 0

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.priority, self.sequence)


class ActionChain:
    """Registry that tries handlers in priority order until one handles the action.

    Lower priority values run first; equal priorities run in registration
    order. A handler that raises, or returns anything other than
    :class:`Handled`, is treated as not handling the action.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[HandlerRegistration]] = {}
        self._sequence = itertools.count()

    def register(
        self,
        action: str,
        handler: ActionHandler,
        *,
        priority: int = DEFAULT_HANDLER_PRIORITY,
    ) -> HandlerRegistration:
        key = _action_key(action)
        registration = HandlerRegistration(
            action=key,
            priority=int(priority),
            handler=handler,
            sequence=next(self._sequence),
        )
        chain = self._handlers.setdefault(key, [])
        chain.append(registration)
        chain.sort(key=lambda item: item.sort_key)
        _LOGGER.debug("Registered handler for %s at priority %s", key, priority)
        return registration

    def unregister(self, registration: HandlerRegistration) -> bool:
        chain = self._handlers.get(registration.action)
        if not chain:
            return False
        for index, candidate in enumerate(chain):
            if candidate is registration:
                chain.pop(index)
                if not chain:
                    self._handlers.pop(registration.action, None)
                _LOGGER.debug("Unregistered handler for %s", registration.action)
                return True
        return False

    def handlers_for(self, action: str) -> tuple[HandlerRegistration, ...]:
        return tuple(self._handlers.get(_action_key(action), ()))

    def has_handlers(self, action: str) -> bool:
        return bool(self._handlers.get(_action_key(action)))

    def dispatch(self, action: str, args: ActionArgs | None = None) -> ActionOutcome:
        """Run the chain for *action* and return the first :class:`Handled` outcome."""

        key = _action_key(action)
        payload: Mapping[str, Any] = args if args is not None else {}
        for registration in list(self._handlers.get(key, ())):
            try:
                outcome = registration.handler(payload)
            except Exception:
                _LOGGER.exception("Handler for %s raised; continuing chain", key)
                continue
            if isinstance(outcome, Handled):
                return outcome
            if not isinstance(outcome, NotHandled):
                _LOGGER.debug("Handler for %s returned %r; treating as not handled", key, outcome)
        return NOT_HANDLED


def _action_key(action: Any) -> str:
    value = getattr(action, "value", action)
    return str(value)


__all__ = ["ActionChain", "HandlerRegistration"]
