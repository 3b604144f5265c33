"""Host framework contracts and the action chain dispatcher."""

from .action_chain import ActionChain, HandlerRegistration
from .protocols import (
    ActionRegistry,
    ArtifactReference,
    HostDocument,
    HostDocumentService,
    HostFacade,
)

__all__ = [
    "ActionChain",
    "ActionRegistry",
    "ArtifactReference",
    "HandlerRegistration",
    "HostDocument",
    "HostDocumentService",
    "HostFacade",
]
