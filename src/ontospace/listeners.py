"""
Scope listeners.

Listeners are notified synchronously after a structural change to a scope has
been applied and the scope's invariants hold again.
"""

import logging
from abc import ABC, abstractmethod

from .domain import ScopeEvent, ScopeEventType

logger = logging.getLogger(__name__)


class ScopeListener(ABC):
    """Receives structural change notifications from ontology scopes."""

    @abstractmethod
    def on_scope_event(self, scope, event: ScopeEvent) -> None:
        """
        Handle a change that has already been applied.

        Args:
            scope: The scope that changed
            event: Description of the change
        """
        pass


class SpaceSynchronizer(ScopeListener):
    """Re-synchronizes a scope's spaces whenever its space set changes."""

    TRIGGERS = frozenset({
        ScopeEventType.CUSTOM_SPACE_SET,
        ScopeEventType.SESSION_SPACE_ADDED,
        ScopeEventType.SESSION_SPACE_REMOVED,
    })

    def on_scope_event(self, scope, event: ScopeEvent) -> None:
        if event.event_type in self.TRIGGERS:
            logger.debug(f"Synchronizing scope {event.scope_id} after {event.event_type.value}")
            scope.synchronize_spaces()
