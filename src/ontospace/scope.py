"""
Ontology scopes: a facade over one core, at most one custom and any number
of session spaces.

A scope owns its spaces and guards the space set, its lifecycle state and its
administrative lock with a single mutex. Listeners are notified after the mutex
has been released, with a snapshot of the listener list taken at publish time.
Every listener in the snapshot receives the event; a listener failure is
logged and never undoes or hides the committed change.
"""

import logging
import threading
from typing import Dict, List, Optional, Set, Union

from rdflib import URIRef

from .domain import ScopeEvent, ScopeEventType, ScopeState, ScopeStatus
from .errors import (
    DuplicateSessionIdError,
    MissingCoreSpaceError,
    UnmodifiableSpaceError,
)
from .factory import OntologySpaceFactory
from .identifiers import SessionIdGenerator
from .listeners import ScopeListener
from .source import OntologyInputSource
from .space import CoreOntologySpace, CustomOntologySpace, OntologySpace, SessionOntologySpace

logger = logging.getLogger(__name__)


class OntologyScope:
    """A named, layered composition of ontology spaces."""

    def __init__(self,
                 scope_id: Union[str, URIRef],
                 core_source: OntologyInputSource,
                 factory: OntologySpaceFactory,
                 custom_source: Optional[OntologyInputSource] = None):
        """Create the scope together with its core (and optional custom) space.

        The scope starts uninitialized; call set_up() to activate it.

        Args:
            scope_id: Unique identifier of the scope
            core_source: Input source for the core space
            factory: Factory used for all spaces of this scope
            custom_source: Optional input source for a custom space

        Raises:
            InvalidSourceError: If core_source is missing or invalid
        """
        if factory is None:
            raise ValueError("An ontology space factory is required")
        self._id = URIRef(str(scope_id))
        self._factory = factory
        self._mutex = threading.RLock()
        self._listeners: List[ScopeListener] = []
        self._state = ScopeState.UNINITIALIZED
        self._locked = False

        self._core_space: Optional[CoreOntologySpace] = factory.create_core_space(self._id, core_source)
        self._custom_space: Optional[CustomOntologySpace] = None
        if custom_source is not None:
            self._custom_space = factory.create_custom_space(self._id, custom_source)
        self._session_spaces: Dict[URIRef, SessionOntologySpace] = {}

    @property
    def id(self) -> URIRef:
        return self._id

    @property
    def state(self) -> ScopeState:
        with self._mutex:
            return self._state

    def is_active(self) -> bool:
        return self.state == ScopeState.ACTIVE

    def get_core_space(self) -> Optional[CoreOntologySpace]:
        with self._mutex:
            return self._core_space

    def get_custom_space(self) -> Optional[CustomOntologySpace]:
        with self._mutex:
            return self._custom_space

    # Lifecycle

    def set_up(self) -> None:
        """Activate the scope: lock the core space and attach the custom space to it.

        Session spaces are left as they are. Setting up an active scope only
        re-asserts the core lock and the custom import.

        Raises:
            MissingCoreSpaceError: If the scope has no core space
        """
        with self._mutex:
            if self._core_space is None:
                raise MissingCoreSpaceError(self._id)
            self._core_space.lock()
            if self._custom_space is not None:
                self._custom_space.attach_to(self._core_space)
            activated = self._state != ScopeState.ACTIVE
            self._state = ScopeState.ACTIVE

        if activated:
            logger.info(f"Scope {self._id} set up")
            self._publish(ScopeEventType.SCOPE_ACTIVATED)

    def tear_down(self) -> None:
        """Deactivate the scope, keeping every space for a later set_up()."""
        with self._mutex:
            if self._state != ScopeState.ACTIVE:
                return
            self._core_space.unlock()
            self._state = ScopeState.INACTIVE

        logger.info(f"Scope {self._id} torn down")
        self._publish(ScopeEventType.SCOPE_DEACTIVATED)

    # Administrative lock

    def lock(self) -> None:
        """Freeze the space set against structural changes."""
        with self._mutex:
            self._locked = True

    def unlock(self) -> None:
        with self._mutex:
            self._locked = False

    def is_locked(self) -> bool:
        with self._mutex:
            return self._locked

    # Custom space

    def set_custom_space(self, space: CustomOntologySpace) -> None:
        """Replace the custom space. The previous one is neither merged nor destroyed.

        Raises:
            UnmodifiableSpaceError: If the scope or the supplied space is locked
            ValueError: If space is not a custom space of this scope
        """
        if not isinstance(space, CustomOntologySpace):
            raise ValueError(f"Expected a custom ontology space, got {type(space).__name__}")
        if space.scope_id != self._id:
            raise ValueError(f"Space {space.space_id} belongs to scope {space.scope_id}, not {self._id}")

        with self._mutex:
            if self._locked:
                raise UnmodifiableSpaceError(self._id)
            if space.is_locked():
                raise UnmodifiableSpaceError(space.space_id)
            self._custom_space = space

        logger.debug(f"Scope {self._id} custom space set to {space.space_id}")
        self._publish(ScopeEventType.CUSTOM_SPACE_SET, space_id=space.space_id)

    # Session spaces

    def add_session_space(self, space: SessionOntologySpace,
                          session_id: Union[str, URIRef],
                          replace: bool = False) -> None:
        """Register a session space under a session identifier.

        Args:
            space: Session space created for this scope
            session_id: Identifier of the session
            replace: Overwrite an existing space registered under the same identifier

        Raises:
            UnmodifiableSpaceError: If the scope is locked
            DuplicateSessionIdError: If session_id is taken and replace is False
            ValueError: If space is not a session space of this scope, or is bound to another session
        """
        if not isinstance(space, SessionOntologySpace):
            raise ValueError(f"Expected a session ontology space, got {type(space).__name__}")
        if space.scope_id != self._id:
            raise ValueError(f"Space {space.space_id} belongs to scope {space.scope_id}, not {self._id}")
        session_id = URIRef(str(session_id))

        with self._mutex:
            if self._locked:
                raise UnmodifiableSpaceError(self._id)
            if session_id in self._session_spaces and not replace:
                raise DuplicateSessionIdError(self._id, session_id)
            space.bind_session(session_id)
            previous = self._session_spaces.get(session_id)
            if previous is not None and previous is not space:
                previous.attach_to(None)
            self._session_spaces[session_id] = space

        logger.debug(f"Scope {self._id} added session space {space.space_id}")
        self._publish(ScopeEventType.SESSION_SPACE_ADDED, space_id=space.space_id, session_id=session_id)

    def create_session_space(self, generator: SessionIdGenerator) -> SessionOntologySpace:
        """Create and register a session space under a freshly generated identifier.

        The identifier is generated while holding the scope mutex, so concurrent
        callers never receive the same one.

        Raises:
            UnmodifiableSpaceError: If the scope is locked
        """
        with self._mutex:
            if self._locked:
                raise UnmodifiableSpaceError(self._id)
            session_id = generator.create_session_id(set(self._session_spaces))
            space = self._factory.create_session_space(self._id, session_id)
            self._session_spaces[session_id] = space

        logger.debug(f"Scope {self._id} created session space {space.space_id}")
        self._publish(ScopeEventType.SESSION_SPACE_ADDED, space_id=space.space_id, session_id=session_id)
        return space

    def remove_session_space(self, session_id: Union[str, URIRef]) -> Optional[SessionOntologySpace]:
        """Unregister a session space.

        Returns:
            The removed space, or None if no space was registered for session_id

        Raises:
            UnmodifiableSpaceError: If the scope is locked
        """
        session_id = URIRef(str(session_id))
        with self._mutex:
            if self._locked:
                raise UnmodifiableSpaceError(self._id)
            space = self._session_spaces.pop(session_id, None)
            if space is None:
                return None
            space.attach_to(None)

        logger.debug(f"Scope {self._id} removed session space {space.space_id}")
        self._publish(ScopeEventType.SESSION_SPACE_REMOVED, space_id=space.space_id, session_id=session_id)
        return space

    def get_session_space(self, session_id: Union[str, URIRef]) -> Optional[SessionOntologySpace]:
        with self._mutex:
            return self._session_spaces.get(URIRef(str(session_id)))

    def get_session_spaces(self) -> List[SessionOntologySpace]:
        with self._mutex:
            return list(self._session_spaces.values())

    def get_session_ids(self) -> Set[URIRef]:
        with self._mutex:
            return set(self._session_spaces)

    # Synchronization

    def synchronize_spaces(self) -> None:
        """Re-establish the import of every space from the tier below it.

        Core imports nothing, custom imports core, and each session space
        imports custom if present, else core. Running it again without
        structural changes leaves the import structure untouched.

        Raises:
            MissingCoreSpaceError: If the scope has no core space
        """
        with self._mutex:
            if self._core_space is None:
                raise MissingCoreSpaceError(self._id)
            self._core_space.attach_to(None)

            session_parent: OntologySpace = self._core_space
            if self._custom_space is not None:
                self._custom_space.attach_to(self._core_space)
                session_parent = self._custom_space

            changed = 0
            for space in self._session_spaces.values():
                if space.attach_to(session_parent):
                    changed += 1

        logger.debug(f"Scope {self._id} synchronized, {changed} session space(s) re-attached")
        self._publish(ScopeEventType.SPACES_SYNCHRONIZED)

    # Listeners

    def add_listener(self, listener: ScopeListener) -> None:
        with self._mutex:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: ScopeListener) -> None:
        with self._mutex:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def clear_listeners(self) -> None:
        with self._mutex:
            self._listeners.clear()

    def get_listeners(self) -> List[ScopeListener]:
        with self._mutex:
            return list(self._listeners)

    def _publish(self, event_type: ScopeEventType,
                 space_id: Optional[URIRef] = None,
                 session_id: Optional[URIRef] = None) -> None:
        event = ScopeEvent(event_type=event_type, scope_id=self._id,
                           space_id=space_id, session_id=session_id)
        # The change is already committed at this point
        for listener in self.get_listeners():
            try:
                listener.on_scope_event(self, event)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on {event.event_type.value} for scope {self._id}")

    # Status

    def get_status(self) -> ScopeStatus:
        """Snapshot of the scope for health checks and operational tooling."""
        with self._mutex:
            return ScopeStatus(
                scope_id=str(self._id),
                state=self._state,
                locked=self._locked,
                core=self._core_space.get_status() if self._core_space is not None else None,
                custom=self._custom_space.get_status() if self._custom_space is not None else None,
                sessions=[space.get_status() for space in self._session_spaces.values()],
            )

    def __repr__(self) -> str:
        return f"OntologyScope({self._id}, {self.state.value})"
