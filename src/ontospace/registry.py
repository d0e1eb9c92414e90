"""
Scope registry for managing the ontology scopes of an application.

The registry is the administrative surface over scopes: operational tooling
registers scopes, starts and stops them, and queries their health through it.
"""

import logging
import threading
from typing import Dict, List, Optional, Union

from rdflib import URIRef

from .domain import ScopeStatus
from .errors import DuplicateScopeIdError, NotFoundError
from .scope import OntologyScope

logger = logging.getLogger(__name__)


class ScopeRegistry:
    """
    Registry of ontology scopes keyed by scope identifier.

    Scopes are set up and torn down through the registry, but their
    structure is never modified by it.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._scopes: Dict[URIRef, OntologyScope] = {}
        self._mutex = threading.RLock()

    def register_scope(self, scope: OntologyScope, activate: bool = False) -> None:
        """
        Register a scope.

        Args:
            scope: Scope to register
            activate: Set the scope up right after registering it

        Raises:
            DuplicateScopeIdError: If a scope with the same id is registered
        """
        with self._mutex:
            if scope.id in self._scopes:
                raise DuplicateScopeIdError(scope.id)
            self._scopes[scope.id] = scope
        logger.info(f"Registered scope {scope.id}")

        if activate:
            scope.set_up()

    def deregister_scope(self, scope_id: Union[str, URIRef]) -> OntologyScope:
        """
        Tear a scope down and remove it from the registry.

        Args:
            scope_id: Identifier of the scope

        Returns:
            The removed scope

        Raises:
            NotFoundError: If no scope is registered under scope_id
        """
        scope_id = URIRef(str(scope_id))
        with self._mutex:
            scope = self._scopes.pop(scope_id, None)
        if scope is None:
            raise NotFoundError(scope_id)

        scope.tear_down()
        logger.info(f"Deregistered scope {scope_id}")
        return scope

    def get_scope(self, scope_id: Union[str, URIRef]) -> Optional[OntologyScope]:
        """
        Get a registered scope.

        Returns:
            The scope or None if not registered
        """
        with self._mutex:
            return self._scopes.get(URIRef(str(scope_id)))

    def contains_scope(self, scope_id: Union[str, URIRef]) -> bool:
        with self._mutex:
            return URIRef(str(scope_id)) in self._scopes

    def get_registered_scopes(self) -> List[OntologyScope]:
        with self._mutex:
            return list(self._scopes.values())

    def get_active_scopes(self) -> List[OntologyScope]:
        return [scope for scope in self.get_registered_scopes() if scope.is_active()]

    def set_scope_active(self, scope_id: Union[str, URIRef], active: bool) -> None:
        """
        Start or stop a registered scope.

        Raises:
            NotFoundError: If no scope is registered under scope_id
        """
        scope = self.get_scope(scope_id)
        if scope is None:
            raise NotFoundError(URIRef(str(scope_id)))
        if active:
            scope.set_up()
        else:
            scope.tear_down()

    def is_scope_active(self, scope_id: Union[str, URIRef]) -> bool:
        """
        Check whether a scope is registered and active.
        """
        scope = self.get_scope(scope_id)
        return scope is not None and scope.is_active()

    def get_status(self) -> List[ScopeStatus]:
        """Status reports for all registered scopes."""
        return [scope.get_status() for scope in self.get_registered_scopes()]
