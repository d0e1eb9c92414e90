"""
Exceptions raised by the ontology scope and space management module.

Structural violations are reported immediately and never retried here;
retrying (e.g. with a fresh session identifier) is up to the caller.
"""

from typing import Optional


class OntologySpaceError(Exception):
    """Base class for all scope and space management errors."""


class InvalidSourceError(OntologySpaceError, ValueError):
    """Raised when an ontology input source is missing or malformed."""


class SpaceLockedError(OntologySpaceError):
    """Raised when a document mutation is attempted on a locked space."""

    def __init__(self, space_id: str, message: Optional[str] = None):
        self.space_id = space_id
        super().__init__(message or f"Ontology space {space_id} is locked and cannot be modified")


class UnmodifiableSpaceError(OntologySpaceError):
    """Raised when a structural change hits a locked scope or a locked space."""

    def __init__(self, target_id: str, message: Optional[str] = None):
        self.target_id = target_id
        super().__init__(message or f"{target_id} is locked against structural changes")


class DuplicateSessionIdError(OntologySpaceError):
    """Raised when a session space is added under an identifier already in use."""

    def __init__(self, scope_id: str, session_id: str):
        self.scope_id = scope_id
        self.session_id = session_id
        super().__init__(f"Scope {scope_id} already has a session space for {session_id}")


class MissingCoreSpaceError(OntologySpaceError):
    """Raised when a scope is set up without a core space."""

    def __init__(self, scope_id: str):
        self.scope_id = scope_id
        super().__init__(f"Scope {scope_id} has no core space")


class NotFoundError(OntologySpaceError, KeyError):
    """Raised by mutating calls that reference an unknown identifier.

    Plain lookups return None instead of raising.
    """

    def __init__(self, identifier: str, kind: str = "scope"):
        self.identifier = identifier
        self.kind = kind
        super().__init__(f"No {kind} registered for {identifier}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class DuplicateScopeIdError(OntologySpaceError):
    """Raised when a scope is registered under an identifier already in use."""

    def __init__(self, scope_id: str):
        self.scope_id = scope_id
        super().__init__(f"A scope with id {scope_id} is already registered")


class EntitySearchUnavailableError(OntologySpaceError):
    """Raised when an entity search backend is not available at call time."""
