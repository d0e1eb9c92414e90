"""
Ontology Scope & Space Management Module

This module organizes ontologies into layered scopes. Each scope has exactly one
locked core space, at most one custom space and any number of session spaces,
and keeps their import structure consistent as spaces come and go.

Public Interface:
- OntologyScope: Facade over the spaces of one scope
- ScopeRegistry: Administrative registry of scopes
- DefaultOntologySpaceFactory: Creates spaces from input sources
- RootOntologySource: Wraps a parsed ontology document
- TimestampedSessionIdGenerator: Mints session identifiers
- OntospaceConfig: Configuration from the environment
"""

from .config import OntospaceConfig
from .domain import ScopeEvent, ScopeEventType, ScopeState, ScopeStatus, SpaceStatus, SpaceType
from .errors import (
    DuplicateScopeIdError,
    DuplicateSessionIdError,
    EntitySearchUnavailableError,
    InvalidSourceError,
    MissingCoreSpaceError,
    NotFoundError,
    OntologySpaceError,
    SpaceLockedError,
    UnmodifiableSpaceError,
)
from .factory import DefaultOntologySpaceFactory, OntologySpaceFactory
from .identifiers import SessionIdGenerator, TimestampedSessionIdGenerator
from .listeners import ScopeListener, SpaceSynchronizer
from .registry import ScopeRegistry
from .scope import OntologyScope
from .source import BlankOntologySource, OntologyInputSource, RootOntologySource
from .space import CoreOntologySpace, CustomOntologySpace, OntologySpace, SessionOntologySpace

__all__ = [
    "OntologyScope",
    "ScopeRegistry",
    "OntologySpaceFactory",
    "DefaultOntologySpaceFactory",
    "OntologyInputSource",
    "RootOntologySource",
    "BlankOntologySource",
    "SessionIdGenerator",
    "TimestampedSessionIdGenerator",
    "OntologySpace",
    "CoreOntologySpace",
    "CustomOntologySpace",
    "SessionOntologySpace",
    "ScopeListener",
    "SpaceSynchronizer",
    "OntospaceConfig",
    "ScopeEvent",
    "ScopeEventType",
    "ScopeState",
    "ScopeStatus",
    "SpaceStatus",
    "SpaceType",
    "OntologySpaceError",
    "InvalidSourceError",
    "SpaceLockedError",
    "UnmodifiableSpaceError",
    "DuplicateSessionIdError",
    "DuplicateScopeIdError",
    "MissingCoreSpaceError",
    "NotFoundError",
    "EntitySearchUnavailableError",
]
