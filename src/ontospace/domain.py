"""
Domain models for the ontology scope and space management module.

These models describe the kinds of spaces a scope is built from, the lifecycle
states of a scope, the events published to scope listeners, and the status
reports exposed to operational tooling.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field
from rdflib import URIRef


class SpaceType(str, Enum):
    """The three tiers of an ontology scope, in import order."""
    CORE = "core"          # immutable foundation of the scope
    CUSTOM = "custom"      # optional shared layer on top of core
    SESSION = "session"    # ephemeral per-session layer

    @property
    def rank(self) -> int:
        """Position in the Core -> Custom -> Session ordering."""
        return _SPACE_TYPE_RANKS[self]


_SPACE_TYPE_RANKS = {SpaceType.CORE: 0, SpaceType.CUSTOM: 1, SpaceType.SESSION: 2}


class ScopeState(str, Enum):
    """Lifecycle states of an ontology scope."""
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ScopeEventType(str, Enum):
    """Structural changes reported to scope listeners."""
    SCOPE_ACTIVATED = "scope_activated"
    SCOPE_DEACTIVATED = "scope_deactivated"
    CUSTOM_SPACE_SET = "custom_space_set"
    SESSION_SPACE_ADDED = "session_space_added"
    SESSION_SPACE_REMOVED = "session_space_removed"
    SPACES_SYNCHRONIZED = "spaces_synchronized"


@dataclass(frozen=True)
class ScopeEvent:
    """A structural change that has already been applied to a scope."""

    event_type: ScopeEventType
    scope_id: URIRef
    space_id: Optional[URIRef] = None        # affected space, if any
    session_id: Optional[URIRef] = None      # affected session, for session events
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SpaceStatus(BaseModel):
    """Health snapshot of a single ontology space."""

    space_id: str = Field(..., description="Identifier of the space")
    space_type: SpaceType = Field(..., description="Tier of the space")
    locked: bool = Field(..., description="Whether the space rejects document changes")
    document_count: int = Field(..., description="Number of documents loaded in the space")
    import_target: Optional[str] = Field(None, description="Space this one imports from")
    session_id: Optional[str] = Field(None, description="Session identifier for session spaces")


class ScopeStatus(BaseModel):
    """Health snapshot of an ontology scope and all of its spaces."""

    scope_id: str = Field(..., description="Identifier of the scope")
    state: ScopeState = Field(..., description="Lifecycle state of the scope")
    locked: bool = Field(..., description="Administrative lock on structural changes")
    core: Optional[SpaceStatus] = Field(None, description="Core space status")
    custom: Optional[SpaceStatus] = Field(None, description="Custom space status, if any")
    sessions: List[SpaceStatus] = Field(default_factory=list, description="Session space statuses")

    @property
    def healthy(self) -> bool:
        """An active scope is healthy when its core space is present and locked."""
        return self.state == ScopeState.ACTIVE and self.core is not None and self.core.locked
