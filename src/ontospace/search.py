"""
Entity search providers over ontology spaces.

A provider resolves and looks up entities in some backend that may or may not
be available when it is called. Unavailability is reported explicitly with
EntitySearchUnavailableError rather than by returning empty results.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, Field
from rdflib import Graph, Literal, URIRef

from .errors import EntitySearchUnavailableError
from .scope import OntologyScope
from .space import OntologySpace

SpaceSupplier = Callable[[], Optional[OntologySpace]]


class EntityRepresentation(BaseModel):
    """An entity and the values of (some of) its fields."""

    id: str = Field(..., description="IRI of the entity")
    fields: Dict[str, List[str]] = Field(default_factory=dict, description="Field IRI -> values")
    score: Optional[float] = Field(None, description="Relevance score for ranked lookups")

    def get_values(self, field: Union[str, URIRef]) -> List[str]:
        return self.fields.get(str(field), [])


def represent_entity(graph: Graph, subject: URIRef,
                     include_fields: Optional[Iterable[Union[str, URIRef]]] = None,
                     score: Optional[float] = None) -> EntityRepresentation:
    """Collect the outgoing values of subject, restricted to include_fields if given."""
    wanted = {str(f) for f in include_fields} if include_fields is not None else None
    fields: Dict[str, List[str]] = {}
    for predicate, value in graph.predicate_objects(subject):
        key = str(predicate)
        if wanted is not None and key not in wanted:
            continue
        fields.setdefault(key, []).append(str(value))
    for values in fields.values():
        values.sort()
    return EntityRepresentation(id=str(subject), fields=fields, score=score)


def matches_languages(value: Literal, languages: Sequence[Optional[str]]) -> bool:
    """True if no languages are requested or the literal's tag is one of them (None = untagged)."""
    return not languages or value.language in languages


def active_space_supplier(scope: OntologyScope,
                          session_id: Optional[Union[str, URIRef]] = None) -> SpaceSupplier:
    """Supply the most specific space of a scope, but only while the scope is active.

    With a session id the session space is supplied (None once the session is
    gone); otherwise the custom space if present, else the core space.
    """
    def supplier() -> Optional[OntologySpace]:
        if not scope.is_active():
            return None
        if session_id is not None:
            return scope.get_session_space(session_id)
        custom = scope.get_custom_space()
        return custom if custom is not None else scope.get_core_space()
    return supplier


class EntitySearchProvider(ABC):
    """Abstract base class for entity lookup backends."""

    name: str = "entity-search"

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def get(self, entity_id: str,
            include_fields: Optional[Iterable[str]] = None) -> Optional[EntityRepresentation]:
        """
        Resolve a single entity.

        Args:
            entity_id: IRI of the entity; empty ids resolve to None
            include_fields: Fields to include, all if None

        Returns:
            The entity or None if unknown

        Raises:
            EntitySearchUnavailableError: If the backend is not available
        """
        pass

    @abstractmethod
    def lookup(self, field: str, search: Sequence[str],
               languages: Sequence[Optional[str]] = (),
               include_fields: Optional[Iterable[str]] = None,
               limit: int = 10) -> List[EntityRepresentation]:
        """
        Find entities whose field matches the search terms.

        Args:
            field: Field (predicate IRI) to match on
            search: Search terms
            languages: Accepted language tags, None for untagged values; any if empty
            include_fields: Fields to include in the results, all if None
            limit: Maximum number of results

        Raises:
            EntitySearchUnavailableError: If the backend is not available
        """
        pass

    @abstractmethod
    def supports_offline_mode(self) -> bool:
        """Whether the backend works without remote services. Never raises."""
        pass


class GraphEntitySearchProvider(EntitySearchProvider):
    """Looks entities up in the merged graph of an ontology space.

    Matching is a case-insensitive substring test on literal values.
    """

    def __init__(self, space_supplier: SpaceSupplier, name: str = "graph"):
        self._space_supplier = space_supplier
        self.name = name

    def _graph(self) -> Graph:
        space = self._space_supplier()
        if space is None:
            raise EntitySearchUnavailableError(f"Entity search '{self.name}' is currently not available")
        return space.as_graph()

    def is_available(self) -> bool:
        return self._space_supplier() is not None

    def get(self, entity_id, include_fields=None):
        if not entity_id:
            return None
        graph = self._graph()
        subject = URIRef(entity_id)
        if (subject, None, None) not in graph:
            return None
        return represent_entity(graph, subject, include_fields)

    def lookup(self, field, search, languages=(), include_fields=None, limit=10):
        graph = self._graph()
        terms = [term.strip().lower() for term in search if term and term.strip()]
        if not terms or limit <= 0:
            return []

        matches = set()
        for subject, value in graph.subject_objects(URIRef(field)):
            if not isinstance(subject, URIRef) or not isinstance(value, Literal):
                continue
            if not matches_languages(value, languages):
                continue
            text = str(value).lower()
            if any(term in text for term in terms):
                matches.add(subject)

        ordered = sorted(matches, key=str)[:limit]
        return [represent_entity(graph, subject, include_fields) for subject in ordered]

    def supports_offline_mode(self) -> bool:
        return True
