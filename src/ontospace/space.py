"""
Ontology spaces: the layers an ontology scope is composed of.

Every space keeps an ordered set of ontology documents (rdflib graphs) and a
*top ontology*, a small graph named after the space that imports each of the
space's documents plus the space it extends. Spaces only ever import from a
lower tier (Core <- Custom <- Session), which keeps the import structure
acyclic.

The locked flag and the document set are guarded by one mutex per space, so a
lock that takes effect before an in-flight add_document makes that add fail.
"""

import logging
import threading
from abc import ABC
from typing import Dict, List, Optional, Union
from urllib.parse import quote

from rdflib import Graph, OWL, RDF, URIRef
from rdflib.term import Node

from .domain import SpaceStatus, SpaceType
from .errors import SpaceLockedError
from .identifiers import strip_iri_terminator
from .source import get_document_id

logger = logging.getLogger(__name__)


def _as_node(document_id: Union[str, Node]) -> Node:
    return document_id if isinstance(document_id, Node) else URIRef(document_id)


class OntologySpace(ABC):
    """A lockable container of ontology documents within a scope."""

    space_type: SpaceType

    def __init__(self, scope_id: Union[str, URIRef], space_id: Optional[Union[str, URIRef]] = None):
        self._scope_id = URIRef(str(scope_id))
        self._space_id = URIRef(str(space_id)) if space_id else self._default_space_id()
        self._documents: Dict[Node, Graph] = {}    # insertion ordered
        self._import_target: Optional["OntologySpace"] = None
        self._locked = False
        self._mutex = threading.RLock()
        self._top_ontology = self._new_top_ontology(self._space_id)

    def _default_space_id(self) -> URIRef:
        return URIRef(f"{strip_iri_terminator(self._scope_id)}/{self.space_type.value}")

    @staticmethod
    def _new_top_ontology(space_id: URIRef) -> Graph:
        graph = Graph(identifier=space_id)
        graph.bind("owl", OWL)
        graph.add((space_id, RDF.type, OWL.Ontology))
        return graph

    @property
    def scope_id(self) -> URIRef:
        return self._scope_id

    @property
    def space_id(self) -> URIRef:
        return self._space_id

    # Documents

    def add_document(self, document: Graph) -> bool:
        """Add an ontology document to this space.

        Args:
            document: Parsed ontology document

        Returns:
            True if added, False if a document with the same identity is already present

        Raises:
            SpaceLockedError: If the space is locked
        """
        if not isinstance(document, Graph):
            raise TypeError(f"Expected an rdflib Graph, got {type(document).__name__}")
        document_id = get_document_id(document)

        with self._mutex:
            if self._locked:
                raise SpaceLockedError(self._space_id)
            if document_id in self._documents:
                return False
            self._documents[document_id] = document
            if isinstance(document_id, URIRef):
                self._top_ontology.add((self._space_id, OWL.imports, document_id))

        logger.debug(f"Added document {document_id} to space {self._space_id}")
        return True

    def remove_document(self, document_id: Union[str, Node]) -> bool:
        """Remove a document by identity.

        Returns:
            True if the document was present

        Raises:
            SpaceLockedError: If the space is locked
        """
        document_id = _as_node(document_id)
        with self._mutex:
            if self._locked:
                raise SpaceLockedError(self._space_id)
            if self._documents.pop(document_id, None) is None:
                return False
            self._top_ontology.remove((self._space_id, OWL.imports, document_id))

        logger.debug(f"Removed document {document_id} from space {self._space_id}")
        return True

    def get_document(self, document_id: Union[str, Node]) -> Optional[Graph]:
        with self._mutex:
            return self._documents.get(_as_node(document_id))

    def has_document(self, document_id: Union[str, Node]) -> bool:
        with self._mutex:
            return _as_node(document_id) in self._documents

    def get_documents(self) -> List[Graph]:
        with self._mutex:
            return list(self._documents.values())

    def document_ids(self) -> List[Node]:
        with self._mutex:
            return list(self._documents)

    def document_count(self) -> int:
        with self._mutex:
            return len(self._documents)

    # Locking

    def lock(self) -> None:
        """Reject document changes from now on. Locking twice is a no-op."""
        with self._mutex:
            if self._locked:
                return
            self._locked = True
        logger.debug(f"Locked space {self._space_id}")

    def unlock(self) -> None:
        """Accept document changes again. Unlocking twice is a no-op."""
        with self._mutex:
            if not self._locked:
                return
            self._locked = False
        logger.debug(f"Unlocked space {self._space_id}")

    def is_locked(self) -> bool:
        with self._mutex:
            return self._locked

    # Imports

    def get_import_target(self) -> Optional["OntologySpace"]:
        """The space this one imports from, as set by the last synchronization."""
        with self._mutex:
            return self._import_target

    def attach_to(self, parent: Optional["OntologySpace"]) -> bool:
        """Make this space import from parent, replacing any previous parent import.

        Attaching is a structural operation and is allowed on locked spaces.

        Args:
            parent: Space from a lower tier of the same scope, or None to detach

        Returns:
            True if the import structure changed

        Raises:
            ValueError: If parent is not from a lower tier of the same scope
        """
        if parent is not None:
            if parent.space_type.rank >= self.space_type.rank:
                raise ValueError(
                    f"A {self.space_type.value} space cannot import a {parent.space_type.value} space"
                )
            if parent.scope_id != self._scope_id:
                raise ValueError(f"Space {parent.space_id} belongs to another scope")

        with self._mutex:
            previous = self._import_target
            if previous is parent:
                return False
            if previous is not None:
                self._top_ontology.remove((self._space_id, OWL.imports, previous.space_id))
            if parent is not None:
                self._top_ontology.add((self._space_id, OWL.imports, parent.space_id))
            self._import_target = parent

        logger.debug(f"Space {self._space_id} now imports {parent.space_id if parent is not None else 'nothing'}")
        return True

    def get_top_ontology(self) -> Graph:
        """Copy of the graph declaring this space's imports."""
        with self._mutex:
            top = self._new_top_ontology(self._space_id)
            top += self._top_ontology
            return top

    def get_imports(self) -> List[URIRef]:
        with self._mutex:
            return list(self._top_ontology.objects(self._space_id, OWL.imports))

    def as_graph(self, merge_imports: bool = True) -> Graph:
        """Union of this space's documents and, optionally, of every space it imports."""
        merged = Graph()
        merged.bind("owl", OWL)
        visited = set()
        space: Optional[OntologySpace] = self
        while space is not None and space.space_id not in visited:
            visited.add(space.space_id)
            for document in space.get_documents():
                merged += document
            if not merge_imports:
                break
            space = space.get_import_target()
        return merged

    def get_status(self) -> SpaceStatus:
        with self._mutex:
            return SpaceStatus(
                space_id=str(self._space_id),
                space_type=self.space_type,
                locked=self._locked,
                document_count=len(self._documents),
                import_target=str(self._import_target.space_id) if self._import_target is not None else None,
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._space_id})"


class CoreOntologySpace(OntologySpace):
    """The immutable foundation of a scope; locked while the scope is active."""

    space_type = SpaceType.CORE


class CustomOntologySpace(OntologySpace):
    """Optional shared layer on top of the core space."""

    space_type = SpaceType.CUSTOM


class SessionOntologySpace(OntologySpace):
    """Ephemeral layer for one session, on top of the custom (or core) space."""

    space_type = SpaceType.SESSION

    def __init__(self, scope_id: Union[str, URIRef], session_id: Optional[Union[str, URIRef]] = None):
        self._session_id: Optional[URIRef] = None
        super().__init__(scope_id)
        if session_id is not None:
            self.bind_session(session_id)

    @property
    def session_id(self) -> Optional[URIRef]:
        return self._session_id

    def bind_session(self, session_id: Union[str, URIRef]) -> None:
        """Tie this space to a session; its space id then embeds the session id.

        Raises:
            ValueError: If the space is already bound to another session
        """
        session_id = URIRef(str(session_id))
        with self._mutex:
            if self._session_id == session_id:
                return
            if self._session_id is not None:
                raise ValueError(f"Space {self._space_id} is already bound to session {self._session_id}")

            old_space_id = self._space_id
            new_space_id = URIRef(
                f"{strip_iri_terminator(self._scope_id)}/session/{quote(str(session_id), safe='')}"
            )
            top = self._new_top_ontology(new_space_id)
            for s, p, o in self._top_ontology:
                top.add((new_space_id if s == old_space_id else s, p, o))
            self._top_ontology = top
            self._space_id = new_space_id
            self._session_id = session_id

    def get_status(self) -> SpaceStatus:
        status = super().get_status()
        status.session_id = str(self._session_id) if self._session_id else None
        return status
