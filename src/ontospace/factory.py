"""
Factories creating ontology spaces from input sources.

Factories never lock the spaces they create: the caller may still add more
documents before setting the owning scope up.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

from rdflib import URIRef

from .errors import InvalidSourceError
from .source import OntologyInputSource
from .space import CoreOntologySpace, CustomOntologySpace, SessionOntologySpace

logger = logging.getLogger(__name__)


class OntologySpaceFactory(ABC):
    """Abstract base class for ontology space factories."""

    @abstractmethod
    def create_core_space(self, scope_id: Union[str, URIRef],
                          source: OntologyInputSource) -> CoreOntologySpace:
        """
        Create an unlocked core space holding the source's root ontology.

        Args:
            scope_id: Identifier of the scope that will own the space
            source: Input source for the space's initial document

        Returns:
            New core space
        """
        pass

    @abstractmethod
    def create_custom_space(self, scope_id: Union[str, URIRef],
                            source: OntologyInputSource) -> CustomOntologySpace:
        """
        Create an unlocked custom space holding the source's root ontology.
        """
        pass

    @abstractmethod
    def create_session_space(self, scope_id: Union[str, URIRef],
                             session_id: Optional[Union[str, URIRef]] = None) -> SessionOntologySpace:
        """
        Create an empty session space, optionally bound to a session.
        """
        pass


class DefaultOntologySpaceFactory(OntologySpaceFactory):
    """Creates in-memory spaces named after their scope."""

    @staticmethod
    def _check_source(source: Optional[OntologyInputSource]) -> None:
        if source is None:
            raise InvalidSourceError("An input source is required to create this space")
        if not isinstance(source, OntologyInputSource):
            raise InvalidSourceError(f"Expected an ontology input source, got {type(source).__name__}")

    def create_core_space(self, scope_id, source):
        self._check_source(source)
        space = CoreOntologySpace(scope_id)
        space.add_document(source.root_ontology)
        logger.debug(f"Created core space {space.space_id} from {source}")
        return space

    def create_custom_space(self, scope_id, source):
        self._check_source(source)
        space = CustomOntologySpace(scope_id)
        space.add_document(source.root_ontology)
        logger.debug(f"Created custom space {space.space_id} from {source}")
        return space

    def create_session_space(self, scope_id, session_id=None):
        space = SessionOntologySpace(scope_id, session_id)
        logger.debug(f"Created session space {space.space_id}")
        return space
