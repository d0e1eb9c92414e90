"""
Ontology input sources.

An input source wraps an already loaded ontology document (an rdflib Graph)
together with the physical IRI it was, or can be, retrieved from. Sources are
consumed by the space factory; they never load anything lazily.
"""

from pathlib import Path
from typing import Optional, Union

from rdflib import BNode, Graph, OWL, RDF, URIRef
from rdflib.term import Node

from .errors import InvalidSourceError


def get_ontology_iri(graph: Graph) -> Optional[URIRef]:
    """Return the IRI the document declares for itself, if any."""
    for subject in graph.subjects(RDF.type, OWL.Ontology):
        if isinstance(subject, URIRef):
            return subject
    return None


def get_document_iri(graph: Graph) -> Optional[URIRef]:
    """Return the canonical document IRI: version IRI first, then ontology IRI."""
    ontology_iri = get_ontology_iri(graph)
    if ontology_iri is None:
        return None
    for version_iri in graph.objects(ontology_iri, OWL.versionIRI):
        if isinstance(version_iri, URIRef):
            return version_iri
    return ontology_iri


def get_document_id(graph: Graph) -> Node:
    """Identity used to deduplicate documents inside a space.

    Named ontologies are identified by their ontology IRI, anonymous ones by
    the identifier of the graph object itself.
    """
    return get_ontology_iri(graph) or graph.identifier


class OntologyInputSource:
    """Base class for sources handing a root ontology to the space factory."""

    def __init__(self, root_ontology: Graph, physical_iri: Optional[Union[str, URIRef]] = None):
        if root_ontology is None:
            raise InvalidSourceError("The root ontology of an input source must not be None")
        if not isinstance(root_ontology, Graph):
            raise InvalidSourceError(
                f"The root ontology must be an rdflib Graph, got {type(root_ontology).__name__}"
            )
        self._root_ontology = root_ontology
        if physical_iri is not None:
            self._physical_iri: Optional[URIRef] = URIRef(str(physical_iri))
        else:
            # Anonymous ontologies have no physical IRI
            self._physical_iri = get_document_iri(root_ontology)

    @property
    def root_ontology(self) -> Graph:
        return self._root_ontology

    @property
    def physical_iri(self) -> Optional[URIRef]:
        return self._physical_iri

    @property
    def ontology_iri(self) -> Optional[URIRef]:
        return get_ontology_iri(self._root_ontology)

    def has_physical_iri(self) -> bool:
        return self._physical_iri is not None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


class RootOntologySource(OntologyInputSource):
    """Input source for an ontology that has already been parsed into a graph."""

    @classmethod
    def from_file(cls, path: Union[str, Path], format: Optional[str] = None) -> "RootOntologySource":
        """Parse an ontology file and wrap the result.

        Args:
            path: Location of the ontology document
            format: rdflib parser name; guessed from the file suffix if None

        Returns:
            Source whose physical IRI is the ontology's own IRI, or the file URI
            for documents without an ontology header

        Raises:
            InvalidSourceError: If the file is missing or cannot be parsed
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise InvalidSourceError(f"Ontology file not found: {file_path}")

        graph = Graph()
        try:
            graph.parse(str(file_path), format=format)
        except Exception as e:
            raise InvalidSourceError(f"Could not parse ontology file {file_path}: {e}") from e

        physical_iri = get_document_iri(graph) or URIRef(file_path.resolve().as_uri())
        return cls(graph, physical_iri)

    def __str__(self) -> str:
        return f"ROOT_ONT<{self.ontology_iri or 'anonymous'}>"


class BlankOntologySource(OntologyInputSource):
    """Input source for a fresh, empty and anonymous ontology."""

    def __init__(self):
        super().__init__(Graph(identifier=BNode()))

    def __str__(self) -> str:
        return "BLANK_ONT"
