"""
Semantic entity search using sentence transformers.

Entities are ranked by the cosine similarity between the embedding of the
search terms and the embedding of the entity's values for the searched field.
The provider is unavailable whenever no embedding model could be loaded.
"""

import logging
import threading
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

import numpy as np
from rdflib import Literal, URIRef
from sentence_transformers import SentenceTransformer

from .config import DEFAULT_EMBEDDING_MODEL
from .errors import EntitySearchUnavailableError
from .search import EntitySearchProvider, SpaceSupplier, matches_languages, represent_entity

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 10000


class SemanticSimilarity:
    """Handles embedding and similarity computations for entity texts."""

    def __init__(self, embedder):
        """Initialize the semantic similarity engine.

        Args:
            embedder: Pre-initialized sentence transformer model
        """
        self.embedder = embedder

    def compute_text_embeddings(self, texts: List[str]) -> np.ndarray:
        """Compute normalized embeddings, one row per text."""
        embeddings = self.embedder.encode(texts, normalize_embeddings=True)
        return np.asarray(embeddings, dtype=np.float32)

    def compute_text_embedding(self, text: str) -> Optional[np.ndarray]:
        """Compute the embedding of a single text, None for blank text."""
        if not text.strip():
            return None
        return self.compute_text_embeddings([text])[0]

    def find_similar_embeddings(self,
                                target_embedding: np.ndarray,
                                all_embeddings: Dict[str, np.ndarray],
                                limit: int = 10) -> List[Tuple[str, float]]:
        """Find most similar embeddings using cosine similarity.

        Args:
            target_embedding: The embedding to find similarities for
            all_embeddings: Dict of IRI -> embedding for all candidates
            limit: Maximum number of results to return

        Returns:
            List of (IRI, similarity_score) tuples ordered by similarity (descending)
        """
        similarities = [
            (iri, float(np.dot(target_embedding, embedding)))
            for iri, embedding in all_embeddings.items()
        ]
        # Ties are broken by IRI for stable results
        similarities.sort(key=lambda x: (-x[1], x[0]))
        return similarities[:limit]


class SemanticEntitySearchProvider(EntitySearchProvider):
    """Ranks entities of an ontology space by semantic similarity to the search terms."""

    def __init__(self,
                 space_supplier: SpaceSupplier,
                 embedder=None,
                 model_name: str = DEFAULT_EMBEDDING_MODEL,
                 load_model: bool = True,
                 min_score: float = 0.0,
                 cache_size: int = DEFAULT_CACHE_SIZE,
                 name: str = "semantic"):
        """
        Args:
            space_supplier: Returns the space to search, or None when there is none
            embedder: Pre-initialized model; loaded from model_name on first use if None
            model_name: Sentence transformer model to load
            load_model: Whether loading the model may be attempted at all
            min_score: Results scoring below this are dropped
            cache_size: Maximum number of entity embeddings kept between lookups
            name: Name used in error messages
        """
        if cache_size < 0:
            raise ValueError(f"cache_size must not be negative, got {cache_size}")
        self._space_supplier = space_supplier
        self._embedder = embedder
        self._model_name = model_name
        self._load_model = load_model and embedder is None
        self._model_lock = threading.Lock()
        self.min_score = min_score
        self.name = name
        self.cache_size = cache_size
        self._cache_lock = threading.Lock()
        self._embedding_cache: "OrderedDict[Tuple[str, str], np.ndarray]" = OrderedDict()

    def _get_similarity(self) -> Optional[SemanticSimilarity]:
        if self._embedder is None and self._load_model:
            with self._model_lock:
                # Concurrent callers wait here for the first load to finish
                if self._embedder is None and self._load_model:
                    try:
                        self._embedder = SentenceTransformer(self._model_name)
                    except Exception as e:
                        logger.warning(f"Could not load embedding model {self._model_name}: {e}")
                    finally:
                        # Only ever try once
                        self._load_model = False
        if self._embedder is None:
            return None
        return SemanticSimilarity(self._embedder)

    def is_available(self) -> bool:
        return self._space_supplier() is not None and self._get_similarity() is not None

    def _require(self):
        space = self._space_supplier()
        similarity = self._get_similarity()
        if space is None or similarity is None:
            raise EntitySearchUnavailableError(f"Entity search '{self.name}' is currently not available")
        return space.as_graph(), similarity

    def get(self, entity_id, include_fields=None):
        if not entity_id:
            return None
        graph, _ = self._require()
        subject = URIRef(entity_id)
        if (subject, None, None) not in graph:
            return None
        return represent_entity(graph, subject, include_fields)

    def lookup(self, field, search, languages=(), include_fields=None, limit=10):
        graph, similarity = self._require()
        query = " ".join(term.strip() for term in search if term and term.strip())
        if not query or limit <= 0:
            return []
        query_embedding = similarity.compute_text_embedding(query)

        # Text per entity from the values of the searched field
        texts: Dict[str, List[str]] = {}
        for subject, value in graph.subject_objects(URIRef(field)):
            if isinstance(subject, URIRef) and isinstance(value, Literal) and matches_languages(value, languages):
                texts.setdefault(str(subject), []).append(str(value))
        if not texts:
            return []

        candidates = {iri: self._embed(similarity, iri, " ".join(sorted(values)))
                      for iri, values in texts.items()}
        ranked = similarity.find_similar_embeddings(query_embedding, candidates, limit)
        return [
            represent_entity(graph, URIRef(iri), include_fields, score=score)
            for iri, score in ranked
            if score >= self.min_score
        ]

    def _embed(self, similarity: SemanticSimilarity, iri: str, text: str) -> np.ndarray:
        key = (iri, text)
        with self._cache_lock:
            embedding = self._embedding_cache.get(key)
            if embedding is not None:
                self._embedding_cache.move_to_end(key)
                return embedding

        embedding = similarity.compute_text_embeddings([text])[0]
        with self._cache_lock:
            self._embedding_cache[key] = embedding
            self._embedding_cache.move_to_end(key)
            # Least recently used entries go first
            while len(self._embedding_cache) > self.cache_size:
                self._embedding_cache.popitem(last=False)
        return embedding

    def cached_embedding_count(self) -> int:
        with self._cache_lock:
            return len(self._embedding_cache)

    def supports_offline_mode(self) -> bool:
        return False
