"""
Unit test for semantic entity search.

Uses a small deterministic embedder instead of a sentence transformer model,
so no model download is needed.

HOW TO RUN:
The virtual environment .venv should be activated before running the tests.

From the src directory, run:
    python -m ontospace.test_similarity
"""

import threading
import time

import numpy as np
import pytest
from rdflib import Graph, Literal, OWL, RDF, RDFS, URIRef

from . import similarity as similarity_module
from .errors import EntitySearchUnavailableError
from .factory import DefaultOntologySpaceFactory
from .scope import OntologyScope
from .search import active_space_supplier
from .similarity import SemanticEntitySearchProvider, SemanticSimilarity
from .source import RootOntologySource

EX = "https://example.org/vehicles#"


class LetterEmbedder:
    """Bag-of-letters embedding; similar spellings give similar vectors."""

    def __init__(self):
        self.calls = 0

    def encode(self, texts, normalize_embeddings=True):
        self.calls += 1
        vectors = np.zeros((len(texts), 26), dtype=np.float32)
        for row, text in enumerate(texts):
            for char in text.lower():
                if "a" <= char <= "z":
                    vectors[row, ord(char) - ord("a")] += 1.0
        if normalize_embeddings:
            norms = np.linalg.norm(vectors, axis=1, keepdims=True)
            norms[norms == 0] = 1.0
            vectors = vectors / norms
        return vectors


def make_scope() -> OntologyScope:
    graph = Graph()
    graph.add((URIRef("https://example.org/vehicles"), RDF.type, OWL.Ontology))
    for name, label in [("Car", "car"), ("Truck", "truck"), ("Tractor", "tractor")]:
        graph.add((URIRef(EX + name), RDFS.label, Literal(label, lang="en")))
    scope = OntologyScope("http://ex/scopeA", RootOntologySource(graph), DefaultOntologySpaceFactory())
    scope.set_up()
    return scope


def test_find_similar_embeddings():
    print("Testing similarity ranking...")

    similarity = SemanticSimilarity(LetterEmbedder())
    target = np.array([1.0, 0.0], dtype=np.float32)
    candidates = {
        "b": np.array([0.6, 0.8], dtype=np.float32),
        "a": np.array([0.6, 0.8], dtype=np.float32),
        "c": np.array([1.0, 0.0], dtype=np.float32),
    }

    ranked = similarity.find_similar_embeddings(target, candidates, limit=2)
    assert [iri for iri, _ in ranked] == ["c", "a"]
    assert ranked[0][1] == pytest.approx(1.0)

    assert similarity.compute_text_embedding("   ") is None
    assert similarity.compute_text_embedding("car").shape == (26,)

    print("✓ Similarity ranking working correctly")


def test_semantic_lookup_ranks_by_similarity():
    print("Testing semantic lookup...")

    scope = make_scope()
    embedder = LetterEmbedder()
    provider = SemanticEntitySearchProvider(active_space_supplier(scope), embedder=embedder)

    results = provider.lookup(str(RDFS.label), ["truck"], limit=3)
    assert results[0].id == EX + "Truck"
    assert results[0].score == pytest.approx(1.0)
    assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)

    # Entity embeddings are cached between lookups
    calls = embedder.calls
    provider.lookup(str(RDFS.label), ["tractor"])
    assert embedder.calls == calls + 1

    print("✓ Semantic lookup working correctly")


def test_min_score_filters_results():
    scope = make_scope()
    provider = SemanticEntitySearchProvider(active_space_supplier(scope), embedder=LetterEmbedder(),
                                            min_score=0.99)
    results = provider.lookup(str(RDFS.label), ["car"])
    assert [r.id for r in results] == [EX + "Car"]


def test_semantic_get_and_empty_search():
    scope = make_scope()
    provider = SemanticEntitySearchProvider(active_space_supplier(scope), embedder=LetterEmbedder())

    assert provider.get(EX + "Car").get_values(RDFS.label) == ["car"]
    assert provider.get(EX + "Boat") is None
    assert provider.lookup(str(RDFS.label), [" "]) == []
    assert provider.lookup(str(RDFS.comment), ["car"]) == []


def test_unavailable_without_model_or_space():
    """Missing model or inactive scope make the provider unavailable."""
    print("Testing unavailable semantic provider...")

    scope = make_scope()
    no_model = SemanticEntitySearchProvider(active_space_supplier(scope), load_model=False)
    assert not no_model.is_available()
    assert not no_model.supports_offline_mode()
    with pytest.raises(EntitySearchUnavailableError):
        no_model.lookup(str(RDFS.label), ["car"])

    with_model = SemanticEntitySearchProvider(active_space_supplier(scope), embedder=LetterEmbedder())
    assert with_model.is_available()
    scope.tear_down()
    assert not with_model.is_available()
    with pytest.raises(EntitySearchUnavailableError):
        with_model.get(EX + "Car")

    print("✓ Unavailable semantic provider reported")


class SlowLoadingModel(LetterEmbedder):
    """Stands in for SentenceTransformer; takes a while to load."""

    loads = []

    def __init__(self, model_name):
        time.sleep(0.3)
        super().__init__()
        SlowLoadingModel.loads.append(model_name)


def test_concurrent_first_lookups_wait_for_model(monkeypatch):
    """Callers arriving while the model loads get results, not an unavailable error."""
    print("Testing concurrent model loading...")

    SlowLoadingModel.loads = []
    monkeypatch.setattr(similarity_module, "SentenceTransformer", SlowLoadingModel)
    scope = make_scope()
    provider = SemanticEntitySearchProvider(active_space_supplier(scope), model_name="letters")

    start = threading.Barrier(4)
    results = []
    errors = []

    def worker():
        start.wait()
        try:
            results.append(provider.lookup(str(RDFS.label), ["car"]))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert SlowLoadingModel.loads == ["letters"]
    assert all(found[0].id == EX + "Car" for found in results)
    assert len(results) == 4

    print("✓ Concurrent model loading working correctly")


def test_failed_model_load_is_not_retried(monkeypatch):
    attempts = []

    def broken_model(model_name):
        attempts.append(model_name)
        raise OSError("model not found")

    monkeypatch.setattr(similarity_module, "SentenceTransformer", broken_model)
    provider = SemanticEntitySearchProvider(active_space_supplier(make_scope()))

    assert not provider.is_available()
    assert not provider.is_available()
    assert len(attempts) == 1


def test_embedding_cache_is_bounded():
    print("Testing embedding cache bound...")

    scope = make_scope()
    provider = SemanticEntitySearchProvider(active_space_supplier(scope), embedder=LetterEmbedder(),
                                            cache_size=2)
    results = provider.lookup(str(RDFS.label), ["car"])
    assert len(results) == 3
    assert provider.cached_embedding_count() == 2

    unbounded = SemanticEntitySearchProvider(active_space_supplier(scope), embedder=LetterEmbedder())
    unbounded.lookup(str(RDFS.label), ["car"])
    assert unbounded.cached_embedding_count() == 3

    with pytest.raises(ValueError):
        SemanticEntitySearchProvider(active_space_supplier(scope), embedder=LetterEmbedder(), cache_size=-1)

    print("✓ Embedding cache bounded")


def run_all_tests():
    """Run all test functions."""
    print("=" * 50)
    print("Running Semantic Search Tests")
    print("=" * 50)

    test_functions = [
        test_find_similar_embeddings,
        test_semantic_lookup_ranks_by_similarity,
        test_min_score_filters_results,
        test_semantic_get_and_empty_search,
        test_unavailable_without_model_or_space,
        test_embedding_cache_is_bounded,
    ]

    passed = 0
    failed = 0

    for test_func in test_functions:
        try:
            test_func()
            passed += 1
        except Exception as e:
            print(f"✗ {test_func.__name__} FAILED: {e}")
            failed += 1

    print("=" * 50)
    print(f"Test Results: {passed} passed, {failed} failed")
    print("=" * 50)

    return failed == 0


def main():
    """Main function to run the tests."""
    return 0 if run_all_tests() else 1


if __name__ == "__main__":
    exit(main())
