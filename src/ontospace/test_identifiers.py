"""
Unit test for session identifier generation.

HOW TO RUN:
The virtual environment .venv should be activated before running the tests.

From the src directory, run:
    python -m ontospace.test_identifiers
"""

import itertools

import pytest
from rdflib import URIRef

from .identifiers import TimestampedSessionIdGenerator, strip_iri_terminator


def constant_clock(value=1700000000000):
    return lambda: value


def test_session_id_format():
    """Session ids live under <base>/session/."""
    print("Testing session id format...")

    generator = TimestampedSessionIdGenerator("http://ex/base", clock=constant_clock(42))
    session_id = generator.create_session_id()

    assert isinstance(session_id, URIRef)
    assert session_id == URIRef("http://ex/base/session/42")

    print("✓ Session id format correct")


def test_wall_clock_ids_are_numeric():
    generator = TimestampedSessionIdGenerator("http://ex/base")
    session_id = str(generator.create_session_id())

    assert session_id.startswith("http://ex/base/session/")
    assert session_id.rsplit("/", 1)[1].isdigit()


def test_iri_terminators_are_stripped():
    print("Testing IRI terminator stripping...")

    assert strip_iri_terminator("http://ex/base/") == "http://ex/base"
    assert strip_iri_terminator("http://ex/base#") == "http://ex/base"
    assert strip_iri_terminator("http://ex/base") == "http://ex/base"

    generator = TimestampedSessionIdGenerator("http://ex/base/", clock=constant_clock(7))
    assert generator.create_session_id() == URIRef("http://ex/base/session/7")

    print("✓ IRI terminators stripped")


def test_exclude_set_is_avoided():
    """Given {id1, id2}, neither is ever returned."""
    print("Testing exclude set...")

    ticks = itertools.count(100)
    generator = TimestampedSessionIdGenerator("http://ex/base", clock=lambda: next(ticks) // 3)
    id1 = URIRef("http://ex/base/session/33")
    id2 = URIRef("http://ex/base/session/34")

    for _ in range(50):
        session_id = generator.create_session_id({id1, id2})
        assert session_id not in {id1, id2}
        assert str(session_id).startswith("http://ex/base/session/")

    print("✓ Exclude set avoided")


def test_retries_on_fresh_clock_reading():
    readings = iter([5, 5, 6])
    generator = TimestampedSessionIdGenerator("http://ex/base", clock=lambda: next(readings))

    session_id = generator.create_session_id({URIRef("http://ex/base/session/5")})
    assert session_id == URIRef("http://ex/base/session/6")


def test_stuck_clock_falls_back_to_random_suffix():
    """A clock that never moves cannot make the generator loop forever."""
    print("Testing stuck clock fallback...")

    generator = TimestampedSessionIdGenerator("http://ex/base", max_retries=3, clock=constant_clock(9))
    taken = {URIRef("http://ex/base/session/9")}

    first = generator.create_session_id(taken)
    assert first not in taken
    assert str(first).startswith("http://ex/base/session/9-")

    taken.add(first)
    second = generator.create_session_id(taken)
    assert second not in taken

    print("✓ Stuck clock handled")


def test_zero_retries_still_terminates():
    generator = TimestampedSessionIdGenerator("http://ex/base", max_retries=0, clock=constant_clock(1))
    session_id = generator.create_session_id({URIRef("http://ex/base/session/1")})
    assert session_id != URIRef("http://ex/base/session/1")


def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        TimestampedSessionIdGenerator("http://ex/base", max_retries=-1)


def test_base_iri_reconfiguration():
    print("Testing base IRI reconfiguration...")

    generator = TimestampedSessionIdGenerator("http://ex/one", clock=constant_clock(3))
    assert generator.get_base_iri() == URIRef("http://ex/one")

    generator.set_base_iri("http://ex/two/")
    assert generator.get_base_iri() == URIRef("http://ex/two/")
    assert generator.create_session_id() == URIRef("http://ex/two/session/3")

    print("✓ Base IRI reconfiguration working correctly")


def run_all_tests():
    """Run all test functions."""
    print("=" * 50)
    print("Running Session Identifier Tests")
    print("=" * 50)

    test_functions = [
        test_session_id_format,
        test_wall_clock_ids_are_numeric,
        test_iri_terminators_are_stripped,
        test_exclude_set_is_avoided,
        test_retries_on_fresh_clock_reading,
        test_stuck_clock_falls_back_to_random_suffix,
        test_zero_retries_still_terminates,
        test_negative_retries_rejected,
        test_base_iri_reconfiguration,
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
