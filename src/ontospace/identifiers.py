"""
Session identifier generation.

Session identifiers are IRIs of the form ``<base>/session/<milliseconds>``.
They are derived from the wall clock, so two calls within the same millisecond
collide; the exclude-set variant retries on a fresh clock reading and, after a
bounded number of attempts, appends a random suffix so that it always
terminates.
"""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from typing import AbstractSet, Callable, Optional, Union

from rdflib import URIRef

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 16


def strip_iri_terminator(iri: Union[str, URIRef]) -> str:
    """Drop a trailing '/' or '#' so that path segments can be appended."""
    value = str(iri)
    while value and value[-1] in "/#":
        value = value[:-1]
    return value


def _millis() -> int:
    return time.time_ns() // 1_000_000


class SessionIdGenerator(ABC):
    """Abstract base class for session identifier generators."""

    @abstractmethod
    def create_session_id(self, exclude: Optional[AbstractSet[URIRef]] = None) -> URIRef:
        """
        Create a new session identifier.

        Args:
            exclude: Identifiers the result must not be equal to

        Returns:
            Session identifier IRI
        """
        pass

    @abstractmethod
    def get_base_iri(self) -> URIRef:
        pass

    @abstractmethod
    def set_base_iri(self, base_iri: Union[str, URIRef]) -> None:
        pass


class TimestampedSessionIdGenerator(SessionIdGenerator):
    """Generates session identifiers from the current time in milliseconds.

    Changing the base IRI is not synchronized with concurrent calls to
    create_session_id; callers reconfiguring a shared generator must serialize
    that themselves.
    """

    def __init__(self,
                 base_iri: Union[str, URIRef],
                 max_retries: int = DEFAULT_MAX_RETRIES,
                 clock: Optional[Callable[[], int]] = None):
        """
        Args:
            base_iri: Namespace the identifiers are minted under
            max_retries: Plain clock readings tried before falling back to a random suffix
            clock: Millisecond clock, the wall clock if None
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {max_retries}")
        self._base_iri = URIRef(str(base_iri))
        self.max_retries = max_retries
        self._clock = clock or _millis

    def get_base_iri(self) -> URIRef:
        return self._base_iri

    def set_base_iri(self, base_iri: Union[str, URIRef]) -> None:
        self._base_iri = URIRef(str(base_iri))

    def _session_prefix(self) -> str:
        return strip_iri_terminator(self._base_iri) + "/session/"

    def create_session_id(self, exclude: Optional[AbstractSet[URIRef]] = None) -> URIRef:
        session_id = URIRef(f"{self._session_prefix()}{self._clock()}")
        if not exclude:
            return session_id

        attempts = 1
        while session_id in exclude and attempts <= self.max_retries:
            session_id = URIRef(f"{self._session_prefix()}{self._clock()}")
            attempts += 1

        if session_id in exclude:
            logger.debug(f"Session id collided {attempts} times, falling back to random suffix")
        while session_id in exclude:
            session_id = URIRef(f"{self._session_prefix()}{self._clock()}-{uuid.uuid4().hex[:8]}")

        return session_id
