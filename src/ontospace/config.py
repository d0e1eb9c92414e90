"""
Configuration for the ontology scope and space management module.

Values can be given explicitly or read from the environment (and a .env file)
with OntospaceConfig.from_env().
"""

import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

from .identifiers import DEFAULT_MAX_RETRIES, TimestampedSessionIdGenerator

DEFAULT_BASE_IRI = "https://example.org/ontospace"
DEFAULT_EMBEDDING_MODEL = "paraphrase-multilingual-MiniLM-L12-v2"


class OntospaceConfig(BaseModel):
    """Settings shared by scopes, session id generation and entity search."""

    base_iri: str = Field(default=DEFAULT_BASE_IRI, description="Namespace session identifiers are minted under")
    session_id_max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0,
                                        description="Clock readings tried before adding a random suffix")
    log_level: str = Field(default="WARNING", description="Logging level for command line tools")
    embedding_model: str = Field(default=DEFAULT_EMBEDDING_MODEL,
                                 description="Sentence transformer model for semantic entity search")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls) -> "OntospaceConfig":
        """Build the configuration from ONTOSPACE_* environment variables."""
        load_dotenv(find_dotenv(usecwd=True))
        values = {}
        env_names = {
            "base_iri": "ONTOSPACE_BASE_IRI",
            "session_id_max_retries": "ONTOSPACE_SESSION_ID_MAX_RETRIES",
            "log_level": "ONTOSPACE_LOG_LEVEL",
            "embedding_model": "ONTOSPACE_EMBEDDING_MODEL",
        }
        for field_name, env_name in env_names.items():
            value = os.getenv(env_name)
            if value:
                values[field_name] = value
        return cls.model_validate(values)

    def create_session_id_generator(self) -> TimestampedSessionIdGenerator:
        return TimestampedSessionIdGenerator(self.base_iri, max_retries=self.session_id_max_retries)
