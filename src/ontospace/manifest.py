"""
Scope manifests: JSON descriptions of the scopes an application starts with.

Example:

    {
      "scopes": [
        {
          "id": "http://example.org/scopes/vehicles",
          "core": ["ontologies/vehicles-core.ttl"],
          "custom": ["ontologies/vehicles-extra.ttl"],
          "activate": true
        }
      ]
    }

Relative file paths are resolved against the manifest's directory.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .errors import InvalidSourceError
from .factory import OntologySpaceFactory
from .registry import ScopeRegistry
from .scope import OntologyScope
from .source import RootOntologySource

logger = logging.getLogger(__name__)


class ScopeDefinition(BaseModel):
    """How to build one ontology scope."""

    id: str = Field(..., description="Identifier of the scope")
    core: List[str] = Field(..., description="Ontology files for the core space, at least one")
    custom: List[str] = Field(default_factory=list, description="Ontology files for the custom space")
    activate: bool = Field(default=True, description="Set the scope up once registered")
    locked: bool = Field(default=False, description="Freeze the scope's space set after loading")

    @field_validator("core")
    @classmethod
    def _core_not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("A scope needs at least one core ontology file")
        return value


class ScopeManifest(BaseModel):
    """A set of scope definitions."""

    scopes: List[ScopeDefinition] = Field(default_factory=list, description="Scopes to build")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ScopeManifest":
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))


def _load_sources(files: List[str], base_dir: Path) -> List[RootOntologySource]:
    sources = []
    for file_name in files:
        path = Path(file_name)
        if not path.is_absolute():
            path = base_dir / path
        sources.append(RootOntologySource.from_file(path))
    return sources


def build_scope(definition: ScopeDefinition, factory: OntologySpaceFactory,
                base_dir: Union[str, Path] = ".") -> OntologyScope:
    """
    Build a scope from its definition. The scope is returned uninitialized.

    Raises:
        InvalidSourceError: If an ontology file cannot be loaded
    """
    base_dir = Path(base_dir)
    core_sources = _load_sources(definition.core, base_dir)
    custom_sources = _load_sources(definition.custom, base_dir)

    scope = OntologyScope(definition.id, core_sources[0], factory,
                          custom_source=custom_sources[0] if custom_sources else None)

    # Extra documents go in before set_up() locks the core space
    for source in core_sources[1:]:
        scope.get_core_space().add_document(source.root_ontology)
    for source in custom_sources[1:]:
        scope.get_custom_space().add_document(source.root_ontology)

    if definition.locked:
        scope.lock()
    return scope


def build_registry(manifest: ScopeManifest, factory: OntologySpaceFactory,
                   base_dir: Union[str, Path] = ".",
                   registry: Optional[ScopeRegistry] = None) -> ScopeRegistry:
    """
    Build and register every scope of a manifest.

    Returns:
        The registry the scopes were added to
    """
    registry = registry if registry is not None else ScopeRegistry()
    for definition in manifest.scopes:
        scope = build_scope(definition, factory, base_dir)
        registry.register_scope(scope, activate=definition.activate)
    logger.info(f"Loaded {len(manifest.scopes)} scope(s) from manifest")
    return registry


def load_registry(manifest_path: Union[str, Path], factory: OntologySpaceFactory) -> ScopeRegistry:
    """Read a manifest file and build its registry."""
    manifest_path = Path(manifest_path)
    if not manifest_path.is_file():
        raise InvalidSourceError(f"Manifest not found: {manifest_path}")
    manifest = ScopeManifest.from_file(manifest_path)
    return build_registry(manifest, factory, manifest_path.parent)
