#!/usr/bin/env python3
"""
Command-line tool for inspecting ontology scopes defined in a scope manifest.

HOW TO RUN:
The virtual environment .venv should be activated before running the script.

From the src directory, run:
    python ontospace_cli.py status <manifest.json>
    python ontospace_cli.py check <manifest.json>
    python ontospace_cli.py imports <manifest.json>
    python ontospace_cli.py lookup <manifest.json> <scope_id> <text> [--field IRI] [--lang cs]

The manifest lists scopes and the ontology files of their core and custom
spaces (see ontospace.manifest). Scopes are built in memory on every run.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from rdflib import RDFS

from ontospace import (
    DefaultOntologySpaceFactory,
    OntologySpaceError,
    OntospaceConfig,
    ScopeRegistry,
)
from ontospace.manifest import load_registry
from ontospace.search import GraphEntitySearchProvider, active_space_supplier

logger = logging.getLogger("ontospace_cli")


def cmd_status(registry: ScopeRegistry, args: argparse.Namespace) -> int:
    """Print the status of every scope as JSON."""
    statuses = [status.model_dump(mode="json") for status in registry.get_status()]
    print(json.dumps(statuses, indent=2))
    return 0


def cmd_check(registry: ScopeRegistry, args: argparse.Namespace) -> int:
    """Health check: every active scope must have a locked core space."""
    unhealthy = []
    for status in registry.get_status():
        healthy = status.healthy
        marker = "✓" if healthy else "✗"
        print(f"{marker} {status.scope_id} ({status.state.value})")
        if not healthy:
            unhealthy.append(status.scope_id)
    return 1 if unhealthy else 0


def cmd_imports(registry: ScopeRegistry, args: argparse.Namespace) -> int:
    """Synchronize every active scope and print the resulting import structure."""
    for scope in registry.get_active_scopes():
        scope.synchronize_spaces()
        print(scope.id)
        spaces = [scope.get_core_space(), scope.get_custom_space()] + scope.get_session_spaces()
        for space in spaces:
            if space is None:
                continue
            target = space.get_import_target()
            target_id = target.space_id if target is not None else "-"
            print(f"  {space.space_type.value:8} {space.space_id} -> {target_id}")
    return 0


def cmd_lookup(registry: ScopeRegistry, args: argparse.Namespace) -> int:
    """Look entities up by label in one scope."""
    scope = registry.get_scope(args.scope_id)
    if scope is None:
        print(f"Error: unknown scope {args.scope_id}")
        return 1

    provider = GraphEntitySearchProvider(active_space_supplier(scope))
    results = provider.lookup(args.field, [args.text], languages=args.lang or (), limit=args.limit)
    if not results:
        print("No entities found")
    for entity in results:
        labels = ", ".join(entity.get_values(args.field))
        print(f"{entity.id}  {labels}")
    return 0


COMMANDS = {
    "status": cmd_status,
    "check": cmd_check,
    "imports": cmd_imports,
    "lookup": cmd_lookup,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect ontology scopes defined in a scope manifest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the state of all scopes
  python ontospace_cli.py status scopes.json

  # Exit with 1 if any scope is not healthy
  python ontospace_cli.py check scopes.json

  # Find entities labelled "vehicle" in a scope
  python ontospace_cli.py lookup scopes.json http://example.org/scopes/vehicles vehicle --lang en
        """
    )
    parser.add_argument("--log-level", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (defaults to ONTOSPACE_LOG_LEVEL or WARNING)")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name in ("status", "check", "imports"):
        sub = subparsers.add_parser(name, help=COMMANDS[name].__doc__)
        sub.add_argument("manifest", help="Path to the scope manifest JSON file")

    lookup = subparsers.add_parser("lookup", help=cmd_lookup.__doc__)
    lookup.add_argument("manifest", help="Path to the scope manifest JSON file")
    lookup.add_argument("scope_id", help="Identifier of the scope to search")
    lookup.add_argument("text", help="Text to look for")
    lookup.add_argument("--field", default=str(RDFS.label), help="Predicate to match on (default rdfs:label)")
    lookup.add_argument("--lang", action="append", help="Accepted language tag, may be repeated")
    lookup.add_argument("--limit", type=int, default=10, help="Maximum number of results")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = OntospaceConfig.from_env()
    if args.log_level:
        config = config.model_copy(update={"log_level": args.log_level})
    logging.basicConfig(level=config.log_level, format="%(levelname)s: %(message)s")

    try:
        registry = load_registry(args.manifest, DefaultOntologySpaceFactory())
        return COMMANDS[args.command](registry, args)
    except (OntologySpaceError, ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
