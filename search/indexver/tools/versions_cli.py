"""
Index version CLI tool.

This tool lets operators manage index versions:
- list: Show every version of an indexable type
- show: Show one version
- add: Create a new, inactive version
- activate: Make a version the active one

Usage:
    indexver-versions list post
    indexver-versions add post
    indexver-versions activate post 2
    indexver-versions show post 2 --format json

Invariants:
    - Failures exit with a non-zero code and the error code on stderr
    - JSON output is deterministic (sorted keys)

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format stable for scripting
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional, Sequence

from ..config import ServiceConfig
from ..main import setup_logging
from ..settings import create_settings_store
from ..versioning import VersioningError, VersionRegistry

logger = logging.getLogger(__name__)


class VersionsCLI:
    """CLI commands for index version management.

    Example:
        >>> cli = VersionsCLI(registry)
        >>> await cli.add_version("post")
        {'number': 2, 'active': False, ...}
    """

    def __init__(self, registry: VersionRegistry) -> None:
        self.registry = registry

    async def list_versions(self, slug: str) -> list[dict[str, Any]]:
        """All versions of a type, ordered by number."""
        versions = await self.registry.get_versions(slug)
        return [versions[number].to_dict() for number in sorted(versions)]

    async def show_version(self, slug: str, version_number: int) -> Optional[dict[str, Any]]:
        """One version, or None if it does not exist."""
        version = await self.registry.get_version(slug, version_number)
        return version.to_dict() if version is not None else None

    async def add_version(self, slug: str) -> dict[str, Any]:
        """Create a new version.

        Raises:
            AllocationError: If the version cannot be created
        """
        version = await self.registry.add_version(slug)
        return version.to_dict()

    async def activate_version(self, slug: str, version_number: int) -> dict[str, Any]:
        """Activate a version and return it.

        Raises:
            InvalidVersionError: If the version does not exist
            ActivationError: If the activation cannot be saved
        """
        await self.registry.activate_version(slug, version_number)
        version = await self.registry.get_version(slug, version_number)
        return version.to_dict() if version is not None else {}


def format_versions(versions: list[dict[str, Any]], output_format: str) -> str:
    """Render version dicts as JSON or a text table."""
    if output_format == "json":
        return json.dumps(versions, indent=2, sort_keys=True)

    if not versions:
        return "No versions"

    lines = [f"{'VERSION':<8} {'ACTIVE':<7} {'CREATED':<12} {'ACTIVATED':<12}"]
    for version in versions:
        lines.append(
            f"{_text(version.get('number')):<8} "
            f"{'yes' if version.get('active') is True else 'no':<7} "
            f"{_text(version.get('created_time')):<12} "
            f"{_text(version.get('activated_time')):<12}"
        )
    return "\n".join(lines)


def _text(value: Any) -> str:
    return "-" if value is None else str(value)


async def _run(args: argparse.Namespace, config: ServiceConfig) -> int:
    store = create_settings_store(config.settings)
    await store.connect()
    try:
        registry = VersionRegistry(
            store,
            option_key=config.settings.option_key,
            is_network_mode=config.settings.network_mode,
        )
        cli = VersionsCLI(registry)

        try:
            if args.command == "list":
                versions = await cli.list_versions(args.slug)
            elif args.command == "show":
                version = await cli.show_version(args.slug, args.number)
                if version is None:
                    print(
                        f"Index version {args.number} of '{args.slug}' not found",
                        file=sys.stderr,
                    )
                    return 1
                versions = [version]
            elif args.command == "add":
                versions = [await cli.add_version(args.slug)]
            else:
                versions = [await cli.activate_version(args.slug, args.number)]
        except VersioningError as e:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
            return 1

        print(format_versions(versions, args.format))
        return 0
    finally:
        await store.close()


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the versions tool."""
    parser = argparse.ArgumentParser(description="Search index version management tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("list", "List index versions of a type"),
        ("add", "Create a new, inactive index version"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("slug", help="Indexable type slug")
        sub.add_argument("--format", choices=["text", "json"], default="text")

    for name, help_text in (
        ("show", "Show one index version"),
        ("activate", "Make an index version the active one"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("slug", help="Indexable type slug")
        sub.add_argument("number", type=int, help="Index version number")
        sub.add_argument("--format", choices=["text", "json"], default="text")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for the versions tool."""
    args = build_parser().parse_args(argv)

    try:
        config = ServiceConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)
    sys.exit(asyncio.run(_run(args, config)))


if __name__ == "__main__":
    main()
