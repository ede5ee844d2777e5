"""CLI commands for island-upgrades."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from island_upgrades.config import load_config
from island_upgrades.db import Database
from island_upgrades.dimensions import Dimension, DimensionKind
from island_upgrades.display import (
    print_check_result,
    print_error,
    print_levels,
    print_quote,
    print_tiers,
    print_upgrade_result,
)
from island_upgrades.errors import UpgradesError
from island_upgrades.expression import to_formula
from island_upgrades.manager import UpgradeQuote, UpgradesManager
from island_upgrades.settings import Settings
from island_upgrades.tiers import CommandTier, Tier
from island_upgrades.upgrades import UpgradeContext, apply_upgrade

logger = logging.getLogger(__name__)

DIMENSION_CHOICES = [kind.value for kind in DimensionKind]


def _add_dimension_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("dimension", choices=DIMENSION_CHOICES, help="Upgrade dimension")
    parser.add_argument("key", nargs="?", default=None, help="Block, entity, group or command id")
    parser.add_argument("--namespace", "-n", default=None, help="Game mode namespace")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="island-upgrades",
        description="Tiered island upgrades: resolve tiers, quote and apply upgrades",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to the upgrades config (JSON)")
    parser.add_argument("--db", default=None, help="Path to the level database")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("check", help="Load the config and report skipped entries")

    tiers_p = subparsers.add_parser("tiers", help="List the merged tiers of a dimension")
    _add_dimension_args(tiers_p)

    quote_p = subparsers.add_parser("quote", help="Quote the next upgrade at a given level")
    _add_dimension_args(quote_p)
    quote_p.add_argument("--level", "-l", type=int, default=0, help="Current upgrade level")
    quote_p.add_argument("--island-level", type=int, default=0, help="Current island level")
    quote_p.add_argument("--members", type=int, default=0, help="Number of island members")

    upgrade_p = subparsers.add_parser("upgrade", help="Apply the next upgrade to an island")
    _add_dimension_args(upgrade_p)
    upgrade_p.add_argument("--island", "-i", required=True, help="Island id")
    upgrade_p.add_argument("--player", "-p", default="", help="Player performing the upgrade")
    upgrade_p.add_argument("--owner", default="", help="Island owner")
    upgrade_p.add_argument("--island-level", type=int, default=None, help="Check against this island level")
    upgrade_p.add_argument("--members", type=int, default=1, help="Number of island members")
    upgrade_p.add_argument(
        "--permission", action="append", default=[], help="Permission held by the player (repeatable)"
    )

    levels_p = subparsers.add_parser("levels", help="Show stored upgrade levels of an island")
    levels_p.add_argument("--island", "-i", required=True, help="Island id")
    return parser


def setup_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    command = args.command or "check"

    config_path = Path(args.config).expanduser() if args.config else None
    db_path = Path(args.db).expanduser() if args.db else None

    try:
        manager = UpgradesManager.from_config(load_config(config_path))
        if command == "check":
            do_check(manager.settings)
        elif command == "tiers":
            do_tiers(manager, _dimension(args), args.namespace)
        elif command == "quote":
            do_quote(
                manager, _dimension(args), args.namespace,
                level=args.level, island_level=args.island_level, members=args.members,
            )
        elif command == "upgrade":
            db = Database(db_path)
            try:
                context = UpgradeContext(
                    island_id=args.island,
                    namespace=args.namespace,
                    player=args.player,
                    owner=args.owner or args.player,
                    number_player=args.members,
                    permissions=tuple(args.permission),
                )
                do_upgrade(manager, db, _dimension(args), context, island_level=args.island_level)
            finally:
                db.close()
        elif command == "levels":
            db = Database(db_path)
            try:
                do_levels(db, args.island)
            finally:
                db.close()
    except UpgradesError as e:
        logger.debug("Command %s failed", command, exc_info=True)
        print_error(str(e))
        return 1
    return 0


def _dimension(args: argparse.Namespace) -> Dimension:
    try:
        return Dimension.of(args.dimension, args.key)
    except ValueError as e:
        raise UpgradesError(str(e)) from None


def display_name(manager: UpgradesManager, dimension: Dimension) -> str:
    """Configured display name of a command upgrade; other dimensions use their label."""
    if dimension.kind == DimensionKind.COMMAND:
        return manager.settings.command_name(dimension.key)
    return str(dimension)


def quote_to_dict(quote: UpgradeQuote) -> dict:
    return {
        "dimension": str(quote.dimension),
        "tier_id": quote.tier_id,
        "tier_name": quote.tier_name,
        "level": quote.level,
        "max_level": quote.max_level,
        "permission_level": quote.permission_level,
        "min_secondary_level": quote.min_secondary_level,
        "cost": quote.cost,
        "effect": quote.effect,
        "commands": list(quote.commands),
        "run_as_console": quote.run_as_console,
    }


def tier_to_dict(tier: Tier) -> dict:
    """Describe a tier with its formulas written out. Command tiers list their commands."""
    entry = {
        "id": tier.id,
        "max_level": tier.max_level,
        "permission_level": tier.permission_level,
        "upgrade": to_formula(tier.effect),
        "island_min_level": to_formula(tier.min_secondary_level),
        "vault_cost": to_formula(tier.cost),
    }
    if isinstance(tier, CommandTier):
        entry["upgrade"] = "; ".join(tier.commands)
        entry["console"] = tier.run_as_console
    return entry


def do_check(settings: Settings) -> dict:
    """Summarize a loaded configuration. Returns the summary dict."""
    range_tiers = sum(
        len(kinds.get(DimensionKind.RANGE, {}).get(None, {}))
        for kinds in settings.tables.values()
    )
    result = {
        "range_tiers": range_tiers,
        "blocks": len(settings.all_keys(DimensionKind.BLOCK)),
        "entities": len(settings.all_keys(DimensionKind.ENTITY)),
        "groups": len(settings.all_keys(DimensionKind.GROUP)),
        "commands": len(settings.all_keys(DimensionKind.COMMAND)),
        "namespaces": settings.namespaces,
        "disabled": sorted(settings.disabled_namespaces),
        "diagnostics": list(settings.diagnostics),
    }
    print_check_result(result)
    return result


def do_tiers(manager: UpgradesManager, dimension: Dimension, namespace: str | None = None) -> dict:
    """List the merged tiers of a dimension in resolution order."""
    tiers = [tier_to_dict(tier) for tier in manager.tiers(dimension, namespace)]
    name = display_name(manager, dimension)
    print_tiers(name, namespace, tiers)
    return {
        "dimension": str(dimension),
        "name": name,
        "namespace": namespace,
        "max_level": manager.max_level(dimension, namespace),
        "tiers": tiers,
    }


def do_quote(
    manager: UpgradesManager,
    dimension: Dimension,
    namespace: str | None = None,
    level: int = 0,
    island_level: int = 0,
    members: int = 0,
) -> dict:
    """Quote the next upgrade of a dimension from a given level."""
    if not manager.is_enabled(namespace):
        raise UpgradesError(f"Upgrades are disabled in game mode {namespace}.")
    quote = manager.quote(dimension, namespace, level, island_level, members)
    result = {
        "dimension": str(dimension),
        "name": display_name(manager, dimension),
        "namespace": namespace,
        "level": level,
        "quote": quote_to_dict(quote) if quote else None,
    }
    print_quote(result)
    return result


def do_upgrade(
    manager: UpgradesManager,
    db: Database,
    dimension: Dimension,
    context: UpgradeContext,
    island_level: int | None = None,
) -> dict:
    """Apply one upgrade level to an island and store it."""
    provider = (lambda _island_id: island_level) if island_level is not None else None
    outcome = apply_upgrade(manager, db, dimension, context, island_level_provider=provider)
    result: dict = {
        "ok": outcome.ok,
        "status": outcome.status.value,
        "dimension": str(dimension),
        "island_id": context.island_id,
        "new_level": outcome.new_level,
        "commands": list(outcome.commands),
        "run_as_console": outcome.run_as_console,
    }
    if outcome.quote is not None:
        result["effect"] = outcome.quote.effect
        result["cost"] = outcome.quote.cost
        result["min_secondary_level"] = outcome.quote.min_secondary_level
    print_upgrade_result(result)
    return result


def do_levels(db: Database, island_id: str) -> dict:
    """Show every stored upgrade level of an island."""
    levels = db.get_all_levels(island_id)
    print_levels(island_id, levels)
    return {"island_id": island_id, "levels": levels}


if __name__ == "__main__":
    sys.exit(main())
