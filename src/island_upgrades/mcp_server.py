"""MCP server for island-upgrades.

Exposes tier resolution and upgrade quotes as MCP tools.
Run via: python3 -m island_upgrades.mcp_server
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from island_upgrades.dimensions import Dimension, DimensionKind
from island_upgrades.errors import UpgradesError

mcp = FastMCP(name="island-upgrades")


def _get_manager():
    from island_upgrades.config import load_config
    from island_upgrades.manager import UpgradesManager
    return UpgradesManager.from_config(load_config())


def _dimension(dimension: str, key: str) -> Dimension | dict[str, Any]:
    try:
        return Dimension.of(dimension, key or None)
    except ValueError:
        valid = ", ".join(kind.value for kind in DimensionKind)
        return {"error": f"Invalid dimension. Must be one of: {valid}, with a key unless it is range"}


def _namespace(namespace: str) -> str | None:
    return namespace or None


@mcp.tool()
def get_quote(
    dimension: str,
    key: str = "",
    level: int = 0,
    island_level: int = 0,
    members: int = 0,
    namespace: str = "",
) -> dict[str, Any]:
    """Quote the next upgrade of a dimension: tier, cost, effect and island level required.

    dimension: range, block, entity, group or command.
    key: material, entity type, group name or command id (empty for range).
    level: the island's current level in this dimension.
    """
    from island_upgrades.cli import quote_to_dict

    dim = _dimension(dimension, key)
    if isinstance(dim, dict):
        return dim
    manager = _get_manager()
    ns = _namespace(namespace)
    if not manager.is_enabled(ns):
        return {"error": f"Upgrades are disabled in game mode {ns}."}
    try:
        quote = manager.quote(dim, ns, level, island_level, members)
    except UpgradesError as e:
        return {"error": str(e)}
    if quote is None:
        return {"dimension": str(dim), "level": level, "maxed": True}
    return {"maxed": False, **quote_to_dict(quote)}


@mcp.tool()
def get_tiers(dimension: str, key: str = "", namespace: str = "") -> dict[str, Any]:
    """List every tier of a dimension after merging game mode overrides, in resolution order."""
    from island_upgrades.cli import tier_to_dict

    dim = _dimension(dimension, key)
    if isinstance(dim, dict):
        return dim
    manager = _get_manager()
    ns = _namespace(namespace)
    tiers = [tier_to_dict(tier) for tier in manager.tiers(dim, ns)]
    if not tiers:
        return {"error": f"No tiers configured for {dim}."}
    return {
        "dimension": str(dim),
        "namespace": ns,
        "max_level": manager.max_level(dim, ns),
        "tiers": tiers,
    }


@mcp.tool()
def get_max_level(dimension: str, key: str = "", namespace: str = "") -> dict[str, Any]:
    """Get the highest configured level of a dimension."""
    dim = _dimension(dimension, key)
    if isinstance(dim, dict):
        return dim
    manager = _get_manager()
    ns = _namespace(namespace)
    return {
        "dimension": str(dim),
        "namespace": ns,
        "max_level": manager.max_level(dim, ns),
        "handled": manager.handles(dim, ns),
    }


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
