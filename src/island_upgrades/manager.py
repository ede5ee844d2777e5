"""Tier resolution and upgrade quotes.

UpgradesManager merges the default and per-namespace tier tables, picks the tier
covering a current level and evaluates its formulas. It holds one immutable
Settings snapshot; reload() swaps in a new one without disturbing in-flight
queries.
"""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Mapping

from island_upgrades.catalog import DEFAULT_CATALOG, Catalog
from island_upgrades.dimensions import Dimension, DimensionKind
from island_upgrades.settings import Settings, TierTable, build_settings
from island_upgrades.tiers import CommandTier, Tier

logger = logging.getLogger(__name__)

INT_MAX = 2**31 - 1
INT_MIN = -(2**31)


@dataclass(frozen=True)
class UpgradeQuote:
    """The next tier for a dimension and what advancing to it costs and gives."""

    dimension: Dimension
    tier_id: str
    tier_name: str
    level: int
    max_level: int
    permission_level: int
    min_secondary_level: int
    cost: int
    effect: int
    commands: tuple[str, ...] = ()
    run_as_console: bool = False


def truncate(value: float) -> int:
    """Convert toward zero. NaN becomes 0, infinities clamp to the 32-bit range."""
    if math.isnan(value):
        return 0
    if value >= INT_MAX:
        return INT_MAX
    if value <= INT_MIN:
        return INT_MIN
    return int(value)


def merge_tables(default: TierTable | None, override: TierTable | None) -> dict[str, Tier]:
    """Union of both tables; override wins on identical tier ids.

    Default order is kept, overridden ids stay in place and override-only ids are
    appended, so the result order is deterministic for a fixed configuration.
    """
    merged: dict[str, Tier] = dict(default or {})
    merged.update(override or {})
    return merged


def sort_tiers(tiers: list[Tier]) -> list[Tier]:
    """Stable sort by max_level; unbounded tiers (-1) come first."""
    return sorted(tiers, key=lambda t: t.max_level)


def select_tier(tiers: list[Tier], current_level: int) -> Tier | None:
    """Pick the tier covering current_level from a sorted tier list.

    The first bounded tier whose max_level >= current_level wins. When no bounded
    tier covers the level, the first unbounded tier is the fallback. None means
    the dimension is fully upgraded.
    """
    fallback: Tier | None = None
    for tier in tiers:
        if tier.is_unbounded:
            if fallback is None:
                fallback = tier
            continue
        if current_level <= tier.max_level:
            return tier
    return fallback


class UpgradesManager:
    """Answer tier and quote queries against the current Settings snapshot."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._reload_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Mapping, catalog: Catalog = DEFAULT_CATALOG) -> UpgradesManager:
        return cls(build_settings(config, catalog))

    @property
    def settings(self) -> Settings:
        return self._settings

    def reload(self, config: Mapping | Settings, catalog: Catalog = DEFAULT_CATALOG) -> Settings:
        """Replace the snapshot. The new Settings is fully built before the swap."""
        settings = config if isinstance(config, Settings) else build_settings(config, catalog)
        with self._reload_lock:
            self._settings = settings
        logger.info("Upgrade settings reloaded (%d diagnostic(s))", len(settings.diagnostics))
        return settings

    def is_enabled(self, namespace: str | None) -> bool:
        return self._settings.is_enabled(namespace)

    def tiers(self, dimension: Dimension, namespace: str | None = None) -> list[Tier]:
        """All tiers for dimension in namespace, merged with defaults and sorted."""
        return self._tiers(self._settings, dimension, namespace)

    @staticmethod
    def _tiers(settings: Settings, dimension: Dimension, namespace: str | None) -> list[Tier]:
        default = settings.table(dimension)
        override = settings.table(dimension, namespace) if namespace is not None else None
        if not override:
            return sort_tiers(list((default or {}).values()))
        return sort_tiers(list(merge_tables(default, override).values()))

    def keys(self, kind: DimensionKind, namespace: str | None = None) -> list[str]:
        """Keys of a keyed dimension kind visible in namespace (defaults included)."""
        settings = self._settings
        keys = settings.keys(kind)
        if namespace is not None:
            keys |= settings.keys(kind, namespace)
        return sorted(keys)

    def handles(self, dimension: Dimension, namespace: str | None = None) -> bool:
        """True if the dimension's limit is governed by configured upgrades."""
        return bool(self.tiers(dimension, namespace))

    def resolve_tier(self, dimension: Dimension, namespace: str | None, current_level: int) -> Tier | None:
        return select_tier(self.tiers(dimension, namespace), current_level)

    def max_level(self, dimension: Dimension, namespace: str | None = None) -> int:
        return self._settings.max_level(dimension, namespace)

    def tier_name(self, dimension: Dimension, namespace: str | None, current_level: int) -> str | None:
        tier = self.resolve_tier(dimension, namespace, current_level)
        return tier.tier_name if tier else None

    def permission_level(self, dimension: Dimension, namespace: str | None, current_level: int) -> int:
        tier = self.resolve_tier(dimension, namespace, current_level)
        return tier.permission_level if tier else 0

    def command_list(
        self,
        dimension: Dimension,
        namespace: str | None,
        current_level: int,
        player: str,
        owner: str,
    ) -> list[str]:
        """Commands to run for the next command upgrade, with tokens substituted."""
        tier = self.resolve_tier(dimension, namespace, current_level)
        if not isinstance(tier, CommandTier):
            return []
        return tier.format_commands(player, current_level, owner)

    def is_console(self, dimension: Dimension, namespace: str | None, current_level: int) -> bool:
        tier = self.resolve_tier(dimension, namespace, current_level)
        return isinstance(tier, CommandTier) and tier.run_as_console

    def quote(
        self,
        dimension: Dimension,
        namespace: str | None,
        current_level: int,
        island_level: int = 0,
        number_player: int = 0,
    ) -> UpgradeQuote | None:
        """Evaluate the next tier's formulas. None means fully upgraded.

        EvalError from a formula propagates: a wrong number is worse than none.
        """
        settings = self._settings
        tier = select_tier(self._tiers(settings, dimension, namespace), current_level)
        if tier is None:
            return None
        args = (current_level, island_level, number_player)
        commands: tuple[str, ...] = ()
        run_as_console = False
        if isinstance(tier, CommandTier):
            commands = tier.commands
            run_as_console = tier.run_as_console
        return UpgradeQuote(
            dimension=dimension,
            tier_id=tier.id,
            tier_name=tier.tier_name,
            level=current_level,
            max_level=settings.max_level(dimension, namespace),
            permission_level=tier.permission_level,
            min_secondary_level=truncate(tier.calculate_min_secondary_level(*args)),
            cost=truncate(tier.calculate_cost(*args)),
            effect=truncate(tier.calculate_effect(*args)),
            commands=commands,
            run_as_console=run_as_console,
        )
