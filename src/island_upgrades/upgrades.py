"""Apply an upgrade: gate it, charge for it and write the new level back.

The library never dispatches commands or moves money itself. Payment goes through
a caller-supplied Wallet, and command upgrades return the formatted commands for
the caller to run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from island_upgrades.dimensions import Dimension, DimensionKind
from island_upgrades.manager import UpgradeQuote, UpgradesManager
from island_upgrades.permissions import check_permission_level
from island_upgrades.tiers import format_commands

logger = logging.getLogger(__name__)


class UpgradeStatus(str, Enum):
    UPGRADED = "upgraded"
    DISABLED = "disabled"
    MAXED = "maxed"
    ISLAND_LEVEL_TOO_LOW = "island_level_too_low"
    NO_PERMISSION = "no_permission"
    PAYMENT_FAILED = "payment_failed"


class LevelStore(Protocol):
    def get_progress_level(self, island_id: str, upgrade_name: str) -> int: ...

    def set_progress_level(self, island_id: str, upgrade_name: str, level: int) -> None: ...


class Wallet(Protocol):
    def withdraw(self, player: str, amount: int) -> bool:
        """Take amount from player. Return False if the transaction failed."""
        ...


@dataclass(frozen=True)
class UpgradeContext:
    """Who is upgrading what. Built fresh for every request."""

    island_id: str
    namespace: str | None = None
    player: str = ""
    owner: str = ""
    number_player: int = 1
    permissions: tuple[str, ...] = ()


@dataclass(frozen=True)
class UpgradeResult:
    status: UpgradeStatus
    quote: UpgradeQuote | None = None
    new_level: int | None = None
    commands: tuple[str, ...] = ()
    run_as_console: bool = False

    @property
    def ok(self) -> bool:
        return self.status == UpgradeStatus.UPGRADED


def preview_upgrade(
    manager: UpgradesManager,
    store: LevelStore,
    dimension: Dimension,
    context: UpgradeContext,
    island_level_provider: Callable[[str], int] | None = None,
) -> UpgradeQuote | None:
    """Quote the next upgrade for an island from its stored level."""
    level = store.get_progress_level(context.island_id, dimension.upgrade_name)
    island_level = island_level_provider(context.island_id) if island_level_provider else 0
    return manager.quote(dimension, context.namespace, level, island_level, context.number_player)


def apply_upgrade(
    manager: UpgradesManager,
    store: LevelStore,
    dimension: Dimension,
    context: UpgradeContext,
    wallet: Wallet | None = None,
    island_level_provider: Callable[[str], int] | None = None,
) -> UpgradeResult:
    """Advance dimension by one level for context.island_id.

    Checks run in order: namespace enabled, a next tier exists, island level
    (only when a provider is given), permission level, payment (only when a
    wallet is given). The level is written back only when every check passes.
    """
    if not manager.is_enabled(context.namespace):
        return UpgradeResult(UpgradeStatus.DISABLED)

    level = store.get_progress_level(context.island_id, dimension.upgrade_name)
    island_level = island_level_provider(context.island_id) if island_level_provider else 0
    quote = manager.quote(dimension, context.namespace, level, island_level, context.number_player)
    if quote is None:
        return UpgradeResult(UpgradeStatus.MAXED)

    if island_level_provider is not None and island_level < quote.min_secondary_level:
        return UpgradeResult(UpgradeStatus.ISLAND_LEVEL_TOO_LOW, quote=quote)

    if not check_permission_level(
        context.permissions,
        context.namespace or "",
        dimension.upgrade_name,
        quote.permission_level,
        player=context.player,
    ):
        return UpgradeResult(UpgradeStatus.NO_PERMISSION, quote=quote)

    if wallet is not None and not wallet.withdraw(context.player, quote.cost):
        logger.warning("User money withdrawing failed user: %s cost: %d", context.player, quote.cost)
        return UpgradeResult(UpgradeStatus.PAYMENT_FAILED, quote=quote)

    new_level = level + 1
    store.set_progress_level(context.island_id, dimension.upgrade_name, new_level)
    logger.debug("Island %s upgraded %s to level %d", context.island_id, dimension, new_level)

    commands: tuple[str, ...] = ()
    if dimension.kind == DimensionKind.COMMAND:
        commands = tuple(format_commands(quote.commands, context.player, level, context.owner))
    return UpgradeResult(
        UpgradeStatus.UPGRADED,
        quote=quote,
        new_level=new_level,
        commands=commands,
        run_as_console=quote.run_as_console,
    )
