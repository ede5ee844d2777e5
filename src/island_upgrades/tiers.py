"""Upgrade tiers: one level bracket of a dimension with its three formulas."""
from __future__ import annotations

from dataclasses import dataclass

from island_upgrades.expression import Constant, Expression

LEVEL = "level"
ISLAND_LEVEL = "islandLevel"
NUMBER_PLAYER = "numberPlayer"
STANDARD_VARIABLES: frozenset[str] = frozenset({LEVEL, ISLAND_LEVEL, NUMBER_PLAYER})

# max_level sentinel: the tier has no ceiling
UNBOUNDED = -1

ZERO = Constant(0.0)


def bind_variables(level: float, island_level: float = 0, number_player: float = 0) -> dict[str, float]:
    """Build the variable mapping formulas are evaluated against."""
    return {
        LEVEL: float(level),
        ISLAND_LEVEL: float(island_level),
        NUMBER_PLAYER: float(number_player),
    }


def format_commands(templates: tuple[str, ...] | list[str], player: str, level: int, owner: str) -> list[str]:
    """Substitute [player], [level] and [owner] in each command template."""
    return [
        cmd.replace("[player]", player).replace("[level]", str(level)).replace("[owner]", owner)
        for cmd in templates
    ]


@dataclass(frozen=True)
class Tier:
    id: str
    tier_name: str
    effect: Expression = ZERO
    min_secondary_level: Expression = ZERO
    cost: Expression = ZERO
    max_level: int = UNBOUNDED
    permission_level: int = 0

    @property
    def is_unbounded(self) -> bool:
        return self.max_level < 0

    def calculate_effect(self, level: float, island_level: float = 0, number_player: float = 0) -> float:
        return self.effect.eval(bind_variables(level, island_level, number_player))

    def calculate_min_secondary_level(
        self, level: float, island_level: float = 0, number_player: float = 0
    ) -> float:
        return self.min_secondary_level.eval(bind_variables(level, island_level, number_player))

    def calculate_cost(self, level: float, island_level: float = 0, number_player: float = 0) -> float:
        return self.cost.eval(bind_variables(level, island_level, number_player))


@dataclass(frozen=True)
class CommandTier(Tier):
    """A tier whose upgrade runs server commands instead of raising a limit."""

    commands: tuple[str, ...] = ()
    run_as_console: bool = False

    def format_commands(self, player: str, level: int, owner: str) -> list[str]:
        return format_commands(self.commands, player, level, owner)
