"""Upgrade dimensions: independently progressing upgrade axes."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DimensionKind(str, Enum):
    RANGE = "range"
    BLOCK = "block"
    ENTITY = "entity"
    GROUP = "group"
    COMMAND = "command"


@dataclass(frozen=True)
class Dimension:
    """One dimension: a kind plus its key (material, entity type, group or command id).

    The range dimension has no key. Use the named constructors rather than the
    class directly so keys are normalized.
    """

    kind: DimensionKind
    key: str | None = None

    def __post_init__(self) -> None:
        if self.kind == DimensionKind.RANGE and self.key is not None:
            raise ValueError("The range dimension takes no key")
        if self.kind != DimensionKind.RANGE and not self.key:
            raise ValueError(f"The {self.kind.value} dimension requires a key")

    @classmethod
    def range(cls) -> Dimension:
        return cls(DimensionKind.RANGE)

    @classmethod
    def block(cls, material: str) -> Dimension:
        return cls(DimensionKind.BLOCK, material.upper())

    @classmethod
    def entity(cls, entity_type: str) -> Dimension:
        return cls(DimensionKind.ENTITY, entity_type.upper())

    @classmethod
    def group(cls, name: str) -> Dimension:
        return cls(DimensionKind.GROUP, name)

    @classmethod
    def command(cls, command_id: str) -> Dimension:
        return cls(DimensionKind.COMMAND, command_id)

    @classmethod
    def of(cls, kind: DimensionKind | str, key: str | None = None) -> Dimension:
        """Build a dimension from a kind name, e.g. from CLI arguments."""
        kind = DimensionKind(kind)
        if kind == DimensionKind.RANGE:
            return cls.range()
        if not key:
            raise ValueError(f"The {kind.value} dimension requires a key")
        return {
            DimensionKind.BLOCK: cls.block,
            DimensionKind.ENTITY: cls.entity,
            DimensionKind.GROUP: cls.group,
            DimensionKind.COMMAND: cls.command,
        }[kind](key)

    @property
    def upgrade_name(self) -> str:
        """Key under which the level store keeps this dimension's progress."""
        if self.kind == DimensionKind.RANGE:
            return "RangeUpgrade"
        if self.kind == DimensionKind.COMMAND:
            return f"command-{self.key}"
        return f"LimitsUpgrade-{self.key}"

    def __str__(self) -> str:
        if self.key is None:
            return self.kind.value
        return f"{self.kind.value}:{self.key}"
