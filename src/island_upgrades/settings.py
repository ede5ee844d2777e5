"""Build tier tables from an upgrades configuration tree.

The configuration is a nested mapping (usually loaded from JSON):

    {
      "catalog": {"blocks": ["COPPER_BLOCK"], "items": [], "entity-types": ["FROG"]},
      "disabled-gamemodes": ["AcidIsland"],
      "range-upgrade": {"tier1": {"max-level": 5, "upgrade": "5", "vault-cost": "[level]*100"}},
      "block-limits-upgrade": {"HOPPER": {"tier1": {...}}},
      "entity-icon": {"COW": "LEATHER"},
      "entity-limits-upgrade": {"COW": {"tier1": {...}}},
      "entity-group-icon": {"animals": "WHEAT"},
      "entity-group-limits-upgrade": {"animals": {"tier1": {...}}},
      "command-icon": {"fly": "FEATHER"},
      "command-upgrade": {"fly": {"name": "Flight", "tier1": {"max-level": 1, "command": [...]}}},
      "gamemodes": {"BSkyBlock": {"range-upgrade": {...}, ...}}
    }

Bad entries are logged, recorded in Settings.diagnostics and skipped; the rest of
the configuration still loads.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from island_upgrades.catalog import DEFAULT_CATALOG, Catalog
from island_upgrades.dimensions import Dimension, DimensionKind
from island_upgrades.errors import ConfigError
from island_upgrades.expression import Expression, parse
from island_upgrades.tiers import STANDARD_VARIABLES, ZERO, CommandTier, Tier

logger = logging.getLogger(__name__)

SECTIONS: dict[DimensionKind, str] = {
    DimensionKind.RANGE: "range-upgrade",
    DimensionKind.BLOCK: "block-limits-upgrade",
    DimensionKind.ENTITY: "entity-limits-upgrade",
    DimensionKind.GROUP: "entity-group-limits-upgrade",
    DimensionKind.COMMAND: "command-upgrade",
}

ENTITY_ICON_SECTION = "entity-icon"
GROUP_ICON_SECTION = "entity-group-icon"
COMMAND_ICON_SECTION = "command-icon"
GAMEMODES_SECTION = "gamemodes"
DISABLED_SECTION = "disabled-gamemodes"
CATALOG_SECTION = "catalog"
CATALOG_LISTS = ("blocks", "items", "entity-types")

# Inside a command-upgrade entry this key is the display name, not a tier
COMMAND_NAME_KEY = "name"

TierTable = Mapping[str, Tier]


@dataclass(frozen=True)
class Settings:
    """Read-only snapshot of every tier table, built once per (re)load.

    tables maps namespace (None for the defaults) -> dimension kind -> key
    (None for range) -> tier id -> Tier. max_levels maps (kind, key, namespace)
    to the highest max-level seen while loading.
    """

    tables: Mapping[str | None, Mapping[DimensionKind, Mapping[str | None, TierTable]]]
    max_levels: Mapping[tuple[DimensionKind, str | None, str | None], int]
    disabled_namespaces: frozenset[str] = frozenset()
    entity_icons: Mapping[str, str] = field(default_factory=dict)
    group_icons: Mapping[str, str] = field(default_factory=dict)
    command_icons: Mapping[str, str] = field(default_factory=dict)
    command_names: Mapping[str, str] = field(default_factory=dict)
    diagnostics: tuple[str, ...] = ()

    @property
    def namespaces(self) -> list[str]:
        return sorted(ns for ns in self.tables if ns is not None)

    def table(self, dimension: Dimension, namespace: str | None = None) -> TierTable | None:
        """Return the tier table configured for dimension in namespace, or None."""
        return self.tables.get(namespace, {}).get(dimension.kind, {}).get(dimension.key)

    def keys(self, kind: DimensionKind, namespace: str | None = None) -> set[str]:
        """Keys configured for kind in namespace only (no fallback to defaults)."""
        return {k for k in self.tables.get(namespace, {}).get(kind, {}) if k is not None}

    def all_keys(self, kind: DimensionKind) -> set[str]:
        """Keys configured for kind in the defaults or any namespace."""
        result: set[str] = set()
        for ns in self.tables:
            result |= self.keys(kind, ns)
        return result

    def max_level(self, dimension: Dimension, namespace: str | None = None) -> int:
        """Highest configured max-level, from the namespace if it has one, else defaults."""
        if namespace is not None:
            value = self.max_levels.get((dimension.kind, dimension.key, namespace))
            if value is not None:
                return value
        return self.max_levels.get((dimension.kind, dimension.key, None), 0)

    def command_name(self, command_id: str) -> str:
        return self.command_names.get(command_id, command_id)

    def is_enabled(self, namespace: str | None) -> bool:
        return namespace not in self.disabled_namespaces


def _as_formula(value: Any, field_name: str) -> Expression:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ConfigError(f"'{field_name}' must be a formula string, got {value!r}")
    expression = parse(str(value))
    unknown = expression.variables() - STANDARD_VARIABLES
    if unknown:
        raise ConfigError(f"'{field_name}' uses unknown variable(s): {', '.join(sorted(unknown))}")
    return expression


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{field_name}' must be an integer, got {value!r}")
    return value


def build_tier(tier_id: str, section: Any, command: bool = False) -> Tier:
    """Build one Tier (or CommandTier) from its configuration section.

    Raises ConfigError (or its subclass ParseError) if the section is invalid.
    """
    if not isinstance(section, Mapping):
        raise ConfigError(f"Tier {tier_id} must be a section, got {section!r}")
    if "max-level" not in section:
        raise ConfigError(f"Tier {tier_id} is missing 'max-level'")
    max_level = _as_int(section["max-level"], "max-level")

    if command:
        effect = ZERO
    elif "upgrade" in section:
        effect = _as_formula(section["upgrade"], "upgrade")
    else:
        raise ConfigError(f"Tier {tier_id} is missing 'upgrade'")

    min_secondary_level = _as_formula(section.get("island-min-level", "0"), "island-min-level")
    cost = _as_formula(section.get("vault-cost", "0"), "vault-cost")
    permission_level = _as_int(section.get("permission-level", 0), "permission-level")

    if not command:
        return Tier(
            id=tier_id,
            tier_name=tier_id,
            effect=effect,
            min_secondary_level=min_secondary_level,
            cost=cost,
            max_level=max_level,
            permission_level=permission_level,
        )

    commands = section.get("command", [])
    if isinstance(commands, str):
        commands = [commands]
    if not isinstance(commands, list) or not all(isinstance(c, str) for c in commands):
        raise ConfigError(f"Tier {tier_id}: 'command' must be a list of strings")
    console = section.get("console", False)
    return CommandTier(
        id=tier_id,
        tier_name=tier_id,
        effect=effect,
        min_secondary_level=min_secondary_level,
        cost=cost,
        max_level=max_level,
        permission_level=permission_level,
        commands=tuple(commands),
        run_as_console=console if isinstance(console, bool) else False,
    )


class _SettingsBuilder:
    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog
        self.tables: dict[str | None, dict[DimensionKind, dict[str | None, dict[str, Tier]]]] = {}
        self.max_levels: dict[tuple[DimensionKind, str | None, str | None], int] = {}
        self.entity_icons: dict[str, str] = {}
        self.group_icons: dict[str, str] = {}
        self.command_icons: dict[str, str] = {}
        self.command_names: dict[str, str] = {}
        self.diagnostics: list[str] = []

    def skip(self, message: str) -> None:
        logger.warning("Config: %s", message)
        self.diagnostics.append(message)

    def section(self, parent: Mapping, name: str, where: str = "") -> Mapping | None:
        section = parent.get(name)
        if section is None:
            return None
        if not isinstance(section, Mapping):
            self.skip(f"{where}{name} must be a section. Skipping...")
            return None
        return section

    def extend_catalog(self, config: Mapping) -> None:
        """Add the names listed in the optional catalog section to the known names."""
        section = self.section(config, CATALOG_SECTION)
        if section is None:
            return
        names: dict[str, tuple[str, ...]] = {}
        for list_name in CATALOG_LISTS:
            values = section.get(list_name, [])
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                self.skip(f"{CATALOG_SECTION}.{list_name} must be a list of names. Ignoring...")
                values = []
            names[list_name] = tuple(values)
        self.catalog = self.catalog.extended(
            blocks=names["blocks"],
            items=names["items"],
            entity_types=names["entity-types"],
        )

    def load_icons(self, config: Mapping) -> None:
        entity_icons = self.section(config, ENTITY_ICON_SECTION) or {}
        for entity, material in entity_icons.items():
            entity_type = self.catalog.entity_type(str(entity))
            if entity_type is None:
                self.skip(f"EntityType {entity} is not valid in icon")
            elif not self.catalog.is_material(str(material)):
                self.skip(f"Material {material} is not a valid material")
            else:
                self.entity_icons[entity_type] = str(material)

        for target, section_name in (
            (self.group_icons, GROUP_ICON_SECTION),
            (self.command_icons, COMMAND_ICON_SECTION),
        ):
            for name, material in (self.section(config, section_name) or {}).items():
                if not self.catalog.is_material(str(material)):
                    self.skip(f"Material {material} is not a valid material")
                else:
                    target[str(name)] = str(material)

    def _validate_key(self, kind: DimensionKind, key: str) -> str | None:
        """Return the normalized key, or None (after logging) if it must be skipped."""
        if kind == DimensionKind.BLOCK:
            if not self.catalog.is_block(key):
                self.skip(f"Material {key} is not a valid block. Skipping...")
                return None
            return key
        if kind == DimensionKind.ENTITY:
            entity_type = self.catalog.entity_type(key)
            if entity_type is None:
                self.skip(f"Entity {key} is not a valid entity. Skipping...")
                return None
            if entity_type not in self.entity_icons:
                self.skip(f"Entity {key} is missing a corresponding icon. Skipping...")
                return None
            return entity_type
        if kind == DimensionKind.COMMAND and key not in self.command_icons:
            self.skip(f"Command {key} is missing a corresponding icon. Skipping...")
            return None
        return key

    def _record_max(self, kind: DimensionKind, key: str | None, namespace: str | None, level: int) -> None:
        # only loaded finite tiers create a counter; a missing one falls back to defaults
        if level < 0:
            return
        counter = (kind, key, namespace)
        self.max_levels[counter] = max(self.max_levels.get(counter, 0), level)

    def load_tier_table(
        self,
        kind: DimensionKind,
        key: str | None,
        section: Mapping,
        namespace: str | None,
    ) -> dict[str, Tier]:
        """Load every tier in section into a table and track its max level."""
        table: dict[str, Tier] = {}
        where = f"{namespace}/" if namespace else ""
        name = None
        for tier_id, tier_section in section.items():
            tier_id = str(tier_id)
            if kind == DimensionKind.COMMAND and tier_id == COMMAND_NAME_KEY:
                name = str(tier_section)
                continue
            try:
                tier = build_tier(tier_id, tier_section, command=kind == DimensionKind.COMMAND)
            except ConfigError as e:
                label = f"{kind.value}:{key}" if key else kind.value
                self.skip(f"{where}{label} tier {tier_id}: {e}. Skipping...")
                continue
            self._record_max(kind, key, namespace, tier.max_level)
            table[tier_id] = tier

        if kind == DimensionKind.COMMAND and key is not None:
            name = name or key
            if key not in self.command_names or name != key:
                self.command_names[key] = name
        return table

    def load_dimension(self, kind: DimensionKind, section: Mapping, namespace: str | None) -> None:
        kinds = self.tables.setdefault(namespace, {})
        if kind == DimensionKind.RANGE:
            kinds[kind] = {None: self.load_tier_table(kind, None, section, namespace)}
            return

        keyed = kinds.setdefault(kind, {})
        where = f"{namespace}/" if namespace else ""
        for raw_key, key_section in section.items():
            key = self._validate_key(kind, str(raw_key))
            if key is None:
                continue
            if not isinstance(key_section, Mapping):
                self.skip(f"{where}{kind.value}:{key} must be a section. Skipping...")
                continue
            keyed[key] = self.load_tier_table(kind, key, key_section, namespace)

    def load_upgrades(self, parent: Mapping, namespace: str | None) -> None:
        where = f"{GAMEMODES_SECTION}.{namespace}." if namespace else ""
        for kind, section_name in SECTIONS.items():
            section = self.section(parent, section_name, where)
            if section is not None:
                self.load_dimension(kind, section, namespace)

    def freeze(self, disabled: frozenset[str]) -> Settings:
        tables = MappingProxyType({
            ns: MappingProxyType({
                kind: MappingProxyType({key: MappingProxyType(t) for key, t in keyed.items()})
                for kind, keyed in kinds.items()
            })
            for ns, kinds in self.tables.items()
        })
        return Settings(
            tables=tables,
            max_levels=MappingProxyType(dict(self.max_levels)),
            disabled_namespaces=disabled,
            entity_icons=MappingProxyType(self.entity_icons),
            group_icons=MappingProxyType(self.group_icons),
            command_icons=MappingProxyType(self.command_icons),
            command_names=MappingProxyType(self.command_names),
            diagnostics=tuple(self.diagnostics),
        )


def build_settings(config: Mapping, catalog: Catalog = DEFAULT_CATALOG) -> Settings:
    """Parse a configuration tree into a Settings snapshot.

    Raises ConfigError only if config itself is not a mapping; individual bad
    entries are skipped and listed in Settings.diagnostics.
    """
    if not isinstance(config, Mapping):
        raise ConfigError(f"Upgrades configuration must be a mapping, got {type(config).__name__}")

    builder = _SettingsBuilder(catalog)
    builder.extend_catalog(config)
    builder.load_icons(config)
    builder.tables[None] = {}
    builder.load_upgrades(config, None)

    gamemodes = builder.section(config, GAMEMODES_SECTION) or {}
    for namespace, ns_section in gamemodes.items():
        namespace = str(namespace)
        if not isinstance(ns_section, Mapping):
            builder.skip(f"{GAMEMODES_SECTION}.{namespace} must be a section. Skipping...")
            continue
        builder.tables.setdefault(namespace, {})
        builder.load_upgrades(ns_section, namespace)

    disabled = config.get(DISABLED_SECTION, [])
    if not isinstance(disabled, list):
        builder.skip(f"{DISABLED_SECTION} must be a list. Ignoring...")
        disabled = []

    settings = builder.freeze(frozenset(str(ns) for ns in disabled))
    logger.debug(
        "Loaded upgrade settings: %d namespace(s), %d diagnostic(s)",
        len(settings.namespaces),
        len(settings.diagnostics),
    )
    return settings
