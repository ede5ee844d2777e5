"""Known material and entity names used to validate upgrade configuration."""
from __future__ import annotations

from dataclasses import dataclass

BLOCKS: frozenset[str] = frozenset({
    "ACACIA_LOG", "ANVIL", "BARREL", "BEACON", "BEEHIVE", "BIRCH_LOG", "BLAST_FURNACE",
    "BOOKSHELF", "BREWING_STAND", "CACTUS", "CAMPFIRE", "CHEST", "CHORUS_FLOWER",
    "COBBLESTONE", "COMPARATOR", "COMPOSTER", "CRAFTING_TABLE", "DAYLIGHT_DETECTOR",
    "DIAMOND_BLOCK", "DIRT", "DISPENSER", "DROPPER", "EMERALD_BLOCK", "ENCHANTING_TABLE",
    "END_PORTAL_FRAME", "ENDER_CHEST", "FURNACE", "GLASS", "GOLD_BLOCK", "GRASS_BLOCK",
    "HOPPER", "IRON_BLOCK", "JUKEBOX", "KELP", "LECTERN", "LOOM", "MELON", "NETHERITE_BLOCK",
    "NOTE_BLOCK", "OAK_FENCE", "OAK_LOG", "OBSERVER", "OBSIDIAN", "PISTON", "PUMPKIN",
    "REDSTONE_BLOCK", "REPEATER", "SAND", "SHULKER_BOX", "SMOKER", "SPAWNER", "SPRUCE_LOG",
    "STICKY_PISTON", "STONE", "SUGAR_CANE", "TNT", "TRAPPED_CHEST", "WHEAT",
})

ITEMS: frozenset[str] = frozenset({
    "APPLE", "ARROW", "BONE", "BOOK", "BUCKET", "CARROT", "COMMAND_BLOCK_MINECART",
    "DIAMOND", "EGG", "EMERALD", "ENDER_PEARL", "EXPERIENCE_BOTTLE", "FEATHER",
    "GOLD_INGOT", "IRON_INGOT", "LEATHER", "MINECART", "NAME_TAG", "PAPER",
    "ROTTEN_FLESH", "SADDLE", "STRING", "WHITE_WOOL",
})

ENTITY_TYPES: frozenset[str] = frozenset({
    "ARMOR_STAND", "AXOLOTL", "BAT", "BEE", "BLAZE", "BOAT", "CAT", "CHICKEN", "COD",
    "COW", "CREEPER", "DOLPHIN", "DONKEY", "ENDERMAN", "FOX", "GOAT", "HORSE",
    "IRON_GOLEM", "ITEM_FRAME", "LLAMA", "MINECART", "MINECART_CHEST", "MINECART_HOPPER",
    "MOOSHROOM", "MULE", "OCELOT", "PAINTING", "PANDA", "PARROT", "PIG", "RABBIT",
    "SALMON", "SHEEP", "SKELETON", "SLIME", "SNOW_GOLEM", "SPIDER", "SQUID", "TURTLE",
    "VILLAGER", "WANDERING_TRADER", "WOLF", "ZOMBIE",
})


@dataclass(frozen=True)
class Catalog:
    """Sets of valid names. Materials are matched exactly, entity types ignoring case."""

    blocks: frozenset[str] = BLOCKS
    items: frozenset[str] = ITEMS
    entity_types: frozenset[str] = ENTITY_TYPES

    def is_material(self, name: str) -> bool:
        return name in self.blocks or name in self.items

    def is_block(self, name: str) -> bool:
        return name in self.blocks

    def entity_type(self, name: str) -> str | None:
        """Return the canonical entity type name, or None if unknown."""
        upper = name.upper()
        return upper if upper in self.entity_types else None

    def extended(
        self,
        blocks: tuple[str, ...] = (),
        items: tuple[str, ...] = (),
        entity_types: tuple[str, ...] = (),
    ) -> Catalog:
        """Return a copy with extra names added."""
        return Catalog(
            blocks=self.blocks | frozenset(blocks),
            items=self.items | frozenset(items),
            entity_types=self.entity_types | frozenset(e.upper() for e in entity_types),
        )


DEFAULT_CATALOG = Catalog()
