"""Shared fixtures: a small but complete upgrades configuration."""
from __future__ import annotations

import copy

import pytest

from island_upgrades.db import Database
from island_upgrades.manager import UpgradesManager

SAMPLE_CONFIG: dict = {
    "disabled-gamemodes": ["AcidIsland"],
    "range-upgrade": {
        "tier1": {"max-level": 5, "upgrade": "5", "island-min-level": "2", "vault-cost": "[level]*100"},
        "tier2": {"max-level": 10, "upgrade": "10", "island-min-level": "[level]", "vault-cost": "[level]*200"},
    },
    "block-limits-upgrade": {
        "HOPPER": {
            "tier1": {"max-level": 3, "upgrade": "2", "vault-cost": "[level]*[numberPlayer]*50"},
        },
    },
    "entity-icon": {"COW": "LEATHER"},
    "entity-limits-upgrade": {
        "COW": {"tier1": {"max-level": 4, "upgrade": "1", "vault-cost": "500"}},
    },
    "entity-group-icon": {"animals": "WHEAT"},
    "entity-group-limits-upgrade": {
        "animals": {"tier1": {"max-level": 2, "upgrade": "3", "vault-cost": "1000"}},
    },
    "command-icon": {"fly": "FEATHER"},
    "command-upgrade": {
        "fly": {
            "name": "Flight",
            "tier1": {
                "max-level": 1,
                "vault-cost": "10000",
                "permission-level": 1,
                "console": True,
                "command": [
                    "lp user [player] permission set essentials.fly",
                    "say [player] upgraded [owner]'s island to [level]",
                ],
            },
        },
    },
    "gamemodes": {
        "BSkyBlock": {
            "range-upgrade": {
                "tier2": {"max-level": 20, "upgrade": "20", "vault-cost": "[level]*300"},
                "tier3": {"max-level": 30, "upgrade": "25", "vault-cost": "[level]*400"},
            },
        },
    },
}


@pytest.fixture
def sample_config() -> dict:
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture
def manager(sample_config) -> UpgradesManager:
    return UpgradesManager.from_config(sample_config)


@pytest.fixture
def db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test.db"
    database = Database(db_path=db_path)
    yield database
    database.close()
