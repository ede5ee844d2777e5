"""Configuration file management for island-upgrades.

Reads and writes ~/.island-upgrades/config.json, the upgrades configuration tree
that settings.build_settings turns into tier tables.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from island_upgrades.catalog import DEFAULT_CATALOG, Catalog
from island_upgrades.settings import Settings, build_settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH: Path = Path.home() / ".island-upgrades" / "config.json"


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.info("No upgrades config at %s", path)
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.error("Could not read upgrades config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.error("Upgrades config %s must contain a JSON object", path)
        return {}
    return data


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def load_settings(config_path: Path | None = None, catalog: Catalog = DEFAULT_CATALOG) -> Settings:
    """Load the config file and build a Settings snapshot from it."""
    return build_settings(load_config(config_path), catalog)
