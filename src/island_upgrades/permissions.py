"""Permission-level checks for tiers that require an extra permission.

A tier with permission_level N > 0 is only available to players holding a
permission "<namespace>.upgrades.<upgrade name>.<M>" with M >= N. The whole
permission is compared lower-cased.
"""
from __future__ import annotations

import logging
from typing import Iterable

logger = logging.getLogger(__name__)


def permission_prefix(namespace: str, upgrade_name: str) -> str:
    return f"{namespace}.upgrades.{upgrade_name}.".lower()


def _reject(player: str, permission: str, reason: str) -> bool:
    logger.error("Player %s has permission: '%s' but %s Ignoring...", player, permission, reason)
    return False


def check_permission_level(
    permissions: Iterable[str],
    namespace: str,
    upgrade_name: str,
    required: int,
    player: str = "",
) -> bool:
    """Return True if permissions grant at least the required level.

    required <= 0 always passes. A matching permission with a wildcard, the wrong
    number of dot-separated parts or a non-numeric level fails the check.
    """
    if required <= 0:
        return True
    prefix = permission_prefix(namespace, upgrade_name)
    for raw in permissions:
        permission = raw.lower()
        if not permission.startswith(prefix):
            continue
        if permission.startswith(prefix + "*"):
            return _reject(player, raw, "Wildcards are not allowed.")
        parts = permission.split(".")
        if len(parts) != 4:
            return _reject(player, raw, f"format must be '{prefix}LEVEL'")
        if not (parts[3].isascii() and parts[3].isdigit()):
            return _reject(player, raw, "The last part must be a number")
        if required <= int(parts[3]):
            return True
    return False
