"""Tests for tier resolution, merging and quotes."""
import math
import threading

import pytest

from island_upgrades.dimensions import Dimension, DimensionKind
from island_upgrades.errors import UndefinedVariableError
from island_upgrades.expression import parse
from island_upgrades.manager import (
    INT_MAX,
    INT_MIN,
    UpgradeQuote,
    UpgradesManager,
    merge_tables,
    select_tier,
    sort_tiers,
    truncate,
)
from island_upgrades.settings import Settings
from island_upgrades.tiers import Tier


def _range_config(tiers: dict) -> dict:
    return {"range-upgrade": tiers}


def _tier(max_level: int, upgrade: str = "1") -> dict:
    return {"max-level": max_level, "upgrade": upgrade}


class TestTruncate:
    def test_toward_zero(self):
        assert truncate(2.9) == 2
        assert truncate(-2.9) == -2
        assert truncate(0.0) == 0

    def test_nan_is_zero(self):
        assert truncate(math.nan) == 0

    def test_infinities_clamp(self):
        assert truncate(math.inf) == INT_MAX
        assert truncate(-math.inf) == INT_MIN
        assert truncate(1e20) == INT_MAX


class TestMergeTables:
    def test_override_wins(self):
        t1_default = Tier("t1", "t1", max_level=5)
        t2_default = Tier("t2", "t2", max_level=10)
        t1_override = Tier("t1", "t1", max_level=7)
        default = {"t1": t1_default, "t2": t2_default}
        override = {"t1": t1_override}
        merged = merge_tables(default, override)
        assert merged == {"t1": t1_override, "t2": t2_default}
        assert default == {"t1": t1_default, "t2": t2_default}
        assert override == {"t1": t1_override}

    def test_order_is_default_then_new_ids(self):
        default = {"a": Tier("a", "a"), "b": Tier("b", "b")}
        override = {"c": Tier("c", "c"), "a": Tier("a", "a", max_level=3)}
        assert list(merge_tables(default, override)) == ["a", "b", "c"]

    def test_missing_tables(self):
        tier = Tier("a", "a")
        assert merge_tables(None, {"a": tier}) == {"a": tier}
        assert merge_tables({"a": tier}, None) == {"a": tier}
        assert merge_tables(None, None) == {}


class TestSelectTier:
    def test_sort_is_stable(self):
        a, b, c = Tier("a", "a", max_level=5), Tier("b", "b", max_level=5), Tier("c", "c", max_level=1)
        assert sort_tiers([a, b, c]) == [c, a, b]

    def test_empty(self):
        assert select_tier([], 0) is None


class TestResolveTier:
    def test_finite_tiers_then_unbounded_fallback(self):
        manager = UpgradesManager.from_config(_range_config({
            "a": _tier(5), "b": _tier(10), "c": _tier(-1),
        }))
        assert manager.resolve_tier(Dimension.range(), None, 0).id == "a"
        assert manager.resolve_tier(Dimension.range(), None, 5).id == "a"
        assert manager.resolve_tier(Dimension.range(), None, 7).id == "b"
        assert manager.resolve_tier(Dimension.range(), None, 10).id == "b"
        assert manager.resolve_tier(Dimension.range(), None, 11).id == "c"
        assert manager.resolve_tier(Dimension.range(), None, 10_000).id == "c"

    def test_no_unbounded_tier_means_fully_upgraded(self):
        manager = UpgradesManager.from_config(_range_config({"a": _tier(5), "b": _tier(10)}))
        assert manager.resolve_tier(Dimension.range(), None, 7).id == "b"
        assert manager.resolve_tier(Dimension.range(), None, 11) is None
        assert manager.quote(Dimension.range(), None, 11) is None

    def test_first_tier_wins_on_equal_max_level(self):
        manager = UpgradesManager.from_config(_range_config({"x": _tier(5, "1"), "y": _tier(5, "2")}))
        assert manager.resolve_tier(Dimension.range(), None, 3).id == "x"

    def test_zero_tiers_never_resolve(self, manager):
        dim = Dimension.block("CHEST")
        for level in (0, 1, 100):
            assert manager.resolve_tier(dim, None, level) is None
            assert manager.quote(dim, None, level) is None
        assert not manager.handles(dim)
        assert manager.tiers(dim) == []

    def test_sorted_by_max_level(self):
        manager = UpgradesManager.from_config(_range_config({"b": _tier(10), "a": _tier(5)}))
        assert [t.id for t in manager.tiers(Dimension.range())] == ["a", "b"]


class TestNamespaces:
    def test_merge_law(self):
        manager = UpgradesManager.from_config({
            "range-upgrade": {"t1": _tier(5, "1"), "t2": _tier(10, "2")},
            "gamemodes": {"BSkyBlock": {"range-upgrade": {"t1": _tier(5, "100")}}},
        })
        tiers = manager.tiers(Dimension.range(), "BSkyBlock")
        assert [t.id for t in tiers] == ["t1", "t2"]
        assert manager.quote(Dimension.range(), "BSkyBlock", 1).effect == 100
        assert manager.quote(Dimension.range(), "BSkyBlock", 7).effect == 2
        assert manager.quote(Dimension.range(), None, 1).effect == 1

    def test_override_adds_tiers(self, manager):
        tiers = manager.tiers(Dimension.range(), "BSkyBlock")
        assert [t.id for t in tiers] == ["tier1", "tier2", "tier3"]
        assert manager.resolve_tier(Dimension.range(), "BSkyBlock", 15).id == "tier2"
        assert manager.resolve_tier(Dimension.range(), "BSkyBlock", 25).id == "tier3"
        assert manager.resolve_tier(Dimension.range(), "BSkyBlock", 31) is None

    def test_unknown_namespace_uses_defaults(self, manager):
        assert [t.id for t in manager.tiers(Dimension.range(), "CaveBlock")] == ["tier1", "tier2"]

    def test_empty_override_uses_defaults(self):
        manager = UpgradesManager.from_config({
            "range-upgrade": {"t1": _tier(5)},
            "gamemodes": {"BSkyBlock": {"range-upgrade": {}}},
        })
        assert [t.id for t in manager.tiers(Dimension.range(), "BSkyBlock")] == ["t1"]

    def test_empty_override_keeps_default_max_level(self):
        manager = UpgradesManager.from_config({
            "range-upgrade": {"tier1": _tier(10)},
            "gamemodes": {"BSkyBlock": {"range-upgrade": {}}},
        })
        assert manager.max_level(Dimension.range(), "BSkyBlock") == 10
        assert manager.quote(Dimension.range(), "BSkyBlock", 3).max_level == 10

    def test_failed_override_keeps_default_max_level(self):
        manager = UpgradesManager.from_config({
            "range-upgrade": {"tier1": _tier(10)},
            "gamemodes": {"BSkyBlock": {"range-upgrade": {"broken": _tier(20, upgrade="1+")}}},
        })
        assert len(manager.settings.diagnostics) == 1
        assert manager.settings.max_level(Dimension.range(), "BSkyBlock") == 10
        quote = manager.quote(Dimension.range(), "BSkyBlock", 3)
        assert quote.tier_id == "tier1"
        assert quote.max_level == 10

    def test_max_level(self, manager):
        assert manager.max_level(Dimension.range()) == 10
        assert manager.max_level(Dimension.range(), "BSkyBlock") == 30
        assert manager.max_level(Dimension.entity("COW"), "BSkyBlock") == 4

    def test_keys(self, manager):
        assert manager.keys(DimensionKind.BLOCK) == ["HOPPER"]
        assert manager.keys(DimensionKind.BLOCK, "BSkyBlock") == ["HOPPER"]
        assert manager.keys(DimensionKind.GROUP) == ["animals"]

    def test_is_enabled(self, manager):
        assert manager.is_enabled("BSkyBlock")
        assert not manager.is_enabled("AcidIsland")


class TestQuote:
    def test_range_quote(self, manager):
        quote = manager.quote(Dimension.range(), None, 3)
        assert quote == UpgradeQuote(
            dimension=Dimension.range(),
            tier_id="tier1",
            tier_name="tier1",
            level=3,
            max_level=10,
            permission_level=0,
            min_secondary_level=2,
            cost=300,
            effect=5,
        )

    def test_island_level_and_members_are_bound(self, manager):
        assert manager.quote(Dimension.range(), None, 7).min_secondary_level == 7
        quote = manager.quote(Dimension.block("HOPPER"), None, 1, island_level=0, number_player=2)
        assert quote.cost == 100

    def test_command_quote(self, manager):
        quote = manager.quote(Dimension.command("fly"), None, 0)
        assert quote.commands == (
            "lp user [player] permission set essentials.fly",
            "say [player] upgraded [owner]'s island to [level]",
        )
        assert quote.run_as_console
        assert quote.permission_level == 1
        assert quote.cost == 10000
        assert quote.effect == 0

    def test_infinite_cost_is_clamped(self):
        manager = UpgradesManager.from_config(_range_config({
            "a": {"max-level": 5, "upgrade": "1", "vault-cost": "10/0"},
        }))
        assert manager.quote(Dimension.range(), None, 1).cost == INT_MAX

    def test_eval_error_propagates(self):
        tier = Tier("t", "t", cost=parse("[foo]"), max_level=5)
        settings = Settings(
            tables={None: {DimensionKind.RANGE: {None: {"t": tier}}}},
            max_levels={},
        )
        manager = UpgradesManager(settings)
        with pytest.raises(UndefinedVariableError):
            manager.quote(Dimension.range(), None, 1)


class TestCommandQueries:
    def test_command_list(self, manager):
        commands = manager.command_list(Dimension.command("fly"), None, 0, "Alice", "Bob")
        assert commands == [
            "lp user Alice permission set essentials.fly",
            "say Alice upgraded Bob's island to 0",
        ]

    def test_command_list_for_non_command_dimension(self, manager):
        assert manager.command_list(Dimension.range(), None, 0, "Alice", "Bob") == []

    def test_is_console(self, manager):
        assert manager.is_console(Dimension.command("fly"), None, 0)
        assert not manager.is_console(Dimension.command("fly"), None, 5)

    def test_tier_name_and_permission_level(self, manager):
        assert manager.tier_name(Dimension.command("fly"), None, 0) == "tier1"
        assert manager.tier_name(Dimension.command("fly"), None, 2) is None
        assert manager.permission_level(Dimension.command("fly"), None, 0) == 1
        assert manager.permission_level(Dimension.command("fly"), None, 2) == 0


class TestReload:
    QUERIES = [
        (Dimension.range(), None),
        (Dimension.range(), "BSkyBlock"),
        (Dimension.block("HOPPER"), None),
        (Dimension.entity("COW"), "BSkyBlock"),
        (Dimension.group("animals"), None),
        (Dimension.command("fly"), None),
    ]

    def _answers(self, manager):
        return [
            manager.quote(dim, ns, level, island_level=3, number_player=2)
            for dim, ns in self.QUERIES
            for level in range(0, 35)
        ]

    def test_reload_with_same_config_is_idempotent(self, manager, sample_config):
        before = self._answers(manager)
        old_settings = manager.settings
        new_settings = manager.reload(sample_config)
        assert new_settings is manager.settings
        assert new_settings is not old_settings
        assert self._answers(manager) == before

    def test_reload_changes_answers(self, manager):
        manager.reload(_range_config({"only": _tier(2, "42")}))
        assert manager.quote(Dimension.range(), None, 1).effect == 42
        assert manager.quote(Dimension.block("HOPPER"), None, 1) is None

    def test_reload_accepts_settings(self, manager):
        settings = UpgradesManager.from_config({}).settings
        assert manager.reload(settings) is settings
        assert manager.tiers(Dimension.range()) == []

    def test_concurrent_queries_see_whole_snapshots(self, sample_config):
        manager = UpgradesManager.from_config(sample_config)
        other = _range_config({"only": _tier(50, "42")})
        errors = []

        def query():
            for _ in range(200):
                quote = manager.quote(Dimension.range(), None, 3)
                if quote.effect not in (5, 42):
                    errors.append(quote)

        threads = [threading.Thread(target=query) for _ in range(4)]
        for t in threads:
            t.start()
        for i in range(20):
            manager.reload(other if i % 2 else sample_config)
        for t in threads:
            t.join()
        assert errors == []
