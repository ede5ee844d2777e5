"""Tests for the SQLite level store."""

from island_upgrades.db import Database


class TestDatabaseCreation:
    def test_creates_db_file(self, tmp_path):
        db_path = tmp_path / "sub" / "test.db"
        database = Database(db_path=db_path)
        assert db_path.exists()
        database.close()

    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "a" / "b" / "test.db"
        database = Database(db_path=db_path)
        assert db_path.parent.exists()
        database.close()

    def test_tables_exist(self, db):
        tables = {
            row[0]
            for row in db.conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        }
        assert "upgrade_levels" in tables

    def test_wal_mode(self, db):
        mode = db.conn.execute("PRAGMA journal_mode").fetchone()[0]
        assert mode == "wal"

    def test_init_is_idempotent(self, tmp_path):
        db_path = tmp_path / "test.db"
        Database(db_path=db_path).close()
        database = Database(db_path=db_path)
        assert database.get_progress_level("island", "RangeUpgrade") == 0
        database.close()


class TestProgressLevels:
    def test_unknown_level_is_zero(self, db):
        assert db.get_progress_level("island-1", "RangeUpgrade") == 0

    def test_set_and_get(self, db):
        db.set_progress_level("island-1", "RangeUpgrade", 3)
        assert db.get_progress_level("island-1", "RangeUpgrade") == 3

    def test_upsert_overwrites(self, db):
        db.set_progress_level("island-1", "RangeUpgrade", 3)
        db.set_progress_level("island-1", "RangeUpgrade", 4)
        assert db.get_progress_level("island-1", "RangeUpgrade") == 4
        count = db.conn.execute("SELECT COUNT(*) FROM upgrade_levels").fetchone()[0]
        assert count == 1

    def test_islands_are_independent(self, db):
        db.set_progress_level("island-1", "LimitsUpgrade-HOPPER", 2)
        assert db.get_progress_level("island-2", "LimitsUpgrade-HOPPER") == 0

    def test_get_all_levels(self, db):
        db.set_progress_level("island-1", "RangeUpgrade", 3)
        db.set_progress_level("island-1", "LimitsUpgrade-HOPPER", 1)
        db.set_progress_level("island-2", "RangeUpgrade", 9)
        assert db.get_all_levels("island-1") == {"LimitsUpgrade-HOPPER": 1, "RangeUpgrade": 3}
        assert db.get_all_levels("island-3") == {}

    def test_delete_island(self, db):
        db.set_progress_level("island-1", "RangeUpgrade", 3)
        db.set_progress_level("island-2", "RangeUpgrade", 5)
        db.delete_island("island-1")
        assert db.get_all_levels("island-1") == {}
        assert db.get_progress_level("island-2", "RangeUpgrade") == 5

    def test_persists_across_connections(self, tmp_path):
        db_path = tmp_path / "test.db"
        database = Database(db_path=db_path)
        database.set_progress_level("island-1", "command-fly", 1)
        database.close()
        database = Database(db_path=db_path)
        assert database.get_progress_level("island-1", "command-fly") == 1
        database.close()
