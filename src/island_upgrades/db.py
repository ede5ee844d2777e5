"""SQLite level store for island-upgrades."""

import sqlite3
from pathlib import Path


DEFAULT_DB_PATH = Path.home() / ".island-upgrades" / "data.db"


class Database:
    """SQLite database manager with WAL mode.

    Stores one upgrade level per (island, upgrade name). Unknown pairs read as 0.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS upgrade_levels (
                island_id TEXT NOT NULL,
                upgrade_name TEXT NOT NULL,
                level INTEGER DEFAULT 0,
                PRIMARY KEY (island_id, upgrade_name)
            );
        """)
        self.conn.commit()

    def get_progress_level(self, island_id: str, upgrade_name: str) -> int:
        """Get the stored level of an upgrade, 0 if never upgraded."""
        row = self.conn.execute(
            "SELECT level FROM upgrade_levels WHERE island_id = ? AND upgrade_name = ?",
            (island_id, upgrade_name),
        ).fetchone()
        return int(row["level"]) if row else 0

    def set_progress_level(self, island_id: str, upgrade_name: str, level: int) -> None:
        """Set the level of an upgrade (upsert)."""
        self.conn.execute(
            "INSERT INTO upgrade_levels (island_id, upgrade_name, level) VALUES (?, ?, ?) "
            "ON CONFLICT(island_id, upgrade_name) DO UPDATE SET level = excluded.level",
            (island_id, upgrade_name, int(level)),
        )
        self.conn.commit()

    def get_all_levels(self, island_id: str) -> dict[str, int]:
        """Return every stored upgrade level of an island."""
        rows = self.conn.execute(
            "SELECT upgrade_name, level FROM upgrade_levels WHERE island_id = ? ORDER BY upgrade_name",
            (island_id,),
        ).fetchall()
        return {row["upgrade_name"]: int(row["level"]) for row in rows}

    def delete_island(self, island_id: str) -> None:
        """Forget all upgrade levels of an island."""
        self.conn.execute("DELETE FROM upgrade_levels WHERE island_id = ?", (island_id,))
        self.conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
