"""SQLite database holding components, issues, quality gates and live measures."""

import sqlite3
from pathlib import Path
from typing import Optional, Union

from ..logging_config import get_logger

logger = get_logger(__name__)

# Current schema version (bump when tables change).
_SCHEMA_VERSION = 1


class MeasureDB:
    """Manages the SQLite database behind a ``SqliteDataStore``.

    Usage::

        with MeasureDB("/var/lib/live_measures.db") as db:
            store = SqliteDataStore(db.conn)
            computer.refresh(store, component)

    ``":memory:"`` opens a private in-memory database.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.db_path = str(path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise RuntimeError("MeasureDB is not connected. Use as context manager or call connect().")
        return self._conn

    # ── lifecycle ─────────────────────────────────────────────────

    def connect(self) -> sqlite3.Connection:
        """Open (or create) the database and run migrations."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        if self.db_path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        self._conn = conn
        self._migrate()
        logger.debug("Measure DB connected at %s", self.db_path)
        return conn

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "MeasureDB":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── migration ─────────────────────────────────────────────────

    def _migrate(self) -> None:
        """Idempotently create all tables."""
        c = self.conn

        c.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER NOT NULL
            )
            """
        )
        row = c.execute("SELECT version FROM schema_version").fetchone()
        if row is None:
            c.execute("INSERT INTO schema_version (version) VALUES (?)", (_SCHEMA_VERSION,))

        # ── components ───────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS components (
                uuid         TEXT PRIMARY KEY,
                project_uuid TEXT NOT NULL,
                uuid_path    TEXT NOT NULL DEFAULT '.',
                qualifier    TEXT NOT NULL,
                kee          TEXT NOT NULL DEFAULT '',
                name         TEXT NOT NULL DEFAULT ''
            )
            """
        )

        # ── metrics ──────────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS metrics (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                name       TEXT NOT NULL UNIQUE,
                val_type   TEXT NOT NULL
            )
            """
        )

        # ── analyses ─────────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS analyses (
                uuid           TEXT PRIMARY KEY,
                component_uuid TEXT    NOT NULL,
                created_at     INTEGER NOT NULL,
                period_date    INTEGER,
                islast         INTEGER NOT NULL DEFAULT 0
            )
            """
        )

        # ── issues ───────────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS issues (
                kee                 TEXT PRIMARY KEY,
                component_uuid      TEXT    NOT NULL REFERENCES components(uuid),
                project_uuid        TEXT    NOT NULL,
                issue_type          INTEGER NOT NULL,
                severity            TEXT    NOT NULL,
                resolution          TEXT,
                status              TEXT    NOT NULL,
                effort              REAL    NOT NULL DEFAULT 0,
                issue_creation_date INTEGER NOT NULL
            )
            """
        )

        # ── live_measures ────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS live_measures (
                uuid           TEXT    PRIMARY KEY,
                component_uuid TEXT    NOT NULL,
                project_uuid   TEXT    NOT NULL,
                metric_id      INTEGER NOT NULL,
                value          REAL,
                text_value     TEXT,
                variation      REAL,
                gate_status    TEXT,
                gate_text      TEXT,
                created_at     INTEGER NOT NULL,
                updated_at     INTEGER NOT NULL
            )
            """
        )

        # ── quality gates ────────────────────────────────────────
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS quality_gates (
                id   INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE
            )
            """
        )
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS project_qgates (
                project_uuid TEXT    PRIMARY KEY,
                gate_id      INTEGER NOT NULL REFERENCES quality_gates(id) ON DELETE CASCADE
            )
            """
        )
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS quality_gate_conditions (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                gate_id     INTEGER NOT NULL REFERENCES quality_gates(id) ON DELETE CASCADE,
                metric_id   INTEGER NOT NULL,
                operator    TEXT    NOT NULL,
                value_warning TEXT,
                value_error   TEXT,
                period      INTEGER
            )
            """
        )

        # ── indexes ──────────────────────────────────────────────
        c.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS live_measures_component ON live_measures(component_uuid, metric_id)"
        )
        c.execute("CREATE INDEX IF NOT EXISTS live_measures_project ON live_measures(project_uuid)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_components_project ON components(project_uuid)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_issues_project ON issues(project_uuid)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_issues_component ON issues(component_uuid)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_analyses_component ON analyses(component_uuid, islast)")
        c.execute("CREATE INDEX IF NOT EXISTS idx_conditions_gate ON quality_gate_conditions(gate_id)")

        c.commit()
