"""
Database module for storing violation alerts.

Only alert metadata is stored (kind, message, time, confidence); frames are
never written. Schema versioning recreates the tables when the layout changes.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from typing import Any, Dict, List, Optional

from models.alert import ViolationAlert

# Schema version - increment when schema changes
EXPECTED_SCHEMA_VERSION = 1


class ViolationStore:
    """
    SQLite log of violation alerts.

    Tables:
    - schema_meta: tracks schema version
    - violation_alerts: one row per emitted alert
    """

    def __init__(self, local_database_path: str, session_id: str = "default"):
        """
        Initialize the store.

        Args:
            local_database_path: Path to the SQLite database file.
            session_id: Identifier written with every alert.
        """
        self.local_database_path = local_database_path
        self.session_id = session_id
        self.conn: Optional[sqlite3.Connection] = None

        db_dir = os.path.dirname(local_database_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        logging.info(f"Violation store at {local_database_path}")

    def _get_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            # The web thread reads while the monitor loop writes.
            self.conn = sqlite3.connect(self.local_database_path, check_same_thread=False)
        return self.conn

    def _get_schema_version(self) -> Optional[int]:
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_meta'"
            )
            if cursor.fetchone() is None:
                return None

            cursor.execute("SELECT schema_version FROM schema_meta LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else None
        except sqlite3.Error:
            return None

    def _create_schema(self) -> None:
        cursor = self._get_connection().cursor()
        cursor.execute("DROP TABLE IF EXISTS violation_alerts")
        cursor.execute("DROP TABLE IF EXISTS schema_meta")

        cursor.execute("""
            CREATE TABLE schema_meta (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                schema_version INTEGER NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        cursor.execute("""
            CREATE TABLE violation_alerts (
                id INTEGER PRIMARY KEY,
                session_id TEXT NOT NULL,
                ts INTEGER NOT NULL,
                kind TEXT NOT NULL,
                message TEXT NOT NULL,
                confidence REAL NOT NULL
            )
        """)
        cursor.execute("CREATE INDEX idx_violation_alerts_ts ON violation_alerts(ts)")
        cursor.execute("CREATE INDEX idx_violation_alerts_kind ON violation_alerts(kind)")
        cursor.execute(
            "INSERT INTO schema_meta (id, schema_version) VALUES (1, ?)",
            (EXPECTED_SCHEMA_VERSION,)
        )

        self._get_connection().commit()
        logging.info(f"Created schema version {EXPECTED_SCHEMA_VERSION}")

    def initialize(self) -> None:
        """Create the schema, or recreate it on a version mismatch."""
        try:
            current_version = self._get_schema_version()
            if current_version != EXPECTED_SCHEMA_VERSION:
                if current_version is not None:
                    logging.warning(
                        f"Schema version mismatch: found {current_version}, "
                        f"expected {EXPECTED_SCHEMA_VERSION}. Recreating tables."
                    )
                self._create_schema()
            else:
                logging.info(f"Schema version {current_version} is current")
        except sqlite3.Error as e:
            logging.error(f"Database initialization error: {e}")
            raise

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def add_alert(self, alert: ViolationAlert) -> Optional[int]:
        """
        Insert an alert.

        Returns:
            ID of the inserted row, or None on error.
        """
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "INSERT INTO violation_alerts (session_id, ts, kind, message, confidence) "
                "VALUES (?, ?, ?, ?, ?)",
                (self.session_id, alert.timestamp_ms, alert.kind.value, alert.message, alert.confidence),
            )
            self._get_connection().commit()
            logging.debug(f"Alert stored: kind={alert.kind.value}, ts={alert.timestamp_ms}")
            return cursor.lastrowid
        except sqlite3.Error as e:
            logging.error(f"Error adding alert: {e}")
            return None

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get_alert_count(self, session_id: Optional[str] = None) -> int:
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT COUNT(*) FROM violation_alerts WHERE session_id = ?",
                (session_id or self.session_id,),
            )
            return cursor.fetchone()[0]
        except sqlite3.Error as e:
            logging.error(f"Error counting alerts: {e}")
            return 0

    def get_counts_by_kind(self, session_id: Optional[str] = None) -> Dict[str, int]:
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT kind, COUNT(*) FROM violation_alerts WHERE session_id = ? GROUP BY kind",
                (session_id or self.session_id,),
            )
            return {kind: count for kind, count in cursor.fetchall()}
        except sqlite3.Error as e:
            logging.error(f"Error getting counts by kind: {e}")
            return {}

    def get_recent_alerts(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Most recent alerts across all sessions, newest first."""
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT id, session_id, ts, kind, message, confidence FROM violation_alerts "
                "ORDER BY ts DESC, id DESC LIMIT ?",
                (limit,),
            )
            return [
                {
                    "id": row[0],
                    "session_id": row[1],
                    "timestamp": row[2],
                    "type": row[3],
                    "message": row[4],
                    "confidence": row[5],
                }
                for row in cursor.fetchall()
            ]
        except sqlite3.Error as e:
            logging.error(f"Error getting recent alerts: {e}")
            return []

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None
