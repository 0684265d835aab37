"""SQLite storage for transactions and description metadata.

Two tables:
- records: one row per ingested transaction
- description_information: one row per canonical description (natural key)
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from .csv_normalizer import TransactionRecord
from .errors import StorageError
from .logging_setup import get_logger
from .metadata import DescriptionMetadata

logger = get_logger(__name__)


class BudgetStore:
    """Transactions and the metadata collected for their descriptions.

    The schema is created on open; the connection runs in WAL mode.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(str(db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._create_tables()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not open database {db_path}: {exc}") from exc

    def _create_tables(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS records (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                amount TEXT NOT NULL,
                date TEXT NOT NULL,
                card TEXT NOT NULL,
                description TEXT NOT NULL,
                event_time TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS description_information (
                description TEXT PRIMARY KEY,
                primary_information TEXT,
                secondary_information TEXT,
                tertiary_information TEXT,
                additional_information TEXT,
                event_time TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "BudgetStore":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _insert_many(self, sql: str, rows: list[tuple]) -> int:
        if not rows:
            return 0
        try:
            with self._conn:
                self._conn.executemany(sql, rows)
        except sqlite3.Error as exc:
            raise StorageError(f"Insert into {self.db_path} failed: {exc}") from exc
        return len(rows)

    def insert_transactions(self, records: Iterable[TransactionRecord]) -> int:
        """Insert transaction records in one transaction. Returns the row count."""
        now = datetime.now(timezone.utc).isoformat()
        rows = [
            (str(r.amount), r.date.isoformat(), r.card.value, r.description, now)
            for r in records
        ]
        count = self._insert_many(
            "INSERT INTO records (amount, date, card, description, event_time) "
            "VALUES (?, ?, ?, ?, ?)",
            rows,
        )
        logger.info("Stored %d transaction record(s)", count)
        return count

    def insert_description_metadata(self, records: Iterable[DescriptionMetadata]) -> int:
        """Insert description metadata rows. A duplicate description fails the batch."""
        now = datetime.now(timezone.utc).isoformat()
        rows = [
            (m.description, m.primary, m.secondary, m.tertiary, m.additional, now)
            for m in records
        ]
        count = self._insert_many(
            "INSERT INTO description_information (description, primary_information, "
            "secondary_information, tertiary_information, additional_information, event_time) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            rows,
        )
        logger.info("Stored metadata for %d description(s)", count)
        return count

    def select_all_description_metadata(self) -> list[DescriptionMetadata]:
        try:
            rows = self._conn.execute(
                "SELECT description, primary_information, secondary_information, "
                "tertiary_information, additional_information, event_time "
                "FROM description_information ORDER BY description"
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Loading descriptions from {self.db_path} failed: {exc}") from exc
        return [
            DescriptionMetadata(
                description=row[0],
                primary=row[1],
                secondary=row[2],
                tertiary=row[3],
                additional=row[4],
                recorded_at=datetime.fromisoformat(row[5]) if row[5] else None,
            )
            for row in rows
        ]

    def count_transactions(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM records").fetchone()
        return row[0] if row else 0

