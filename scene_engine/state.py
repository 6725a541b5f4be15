"""Relationship ledger persistence."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path

from .config import Settings
from .models import RelationshipEventType
from .relationships import RelationshipLedger

logger = logging.getLogger(__name__)

_DB_SCHEMA = """
CREATE TABLE IF NOT EXISTS relationships (
    first_id TEXT NOT NULL,
    second_id TEXT NOT NULL,
    affinity REAL NOT NULL,
    PRIMARY KEY (first_id, second_id)
);
CREATE TABLE IF NOT EXISTS relationship_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    first_id TEXT NOT NULL,
    second_id TEXT NOT NULL,
    seq INTEGER NOT NULL,
    type TEXT NOT NULL,
    description TEXT NOT NULL,
    impact REAL NOT NULL,
    round INTEGER NOT NULL,
    FOREIGN KEY (first_id, second_id) REFERENCES relationships (first_id, second_id)
);
CREATE INDEX IF NOT EXISTS idx_relationship_events_pair
    ON relationship_events (first_id, second_id, seq);
"""


class LedgerStore:
    """Saves and restores the relationship ledger in SQLite."""

    def __init__(self, db_path: Path, *, settings: Settings | None = None) -> None:
        self._db_path = db_path
        self._settings = settings
        self._ensure_schema()

    @property
    def path(self) -> Path:
        return self._db_path

    def _ensure_schema(self) -> None:
        with closing(sqlite3.connect(self._db_path)) as conn:
            conn.executescript(_DB_SCHEMA)
            conn.commit()

    def save(self, ledger: RelationshipLedger) -> None:
        """Replace the stored ledger with ``ledger`` in a single transaction."""

        relationships = ledger.relationships()
        with closing(sqlite3.connect(self._db_path)) as conn:
            with conn:
                conn.execute("DELETE FROM relationship_events")
                conn.execute("DELETE FROM relationships")
                conn.executemany(
                    "INSERT INTO relationships (first_id, second_id, affinity) VALUES (?, ?, ?)",
                    [(item.first_id, item.second_id, item.affinity) for item in relationships],
                )
                conn.executemany(
                    "INSERT INTO relationship_events "
                    "(first_id, second_id, seq, type, description, impact, round) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    [
                        (
                            item.first_id,
                            item.second_id,
                            seq,
                            event.type.value,
                            event.description,
                            event.impact,
                            event.round,
                        )
                        for item in relationships
                        for seq, event in enumerate(item.history)
                    ],
                )
        logger.info("Saved %d relationships to %s", len(relationships), self._db_path)

    def load(self) -> RelationshipLedger:
        with closing(sqlite3.connect(self._db_path)) as conn:
            pairs = conn.execute(
                "SELECT first_id, second_id, affinity FROM relationships ORDER BY rowid"
            ).fetchall()
            events = conn.execute(
                "SELECT first_id, second_id, type, description, impact, round "
                "FROM relationship_events ORDER BY first_id, second_id, seq"
            ).fetchall()
        history: dict = {}
        for first_id, second_id, event_type, description, impact, round_number in events:
            history.setdefault((first_id, second_id), []).append(
                {
                    "type": RelationshipEventType(event_type).value,
                    "description": description,
                    "impact": impact,
                    "round": round_number,
                }
            )
        payload = {
            "relationships": [
                {
                    "first_id": first_id,
                    "second_id": second_id,
                    "affinity": affinity,
                    "history": history.get((first_id, second_id), []),
                }
                for first_id, second_id, affinity in pairs
            ]
        }
        logger.info("Loaded %d relationships from %s", len(pairs), self._db_path)
        return RelationshipLedger.from_dict(payload, settings=self._settings)

    def reset(self) -> None:
        with closing(sqlite3.connect(self._db_path)) as conn:
            with conn:
                conn.execute("DELETE FROM relationship_events")
                conn.execute("DELETE FROM relationships")


__all__ = ["LedgerStore"]
