"""
SQLite Item Store.

Portable persistence for:
- Review state per item (stability, mastery, next review, flags)
- Append-only attempt log

Database location: ~/.retention/items.db (override with RETENTION_STATE_DB_PATH)
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path

from loguru import logger

from retention.core.models import (
    AttemptRecord,
    ItemKind,
    LearningItem,
    SelfEval,
    TimingClass,
)
from retention.store.repository import ItemNotFoundError


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class SqliteItemRepository:
    """
    SQLite-backed item repository.

    Handles:
    - Item review state (one row per item)
    - Attempt log (one row per attempt, ordered by ``seq``)
    - Batched commits in a single transaction
    """

    DEFAULT_DB_PATH = Path.home() / ".retention" / "items.db"

    def __init__(self, db_path: Path | str | None = None):
        """
        Initialize the store.

        Args:
            db_path: Database file, or ":memory:" (defaults to ~/.retention/items.db)
        """
        if db_path == ":memory:":
            self.db_path: Path | str = db_path
        else:
            self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.info(f"SqliteItemRepository initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SqliteItemRepository:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS items (
                item_id TEXT PRIMARY KEY NOT NULL,
                kind TEXT NOT NULL DEFAULT 'question',
                stability_days REAL NOT NULL,
                mastery_score REAL NOT NULL DEFAULT 0,
                next_review_date TEXT NOT NULL,
                last_reviewed_at TEXT,
                total_attempts INTEGER NOT NULL DEFAULT 0,
                correct_streak INTEGER NOT NULL DEFAULT 0,
                last_was_correct BOOLEAN NOT NULL DEFAULT 0,
                last_attempt_date TEXT,
                recent_error BOOLEAN NOT NULL DEFAULT 0,
                hot_topic BOOLEAN NOT NULL DEFAULT 0,
                is_critical BOOLEAN NOT NULL DEFAULT 0,
                is_fundamental BOOLEAN NOT NULL DEFAULT 0,
                target_sec REAL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS attempt_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                item_id TEXT NOT NULL,
                seq INTEGER NOT NULL,
                attempted_at TEXT NOT NULL,
                was_correct BOOLEAN NOT NULL,
                mastery_after REAL NOT NULL,
                stability_after REAL NOT NULL,
                time_sec REAL NOT NULL,
                self_eval_level INTEGER NOT NULL,
                timing_class TEXT NOT NULL,
                target_sec REAL NOT NULL,
                interval_days REAL NOT NULL DEFAULT 0,
                UNIQUE (item_id, seq),
                FOREIGN KEY (item_id) REFERENCES items(item_id)
            )
        """)

        # Index for fast due-date queries
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_items_next_review
            ON items(next_review_date)
        """)

        self.conn.commit()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_all(self) -> list[LearningItem]:
        rows = self.conn.execute("SELECT * FROM items ORDER BY rowid").fetchall()
        return [self._row_to_item(row) for row in rows]

    def get(self, item_id: str) -> LearningItem:
        row = self.conn.execute(
            "SELECT * FROM items WHERE item_id = ?", (item_id,)
        ).fetchone()
        if row is None:
            raise ItemNotFoundError(item_id)
        return self._row_to_item(row)

    def _history(self, item_id: str) -> tuple[AttemptRecord, ...]:
        rows = self.conn.execute(
            "SELECT * FROM attempt_log WHERE item_id = ? ORDER BY seq", (item_id,)
        ).fetchall()
        return tuple(
            AttemptRecord(
                date=datetime.fromisoformat(row["attempted_at"]),
                was_correct=bool(row["was_correct"]),
                mastery_after=row["mastery_after"],
                stability_after=row["stability_after"],
                time_sec=row["time_sec"],
                self_eval_level=SelfEval(row["self_eval_level"]),
                timing_class=TimingClass(row["timing_class"]),
                target_sec=row["target_sec"],
                interval_days=row["interval_days"],
            )
            for row in rows
        )

    def _row_to_item(self, row: sqlite3.Row) -> LearningItem:
        return LearningItem(
            item_id=row["item_id"],
            kind=ItemKind(row["kind"]),
            stability_days=row["stability_days"],
            mastery_score=row["mastery_score"],
            next_review_date=datetime.fromisoformat(row["next_review_date"]),
            last_reviewed_at=_parse_datetime(row["last_reviewed_at"]),
            total_attempts=row["total_attempts"],
            correct_streak=row["correct_streak"],
            last_was_correct=bool(row["last_was_correct"]),
            last_attempt_date=_parse_date(row["last_attempt_date"]),
            recent_error=bool(row["recent_error"]),
            hot_topic=bool(row["hot_topic"]),
            is_critical=bool(row["is_critical"]),
            is_fundamental=bool(row["is_fundamental"]),
            target_sec=row["target_sec"],
            attempt_history=self._history(row["item_id"]),
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def update(self, item: LearningItem) -> None:
        self.update_batch([item])

    def update_batch(self, items: Iterable[LearningItem]) -> None:
        """
        Persist snapshots in one transaction; any failure rolls back all of them.

        Only attempts beyond those already logged are inserted, so the log
        stays append-only.
        """
        batch = list(items)
        with self.conn:
            for item in batch:
                self._write_item(item)
        logger.debug(f"Committed batch of {len(batch)} items")

    def _write_item(self, item: LearningItem) -> None:
        self.conn.execute(
            """
            INSERT INTO items (
                item_id, kind, stability_days, mastery_score, next_review_date,
                last_reviewed_at, total_attempts, correct_streak, last_was_correct,
                last_attempt_date, recent_error, hot_topic, is_critical,
                is_fundamental, target_sec
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(item_id) DO UPDATE SET
                kind = excluded.kind,
                stability_days = excluded.stability_days,
                mastery_score = excluded.mastery_score,
                next_review_date = excluded.next_review_date,
                last_reviewed_at = excluded.last_reviewed_at,
                total_attempts = excluded.total_attempts,
                correct_streak = excluded.correct_streak,
                last_was_correct = excluded.last_was_correct,
                last_attempt_date = excluded.last_attempt_date,
                recent_error = excluded.recent_error,
                hot_topic = excluded.hot_topic,
                is_critical = excluded.is_critical,
                is_fundamental = excluded.is_fundamental,
                target_sec = excluded.target_sec
            """,
            (
                item.item_id,
                item.kind.value,
                item.stability_days,
                item.mastery_score,
                _iso(item.next_review_date),
                _iso(item.last_reviewed_at),
                item.total_attempts,
                item.correct_streak,
                item.last_was_correct,
                _iso(item.last_attempt_date),
                item.recent_error,
                item.hot_topic,
                item.is_critical,
                item.is_fundamental,
                item.target_sec,
            ),
        )

        logged = self.conn.execute(
            "SELECT COUNT(*) FROM attempt_log WHERE item_id = ?", (item.item_id,)
        ).fetchone()[0]

        for seq, attempt in enumerate(item.attempt_history[logged:], start=logged):
            self.conn.execute(
                """
                INSERT INTO attempt_log (
                    item_id, seq, attempted_at, was_correct, mastery_after,
                    stability_after, time_sec, self_eval_level, timing_class,
                    target_sec, interval_days
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.item_id,
                    seq,
                    _iso(attempt.date),
                    attempt.was_correct,
                    attempt.mastery_after,
                    attempt.stability_after,
                    attempt.time_sec,
                    int(attempt.self_eval_level),
                    attempt.timing_class.value,
                    attempt.target_sec,
                    attempt.interval_days,
                ),
            )
