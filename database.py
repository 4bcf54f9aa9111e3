"""Database operations for the Signalboard feedback pipeline.

This module provides SQLite-based storage for classified feedback and the
digests generated from it.

Database Schema:
    feedback table:
        - id (INTEGER, PK): Assigned on insert, monotonic
        - source (TEXT): Channel the feedback arrived on
        - title (TEXT): Optional title
        - content (TEXT): Feedback text
        - created_at (INTEGER): Creation time (Unix epoch, UTC)
        - theme, sentiment, urgency (TEXT): Classification labels
        - tags (TEXT): JSON array of strings

    digests table:
        - id (INTEGER, PK): Assigned on insert
        - cadence (TEXT): daily | weekly | monthly
        - period_start, period_end, created_at (INTEGER): Unix epoch, UTC
        - summary (TEXT): Executive summary
        - themes_json, sentiment_json, urgent_ids_json (TEXT): JSON arrays

Features:
    - WAL mode for concurrent read/write access
    - JSON columns decoded on read into API-shaped models
    - Context manager support for auto-cleanup

Feedback and digests are never updated or deleted here; a newer digest
for a cadence supersedes older ones on read.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from models.classification import Classification
from models.digest import Cadence, Digest, DigestPayload
from models.feedback import FeedbackCreate, FeedbackItem, ensure_utc

logger = logging.getLogger(__name__)


def _to_epoch(value: datetime) -> int:
    return int(ensure_utc(value).timestamp())


def _from_epoch(value: int) -> datetime:
    return datetime.fromtimestamp(value, timezone.utc)


def _load_json_list(raw: str | None, column: str) -> list[Any]:
    """Decode a JSON array column, returning [] for NULL or corrupt values."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Undecodable JSON column | column=%s preview=%s", column, raw[:50])
        return []
    return value if isinstance(value, list) else []


class Database:
    """SQLite database for feedback items and digests.

    Example:
        >>> with Database("signalboard.db") as db:
        ...     item = db.save_feedback(feedback, classification, created_at)
        ...     latest = db.latest_digest(Cadence.DAILY)
    """

    SCHEMA = """
    -- One row per feedback item, classification stored alongside
    CREATE TABLE IF NOT EXISTS feedback (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        source TEXT NOT NULL,
        title TEXT,
        content TEXT NOT NULL,
        created_at INTEGER NOT NULL,     -- Unix epoch (UTC)
        theme TEXT,
        sentiment TEXT,
        urgency TEXT,
        tags TEXT                        -- JSON array
    );

    -- Window queries for digests
    CREATE INDEX IF NOT EXISTS idx_feedback_created ON feedback(created_at);

    -- Listing filters
    CREATE INDEX IF NOT EXISTS idx_feedback_source ON feedback(source);
    CREATE INDEX IF NOT EXISTS idx_feedback_sentiment ON feedback(sentiment);
    CREATE INDEX IF NOT EXISTS idx_feedback_urgency ON feedback(urgency);

    -- One row per digest generation
    CREATE TABLE IF NOT EXISTS digests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        cadence TEXT NOT NULL,
        period_start INTEGER NOT NULL,
        period_end INTEGER NOT NULL,
        summary TEXT NOT NULL,
        themes_json TEXT NOT NULL,
        sentiment_json TEXT NOT NULL,
        urgent_ids_json TEXT NOT NULL,
        created_at INTEGER NOT NULL
    );

    -- Latest digest per cadence
    CREATE INDEX IF NOT EXISTS idx_digests_cadence_created ON digests(cadence, created_at);
    """

    path: Path
    conn: sqlite3.Connection

    def __init__(self, path: Path | str):
        """Initialize database connection.

        Creates the database file if it doesn't exist and sets up
        the schema.

        Args:
            path: Path to SQLite database file
        """
        self.path = Path(path)
        self.conn = sqlite3.connect(str(self.path))
        self.conn.row_factory = sqlite3.Row

        # WAL mode allows concurrent readers during writes
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.executescript(self.SCHEMA)
        self.conn.commit()
        logger.debug("Database initialized | path=%s", self.path)

    # === Feedback ===

    @staticmethod
    def _row_to_feedback(row: sqlite3.Row) -> FeedbackItem:
        return FeedbackItem(
            id=row["id"],
            source=row["source"],
            title=row["title"],
            content=row["content"],
            created_at=_from_epoch(row["created_at"]),
            theme=row["theme"],
            sentiment=row["sentiment"],
            urgency=row["urgency"],
            tags=[str(t) for t in _load_json_list(row["tags"], "tags")],
        )

    def save_feedback(
        self,
        feedback: FeedbackCreate,
        classification: Classification,
        created_at: datetime,
        commit: bool = True,
    ) -> FeedbackItem:
        """Insert a classified feedback item and return the stored row.

        Args:
            feedback: Inbound feedback
            classification: Labels computed before the insert
            created_at: Creation timestamp to store
            commit: Whether to commit immediately (False for batch operations)

        Returns:
            The stored FeedbackItem with its assigned id
        """
        cursor = self.conn.execute(
            """
            INSERT INTO feedback
            (source, title, content, created_at, theme, sentiment, urgency, tags)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                feedback.source,
                feedback.title,
                feedback.content,
                _to_epoch(created_at),
                classification.theme,
                classification.sentiment.value,
                classification.urgency.value,
                json.dumps(classification.tags, ensure_ascii=False),
            ),
        )
        if commit:
            self.conn.commit()
        item_id = cursor.lastrowid
        logger.debug("Feedback saved | id=%d theme=%s", item_id, classification.theme)
        return self.get_feedback(item_id)

    def get_feedback(self, item_id: int) -> FeedbackItem | None:
        """Get a feedback item by id, or None if not found."""
        cursor = self.conn.execute("SELECT * FROM feedback WHERE id = ?", (item_id,))
        row = cursor.fetchone()
        return self._row_to_feedback(row) if row else None

    def feedback_since(self, cutoff: datetime) -> list[FeedbackItem]:
        """Get feedback created at or after cutoff, most recent first."""
        cursor = self.conn.execute(
            """
            SELECT * FROM feedback
            WHERE created_at >= ?
            ORDER BY created_at DESC, id DESC
            """,
            (_to_epoch(cutoff),),
        )
        return [self._row_to_feedback(row) for row in cursor.fetchall()]

    def list_feedback(
        self,
        source: str | None = None,
        sentiment: str | None = None,
        urgency: str | None = None,
        query: str | None = None,
        limit: int = 100,
    ) -> list[FeedbackItem]:
        """List feedback with optional filters, most recent first.

        Args:
            source: Exact source match
            sentiment: Exact sentiment match
            urgency: Exact urgency match
            query: Substring matched against content and title
            limit: Maximum rows returned

        Returns:
            Matching feedback items
        """
        sql = "SELECT * FROM feedback WHERE 1=1"
        params: list[Any] = []

        if source:
            sql += " AND source = ?"
            params.append(source)
        if sentiment:
            sql += " AND sentiment = ?"
            params.append(sentiment)
        if urgency:
            sql += " AND urgency = ?"
            params.append(urgency)
        if query:
            sql += " AND (content LIKE ? OR title LIKE ?)"
            term = f"%{query}%"
            params.extend([term, term])

        sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(limit)

        cursor = self.conn.execute(sql, params)
        return [self._row_to_feedback(row) for row in cursor.fetchall()]

    # === Digests ===

    @staticmethod
    def _row_to_digest(row: sqlite3.Row) -> Digest:
        return Digest(
            id=row["id"],
            cadence=row["cadence"],
            period_start=_from_epoch(row["period_start"]),
            period_end=_from_epoch(row["period_end"]),
            created_at=_from_epoch(row["created_at"]),
            executive_summary=row["summary"],
            top_themes=_load_json_list(row["themes_json"], "themes_json"),
            sentiment_breakdown=_load_json_list(row["sentiment_json"], "sentiment_json"),
            urgent_ids=_load_json_list(row["urgent_ids_json"], "urgent_ids_json"),
        )

    def save_digest(
        self,
        cadence: Cadence,
        period_start: datetime,
        period_end: datetime,
        payload: DigestPayload,
        created_at: datetime,
    ) -> Digest:
        """Insert a digest and return the stored row."""
        data = payload.model_dump(mode="json")
        cursor = self.conn.execute(
            """
            INSERT INTO digests
            (cadence, period_start, period_end, summary, themes_json,
             sentiment_json, urgent_ids_json, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                cadence.value,
                _to_epoch(period_start),
                _to_epoch(period_end),
                payload.executive_summary,
                json.dumps(data["top_themes"], ensure_ascii=False),
                json.dumps(data["sentiment_breakdown"]),
                json.dumps(data["urgent_ids"]),
                _to_epoch(created_at),
            ),
        )
        self.conn.commit()
        logger.info("Digest saved | id=%d cadence=%s", cursor.lastrowid, cadence.value)

        row = self.conn.execute("SELECT * FROM digests WHERE id = ?", (cursor.lastrowid,)).fetchone()
        return self._row_to_digest(row)

    def latest_digest(self, cadence: Cadence) -> Digest | None:
        """Get the most recently created digest for a cadence."""
        cursor = self.conn.execute(
            """
            SELECT * FROM digests
            WHERE cadence = ?
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (cadence.value,),
        )
        row = cursor.fetchone()
        return self._row_to_digest(row) if row else None

    # === Maintenance ===

    def commit(self) -> None:
        """Commit pending changes."""
        self.conn.commit()

    def stats(self) -> dict[str, int]:
        """Get database statistics.

        Returns:
            Dictionary with feedback, urgent and digest counts
        """
        row = self.conn.execute(
            """
            SELECT COUNT(*) AS total,
                   SUM(CASE WHEN urgency = 'high' THEN 1 ELSE 0 END) AS urgent
            FROM feedback
            """
        ).fetchone()
        digest_row = self.conn.execute("SELECT COUNT(*) AS digests FROM digests").fetchone()

        return {
            "feedback": row["total"] or 0,
            "urgent": row["urgent"] or 0,
            "digests": digest_row["digests"] or 0,
        }

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

    def __enter__(self) -> "Database":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
