"""Durable audit trail of chat interactions."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from .config import config
from .models import Intent, InteractionLog

logger = config.get_logger(__name__)

INTENT_VALUES = tuple(intent.value for intent in Intent)


class InteractionLogRepository:
    """SQLite persistence for :class:`InteractionLog` rows (insert-only)."""

    def __init__(self, db_path: Path | None = None) -> None:
        """Open (and create if needed) the interaction log database.

        Args:
            db_path: SQLite file. If None, uses config.INTERACTION_LOG_DB_PATH.
        """
        self.db_path = Path(db_path or config.INTERACTION_LOG_DB_PATH)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self._create_tables()

    def _create_tables(self) -> None:
        allowed = ",".join(f"'{value}'" for value in INTENT_VALUES)
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS chat_interactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    intent TEXT NOT NULL CHECK(intent IN ({allowed})),
                    user_message TEXT NOT NULL,
                    assistant_answer TEXT NOT NULL,
                    has_fallback INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
            """)  # noqa: S608
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_interactions_session "
                "ON chat_interactions(session_id, created_at)",
            )
            conn.commit()

    def log(self, entry: InteractionLog) -> int:
        """Insert one interaction.

        Raises:
            sqlite3.Error: If the insert fails.
            RuntimeError: If the row id cannot be retrieved.

        Returns:
            Id of the inserted row.
        """
        try:
            with sqlite3.connect(str(self.db_path)) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO chat_interactions
                        (session_id, intent, user_message, assistant_answer,
                         has_fallback, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry.session_id,
                        Intent(entry.intent).value,
                        entry.user_message,
                        entry.assistant_answer,
                        int(entry.has_fallback),
                        entry.created_at,
                    ),
                )
                conn.commit()
                inserted_id = cursor.lastrowid
        except sqlite3.Error:
            logger.exception(
                "Failed to log chat interaction for session %s", entry.session_id
            )
            raise

        if inserted_id is None:
            msg = "Failed to insert chat interaction row"
            raise RuntimeError(msg)
        logger.debug(
            "Chat interaction %d logged (session=%s, intent=%s)",
            inserted_id,
            entry.session_id,
            Intent(entry.intent).value,
        )
        return int(inserted_id)

    @staticmethod
    def _row_to_entry(row: tuple) -> InteractionLog:
        session_id, intent, user_message, assistant_answer, has_fallback, created_at = (
            row
        )
        return InteractionLog(
            session_id=session_id,
            intent=Intent(intent),
            user_message=user_message,
            assistant_answer=assistant_answer,
            has_fallback=bool(has_fallback),
            created_at=created_at,
        )

    def get_by_session_id(self, session_id: str) -> list[InteractionLog]:
        """Interactions of one session in chronological order.

        Returns:
            List of log entries, oldest first.
        """
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT session_id, intent, user_message, assistant_answer,
                       has_fallback, created_at
                FROM chat_interactions
                WHERE session_id = ?
                ORDER BY created_at ASC, id ASC
                """,
                (session_id,),
            )
            return [self._row_to_entry(row) for row in cursor.fetchall()]

    def get_stats(self) -> dict[str, Any]:
        """Aggregate counts by intent and number of fallbacks.

        Returns:
            Mapping with ``total_interactions``, ``by_intent`` and
            ``fallback_count``.
        """
        stats: dict[str, Any] = {
            "total_interactions": 0,
            "by_intent": dict.fromkeys(INTENT_VALUES, 0),
            "fallback_count": 0,
        }
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT intent, COUNT(*), SUM(has_fallback)
                FROM chat_interactions
                GROUP BY intent
                ORDER BY intent
            """)
            for intent, total, fallbacks in cursor.fetchall():
                stats["by_intent"][intent] = int(total)
                stats["total_interactions"] += int(total)
                stats["fallback_count"] += int(fallbacks or 0)
        return stats

    def get_all_sessions(self) -> list[str]:
        """Distinct session ids, most recent id first."""  # noqa: DOC201
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT DISTINCT session_id FROM chat_interactions "
                "ORDER BY session_id DESC"
            )
            return [row[0] for row in cursor.fetchall()]

    def delete_by_session_id(self, session_id: str) -> int:
        """Delete every interaction of a session.

        Returns:
            Number of deleted rows.
        """
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM chat_interactions WHERE session_id = ?",
                (session_id,),
            )
            conn.commit()
            return cursor.rowcount

    def purge_all(self) -> None:
        """Remove all interactions (irreversible)."""
        with sqlite3.connect(str(self.db_path)) as conn:
            conn.execute("DELETE FROM chat_interactions")
            conn.commit()
        logger.warning("All chat interactions have been purged")


class InteractionLogger:
    """Best-effort writer used by the chat service.

    Persistence failures are logged and reported through the return value;
    they never propagate to the caller.
    """

    def __init__(self, repository: InteractionLogRepository) -> None:
        self.repository = repository

    def record(  # noqa: PLR0913
        self,
        *,
        session_id: str,
        intent: Intent,
        user_message: str,
        assistant_answer: str,
        has_fallback: bool,
    ) -> bool:
        """Persist one interaction.

        Returns:
            True if the row was written, False if persistence failed.
        """
        entry = InteractionLog(
            session_id=session_id,
            intent=intent,
            user_message=user_message,
            assistant_answer=assistant_answer,
            has_fallback=has_fallback,
        )
        try:
            self.repository.log(entry)
        except Exception:
            logger.exception(
                "Interaction log write failed (session=%s, intent=%s)",
                session_id,
                Intent(intent).value,
            )
            return False
        return True
