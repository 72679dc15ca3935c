"""Shared helpers for vector stores keeping point payloads in SQLite."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

from shopassist.config import config
from shopassist.models import VectorHit

logger = config.get_logger(__name__)


class BasePayloadStore:
    """Common schema management for one collection of points.

    Each point has an opaque string id chosen by the caller, an integer
    ``vector_id`` used by the similarity index, and a JSON payload.
    """

    backend = "base"

    def __init__(self, db_path: Path, collection: str) -> None:
        """Initialize the payload store and ensure schema exists."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self.collection = collection
        self._create_tables()

    def _create_tables(self) -> None:
        """Create the points table if it doesn't exist."""
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS points (
                    vector_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    point_id TEXT NOT NULL UNIQUE,
                    payload TEXT NOT NULL,
                    vector BLOB,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_points_point_id "
                "ON points(point_id)",
            )
            conn.commit()

    @staticmethod
    def _upsert_point_row(
        cursor: sqlite3.Cursor,
        point_id: str,
        payload: dict[str, Any],
        *,
        vector_blob: bytes | None = None,
    ) -> tuple[int, bool]:
        """Insert or replace a point row.

        Raises:
            RuntimeError: If the row id cannot be retrieved.

        Returns:
            Tuple of (vector_id, replaced) where ``replaced`` tells whether the
            point already existed.
        """
        payload_json = json.dumps(payload, ensure_ascii=False, default=str)
        cursor.execute(
            "SELECT vector_id FROM points WHERE point_id = ?",
            (point_id,),
        )
        row = cursor.fetchone()
        if row is not None:
            cursor.execute(
                "UPDATE points SET payload = ?, vector = ? WHERE point_id = ?",
                (payload_json, vector_blob, point_id),
            )
            return int(row[0]), True

        cursor.execute(
            "INSERT INTO points (point_id, payload, vector) VALUES (?, ?, ?)",
            (point_id, payload_json, vector_blob),
        )
        if cursor.lastrowid is None:
            msg = f"Failed to insert point '{point_id}'"
            raise RuntimeError(msg)
        return int(cursor.lastrowid), False

    @staticmethod
    def _fetch_point_by_vector_id(
        cursor: sqlite3.Cursor,
        vector_id: int,
    ) -> tuple[str, dict[str, Any]] | None:
        """Fetch (point_id, payload) by index vector id.

        Returns:
            The point id and decoded payload, or None when missing.
        """
        cursor.execute(
            "SELECT point_id, payload FROM points WHERE vector_id = ?",
            (int(vector_id),),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return str(row[0]), json.loads(row[1])

    def _build_hit(
        self,
        cursor: sqlite3.Cursor,
        vector_id: int,
        score: float,
    ) -> VectorHit | None:
        point = self._fetch_point_by_vector_id(cursor, vector_id)
        if point is None:
            logger.warning(
                "Vector %d in %s has no payload row", vector_id, self.collection
            )
            return None
        point_id, payload = point
        return VectorHit(id=point_id, score=float(score), payload=payload)

    def _delete_point_row(self, point_id: str) -> int | None:
        """Delete a point row.

        Returns:
            The removed vector id, or None if the point was unknown.
        """
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT vector_id FROM points WHERE point_id = ?",
                (point_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            cursor.execute("DELETE FROM points WHERE point_id = ?", (point_id,))
            conn.commit()
        return int(row[0])

    def count(self) -> int:
        """Number of points stored in the collection."""  # noqa: DOC201
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM points")
            return int(cursor.fetchone()[0])

    def upsert(
        self,
        point_id: str,
        vector: Any,  # noqa: ANN401
        payload: dict[str, Any],
    ) -> None:
        """Insert or replace a single point."""
        self.upsert_many([(point_id, vector, payload)])

    def upsert_many(self, points: list[tuple[str, Any, dict[str, Any]]]) -> None:
        """Insert or replace points; implemented by subclasses."""
        raise NotImplementedError
