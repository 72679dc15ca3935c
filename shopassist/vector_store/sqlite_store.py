"""SQLite-based vector storage with brute-force numpy search."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

import numpy as np

from shopassist.config import config
from shopassist.models import VectorHit
from shopassist.vector_store.base import BasePayloadStore

logger = config.get_logger(__name__)


class SQLiteVectorStore(BasePayloadStore):
    """Vector storage keeping float32 vectors as blobs next to their payloads."""

    backend = "sqlite"

    def __init__(self, db_path: Path, collection: str = "default") -> None:
        """Initialize the SQLiteVectorStore.

        Args:
            db_path: Path to the SQLite database file.
            collection: Name of the collection stored in the database.
        """
        self.embeddings: np.ndarray | None = None
        self.vector_ids: list[int] = []
        super().__init__(db_path, collection)

    def upsert_many(self, points: list[tuple[str, Any, dict[str, Any]]]) -> None:
        """Insert or replace points.

        Raises:
            ValueError: If a vector dimension differs from the stored ones.
        """
        if not points:
            return

        dimension = self.embeddings.shape[1] if self.embeddings is not None else None
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            for point_id, vector, payload in points:
                embedding = np.asarray(vector, dtype="float32").ravel()
                if dimension is None:
                    dimension = embedding.shape[0]
                elif embedding.shape[0] != dimension:
                    msg = (
                        f"Embedding dimension {embedding.shape[0]} does not match "
                        f"store dimension {dimension}"
                    )
                    raise ValueError(msg)
                self._upsert_point_row(
                    cursor,
                    str(point_id),
                    payload,
                    vector_blob=embedding.tobytes(),
                )
            conn.commit()

        self._rebuild_embeddings_matrix()
        logger.info("Upserted %d points into %s", len(points), self.collection)

    def delete(self, point_id: str) -> bool:
        """Remove a point.

        Returns:
            True if the point existed.
        """
        removed = self._delete_point_row(point_id) is not None
        if removed:
            self._rebuild_embeddings_matrix()
        return removed

    def _rebuild_embeddings_matrix(self) -> None:
        """Rebuild the in-memory embeddings matrix from stored blobs."""
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT vector_id, vector FROM points "
                "WHERE vector IS NOT NULL ORDER BY vector_id"
            )
            rows = cursor.fetchall()

        if not rows:
            self.embeddings = None
            self.vector_ids = []
            return

        self.vector_ids = [int(row[0]) for row in rows]
        self.embeddings = np.vstack(
            [np.frombuffer(row[1], dtype="float32") for row in rows]
        )
        logger.debug("Rebuilt embeddings matrix with %d vectors", len(rows))

    @staticmethod
    def cosine_similarity(
        query_embedding: np.ndarray,
        embeddings: np.ndarray,
    ) -> np.ndarray:
        """Calculate cosine similarity between query and stored embeddings.

        Returns:
            np.ndarray: Similarity per stored embedding; 0 for zero-norm vectors.
        """
        query = np.asarray(query_embedding, dtype="float32").ravel()
        query_norm = np.linalg.norm(query)
        doc_norms = np.linalg.norm(embeddings, axis=1)
        denominators = doc_norms * query_norm
        dots = embeddings @ query
        return np.divide(
            dots,
            denominators,
            out=np.zeros_like(dots),
            where=denominators != 0,
        )

    def search(
        self,
        query_embedding: np.ndarray,
        limit: int = 5,
    ) -> list[VectorHit]:
        """Search for points similar to the query embedding.

        Returns:
            Hits ranked by descending cosine similarity.
        """
        if self.embeddings is None:
            self._rebuild_embeddings_matrix()

        if self.embeddings is None or limit <= 0:
            return []

        similarities = self.cosine_similarity(query_embedding, self.embeddings)
        top_indices = np.argsort(similarities)[::-1][:limit]

        results: list[VectorHit] = []
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            for idx in top_indices:
                hit = self._build_hit(
                    cursor, self.vector_ids[int(idx)], float(similarities[idx])
                )
                if hit:
                    results.append(hit)

        return results

    def save(self) -> None:  # noqa: PLR6301
        """
        Save operation - data is already persisted in SQLite.

        Note:
            Kept as an instance method for interface consistency with the
            FAISS store.
        """
        logger.debug("Points already persisted in SQLite database")

    def load(self) -> None:
        """Load vectors from the SQLite database.

        Raises:
            sqlite3.Error: If reading the store fails.
        """
        try:
            self._rebuild_embeddings_matrix()
        except sqlite3.Error:
            logger.exception("Error loading from SQLite vector store")
            raise
        logger.info(
            "Loaded %d vectors for collection %s",
            len(self.vector_ids),
            self.collection,
        )
