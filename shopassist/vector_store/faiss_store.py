"""FAISS-backed vector storage with SQLite payloads."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

import faiss
import numpy as np

from shopassist.config import config
from shopassist.models import VectorHit
from shopassist.vector_store.base import BasePayloadStore

logger = config.get_logger(__name__)


class FaissVectorStore(BasePayloadStore):
    """Vector storage using FAISS for embeddings and SQLite for payloads."""

    backend = "faiss"

    def __init__(
        self,
        db_path: Path,
        index_path: Path,
        collection: str = "default",
        raw_top_k_multiplier: int = 2,
    ) -> None:
        """Configure FAISS-backed vector store."""
        self.index_path = Path(index_path)
        self.index_path.parent.mkdir(exist_ok=True, parents=True)

        self.index: faiss.IndexIDMap | None = None
        self.raw_top_k_multiplier = max(1, raw_top_k_multiplier)

        super().__init__(db_path, collection)

    @staticmethod
    def _normalize_embedding(embedding: np.ndarray) -> np.ndarray:
        """Normalize embedding for cosine similarity using inner product search.

        Returns:
            Normalized embedding vector.
        """
        vector = np.array(embedding, dtype="float32").ravel()
        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector
        faiss.normalize_L2(vector.reshape(1, -1))
        return vector

    def _init_index(self, dimension: int) -> None:
        """Initialize FAISS index if missing."""
        base_index = faiss.IndexFlatIP(dimension)
        self.index = faiss.IndexIDMap(base_index)
        logger.info(
            "Initialized FAISS index for %s with dimension %d",
            self.collection,
            dimension,
        )

    def upsert_many(self, points: list[tuple[str, Any, dict[str, Any]]]) -> None:
        """Insert or replace points in the FAISS index and payload store.

        Raises:
            ValueError: If embedding dimension mismatches the index.
        """
        if not points:
            return

        # last occurrence of a repeated id wins, as in the SQLite backend
        latest = {
            str(point_id): (vector, payload) for point_id, vector, payload in points
        }

        embeddings_batch: list[np.ndarray] = []
        vector_ids: list[int] = []
        replaced_ids: list[int] = []

        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            for point_id, (vector, payload) in latest.items():
                embedding = self._normalize_embedding(np.asarray(vector))
                if self.index is None:
                    self._init_index(embedding.shape[0])
                elif embedding.shape[0] != self.index.d:
                    msg = (
                        f"Embedding dimension {embedding.shape[0]} does not match "
                        f"FAISS index dimension {self.index.d}"
                    )
                    raise ValueError(msg)

                vector_id, replaced = self._upsert_point_row(cursor, point_id, payload)
                if replaced:
                    replaced_ids.append(vector_id)
                embeddings_batch.append(embedding)
                vector_ids.append(vector_id)

            conn.commit()

        index = self.index
        if index is None:
            return

        if replaced_ids:
            index.remove_ids(np.asarray(replaced_ids, dtype="int64"))

        vectors = np.vstack(embeddings_batch).astype("float32")
        ids_array = np.asarray(vector_ids, dtype="int64")
        index.add_with_ids(vectors, ids_array)  # pyright: ignore[reportCallIssue]
        logger.info(
            "Upserted %d vectors into %s (%d replaced)",
            len(vector_ids),
            self.collection,
            len(replaced_ids),
        )

    def delete(self, point_id: str) -> bool:
        """Remove a point from the index and payload store.

        Returns:
            True if the point existed.
        """
        vector_id = self._delete_point_row(point_id)
        if vector_id is None:
            return False
        if self.index is not None:
            self.index.remove_ids(np.asarray([vector_id], dtype="int64"))
        return True

    def search(
        self,
        query_embedding: np.ndarray,
        limit: int = 5,
    ) -> list[VectorHit]:
        """Search nearest points using the FAISS index.

        Returns:
            Hits ranked by descending cosine similarity.
        """
        index = self.index
        if index is None:
            if self.index_path.exists():
                index = faiss.read_index(str(self.index_path))
                self.index = index
                logger.info(
                    "Loaded FAISS index from disk with %d vectors", index.ntotal
                )
            else:
                logger.warning(
                    "FAISS index for %s not initialized; returning no results",
                    self.collection,
                )
                return []

        if index.ntotal == 0 or limit <= 0:
            return []

        normalized_query = self._normalize_embedding(np.asarray(query_embedding))
        raw_top_k = max(limit, self.raw_top_k_multiplier * limit)
        raw_top_k = min(raw_top_k, index.ntotal)

        scores, vector_ids = index.search(
            normalized_query.reshape(1, -1),
            raw_top_k,
        )  # pyright: ignore[reportCallIssue]

        results: list[VectorHit] = []
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            for score, vector_id in zip(scores[0], vector_ids[0], strict=True):
                if int(vector_id) == -1:  # faiss returns -1 for empty results
                    continue
                hit = self._build_hit(cursor, int(vector_id), float(score))
                if hit:
                    results.append(hit)

        return results[:limit]

    def save(self) -> None:
        """Persist FAISS index to disk."""
        index = self.index
        if index is None:
            logger.warning("No FAISS index to save for %s", self.collection)
            return

        self.index_path.parent.mkdir(exist_ok=True, parents=True)
        faiss.write_index(index, str(self.index_path))
        logger.info("Saved FAISS index to %s", self.index_path)

    def load(self) -> None:
        """Load the FAISS index from disk, if present."""
        if self.index_path.exists():
            loaded_index = faiss.read_index(str(self.index_path))
            self.index = loaded_index
            logger.info(
                "Loaded FAISS index from %s with %d vectors",
                self.index_path,
                loaded_index.ntotal,
            )
        else:
            logger.warning(
                "FAISS index not found at %s. Start with an empty index.",
                self.index_path,
            )
            self.index = None

        index = self.index
        if index is not None and not isinstance(
            index, (faiss.IndexIDMap, faiss.IndexIDMap2)
        ):
            logger.warning(
                "Loaded FAISS index is %s; wrapping with IndexIDMap to enable IDs",
                type(index).__name__,
            )
            self.index = faiss.IndexIDMap(index)
