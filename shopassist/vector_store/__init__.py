"""Vector store adapters and factory."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from shopassist.config import config

from .faiss_store import FaissVectorStore
from .sqlite_store import SQLiteVectorStore

VectorBackend = Literal["faiss", "sqlite"]


def get_vector_store(
    store: VectorBackend = "faiss",
    *,
    collection: str,
    base_dir: Path | None = None,
    raw_top_k_multiplier: int | None = None,
) -> FaissVectorStore | SQLiteVectorStore:
    """Return a configured vector store instance for one collection.

    Files live under ``base_dir`` as ``<collection>.db`` (payloads) and, for
    the FAISS backend, ``<collection>.faiss``.

    Raises:
        ValueError: If an unsupported backend is requested.
    """
    if base_dir is None:
        base_dir = config.VECTOR_STORE_DIR
    base_dir = Path(base_dir)
    backend = store.lower()

    if backend == "faiss":
        return FaissVectorStore(
            db_path=base_dir / f"{collection}.db",
            index_path=base_dir / f"{collection}.faiss",
            collection=collection,
            raw_top_k_multiplier=(
                raw_top_k_multiplier
                if raw_top_k_multiplier is not None
                else config.VECTOR_RAW_TOP_K_MULTIPLIER
            ),
        )

    if backend == "sqlite":
        return SQLiteVectorStore(
            db_path=base_dir / f"{collection}.db",
            collection=collection,
        )

    msg = f"Unsupported vector store backend: {store}"
    raise ValueError(msg)


__all__ = ["FaissVectorStore", "SQLiteVectorStore", "VectorBackend", "get_vector_store"]
