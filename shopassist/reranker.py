"""Embedding-similarity reranker for knowledge-base evidence.

The reranker rescoring pass runs over the already-gated candidate set (at
most a handful of documents):

1. Embed the query
2. Embed all documents in a single batch
3. Cosine similarity between the query and each document, clamped at 0
4. Sort by similarity (descending) and keep the top-K

If the embedding calls fail, documents come back in their original order
with a score of 0 so that the answer can still be produced.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .config import config
from .models import RerankedResult

if TYPE_CHECKING:
    from .embeddings import EmbeddingService

logger = config.get_logger(__name__)


def cosine_similarity(vec_a: np.ndarray, vec_b: np.ndarray) -> float:
    """Cosine similarity of two vectors.

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero norm or the
        dimensions differ.
    """
    a = np.asarray(vec_a, dtype="float64").ravel()
    b = np.asarray(vec_b, dtype="float64").ravel()
    if a.shape != b.shape:
        return 0.0

    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0:
        return 0.0
    return float(np.dot(a, b) / denominator)


class EmbeddingReranker:
    """Reranks documents by cosine similarity of their embeddings to the query."""

    def __init__(self, embedding_service: EmbeddingService) -> None:
        self.embedding_service = embedding_service

    def rerank(
        self,
        query: str,
        documents: list[str],
        top_k: int = 3,
    ) -> list[RerankedResult]:
        """Rerank documents by relevance to the query.

        Args:
            query: User question.
            documents: Candidate texts to rescore.
            top_k: Number of results to keep.

        Returns:
            Results sorted by descending score, truncated to ``top_k``. On
            embedding failure, every document in input order with score 0.
        """
        if not documents:
            logger.debug("Reranker: no documents to rerank")
            return []

        try:
            query_embedding = self.embedding_service.get_embedding(query)
            doc_embeddings = self.embedding_service.get_embeddings_batch(documents)
        except Exception:
            logger.exception("Reranker error, falling back to original order")
            return [
                RerankedResult(index=index, score=0.0, text=text)
                for index, text in enumerate(documents)
            ]

        results = [
            RerankedResult(
                index=index,
                score=max(0.0, cosine_similarity(query_embedding, doc_embedding)),
                text=documents[index],
            )
            for index, doc_embedding in enumerate(doc_embeddings)
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        results = results[:top_k]

        logger.debug(
            "Reranker scored %d documents, top scores: %s",
            len(documents),
            [round(r.score, 4) for r in results],
        )
        return results
