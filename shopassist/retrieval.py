"""Evidence retrievers over the knowledge-base and product collections."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from .config import config
from .models import ProductCandidate, ScoredCandidate, VectorHit

if TYPE_CHECKING:
    import numpy as np

    from .embeddings import EmbeddingService

logger = config.get_logger(__name__)


class VectorIndex(Protocol):
    """Nearest-neighbour search contract used by the retrievers."""

    def search(self, query_embedding: np.ndarray, limit: int = 5) -> list[VectorHit]:
        ...


class Retriever:
    """Embeds a query and maps vector hits to scored candidates.

    Ordering and thresholding are left to the relevance gate: hits come back
    exactly as the index ranked them.
    """

    def __init__(
        self, embedding_service: EmbeddingService, vector_store: VectorIndex
    ) -> None:
        self.embedding_service = embedding_service
        self.vector_store = vector_store

    def search(self, query: str, limit: int = 5) -> list[ScoredCandidate]:
        """Retrieve up to ``limit`` candidates for the query.

        Returns:
            Candidates in the order returned by the vector index.
        """
        query_embedding = self.embedding_service.get_embedding(query)
        hits = self.vector_store.search(query_embedding, limit=limit)
        logger.debug("%s returned %d hits", type(self).__name__, len(hits))
        return [self._to_candidate(hit) for hit in hits]

    def _to_candidate(self, hit: VectorHit) -> ScoredCandidate:
        raise NotImplementedError


class KnowledgeBaseRetriever(Retriever):
    """Retriever for FAQ / knowledge-base documents."""

    def _to_candidate(self, hit: VectorHit) -> ScoredCandidate:
        payload = hit.payload or {}
        metadata: dict[str, Any] = dict(payload)
        nested = payload.get("metadata")
        if isinstance(nested, dict):
            for key, value in nested.items():
                metadata.setdefault(key, value)

        return ScoredCandidate(
            id=hit.id,
            content=str(payload.get("content") or ""),
            score=float(hit.score),
            metadata=metadata,
        )


class ProductRetriever(Retriever):
    """Retriever for catalog products."""

    def search(self, query: str, limit: int = 5) -> list[ProductCandidate]:  # type: ignore[override]
        return super().search(query, limit)  # type: ignore[return-value]

    def _to_candidate(self, hit: VectorHit) -> ProductCandidate:
        payload = hit.payload or {}
        title = str(payload.get("title") or "")
        description = str(payload.get("description") or "")
        category_name = payload.get("categoryName")

        return ProductCandidate(
            id=hit.id,
            content=". ".join(part for part in (title, description) if part),
            score=float(hit.score),
            metadata=dict(payload),
            product_id=str(payload.get("productId") or hit.id),
            title=title,
            description=description,
            slug=str(payload.get("slug") or ""),
            category_id=str(payload.get("categoryId") or ""),
            category_name=str(category_name) if category_name else None,
        )
