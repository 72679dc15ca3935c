"""Ingestion of knowledge-base documents and catalog products."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import config
from .document_processing import DocumentLoader, TextChunker
from .errors import InvalidRequestError

if TYPE_CHECKING:
    from .embeddings import EmbeddingService
    from .vector_store import FaissVectorStore, SQLiteVectorStore

logger = config.get_logger(__name__)

PRODUCT_REQUIRED_FIELDS = ("productId", "title")


def product_index_text(product: dict[str, Any]) -> str:
    """Text embedded for a product: title, description and category."""  # noqa: DOC201
    parts = [str(product.get("title") or ""), str(product.get("description") or "")]
    if product.get("categoryName"):
        parts.append(f"Catégorie : {product['categoryName']}")
    return ". ".join(part for part in parts if part)


class IngestionService:
    """Embeds content and upserts it into the knowledge-base and product stores."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        kb_store: FaissVectorStore | SQLiteVectorStore,
        product_store: FaissVectorStore | SQLiteVectorStore,
        chunker: TextChunker | None = None,
    ) -> None:
        self.embedding_service = embedding_service
        self.kb_store = kb_store
        self.product_store = product_store
        self.chunker = chunker or TextChunker(
            chunk_size=config.CHUNK_SIZE, overlap=config.CHUNK_OVERLAP
        )

    def ingest_documents(self, documents: list[dict[str, Any]]) -> int:
        """Index knowledge-base documents.

        Args:
            documents: Items of the form ``{"content": str, "metadata": dict}``.

        Raises:
            InvalidRequestError: If the batch is empty or a document has no
                content.

        Returns:
            Number of documents indexed.
        """
        if not documents:
            msg = "At least one document is required"
            raise InvalidRequestError(msg)

        for position, document in enumerate(documents):
            content = document.get("content") if isinstance(document, dict) else None
            if not isinstance(content, str) or not content.strip():
                msg = f"Document at position {position} has no content"
                raise InvalidRequestError(msg)

        texts = [document["content"] for document in documents]
        logger.info("Generating embeddings for %d documents", len(texts))
        vectors = self.embedding_service.get_embeddings_batch(texts)

        points = [
            (
                str(uuid.uuid4()),
                vector,
                {"content": document["content"], **(document.get("metadata") or {})},
            )
            for document, vector in zip(documents, vectors, strict=True)
        ]
        self.kb_store.upsert_many(points)
        self.kb_store.save()
        return len(points)

    def ingest_file(self, file_path: Path, topic: str | None = None) -> int:
        """Load, chunk and index a TXT/MD/PDF document.

        Returns:
            Number of chunks indexed.
        """
        logger.info("Ingesting document %s", file_path)
        text = DocumentLoader.load_document(file_path)
        chunks = self.chunker.chunk_text(text, source=file_path.name, topic=topic)
        if not chunks:
            logger.warning("Document %s produced no chunks", file_path)
            return 0
        return self.ingest_documents(
            [{"content": chunk.content, "metadata": chunk.metadata} for chunk in chunks]
        )

    def ingest_products(self, products: list[dict[str, Any]]) -> int:
        """Index catalog products; re-ingesting a product id replaces it.

        Raises:
            InvalidRequestError: If a product misses an id or title.

        Returns:
            Number of products indexed.
        """
        if not products:
            return 0

        for position, product in enumerate(products):
            missing = [
                name
                for name in PRODUCT_REQUIRED_FIELDS
                if not isinstance(product, dict) or not product.get(name)
            ]
            if missing:
                msg = f"Product at position {position} is missing {', '.join(missing)}"
                raise InvalidRequestError(msg)

        vectors = self.embedding_service.get_embeddings_batch(
            [product_index_text(product) for product in products]
        )
        points = [
            (
                str(product["productId"]),
                vector,
                {
                    "productId": str(product["productId"]),
                    "title": product["title"],
                    "description": product.get("description") or "",
                    "slug": product.get("slug") or "",
                    "categoryId": str(product.get("categoryId") or ""),
                    "categoryName": product.get("categoryName"),
                    "type": "product",
                },
            )
            for product, vector in zip(products, vectors, strict=True)
        ]
        self.product_store.upsert_many(points)
        self.product_store.save()
        logger.info("Indexed %d products", len(points))
        return len(points)
