"""Text embeddings through the OpenAI embeddings API.

The retrievers embed one query per turn, the reranker embeds the query plus
every surviving document, and ingestion embeds whole catalogs. All of them
take the vectors as ``float32`` arrays in input order.

Failures are not logged here. They propagate to the caller, which decides
whether the turn degrades (reranker) or fails (retrieval, ingestion).
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np
from openai import OpenAI

from .config import config

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = config.get_logger(__name__)


class EmbeddingService:
    """Embeds texts with one API request per batch."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        batch_size: int | None = None,
    ) -> None:
        """Create the OpenAI client.

        Args:
            api_key: OpenAI API key. Falls back to ``OPENAI_API_KEY``.
            model: Embedding model name. Falls back to ``EMBEDDING_MODEL``.
            batch_size: Texts per request. Falls back to
                ``EMBEDDING_BATCH_SIZE``.
        """
        self.client = OpenAI(
            api_key=api_key or config.get_openai_api_key(),
            base_url=config.OPENAI_BASE_URL,
            timeout=config.OPENAI_TIMEOUT,
            default_headers=config.get_api_headers() or None,
        )
        self.model = model or config.EMBEDDING_MODEL
        self.batch_size = max(1, batch_size or config.EMBEDDING_BATCH_SIZE)

    def _embed(self, inputs: str | list[str]) -> list[np.ndarray]:
        response = self.client.embeddings.create(model=self.model, input=inputs)
        return [np.asarray(item.embedding, dtype=np.float32) for item in response.data]

    def get_embedding(self, text: str) -> np.ndarray:
        """Embed a single text.

        Returns:
            One ``float32`` vector.
        """
        return self._embed(text)[0]

    def get_embeddings_batch(
        self,
        texts: Sequence[str],
        batch_size: int | None = None,
    ) -> list[np.ndarray]:
        """Embed many texts, ``batch_size`` texts per request.

        Raises:
            ValueError: If the API returns a different number of vectors
                than texts sent.

        Returns:
            One ``float32`` vector per text, in input order.
        """
        size = max(1, batch_size or self.batch_size)
        embeddings: list[np.ndarray] = []

        for start in range(0, len(texts), size):
            batch = list(texts[start : start + size])
            vectors = self._embed(batch)
            if len(vectors) != len(batch):
                msg = f"Expected {len(batch)} embeddings, received {len(vectors)}"
                raise ValueError(msg)
            embeddings.extend(vectors)

        logger.debug(
            "Embedded %d texts in %d requests", len(texts), math.ceil(len(texts) / size)
        )
        return embeddings
