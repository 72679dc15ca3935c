"""Test configuration and fixtures for ShopAssist tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Mock embedding services and OpenAI API responses
- Fake collaborators (vector index, generation, logging, recommendations)
- ChatService factories wired with fakes
- Vector store and repository fixtures on temporary paths
"""

import hashlib
from unittest.mock import Mock, patch

import numpy as np
import pytest

from shopassist import (
    ChatService,
    EmbeddingReranker,
    EmbeddingService,
    GenerationClient,
    InMemorySessionStore,
    IntentDetector,
    InteractionLogger,
    InteractionLogRepository,
    KnowledgeBaseRetriever,
    ProductRetriever,
    SQLiteVectorStore,
)
from shopassist.models import Intent, RecommendationItem, VectorHit


class TestConstants:
    """Centralized test constants shared across test modules."""

    TEST_API_KEY = "test-key"
    TEST_OPENAI_MODEL = "text-embedding-3-small"
    DEFAULT_EMBEDDING_DIMENSION = 64

    DELIVERY_QUESTION = "Quels sont vos délais de livraison ?"
    DELIVERY_DOC = "Les commandes sont livrées en 3 à 5 jours ouvrés en France."
    TSHIRT_QUESTION = "Je cherche un t-shirt en coton"
    UNRELATED_QUESTION = "Explique-moi la relativité générale"
    GENERATED_ANSWER = "Nous livrons en 3 à 5 jours ouvrés."


class MockEmbeddingService:
    """Mock embedding service for testing without API calls.

    Generates deterministic embeddings based on text content hash,
    ensuring consistent test results across runs.
    """

    def __init__(
        self, dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION
    ) -> None:
        self.dimension = dimension
        self.calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    def get_embedding(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        self.calls.append(text)
        return self._embed(text)

    def get_embeddings_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate batch of mock embeddings."""
        self.batch_calls.append(list(texts))
        return [self._embed(text) for text in texts]

    def _embed(self, text: str) -> np.ndarray:
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)


class StaticEmbeddingService:
    """Embedding service returning hand-picked vectors per text."""

    def __init__(self, vectors: dict[str, list[float]]) -> None:
        self.vectors = vectors
        self.batch_calls: list[list[str]] = []

    def get_embedding(self, text: str) -> np.ndarray:
        return np.asarray(self.vectors[text], dtype=float)

    def get_embeddings_batch(self, texts: list[str]) -> list[np.ndarray]:
        self.batch_calls.append(list(texts))
        return [np.asarray(self.vectors[text], dtype=float) for text in texts]


class FailingEmbeddingService:
    """Embedding service whose every call raises."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or ConnectionError("embedding service unreachable")

    def get_embedding(self, text: str) -> np.ndarray:
        raise self.error

    def get_embeddings_batch(self, texts: list[str]) -> list[np.ndarray]:
        raise self.error


class FakeVectorStore:
    """In-memory vector index returning preset hits and recording searches."""

    def __init__(self, hits: list[VectorHit] | None = None) -> None:
        self.hits = hits or []
        self.searches: list[int] = []
        self.points: dict[str, tuple[np.ndarray, dict]] = {}

    def search(self, query_embedding: np.ndarray, limit: int = 5) -> list[VectorHit]:
        self.searches.append(limit)
        return self.hits[:limit]

    def upsert_many(self, points) -> None:
        for point_id, vector, payload in points:
            self.points[point_id] = (vector, payload)

    def save(self) -> None:
        pass


class FakeGenerationClient:
    """Generation collaborator recording the messages it receives."""

    def __init__(
        self,
        answer: str = TestConstants.GENERATED_ANSWER,
        error: Exception | None = None,
    ) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[list] = []

    def generate(self, messages) -> str:
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return self.answer


class RecordingInteractionLogger:
    """Interaction logger keeping records in memory."""

    def __init__(self) -> None:
        self.records: list[dict] = []

    def record(self, **kwargs) -> bool:
        self.records.append(kwargs)
        return True


class FakeRecommendationClient:
    def __init__(
        self,
        items: list[RecommendationItem] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.items = items or []
        self.error = error
        self.requested: list[str] = []

    def get_recommendations(self, product_id: str) -> list[RecommendationItem]:
        self.requested.append(product_id)
        if self.error is not None:
            raise self.error
        return self.items


def create_mock_openai_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response."""
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response."""
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


def make_kb_hit(point_id: str, content: str, score: float, topic: str | None = None):
    payload = {"content": content}
    if topic:
        payload["topic"] = topic
    return VectorHit(id=point_id, score=score, payload=payload)


def make_product_hit(product_id: str, title: str, score: float, **extra):
    payload = {
        "productId": product_id,
        "title": title,
        "description": extra.get("description", f"Description de {title}"),
        "slug": extra.get("slug", title.lower().replace(" ", "-")),
        "categoryId": extra.get("categoryId", "cat-1"),
        "categoryName": extra.get("categoryName", "Vêtements"),
        "type": "product",
    }
    return VectorHit(id=product_id, score=score, payload=payload)


@pytest.fixture
def openai_embeddings_api_mock():
    """Patch the OpenAI embeddings.create method."""
    with patch("openai.resources.embeddings.Embeddings.create") as mock_create:
        yield mock_create


@pytest.fixture
def openai_embeddings_factory(openai_embeddings_api_mock):
    """Factory for OpenAI embeddings API mocks with different scenarios."""

    def _create_mock(  # noqa: ANN202
        scenario="single_success",
        embeddings=None,
        error_message="API Error",
    ):
        """Configure the patched API.

        Args:
            scenario: 'single_success', 'batch_success', 'error' or
                'multiple_batches'.
            embeddings: Custom embeddings to return, or None for defaults.
            error_message: Message raised in the error scenario.
        """
        openai_embeddings_api_mock.reset_mock()
        openai_embeddings_api_mock.side_effect = None

        if scenario == "single_success":
            vector = embeddings or [0.1, 0.2, 0.3, 0.4, 0.5]
            openai_embeddings_api_mock.return_value = create_mock_openai_response(
                [vector]
            )
        elif scenario == "batch_success":
            vectors = embeddings or [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]]
            openai_embeddings_api_mock.return_value = create_mock_openai_response(
                vectors
            )
        elif scenario == "error":
            openai_embeddings_api_mock.side_effect = Exception(error_message)
        elif scenario == "multiple_batches":
            openai_embeddings_api_mock.side_effect = [
                create_mock_openai_response([[0.1, 0.2], [0.3, 0.4]]),
                create_mock_openai_response([[0.5, 0.6], [0.7, 0.8]]),
            ]
        else:
            msg = f"Unknown scenario: {scenario}"
            raise ValueError(msg)

        return openai_embeddings_api_mock

    return _create_mock


@pytest.fixture
def embedding_service_factory():
    """Factory fixture that creates EmbeddingService instances."""

    def _create_service(api_key=None, model=None):  # noqa: ANN202
        return EmbeddingService(
            api_key=api_key or TestConstants.TEST_API_KEY,
            model=model or TestConstants.TEST_OPENAI_MODEL,
        )

    return _create_service


@pytest.fixture
def embedding_service(embedding_service_factory):
    """EmbeddingService with a test API key."""
    return embedding_service_factory()


@pytest.fixture
def generation_client():
    return GenerationClient(api_key=TestConstants.TEST_API_KEY)


@pytest.fixture
def mock_embedding_service():
    return MockEmbeddingService()


@pytest.fixture
def kb_store():
    return FakeVectorStore()


@pytest.fixture
def product_store():
    return FakeVectorStore()


@pytest.fixture
def fake_generation():
    return FakeGenerationClient()


@pytest.fixture
def interaction_recorder():
    return RecordingInteractionLogger()


@pytest.fixture
def chat_service_factory(
    mock_embedding_service,
    kb_store,
    product_store,
    fake_generation,
    interaction_recorder,
):
    """Factory for ChatService instances wired with fakes."""

    def _create_service(
        *,
        default_intent: Intent = Intent.OTHER,
        embedding_service=None,
        generation_client=None,
        interaction_logger=None,
        recommendation_client=None,
        session_store=None,
        **limits,
    ) -> ChatService:
        embeddings = embedding_service or mock_embedding_service
        settings = {
            "retrieval_limit": 5,
            "gate_top_k": 3,
            "gate_min_score": 0.1,
            "rerank_top_k": 3,
            "product_top_n": 3,
            **limits,
        }
        return ChatService(
            intent_detector=IntentDetector(default_intent=default_intent),
            kb_retriever=KnowledgeBaseRetriever(embeddings, kb_store),
            product_retriever=ProductRetriever(embeddings, product_store),
            reranker=EmbeddingReranker(embeddings),
            generation_client=generation_client or fake_generation,
            session_store=(
                session_store if session_store is not None else InMemorySessionStore()
            ),
            interaction_logger=interaction_logger or interaction_recorder,
            recommendation_client=recommendation_client,
            **settings,
        )

    return _create_service


@pytest.fixture
def chat_service(chat_service_factory):
    return chat_service_factory()


@pytest.fixture
def sqlite_store_factory(tmp_path):
    def _create_store(collection: str = "test_collection") -> SQLiteVectorStore:
        return SQLiteVectorStore(tmp_path / f"{collection}.db", collection=collection)

    return _create_store


@pytest.fixture
def interaction_repository(tmp_path):
    return InteractionLogRepository(tmp_path / "interactions.db")


@pytest.fixture
def interaction_logger(interaction_repository):
    return InteractionLogger(interaction_repository)


@pytest.fixture
def static_embedding_factory():
    """Factory for embedding services with hand-picked vectors."""
    return StaticEmbeddingService


@pytest.fixture
def failing_embedding_service():
    return FailingEmbeddingService()


@pytest.fixture
def kb_hit_factory():
    return make_kb_hit


@pytest.fixture
def product_hit_factory():
    return make_product_hit


@pytest.fixture
def generation_factory():
    """Factory for fake generation clients (answer or error)."""
    return FakeGenerationClient


@pytest.fixture
def recommendation_factory():
    """Factory for fake recommendation clients (items or error)."""
    return FakeRecommendationClient


@pytest.fixture
def mock_chat_response():
    return create_mock_chat_response
