"""ShopAssist - retrieval-grounded customer chat assistant."""

from .chat import ChatService
from .embeddings import EmbeddingService
from .errors import CollaboratorError, InvalidRequestError, ShopAssistError
from .gate import apply_relevance_gate
from .ingestion import IngestionService
from .intent import IntentDetector
from .interaction_log import InteractionLogger, InteractionLogRepository
from .llm import GenerationClient
from .models import (
    ChatResponse,
    FallbackReason,
    Intent,
    Message,
    ProductCandidate,
    ScoredCandidate,
    Source,
)
from .recommendations import RecommendationClient
from .reranker import EmbeddingReranker
from .retrieval import KnowledgeBaseRetriever, ProductRetriever
from .sessions import InMemorySessionStore, generate_session_id
from .vector_store import FaissVectorStore, SQLiteVectorStore, get_vector_store

__all__ = [
    "ChatResponse",
    "ChatService",
    "CollaboratorError",
    "EmbeddingReranker",
    "EmbeddingService",
    "FaissVectorStore",
    "FallbackReason",
    "GenerationClient",
    "InMemorySessionStore",
    "IngestionService",
    "Intent",
    "IntentDetector",
    "InteractionLogRepository",
    "InteractionLogger",
    "InvalidRequestError",
    "KnowledgeBaseRetriever",
    "Message",
    "ProductCandidate",
    "ProductRetriever",
    "RecommendationClient",
    "SQLiteVectorStore",
    "ScoredCandidate",
    "ShopAssistError",
    "Source",
    "apply_relevance_gate",
    "generate_session_id",
    "get_vector_store",
]
