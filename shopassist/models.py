"""Data models for the ShopAssist application."""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

VALID_ROLES = ("system", "user", "assistant")


class Intent(str, Enum):
    """Closed set of intents; values double as the log table enumeration."""

    FAQ = "FAQ"
    PRODUCT_SEARCH = "PRODUCT_SEARCH"
    OTHER = "OTHER"


class FallbackReason(str, Enum):
    """Label attached to a turn that did not produce a generated answer."""

    NO_SOURCES = "no_sources"
    LOW_SCORE = "low_score"
    NO_PRODUCT = "no_product"
    OTHER = "other"


@dataclass
class DocumentChunk:
    """Represents a chunk of text from a knowledge-base document."""

    content: str
    metadata: dict[str, Any]


@dataclass
class VectorHit:
    """Raw nearest-neighbour hit returned by a vector store."""

    id: str
    score: float
    payload: dict[str, Any]


@dataclass
class ScoredCandidate:
    """A retrieved document with its relevance score (higher is better)."""

    id: str
    content: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProductCandidate(ScoredCandidate):
    """A retrieved catalog product."""

    product_id: str = ""
    title: str = ""
    description: str = ""
    slug: str = ""
    category_id: str = ""
    category_name: str | None = None


@dataclass
class RerankedResult:
    """One document after reranking; ``index`` points into the input list."""

    index: int
    score: float
    text: str


@dataclass
class GateResult:
    """Outcome of the relevance gate."""

    accepted: list[ScoredCandidate]
    best_score: float

    @property
    def passed(self) -> bool:
        return bool(self.accepted)


@dataclass
class Message:
    """A single chat message exchanged with the language model."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in VALID_ROLES:
            msg = f"Invalid message role: {self.role!r}"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class RecommendationItem:
    """Product suggested by the recommendation service."""

    id: str
    name: str | None = None
    title: str | None = None
    slug: str | None = None
    description: str | None = None
    category: str | None = None

    @property
    def label(self) -> str:
        return self.title or self.name or self.id


@dataclass
class InteractionLog:
    """Audit record of one request/response cycle."""

    session_id: str
    intent: Intent
    user_message: str
    assistant_answer: str
    has_fallback: bool
    created_at: str = field(
        default_factory=lambda: datetime.datetime.now(tz=datetime.UTC).isoformat()
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "intent": Intent(self.intent).value,
            "userMessage": self.user_message,
            "assistantAnswer": self.assistant_answer,
            "hasFallback": self.has_fallback,
            "createdAt": self.created_at,
        }


@dataclass
class Source:
    """Evidence shown to the caller alongside an answer."""

    title: str
    text: str
    score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "text": self.text}
        if self.score is not None:
            data["score"] = self.score
        return data


@dataclass
class ChatResponse:
    """Answer for one turn of a conversation."""

    answer: str
    sources: list[Source]
    session_id: str
    intent: Intent
    has_fallback: bool
    fallback_reason: FallbackReason | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the caller-facing response shape.

        Returns:
            Mapping with ``answer``, ``sources`` and ``sessionId`` keys.
        """
        return {
            "answer": self.answer,
            "sources": [source.to_dict() for source in self.sources],
            "sessionId": self.session_id,
        }
