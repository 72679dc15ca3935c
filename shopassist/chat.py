"""Chat orchestration: intent routing, retrieval, gating, generation, history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .config import config
from .embeddings import EmbeddingService
from .errors import CollaboratorError, InvalidRequestError
from .gate import apply_relevance_gate
from .intent import IntentDetector
from .interaction_log import InteractionLogger, InteractionLogRepository
from .llm import GenerationClient
from .models import ChatResponse, FallbackReason, Intent, Message, Source
from .prompts import (
    FAQ_FALLBACK_ANSWER,
    OUT_OF_DOMAIN_ANSWER,
    PRODUCT_NOT_FOUND_ANSWER,
    compose_messages,
    format_product_list,
    format_recommendations,
)
from .recommendations import RecommendationClient
from .reranker import EmbeddingReranker
from .retrieval import KnowledgeBaseRetriever, ProductRetriever
from .sessions import InMemorySessionStore, generate_session_id
from .vector_store import get_vector_store

if TYPE_CHECKING:
    from .models import ProductCandidate, RecommendationItem, ScoredCandidate
    from .sessions import SessionStore

logger = config.get_logger(__name__)

DEFAULT_SOURCE_TITLE = "Document"


def _setting(value: int | None, default: int) -> int:
    """Explicit count override, or the configured default when omitted.

    Raises:
        ValueError: If the resulting count is negative.

    Returns:
        The count to use; zero is kept as given.
    """
    count = value if value is not None else default
    if count < 0:
        msg = f"Count settings must not be negative, got {count}"
        raise ValueError(msg)
    return count


@dataclass
class BranchOutcome:
    """What one intent branch produced before history and logging."""

    answer: str
    sources: list[Source] = field(default_factory=list)
    generated: bool = False
    fallback_reason: FallbackReason | None = None


class ChatService:
    """Answers customer messages; one instance serves every session."""

    def __init__(  # noqa: PLR0913
        self,
        intent_detector: IntentDetector,
        kb_retriever: KnowledgeBaseRetriever,
        product_retriever: ProductRetriever,
        reranker: EmbeddingReranker,
        generation_client: GenerationClient,
        session_store: SessionStore | None = None,
        interaction_logger: InteractionLogger | None = None,
        recommendation_client: RecommendationClient | None = None,
        *,
        retrieval_limit: int | None = None,
        gate_top_k: int | None = None,
        gate_min_score: float | None = None,
        rerank_top_k: int | None = None,
        product_top_n: int | None = None,
    ) -> None:
        """Wire the collaborators.

        Args:
            intent_detector: Routes messages to a branch.
            kb_retriever: Knowledge-base evidence retriever.
            product_retriever: Product catalog retriever.
            reranker: Second-pass scorer for knowledge-base evidence.
            generation_client: Language model client.
            session_store: History store; defaults to an in-process store.
            interaction_logger: Optional audit-trail writer.
            recommendation_client: Optional related-products client.
            retrieval_limit: Hits requested from each retriever.
            gate_top_k: Candidates kept by the relevance gate.
            gate_min_score: Minimum best score accepted by the gate.
            rerank_top_k: Upper bound on reranked evidence.
            product_top_n: Products listed in a product answer.
        """
        self.intent_detector = intent_detector
        self.kb_retriever = kb_retriever
        self.product_retriever = product_retriever
        self.reranker = reranker
        self.generation_client = generation_client
        self.session_store: SessionStore = (
            session_store if session_store is not None else InMemorySessionStore()
        )
        self.interaction_logger = interaction_logger
        self.recommendation_client = recommendation_client

        self.retrieval_limit = _setting(retrieval_limit, config.RETRIEVAL_LIMIT)
        self.gate_top_k = _setting(gate_top_k, config.GATE_TOP_K)
        self.gate_min_score = (
            gate_min_score if gate_min_score is not None else config.GATE_MIN_SCORE
        )
        self.rerank_top_k = _setting(rerank_top_k, config.RERANK_TOP_K)
        self.product_top_n = _setting(product_top_n, config.PRODUCT_TOP_N)

    @classmethod
    def from_config(cls, openai_api_key: str | None = None) -> ChatService:
        """Build a service backed by OpenAI, local vector stores and SQLite logs.

        Returns:
            A ready-to-use ChatService.
        """
        embedding_service = EmbeddingService(api_key=openai_api_key)
        kb_store = get_vector_store(
            config.VECTOR_BACKEND,  # type: ignore[arg-type]
            collection=config.KB_COLLECTION,
        )
        product_store = get_vector_store(
            config.VECTOR_BACKEND,  # type: ignore[arg-type]
            collection=config.PRODUCT_COLLECTION,
        )
        kb_store.load()
        product_store.load()
        logger.info("Using %s vector storage", kb_store.backend)

        return cls(
            intent_detector=IntentDetector.from_config(),
            kb_retriever=KnowledgeBaseRetriever(embedding_service, kb_store),
            product_retriever=ProductRetriever(embedding_service, product_store),
            reranker=EmbeddingReranker(embedding_service),
            generation_client=GenerationClient(api_key=openai_api_key),
            session_store=InMemorySessionStore(),
            interaction_logger=InteractionLogger(InteractionLogRepository()),
            recommendation_client=(
                RecommendationClient(config.RECO_SERVICE_URL)
                if config.RECO_SERVICE_URL
                else None
            ),
        )

    def process_message(
        self, message: str, session_id: str | None = None
    ) -> ChatResponse:
        """Answer one customer message.

        Args:
            message: Raw customer text.
            session_id: Existing conversation id; a new one is generated when
                omitted.

        Raises:
            InvalidRequestError: If the message is empty.
            CollaboratorError: If retrieval or generation fails.

        Returns:
            The answer, its sources and the session id.
        """
        if not isinstance(message, str) or not message.strip():
            msg = "The 'message' field is required."
            raise InvalidRequestError(msg)

        intent = self.intent_detector.detect(message)
        current_session_id = session_id or generate_session_id()
        history = self.session_store.get(current_session_id)
        logger.info(
            "Processing message (session=%s, intent=%s)",
            current_session_id,
            intent.value,
        )

        if intent is Intent.FAQ:
            outcome = self._handle_faq(message, history)
        elif intent is Intent.PRODUCT_SEARCH:
            outcome = self._handle_product_search(message)
        else:
            outcome = BranchOutcome(
                answer=OUT_OF_DOMAIN_ANSWER, fallback_reason=FallbackReason.OTHER
            )

        self.session_store.append(
            current_session_id,
            [
                Message(role="user", content=message),
                Message(role="assistant", content=outcome.answer),
            ],
        )

        has_fallback = not outcome.generated
        if outcome.fallback_reason is not None:
            logger.info(
                "Fallback answer (session=%s, reason=%s)",
                current_session_id,
                outcome.fallback_reason.value,
                extra={
                    "fallback_reason": outcome.fallback_reason.value,
                    "intent": intent.value,
                },
            )

        self._record_interaction(
            session_id=current_session_id,
            intent=intent,
            user_message=message,
            answer=outcome.answer,
            has_fallback=has_fallback,
        )

        return ChatResponse(
            answer=outcome.answer,
            sources=outcome.sources,
            session_id=current_session_id,
            intent=intent,
            has_fallback=has_fallback,
            fallback_reason=outcome.fallback_reason,
        )

    def get_history(self, session_id: str) -> list[Message]:
        return self.session_store.get(session_id)

    def _handle_faq(self, message: str, history: list[Message]) -> BranchOutcome:
        candidates = self._retrieve(self.kb_retriever, message)
        if not candidates:
            logger.info("FAQ: no sources retrieved")
            return BranchOutcome(
                answer=FAQ_FALLBACK_ANSWER, fallback_reason=FallbackReason.NO_SOURCES
            )

        gate = apply_relevance_gate(
            candidates, top_k=self.gate_top_k, min_score=self.gate_min_score
        )
        if not gate.passed:
            logger.info(
                "FAQ: no sufficiently relevant result (best_score=%.4f)",
                gate.best_score,
            )
            return BranchOutcome(
                answer=FAQ_FALLBACK_ANSWER, fallback_reason=FallbackReason.LOW_SCORE
            )

        evidence, scores = self._rerank(message, gate.accepted)
        if not evidence:
            logger.info("FAQ: reranking kept no source")
            return BranchOutcome(
                answer=FAQ_FALLBACK_ANSWER, fallback_reason=FallbackReason.NO_SOURCES
            )

        messages = compose_messages(evidence, message, history)
        logger.info(
            "FAQ: calling the language model with %d sources (best_score=%.4f)",
            len(evidence),
            gate.best_score,
        )

        try:
            answer = self.generation_client.generate(messages)
        except Exception as exc:
            logger.exception("Generation failed")
            raise CollaboratorError("generation", str(exc)) from exc

        sources = [
            Source(
                title=candidate.metadata.get("topic") or DEFAULT_SOURCE_TITLE,
                text=candidate.content,
                score=score,
            )
            for candidate, score in zip(evidence, scores, strict=True)
        ]
        return BranchOutcome(answer=answer, sources=sources, generated=True)

    def _rerank(
        self, message: str, accepted: list[ScoredCandidate]
    ) -> tuple[list[ScoredCandidate], list[float]]:
        """Reorder gated candidates by reranker score.

        Returns:
            The candidates in reranked order and their reranker scores.
        """
        top_k = min(self.rerank_top_k, len(accepted))
        reranked = self.reranker.rerank(
            message, [candidate.content for candidate in accepted], top_k=top_k
        )[:top_k]
        return (
            [accepted[result.index] for result in reranked],
            [result.score for result in reranked],
        )

    def _handle_product_search(self, message: str) -> BranchOutcome:
        products: list[ProductCandidate] = self._retrieve(
            self.product_retriever, message
        )  # type: ignore[assignment]
        if not products:
            logger.info("Product search: no product found")
            return BranchOutcome(
                answer=PRODUCT_NOT_FOUND_ANSWER,
                fallback_reason=FallbackReason.NO_PRODUCT,
            )

        top_products = products[: self.product_top_n]
        if not top_products:
            return BranchOutcome(
                answer=PRODUCT_NOT_FOUND_ANSWER,
                fallback_reason=FallbackReason.NO_PRODUCT,
            )
        answer = format_product_list(top_products)

        recommendations = self._fetch_recommendations(top_products[0].product_id)
        if recommendations:
            answer = f"{answer}\n\n{format_recommendations(recommendations)}"

        sources = [
            Source(title=product.title, text=product.description, score=product.score)
            for product in top_products
        ]
        return BranchOutcome(answer=answer, sources=sources)

    def _fetch_recommendations(self, product_id: str) -> list[RecommendationItem]:
        if self.recommendation_client is None or not product_id:
            return []
        try:
            return self.recommendation_client.get_recommendations(product_id)
        except Exception:
            logger.exception(
                "Recommendations unavailable for product %s; omitting section",
                product_id,
            )
            return []

    def _retrieve(
        self,
        retriever: KnowledgeBaseRetriever | ProductRetriever,
        message: str,
    ) -> list[ScoredCandidate]:
        try:
            return retriever.search(message, limit=self.retrieval_limit)
        except Exception as exc:
            logger.exception("Retrieval failed in %s", type(retriever).__name__)
            raise CollaboratorError("retrieval", str(exc)) from exc

    def _record_interaction(
        self,
        *,
        session_id: str,
        intent: Intent,
        user_message: str,
        answer: str,
        has_fallback: bool,
    ) -> None:
        if self.interaction_logger is None:
            return
        try:
            self.interaction_logger.record(
                session_id=session_id,
                intent=intent,
                user_message=user_message,
                assistant_answer=answer,
                has_fallback=has_fallback,
            )
        except Exception:
            logger.exception("Interaction logger raised; continuing")
