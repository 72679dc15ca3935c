"""Tests for the embedding-similarity reranker."""

import numpy as np
import pytest

from shopassist import EmbeddingReranker
from shopassist.reranker import cosine_similarity


@pytest.fixture
def static_reranker(static_embedding_factory):
    service = static_embedding_factory(
        {
            "question": [1.0, 0.0],
            "close": [0.9, 0.1],
            "far": [0.1, 0.9],
            "opposite": [-1.0, 0.0],
        }
    )
    return EmbeddingReranker(service)


def test_cosine_similarity_basic():
    unit = np.array([1.0, 0.0])
    assert cosine_similarity(unit, np.array([3.0, 0.0])) == pytest.approx(1.0)
    assert cosine_similarity(unit, np.array([0.0, 1.0])) == pytest.approx(0.0)
    assert cosine_similarity(unit, np.array([-2.0, 0.0])) == pytest.approx(-1.0)


def test_cosine_similarity_degenerate_inputs():
    assert cosine_similarity(np.zeros(3), np.ones(3)) == 0.0
    assert cosine_similarity(np.ones(2), np.ones(3)) == 0.0


def test_rerank_orders_by_similarity(static_reranker):
    results = static_reranker.rerank("question", ["far", "close", "opposite"], top_k=3)

    assert [r.text for r in results] == ["close", "far", "opposite"]
    assert [r.index for r in results] == [1, 0, 2]
    assert results[0].score > results[1].score


def test_rerank_scores_are_clamped_to_non_negative(static_reranker):
    results = static_reranker.rerank("question", ["opposite"], top_k=1)

    assert results[0].score == 0.0


def test_rerank_truncates_to_top_k(static_reranker):
    results = static_reranker.rerank("question", ["far", "close", "opposite"], top_k=1)

    assert len(results) == 1
    assert results[0].text == "close"


def test_rerank_top_k_larger_than_documents(static_reranker):
    results = static_reranker.rerank("question", ["far", "close"], top_k=10)

    assert len(results) == 2


def test_rerank_empty_documents_skips_embedding(mock_embedding_service):
    service = mock_embedding_service

    assert EmbeddingReranker(service).rerank("question", []) == []
    assert service.calls == []
    assert service.batch_calls == []


def test_document_identical_to_query_scores_one(mock_embedding_service):
    reranker = EmbeddingReranker(mock_embedding_service)
    text = "Les retours sont gratuits sous 30 jours."

    results = reranker.rerank(text, [text, "Autre chose"], top_k=2)

    assert results[0].index == 0
    assert results[0].score == pytest.approx(1.0, abs=1e-5)


def test_rerank_is_idempotent_on_its_output(static_reranker):
    first = static_reranker.rerank("question", ["far", "opposite", "close"], top_k=3)
    second = static_reranker.rerank("question", [r.text for r in first], top_k=3)

    assert [r.text for r in second] == [r.text for r in first]


def test_documents_embedded_in_one_batch(mock_embedding_service):
    service = mock_embedding_service
    EmbeddingReranker(service).rerank("q", ["a", "b", "c"], top_k=3)

    assert service.calls == ["q"]
    assert service.batch_calls == [["a", "b", "c"]]


def test_rerank_degrades_to_original_order_on_failure(failing_embedding_service):
    reranker = EmbeddingReranker(failing_embedding_service)

    results = reranker.rerank("question", ["b", "a", "c"], top_k=2)

    assert [r.text for r in results] == ["b", "a", "c"]
    assert [r.index for r in results] == [0, 1, 2]
    assert all(r.score == 0.0 for r in results)
