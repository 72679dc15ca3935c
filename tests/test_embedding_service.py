"""Tests for the OpenAI-backed EmbeddingService."""

import logging
import os
from unittest.mock import patch

import numpy as np
import pytest
from openai import APIConnectionError

from shopassist import EmbeddingService
from shopassist.config import config


@pytest.fixture
def service(embedding_service_factory):
    return embedding_service_factory(model="text-embedding-3-small")


class TestClientSetup:
    def test_api_key_falls_back_to_environment(self):
        with patch.dict(os.environ, {"OPENAI_API_KEY": "env-key"}):
            service = EmbeddingService()

        assert service.client.api_key == "env-key"
        assert service.model == config.EMBEDDING_MODEL
        assert service.batch_size == config.EMBEDDING_BATCH_SIZE

    def test_client_carries_timeout_and_headers(self, service):
        assert service.client.timeout == config.OPENAI_TIMEOUT
        for name, value in config.get_api_headers().items():
            assert service.client.default_headers[name] == value

    @pytest.mark.parametrize(("requested", "expected"), [(0, 100), (-5, 1), (7, 7)])
    def test_batch_size_is_at_least_one(self, requested, expected):
        with patch.object(config, "EMBEDDING_BATCH_SIZE", 100):
            service = EmbeddingService(api_key="test-key", batch_size=requested)

        assert service.batch_size == expected


def test_query_embedding_is_float32(openai_embeddings_factory, service):
    api = openai_embeddings_factory("single_success")

    vector = service.get_embedding("Quels sont vos délais ?")

    api.assert_called_once_with(
        model="text-embedding-3-small", input="Quels sont vos délais ?"
    )
    assert vector.dtype == np.float32
    np.testing.assert_allclose(vector, [0.1, 0.2, 0.3, 0.4, 0.5], rtol=1e-6)


def test_documents_are_embedded_in_one_request(openai_embeddings_factory, service):
    api = openai_embeddings_factory("batch_success")
    documents = ["Retours gratuits", "Livraison 48h", "Paiement en 3 fois"]

    vectors = service.get_embeddings_batch(documents)

    api.assert_called_once_with(model="text-embedding-3-small", input=documents)
    assert [v.dtype for v in vectors] == [np.float32] * 3
    np.testing.assert_allclose(vectors[2], [0.7, 0.8, 0.9], rtol=1e-6)


def test_large_inputs_are_split_by_batch_size(openai_embeddings_factory, service):
    api = openai_embeddings_factory("multiple_batches")

    vectors = service.get_embeddings_batch(("a", "b", "c", "d"), batch_size=2)

    assert [c.kwargs["input"] for c in api.call_args_list] == [["a", "b"], ["c", "d"]]
    assert len(vectors) == 4
    np.testing.assert_allclose(vectors[3], [0.7, 0.8], rtol=1e-6)


def test_no_texts_means_no_request(openai_embeddings_api_mock, service):
    assert service.get_embeddings_batch([]) == []
    openai_embeddings_api_mock.assert_not_called()


def test_short_response_is_rejected(openai_embeddings_factory, service):
    openai_embeddings_factory("batch_success", embeddings=[[0.1, 0.2]])

    with pytest.raises(ValueError, match="Expected 2 embeddings, received 1"):
        service.get_embeddings_batch(["a", "b"])


@pytest.mark.parametrize("call", ["single", "batch"])
def test_api_errors_propagate_without_logging(
    openai_embeddings_factory, service, caplog, call
):
    openai_embeddings_factory("error", error_message="quota exceeded")

    with (
        caplog.at_level(logging.DEBUG, logger="shopassist.embeddings"),
        pytest.raises(Exception, match="quota exceeded"),
    ):
        if call == "single":
            service.get_embedding("x")
        else:
            service.get_embeddings_batch(["x", "y"])

    assert [r for r in caplog.records if r.name.startswith("shopassist")] == []


@pytest.mark.skipif(
    not os.getenv("OPENAI_API_KEY"),
    reason="OPENAI_API_KEY environment variable not set",
)
def test_real_api_query_embedding():
    service = EmbeddingService(model="text-embedding-3-small")

    try:
        vector = service.get_embedding("Quels sont vos délais de livraison ?")
    except APIConnectionError as exc:  # pragma: no cover - network dependent
        pytest.skip(f"OpenAI not reachable: {exc!s}")
    else:
        assert vector.shape == (1536,)
        assert vector.dtype == np.float32
