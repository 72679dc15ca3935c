"""Tests for data models and user-facing error formatting."""

import pytest

from shopassist import ChatResponse, CollaboratorError, Intent, Source
from shopassist.errors import GENERIC_ERROR_MESSAGE, format_user_error, new_request_id
from shopassist.models import GateResult, InteractionLog, ScoredCandidate


def test_source_to_dict_omits_missing_score():
    assert Source(title="t", text="x").to_dict() == {"title": "t", "text": "x"}
    assert Source(title="t", text="x", score=0.0).to_dict()["score"] == 0.0


def test_chat_response_to_dict_shape():
    response = ChatResponse(
        answer="a",
        sources=[],
        session_id="sess_1",
        intent=Intent.OTHER,
        has_fallback=True,
    )

    assert response.to_dict() == {"answer": "a", "sources": [], "sessionId": "sess_1"}


def test_gate_result_passed():
    candidate = ScoredCandidate(id="1", content="c", score=0.5)

    assert GateResult(accepted=[candidate], best_score=0.5).passed
    assert not GateResult(accepted=[], best_score=0.5).passed


def test_interaction_log_timestamp_is_utc_iso():
    entry = InteractionLog(
        session_id="s",
        intent=Intent.FAQ,
        user_message="q",
        assistant_answer="a",
        has_fallback=False,
    )

    assert entry.created_at.endswith("+00:00")


@pytest.mark.parametrize("value", ["FAQ", "PRODUCT_SEARCH", "OTHER"])
def test_intent_values_are_stable(value):
    assert Intent(value).value == value


def test_format_user_error_carries_request_id_only():
    request_id = new_request_id()

    message = format_user_error(request_id)

    assert message.startswith(GENERIC_ERROR_MESSAGE)
    assert request_id in message
    assert new_request_id() != request_id


def test_collaborator_error_names_collaborator():
    error = CollaboratorError("retrieval", "timeout")

    assert error.collaborator == "retrieval"
    assert str(error) == "retrieval: timeout"
    assert isinstance(error, RuntimeError)
