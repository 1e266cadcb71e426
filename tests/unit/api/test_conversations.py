"""Unit tests for the conversation history endpoint."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from stylechat.api.main import app
from stylechat.models.conversation import ConversationHistory, ConversationTurn, MediaPart, TextPart


@pytest.fixture
def client():
    return TestClient(app)


def test_returns_stored_transcript(client, memory_store, png_bytes):
    history = ConversationHistory(
        user_id="u1",
        turns=[
            ConversationTurn.user_text("persona"),
            ConversationTurn(
                role="user",
                parts=(TextPart(text="Rate"), MediaPart(mime_type="image/png", data=png_bytes)),
            ),
            ConversationTurn.model_text("Great fit."),
        ],
    )
    memory_store.records["u1"] = history.to_record()

    with patch("stylechat.api.main.app_state", {"history_store": memory_store}):
        response = client.get("/api/v1/conversations/u1")

    assert response.status_code == 200
    data = response.json()
    assert data["userId"] == "u1"
    assert data["turnCount"] == 3
    assert data["history"][1]["parts"][1]["mimeType"] == "image/png"
    assert data["history"][2] == {"role": "model", "parts": [{"text": "Great fit."}]}


def test_unknown_user_returns_404(client, memory_store):
    with patch("stylechat.api.main.app_state", {"history_store": memory_store}):
        response = client.get("/api/v1/conversations/nobody")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_uninitialized_store_returns_503(client):
    with patch("stylechat.api.main.app_state", {"history_store": None}):
        response = client.get("/api/v1/conversations/u1")

    assert response.status_code == 503
    assert response.json()["error"] == "service_unavailable"
