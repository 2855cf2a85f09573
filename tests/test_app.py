"""
Tests for the FastAPI indexing endpoints.

The orchestrator is replaced by a mock; the lifespan is not run.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

import app as app_module
from notegraph.models.interest import TopicInterest
from notegraph.models.knowledge import KnowledgeEntity
from notegraph.models.note import IndexingStatus
from notegraph.utils.exceptions import ValidationError


@pytest.fixture
def orchestrator(monkeypatch):
    """Mocked orchestrator installed as the app's global."""
    mock = MagicMock()
    mock.in_flight = 0
    mock.trigger = MagicMock()
    mock.get_status = AsyncMock(return_value=IndexingStatus.COMPLETED)
    mock.reindex_by_status = AsyncMock(return_value=["note_1", "note_2"])
    mock.interests.get_top_interests = AsyncMock(return_value=[])
    monkeypatch.setattr(app_module, "orchestrator", mock)
    return mock


@pytest.fixture
def client():
    return TestClient(app_module.app)


@pytest.mark.unit
class TestIndexNote:
    """Test the indexing trigger."""

    def test_accepted(self, client, orchestrator):
        """Test a valid request is scheduled and acknowledged."""
        response = client.post("/index-note", json={"note_id": "note_1"})

        assert response.status_code == 202
        assert response.json() == {"accepted": True, "note_id": "note_1"}
        orchestrator.trigger.assert_called_once_with("note_1")

    def test_camel_case_field(self, client, orchestrator):
        """Test the camelCase field name is accepted."""
        response = client.post("/index-note", json={"noteId": "note_1"})

        assert response.status_code == 202
        orchestrator.trigger.assert_called_once_with("note_1")

    @pytest.mark.parametrize("body", [{}, {"note_id": ""}, {"note_id": "   "}])
    def test_missing_note_id(self, client, orchestrator, body):
        """Test a missing ID is a 400 and nothing is scheduled."""
        response = client.post("/index-note", json=body)

        assert response.status_code == 400
        orchestrator.trigger.assert_not_called()

    def test_validation_error(self, client, orchestrator):
        """Test trigger-side validation errors map to 400."""
        orchestrator.trigger.side_effect = ValidationError("note_id is required")

        response = client.post("/index-note", json={"note_id": "note_1"})

        assert response.status_code == 400

    def test_not_initialized(self, client, monkeypatch):
        """Test requests before startup are refused."""
        monkeypatch.setattr(app_module, "orchestrator", None)

        response = client.post("/index-note", json={"note_id": "note_1"})

        assert response.status_code == 503


@pytest.mark.unit
class TestStatusAndReindex:
    """Test status polling and batch re-indexing."""

    def test_status(self, client, orchestrator):
        """Test the current status is returned."""
        response = client.get("/notes/note_1/indexing-status")

        assert response.status_code == 200
        assert response.json() == {"note_id": "note_1", "indexing_status": "completed"}

    def test_status_unknown_note(self, client, orchestrator):
        """Test unknown notes are a 404."""
        orchestrator.get_status.return_value = None

        response = client.get("/notes/note_x/indexing-status")

        assert response.status_code == 404

    def test_reindex_defaults_to_failed(self, client, orchestrator):
        """Test re-indexing targets failed notes by default."""
        response = client.post("/notes/reindex", json={})

        assert response.status_code == 202
        assert response.json() == {"triggered": 2, "note_ids": ["note_1", "note_2"]}
        orchestrator.reindex_by_status.assert_called_once_with(IndexingStatus.FAILED)

    def test_reindex_status(self, client, orchestrator):
        """Test another status can be requested."""
        client.post("/notes/reindex", json={"status": "pending"})

        orchestrator.reindex_by_status.assert_called_once_with(IndexingStatus.PENDING)


@pytest.mark.unit
class TestHealthAndInterests:
    """Test health and interest endpoints."""

    def test_health(self, client, orchestrator):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "orchestrator_initialized": True,
            "in_flight": 0,
        }

    def test_health_initializing(self, client, monkeypatch):
        monkeypatch.setattr(app_module, "orchestrator", None)

        assert client.get("/health").json()["status"] == "initializing"

    def test_interests(self, client, orchestrator):
        """Test top interests are listed with their topic."""
        orchestrator.interests.get_top_interests.return_value = [
            TopicInterest(
                topic=KnowledgeEntity(id="topic_1", name="Climate Tech", description="d"),
                memory_score=0.1,
                aggregate_score=0.2,
            )
        ]

        response = client.get("/users/user_1/interests", params={"limit": 3})

        assert response.status_code == 200
        assert response.json() == [
            {
                "topic_id": "topic_1",
                "name": "Climate Tech",
                "description": "d",
                "memory_score": 0.1,
                "aggregate_score": 0.2,
            }
        ]
        orchestrator.interests.get_top_interests.assert_called_once_with("user_1", limit=3)
