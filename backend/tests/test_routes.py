"""Tests for API routes."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client():
    from main import app

    return TestClient(app)


class TestHealthCheck:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        """Test that health check returns healthy."""
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @patch("statement_pipeline.routes.health._sync_ping_workers")
    def test_celery_health(self, mock_ping, client):
        """Responding workers are listed."""
        mock_ping.return_value = {"celery@worker-1": {"ok": "pong"}}

        response = client.get("/api/health/celery")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "workers": ["celery@worker-1"]}

    @patch("statement_pipeline.routes.health._sync_ping_workers")
    def test_celery_health_no_workers(self, mock_ping, client):
        """No responding workers is a 503."""
        mock_ping.return_value = None

        response = client.get("/api/health/celery")

        assert response.status_code == 503
        assert response.json()["detail"] == "No Celery workers available"

    @patch("statement_pipeline.routes.health._sync_ping_workers")
    def test_celery_health_broker_down(self, mock_ping, client):
        """Broker errors are reported as 503."""
        mock_ping.side_effect = ConnectionError("redis unreachable")

        response = client.get("/api/health/celery")

        assert response.status_code == 503
        assert "redis unreachable" in response.json()["detail"]


class TestStatementRoutes:
    """Tests for statement task routes."""

    @patch("statement_pipeline.routes.statements.process_statement_task")
    def test_create_statement(self, mock_task, client):
        """Posting a source queues a task."""
        mock_task.delay.return_value = MagicMock(id="task-123")

        response = client.post(
            "/api/statements",
            json={"source": "https://storage.example.com/march.pdf", "processor_id": "custom"},
        )

        assert response.status_code == 202
        assert response.json() == {"task_id": "task-123"}
        mock_task.delay.assert_called_once_with(
            "https://storage.example.com/march.pdf", "application/pdf", "custom"
        )

    def test_create_statement_requires_source(self, client):
        """The source field is required."""
        response = client.post("/api/statements", json={"mime_type": "application/pdf"})

        assert response.status_code == 422

    @patch("statement_pipeline.routes.statements.AsyncResult")
    def test_pending_statement(self, mock_result_class, client):
        """Unfinished tasks report their state only."""
        mock_result_class.return_value = MagicMock(
            state="PENDING",
            successful=MagicMock(return_value=False),
            failed=MagicMock(return_value=False),
        )

        response = client.get("/api/statements/task-123")

        assert response.status_code == 200
        assert response.json() == {"task_id": "task-123", "state": "PENDING", "result": None}

    @patch("statement_pipeline.routes.statements.AsyncResult")
    def test_completed_statement(self, mock_result_class, client):
        """Finished tasks return the task payload."""
        payload = {"status": "completed", "data": {"bankName": "Chase"}}
        mock_result_class.return_value = MagicMock(
            state="SUCCESS",
            result=payload,
            successful=MagicMock(return_value=True),
        )

        response = client.get("/api/statements/task-123")

        assert response.json()["state"] == "SUCCESS"
        assert response.json()["result"] == payload

    @patch("statement_pipeline.routes.statements.AsyncResult")
    def test_crashed_statement(self, mock_result_class, client):
        """Tasks that raised report the exception as a failure."""
        mock_result_class.return_value = MagicMock(
            state="FAILURE",
            result=RuntimeError("worker lost"),
            successful=MagicMock(return_value=False),
            failed=MagicMock(return_value=True),
        )

        response = client.get("/api/statements/task-123")

        assert response.json()["result"] == {"status": "failed", "error": "worker lost"}
