"""
Unit tests for the scheduler health endpoints.

Tests cover:
- Liveness
- Health summary with and without a scheduler
- Readiness depending on scheduler and database
"""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from jobs import health


@pytest.fixture
def scheduler():
    """Running scheduler with one job."""
    job = MagicMock()
    job.id = "daily_settlement"
    job.name = "Daily settlement"
    job.next_run_time = datetime(2024, 5, 11, 0, 5, tzinfo=UTC)
    mock = MagicMock()
    mock.running = True
    mock.get_jobs.return_value = [job]
    health.set_scheduler(mock)
    yield mock
    health.set_scheduler(None)


def _body(response) -> dict:
    return json.loads(response.body)


class TestHealthEndpoints:
    """Test health handlers."""

    async def test_liveness(self):
        """Always alive."""
        response = await health.liveness_handler(MagicMock())

        assert response.status == 200
        assert _body(response) == {"alive": True}

    async def test_health_without_scheduler(self):
        """Unhealthy before the scheduler is registered."""
        health.set_scheduler(None)

        response = await health.health_handler(MagicMock())

        assert response.status == 503

    async def test_health_lists_jobs(self, scheduler):
        """Jobs are listed with their next run."""
        response = await health.health_handler(MagicMock())

        body = _body(response)
        assert body["status"] == "healthy"
        assert body["jobs"][0]["id"] == "daily_settlement"
        assert body["jobs"][0]["next_run_time"] == "2024-05-11T00:05:00+00:00"

    async def test_ready(self, scheduler, monkeypatch):
        """Ready when the database answers."""
        monkeypatch.setattr(health, "_database_ok", AsyncMock(return_value=True))

        response = await health.readiness_handler(MagicMock())

        assert response.status == 200
        assert _body(response)["ready"] is True

    async def test_not_ready_without_database(self, scheduler, monkeypatch):
        """Database outage fails readiness."""
        monkeypatch.setattr(health, "_database_ok", AsyncMock(return_value=False))

        response = await health.readiness_handler(MagicMock())

        assert response.status == 503
        assert _body(response)["database"] is False
