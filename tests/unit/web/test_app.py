"""Tests for kbindex.web.app - application wiring, handlers and health."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from kbindex.db.connection import get_db
from kbindex.web.app import ENDPOINTS, app


@pytest.fixture
def db_session():
    return AsyncMock()


@pytest.fixture
def client(db_session):
    """Test client without lifespan (no database initialisation)."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "running"
    assert body["endpoints"] == ENDPOINTS


def test_unknown_route_lists_available_endpoints(client):
    response = client.get("/api/unknown")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert "GET /api/health" in body["availableEndpoints"]


def test_invalid_query_parameter_is_validation_error(client):
    response = client.get("/api/regions/11110/timeseries?basePeriodYears=11")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errorType"] == "ValidationError"
    assert "basePeriodYears" in body["error"]


def test_invalid_settings_body_is_validation_error(client):
    response = client.put("/api/settings", json={"basePeriodYears": 0, "useCustomBase": True})

    assert response.status_code == 400
    assert response.json()["errorType"] == "ValidationError"


class TestHealth:
    def test_healthy(self, client, db_session):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "ok"
        assert body["data"]["database"] == "connected"
        db_session.execute.assert_awaited_once()

    def test_database_down(self, client, db_session):
        db_session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))

        response = client.get("/api/health")

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["data"]["database"] == "disconnected"
