"""Tests for kbindex.web.routes.collection - weekly collection routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from kbindex.models import ApiResponse, CollectionResult, NewDataCheck
from kbindex.web.dependencies import get_collector
from kbindex.web.routes import collection


@pytest.fixture
def collector():
    mock = MagicMock()
    mock.collect = AsyncMock()
    mock.check_for_new_data = AsyncMock()
    return mock


@pytest.fixture
def app(collector):
    """Create test FastAPI app with collection router."""
    test_app = FastAPI()
    test_app.include_router(collection.router)
    test_app.dependency_overrides[get_collector] = lambda: collector
    return test_app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


class TestCollectData:
    """Tests for POST /api/collect-data."""

    def test_collected(self, client, collector):
        collector.collect.return_value = ApiResponse.ok(
            CollectionResult(week="20240108", file_name="20240108_주간시계열.xlsx", record_count=4),
            message="Data collection completed",
        )

        response = client.post("/api/collect-data")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Data collection completed"
        assert body["data"]["recordCount"] == 4
        assert body["data"]["skippedRows"] == []

    def test_already_collected(self, client, collector):
        collector.collect.return_value = ApiResponse.ok(message="Latest data already exists")

        response = client.post("/api/collect-data")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Latest data already exists"}

    def test_missing_file(self, client, collector):
        collector.collect.return_value = ApiResponse.fail(
            "Workbook 20240108_주간시계열.xlsx not found", "UpstreamError"
        )

        response = client.post("/api/collect-data")

        assert response.status_code == 502
        assert response.json()["success"] is False


class TestCollectionStatus:
    """Tests for GET /api/collection-status."""

    def test_pending_week(self, client, collector):
        collector.check_for_new_data.return_value = NewDataCheck(
            has_new_data=True, week="20240108", file_name="20240108_주간시계열.xlsx"
        )

        response = client.get("/api/collection-status")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["hasNewData"] is True
        assert data["week"] == "20240108"
        assert data["fileName"] == "20240108_주간시계열.xlsx"
        assert "lastCheck" in data

    def test_database_unavailable(self, client, collector):
        collector.check_for_new_data.side_effect = OperationalError("SELECT", {}, Exception("down"))

        response = client.get("/api/collection-status")

        assert response.status_code == 502
        assert response.json()["errorType"] == "UpstreamError"
