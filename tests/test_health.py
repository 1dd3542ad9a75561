"""Tests for the /health endpoint."""

from fastapi.testclient import TestClient

from buildsmith.main import app
from buildsmith.services.build_service import BuildService


def test_health_returns_ok(client: TestClient) -> None:
    """GET /health should return 200 with status 'ok'."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"


def test_health_db_status(client: TestClient) -> None:
    """GET /health response must contain a 'database' field."""
    response = client.get("/health")
    data = response.json()
    assert "database" in data


def test_health_without_engine_reports_no_catalog(client: TestClient) -> None:
    """Before the engine is initialized the catalog count is zero."""
    previous = getattr(app.state, "build_service", None)
    if previous is not None:
        del app.state.build_service
    try:
        data = client.get("/health").json()
        assert data["catalog_items"] == 0
    finally:
        if previous is not None:
            app.state.build_service = previous


def test_health_reports_catalog_size(client: TestClient, make_engine, basic_catalog) -> None:
    """GET /health exposes the number of loaded catalog items."""
    previous = getattr(app.state, "build_service", None)
    app.state.build_service = BuildService(None, make_engine(basic_catalog))
    try:
        data = client.get("/health").json()
        assert data["catalog_items"] == 14
    finally:
        if previous is None:
            del app.state.build_service
        else:
            app.state.build_service = previous
