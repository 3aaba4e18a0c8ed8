"""End-to-end tests for the FastAPI app: startup, plugin API and the CORS built-in."""

import pytest
from fastapi.testclient import TestClient

from app import app
from devserver import dependencies
from devserver.dependencies import reset_services
from devserver.services.config_service import Config


@pytest.fixture
def client(project_root):
    reset_services()
    dependencies._config_instance = Config({"root": str(project_root)})
    dependencies.get_service_registry().register_service("echo", lambda payload: payload)
    with TestClient(app) as test_client:
        yield test_client
    app.state.plugin_chain = None
    reset_services()


class TestPluginApi:
    """Tests for the /api plugin endpoints."""

    def test_list_plugins(self, client):
        response = client.get("/api/plugins")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()["plugins"]] == ["cors"]

    def test_get_plugin(self, client):
        response = client.get("/api/plugins/cors")

        assert response.status_code == 200
        assert response.json()["trusted"] is True

    def test_unknown_plugin_is_404(self, client):
        assert client.get("/api/plugins/missing").status_code == 404

    def test_call_service(self, client):
        response = client.post("/api/services/echo", json={"payload": {"a": 1}})

        assert response.status_code == 200
        assert response.json() == {"result": {"a": 1}}
        assert client.get("/api/services").json() == {"services": ["echo"]}

    def test_unknown_service_is_404(self, client):
        assert client.post("/api/services/missing", json={}).status_code == 404


class TestCorsPlugin:
    """Tests for the built-in CORS middleware."""

    def test_headers_added_to_responses(self, client):
        response = client.get("/api/plugins", headers={"Origin": "http://example.com"})

        assert response.headers["access-control-allow-origin"] == "*"

    def test_preflight_is_answered(self, client):
        response = client.options(
            "/api/plugins",
            headers={
                "Origin": "http://example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )

        assert response.status_code == 204
        assert response.headers["access-control-allow-headers"] == "content-type"

    def test_disabled_cors_adds_nothing(self, client):
        dependencies.get_config().set("cors", False)

        response = client.get("/api/plugins")

        assert "access-control-allow-origin" not in response.headers
