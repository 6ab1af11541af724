"""
HTTP API Tests

End-to-end conditional reads over the FastAPI surface, backed by the
in-memory store.
"""

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from dulce.utils.config import Settings, get_settings


API_KEY = "test-key"
AUTH = {"Authorization": f"Bearer {API_KEY}"}


@pytest.fixture
def client(registry, detail_tools):
    app = create_app(registry=registry, detail_tools=detail_tools)
    app.dependency_overrides[get_settings] = lambda: Settings(API_KEY=API_KEY, AUTH_ENABLED=True)
    return TestClient(app)


# =============================================================================
# HEALTH / AUTH TESTS
# =============================================================================

class TestHealthAndAuth:
    """Test the public health check and protected routes."""

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.parametrize("method,path", [
        ("get", "/resources"),
        ("get", "/resources/products%23index"),
        ("post", "/tools/get_product_detail"),
        ("get", "/cache/stats"),
        ("post", "/cache/clear"),
    ])
    def test_routes_require_key(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 401


# =============================================================================
# RESOURCE TESTS
# =============================================================================

class TestResources:
    """Test catalog and conditional reads."""

    def test_catalog(self, client):
        response = client.get("/resources", headers=AUTH)

        resources = response.json()["resources"]
        assert len(resources) == 8
        assert resources[0]["uri"] == "mcp://estacion-dulce/products#index"
        assert resources[0]["mimeType"] == "application/json"

    def test_read_returns_validators(self, client):
        response = client.get("/resources/products%23index", headers=AUTH)

        assert response.status_code == 200
        assert response.headers["ETag"].startswith('"')
        assert response.headers["X-Data-Version"] == "1"
        assert response.headers["Last-Modified"] == "Thu, 15 Oct 2026 12:00:00 GMT"
        assert response.headers["Cache-Control"] == "private, max-age=30, stale-while-revalidate=60"
        assert response.headers["Vary"] == "Authorization"

        body = response.json()
        assert body["etag"] == response.headers["ETag"]
        assert body["dataVersion"] == 1
        assert body["contents"][0]["uri"] == "mcp://estacion-dulce/products#index"

    def test_conditional_read_304(self, client, store):
        first = client.get("/resources/products%23index", headers=AUTH)
        etag = first.headers["ETag"]
        queries_before = store.calls["query"]

        second = client.get(
            "/resources/products%23index",
            headers={**AUTH, "If-None-Match": etag},
        )

        assert second.status_code == 304
        assert second.headers["ETag"] == etag
        assert second.content == b""
        assert store.calls["query"] == queries_before

    def test_stale_etag_gets_200(self, client):
        client.get("/resources/products%23index", headers=AUTH)
        response = client.get(
            "/resources/products%23index",
            headers={**AUTH, "If-None-Match": '"stale"'},
        )
        assert response.status_code == 200

    def test_unknown_resource_404(self, client):
        response = client.get("/resources/orders%23index", headers=AUTH)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_version_manifest_not_stored(self, client):
        client.get("/resources/products%23index", headers=AUTH)
        response = client.get("/resources/version-manifest", headers=AUTH)

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "no-store"
        assert "X-Data-Version" not in response.headers
        assert "Vary" not in response.headers


# =============================================================================
# TOOL TESTS
# =============================================================================

class TestTools:
    """Test tool dispatch over HTTP."""

    def test_list_tools(self, client):
        response = client.get("/tools", headers=AUTH)
        assert "get_recipe_detail" in response.json()["tools"]

    def test_run_tool(self, client):
        response = client.post("/tools/get_product_detail", json={"productId": "p1"}, headers=AUTH)

        assert response.status_code == 200
        assert response.json()["name"] == "Flour"

    def test_validation_error_400(self, client):
        response = client.post("/tools/get_product_detail", json={}, headers=AUTH)
        assert response.status_code == 400

    def test_not_found_404(self, client):
        response = client.post("/tools/get_person_details", json={"personId": "ghost"}, headers=AUTH)
        assert response.status_code == 404


# =============================================================================
# CACHE MANAGEMENT TESTS
# =============================================================================

class TestCacheEndpoints:
    """Test stats, invalidation and clear."""

    def test_stats(self, client):
        client.get("/resources/products%23index", headers=AUTH)
        stats = client.get("/cache/stats", headers=AUTH).json()

        assert stats["entryCount"] == 1
        assert stats["dirtyCount"] == 0

    def test_invalidate_forces_recompute(self, client):
        first = client.get("/resources/products%23index", headers=AUTH)
        response = client.post("/cache/invalidate/products%23index", headers=AUTH)
        assert response.json()["invalidated"] == ["products#index"]

        second = client.get(
            "/resources/products%23index",
            headers={**AUTH, "If-None-Match": first.headers["ETag"]},
        )
        assert second.status_code == 200
        assert second.headers["X-Data-Version"] == "2"

    def test_invalidate_collection(self, client):
        response = client.post("/cache/invalidate/collection/movements", headers=AUTH)
        assert sorted(response.json()["invalidated"]) == ["clients#recent", "movements#last-30d"]

    def test_invalidate_version_manifest_rejected(self, client):
        response = client.post("/cache/invalidate/version-manifest", headers=AUTH)

        assert response.status_code == 400
        assert client.get("/cache/stats", headers=AUTH).json()["dirtyCount"] == 0

    def test_invalidate_unknown(self, client):
        assert client.post("/cache/invalidate/orders%23index", headers=AUTH).status_code == 404
        assert client.post("/cache/invalidate/collection/orders", headers=AUTH).status_code == 404

    def test_clear(self, client):
        client.get("/resources/products%23index", headers=AUTH)
        assert client.post("/cache/clear", headers=AUTH).json()["success"] is True
        assert client.get("/cache/stats", headers=AUTH).json()["entryCount"] == 0
