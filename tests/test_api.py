"""Tests for API endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from web_app import create_app
from config import Config
from shortlink.database.models import URLMapping
from shortlink.errors import StorageFailureError


@pytest.fixture
def config():
    """Test configuration (no storage is contacted)."""
    return Config(storage_backend="memory", base_url="http://testserver")


@pytest.fixture
def app(store, service, config):
    """Create test FastAPI app."""
    return create_app(
        db_instance=store,
        service_instance=service,
        config=config,
    )


@pytest.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


class TestAPIEndpoints:
    """Test API endpoints."""

    async def test_shorten_url(self, client, sample_urls):
        """Test POST /api/shorten."""
        response = await client.post("/api/shorten", json={"url": sample_urls[0]})

        assert response.status_code == 201
        data = response.json()
        assert len(data["short_code"]) == 6
        assert data["long_url"] == sample_urls[0]
        assert data["short_url"] == f"http://testserver/{data['short_code']}"
        assert data["access_count"] == 0
        assert data["id"]

    async def test_shorten_invalid_url(self, client):
        """Malformed URLs are a 400, not a schema error."""
        for bad in ["not-a-url", "", "ftp://example.com"]:
            response = await client.post("/api/shorten", json={"url": bad})
            assert response.status_code == 400
            assert "Invalid URL" in response.json()["detail"]

    async def test_shorten_missing_body_field(self, client, store):
        """Schema errors are FastAPI's 422; only a bad URL string is a 400."""
        response = await client.post("/api/shorten", json={})
        assert response.status_code == 422

        response = await client.post(
            "/api/shorten",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422
        assert len(store) == 0

    async def test_shorten_duplicate_returns_existing(self, client, sample_urls):
        """A second create for the same URL is a 409 carrying the original mapping."""
        first = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()

        response = await client.post("/api/shorten", json={"url": sample_urls[0]})

        assert response.status_code == 409
        data = response.json()
        assert data["short_code"] == first["short_code"]
        assert data["id"] == first["id"]
        assert data["long_url"] == sample_urls[0]

    async def test_shorten_exhausted_retries(self, app, client, store, scripted_generator):
        await store.insert(URLMapping.new("taken1", "https://example.com/existing"))
        app.state.service.generator = scripted_generator(["taken1"])

        response = await client.post("/api/shorten", json={"url": "https://example.com/new"})

        assert response.status_code == 503

    async def test_shorten_storage_failure_hides_details(self, client, store, monkeypatch):
        async def broken(mapping):
            raise StorageFailureError("password authentication failed", operation="insert")

        monkeypatch.setattr(store, "insert", broken)

        response = await client.post("/api/shorten", json={"url": "https://example.com/new"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"

    async def test_get_url(self, client, sample_urls):
        """Test GET /api/shorten/{short_code}."""
        short_code = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()["short_code"]

        response = await client.get(f"/api/shorten/{short_code}")

        assert response.status_code == 200
        data = response.json()
        assert data["short_code"] == short_code
        assert data["long_url"] == sample_urls[0]

    async def test_get_url_not_found(self, client):
        response = await client.get("/api/shorten/zzzzzz")

        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    async def test_update_url(self, client, sample_urls):
        """Test PUT /api/shorten/{short_code}."""
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()

        response = await client.put(f"/api/shorten/{created['short_code']}", json={"url": sample_urls[1]})

        assert response.status_code == 200
        data = response.json()
        assert data["short_code"] == created["short_code"]
        assert data["long_url"] == sample_urls[1]

    async def test_update_invalid_url(self, client, sample_urls):
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()

        response = await client.put(f"/api/shorten/{created['short_code']}", json={"url": "nope"})

        assert response.status_code == 400
        unchanged = (await client.get(f"/api/shorten/{created['short_code']}")).json()
        assert unchanged["long_url"] == sample_urls[0]

    async def test_update_not_found(self, client, sample_urls):
        response = await client.put("/api/shorten/zzzzzz", json={"url": sample_urls[0]})

        assert response.status_code == 404

    async def test_delete_url(self, client, sample_urls):
        """Test DELETE /api/shorten/{short_code}."""
        short_code = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()["short_code"]

        response = await client.delete(f"/api/shorten/{short_code}")
        assert response.status_code == 204
        assert response.content == b""

        assert (await client.get(f"/api/shorten/{short_code}")).status_code == 404
        assert (await client.delete(f"/api/shorten/{short_code}")).status_code == 404

    async def test_stats(self, client, service, sample_urls):
        """Test GET /api/shorten/{short_code}/stats after a redirect."""
        short_code = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()["short_code"]

        redirect = await client.get(f"/{short_code}", follow_redirects=False)
        assert redirect.status_code == 307
        assert redirect.headers["location"] == sample_urls[0]

        await service.tasks.drain()

        response = await client.get(f"/api/shorten/{short_code}/stats")
        assert response.status_code == 200
        assert response.json()["access_count"] == 1

    async def test_stats_not_found(self, client):
        response = await client.get("/api/shorten/zzzzzz/stats")

        assert response.status_code == 404

    async def test_redirect_not_found(self, client):
        response = await client.get("/zzzzzz", follow_redirects=False)

        assert response.status_code == 404

    async def test_short_url_uses_forwarded_headers(self, client, sample_urls):
        response = await client.post(
            "/api/shorten",
            json={"url": sample_urls[0]},
            headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "sho.rt"},
        )

        data = response.json()
        assert data["short_url"] == f"https://sho.rt/{data['short_code']}"

    async def test_health_check(self, client):
        """Test GET /api/health."""
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert "timestamp" in data


class TestPathPrefix:
    """Redirects live under the configured path prefix."""

    @pytest.fixture
    def config(self):
        return Config(storage_backend="memory", base_url="http://testserver", path_prefix="/s")

    async def test_redirect_under_prefix(self, client, sample_urls):
        created = (await client.post("/api/shorten", json={"url": sample_urls[0]})).json()
        assert created["short_url"] == f"http://testserver/s/{created['short_code']}"

        response = await client.get(f"/s/{created['short_code']}", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == sample_urls[0]


class TestScenario:
    """The documented create/redirect/stats/delete walk-through over HTTP."""

    async def test_full_lifecycle(self, app, client, service, scripted_generator):
        app.state.service.generator = scripted_generator(["Ab3dE9"])

        created = await client.post("/api/shorten", json={"url": "https://example.com"})
        assert created.status_code == 201
        assert created.json()["short_code"] == "Ab3dE9"
        assert created.json()["access_count"] == 0

        redirect = await client.get("/Ab3dE9", follow_redirects=False)
        assert redirect.headers["location"] == "https://example.com"

        await service.tasks.drain()
        assert (await client.get("/api/shorten/Ab3dE9/stats")).json()["access_count"] == 1

        assert (await client.delete("/api/shorten/Ab3dE9")).status_code == 204
        assert (await client.get("/api/shorten/Ab3dE9/stats")).status_code == 404
