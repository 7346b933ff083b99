import httpx
import pytest

from reelfeed.auth import create_access_token
from reelfeed.catalog import VideoCatalog
from reelfeed.database import get_db
from reelfeed.exceptions import StoreUnavailable
from reelfeed.main import app, get_catalog, get_store
from reelfeed.store import SQLAlchemyStore

LAYOUT = {
    "Comedy": ["c1.mp4", "c2.mp4"],
    "Music": ["m1.mp4"],
}


@pytest.fixture
def client_app(session_factory, make_catalog):
    catalog = make_catalog(LAYOUT)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


def auth_headers(user_id: str = "user1") -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def make_client(application) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=application)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.anyio
async def test_health(client_app):
    async with make_client(client_app) as client:
        r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


@pytest.mark.anyio
async def test_categories_listing(client_app):
    async with make_client(client_app) as client:
        r = await client.get("/api/categories")
    assert r.status_code == 200
    data = r.json()
    assert [c["name"] for c in data] == ["Comedy", "Music"]
    assert data[1]["videos"] == [{"filename": "m1.mp4", "path": "/videos/Music/m1.mp4"}]


@pytest.mark.anyio
async def test_next_video_requires_token(client_app):
    async with make_client(client_app) as client:
        missing = await client.get("/api/next-video")
        invalid = await client.get("/api/next-video", headers={"Authorization": "Bearer not-a-jwt"})
    assert missing.status_code == 401
    assert invalid.status_code == 403


@pytest.mark.anyio
async def test_feed_flow(client_app, monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "ops-secret")
    headers = auth_headers()
    async with make_client(client_app) as client:
        r = await client.post("/api/preferences/initialize", headers=headers)
        assert r.status_code == 200
        assert sorted(r.json()["created"]) == ["Comedy", "Music"]

        r = await client.get("/api/next-video", headers=headers)
        assert r.status_code == 200
        data = r.json()
        assert data["category"] in LAYOUT
        assert data["video"]["path"] == f"/videos/{data['category']}/{data['video']['filename']}"

        r = await client.post(
            "/api/interact",
            headers=headers,
            json={"videoPath": data["video"]["path"], "category": data["category"], "interactionType": "like"},
        )
        assert r.status_code == 200
        assert r.json() == {"message": "Interaction recorded"}

        r = await client.get("/api/preferences", headers=headers)
        prefs = r.json()
        assert prefs[0] == {"category": data["category"], "score": 2.0}
        assert prefs[1]["score"] == 1.0

        r = await client.get(
            "/local/interactions",
            params={"user_id": "user1"},
            headers={"X-Admin-Token": "ops-secret"},
        )
        assert [i["interaction_type"] for i in r.json()] == ["like"]


@pytest.mark.anyio
async def test_category_mode_exhaustion_signals_reset(client_app):
    headers = auth_headers("user2")
    async with make_client(client_app) as client:
        first = await client.get("/api/next-video", params={"category": "Music"}, headers=headers)
        second = await client.get("/api/next-video", params={"category": "Music"}, headers=headers)
        third = await client.get("/api/next-video", params={"category": "Music"}, headers=headers)

    assert first.json()["video"]["path"] == "/videos/Music/m1.mp4"
    assert second.status_code == 200
    assert second.json() == {"message": "All videos watched! Starting fresh.", "resetViewed": True}
    assert third.json()["video"]["path"] == "/videos/Music/m1.mp4"


@pytest.mark.anyio
async def test_unknown_category_is_404(client_app):
    async with make_client(client_app) as client:
        r = await client.get("/api/next-video", params={"category": "Dance"}, headers=auth_headers())
    assert r.status_code == 404
    assert r.json()["detail"] == "Category 'Dance' not found"


@pytest.mark.anyio
async def test_unknown_interaction_type_is_accepted(client_app):
    headers = auth_headers("user3")
    async with make_client(client_app) as client:
        await client.post("/api/preferences/initialize", headers=headers)
        r = await client.post(
            "/api/interact",
            headers=headers,
            json={"videoPath": "/videos/Comedy/c1.mp4", "category": "Comedy", "interactionType": "share"},
        )
        prefs = (await client.get("/api/preferences", headers=headers)).json()
    assert r.status_code == 200
    assert all(p["score"] == 1.0 for p in prefs)


@pytest.mark.anyio
async def test_empty_catalog_is_404(client_app, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    client_app.dependency_overrides[get_catalog] = lambda: VideoCatalog(str(empty))
    async with make_client(client_app) as client:
        r = await client.get("/api/next-video", headers=auth_headers())
    assert r.status_code == 404
    assert r.json() == {"detail": "No videos available"}


class BrokenReadStore(SQLAlchemyStore):
    def get_viewed(self, user_id, mode):
        raise StoreUnavailable("get_viewed")

    def get_preference(self, user_id, category):
        raise StoreUnavailable("get_preference")


@pytest.fixture
def broken_store_app(client_app, session_factory):
    def override_get_store():
        db = session_factory()
        try:
            yield BrokenReadStore(db)
        finally:
            db.close()

    client_app.dependency_overrides[get_store] = override_get_store
    return client_app


@pytest.mark.anyio
async def test_store_failure_on_interact_is_503(broken_store_app):
    async with make_client(broken_store_app) as client:
        r = await client.post(
            "/api/interact",
            headers=auth_headers(),
            json={"videoPath": "/videos/Comedy/c1.mp4", "category": "Comedy", "interactionType": "like"},
        )
    assert r.status_code == 503
    assert r.json() == {"detail": "Store unavailable during get_preference"}


@pytest.mark.anyio
async def test_store_failure_on_next_video_is_503(broken_store_app):
    async with make_client(broken_store_app) as client:
        r = await client.get("/api/next-video", params={"category": "Comedy"}, headers=auth_headers())
    assert r.status_code == 503
    assert r.json() == {"detail": "Store unavailable during get_viewed"}


@pytest.mark.anyio
async def test_interactions_listing_disabled_without_admin_token(client_app, monkeypatch):
    monkeypatch.delenv("ADMIN_TOKEN", raising=False)
    async with make_client(client_app) as client:
        r = await client.get("/local/interactions", headers={"X-Admin-Token": "anything"})
    assert r.status_code == 403
    assert r.json() == {"detail": "Operator routes are disabled"}


@pytest.mark.anyio
async def test_interactions_listing_requires_matching_admin_token(client_app, monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "ops-secret")
    async with make_client(client_app) as client:
        missing = await client.get("/local/interactions")
        wrong = await client.get("/local/interactions", headers={"X-Admin-Token": "guess"})
        ok = await client.get("/local/interactions", headers={"X-Admin-Token": "ops-secret"})
    assert missing.status_code == 403
    assert wrong.json() == {"detail": "Invalid operator token"}
    assert ok.status_code == 200
    assert ok.json() == []


def test_openapi_documents_error_model():
    paths = app.openapi()["paths"]
    error_ref = "#/components/schemas/ErrorResponse"

    next_video = paths["/api/next-video"]["get"]["responses"]
    for code in ("404", "503"):
        assert next_video[code]["content"]["application/json"]["schema"]["$ref"] == error_ref

    interact = paths["/api/interact"]["post"]["responses"]
    assert interact["503"]["content"]["application/json"]["schema"]["$ref"] == error_ref
    assert "403" in paths["/local/interactions"]["get"]["responses"]
