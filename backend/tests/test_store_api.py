"""Remote store API tests."""

from __future__ import annotations

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from stayplan.api.routes.store import router as store_router
from stayplan.db.init import init_store_database
from stayplan.db.session import get_engine, get_session_factory, get_store_session


def _app(url: str | None) -> FastAPI:
    app = FastAPI()
    app.include_router(store_router, prefix="/store", tags=["store"])

    async def _session():
        if url is None:
            yield None
            return
        await init_store_database(url)
        async with get_session_factory(url)() as session:
            yield session

    app.dependency_overrides[get_store_session] = _session
    return app


async def test_store_round_trip(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"
    transport = ASGITransport(app=_app(url))
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            empty = await client.get("/store")
            saved = await client.post("/store", json={"budget-app-cluster-current-year": 2025})
            replaced = await client.post("/store", json={"budget-app-cluster-units": [1, 2]})
            loaded = await client.get("/store")
            cleared = await client.delete("/store")
            after_clear = await client.get("/store")
    finally:
        await get_engine(url).dispose()

    assert empty.json() == {}
    assert saved.status_code == 200
    assert saved.json()["success"] is True
    assert "timestamp" in saved.json()
    assert replaced.status_code == 200
    assert loaded.json() == {"budget-app-cluster-units": [1, 2]}
    assert cleared.json() == {"success": True, "message": "Database cleared"}
    assert after_clear.json() == {}


async def test_store_rejects_missing_or_non_object_bodies(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"
    transport = ASGITransport(app=_app(url))
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            no_body = await client.post("/store", content=b"", headers={"content-type": "application/json"})
            null_body = await client.post("/store", content=b"null", headers={"content-type": "application/json"})
            list_body = await client.post("/store", json=[1, 2])
    finally:
        await get_engine(url).dispose()

    assert no_body.status_code == 400
    assert no_body.json() == {"error": "No data provided"}
    assert null_body.status_code == 400
    assert list_body.status_code == 400
    assert list_body.json()["error"] == "Snapshot must be a JSON object"


async def test_store_without_database_reports_configuration_error():
    transport = ASGITransport(app=_app(None))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        responses = [
            await client.get("/store"),
            await client.post("/store", json={"a": 1}),
            await client.delete("/store"),
        ]

    for response in responses:
        assert response.status_code == 500
        assert response.json() == {
            "error": "Database configuration missing",
            "details": "STORE_DATABASE_URL is not set",
        }


async def test_health_reports_store_configuration():
    from stayplan.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_unreachable_store_database_returns_json_errors(tmp_path, monkeypatch):
    from stayplan.config import AppSettings
    from stayplan.db import session as session_module

    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'store.db'}"
    monkeypatch.setattr(session_module, "get_settings", lambda: AppSettings(store_database_url=url))
    app = FastAPI()
    app.include_router(store_router, prefix="/store", tags=["store"])

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            loaded = await client.get("/store")
            saved = await client.post("/store", json={"budget-app-cluster-current-year": 2025})
    finally:
        await get_engine(url).dispose()

    for response in (loaded, saved):
        assert response.status_code == 500
        assert "error" in response.json()
