"""
Tests for the root and health endpoints.
"""
from sitecms.config import settings


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["version"] == settings.API_VERSION


async def test_health(client):
    assert (await client.get("/health")).json() == {"status": "healthy"}


async def test_health_db(client):
    body = (await client.get("/health/db")).json()

    assert body["database"] == "connected"
    assert body["result"] == 1


async def test_health_cloudinary_without_credentials(client, monkeypatch):
    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "")

    body = (await client.get("/health/cloudinary")).json()

    assert body["cloudinary"] == "not_configured"
