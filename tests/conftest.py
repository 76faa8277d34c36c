"""
Shared fixtures: in-memory database per test, fake Cloudinary, HTTP client.
"""
import io

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sitecms import models  # noqa: F401
from sitecms.database import Base, get_db
from sitecms.main import app
from sitecms.services import cloudinary_service


class FakeCloudinary:
    """Records every call made through the Cloudinary service functions."""

    def __init__(self):
        self.assets = {}
        self.uploads = []
        self.destroyed = []
        self.batch_deletes = []
        self.fail_upload = False
        self.fail_batch_delete = False
        self._counter = 0

    def add_asset(self, public_id):
        url = f"https://res.cloudinary.com/demo/image/upload/v1700000000/{public_id}.jpg"
        self.assets[public_id] = url
        return url

    async def upload_image(self, file, folder):
        if self.fail_upload:
            raise RuntimeError("Cloudinary unavailable")
        self._counter += 1
        public_id = f"{folder}/upload{self._counter}"
        url = self.add_asset(public_id)
        self.uploads.append({"folder": folder, "size": len(file), "public_id": public_id})
        return {
            "public_id": public_id,
            "url": url,
            "format": "jpg",
            "width": 8,
            "height": 6,
            "bytes": len(file),
            "resource_type": "image",
            "created_at": "2024-05-01T10:00:00Z",
            "etag": "d41d8cd98f00b204e9800998ecf8427e",
        }

    async def delete_image(self, public_id):
        self.destroyed.append(public_id)
        if self.assets.pop(public_id, None) is None:
            return {"result": "not found"}
        return {"result": "ok"}

    async def delete_images(self, public_ids):
        self.batch_deletes.append(list(public_ids))
        if self.fail_batch_delete:
            raise RuntimeError("Cloudinary unavailable")
        deleted = {}
        for public_id in public_ids:
            deleted[public_id] = "deleted" if self.assets.pop(public_id, None) else "not_found"
        return {"deleted": deleted, "errors": []}


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest.fixture
def fake_cloudinary(monkeypatch):
    fake = FakeCloudinary()
    monkeypatch.setattr(cloudinary_service, "upload_image", fake.upload_image)
    monkeypatch.setattr(cloudinary_service, "delete_image", fake.delete_image)
    monkeypatch.setattr(cloudinary_service, "delete_images", fake.delete_images)
    return fake


@pytest.fixture
async def client(session_factory, fake_cloudinary):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def make_png(width=8, height=6, color="red"):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def upload_file(png_bytes):
    """Multipart `files` argument for an image upload."""
    return {"imageFile": ("photo.png", png_bytes, "image/png")}
