"""
Tests for image uploads, edits and deletion.
"""
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.models import Gallery, GalleryImage
from sitecms.services import cloudinary_service


async def upload(client, upload_file, path="/api/images", **data):
    response = await client.post(path, files=upload_file, data=data)
    assert response.status_code == 201, response.text
    return response.json()


async def create_gallery(client, images=()):
    response = await client.post("/api/galleries", json={"name": "Portraits", "images": list(images)})
    assert response.status_code == 201, response.text
    return response.json()


async def gallery_image_ids(client, gallery_id):
    gallery = (await client.get(f"/api/galleries/{gallery_id}")).json()
    return [image["id"] for image in gallery["images"]], [image["titleImage"] for image in gallery["images"]]


async def test_standalone_upload(client, upload_file, fake_cloudinary):
    response = await client.post("/api/images", files=upload_file, data={"caption": "  Bride  "})

    assert response.status_code == 201
    body = response.json()
    assert body["caption"] == "Bride"
    assert body["gallery"] is None
    assert body["order"] == 0
    assert body["imageUrl"].startswith("https://res.cloudinary.com/")
    assert body["cloudinaryId"] == fake_cloudinary.uploads[0]["public_id"]
    assert body["cloudinaryData"]["width"] == 8
    assert "url" not in body["cloudinaryData"]
    assert fake_cloudinary.uploads[0]["folder"] == settings.UPLOAD_FOLDER


async def test_standalone_upload_into_gallery(client, upload_file):
    gallery = await create_gallery(client)

    image = await upload(client, upload_file, gallery=gallery["id"])

    assert image["gallery"] == gallery["id"]
    ids, flags = await gallery_image_ids(client, gallery["id"])
    assert ids == [image["id"]]
    assert flags == [False]


async def test_upload_without_file(client, fake_cloudinary):
    response = await client.post("/api/images", data={"caption": "nothing"})

    assert response.status_code == 400
    assert fake_cloudinary.uploads == []


async def test_upload_rejects_non_image_content_type(client, fake_cloudinary):
    response = await client.post("/api/images", files={"imageFile": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert fake_cloudinary.uploads == []


async def test_upload_rejects_undecodable_image(client, fake_cloudinary):
    response = await client.post("/api/images", files={"imageFile": ("fake.png", b"not a png", "image/png")})

    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file is not a valid image"
    assert fake_cloudinary.uploads == []


async def test_upload_too_large(client, upload_file, fake_cloudinary, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 16)

    response = await client.post("/api/images", files=upload_file)

    assert response.status_code == 413
    assert fake_cloudinary.uploads == []


async def test_upload_rejects_negative_order(client, upload_file, fake_cloudinary):
    response = await client.post("/api/images", files=upload_file, data={"order": "-1"})

    assert response.status_code == 400
    assert fake_cloudinary.uploads == []


async def test_upload_failure_is_reported(client, upload_file, fake_cloudinary, session_factory):
    fake_cloudinary.fail_upload = True

    response = await client.post("/api/images", files=upload_file)

    assert response.status_code == 500
    async with session_factory() as session:
        assert await session.scalar(select(func.count()).select_from(GalleryImage)) == 0


async def test_failed_save_deletes_uploaded_blob(client, upload_file, fake_cloudinary, session_factory, monkeypatch):
    async def failing_commit(self):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)

    response = await client.post("/api/images", files=upload_file)

    assert response.status_code == 500
    assert len(fake_cloudinary.uploads) == 1
    assert fake_cloudinary.destroyed == [fake_cloudinary.uploads[0]["public_id"]]
    assert fake_cloudinary.assets == {}

    monkeypatch.undo()
    async with session_factory() as session:
        assert await session.scalar(select(func.count()).select_from(GalleryImage)) == 0


async def test_gallery_upload_to_missing_gallery(client, upload_file, fake_cloudinary):
    missing = str(uuid.uuid4())

    assert (await client.post(f"/api/images/gallery/{missing}", files=upload_file)).status_code == 404
    assert (await client.post("/api/images/gallery/nope", files=upload_file)).status_code == 400
    assert fake_cloudinary.uploads == []


async def test_gallery_upload_appends_to_gallery(client, upload_file, fake_cloudinary):
    first = await upload(client, upload_file)
    gallery = await create_gallery(client, [first["id"]])

    image = await upload(client, upload_file, path=f"/api/images/gallery/{gallery['id']}", caption="Second")

    assert image["gallery"] == gallery["id"]
    assert image["order"] == 1
    assert fake_cloudinary.uploads[-1]["folder"] == f"galleries/{gallery['id']}"
    ids, flags = await gallery_image_ids(client, gallery["id"])
    assert ids == [first["id"], image["id"]]
    assert flags == [True, False]


async def test_gallery_upload_as_title_image_clears_others(client, upload_file):
    first = await upload(client, upload_file)
    second = await upload(client, upload_file)
    gallery = await create_gallery(client, [first["id"], second["id"]])

    image = await upload(
        client, upload_file, path=f"/api/images/gallery/{gallery['id']}", order="0", titleImage="true"
    )

    ids, flags = await gallery_image_ids(client, gallery["id"])
    assert ids == [image["id"], first["id"], second["id"]]
    assert flags == [True, False, False]

    listed = (await client.get(f"/api/images/gallery/{gallery['id']}")).json()
    assert [item["id"] for item in listed] == ids
    assert [item["order"] for item in listed] == [0, 1, 2]


async def test_get_image_ids(client):
    assert (await client.get(f"/api/images/{uuid.uuid4()}")).status_code == 404
    assert (await client.get("/api/images/nope")).status_code == 400
    assert (await client.get("/api/images/gallery/nope")).status_code == 400


async def test_update_caption(client, upload_file):
    image = await upload(client, upload_file, caption="Old")

    response = await client.put(f"/api/images/{image['id']}", json={"caption": "  New caption "})

    assert response.status_code == 200
    assert response.json()["caption"] == "New caption"
    assert response.json()["order"] == image["order"]


async def test_update_order_of_standalone_image(client, upload_file):
    image = await upload(client, upload_file)

    response = await client.put(f"/api/images/{image['id']}", json={"order": 4})

    assert response.json()["order"] == 4


async def test_update_order_moves_image_within_gallery(client, upload_file):
    a, b, c = [await upload(client, upload_file) for _ in range(3)]
    gallery = await create_gallery(client, [a["id"], b["id"], c["id"]])

    response = await client.put(f"/api/images/{c['id']}", json={"order": 0})

    assert response.status_code == 200
    assert response.json()["order"] == 0
    ids, flags = await gallery_image_ids(client, gallery["id"])
    assert ids == [c["id"], a["id"], b["id"]]
    assert flags == [False, True, False]

    listed = (await client.get(f"/api/images/gallery/{gallery['id']}")).json()
    assert [(item["id"], item["order"]) for item in listed] == [(c["id"], 0), (a["id"], 1), (b["id"], 2)]


async def test_update_order_is_clamped_to_gallery_size(client, upload_file):
    a, b = [await upload(client, upload_file) for _ in range(2)]
    gallery = await create_gallery(client, [a["id"], b["id"]])

    response = await client.put(f"/api/images/{a['id']}", json={"order": 10})

    assert response.json()["order"] == 1
    ids, _ = await gallery_image_ids(client, gallery["id"])
    assert ids == [b["id"], a["id"]]


async def test_update_rejects_negative_order(client, upload_file):
    image = await upload(client, upload_file)

    assert (await client.put(f"/api/images/{image['id']}", json={"order": -2})).status_code == 400


async def test_delete_image_removes_reference_and_blob(client, upload_file, fake_cloudinary):
    a, b = [await upload(client, upload_file) for _ in range(2)]
    gallery = await create_gallery(client, [a["id"], b["id"]])

    response = await client.delete(f"/api/images/{a['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Image deleted successfully"}
    assert fake_cloudinary.destroyed == [a["cloudinaryId"]]
    assert (await client.get(f"/api/images/{a['id']}")).status_code == 404

    ids, _ = await gallery_image_ids(client, gallery["id"])
    assert ids == [b["id"]]
    assert (await client.get(f"/api/images/{b['id']}")).json()["order"] == 0


async def test_delete_image_survives_blob_store_failure(client, upload_file, monkeypatch):
    image = await upload(client, upload_file)

    async def failing_delete(public_id):
        raise RuntimeError("Cloudinary unavailable")

    monkeypatch.setattr(cloudinary_service, "delete_image", failing_delete)

    response = await client.delete(f"/api/images/{image['id']}")

    assert response.status_code == 200
    assert (await client.get(f"/api/images/{image['id']}")).status_code == 404


async def test_delete_image_ids(client):
    assert (await client.delete(f"/api/images/{uuid.uuid4()}")).status_code == 404
    assert (await client.delete("/api/images/nope")).status_code == 400


async def test_order_counts_legacy_references(client, upload_file, session_factory):
    a, b = [await upload(client, upload_file) for _ in range(2)]
    gallery = await create_gallery(client, [a["id"], b["id"]])
    async with session_factory() as session:
        stored = await session.get(Gallery, gallery["id"])
        stored.images = [
            {"imageUrl": "https://res.cloudinary.com/demo/image/upload/v1/old/cover.jpg",
             "cloudinaryId": "old/cover", "titleImage": False},
            *stored.images,
        ]
        await session.commit()

    response = await client.put(f"/api/images/{a['id']}", json={"order": 2})

    assert response.json()["order"] == 2
    assert (await client.get(f"/api/images/{b['id']}")).json()["order"] == 1
    expanded = (await client.get(f"/api/galleries/{gallery['id']}")).json()
    assert [image["cloudinaryId"] for image in expanded["images"]] == [
        "old/cover", b["cloudinaryId"], a["cloudinaryId"]
    ]
