"""
Gallery image service: upload, caption/order edits and deletion.
Uploads go to Cloudinary first; a failed database write deletes the uploaded asset again.
"""
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Any, Dict, List, Optional
import asyncio
import logging

from sitecms.config import settings
from sitecms.exceptions import DependencyError, NotFoundError, PayloadTooLargeError, ValidationError
from sitecms.models import Gallery, GalleryImage, new_id, utcnow
from sitecms.services import cloudinary_service
from sitecms.services.gallery_service import get_gallery_record, sync_image_order
from sitecms.utils.ids import parse_id
from sitecms.utils.image_processing import convert_to_webp, inspect_image

logger = logging.getLogger(__name__)


async def read_image_upload(file: Optional[UploadFile]) -> bytes:
    """
    Read and validate an uploaded image before any store is touched.

    Raises:
        ValidationError: No file, non-image content type or undecodable content
        PayloadTooLargeError: File larger than MAX_UPLOAD_BYTES
    """
    if file is None or not getattr(file, "filename", None):
        raise ValidationError("No image file uploaded.")

    if not file.content_type or not file.content_type.startswith("image/"):
        raise ValidationError(f"File '{file.filename}' is not a valid image file")

    content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError(
            f"File '{file.filename}' exceeds the maximum size of {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
        )
    if not content:
        raise ValidationError(f"File '{file.filename}' is empty")

    await asyncio.to_thread(inspect_image, content)
    return content


async def _discard_blob(public_id: str) -> None:
    """Compensating delete of an uploaded asset; failures are logged only."""
    try:
        await cloudinary_service.delete_image(public_id)
        logger.info(f"Deleted orphaned Cloudinary image after failed save: {public_id}")
    except Exception as e:
        logger.error(f"Error deleting image from Cloudinary after DB error ({public_id}): {str(e)}")


def _insert_reference(gallery: Gallery, image_id: str, position: Optional[int], title_image: bool) -> None:
    references = [dict(ref) for ref in (gallery.images or [])]
    if title_image:
        for ref in references:
            ref["titleImage"] = False

    reference = {"image": image_id, "titleImage": bool(title_image)}
    if position is None or position >= len(references):
        references.append(reference)
    else:
        references.insert(position, reference)
    gallery.images = references


async def upload_image(
    db: AsyncSession,
    file: Optional[UploadFile],
    caption: Optional[str] = None,
    order: Optional[int] = None,
    gallery_id: Optional[str] = None,
    title_image: bool = False,
    folder: Optional[str] = None,
) -> GalleryImage:
    """
    Upload one image and record it.

    With a gallery, the image is inserted into the gallery's reference list at
    `order` (appended when omitted); `title_image` makes it the only title image.
    """
    if order is not None and order < 0:
        raise ValidationError("order must be zero or greater")
    if gallery_id is not None:
        gallery_id = parse_id(gallery_id, "gallery")

    content = await read_image_upload(file)

    gallery = None
    if gallery_id is not None:
        gallery = await get_gallery_record(db, gallery_id)

    if settings.CONVERT_UPLOADS_TO_WEBP:
        content = await asyncio.to_thread(convert_to_webp, content)

    if folder is None:
        folder = (
            f"{settings.GALLERY_UPLOAD_FOLDER_PREFIX}/{gallery.id}" if gallery is not None
            else settings.UPLOAD_FOLDER
        )

    try:
        uploaded = await cloudinary_service.upload_image(content, folder=folder)
    except Exception as e:
        logger.error(f"Error uploading {file.filename} to Cloudinary: {str(e)}")
        raise DependencyError(f"Failed to upload image: {str(e)}")

    public_id = uploaded["public_id"]
    caption = caption.strip() if caption and caption.strip() else None

    try:
        image = GalleryImage(
            id=new_id(),
            gallery_id=gallery.id if gallery is not None else None,
            cloudinary_id=public_id,
            image_url=uploaded["url"],
            cloudinary_data={key: value for key, value in uploaded.items() if key != "url"},
            caption=caption,
            order=order or 0,
            uploaded_at=utcnow(),
        )
        db.add(image)

        if gallery is not None:
            _insert_reference(gallery, image.id, order, title_image)
            gallery.updated_at = utcnow()
            await sync_image_order(db, gallery)

        await db.commit()
    except Exception as e:
        logger.error(f"Error saving uploaded image {public_id}: {str(e)}", exc_info=True)
        await db.rollback()
        await _discard_blob(public_id)
        raise DependencyError(f"Failed to save image: {str(e)}")

    await db.refresh(image)
    logger.info(f"Successfully saved image {image.id} (public_id: {public_id}, gallery: {image.gallery_id})")
    return image


async def list_gallery_images(db: AsyncSession, gallery_id: str) -> List[GalleryImage]:
    result = await db.execute(
        select(GalleryImage)
        .where(GalleryImage.gallery_id == parse_id(gallery_id, "gallery"))
        .order_by(GalleryImage.order.asc(), GalleryImage.uploaded_at.asc())
    )
    return list(result.scalars().all())


async def get_image(db: AsyncSession, image_id: str) -> GalleryImage:
    image = await db.get(GalleryImage, parse_id(image_id, "image"))
    if image is None:
        raise NotFoundError("Image not found")
    return image


async def update_image(db: AsyncSession, image_id: str, changes: Dict[str, Any]) -> GalleryImage:
    """
    Edit caption and/or order.

    For an image in a gallery, a new order moves its reference to that
    position (clamped to the list) and renumbers the gallery's images.
    """
    image = await get_image(db, image_id)

    if "caption" in changes:
        caption = changes["caption"]
        image.caption = caption.strip() if caption and caption.strip() else None

    order = changes.get("order")
    if order is not None:
        gallery = await db.get(Gallery, image.gallery_id) if image.gallery_id else None
        if gallery is not None and any(ref.get("image") == image.id for ref in gallery.images or []):
            references = [dict(ref) for ref in gallery.images]
            current = next(i for i, ref in enumerate(references) if ref.get("image") == image.id)
            reference = references.pop(current)
            references.insert(min(order, len(references)), reference)
            gallery.images = references
            gallery.updated_at = utcnow()
            await sync_image_order(db, gallery)
        else:
            image.order = order

    await db.commit()
    await db.refresh(image)
    logger.info(f"Updated image {image.id}")
    return image


async def delete_image(db: AsyncSession, image_id: str) -> None:
    """
    Delete the image record (and its gallery reference), then its Cloudinary asset.
    A failed asset deletion is logged with the orphaned public_id.
    """
    image = await get_image(db, image_id)
    public_id = image.cloudinary_id

    gallery = await db.get(Gallery, image.gallery_id) if image.gallery_id else None
    if gallery is not None:
        gallery.images = [ref for ref in gallery.images or [] if ref.get("image") != image.id]
        gallery.updated_at = utcnow()

    await db.delete(image)
    if gallery is not None:
        await sync_image_order(db, gallery)
    await db.commit()
    logger.info(f"Deleted image {image.id} from database")

    try:
        await cloudinary_service.delete_image(public_id)
    except Exception as e:
        logger.error(f"Failed to delete Cloudinary image {public_id} (orphaned): {str(e)}", exc_info=True)
