"""
Gallery image routes: multipart uploads (field `imageFile`), edits and deletion.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from sitecms.config import settings
from sitecms.database import get_db
from sitecms.exceptions import CMSError
from sitecms.schemas import GalleryImageResponse, GalleryImageUpdate, MessageResponse
from sitecms.services import image_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images")


@router.post("", response_model=GalleryImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(
    image_file: Optional[UploadFile] = File(None, alias="imageFile"),
    caption: Optional[str] = Form(None),
    order: Optional[int] = Form(None),
    gallery: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Upload a standalone image, optionally assigning it to a gallery.

    Raises:
        ValidationError: 400 if no valid image file is provided
        PayloadTooLargeError: 413 if the file exceeds the upload limit
        NotFoundError: 404 if the assigned gallery does not exist
    """
    try:
        return await image_service.upload_image(
            db,
            image_file,
            caption=caption,
            order=order,
            gallery_id=gallery or None,
            folder=settings.UPLOAD_FOLDER,
        )
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error uploading image: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to upload image", "detail": str(e)}
        )


@router.post("/gallery/{gallery_id}", response_model=GalleryImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_gallery_image(
    gallery_id: str,
    image_file: Optional[UploadFile] = File(None, alias="imageFile"),
    caption: Optional[str] = Form(None),
    order: Optional[int] = Form(None),
    title_image: bool = Form(False, alias="titleImage"),
    db: AsyncSession = Depends(get_db),
):
    """
    Upload an image into a gallery.

    The image is inserted into the gallery at `order` (appended when omitted).
    `titleImage` makes it the gallery's only title image.

    Raises:
        NotFoundError: 404 if the gallery does not exist (nothing is uploaded)
    """
    try:
        return await image_service.upload_image(
            db,
            image_file,
            caption=caption,
            order=order,
            gallery_id=gallery_id,
            title_image=title_image,
        )
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error uploading image to gallery {gallery_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to upload image", "detail": str(e)}
        )


@router.get("/gallery/{gallery_id}", response_model=List[GalleryImageResponse])
async def list_gallery_images(gallery_id: str, db: AsyncSession = Depends(get_db)):
    """Get a gallery's images ordered by `order`, then upload time."""
    try:
        return await image_service.list_gallery_images(db, gallery_id)
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error fetching images for gallery {gallery_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch images", "detail": str(e)}
        )


@router.get("/{image_id}", response_model=GalleryImageResponse)
async def get_image(image_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await image_service.get_image(db, image_id)
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error fetching image {image_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch image", "detail": str(e)}
        )


@router.put("/{image_id}", response_model=GalleryImageResponse)
async def update_image(image_id: str, image_update: GalleryImageUpdate, db: AsyncSession = Depends(get_db)):
    """Edit an image's caption and/or order."""
    try:
        return await image_service.update_image(db, image_id, image_update.model_dump(exclude_unset=True))
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error updating image {image_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to update image", "detail": str(e)}
        )


@router.delete("/{image_id}", response_model=MessageResponse)
async def delete_image(image_id: str, db: AsyncSession = Depends(get_db)):
    """Delete an image record and its Cloudinary asset."""
    try:
        await image_service.delete_image(db, image_id)
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error deleting image {image_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to delete image", "detail": str(e)}
        )
    return {"message": "Image deleted successfully"}
