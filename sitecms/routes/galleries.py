"""
Gallery routes.
Galleries are returned with their image references expanded into full image objects.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from sitecms.database import get_db
from sitecms.exceptions import CMSError
from sitecms.schemas import GalleryCreate, GalleryDeleteResponse, GalleryResponse, GalleryUpdate
from sitecms.services import gallery_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/galleries")


@router.get("", response_model=List[GalleryResponse])
async def list_galleries(db: AsyncSession = Depends(get_db)):
    """
    Get all galleries, newest first.

    Returns:
        List[GalleryResponse]: Galleries with expanded images

    Raises:
        HTTPException: 500 if the query fails
    """
    try:
        galleries = await gallery_service.list_galleries(db)
        logger.info(f"Retrieved {len(galleries)} galleries")
        return galleries
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error fetching galleries: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch galleries", "detail": str(e)}
        )


@router.get("/{gallery_id}", response_model=GalleryResponse)
async def get_gallery(gallery_id: str, db: AsyncSession = Depends(get_db)):
    """
    Get a single gallery.

    Raises:
        ValidationError: 400 if the ID is malformed
        NotFoundError: 404 if the gallery does not exist
    """
    try:
        return await gallery_service.get_gallery(db, gallery_id)
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error fetching gallery {gallery_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch gallery", "detail": str(e)}
        )


@router.post("", response_model=GalleryResponse, status_code=status.HTTP_201_CREATED)
async def create_gallery(payload: GalleryCreate, db: AsyncSession = Depends(get_db)):
    """
    Create a gallery.

    Each `images` entry may be an image ID, a Cloudinary URL, or an object
    with `id`/`image` or `url` (plus optional `caption` and `titleImage`).
    The whole request is rejected if any entry is unusable.

    Raises:
        ValidationError: 400 on missing name or a bad image entry
    """
    try:
        return await gallery_service.create_gallery(db, payload.model_dump())
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error creating gallery: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to create gallery", "detail": str(e)}
        )


@router.put("/{gallery_id}", response_model=GalleryResponse)
async def update_gallery(gallery_id: str, payload: GalleryUpdate, db: AsyncSession = Depends(get_db)):
    """
    Update a gallery. Omitted fields are left untouched; a present `images`
    list replaces the existing one.

    Raises:
        ValidationError: 400 on a malformed ID or bad image entry
        NotFoundError: 404 if the gallery does not exist
    """
    try:
        return await gallery_service.update_gallery(db, gallery_id, payload.model_dump(exclude_unset=True))
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error updating gallery {gallery_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to update gallery", "detail": str(e)}
        )


@router.delete("/{gallery_id}", response_model=GalleryDeleteResponse)
async def delete_gallery(gallery_id: str, db: AsyncSession = Depends(get_db)):
    """
    Delete a gallery together with its images and their Cloudinary assets.

    Raises:
        ValidationError: 400 if the ID is malformed
        NotFoundError: 404 if the gallery does not exist
    """
    try:
        deleted_images = await gallery_service.delete_gallery(db, gallery_id)
    except CMSError:
        raise
    except Exception as e:
        logger.error(f"Error deleting gallery {gallery_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to delete gallery", "detail": str(e)}
        )

    return GalleryDeleteResponse(
        message="Gallery and all associated images deleted successfully",
        deleted_images=deleted_images,
    )
