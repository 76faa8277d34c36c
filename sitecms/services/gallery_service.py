"""
Gallery service: image reference resolution, expansion and cascading delete.

A gallery keeps an ordered list of embedded image references. Array position
is the display order; each referenced GalleryImage mirrors it in its `order`
column and points back at the gallery through `gallery_id`.
"""
from dataclasses import dataclass
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from sitecms.exceptions import NotFoundError, ValidationError
from sitecms.models import Gallery, GalleryImage, new_id, utcnow
from sitecms.schemas import ExpandedGalleryImage, GalleryResponse
from sitecms.services import cloudinary_service
from sitecms.utils.ids import is_valid_id, parse_id

logger = logging.getLogger(__name__)


# Image entries accepted in a gallery payload

@dataclass(frozen=True)
class ById:
    """Bare image id string."""
    image_id: str


@dataclass(frozen=True)
class ByIdWithFlag:
    """{"id" | "image": <id>, "titleImage"?: bool}"""
    image_id: str
    title_image: Optional[bool]


@dataclass(frozen=True)
class ByUrl:
    """Bare Cloudinary URL string."""
    url: str
    cloudinary_id: str


@dataclass(frozen=True)
class ByUrlWithFlag:
    """{"url": <Cloudinary URL>, "caption"?: str, "titleImage"?: bool}"""
    url: str
    cloudinary_id: str
    caption: Optional[str]
    title_image: Optional[bool]


ImageInput = Union[ById, ByIdWithFlag, ByUrl, ByUrlWithFlag]


def _parse_url(url: str, position: int) -> str:
    if not cloudinary_service.is_cloudinary_url(url):
        raise ValidationError(f"images[{position}]: '{url}' is not a Cloudinary image URL")
    try:
        return cloudinary_service.extract_public_id_from_url(url)
    except ValueError:
        raise ValidationError(f"images[{position}]: cannot derive a Cloudinary ID from '{url}'")


def _looks_like_url(value: str) -> bool:
    return value.lower().startswith(("http://", "https://"))


def parse_image_input(raw: Any, position: int) -> ImageInput:
    """
    Classify one entry of a gallery payload's `images` list.

    Raises:
        ValidationError: naming the entry position when it cannot be used
    """
    if isinstance(raw, str):
        value = raw.strip()
        if _looks_like_url(value):
            return ByUrl(url=value, cloudinary_id=_parse_url(value, position))
        if not is_valid_id(value):
            raise ValidationError(f"images[{position}]: invalid image ID format '{value}'")
        return ById(image_id=parse_id(value, "image"))

    if isinstance(raw, dict):
        title_image = raw.get("titleImage")
        if title_image is not None and not isinstance(title_image, bool):
            raise ValidationError(f"images[{position}]: titleImage must be a boolean")

        image_id = raw.get("id") or raw.get("image")
        if image_id:
            if not isinstance(image_id, str) or not is_valid_id(image_id):
                raise ValidationError(f"images[{position}]: invalid image ID format '{image_id}'")
            return ByIdWithFlag(image_id=parse_id(image_id, "image"), title_image=title_image)

        url = raw.get("url")
        if url:
            if not isinstance(url, str):
                raise ValidationError(f"images[{position}]: url must be a string")
            caption = raw.get("caption")
            if caption is not None and not isinstance(caption, str):
                raise ValidationError(f"images[{position}]: caption must be a string")
            url = url.strip()
            return ByUrlWithFlag(
                url=url,
                cloudinary_id=_parse_url(url, position),
                caption=caption.strip() if caption and caption.strip() else None,
                title_image=title_image,
            )

        raise ValidationError(f"images[{position}]: entry must have an id, image or url")

    raise ValidationError(f"images[{position}]: expected an image ID, URL or object")


def _explicit_title_flag(entry: ImageInput) -> Optional[bool]:
    if isinstance(entry, (ById, ByUrl)):
        return None
    if isinstance(entry, (ByIdWithFlag, ByUrlWithFlag)):
        return entry.title_image
    raise TypeError(f"Unhandled image input: {entry!r}")


def assign_title_flags(entries: Sequence[ImageInput]) -> List[bool]:
    """
    Pick at most one title image: the first entry explicitly flagged true,
    otherwise the first entry unless it is explicitly flagged false.
    """
    explicit = [_explicit_title_flag(entry) for entry in entries]
    if True in explicit:
        title_position = explicit.index(True)
    elif explicit and explicit[0] is not False:
        title_position = 0
    else:
        title_position = None
    return [position == title_position for position in range(len(entries))]


async def _load_referenced_images(
    db: AsyncSession, entries: Sequence[ImageInput]
) -> Dict[str, GalleryImage]:
    """Fetch every image referenced by id; a missing one rejects the request."""
    wanted = {entry.image_id for entry in entries if isinstance(entry, (ById, ByIdWithFlag))}
    if not wanted:
        return {}

    result = await db.execute(select(GalleryImage).where(GalleryImage.id.in_(wanted)))
    found = {image.id: image for image in result.scalars().all()}

    for position, entry in enumerate(entries):
        if isinstance(entry, (ById, ByIdWithFlag)) and entry.image_id not in found:
            raise ValidationError(f"images[{position}]: image {entry.image_id} not found")
    return found


async def _load_images_by_cloudinary_id(
    db: AsyncSession, entries: Sequence[ImageInput]
) -> Dict[str, GalleryImage]:
    wanted = {entry.cloudinary_id for entry in entries if isinstance(entry, (ByUrl, ByUrlWithFlag))}
    if not wanted:
        return {}

    result = await db.execute(
        select(GalleryImage)
        .where(GalleryImage.cloudinary_id.in_(wanted))
        .order_by(GalleryImage.uploaded_at.asc())
    )
    existing: Dict[str, GalleryImage] = {}
    for image in result.scalars().all():
        existing.setdefault(image.cloudinary_id, image)
    return existing


async def resolve_image_references(
    db: AsyncSession, gallery: Gallery, raw_images: List[Any]
) -> List[Dict[str, Any]]:
    """
    Turn a payload `images` list into embedded references for `gallery`.

    Every entry is validated before anything is written. URL entries reuse the
    image with the same Cloudinary ID or create a new GalleryImage in the
    current transaction. Referenced images get the gallery back-reference and
    their position as `order`. An image taken over from another gallery is
    removed from that gallery's reference list.
    """
    entries =[parse_image_input(raw, position) for position, raw in enumerate(raw_images)]
    by_id = await _load_referenced_images(db, entries)
    by_cloudinary_id = await _load_images_by_cloudinary_id(db, entries)
    title_flags = assign_title_flags(entries)

    references = []
    # image id -> gallery it is taken from
    moved: Dict[str, str] = {}
    for position, entry in enumerate(entries):
        if isinstance(entry, (ById, ByIdWithFlag)):
            image = by_id[entry.image_id]
        elif isinstance(entry, (ByUrl, ByUrlWithFlag)):
            caption = entry.caption if isinstance(entry, ByUrlWithFlag) else None
            image = by_cloudinary_id.get(entry.cloudinary_id)
            if image is None:
                image = GalleryImage(
                    id=new_id(),
                    cloudinary_id=entry.cloudinary_id,
                    image_url=entry.url,
                    caption=caption or f"Image {position + 1}",
                    uploaded_at=utcnow(),
                )
                db.add(image)
                by_cloudinary_id[entry.cloudinary_id] = image
                logger.info(f"Registered image {entry.cloudinary_id} from URL for gallery {gallery.id}")
            elif caption:
                image.caption = caption
        else:
            raise TypeError(f"Unhandled image input: {entry!r}")

        if image.gallery_id and image.gallery_id != gallery.id:
            moved[image.id] = image.gallery_id
        image.gallery_id = gallery.id
        image.order = position
        references.append({"image": image.id, "titleImage": title_flags[position]})

    await _release_from_previous_galleries(db, moved)
    return references


async def _release_from_previous_galleries(db: AsyncSession, moved: Dict[str, str]) -> None:
    """Drop references to images that now belong to another gallery."""
    for previous_id in set(moved.values()):
        previous = await db.get(Gallery, previous_id)
        if previous is None:
            continue
        taken = {image_id for image_id, owner in moved.items() if owner == previous_id}
        previous.images = [dict(ref) for ref in previous.images or [] if ref.get("image") not in taken]
        previous.updated_at = utcnow()
        await sync_image_order(db, previous)
        logger.info(f"Moved image(s) {sorted(taken)} out of gallery {previous_id}")


async def sync_image_order(db: AsyncSession, gallery: Gallery) -> None:
    """
    Mirror reference positions into GalleryImage.order and gallery_id.
    Positions count every reference, legacy URL entries included.
    """
    positions = {
        ref["image"]: position for position, ref in enumerate(gallery.images or []) if ref.get("image")
    }
    if not positions:
        return
    await db.flush()
    result = await db.execute(select(GalleryImage).where(GalleryImage.id.in_(list(positions))))
    for image in result.scalars().all():
        image.order = positions[image.id]
        image.gallery_id = gallery.id


async def _detach_unreferenced(db: AsyncSession, gallery: Gallery, keep_ids: set) -> None:
    result = await db.execute(select(GalleryImage).where(GalleryImage.gallery_id == gallery.id))
    for image in result.scalars().all():
        if image.id not in keep_ids:
            image.gallery_id = None
            logger.info(f"Detached image {image.id} from gallery {gallery.id}")


async def expand_galleries(db: AsyncSession, galleries: Sequence[Gallery]) -> List[GalleryResponse]:
    """Join every embedded reference with its image; dangling references are skipped."""
    image_ids = {
        ref["image"] for gallery in galleries for ref in (gallery.images or []) if ref.get("image")
    }
    images: Dict[str, GalleryImage] = {}
    if image_ids:
        result = await db.execute(select(GalleryImage).where(GalleryImage.id.in_(image_ids)))
        images = {image.id: image for image in result.scalars().all()}

    expanded = []
    for gallery in galleries:
        items = []
        for ref in gallery.images or []:
            title_image = bool(ref.get("titleImage"))
            if ref.get("image"):
                image = images.get(ref["image"])
                if image is None:
                    logger.warning(f"Gallery {gallery.id} references missing image {ref['image']}")
                    continue
                items.append(ExpandedGalleryImage(
                    id=image.id,
                    url=image.image_url,
                    cloudinary_id=image.cloudinary_id,
                    title=image.caption,
                    description=image.caption,
                    uploaded_at=image.uploaded_at,
                    cloudinary_data=image.cloudinary_data,
                    title_image=title_image,
                ))
            elif ref.get("imageUrl"):
                # Legacy reference to an externally hosted image without a document
                items.append(ExpandedGalleryImage(
                    url=ref["imageUrl"],
                    cloudinary_id=ref.get("cloudinaryId"),
                    title_image=title_image,
                ))

        expanded.append(GalleryResponse(
            id=gallery.id,
            name=gallery.name,
            event_date=gallery.event_date,
            cover_image=gallery.cover_image,
            cover_image_id=gallery.cover_image_id,
            images=items,
            created_at=gallery.created_at,
            updated_at=gallery.updated_at,
        ))
    return expanded


async def get_gallery_record(db: AsyncSession, gallery_id: str) -> Gallery:
    gallery = await db.get(Gallery, parse_id(gallery_id, "gallery"))
    if gallery is None:
        raise NotFoundError("Gallery not found")
    return gallery


async def list_galleries(db: AsyncSession) -> List[GalleryResponse]:
    result = await db.execute(select(Gallery).order_by(Gallery.created_at.desc()))
    return await expand_galleries(db, result.scalars().all())


async def get_gallery(db: AsyncSession, gallery_id: str) -> GalleryResponse:
    gallery = await get_gallery_record(db, gallery_id)
    return (await expand_galleries(db, [gallery]))[0]


async def create_gallery(db: AsyncSession, data: Dict[str, Any]) -> GalleryResponse:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Gallery name is required")

    gallery = Gallery(
        id=new_id(),
        name=name,
        event_date=data.get("event_date"),
        cover_image=data.get("cover_image"),
        cover_image_id=data.get("cover_image_id"),
        images=[],
    )

    try:
        db.add(gallery)
        await db.flush()
        gallery.images = await resolve_image_references(db, gallery, data.get("images") or [])
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(gallery)
    logger.info(f"Created gallery {gallery.id} with {len(gallery.images)} image(s)")
    return (await expand_galleries(db, [gallery]))[0]


async def update_gallery(db: AsyncSession, gallery_id: str, changes: Dict[str, Any]) -> GalleryResponse:
    """
    Apply the fields present in `changes`. A present `images` list replaces the
    whole reference list; images no longer listed are detached from the gallery.
    """
    gallery = await get_gallery_record(db, gallery_id)
    changes = dict(changes)
    raw_images = changes.pop("images", None)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("Gallery name is required")
        changes["name"] = name

    try:
        if raw_images is not None:
            references = await resolve_image_references(db, gallery, raw_images)
            await db.flush()
            await _detach_unreferenced(db, gallery, {ref["image"] for ref in references})
            gallery.images = references

        for field, value in changes.items():
            setattr(gallery, field, value)
        gallery.updated_at = utcnow()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(gallery)
    logger.info(f"Updated gallery {gallery.id}")
    return (await expand_galleries(db, [gallery]))[0]


async def delete_gallery(db: AsyncSession, gallery_id: str) -> int:
    """
    Delete a gallery, its images and their Cloudinary assets.

    Image rows and the gallery row go in one transaction; blobs are deleted
    afterwards. Blob failures are logged with the orphaned IDs, not raised.

    Returns:
        int: Number of image documents deleted
    """
    gallery = await get_gallery_record(db, gallery_id)

    result = await db.execute(select(GalleryImage).where(GalleryImage.gallery_id == gallery.id))
    images = result.scalars().all()
    cloudinary_ids = list(dict.fromkeys(image.cloudinary_id for image in images))

    try:
        for image in images:
            await db.delete(image)
        await db.flush()
        await db.delete(gallery)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Deleted gallery {gallery.id} and {len(images)} image document(s)")

    if cloudinary_ids:
        try:
            deletion = await cloudinary_service.delete_images(cloudinary_ids)
            not_found = [
                public_id for public_id, outcome in deletion.get("deleted", {}).items()
                if outcome == "not_found"
            ]
            if not_found:
                logger.warning(f"Some images were not found in Cloudinary during gallery deletion: {not_found}")
            if deletion.get("errors"):
                logger.warning(f"Cloudinary reported errors during gallery deletion: {deletion['errors']}")
        except Exception as e:
            logger.error(
                f"Failed to delete Cloudinary assets for gallery {gallery.id}, orphaned IDs: "
                f"{cloudinary_ids}: {str(e)}",
                exc_info=True,
            )

    return len(images)
