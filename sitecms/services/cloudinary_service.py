"""
Cloudinary service for image upload and deletion.
Wraps the blocking Cloudinary SDK; transient provider errors are retried here only.
"""
import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from sitecms.config import settings
from urllib.parse import urlparse
import logging
import asyncio
import re
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)

# Cloudinary accepts at most 100 public_ids per delete_resources call
DELETE_BATCH_SIZE = 100

# Configure Cloudinary with credentials from settings
cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True  # Always use HTTPS for secure URLs
)

# Hosts serving Cloudinary assets
_CLOUDINARY_HOST_PATTERN = re.compile(r'(^|\.)cloudinary\.com$', re.IGNORECASE)

# Everything after the first version segment following /upload/ (transformations come before it)
_VERSIONED_PATH_PATTERN = re.compile(r'/upload/(?:[^/]+/)*?v\d+/(.+)$')
# Unversioned delivery path: /upload/[transformations/]public_id.ext
_UPLOAD_PATH_PATTERN = re.compile(r'/upload/(.+)$')
# Transformation segment such as "c_fill,w_300" or "q_auto"
_TRANSFORMATION_SEGMENT = re.compile(r'^[a-z]{1,3}_[^,/]+(?:,[a-z]{1,3}_[^,/]+)*$')


async def _call_with_retries(operation: str, func, *args, **kwargs):
    """Run a blocking SDK call in a worker thread, retrying CloudinaryError with backoff."""
    max_retries = max(1, settings.CLOUDINARY_MAX_RETRIES)
    for attempt in range(max_retries):
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except CloudinaryError as e:
            logger.warning(f"Cloudinary {operation} error (attempt {attempt + 1}/{max_retries}): {str(e)}")
            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                continue
            logger.error(f"Cloudinary {operation} failed after {max_retries} attempts: {str(e)}")
            raise


async def upload_image(file: Any, folder: str) -> Dict[str, Any]:
    """
    Upload an image to Cloudinary.

    Args:
        file: File object, file path, or bytes to upload
        folder: Cloudinary folder path

    Returns:
        dict: Upload metadata containing:
            - public_id: Cloudinary public ID (durable handle for deletion)
            - url: Secure HTTPS URL for the uploaded image
            - format, width, height, bytes, resource_type, created_at, etag

    Raises:
        CloudinaryError: If upload fails after all retries
    """
    result = await _call_with_retries(
        "upload",
        cloudinary.uploader.upload,
        file,
        folder=folder,
        resource_type="image",
    )

    logger.info(f"Successfully uploaded image: {result['public_id']}")

    return {
        "public_id": result["public_id"],
        "url": result["secure_url"],
        "format": result.get("format"),
        "width": result.get("width"),
        "height": result.get("height"),
        "bytes": result.get("bytes"),
        "resource_type": result.get("resource_type"),
        "created_at": result.get("created_at"),
        "etag": result.get("etag"),
    }


async def delete_image(public_id: str) -> Dict[str, Any]:
    """
    Delete a single image from Cloudinary.

    A "not found" result is reported, not raised.

    Returns:
        dict: Deletion result from Cloudinary, e.g. {"result": "ok"}
    """
    result = await _call_with_retries(
        "delete",
        cloudinary.uploader.destroy,
        public_id,
        invalidate=True,  # Invalidate CDN cache
        resource_type="image",
    )

    if result.get("result") in ("ok", "not found"):
        logger.info(f"Deleted image from Cloudinary: {public_id} (result: {result.get('result')})")
    else:
        logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
    return result


async def delete_images(public_ids: List[str]) -> Dict[str, Any]:
    """
    Delete many images from Cloudinary in batches.

    Each identifier is sent exactly once, in order, duplicates removed.

    Returns:
        dict: {"deleted": {public_id: "deleted" | "not_found" | ...}, "errors": [...]}
    """
    unique_ids = list(dict.fromkeys(public_ids))
    summary: Dict[str, Any] = {"deleted": {}, "errors": []}

    for start in range(0, len(unique_ids), DELETE_BATCH_SIZE):
        batch = unique_ids[start:start + DELETE_BATCH_SIZE]
        result = await _call_with_retries(
            "batch delete",
            cloudinary.api.delete_resources,
            batch,
            invalidate=True,
            resource_type="image",
        )
        summary["deleted"].update(result.get("deleted", {}))
        summary["errors"].extend(result.get("errors", []) or [])

    logger.info(f"Batch deleted {len(unique_ids)} image(s) from Cloudinary")
    return summary


def is_cloudinary_url(url: str) -> bool:
    """Return True if the URL points at a Cloudinary-hosted asset."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(
        parsed.hostname and _CLOUDINARY_HOST_PATTERN.search(parsed.hostname)
    )


def extract_public_id_from_url(cloudinary_url: str) -> str:
    """
    Extract Cloudinary public_id from URL.

    Cloudinary URLs typically look like:
    https://res.cloudinary.com/{cloud_name}/image/upload/v{version}/{public_id}.{format}

    Transformation segments between /upload/ and the version (or, without a
    version, leading segments shaped like "c_fill,w_300") are skipped. When
    the URL has no /upload/ segment, the last path segment without its
    extension is used instead.

    Returns:
        str: Public ID (e.g., "folder/name" without file extension)

    Raises:
        ValueError: If no public_id can be derived
    """
    path = urlparse(cloudinary_url).path
    versioned = _VERSIONED_PATH_PATTERN.search(path)
    unversioned = _UPLOAD_PATH_PATTERN.search(path)

    if versioned:
        public_id_with_ext = versioned.group(1).strip('/')
    elif unversioned:
        segments = unversioned.group(1).strip('/').split('/')
        while len(segments) > 1 and _TRANSFORMATION_SEGMENT.match(segments[0]):
            segments.pop(0)
        public_id_with_ext = '/'.join(segments)
    else:
        public_id_with_ext = path.rstrip('/').rsplit('/', 1)[-1]

    # Remove the extension from the last segment only: "folder/name.jpg" -> "folder/name"
    parts = public_id_with_ext.split('/')
    if '.' in parts[-1]:
        parts[-1] = parts[-1].rsplit('.', 1)[0]
    public_id = '/'.join(parts)

    if not public_id or not parts[-1]:
        raise ValueError(f"Cannot derive Cloudinary public_id from URL: {cloudinary_url}")
    return public_id


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    if not settings.CLOUDINARY_CLOUD_NAME:
        logger.warning("CLOUDINARY_CLOUD_NAME not configured")
        return False
    if not settings.CLOUDINARY_API_KEY:
        logger.warning("CLOUDINARY_API_KEY not configured")
        return False
    if not settings.CLOUDINARY_API_SECRET:
        logger.warning("CLOUDINARY_API_SECRET not configured")
        return False

    logger.info("Cloudinary configuration validated successfully")
    return True
