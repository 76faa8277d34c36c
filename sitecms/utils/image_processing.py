"""
Image inspection and conversion for uploads.
Rejects files that do not decode as images and re-encodes to WebP when that reduces size.
"""
import io
import logging
from typing import NamedTuple
from PIL import Image, UnidentifiedImageError

from sitecms.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85  # Balance between quality and file size (0-100)
DEFAULT_WEBP_METHOD = 6    # Compression method (0-6, higher = better compression but slower)


class ImageInfo(NamedTuple):
    format: str
    width: int
    height: int


def inspect_image(image_bytes: bytes) -> ImageInfo:
    """
    Verify that the bytes decode as an image.

    Raises:
        ValidationError: If the content is not a readable image
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image.verify()
            return ImageInfo(image.format, image.width, image.height)
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f"Rejected upload that is not a readable image: {str(e)}")
        raise ValidationError("Uploaded file is not a valid image")


def convert_to_webp(image_bytes: bytes, quality: int = DEFAULT_WEBP_QUALITY) -> bytes:
    """
    Re-encode an image as WebP.

    Returns the original bytes when the image is already WebP, is animated,
    or the WebP encoding is not smaller.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            if image.format == 'WEBP' or getattr(image, 'is_animated', False):
                return image_bytes

            # WebP keeps alpha; palette images are expanded so transparency survives
            if image.mode == 'P':
                image = image.convert('RGBA')
            elif image.mode not in ('RGB', 'RGBA', 'LA'):
                image = image.convert('RGB')

            buffer = io.BytesIO()
            image.save(buffer, format='WEBP', quality=quality, method=DEFAULT_WEBP_METHOD)
            webp_bytes = buffer.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"WebP conversion failed, uploading original: {str(e)}")
        return image_bytes

    if len(webp_bytes) >= len(image_bytes):
        logger.debug("WebP conversion did not reduce size, using original")
        return image_bytes

    logger.info(f"Converted image to WebP: {len(image_bytes):,} bytes -> {len(webp_bytes):,} bytes")
    return webp_bytes
