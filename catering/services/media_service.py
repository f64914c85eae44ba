import logging
import requests

from catering.core.config import settings
from catering.services.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


class MediaUploadError(RuntimeError):
    """Media host unreachable, misconfigured or returned no URL."""
    status_code = 502


def validate_image(content_type: str, size: int) -> None:
    if not (content_type or "").startswith("image/"):
        raise ValidationError("only image files can be uploaded")
    if size <= 0:
        raise ValidationError("file is empty")
    if size > settings.MEDIA_MAX_BYTES:
        limit_mb = settings.MEDIA_MAX_BYTES / (1024 * 1024)
        raise ValidationError(f"image must be smaller than {limit_mb:g}MB")


def upload_image(filename: str, content: bytes, content_type: str, folder: str = "") -> str:
    """POST the image as multipart form data and return the host's stable secure_url."""
    validate_image(content_type, len(content or b""))
    if not settings.MEDIA_UPLOAD_URL:
        raise MediaUploadError("media upload is not configured (MEDIA_UPLOAD_URL)")

    data = {}
    if settings.MEDIA_UPLOAD_PRESET:
        data["upload_preset"] = settings.MEDIA_UPLOAD_PRESET
    if folder:
        data["folder"] = folder
    try:
        r = requests.post(
            settings.MEDIA_UPLOAD_URL,
            data=data,
            files={"file": (filename or "upload", content, content_type)},
            timeout=30,
        )
    except requests.RequestException as e:
        logger.error("media upload failed: %s", e)
        raise MediaUploadError(f"media upload failed: {e}") from e
    if r.status_code >= 300:
        logger.error("media upload rejected status=%s body=%s", r.status_code, r.text[:300])
        raise MediaUploadError(f"media host returned {r.status_code}")
    url = (r.json() or {}).get("secure_url") or ""
    if not url:
        raise MediaUploadError("media host response had no secure_url")
    logger.info("image uploaded name=%s bytes=%d", filename, len(content))
    return url
