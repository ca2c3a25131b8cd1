import logging
import pathlib
import time
from typing import Optional

from . import config

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_PREFIX = "sightings"
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}


class UploadRejected(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def bucket_dir() -> pathlib.Path:
    return pathlib.Path(config.UPLOAD_DIR) / config.STORAGE_BUCKET


def public_url(object_path: str) -> str:
    return f"{config.PUBLIC_BASE_URL}/uploads/{config.STORAGE_BUCKET}/{object_path}"


def validate_image(content_type: Optional[str], size: int) -> None:
    if not content_type or not content_type.startswith("image/"):
        raise UploadRejected("Please select an image file")
    if size > MAX_IMAGE_BYTES:
        raise UploadRejected("Image size must be less than 5MB", status_code=413)


def upload_image(filename: Optional[str], content_type: Optional[str], data: bytes) -> str:
    """Store an image in the bucket and return its public URL."""
    validate_image(content_type, len(data))
    ext = pathlib.Path(filename or "").suffix.lower().lstrip(".")
    if ext not in IMAGE_EXTENSIONS:
        # the stored name decides how /uploads serves the file
        ext = "jpg"
    object_path = f"{IMAGE_PREFIX}/{int(time.time() * 1000)}.{ext}"

    dest = bucket_dir() / object_path
    dest.parent.mkdir(parents=True, exist_ok=True)
    with dest.open("wb") as out:
        out.write(data)
    logger.info("Stored image %s (%d bytes)", object_path, len(data))
    return public_url(object_path)
