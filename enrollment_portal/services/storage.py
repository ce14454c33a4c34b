# enrollment_portal/services/storage.py
import logging
from typing import Optional

import cloudinary
import cloudinary.uploader
import cloudinary.utils
from cloudinary.exceptions import Error as CloudinaryError

from enrollment_portal.core.config import settings
from enrollment_portal.core.errors import DependencyUnavailable

logger = logging.getLogger(__name__)


class ObjectStorage:
    """upload(path, bytes) and public_url(path): all the portal needs from a blob store."""

    def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> Optional[str]:
        """Store the object; may return its public URL."""
        raise NotImplementedError

    def public_url(self, path: str) -> str:
        raise NotImplementedError


class CloudinaryStorage(ObjectStorage):
    def __init__(self, folder: Optional[str] = None):
        self.folder = folder or settings.DOCUMENTS_FOLDER
        self.configured = bool(
            settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET
        )
        if self.configured:
            cloudinary.config(
                cloud_name=settings.CLOUDINARY_CLOUD_NAME,
                api_key=settings.CLOUDINARY_API_KEY,
                api_secret=settings.CLOUDINARY_API_SECRET,
                secure=True,
            )

    def _public_id(self, path: str) -> str:
        return f"{self.folder}/{path.rsplit('.', 1)[0]}"

    def upload(self, path, content, content_type=None) -> Optional[str]:
        if not self.configured:
            raise DependencyUnavailable("Document storage is not configured")
        try:
            result = cloudinary.uploader.upload(
                content,
                public_id=self._public_id(path),
                resource_type="auto",
                overwrite=False,
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary upload error for {path}: {e}")
            raise DependencyUnavailable(f"Failed to upload file: {e}") from e
        return result.get("secure_url")

    def public_url(self, path: str) -> str:
        url, _ = cloudinary.utils.cloudinary_url(self._public_id(path), resource_type="image", secure=True)
        return url


def get_storage() -> ObjectStorage:
    return CloudinaryStorage()
