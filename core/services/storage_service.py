# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles photo uploads for customers and manufacturing pieces.
# =============================================================================

import logging
import time
import uuid
from enum import Enum

from app.exceptions import FileTooLargeError, InvalidFileTypeError, StorageUploadError
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/jpg", "image/webp"]


class PhotoKind(str, Enum):
    CUSTOMER = "customer"
    MANUFACTURING = "manufacturing"


class StorageService:
    """
    Service for Supabase Storage operations.

    Each photo kind has its own bucket and folder:
        customer      -> <customer bucket>/customers/<file>
        manufacturing -> <manufacturing bucket>/manufacturing/<file>
    """

    def __init__(
        self,
        db: SupabaseClient,
        customer_bucket: str = "customer-photos",
        manufacturing_bucket: str = "manufacturing-photos",
        max_size_mb: int = 5,
    ):
        self.db = db
        self.max_size_mb = max_size_mb
        self.buckets = {
            PhotoKind.CUSTOMER: (customer_bucket, "customers"),
            PhotoKind.MANUFACTURING: (manufacturing_bucket, "manufacturing"),
        }

    def validate_photo(self, filename: str, content_type: str | None, size_bytes: int) -> None:
        """
        Check MIME type and size.

        Raises:
            InvalidFileTypeError: If the type isn't an allowed image type
            FileTooLargeError: If the photo exceeds the size limit
        """
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise InvalidFileTypeError(filename, ALLOWED_IMAGE_TYPES)

        if size_bytes > self.max_size_mb * 1024 * 1024:
            raise FileTooLargeError(size_bytes / (1024 * 1024), self.max_size_mb)

    @staticmethod
    def build_filename(original: str) -> str:
        """Unique object name keeping the original extension."""
        ext = original.rsplit(".", 1)[-1].lower() if "." in original else "jpg"
        return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}.{ext}"

    def upload_photo(
        self,
        kind: PhotoKind,
        filename: str,
        content: bytes,
        content_type: str | None,
    ) -> dict[str, str]:
        """
        Validate and store a photo.

        Returns:
            {"url": public URL, "path": storage path}

        Raises:
            InvalidFileTypeError, FileTooLargeError: On validation failure
            StorageUploadError: If the upload fails
        """
        self.validate_photo(filename, content_type, len(content))

        bucket, folder = self.buckets[kind]
        path = f"{folder}/{self.build_filename(filename)}"

        try:
            self.db.upload_blob(bucket, path, content, content_type)
        except SupabaseClientError as e:
            logger.error(f"Photo upload failed: {e}")
            raise StorageUploadError(e.db_message)

        url = self.db.public_url(bucket, path)
        return {"url": url, "path": path}
