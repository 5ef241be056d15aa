"""
Media Store - uploads report photos and resolution proof to Firebase Storage.

Uploads are at-least-once: a retried request may upload the same file twice.
Orphaned objects are a storage cleanup concern, not a lifecycle one.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional
import logging
import os
import uuid

from fixit.config.firebase import get_bucket
from fixit.core.exceptions import DependencyFailure

logger = logging.getLogger(__name__)

REPORT_FOLDER = "fixit-reports"
PROOF_FOLDER = "fixit-resolved-proofs"


class MediaStore(ABC):
    """Contract: upload(file) -> url."""

    @abstractmethod
    def upload(
        self,
        file: BinaryIO,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        folder: str = REPORT_FOLDER,
    ) -> str:
        pass


class FirebaseMediaStore(MediaStore):
    """Stores files in the configured bucket and returns their public URL."""

    def __init__(self, bucket=None):
        self._bucket = bucket

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = get_bucket()
        return self._bucket

    def upload(
        self,
        file: BinaryIO,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        folder: str = REPORT_FOLDER,
    ) -> str:
        extension = os.path.splitext(filename or "")[1].lower()
        blob_name = f"{folder}/{uuid.uuid4().hex}{extension}"
        try:
            blob = self.bucket.blob(blob_name)
            blob.upload_from_file(file, content_type=content_type or "application/octet-stream")
            blob.make_public()
        except Exception as e:
            raise DependencyFailure("media_store", str(e), blob=blob_name)

        logger.info(f"✅ Uploaded {filename or 'file'} to {blob_name}")
        return blob.public_url


# Global instance (singleton pattern)
_media_store: Optional[MediaStore] = None


def get_media_store() -> MediaStore:
    global _media_store
    if _media_store is None:
        _media_store = FirebaseMediaStore()
    return _media_store
