import io
import logging
from datetime import timedelta
from typing import Dict, Optional
from uuid import uuid4
from minio.error import S3Error
from urllib3.exceptions import HTTPError as TransportError

from ..minio_client import get_minio_client, MINIO_DEFAULT_BUCKET
from ..api.exceptions import ServiceUnavailableException
from ..storage_config import MATERIAL_PATH_PATTERNS, PRESIGNED_URL_EXPIRY_SECONDS

logger = logging.getLogger(__name__)


def material_object_key(metadata: Dict[str, str]) -> str:
    """Object key for a material upload, unique per upload"""
    pattern = 'lesson_material' if metadata.get('lesson_id') else 'course_material'
    return MATERIAL_PATH_PATTERNS[pattern].format(
        course_id=metadata.get('course_id', 'unassigned'),
        lesson_id=metadata.get('lesson_id'),
        unique=uuid4().hex,
        filename=metadata.get('filename', 'unnamed_file'),
    )


class StorageService:
    """Blob store for material files, backed by MinIO.

    Material descriptors only keep the locator (object key) returned by
    `store`; the bytes never pass through the database.
    """

    def __init__(self, client=None, bucket_name: Optional[str] = None):
        self.client = client or get_minio_client()
        self.default_bucket = bucket_name or MINIO_DEFAULT_BUCKET

    async def store(self, data: bytes, metadata: Dict[str, str]) -> str:
        """Upload bytes and return their locator"""
        object_key = material_object_key(metadata)

        try:
            self.client.put_object(
                bucket_name=self.default_bucket,
                object_name=object_key,
                data=io.BytesIO(data),
                length=len(data),
                content_type=metadata.get('content_type') or 'application/octet-stream',
                metadata={f"x-amz-meta-{k}": str(v) for k, v in metadata.items() if v is not None}
            )
        except (S3Error, TransportError) as e:
            logger.error(f"Error uploading file: {e}")
            raise ServiceUnavailableException(f"Storage upload error: {e}")

        logger.info(f"Uploaded object: {self.default_bucket}/{object_key}")
        return object_key

    async def delete(self, locator: str) -> bool:
        """Delete an object; False when it was already gone"""
        try:
            self.client.remove_object(self.default_bucket, locator)
        except S3Error as e:
            if e.code == 'NoSuchKey':
                logger.warning(f"Object already removed: {locator}")
                return False
            logger.error(f"Error deleting file: {e}")
            raise ServiceUnavailableException(f"Storage delete error: {e}")
        except TransportError as e:
            logger.error(f"Error deleting file: {e}")
            raise ServiceUnavailableException(f"Storage delete error: {e}")

        logger.info(f"Deleted object: {self.default_bucket}/{locator}")
        return True

    async def url_for(self, locator: str) -> str:
        """Presigned download URL for an object"""
        try:
            return self.client.presigned_get_object(
                bucket_name=self.default_bucket,
                object_name=locator,
                expires=timedelta(seconds=PRESIGNED_URL_EXPIRY_SECONDS)
            )
        except (S3Error, TransportError) as e:
            logger.error(f"Error generating presigned URL: {e}")
            raise ServiceUnavailableException(f"Presigned URL error: {e}")


# Singleton instance getter
_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get the singleton storage service instance"""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
