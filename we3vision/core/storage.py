"""
File storage abstraction layer supporting both local filesystem and AWS S3.

Uploaded images are addressed by their generated filename only. Local
storage keeps them flat under UPLOAD_DIR (served at /uploads); S3 keeps
them under S3_PREFIX in the configured bucket.
"""

import logging
import mimetypes
import os
from typing import List, Optional

import boto3
from botocore.exceptions import ClientError

from we3vision.core.config import settings

logger = logging.getLogger(__name__)


class StorageBackend:
    """Abstract base class for storage backends"""

    def save(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        """Store bytes under `filename` and return the public path"""
        raise NotImplementedError

    def list_files(self) -> List[str]:
        """Return stored filenames"""
        raise NotImplementedError

    def delete_file(self, filename: str) -> bool:
        """Delete a file; False if it did not exist"""
        raise NotImplementedError

    def exists(self, filename: str) -> bool:
        raise NotImplementedError

    def public_path(self, filename: str) -> str:
        """URL (or site-relative path) clients use to fetch the file"""
        raise NotImplementedError


class LocalStorage(StorageBackend):
    """Local filesystem storage backend"""

    def __init__(self, base_dir: str = "uploads", url_prefix: str = "/uploads"):
        self.base_dir = base_dir
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(self.base_dir, exist_ok=True)

    def _path(self, filename: str) -> str:
        return os.path.join(self.base_dir, filename)

    def save(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        with open(self._path(filename), "wb") as buffer:
            buffer.write(data)
        return self.public_path(filename)

    def list_files(self) -> List[str]:
        return sorted(
            name for name in os.listdir(self.base_dir)
            if os.path.isfile(self._path(name))
        )

    def delete_file(self, filename: str) -> bool:
        path = self._path(filename)
        if not os.path.isfile(path):
            return False
        os.remove(path)
        return True

    def exists(self, filename: str) -> bool:
        return os.path.isfile(self._path(filename))

    def public_path(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"


class S3Storage(StorageBackend):
    """AWS S3 storage backend"""

    def __init__(self, bucket_name: str, prefix: str = "uploads/", client=None, region: Optional[str] = None):
        self.bucket_name = bucket_name
        self.prefix = prefix if not prefix or prefix.endswith("/") else prefix + "/"
        self.region = region or settings.AWS_REGION

        if client is not None:
            self.s3_client = client
        # If AWS_ACCESS_KEY_ID is not set, boto3 will use IAM roles (for EC2/ECS)
        elif settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            self.s3_client = boto3.client(
                's3',
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=self.region
            )
        else:
            self.s3_client = boto3.client('s3', region_name=self.region)

    def _key(self, filename: str) -> str:
        return f"{self.prefix}{filename}"

    def save(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        self.s3_client.put_object(
            Bucket=self.bucket_name,
            Key=self._key(filename),
            Body=data,
            ContentType=content_type,
            ServerSideEncryption="AES256",
        )
        return self.public_path(filename)

    def list_files(self) -> List[str]:
        filenames = []
        kwargs = {"Bucket": self.bucket_name, "Prefix": self.prefix}
        while True:
            response = self.s3_client.list_objects_v2(**kwargs)
            for obj in response.get("Contents", []):
                name = obj["Key"][len(self.prefix):]
                # Skip "directory" placeholders and nested keys
                if name and "/" not in name:
                    filenames.append(name)
            if not response.get("IsTruncated"):
                break
            kwargs["ContinuationToken"] = response["NextContinuationToken"]
        return sorted(filenames)

    def delete_file(self, filename: str) -> bool:
        if not self.exists(filename):
            return False
        self.s3_client.delete_object(Bucket=self.bucket_name, Key=self._key(filename))
        logger.info(f"Deleted s3://{self.bucket_name}/{self._key(filename)}")
        return True

    def exists(self, filename: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=self._key(filename))
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def public_path(self, filename: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{self._key(filename)}"


_storage: Optional[StorageBackend] = None


def build_storage() -> StorageBackend:
    """Create the backend selected by USE_S3"""
    if settings.USE_S3:
        if not settings.S3_BUCKET_NAME:
            raise ValueError("S3_BUCKET_NAME must be set when USE_S3=True")
        return S3Storage(settings.S3_BUCKET_NAME, settings.S3_PREFIX)
    return LocalStorage(settings.UPLOAD_DIR)


def get_storage() -> StorageBackend:
    """FastAPI dependency returning the process-wide storage backend"""
    global _storage
    if _storage is None:
        _storage = build_storage()
    return _storage
