import io
import logging
from typing import Iterable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import StorageError
from ..settings import settings
from .assets import StoredAsset, new_storage_key

logger = logging.getLogger("recipebox.storage")

# S3 DeleteObjects accepts at most 1000 keys per call
DELETE_BATCH_SIZE = 1000


class S3CompatStore:
    def __init__(
        self,
        endpoint_url: str,
        region_name: str,
        access_key_id: str,
        secret_access_key: str,
        bucket: str,
        public_base_url: str,
        key_prefix: str = "recipes",
        max_attempts: int = 3,
        client=None,
    ):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.key_prefix = key_prefix
        # Transient failures (throttling, 5xx, connection resets) are retried by botocore
        self.s3 = client or boto3.client(
            service_name="s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region_name,
            config=Config(retries={"max_attempts": max_attempts, "mode": "standard"}),
        )

    def upload(self, data: bytes, *, filename: Optional[str] = None, content_type: Optional[str] = None) -> StoredAsset:
        key = new_storage_key(self.key_prefix, filename, content_type)
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=io.BytesIO(data),
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"put_object {key} failed: {e}") from e
        logger.info(f"Uploaded {len(data)} bytes to s3://{self.bucket}/{key}")
        return StoredAsset(url=f"{self.public_base_url}/{key}", storage_id=key)

    def delete(self, storage_id: str) -> None:
        # DeleteObject succeeds for missing keys, so retrying is safe
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=storage_id)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"delete_object {storage_id} failed: {e}") from e
        logger.info(f"Deleted s3://{self.bucket}/{storage_id}")

    def delete_many(self, storage_ids: Iterable[str]) -> None:
        keys = [k for k in storage_ids if k]
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start:start + DELETE_BATCH_SIZE]
            try:
                resp = self.s3.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as e:
                raise StorageError(f"delete_objects failed: {e}") from e
            errors = resp.get("Errors") or []
            if errors:
                failed = ", ".join(err.get("Key", "?") for err in errors)
                raise StorageError(f"delete_objects could not delete: {failed}")
        logger.info(f"Deleted {len(keys)} objects from s3://{self.bucket}")


def get_s3_store() -> S3CompatStore:
    return S3CompatStore(
        endpoint_url=settings.object_store_endpoint,
        region_name=settings.object_store_region,
        access_key_id=settings.object_store_access_key_id,
        secret_access_key=settings.object_store_secret_access_key,
        bucket=settings.object_store_bucket,
        public_base_url=settings.object_public_base_url,
        key_prefix=settings.object_key_prefix,
        max_attempts=settings.object_store_max_attempts,
    )
