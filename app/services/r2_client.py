# app/services/r2_client.py
import logging
from functools import lru_cache

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from app.config import settings

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


def is_missing_object(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    return code in MISSING_OBJECT_CODES


class BlobStore:
    """Thin wrapper over the S3-compatible R2 bucket holding master and per-user PDFs."""

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if is_missing_object(e):
                return False
            raise

    def copy(self, source_key: str, dest_key: str):
        self.client.copy_object(
            Bucket=self.bucket,
            Key=dest_key,
            CopySource={"Bucket": self.bucket, "Key": source_key},
        )
        return dest_key

    def delete(self, key: str) -> bool:
        """Delete an object. Returns False when it was already gone."""
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if is_missing_object(e):
                logger.info(f"Object already deleted: {key}")
                return False
            raise

    def presigned_url(self, key: str, expires: int) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={
                "Bucket": self.bucket,
                "Key": key,
                "ResponseContentDisposition": "attachment",
            },
            ExpiresIn=expires,
        )


def build_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=settings.r2_endpoint_url,
        aws_access_key_id=settings.R2_ACCESS_KEY_ID,
        aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        region_name="auto",
        config=Config(
            connect_timeout=settings.BLOB_TIMEOUT_SECONDS,
            read_timeout=settings.BLOB_TIMEOUT_SECONDS,
            retries={"max_attempts": settings.BLOB_MAX_ATTEMPTS, "mode": "standard"},
            signature_version="s3v4",
        ),
    )


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    return BlobStore(build_s3_client(), settings.R2_BUCKET_NAME)
