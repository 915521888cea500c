"""
Object storage signer (S3 / S3-compatible).

The application never streams file bytes. Clients PUT directly to a
presigned URL and later fetch through a presigned GET URL. The signer is
registered on ``app.extensions["object_signer"]`` by the app factory so
tests can swap in a fake.

Config:
    S3_BUCKET, AWS_REGION, S3_ENDPOINT_URL (LocalStack / MinIO),
    AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY,
    PRESIGN_UPLOAD_EXPIRES (300), PRESIGN_DOWNLOAD_EXPIRES (3600)
"""

import logging

import boto3
from botocore.config import Config as BotoConfig
from flask import current_app

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_EXPIRES = 300
DEFAULT_DOWNLOAD_EXPIRES = 3600


class S3ObjectSigner:
    """Signs PUT/GET URLs for objects in a single bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self._client = boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url or None,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            # Path-style addressing keeps LocalStack/MinIO endpoints working
            config=BotoConfig(
                signature_version="s3v4",
                s3={"addressing_style": "path" if endpoint_url else "auto"},
            ),
        )

    @classmethod
    def from_config(cls, config) -> "S3ObjectSigner":
        return cls(
            config.get("S3_BUCKET") or "",
            region=config.get("AWS_REGION") or "us-east-1",
            endpoint_url=config.get("S3_ENDPOINT_URL"),
            access_key_id=config.get("AWS_ACCESS_KEY_ID"),
            secret_access_key=config.get("AWS_SECRET_ACCESS_KEY"),
        )

    def presign_upload(self, object_key: str, mime_type: str, expires_in: int) -> str:
        return self._client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket, "Key": object_key, "ContentType": mime_type},
            ExpiresIn=expires_in,
        )

    def presign_download(
        self, object_key: str, expires_in: int, content_disposition: str | None = None
    ) -> str:
        params = {"Bucket": self.bucket, "Key": object_key}
        if content_disposition:
            params["ResponseContentDisposition"] = content_disposition
        return self._client.generate_presigned_url(
            "get_object", Params=params, ExpiresIn=expires_in
        )

    def set_content_disposition(
        self, object_key: str, content_disposition: str, content_type: str | None = None
    ) -> None:
        """Copy the object onto itself with new metadata so downloads carry the display name."""
        extra = {"ContentType": content_type} if content_type else {}
        self._client.copy_object(
            Bucket=self.bucket,
            Key=object_key,
            CopySource={"Bucket": self.bucket, "Key": object_key},
            ContentDisposition=content_disposition,
            MetadataDirective="REPLACE",
            **extra,
        )


def init_storage(app):
    """Register the default S3 signer unless one is already installed."""
    app.extensions.setdefault("object_signer", S3ObjectSigner.from_config(app.config))


def get_signer():
    return current_app.extensions["object_signer"]


def get_bucket() -> str:
    return get_signer().bucket


def upload_expires() -> int:
    return current_app.config.get("PRESIGN_UPLOAD_EXPIRES", DEFAULT_UPLOAD_EXPIRES)


def download_expires() -> int:
    return current_app.config.get("PRESIGN_DOWNLOAD_EXPIRES", DEFAULT_DOWNLOAD_EXPIRES)
