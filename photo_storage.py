"""
DJ Photo Storage

Stores uploaded DJ photos under their SHA-256 content hash, either in a
Cloudflare R2 bucket (S3-compatible, via boto3) when R2 credentials are
configured, or in the local upload directory served at ``/uploads``.
"""

import hashlib
import logging
import os

import boto3
from botocore.exceptions import ClientError
import config

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


class PhotoStorageError(Exception):
    pass


def get_r2_client():
    """Create and return a boto3 S3 client configured for Cloudflare R2."""
    return boto3.client(
        's3',
        endpoint_url=f"https://{config.R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=config.R2_ACCESS_KEY_ID,
        aws_secret_access_key=config.R2_SECRET_ACCESS_KEY,
        region_name='auto'
    )


def content_filename(content: bytes, content_type: str) -> str:
    digest = hashlib.sha256(content).hexdigest()
    return f"{digest}.{ALLOWED_CONTENT_TYPES[content_type]}"


def _exists_in_r2(client, filename: str) -> bool:
    try:
        client.head_object(Bucket=config.R2_BUCKET_NAME, Key=filename)
        return True
    except ClientError:
        return False


def _save_to_r2(content: bytes, filename: str, content_type: str) -> str:
    client = get_r2_client()
    public_url = config.R2_PUBLIC_URL.rstrip('/')

    if not _exists_in_r2(client, filename):
        try:
            client.put_object(
                Bucket=config.R2_BUCKET_NAME,
                Key=filename,
                Body=content,
                ContentType=content_type
            )
        except ClientError as e:
            logger.error("R2 upload of %s failed: %s", filename, e)
            raise PhotoStorageError("R2 upload failed") from e

    return f"{public_url}/{filename}"


def _save_locally(content: bytes, filename: str) -> str:
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    file_location = os.path.join(config.UPLOAD_DIR, filename)

    # Same content, same name: nothing to write
    if not os.path.exists(file_location):
        with open(file_location, "wb") as file_object:
            file_object.write(content)

    return f"/uploads/{filename}"


def save_photo(content: bytes, content_type: str) -> str:
    """Store an image and return the URL to put in ``Dj.photo``."""
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ValueError(f"Unsupported image type: {content_type}")
    if not content:
        raise ValueError("Empty file")
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise ValueError("File too large")

    filename = content_filename(content, content_type)
    if config.R2_ENABLED:
        return _save_to_r2(content, filename, content_type)
    return _save_locally(content, filename)
