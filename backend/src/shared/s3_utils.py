"""
S3 utility functions for media operations.
Stores job evidence photos and chat attachments, hands out presigned URLs
and removes evidence once a job is confirmed.
"""
import base64
import binascii
import re
import uuid
from urllib.parse import unquote, urlparse

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from .config import config
from .logging import logger

# s3v4 signing is required for presigned URLs in newer regions
s3_client = boto3.client(
    's3',
    region_name=config.AWS_REGION,
    config=BotoConfig(signature_version='s3v4')
)

DATA_URL_PATTERN = re.compile(r'^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$', re.DOTALL)

EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/webp': 'webp',
    'audio/webm': 'webm',
    'audio/mpeg': 'mp3',
}


def upload_media(data_url: str, prefix: str, bucket_name: str = None) -> str:
    """
    Upload a base64 data URL (as captured by the camera) to the media bucket.

    Args:
        data_url: 'data:image/jpeg;base64,...' string
        prefix: Key prefix, e.g. 'evidence/<jobId>'
        bucket_name: Optional bucket name, defaults to config.MEDIA_BUCKET

    Returns:
        The S3 key of the stored object. Plain http(s) URLs are returned
        untouched since they already point at stored media.

    Raises:
        ValueError: If the payload is not a decodable data URL
    """
    if data_url.startswith('http://') or data_url.startswith('https://'):
        return data_url

    match = DATA_URL_PATTERN.match(data_url.strip())
    if not match:
        raise ValueError("Evidence must be a base64 data URL")

    mime = match.group('mime')
    try:
        payload = base64.b64decode(match.group('data'), validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("Evidence is not valid base64")

    bucket = bucket_name or config.MEDIA_BUCKET
    key = f"media/{prefix}/{uuid.uuid4()}.{EXTENSIONS.get(mime, 'bin')}"

    s3_client.put_object(Bucket=bucket, Key=key, Body=payload, ContentType=mime)
    logger.info(f"Uploaded {len(payload)} bytes to {key}")
    return key


def generate_presigned_url(s3_key: str, expiration: int = 3600, bucket_name: str = None) -> str:
    """
    Signed GET URL for a stored evidence photo or chat attachment.

    Values that are not ours (external links, empty values) come back as
    they were, and so does the key itself when signing fails, so a listing
    never breaks over one picture.
    """
    bucket = bucket_name or config.MEDIA_BUCKET
    if not is_media_key(s3_key):
        return s3_key
    if not bucket:
        logger.warning(f"MEDIA_BUCKET unset, cannot sign {s3_key}")
        return s3_key

    try:
        return s3_client.generate_presigned_url(
            'get_object',
            Params={'Bucket': bucket, 'Key': _key_of(s3_key, bucket)},
            ExpiresIn=expiration
        )
    except ClientError as e:
        logger.error(f"Signing {s3_key} failed: {e}")
        return s3_key


def delete_media(s3_key: str, bucket_name: str = None) -> bool:
    """Remove a stored media object. Foreign URLs are left alone."""
    if not is_media_key(s3_key):
        return False

    bucket = bucket_name or config.MEDIA_BUCKET
    try:
        s3_client.delete_object(Bucket=bucket, Key=_key_of(s3_key, bucket))
        logger.info(f"Deleted media {s3_key}")
        return True
    except ClientError as e:
        logger.error(f"Deleting {s3_key} failed: {e}")
        return False


def is_media_key(url_or_key: str) -> bool:
    """True for keys written by upload_media or URLs into the media bucket (any region)."""
    if not url_or_key:
        return False
    if url_or_key.startswith('media/'):
        return True
    bucket = config.MEDIA_BUCKET
    if not bucket:
        return False
    parsed = urlparse(url_or_key)
    return parsed.scheme in ('http', 'https') and parsed.netloc.startswith(f"{bucket}.s3")


def _key_of(url_or_key: str, bucket: str) -> str:
    """Object key of a stored value: the key itself, or the path of a bucket URL."""
    parsed = urlparse(url_or_key)
    if parsed.scheme in ('http', 'https') and parsed.netloc.startswith(f"{bucket}.s3"):
        return unquote(parsed.path.lstrip('/'))
    return url_or_key
