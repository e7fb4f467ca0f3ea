import logging
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from services.errors import ConfigError, UpstreamError

logger = logging.getLogger(__name__)


def parse_public_domain(public_domain: str):
    """Parse the public domain setting; a bare host name means https"""
    if "://" not in public_domain:
        public_domain = f"https://{public_domain}"
    return urlparse(public_domain)


def is_public_url(url: Optional[str], public_domain: Optional[str]) -> bool:
    """True when the URL is served from the bucket's public domain (same scheme and host)"""
    if not url or not public_domain:
        return False
    parsed = urlparse(url)
    domain = parse_public_domain(public_domain)
    return (
        parsed.scheme.lower() == domain.scheme.lower()
        and parsed.netloc.lower() == domain.netloc.lower()
    )


def key_from_url(url: Optional[str], public_domain: Optional[str]) -> Optional[str]:
    """
    Recover the object key from a public object URL.

    The public domain maps onto the bucket root, so the URL path below the
    domain is the key:
    https://cdn.example.org/sounds/boom.mp3 -> sounds/boom.mp3

    URLs on any other host name no object of ours and give None.
    """
    if not is_public_url(url, public_domain):
        return None

    path = unquote(urlparse(url).path)
    prefix = parse_public_domain(public_domain).path.rstrip("/")
    if prefix:
        if not path.startswith(prefix + "/"):
            return None
        path = path[len(prefix):]

    key = path.lstrip("/")
    return key or None


class S3Client:
    """
    Thin wrapper over an S3-compatible bucket.

    Only the two operations the service needs are exposed: minting a
    presigned POST for direct uploads and deleting an object by key.
    """

    def __init__(self, settings):
        self.settings = settings
        self.bucket = settings.S3_BUCKET
        self._client = None

        if not all([settings.S3_ACCESS_KEY_ID, settings.S3_SECRET_ACCESS_KEY, settings.S3_BUCKET]):
            logger.warning("Missing S3 credentials. Direct upload and object deletion will not be available.")
            self.available = False
            return

        self.available = True

    @property
    def s3_client(self):
        """boto3 client, created on first use"""
        if self._client is None:
            self._client = boto3.client(
                's3',
                aws_access_key_id=self.settings.S3_ACCESS_KEY_ID,
                aws_secret_access_key=self.settings.S3_SECRET_ACCESS_KEY,
                region_name=self.settings.S3_REGION,
                endpoint_url=self.settings.S3_ENDPOINT_URL,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def mint(self, bucket: str, expires_in: int, max_size: int, key_prefix: str = "") -> Dict[str, Any]:
        """
        Generate a presigned POST scoped to one bucket.

        The holder may upload any key under `key_prefix` (the `${filename}`
        placeholder is filled in by S3 from the form) of at most `max_size`
        bytes until the policy expires.

        Returns:
            dict: containing url and fields needed for the POST request
        """
        if not self.available:
            raise ConfigError("Storage is not configured")

        try:
            presigned_post = self.s3_client.generate_presigned_post(
                Bucket=bucket,
                Key=f"{key_prefix}${{filename}}",
                Conditions=[
                    ["starts-with", "$key", key_prefix],
                    ["content-length-range", 1, max_size],
                ],
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error generating presigned post: {str(e)}")
            raise UpstreamError("Failed to generate upload token")

        return {
            "url": presigned_post["url"],
            "fields": presigned_post["fields"],
        }

    def delete(self, bucket: str, key: str):
        """Delete one object; raises UpstreamError when storage refuses"""
        if not self.available:
            raise ConfigError("Storage is not configured")

        try:
            self.s3_client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"Failed to delete {key}: {str(e)}")

        logger.info(f"Deleted storage object: {key}")
