import hashlib
import json
import re
import threading
from logging import getLogger
from typing import NamedTuple, Optional

import boto3
from boto3.exceptions import Boto3Error
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from .exceptions import ImageMirrorFailure

logger = getLogger(__name__)

MISSING_BUCKET_ERROR_CODES = ("404", "NoSuchBucket", "NotFound")
MULTIPART_ETAG = re.compile(r"[0-9a-f]{32}-\d+")


class PublishedImage(NamedTuple):
    object_key: str
    content_type: Optional[str]
    url: str


def get_storage_client():
    """
    Build an S3 client for the configured MinIO (or other S3-compatible)
    endpoint.
    """
    scheme = "https" if settings.IMAGE_MIRROR_SECURE else "http"
    endpoint = settings.IMAGE_MIRROR_ENDPOINT
    if settings.IMAGE_MIRROR_PORT:
        endpoint = f"{endpoint}:{settings.IMAGE_MIRROR_PORT}"

    session = boto3.session.Session()
    return session.client(
        service_name="s3",
        endpoint_url=f"{scheme}://{endpoint}",
        aws_access_key_id=settings.IMAGE_MIRROR_ACCESS_KEY,
        aws_secret_access_key=settings.IMAGE_MIRROR_SECRET_KEY,
        region_name=settings.IMAGE_MIRROR_REGION,
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )


def public_read_policy(bucket_name):
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"AWS": ["*"]},
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket_name}/*"],
            }
        ],
    }


def file_md5(path):
    hasher = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(256 * 1024), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


class ObjectStoreGateway:
    """
    Publishes staged files into a single public-read bucket.

    The bucket is checked (and created with a public read policy if missing)
    before every upload. Published objects are reachable at
    ``{public_base}/{bucket}/{object_key}``.

    Storage errors are logged and reported as ``None``; they never propagate.
    """

    def __init__(
        self,
        client,
        bucket: str,
        public_base: str,
        region: str = "us-east-1",
        verify_checksum: bool = False,
    ):
        self.client = client
        self.bucket = bucket
        self.public_base = public_base.rstrip("/")
        self.region = region
        self.verify_checksum = verify_checksum
        self._bucket_lock = threading.Lock()

    def public_url(self, object_key: str) -> str:
        return f"{self.public_base}/{self.bucket}/{object_key}"

    def is_published_url(self, url) -> bool:
        return isinstance(url, str) and url.startswith(f"{self.public_base}/")

    def bucket_exists(self) -> bool:
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code")
            if error_code not in MISSING_BUCKET_ERROR_CODES:
                raise
            return False
        return True

    def ensure_bucket(self) -> bool:
        """
        Create the bucket with a public read policy unless it already exists.

        The existence check runs without holding the lock; only creation is
        serialised, and the bucket is checked again once the lock is held.

        Returns:
            True if the bucket was created by this call.
        """
        if self.bucket_exists():
            return False

        with self._bucket_lock:
            if self.bucket_exists():
                return False

            create_kwargs = {"Bucket": self.bucket}
            # us-east-1 is the implicit location and S3 rejects it as a constraint
            if self.region and self.region != "us-east-1":
                create_kwargs["CreateBucketConfiguration"] = {
                    "LocationConstraint": self.region
                }
            self.client.create_bucket(**create_kwargs)
            self.client.put_bucket_policy(
                Bucket=self.bucket, Policy=json.dumps(public_read_policy(self.bucket))
            )
            logger.info("Created bucket %s with public read policy", self.bucket)
            return True

    def publish(
        self, local_path: str, object_key: str, content_type: Optional[str]
    ) -> Optional[PublishedImage]:
        try:
            self.ensure_bucket()
            extra_args = {"ContentType": content_type} if content_type else {}
            self.client.upload_file(
                local_path, self.bucket, object_key, ExtraArgs=extra_args
            )
            self.verify_upload(local_path, object_key)
        except (Boto3Error, BotoCoreError, ClientError, OSError) as exc:
            logger.warning(
                "Failed to upload %s to bucket %s as %s: %s",
                local_path,
                self.bucket,
                object_key,
                exc,
            )
            return None
        except ImageMirrorFailure as exc:
            logger.error("Upload of %s rejected: %s", local_path, exc)
            return None

        return PublishedImage(object_key, content_type, self.public_url(object_key))

    def verify_upload(self, local_path: str, object_key: str) -> None:
        """
        Compare the stored object's ETag with the MD5 of the local file.

        A mismatch raises ImageMirrorFailure when checksum verification is
        enabled and is only logged otherwise.
        """
        filehash = file_md5(local_path)
        response = self.client.head_object(Bucket=self.bucket, Key=object_key)
        etag = response.get("ETag", "").strip('"')

        if MULTIPART_ETAG.fullmatch(etag):
            # Multipart uploads have composite ETags which are not an MD5
            logger.info(
                "ETag (%s) for %s is a multipart ETag; skipping checksum comparison",
                etag,
                object_key,
            )
        elif filehash != etag:
            if self.verify_checksum:
                raise ImageMirrorFailure(
                    f"ETag {etag} for {object_key} did not match calculated "
                    f"md5 hash {filehash}"
                )
            logger.warning(
                "ETag (%s) for %s did not match calculated md5 hash (%s) but "
                "the MIRROR_IMAGE_CHECKSUM flag is disabled",
                etag,
                object_key,
                filehash,
            )
        else:
            logger.info("Checksums for %s matched. Upload successful.", object_key)
