"""
S3-compatible (MinIO) mirror for approved artifacts.

Everything here is best effort. ``upload`` never raises: missing
credentials or any provider failure come back as an unsuccessful
``RemoteUploadResult`` so the caller can carry on with the local copy.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.storage.target import StorageTarget

logger = logging.getLogger(__name__)

PRESIGNED_URL_EXPIRY_SECONDS = 7 * 24 * 60 * 60
_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_EXISTING_BUCKET_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


class RemoteStorageError(RuntimeError):
    """A step of the remote mirror failed; ``step`` names which one."""

    def __init__(self, step: str, cause: Exception) -> None:
        super().__init__(f"{step}: {cause}")
        self.step = step
        self.cause = cause


@dataclass
class RemoteUploadResult:
    success: bool
    url: Optional[str] = None
    key: Optional[str] = None
    error: Optional[str] = None


def public_read_policy(bucket: str) -> Dict[str, Any]:
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"AWS": ["*"]},
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket}/*"],
            }
        ],
    }


def is_public_policy(policy: Dict[str, Any]) -> bool:
    """True when some Allow statement grants access to every principal."""
    for statement in policy.get("Statement") or []:
        if statement.get("Effect") != "Allow":
            continue
        principal = statement.get("Principal")
        if principal == "*":
            return True
        if isinstance(principal, dict):
            aws = principal.get("AWS")
            if aws == "*" or (isinstance(aws, list) and "*" in aws):
                return True
    return False


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class RemoteMirror:
    def __init__(
        self,
        target: StorageTarget,
        client_factory: Optional[Callable[[StorageTarget], Any]] = None,
        url_expiry_seconds: int = PRESIGNED_URL_EXPIRY_SECONDS,
    ) -> None:
        self.target = target
        self.url_expiry_seconds = url_expiry_seconds
        self._client_factory = client_factory or _boto3_client

    @property
    def configured(self) -> bool:
        return self.target.has_credentials

    # ── Upload ───────────────────────────────────────────────────────────

    def upload(self, audio: bytes, key: str) -> RemoteUploadResult:
        """Mirror an artifact and return a retrieval URL, never raising."""
        if not self.configured:
            return RemoteUploadResult(
                success=False,
                error=(
                    "MinIO not configured. Set MINIO_ACCESS_KEY and "
                    "MINIO_SECRET_KEY environment variables."
                ),
            )

        bucket = self.target.bucket
        try:
            client = self._step("connect", self._client_factory, self.target)
            self.ensure_bucket(client)
            self.apply_public_read_policy(client)
            self._step(
                "put_object",
                client.put_object,
                Bucket=bucket,
                Key=key,
                Body=audio,
                ContentLength=len(audio),
                ContentType="audio/mpeg",
            )
            url = self.issue_url(client, key)
        except RemoteStorageError as exc:
            logger.error("MinIO upload of %s failed at %s: %s", key, exc.step, exc.cause)
            return RemoteUploadResult(success=False, key=key, error=str(exc))

        logger.info("Mirrored %s to bucket %s", key, bucket)
        return RemoteUploadResult(success=True, url=url, key=key)

    # ── Bucket lifecycle ─────────────────────────────────────────────────

    def ensure_bucket(self, client: Any) -> bool:
        """Create the bucket if it is missing. Returns True when it was created."""
        bucket = self.target.bucket
        try:
            client.head_bucket(Bucket=bucket)
            return False
        except ClientError as exc:
            if _error_code(exc) not in _MISSING_BUCKET_CODES:
                raise RemoteStorageError("head_bucket", exc) from exc
        except BotoCoreError as exc:
            raise RemoteStorageError("head_bucket", exc) from exc

        kwargs: Dict[str, Any] = {"Bucket": bucket}
        if self.target.region and self.target.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": self.target.region
            }
        try:
            client.create_bucket(**kwargs)
        except ClientError as exc:
            if _error_code(exc) in _EXISTING_BUCKET_CODES:
                logger.info("Bucket %s appeared concurrently", bucket)
                return False
            raise RemoteStorageError("create_bucket", exc) from exc
        except BotoCoreError as exc:
            raise RemoteStorageError("create_bucket", exc) from exc
        logger.info("Bucket %s created", bucket)
        return True

    def apply_public_read_policy(self, client: Any) -> bool:
        """Try to make the bucket publicly readable; failures are only logged."""
        bucket = self.target.bucket
        try:
            client.put_bucket_policy(
                Bucket=bucket, Policy=json.dumps(public_read_policy(bucket))
            )
        except (ClientError, BotoCoreError) as exc:
            # Already set, or we lack permission
            logger.info("Bucket policy setting skipped: %s", exc)
            return False
        logger.info("Bucket %s set to public read", bucket)
        return True

    # ── URL issuance ─────────────────────────────────────────────────────

    def bucket_is_public(self, client: Any) -> bool:
        """Read the bucket policy back; any failure counts as private."""
        try:
            response = client.get_bucket_policy(Bucket=self.target.bucket)
            return is_public_policy(json.loads(response["Policy"]))
        except (ClientError, BotoCoreError, KeyError, TypeError, ValueError) as exc:
            logger.info("Could not read bucket policy, assuming private: %s", exc)
            return False

    def issue_url(self, client: Any, key: str) -> str:
        """Direct URL for a public bucket, otherwise a 7-day signed URL."""
        if self.bucket_is_public(client):
            return self.target.public_url(key)
        return self._step(
            "presign",
            client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.target.bucket, "Key": key},
            ExpiresIn=self.url_expiry_seconds,
        )

    # ── Diagnostics ──────────────────────────────────────────────────────

    def check_connection(self) -> Dict[str, Any]:
        """
        Exercise list/ensure/put/presign/remove against the target.

        Raises:
            RemoteStorageError: at the first failing step.
        """
        client = self._step("connect", self._client_factory, self.target)
        listing = self._step("list_buckets", client.list_buckets)
        buckets = [bucket["Name"] for bucket in listing.get("Buckets", [])]

        self.ensure_bucket(client)

        probe_key = f"test_{int(time.time() * 1000)}.txt"
        body = b"test file content"
        self._step(
            "put_object",
            client.put_object,
            Bucket=self.target.bucket,
            Key=probe_key,
            Body=body,
            ContentLength=len(body),
            ContentType="text/plain",
        )
        presigned = self._step(
            "presign",
            client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.target.bucket, "Key": probe_key},
            ExpiresIn=3600,
        )
        self._step("delete_object", client.delete_object, Bucket=self.target.bucket, Key=probe_key)

        return {
            "connection": self.target.describe(),
            "buckets": buckets,
            "bucketExists": True,
            "uploadTest": {"success": True, "presignedUrlGenerated": bool(presigned)},
        }

    @staticmethod
    def _step(step: str, func: Callable, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ClientError, BotoCoreError, ValueError) as exc:
            raise RemoteStorageError(step, exc) from exc


def _boto3_client(target: StorageTarget):
    return boto3.client(
        "s3",
        endpoint_url=target.endpoint_url,
        aws_access_key_id=target.access_key,
        aws_secret_access_key=target.secret_key,
        region_name=target.region,
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )
