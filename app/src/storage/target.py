"""
Connection parameters for the optional S3-compatible mirror.

``resolve_storage_target`` is the only place endpoint settings are
interpreted. Precedence rule: an endpoint with a scheme is parsed as a URL
and its hostname, port and TLS flag override the discrete MINIO_PORT /
MINIO_USE_SSL settings. A bare hostname uses the discrete settings, with TLS
forced on when the port is 443.
"""

import logging
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

DEFAULT_SECURE_PORT = 443
DEFAULT_PLAIN_PORT = 80


@dataclass(frozen=True)
class StorageTarget:
    hostname: str
    port: int
    use_ssl: bool
    access_key: str
    secret_key: str
    bucket: str
    region: str = "us-east-1"

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key)

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def endpoint_url(self) -> str:
        return f"{self.scheme}://{self.hostname}:{self.port}"

    def public_url(self, key: str) -> str:
        return f"{self.endpoint_url}/{self.bucket}/{key}"

    def describe(self) -> dict:
        """Connection summary that is safe to log or return to clients."""
        return {
            "endPoint": self.hostname,
            "port": self.port,
            "useSSL": self.use_ssl,
            "bucketName": self.bucket,
        }


def resolve_storage_target(
    endpoint: str,
    port: Optional[int] = DEFAULT_SECURE_PORT,
    use_ssl: bool = False,
    access_key: str = "",
    secret_key: str = "",
    bucket: str = "podcast",
    region: str = "us-east-1",
) -> StorageTarget:
    endpoint = (endpoint or "").strip()
    port = int(port) if port else DEFAULT_SECURE_PORT

    if "://" in endpoint:
        parts = urlsplit(endpoint)
        try:
            url_port = parts.port
        except ValueError:
            # Bad port in the URL: keep its host, fall back to MINIO_PORT / MINIO_USE_SSL
            logger.warning("Invalid port in MINIO_ENDPOINT %r, using discrete settings", endpoint)
            hostname = parts.hostname or endpoint
            if port == DEFAULT_SECURE_PORT:
                use_ssl = True
        else:
            if parts.hostname:
                secure = parts.scheme == "https"
                hostname = parts.hostname
                port = url_port or (DEFAULT_SECURE_PORT if secure else DEFAULT_PLAIN_PORT)
                use_ssl = secure
            else:
                logger.warning("Failed to parse MINIO_ENDPOINT %r as URL, using as-is", endpoint)
                hostname = endpoint
    else:
        hostname = endpoint
        if port == DEFAULT_SECURE_PORT:
            use_ssl = True

    return StorageTarget(
        hostname=hostname,
        port=port,
        use_ssl=use_ssl,
        access_key=access_key or "",
        secret_key=secret_key or "",
        bucket=bucket,
        region=region,
    )


def storage_target_from_config(cfg: SimpleNamespace) -> StorageTarget:
    return resolve_storage_target(
        endpoint=cfg.MINIO_ENDPOINT,
        port=cfg.MINIO_PORT,
        use_ssl=cfg.MINIO_USE_SSL,
        access_key=cfg.MINIO_ACCESS_KEY,
        secret_key=cfg.MINIO_SECRET_KEY,
        bucket=cfg.MINIO_BUCKET_NAME,
        region=cfg.MINIO_REGION,
    )
