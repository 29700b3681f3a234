from __future__ import annotations

from types import SimpleNamespace

import pytest

from src.storage.target import resolve_storage_target, storage_target_from_config


def test_url_endpoint_overrides_port_and_tls():
    target = resolve_storage_target("https://host:9443", port=9000, use_ssl=False)
    assert target.use_ssl is True
    assert target.hostname == "host"
    assert target.port == 9443
    assert target.endpoint_url == "https://host:9443"


def test_url_endpoint_without_port_uses_scheme_default():
    secure = resolve_storage_target("https://minio.example.com", port=9000)
    plain = resolve_storage_target("http://minio.example.com", port=443, use_ssl=True)
    assert (secure.port, secure.use_ssl) == (443, True)
    assert (plain.port, plain.use_ssl) == (80, False)


def test_bare_host_on_443_forces_tls():
    target = resolve_storage_target("minio.example.com", port=443, use_ssl=False)
    assert target.use_ssl is True
    assert target.endpoint_url == "https://minio.example.com:443"


def test_bare_host_keeps_discrete_settings():
    target = resolve_storage_target("localhost", port=9000, use_ssl=False)
    assert target.hostname == "localhost"
    assert target.port == 9000
    assert target.use_ssl is False


def test_credentials_and_public_url():
    target = resolve_storage_target(
        "http://localhost:9000", access_key="key", secret_key="secret", bucket="podcast"
    )
    assert target.has_credentials
    assert target.public_url("a_job_1.mp3") == "http://localhost:9000/podcast/a_job_1.mp3"
    assert not resolve_storage_target("localhost", access_key="key").has_credentials


def test_describe_hides_secrets():
    target = resolve_storage_target("https://host:9443", access_key="key", secret_key="secret")
    assert target.describe() == {
        "endPoint": "host",
        "port": 9443,
        "useSSL": True,
        "bucketName": "podcast",
    }


def test_target_from_config():
    cfg = SimpleNamespace(
        MINIO_ENDPOINT="https://storage.example.com:8443",
        MINIO_PORT=443,
        MINIO_USE_SSL=False,
        MINIO_ACCESS_KEY="key",
        MINIO_SECRET_KEY="secret",
        MINIO_BUCKET_NAME="shows",
        MINIO_REGION="eu-central-1",
    )
    target = storage_target_from_config(cfg)
    assert target.hostname == "storage.example.com"
    assert target.port == 8443
    assert target.bucket == "shows"
    assert target.region == "eu-central-1"


@pytest.mark.parametrize("endpoint", ["https://host:notaport", "http://host:99999"])
def test_bad_url_port_falls_back_to_discrete_settings(endpoint):
    target = resolve_storage_target(endpoint, port=9000, use_ssl=False)
    assert target.hostname == "host"
    assert target.port == 9000
    assert target.use_ssl is False


def test_bad_url_port_on_443_still_forces_tls():
    target = resolve_storage_target("https://host:notaport", port=443)
    assert (target.hostname, target.port, target.use_ssl) == ("host", 443, True)
