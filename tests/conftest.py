from __future__ import annotations

import os
import tempfile

# Configuration is read once at import time, so the environment has to be
# pinned before any application module is imported.
_scratch = tempfile.mkdtemp(prefix="podcast-webhooks-tests-")
os.environ["ENVIRONMENT"] = "development"
os.environ["APP_URL"] = "https://studio.example.com/"
os.environ["LOG_DIR"] = os.path.join(_scratch, "logs")
os.environ["ARCHIVE_DIR"] = os.path.join(_scratch, "archive")
for _name in (
    "OPENROUTER_API_KEY",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "ELEVENLABS_API_KEY",
    "MINIO_ACCESS_KEY",
    "MINIO_SECRET_KEY",
):
    os.environ[_name] = ""

import pytest
from fastapi.testclient import TestClient

from src.storage.artifact_store import ArtifactStore
from src.storage.local_archive import LocalArchive


@pytest.fixture
def archive(tmp_path) -> LocalArchive:
    return LocalArchive(tmp_path / "archive")


@pytest.fixture
def app():
    from commons import limiter
    from main import app as fastapi_app

    limiter.enabled = False
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def store(archive) -> ArtifactStore:
    return ArtifactStore(archive)
