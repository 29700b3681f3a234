from __future__ import annotations

import os

import pytest

from src.dependencies import get_artifact_store


@pytest.fixture
def stored(app, store):
    app.dependency_overrides[get_artifact_store] = lambda: store
    first = store.save_local(b"first", "job_1_a", "One", metadata={"jobId": "job_1_a"})
    second = store.save_local(b"second!", "job_2_b", "Two")
    os.utime(first.path, (1_000, 1_000))
    os.utime(second.path, (2_000, 2_000))
    return first, second


def test_list_archive(client, stored):
    first, second = stored
    files = client.get("/api/archive").json()["files"]
    assert [item["name"] for item in files] == [second.filename, first.filename]
    assert files[0]["size"] == len(b"second!")


def test_download_archived(client, stored):
    first, _ = stored
    response = client.get(f"/api/archive/{first.filename}")
    assert response.status_code == 200
    assert response.content == b"first"
    assert response.headers["content-type"] == "audio/mpeg"


def test_download_archived_only_serves_audio(client, stored):
    first, _ = stored
    sidecar = first.filename.replace(".mp3", ".json")
    assert client.get(f"/api/archive/{sidecar}").status_code == 404
    assert client.get("/api/archive/missing_job_9_z.mp3").status_code == 404


def test_download_archived_rejects_traversal(client, stored):
    response = client.get("/api/archive/..secret.mp3")
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid filename"


def test_delete_archived(client, stored, store):
    first, _ = stored

    response = client.delete("/api/archive", params={"filename": first.filename})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "File deleted successfully"}
    assert not first.path.exists()
    assert not first.path.with_suffix(".json").exists()
    assert client.delete("/api/archive", params={"filename": first.filename}).status_code == 404


def test_delete_requires_filename(client, stored):
    response = client.delete("/api/archive")
    assert response.status_code == 400
    assert response.json()["error"] == "Filename is required"
