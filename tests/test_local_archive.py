from __future__ import annotations

import json
import os
import re

import pytest

from src.storage.local_archive import artifact_filename, sanitize_title

SLUG = re.compile(r"^[A-Za-z0-9_]{1,50}$")


@pytest.mark.parametrize(
    "title",
    ["AI & You: Episode #4", "Zażółć gęślą jaźń", "", "x" * 120, "a/../b", "   "],
)
def test_sanitize_title_is_total_and_idempotent(title):
    slug = sanitize_title(title)
    assert SLUG.match(slug)
    assert sanitize_title(slug) == slug


def test_sanitize_title_defaults_when_missing():
    assert sanitize_title(None) == "podcast"


def test_artifact_filename_appends_job_id_verbatim():
    assert artifact_filename("My Show!", "job_1_a") == "My_Show__job_1_a.mp3"
    assert artifact_filename("y" * 80, "job_9_z") == "y" * 50 + "_job_9_z.mp3"


def test_save_writes_audio_and_sidecar(archive):
    artifact = archive.save(b"audio-bytes", "job_1_a", "Hello", metadata={"jobId": "job_1_a"})

    assert artifact.filename == "Hello_job_1_a.mp3"
    assert artifact.size == len(b"audio-bytes")
    assert artifact.path.read_bytes() == b"audio-bytes"
    sidecar = artifact.path.with_suffix(".json")
    assert json.loads(sidecar.read_text(encoding="utf-8")) == {"jobId": "job_1_a"}
    assert not any(p.name.endswith(".tmp") for p in archive.directory.iterdir())


def test_find_by_job_id_missing_directory(tmp_path):
    from src.storage.local_archive import LocalArchive

    assert LocalArchive(tmp_path / "nowhere").find_by_job_id("job_1_a") is None


def test_find_prefers_exact_suffix_over_substring(archive):
    exact = archive.save(b"exact", "job_1_a", "Show").path
    loose = archive.save(b"loose", "job_1_ab", "Show").path
    os.utime(exact, (1_000, 1_000))
    os.utime(loose, (2_000, 2_000))

    assert archive.find_by_job_id("job_1_a") == exact


def test_find_substring_match_when_no_exact(archive):
    path = archive.save(b"x", "job_7_abc", "Show").path
    assert archive.find_by_job_id("job_7") == path


def test_find_picks_newest_among_equals(archive):
    older = archive.save(b"old", "job_2_b", "First").path
    newer = archive.save(b"new", "job_2_b", "Second").path
    os.utime(older, (1_000, 1_000))
    os.utime(newer, (5_000, 5_000))

    assert archive.find_by_job_id("job_2_b") == newer


def test_list_artifacts_newest_first_and_mp3_only(archive):
    first = archive.save(b"1", "job_1_a", "One", metadata={}).path
    second = archive.save(b"22", "job_2_b", "Two").path
    os.utime(first, (1_000, 1_000))
    os.utime(second, (2_000, 2_000))

    files = archive.list_artifacts()

    assert [item["name"] for item in files] == [second.name, first.name]
    assert files[0]["size"] == 2
    assert set(files[0]) == {"name", "size", "createdAt", "modifiedAt"}


def test_delete_removes_sidecar(archive):
    artifact = archive.save(b"x", "job_3_c", "Gone", metadata={"a": 1})

    assert archive.delete(artifact.filename) is True
    assert not artifact.path.exists()
    assert not artifact.path.with_suffix(".json").exists()
    assert archive.delete(artifact.filename) is False


def test_failed_write_leaves_no_temp_file(archive, monkeypatch):
    from src.storage import local_archive

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(local_archive.os, "replace", broken_replace)

    with pytest.raises(OSError):
        archive.save(b"audio", "job_8_h", "Broken")
    assert list(archive.directory.iterdir()) == []
