"""
Local artifact archive.

Every approved artifact is written here; it is the durability floor and the
source for the ``download`` stage and the archive endpoints. Filenames are
``<slug>_<job_id>.mp3`` with an optional ``<slug>_<job_id>.json`` sidecar.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

ARTIFACT_EXTENSION = ".mp3"
METADATA_EXTENSION = ".json"
SLUG_MAX_LENGTH = 50
DEFAULT_SLUG_SOURCE = "podcast"

_NON_SLUG_CHARS = re.compile(r"[^A-Za-z0-9]")


def sanitize_title(title: Optional[str]) -> str:
    """ASCII letters and digits kept, everything else becomes '_', max 50 chars."""
    return _NON_SLUG_CHARS.sub("_", title or DEFAULT_SLUG_SOURCE)[:SLUG_MAX_LENGTH]


def artifact_filename(title: Optional[str], job_id: str) -> str:
    return f"{sanitize_title(title)}_{job_id}{ARTIFACT_EXTENSION}"


@dataclass(frozen=True)
class StoredArtifact:
    job_id: str
    filename: str
    path: Path
    size: int


class LocalArchive:
    def __init__(self, directory: os.PathLike) -> None:
        self.directory = Path(directory)

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    # ── Write ────────────────────────────────────────────────────────────

    def save(
        self,
        audio: bytes,
        job_id: str,
        title: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> StoredArtifact:
        """Write the artifact (and optional metadata sidecar); errors propagate."""
        self.ensure_directory()
        filename = artifact_filename(title, job_id)
        path = self.directory / filename

        tmp_path = path.with_name(f".{filename}.tmp")
        try:
            tmp_path.write_bytes(audio)
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.info("Saved artifact %s (%d bytes)", path, len(audio))

        if metadata is not None:
            sidecar = path.with_suffix(METADATA_EXTENSION)
            sidecar.write_text(
                json.dumps(metadata, indent=2, ensure_ascii=False), encoding="utf-8"
            )
            logger.debug("Saved metadata sidecar %s", sidecar)

        return StoredArtifact(job_id=job_id, filename=filename, path=path, size=len(audio))

    # ── Read ─────────────────────────────────────────────────────────────

    def find_by_job_id(self, job_id: str) -> Optional[Path]:
        """
        Locate the artifact for a job.

        Any ``.mp3`` whose name contains the job id matches. Names ending in
        exactly ``_<job_id>.mp3`` are preferred over looser substring hits,
        and among equals the most recently written file wins.
        """
        if not job_id or not self.directory.is_dir():
            return None

        suffix = f"_{job_id}{ARTIFACT_EXTENSION}"
        exact, loose = [], []
        for entry in self.directory.iterdir():
            name = entry.name
            if not entry.is_file() or not name.endswith(ARTIFACT_EXTENSION):
                continue
            if name.endswith(suffix):
                exact.append(entry)
            elif job_id in name:
                loose.append(entry)

        candidates = exact or loose
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(
                "%d artifacts match job %s; serving the newest", len(candidates), job_id
            )
        return max(candidates, key=lambda p: (p.stat().st_mtime, p.name))

    def path_for(self, filename: str) -> Optional[Path]:
        """Path of an existing archive file; the name must already be validated."""
        path = self.directory / filename
        if path.parent != self.directory or not path.is_file():
            return None
        return path

    def list_artifacts(self) -> List[Dict[str, Any]]:
        """All ``.mp3`` artifacts, newest first."""
        if not self.directory.is_dir():
            return []
        files = []
        for entry in self.directory.iterdir():
            if not entry.is_file() or entry.suffix != ARTIFACT_EXTENSION:
                continue
            stats = entry.stat()
            files.append(
                {
                    "name": entry.name,
                    "size": stats.st_size,
                    "createdAt": _iso(stats.st_ctime),
                    "modifiedAt": _iso(stats.st_mtime),
                    "_sort": stats.st_mtime,
                }
            )
        files.sort(key=lambda item: item["_sort"], reverse=True)
        for item in files:
            item.pop("_sort")
        return files

    # ── Delete ───────────────────────────────────────────────────────────

    def delete(self, filename: str) -> bool:
        """Remove an artifact and its sidecar. Returns False when absent."""
        path = self.path_for(filename)
        if path is None:
            return False
        path.unlink()
        sidecar = path.with_suffix(METADATA_EXTENSION)
        if sidecar.is_file():
            sidecar.unlink()
        logger.info("Deleted artifact %s", path)
        return True


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
