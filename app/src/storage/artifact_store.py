"""
Artifact storage facade used by the pipeline stages.

Local disk is mandatory and fails loud; the remote mirror is opt-in per
request and fails soft.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from src.storage.local_archive import LocalArchive, StoredArtifact, artifact_filename
from src.storage.remote_mirror import RemoteMirror

logger = logging.getLogger(__name__)


class ArtifactStore:
    def __init__(self, archive: LocalArchive, mirror: Optional[RemoteMirror] = None) -> None:
        self.archive = archive
        self.mirror = mirror

    def save_local(
        self,
        audio: bytes,
        job_id: str,
        title: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> StoredArtifact:
        return self.archive.save(audio, job_id, title, metadata=metadata)

    def maybe_upload_remote(
        self, audio: bytes, job_id: str, title: Optional[str], requested: bool
    ) -> Optional[str]:
        """Mirror the artifact when requested; returns its URL or None."""
        if not requested:
            return None
        if self.mirror is None:
            logger.info("Remote mirror requested for %s but none is configured", job_id)
            return None

        key = artifact_filename(title, job_id)
        try:
            result = self.mirror.upload(audio, key)
        except Exception as exc:
            logger.error("Error uploading %s to MinIO: %s", key, exc, exc_info=True)
            return None

        if not result.success:
            logger.warning("MinIO upload skipped for %s: %s", job_id, result.error)
            return None
        return result.url

    def resolve(self, job_id: str) -> Optional[Path]:
        return self.archive.find_by_job_id(job_id)
