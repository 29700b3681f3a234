"""
Archive management API routes.

Endpoints:
    GET    /api/archive               — list stored artifacts
    GET    /api/archive/{filename}    — download one artifact
    DELETE /api/archive?filename=...  — delete an artifact and its metadata
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse

from commons import limiter
from configs.config import get_config
from security import safe_error_response, validate_archive_filename
from src.dependencies import get_artifact_store
from src.storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

cfg = get_config()

router = APIRouter(prefix="/api/archive", tags=["archive"])


@router.get("")
@limiter.limit("60/minute")
def list_archive(
    request: Request, store: ArtifactStore = Depends(get_artifact_store)
) -> dict:
    """List archived audio files, newest first."""
    try:
        files = store.archive.list_artifacts()
    except OSError as exc:
        safe_error_response(exc, context="list_archive")
    logger.debug("Listed %d archived files", len(files))
    return {"files": files}


@router.get("/{filename}")
@limiter.limit(cfg.RATE_LIMIT_DOWNLOAD)
def download_archived(
    request: Request,
    filename: str,
    store: ArtifactStore = Depends(get_artifact_store),
) -> FileResponse:
    """Download a specific archived file."""
    validate_archive_filename(filename)
    path = store.archive.path_for(filename)
    if path is None or path.suffix != ".mp3":
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path, media_type=cfg.ARTIFACT_MEDIA_TYPE, filename=path.name)


@router.delete("")
@limiter.limit("10/minute")
def delete_archived(
    request: Request,
    filename: str = Query(default=""),
    store: ArtifactStore = Depends(get_artifact_store),
) -> dict:
    """Delete an archived file and its metadata sidecar."""
    validate_archive_filename(filename)
    try:
        deleted = store.archive.delete(filename)
    except OSError as exc:
        safe_error_response(exc, context="delete_archived")
    if not deleted:
        raise HTTPException(status_code=404, detail="File not found")
    logger.info("Archived file %s deleted", filename)
    return {"success": True, "message": "File deleted successfully"}
