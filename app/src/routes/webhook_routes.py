"""
Pipeline stage webhooks.

An outside automation system drives one job through these stages, carrying
the job ID and payload forward itself; nothing is kept server-side between
calls.

Endpoints:
    POST /api/webhook/transcript          — receive: mint job ID, echo next step
    POST /api/webhook/process             — transcript -> two-speaker conversation
    POST /api/webhook/approve             — conversation -> audio artifact
    GET  /api/webhook/download/{job_id}   — stream a stored artifact
    GET  /api/webhook/test-minio          — object-storage connectivity check
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from commons import generate_job_id, limiter
from configs.config import get_config
from security import safe_error_response, validate_job_id
from src.dependencies import (
    get_artifact_store,
    get_conversation_generator,
    get_remote_mirror,
    get_synthesizer,
)
from src.dialogue.models import DialogueTurn, VoiceAssignment, resolve_language
from src.generation.conversation import ConversationGenerator, GenerationError
from src.generation.providers import ProviderConfigurationError
from src.storage.artifact_store import ArtifactStore
from src.storage.remote_mirror import RemoteMirror, RemoteStorageError
from src.synthesis.dialogue_request import build_dialogue_inputs
from src.synthesis.elevenlabs_client import ElevenLabsClient, SynthesisError

logger = logging.getLogger(__name__)

cfg = get_config()

router = APIRouter(prefix="/api/webhook", tags=["webhook"])


# ── Pydantic request bodies ─────────────────────────────────────────────
# Required fields are checked in the handlers so that missing input gets the
# same short 400 message regardless of which field is absent.


class TranscriptRequest(BaseModel):
    transcript: Optional[str] = None
    title: Optional[str] = None
    language: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ProcessRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: Optional[str] = Field(default=None, alias="jobId")
    transcript: Optional[str] = None
    title: Optional[str] = None
    language: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ApproveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: Optional[str] = Field(default=None, alias="jobId")
    conversation: Optional[List[DialogueTurn]] = None
    title: Optional[str] = None
    voice1: Optional[str] = None
    voice2: Optional[str] = None
    upload_to_minio: bool = Field(default=False, alias="uploadToMinIO")


def _stage_url(stage: str) -> str:
    return f"{cfg.APP_URL}/api/webhook/{stage}"


# ── Receive ──────────────────────────────────────────────────────────────


@router.post("/transcript")
@limiter.limit(cfg.RATE_LIMIT_WEBHOOK)
async def receive_transcript(request: Request, body: TranscriptRequest) -> dict:
    """Mint a job ID and hand the payload back with next-step instructions."""
    if not body.transcript or not body.transcript.strip():
        raise HTTPException(status_code=400, detail="Transcript is required")

    language = resolve_language(body.language)
    job_id = generate_job_id()
    logger.info("Received transcript for job %s (%d chars, language %s)",
                job_id, len(body.transcript), language)

    return {
        "success": True,
        "jobId": job_id,
        "message": "Transcript received successfully",
        "language": language,
        "nextStep": {
            "url": _stage_url("process"),
            "method": "POST",
            "body": {
                "jobId": job_id,
                "transcript": body.transcript,
                "title": body.title or cfg.DEFAULT_TITLE,
                "language": language,
                "metadata": body.metadata or {},
            },
        },
    }


# ── Process ──────────────────────────────────────────────────────────────


@router.post("/process")
@limiter.limit(cfg.RATE_LIMIT_GENERATION)
def process_transcript(
    request: Request,
    body: ProcessRequest,
    generator: ConversationGenerator = Depends(get_conversation_generator),
) -> dict:
    """Turn the transcript into a conversation awaiting approval."""
    if not body.transcript or not body.transcript.strip() or not body.job_id:
        raise HTTPException(status_code=400, detail="Transcript and jobId are required")
    job_id = validate_job_id(body.job_id)
    language = resolve_language(body.language)
    logger.info("Generating conversation for job %s (language %s)", job_id, language)

    try:
        events = generator.from_transcript(body.transcript, body.title, language)
        conversation = generator.collect(events)
    except ProviderConfigurationError as exc:
        logger.error("Job %s halted: %s", job_id, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    except GenerationError as exc:
        logger.error("Conversation generation failed for job %s: %s", job_id, exc)
        raise HTTPException(status_code=500, detail=str(exc))

    logger.info("Job %s conversation ready (%d turns)", job_id, len(conversation))
    return {
        "success": True,
        "jobId": job_id,
        "conversation": [turn.model_dump(mode="json") for turn in conversation],
        "title": body.title or cfg.DEFAULT_TITLE,
        "language": language,
        "approvalUrl": _stage_url("approve"),
        "message": "Conversation generated. Please review and approve.",
    }


# ── Approve ──────────────────────────────────────────────────────────────


@router.post("/approve")
@limiter.limit(cfg.RATE_LIMIT_GENERATION)
def approve_conversation(
    request: Request,
    body: ApproveRequest,
    synthesizer: Optional[ElevenLabsClient] = Depends(get_synthesizer),
    store: ArtifactStore = Depends(get_artifact_store),
) -> dict:
    """Synthesize the approved conversation and store the artifact."""
    if not body.conversation:
        raise HTTPException(status_code=400, detail="Valid conversation is required")
    if not body.job_id:
        raise HTTPException(status_code=400, detail="Job ID is required")
    job_id = validate_job_id(body.job_id)

    if synthesizer is None:
        raise HTTPException(status_code=500, detail="ELEVENLABS_API_KEY must be configured")

    voices = VoiceAssignment.from_overrides(body.voice1, body.voice2)
    inputs = build_dialogue_inputs(body.conversation, voices)
    try:
        audio = synthesizer.create_dialogue(inputs)
    except SynthesisError as exc:
        logger.error("Error generating dialogue for job %s: %s", job_id, exc)
        raise HTTPException(status_code=500, detail=str(exc))

    metadata = {
        "jobId": job_id,
        "title": body.title or cfg.DEFAULT_TITLE,
        "conversation": [turn.model_dump(mode="json") for turn in body.conversation],
        "voices": voices.model_dump(),
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }
    try:
        artifact = store.save_local(audio, job_id, body.title, metadata=metadata)
    except OSError as exc:
        safe_error_response(exc, context="approve")

    minio_url = store.maybe_upload_remote(audio, job_id, body.title, body.upload_to_minio)
    download_url = minio_url or _stage_url(f"download/{job_id}")

    return {
        "success": True,
        "jobId": job_id,
        "downloadUrl": download_url,
        "minioUrl": minio_url,
        "filename": artifact.filename,
        "message": "Audio generated successfully",
    }


# ── Download ─────────────────────────────────────────────────────────────


@router.get("/download/{job_id}")
@limiter.limit(cfg.RATE_LIMIT_DOWNLOAD)
def download_artifact(
    request: Request,
    job_id: str,
    store: ArtifactStore = Depends(get_artifact_store),
) -> FileResponse:
    """Stream the locally stored audio for a job."""
    validate_job_id(job_id)
    path = store.resolve(job_id)
    if path is None:
        logger.warning("No artifact found for job %s", job_id)
        raise HTTPException(status_code=404, detail="File not found for this job ID")

    logger.info("Serving artifact %s for job %s", path.name, job_id)
    return FileResponse(path, media_type=cfg.ARTIFACT_MEDIA_TYPE, filename=path.name)


# ── Storage check ────────────────────────────────────────────────────────


@router.get("/test-minio")
@limiter.limit("10/minute")
def test_minio(
    request: Request,
    mirror: RemoteMirror = Depends(get_remote_mirror),
):
    """Probe the configured object storage end to end."""
    connection = mirror.target.describe()
    if not mirror.configured:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "MinIO not configured. Set MINIO_ACCESS_KEY and MINIO_SECRET_KEY.",
                "connection": connection,
            },
        )

    try:
        report = mirror.check_connection()
    except RemoteStorageError as exc:
        logger.error("MinIO check failed at %s: %s", exc.step, exc.cause)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": f"MinIO check failed at step '{exc.step}'",
                "details": str(exc.cause),
                "connection": connection,
            },
        )

    return {"success": True, "message": "MinIO connection successful!", **report}
