"""
Interactive generation API routes.

Endpoints:
    POST /api/generate-podcast  — stream a conversation about arbitrary content
    GET  /api/voices            — list synthesis voices
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from commons import limiter
from configs.config import get_config
from src.dependencies import get_conversation_generator, get_synthesizer
from src.generation.conversation import ConversationGenerator
from src.generation.providers import ProviderConfigurationError
from src.synthesis.elevenlabs_client import ElevenLabsClient, SynthesisError

logger = logging.getLogger(__name__)

cfg = get_config()

router = APIRouter(prefix="/api", tags=["podcast"])


class GeneratePodcastRequest(BaseModel):
    content: Optional[str] = None
    title: Optional[str] = None
    language: Optional[str] = None


@router.post("/generate-podcast")
@limiter.limit(cfg.RATE_LIMIT_GENERATION)
def generate_podcast(
    request: Request,
    body: GeneratePodcastRequest,
    generator: ConversationGenerator = Depends(get_conversation_generator),
) -> StreamingResponse:
    """
    Stream newline-delimited JSON events while the conversation is written.

    Provider failures after the stream has opened arrive as a final
    ``{"type": "error"}`` line inside a 200 response.
    """
    if not body.content or not body.content.strip():
        raise HTTPException(status_code=400, detail="Content is required")

    try:
        events = generator.dramatize(body.content, body.title, body.language)
    except ProviderConfigurationError as exc:
        logger.error("Podcast generation unavailable: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))

    logger.info("Streaming podcast conversation for %r", body.title or "Article")
    return StreamingResponse(
        (event.to_line() for event in events),
        media_type="application/x-ndjson",
    )


@router.get("/voices")
@limiter.limit("30/minute")
def list_voices(
    request: Request,
    synthesizer: Optional[ElevenLabsClient] = Depends(get_synthesizer),
) -> dict:
    """Voices available to the configured ElevenLabs account."""
    if synthesizer is None:
        raise HTTPException(status_code=500, detail="ELEVENLABS_API_KEY must be configured")
    try:
        voices = synthesizer.list_voices()
    except SynthesisError as exc:
        logger.error("Error fetching voices: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    return {"voices": voices}
