"""
FastAPI dependency providers for the pipeline collaborators.

Each collaborator is built once per process on first use and reused.
Tests swap them out through ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from fastapi import Depends

from configs.config import get_config
from src.generation.conversation import ConversationGenerator
from src.generation.providers import (
    GenerationProvider,
    ProviderConfigurationError,
    build_generation_provider,
)
from src.storage.artifact_store import ArtifactStore
from src.storage.local_archive import LocalArchive
from src.storage.remote_mirror import RemoteMirror
from src.storage.target import storage_target_from_config
from src.synthesis.elevenlabs_client import ElevenLabsClient

logger = logging.getLogger(__name__)

cfg = get_config()

# ── Instance cache ───────────────────────────────────────────────────────
_instances: dict = {}


def get_generation_provider() -> Optional[GenerationProvider]:
    """
    Text-generation provider, chosen once from configured credentials.

    None when nothing is configured; the generator reports that as a
    configuration error once the request itself has been validated.
    """
    if "provider" not in _instances:
        try:
            _instances["provider"] = build_generation_provider(cfg)
        except ProviderConfigurationError as exc:
            logger.error("Text generation unavailable: %s", exc)
            _instances["provider"] = None
    return _instances["provider"]


def get_conversation_generator(
    provider: Optional[GenerationProvider] = Depends(get_generation_provider),
) -> ConversationGenerator:
    return ConversationGenerator(provider)


def get_synthesizer() -> Optional[ElevenLabsClient]:
    """ElevenLabs client, or None when no API key is configured."""
    if "synthesizer" not in _instances:
        if not cfg.ELEVENLABS_API_KEY:
            logger.error("Speech synthesis unavailable: ELEVENLABS_API_KEY not set")
            return None
        _instances["synthesizer"] = ElevenLabsClient(
            api_key=cfg.ELEVENLABS_API_KEY,
            base_url=cfg.ELEVENLABS_BASE_URL,
            model_id=cfg.ELEVENLABS_MODEL_ID,
            output_format=cfg.ELEVENLABS_OUTPUT_FORMAT,
            request_timeout=cfg.ELEVENLABS_TIMEOUT_SECONDS,
        )
    return _instances["synthesizer"]


def get_remote_mirror() -> RemoteMirror:
    if "mirror" not in _instances:
        target = storage_target_from_config(cfg)
        logger.info(
            "MinIO target %s (bucket %s, credentials %s)",
            target.endpoint_url,
            target.bucket,
            "present" if target.has_credentials else "missing",
        )
        _instances["mirror"] = RemoteMirror(
            target, url_expiry_seconds=cfg.PRESIGNED_URL_EXPIRY_SECONDS
        )
    return _instances["mirror"]


def get_artifact_store(
    mirror: RemoteMirror = Depends(get_remote_mirror),
) -> ArtifactStore:
    if "store" not in _instances:
        _instances["store"] = ArtifactStore(LocalArchive(cfg.ARCHIVE_DIR), mirror)
    return _instances["store"]
