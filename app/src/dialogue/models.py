"""
Data models for two-speaker podcast dialogues.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from configs.config import get_config

cfg = get_config()


class Speaker(str, Enum):
    """The two hosts of every generated conversation."""

    SPEAKER1 = "Speaker1"
    SPEAKER2 = "Speaker2"


class DialogueTurn(BaseModel):
    """One utterance. Position in the list is playback order."""

    speaker: Speaker
    text: str = Field(
        ...,
        description=(
            "The text spoken by this speaker, including natural speech "
            "patterns and nuances like [laughs], [pauses], [excited]."
        ),
    )


class Conversation(BaseModel):
    """Schema handed to the text-generation provider."""

    conversation: List[DialogueTurn] = Field(
        ...,
        description="A natural podcast conversation between two speakers",
    )


class VoiceAssignment(BaseModel):
    """Synthesis voice per speaker, falling back to the configured defaults."""

    speaker1: str = cfg.DEFAULT_VOICE_SPEAKER1
    speaker2: str = cfg.DEFAULT_VOICE_SPEAKER2

    @classmethod
    def from_overrides(
        cls, voice1: Optional[str] = None, voice2: Optional[str] = None
    ) -> "VoiceAssignment":
        return cls(
            speaker1=voice1 or cfg.DEFAULT_VOICE_SPEAKER1,
            speaker2=voice2 or cfg.DEFAULT_VOICE_SPEAKER2,
        )

    def voice_for(self, speaker: Speaker) -> str:
        if speaker == Speaker.SPEAKER1:
            return self.speaker1
        return self.speaker2


def resolve_language(language: Optional[str]) -> str:
    """Return a supported language tag; anything unknown maps to the default."""
    if language and language in cfg.SUPPORTED_LANGUAGES:
        return language
    return cfg.DEFAULT_LANGUAGE


def language_name(language: str) -> str:
    return cfg.SUPPORTED_LANGUAGES.get(
        language, cfg.SUPPORTED_LANGUAGES[cfg.DEFAULT_LANGUAGE]
    )
