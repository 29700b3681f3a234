"""
Conversation generation on top of a ``GenerationProvider``.

A generation run is a finite, single-consumer iterator of events:
zero or more ``partial`` snapshots (each a superset of the last), then
either one ``complete`` event or one terminal ``error`` event. A failed
run cannot be resumed; call again to start over.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional

from src.dialogue.models import Conversation, DialogueTurn, resolve_language
from src.dialogue.prompts import dramatize_prompt, transcript_prompt
from src.generation.providers import (
    NO_PROVIDER_MESSAGE,
    GenerationProvider,
    ProviderConfigurationError,
    describe_provider_error,
)
from src.generation.streaming import MalformedConversationError, PartialConversationParser

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """A generation run ended with a terminal error event."""


class EventType(str, Enum):
    PARTIAL = "partial"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class ConversationEvent:
    type: EventType
    turns: List[DialogueTurn] = field(default_factory=list)
    error: Optional[str] = None

    def to_payload(self) -> dict:
        if self.type == EventType.ERROR:
            return {"type": self.type.value, "error": self.error}
        return {
            "type": self.type.value,
            "data": {
                "conversation": [turn.model_dump(mode="json") for turn in self.turns],
            },
        }

    def to_line(self) -> str:
        """One newline-delimited JSON record."""
        return json.dumps(self.to_payload(), ensure_ascii=False) + "\n"


class ConversationGenerator:
    def __init__(self, provider: Optional[GenerationProvider]) -> None:
        self.provider = provider

    def from_transcript(
        self, transcript: str, title: Optional[str] = None, language: Optional[str] = None
    ) -> Iterator[ConversationEvent]:
        """Events for rewriting a transcript as a two-host conversation."""
        return self._run(transcript, title, language, transcript_prompt)

    def dramatize(
        self, content: str, title: Optional[str] = None, language: Optional[str] = None
    ) -> Iterator[ConversationEvent]:
        """Events for an invented debate about arbitrary content."""
        return self._run(content, title, language, dramatize_prompt)

    @staticmethod
    def collect(events: Iterator[ConversationEvent]) -> List[DialogueTurn]:
        """Drain a run and return the final conversation, or raise GenerationError."""
        for event in events:
            if event.type == EventType.COMPLETE:
                return event.turns
            if event.type == EventType.ERROR:
                raise GenerationError(event.error)
        raise GenerationError("Generation ended without a result")

    def _run(
        self,
        content: str,
        title: Optional[str],
        language: Optional[str],
        build_prompt: Callable[[str, Optional[str], str], str],
    ) -> Iterator[ConversationEvent]:
        if not content or not content.strip():
            raise ValueError("Content is required")
        if self.provider is None:
            raise ProviderConfigurationError(NO_PROVIDER_MESSAGE)
        prompt = build_prompt(content, title, resolve_language(language))
        return self._events(prompt)

    def _events(self, prompt: str) -> Iterator[ConversationEvent]:
        parser = PartialConversationParser()
        try:
            for fragment in self.provider.stream(prompt, Conversation):
                if parser.feed(fragment):
                    yield ConversationEvent(EventType.PARTIAL, turns=parser.turns)
            final = parser.finish()
        except MalformedConversationError as exc:
            logger.error("%s returned an unusable conversation: %s", self.provider.name, exc)
            yield ConversationEvent(
                EventType.ERROR, error=f"{self.provider.name} API error: {exc}"
            )
            return
        except Exception as exc:
            logger.error("%s generation failed: %s", self.provider.name, exc, exc_info=True)
            yield ConversationEvent(
                EventType.ERROR, error=describe_provider_error(exc, self.provider.name)
            )
            return

        logger.info("Generated conversation with %d turns", len(final.conversation))
        yield ConversationEvent(EventType.COMPLETE, turns=list(final.conversation))
