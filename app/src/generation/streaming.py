"""
Incremental parsing of a streamed ``{"conversation": [...]}`` document.

Providers stream raw JSON text. ``PartialConversationParser`` picks complete
turn objects out of the ``conversation`` array as soon as their closing brace
arrives, so each snapshot is a superset of the previous one. ``finish``
validates the whole document and is the authoritative result.
"""

import json
import logging
import re
from typing import List

from pydantic import ValidationError

from src.dialogue.models import Conversation, DialogueTurn

logger = logging.getLogger(__name__)

_ARRAY_START = re.compile(r'"conversation"\s*:\s*\[')
_WHITESPACE = " \t\r\n"


class MalformedConversationError(ValueError):
    """The provider finished but the text is not a valid conversation."""


class PartialConversationParser:
    def __init__(self) -> None:
        self._buffer = ""
        self._cursor = None
        self._closed = False
        self._turns: List[DialogueTurn] = []
        self._decoder = json.JSONDecoder()

    @property
    def turns(self) -> List[DialogueTurn]:
        return list(self._turns)

    def feed(self, fragment: str) -> bool:
        """Append a fragment; return True when at least one new turn completed."""
        self._buffer += fragment
        if self._cursor is None:
            match = _ARRAY_START.search(self._buffer)
            if not match:
                return False
            self._cursor = match.end()

        grew = False
        while not self._closed:
            pos = self._cursor
            while pos < len(self._buffer) and self._buffer[pos] in _WHITESPACE:
                pos += 1
            if pos >= len(self._buffer):
                break

            char = self._buffer[pos]
            if char == ",":
                self._cursor = pos + 1
                continue
            if char == "]":
                self._closed = True
                break

            try:
                value, end = self._decoder.raw_decode(self._buffer, pos)
            except json.JSONDecodeError:
                break  # element still arriving
            self._cursor = end

            try:
                self._turns.append(DialogueTurn.model_validate(value))
                grew = True
            except ValidationError:
                logger.debug("Skipping malformed partial turn: %r", value)
        return grew

    def finish(self) -> Conversation:
        """Validate the complete document."""
        text = self._buffer.strip()
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end < start:
            raise MalformedConversationError("Provider returned no JSON object")
        try:
            return Conversation.model_validate_json(text[start:end + 1])
        except ValidationError as exc:
            raise MalformedConversationError(
                f"Provider returned an invalid conversation: {exc.error_count()} error(s)"
            ) from exc
