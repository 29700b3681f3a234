"""
ElevenLabs text-to-dialogue client.

Renders an ordered list of (text, voice) inputs into one MP3 stream and
lists the voices available to the account.
"""

import logging
from typing import Dict, List, Sequence

import requests

from src.synthesis.dialogue_request import DialogueInput

logger = logging.getLogger(__name__)


class SynthesisError(RuntimeError):
    """Raised when the ElevenLabs API reports an error."""


class ElevenLabsClient:
    """Thin wrapper around the ElevenLabs REST API."""

    name = "ElevenLabs"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io",
        model_id: str = "eleven_v3",
        output_format: str = "mp3_44100_128",
        request_timeout: float = 300.0,
    ) -> None:
        if not api_key:
            raise ValueError("ElevenLabs API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_id = model_id
        self.output_format = output_format
        self.request_timeout = request_timeout

    def create_dialogue(self, inputs: Sequence[DialogueInput]) -> bytes:
        """Render the whole dialogue and return the audio bytes."""
        url = f"{self.base_url}/v1/text-to-dialogue"
        payload = {
            "inputs": [item.to_payload() for item in inputs],
            "model_id": self.model_id,
        }
        logger.info("Requesting dialogue audio for %d inputs", len(inputs))
        try:
            response = requests.post(
                url,
                headers=self._headers("audio/mpeg"),
                params={"output_format": self.output_format},
                json=payload,
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            raise SynthesisError(f"{self.name} request failed: {exc}") from exc

        if response.status_code >= 400:
            raise SynthesisError(self._format_error(response))
        if not response.content:
            raise SynthesisError(f"{self.name} returned an empty audio stream")
        logger.debug("Received %d bytes of audio", len(response.content))
        return response.content

    def list_voices(self) -> List[Dict[str, str]]:
        """Voices as ``{id, name, category, description}`` dicts."""
        try:
            response = requests.get(
                f"{self.base_url}/v1/voices",
                headers=self._headers("application/json"),
                timeout=30,
            )
        except requests.RequestException as exc:
            raise SynthesisError(f"{self.name} request failed: {exc}") from exc
        if response.status_code >= 400:
            raise SynthesisError(self._format_error(response))

        voices = response.json().get("voices", [])
        return [
            {
                "id": voice.get("voice_id") or voice.get("id") or "",
                "name": voice.get("name") or "",
                "category": voice.get("category") or "unknown",
                "description": voice.get("description") or "",
            }
            for voice in voices
        ]

    def _headers(self, accept: str) -> Dict[str, str]:
        return {
            "xi-api-key": self.api_key,
            "accept": accept,
            "content-type": "application/json",
        }

    def _format_error(self, response: requests.Response) -> str:
        if response.status_code == 401:
            return f"Invalid {self.name} API key. Please check your API key configuration."
        try:
            payload = response.json()
            detail = payload.get("detail") or payload
            if isinstance(detail, dict):
                if detail.get("status") == "quota_exceeded":
                    return (
                        f"{self.name} API quota exceeded. "
                        "Please check your billing and plan details."
                    )
                detail = detail.get("message") or detail
        except ValueError:
            detail = response.text
        return f"{self.name} API error: {response.status_code} {detail}"
