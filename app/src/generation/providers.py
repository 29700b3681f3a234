"""
Text-generation providers.

Every provider exposes the same capability: given a prompt and a pydantic
schema, stream back raw JSON text that should end up conforming to the
schema. Which provider is used is decided once, from configuration, by
``build_generation_provider``.
"""

import logging
from abc import ABC, abstractmethod
from types import SimpleNamespace
from typing import Iterator, Optional, Type

from google import genai
from openai import OpenAI
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ProviderConfigurationError(RuntimeError):
    """Raised when no provider credentials are configured."""


NO_PROVIDER_MESSAGE = (
    "Either OPENROUTER_API_KEY, OPENAI_API_KEY or GEMINI_API_KEY must be configured"
)


class GenerationProvider(ABC):
    """Capability interface: ``stream(prompt, schema) -> JSON text chunks``."""

    name: str = "provider"

    @abstractmethod
    def stream(self, prompt: str, schema: Type[BaseModel]) -> Iterator[str]:
        """Yield text fragments of a JSON document matching ``schema``."""


class OpenAICompatibleProvider(GenerationProvider):
    """OpenAI chat completions, also used for OpenRouter via ``base_url``."""

    def __init__(
        self,
        name: str,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
    ) -> None:
        self.name = name
        self.model = model
        self._client = OpenAI(api_key=api_key, base_url=base_url)

    def stream(self, prompt: str, schema: Type[BaseModel]) -> Iterator[str]:
        logger.debug("Opening %s stream with model %s", self.name, self.model)
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            stream=True,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": schema.__name__.lower(),
                    "schema": schema.model_json_schema(),
                },
            },
        )
        for chunk in response:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta


class GeminiProvider(GenerationProvider):
    """Google Gemini with native JSON schema enforcement."""

    name = "Gemini"

    def __init__(self, api_key: str, model: str) -> None:
        self.model = model
        self._client = genai.Client(api_key=api_key)

    def stream(self, prompt: str, schema: Type[BaseModel]) -> Iterator[str]:
        logger.debug("Opening Gemini stream with model %s", self.model)
        response = self._client.models.generate_content_stream(
            model=self.model,
            contents=prompt,
            config={
                "temperature": 0.9,
                "response_mime_type": "application/json",
                "response_schema": schema,
            },
        )
        for chunk in response:
            if chunk.text:
                yield chunk.text


def build_generation_provider(cfg: SimpleNamespace) -> GenerationProvider:
    """
    Pick the provider from configured credentials.

    Order: OpenRouter, then OpenAI, then Gemini.

    Raises:
        ProviderConfigurationError: no credentials are configured at all.
    """
    if cfg.OPENROUTER_API_KEY:
        logger.info("Using OpenRouter for text generation (%s)", cfg.OPENROUTER_MODEL)
        return OpenAICompatibleProvider(
            name="OpenRouter",
            api_key=cfg.OPENROUTER_API_KEY,
            model=cfg.OPENROUTER_MODEL,
            base_url=cfg.OPENROUTER_BASE_URL,
        )
    if cfg.OPENAI_API_KEY:
        logger.info("Using OpenAI for text generation (%s)", cfg.OPENAI_MODEL)
        return OpenAICompatibleProvider(
            name="OpenAI",
            api_key=cfg.OPENAI_API_KEY,
            model=cfg.OPENAI_MODEL,
        )
    if cfg.GEMINI_API_KEY:
        logger.info("Using Gemini for text generation (%s)", cfg.GEMINI_MODEL_NAME)
        return GeminiProvider(api_key=cfg.GEMINI_API_KEY, model=cfg.GEMINI_MODEL_NAME)

    raise ProviderConfigurationError(NO_PROVIDER_MESSAGE)


def describe_provider_error(exc: Exception, provider_name: str) -> str:
    """
    Turn a provider exception into a message naming the provider.

    OpenAI-style errors carry ``code`` ('insufficient_quota',
    'invalid_api_key') and ``status_code``; Gemini errors carry an integer
    ``code`` and a ``status`` such as 'RESOURCE_EXHAUSTED'.
    """
    code = getattr(exc, "code", None)
    status = getattr(exc, "status", None)
    status_code = getattr(exc, "status_code", None)
    if status_code is None and isinstance(code, int):
        status_code = code

    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        nested = body.get("error") if isinstance(body.get("error"), dict) else body
        code = code or nested.get("code")

    if code == "insufficient_quota" or status == "RESOURCE_EXHAUSTED" or status_code == 429:
        return (
            f"{provider_name} API quota exceeded. "
            "Please check your billing and plan details."
        )
    if (
        code == "invalid_api_key"
        or status in ("UNAUTHENTICATED", "PERMISSION_DENIED")
        or status_code in (401, 403)
    ):
        return (
            f"Invalid {provider_name} API key. "
            "Please check your API key configuration."
        )

    message = getattr(exc, "message", None)
    if message:
        return f"{provider_name} API error: {message}"
    return f"Error: {exc}"
