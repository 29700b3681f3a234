from __future__ import annotations

import json

import pytest

from src.generation.conversation import (
    ConversationGenerator,
    EventType,
    GenerationError,
)
from src.generation.providers import (
    GeminiProvider,
    OpenAICompatibleProvider,
    ProviderConfigurationError,
    build_generation_provider,
    describe_provider_error,
)
from stubs import StubProvider

DOCUMENT = json.dumps(
    {
        "conversation": [
            {"speaker": "Speaker1", "text": "Hi there."},
            {"speaker": "Speaker2", "text": "Hello!"},
        ]
    }
)


class QuotaError(Exception):
    code = "insufficient_quota"
    status_code = 429


class GeminiAuthError(Exception):
    def __init__(self):
        super().__init__("API key not valid")
        self.code = 400
        self.status = "UNAUTHENTICATED"


class ApiError(Exception):
    message = "model overloaded"


def test_events_end_with_single_complete():
    provider = StubProvider([DOCUMENT[:30], DOCUMENT[30:60], DOCUMENT[60:]])
    events = list(ConversationGenerator(provider).from_transcript("A transcript", "Show", "pl"))

    assert events[-1].type == EventType.COMPLETE
    assert all(event.type == EventType.PARTIAL for event in events[:-1])
    assert [turn.text for turn in events[-1].turns] == ["Hi there.", "Hello!"]
    assert "Polish" in provider.prompts[0]


def test_unknown_language_uses_default_in_prompt():
    provider = StubProvider([DOCUMENT])
    list(ConversationGenerator(provider).dramatize("Some article", None, "xx"))
    assert "English" in provider.prompts[0]


def test_provider_failure_becomes_terminal_error():
    provider = StubProvider([DOCUMENT[:40]], error=QuotaError("quota"))
    events = list(ConversationGenerator(provider).dramatize("content"))

    assert events[-1].type == EventType.ERROR
    assert events[-1].error.startswith("StubAI API quota exceeded")
    assert sum(event.type == EventType.ERROR for event in events) == 1


def test_malformed_output_becomes_error():
    events = list(ConversationGenerator(StubProvider(["not json"])).dramatize("content"))
    assert [event.type for event in events] == [EventType.ERROR]


def test_collect_returns_turns_or_raises():
    generator = ConversationGenerator(StubProvider([DOCUMENT]))
    assert len(generator.collect(generator.from_transcript("text"))) == 2

    failing = ConversationGenerator(StubProvider(error=ApiError()))
    with pytest.raises(GenerationError, match="StubAI API error: model overloaded"):
        failing.collect(failing.from_transcript("text"))


def test_missing_provider_raises_before_streaming():
    with pytest.raises(ProviderConfigurationError):
        ConversationGenerator(None).from_transcript("text")


def test_empty_content_rejected():
    with pytest.raises(ValueError):
        ConversationGenerator(StubProvider()).dramatize("   ")


def test_event_lines_are_ndjson():
    provider = StubProvider([DOCUMENT])
    lines = [event.to_line() for event in ConversationGenerator(provider).dramatize("c")]
    payloads = [json.loads(line) for line in lines]

    assert all(line.endswith("\n") for line in lines)
    assert payloads[-1]["type"] == "complete"
    assert payloads[-1]["data"]["conversation"][1] == {"speaker": "Speaker2", "text": "Hello!"}


@pytest.mark.parametrize(
    "exc, expected",
    [
        (QuotaError(), "Acme API quota exceeded. Please check your billing and plan details."),
        (GeminiAuthError(), "Invalid Acme API key. Please check your API key configuration."),
        (ApiError(), "Acme API error: model overloaded"),
        (RuntimeError("socket closed"), "Error: socket closed"),
    ],
)
def test_describe_provider_error(exc, expected):
    assert describe_provider_error(exc, "Acme") == expected


def _cfg(**keys):
    from types import SimpleNamespace

    values = dict(
        OPENROUTER_API_KEY="",
        OPENROUTER_BASE_URL="https://openrouter.ai/api/v1",
        OPENROUTER_MODEL="openai/gpt-4o-mini",
        OPENAI_API_KEY="",
        OPENAI_MODEL="gpt-4o-mini",
        GEMINI_API_KEY="",
        GEMINI_MODEL_NAME="gemini-2.5-flash",
    )
    values.update(keys)
    return SimpleNamespace(**values)


def test_provider_selection_order():
    both = build_generation_provider(_cfg(OPENROUTER_API_KEY="or", OPENAI_API_KEY="oa", GEMINI_API_KEY="g"))
    assert isinstance(both, OpenAICompatibleProvider)
    assert both.name == "OpenRouter"

    openai_only = build_generation_provider(_cfg(OPENAI_API_KEY="oa", GEMINI_API_KEY="g"))
    assert openai_only.name == "OpenAI"

    gemini_only = build_generation_provider(_cfg(GEMINI_API_KEY="g"))
    assert isinstance(gemini_only, GeminiProvider)


def test_no_provider_configured():
    with pytest.raises(ProviderConfigurationError):
        build_generation_provider(_cfg())
