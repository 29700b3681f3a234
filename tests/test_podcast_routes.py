from __future__ import annotations

import json

from src.dependencies import get_conversation_generator, get_synthesizer
from src.generation.conversation import ConversationGenerator
from stubs import RecordingSynthesizer, StubProvider

DOCUMENT = json.dumps(
    {
        "conversation": [
            {"speaker": "Speaker1", "text": "Did you read this?"},
            {"speaker": "Speaker2", "text": "Obviously. [sighs]"},
        ]
    }
)


def _events(response):
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def _use_provider(app, provider):
    app.dependency_overrides[get_conversation_generator] = lambda: ConversationGenerator(provider)


def test_generate_podcast_streams_partials_then_complete(app, client):
    half = len(DOCUMENT) // 2
    _use_provider(app, StubProvider([DOCUMENT[:half], DOCUMENT[half:]]))

    response = client.post(
        "/api/generate-podcast", json={"content": "An article", "title": "News", "language": "de"}
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    events = _events(response)
    assert events[-1]["type"] == "complete"
    assert len(events[-1]["data"]["conversation"]) == 2
    assert {event["type"] for event in events[:-1]} <= {"partial"}


def test_generate_podcast_error_event(app, client):
    class BadKey(Exception):
        status_code = 401

    _use_provider(app, StubProvider([DOCUMENT[:20]], error=BadKey()))

    response = client.post("/api/generate-podcast", json={"content": "An article"})

    assert response.status_code == 200
    events = _events(response)
    assert events[-1] == {
        "type": "error",
        "error": "Invalid StubAI API key. Please check your API key configuration.",
    }


def test_generate_podcast_requires_content(client):
    response = client.post("/api/generate-podcast", json={"title": "Nothing"})
    assert response.status_code == 400
    assert response.json()["error"] == "Content is required"


def test_generate_podcast_without_provider(client):
    response = client.post("/api/generate-podcast", json={"content": "An article"})
    assert response.status_code == 500
    assert "GEMINI_API_KEY" in response.json()["error"]


def test_voices(app, client):
    app.dependency_overrides[get_synthesizer] = lambda: RecordingSynthesizer()
    response = client.get("/api/voices")
    assert response.status_code == 200
    assert response.json()["voices"][0]["name"] == "Ada"


def test_voices_without_key(client):
    response = client.get("/api/voices")
    assert response.status_code == 500
    assert response.json()["error"] == "ELEVENLABS_API_KEY must be configured"


def test_voices_provider_failure(app, client):
    app.dependency_overrides[get_synthesizer] = lambda: RecordingSynthesizer(error="ElevenLabs API error: 503")
    response = client.get("/api/voices")
    assert response.status_code == 500
    assert response.json()["error"] == "ElevenLabs API error: 503"


def test_generate_podcast_rejects_whitespace_content(app, client):
    provider = StubProvider([DOCUMENT])
    _use_provider(app, provider)

    response = client.post("/api/generate-podcast", json={"content": "  \n "})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Content is required"}
    assert provider.prompts == []
