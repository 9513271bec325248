"""Tests for the chat-completion client (httpx.MockTransport) and POST /api/ai/assist."""
import json

import httpx
import pytest
from httpx import AsyncClient

from recos_manager.models.schemas import AIActionSchema, AIAssistRequest
from recos_manager.services.ai_assistant import (
    AIAssistantService,
    AIConfigurationError,
    AIResponseFormatError,
    AIServiceError,
)
from recos_manager.services.chapters import Chapter
from tests.conftest import AUTH_HEADERS


def _completion(content) -> dict:
    if not isinstance(content, str):
        content = json.dumps(content)
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _service(handler) -> AIAssistantService:
    return AIAssistantService(
        api_key="sk-test",
        base_url="https://llm.test/v1/",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_assist_posts_json_mode_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion({"title": "T", "description": "D"}))

    result = await _service(handler).assist(
        AIAssistRequest(action=AIActionSchema.GENERATE, category="SEO", client_name="Acme")
    )

    assert result.title == "T" and result.description == "D"
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert body["model"] == "test-model"
    assert body["response_format"] == {"type": "json_object"}
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert "Client: Acme" in body["messages"][1]["content"]


@pytest.mark.asyncio
async def test_missing_fields_become_empty_strings():
    service = _service(lambda r: httpx.Response(200, json=_completion({"title": "Seul"})))
    result = await service.assist(AIAssistRequest())
    assert result.title == "Seul"
    assert result.description == ""


@pytest.mark.asyncio
async def test_provider_error_message_is_surfaced():
    def handler(request):
        return httpx.Response(429, json={"error": {"message": "Rate limit reached"}})

    with pytest.raises(AIServiceError, match="Rate limit reached"):
        await _service(handler).assist(AIAssistRequest())


@pytest.mark.asyncio
async def test_unparseable_content_raises_format_error():
    service = _service(lambda r: httpx.Response(200, json=_completion("not json")))
    with pytest.raises(AIResponseFormatError):
        await service.assist(AIAssistRequest())


@pytest.mark.asyncio
async def test_non_object_content_raises_format_error():
    service = _service(lambda r: httpx.Response(200, json=_completion("[1, 2]")))
    with pytest.raises(AIResponseFormatError):
        await service.assist(AIAssistRequest())


@pytest.mark.asyncio
async def test_missing_key_raises_configuration_error():
    service = AIAssistantService(api_key="")
    assert not service.is_configured
    with pytest.raises(AIConfigurationError):
        await service.assist(AIAssistRequest())


@pytest.mark.asyncio
async def test_segment_chapters_drops_empty_entries():
    payload = {"chapters": [
        {"title": "Audit", "content": "Analyser."},
        {"title": "Vide", "content": "  "},
        "garbage",
        {"content": "Sans titre"},
    ]}
    service = _service(lambda r: httpx.Response(200, json=_completion(payload)))
    chapters = await service.segment_chapters("texte")
    assert chapters == [Chapter("Audit", "Analyser."), Chapter("Chapitre 4", "Sans titre")]


def test_prompts_per_action():
    service = AIAssistantService(api_key="sk-test")
    base = dict(category="SEO", context="Boutique", prompt="Ton direct",
                current_title="Ancien titre", client_name="Acme", industry="Retail")

    generate = service.build_prompt(AIAssistRequest(action=AIActionSchema.GENERATE, **base))
    assert "Catégorie: SEO" in generate
    assert "Client: Acme" in generate and "Secteur: Retail" in generate
    assert "Instructions spécifiques: Ton direct" in generate

    improve = service.build_prompt(AIAssistRequest(action=AIActionSchema.IMPROVE, **base))
    assert "Titre actuel: Ancien titre" in improve
    assert "Client: Acme" not in improve
    assert "Contexte: Boutique" in improve

    expand = service.build_prompt(AIAssistRequest(action=AIActionSchema.EXPAND, **base))
    assert "Titre: Ancien titre" in expand
    assert "KPIs" in expand


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_assist_endpoint_unconfigured_returns_503(client: AsyncClient):
    resp = await client.post("/api/ai/assist", json={"action": "generate"}, headers=AUTH_HEADERS)
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_assist_endpoint_provider_error_returns_502(client: AsyncClient, ai_service):
    ai_service.configured = True
    ai_service.assist_error = AIServiceError("Upstream exploded")
    resp = await client.post("/api/ai/assist", json={"action": "improve"}, headers=AUTH_HEADERS)
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Upstream exploded"


@pytest.mark.asyncio
async def test_assist_endpoint_looks_up_client(client: AsyncClient, ai_service, store):
    ai_service.configured = True
    acme = await store.create_client({"name": "Acme", "industry": "Retail"})

    resp = await client.post(
        "/api/ai/assist",
        json={"action": "generate", "category": "SEO", "client_id": acme["id"]},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json() == {"title": "Titre IA", "description": "Texte IA (generate)"}
    sent = ai_service.requests[-1]
    assert sent.client_name == "Acme"
    assert sent.industry == "Retail"
