"""
AI drafting service over an OpenAI-compatible chat-completion endpoint.

Every call is a single request/response: the prompt is built from the form
fields, posted to ``{OPENAI_BASE_URL}/chat/completions`` in JSON mode, and
the completion content is parsed as a JSON object.  There is no retry; a
failure is surfaced to the caller with the provider's message.

All prompts are module-level constants so they can be tuned without
touching logic code.  They are written in French, the agency's working
language.

Public API
----------
AIAssistantService.assist(request)                 -> AIAssistResponse
AIAssistantService.segment_chapters(description)   -> List[Chapter]
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from recos_manager.config import settings
from recos_manager.models.schemas import AIActionSchema, AIAssistRequest, AIAssistResponse
from recos_manager.services.chapters import Chapter
from recos_manager.utils.helpers import truncate_text

logger = logging.getLogger(__name__)


class AIConfigurationError(RuntimeError):
    """No API key is configured for the chat-completion provider."""


class AIServiceError(RuntimeError):
    """The provider answered with an error or could not be reached."""


class AIResponseFormatError(AIServiceError):
    """The completion content is not the expected JSON object."""


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = (
    "Tu es un expert en marketing digital qui aide à créer des recommandations "
    "professionnelles pour des clients. Réponds toujours en français et au format JSON."
)

_GENERATE_PROMPT = """\
Tu es un consultant en marketing digital expert. Génère une recommandation professionnelle pour un client.

Catégorie: {category}
{details}
Fournis une réponse au format JSON avec:
- title: un titre court et percutant (max 80 caractères)
- description: une description détaillée et actionnable (3-5 paragraphes)

La recommandation doit être professionnelle, spécifique et actionnable.\
"""

_IMPROVE_PROMPT = """\
Tu es un consultant en marketing digital expert. Améliore cette recommandation pour la rendre plus professionnelle et impactante.

Titre actuel: {current_title}
{details}
Fournis une réponse au format JSON avec:
- title: un titre amélioré (max 80 caractères)
- description: une description améliorée et plus détaillée

Améliore la clarté, la structure et ajoute des détails pertinents.\
"""

_EXPAND_PROMPT = """\
Tu es un consultant en marketing digital expert. Enrichis cette recommandation avec du contenu additionnel pertinent.

Titre: {current_title}
{details}
Fournis une réponse au format JSON avec:
- title: le même titre ou légèrement amélioré
- description: une description enrichie avec:
  * Des exemples concrets
  * Des métriques ou KPIs à suivre
  * Des étapes d'implémentation
  * Des best practices

Ajoute du contenu de valeur.\
"""

_CHAPTERS_PROMPT = """\
Découpe le texte suivant en chapitres pour une présentation.

Texte:
---
{description}
---

Chaque chapitre a un titre court et un contenu repris du texte (conserve les listes à puces).
Ne résume pas et n'invente rien.

Fournis une réponse au format JSON:
{{"chapters": [{{"title": "...", "content": "..."}}]}}\
"""


class AIAssistantService:
    """Chat-completion client for drafting and restructuring recommendation text."""

    GENERATE_PROMPT = _GENERATE_PROMPT
    IMPROVE_PROMPT = _IMPROVE_PROMPT
    EXPAND_PROMPT = _EXPAND_PROMPT
    CHAPTERS_PROMPT = _CHAPTERS_PROMPT
    SYSTEM_PROMPT = _SYSTEM_PROMPT

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.base_url = (base_url or settings.OPENAI_BASE_URL).rstrip("/")
        self.model = model or settings.OPENAI_MODEL
        self.temperature = settings.OPENAI_TEMPERATURE
        self.timeout = httpx.Timeout(float(settings.OPENAI_TIMEOUT), connect=10.0)
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def check_health(self) -> bool:
        """Return ``True`` if the provider accepts the key on GET /models."""
        if not self.is_configured:
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0, transport=self._transport) as client:
                resp = await client.get(
                    f"{self.base_url}/models",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                return resp.status_code == 200
        except httpx.HTTPError as exc:
            logger.error("AI service health check failed: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    async def assist(self, request: AIAssistRequest) -> AIAssistResponse:
        """
        Draft, improve or expand a recommendation.

        Returns the provider's ``{title, description}``; a missing field
        comes back as an empty string.
        """
        prompt = self.build_prompt(request)
        parsed = await self._complete_json(prompt)
        return AIAssistResponse(
            title=str(parsed.get("title") or ""),
            description=str(parsed.get("description") or ""),
        )

    async def segment_chapters(self, description: str) -> List[Chapter]:
        """
        Ask the provider to split *description* into titled chapters.

        Entries that are not objects or have no content are dropped.

        Raises:
            AIConfigurationError, AIServiceError, AIResponseFormatError
        """
        parsed = await self._complete_json(
            self.CHAPTERS_PROMPT.format(description=description),
            temperature=0.2,
        )
        raw_chapters = parsed.get("chapters")
        if not isinstance(raw_chapters, list):
            raise AIResponseFormatError("AI response has no 'chapters' list")

        chapters: List[Chapter] = []
        for index, item in enumerate(raw_chapters, start=1):
            if not isinstance(item, dict):
                continue
            content = str(item.get("content") or "").strip()
            if not content:
                continue
            title = str(item.get("title") or "").strip() or f"Chapitre {index}"
            chapters.append(Chapter(title=title, content=content))

        logger.info("segment_chapters: %d chapters from AI", len(chapters))
        return chapters

    def build_prompt(self, request: AIAssistRequest) -> str:
        """Render the user prompt for *request.action*."""
        details: List[str] = []
        if request.action == AIActionSchema.GENERATE:
            if request.client_name:
                details.append(f"Client: {request.client_name}")
            if request.industry:
                details.append(f"Secteur: {request.industry}")
        if request.context:
            details.append(f"Contexte: {request.context}")
        if request.prompt:
            details.append(f"Instructions spécifiques: {request.prompt}")
        rendered_details = "".join(f"{line}\n" for line in details)

        if request.action == AIActionSchema.IMPROVE:
            template = self.IMPROVE_PROMPT
        elif request.action == AIActionSchema.EXPAND:
            template = self.EXPAND_PROMPT
        else:
            template = self.GENERATE_PROMPT

        return template.format(
            category=request.category or "",
            current_title=request.current_title or "",
            details=rendered_details,
        )

    # ------------------------------------------------------------------
    # Core caller
    # ------------------------------------------------------------------

    async def _complete_json(
        self, prompt: str, temperature: Optional[float] = None
    ) -> Dict[str, Any]:
        """POST one chat completion in JSON mode and parse its content as an object."""
        if not self.is_configured:
            raise AIConfigurationError(
                "OpenAI API key is not configured. Set OPENAI_API_KEY in the environment."
            )

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature if temperature is None else temperature,
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
        except httpx.TimeoutException as exc:
            logger.error("_complete_json: request timed out after %s", self.timeout)
            raise AIServiceError("The AI service timed out.") from exc
        except httpx.HTTPError as exc:
            logger.error("_complete_json: connection error: %s", exc)
            raise AIServiceError(f"Could not reach the AI service: {exc}") from exc

        if resp.status_code != 200:
            message = self._provider_error_message(resp)
            logger.error("_complete_json: provider returned HTTP %d: %s", resp.status_code, message)
            raise AIServiceError(message)

        try:
            content = resp.json()["choices"][0]["message"]["content"]
            parsed = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error(
                "_complete_json: unparseable completion. Preview: %s",
                truncate_text(resp.text, 400),
            )
            raise AIResponseFormatError("Could not parse the AI response.") from exc

        if not isinstance(parsed, dict):
            raise AIResponseFormatError("AI response is not a JSON object.")
        return parsed

    @staticmethod
    def _provider_error_message(resp: httpx.Response) -> str:
        try:
            message = resp.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            message = None
        return message or "Error while communicating with the AI service."
