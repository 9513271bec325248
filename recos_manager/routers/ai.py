"""
AI drafting endpoints.

POST /assist   : generate, improve or expand a recommendation
POST /chapters : preview how a description will be split on export
"""
import logging

from fastapi import APIRouter, Depends

from recos_manager.database import get_store
from recos_manager.dependencies.ai import ai_http_error, get_ai_service
from recos_manager.dependencies.auth import get_current_user
from recos_manager.models.schemas import (
    AIAssistRequest,
    AIAssistResponse,
    ChapterRequest,
    ChapterResponse,
    ChapterSchema,
    CurrentUser,
)
from recos_manager.services.ai_assistant import (
    AIAssistantService,
    AIConfigurationError,
    AIServiceError,
)
from recos_manager.services.chapters import segment_description
from recos_manager.services.store import RecommendationStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/assist", response_model=AIAssistResponse)
async def assist(
    body: AIAssistRequest,
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
    ai_service: AIAssistantService = Depends(get_ai_service),
) -> AIAssistResponse:
    """
    Draft text for the recommendation form.

    When ``client_id`` is given, the client's name and industry are read
    from the data store and added to the prompt.
    """
    if body.client_id:
        client = await store.get_client(body.client_id)
        if client:
            body = body.model_copy(update={
                "client_name": client.get("name"),
                "industry": client.get("industry"),
            })

    try:
        result = await ai_service.assist(body)
    except (AIConfigurationError, AIServiceError) as exc:
        logger.error("AI assist (%s) failed: %s", body.action.value, exc)
        raise ai_http_error(exc)

    logger.info("AI assist (%s) returned %d chars", body.action.value, len(result.description))
    return result


@router.post("/chapters", response_model=ChapterResponse)
async def chapters(
    body: ChapterRequest,
    user: CurrentUser = Depends(get_current_user),
    ai_service: AIAssistantService = Depends(get_ai_service),
) -> ChapterResponse:
    source, result = await segment_description(
        body.description, ai_service if body.use_ai else None
    )
    return ChapterResponse(
        source=source,
        chapters=[ChapterSchema(title=c.title, content=c.content) for c in result],
    )
