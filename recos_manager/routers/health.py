"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging

from recos_manager.database import check_data_service
from recos_manager.dependencies.ai import get_ai_service
from recos_manager.models.schemas import HealthCheckResponse
from recos_manager.services.ai_assistant import AIAssistantService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(ai_service: AIAssistantService = Depends(get_ai_service)):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with status of the data service and AI provider
    """
    # Check data service connection
    data_status = "ok" if await check_data_service() else "error"

    # Check AI provider; a missing key is reported, not treated as an outage
    if not ai_service.is_configured:
        ai_status = "unconfigured"
    elif await ai_service.check_health():
        ai_status = "ok"
    else:
        ai_status = "error"

    # Overall status
    overall_status = "healthy" if data_status == "ok" and ai_status != "error" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        data_service=data_status,
        ai_service=ai_status,
        timestamp=datetime.now(timezone.utc)
    )
