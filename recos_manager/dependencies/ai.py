"""
AI service dependency and the mapping of its errors onto HTTP statuses.
"""
from fastapi import HTTPException, status

from recos_manager.services.ai_assistant import (
    AIAssistantService,
    AIConfigurationError,
    AIServiceError,
)


def get_ai_service() -> AIAssistantService:
    """Dependency returning an AIAssistantService (overridden in tests)."""
    return AIAssistantService()


def ai_http_error(exc: Exception) -> HTTPException:
    """503 when the provider is not configured, 502 for provider or format errors."""
    if isinstance(exc, AIConfigurationError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    if isinstance(exc, AIServiceError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
