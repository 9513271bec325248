"""
Authentication dependencies for FastAPI routes.

Resolves the caller from the ``Authorization: Bearer`` token issued by the
hosted auth service. Admin routes additionally require an active team
member with the admin role.
"""
from __future__ import annotations

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, status

from recos_manager.database import get_access_token, get_store
from recos_manager.models.database_models import ADMIN_ROLE
from recos_manager.models.schemas import CurrentUser
from recos_manager.services.auth_service import AuthService, AuthServiceError
from recos_manager.services.store import RecommendationStore

logger = logging.getLogger(__name__)


async def get_auth_service() -> AsyncGenerator[AuthService, None]:
    """Dependency yielding a fresh AuthService, closed after the response (overridden in tests)."""
    service = AuthService()
    try:
        yield service
    finally:
        await service.close()


async def get_current_user(
    access_token: str = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """Resolve the bearer token to a user. Raises 401 if the auth service rejects it."""
    try:
        user = await auth_service.get_user(access_token)
    except AuthServiceError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        )

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> CurrentUser:
    """
    Verify that the caller is an active admin team member.
    Returns the user or raises 403.
    """
    member = await store.get_team_member_by_email(user.email) if user.email else None

    if (
        member is None
        or member.get("role") != ADMIN_ROLE
        or not member.get("active", False)
    ):
        logger.warning("Admin access denied for user=%s", user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required.",
        )

    return user
