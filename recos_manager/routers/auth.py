"""
Account endpoints delegated to the hosted auth service.

POST /signup  : create account (full name required)
POST /signin  : email + password, returns the session tokens
POST /signout : revoke the caller's session
GET  /me      : user behind the bearer token
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from recos_manager.database import get_access_token
from recos_manager.dependencies.auth import get_auth_service, get_current_user
from recos_manager.models.schemas import (
    CurrentUser,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from recos_manager.services.auth_service import AuthService, AuthServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    body: SignUpRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    try:
        return await auth_service.sign_up(body.email, body.password, body.full_name)
    except AuthServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/signin", response_model=SessionResponse)
async def sign_in(
    body: SignInRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    try:
        return await auth_service.sign_in(body.email, body.password)
    except AuthServiceError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    access_token: str = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    try:
        await auth_service.sign_out(access_token)
    except AuthServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=CurrentUser)
async def me(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    return user
