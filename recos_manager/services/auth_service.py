"""
Authentication delegated to the hosted data service's auth API.

The application never stores credentials or sessions: sign-up, sign-in,
sign-out and token resolution are single calls to Supabase Auth.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from supabase import AuthError

from recos_manager.database import close_data_client, create_data_client
from recos_manager.models.schemas import CurrentUser, SessionResponse
from recos_manager.services.store import DataServiceError

logger = logging.getLogger(__name__)


class AuthServiceError(RuntimeError):
    """The auth API rejected a request; message comes from the provider."""


class AuthService:
    """Thin wrapper over ``client.auth`` returning API schemas."""

    def __init__(self, client: Any = None) -> None:
        self._client = client
        self._owns_client = False

    async def _auth(self) -> Any:
        if self._client is None:
            try:
                self._client = await create_data_client()
            except DataServiceError as exc:
                raise AuthServiceError(str(exc)) from exc
            self._owns_client = True
        return self._client.auth

    async def close(self) -> None:
        """Close the client this service created; a supplied client is left open."""
        if self._owns_client and self._client is not None:
            await close_data_client(self._client)
            self._client = None
            self._owns_client = False

    async def sign_up(self, email: str, password: str, full_name: str) -> SessionResponse:
        """Create an account; the full name is kept as user metadata."""
        auth = await self._auth()
        try:
            result = await auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"full_name": full_name}},
            })
        except AuthError as exc:
            logger.warning("Sign-up refused for %s: %s", email, exc.message)
            raise AuthServiceError(exc.message) from exc

        if result.user is None:
            raise AuthServiceError("Sign-up did not return a user.")
        logger.info("Signed up user id=%s email=%s", result.user.id, email)
        return self._session_response(result)

    async def sign_in(self, email: str, password: str) -> SessionResponse:
        auth = await self._auth()
        try:
            result = await auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as exc:
            logger.warning("Sign-in refused for %s: %s", email, exc.message)
            raise AuthServiceError(exc.message) from exc

        if result.user is None or result.session is None:
            raise AuthServiceError("Invalid login credentials")
        return self._session_response(result)

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind *access_token*."""
        auth = await self._auth()
        try:
            await auth.admin.sign_out(access_token)
        except AuthError as exc:
            raise AuthServiceError(exc.message) from exc

    async def get_user(self, access_token: str) -> Optional[CurrentUser]:
        """Resolve a bearer token to its user, or None when the token is not valid."""
        auth = await self._auth()
        try:
            result = await auth.get_user(access_token)
        except AuthError as exc:
            logger.info("Token rejected by auth service: %s", exc.message)
            return None

        if result is None or result.user is None:
            return None
        user = result.user
        metadata = user.user_metadata or {}
        return CurrentUser(id=user.id, email=user.email, full_name=metadata.get("full_name"))

    @staticmethod
    def _session_response(result: Any) -> SessionResponse:
        session = result.session
        return SessionResponse(
            access_token=session.access_token if session else None,
            refresh_token=session.refresh_token if session else None,
            user_id=result.user.id,
            email=result.user.email,
        )
