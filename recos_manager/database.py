"""
Hosted data service connection and per-request store.

The relational store and its auth sessions live in Supabase. Each request
builds a short-lived async client that carries the caller's access token,
so the service's row-level policies see the real user.
"""
from typing import AsyncGenerator, Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import AsyncClient, AsyncClientOptions, acreate_client

from recos_manager.config import settings
from recos_manager.services.store import DataServiceError, RecommendationStore

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def create_data_client(
    url: Optional[str] = None,
    key: Optional[str] = None,
    access_token: Optional[str] = None,
) -> AsyncClient:
    """
    Create an async Supabase client.

    Args:
        url: Project URL; defaults to settings.SUPABASE_URL
        key: Anon/service key; defaults to settings.SUPABASE_ANON_KEY
        access_token: User JWT applied to table requests

    Raises:
        DataServiceError: Missing or malformed credentials
    """
    url = url or settings.SUPABASE_URL
    key = key or settings.SUPABASE_ANON_KEY
    if not url or not key:
        raise DataServiceError("Data service URL and key must be configured.")

    options = AsyncClientOptions(auto_refresh_token=False, persist_session=False)
    try:
        client = await acreate_client(url, key, options=options)
    except Exception as e:
        logger.error(f"Could not create data service client: {e}")
        raise DataServiceError(str(e)) from e

    if access_token:
        client.postgrest.auth(access_token)
    return client


async def close_data_client(client: AsyncClient) -> None:
    """Release the HTTP connection pools held by the table and auth sub-clients."""
    await client.postgrest.aclose()
    await client.auth.close()


async def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Extract the bearer token issued by the auth service. Raises 401 if missing."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_store(
    access_token: str = Depends(get_access_token),
) -> AsyncGenerator[RecommendationStore, None]:
    """
    Dependency yielding a RecommendationStore bound to the caller's session.

    Example:
        @router.get("/items")
        async def get_items(store: RecommendationStore = Depends(get_store)):
            return await store.list_clients()
    """
    try:
        client = await create_data_client(access_token=access_token)
    except DataServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )
    try:
        yield RecommendationStore(client)
    finally:
        await close_data_client(client)


async def check_data_service() -> bool:
    """Issue a trivial anonymous select to verify the data service answers."""
    try:
        client = await create_data_client()
    except DataServiceError as e:
        logger.error(f"Data service check failed: {e}")
        return False

    try:
        await client.table("clients").select("id").limit(1).execute()
        return True
    except Exception as e:
        logger.error(f"Data service check failed: {e}")
        return False
    finally:
        await close_data_client(client)
