"""
Client endpoints.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status

from recos_manager.database import get_store
from recos_manager.dependencies.auth import get_current_user
from recos_manager.models.schemas import ClientCreate, ClientResponse, CurrentUser
from recos_manager.services.store import RecommendationStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ClientResponse])
async def list_clients(
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> List[ClientResponse]:
    """All clients ordered by name."""
    rows = await store.list_clients()
    return [ClientResponse.model_validate(row) for row in rows]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    body: ClientCreate,
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> ClientResponse:
    row = await store.create_client(
        {"name": body.name, "industry": body.industry, "created_by": user.id}
    )
    logger.info("Created client id=%s name=%r", row.get("id"), body.name)
    return ClientResponse.model_validate(row)
