"""
Administration endpoints. Every route requires an active admin team member.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from recos_manager.database import get_store
from recos_manager.dependencies.auth import require_admin
from recos_manager.models.schemas import (
    AdminRecommendationResponse,
    CurrentUser,
    TeamMemberResponse,
)
from recos_manager.services.store import RecommendationStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

@router.get("/recommendations", response_model=List[AdminRecommendationResponse])
async def list_all_recommendations(
    admin: CurrentUser = Depends(require_admin),
    store: RecommendationStore = Depends(get_store),
) -> List[AdminRecommendationResponse]:
    rows = await store.list_recommendations_with_clients()
    return [
        AdminRecommendationResponse(
            id=row["id"],
            title=row.get("title", ""),
            category=row.get("category", ""),
            status=row.get("status", ""),
            client_id=row.get("client_id"),
            client_name=(row.get("clients") or {}).get("name"),
            created_at=row.get("created_at"),
        )
        for row in rows
    ]


@router.delete("/recommendations/{recommendation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_any_recommendation(
    recommendation_id: str,
    admin: CurrentUser = Depends(require_admin),
    store: RecommendationStore = Depends(get_store),
) -> Response:
    if not await store.delete_recommendation(recommendation_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recommendation {recommendation_id} not found.",
        )
    logger.info("Admin %s deleted recommendation id=%s", admin.id, recommendation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Team members
# ---------------------------------------------------------------------------

@router.get("/team-members", response_model=List[TeamMemberResponse])
async def list_team_members(
    admin: CurrentUser = Depends(require_admin),
    store: RecommendationStore = Depends(get_store),
) -> List[TeamMemberResponse]:
    rows = await store.list_team_members()
    return [TeamMemberResponse.model_validate(row) for row in rows]


@router.post("/team-members/{member_id}/toggle-active", response_model=TeamMemberResponse)
async def toggle_team_member(
    member_id: str,
    admin: CurrentUser = Depends(require_admin),
    store: RecommendationStore = Depends(get_store),
) -> TeamMemberResponse:
    member = await store.get_team_member(member_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Team member {member_id} not found.",
        )

    updated = await store.set_team_member_active(member_id, not member.get("active", True))
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Team member {member_id} not found.",
        )
    logger.info(
        "Admin %s set team member %s active=%s", admin.id, member_id, updated.get("active")
    )
    return TeamMemberResponse.model_validate(updated)
