"""
Recommendation endpoints.

Route summary
-------------
GET    /api/recommendations                        : list (search, category, status)
GET    /api/recommendations/stats                  : dashboard counters
GET    /api/recommendations/suggestions            : similar recommendations
POST   /api/recommendations                        : create (optionally with a new client)
POST   /api/recommendations/import                 : draft from an uploaded PDF / PPT(X)
GET    /api/recommendations/{id}                   : detail
PUT    /api/recommendations/{id}                   : replace editable fields
DELETE /api/recommendations/{id}                   : delete
GET    /api/recommendations/{id}/export/{format}   : download pptx / pdf / txt / ora
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status

from recos_manager.config import settings
from recos_manager.database import get_store
from recos_manager.dependencies.ai import get_ai_service
from recos_manager.dependencies.auth import get_current_user
from recos_manager.models.schemas import (
    CurrentUser,
    ExportFormat,
    ImportResponse,
    RecommendationCreate,
    RecommendationResponse,
    RecommendationStats,
)
from recos_manager.services.ai_assistant import AIAssistantService
from recos_manager.services.exporter import export_recommendation
from recos_manager.services.importer import (
    ExtractionError,
    build_imported_recommendation,
    extract_printable_text,
)
from recos_manager.services.recommendations import (
    compute_stats,
    filter_recommendations,
    find_similar,
)
from recos_manager.services.store import RecommendationStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _get_or_404(store: RecommendationStore, recommendation_id: str) -> Dict[str, Any]:
    row = await store.get_recommendation(recommendation_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recommendation {recommendation_id} not found.",
        )
    return row


async def _editable_fields(
    body: RecommendationCreate,
    store: RecommendationStore,
    user: CurrentUser,
) -> Dict[str, Any]:
    """Row values from the form; a new client is created first and linked."""
    data = body.model_dump(mode="json", exclude={"new_client"})
    if body.new_client is not None:
        client = await store.create_client({
            "name": body.new_client.name,
            "industry": body.new_client.industry,
            "created_by": user.id,
        })
        data["client_id"] = client.get("id")
        logger.info("Created client id=%s from recommendation form", data["client_id"])
    data["updated_at"] = datetime.now(timezone.utc).isoformat()
    return data


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------

@router.get("", response_model=List[RecommendationResponse])
async def list_recommendations(
    search: str = Query("", description="Substring of title, description or a tag"),
    category: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> List[RecommendationResponse]:
    rows = await store.list_recommendations(category=category, status=status_filter)
    rows = filter_recommendations(rows, search)
    return [RecommendationResponse.model_validate(row) for row in rows]


@router.get("/stats", response_model=RecommendationStats)
async def recommendation_stats(
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> RecommendationStats:
    return compute_stats(await store.list_recommendations())


@router.get("/suggestions", response_model=List[RecommendationResponse])
async def recommendation_suggestions(
    category: str,
    context: str = "",
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> List[RecommendationResponse]:
    """Existing recommendations of the same category that mention *context*."""
    rows = await store.list_recommendations(category=category)
    similar = find_similar(rows, category, context, limit=settings.SUGGESTION_LIMIT)
    return [RecommendationResponse.model_validate(row) for row in similar]


@router.post("", response_model=RecommendationResponse, status_code=status.HTTP_201_CREATED)
async def create_recommendation(
    body: RecommendationCreate,
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> RecommendationResponse:
    data = await _editable_fields(body, store, user)
    data["created_by"] = user.id
    row = await store.create_recommendation(data)
    logger.info("Created recommendation id=%s title=%r", row.get("id"), body.title)
    return RecommendationResponse.model_validate(row)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

@router.post("/import", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
async def import_document(
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> ImportResponse:
    """
    Create a draft recommendation from the printable text of a PDF or
    PowerPoint file.

    - Max file size: MAX_FILE_SIZE
    - The first line becomes the title, the rest the description
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upload must include a filename.",
        )

    file_ext = Path(file.filename).suffix.lower()
    if file_ext not in settings.SUPPORTED_IMPORT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Unsupported file type '{file_ext}'. "
                f"Accepted: {', '.join(settings.SUPPORTED_IMPORT_TYPES)}"
            ),
        )

    content = await file.read()
    if len(content) > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=(
                f"File exceeds the {settings.MAX_FILE_SIZE // (1024 * 1024)} MB limit."
            ),
        )

    try:
        text = extract_printable_text(content)
    except ExtractionError as exc:
        logger.warning("Import of %r failed: %s", file.filename, exc)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    data = build_imported_recommendation(file.filename, text, created_by=user.id)
    data["updated_at"] = datetime.now(timezone.utc).isoformat()
    row = await store.create_recommendation(data)
    logger.info(
        "Imported %r as recommendation id=%s (%d chars)",
        file.filename, row.get("id"), len(text),
    )
    return ImportResponse(
        recommendation=RecommendationResponse.model_validate(row),
        extracted_characters=len(text),
    )


# ---------------------------------------------------------------------------
# Single recommendation
# ---------------------------------------------------------------------------

@router.get("/{recommendation_id}", response_model=RecommendationResponse)
async def get_recommendation(
    recommendation_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> RecommendationResponse:
    return RecommendationResponse.model_validate(await _get_or_404(store, recommendation_id))


@router.put("/{recommendation_id}", response_model=RecommendationResponse)
async def update_recommendation(
    recommendation_id: str,
    body: RecommendationCreate,
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> RecommendationResponse:
    await _get_or_404(store, recommendation_id)
    data = await _editable_fields(body, store, user)
    row = await store.update_recommendation(recommendation_id, data)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recommendation {recommendation_id} not found.",
        )
    logger.info("Updated recommendation id=%s", recommendation_id)
    return RecommendationResponse.model_validate(row)


@router.delete("/{recommendation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recommendation(
    recommendation_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
) -> Response:
    if not await store.delete_recommendation(recommendation_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recommendation {recommendation_id} not found.",
        )
    logger.info("Deleted recommendation id=%s", recommendation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

@router.get("/{recommendation_id}/export/{export_format}")
async def export(
    recommendation_id: str,
    export_format: str,
    use_ai: bool = Query(True, description="Try AI chapter segmentation first"),
    user: CurrentUser = Depends(get_current_user),
    store: RecommendationStore = Depends(get_store),
    ai_service: AIAssistantService = Depends(get_ai_service),
) -> Response:
    """Download the recommendation as a slide deck, PDF, text or layered image."""
    try:
        fmt = ExportFormat(export_format.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Unsupported export format '{export_format}'. "
                f"Accepted: {', '.join(f.value for f in ExportFormat)}"
            ),
        )

    reco = RecommendationResponse.model_validate(await _get_or_404(store, recommendation_id))
    exported = await export_recommendation(
        reco, fmt, store, ai_service=ai_service if use_ai else None
    )
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{exported.filename}"',
            "X-Chapter-Source": exported.chapter_source,
        },
    )
