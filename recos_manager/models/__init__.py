"""Table definitions and schema models for Recos Manager."""
from recos_manager.models.database_models import (
    ALL_TABLES,
    CLIENTS_TABLE,
    RECOMMENDATIONS_TABLE,
    TEAM_MEMBERS_TABLE,
    Category,
    Priority,
    Status,
)
from recos_manager.models.schemas import (
    ClientCreate,
    ClientResponse,
    RecommendationCreate,
    RecommendationResponse,
    AdminRecommendationResponse,
    RecommendationStats,
    TeamMemberResponse,
    ChapterSchema,
    HealthCheckResponse,
)

__all__ = [
    # Tables and enums
    "ALL_TABLES",
    "CLIENTS_TABLE",
    "RECOMMENDATIONS_TABLE",
    "TEAM_MEMBERS_TABLE",
    "Category",
    "Priority",
    "Status",
    # Pydantic schemas
    "ClientCreate",
    "ClientResponse",
    "RecommendationCreate",
    "RecommendationResponse",
    "AdminRecommendationResponse",
    "RecommendationStats",
    "TeamMemberResponse",
    "ChapterSchema",
    "HealthCheckResponse",
]
