"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Any
from datetime import datetime
from enum import Enum

from recos_manager.models.database_models import Category, Priority, Status
from recos_manager.utils.helpers import parse_tags


class AIActionSchema(str, Enum):
    """Kinds of AI assistance offered on the recommendation form."""

    GENERATE = "generate"
    IMPROVE = "improve"
    EXPAND = "expand"


class ExportFormat(str, Enum):
    """Document formats a recommendation can be exported to."""

    PPTX = "pptx"
    PDF = "pdf"
    TXT = "txt"
    ORA = "ora"


# Client Schemas
class ClientCreate(BaseModel):
    """Schema for creating a client."""

    name: str = Field(..., min_length=1, max_length=255)
    industry: str = ""

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Client name must not be blank")
        return value


class ClientResponse(BaseModel):
    """Schema for client responses."""

    id: str
    name: str
    industry: Optional[str] = ""
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


# Recommendation Schemas
class RecommendationCreate(BaseModel):
    """
    Schema for creating or wholesale-updating a recommendation.

    ``tags`` accepts the raw comma-separated form input or a list; either
    way it is stored as the comma-split, trimmed, empty-filtered list.
    ``new_client`` creates a client on the fly and links it, taking
    precedence over ``client_id``.
    """

    client_id: Optional[str] = None
    new_client: Optional[ClientCreate] = None
    title: str = Field(..., min_length=1, max_length=255)
    category: Category = Category.STRATEGY
    description: str = Field(..., min_length=1)
    context: str = ""
    prompt: str = ""
    priority: Priority = Priority.MEDIUM
    status: Status = Status.DRAFT
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return parse_tags(value)
        # A list is normalised through the same single-string form
        return parse_tags(",".join(str(item) for item in value))

    @field_validator("client_id", mode="before")
    @classmethod
    def _empty_client_is_none(cls, value: Any) -> Any:
        return value or None


class RecommendationResponse(BaseModel):
    """Schema for recommendation details."""

    id: str
    client_id: Optional[str] = None
    title: str
    category: str
    description: str = ""
    context: Optional[str] = ""
    prompt: Optional[str] = ""
    priority: str
    status: str
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value: Any) -> Any:
        return value or []


class AdminRecommendationResponse(BaseModel):
    """Recommendation row as listed on the moderation screen."""

    id: str
    title: str
    category: str
    status: str
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    created_at: Optional[datetime] = None


class RecommendationStats(BaseModel):
    """Counters shown above the recommendation list."""

    total: int = 0
    draft: int = 0
    approved: int = 0
    implemented: int = 0


class ImportResponse(BaseModel):
    """Schema for document import response."""

    recommendation: RecommendationResponse
    extracted_characters: int
    message: str = "Document imported successfully"


# Team Schemas
class TeamMemberResponse(BaseModel):
    """Schema for team member details."""

    id: str
    email: str
    full_name: Optional[str] = None
    role: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


# Auth Schemas
class SignUpRequest(BaseModel):
    """Schema for account creation."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., max_length=255)

    @field_validator("full_name")
    @classmethod
    def _full_name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Full name is required")
        return value


class SignInRequest(BaseModel):
    """Schema for password sign-in."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class SessionResponse(BaseModel):
    """Tokens issued by the auth service."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: Optional[str] = None


class CurrentUser(BaseModel):
    """The authenticated caller, as resolved from the bearer token."""

    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


# AI Schemas
class AIAssistRequest(BaseModel):
    """Schema for an AI drafting request."""

    action: AIActionSchema = AIActionSchema.GENERATE
    category: Optional[str] = None
    context: Optional[str] = None
    prompt: Optional[str] = None
    current_title: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    industry: Optional[str] = None


class AIAssistResponse(BaseModel):
    """Title/description pair proposed by the AI service."""

    title: str = ""
    description: str = ""


class ChapterSchema(BaseModel):
    """A titled slice of a recommendation description."""

    title: str
    content: str


class ChapterRequest(BaseModel):
    """Schema for a chapter segmentation preview."""

    description: str
    use_ai: bool = True


class ChapterResponse(BaseModel):
    """Segmentation result and which strategy produced it."""

    source: str
    chapters: List[ChapterSchema]


# Health Check Schema
class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    data_service: str
    ai_service: str
    timestamp: datetime
