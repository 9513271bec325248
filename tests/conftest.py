"""
Shared fixtures for Recos Manager API tests.

The hosted data service, its auth API and the AI provider are replaced by
in-memory fakes through ``app.dependency_overrides``; every test function
gets fresh fakes. The fake store seeds one active admin and one active
regular team member.
"""
from __future__ import annotations

import itertools
import os
import uuid
from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Keep configuration deterministic *before* any app module is imported
os.environ["SUPABASE_URL"] = "http://data.test"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
os.environ["OPENAI_API_KEY"] = ""

from recos_manager.database import get_store  # noqa: E402
from recos_manager.dependencies.ai import get_ai_service  # noqa: E402
from recos_manager.dependencies.auth import get_auth_service  # noqa: E402
from recos_manager.main import app  # noqa: E402
from recos_manager.models.database_models import (  # noqa: E402
    CLIENTS_TABLE,
    RECOMMENDATIONS_TABLE,
    TEAM_MEMBERS_TABLE,
)
from recos_manager.models.schemas import (  # noqa: E402
    AIAssistRequest,
    AIAssistResponse,
    CurrentUser,
    SessionResponse,
)
from recos_manager.services.ai_assistant import AIConfigurationError  # noqa: E402
from recos_manager.services.auth_service import AuthServiceError  # noqa: E402
from recos_manager.services.chapters import Chapter  # noqa: E402
from recos_manager.services.store import DataServiceError  # noqa: E402


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------

USER = CurrentUser(id="user-1", email="user@example.com", full_name="Test User")
ADMIN = CurrentUser(id="admin-1", email="admin@example.com", full_name="Admin User")

AUTH_HEADERS = {"Authorization": "Bearer user-token"}
ADMIN_HEADERS = {"Authorization": "Bearer admin-token"}

_TOKENS = {"user-token": USER, "admin-token": ADMIN}
_PASSWORDS = {"user@example.com": "secret123", "admin@example.com": "secret123"}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeStore:
    """In-memory stand-in for RecommendationStore with the same coroutine API."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            CLIENTS_TABLE: [],
            RECOMMENDATIONS_TABLE: [],
            TEAM_MEMBERS_TABLE: [],
        }
        self.failing_tables: set = set()
        self._clock = itertools.count()

    def _timestamp(self) -> str:
        base = datetime(2024, 1, 1, 9, 0, 0)
        return (base + timedelta(minutes=next(self._clock))).isoformat()

    def _add(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "created_at": self._timestamp(), **data}
        self.tables[table].append(row)
        return dict(row)

    def _find(self, table: str, **criteria) -> Optional[Dict[str, Any]]:
        for row in self.tables[table]:
            if all(row.get(k) == v for k, v in criteria.items()):
                return row
        return None

    @staticmethod
    def _newest_first(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return sorted(rows, key=lambda r: r.get("created_at") or "", reverse=True)

    # Recommendations

    async def list_recommendations(self, category=None, status=None):
        rows = [
            dict(r) for r in self.tables[RECOMMENDATIONS_TABLE]
            if (not category or r.get("category") == category)
            and (not status or r.get("status") == status)
        ]
        return self._newest_first(rows)

    async def list_recommendations_with_clients(self):
        rows = []
        for reco in await self.list_recommendations():
            client = self._find(CLIENTS_TABLE, id=reco.get("client_id"))
            reco["clients"] = {"name": client["name"]} if client else None
            rows.append(reco)
        return rows

    async def get_recommendation(self, recommendation_id):
        row = self._find(RECOMMENDATIONS_TABLE, id=recommendation_id)
        return dict(row) if row else None

    async def create_recommendation(self, data):
        return self._add(RECOMMENDATIONS_TABLE, data)

    async def update_recommendation(self, recommendation_id, data):
        row = self._find(RECOMMENDATIONS_TABLE, id=recommendation_id)
        if row is None:
            return None
        row.update(data)
        return dict(row)

    async def delete_recommendation(self, recommendation_id):
        row = self._find(RECOMMENDATIONS_TABLE, id=recommendation_id)
        if row is None:
            return False
        self.tables[RECOMMENDATIONS_TABLE].remove(row)
        return True

    # Clients

    async def list_clients(self):
        return sorted((dict(r) for r in self.tables[CLIENTS_TABLE]), key=lambda r: r["name"])

    async def get_client(self, client_id):
        row = self._find(CLIENTS_TABLE, id=client_id)
        return dict(row) if row else None

    async def create_client(self, data):
        return self._add(CLIENTS_TABLE, data)

    # Team members

    async def list_team_members(self):
        return self._newest_first([dict(r) for r in self.tables[TEAM_MEMBERS_TABLE]])

    async def get_team_member(self, member_id):
        row = self._find(TEAM_MEMBERS_TABLE, id=member_id)
        return dict(row) if row else None

    async def get_team_member_by_email(self, email):
        row = self._find(TEAM_MEMBERS_TABLE, email=email)
        return dict(row) if row else None

    async def set_team_member_active(self, member_id, active):
        row = self._find(TEAM_MEMBERS_TABLE, id=member_id)
        if row is None:
            return None
        row["active"] = active
        return dict(row)

    # Generic

    async def select_all(self, table):
        if table in self.failing_tables:
            raise DataServiceError(f'relation "{table}" does not exist')
        return [dict(r) for r in self.tables[table]]

    async def insert_rows(self, table, rows):
        if table in self.failing_tables:
            raise DataServiceError(f'relation "{table}" does not exist')
        self.tables[table].extend(dict(r) for r in rows)
        return [dict(r) for r in rows]


class FakeAuthService:
    """Token table in place of the hosted auth API."""

    def __init__(self) -> None:
        self.signed_out: List[str] = []

    async def sign_up(self, email, password, full_name):
        if email in _PASSWORDS:
            raise AuthServiceError("User already registered")
        return SessionResponse(access_token="new-token", refresh_token="refresh",
                               user_id="new-user", email=email)

    async def sign_in(self, email, password):
        if _PASSWORDS.get(email) != password:
            raise AuthServiceError("Invalid login credentials")
        token = "admin-token" if email == ADMIN.email else "user-token"
        user = _TOKENS[token]
        return SessionResponse(access_token=token, refresh_token="refresh",
                               user_id=user.id, email=user.email)

    async def sign_out(self, access_token):
        self.signed_out.append(access_token)

    async def get_user(self, access_token):
        return _TOKENS.get(access_token)


class FakeAIService:
    """Scripted AI provider. Unconfigured unless a test says otherwise."""

    def __init__(self) -> None:
        self.configured = False
        self.healthy = True
        self.chapters: List[Chapter] = []
        self.chapter_error: Optional[Exception] = None
        self.assist_error: Optional[Exception] = None
        self.requests: List[AIAssistRequest] = []
        self.segment_calls = 0
        self.model = "fake-model"
        self.base_url = "http://ai.test"

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def check_health(self) -> bool:
        return self.configured and self.healthy

    async def assist(self, request):
        self.requests.append(request)
        if not self.configured:
            raise AIConfigurationError("OpenAI API key is not configured.")
        if self.assist_error is not None:
            raise self.assist_error
        return AIAssistResponse(title="Titre IA", description=f"Texte IA ({request.action.value})")

    async def segment_chapters(self, description):
        self.segment_calls += 1
        if self.chapter_error is not None:
            raise self.chapter_error
        return list(self.chapters)


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> FakeStore:
    fake = FakeStore()
    fake._add(TEAM_MEMBERS_TABLE, {"email": ADMIN.email, "full_name": ADMIN.full_name,
                                   "role": "admin", "active": True})
    fake._add(TEAM_MEMBERS_TABLE, {"email": USER.email, "full_name": USER.full_name,
                                   "role": "member", "active": True})
    return fake


@pytest.fixture
def auth_service() -> FakeAuthService:
    return FakeAuthService()


@pytest.fixture
def ai_service() -> FakeAIService:
    return FakeAIService()


@pytest_asyncio.fixture
async def client(
    store: FakeStore,
    auth_service: FakeAuthService,
    ai_service: FakeAIService,
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the store, auth and AI
    dependencies overridden by the per-test fakes.
    """

    async def _override_get_store():
        yield store

    app.dependency_overrides[get_store] = _override_get_store
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_ai_service] = lambda: ai_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def create_recommendation(client: AsyncClient, **overrides) -> Dict[str, Any]:
    payload = {
        "title": "Optimiser le SEO local",
        "category": "SEO",
        "description": "1. Audit\nAnalyser les fiches.\n\n2. Actions\n- Corriger les NAP\n- Ajouter des avis",
        "context": "Boutique de quartier",
        "priority": "High",
        "status": "Draft",
        "tags": "local, seo",
    }
    payload.update(overrides)
    resp = await client.post("/api/recommendations", json=payload, headers=AUTH_HEADERS)
    assert resp.status_code == 201, resp.text
    return resp.json()
