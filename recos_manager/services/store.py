"""
Table-level access to the hosted data service.

RecommendationStore is a thin pass-through over the Supabase query builder:
select / insert / update / delete with server-side ordering and equality
filters.  It adds no caching and no retries; concurrent edits resolve as
last-write-wins inside the hosted service.

Public API
----------
RecommendationStore.list_recommendations(category, status)  -> List[Dict]
RecommendationStore.list_recommendations_with_clients()     -> List[Dict]
RecommendationStore.get/create/update/delete_recommendation(...)
RecommendationStore.list_clients() / get_client() / create_client()
RecommendationStore.list_team_members() / get_team_member()
RecommendationStore.get_team_member_by_email() / set_team_member_active()
RecommendationStore.select_all(table) / insert_rows(table, rows)
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError

from recos_manager.models.database_models import (
    CLIENTS_TABLE,
    RECOMMENDATIONS_TABLE,
    TEAM_MEMBERS_TABLE,
)

logger = logging.getLogger(__name__)


class DataServiceError(RuntimeError):
    """A request to the hosted data service failed; message comes from the provider."""


class RecommendationStore:
    """Queries against the clients / recommendations / team_members tables."""

    def __init__(self, client: Any) -> None:
        self.client = client

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    async def list_recommendations(
        self,
        category: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """All recommendations, newest first, optionally filtered by equality."""
        query = self.client.table(RECOMMENDATIONS_TABLE).select("*")
        if category:
            query = query.eq("category", category)
        if status:
            query = query.eq("status", status)
        query = query.order("created_at", desc=True)
        return await self._execute(query, "list recommendations")

    async def list_recommendations_with_clients(self) -> List[Dict[str, Any]]:
        """Newest-first recommendations with the joined ``clients(name)`` relation."""
        query = (
            self.client.table(RECOMMENDATIONS_TABLE)
            .select(f"*, {CLIENTS_TABLE}(name)")
            .order("created_at", desc=True)
        )
        return await self._execute(query, "list recommendations with clients")

    async def get_recommendation(self, recommendation_id: str) -> Optional[Dict[str, Any]]:
        query = (
            self.client.table(RECOMMENDATIONS_TABLE)
            .select("*")
            .eq("id", recommendation_id)
            .limit(1)
        )
        rows = await self._execute(query, "get recommendation")
        return rows[0] if rows else None

    async def create_recommendation(self, data: Dict[str, Any]) -> Dict[str, Any]:
        rows = await self._execute(
            self.client.table(RECOMMENDATIONS_TABLE).insert(data),
            "create recommendation",
        )
        return self._single(rows, "create recommendation")

    async def update_recommendation(
        self, recommendation_id: str, data: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        rows = await self._execute(
            self.client.table(RECOMMENDATIONS_TABLE).update(data).eq("id", recommendation_id),
            "update recommendation",
        )
        return rows[0] if rows else None

    async def delete_recommendation(self, recommendation_id: str) -> bool:
        """Delete one recommendation. Returns False when no row matched."""
        rows = await self._execute(
            self.client.table(RECOMMENDATIONS_TABLE).delete().eq("id", recommendation_id),
            "delete recommendation",
        )
        return bool(rows)

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    async def list_clients(self) -> List[Dict[str, Any]]:
        query = self.client.table(CLIENTS_TABLE).select("*").order("name")
        return await self._execute(query, "list clients")

    async def get_client(self, client_id: str) -> Optional[Dict[str, Any]]:
        query = self.client.table(CLIENTS_TABLE).select("*").eq("id", client_id).limit(1)
        rows = await self._execute(query, "get client")
        return rows[0] if rows else None

    async def create_client(self, data: Dict[str, Any]) -> Dict[str, Any]:
        rows = await self._execute(
            self.client.table(CLIENTS_TABLE).insert(data),
            "create client",
        )
        return self._single(rows, "create client")

    # ------------------------------------------------------------------
    # Team members
    # ------------------------------------------------------------------

    async def list_team_members(self) -> List[Dict[str, Any]]:
        query = self.client.table(TEAM_MEMBERS_TABLE).select("*").order("created_at", desc=True)
        return await self._execute(query, "list team members")

    async def get_team_member(self, member_id: str) -> Optional[Dict[str, Any]]:
        query = self.client.table(TEAM_MEMBERS_TABLE).select("*").eq("id", member_id).limit(1)
        rows = await self._execute(query, "get team member")
        return rows[0] if rows else None

    async def get_team_member_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        query = self.client.table(TEAM_MEMBERS_TABLE).select("*").eq("email", email).limit(1)
        rows = await self._execute(query, "get team member by email")
        return rows[0] if rows else None

    async def set_team_member_active(
        self, member_id: str, active: bool
    ) -> Optional[Dict[str, Any]]:
        rows = await self._execute(
            self.client.table(TEAM_MEMBERS_TABLE).update({"active": active}).eq("id", member_id),
            "update team member",
        )
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Generic table access (bulk copy)
    # ------------------------------------------------------------------

    async def select_all(self, table: str) -> List[Dict[str, Any]]:
        return await self._execute(self.client.table(table).select("*"), f"select {table}")

    async def insert_rows(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        return await self._execute(self.client.table(table).insert(rows), f"insert {table}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _execute(query: Any, action: str) -> List[Dict[str, Any]]:
        """Run a built query and return its rows, wrapping provider errors."""
        try:
            response = await query.execute()
        except APIError as exc:
            message = exc.message or str(exc)
            logger.error("%s failed: %s", action, message)
            raise DataServiceError(message) from exc
        except httpx.HTTPError as exc:
            logger.error("%s failed: data service unreachable (%s)", action, exc)
            raise DataServiceError(f"Data service unreachable: {exc}") from exc

        data = response.data
        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    @staticmethod
    def _single(rows: List[Dict[str, Any]], action: str) -> Dict[str, Any]:
        if not rows:
            raise DataServiceError(f"{action}: the data service returned no row")
        return rows[0]
