"""
Supabase record store (P1 Implementation).

Implements ProjectRepoPort against a PostgREST table through the async
Supabase client. The table assigns id and created_at.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from src.core.entities import ProjectPayload, ProjectRecord
from src.core.ports.db import RecordNotFoundError, RecordStoreError

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("title", "description", "kunde", "datum", "standort", "flache")


def row_to_project(row: dict[str, Any]) -> ProjectRecord:
    """Map a PostgREST row to a record; NULL text and list columns become empty."""
    data = dict(row)
    for name in _TEXT_FIELDS:
        data[name] = data.get(name) or ""
    data["categories"] = data.get("categories") or []
    data["images"] = data.get("images") or []
    data["id"] = str(data["id"])
    return ProjectRecord.model_validate(data)


class SupabaseProjectRepo:
    """ProjectRepoPort backed by a Supabase table."""

    def __init__(self, client: AsyncClient, table: str = "projects") -> None:
        self.client = client
        self.table = table

    async def _execute(self, operation: str, query: Any) -> Any:
        try:
            return await query.execute()
        except APIError as e:
            raise RecordStoreError(operation, e.message or str(e)) from e
        except httpx.HTTPError as e:
            raise RecordStoreError(operation, str(e)) from e

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        response = await self._execute(
            "get",
            self.client.table(self.table).select("*").eq("id", project_id).limit(1),
        )
        if not response.data:
            return None
        return row_to_project(response.data[0])

    async def insert(self, payload: ProjectPayload) -> ProjectRecord:
        response = await self._execute(
            "insert",
            self.client.table(self.table).insert(payload.model_dump()),
        )
        if not response.data:
            raise RecordStoreError("insert", "no row returned")
        return row_to_project(response.data[0])

    async def update(self, project_id: str, payload: ProjectPayload) -> None:
        response = await self._execute(
            "update",
            self.client.table(self.table).update(payload.model_dump()).eq("id", project_id),
        )
        if not response.data:
            raise RecordNotFoundError(project_id, "update")

    async def delete(self, project_id: str) -> None:
        await self._execute(
            "delete",
            self.client.table(self.table).delete().eq("id", project_id),
        )

    async def list_all(self) -> list[ProjectRecord]:
        response = await self._execute(
            "list",
            self.client.table(self.table).select("*").order("created_at", desc=True),
        )
        return [row_to_project(row) for row in response.data or []]
