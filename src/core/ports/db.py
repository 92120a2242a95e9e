"""
Record Store Port (P1).

Protocol-based interface for the structured store holding project rows.
Implementations: SQLite, Supabase (PostgREST).

Invariants:
- update replaces the whole writable part of a record
- delete is idempotent: deleting an absent id is not an error
"""

from __future__ import annotations

from typing import Protocol

from src.core.entities import ProjectPayload, ProjectRecord


class ProjectRepoPort(Protocol):
    """Repository for project records."""

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        """Get a project, or None if it does not exist."""
        ...

    async def insert(self, payload: ProjectPayload) -> ProjectRecord:
        """Insert a project; the store assigns id and created_at."""
        ...

    async def update(self, project_id: str, payload: ProjectPayload) -> None:
        """
        Replace a project's writable fields.

        Raises:
            RecordNotFoundError: no row with this id
        """
        ...

    async def delete(self, project_id: str) -> None:
        """Delete a project by id."""
        ...

    async def list_all(self) -> list[ProjectRecord]:
        """All projects, newest first."""
        ...


class RecordStoreError(Exception):
    """Raised when the record store rejects or fails an operation."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Record store {operation} failed: {reason}")


class RecordNotFoundError(RecordStoreError):
    """Raised when a project row does not exist."""

    def __init__(self, project_id: str, operation: str = "get") -> None:
        self.project_id = project_id
        super().__init__(operation, f"project {project_id} not found")
