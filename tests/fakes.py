"""In-memory fakes of the record store, object store and preview ports."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from src.core.entities import ProjectPayload, ProjectRecord
from src.core.ports.db import RecordNotFoundError, RecordStoreError
from src.core.ports.previews import PreviewHandle
from src.core.ports.storage import RemoveResult, UploadError
from src.core.services.paths import build_public_url

SUPABASE_PUBLIC_BASE = "https://demo.supabase.co/storage/v1/object/public"

# --- Mock Gateways ---


class MockProjectRepo:
    """In-memory record store."""

    def __init__(self) -> None:
        self.records: dict[str, ProjectRecord] = {}
        self.fail_operations: set[str] = set()
        self.calls: list[tuple[str, str | None]] = []
        self._next_id = 1
        self._clock = datetime(2025, 1, 1, tzinfo=UTC)

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_operations:
            raise RecordStoreError(operation, "simulated outage")

    def add(self, **fields: object) -> ProjectRecord:
        """Seed a record directly, bypassing the failure switches."""
        return self._insert(ProjectPayload.model_validate(fields))

    def _insert(self, payload: ProjectPayload) -> ProjectRecord:
        record = ProjectRecord(
            id=f"p-{self._next_id}",
            created_at=self._clock + timedelta(minutes=self._next_id),
            **payload.model_dump(),
        )
        self._next_id += 1
        self.records[record.id] = record
        return record

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        self.calls.append(("get", project_id))
        self._maybe_fail("get")
        return self.records.get(project_id)

    async def insert(self, payload: ProjectPayload) -> ProjectRecord:
        self.calls.append(("insert", None))
        self._maybe_fail("insert")
        return self._insert(payload)

    async def update(self, project_id: str, payload: ProjectPayload) -> None:
        self.calls.append(("update", project_id))
        self._maybe_fail("update")
        existing = self.records.get(project_id)
        if existing is None:
            raise RecordNotFoundError(project_id, "update")
        self.records[project_id] = ProjectRecord(
            id=existing.id, created_at=existing.created_at, **payload.model_dump()
        )

    async def delete(self, project_id: str) -> None:
        self.calls.append(("delete", project_id))
        self._maybe_fail("delete")
        self.records.pop(project_id, None)

    async def list_all(self) -> list[ProjectRecord]:
        self.calls.append(("list", None))
        self._maybe_fail("list")
        return sorted(self.records.values(), key=lambda r: r.created_at, reverse=True)


class MockObjectStore:
    """In-memory object store with Supabase-shaped public URLs."""

    def __init__(self, bucket: str = "project-images") -> None:
        self.bucket = bucket
        self.objects: dict[str, bytes] = {}
        self.upload_calls: list[str] = []
        self.remove_calls: list[frozenset[str]] = []
        self.fail_data: set[bytes] = set()
        self.upload_raises: dict[bytes, Exception] = {}
        self.delays: dict[bytes, float] = {}
        self.fail_remove_keys: set[str] = set()
        self.remove_raises: Exception | None = None

    async def upload(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
    ) -> str:
        self.upload_calls.append(key)
        if data in self.delays:
            await asyncio.sleep(self.delays[data])
        if data in self.upload_raises:
            raise self.upload_raises[data]
        if data in self.fail_data:
            raise UploadError(key, "quota exceeded")
        self.objects[key] = data
        return self.public_url_for(key)

    async def remove(self, keys: Iterable[str]) -> RemoveResult:
        requested = frozenset(keys)
        self.remove_calls.append(requested)
        if self.remove_raises is not None:
            raise self.remove_raises
        failed = requested & self.fail_remove_keys
        for key in requested - failed:
            self.objects.pop(key, None)
        return RemoveResult(requested=requested, failed_keys=frozenset(failed))

    def public_url_for(self, key: str) -> str:
        return build_public_url(SUPABASE_PUBLIC_BASE, self.bucket, key)

    def seed(self, key: str, data: bytes = b"seed") -> str:
        self.objects[key] = data
        return self.public_url_for(key)

    def removed_keys(self) -> list[str]:
        return sorted(k for call in self.remove_calls for k in call)


class MockPreviews:
    """Preview store that counts acquisitions and releases."""

    def __init__(self) -> None:
        self.active: dict[str, str] = {}
        self.acquired = 0
        self.released: list[str] = []

    def acquire(self, filename: str, data: bytes) -> PreviewHandle:
        self.acquired += 1
        handle = PreviewHandle(handle_id=f"h{self.acquired}", uri=f"preview://{filename}")
        self.active[handle.handle_id] = filename
        return handle

    def release(self, handle: PreviewHandle) -> None:
        if self.active.pop(handle.handle_id, None) is not None:
            self.released.append(handle.handle_id)

