import asyncio
import json
import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from src.core.entities import ProjectPayload, ProjectRecord
from src.core.ports.db import RecordNotFoundError, RecordStoreError


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _row_to_project(row: dict[str, Any]) -> ProjectRecord:
    return ProjectRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        kunde=row["kunde"],
        datum=row["datum"],
        standort=row["standort"],
        flache=row["flache"],
        categories=json.loads(row["categories"] or "[]"),
        image=row["image"],
        images=json.loads(row["images"] or "[]"),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLiteProjectRepo:
    """
    SQLite implementation of ProjectRepoPort.

    Each call opens its own connection in a worker thread.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    # --- Sync implementations ---

    def _get_by_id(self, project_id: str) -> ProjectRecord | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
            return _row_to_project(row) if row else None
        finally:
            conn.close()

    def _insert(self, payload: ProjectPayload) -> ProjectRecord:
        record = ProjectRecord(
            id=str(uuid4()),
            created_at=datetime.now(UTC),
            **payload.model_dump(),
        )
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO projects (
                    id, title, description, kunde, datum, standort, flache,
                    categories, image, images, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.title,
                    record.description,
                    record.kunde,
                    record.datum,
                    record.standort,
                    record.flache,
                    json.dumps(record.categories),
                    record.image,
                    json.dumps(record.images),
                    record.created_at.isoformat(),
                ),
            )
            conn.commit()
            return record
        finally:
            conn.close()

    def _update(self, project_id: str, payload: ProjectPayload) -> None:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE projects SET
                    title = ?, description = ?, kunde = ?, datum = ?, standort = ?,
                    flache = ?, categories = ?, image = ?, images = ?
                WHERE id = ?
                """,
                (
                    payload.title,
                    payload.description,
                    payload.kunde,
                    payload.datum,
                    payload.standort,
                    payload.flache,
                    json.dumps(payload.categories),
                    payload.image,
                    json.dumps(payload.images),
                    project_id,
                ),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(project_id, "update")
        finally:
            conn.close()

    def _delete(self, project_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            conn.commit()
        finally:
            conn.close()

    def _list_all(self) -> list[ProjectRecord]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM projects ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
            return [_row_to_project(row) for row in rows]
        finally:
            conn.close()

    # --- ProjectRepoPort ---

    async def _run(self, operation: str, func: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as e:
            raise RecordStoreError(operation, str(e)) from e

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        result: ProjectRecord | None = await self._run("get", self._get_by_id, project_id)
        return result

    async def insert(self, payload: ProjectPayload) -> ProjectRecord:
        result: ProjectRecord = await self._run("insert", self._insert, payload)
        return result

    async def update(self, project_id: str, payload: ProjectPayload) -> None:
        await self._run("update", self._update, project_id, payload)

    async def delete(self, project_id: str) -> None:
        await self._run("delete", self._delete, project_id)

    async def list_all(self) -> list[ProjectRecord]:
        result: list[ProjectRecord] = await self._run("list", self._list_all)
        return result
