from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from src.adapters.local_storage import LocalObjectStore
from src.adapters.previews import TempFilePreviewStore
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteProjectRepo
from src.adapters.supabase.client import create_supabase_gateways
from src.app_shell.config import Settings
from src.components.projects import (
    ObjectStorePort,
    ProjectRepoPort,
    ProjectSyncService,
    create_project_service,
)
from src.core.entities import ProjectRecord
from src.core.ports.previews import PreviewPort
from src.rules.models import Rules
from src.ui.state import EditSession

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    rules: Rules
    repo: ProjectRepoPort
    objects: ObjectStorePort
    service: ProjectSyncService
    previews: PreviewPort

    @classmethod
    async def create(cls, settings: Settings, rules: Rules) -> ServiceContext:
        repo: ProjectRepoPort
        objects: ObjectStorePort
        if settings.backend == "supabase":
            repo, objects = await create_supabase_gateways(
                settings.supabase,
                bucket=rules.storage.bucket,
                public_path_prefix=rules.storage.public_path_prefix,
            )
        else:
            applied = await asyncio.to_thread(SQLiteMigrator(settings.db_path).run_migrations)
            if applied:
                logger.info("Applied %d migration(s) to %s", len(applied), settings.db_path)
            repo = SQLiteProjectRepo(settings.db_path)
            objects = LocalObjectStore(
                settings.media_dir,
                bucket=rules.storage.bucket,
                public_base_url=settings.public_base_url,
            )

        return cls(
            rules=rules,
            repo=repo,
            objects=objects,
            service=create_project_service(repo, objects, rules),
            previews=TempFilePreviewStore(),
        )

    def new_session(self, record: ProjectRecord | None = None) -> EditSession:
        """Open an edit session for a new project, or for an existing record."""
        if record is None:
            return EditSession.blank(self.previews)
        return EditSession.for_record(record, self.previews)
