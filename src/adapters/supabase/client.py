"""
Supabase client factory.

The record store and the object store get separate clients so each can carry
its own key: the service-role key when one is configured, the anon key
otherwise. Credentials are passed in by the caller; nothing here reads the
environment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from supabase import acreate_client

from src.core.services.paths import DEFAULT_PUBLIC_PATH_PREFIX

from .records import SupabaseProjectRepo
from .storage import SupabaseObjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SupabaseCredentials:
    url: str
    anon_key: str
    service_role_key: str | None = None

    @property
    def privileged_key(self) -> str:
        return self.service_role_key or self.anon_key

    def validate(self) -> list[str]:
        errors = []
        if not self.url:
            errors.append("SUPABASE_URL is not set")
        elif not self.url.startswith(("http://", "https://")):
            errors.append("SUPABASE_URL must be an http(s) URL")
        if not self.anon_key and not self.service_role_key:
            errors.append("SUPABASE_ANON_KEY or SUPABASE_SERVICE_ROLE_KEY must be set")
        return errors


async def create_supabase_gateways(
    credentials: SupabaseCredentials,
    *,
    bucket: str = "project-images",
    table: str = "projects",
    public_path_prefix: str = DEFAULT_PUBLIC_PATH_PREFIX,
) -> tuple[SupabaseProjectRepo, SupabaseObjectStore]:
    """Create the record store and object store for one Supabase project."""
    errors = credentials.validate()
    if errors:
        raise ValueError("; ".join(errors))

    key = credentials.privileged_key
    records_client = await acreate_client(credentials.url, key)
    storage_client = await acreate_client(credentials.url, key)

    logger.info(
        "Supabase gateways ready (table=%s, bucket=%s, service_role=%s)",
        table,
        bucket,
        credentials.service_role_key is not None,
    )
    repo = SupabaseProjectRepo(records_client, table=table)
    objects = SupabaseObjectStore(
        storage_client,
        credentials.url,
        bucket=bucket,
        public_path_prefix=public_path_prefix,
    )
    return repo, objects
