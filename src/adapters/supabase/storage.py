"""
Supabase object store (P2 Implementation).

Implements ObjectStorePort against one Supabase Storage bucket. Public URLs
are derived locally in the shape Supabase serves them:
{supabase_url}/storage/v1/object/public/{bucket}/{key}
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx
from storage3.utils import StorageException
from supabase import AsyncClient

from src.core.ports.storage import RemoveResult, StorageDeleteError, UploadError
from src.core.services.paths import DEFAULT_PUBLIC_PATH_PREFIX, build_public_url

logger = logging.getLogger(__name__)


class SupabaseObjectStore:
    """ObjectStorePort backed by a Supabase Storage bucket."""

    def __init__(
        self,
        client: AsyncClient,
        supabase_url: str,
        *,
        bucket: str = "project-images",
        public_path_prefix: str = DEFAULT_PUBLIC_PATH_PREFIX,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.public_base_url = f"{supabase_url.rstrip('/')}{public_path_prefix}"

    async def upload(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
    ) -> str:
        try:
            await self.client.storage.from_(self.bucket).upload(
                path=key,
                file=data,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except (StorageException, httpx.HTTPError) as e:
            raise UploadError(key, str(e)) from e
        return self.public_url_for(key)

    async def remove(self, keys: Iterable[str]) -> RemoveResult:
        """
        Delete objects in one batch request.

        A failed request raises StorageDeleteError for the whole batch. Keys
        the API does not echo back were already absent and count as removed.
        """
        requested = frozenset(keys)
        if not requested:
            return RemoveResult()

        try:
            removed = await self.client.storage.from_(self.bucket).remove(sorted(requested))
        except (StorageException, httpx.HTTPError) as e:
            raise StorageDeleteError(requested, str(e)) from e

        echoed = {item.get("name") for item in removed or [] if isinstance(item, dict)}
        absent = requested - echoed
        if absent:
            logger.debug("Objects already absent: %s", sorted(absent))
        return RemoveResult(requested=requested)

    def public_url_for(self, key: str) -> str:
        return build_public_url(self.public_base_url, self.bucket, key)
