"""
Local Filesystem Object Store (P2 Implementation).

Implements ObjectStorePort on the local filesystem for development and
single-server deployments. Objects live at {base_path}/{bucket}/{key} so the
directory can be served statically under the public base URL.

Invariants:
- Keys once written cannot be overwritten
- Keys are single path segments; anything else is rejected
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from src.core.ports.storage import (
    KeyExistsError,
    RemoveResult,
    UploadError,
)
from src.core.services.paths import build_public_url

logger = logging.getLogger(__name__)


class LocalObjectStore:
    """
    Local filesystem implementation of ObjectStorePort.

    Example key: "1718000000000_ab12cd34ef56ab78.jpg"
      -> {base_path}/project-images/1718000000000_ab12cd34ef56ab78.jpg
    """

    def __init__(
        self,
        base_path: str | Path,
        *,
        bucket: str = "project-images",
        public_base_url: str = "http://localhost:8000/media",
        create_dirs: bool = True,
    ) -> None:
        """
        Initialize local object storage.

        Args:
            base_path: Root directory; each bucket is a subdirectory
            bucket: Bucket (subdirectory) name
            public_base_url: URL under which base_path is served
            create_dirs: Whether to create directories if they don't exist
        """
        self.base_path = Path(base_path)
        self.bucket = bucket
        self.public_base_url = public_base_url
        self.bucket_path = self.base_path / bucket

        if create_dirs:
            self.bucket_path.mkdir(parents=True, exist_ok=True)

    def _key_to_path(self, key: str) -> Path:
        """Convert storage key to file path, rejecting traversal."""
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.bucket_path / key

    # --- Sync primitives (run in worker threads) ---

    def _write(self, key: str, data: bytes) -> None:
        try:
            path = self._key_to_path(key)
        except ValueError as e:
            raise UploadError(key, str(e)) from e

        if path.exists():
            raise KeyExistsError(key)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # "xb" keeps the write exclusive if two uploads race on one key
            with open(path, "xb") as f:
                f.write(data)
        except FileExistsError as e:
            raise KeyExistsError(key) from e
        except OSError as e:
            raise UploadError(key, str(e)) from e

    def _unlink(self, key: str) -> bool:
        path = self._key_to_path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    # --- ObjectStorePort ---

    async def upload(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Store bytes under key and return its public URL."""
        await asyncio.to_thread(self._write, key, data)
        logger.debug("Stored %s (%d bytes, %s)", key, len(data), content_type)
        return self.public_url_for(key)

    async def remove(self, keys: Iterable[str]) -> RemoveResult:
        """Delete objects by key. Missing keys count as removed."""
        requested = frozenset(keys)
        failed: set[str] = set()

        for key in requested:
            try:
                existed = await asyncio.to_thread(self._unlink, key)
            except (OSError, ValueError) as e:
                logger.warning("Failed to delete %s: %s", key, e)
                failed.add(key)
                continue
            if not existed:
                logger.debug("Delete of %s: already absent", key)

        return RemoveResult(requested=requested, failed_keys=frozenset(failed))

    def public_url_for(self, key: str) -> str:
        return build_public_url(self.public_base_url, self.bucket, key)

    # --- Inspection ---

    def exists(self, key: str) -> bool:
        """Check if key exists in storage."""
        try:
            return self._key_to_path(key).exists()
        except ValueError:
            return False

    def list_keys(self) -> list[str]:
        """All keys in the bucket, sorted."""
        if not self.bucket_path.exists():
            return []
        return sorted(p.name for p in self.bucket_path.iterdir() if p.is_file())

