"""
Object Storage Port (P2).

Protocol-based interface for the blob store holding project images.
Implementations: local filesystem, Supabase Storage.

Invariants:
- Keys are flat names inside a single bucket
- A key once written is never overwritten (new uploads always get a new key)
- public_url_for is a pure derivation and performs no network I/O
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class RemoveResult:
    """Outcome of a best-effort batch delete."""

    requested: frozenset[str] = field(default_factory=frozenset)
    failed_keys: frozenset[str] = field(default_factory=frozenset)

    @property
    def ok(self) -> bool:
        return not self.failed_keys


class ObjectStorePort(Protocol):
    """
    Object store gateway.

    Uploads and deletes are async; URL resolution is synchronous.
    """

    bucket: str

    async def upload(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
    ) -> str:
        """
        Store bytes under key and return the object's public URL.

        Raises:
            UploadError: network, quota or permission failure
        """
        ...

    async def remove(self, keys: Iterable[str]) -> RemoveResult:
        """
        Delete objects by key.

        Never raises for per-key failures; they are returned in failed_keys.

        Raises:
            StorageDeleteError: the whole request failed
        """
        ...

    def public_url_for(self, key: str) -> str:
        """Public URL for a key."""
        ...


class StorageError(Exception):
    """Base class for storage errors."""


class UploadError(StorageError):
    """Raised when an object could not be uploaded."""

    def __init__(self, key: str, reason: str, *, filename: str | None = None) -> None:
        self.key = key
        self.reason = reason
        self.filename = filename
        label = filename or key
        super().__init__(f"Failed to upload {label}: {reason}")


class StorageDeleteError(StorageError):
    """Raised when objects could not be deleted."""

    def __init__(self, keys: Iterable[str], reason: str) -> None:
        self.keys = frozenset(keys)
        self.reason = reason
        super().__init__(f"Failed to delete {len(self.keys)} object(s): {reason}")


class KeyExistsError(UploadError):
    """Raised when attempting to write to an existing key."""

    def __init__(self, key: str) -> None:
        super().__init__(key, "key already exists")

