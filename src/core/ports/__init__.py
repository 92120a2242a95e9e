# project-asset-sync: Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.db import ProjectRepoPort, RecordNotFoundError, RecordStoreError
from src.core.ports.previews import PreviewHandle, PreviewPort
from src.core.ports.storage import (
    KeyExistsError,
    ObjectStorePort,
    RemoveResult,
    StorageDeleteError,
    StorageError,
    UploadError,
)

__all__ = [
    # Records (P1)
    "ProjectRepoPort",
    "RecordNotFoundError",
    "RecordStoreError",
    # Objects (P2)
    "KeyExistsError",
    "ObjectStorePort",
    "RemoveResult",
    "StorageDeleteError",
    "StorageError",
    "UploadError",
    # Previews
    "PreviewHandle",
    "PreviewPort",
]
