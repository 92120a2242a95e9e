"""
Projects component port definitions.

The synchronizer is handed one record store and one object store at
construction; the caller decides which credentials back each of them.
"""

from __future__ import annotations

from src.core.ports.db import ProjectRepoPort
from src.core.ports.storage import ObjectStorePort

__all__ = [
    "ObjectStorePort",
    "ProjectRepoPort",
]
