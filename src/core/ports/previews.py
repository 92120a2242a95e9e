"""
Preview Port.

Local preview resources for files selected in an edit session but not yet
uploaded. Every acquired handle must be released exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PreviewHandle:
    """Opaque handle to a local preview resource."""

    handle_id: str
    uri: str


class PreviewPort(Protocol):
    def acquire(self, filename: str, data: bytes) -> PreviewHandle:
        """Create a preview for the given file contents."""
        ...

    def release(self, handle: PreviewHandle) -> None:
        """Release a preview. Releasing an unknown handle is a no-op."""
        ...
