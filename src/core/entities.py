"""
Domain entities for the project admin.

- ProjectRecord: one project row held in the record store
- ProjectPayload: the writable part of a record (full-record replace semantics)

Invariants:
- id and created_at are assigned by the record store and never rewritten
- every non-null URL in image/images references an object in the bucket
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

__all__ = [
    "DEFAULT_CATEGORIES",
    "ProjectPayload",
    "ProjectRecord",
]

DEFAULT_CATEGORIES: dict[str, str] = {
    "energiestationen": "ENERGIESTATIONEN",
    "fassaden": "FASSADEN",
    "innenraume": "INNENRÄUME",
    "objekte": "OBJEKTE",
    "leinwande": "LEINWÄNDE",
}


class ProjectPayload(BaseModel):
    """
    Writable project fields.

    Sent as a whole on insert and update; there is no partial-field patch.
    """

    title: str
    description: str = ""
    kunde: str = ""
    datum: str = ""
    standort: str = ""
    flache: str = ""
    categories: list[str] = Field(default_factory=list)
    image: str | None = None
    images: list[str] = Field(default_factory=list)

    def image_urls(self) -> list[str]:
        """All non-null image URLs, primary first."""
        urls = [self.image] if self.image else []
        urls.extend(url for url in self.images if url)
        return urls


class ProjectRecord(ProjectPayload):
    """A persisted project."""

    id: str
    created_at: datetime

    def to_payload(self) -> ProjectPayload:
        return ProjectPayload.model_validate(self.model_dump(exclude={"id", "created_at"}))
