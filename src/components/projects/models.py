"""
Projects component - Data models.

Inputs carry form attributes plus pending local uploads; outputs carry the
resulting record together with errors, warnings and any orphaned keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from src.core.entities import ProjectPayload, ProjectRecord

UploadRole = Literal["primary", "gallery"]

# --- Errors and Warnings ---


@dataclass(frozen=True)
class ProjectValidationError:
    """Project operation error with actionable message."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ProjectWarning:
    """Non-fatal problem encountered while completing an operation."""

    code: str
    message: str
    filename: str | None = None
    keys: tuple[str, ...] = ()


# --- Input Models ---


@dataclass(frozen=True)
class PendingUpload:
    """A selected local file that has not been uploaded yet."""

    filename: str
    data: bytes
    content_type: str = "application/octet-stream"
    role: UploadRole = "gallery"

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ProjectAttributes:
    """Free-text and category fields of a project form."""

    title: str
    description: str = ""
    kunde: str = ""
    datum: str = ""
    standort: str = ""
    flache: str = ""
    categories: tuple[str, ...] = ()

    @classmethod
    def from_record(cls, record: ProjectRecord) -> ProjectAttributes:
        return cls(
            title=record.title,
            description=record.description,
            kunde=record.kunde,
            datum=record.datum,
            standort=record.standort,
            flache=record.flache,
            categories=tuple(record.categories),
        )

    def to_payload(self, image: str | None, images: list[str]) -> ProjectPayload:
        return ProjectPayload(
            title=self.title,
            description=self.description,
            kunde=self.kunde,
            datum=self.datum,
            standort=self.standort,
            flache=self.flache,
            categories=list(self.categories),
            image=image,
            images=images,
        )


@dataclass(frozen=True)
class CreateProjectInput:
    """Input for creating a project."""

    attributes: ProjectAttributes
    primary: PendingUpload | None = None
    gallery: tuple[PendingUpload, ...] = ()


@dataclass(frozen=True)
class UpdateProjectInput:
    """
    Input for updating a project.

    primary=None keeps the current primary image; an empty gallery keeps the
    current gallery. Any gallery file replaces the whole gallery.
    """

    project_id: str
    attributes: ProjectAttributes
    primary: PendingUpload | None = None
    gallery: tuple[PendingUpload, ...] = ()


@dataclass(frozen=True)
class DeleteProjectInput:
    """Input for deleting a project."""

    project_id: str


@dataclass(frozen=True)
class GetProjectInput:
    """Input for getting a project."""

    project_id: str


@dataclass(frozen=True)
class ListProjectsInput:
    """Input for listing projects (newest first)."""


@dataclass(frozen=True)
class ProjectStatsInput:
    """Input for dashboard counters."""


# --- Output Models ---


@dataclass(frozen=True)
class ProjectOperationOutput:
    """Output from create, update and get."""

    project: ProjectRecord | None
    errors: tuple[ProjectValidationError, ...] = ()
    warnings: tuple[ProjectWarning, ...] = ()
    orphaned_keys: tuple[str, ...] = ()
    success: bool = True


@dataclass(frozen=True)
class DeleteProjectOutput:
    """Output from delete."""

    project_id: str
    removed_keys: tuple[str, ...] = ()
    already_absent: bool = False
    errors: tuple[ProjectValidationError, ...] = ()
    warnings: tuple[ProjectWarning, ...] = ()
    success: bool = True


@dataclass(frozen=True)
class ProjectListOutput:
    """Output from list operation."""

    items: list[ProjectRecord] = field(default_factory=list)
    total: int = 0
    errors: tuple[ProjectValidationError, ...] = ()
    success: bool = True


@dataclass(frozen=True)
class ProjectStatsOutput:
    """Dashboard counters."""

    total_projects: int = 0
    total_images: int = 0
    errors: tuple[ProjectValidationError, ...] = ()
    success: bool = True
