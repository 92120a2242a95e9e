from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from types import TracebackType

from src.components.projects import (
    CreateProjectInput,
    PendingUpload,
    ProjectAttributes,
    ProjectOperationOutput,
    ProjectSyncService,
    UpdateProjectInput,
    run_create,
    run_update,
)
from src.core.entities import ProjectRecord
from src.core.ports.previews import PreviewHandle, PreviewPort

logger = logging.getLogger(__name__)


class FieldIntent(str, Enum):
    KEEP = "keep"
    REPLACE = "replace"
    REPLACE_ALL = "replace_all"


@dataclass(frozen=True)
class SelectedFile:
    upload: PendingUpload
    preview: PreviewHandle


@dataclass
class EditSession:
    """
    Form state for one create or edit of a project.

    Selecting nothing for a field keeps its persisted value. Any gallery
    selection replaces the whole gallery. Every preview handle acquired here
    is released on deselect, on replace, and when the session closes.
    """

    previews: PreviewPort
    attributes: ProjectAttributes
    project_id: str | None = None
    existing_image: str | None = None
    existing_images: tuple[str, ...] = ()
    primary: SelectedFile | None = None
    gallery: list[SelectedFile] = field(default_factory=list)
    closed: bool = False

    @classmethod
    def blank(cls, previews: PreviewPort) -> EditSession:
        return cls(previews=previews, attributes=ProjectAttributes(title=""))

    @classmethod
    def for_record(cls, record: ProjectRecord, previews: PreviewPort) -> EditSession:
        return cls(
            previews=previews,
            attributes=ProjectAttributes.from_record(record),
            project_id=record.id,
            existing_image=record.image,
            existing_images=tuple(record.images),
        )

    @property
    def is_new(self) -> bool:
        return self.project_id is None

    @property
    def primary_intent(self) -> FieldIntent:
        return FieldIntent.REPLACE if self.primary else FieldIntent.KEEP

    @property
    def gallery_intent(self) -> FieldIntent:
        return FieldIntent.REPLACE_ALL if self.gallery else FieldIntent.KEEP

    def preview_uris(self) -> list[str]:
        selected = ([self.primary] if self.primary else []) + self.gallery
        return [f.preview.uri for f in selected]

    def _check_open(self) -> None:
        if self.closed:
            raise RuntimeError("Edit session is closed")

    def _select(self, upload: PendingUpload) -> SelectedFile:
        return SelectedFile(upload, self.previews.acquire(upload.filename, upload.data))

    def _release(self, selected: SelectedFile) -> None:
        self.previews.release(selected.preview)

    # --- Field edits ---

    def set_attributes(self, attributes: ProjectAttributes) -> None:
        self._check_open()
        self.attributes = attributes

    def select_primary(self, upload: PendingUpload | None) -> None:
        """Replace the pending primary file. None reverts to the persisted image."""
        self._check_open()
        if self.primary is not None:
            self._release(self.primary)
            self.primary = None
        if upload is not None:
            self.primary = self._select(dataclasses.replace(upload, role="primary"))

    def clear_primary(self) -> None:
        self.select_primary(None)

    def select_gallery(self, uploads: Iterable[PendingUpload] | None) -> None:
        """Replace the pending gallery. None or an empty selection keeps the persisted one."""
        self._check_open()
        self._release_gallery()
        for upload in uploads or ():
            self.gallery.append(self._select(dataclasses.replace(upload, role="gallery")))

    def remove_gallery_file(self, index: int) -> None:
        self._check_open()
        selected = self.gallery.pop(index)
        self._release(selected)

    def _release_gallery(self) -> None:
        while self.gallery:
            self._release(self.gallery.pop())

    # --- Submit ---

    def build_input(self) -> CreateProjectInput | UpdateProjectInput:
        primary = self.primary.upload if self.primary else None
        gallery = tuple(f.upload for f in self.gallery)
        if self.project_id is None:
            return CreateProjectInput(attributes=self.attributes, primary=primary, gallery=gallery)
        return UpdateProjectInput(
            project_id=self.project_id,
            attributes=self.attributes,
            primary=primary,
            gallery=gallery,
        )

    async def submit(self, service: ProjectSyncService) -> ProjectOperationOutput:
        """
        Run create or update for this session.

        A successful submit closes the session. A failed one leaves the
        selections in place so the form can be corrected and resubmitted.
        """
        self._check_open()
        inp = self.build_input()
        if isinstance(inp, CreateProjectInput):
            output = await run_create(inp, service)
        else:
            output = await run_update(inp, service)

        if output.success:
            self.close()
        else:
            logger.info("Submit failed: %s", ", ".join(e.code for e in output.errors))
        return output

    # --- Teardown ---

    def close(self) -> None:
        if self.closed:
            return
        if self.primary is not None:
            self._release(self.primary)
            self.primary = None
        self._release_gallery()
        self.closed = True

    def __enter__(self) -> EditSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
