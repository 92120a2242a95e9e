"""
ProjectSyncService - keeps project image URLs and stored objects in step.

Functional core of the projects component. Orchestrates one record store and
one object store through create, update and delete.

Ordering:
- Validation runs before any I/O; a failed validation has no side effects
- Uploads happen before the record write; a failed record write leaves the
  new uploads orphaned (reported, never retried or auto-deleted)
- Objects replaced by an update are deleted only after the record update
  succeeded, so the stored record never points at a deleted object
- Delete removes objects first, then the record; cleanup failures are
  warnings, the record delete decides success

Invariants:
- A primary-image upload failure aborts the operation
- A gallery upload failure skips that file and becomes a warning
- Gallery results keep the original selection order
- Any new gallery file replaces the whole gallery; no merge
- No automatic retry
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Iterable, Sequence

from src.core.entities import ProjectRecord
from src.core.ports.db import ProjectRepoPort, RecordNotFoundError, RecordStoreError
from src.core.ports.storage import ObjectStorePort, StorageError, UploadError
from src.core.services.paths import file_extension, key_from_public_url, new_key
from src.rules.models import ProjectRules, Rules, UploadsRules

from .models import (
    DeleteProjectOutput,
    PendingUpload,
    ProjectAttributes,
    ProjectOperationOutput,
    ProjectValidationError,
    ProjectWarning,
)

logger = logging.getLogger(__name__)


# --- Validation Functions ---


def validate_attributes(
    attributes: ProjectAttributes,
    rules: ProjectRules,
) -> list[ProjectValidationError]:
    """Validate form attributes."""
    errors: list[ProjectValidationError] = []

    title = attributes.title.strip() if attributes.title else ""
    if not title:
        errors.append(
            ProjectValidationError(
                code="title_required",
                message="Title is required",
                field="title",
            )
        )
    elif len(title) > rules.title_max_length:
        errors.append(
            ProjectValidationError(
                code="title_too_long",
                message=f"Title must be {rules.title_max_length} characters or less",
                field="title",
            )
        )

    allowed = set(rules.category_ids())
    unknown = [c for c in attributes.categories if c not in allowed]
    if unknown:
        errors.append(
            ProjectValidationError(
                code="invalid_category",
                message=(
                    f"Unknown categor{'y' if len(unknown) == 1 else 'ies'}: "
                    f"{', '.join(unknown)}. Allowed: {', '.join(rules.category_ids())}"
                ),
                field="categories",
            )
        )

    return errors


def validate_upload(
    upload: PendingUpload,
    rules: UploadsRules,
) -> list[ProjectValidationError]:
    """Validate one selected file against the upload allowlists."""
    errors: list[ProjectValidationError] = []
    field_name = "image" if upload.role == "primary" else "images"

    ext = file_extension(upload.filename)
    allowed_ext = {e.lower() for e in rules.allowlist_extensions}
    if f".{ext}" not in allowed_ext:
        errors.append(
            ProjectValidationError(
                code="invalid_extension",
                message=f"Extension of '{upload.filename}' is not allowed.",
                field=field_name,
            )
        )

    if upload.content_type not in rules.allowlist_mime_types:
        errors.append(
            ProjectValidationError(
                code="invalid_mime_type",
                message=(
                    f"MIME type '{upload.content_type}' of '{upload.filename}' is not allowed. "
                    f"Allowed types: {', '.join(sorted(set(rules.allowlist_mime_types)))}"
                ),
                field=field_name,
            )
        )

    if upload.size_bytes == 0:
        errors.append(
            ProjectValidationError(
                code="file_empty",
                message=f"File '{upload.filename}' is empty.",
                field=field_name,
            )
        )
    elif upload.size_bytes > rules.max_upload_bytes:
        errors.append(
            ProjectValidationError(
                code="file_too_large",
                message=(
                    f"File '{upload.filename}' has {upload.size_bytes} bytes, "
                    f"exceeds maximum of {rules.max_upload_bytes} bytes"
                ),
                field=field_name,
            )
        )

    return errors


def normalize_attributes(attributes: ProjectAttributes) -> ProjectAttributes:
    """Trim the title and drop duplicate categories, keeping first occurrence."""
    return dataclasses.replace(
        attributes,
        title=attributes.title.strip(),
        categories=tuple(dict.fromkeys(attributes.categories)),
    )


def _missing_primary_error() -> ProjectValidationError:
    return ProjectValidationError(
        code="missing_primary_image",
        message="A primary image is required",
        field="image",
    )


def _record_store_error(exc: RecordStoreError) -> ProjectValidationError:
    if isinstance(exc, RecordNotFoundError):
        return ProjectValidationError(code="not_found", message=str(exc), field="project_id")
    return ProjectValidationError(code="record_store_error", message=str(exc))


# --- Service ---


class ProjectSyncService:
    """
    Asset lifecycle synchronizer for project records.

    Receives its record store and object store by injection.
    """

    def __init__(
        self,
        repo: ProjectRepoPort,
        objects: ObjectStorePort,
        rules: Rules | None = None,
    ) -> None:
        self.repo = repo
        self.objects = objects
        self.rules = rules or Rules()

    # --- Path helpers ---

    def key_for(self, url: str | None) -> str | None:
        """Storage key for a public URL in this store's bucket, or None."""
        return key_from_public_url(
            url,
            self.objects.bucket,
            public_path_prefix=self.rules.storage.public_path_prefix,
        )

    # --- Validation ---

    def validate(
        self,
        attributes: ProjectAttributes,
        primary: PendingUpload | None,
        gallery: Sequence[PendingUpload],
    ) -> list[ProjectValidationError]:
        errors = validate_attributes(attributes, self.rules.projects)
        for upload in ([primary] if primary else []) + list(gallery):
            errors.extend(validate_upload(upload, self.rules.uploads))
        return errors

    # --- Reads ---

    async def get(self, project_id: str) -> ProjectRecord:
        """
        Load a project for editing.

        Raises:
            RecordNotFoundError: project does not exist
            RecordStoreError: store failure
        """
        record = await self.repo.get_by_id(project_id)
        if record is None:
            raise RecordNotFoundError(project_id)
        return record

    async def list_all(self) -> list[ProjectRecord]:
        return await self.repo.list_all()

    # --- Uploads ---

    async def _upload(self, upload: PendingUpload) -> tuple[str, str]:
        """Upload one file under a fresh key. Returns (key, public_url)."""
        key = new_key(upload.filename)
        try:
            url = await self.objects.upload(key, upload.data, content_type=upload.content_type)
        except UploadError as e:
            raise UploadError(key, e.reason, filename=upload.filename) from e
        return key, url

    async def _upload_gallery(
        self,
        files: Sequence[PendingUpload],
    ) -> tuple[list[str], list[str], list[ProjectWarning]]:
        """
        Upload gallery files concurrently.

        Returns (keys, urls, warnings) in selection order; failed files are
        skipped with a warning.
        """
        semaphore = asyncio.Semaphore(self.rules.storage.max_parallel_uploads)

        async def upload_one(upload: PendingUpload) -> tuple[str, str]:
            async with semaphore:
                return await self._upload(upload)

        results = await asyncio.gather(
            *(upload_one(upload) for upload in files),
            return_exceptions=True,
        )

        keys: list[str] = []
        urls: list[str] = []
        warnings: list[ProjectWarning] = []
        for upload, result in zip(files, results, strict=True):
            if isinstance(result, Exception):
                reason = result.reason if isinstance(result, UploadError) else repr(result)
                logger.warning("Skipping gallery image %s: %s", upload.filename, reason)
                warnings.append(
                    ProjectWarning(
                        code="gallery_upload_failed",
                        message=f"Failed to upload {upload.filename}: {reason}",
                        filename=upload.filename,
                    )
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                key, url = result
                keys.append(key)
                urls.append(url)
        return keys, urls, warnings

    # --- Cleanup ---

    async def _remove_best_effort(self, keys: Iterable[str], reason: str) -> list[ProjectWarning]:
        """Delete objects; any failure becomes a warning."""
        key_set = frozenset(keys)
        if not key_set:
            return []

        try:
            result = await self.objects.remove(key_set)
            failed = result.failed_keys
            detail = "object store reported failures"
        except StorageError as e:
            failed = key_set
            detail = str(e)

        if not failed:
            logger.info("Removed %d object(s) (%s)", len(key_set), reason)
            return []

        logger.warning(
            "Could not remove %d object(s) (%s): %s", len(failed), reason, sorted(failed)
        )
        return [
            ProjectWarning(
                code="storage_delete_failed",
                message=f"Could not delete {len(failed)} stored image(s) ({reason}): {detail}",
                keys=tuple(sorted(failed)),
            )
        ]

    def _resolve_keys(self, urls: Iterable[str]) -> tuple[list[str], list[ProjectWarning]]:
        keys: list[str] = []
        warnings: list[ProjectWarning] = []
        for url in urls:
            key = self.key_for(url)
            if key is None:
                logger.warning("Cannot derive storage key from URL %r; skipping", url)
                warnings.append(
                    ProjectWarning(
                        code="unresolvable_url",
                        message=f"Cannot derive storage key from URL: {url}",
                    )
                )
            else:
                keys.append(key)
        return keys, warnings

    # --- Create ---

    async def create(
        self,
        attributes: ProjectAttributes,
        primary: PendingUpload | None,
        gallery: Sequence[PendingUpload] = (),
    ) -> ProjectOperationOutput:
        errors = self.validate(attributes, primary, gallery)
        if primary is None and self.rules.projects.require_primary_image:
            errors.append(_missing_primary_error())
        if errors:
            return ProjectOperationOutput(project=None, errors=tuple(errors), success=False)

        attributes = normalize_attributes(attributes)
        uploaded_keys: list[str] = []
        warnings: list[ProjectWarning] = []

        primary_url: str | None = None
        if primary is not None:
            try:
                key, primary_url = await self._upload(primary)
            except UploadError as e:
                logger.error("Primary image upload failed: %s", e)
                return ProjectOperationOutput(
                    project=None,
                    errors=(ProjectValidationError("upload_failed", str(e), "image"),),
                    success=False,
                )
            uploaded_keys.append(key)

        gallery_keys, gallery_urls, gallery_warnings = await self._upload_gallery(gallery)
        uploaded_keys.extend(gallery_keys)
        warnings.extend(gallery_warnings)

        payload = attributes.to_payload(primary_url, gallery_urls)
        try:
            record = await self.repo.insert(payload)
        except RecordStoreError as e:
            logger.warning(
                "Insert failed; %d uploaded object(s) left orphaned: %s",
                len(uploaded_keys),
                uploaded_keys,
            )
            return ProjectOperationOutput(
                project=None,
                errors=(_record_store_error(e),),
                warnings=tuple(warnings),
                orphaned_keys=tuple(uploaded_keys),
                success=False,
            )

        logger.info(
            "Created project %s with %d gallery image(s)", record.id, len(record.images)
        )
        return ProjectOperationOutput(project=record, warnings=tuple(warnings))

    # --- Update ---

    async def update(
        self,
        project_id: str,
        attributes: ProjectAttributes,
        primary: PendingUpload | None = None,
        gallery: Sequence[PendingUpload] = (),
    ) -> ProjectOperationOutput:
        errors = self.validate(attributes, primary, gallery)
        if errors:
            return ProjectOperationOutput(project=None, errors=tuple(errors), success=False)

        try:
            existing = await self.get(project_id)
        except RecordStoreError as e:
            return ProjectOperationOutput(
                project=None, errors=(_record_store_error(e),), success=False
            )

        if primary is None and not existing.image and self.rules.projects.require_primary_image:
            return ProjectOperationOutput(
                project=None, errors=(_missing_primary_error(),), success=False
            )

        attributes = normalize_attributes(attributes)
        uploaded_keys: list[str] = []
        warnings: list[ProjectWarning] = []
        replaced_primary: list[str] = []
        replaced_gallery: list[str] = []

        image = existing.image
        if primary is not None:
            try:
                key, image = await self._upload(primary)
            except UploadError as e:
                logger.error("Primary image upload failed for project %s: %s", project_id, e)
                return ProjectOperationOutput(
                    project=None,
                    errors=(ProjectValidationError("upload_failed", str(e), "image"),),
                    success=False,
                )
            uploaded_keys.append(key)
            if existing.image:
                replaced_primary.append(existing.image)

        images = list(existing.images)
        if gallery:
            gallery_keys, images, gallery_warnings = await self._upload_gallery(gallery)
            uploaded_keys.extend(gallery_keys)
            warnings.extend(gallery_warnings)
            replaced_gallery.extend(existing.images)

        payload = attributes.to_payload(image, images)
        try:
            await self.repo.update(project_id, payload)
        except RecordStoreError as e:
            logger.warning(
                "Update of project %s failed; %d uploaded object(s) left orphaned: %s",
                project_id,
                len(uploaded_keys),
                uploaded_keys,
            )
            return ProjectOperationOutput(
                project=None,
                errors=(_record_store_error(e),),
                warnings=tuple(warnings),
                orphaned_keys=tuple(uploaded_keys),
                success=False,
            )

        # Never delete an object the new payload still references
        still_referenced = set(payload.image_urls())
        cleanups = (
            (replaced_primary, "replaced primary image"),
            (replaced_gallery, "replaced gallery"),
        )
        for urls, reason in cleanups:
            stale = [u for u in urls if u not in still_referenced]
            keys, resolve_warnings = self._resolve_keys(stale)
            warnings.extend(resolve_warnings)
            warnings.extend(await self._remove_best_effort(keys, reason))

        record = ProjectRecord(
            id=existing.id,
            created_at=existing.created_at,
            **payload.model_dump(),
        )
        logger.info("Updated project %s", project_id)
        return ProjectOperationOutput(project=record, warnings=tuple(warnings))

    # --- Delete ---

    async def delete(self, project_id: str) -> DeleteProjectOutput:
        try:
            record = await self.repo.get_by_id(project_id)
        except RecordStoreError as e:
            return DeleteProjectOutput(
                project_id=project_id, errors=(_record_store_error(e),), success=False
            )

        if record is None:
            logger.info("Project %s already absent; nothing to delete", project_id)
            return DeleteProjectOutput(project_id=project_id, already_absent=True)

        keys, warnings = self._resolve_keys(record.image_urls())
        keys = list(dict.fromkeys(keys))
        warnings.extend(await self._remove_best_effort(keys, f"project {project_id} deleted"))
        failed = {k for w in warnings for k in w.keys}

        try:
            await self.repo.delete(project_id)
        except RecordNotFoundError:
            logger.info("Project %s vanished before record delete", project_id)
        except RecordStoreError as e:
            logger.error("Record delete failed for project %s: %s", project_id, e)
            return DeleteProjectOutput(
                project_id=project_id,
                errors=(_record_store_error(e),),
                warnings=tuple(warnings),
                success=False,
            )

        logger.info("Deleted project %s and %d object(s)", project_id, len(keys) - len(failed))
        return DeleteProjectOutput(
            project_id=project_id,
            removed_keys=tuple(k for k in keys if k not in failed),
            warnings=tuple(warnings),
        )
