"""
Projects API routes.

Multipart create and update, plus listing, edit-load, stats and delete.
"""

from collections.abc import Iterable, Sequence

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from src.api.deps import get_project_service
from src.api.schemas import (
    ErrorDetail,
    ErrorResponse,
    ProjectDeleteResponse,
    ProjectMutationResponse,
    ProjectResponse,
    ProjectStatsResponse,
    WarningModel,
)
from src.components.projects import (
    CreateProjectInput,
    DeleteProjectInput,
    GetProjectInput,
    ListProjectsInput,
    PendingUpload,
    ProjectAttributes,
    ProjectOperationOutput,
    ProjectStatsInput,
    ProjectSyncService,
    ProjectValidationError,
    ProjectWarning,
    UpdateProjectInput,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_stats,
    run_update,
)

router = APIRouter()

_STATUS_BY_CODE = {
    "not_found": 404,
    "upload_failed": 502,
    "record_store_error": 502,
}


def _raise_for_errors(
    errors: Sequence[ProjectValidationError],
    orphaned_keys: Iterable[str] = (),
) -> None:
    status_code = max(_STATUS_BY_CODE.get(e.code, 400) for e in errors)
    body = ErrorResponse(
        errors=[ErrorDetail(code=e.code, message=e.message, field=e.field) for e in errors],
        orphaned_keys=list(orphaned_keys),
    )
    raise HTTPException(status_code=status_code, detail=body.model_dump())


def _warnings(warnings: Iterable[ProjectWarning]) -> list[WarningModel]:
    return [WarningModel.model_validate(w) for w in warnings]


def _mutation_response(result: ProjectOperationOutput) -> ProjectMutationResponse:
    if not result.success or result.project is None:
        _raise_for_errors(result.errors, result.orphaned_keys)
    return ProjectMutationResponse(
        project=ProjectResponse.model_validate(result.project),
        warnings=_warnings(result.warnings),
    )


async def _read_upload(file: UploadFile | None, role: str) -> PendingUpload | None:
    # Browsers send an empty part when no file was chosen
    if file is None or not file.filename:
        return None
    return PendingUpload(
        filename=file.filename,
        data=await file.read(),
        content_type=file.content_type or "application/octet-stream",
        role="primary" if role == "primary" else "gallery",
    )


async def _read_gallery(files: list[UploadFile]) -> tuple[PendingUpload, ...]:
    uploads = []
    for file in files:
        upload = await _read_upload(file, "gallery")
        if upload is not None:
            uploads.append(upload)
    return tuple(uploads)


def _attributes(
    title: str,
    description: str,
    kunde: str,
    datum: str,
    standort: str,
    flache: str,
    categories: list[str],
) -> ProjectAttributes:
    return ProjectAttributes(
        title=title,
        description=description,
        kunde=kunde,
        datum=datum,
        standort=standort,
        flache=flache,
        categories=tuple(categories),
    )


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    service: ProjectSyncService = Depends(get_project_service),
) -> list[ProjectResponse]:
    """List all projects, newest first."""
    result = await run_list(ListProjectsInput(), service)
    if not result.success:
        _raise_for_errors(result.errors)
    return [ProjectResponse.model_validate(p) for p in result.items]


@router.get("/stats", response_model=ProjectStatsResponse)
async def project_stats(
    service: ProjectSyncService = Depends(get_project_service),
) -> ProjectStatsResponse:
    """Dashboard counters."""
    result = await run_stats(ProjectStatsInput(), service)
    if not result.success:
        _raise_for_errors(result.errors)
    return ProjectStatsResponse(
        total_projects=result.total_projects,
        total_images=result.total_images,
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    service: ProjectSyncService = Depends(get_project_service),
) -> ProjectResponse:
    """Load a project for editing."""
    result = await run_get(GetProjectInput(project_id=project_id), service)
    if not result.success or result.project is None:
        _raise_for_errors(result.errors)
    return ProjectResponse.model_validate(result.project)


@router.post("", response_model=ProjectMutationResponse, status_code=201)
async def create_project(
    title: str = Form(""),
    description: str = Form(""),
    kunde: str = Form(""),
    datum: str = Form(""),
    standort: str = Form(""),
    flache: str = Form(""),
    categories: list[str] = Form([]),
    image: UploadFile | None = File(None),
    images: list[UploadFile] = File([]),
    service: ProjectSyncService = Depends(get_project_service),
) -> ProjectMutationResponse:
    """Create a project from a multipart form."""
    inp = CreateProjectInput(
        attributes=_attributes(title, description, kunde, datum, standort, flache, categories),
        primary=await _read_upload(image, "primary"),
        gallery=await _read_gallery(images),
    )
    return _mutation_response(await run_create(inp, service))


@router.put("/{project_id}", response_model=ProjectMutationResponse)
async def update_project(
    project_id: str,
    title: str = Form(""),
    description: str = Form(""),
    kunde: str = Form(""),
    datum: str = Form(""),
    standort: str = Form(""),
    flache: str = Form(""),
    categories: list[str] = Form([]),
    image: UploadFile | None = File(None),
    images: list[UploadFile] = File([]),
    service: ProjectSyncService = Depends(get_project_service),
) -> ProjectMutationResponse:
    """
    Replace a project's fields.

    Omitting image keeps the current primary image; sending any images
    replaces the whole gallery.
    """
    inp = UpdateProjectInput(
        project_id=project_id,
        attributes=_attributes(title, description, kunde, datum, standort, flache, categories),
        primary=await _read_upload(image, "primary"),
        gallery=await _read_gallery(images),
    )
    return _mutation_response(await run_update(inp, service))


@router.delete("/{project_id}", response_model=ProjectDeleteResponse)
async def delete_project(
    project_id: str,
    service: ProjectSyncService = Depends(get_project_service),
) -> ProjectDeleteResponse:
    """Delete a project and its images. Deleting a missing project succeeds."""
    result = await run_delete(DeleteProjectInput(project_id=project_id), service)
    if not result.success:
        _raise_for_errors(result.errors)
    return ProjectDeleteResponse(
        project_id=result.project_id,
        already_absent=result.already_absent,
        removed_keys=list(result.removed_keys),
        warnings=_warnings(result.warnings),
    )
