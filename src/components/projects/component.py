"""
Projects component - Project records and their stored images.

Handles project create, update, delete, get, list and dashboard counters.

Shell Layer - converts inputs to service calls and store errors to outputs.
"""

from __future__ import annotations

from src.core.ports.db import RecordNotFoundError, RecordStoreError
from src.rules.models import Rules

from ._impl import ProjectSyncService
from .models import (
    CreateProjectInput,
    DeleteProjectInput,
    DeleteProjectOutput,
    GetProjectInput,
    ListProjectsInput,
    ProjectListOutput,
    ProjectOperationOutput,
    ProjectStatsInput,
    ProjectStatsOutput,
    ProjectValidationError,
    UpdateProjectInput,
)
from .ports import ObjectStorePort, ProjectRepoPort

# --- Shell Layer Functions ---


async def run_create(
    input_data: CreateProjectInput,
    service: ProjectSyncService,
) -> ProjectOperationOutput:
    """Create a project, uploading its primary image and gallery."""
    return await service.create(
        input_data.attributes,
        input_data.primary,
        input_data.gallery,
    )


async def run_update(
    input_data: UpdateProjectInput,
    service: ProjectSyncService,
) -> ProjectOperationOutput:
    """Update a project, replacing only the image fields with new selections."""
    return await service.update(
        input_data.project_id,
        input_data.attributes,
        input_data.primary,
        input_data.gallery,
    )


async def run_delete(
    input_data: DeleteProjectInput,
    service: ProjectSyncService,
) -> DeleteProjectOutput:
    """Delete a project and its stored images. Idempotent."""
    return await service.delete(input_data.project_id)


async def run_get(
    input_data: GetProjectInput,
    service: ProjectSyncService,
) -> ProjectOperationOutput:
    """Get a project by ID."""
    try:
        project = await service.get(input_data.project_id)
    except RecordNotFoundError:
        return ProjectOperationOutput(
            project=None,
            errors=(
                ProjectValidationError(
                    code="not_found",
                    message=f"Project {input_data.project_id} not found",
                    field="project_id",
                ),
            ),
            success=False,
        )
    except RecordStoreError as e:
        return ProjectOperationOutput(
            project=None,
            errors=(ProjectValidationError(code="record_store_error", message=str(e)),),
            success=False,
        )

    return ProjectOperationOutput(project=project)


async def run_list(
    input_data: ListProjectsInput,
    service: ProjectSyncService,
) -> ProjectListOutput:
    """List all projects, newest first."""
    try:
        items = await service.list_all()
    except RecordStoreError as e:
        return ProjectListOutput(
            errors=(ProjectValidationError(code="record_store_error", message=str(e)),),
            success=False,
        )
    return ProjectListOutput(items=items, total=len(items))


async def run_stats(
    input_data: ProjectStatsInput,
    service: ProjectSyncService,
) -> ProjectStatsOutput:
    """Count projects and referenced images."""
    listing = await run_list(ListProjectsInput(), service)
    if not listing.success:
        return ProjectStatsOutput(errors=listing.errors, success=False)

    total_images = sum(len(project.image_urls()) for project in listing.items)
    return ProjectStatsOutput(total_projects=listing.total, total_images=total_images)


async def run(
    inp: (
        CreateProjectInput
        | UpdateProjectInput
        | DeleteProjectInput
        | GetProjectInput
        | ListProjectsInput
        | ProjectStatsInput
    ),
    service: ProjectSyncService,
) -> ProjectOperationOutput | DeleteProjectOutput | ProjectListOutput | ProjectStatsOutput:
    """
    Main entry point for the projects component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, CreateProjectInput):
        return await run_create(inp, service)
    elif isinstance(inp, UpdateProjectInput):
        return await run_update(inp, service)
    elif isinstance(inp, DeleteProjectInput):
        return await run_delete(inp, service)
    elif isinstance(inp, GetProjectInput):
        return await run_get(inp, service)
    elif isinstance(inp, ListProjectsInput):
        return await run_list(inp, service)
    elif isinstance(inp, ProjectStatsInput):
        return await run_stats(inp, service)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")


def create_project_service(
    repo: ProjectRepoPort,
    objects: ObjectStorePort,
    rules: Rules | None = None,
) -> ProjectSyncService:
    """
    Factory function to create a project service.

    Args:
        repo: Record store the service writes project rows to.
        objects: Object store holding the images.
        rules: Optional rules; defaults apply when omitted.

    Returns:
        Configured ProjectSyncService.
    """
    return ProjectSyncService(repo=repo, objects=objects, rules=rules)
