"""
Projects component - Project records and the lifecycle of their images.
"""

from ._impl import (
    ProjectSyncService,
    normalize_attributes,
    validate_attributes,
    validate_upload,
)
from .component import (
    create_project_service,
    run,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_stats,
    run_update,
)
from .models import (
    CreateProjectInput,
    DeleteProjectInput,
    DeleteProjectOutput,
    GetProjectInput,
    ListProjectsInput,
    PendingUpload,
    ProjectAttributes,
    ProjectListOutput,
    ProjectOperationOutput,
    ProjectStatsInput,
    ProjectStatsOutput,
    ProjectValidationError,
    ProjectWarning,
    UpdateProjectInput,
    UploadRole,
)
from .ports import ObjectStorePort, ProjectRepoPort

__all__ = [
    # Entry points
    "run",
    "run_create",
    "run_delete",
    "run_get",
    "run_list",
    "run_stats",
    "run_update",
    # Service
    "ProjectSyncService",
    "create_project_service",
    # Helper functions
    "normalize_attributes",
    "validate_attributes",
    "validate_upload",
    # Input models
    "CreateProjectInput",
    "DeleteProjectInput",
    "GetProjectInput",
    "ListProjectsInput",
    "PendingUpload",
    "ProjectAttributes",
    "ProjectStatsInput",
    "UpdateProjectInput",
    "UploadRole",
    # Output models
    "DeleteProjectOutput",
    "ProjectListOutput",
    "ProjectOperationOutput",
    "ProjectStatsOutput",
    "ProjectValidationError",
    "ProjectWarning",
    # Ports
    "ObjectStorePort",
    "ProjectRepoPort",
]
