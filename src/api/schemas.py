from datetime import datetime

from pydantic import BaseModel, ConfigDict


# --- Projects ---
class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str = ""
    kunde: str = ""
    datum: str = ""
    standort: str = ""
    flache: str = ""
    categories: list[str] = []
    image: str | None = None
    images: list[str] = []
    created_at: datetime


class WarningModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    filename: str | None = None
    keys: list[str] = []


class ProjectMutationResponse(BaseModel):
    project: ProjectResponse
    warnings: list[WarningModel] = []


class ProjectDeleteResponse(BaseModel):
    project_id: str
    already_absent: bool = False
    removed_keys: list[str] = []
    warnings: list[WarningModel] = []


class ProjectStatsResponse(BaseModel):
    total_projects: int
    total_images: int


# --- Errors ---
class ErrorDetail(BaseModel):
    code: str
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    errors: list[ErrorDetail]
    orphaned_keys: list[str] = []
