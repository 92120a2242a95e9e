from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.entities import DEFAULT_CATEGORIES
from src.core.services.paths import DEFAULT_PUBLIC_PATH_PREFIX


class StorageRules(BaseModel):
    bucket: str = "project-images"
    public_path_prefix: str = DEFAULT_PUBLIC_PATH_PREFIX
    max_parallel_uploads: int = Field(default=4, ge=1)

    @field_validator("bucket")
    @classmethod
    def bucket_is_single_segment(cls, value: str) -> str:
        if not value or "/" in value:
            raise ValueError("bucket must be a non-empty name without '/'")
        return value


class UploadsRules(BaseModel):
    max_upload_bytes: int = 10_000_000
    allowlist_mime_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/gif", "image/webp"]
    )
    allowlist_extensions: list[str] = Field(
        default_factory=lambda: [".jpeg", ".jpg", ".png", ".gif", ".webp"]
    )


class CategoryRule(BaseModel):
    id: str
    label: str


class ProjectRules(BaseModel):
    categories: list[CategoryRule] = Field(
        default_factory=lambda: [
            CategoryRule(id=cid, label=label) for cid, label in DEFAULT_CATEGORIES.items()
        ]
    )
    title_max_length: int = 200
    require_primary_image: bool = True

    def category_ids(self) -> list[str]:
        return [c.id for c in self.categories]


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    storage: StorageRules = Field(default_factory=StorageRules)
    uploads: UploadsRules = Field(default_factory=UploadsRules)
    projects: ProjectRules = Field(default_factory=ProjectRules)
    ops: OpsRules = Field(default_factory=OpsRules)
