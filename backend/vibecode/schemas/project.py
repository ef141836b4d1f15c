import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from vibecode.models.project import Visibility
from vibecode.schemas.project_file import ProjectFileResponse


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    tech_stack: list[str] = []
    tags: list[str] = []
    visibility: Visibility = Visibility.PRIVATE


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    tech_stack: list[str] | None = None
    tags: list[str] | None = None
    visibility: Visibility | None = None


class ProjectResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    description: str | None
    tech_stack: list[str]
    tags: list[str]
    visibility: str
    parent_project_id: uuid.UUID | None
    forked_from_user_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectFilesResponse(BaseModel):
    project_id: uuid.UUID
    version_number: int
    files: list[ProjectFileResponse]
