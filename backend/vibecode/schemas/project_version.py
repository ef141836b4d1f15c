from datetime import datetime

from pydantic import BaseModel

from vibecode.schemas.project_file import ProjectFileResponse


class ProjectVersionResponse(BaseModel):
    version_number: int
    message: str
    created_at: datetime
    files: list[ProjectFileResponse] = []

    model_config = {"from_attributes": True}


class ProjectVersionListItem(BaseModel):
    version_number: int
    message: str
    created_at: datetime

    model_config = {"from_attributes": True}


class RollbackRequest(BaseModel):
    message: str | None = None
