from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ProjectFileResponse(BaseModel):
    path: str
    filename: str
    language: str
    content: str
    size: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectFileCreate(BaseModel):
    path: str = Field(min_length=1, max_length=500)
    content: str = ""
    filename: str | None = None
    language: str | None = None

    @field_validator("path")
    @classmethod
    def strip_leading_slash(cls, value: str) -> str:
        value = value.strip().lstrip("/")
        if not value:
            raise ValueError("path must not be empty")
        return value


class UpdateProjectFilesRequest(BaseModel):
    files: list[ProjectFileCreate]
    version_message: str | None = None

    @field_validator("files")
    @classmethod
    def unique_paths(cls, value: list[ProjectFileCreate]) -> list[ProjectFileCreate]:
        paths = [f.path for f in value]
        if len(paths) != len(set(paths)):
            raise ValueError("file paths must be unique")
        return value
