import uuid

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    project_id: uuid.UUID
    prompt: str = Field(min_length=1)


class GenerateResponse(BaseModel):
    project_id: uuid.UUID
    success: bool
    message: str
    tokens_charged: int = 0
    version_number: int | None = None
