import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from vibecode.models.usage_account import PlanType


class AccountCreate(BaseModel):
    full_name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=1000)
    bio: str | None = Field(default=None, max_length=500)


class PlanUpdate(BaseModel):
    plan_type: PlanType
    subscription_id: str | None = None


class UsageResponse(BaseModel):
    user_id: uuid.UUID
    plan_type: str
    token_quota: int
    tokens_used: int
    remaining_tokens: int
    quota_reset_at: datetime

    model_config = {"from_attributes": True}


class AccountResponse(UsageResponse):
    full_name: str | None
    avatar_url: str | None
    bio: str | None
    subscription_id: str | None
    roles: list[str]
    created_at: datetime
    updated_at: datetime
