import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vibecode.auth.dependencies import CurrentUser
from vibecode.dependencies import get_db
from vibecode.errors import AccessDenied
from vibecode.schemas.usage import AccountCreate, AccountResponse, PlanUpdate, UsageResponse
from vibecode.services import usage_service

router = APIRouter(prefix="/api/v1/users", tags=["usage"])


def _require_self(user_id: uuid.UUID, caller: uuid.UUID) -> None:
    if user_id != caller:
        raise AccessDenied("callers may only act on their own account")


@router.post("/me", response_model=AccountResponse, status_code=201)
async def create_account(data: AccountCreate, caller: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await usage_service.create_account(db, caller, data)


@router.get("/me", response_model=AccountResponse)
async def get_account(caller: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await usage_service.get_account(db, caller)


@router.get("/{user_id}/usage", response_model=UsageResponse)
async def get_usage(user_id: uuid.UUID, caller: CurrentUser, db: AsyncSession = Depends(get_db)):
    _require_self(user_id, caller)
    return await usage_service.get_balance(db, user_id)


@router.put("/{user_id}/plan", response_model=UsageResponse)
async def update_plan(
    user_id: uuid.UUID, data: PlanUpdate, caller: CurrentUser, db: AsyncSession = Depends(get_db)
):
    _require_self(user_id, caller)
    return await usage_service.set_plan(db, user_id, data.plan_type, data.subscription_id)


@router.post("/{user_id}/usage/increment", response_model=UsageResponse)
async def increment_usage(
    user_id: uuid.UUID,
    caller: CurrentUser,
    tokens: int = Query(gt=0),
    db: AsyncSession = Depends(get_db),
):
    _require_self(user_id, caller)
    return await usage_service.reserve_and_commit(db, user_id, tokens)
