"""
Per-user token ledger.

Each identity has one UsageAccount holding its plan, quota ceiling and
consumed-token counter. The debit is a single conditional UPDATE so the
quota check and the increment happen in one statement: concurrent debits
for the same identity can never overdraw the account, whatever balance the
caller read earlier. A per-identity asyncio lock additionally serializes
debits issued from this process.
"""

from __future__ import annotations

import asyncio
import logging
import math
import uuid
from collections import defaultdict
from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vibecode.db.base import utcnow
from vibecode.errors import AccountNotFound, Conflict, QuotaExceeded
from vibecode.models.usage_account import DEFAULT_ROLE, PlanType, UsageAccount
from vibecode.schemas.usage import AccountCreate

logger = logging.getLogger(__name__)

PLAN_QUOTAS: dict[PlanType, int] = {
    PlanType.FREE: 10_000,
    PlanType.PRO: 200_000,
    PlanType.ENTERPRISE: 2_000_000,
}
QUOTA_PERIOD = timedelta(days=30)

# Token cost estimate: a character-count approximation, not a tokenizer.
# It does not track what the generation backend actually consumes.
MIN_TOKENS = 50
CHARS_PER_TOKEN = 4

_account_locks: dict[uuid.UUID, asyncio.Lock] = defaultdict(asyncio.Lock)


def estimate_tokens(prompt: str) -> int:
    return max(MIN_TOKENS, math.ceil(len(prompt) / CHARS_PER_TOKEN))


def resolve_quota(plan: PlanType) -> int:
    return PLAN_QUOTAS[plan]


async def create_account(db: AsyncSession, user_id: uuid.UUID, data: AccountCreate) -> UsageAccount:
    if await db.get(UsageAccount, user_id) is not None:
        raise Conflict(f"usage account for {user_id} already exists")

    now = utcnow()
    account = UsageAccount(
        user_id=user_id,
        full_name=data.full_name,
        avatar_url=data.avatar_url,
        bio=data.bio,
        plan_type=PlanType.FREE.value,
        token_quota=resolve_quota(PlanType.FREE),
        tokens_used=0,
        quota_reset_at=now + QUOTA_PERIOD,
        roles=[DEFAULT_ROLE],
        created_at=now,
        updated_at=now,
    )
    db.add(account)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise Conflict(f"usage account for {user_id} already exists") from exc
    logger.info("Created usage account for %s", user_id)
    return account


async def get_account(db: AsyncSession, user_id: uuid.UUID) -> UsageAccount:
    account = await db.get(UsageAccount, user_id, populate_existing=True)
    if account is None:
        raise AccountNotFound(f"no usage account for {user_id}")
    return account


async def get_balance(db: AsyncSession, user_id: uuid.UUID) -> UsageAccount:
    """Read quota, used and remaining tokens. The value may be stale by the time it is acted on."""
    return await get_account(db, user_id)


async def reserve_and_commit(db: AsyncSession, user_id: uuid.UUID, amount: int) -> UsageAccount:
    """Debit ``amount`` tokens, or raise QuotaExceeded and leave the account untouched."""
    if amount <= 0:
        raise ValueError("amount must be positive")

    async with _account_locks[user_id]:
        result = await db.execute(
            update(UsageAccount)
            .where(
                UsageAccount.user_id == user_id,
                UsageAccount.token_quota - UsageAccount.tokens_used >= amount,
            )
            .values(tokens_used=UsageAccount.tokens_used + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            account = await get_account(db, user_id)
            raise QuotaExceeded(
                f"{amount} tokens requested, {account.remaining_tokens} remaining"
            )
        await db.commit()

    logger.debug("Debited %d tokens from %s", amount, user_id)
    return await get_account(db, user_id)


async def refund(db: AsyncSession, user_id: uuid.UUID, amount: int) -> bool:
    """Give back a debit made earlier by the same request. Returns False if nothing was refunded."""
    async with _account_locks[user_id]:
        result = await db.execute(
            update(UsageAccount)
            .where(UsageAccount.user_id == user_id, UsageAccount.tokens_used >= amount)
            .values(tokens_used=UsageAccount.tokens_used - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await db.commit()

    if result.rowcount == 0:
        logger.warning("Refund of %d tokens to %s had no effect", amount, user_id)
        return False
    logger.info("Refunded %d tokens to %s", amount, user_id)
    return True


async def set_plan(
    db: AsyncSession,
    user_id: uuid.UUID,
    plan: PlanType,
    subscription_id: str | None = None,
) -> UsageAccount:
    async with _account_locks[user_id]:
        account = await get_account(db, user_id)
        now = utcnow()
        account.plan_type = plan.value
        account.token_quota = resolve_quota(plan)
        account.tokens_used = 0
        account.quota_reset_at = now + QUOTA_PERIOD
        account.subscription_id = subscription_id
        account.updated_at = now
        await db.commit()

    logger.info("Moved %s to plan %s", user_id, plan.value)
    return account
