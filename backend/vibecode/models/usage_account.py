import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Integer, String, DateTime, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from vibecode.db.base import Base, utcnow


class PlanType(str, enum.Enum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


DEFAULT_ROLE = "USER"


class UsageAccount(Base):
    __tablename__ = "usage_accounts"
    __table_args__ = (
        CheckConstraint("tokens_used >= 0", name="ck_usage_tokens_used_non_negative"),
        CheckConstraint("tokens_used <= token_quota", name="ck_usage_within_quota"),
    )

    # Same id as the identity's JWT subject
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)
    plan_type: Mapped[str] = mapped_column(String(20), nullable=False, default=PlanType.FREE.value)
    token_quota: Mapped[int] = mapped_column(Integer, nullable=False)
    tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quota_reset_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=lambda: [DEFAULT_ROLE])
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    @property
    def remaining_tokens(self) -> int:
        return self.token_quota - self.tokens_used
