import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, String, Text, DateTime, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vibecode.db.base import Base, utcnow


class Visibility(str, enum.Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tech_stack: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    visibility: Mapped[str] = mapped_column(String(20), nullable=False, default=Visibility.PRIVATE.value)
    # Fork provenance; not a foreign key so a fork outlives its source
    parent_project_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    forked_from_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    files: Mapped[list["ProjectFile"]] = relationship(
        "ProjectFile",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProjectFile.path",
    )
    versions: Mapped[list["ProjectVersion"]] = relationship(
        "ProjectVersion",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProjectVersion.version_number",
    )
    prompts: Mapped[list["PromptRecord"]] = relationship(
        "PromptRecord",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PromptRecord.generated_at",
    )

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC.value
