"""
Append-only version history of a project's file set.

Every mutation of the live file set goes through ``append_version``, which
writes the new live files and a snapshot copy of them in one commit. A
snapshot is made of its own ``VersionFile`` rows, so nothing done to the
live files (or to a fork) later can reach back into it.

Appends to and forks of one project are serialized by a per-project asyncio
lock in this process and by a row lock on the project (``SELECT ... FOR
UPDATE``) across processes. A fork holds the source's row lock while it
reads the live files and the history, so it never sees one side of another
process's append. The unique ``(project_id, version_number)`` constraint is
the last guard against two writers numbering the same version.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vibecode.db.base import utcnow
from vibecode.errors import PersistError, ProjectNotFound, VersionNotFound
from vibecode.models.project import Project, Visibility
from vibecode.models.project_file import ProjectFile, VersionFile
from vibecode.models.project_version import ProjectVersion
from vibecode.models.prompt_record import PromptRecord
from vibecode.schemas.project_file import ProjectFileCreate
from vibecode.services.access_policy import Intent, check_access
from vibecode.services.file_service import normalize_file

logger = logging.getLogger(__name__)

DEFAULT_VERSION_MESSAGE = "Updated project files"
FORK_SUFFIX = " (Fork)"

# Per-project write lock
_project_locks: dict[uuid.UUID, asyncio.Lock] = defaultdict(asyncio.Lock)


def forget_project(project_id: uuid.UUID) -> None:
    """Drop the write lock of a deleted project unless a writer still holds it."""
    lock = _project_locks.get(project_id)
    if lock is not None and not lock.locked():
        del _project_locks[project_id]


async def load_project(db: AsyncSession, project_id: uuid.UUID, for_update: bool = False) -> Project:
    stmt = (
        select(Project)
        .where(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update(of=Project)
    result = await db.execute(stmt)
    project = result.scalar_one_or_none()
    if project is None:
        raise ProjectNotFound(f"project {project_id} not found")
    return project


def _snapshot(file: ProjectFile | VersionFile, stamp: datetime | None = None) -> VersionFile:
    return VersionFile(
        path=file.path,
        filename=file.filename,
        language=file.language,
        content=file.content,
        size=file.size,
        created_at=stamp or file.created_at,
        updated_at=stamp or file.updated_at,
    )


def _apply_files(
    project: Project,
    new_files: list[ProjectFileCreate],
    now: datetime,
    keep_existing: bool,
) -> list[ProjectFile]:
    """Write ``new_files`` into the live set and return it sorted by path.

    Paths that already exist are updated in place so they keep their
    ``created_at``; with ``keep_existing`` unmentioned paths survive.
    """
    current = {f.path: f for f in project.files}
    incoming = {f.path: normalize_file(f) for f in new_files}

    if not keep_existing:
        for path, file in current.items():
            if path not in incoming:
                project.files.remove(file)

    for path, data in incoming.items():
        existing = current.get(path)
        if existing is None:
            project.files.append(ProjectFile(**data, created_at=now, updated_at=now))
        else:
            existing.filename = data["filename"]
            existing.language = data["language"]
            existing.content = data["content"]
            existing.size = data["size"]
            existing.updated_at = now

    return sorted(project.files, key=lambda f: f.path)


async def append_version(
    db: AsyncSession,
    project_id: uuid.UUID,
    new_files: list[ProjectFileCreate],
    message: str | None = None,
    keep_existing: bool = False,
    prompt: PromptRecord | None = None,
) -> Project:
    """Replace the live file set and append a snapshot of it as the next version.

    Not idempotent: two calls with the same files produce two versions.
    A ``prompt`` record, if given, is committed together with the version.
    """
    async with _project_locks[project_id]:
        project = await load_project(db, project_id, for_update=True)
        now = utcnow()

        files = _apply_files(project, new_files, now, keep_existing)
        version = ProjectVersion(
            version_number=len(project.versions) + 1,
            message=message or DEFAULT_VERSION_MESSAGE,
            created_at=now,
            files=[_snapshot(f) for f in files],
        )
        project.versions.append(version)
        if prompt is not None:
            prompt.version_number = version.version_number
            project.prompts.append(prompt)
        project.updated_at = now

        try:
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistError(f"could not save version for project {project_id}: {exc}") from exc

    logger.info("Project %s now at version %d (%d files)", project_id, version.version_number, len(files))
    return project


async def list_versions(db: AsyncSession, project_id: uuid.UUID) -> list[ProjectVersion]:
    result = await db.execute(
        select(ProjectVersion)
        .where(ProjectVersion.project_id == project_id)
        .order_by(ProjectVersion.version_number.desc())
    )
    return list(result.scalars().all())


async def get_version(db: AsyncSession, project_id: uuid.UUID, version_number: int) -> ProjectVersion:
    result = await db.execute(
        select(ProjectVersion).where(
            ProjectVersion.project_id == project_id,
            ProjectVersion.version_number == version_number,
        )
    )
    version = result.scalar_one_or_none()
    if version is None:
        raise VersionNotFound(f"version {version_number} of project {project_id} not found")
    return version


async def rollback_to_version(
    db: AsyncSession,
    project_id: uuid.UUID,
    version_number: int,
    message: str | None = None,
) -> Project:
    """Restore an earlier snapshot by appending it again as a new version."""
    source_version = await get_version(db, project_id, version_number)

    files = [
        ProjectFileCreate(path=f.path, content=f.content, filename=f.filename, language=f.language)
        for f in source_version.files
    ]
    return await append_version(
        db, project_id, files, message=message or f"Rollback to version {version_number}"
    )


async def fork_history(db: AsyncSession, source_id: uuid.UUID, requester: uuid.UUID) -> Project:
    """Copy a project, its live files and its whole history under a new owner.

    The fork starts private, keeps the source's version numbers and
    messages, gets fresh timestamps, and does not inherit prompt history.
    """
    async with _project_locks[source_id]:
        source = await load_project(db, source_id, for_update=True)
        check_access(source, requester, Intent.READ)

        now = utcnow()
        forked = Project(
            owner_id=requester,
            name=source.name[: 255 - len(FORK_SUFFIX)] + FORK_SUFFIX,
            description=source.description,
            tech_stack=list(source.tech_stack or []),
            tags=list(source.tags or []),
            visibility=Visibility.PRIVATE.value,
            parent_project_id=source.id,
            forked_from_user_id=source.owner_id,
            created_at=now,
            updated_at=now,
        )
        forked.files = [
            ProjectFile(
                path=f.path,
                filename=f.filename,
                language=f.language,
                content=f.content,
                size=f.size,
                created_at=now,
                updated_at=now,
            )
            for f in source.files
        ]
        forked.versions = [
            ProjectVersion(
                version_number=v.version_number,
                message=v.message,
                created_at=now,
                files=[_snapshot(sf, stamp=now) for sf in v.files],
            )
            for v in source.versions
        ]
        forked.prompts = []
        db.add(forked)

        try:
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistError(f"could not save fork of project {source_id}: {exc}") from exc

    logger.info("Forked project %s into %s for %s", source_id, forked.id, requester)
    return forked
