import logging
import uuid

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vibecode.db.base import utcnow
from vibecode.models.project import Project, Visibility
from vibecode.models.project_version import ProjectVersion
from vibecode.schemas.project import ProjectCreate, ProjectUpdate
from vibecode.schemas.project_file import ProjectFileCreate
from vibecode.services import version_service
from vibecode.services.access_policy import Intent, check_access

logger = logging.getLogger(__name__)

INITIAL_VERSION_MESSAGE = "Initial Project version"


async def create_project(db: AsyncSession, owner_id: uuid.UUID, data: ProjectCreate) -> Project:
    now = utcnow()
    project = Project(
        owner_id=owner_id,
        name=data.name,
        description=data.description,
        tech_stack=list(data.tech_stack),
        tags=list(data.tags),
        visibility=data.visibility.value,
        created_at=now,
        updated_at=now,
    )
    # Every project starts with an empty version 1
    project.files = []
    project.versions = [
        ProjectVersion(version_number=1, message=INITIAL_VERSION_MESSAGE, created_at=now, files=[])
    ]
    project.prompts = []
    db.add(project)
    await db.commit()
    logger.info("Created project %s for %s", project.id, owner_id)
    return project


async def list_projects(db: AsyncSession, identity: uuid.UUID, include_public: bool = False) -> list[Project]:
    stmt = select(Project)
    if include_public:
        stmt = stmt.where(or_(Project.owner_id == identity, Project.visibility == Visibility.PUBLIC.value))
    else:
        stmt = stmt.where(Project.owner_id == identity)
    result = await db.execute(stmt.order_by(Project.created_at.desc()))
    return list(result.scalars().all())


async def get_project(db: AsyncSession, project_id: uuid.UUID) -> Project:
    return await version_service.load_project(db, project_id)


async def get_project_for(db: AsyncSession, project_id: uuid.UUID, identity: uuid.UUID, intent: Intent) -> Project:
    project = await get_project(db, project_id)
    check_access(project, identity, intent)
    return project


async def update_project(db: AsyncSession, project_id: uuid.UUID, identity: uuid.UUID, data: ProjectUpdate) -> Project:
    project = await get_project_for(db, project_id, identity, Intent.WRITE)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        if field == "visibility":
            value = Visibility(value).value
        setattr(project, field, value)
    project.updated_at = utcnow()
    await db.commit()
    return project


async def delete_project(db: AsyncSession, project_id: uuid.UUID, identity: uuid.UUID) -> None:
    project = await get_project_for(db, project_id, identity, Intent.WRITE)
    # Versions, snapshots, live files and prompts go with it
    await db.delete(project)
    await db.commit()
    version_service.forget_project(project_id)
    logger.info("Deleted project %s", project_id)


async def update_project_files(
    db: AsyncSession,
    project_id: uuid.UUID,
    identity: uuid.UUID,
    files: list[ProjectFileCreate],
    version_message: str | None = None,
) -> Project:
    await get_project_for(db, project_id, identity, Intent.WRITE)
    return await version_service.append_version(db, project_id, files, message=version_message)


async def fork_project(db: AsyncSession, project_id: uuid.UUID, identity: uuid.UUID) -> Project:
    return await version_service.fork_history(db, project_id, identity)
