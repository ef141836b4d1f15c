import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vibecode.auth.dependencies import CurrentUser
from vibecode.dependencies import get_db
from vibecode.schemas.project_version import ProjectVersionListItem, ProjectVersionResponse, RollbackRequest
from vibecode.services import project_service, version_service
from vibecode.services.access_policy import Intent

router = APIRouter(prefix="/api/v1/projects/{project_id}/versions", tags=["versions"])


@router.get("", response_model=list[ProjectVersionListItem])
async def list_versions(project_id: uuid.UUID, user_id: CurrentUser, db: AsyncSession = Depends(get_db)):
    await project_service.get_project_for(db, project_id, user_id, Intent.READ)
    return await version_service.list_versions(db, project_id)


@router.get("/{version_number}", response_model=ProjectVersionResponse)
async def get_version(
    project_id: uuid.UUID, version_number: int, user_id: CurrentUser, db: AsyncSession = Depends(get_db)
):
    await project_service.get_project_for(db, project_id, user_id, Intent.READ)
    return await version_service.get_version(db, project_id, version_number)


@router.post("/{version_number}/rollback", response_model=ProjectVersionListItem)
async def rollback_version(
    project_id: uuid.UUID,
    version_number: int,
    user_id: CurrentUser,
    data: RollbackRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    await project_service.get_project_for(db, project_id, user_id, Intent.WRITE)
    project = await version_service.rollback_to_version(
        db, project_id, version_number, message=data.message if data else None
    )
    return project.versions[-1]
