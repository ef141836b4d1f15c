import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vibecode.auth.dependencies import CurrentUser
from vibecode.dependencies import get_db
from vibecode.schemas.project import ProjectCreate, ProjectUpdate, ProjectResponse
from vibecode.services import project_service
from vibecode.services.access_policy import Intent

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(data: ProjectCreate, user_id: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await project_service.create_project(db, user_id, data)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(user_id: CurrentUser, include_public: bool = False, db: AsyncSession = Depends(get_db)):
    return await project_service.list_projects(db, user_id, include_public=include_public)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: uuid.UUID, user_id: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await project_service.get_project_for(db, project_id, user_id, Intent.READ)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID, data: ProjectUpdate, user_id: CurrentUser, db: AsyncSession = Depends(get_db)
):
    return await project_service.update_project(db, project_id, user_id, data)


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: uuid.UUID, user_id: CurrentUser, db: AsyncSession = Depends(get_db)):
    await project_service.delete_project(db, project_id, user_id)


@router.post("/{project_id}/fork", response_model=ProjectResponse, status_code=201)
async def fork_project(project_id: uuid.UUID, user_id: CurrentUser, db: AsyncSession = Depends(get_db)):
    return await project_service.fork_project(db, project_id, user_id)
