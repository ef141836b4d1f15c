import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vibecode.auth.dependencies import CurrentUser
from vibecode.dependencies import get_db
from vibecode.errors import NotFound
from vibecode.models.project import Project
from vibecode.schemas.project import ProjectFilesResponse
from vibecode.schemas.project_file import ProjectFileResponse, UpdateProjectFilesRequest
from vibecode.services import file_service, project_service
from vibecode.services.access_policy import Intent

router = APIRouter(prefix="/api/v1/projects/{project_id}/files", tags=["files"])


def _files_response(project: Project) -> ProjectFilesResponse:
    return ProjectFilesResponse(
        project_id=project.id,
        version_number=len(project.versions),
        files=[ProjectFileResponse.model_validate(f) for f in sorted(project.files, key=lambda f: f.path)],
    )


@router.get("", response_model=ProjectFilesResponse)
async def list_files(project_id: uuid.UUID, user_id: CurrentUser, db: AsyncSession = Depends(get_db)):
    project = await project_service.get_project_for(db, project_id, user_id, Intent.READ)
    return _files_response(project)


@router.put("", response_model=ProjectFilesResponse)
async def update_files(
    project_id: uuid.UUID,
    data: UpdateProjectFilesRequest,
    user_id: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.update_project_files(
        db, project_id, user_id, data.files, version_message=data.version_message
    )
    return _files_response(project)


@router.get("/{file_path:path}", response_model=ProjectFileResponse)
async def get_file(project_id: uuid.UUID, file_path: str, user_id: CurrentUser, db: AsyncSession = Depends(get_db)):
    await project_service.get_project_for(db, project_id, user_id, Intent.READ)
    file = await file_service.get_file_by_path(db, project_id, file_path)
    if file is None:
        raise NotFound(f"file {file_path} not found")
    return file
