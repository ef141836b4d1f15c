from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vibecode.auth.dependencies import CurrentUser
from vibecode.dependencies import get_generation_backend, get_session_factory
from vibecode.pipeline.backend import GenerationBackend
from vibecode.pipeline.orchestrator import run_generation
from vibecode.schemas.generation import GenerateRequest, GenerateResponse

router = APIRouter(prefix="/api/v1/ai", tags=["generation"])


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    data: GenerateRequest,
    user_id: CurrentUser,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    backend: GenerationBackend = Depends(get_generation_backend),
):
    return await run_generation(session_factory, backend, user_id, data.project_id, data.prompt)
