import posixpath
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vibecode.models.project_file import ProjectFile
from vibecode.schemas.project_file import ProjectFileCreate


LANGUAGES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".html": "html",
    ".css": "css",
    ".json": "json",
    ".md": "markdown",
    ".sql": "sql",
    ".sh": "shell",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".txt": "plaintext",
}


def get_language(file_path: str) -> str:
    for ext, language in LANGUAGES.items():
        if file_path.endswith(ext):
            return language
    return "plaintext"


def content_size(content: str) -> int:
    return len(content.encode("utf-8"))


def normalize_file(data: ProjectFileCreate) -> dict:
    """Fill in the derived fields of an incoming file."""
    return {
        "path": data.path,
        "filename": data.filename or posixpath.basename(data.path),
        "language": data.language or get_language(data.path),
        "content": data.content,
        "size": content_size(data.content),
    }


async def get_file_by_path(db: AsyncSession, project_id: uuid.UUID, file_path: str) -> ProjectFile | None:
    result = await db.execute(
        select(ProjectFile).where(
            ProjectFile.project_id == project_id,
            ProjectFile.path == file_path,
        )
    )
    return result.scalar_one_or_none()
