import re

from vibecode.schemas.project_file import ProjectFileCreate
from vibecode.services.file_service import get_language

GENERATED_STEM = "src/AiGenerated"
DEFAULT_EXTENSION = ".js"
UNKNOWN_TAG_EXTENSION = ".txt"

FENCE_EXTENSIONS = {
    "javascript": ".js",
    "js": ".js",
    "jsx": ".jsx",
    "typescript": ".ts",
    "ts": ".ts",
    "tsx": ".tsx",
    "python": ".py",
    "py": ".py",
    "java": ".java",
    "go": ".go",
    "rust": ".rs",
    "ruby": ".rb",
    "html": ".html",
    "css": ".css",
    "json": ".json",
    "sql": ".sql",
    "bash": ".sh",
    "sh": ".sh",
}

_FENCE_RE = re.compile(r"```([\w+#.-]*)[^\n]*\n(.*?)(?:```|\Z)", re.DOTALL)


def extract_code(text: str) -> tuple[str, str | None]:
    """Return the first fenced code block and its language tag, or the whole text."""
    match = _FENCE_RE.search(text)
    if match is None:
        return text.strip(), None
    tag = match.group(1).lower() or None
    return match.group(2).rstrip() + "\n", tag


def build_generated_file(text: str) -> ProjectFileCreate:
    """Wrap backend output as the project's single generated artifact.

    The path depends only on the code fence's language tag, so repeated
    generations in the same language overwrite the same file. Untagged
    output is taken to be JavaScript; a tag outside the table is saved as
    plain text.
    """
    content, tag = extract_code(text)
    if tag is None:
        extension = DEFAULT_EXTENSION
    else:
        extension = FENCE_EXTENSIONS.get(tag, UNKNOWN_TAG_EXTENSION)
    path = GENERATED_STEM + extension
    return ProjectFileCreate(
        path=path,
        content=content,
        filename=path.rsplit("/", 1)[-1],
        language=get_language(path),
    )
