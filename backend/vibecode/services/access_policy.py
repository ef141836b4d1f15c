"""Who may read or write a project.

Pure functions of ownership and visibility; no I/O, safe to call any number
of times.
"""

import enum
import uuid

from vibecode.errors import AccessDenied
from vibecode.models.project import Project, Visibility


class Intent(str, enum.Enum):
    READ = "read"
    WRITE = "write"


def can_access(project: Project, identity: uuid.UUID, intent: Intent) -> bool:
    is_owner = project.owner_id == identity
    if intent is Intent.WRITE:
        return is_owner
    return is_owner or project.visibility == Visibility.PUBLIC.value


def check_access(project: Project, identity: uuid.UUID, intent: Intent) -> None:
    if not can_access(project, identity, intent):
        raise AccessDenied(f"{intent.value} access to project {project.id} denied")
