from vibecode.models.project import Project, Visibility
from vibecode.models.project_version import ProjectVersion
from vibecode.models.project_file import ProjectFile, VersionFile
from vibecode.models.prompt_record import PromptRecord
from vibecode.models.usage_account import UsageAccount, PlanType

__all__ = [
    "Project", "Visibility", "ProjectVersion", "ProjectFile", "VersionFile", "PromptRecord",
    "UsageAccount", "PlanType",
]
