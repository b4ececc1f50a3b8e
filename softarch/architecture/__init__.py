"""Architecture documents, path roles, repair and the fallback heuristic."""

from softarch.architecture.models import (
    Architecture,
    FileRole,
    FileSpec,
    FolderSpec,
    GenerationContext,
    Phase,
    RecoveryState,
)
from softarch.architecture.roles import CATEGORY_ORDER, category_of, classify_role

__all__ = [
    "Architecture",
    "CATEGORY_ORDER",
    "FileRole",
    "FileSpec",
    "FolderSpec",
    "GenerationContext",
    "Phase",
    "RecoveryState",
    "category_of",
    "classify_role",
]
