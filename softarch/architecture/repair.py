"""Validation and repair of LLM-proposed architectures.

The repairer only ever appends: canonical folders, missing parent folders,
the entry point, the manifest, the environment template and one
model/controller/route triple per domain entity. It never removes or
reorders what the LLM proposed.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from softarch.architecture.models import (
    TEMPLATE_KINDS,
    Architecture,
    FileRole,
    FileSpec,
    FolderSpec,
)
from softarch.architecture.roles import classify_role, entity_stem
from softarch.errors import OracleError
from softarch.oracle.client import Oracle
from softarch.utils import print_warning, to_camel

# ---------------------------------------------------------------------------
# Essentials
# ---------------------------------------------------------------------------

CANONICAL_FOLDERS: dict[str, str] = {
    "models": "Data models",
    "controllers": "Request handlers",
    "routes": "API route definitions",
    "config": "Application configuration",
}

# role -> (canonical folder, file-name suffix)
_ENTITY_LAYOUT: dict[FileRole, tuple[str, str]] = {
    FileRole.MODEL: ("models", ""),
    FileRole.CONTROLLER: ("controllers", "Controller"),
    FileRole.ROUTE: ("routes", "Routes"),
}

_ENTITY_DESCRIPTIONS: dict[FileRole, str] = {
    FileRole.MODEL: "Data model for {entity}",
    FileRole.CONTROLLER: "CRUD controller for {entity}",
    FileRole.ROUTE: "REST routes for {entity}",
}


def _singular(name: str) -> str:
    name = name.lower()
    if name.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


class ArchitectureRepairer:
    """Guarantees the essentials every generated backend needs.

    Args:
        oracle: Used for entity extraction. When it fails, entity triples
            are skipped and everything else is still repaired.
    """

    def __init__(self, oracle: Oracle) -> None:
        self.oracle = oracle

    async def repair(self, architecture: Architecture, description: str) -> Architecture:
        """Return a repaired copy of *architecture*.

        An input that already has the canonical folders, an entry point, the
        manifest, the environment template and a triple per extracted entity
        comes back unchanged apart from ``optimizationInfo``.
        """
        repaired = architecture.model_copy(deep=True)

        self._ensure_canonical_folders(repaired)
        self._ensure_entry_point(repaired)
        self._ensure_config_file(repaired, "package.json", "Project manifest with dependencies and scripts")
        self._ensure_config_file(repaired, ".env.example", "Example environment variables")

        try:
            entities = await self.oracle.extract_entities(description)
        except OracleError as exc:
            print_warning(f"  Entity extraction failed, skipping entity files: {exc}")
            entities = []
        for entity in entities:
            self._ensure_entity_triple(repaired, entity)

        self._ensure_parent_folders(repaired)
        self._annotate_template_types(repaired)
        repaired.refresh_optimization_info()
        return repaired

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def _folder_for(architecture: Architecture, canonical: str) -> str | None:
        """First declared folder whose last segment is *canonical*."""
        for folder in architecture.folders:
            if PurePosixPath(folder.path).name.lower() == canonical:
                return folder.path
        return None

    def _ensure_canonical_folders(self, architecture: Architecture) -> None:
        for name, description in CANONICAL_FOLDERS.items():
            if self._folder_for(architecture, name) is None:
                architecture.folders.append(FolderSpec(path=name, description=description))

    @staticmethod
    def _ensure_entry_point(architecture: Architecture) -> None:
        if any(classify_role(spec.path) is FileRole.MAIN for spec in architecture.files):
            return
        architecture.files.append(
            FileSpec(
                path="app.js",
                description="Application entry point: middleware, database connection and route registration",
                use_template=True,
                template_type="main",
            )
        )

    @staticmethod
    def _ensure_config_file(architecture: Architecture, name: str, description: str) -> None:
        if any(PurePosixPath(spec.path).name == name for spec in architecture.files):
            return
        architecture.files.append(
            FileSpec(path=name, description=description, use_template=True, template_type="config")
        )

    def _ensure_entity_triple(self, architecture: Architecture, entity: str) -> None:
        stem = to_camel(entity)
        if not stem:
            return
        wanted = _singular(stem)
        for role, (canonical, suffix) in _ENTITY_LAYOUT.items():
            present = any(
                classify_role(spec.path) is role
                and _singular(entity_stem(spec.path)) == wanted
                for spec in architecture.files
            )
            if present:
                continue
            folder = self._folder_for(architecture, canonical) or canonical
            architecture.files.append(
                FileSpec(
                    path=f"{folder}/{stem}{suffix}.js",
                    description=_ENTITY_DESCRIPTIONS[role].format(entity=entity),
                    use_template=True,
                    template_type=role.value,
                )
            )

    @staticmethod
    def _ensure_parent_folders(architecture: Architecture) -> None:
        declared = architecture.folder_paths()
        for spec in architecture.files:
            parent = PurePosixPath(spec.path).parent.as_posix()
            if parent in ("", "."):
                continue
            covered = any(path == parent or path.startswith(parent + "/") for path in declared)
            if not covered:
                architecture.folders.append(FolderSpec(path=parent))
                declared.append(parent)

    @staticmethod
    def _annotate_template_types(architecture: Architecture) -> None:
        for spec in architecture.files:
            if spec.use_template and not spec.template_type:
                role = classify_role(spec.path)
                if role.value in TEMPLATE_KINDS:
                    spec.template_type = role.value
