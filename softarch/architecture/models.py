"""Pydantic v2 models for architectures, generation state and diagrams.

Every model serialises with camelCase keys (``useTemplate``,
``currentCategoryIndex``...) because the same documents are exchanged with
the LLM and persisted to ``.recovery.json``, ``saved-projects/*.json`` and the
diagram store. Python code uses the snake_case attribute names.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _Document(BaseModel):
    """Base for every persisted or exchanged document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def dump(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys, ``None`` fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FileRole(str, Enum):
    """Role of a file, derived from its path. See ``roles.classify_role``."""
    MODEL = "model"
    CONTROLLER = "controller"
    ROUTE = "route"
    MIDDLEWARE = "middleware"
    CONFIG = "config"
    MAIN = "main"
    OTHER = "other"


class Phase(str, Enum):
    """Recovery phase tags, in the order a run passes through them."""
    ARCHITECTURE_READY = "architecture_ready"
    MODELS_ANALYZED = "models_analyzed"
    GENERATING_FILES = "generating_files"
    FILES_GENERATED = "files_generated"


# Template kinds the pipeline recognises in ``FileSpec.template_type``.
TEMPLATE_KINDS: frozenset[str] = frozenset(
    {"model", "controller", "route", "middleware", "config", "main"}
)


# ---------------------------------------------------------------------------
# Architecture
# ---------------------------------------------------------------------------

def _normalise_path(value: str) -> str:
    value = value.strip().replace("\\", "/")
    while value.startswith("./"):
        value = value[2:]
    return value.lstrip("/")


class FolderSpec(_Document):
    """A directory to create, relative to the output root."""
    path: str
    description: str = ""

    @field_validator("path")
    @classmethod
    def _clean_path(cls, value: str) -> str:
        return _normalise_path(value).rstrip("/")


class FileSpec(_Document):
    """A file to generate and the strategy for generating it."""
    path: str
    description: str = ""
    use_template: bool = False
    template_type: Optional[str] = None

    @field_validator("path")
    @classmethod
    def _clean_path(cls, value: str) -> str:
        return _normalise_path(value)


class OptimizationInfo(_Document):
    """Totals and the template/custom split of an architecture."""
    total_folders: int = 0
    total_files: int = 0
    templated_files: int = 0
    custom_files: int = 0


class Architecture(_Document):
    """Folders and files of a project, with per-file generation strategy."""
    folders: list[FolderSpec] = Field(default_factory=list)
    files: list[FileSpec] = Field(default_factory=list)
    optimization_info: Optional[OptimizationInfo] = None

    def folder_paths(self) -> list[str]:
        return [folder.path for folder in self.folders]

    def file_paths(self) -> list[str]:
        return [spec.path for spec in self.files]

    def has_file(self, path: str) -> bool:
        return _normalise_path(path) in self.file_paths()

    def refresh_optimization_info(self) -> OptimizationInfo:
        """Recompute and store the derived ``optimizationInfo`` totals."""
        templated = sum(1 for spec in self.files if spec.use_template)
        self.optimization_info = OptimizationInfo(
            total_folders=len(self.folders),
            total_files=len(self.files),
            templated_files=templated,
            custom_files=len(self.files) - templated,
        )
        return self.optimization_info


# ---------------------------------------------------------------------------
# Generation context
# ---------------------------------------------------------------------------

class ModelRef(_Document):
    """A data model declared by the architecture."""
    name: str
    path: str
    description: str = ""
    use_template: bool = False


class RouteRef(_Document):
    """A route module to register in the entry point."""
    path: str
    file: str


class GenerationContext(_Document):
    """Everything the LLM and templates may need about the project."""
    description: str = ""
    project_name: str = ""
    language: str = "JavaScript"
    database: str = "MongoDB"
    framework: str = "Express"
    auth: str = "JWT"
    folders: list[FolderSpec] = Field(default_factory=list)
    files: list[FileSpec] = Field(default_factory=list)
    models: list[ModelRef] = Field(default_factory=list)
    routes: list[RouteRef] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Oracle answers
# ---------------------------------------------------------------------------

class Recommendation(_Document):
    """Stack recommendation for a description, merged over defaults."""
    database: str = "MongoDB"
    framework: str = "Express"
    auth: str = "JWT"
    include_graph_ql: bool = Field(default=False, alias="includeGraphQL")
    include_websockets: bool = False
    include_global_query: bool = False
    recommendations: list[Any] = Field(default_factory=list)
    suggestions: list[Any] = Field(default_factory=list)
    note: Optional[str] = None


class Intent(_Document):
    """What a natural-language request asks the tool to do."""
    action: str
    service: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    options: dict[str, Any] = Field(default_factory=dict)


class WebhookEventType(_Document):
    name: str
    type: str = ""
    description: str = ""


class WebhookConfig(_Document):
    """Verification and event details for an incoming-webhook endpoint."""
    service_name: str
    description: str = ""
    verification_token: Optional[str] = None
    signature_method: Literal["hmac", "token", "none"] = "hmac"
    signature_header: Optional[str] = None
    hash_algorithm: Optional[str] = None
    digest_format: Optional[str] = None
    signature_prefix: Optional[str] = None
    challenge: bool = False
    challenge_param: Optional[str] = None
    event_type_field: str = "type"
    event_types: list[WebhookEventType] = Field(default_factory=list)

    @property
    def slug(self) -> str:
        return self.service_name.lower().replace(" ", "")

    @property
    def secret_env_var(self) -> str:
        return f"{self.slug.upper()}_WEBHOOK_SECRET"


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------

class RecoveryState(_Document):
    """Snapshot of an in-progress run, stored at ``<output>/.recovery.json``.

    ``current_category_index`` is the index of the last file completed in
    ``current_category``; ``-1`` means the category has not started.
    """
    project_name: str
    description: str
    architecture: Architecture
    total_files: int
    file_counter: int = 0
    options: dict[str, Any] = Field(default_factory=dict)
    context: Optional[GenerationContext] = None
    phase: Phase
    current_category: Optional[str] = None
    current_category_index: Optional[int] = None
    last_error: Optional[str] = None
    generated_files: list[str] = Field(default_factory=list)
    timestamp: str


# ---------------------------------------------------------------------------
# Diagram
# ---------------------------------------------------------------------------

class DiagramNode(_Document):
    id: str
    label: str
    description: str = ""
    type: str
    parent: Optional[str] = None


class DiagramEdge(_Document):
    id: str
    source: str
    target: str
    label: str


class DiagramGroup(_Document):
    id: str
    label: str
    description: str = ""


class Diagram(_Document):
    """Graph view of an architecture: folders as groups, files as nodes."""
    nodes: list[DiagramNode] = Field(default_factory=list)
    edges: list[DiagramEdge] = Field(default_factory=list)
    groups: list[DiagramGroup] = Field(default_factory=list)


class DiagramRecord(_Document):
    """A named, persisted project design. ``name`` is the uniqueness key."""
    id: Optional[str] = None
    name: str
    description: str = ""
    architecture: Architecture
    diagram: Diagram
    output_path: str = ""
    options: dict[str, Any] = Field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""


class SavedConfiguration(_Document):
    """A named design kept in ``saved-projects/<name>.json`` for re-generation."""
    name: str
    description: str
    options: dict[str, Any] = Field(default_factory=dict)
    architecture: Architecture
    created_at: str = ""
