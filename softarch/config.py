"""softarch configuration.

Typed settings for the LLM transport, the template root and the on-disk
stores, plus the per-run ``GenerationOptions`` handed to the pipeline by the
CLI. All settings are Pydantic v2 models so they validate at construction
time and serialise to/from JSON without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from softarch.errors import ConfigurationError

_PACKAGE_TEMPLATE_DIR = Path(__file__).parent / "scaffolder" / "templates"


class LLMConfig(BaseModel):
    """Connection settings for the OpenAI-compatible chat-completions endpoint."""

    api_key: str = Field(default="", repr=False)
    base_url: str = Field(default="https://api.deepseek.com")
    model: str = Field(default="deepseek-chat")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=1)
    timeout: int = Field(default=120, ge=10, description="Per-request timeout in seconds")


class GenerationOptions(BaseModel):
    """Options accepted by a generation run.

    Keys arrive camelCased from saved configurations and recovery files and
    snake_cased from Python callers; both spellings are accepted. Unknown keys
    are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    name: str = ""
    database: str = "MongoDB"
    framework: str = "Express"
    auth: str = "JWT"
    include_graph_ql: bool = Field(default=False, alias="includeGraphQL")
    include_websockets: bool = False
    include_global_query: bool = False
    use_templates: bool = True
    generate_zip: bool = False
    continue_on_error: bool = False
    allow_preview_edit: bool = False
    language: str = "JavaScript"

    @property
    def uses_auth(self) -> bool:
        return self.auth.strip().lower() not in ("", "none")

    def dump(self) -> dict[str, Any]:
        """Return the camelCase JSON form used in persisted records."""
        return self.model_dump(by_alias=True)


class Config(BaseModel):
    """Global softarch configuration.

    Created once by the CLI (usually through :meth:`from_env`) and passed to
    the pipeline, which hands the relevant parts to its collaborators.
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    template_dir: Path = Field(default=_PACKAGE_TEMPLATE_DIR)
    saved_projects_dir: Path = Field(default_factory=lambda: Path.cwd() / "saved-projects")
    diagram_store_dir: Path = Field(default_factory=lambda: Path.home() / ".softarch" / "diagrams")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_runtime(self) -> None:
        """Fail fast on problems that make any run impossible.

        Raises:
            ConfigurationError: If the API key is missing or the template
                root is not a readable directory.
        """
        if not self.llm.api_key:
            raise ConfigurationError(
                "No LLM API key configured. Set DEEPSEEK_API_KEY in the environment or a .env file."
            )
        if not self.template_dir.is_dir() or not os.access(self.template_dir, os.R_OK):
            raise ConfigurationError(f"Template root is not readable: {self.template_dir}")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration (without the API key) to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            self.model_dump_json(indent=2, exclude={"llm": {"api_key"}}),
            encoding="utf-8",
        )
        return path

    @classmethod
    def load(cls, path: Path) -> "Config":
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            DEEPSEEK_API_KEY, DEEPSEEK_BASE_URL, DEEPSEEK_MODEL,
            DEEPSEEK_TEMPERATURE, DEEPSEEK_MAX_TOKENS, DEEPSEEK_TIMEOUT,
            SOFTARCH_TEMPLATE_DIR, SOFTARCH_SAVED_DIR, SOFTARCH_DIAGRAM_DIR.
        """
        llm_kwargs: dict[str, Any] = {}
        if os.environ.get("DEEPSEEK_API_KEY"):
            llm_kwargs["api_key"] = os.environ["DEEPSEEK_API_KEY"]
        if os.environ.get("DEEPSEEK_BASE_URL"):
            llm_kwargs["base_url"] = os.environ["DEEPSEEK_BASE_URL"]
        if os.environ.get("DEEPSEEK_MODEL"):
            llm_kwargs["model"] = os.environ["DEEPSEEK_MODEL"]
        if os.environ.get("DEEPSEEK_TEMPERATURE"):
            llm_kwargs["temperature"] = float(os.environ["DEEPSEEK_TEMPERATURE"])
        if os.environ.get("DEEPSEEK_MAX_TOKENS"):
            llm_kwargs["max_tokens"] = int(os.environ["DEEPSEEK_MAX_TOKENS"])
        if os.environ.get("DEEPSEEK_TIMEOUT"):
            llm_kwargs["timeout"] = int(os.environ["DEEPSEEK_TIMEOUT"])

        kwargs: dict[str, Any] = {"llm": LLMConfig(**llm_kwargs)}
        if os.environ.get("SOFTARCH_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["SOFTARCH_TEMPLATE_DIR"])
        if os.environ.get("SOFTARCH_SAVED_DIR"):
            kwargs["saved_projects_dir"] = Path(os.environ["SOFTARCH_SAVED_DIR"])
        if os.environ.get("SOFTARCH_DIAGRAM_DIR"):
            kwargs["diagram_store_dir"] = Path(os.environ["SOFTARCH_DIAGRAM_DIR"])
        return cls(**kwargs)
