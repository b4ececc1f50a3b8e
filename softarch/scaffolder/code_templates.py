"""Template-backed generators for the standard backend files.

Each ``generate_*`` method renders one template. The wrappers for
controllers, routes, the entry point, the global query router, webhooks and
the GraphQL files first ask the oracle for a project-specific fragment and
splice it in at the template's injection marker. When a template is missing
the whole file is synthesized by the oracle instead.
"""

from __future__ import annotations

from typing import Any

from softarch.architecture.models import GenerationContext, WebhookConfig
from softarch.config import GenerationOptions
from softarch.errors import TemplateMissingError
from softarch.oracle.client import Oracle
from softarch.scaffolder.templates import CODE_MARKER, SCHEMA_MARKER, TemplateRenderer
from softarch.utils import print_warning

# Known dependency versions recorded in the generated manifest.
_BASE_DEPENDENCIES: dict[str, str] = {
    "cors": "^2.8.5",
    "dotenv": "^16.4.5",
    "express": "^4.19.2",
}

_DATABASE_DEPENDENCIES: dict[str, dict[str, str]] = {
    "mongodb": {"mongoose": "^8.4.0"},
    "postgresql": {"pg": "^8.11.5", "sequelize": "^6.37.3"},
    "postgres": {"pg": "^8.11.5", "sequelize": "^6.37.3"},
    "mysql": {"mysql2": "^3.10.0", "sequelize": "^6.37.3"},
    "sqlite": {"sqlite3": "^5.1.7", "sequelize": "^6.37.3"},
}

_AUTH_DEPENDENCIES: dict[str, dict[str, str]] = {
    "jwt": {"bcryptjs": "^2.4.3", "jsonwebtoken": "^9.0.2"},
    "oauth": {"passport": "^0.7.0", "passport-oauth2": "^1.8.0"},
    "session": {"express-session": "^1.18.0"},
}


def manifest_dependencies(options: GenerationOptions) -> list[dict[str, str]]:
    """Sorted ``[{name, version}]`` list for the generated ``package.json``."""
    deps = dict(_BASE_DEPENDENCIES)
    deps.update(_DATABASE_DEPENDENCIES.get(options.database.lower(), {}))
    deps.update(_AUTH_DEPENDENCIES.get(options.auth.lower(), {}))
    if options.include_graph_ql:
        deps.update({"@apollo/server": "^4.10.4", "graphql": "^16.8.1"})
    if options.include_websockets:
        deps["socket.io"] = "^4.7.5"
    return [{"name": name, "version": deps[name]} for name in sorted(deps)]


class CodeTemplates:
    """Renders standard files, merging in oracle fragments where templates allow."""

    def __init__(self, renderer: TemplateRenderer, oracle: Oracle) -> None:
        self.renderer = renderer
        self.oracle = oracle

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _render_plain(
        self,
        kind: str,
        name: str,
        data: dict[str, Any],
        context: GenerationContext,
    ) -> str:
        try:
            template = self.renderer.load(kind, name)
        except TemplateMissingError as exc:
            print_warning(f"  {exc}; generating {name} with the LLM")
            return await self.oracle.generate_full_file(name, data, context)
        return self.renderer.render(template, data)

    async def _render_with_fragment(
        self,
        kind: str,
        name: str,
        data: dict[str, Any],
        context: GenerationContext,
        marker: str = CODE_MARKER,
    ) -> str:
        try:
            template = self.renderer.load(kind, name)
        except TemplateMissingError as exc:
            print_warning(f"  {exc}; generating {name} with the LLM")
            return await self.oracle.generate_full_file(name, data, context)
        fragment = await self.oracle.generate_fragment(name, data, context)
        rendered = self.renderer.render(template, data)
        return self.renderer.inject(rendered, fragment, marker)

    # ------------------------------------------------------------------
    # Backend files
    # ------------------------------------------------------------------

    async def generate_model(self, data: dict[str, Any], context: GenerationContext) -> str:
        """``data``: ``{modelName, fields, methods, statics}``."""
        data.setdefault("methods", [])
        data.setdefault("statics", [])
        return await self._render_plain("backend", "model.js", data, context)

    async def generate_controller(self, data: dict[str, Any], context: GenerationContext) -> str:
        """``data``: ``{modelName, modelFileName}``."""
        return await self._render_with_fragment("backend", "controller.js", data, context)

    async def generate_route(self, data: dict[str, Any], context: GenerationContext) -> str:
        """``data``: ``{modelName, controllerFileName, authMiddleware}``."""
        return await self._render_with_fragment("backend", "route.js", data, context)

    async def generate_app(self, data: dict[str, Any], context: GenerationContext) -> str:
        """``data``: ``{routes: [{path, file}], database}``."""
        return await self._render_with_fragment("backend", "app.js", data, context)

    async def generate_global_query(self, data: dict[str, Any], context: GenerationContext) -> str:
        """``data``: ``{models: [{name, fileName}]}``."""
        return await self._render_with_fragment("backend", "globalQuery.js", data, context)

    async def generate_webhook(self, config: WebhookConfig, context: GenerationContext) -> str:
        return await self._render_with_fragment("backend", "webhook.js", config.dump(), context)

    async def generate_manifest(self, data: dict[str, Any], context: GenerationContext) -> str:
        """``data``: ``{name, description, main, dependencies: [{name, version}]}``."""
        return await self._render_plain("backend", "package.json", data, context)

    async def generate_env(self, data: dict[str, Any], context: GenerationContext) -> str:
        """``data``: ``{name, database, auth}``."""
        return await self._render_plain("backend", "env.example", data, context)

    # ------------------------------------------------------------------
    # GraphQL
    # ------------------------------------------------------------------

    async def generate_graphql_api(
        self,
        data: dict[str, Any],
        context: GenerationContext,
    ) -> dict[str, str]:
        """Schema, resolvers and server for ``data = {models: [{name, fileName, fields?}], endpoint}``.

        Returns a mapping of project-relative path to file content.
        """
        data.setdefault("endpoint", "/graphql")
        return {
            "graphql/schema.graphql": await self._render_with_fragment(
                "graphql", "schema.graphql", data, context, marker=SCHEMA_MARKER
            ),
            "graphql/resolvers.js": await self._render_with_fragment(
                "graphql", "resolvers.js", data, context
            ),
            "graphql/server.js": await self._render_with_fragment(
                "graphql", "server.js", data, context
            ),
        }
