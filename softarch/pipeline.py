"""softarch generation pipeline.

Turns a description into a project tree in these phases:

1. Resume check        -- pick up ``<output>/.recovery.json`` if present.
2. Architecture        -- ask the LLM (keyword fallback on failure), then repair.
3. Directories         -- create every declared folder.
4. Classification      -- derive the models and routes of the generation context.
5. Files               -- config, models, controllers, routes, then the rest;
                          checkpointed after every file.
6. Wiring              -- optional global query router, GraphQL API and webhook.
7. Diagram             -- save a diagram record (local ``diagram.json`` on failure).
8. Archive             -- optional ``<project>.zip`` next to the output folder.

Usage::

    pipeline = GenerationPipeline(Config.from_env())
    result = await pipeline.run("API for a blog", "./blog-api", {"database": "MongoDB"})
"""

from __future__ import annotations

import time
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import TemplateError
from rich.panel import Panel
from rich.prompt import Confirm

from softarch.architecture.defaults import default_architecture
from softarch.architecture.models import (
    TEMPLATE_KINDS,
    Architecture,
    DiagramRecord,
    FileRole,
    FileSpec,
    GenerationContext,
    ModelRef,
    Phase,
    RecoveryState,
    RouteRef,
    SavedConfiguration,
)
from softarch.architecture.repair import ArchitectureRepairer
from softarch.architecture.roles import (
    CATEGORY_ORDER,
    category_of,
    classify_role,
    entity_stem,
    model_name_from_path,
    normalize_category,
    route_path_from_file,
)
from softarch.config import Config, GenerationOptions
from softarch.diagram.builder import build_diagram
from softarch.diagram.repository import DiagramRepository, JsonDiagramRepository
from softarch.errors import (
    ConfigurationError,
    GenerationPaused,
    OracleProtocolError,
    OracleTransportError,
    ProjectNotFoundError,
    SoftArchError,
    UnsupportedRequestError,
)
from softarch.llm_client import LLMClient
from softarch.oracle.client import Oracle
from softarch.recovery import RECOVERY_FILE_NAME, RecoveryStore
from softarch.saved import SavedConfigurationStore
from softarch.scaffolder.code_templates import CodeTemplates, manifest_dependencies
from softarch.scaffolder.templates import TemplateRenderer
from softarch.utils import (
    console,
    ensure_dir,
    format_duration,
    print_error,
    print_file_progress,
    print_phase_header,
    print_success,
    print_summary_table,
    print_warning,
    read_file,
    sanitize_name,
    save_json,
    utc_now,
    write_file,
    zip_directory,
)
from softarch.wiring import append_env_variable, route_registration, splice_registration

GLOBAL_QUERY_PATH = "routes/globalQuery.js"
_GLOBAL_QUERY_NAMES = ("globalQuery.js", "global-query.js")

# Per-file failures that pause the run (or are skipped with continue_on_error).
_FILE_ERRORS = (SoftArchError, OSError, TemplateError, ValueError)


def _coerce_options(options: GenerationOptions | dict[str, Any] | None) -> GenerationOptions:
    if isinstance(options, GenerationOptions):
        return options
    return GenerationOptions.model_validate(options or {})


class GenerationPipeline:
    """Orchestrates one or more generation runs.

    Attributes:
        config: Global configuration.
        oracle: Typed LLM facade shared by every collaborator.
        repairer: Fills in what the LLM's architecture is missing.
        templates: Template-backed generators for the standard files.
        repository: Diagram store.
        saved: Saved-configuration store.
    """

    def __init__(
        self,
        config: Config,
        oracle: Oracle | None = None,
        repository: DiagramRepository | None = None,
    ) -> None:
        self.config = config
        self.oracle = oracle or Oracle(LLMClient.from_config(config.llm))
        self.repairer = ArchitectureRepairer(self.oracle)
        self.templates = CodeTemplates(TemplateRenderer(config.template_dir), self.oracle)
        self.repository: DiagramRepository = repository or JsonDiagramRepository(config.diagram_store_dir)
        self.saved = SavedConfigurationStore(config.saved_projects_dir)
        # Fields chosen for templated models in this process, reused by the GraphQL schema.
        self._model_fields: dict[str, list[dict[str, Any]]] = {}

    # ------------------------------------------------------------------
    # Architecture
    # ------------------------------------------------------------------

    async def _acquire_architecture(self, description: str) -> Architecture:
        """LLM architecture, or the keyword fallback when the LLM fails."""
        try:
            architecture = await self.oracle.generate_architecture(description)
            console.print(
                f"  [green]+[/green] Architecture proposed: {len(architecture.folders)} folders, "
                f"{len(architecture.files)} files"
            )
            return architecture
        except (OracleProtocolError, OracleTransportError) as exc:
            print_warning(f"  Architecture generation failed ({exc}); using the default architecture.")
            return default_architecture(description)

    @staticmethod
    def _build_context(
        architecture: Architecture,
        description: str,
        project_name: str,
        options: GenerationOptions,
    ) -> GenerationContext:
        models: list[ModelRef] = []
        routes: list[RouteRef] = []
        for spec in architecture.files:
            role = classify_role(spec.path)
            if role is FileRole.MODEL:
                models.append(
                    ModelRef(
                        name=model_name_from_path(spec.path),
                        path=spec.path,
                        description=spec.description,
                        use_template=spec.use_template,
                    )
                )
            elif role is FileRole.ROUTE and PurePosixPath(spec.path).parent.name.lower() in ("routes", "route"):
                routes.append(
                    RouteRef(path=route_path_from_file(spec.path), file=PurePosixPath(spec.path).stem)
                )

        has_global_query = any(PurePosixPath(p).name in _GLOBAL_QUERY_NAMES for p in architecture.file_paths())
        if options.include_global_query and not has_global_query:
            routes.append(RouteRef(path="global-query", file="globalQuery"))

        return GenerationContext(
            description=description,
            project_name=project_name,
            language=options.language,
            database=options.database,
            framework=options.framework,
            auth=options.auth,
            folders=architecture.folders,
            files=architecture.files,
            models=models,
            routes=routes,
        )

    @staticmethod
    def _partition(architecture: Architecture) -> dict[str, list[FileSpec]]:
        """Files per category, in architecture order within each category."""
        categories: dict[str, list[FileSpec]] = {name: [] for name in CATEGORY_ORDER}
        for spec in architecture.files:
            categories[category_of(spec.path)].append(spec)
        return categories

    @staticmethod
    def _entry_point(paths: list[str]) -> str:
        for path in paths:
            if classify_role(path) is FileRole.MAIN:
                return path
        return "app.js"

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    @staticmethod
    def _global_query_data(context: GenerationContext) -> dict[str, Any]:
        return {
            "models": [
                {"name": model.name, "fileName": PurePosixPath(model.path).stem}
                for model in context.models
            ]
        }

    @staticmethod
    def _model_for(path: str, context: GenerationContext) -> tuple[str, str]:
        """Name and file stem of the model that *path* (a controller or route) serves."""
        entity = entity_stem(path).lower()
        for model in context.models:
            if entity_stem(model.path).lower() == entity:
                return model.name, PurePosixPath(model.path).stem
        stem = entity_stem(path)
        return model_name_from_path(stem), stem

    @staticmethod
    def _controller_for(path: str, context: GenerationContext) -> str:
        entity = entity_stem(path).lower()
        for spec in context.files:
            if classify_role(spec.path) is FileRole.CONTROLLER and entity_stem(spec.path).lower() == entity:
                return PurePosixPath(spec.path).stem
        return f"{entity_stem(path)}Controller"

    async def _render_from_template(
        self,
        spec: FileSpec,
        context: GenerationContext,
        options: GenerationOptions,
    ) -> str | None:
        """Template output for *spec*, or ``None`` when no template fits."""
        pure = PurePosixPath(spec.path)
        role = classify_role(spec.path)

        if pure.name in _GLOBAL_QUERY_NAMES:
            return await self.templates.generate_global_query(self._global_query_data(context), context)

        if role is FileRole.MODEL:
            model_name = model_name_from_path(spec.path)
            fields = await self.oracle.generate_model_fields(spec.description, context)
            methods = await self.oracle.generate_model_methods(spec.description, context)
            self._model_fields[model_name] = fields
            return await self.templates.generate_model(
                {"modelName": model_name, "fields": fields, "methods": methods, "statics": []},
                context,
            )

        if role is FileRole.CONTROLLER:
            model_name, model_file = self._model_for(spec.path, context)
            return await self.templates.generate_controller(
                {"modelName": model_name, "modelFileName": model_file},
                context,
            )

        if role is FileRole.ROUTE:
            model_name, _ = self._model_for(spec.path, context)
            return await self.templates.generate_route(
                {
                    "modelName": model_name,
                    "controllerFileName": self._controller_for(spec.path, context),
                    "authMiddleware": options.uses_auth,
                },
                context,
            )

        if role is FileRole.MAIN:
            return await self.templates.generate_app(
                {"routes": [route.dump() for route in context.routes], "database": context.database},
                context,
            )

        if role is FileRole.CONFIG and pure.name == "package.json":
            return await self.templates.generate_manifest(
                {
                    "name": sanitize_name(context.project_name) or "api",
                    "description": context.description,
                    "main": self._entry_point([f.path for f in context.files]),
                    "dependencies": manifest_dependencies(options),
                },
                context,
            )

        if role is FileRole.CONFIG and pure.name.startswith(".env"):
            return await self.templates.generate_env(
                {
                    "name": sanitize_name(context.project_name) or "api",
                    "database": context.database,
                    "auth": context.auth,
                },
                context,
            )

        return None

    async def _generate_file(
        self,
        spec: FileSpec,
        output: Path,
        context: GenerationContext,
        options: GenerationOptions,
    ) -> tuple[Path, str]:
        """Generate and write one file. Returns its path and how it was produced."""
        code: str | None = None
        origin = "llm"
        if options.use_templates and spec.use_template and spec.template_type in TEMPLATE_KINDS:
            code = await self._render_from_template(spec, context, options)
            if code is not None:
                origin = "template"
        if code is None:
            code = await self.oracle.generate_code(spec.path, spec.description, context)

        target = output / spec.path
        await write_file(target, code)
        return target, origin

    # ------------------------------------------------------------------
    # Files phase
    # ------------------------------------------------------------------

    async def _generate_files(
        self,
        state: RecoveryState,
        store: RecoveryStore,
        output: Path,
        context: GenerationContext,
        options: GenerationOptions,
    ) -> None:
        categories = self._partition(state.architecture)

        resume_category = 0
        resume_index = 0
        saved_category = normalize_category(state.current_category)
        if state.phase is Phase.GENERATING_FILES and saved_category is not None:
            resume_category = CATEGORY_ORDER.index(saved_category)
            resume_index = (state.current_category_index if state.current_category_index is not None else -1) + 1

        for category_number, category in enumerate(CATEGORY_ORDER):
            if category_number < resume_category:
                continue
            first = resume_index if category_number == resume_category else 0
            files = categories[category]

            state.phase = Phase.GENERATING_FILES
            state.current_category = category
            state.current_category_index = first - 1
            await store.save(state)

            for index in range(first, len(files)):
                spec = files[index]
                try:
                    target, origin = await self._generate_file(spec, output, context, options)
                except _FILE_ERRORS as exc:
                    state.last_error = f"{spec.path}: {exc}"
                    if not options.continue_on_error:
                        state.current_category_index = index - 1
                        await store.save(state)
                        print_error(f"  Failed to generate {spec.path}: {exc}")
                        raise GenerationPaused(store.path, category, state.last_error) from exc
                    state.file_counter += 1
                    state.current_category_index = index
                    await store.save(state)
                    print_file_progress(state.file_counter, state.total_files, spec.path, f"skipped: {exc}")
                    continue

                state.file_counter += 1
                state.generated_files.append(str(target))
                state.current_category_index = index
                await store.save(state)
                print_file_progress(state.file_counter, state.total_files, spec.path, origin)

        state.phase = Phase.FILES_GENERATED
        state.current_category = None
        state.current_category_index = None
        await store.save(state)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _entry_point_on_disk(self, output: Path, context: GenerationContext) -> Path:
        if context.files:
            return output / self._entry_point([spec.path for spec in context.files])
        names = sorted(p.name for p in output.iterdir() if p.is_file()) if output.is_dir() else []
        return output / self._entry_point(names)

    async def _splice_entry_point(self, output: Path, context: GenerationContext, line: str) -> None:
        """Register *line* in the project's entry point, if there is one."""
        entry = self._entry_point_on_disk(output, context)
        if not entry.is_file():
            print_warning(f"  No entry point found in {output}; add manually: {line}")
            return
        text = await read_file(entry)
        updated = splice_registration(text, line)
        if updated != text:
            await write_file(entry, updated)
            console.print(f"  [green]+[/green] Registered in {entry.name}: {line}")
        elif line not in text:
            print_warning(f"  No route registration site in {entry.name}; add manually: {line}")

    async def _wire_global_query(
        self,
        output: Path,
        architecture: Architecture,
        context: GenerationContext,
    ) -> Path | None:
        if any(PurePosixPath(p).name in _GLOBAL_QUERY_NAMES for p in architecture.file_paths()):
            return None
        code = await self.templates.generate_global_query(self._global_query_data(context), context)
        target = await write_file(output / GLOBAL_QUERY_PATH, code)
        await self._splice_entry_point(
            output, context, route_registration("/api/global-query", "./routes/globalQuery")
        )
        return target

    async def _wire_graphql(self, output: Path, context: GenerationContext) -> list[Path]:
        data = {
            "models": [
                {
                    "name": model.name,
                    "fileName": PurePosixPath(model.path).stem,
                    "fields": self._model_fields.get(model.name, []),
                }
                for model in context.models
            ],
            "endpoint": "/graphql",
        }
        files = await self.templates.generate_graphql_api(data, context)
        written = [await write_file(output / path, code) for path, code in files.items()]
        await self._splice_entry_point(output, context, route_registration("/graphql", "./graphql/server"))
        return written

    async def generate_webhook(
        self,
        service: str,
        output_path: str | Path,
        options: GenerationOptions | dict[str, Any] | None = None,
        context: GenerationContext | None = None,
    ) -> dict[str, Any]:
        """Add an incoming-webhook router for *service* to a project.

        Writes ``routes/webhooks/<service>Webhook.js``, registers it in the
        entry point and appends the secret variable to ``.env.example``.
        """
        options = _coerce_options(options)
        output = Path(output_path).resolve()
        if context is None:
            context = GenerationContext(
                description=f"{service} webhook integration",
                project_name=options.name or output.name,
                language=options.language,
                database=options.database,
                framework=options.framework,
                auth=options.auth,
            )

        webhook = await self.oracle.generate_webhook_config(service)
        code = await self.templates.generate_webhook(webhook, context)
        target = await write_file(output / "routes" / "webhooks" / f"{webhook.slug}Webhook.js", code)
        console.print(f"  [green]+[/green] Webhook created: {target}")

        await self._splice_entry_point(
            output,
            context,
            route_registration(f"/api/webhooks/{webhook.slug}", f"./routes/webhooks/{webhook.slug}Webhook"),
        )

        if webhook.verification_token:
            env_path = output / ".env.example"
            text = await read_file(env_path) if env_path.is_file() else ""
            updated = append_env_variable(
                text,
                webhook.verification_token,
                "your_webhook_secret_here",
                comment=f"{webhook.service_name} webhook secret",
            )
            if updated != text:
                await write_file(env_path, updated)

        return {"webhook_path": str(target), "service_name": webhook.service_name}

    # ------------------------------------------------------------------
    # Diagram & archive
    # ------------------------------------------------------------------

    async def _publish_diagram(
        self,
        output: Path,
        project_name: str,
        description: str,
        architecture: Architecture,
        options: GenerationOptions,
    ) -> tuple[dict[str, Any], str | None]:
        diagram = build_diagram(architecture)
        now = utc_now()
        record = DiagramRecord(
            name=project_name,
            description=description,
            architecture=architecture,
            diagram=diagram,
            output_path=str(output),
            options=options.dump(),
            created_at=now,
            updated_at=now,
        )
        try:
            stored = await self.repository.save(record)
        except Exception as exc:  # noqa: BLE001 - any store failure degrades to a local file
            sidecar = output / "diagram.json"
            await save_json(
                {
                    "name": project_name,
                    "description": description,
                    "architecture": architecture.dump(),
                    "diagram": diagram.dump(),
                    "createdAt": now,
                },
                sidecar,
            )
            print_warning(f"  Diagram store unavailable ({exc}); saved to {sidecar}")
            return diagram.dump(), None

        console.print(f"  [green]+[/green] Diagram saved as '{stored.name}' ({stored.id})")
        return diagram.dump(), stored.id

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(
        self,
        description: str,
        output_path: str | Path,
        options: GenerationOptions | dict[str, Any] | None = None,
        architecture: Architecture | None = None,
        webhook_service: str | None = None,
    ) -> dict[str, Any]:
        """Generate (or resume generating) a project.

        Args:
            description: What the API should do.
            output_path: Project root to write.
            options: Generation options; unknown keys are ignored.
            architecture: Use this architecture instead of asking the LLM.
            webhook_service: Also add a webhook router for this service.

        Returns:
            A summary with ``success``, ``architecture``, ``diagram``,
            ``diagram_id``, ``output_path``, ``zip_path``,
            ``generated_files``, ``file_counter`` and ``total_files``.

        Raises:
            ConfigurationError: The output path cannot be created.
            GenerationPaused: A file failed; the checkpoint is kept for resume.
        """
        options = _coerce_options(options)
        output = Path(output_path).resolve()
        try:
            ensure_dir(output)
        except OSError as exc:
            raise ConfigurationError(f"Output path is not writable: {output} ({exc})") from exc
        project_name = options.name or output.name
        store = RecoveryStore(output)
        run_start = time.monotonic()

        console.print(
            Panel(
                f"[bold bright_cyan]softarch[/bold bright_cyan]\n"
                f"Project : {project_name}\n"
                f"Output  : {output}\n"
                f"Stack   : {options.framework} / {options.database} / auth {options.auth}",
                title="[bold]Generation Start[/bold]",
                border_style="bright_cyan",
            )
        )

        # Phase 1-2: resume check, architecture
        print_phase_header("architecture", "Architecture")
        state = store.load()
        if state is not None:
            console.print(
                f"  [cyan]Resuming[/cyan] from {state.phase.value}"
                + (
                    f" ({state.current_category} #{(state.current_category_index or 0) + 1})"
                    if state.phase is Phase.GENERATING_FILES
                    else ""
                )
                + f", {state.file_counter}/{state.total_files} files done"
            )
        else:
            if architecture is None:
                architecture = await self._acquire_architecture(description)
                architecture = await self.repairer.repair(architecture, description)
            else:
                architecture = architecture.model_copy(deep=True)
                architecture.refresh_optimization_info()
            state = RecoveryState(
                project_name=project_name,
                description=description,
                architecture=architecture,
                total_files=len(architecture.files),
                options=options.dump(),
                phase=Phase.ARCHITECTURE_READY,
                timestamp=utc_now(),
            )
            await store.save(state)
        architecture = state.architecture

        # Phase 3: directories
        print_phase_header("directories", "Directories")
        for folder in architecture.folders:
            ensure_dir(output / folder.path)
        console.print(f"  [green]+[/green] {len(architecture.folders)} folders ready")

        # Phase 4: classification
        context = self._build_context(architecture, state.description, project_name, options)
        if state.phase is Phase.ARCHITECTURE_READY:
            state.phase = Phase.MODELS_ANALYZED
            state.context = context
            await store.save(state)
        console.print(f"  [green]+[/green] {len(context.models)} models, {len(context.routes)} routes")

        # Phase 5: files
        print_phase_header("files", "Files")
        if state.phase is not Phase.FILES_GENERATED:
            await self._generate_files(state, store, output, context, options)

        # Phase 6: wiring
        if options.include_global_query or options.include_graph_ql or webhook_service:
            print_phase_header("wiring", "Wiring")
        if options.include_global_query:
            await self._wire_global_query(output, architecture, context)
        if options.include_graph_ql:
            await self._wire_graphql(output, context)
        if webhook_service:
            await self.generate_webhook(webhook_service, output, options, context)

        diagram: dict[str, Any] = {}
        diagram_id: str | None = None
        zip_path: Path | None = None
        proceed = True
        if options.allow_preview_edit:
            proceed = Confirm.ask(
                f"Files are in {output}. Review them, then continue with the diagram and archive?",
                default=True,
                console=console,
            )

        if proceed:
            # Phase 7: diagram
            print_phase_header("diagram", "Diagram")
            diagram, diagram_id = await self._publish_diagram(
                output, project_name, state.description, architecture, options
            )

            # Phase 8: archive
            if options.generate_zip:
                print_phase_header("archive", "Archive")
                zip_path = await zip_directory(
                    output, output.parent / f"{project_name}.zip", exclude=(RECOVERY_FILE_NAME,)
                )
                console.print(f"  [green]+[/green] Archive written: {zip_path}")

        store.clear()
        elapsed = time.monotonic() - run_start
        print_summary_table(
            {
                "Project": project_name,
                "Output": str(output),
                "Files": f"{state.file_counter}/{state.total_files}",
                "Diagram": diagram_id or ("diagram.json" if proceed else "skipped"),
                "Archive": str(zip_path) if zip_path else "-",
                "Duration": format_duration(elapsed),
            },
            title="Generation Summary",
        )
        print_success(f"Project generated in {output}")

        return {
            "success": True,
            "project_name": project_name,
            "architecture": architecture.dump(),
            "diagram": diagram,
            "diagram_id": diagram_id,
            "output_path": str(output),
            "zip_path": str(zip_path) if zip_path else None,
            "generated_files": list(state.generated_files),
            "file_counter": state.file_counter,
            "total_files": state.total_files,
            "last_error": state.last_error,
        }

    # ------------------------------------------------------------------
    # Preview, saved configurations and stored projects
    # ------------------------------------------------------------------

    async def generate_preview(
        self,
        description: str,
        options: GenerationOptions | dict[str, Any] | None = None,
        prompt: str = "",
    ) -> dict[str, Any]:
        """Repaired architecture plus a stack recommendation; writes nothing.

        The returned ``options`` are the caller's options with the
        recommended stack filled in where the caller left the defaults.
        """
        base = _coerce_options(options)
        architecture = await self._acquire_architecture(description)
        architecture = await self.repairer.repair(architecture, description)
        recommendation = await self.oracle.generate_recommendation(description, prompt)

        defaults = GenerationOptions()
        merged = base.model_copy()
        for field in ("database", "framework", "auth"):
            if getattr(base, field) == getattr(defaults, field):
                setattr(merged, field, getattr(recommendation, field))
        for flag in ("include_graph_ql", "include_websockets", "include_global_query"):
            if getattr(recommendation, flag):
                setattr(merged, flag, True)

        return {"architecture": architecture, "recommendation": recommendation, "options": merged}

    async def save_configuration(
        self,
        name: str,
        description: str,
        options: GenerationOptions | dict[str, Any],
        architecture: Architecture,
    ) -> Path:
        """Store a design for later; refuses to overwrite an existing name."""
        return await self.saved.save(
            SavedConfiguration(
                name=name,
                description=description,
                options=_coerce_options(options).dump(),
                architecture=architecture,
            )
        )

    def list_saved_configurations(self) -> list[SavedConfiguration]:
        return self.saved.list_all()

    async def generate_from_saved(self, name: str, output_path: str | Path | None = None) -> dict[str, Any]:
        try:
            saved = self.saved.load(name)
        except FileNotFoundError as exc:
            raise ProjectNotFoundError(f"No saved configuration named '{name}'") from exc
        options = _coerce_options(saved.options)
        target = Path(output_path) if output_path else Path.cwd() / name
        return await self.run(saved.description, target, options, architecture=saved.architecture)

    async def regenerate_from_diagram(self, name: str, output_path: str | Path | None = None) -> dict[str, Any]:
        """Re-materialise a stored project from its diagram record."""
        record = await self.repository.find_by_name(name)
        if record is None:
            raise ProjectNotFoundError(f"No stored project named '{name}'")
        target = Path(output_path) if output_path else Path(record.output_path or Path.cwd() / name)
        options = _coerce_options({**record.options, "name": record.name})
        return await self.run(record.description, target, options, architecture=record.architecture)

    async def list_recent_projects(self, limit: int = 10) -> list[DiagramRecord]:
        return await self.repository.find_recent(limit)

    # ------------------------------------------------------------------
    # Natural-language requests
    # ------------------------------------------------------------------

    async def process_request(
        self,
        request: str,
        output_path: str | Path,
        options: GenerationOptions | dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Classify *request* and dispatch to the matching operation."""
        intent = await self.oracle.classify_request(request)
        base = _coerce_options(options)
        console.print(f"  [cyan]Request understood as:[/cyan] {intent.action}")

        if intent.action == "webhook":
            if not intent.service:
                raise UnsupportedRequestError("Could not tell which service the webhook is for")
            return await self.generate_webhook(intent.service, output_path, base)

        if intent.action in ("generateProject", "backend"):
            merged = {**base.dump(), **intent.options, "name": intent.name or Path(output_path).name}
            return await self.run(intent.description or request, output_path, merged)

        if intent.action == "regenerateProject":
            if not intent.name:
                raise UnsupportedRequestError("Could not tell which project to regenerate")
            return await self.regenerate_from_diagram(intent.name, output_path)

        raise UnsupportedRequestError(f"Unsupported action: {intent.action}")
