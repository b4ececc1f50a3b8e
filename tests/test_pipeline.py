"""End-to-end tests for GenerationPipeline driven by a scripted fake LLM.

No network access: every LLM call is answered by ``FakeLLM`` and all output
goes to ``tmp_path``.
"""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import FakeLLM, blog_rules
from softarch.architecture.models import Architecture, DiagramRecord, Phase
from softarch.config import Config, GenerationOptions
from softarch.errors import (
    ConfigurationError,
    GenerationPaused,
    ProjectNotFoundError,
    RepositoryError,
    UnsupportedRequestError,
)
from softarch.oracle.client import Oracle
from softarch.pipeline import GenerationPipeline
from softarch.recovery import RECOVERY_FILE_NAME, RecoveryStore

GLOBAL_QUERY_LINE = "app.use('/api/global-query', require('./routes/globalQuery'));"

LLM_APP_JS = (
    "const express = require('express');\n"
    "const app = express();\n"
    "\n"
    "// Routes\n"
    "app.use('/api/post', require('./routes/postRoutes'));\n"
    "\n"
    "module.exports = app;\n"
)


class FailingRepository:
    """Diagram repository whose writes always fail."""

    async def find_by_name(self, name: str) -> DiagramRecord | None:
        return None

    async def save(self, record: DiagramRecord) -> DiagramRecord:
        raise RepositoryError("database offline")

    async def find_recent(self, limit: int = 10) -> list[DiagramRecord]:
        return []

    async def delete_by_id(self, record_id: str) -> bool:
        return False


def _pipeline(config: Config, llm: FakeLLM, repository=None) -> GenerationPipeline:
    return GenerationPipeline(config, oracle=Oracle(llm), repository=repository)


# ---------------------------------------------------------------------------
# Full runs
# ---------------------------------------------------------------------------


class TestRun:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_blog_happy_path(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        pipeline = _pipeline(config, fake_llm)
        result = await pipeline.run(
            "REST API for a blog with posts and comments", output_dir, {"generateZip": True}
        )

        assert result["success"] is True
        assert result["file_counter"] == result["total_files"] == 11
        assert result["project_name"] == "blog-api"
        for relative in ("models/post.js", "controllers/commentController.js", "routes/postRoutes.js", "app.js"):
            assert (output_dir / relative).is_file()

        app = (output_dir / "app.js").read_text(encoding="utf-8")
        assert "app.use('/api/post', require('./routes/postRoutes'));" in app
        assert "app.use('/api/comment', require('./routes/commentRoutes'));" in app
        assert "// project specific code" in app

        manifest = json.loads((output_dir / "package.json").read_text(encoding="utf-8"))
        assert manifest["name"] == "blog-api"
        assert "mongoose" in manifest["dependencies"]

        model = (output_dir / "models" / "post.js").read_text(encoding="utf-8")
        assert "publishedAt" in model
        assert "postSchema.methods.summary" in model

        assert not (output_dir / RECOVERY_FILE_NAME).exists()
        assert result["diagram_id"]
        stored = await pipeline.list_recent_projects()
        assert [record.name for record in stored] == ["blog-api"]

        zip_path = Path(result["zip_path"])
        assert zip_path == output_dir.parent / "blog-api.zip"
        with zipfile.ZipFile(zip_path) as zf:
            assert "models/post.js" in zf.namelist()
            assert RECOVERY_FILE_NAME not in zf.namelist()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_files_generated_in_category_order(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        result = await _pipeline(config, fake_llm).run("blog", output_dir)
        relative = [Path(p).relative_to(output_dir).as_posix() for p in result["generated_files"]]
        assert relative[:5] == ["config/database.js", "middleware/auth.js", "app.js", "package.json", ".env.example"]
        assert relative.index("models/comment.js") < relative.index("controllers/postController.js")
        assert relative.index("controllers/commentController.js") < relative.index("routes/postRoutes.js")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unusable_architecture_falls_back_to_default(self, config: Config, output_dir: Path):
        llm = FakeLLM(
            [
                ("Design the folder and file structure", "Sorry, I would rather describe it in words."),
                ("List the main domain entities", "[]"),
            ]
        )
        result = await _pipeline(config, llm).run("A blog platform", output_dir)

        assert result["success"] is True
        for relative in ("models/article.js", "routes/categoryRoutes.js", "utils/logger.js", "app.js"):
            assert (output_dir / relative).is_file()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_llm_unreachable_for_architecture_falls_back(self, config: Config, output_dir: Path):
        llm = FakeLLM([("Design the folder and file structure", None), ("List the main domain entities", None)])
        result = await _pipeline(config, llm).run("online shop", output_dir)
        assert result["success"] is True
        assert (output_dir / "models" / "product.js").is_file()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_code_fences_are_stripped_from_files(self, config: Config, output_dir: Path):
        llm = FakeLLM(blog_rules())
        llm.script("Write the data model in models/post.js", "```javascript\nconst x=1;\n```")
        await _pipeline(config, llm).run("blog", output_dir, {"useTemplates": False})
        assert (output_dir / "models" / "post.js").read_text(encoding="utf-8") == "const x=1;\n"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_supplied_architecture_skips_llm_design(
        self, config: Config, fake_llm: FakeLLM, blog_architecture: Architecture, output_dir: Path
    ):
        await _pipeline(config, fake_llm).run("blog", output_dir, architecture=blog_architecture)
        assert fake_llm.prompts_with("Design the folder and file structure") == []
        assert fake_llm.prompts_with("List the main domain entities") == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_architecture_without_files_creates_folders_only(
        self, config: Config, fake_llm: FakeLLM, output_dir: Path
    ):
        architecture = Architecture.model_validate({"folders": [{"path": "models"}, {"path": "routes"}], "files": []})
        result = await _pipeline(config, fake_llm).run("empty", output_dir, architecture=architecture)

        assert result["success"] is True
        assert result["file_counter"] == result["total_files"] == 0
        assert result["generated_files"] == []
        assert (output_dir / "models").is_dir()
        assert (output_dir / "routes").is_dir()
        assert [p for p in output_dir.rglob("*") if p.is_file()] == []
        assert fake_llm.calls == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_template_type_is_written_by_llm(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        architecture = Architecture.model_validate(
            {
                "folders": [{"path": "models"}],
                "files": [
                    {"path": "models/tag.js", "description": "Tag", "useTemplate": True, "templateType": "schema"}
                ],
            }
        )
        fake_llm.script("Write the data model in models/tag.js", "module.exports = 'tag';\n")
        result = await _pipeline(config, fake_llm).run("tags", output_dir, architecture=architecture)

        assert result["file_counter"] == 1
        assert fake_llm.prompts_with("List the fields of the data model") == []
        assert (output_dir / "models" / "tag.js").read_text(encoding="utf-8") == "module.exports = 'tag';\n"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_suffixed_model_file_keeps_its_name(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        architecture = Architecture.model_validate(
            {
                "folders": [{"path": "models"}, {"path": "controllers"}, {"path": "routes"}],
                "files": [
                    {"path": "models/userModel.js", "useTemplate": True, "templateType": "model"},
                    {"path": "controllers/userController.js", "useTemplate": True, "templateType": "controller"},
                    {"path": "routes/userRoutes.js", "useTemplate": True, "templateType": "route"},
                ],
            }
        )
        await _pipeline(config, fake_llm).run("users", output_dir, architecture=architecture)

        controller = (output_dir / "controllers" / "userController.js").read_text(encoding="utf-8")
        assert "const UserModel = require('../models/userModel');" in controller
        router = (output_dir / "routes" / "userRoutes.js").read_text(encoding="utf-8")
        assert "require('../controllers/userController')" in router

    @pytest.mark.unit
    def test_context_model_name_is_full_file_stem(self):
        architecture = Architecture.model_validate({"files": [{"path": "models/userModel.js"}]})
        context = GenerationPipeline._build_context(architecture, "users", "users", GenerationOptions())
        assert [model.name for model in context.models] == ["UserModel"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unwritable_output_path(self, config: Config, fake_llm: FakeLLM, tmp_path: Path):
        blocker = tmp_path / "taken"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            await _pipeline(config, fake_llm).run("blog", blocker)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_repository_failure_writes_local_diagram(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        result = await _pipeline(config, fake_llm, FailingRepository()).run("blog", output_dir)

        assert result["success"] is True
        assert result["diagram_id"] is None
        sidecar = json.loads((output_dir / "diagram.json").read_text(encoding="utf-8"))
        assert sidecar["name"] == "blog-api"
        assert set(sidecar) >= {"name", "description", "architecture", "diagram", "createdAt"}
        assert sidecar["diagram"]["nodes"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_review_declined_skips_diagram_and_archive(
        self, config: Config, fake_llm: FakeLLM, output_dir: Path
    ):
        with patch("softarch.pipeline.Confirm.ask", return_value=False):
            result = await _pipeline(config, fake_llm).run(
                "blog", output_dir, {"allowPreviewEdit": True, "generateZip": True}
            )
        assert result["diagram_id"] is None
        assert result["zip_path"] is None
        assert not (output_dir / "diagram.json").exists()


# ---------------------------------------------------------------------------
# Failures and resume
# ---------------------------------------------------------------------------


class TestResume:
    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize("saved_category", ["models", "model"])
    async def test_resume_from_second_model(
        self,
        config: Config,
        fake_llm: FakeLLM,
        blog_architecture: Architecture,
        output_dir: Path,
        saved_category: str,
    ):
        output_dir.mkdir()
        snapshot = {
            "projectName": "blog-api",
            "description": "blog",
            "architecture": blog_architecture.dump(),
            "totalFiles": 11,
            "fileCounter": 6,
            "phase": "generating_files",
            "currentCategory": saved_category,
            "currentCategoryIndex": 0,
            "timestamp": "2024-01-01T00:00:00+00:00",
        }
        (output_dir / RECOVERY_FILE_NAME).write_text(json.dumps(snapshot), encoding="utf-8")

        result = await _pipeline(config, fake_llm).run("blog", output_dir, {"useTemplates": False})

        assert fake_llm.prompts_with("Design the folder and file structure") == []
        assert fake_llm.prompts_with("models/post.js.") == []
        assert fake_llm.prompts_with("Write the configuration module in config/database.js") == []
        assert fake_llm.prompts_with("Write the data model in models/comment.js")
        assert fake_llm.prompts_with("Write the router in routes/postRoutes.js")
        assert not (output_dir / "models" / "post.js").exists()
        assert result["file_counter"] == 11
        assert not (output_dir / RECOVERY_FILE_NAME).exists()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_failure_pauses_then_resumes(self, config: Config, output_dir: Path):
        failing = "Write the controller in controllers/commentController.js"
        llm = FakeLLM(blog_rules())
        llm.script(failing, None)
        pipeline = _pipeline(config, llm)

        with pytest.raises(GenerationPaused) as exc_info:
            await pipeline.run("blog", output_dir, {"useTemplates": False})
        assert "resume" in str(exc_info.value)

        state = RecoveryStore(output_dir).read()
        assert state.phase is Phase.GENERATING_FILES
        assert state.current_category == "controllers"
        assert state.current_category_index == 0
        assert state.file_counter == 8
        assert "commentController.js" in state.last_error

        llm.script(failing, "module.exports = {};\n")
        result = await pipeline.run("blog", output_dir, {"useTemplates": False})

        assert result["file_counter"] == 11
        assert len(llm.prompts_with("Write the controller in controllers/postController.js")) == 1
        assert len(llm.prompts_with("Design the folder and file structure")) == 1
        assert (output_dir / "controllers" / "commentController.js").read_text(encoding="utf-8") == (
            "module.exports = {};\n"
        )

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_continue_on_error_skips_file(self, config: Config, output_dir: Path):
        llm = FakeLLM(blog_rules())
        llm.script("Write the controller in controllers/commentController.js", None)
        result = await _pipeline(config, llm).run(
            "blog", output_dir, {"useTemplates": False, "continueOnError": True}
        )

        assert result["success"] is True
        assert result["file_counter"] == 11
        assert not (output_dir / "controllers" / "commentController.js").exists()
        assert "commentController.js" in result["last_error"]


# ---------------------------------------------------------------------------
# Wiring post-phases
# ---------------------------------------------------------------------------


class TestWiring:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_global_query_registered_once_across_runs(self, config: Config, output_dir: Path):
        llm = FakeLLM(blog_rules())
        llm.script("Write the file app.js", LLM_APP_JS)
        pipeline = _pipeline(config, llm)
        options = {"useTemplates": False, "includeGlobalQuery": True}

        await pipeline.run("blog", output_dir, options)
        await pipeline.run("blog", output_dir, options)

        app = (output_dir / "app.js").read_text(encoding="utf-8")
        assert app.count(GLOBAL_QUERY_LINE) == 1
        assert app.index(GLOBAL_QUERY_LINE) < app.index("module.exports")
        assert (output_dir / "routes" / "globalQuery.js").is_file()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_global_query_with_templates(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        await _pipeline(config, fake_llm).run("blog", output_dir, {"includeGlobalQuery": True})
        app = (output_dir / "app.js").read_text(encoding="utf-8")
        assert app.count(GLOBAL_QUERY_LINE) == 1
        router = (output_dir / "routes" / "globalQuery.js").read_text(encoding="utf-8")
        assert "require('../models/post')" in router

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_graphql_post_phase(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        await _pipeline(config, fake_llm).run("blog", output_dir, {"includeGraphQL": True})

        for name in ("schema.graphql", "resolvers.js", "server.js"):
            assert (output_dir / "graphql" / name).is_file()
        schema = (output_dir / "graphql" / "schema.graphql").read_text(encoding="utf-8")
        assert "type Post {" in schema
        assert "title: String!" in schema
        app = (output_dir / "app.js").read_text(encoding="utf-8")
        assert app.count("app.use('/graphql', require('./graphql/server'));") == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_webhook_during_run(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        await _pipeline(config, fake_llm).run("blog", output_dir, webhook_service="GitHub")
        assert (output_dir / "routes" / "webhooks" / "githubWebhook.js").is_file()
        app = (output_dir / "app.js").read_text(encoding="utf-8")
        assert "app.use('/api/webhooks/github', require('./routes/webhooks/githubWebhook'));" in app


class TestStandaloneWebhook:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_webhook_added_to_existing_project(self, config: Config, fake_llm: FakeLLM, output_dir: Path):
        pipeline = _pipeline(config, fake_llm)
        await pipeline.run("blog", output_dir)

        first = await pipeline.generate_webhook("Stripe", output_dir)
        await pipeline.generate_webhook("Stripe", output_dir)

        assert first["service_name"] == "Stripe"
        assert Path(first["webhook_path"]) == output_dir / "routes" / "webhooks" / "stripeWebhook.js"
        app = (output_dir / "app.js").read_text(encoding="utf-8")
        assert app.count("app.use('/api/webhooks/stripe', require('./routes/webhooks/stripeWebhook'));") == 1
        env = (output_dir / ".env.example").read_text(encoding="utf-8")
        assert env.count("STRIPE_WEBHOOK_SECRET=your_webhook_secret_here") == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_webhook_without_entry_point(self, config: Config, fake_llm: FakeLLM, tmp_path: Path):
        result = await _pipeline(config, fake_llm).generate_webhook("telegram", tmp_path / "bare")
        assert Path(result["webhook_path"]).is_file()
        env = (tmp_path / "bare" / ".env.example").read_text(encoding="utf-8")
        assert "TELEGRAM_WEBHOOK_SECRET=" in env


# ---------------------------------------------------------------------------
# Preview, saved configurations, stored projects, requests
# ---------------------------------------------------------------------------


class TestPreviewAndStores:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_preview_writes_nothing(self, config: Config, fake_llm: FakeLLM, tmp_path: Path):
        fake_llm.script("Recommend a backend stack", '{"database": "PostgreSQL", "includeGraphQL": true}')
        preview = await _pipeline(config, fake_llm).generate_preview("blog", {"auth": "Session"})

        assert preview["architecture"].has_file("models/post.js")
        assert preview["recommendation"].database == "PostgreSQL"
        assert preview["options"].database == "PostgreSQL"
        assert preview["options"].auth == "Session"
        assert preview["options"].include_graph_ql is True
        assert not (tmp_path / "blog-api").exists()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_save_and_generate_from_saved(
        self, config: Config, fake_llm: FakeLLM, blog_architecture: Architecture, tmp_path: Path
    ):
        pipeline = _pipeline(config, fake_llm)
        path = await pipeline.save_configuration("blog-saved", "blog", {"database": "MongoDB"}, blog_architecture)
        assert path == config.saved_projects_dir / "blog-saved.json"
        assert [item.name for item in pipeline.list_saved_configurations()] == ["blog-saved"]

        result = await pipeline.generate_from_saved("blog-saved", tmp_path / "out")
        assert result["success"] is True
        assert fake_llm.prompts_with("Design the folder and file structure") == []
        assert (tmp_path / "out" / "models" / "post.js").is_file()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_generate_from_missing_saved(self, config: Config, fake_llm: FakeLLM):
        with pytest.raises(ProjectNotFoundError):
            await _pipeline(config, fake_llm).generate_from_saved("nope")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_regenerate_from_diagram(self, config: Config, fake_llm: FakeLLM, output_dir: Path, tmp_path: Path):
        pipeline = _pipeline(config, fake_llm)
        await pipeline.run("blog", output_dir)
        design_calls = len(fake_llm.prompts_with("Design the folder and file structure"))

        result = await pipeline.regenerate_from_diagram("blog-api", tmp_path / "copy")

        assert result["success"] is True
        assert result["project_name"] == "blog-api"
        assert len(fake_llm.prompts_with("Design the folder and file structure")) == design_calls
        assert (tmp_path / "copy" / "routes" / "commentRoutes.js").is_file()
        assert len(await pipeline.list_recent_projects()) == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_regenerate_unknown_project(self, config: Config, fake_llm: FakeLLM):
        with pytest.raises(ProjectNotFoundError):
            await _pipeline(config, fake_llm).regenerate_from_diagram("ghost")


class TestProcessRequest:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_webhook_request(self, config: Config, fake_llm: FakeLLM, tmp_path: Path):
        fake_llm.script("Decide what the user wants", '{"action": "webhook", "service": "Slack"}')
        result = await _pipeline(config, fake_llm).process_request("add slack events", tmp_path / "p")
        assert result["service_name"] == "Slack"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_generate_request(self, config: Config, fake_llm: FakeLLM, tmp_path: Path):
        fake_llm.script(
            "Decide what the user wants",
            json.dumps(
                {
                    "action": "generateProject",
                    "name": "posts-api",
                    "description": "Blog with posts",
                    "options": {"auth": "none"},
                }
            ),
        )
        result = await _pipeline(config, fake_llm).process_request("make me a blog api", tmp_path / "p")
        assert result["project_name"] == "posts-api"
        route = (tmp_path / "p" / "routes" / "postRoutes.js").read_text(encoding="utf-8")
        assert "protect" not in route

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unsupported_request(self, config: Config, fake_llm: FakeLLM, tmp_path: Path):
        fake_llm.script("Decide what the user wants", '{"action": "deleteEverything"}')
        with pytest.raises(UnsupportedRequestError):
            await _pipeline(config, fake_llm).process_request("rm -rf", tmp_path / "p")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_webhook_request_without_service(self, config: Config, fake_llm: FakeLLM, tmp_path: Path):
        fake_llm.script("Decide what the user wants", '{"action": "webhook"}')
        with pytest.raises(UnsupportedRequestError):
            await _pipeline(config, fake_llm).process_request("add a webhook", tmp_path / "p")
