"""Shared pytest fixtures for the softarch test suite.

Provides reusable fixtures for:
- Temporary output, saved-configuration and diagram directories
- A scripted fake LLM that answers by matching prompt substrings
- An Oracle wired to the fake LLM
- Sample architectures and generation contexts
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Union

import pytest

from softarch.architecture.models import Architecture, GenerationContext
from softarch.config import Config, LLMConfig
from softarch.llm_client import LLMResponse
from softarch.oracle.client import Oracle

# A scripted reply: text, ``None`` for a transport failure, or a callable of the prompt.
Reply = Union[str, None, Callable[[str], Union[str, None]]]


# ---------------------------------------------------------------------------
# Fake LLM
# ---------------------------------------------------------------------------


class FakeLLM:
    """Stand-in for ``LLMClient`` that answers from a script.

    Each rule is ``(marker, reply)``; the first rule whose marker occurs in
    the user prompt wins. Unmatched prompts get ``default``. Every call is
    recorded in ``calls``.
    """

    def __init__(self, rules: list[tuple[str, Reply]] | None = None, default: str = "// generated\n") -> None:
        self.rules: list[tuple[str, Reply]] = list(rules or [])
        self.default = default
        self.calls: list[dict[str, Any]] = []

    def script(self, marker: str, reply: Reply) -> None:
        """Add a rule that takes precedence over the existing ones."""
        self.rules.insert(0, (marker, reply))

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        prompt = messages[-1]["content"]
        self.calls.append(
            {
                "system": messages[0]["content"],
                "prompt": prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        reply: Reply = self.default
        for marker, scripted in self.rules:
            if marker in prompt:
                reply = scripted
                break
        if callable(reply):
            reply = reply(prompt)
        if reply is None:
            return LLMResponse(model="fake", success=False, error="Cannot connect to the LLM API.")
        return LLMResponse(text=reply, model="fake", success=True)

    def prompts_with(self, marker: str) -> list[str]:
        return [call["prompt"] for call in self.calls if marker in call["prompt"]]


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

BLOG_ARCHITECTURE: dict[str, Any] = {
    "folders": [
        {"path": "config", "description": "Configuration"},
        {"path": "models", "description": "Data models"},
        {"path": "controllers", "description": "Request handlers"},
        {"path": "routes", "description": "API routes"},
        {"path": "middleware", "description": "Express middleware"},
    ],
    "files": [
        {"path": "config/database.js", "description": "MongoDB connection"},
        {"path": "middleware/auth.js", "description": "JWT auth middleware"},
        {"path": "models/post.js", "description": "Blog post", "useTemplate": True, "templateType": "model"},
        {"path": "models/comment.js", "description": "Comment on a post", "useTemplate": True, "templateType": "model"},
        {
            "path": "controllers/postController.js",
            "description": "Post CRUD",
            "useTemplate": True,
            "templateType": "controller",
        },
        {
            "path": "controllers/commentController.js",
            "description": "Comment CRUD",
            "useTemplate": True,
            "templateType": "controller",
        },
        {"path": "routes/postRoutes.js", "description": "Post routes", "useTemplate": True, "templateType": "route"},
        {
            "path": "routes/commentRoutes.js",
            "description": "Comment routes",
            "useTemplate": True,
            "templateType": "route",
        },
        {"path": "app.js", "description": "Entry point", "useTemplate": True, "templateType": "main"},
        {"path": "package.json", "description": "Manifest", "useTemplate": True, "templateType": "config"},
        {"path": ".env.example", "description": "Environment", "useTemplate": True, "templateType": "config"},
    ],
}

MODEL_FIELDS_REPLY = json.dumps(
    [
        {"name": "title", "type": "String", "required": True},
        {"name": "body", "type": "String"},
        {"name": "publishedAt", "type": "Date", "default": "Date.now"},
    ]
)


def blog_rules() -> list[tuple[str, Reply]]:
    """A script under which the blog project generates without failures."""
    return [
        ("Design the folder and file structure", "Here you go:\n" + json.dumps(BLOG_ARCHITECTURE)),
        ("List the main domain entities", '["post", "comment"]'),
        ("List the fields of the data model", MODEL_FIELDS_REPLY),
        ("Suggest useful instance method names", '["summary"]'),
        ("extension point", "// project specific code\n"),
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM(blog_rules())


@pytest.fixture
def oracle(fake_llm: FakeLLM) -> Oracle:
    return Oracle(fake_llm)


@pytest.fixture
def blog_architecture() -> Architecture:
    return Architecture.model_validate(BLOG_ARCHITECTURE)


@pytest.fixture
def context() -> GenerationContext:
    return GenerationContext(
        description="REST API for a blog with posts and comments",
        project_name="blog-api",
    )


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config whose stores live under ``tmp_path``."""
    return Config(
        llm=LLMConfig(api_key="test-key"),
        saved_projects_dir=tmp_path / "saved-projects",
        diagram_store_dir=tmp_path / "diagrams",
    )


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Project directory for generated output (not created in advance)."""
    return tmp_path / "blog-api"
