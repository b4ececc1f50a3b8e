"""Unit tests for the architecture document models."""

from __future__ import annotations

import pytest

from softarch.architecture.models import Architecture, FileSpec, FolderSpec, RecoveryState, WebhookConfig


class TestModels:
    @pytest.mark.unit
    def test_paths_are_normalised(self):
        assert FileSpec(path=".\\models\\user.js").path == "models/user.js"
        assert FolderSpec(path="/src/models/").path == "src/models"

    @pytest.mark.unit
    def test_camel_case_round_trip(self, blog_architecture: Architecture):
        dumped = blog_architecture.dump()
        assert dumped["files"][2]["useTemplate"] is True
        assert dumped["files"][2]["templateType"] == "model"
        assert Architecture.model_validate(dumped) == blog_architecture

    @pytest.mark.unit
    def test_optimization_info(self, blog_architecture: Architecture):
        info = blog_architecture.refresh_optimization_info()
        assert info.total_files == 11
        assert info.templated_files == 9
        assert info.custom_files == 2
        assert blog_architecture.dump()["optimizationInfo"]["totalFolders"] == 5

    @pytest.mark.unit
    def test_recovery_state_keys(self, blog_architecture: Architecture):
        state = RecoveryState(
            project_name="blog",
            description="d",
            architecture=blog_architecture,
            total_files=11,
            phase="generating_files",
            current_category="models",
            current_category_index=0,
            timestamp="2024-01-01T00:00:00+00:00",
        )
        dumped = state.dump()
        assert dumped["currentCategoryIndex"] == 0
        assert dumped["phase"] == "generating_files"
        assert "lastError" not in dumped

    @pytest.mark.unit
    def test_webhook_secret_env_var(self):
        config = WebhookConfig(service_name="Acme Pay")
        assert config.slug == "acmepay"
        assert config.secret_env_var == "ACMEPAY_WEBHOOK_SECRET"
