"""Unit tests for softarch.wiring."""

from __future__ import annotations

import pytest

from softarch.wiring import ROUTES_MARKER, append_env_variable, route_registration, splice_registration

LINE = route_registration("/api/global-query", "./routes/globalQuery")


class TestRouteRegistration:
    @pytest.mark.unit
    def test_format(self):
        assert LINE == "app.use('/api/global-query', require('./routes/globalQuery'));"


class TestSpliceRegistration:
    @pytest.mark.unit
    def test_inserts_above_marker_with_its_indent(self):
        app = f"const app = express();\n  {ROUTES_MARKER}\nmodule.exports = app;\n"
        result = splice_registration(app, LINE)
        assert result == f"const app = express();\n  {LINE}\n  {ROUTES_MARKER}\nmodule.exports = app;\n"

    @pytest.mark.unit
    def test_is_idempotent(self):
        app = f"{ROUTES_MARKER}\nmodule.exports = app;\n"
        once = splice_registration(app, LINE)
        assert splice_registration(once, LINE) == once
        assert once.count(LINE) == 1

    @pytest.mark.unit
    def test_after_routes_comment_block(self):
        app = (
            "// Rutas\n"
            "app.use('/api/users', require('./routes/userRoutes'));\n"
            "\n"
            "app.listen(3000);\n"
        )
        result = splice_registration(app, LINE)
        lines = result.splitlines()
        assert lines[2] == LINE
        assert lines[1].startswith("app.use('/api/users'")

    @pytest.mark.unit
    def test_before_module_exports(self):
        app = "const app = express();\nmodule.exports = app;\n"
        result = splice_registration(app, LINE)
        assert result.index(LINE) < result.index("module.exports")

    @pytest.mark.unit
    def test_no_site_returns_input(self):
        app = "const app = express();\napp.listen(3000);\n"
        assert splice_registration(app, LINE) == app


class TestAppendEnvVariable:
    @pytest.mark.unit
    def test_appends_with_comment(self):
        result = append_env_variable("PORT=3000\n", "STRIPE_WEBHOOK_SECRET", "x", comment="Stripe")
        assert result == "PORT=3000\n\n# Stripe\nSTRIPE_WEBHOOK_SECRET=x\n"

    @pytest.mark.unit
    def test_missing_trailing_newline(self):
        assert append_env_variable("PORT=3000", "A", "1") == "PORT=3000\n\nA=1\n"

    @pytest.mark.unit
    def test_empty_file(self):
        assert append_env_variable("", "A", "1") == "A=1\n"

    @pytest.mark.unit
    def test_is_idempotent(self):
        once = append_env_variable("PORT=3000\n", "A", "1")
        assert append_env_variable(once, "A", "2") == once
