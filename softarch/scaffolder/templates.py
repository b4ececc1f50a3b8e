"""Jinja2 template rendering for generated project files.

Provides the TemplateRenderer class which loads ``<kind>/<name>.j2`` files
from the template root (``softarch/scaffolder/templates/`` by default),
renders them with per-file data, and splices LLM-written fragments into
the single injection marker a template may carry.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape

from softarch.errors import TemplateMissingError

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Injection markers. Code files use the first, schema-like files the second.
CODE_MARKER = "// [IA_GENERATED_CODE]"
SCHEMA_MARKER = "# [IA_GENERATED_CODE]"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project files.

    Templates are addressed by ``(kind, name)``, e.g. ``("backend",
    "controller.js")`` resolves to ``<root>/backend/controller.js.j2``.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        self.env.filters["js_literal"] = _js_literal_filter
        self.env.filters["mongoose_type"] = _mongoose_type_filter
        self.env.filters["graphql_type"] = _graphql_type_filter

    # -- Loading -------------------------------------------------------------

    def load(self, kind: str, name: str) -> Template:
        """Load ``<root>/<kind>/<name>.j2``.

        Raises:
            TemplateMissingError: If the file does not exist.
        """
        try:
            return self.env.get_template(f"{kind}/{name}.j2")
        except TemplateNotFound as exc:
            raise TemplateMissingError(kind, name, self.template_dir) from exc

    def has_template(self, kind: str, name: str) -> bool:
        return (self.template_dir / kind / f"{name}.j2").is_file()

    # -- Rendering -----------------------------------------------------------

    def render(self, template: Template | str, data: dict[str, Any]) -> str:
        """Render a loaded template, or compile and render a template string."""
        if isinstance(template, str):
            template = self.env.from_string(template)
        return template.render(**data)

    def render_named(self, kind: str, name: str, data: dict[str, Any]) -> str:
        return self.render(self.load(kind, name), data)

    @staticmethod
    def inject(rendered: str, fragment: str, marker: str = CODE_MARKER) -> str:
        """Replace the injection *marker* in *rendered* with *fragment*.

        Without a marker the fragment is discarded and *rendered* is
        returned as-is.
        """
        if marker not in rendered:
            return rendered
        return rendered.replace(marker, fragment.rstrip("\n"), 1)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

_JS_EXPRESSION_RE = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)+(\(\))?$")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word[0].upper() + word[1:] for word in parts if word)


def _camel_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def _js_literal_filter(value: Any) -> str:
    """Render a Python value as a JavaScript literal.

    Dotted expressions such as ``Date.now`` are emitted bare.
    """
    if isinstance(value, str) and _JS_EXPRESSION_RE.match(value):
        return value
    return json.dumps(value, ensure_ascii=False)


_MONGOOSE_TYPES = {
    "objectid": "mongoose.Schema.Types.ObjectId",
    "mixed": "mongoose.Schema.Types.Mixed",
    "array": "Array",
    "number": "Number",
    "boolean": "Boolean",
    "date": "Date",
    "buffer": "Buffer",
    "map": "Map",
}


def _mongoose_type_filter(value: Any) -> str:
    return _MONGOOSE_TYPES.get(str(value or "").lower(), "String")


_GRAPHQL_TYPES = {
    "objectid": "ID",
    "number": "Float",
    "boolean": "Boolean",
    "array": "[String]",
}


def _graphql_type_filter(value: Any) -> str:
    return _GRAPHQL_TYPES.get(str(value or "").lower(), "String")
