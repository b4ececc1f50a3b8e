"""softarch scaffolder -- Jinja2 templates for the standard backend files.

Quick usage::

    from softarch.scaffolder import CodeTemplates, TemplateRenderer

    templates = CodeTemplates(TemplateRenderer(), oracle)
    code = await templates.generate_controller(
        {"modelName": "User", "modelFileName": "user"}, context
    )
"""

from softarch.scaffolder.code_templates import CodeTemplates, manifest_dependencies
from softarch.scaffolder.templates import CODE_MARKER, SCHEMA_MARKER, TemplateRenderer

__all__ = [
    "CODE_MARKER",
    "CodeTemplates",
    "SCHEMA_MARKER",
    "TemplateRenderer",
    "manifest_dependencies",
]
