"""Cross-wiring: edits that register freshly written files in existing ones.

Two splices exist. Route registrations go into the entry point, and
environment variables are appended to ``.env.example``. Both are idempotent:
applying a splice to its own output changes nothing.
"""

from __future__ import annotations

import re

# Marker line emitted by the entry-point template; registrations go above it.
ROUTES_MARKER = "// <routes:autogen>"

_ROUTES_COMMENT_RE = re.compile(r"^\s*//\s*(Rutas|Routes)\b", re.IGNORECASE)
_EXPORTS_RE = re.compile(r"^\s*module\.exports\b")


def route_registration(mount_path: str, require_path: str) -> str:
    """``app.use('<mount_path>', require('<require_path>'));``"""
    return f"app.use('{mount_path}', require('{require_path}'));"


def splice_registration(app_text: str, line: str) -> str:
    """Insert *line* into the entry point's route registration region.

    Insertion site, first match wins:

    1. directly above the ``// <routes:autogen>`` marker;
    2. after the ``app.use(`` lines following a ``// Routes`` (or
       ``// Rutas``) comment;
    3. above ``module.exports``.

    If *line* is already present, or no site is found, *app_text* is
    returned unchanged.
    """
    line = line.strip()
    lines = app_text.splitlines(keepends=True)
    if any(existing.strip() == line for existing in lines):
        return app_text

    for index, existing in enumerate(lines):
        if existing.strip() == ROUTES_MARKER:
            indent = existing[: len(existing) - len(existing.lstrip())]
            lines.insert(index, f"{indent}{line}\n")
            return "".join(lines)

    for index, existing in enumerate(lines):
        if _ROUTES_COMMENT_RE.match(existing):
            insert_at = index + 1
            while insert_at < len(lines) and lines[insert_at].strip().startswith("app.use("):
                insert_at += 1
            lines.insert(insert_at, f"{line}\n")
            return "".join(lines)

    for index, existing in enumerate(lines):
        if _EXPORTS_RE.match(existing):
            lines.insert(index, f"{line}\n\n")
            return "".join(lines)

    return app_text


def append_env_variable(env_text: str, name: str, value: str, comment: str | None = None) -> str:
    """Append ``NAME=value`` unless *name* already appears anywhere in *env_text*."""
    if name in env_text:
        return env_text
    block = ""
    if env_text and not env_text.endswith("\n"):
        block += "\n"
    if env_text:
        block += "\n"
    if comment:
        block += f"# {comment}\n"
    block += f"{name}={value}\n"
    return env_text + block
