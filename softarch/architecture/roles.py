"""Path classification: the single source of truth for file roles.

Everything that needs to know whether a file is a model, a route, the entry
point and so on asks :func:`classify_role`; nothing else scans path
substrings.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from softarch.architecture.models import FileRole
from softarch.utils import to_kebab

# Directory segment -> role. The deepest matching segment wins.
_DIRECTORY_ROLES: dict[str, FileRole] = {
    "models": FileRole.MODEL,
    "model": FileRole.MODEL,
    "controllers": FileRole.CONTROLLER,
    "controller": FileRole.CONTROLLER,
    "routes": FileRole.ROUTE,
    "route": FileRole.ROUTE,
    "middleware": FileRole.MIDDLEWARE,
    "middlewares": FileRole.MIDDLEWARE,
    "config": FileRole.CONFIG,
}

_ENTRY_POINT_STEMS = ("app", "index", "server")
_CONFIG_FILES = ("package.json",)

# Generation order of file categories.
CATEGORY_ORDER: tuple[str, ...] = ("config", "models", "controllers", "routes", "other")

_ROLE_CATEGORIES: dict[FileRole, str] = {
    FileRole.MODEL: "models",
    FileRole.CONTROLLER: "controllers",
    FileRole.ROUTE: "routes",
}

_ROLE_SUFFIX_RE = re.compile(r"(Controller|Routes|Route|Model)$")


def classify_role(path: str) -> FileRole:
    """Return the role of *path* (POSIX, relative to the project root).

    Examples::

        classify_role("models/user.js")            -> FileRole.MODEL
        classify_role("src/routes/webhooks/x.js")  -> FileRole.ROUTE
        classify_role("app.js")                    -> FileRole.MAIN
        classify_role(".env.example")              -> FileRole.CONFIG
        classify_role("utils/logger.js")           -> FileRole.OTHER
    """
    pure = PurePosixPath(path)
    for segment in reversed([part.lower() for part in pure.parts[:-1]]):
        role = _DIRECTORY_ROLES.get(segment)
        if role is not None:
            return role

    name = pure.name.lower()
    if name in _CONFIG_FILES or name.startswith(".env"):
        return FileRole.CONFIG
    if pure.suffix in (".js", ".ts") and pure.stem.lower() in _ENTRY_POINT_STEMS:
        return FileRole.MAIN
    return FileRole.OTHER


def category_of(path: str) -> str:
    """Map *path* to one of :data:`CATEGORY_ORDER`.

    The entry point, middleware and configuration files all belong to the
    ``config`` category, which is generated first.
    """
    role = classify_role(path)
    if role in (FileRole.CONFIG, FileRole.MAIN, FileRole.MIDDLEWARE):
        return "config"
    return _ROLE_CATEGORIES.get(role, "other")


def normalize_category(name: str | None) -> str | None:
    """Canonical category for *name*, accepting the singular forms (``model``)."""
    if name is None:
        return None
    if name in CATEGORY_ORDER:
        return name
    plural = f"{name}s"
    return plural if plural in CATEGORY_ORDER else None


def is_entry_point(path: str) -> bool:
    return classify_role(path) is FileRole.MAIN


def is_cacheable(path: str) -> bool:
    """True for generic files whose code does not depend on the project.

    Covers the auth middleware, the database configuration and anything under
    ``utils/`` or ``helpers/``.
    """
    pure = PurePosixPath(path.lower())
    dirs = pure.parts[:-1]
    if "utils" in dirs or "helpers" in dirs:
        return True
    parent = dirs[-1] if dirs else ""
    if parent in ("middleware", "middlewares") and pure.stem == "auth":
        return True
    if parent == "config" and pure.stem in ("database", "db"):
        return True
    return False


# ---------------------------------------------------------------------------
# Name derivation
# ---------------------------------------------------------------------------

def entity_stem(path: str) -> str:
    """File stem with any ``Controller``/``Routes``/``Model`` suffix removed.

    ``controllers/userController.js`` -> ``user``.
    """
    stem = PurePosixPath(path).stem
    trimmed = _ROLE_SUFFIX_RE.sub("", stem)
    return trimmed or stem


def model_name_from_path(path: str) -> str:
    """Model name: the full file stem with its first character upper-cased.

    ``models/userModel.js`` -> ``UserModel``. A stem starting with a digit or
    symbol keeps that character as-is.
    """
    stem = PurePosixPath(path).stem
    if not stem:
        return stem
    return stem[0].upper() + stem[1:]


def route_path_from_file(path: str) -> str:
    """Kebab-case URL segment for a route module (``routes/blogPostRoutes.js`` -> ``blog-post``)."""
    return to_kebab(entity_stem(path))
