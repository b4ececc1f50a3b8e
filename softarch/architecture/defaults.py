"""Keyword-driven fallback architecture.

Used only when the LLM cannot produce an architecture at all. The project
type is guessed from keywords in the description and mapped to a fixed
entity set.
"""

from __future__ import annotations

from softarch.architecture.models import Architecture, FileSpec, FolderSpec

# (keywords, entities), checked in order; the first keyword hit wins.
_PROJECT_TYPES: list[tuple[tuple[str, ...], tuple[str, ...]]] = [
    (("ecommerce", "e-commerce", "shop", "store"), ("product", "category", "order", "user")),
    (("blog",), ("article", "user", "comment", "category")),
    (("cms", "content management"), ("page", "post", "media", "user")),
    (("booking", "reservation", "appointment"), ("booking", "service", "customer", "user")),
    (("inventory", "warehouse", "stock"), ("product", "warehouse", "supplier", "movement")),
]

_GENERIC_ENTITIES: tuple[str, ...] = ("item", "user")


def entities_for(description: str) -> tuple[str, ...]:
    """Entity set for the first project type whose keyword appears in *description*."""
    text = description.lower()
    for keywords, entities in _PROJECT_TYPES:
        if any(keyword in text for keyword in keywords):
            return entities
    return _GENERIC_ENTITIES


def default_architecture(description: str) -> Architecture:
    """Build a conventional Express/MVC layout for *description*."""
    architecture = Architecture(
        folders=[
            FolderSpec(path="config", description="Application configuration"),
            FolderSpec(path="models", description="Data models"),
            FolderSpec(path="controllers", description="Request handlers"),
            FolderSpec(path="routes", description="API route definitions"),
            FolderSpec(path="middleware", description="Express middleware"),
            FolderSpec(path="utils", description="Shared helpers"),
        ],
        files=[
            FileSpec(path="config/database.js", description="Database connection setup"),
            FileSpec(path="middleware/auth.js", description="Authentication middleware"),
            FileSpec(path="middleware/errorHandler.js", description="Central error handler"),
        ],
    )

    for entity in entities_for(description):
        architecture.files.extend(
            [
                FileSpec(
                    path=f"models/{entity}.js",
                    description=f"Data model for {entity}",
                    use_template=True,
                    template_type="model",
                ),
                FileSpec(
                    path=f"controllers/{entity}Controller.js",
                    description=f"CRUD controller for {entity}",
                    use_template=True,
                    template_type="controller",
                ),
                FileSpec(
                    path=f"routes/{entity}Routes.js",
                    description=f"REST routes for {entity}",
                    use_template=True,
                    template_type="route",
                ),
            ]
        )

    architecture.files.extend(
        [
            FileSpec(path="utils/logger.js", description="Application logger"),
            FileSpec(path="app.js", description="Application entry point", use_template=True, template_type="main"),
            FileSpec(path="package.json", description="Project manifest", use_template=True, template_type="config"),
            FileSpec(path=".env.example", description="Example environment variables", use_template=True, template_type="config"),
        ]
    )
    architecture.refresh_optimization_info()
    return architecture
