"""Derive a node/edge/group diagram from an architecture.

Folders become groups and files become nodes inside the deepest folder
that contains them. Edges are inferred from naming conventions:

* model -> controller ("uses") when the controller's name contains the model stem;
* controller -> route ("used by") likewise;
* every middleware -> every route ("protects").
"""

from __future__ import annotations

from pathlib import PurePosixPath

from softarch.architecture.models import (
    Architecture,
    Diagram,
    DiagramEdge,
    DiagramGroup,
    DiagramNode,
    FileRole,
)
from softarch.architecture.roles import classify_role, entity_stem

_EXTENSION_TYPES = {
    ".js": "javascript",
    ".ts": "typescript",
    ".json": "json",
    ".md": "markdown",
    ".graphql": "graphql",
}


def node_type(path: str) -> str:
    """Role name for role-bearing files, otherwise a type from the extension."""
    role = classify_role(path)
    if role is not FileRole.OTHER:
        return role.value
    return _EXTENSION_TYPES.get(PurePosixPath(path).suffix.lower(), "file")


def _parent_group(path: str, groups: dict[str, str]) -> str | None:
    best: str | None = None
    for folder in groups:
        if path.startswith(folder + "/") and (best is None or len(folder) > len(best)):
            best = folder
    return groups[best] if best is not None else None


def build_diagram(architecture: Architecture) -> Diagram:
    diagram = Diagram()
    groups: dict[str, str] = {}
    for index, folder in enumerate(architecture.folders):
        group_id = f"group-{index}"
        groups[folder.path] = group_id
        diagram.groups.append(
            DiagramGroup(id=group_id, label=folder.path, description=folder.description)
        )

    by_role: dict[FileRole, list[tuple[str, str]]] = {}
    for index, spec in enumerate(architecture.files):
        node_id = f"file-{index}"
        diagram.nodes.append(
            DiagramNode(
                id=node_id,
                label=PurePosixPath(spec.path).name,
                description=spec.description,
                type=node_type(spec.path),
                parent=_parent_group(spec.path, groups),
            )
        )
        by_role.setdefault(classify_role(spec.path), []).append((node_id, spec.path))

    def add_edge(source: str, target: str, label: str) -> None:
        diagram.edges.append(
            DiagramEdge(id=f"edge-{len(diagram.edges)}", source=source, target=target, label=label)
        )

    models = by_role.get(FileRole.MODEL, [])
    controllers = by_role.get(FileRole.CONTROLLER, [])
    routes = by_role.get(FileRole.ROUTE, [])

    for model_id, model_path in models:
        stem = entity_stem(model_path).lower()
        for controller_id, controller_path in controllers:
            if stem and stem in PurePosixPath(controller_path).stem.lower():
                add_edge(model_id, controller_id, "uses")

    for controller_id, controller_path in controllers:
        stem = entity_stem(controller_path).lower()
        for route_id, route_path in routes:
            if stem and stem in PurePosixPath(route_path).stem.lower():
                add_edge(controller_id, route_id, "used by")

    for middleware_id, _ in by_role.get(FileRole.MIDDLEWARE, []):
        for route_id, _ in routes:
            add_edge(middleware_id, route_id, "protects")

    return diagram
