"""Diagram view of an architecture and the repository that stores it."""

from softarch.diagram.builder import build_diagram
from softarch.diagram.repository import DiagramRepository, JsonDiagramRepository

__all__ = ["DiagramRepository", "JsonDiagramRepository", "build_diagram"]
