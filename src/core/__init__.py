"""Core domain of the design board.

Provides the component and link catalog, heuristics, the connection rule
engine, scoring, the storage-backed services and the headless diagram editor.
"""

from core.editor import DiagramEditor
from core.scoring import compare, evaluate
from core.services import ArchitectureService, ComponentService, LinkService

__all__ = ["ArchitectureService", "ComponentService", "DiagramEditor", "LinkService", "compare", "evaluate"]
