"""Workflow to diagram compiler"""

from .graph import GraphModel, DiagramNode, DiagramEdge, NodeKind, EdgeKind
from .builder import StateGraphBuilder
from .layout import LayoutEngine
from .svg import SvgRenderer
from .facade import WorkflowDiagram

__all__ = [
    "GraphModel",
    "DiagramNode",
    "DiagramEdge",
    "NodeKind",
    "EdgeKind",
    "StateGraphBuilder",
    "LayoutEngine",
    "SvgRenderer",
    "WorkflowDiagram"
]
