"""
Workflow Diagram - 工作流定义与图生成
"""

__version__ = "0.1.0"

from .core.parser import WorkflowParser
from .diagram.facade import WorkflowDiagram
from .diagram.graph import GraphModel
from .models.workflow import Workflow, State, StateType
from .config import DiagramConfig
from .exceptions import (
    WorkflowDiagramError, WorkflowParseError, WorkflowValidationError,
    ConfigurationError, WorkflowReferenceError, UnsupportedStateError
)

__all__ = [
    "WorkflowParser",
    "WorkflowDiagram",
    "GraphModel",
    "Workflow",
    "State",
    "StateType",
    "DiagramConfig",
    "WorkflowDiagramError",
    "WorkflowParseError",
    "WorkflowValidationError",
    "ConfigurationError",
    "WorkflowReferenceError",
    "UnsupportedStateError"
]
