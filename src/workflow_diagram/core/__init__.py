"""Workflow parsing and serialization"""

from .parser import WorkflowParser
from .schema import SchemaValidator, WORKFLOW_SCHEMA
from .serializer import to_dict, to_json, to_yaml

__all__ = [
    "WorkflowParser",
    "SchemaValidator",
    "WORKFLOW_SCHEMA",
    "to_dict",
    "to_json",
    "to_yaml"
]
