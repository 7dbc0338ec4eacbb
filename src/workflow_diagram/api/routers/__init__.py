"""
API 路由器
"""

from . import diagrams, workflows

__all__ = ["diagrams", "workflows"]
