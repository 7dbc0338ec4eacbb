"""
工作流图异常定义
"""
from typing import Optional


class WorkflowDiagramError(Exception):
    """工作流图基础异常"""
    pass


class WorkflowParseError(WorkflowDiagramError):
    """工作流解析异常"""
    pass


class WorkflowValidationError(WorkflowDiagramError):
    """工作流验证异常"""
    pass


class ConfigurationError(WorkflowDiagramError):
    """工作流结构配置异常（无状态、重名状态、缺少转换等）"""
    pass


class WorkflowReferenceError(WorkflowDiagramError):
    """引用无法解析（起始状态、转换目标、事件引用）"""
    def __init__(self, state_name: Optional[str], reference: str, message: str = None):
        self.state_name = state_name
        self.reference = reference
        if state_name:
            msg = f"State '{state_name}' references unknown '{reference}'"
        else:
            msg = f"Unknown reference '{reference}'"
        if message:
            msg += f": {message}"
        super().__init__(msg)


class UnsupportedStateError(WorkflowDiagramError):
    """不支持的状态类型"""
    def __init__(self, state_name: Optional[str], state_type: str):
        self.state_name = state_name
        self.state_type = state_type
        super().__init__(
            f"State '{state_name}' has unsupported type '{state_type}'"
        )
