"""
FastAPI 依赖注入
"""
from functools import lru_cache

from ..config import DiagramConfig
from ..core.parser import WorkflowParser


@lru_cache()
def get_diagram_config() -> DiagramConfig:
    """获取图渲染配置（进程内只从环境变量加载一次）"""
    return DiagramConfig.from_env()


def get_parser() -> WorkflowParser:
    """获取工作流解析器"""
    return WorkflowParser()
