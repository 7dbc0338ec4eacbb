"""
Pytest 配置和公共 fixtures
"""
import pytest
from pathlib import Path

from workflow_diagram.core.parser import WorkflowParser
from workflow_diagram.config import DiagramConfig


EXAMPLES_DIR = Path(__file__).parent / "examples"


@pytest.fixture
def examples_dir() -> Path:
    """示例工作流目录"""
    return EXAMPLES_DIR


@pytest.fixture
def parser() -> WorkflowParser:
    """创建解析器实例"""
    return WorkflowParser()


@pytest.fixture
def diagram_config() -> DiagramConfig:
    """默认图配置"""
    return DiagramConfig()


@pytest.fixture
def load_example(parser):
    """按名称加载示例工作流（默认 JSON 格式）"""
    def _load(name: str, fmt: str = "json"):
        return parser.parse_file(EXAMPLES_DIR / f"{name}.{fmt}")
    return _load


@pytest.fixture
def sample_switch_workflow() -> dict:
    """示例分支工作流"""
    return {
        "id": "test-switch",
        "name": "Test Switch",
        "version": "1.0",
        "start": "Check",
        "states": [
            {
                "name": "Check",
                "type": "switch",
                "dataConditions": [
                    {"condition": "${ .approved }", "transition": "Approve"},
                    {"condition": "${ .rejected }", "transition": "Reject"}
                ],
                "defaultCondition": {"end": True}
            },
            {
                "name": "Approve",
                "type": "inject",
                "data": {"result": "approved"},
                "end": True
            },
            {
                "name": "Reject",
                "type": "inject",
                "data": {"result": "rejected"},
                "end": True
            }
        ]
    }


@pytest.fixture
def sample_parallel_workflow() -> dict:
    """示例并行工作流（三个分支汇聚到同一个状态）"""
    return {
        "workflow": {
            "id": "test-parallel",
            "name": "Test Parallel",
            "start": "Fork",
            "states": [
                {
                    "name": "Fork",
                    "type": "parallel",
                    "branches": [
                        {"name": "A", "actions": [{"subFlowRef": "a"}]},
                        {"name": "B", "actions": [{"subFlowRef": "b"}]},
                        {"name": "C", "actions": [{"subFlowRef": "c"}]}
                    ],
                    "transition": "Join"
                },
                {
                    "name": "Join",
                    "type": "operation",
                    "actions": [],
                    "end": True
                }
            ]
        }
    }


@pytest.fixture
def sample_loop_workflow() -> dict:
    """示例循环工作流"""
    return {
        "id": "test-loop",
        "name": "Test Loop",
        "states": [
            {"name": "Poll", "type": "operation", "actions": [], "transition": "Wait"},
            {"name": "Wait", "type": "sleep", "duration": "PT1S", "transition": "Decide"},
            {
                "name": "Decide",
                "type": "switch",
                "dataConditions": [
                    {"condition": "${ .done }", "end": True}
                ],
                "defaultCondition": {"transition": "Poll"}
            }
        ]
    }
