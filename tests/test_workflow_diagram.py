"""
工作流图入口测试
"""
import xml.etree.ElementTree as ET
from pathlib import Path
import pytest

from workflow_diagram import WorkflowDiagram, WorkflowParser, DiagramConfig
from workflow_diagram.exceptions import ConfigurationError, WorkflowReferenceError
from workflow_diagram.models.workflow import Transition, InjectState, End


EXAMPLE_FILES = sorted(
    path for path in (Path(__file__).parent / "examples").iterdir()
    if path.suffix in (".json", ".yml")
)

NS = {"svg": "http://www.w3.org/2000/svg"}


def _node_ids(svg: str):
    root = ET.fromstring(svg.encode("utf-8"))
    return [g.get("data-node-id") for g in root.findall(".//svg:g[@data-node-id]", NS)]


class TestWorkflowDiagram:
    """工作流图测试类"""

    @pytest.mark.parametrize("path", EXAMPLE_FILES, ids=lambda p: p.name)
    def test_examples_render(self, path):
        """测试所有示例工作流都能生成 SVG"""
        workflow = WorkflowParser().parse_file(path)
        svg = WorkflowDiagram(workflow).get_svg_diagram()

        assert svg
        ids = _node_ids(svg)
        for state in workflow.states:
            assert state.name in ids

    def test_title_from_workflow_name(self, load_example):
        svg = WorkflowDiagram(load_example("greeting")).get_svg_diagram()
        root = ET.fromstring(svg.encode("utf-8"))
        assert root.find(".//svg:text[@class='diagram-title']", NS).text == "Greeting Workflow"

    def test_no_workflow(self):
        """测试未设置工作流"""
        with pytest.raises(ConfigurationError):
            WorkflowDiagram().get_svg_diagram()

    def test_set_workflow_fluent(self, load_example):
        """测试链式设置"""
        diagram = WorkflowDiagram()
        result = diagram.set_workflow(load_example("helloworld")).set_show_legend(True)

        assert result is diagram
        assert diagram.show_legend is True
        assert 'class="legend"' in diagram.get_svg_diagram()

    def test_replaced_workflow(self, load_example):
        """测试替换工作流后重新生成"""
        diagram = WorkflowDiagram(load_example("helloworld"))
        assert "Hello State" in _node_ids(diagram.get_svg_diagram())

        diagram.workflow = load_example("greeting")
        ids = _node_ids(diagram.get_svg_diagram())
        assert "Greet" in ids
        assert "Hello State" not in ids

    def test_mutated_workflow(self, load_example):
        """测试修改工作流对象后生成结果随之变化"""
        workflow = load_example("helloworld")
        diagram = WorkflowDiagram(workflow)
        before = diagram.get_svg_diagram()

        workflow.states[0].end = None
        workflow.states[0].transition = Transition(next_state="Goodbye State")
        workflow.states.append(InjectState(name="Goodbye State", end=End()))
        after = diagram.get_svg_diagram()

        assert before != after
        assert "Goodbye State" in _node_ids(after)

    def test_invalid_workflow_raises(self, load_example):
        workflow = load_example("helloworld")
        workflow.states[0].end = None
        workflow.states[0].transition = Transition(next_state="Missing")

        with pytest.raises(WorkflowReferenceError):
            WorkflowDiagram(workflow).get_svg_diagram()

    def test_deterministic(self, load_example):
        """测试相同输入得到相同输出"""
        assert (
            WorkflowDiagram(load_example("provisionorder")).get_svg_diagram()
            == WorkflowDiagram(load_example("provisionorder", "yml")).get_svg_diagram()
        )

    def test_legend_from_config(self, load_example):
        diagram = WorkflowDiagram(load_example("helloworld"), config=DiagramConfig(show_legend=True))
        assert diagram.show_legend is True

        diagram = WorkflowDiagram(
            load_example("helloworld"), config=DiagramConfig(show_legend=True), show_legend=False
        )
        assert 'class="legend"' not in diagram.get_svg_diagram()

    def test_build_graph(self, load_example):
        """测试只构建状态图"""
        graph = WorkflowDiagram(load_example("jobmonitoring")).build_graph()
        assert len(graph.back_edges) == 1
        assert graph.max_rank == 6
