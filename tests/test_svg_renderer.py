"""
SVG 渲染器测试
"""
import xml.etree.ElementTree as ET
import pytest

from workflow_diagram.config import DiagramConfig
from workflow_diagram.diagram.builder import StateGraphBuilder
from workflow_diagram.diagram.layout import LayoutEngine
from workflow_diagram.diagram.graph import EdgeKind
from workflow_diagram.diagram.svg import SvgRenderer
from workflow_diagram.models.workflow import Workflow, End, Transition, InjectState


NS = {"svg": "http://www.w3.org/2000/svg"}


def _graph(workflow):
    return LayoutEngine().layout(StateGraphBuilder().build(workflow))


def _parse(svg: str) -> ET.Element:
    return ET.fromstring(svg.encode("utf-8"))


def _classes(element: ET.Element):
    return element.get("class", "").split()


class TestSvgRenderer:
    """SVG 渲染器测试类"""

    @pytest.fixture
    def renderer(self, diagram_config):
        return SvgRenderer(diagram_config)

    def test_well_formed_document(self, renderer, load_example):
        """测试输出为合法的 SVG 文档"""
        svg = renderer.render(_graph(load_example("applicantrequest")))

        assert svg.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = _parse(svg)
        assert root.tag == "{http://www.w3.org/2000/svg}svg"
        width, height = int(root.get("width")), int(root.get("height"))
        assert width > 0 and height > 0
        assert root.get("viewBox") == f"0 0 {width} {height}"

    def test_one_group_per_node(self, renderer, load_example):
        """测试每个节点一个图形组"""
        graph = _graph(load_example("parallel"))
        root = _parse(renderer.render(graph))

        groups = root.findall(".//svg:g[@data-node-id]", NS)
        assert [g.get("data-node-id") for g in groups] == list(graph.nodes)
        branch = next(g for g in groups if g.get("data-node-id") == "ParallelExec/LongDelayBranch")
        assert "node-branch" in _classes(branch)
        assert branch.get("data-rank") == "2"
        assert branch.get("data-track") == "1"

    def test_one_path_per_edge(self, renderer, load_example):
        """测试每条边一条路径"""
        graph = _graph(load_example("provisionorder"))
        root = _parse(renderer.render(graph))

        paths = [p for p in root.iter("{http://www.w3.org/2000/svg}path") if "edge" in _classes(p)]
        assert len(paths) == len(graph.edges)
        error_paths = [p for p in paths if "edge-error-transition" in _classes(p)]
        assert len(error_paths) == 3
        assert all(p.get("marker-end") == "url(#arrow-error-transition)" for p in error_paths)

    def test_back_edge_dashed(self, renderer, load_example):
        """测试回边以虚线绘制"""
        root = _parse(renderer.render(_graph(load_example("jobmonitoring"))))

        back = [p for p in root.iter("{http://www.w3.org/2000/svg}path") if "back-edge" in _classes(p)]
        assert len(back) == 1
        assert back[0].get("data-source") == "DetermineCompletion"
        assert back[0].get("data-target") == "WaitForCompletion"
        assert back[0].get("stroke-dasharray") == "6,4"
        assert " C " in back[0].get("d")

    def test_markers_per_edge_kind(self, renderer, load_example):
        """测试每种边类型都有箭头标记"""
        root = _parse(renderer.render(_graph(load_example("helloworld"))))

        marker_ids = {m.get("id") for m in root.findall(".//svg:defs/svg:marker", NS)}
        assert marker_ids == {f"arrow-{kind.value}" for kind in EdgeKind}

    def test_title(self, renderer, load_example):
        """测试标题"""
        root = _parse(renderer.render(_graph(load_example("helloworld")), title="Hello World Workflow"))

        title = root.find(".//svg:text[@class='diagram-title']", NS)
        assert title is not None
        assert title.text == "Hello World Workflow"

    def test_no_title(self, renderer, load_example):
        root = _parse(renderer.render(_graph(load_example("helloworld"))))
        assert root.find(".//svg:text[@class='diagram-title']", NS) is None

    def test_legend(self, renderer, load_example):
        """测试图例"""
        graph = _graph(load_example("helloworld"))
        without = _parse(renderer.render(graph))
        with_legend = _parse(renderer.render(graph, show_legend=True))

        assert without.find(".//svg:g[@class='legend']", NS) is None
        legend = with_legend.find(".//svg:g[@class='legend']", NS)
        assert legend is not None
        names = [t.text for t in legend.findall("svg:text", NS)]
        assert names == [kind.value for kind in EdgeKind] + ["back-edge"]
        assert int(with_legend.get("height")) > int(without.get("height"))

    def test_condition_labels(self, renderer, load_example):
        """测试条件边标签与截断"""
        root = _parse(renderer.render(_graph(load_example("creditcheck"))))

        labels = [t.text for t in root.findall(".//svg:text", NS) if "edge-label-conditional" in _classes(t)]
        assert len(labels) == 2
        assert all(label.endswith("…") for label in labels)
        assert all(len(label) == DiagramConfig().label_max_length for label in labels)

    def test_short_label_not_truncated(self, renderer, load_example):
        root = _parse(renderer.render(_graph(load_example("provisionorder"))))

        labels = [t.text for t in root.findall(".//svg:text", NS) if "edge-label" in _classes(t)]
        assert "Missing order id" in labels

    def test_special_characters_escaped(self, renderer):
        """测试特殊字符转义"""
        workflow = Workflow(
            id="escape",
            name="Escape",
            states=[
                InjectState(name="Check <a & b>", transition=Transition(next_state="\"Quoted\"")),
                InjectState(name="\"Quoted\"", end=End())
            ]
        )
        svg = renderer.render(_graph(workflow), title="Tom & Jerry")

        assert "<a & b>" not in svg
        root = _parse(svg)
        ids = [g.get("data-node-id") for g in root.findall(".//svg:g[@data-node-id]", NS)]
        assert "Check <a & b>" in ids
        assert "\"Quoted\"" in ids
        labels = [t.text for t in root.findall(".//svg:text", NS) if "node-label" in _classes(t)]
        assert "Check <a & b>" in labels

    def test_control_characters_replaced(self, renderer):
        """测试 XML 1.0 禁止的控制字符被替换，输出仍可解析"""
        workflow = Workflow(
            id="control",
            name="Control",
            states=[
                InjectState(name="A\x01", transition=Transition(next_state="B\x1f")),
                InjectState(name="B\x1f", end=End())
            ]
        )
        svg = renderer.render(_graph(workflow), title="Title\x0b")

        assert "\x01" not in svg and "\x1f" not in svg and "\x0b" not in svg
        root = _parse(svg)
        ids = [g.get("data-node-id") for g in root.findall(".//svg:g[@data-node-id]", NS)]
        assert "A\ufffd" in ids
        assert "B\ufffd" in ids
        edge = next(p for p in root.iter("{http://www.w3.org/2000/svg}path") if p.get("data-source") == "A\ufffd")
        assert edge.get("data-target") == "B\ufffd"
        heading = root.find(".//svg:text[@class='diagram-title']", NS)
        assert heading.text == "Title\ufffd"

    def test_join_node_drawn_as_bar(self, renderer, load_example):
        """测试并行汇合节点绘制为无文字的横条"""
        root = _parse(renderer.render(_graph(load_example("parallel"))))

        join = next(
            g for g in root.findall(".//svg:g[@data-node-id]", NS)
            if g.get("data-node-id") == "ParallelExec/join"
        )
        assert "node-join" in _classes(join)
        assert join.find("svg:rect", NS).get("height") == "8"
        assert join.findall("svg:text", NS) == []

    def test_custom_spacing_changes_size(self, load_example):
        """测试间距配置影响画布大小"""
        graph = _graph(load_example("jobmonitoring"))
        small = _parse(SvgRenderer(DiagramConfig()).render(graph))
        large = _parse(SvgRenderer(DiagramConfig(rank_spacing=160, track_spacing=260)).render(graph))

        assert int(large.get("height")) > int(small.get("height"))
        assert int(large.get("width")) > int(small.get("width"))

    def test_render_deterministic(self, renderer, load_example):
        """测试输出稳定"""
        first = renderer.render(_graph(load_example("jobmonitoring")), title="Job Monitoring")
        second = renderer.render(_graph(load_example("jobmonitoring")), title="Job Monitoring")
        assert first == second


class TestDiagramConfig:
    """图配置测试类"""

    def test_invalid_spacing(self):
        with pytest.raises(ValueError):
            DiagramConfig(node_width=300, track_spacing=200)

    def test_from_env(self, monkeypatch):
        """测试从环境变量加载配置"""
        monkeypatch.setenv("WORKFLOW_DIAGRAM_RANK_SPACING", "120")
        monkeypatch.setenv("WORKFLOW_DIAGRAM_SHOW_LEGEND", "true")

        config = DiagramConfig.from_env()

        assert config.rank_spacing == 120
        assert config.show_legend is True
        assert config.track_spacing == 200

    def test_from_env_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("WORKFLOW_DIAGRAM_MARGIN", "wide")
        with pytest.raises(ValueError):
            DiagramConfig.from_env()
