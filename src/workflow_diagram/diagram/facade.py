"""
工作流图入口
"""
from typing import Optional
import logging

from ..config import DiagramConfig
from ..exceptions import ConfigurationError
from ..models.workflow import Workflow
from .builder import StateGraphBuilder
from .graph import GraphModel
from .layout import LayoutEngine
from .svg import SvgRenderer


logger = logging.getLogger(__name__)


class WorkflowDiagram:
    """工作流图

    每次调用都重新构建、布局并渲染，结果总是反映工作流对象的当前内容。
    """

    def __init__(
        self,
        workflow: Optional[Workflow] = None,
        config: Optional[DiagramConfig] = None,
        show_legend: Optional[bool] = None
    ):
        self.config = config or DiagramConfig()
        self._workflow = workflow
        self.show_legend = self.config.show_legend if show_legend is None else show_legend
        self.builder = StateGraphBuilder()
        self.layout_engine = LayoutEngine()
        self.renderer = SvgRenderer(self.config)

    @property
    def workflow(self) -> Optional[Workflow]:
        return self._workflow

    @workflow.setter
    def workflow(self, workflow: Workflow):
        self._workflow = workflow

    def set_workflow(self, workflow: Workflow) -> "WorkflowDiagram":
        self._workflow = workflow
        return self

    def set_show_legend(self, show_legend: bool) -> "WorkflowDiagram":
        self.show_legend = show_legend
        return self

    def build_graph(self) -> GraphModel:
        """构建并布局状态图"""
        if self._workflow is None:
            raise ConfigurationError("No workflow set on diagram")
        graph = self.builder.build(self._workflow)
        return self.layout_engine.layout(graph)

    def get_svg_diagram(self) -> str:
        """生成 SVG 图"""
        graph = self.build_graph()
        workflow = self._workflow
        title = workflow.name or workflow.id or None
        svg = self.renderer.render(graph, title=title, show_legend=self.show_legend)
        logger.info(f"Generated diagram for workflow '{workflow.id}' ({len(graph.nodes)} nodes)")
        return svg
