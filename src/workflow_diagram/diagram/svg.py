"""
SVG 渲染器
"""
import re
import xml.etree.ElementTree as ET
from collections import defaultdict
from typing import Dict, List, Optional, Tuple
import logging

from ..config import DiagramConfig
from .graph import GraphModel, DiagramNode, DiagramEdge, NodeKind, EdgeKind


logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

Point = Tuple[float, float]

# (填充色, 描边色)
NODE_STYLES: Dict[NodeKind, Tuple[str, str]] = {
    NodeKind.START: ("#2e7d32", "#1b5e20"),
    NodeKind.END: ("#c62828", "#8e0000"),
    NodeKind.EVENT: ("#f3e5f5", "#7b1fa2"),
    NodeKind.OPERATION: ("#e3f2fd", "#1565c0"),
    NodeKind.SWITCH: ("#fff8e1", "#f9a825"),
    NodeKind.PARALLEL: ("#e8f5e9", "#2e7d32"),
    NodeKind.CALLBACK: ("#fce4ec", "#ad1457"),
    NodeKind.FOREACH: ("#e0f7fa", "#00838f"),
    NodeKind.INJECT: ("#f1f8e9", "#558b2f"),
    NodeKind.DELAY: ("#eceff1", "#546e7a"),
    NodeKind.SLEEP: ("#eceff1", "#546e7a"),
    NodeKind.BRANCH: ("#ffffff", "#2e7d32"),
    NodeKind.JOIN: ("#2e7d32", "#2e7d32"),
}

# (描边色, 虚线样式)
EDGE_STYLES: Dict[EdgeKind, Tuple[str, Optional[str]]] = {
    EdgeKind.DEFAULT: ("#555555", None),
    EdgeKind.CONDITIONAL: ("#1f6fb2", None),
    EdgeKind.EVENT: ("#7b3fa0", None),
    EdgeKind.ERROR: ("#c0392b", "2,3"),
    EdgeKind.END: ("#555555", None),
}

BACK_EDGE_DASH = "6,4"
PSEUDO_RADIUS = 14
TITLE_HEIGHT = 30
LEGEND_HEIGHT = 44
PARALLEL_EDGE_SPREAD = 36
LOOP_SPREAD = 18
JOIN_HEIGHT = 8

# XML 1.0 不允许出现的字符
_INVALID_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _xml_text(value) -> str:
    """将文本中 XML 1.0 禁止的字符替换为 U+FFFD"""
    return _INVALID_XML_CHARS.sub("\ufffd", str(value))


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _points(points: List[Point]) -> str:
    return " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in points)


class SvgRenderer:
    """将已布局的 GraphModel 序列化为自包含的 SVG 文档"""

    def __init__(self, config: Optional[DiagramConfig] = None):
        self.config = config or DiagramConfig()
        self.shape_renderers = {
            NodeKind.START: self._draw_start,
            NodeKind.END: self._draw_end,
            NodeKind.EVENT: self._draw_stadium,
            NodeKind.OPERATION: self._draw_rounded,
            NodeKind.SWITCH: self._draw_diamond,
            NodeKind.PARALLEL: self._draw_double_rect,
            NodeKind.CALLBACK: self._draw_dashed_rect,
            NodeKind.FOREACH: self._draw_stacked,
            NodeKind.INJECT: self._draw_parallelogram,
            NodeKind.DELAY: self._draw_hexagon,
            NodeKind.SLEEP: self._draw_hexagon,
            NodeKind.BRANCH: self._draw_branch,
            NodeKind.JOIN: self._draw_join,
        }

    def render(self, graph: GraphModel, title: Optional[str] = None, show_legend: bool = False) -> str:
        """
        渲染 SVG

        Args:
            graph: 已由 LayoutEngine 分配 rank/track 的图
            title: 图标题（可选）
            show_legend: 是否绘制图例

        Returns:
            SVG 文档文本
        """
        cfg = self.config
        top = cfg.margin + (TITLE_HEIGHT if title else 0)
        diagram_height = (graph.max_rank + 1) * cfg.rank_spacing
        width = 2 * cfg.margin + (graph.max_track + 1) * cfg.track_spacing
        height = top + diagram_height + cfg.margin + (LEGEND_HEIGHT if show_legend else 0)

        root = ET.Element("svg", {
            "xmlns": SVG_NS,
            "version": "1.1",
            "font-family": cfg.font_family,
            "font-size": str(cfg.font_size),
        })
        root.append(self._defs())

        if title:
            heading = ET.SubElement(root, "text", {
                "class": "diagram-title",
                "x": _fmt(cfg.margin),
                "y": _fmt(cfg.margin + TITLE_HEIGHT / 2),
                "font-size": str(cfg.font_size + 4),
                "font-weight": "bold",
            })
            heading.text = _xml_text(title)

        centers = {node_id: self._center(node, top) for node_id, node in graph.nodes.items()}

        edge_group = ET.SubElement(root, "g", {"class": "edges"})
        node_group = ET.SubElement(root, "g", {"class": "nodes"})
        label_group = ET.SubElement(root, "g", {"class": "edge-labels"})

        max_x = float(width - cfg.margin)
        for edge, index, count in self._edge_slots(graph):
            right = self._draw_edge(edge_group, label_group, graph, edge, centers, index, count)
            max_x = max(max_x, right)

        for node_id, node in graph.nodes.items():
            self._draw_node(node_group, node, centers[node_id])

        if show_legend:
            max_x = max(max_x, self._draw_legend(root, top + diagram_height))

        width = max(width, int(max_x + cfg.margin))
        root.set("width", str(width))
        root.set("height", str(height))
        root.set("viewBox", f"0 0 {width} {height}")

        logger.debug(f"Rendered SVG {width}x{height} with {len(graph.nodes)} nodes")
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode")

    # 几何

    def _center(self, node: DiagramNode, top: float) -> Point:
        cfg = self.config
        x = cfg.margin + node.track * cfg.track_spacing + cfg.track_spacing / 2
        y = top + node.rank * cfg.rank_spacing + cfg.rank_spacing / 2
        return x, y

    def _size(self, node: DiagramNode) -> Tuple[float, float]:
        cfg = self.config
        if node.kind in (NodeKind.START, NodeKind.END):
            return 2 * PSEUDO_RADIUS, 2 * PSEUDO_RADIUS
        if node.kind == NodeKind.BRANCH:
            return cfg.node_width * 0.8, cfg.node_height * 0.7
        if node.kind == NodeKind.JOIN:
            return cfg.node_width * 0.6, JOIN_HEIGHT
        return cfg.node_width, cfg.node_height

    def _truncate(self, text: str) -> str:
        limit = self.config.label_max_length
        text = " ".join(_xml_text(text).split())
        if len(text) <= limit:
            return text
        return text[:limit - 1] + "…"

    @staticmethod
    def _edge_slots(graph: GraphModel):
        """同一对节点之间的多条边分配序号，用于扇开绘制"""
        counts: Dict[Tuple[str, str, bool], int] = defaultdict(int)
        slots = []
        for edge in graph.edges:
            key = (edge.source, edge.target, edge.back_edge)
            slots.append((edge, counts[key], key))
            counts[key] += 1
        for edge, index, key in slots:
            yield edge, index, counts[key]

    # 边

    def _defs(self) -> ET.Element:
        defs = ET.Element("defs")
        for kind, (color, _) in EDGE_STYLES.items():
            marker = ET.SubElement(defs, "marker", {
                "id": f"arrow-{kind.value}",
                "viewBox": "0 0 10 10",
                "refX": "10",
                "refY": "5",
                "markerWidth": "8",
                "markerHeight": "8",
                "orient": "auto-start-reverse",
            })
            ET.SubElement(marker, "path", {"d": "M 0 0 L 10 5 L 0 10 z", "fill": color})
        return defs

    def _draw_edge(
        self,
        edge_group: ET.Element,
        label_group: ET.Element,
        graph: GraphModel,
        edge: DiagramEdge,
        centers: Dict[str, Point],
        index: int,
        count: int
    ) -> float:
        """绘制一条边，返回占用的最右 x 坐标"""
        source = graph.nodes[edge.source]
        target = graph.nodes[edge.target]
        (sx, sy), (tx, ty) = centers[edge.source], centers[edge.target]
        sw, sh = self._size(source)
        tw, th = self._size(target)

        if edge.back_edge:
            path, label_at, right = self._loop_path(
                (sx, sy, sw, sh), (tx, ty, tw, th), edge.source == edge.target, index
            )
        else:
            p0 = (sx, sy + sh / 2)
            p2 = (tx, ty - th / 2)
            offset = (index - (count - 1) / 2) * PARALLEL_EDGE_SPREAD
            # 跨越多层的同泳道边向左绕开中间节点
            if source.track == target.track and target.rank - source.rank > 1 and count == 1:
                offset = -self.config.track_spacing * 0.45
            control = ((p0[0] + p2[0]) / 2 + offset, (p0[1] + p2[1]) / 2)
            if offset == 0:
                path = f"M {_fmt(p0[0])} {_fmt(p0[1])} L {_fmt(p2[0])} {_fmt(p2[1])}"
            else:
                path = (
                    f"M {_fmt(p0[0])} {_fmt(p0[1])} "
                    f"Q {_fmt(control[0])} {_fmt(control[1])} {_fmt(p2[0])} {_fmt(p2[1])}"
                )
            label_at = (
                0.25 * p0[0] + 0.5 * control[0] + 0.25 * p2[0],
                0.25 * p0[1] + 0.5 * control[1] + 0.25 * p2[1],
            )
            right = max(p0[0], p2[0], control[0])

        color, dash = EDGE_STYLES[edge.kind]
        attrs = {
            "class": f"edge edge-{edge.kind.value}" + (" back-edge" if edge.back_edge else ""),
            "d": path,
            "fill": "none",
            "stroke": color,
            "stroke-width": "1.5",
            "marker-end": f"url(#arrow-{edge.kind.value})",
            "data-source": _xml_text(edge.source),
            "data-target": _xml_text(edge.target),
        }
        if edge.back_edge:
            attrs["stroke-dasharray"] = BACK_EDGE_DASH
        elif dash:
            attrs["stroke-dasharray"] = dash
        element = ET.SubElement(edge_group, "path", attrs)

        tooltip = " ".join(part for part in (edge.label, edge.description and f"({edge.description})") if part)
        if tooltip:
            ET.SubElement(element, "title").text = _xml_text(tooltip)

        if edge.label:
            text = ET.SubElement(label_group, "text", {
                "class": f"edge-label edge-label-{edge.kind.value}",
                "x": _fmt(label_at[0]),
                "y": _fmt(label_at[1]),
                "text-anchor": "middle",
                "dominant-baseline": "middle",
                "font-size": str(self.config.font_size - 1),
                "fill": color,
                "stroke": "#ffffff",
                "stroke-width": "3",
                "paint-order": "stroke",
            })
            text.text = self._truncate(edge.label)
        return right

    def _loop_path(self, source, target, self_loop: bool, index: int):
        """回边：从节点右侧绕出的虚线曲线"""
        sx, sy, sw, sh = source
        tx, ty, tw, th = target
        spread = self.config.track_spacing * 0.35 + index * LOOP_SPREAD

        if self_loop:
            p0 = (sx + sw / 2, sy - sh / 4)
            p3 = (sx + sw / 2, sy + sh / 4)
            c1 = (p0[0] + spread, sy - sh)
            c2 = (p0[0] + spread, sy + sh)
        else:
            p0 = (sx + sw / 2, sy)
            p3 = (tx + tw / 2, ty)
            x = max(p0[0], p3[0]) + spread
            c1 = (x, p0[1])
            c2 = (x, p3[1])

        path = (
            f"M {_fmt(p0[0])} {_fmt(p0[1])} "
            f"C {_fmt(c1[0])} {_fmt(c1[1])} {_fmt(c2[0])} {_fmt(c2[1])} {_fmt(p3[0])} {_fmt(p3[1])}"
        )
        label_at = (
            0.125 * p0[0] + 0.375 * c1[0] + 0.375 * c2[0] + 0.125 * p3[0],
            0.125 * p0[1] + 0.375 * c1[1] + 0.375 * c2[1] + 0.125 * p3[1],
        )
        return path, label_at, max(c1[0], c2[0])

    # 节点

    def _draw_node(self, parent: ET.Element, node: DiagramNode, center: Point):
        fill, stroke = NODE_STYLES[node.kind]
        group = ET.SubElement(parent, "g", {
            "class": f"node node-{node.kind.value}",
            "data-node-id": _xml_text(node.id),
            "data-rank": str(node.rank),
            "data-track": str(node.track),
        })
        ET.SubElement(group, "title").text = _xml_text(f"{node.label} ({node.kind.value})")

        width, height = self._size(node)
        self.shape_renderers[node.kind](group, center, width, height, fill, stroke)

        if node.kind in (NodeKind.START, NodeKind.END, NodeKind.JOIN):
            return

        x, y = center
        if node.kind != NodeKind.BRANCH:
            caption = ET.SubElement(group, "text", {
                "class": "node-kind",
                "x": _fmt(x),
                "y": _fmt(y - height / 2 + self.config.font_size),
                "text-anchor": "middle",
                "font-size": str(self.config.font_size - 3),
                "font-style": "italic",
                "fill": stroke,
            })
            caption.text = node.kind.value
        label = ET.SubElement(group, "text", {
            "class": "node-label",
            "x": _fmt(x),
            "y": _fmt(y + (self.config.font_size / 2 if node.kind != NodeKind.BRANCH else 0)),
            "text-anchor": "middle",
            "dominant-baseline": "middle",
        })
        label.text = self._truncate(node.label)

    @staticmethod
    def _shape_attrs(fill: str, stroke: str, **extra) -> Dict[str, str]:
        attrs = {"fill": fill, "stroke": stroke, "stroke-width": "1.5"}
        attrs.update(extra)
        return attrs

    def _rect(self, group, center, width, height, fill, stroke, rx=0, **extra):
        x, y = center
        return ET.SubElement(group, "rect", self._shape_attrs(
            fill, stroke,
            x=_fmt(x - width / 2), y=_fmt(y - height / 2),
            width=_fmt(width), height=_fmt(height), rx=_fmt(rx),
            **extra
        ))

    def _draw_start(self, group, center, width, height, fill, stroke):
        x, y = center
        ET.SubElement(group, "circle", self._shape_attrs(
            fill, stroke, cx=_fmt(x), cy=_fmt(y), r=_fmt(width / 2)
        ))

    def _draw_end(self, group, center, width, height, fill, stroke):
        x, y = center
        ET.SubElement(group, "circle", self._shape_attrs(
            "#ffffff", stroke, cx=_fmt(x), cy=_fmt(y), r=_fmt(width / 2)
        ))
        ET.SubElement(group, "circle", self._shape_attrs(
            fill, stroke, cx=_fmt(x), cy=_fmt(y), r=_fmt(width / 2 - 4)
        ))

    def _draw_rounded(self, group, center, width, height, fill, stroke):
        self._rect(group, center, width, height, fill, stroke, rx=10)

    def _draw_stadium(self, group, center, width, height, fill, stroke):
        self._rect(group, center, width, height, fill, stroke, rx=height / 2)

    def _draw_dashed_rect(self, group, center, width, height, fill, stroke):
        self._rect(group, center, width, height, fill, stroke, rx=4, **{"stroke-dasharray": "5,3"})

    def _draw_double_rect(self, group, center, width, height, fill, stroke):
        self._rect(group, center, width, height, fill, stroke)
        self._rect(group, center, width - 8, height - 8, "none", stroke)

    def _draw_stacked(self, group, center, width, height, fill, stroke):
        x, y = center
        self._rect(group, (x + 4, y - 4), width, height, fill, stroke, rx=6)
        self._rect(group, center, width, height, fill, stroke, rx=6)

    def _draw_branch(self, group, center, width, height, fill, stroke):
        self._rect(group, center, width, height, fill, stroke, rx=6, **{"stroke-dasharray": "4,2"})

    def _draw_join(self, group, center, width, height, fill, stroke):
        self._rect(group, center, width, height, fill, stroke, rx=2)

    def _draw_diamond(self, group, center, width, height, fill, stroke):
        x, y = center
        points = [(x, y - height / 2), (x + width / 2, y), (x, y + height / 2), (x - width / 2, y)]
        ET.SubElement(group, "polygon", self._shape_attrs(fill, stroke, points=_points(points)))

    def _draw_parallelogram(self, group, center, width, height, fill, stroke):
        x, y = center
        skew = height / 3
        points = [
            (x - width / 2 + skew, y - height / 2), (x + width / 2, y - height / 2),
            (x + width / 2 - skew, y + height / 2), (x - width / 2, y + height / 2),
        ]
        ET.SubElement(group, "polygon", self._shape_attrs(fill, stroke, points=_points(points)))

    def _draw_hexagon(self, group, center, width, height, fill, stroke):
        x, y = center
        cut = height / 3
        points = [
            (x - width / 2 + cut, y - height / 2), (x + width / 2 - cut, y - height / 2),
            (x + width / 2, y), (x + width / 2 - cut, y + height / 2),
            (x - width / 2 + cut, y + height / 2), (x - width / 2, y),
        ]
        ET.SubElement(group, "polygon", self._shape_attrs(fill, stroke, points=_points(points)))

    # 图例

    def _draw_legend(self, root: ET.Element, top: float) -> float:
        cfg = self.config
        legend = ET.SubElement(root, "g", {"class": "legend"})
        y = top + LEGEND_HEIGHT / 2
        x = float(cfg.margin)
        entries = [(kind.value, EDGE_STYLES[kind]) for kind in EdgeKind]
        entries.append(("back-edge", (EDGE_STYLES[EdgeKind.DEFAULT][0], BACK_EDGE_DASH)))
        for name, (color, dash) in entries:
            attrs = {
                "x1": _fmt(x), "y1": _fmt(y), "x2": _fmt(x + 24), "y2": _fmt(y),
                "stroke": color, "stroke-width": "1.5",
            }
            if dash:
                attrs["stroke-dasharray"] = dash
            ET.SubElement(legend, "line", attrs)
            text = ET.SubElement(legend, "text", {
                "x": _fmt(x + 30), "y": _fmt(y), "dominant-baseline": "middle",
                "font-size": str(cfg.font_size - 2),
            })
            text.text = name
            x += 30 + 8 * len(name) + 16
        return x
