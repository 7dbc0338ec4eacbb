"""
工作流图的内部有向图表示
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Iterable
from enum import Enum

from ..exceptions import ConfigurationError


class NodeKind(Enum):
    """图节点类型"""
    START = "start"
    END = "end"
    EVENT = "event"
    OPERATION = "operation"
    SWITCH = "switch"
    PARALLEL = "parallel"
    CALLBACK = "callback"
    FOREACH = "foreach"
    INJECT = "inject"
    DELAY = "delay"
    SLEEP = "sleep"
    BRANCH = "branch"  # 并行分支入口伪节点
    JOIN = "join"  # 并行分支汇合伪节点


class EdgeKind(Enum):
    """图边类型"""
    DEFAULT = "default-transition"
    CONDITIONAL = "conditional"
    EVENT = "event-based"
    ERROR = "error-transition"
    END = "end"


@dataclass
class DiagramNode:
    """图节点"""
    id: str
    kind: NodeKind
    label: str
    order: int = 0  # 声明顺序
    rank: int = 0
    track: int = 0
    state_name: Optional[str] = None
    parent: Optional[str] = None  # 分支节点所属的并行状态节点
    branch_index: Optional[int] = None

    @property
    def is_pseudo(self) -> bool:
        return self.state_name is None


@dataclass
class DiagramEdge:
    """图边"""
    source: str
    target: str
    kind: EdgeKind
    label: Optional[str] = None
    order: int = 0  # 同一源节点出边的声明顺序
    back_edge: bool = False
    description: Optional[str] = None


@dataclass
class GraphModel:
    """有向图：按插入顺序保存节点，边保存为列表，并维护按源/目标索引的邻接表"""
    nodes: Dict[str, DiagramNode] = field(default_factory=dict)
    edges: List[DiagramEdge] = field(default_factory=list)
    start_id: Optional[str] = None
    end_id: Optional[str] = None
    _outgoing: Dict[str, List[DiagramEdge]] = field(
        default_factory=lambda: defaultdict(list), repr=False, compare=False
    )
    _incoming: Dict[str, List[DiagramEdge]] = field(
        default_factory=lambda: defaultdict(list), repr=False, compare=False
    )

    def add_node(self, node: DiagramNode) -> DiagramNode:
        if node.id in self.nodes:
            raise ConfigurationError(f"Duplicate node id '{node.id}'")
        self.nodes[node.id] = node
        return node

    def add_edge(
        self,
        source: str,
        target: str,
        kind: EdgeKind,
        label: Optional[str] = None,
        description: Optional[str] = None
    ) -> DiagramEdge:
        edge = DiagramEdge(
            source=source,
            target=target,
            kind=kind,
            label=label,
            order=len(self._outgoing[source]),
            description=description
        )
        self.edges.append(edge)
        self._outgoing[source].append(edge)
        self._incoming[target].append(edge)
        return edge

    def get_node(self, node_id: str) -> Optional[DiagramNode]:
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def outgoing(self, node_id: str) -> List[DiagramEdge]:
        """出边，按声明顺序"""
        return list(self._outgoing.get(node_id, ()))

    def incoming(self, node_id: str) -> List[DiagramEdge]:
        return list(self._incoming.get(node_id, ()))

    def unique_id(self, base: str, reserved: Iterable[str] = ()) -> str:
        """生成不与现有节点及保留名称冲突的节点ID"""
        used = set(self.nodes) | set(reserved)
        candidate = base
        n = 2
        while candidate in used:
            candidate = f"{base}_{n}"
            n += 1
        return candidate

    @property
    def start_node(self) -> Optional[DiagramNode]:
        return self.nodes.get(self.start_id) if self.start_id else None

    @property
    def end_node(self) -> Optional[DiagramNode]:
        return self.nodes.get(self.end_id) if self.end_id else None

    @property
    def state_nodes(self) -> List[DiagramNode]:
        return [node for node in self.nodes.values() if not node.is_pseudo]

    @property
    def back_edges(self) -> List[DiagramEdge]:
        return [e for e in self.edges if e.back_edge]

    @property
    def forward_edges(self) -> List[DiagramEdge]:
        return [e for e in self.edges if not e.back_edge]

    @property
    def max_rank(self) -> int:
        return max((node.rank for node in self.nodes.values()), default=0)

    @property
    def max_track(self) -> int:
        return max((node.track for node in self.nodes.values()), default=0)
