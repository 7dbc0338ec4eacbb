"""
分层布局引擎

rank 为去掉回边后从 START 出发的最长路径层号；track 为层内的泳道号。
"""
from collections import defaultdict, deque
from typing import Dict, List
import logging

from .graph import GraphModel, DiagramEdge, DiagramNode, NodeKind


logger = logging.getLogger(__name__)

_UNVISITED, _ON_STACK, _DONE = 0, 1, 2


class LayoutEngine:
    """为 GraphModel 节点分配 rank/track 坐标（原地修改）"""

    def layout(self, graph: GraphModel) -> GraphModel:
        if not graph.nodes:
            return graph

        self._mark_back_edges(graph)
        self._assign_ranks(graph)
        self._assign_tracks(graph)

        logger.debug(
            f"Laid out {len(graph.nodes)} nodes over {graph.max_rank + 1} ranks, "
            f"{len(graph.back_edges)} back-edge(s)"
        )
        return graph

    def _mark_back_edges(self, graph: GraphModel):
        """深度优先遍历，指向当前路径上节点的边标记为回边"""
        outgoing: Dict[str, List[DiagramEdge]] = defaultdict(list)
        for edge in graph.edges:
            edge.back_edge = False
            outgoing[edge.source].append(edge)
        for edges in outgoing.values():
            edges.sort(key=lambda e: e.order)

        roots = list(graph.nodes)
        if graph.start_id in graph.nodes:
            roots.remove(graph.start_id)
            roots.insert(0, graph.start_id)

        state = {node_id: _UNVISITED for node_id in graph.nodes}
        for root in roots:
            if state[root] != _UNVISITED:
                continue
            state[root] = _ON_STACK
            stack = [(root, iter(outgoing[root]))]
            while stack:
                node_id, edges = stack[-1]
                edge = next(edges, None)
                if edge is None:
                    state[node_id] = _DONE
                    stack.pop()
                    continue
                if state[edge.target] == _ON_STACK:
                    edge.back_edge = True
                elif state[edge.target] == _UNVISITED:
                    state[edge.target] = _ON_STACK
                    stack.append((edge.target, iter(outgoing[edge.target])))

    def _assign_ranks(self, graph: GraphModel):
        """最长路径分层（拓扑序，只看前向边）"""
        successors: Dict[str, List[str]] = defaultdict(list)
        in_degree = {node_id: 0 for node_id in graph.nodes}
        for edge in graph.forward_edges:
            successors[edge.source].append(edge.target)
            in_degree[edge.target] += 1

        rank = {node_id: 0 for node_id in graph.nodes}
        queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
        while queue:
            node_id = queue.popleft()
            for target in successors[node_id]:
                rank[target] = max(rank[target], rank[node_id] + 1)
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        for node_id, node in graph.nodes.items():
            node.rank = rank[node_id]

    def _assign_tracks(self, graph: GraphModel):
        """
        逐层分配泳道

        分支节点的期望泳道为并行节点泳道加分支序号；其他节点取前驱中最左的泳道
        （汇聚节点因此落在最左分支的泳道上）。同层冲突按（期望泳道，声明顺序）
        排序后依次右移。
        """
        predecessors: Dict[str, List[str]] = defaultdict(list)
        for edge in graph.forward_edges:
            predecessors[edge.target].append(edge.source)

        by_rank: Dict[int, List[DiagramNode]] = defaultdict(list)
        for node in graph.nodes.values():
            by_rank[node.rank].append(node)

        for rank in sorted(by_rank):
            preferred: Dict[str, int] = {}
            for node in by_rank[rank]:
                preferred[node.id] = self._preferred_track(graph, node, predecessors[node.id])

            members = sorted(
                by_rank[rank],
                key=lambda n: (preferred[n.id], n.order, n.branch_index or 0)
            )
            next_free = 0
            for node in members:
                node.track = max(preferred[node.id], next_free)
                next_free = node.track + 1

    def _preferred_track(self, graph: GraphModel, node: DiagramNode, predecessors: List[str]) -> int:
        if node.kind == NodeKind.BRANCH and node.parent in graph.nodes:
            return graph.nodes[node.parent].track + (node.branch_index or 0)
        tracks = [graph.nodes[p].track for p in predecessors]
        return min(tracks) if tracks else 0
