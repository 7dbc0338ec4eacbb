"""
状态图构建器

两遍构建：第一遍为每个声明的状态生成节点，第二遍按状态变体规则生成边。
构建过程不做遍历，环路只会以回边的形式出现在边集中，由布局引擎处理。
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Callable
import logging

from ..models.workflow import Workflow, State, StateType, Transition, End
from ..exceptions import ConfigurationError, WorkflowReferenceError, UnsupportedStateError
from ..utils import get_state_event_refs
from .graph import GraphModel, DiagramNode, NodeKind, EdgeKind


logger = logging.getLogger(__name__)


NODE_KINDS: Dict[StateType, NodeKind] = {
    StateType.EVENT: NodeKind.EVENT,
    StateType.OPERATION: NodeKind.OPERATION,
    StateType.SWITCH: NodeKind.SWITCH,
    StateType.PARALLEL: NodeKind.PARALLEL,
    StateType.CALLBACK: NodeKind.CALLBACK,
    StateType.FOREACH: NodeKind.FOREACH,
    StateType.INJECT: NodeKind.INJECT,
    StateType.DELAY: NodeKind.DELAY,
    StateType.SLEEP: NodeKind.SLEEP,
}


@dataclass
class _BuildContext:
    """单次构建的上下文"""
    workflow: Workflow
    graph: GraphModel
    declared: Set[str]


class StateGraphBuilder:
    """将工作流对象转换为 GraphModel"""

    START_LABEL = "Start"
    END_LABEL = "End"

    def __init__(self):
        self.edge_builders: Dict[StateType, Callable[[_BuildContext, State], None]] = {
            StateType.SWITCH: self._build_switch_edges,
            StateType.PARALLEL: self._build_parallel_edges,
            StateType.EVENT: self._build_event_edges,
            StateType.CALLBACK: self._build_event_edges,
            StateType.OPERATION: self._build_transition_edge,
            StateType.FOREACH: self._build_transition_edge,
            StateType.INJECT: self._build_transition_edge,
            StateType.DELAY: self._build_transition_edge,
            StateType.SLEEP: self._build_transition_edge,
        }

    def build(self, workflow: Workflow) -> GraphModel:
        """
        构建状态图

        Args:
            workflow: 已解析的工作流对象（只读）

        Returns:
            GraphModel: 含 START/END 伪节点的有向图

        Raises:
            ConfigurationError: 没有状态、状态重名或状态缺少转换
            WorkflowReferenceError: 起始状态、转换目标或事件引用无法解析
            UnsupportedStateError: 状态类型无法识别
        """
        states = list(workflow.states or [])
        if not states:
            raise ConfigurationError(f"Workflow '{workflow.id}' declares no states")

        names = [state.name for state in states]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate state names found: {duplicates}")

        start_state = self._resolve_start(workflow, states)

        graph = GraphModel()
        context = _BuildContext(workflow=workflow, graph=graph, declared=set(names))

        # 第一遍：节点
        graph.start_id = graph.unique_id("start", reserved=names)
        graph.add_node(DiagramNode(
            id=graph.start_id,
            kind=NodeKind.START,
            label=self.START_LABEL,
            order=-1
        ))

        state_types: List[StateType] = []
        for order, state in enumerate(states):
            state_type = self._state_type(state)
            state_types.append(state_type)
            graph.add_node(DiagramNode(
                id=state.name,
                kind=NODE_KINDS[state_type],
                label=state.name,
                order=order,
                state_name=state.name
            ))

        # 第二遍：边
        graph.add_edge(graph.start_id, start_state.name, EdgeKind.DEFAULT)
        for state, state_type in zip(states, state_types):
            self.edge_builders[state_type](context, state)
            self._build_error_edges(context, state)

        if graph.end_id is None:
            logger.warning(f"Workflow '{workflow.id}' has no terminal state")

        logger.debug(
            f"Built graph for workflow '{workflow.id}': "
            f"{len(graph.nodes)} nodes, {len(graph.edges)} edges"
        )
        return graph

    def _resolve_start(self, workflow: Workflow, states: List[State]) -> State:
        """解析起始状态：声明的起点或第一个状态"""
        start = workflow.start
        if start is None or not start.state_name:
            return states[0]

        for state in states:
            if state.name == start.state_name:
                return state
        raise WorkflowReferenceError(None, start.state_name, "start state is not a declared state")

    def _state_type(self, state: State) -> StateType:
        state_type = state.type
        if isinstance(state_type, str):
            try:
                state_type = StateType(state_type)
            except ValueError:
                raise UnsupportedStateError(state.name, state_type)
        if state_type not in self.edge_builders:
            raise UnsupportedStateError(state.name, str(state_type))
        return state_type

    def _end_id(self, context: _BuildContext) -> str:
        """共享的 END 节点，首次使用时创建"""
        graph = context.graph
        if graph.end_id is None:
            graph.end_id = graph.unique_id("end", reserved=context.declared)
            graph.add_node(DiagramNode(
                id=graph.end_id,
                kind=NodeKind.END,
                label=self.END_LABEL,
                order=len(context.workflow.states)
            ))
        return graph.end_id

    def _resolve_target(
        self,
        context: _BuildContext,
        state: State,
        transition: Optional[Transition],
        end: Optional[End],
        what: str = "State"
    ) -> str:
        """解析转换目标节点ID；结束时返回 END"""
        if transition is not None:
            if transition.next_state not in context.declared:
                raise WorkflowReferenceError(
                    state.name, transition.next_state, "transition target is not a declared state"
                )
            return transition.next_state
        if end is not None:
            return self._end_id(context)
        raise ConfigurationError(f"{what} of state '{state.name}' declares neither transition nor end")

    def _flow_kind(self, context: _BuildContext, target: str) -> EdgeKind:
        return EdgeKind.END if target == context.graph.end_id else EdgeKind.DEFAULT

    def _event_label(self, context: _BuildContext, state: State, event_ref: str) -> Optional[str]:
        """校验事件引用并返回事件描述"""
        workflow = context.workflow
        if not workflow.events:
            return None
        event = workflow.get_event(event_ref)
        if event is None:
            raise WorkflowReferenceError(state.name, event_ref, "event is not defined")
        parts = [f"{event.kind.value} event"]
        if event.type:
            parts.append(f"type {event.type}")
        if event.source:
            parts.append(f"source {event.source}")
        return ", ".join(parts)

    def _build_transition_edge(self, context: _BuildContext, state: State):
        """operation/foreach/inject/delay/sleep：单条转换边或结束边"""
        target = self._resolve_target(context, state, state.transition, state.end)
        context.graph.add_edge(state.name, target, self._flow_kind(context, target))

    def _build_switch_edges(self, context: _BuildContext, state: State):
        """switch：每个条件一条边，默认条件一条默认转换边"""
        graph = context.graph
        data_conditions = getattr(state, 'data_conditions', [])
        event_conditions = getattr(state, 'event_conditions', [])
        default_condition = getattr(state, 'default_condition', None)

        for condition in data_conditions:
            target = self._resolve_target(
                context, state, condition.transition, condition.end, what="Data condition"
            )
            graph.add_edge(
                state.name, target, EdgeKind.CONDITIONAL,
                label=condition.condition, description=condition.name
            )

        for condition in event_conditions:
            description = self._event_label(context, state, condition.event_ref)
            target = self._resolve_target(
                context, state, condition.transition, condition.end, what="Event condition"
            )
            graph.add_edge(
                state.name, target, EdgeKind.EVENT,
                label=condition.event_ref, description=description
            )

        if default_condition is not None:
            target = self._resolve_target(
                context, state, default_condition.transition, default_condition.end,
                what="Default condition"
            )
            graph.add_edge(state.name, target, EdgeKind.DEFAULT)
        elif state.transition is not None or state.end is not None:
            target = self._resolve_target(context, state, state.transition, state.end)
            graph.add_edge(state.name, target, EdgeKind.DEFAULT)
        elif not data_conditions and not event_conditions:
            raise ConfigurationError(f"Switch state '{state.name}' declares no conditions")

    def _build_parallel_edges(self, context: _BuildContext, state: State):
        """
        parallel：分支扇出到分支入口节点，全部分支汇合到一个 JOIN 节点，
        再由 JOIN 节点发出唯一一条边到转换目标
        """
        graph = context.graph
        target = self._resolve_target(context, state, state.transition, state.end)
        branches = getattr(state, 'branches', [])

        if not branches:
            graph.add_edge(state.name, target, self._flow_kind(context, target))
            return

        parent = graph.get_node(state.name)
        branch_ids = []
        for index, branch in enumerate(branches):
            branch_id = graph.unique_id(f"{state.name}/{branch.name}", reserved=context.declared)
            graph.add_node(DiagramNode(
                id=branch_id,
                kind=NodeKind.BRANCH,
                label=branch.name,
                order=parent.order,
                parent=state.name,
                branch_index=index
            ))
            graph.add_edge(state.name, branch_id, EdgeKind.DEFAULT)
            branch_ids.append(branch_id)

        join_id = graph.unique_id(f"{state.name}/join", reserved=context.declared)
        graph.add_node(DiagramNode(
            id=join_id,
            kind=NodeKind.JOIN,
            label=state.name,
            order=parent.order,
            parent=state.name
        ))
        for branch_id in branch_ids:
            graph.add_edge(branch_id, join_id, EdgeKind.DEFAULT)
        graph.add_edge(join_id, target, self._flow_kind(context, target))

    def _build_event_edges(self, context: _BuildContext, state: State):
        """
        event/callback：每个引用的事件一条事件边，外加状态自身的转换边

        结束状态只生成一条结束边，事件名合并为该边的标签。
        """
        graph = context.graph
        target = self._resolve_target(context, state, state.transition, state.end)

        event_refs = get_state_event_refs(state)
        produced = state.transition.produce_events if state.transition else state.end.produce_events
        for produce_event in produced:
            if produce_event.event_ref not in event_refs:
                event_refs.append(produce_event.event_ref)

        if target == graph.end_id:
            descriptions = [self._event_label(context, state, event_ref) for event_ref in event_refs]
            graph.add_edge(
                state.name, target, EdgeKind.END,
                label=", ".join(event_refs) or None,
                description="; ".join(d for d in descriptions if d) or None
            )
            return

        for event_ref in event_refs:
            description = self._event_label(context, state, event_ref)
            graph.add_edge(state.name, target, EdgeKind.EVENT, label=event_ref, description=description)

        graph.add_edge(state.name, target, self._flow_kind(context, target))

    def _build_error_edges(self, context: _BuildContext, state: State):
        """onErrors：每个错误处理一条错误转换边"""
        workflow = context.workflow
        for on_error in state.on_errors:
            if workflow.errors and on_error.error_ref not in {e.name for e in workflow.errors}:
                raise WorkflowReferenceError(state.name, on_error.error_ref, "error is not defined")
            target = self._resolve_target(
                context, state, on_error.transition, on_error.end, what="Error handler"
            )
            context.graph.add_edge(state.name, target, EdgeKind.ERROR, label=on_error.error_ref)
