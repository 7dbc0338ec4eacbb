"""
工作流查询工具

提供最常用的工作流查询：起始状态、按类型筛选状态、已定义/已使用的事件、
动作对应的函数定义。子工作流不在统计范围内。
"""
from typing import List, Optional, Union

from .models.workflow import (
    Workflow, State, StateType, EventKind, EventDefinition, FunctionDefinition
)


DEFAULT_STARTING_STATE_POSITION = 0


def _has_states(workflow: Optional[Workflow]) -> bool:
    return workflow is not None and bool(workflow.states)


def get_state(workflow: Optional[Workflow], name: str) -> Optional[State]:
    """根据名称获取状态"""
    if not _has_states(workflow):
        return None
    return workflow.get_state(name)


def get_starting_state(workflow: Optional[Workflow]) -> Optional[State]:
    """
    获取起始状态

    未声明起点时返回第一个状态；声明了起点则返回同名状态，不存在时返回 None。
    """
    if not _has_states(workflow):
        return None

    start = workflow.start
    if start is None or not start.state_name:
        return workflow.states[DEFAULT_STARTING_STATE_POSITION]
    return workflow.get_state(start.state_name)


def get_states(workflow: Optional[Workflow], state_type: Union[StateType, str]) -> List[State]:
    """获取指定类型的状态列表"""
    if not _has_states(workflow):
        return []
    if isinstance(state_type, str):
        state_type = StateType(state_type)
    return [state for state in workflow.states if state.type == state_type]


def get_defined_events(workflow: Optional[Workflow], kind: EventKind) -> List[EventDefinition]:
    """获取指定类型的已定义事件"""
    if workflow is None:
        return []
    return [event for event in workflow.events if event.kind == kind]


def get_defined_consumed_events(workflow: Optional[Workflow]) -> List[EventDefinition]:
    return get_defined_events(workflow, EventKind.CONSUMED)


def get_defined_produced_events(workflow: Optional[Workflow]) -> List[EventDefinition]:
    return get_defined_events(workflow, EventKind.PRODUCED)


def get_defined_events_count(workflow: Optional[Workflow], kind: EventKind) -> int:
    return len(get_defined_events(workflow, kind))


def get_defined_consumed_events_count(workflow: Optional[Workflow]) -> int:
    return get_defined_events_count(workflow, EventKind.CONSUMED)


def get_defined_produced_events_count(workflow: Optional[Workflow]) -> int:
    return get_defined_events_count(workflow, EventKind.PRODUCED)


def get_state_event_refs(state: State) -> List[str]:
    """
    获取单个状态引用的事件名称（按引用顺序去重）

    包括事件条件、回调事件、onEvents 的 eventRefs 以及各动作的触发/结果事件。
    """
    refs: List[str] = []
    actions = []

    if state.type == StateType.SWITCH:
        refs.extend(condition.event_ref for condition in getattr(state, 'event_conditions', []))
    elif state.type == StateType.CALLBACK:
        if getattr(state, 'event_ref', None):
            refs.append(state.event_ref)
        if getattr(state, 'action', None) is not None:
            actions.append(state.action)
    elif state.type == StateType.EVENT:
        for on_events in getattr(state, 'on_events', []):
            refs.extend(on_events.event_refs)
            actions.extend(on_events.actions)
    elif state.type == StateType.PARALLEL:
        for branch in getattr(state, 'branches', []):
            actions.extend(branch.actions)
    elif state.type in (StateType.OPERATION, StateType.FOREACH):
        actions.extend(getattr(state, 'actions', []))

    for action in actions:
        refs.extend(action.event_names())

    unique = []
    for ref in refs:
        if ref not in unique:
            unique.append(ref)
    return unique


def _get_workflow_events_from_states(workflow: Workflow) -> List[str]:
    """所有状态引用的事件名称（去重）"""
    names: List[str] = []
    for state in workflow.states:
        for ref in get_state_event_refs(state):
            if ref not in names:
                names.append(ref)
    return names


def _get_workflow_event_definitions(workflow: Optional[Workflow], kind: EventKind) -> List[EventDefinition]:
    if not _has_states(workflow):
        return []
    used = _get_workflow_events_from_states(workflow)
    return [event for event in get_defined_events(workflow, kind) if event.name in used]


def get_workflow_consumed_events(workflow: Optional[Workflow]) -> List[EventDefinition]:
    """工作流状态中实际使用的消费事件"""
    return _get_workflow_event_definitions(workflow, EventKind.CONSUMED)


def get_workflow_produced_events(workflow: Optional[Workflow]) -> List[EventDefinition]:
    """工作流状态中实际使用的产生事件"""
    return _get_workflow_event_definitions(workflow, EventKind.PRODUCED)


def get_workflow_consumed_events_count(workflow: Optional[Workflow]) -> int:
    return len(get_workflow_consumed_events(workflow))


def get_workflow_produced_events_count(workflow: Optional[Workflow]) -> int:
    return len(get_workflow_produced_events(workflow))


def get_function_definitions_for_action(
    workflow: Optional[Workflow],
    action: str
) -> List[FunctionDefinition]:
    """获取与动作函数名匹配的函数定义"""
    if workflow is None:
        return []
    return [function for function in workflow.functions if function.name == action]
