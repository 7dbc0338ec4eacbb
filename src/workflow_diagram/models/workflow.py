"""
工作流定义模型
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Union
from enum import Enum


class StateType(Enum):
    """状态类型"""
    EVENT = "event"
    OPERATION = "operation"
    SWITCH = "switch"
    SLEEP = "sleep"
    DELAY = "delay"
    PARALLEL = "parallel"
    INJECT = "inject"
    FOREACH = "foreach"
    CALLBACK = "callback"


class EventKind(Enum):
    """事件类型"""
    CONSUMED = "consumed"
    PRODUCED = "produced"


class ActionMode(Enum):
    """动作执行模式"""
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class CompletionType(Enum):
    """并行状态完成类型"""
    ALL_OF = "allOf"
    AT_LEAST = "atLeast"


@dataclass
class Start:
    """工作流起点"""
    state_name: Optional[str] = None
    schedule: Optional[Union[str, Dict[str, Any]]] = None


@dataclass
class ProduceEvent:
    """转换或结束时产生的事件"""
    event_ref: str
    data: Optional[Any] = None


@dataclass
class End:
    """状态结束定义"""
    terminate: bool = False
    produce_events: List[ProduceEvent] = field(default_factory=list)
    compensate: bool = False
    continue_as: Optional[str] = None


@dataclass
class Transition:
    """状态转换"""
    next_state: str
    produce_events: List[ProduceEvent] = field(default_factory=list)
    compensate: bool = False


@dataclass
class EventDefinition:
    """事件定义"""
    name: str
    source: Optional[str] = None
    type: Optional[str] = None
    kind: EventKind = EventKind.CONSUMED
    correlation: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FunctionDefinition:
    """函数定义"""
    name: str
    operation: Optional[str] = None
    type: str = "rest"
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ErrorDefinition:
    """错误定义"""
    name: str
    code: Optional[str] = None
    description: Optional[str] = None


@dataclass
class FunctionRef:
    """函数引用"""
    ref_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EventRef:
    """动作的事件引用"""
    trigger_event_ref: Optional[str] = None
    result_event_ref: Optional[str] = None
    data: Optional[Any] = None


@dataclass
class Action:
    """状态动作"""
    name: Optional[str] = None
    function_ref: Optional[FunctionRef] = None
    event_ref: Optional[EventRef] = None
    sub_flow_ref: Optional[str] = None
    sleep: Optional[Dict[str, Any]] = None

    def event_names(self) -> List[str]:
        """动作引用的事件名称（触发事件在前，结果事件在后）"""
        names = []
        if self.event_ref is not None:
            if self.event_ref.trigger_event_ref:
                names.append(self.event_ref.trigger_event_ref)
            if self.event_ref.result_event_ref:
                names.append(self.event_ref.result_event_ref)
        return names


@dataclass
class OnEvents:
    """事件状态的事件-动作组"""
    event_refs: List[str] = field(default_factory=list)
    action_mode: ActionMode = ActionMode.SEQUENTIAL
    actions: List[Action] = field(default_factory=list)


@dataclass
class Branch:
    """并行分支"""
    name: str
    actions: List[Action] = field(default_factory=list)


@dataclass
class DataCondition:
    """数据条件"""
    condition: str
    name: Optional[str] = None
    transition: Optional[Transition] = None
    end: Optional[End] = None


@dataclass
class EventCondition:
    """事件条件"""
    event_ref: str
    name: Optional[str] = None
    transition: Optional[Transition] = None
    end: Optional[End] = None


@dataclass
class DefaultCondition:
    """默认条件"""
    transition: Optional[Transition] = None
    end: Optional[End] = None


@dataclass
class OnError:
    """错误处理转换"""
    error_ref: str
    transition: Optional[Transition] = None
    end: Optional[End] = None


@dataclass
class State:
    """工作流状态基类

    type 为 StateType 时表示已知变体；原始字符串表示无法识别的状态类型。
    """
    name: str
    type: Union[StateType, str] = ""
    transition: Optional[Transition] = None
    end: Optional[End] = None
    on_errors: List[OnError] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.end is not None

    @property
    def next_state(self) -> Optional[str]:
        return self.transition.next_state if self.transition else None


@dataclass
class EventState(State):
    """事件状态"""
    on_events: List[OnEvents] = field(default_factory=list)
    exclusive: bool = True

    def __post_init__(self):
        self.type = StateType.EVENT


@dataclass
class OperationState(State):
    """操作状态"""
    actions: List[Action] = field(default_factory=list)
    action_mode: ActionMode = ActionMode.SEQUENTIAL

    def __post_init__(self):
        self.type = StateType.OPERATION


@dataclass
class SwitchState(State):
    """分支状态"""
    data_conditions: List[DataCondition] = field(default_factory=list)
    event_conditions: List[EventCondition] = field(default_factory=list)
    default_condition: Optional[DefaultCondition] = None

    def __post_init__(self):
        self.type = StateType.SWITCH


@dataclass
class ParallelState(State):
    """并行状态"""
    branches: List[Branch] = field(default_factory=list)
    completion_type: CompletionType = CompletionType.ALL_OF
    num_completed: Optional[int] = None

    def __post_init__(self):
        self.type = StateType.PARALLEL


@dataclass
class CallbackState(State):
    """回调状态"""
    action: Optional[Action] = None
    event_ref: Optional[str] = None

    def __post_init__(self):
        self.type = StateType.CALLBACK


@dataclass
class ForEachState(State):
    """循环状态"""
    input_collection: Optional[str] = None
    output_collection: Optional[str] = None
    iteration_param: Optional[str] = None
    actions: List[Action] = field(default_factory=list)
    batch_size: Optional[int] = None

    def __post_init__(self):
        self.type = StateType.FOREACH


@dataclass
class InjectState(State):
    """数据注入状态"""
    data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.type = StateType.INJECT


@dataclass
class DelayState(State):
    """延迟状态"""
    time_delay: Optional[str] = None

    def __post_init__(self):
        self.type = StateType.DELAY


@dataclass
class SleepState(State):
    """休眠状态"""
    duration: Optional[str] = None

    def __post_init__(self):
        self.type = StateType.SLEEP


@dataclass
class Workflow:
    """工作流定义"""
    id: str = ""
    name: str = ""
    version: str = "1.0"
    description: Optional[str] = None
    spec_version: Optional[str] = None
    start: Optional[Start] = None
    events: List[EventDefinition] = field(default_factory=list)
    functions: List[FunctionDefinition] = field(default_factory=list)
    errors: List[ErrorDefinition] = field(default_factory=list)
    states: List[State] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_state(self, name: str) -> Optional[State]:
        """根据名称获取状态"""
        for state in self.states:
            if state.name == name:
                return state
        return None

    def get_event(self, name: str) -> Optional[EventDefinition]:
        """根据名称获取事件定义"""
        for event in self.events:
            if event.name == name:
                return event
        return None
