"""
工作流解析器
"""
import yaml
import json
import logging
from enum import Enum
from typing import Dict, Any, List, Optional, Union, Mapping, Type
from pathlib import Path

from ..models.workflow import (
    Workflow, State, StateType, EventKind, ActionMode, CompletionType,
    Start, End, Transition, ProduceEvent, EventDefinition, FunctionDefinition,
    ErrorDefinition, FunctionRef, EventRef, Action, OnEvents, Branch,
    DataCondition, EventCondition, DefaultCondition, OnError,
    EventState, OperationState, SwitchState, ParallelState, CallbackState,
    ForEachState, InjectState, DelayState, SleepState
)
from ..exceptions import WorkflowParseError, WorkflowValidationError, UnsupportedStateError
from .schema import SchemaValidator


logger = logging.getLogger(__name__)


class WorkflowParser:
    """工作流解析器

    将 JSON/YAML 工作流定义解析为 Workflow 对象模型。枚举字段（actionMode、
    completionType、事件 kind）会先在 property_source 中查找替换值。
    """

    def __init__(self, property_source: Optional[Mapping[str, str]] = None):
        self.property_source = property_source
        self.schema_validator = SchemaValidator()
        self.parsers = {
            'yaml': self._parse_yaml,
            'yml': self._parse_yaml,
            'json': self._parse_json
        }
        self.state_parsers = {
            StateType.EVENT: self._parse_event_state,
            StateType.OPERATION: self._parse_operation_state,
            StateType.SWITCH: self._parse_switch_state,
            StateType.SLEEP: self._parse_sleep_state,
            StateType.DELAY: self._parse_delay_state,
            StateType.PARALLEL: self._parse_parallel_state,
            StateType.INJECT: self._parse_inject_state,
            StateType.FOREACH: self._parse_foreach_state,
            StateType.CALLBACK: self._parse_callback_state
        }

    def parse(self, source: Union[str, Path, Dict[str, Any]]) -> Workflow:
        """
        解析工作流定义

        Args:
            source: 工作流定义来源，可以是文件路径、字符串或字典

        Returns:
            Workflow: 解析后的工作流对象
        """
        if isinstance(source, dict):
            return self._parse_dict(source)

        if isinstance(source, Path):
            return self.parse_file(source)

        if isinstance(source, str):
            if self._is_file(source):
                return self.parse_file(Path(source))
            # 作为YAML/JSON字符串解析
            return self.parse_string(source)

        raise WorkflowParseError(f"Unsupported source type: {type(source)}")

    def parse_file(self, file_path: Path) -> Workflow:
        """解析工作流文件"""
        file_path = Path(file_path)
        suffix = file_path.suffix.lower().lstrip('.')
        if suffix not in self.parsers:
            raise WorkflowParseError(f"Unsupported file format: {suffix}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise WorkflowParseError(f"Failed to read workflow file '{file_path}': {e}")

        data = self.parsers[suffix](content)
        return self._parse_dict(data)

    def parse_string(self, content: str) -> Workflow:
        """解析工作流字符串"""
        data = None
        # 先尝试YAML，再尝试JSON
        for loader in (self._parse_yaml, self._parse_json):
            try:
                data = loader(content)
                break
            except WorkflowParseError:
                continue

        if not isinstance(data, dict):
            raise WorkflowParseError("Failed to parse workflow string as YAML or JSON")

        return self._parse_dict(data)

    @staticmethod
    def _is_file(source: str) -> bool:
        if '\n' in source:
            return False
        try:
            path = Path(source)
            return path.exists() and path.is_file()
        except OSError:
            return False

    def _parse_yaml(self, content: str) -> Dict[str, Any]:
        """解析YAML格式"""
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise WorkflowParseError(f"Failed to parse YAML: {e}")

    def _parse_json(self, content: str) -> Dict[str, Any]:
        """解析JSON格式"""
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise WorkflowParseError(f"Failed to parse JSON: {e}")

    def _parse_dict(self, data: Dict[str, Any]) -> Workflow:
        """解析字典格式的工作流定义"""
        if not isinstance(data, dict):
            raise WorkflowParseError(f"Workflow definition must be a mapping, got {type(data).__name__}")

        if isinstance(data.get('workflow'), dict):
            data = data['workflow']

        errors = self.schema_validator.validate(data)
        if errors:
            raise WorkflowValidationError(f"Workflow validation failed: {errors}")

        workflow = Workflow(
            id=str(data['id']),
            name=data['name'],
            version=str(data.get('version', '1.0')),
            description=data.get('description'),
            spec_version=data.get('specVersion'),
            start=self._parse_start(data.get('start')),
            events=[
                self._parse_event_definition(item)
                for item in self._definitions(data.get('events'), 'eventDefs', 'events')
            ],
            functions=[
                self._parse_function_definition(item)
                for item in self._definitions(data.get('functions'), 'functionDefs', 'functions')
            ],
            errors=[
                self._parse_error_definition(item)
                for item in self._definitions(data.get('errors'), 'errorDefs', 'errors')
            ],
            metadata=data.get('metadata', {})
        )

        for state_data in data['states']:
            workflow.states.append(self._parse_state(state_data))

        logger.debug(f"Parsed workflow '{workflow.id}' with {len(workflow.states)} states")
        return workflow

    def _definitions(self, value: Any, key: str, kind: str) -> List[Dict[str, Any]]:
        """取出事件/函数/错误定义列表"""
        if value is None:
            return []
        if isinstance(value, list):
            return value
        if isinstance(value, dict):
            return value.get(key, [])
        # 外部URI引用不在解析范围内
        logger.warning(f"External {kind} definitions '{value}' are not resolved")
        return []

    def _parse_start(self, value: Any) -> Optional[Start]:
        """解析起点定义"""
        if value is None:
            return None
        if isinstance(value, str):
            return Start(state_name=value)
        return Start(
            state_name=value.get('stateName'),
            schedule=value.get('schedule')
        )

    def _parse_event_definition(self, data: Dict[str, Any]) -> EventDefinition:
        return EventDefinition(
            name=data['name'],
            source=data.get('source'),
            type=data.get('type'),
            kind=self._resolve_enum(EventKind, data.get('kind', EventKind.CONSUMED.value)),
            correlation=data.get('correlation', []),
            metadata=data.get('metadata', {})
        )

    def _parse_function_definition(self, data: Dict[str, Any]) -> FunctionDefinition:
        return FunctionDefinition(
            name=data['name'],
            operation=data.get('operation', data.get('resource')),
            type=data.get('type', 'rest'),
            metadata=data.get('metadata', {})
        )

    def _parse_error_definition(self, data: Dict[str, Any]) -> ErrorDefinition:
        return ErrorDefinition(
            name=data['name'],
            code=data.get('code'),
            description=data.get('description')
        )

    def _parse_state(self, data: Dict[str, Any]) -> State:
        """解析状态定义"""
        name = data['name']
        try:
            state_type = StateType(data['type'])
        except ValueError:
            raise UnsupportedStateError(name, data['type'])

        common = {
            'name': name,
            'transition': self._parse_transition(data.get('transition')),
            'end': self._parse_end(data.get('end')),
            'on_errors': [self._parse_on_error(item) for item in data.get('onErrors', [])],
            'metadata': data.get('metadata', {})
        }
        return self.state_parsers[state_type](data, common)

    def _parse_event_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> EventState:
        return EventState(
            on_events=[
                OnEvents(
                    event_refs=list(item.get('eventRefs', [])),
                    action_mode=self._resolve_enum(
                        ActionMode, item.get('actionMode', ActionMode.SEQUENTIAL.value)
                    ),
                    actions=self._parse_actions(item.get('actions'))
                )
                for item in data.get('onEvents', [])
            ],
            exclusive=data.get('exclusive', True),
            **common
        )

    def _parse_operation_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> OperationState:
        return OperationState(
            actions=self._parse_actions(data.get('actions')),
            action_mode=self._resolve_enum(ActionMode, data.get('actionMode', ActionMode.SEQUENTIAL.value)),
            **common
        )

    def _parse_switch_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> SwitchState:
        default_data = data.get('defaultCondition', data.get('default'))
        default_condition = None
        if default_data is not None:
            default_condition = DefaultCondition(
                transition=self._parse_transition(default_data.get('transition')),
                end=self._parse_end(default_data.get('end'))
            )

        return SwitchState(
            data_conditions=[
                DataCondition(
                    condition=item['condition'],
                    name=item.get('name'),
                    transition=self._parse_transition(item.get('transition')),
                    end=self._parse_end(item.get('end'))
                )
                for item in data.get('dataConditions', [])
            ],
            event_conditions=[
                EventCondition(
                    event_ref=item['eventRef'],
                    name=item.get('name'),
                    transition=self._parse_transition(item.get('transition')),
                    end=self._parse_end(item.get('end'))
                )
                for item in data.get('eventConditions', [])
            ],
            default_condition=default_condition,
            **common
        )

    def _parse_sleep_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> SleepState:
        return SleepState(duration=data.get('duration'), **common)

    def _parse_delay_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> DelayState:
        return DelayState(time_delay=data.get('timeDelay'), **common)

    def _parse_parallel_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> ParallelState:
        num_completed = data.get('numCompleted')
        return ParallelState(
            branches=[
                Branch(name=item['name'], actions=self._parse_actions(item.get('actions')))
                for item in data.get('branches', [])
            ],
            completion_type=self._resolve_enum(
                CompletionType, data.get('completionType', CompletionType.ALL_OF.value)
            ),
            num_completed=int(num_completed) if num_completed is not None else None,
            **common
        )

    def _parse_inject_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> InjectState:
        return InjectState(data=data.get('data', {}), **common)

    def _parse_foreach_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> ForEachState:
        return ForEachState(
            input_collection=data.get('inputCollection'),
            output_collection=data.get('outputCollection'),
            iteration_param=data.get('iterationParam'),
            actions=self._parse_actions(data.get('actions')),
            batch_size=data.get('batchSize'),
            **common
        )

    def _parse_callback_state(self, data: Dict[str, Any], common: Dict[str, Any]) -> CallbackState:
        action_data = data.get('action')
        return CallbackState(
            action=self._parse_action(action_data) if action_data else None,
            event_ref=data.get('eventRef'),
            **common
        )

    def _parse_transition(self, value: Any) -> Optional[Transition]:
        """解析转换，支持字符串和对象两种写法"""
        if value is None:
            return None
        if isinstance(value, str):
            return Transition(next_state=value)
        return Transition(
            next_state=value['nextState'],
            produce_events=self._parse_produce_events(value.get('produceEvents')),
            compensate=value.get('compensate', False)
        )

    def _parse_end(self, value: Any) -> Optional[End]:
        """解析结束定义，支持布尔和对象两种写法"""
        if value is None or value is False:
            return None
        if value is True:
            return End()
        continue_as = value.get('continueAs')
        if isinstance(continue_as, dict):
            continue_as = continue_as.get('workflowId')
        return End(
            terminate=value.get('terminate', False),
            produce_events=self._parse_produce_events(value.get('produceEvents')),
            compensate=value.get('compensate', False),
            continue_as=continue_as
        )

    def _parse_produce_events(self, items: Optional[List[Dict[str, Any]]]) -> List[ProduceEvent]:
        return [
            ProduceEvent(event_ref=item['eventRef'], data=item.get('data'))
            for item in (items or [])
        ]

    def _parse_on_error(self, data: Dict[str, Any]) -> OnError:
        return OnError(
            error_ref=data['errorRef'],
            transition=self._parse_transition(data.get('transition')),
            end=self._parse_end(data.get('end'))
        )

    def _parse_actions(self, items: Optional[List[Dict[str, Any]]]) -> List[Action]:
        return [self._parse_action(item) for item in (items or [])]

    def _parse_action(self, data: Dict[str, Any]) -> Action:
        """解析动作"""
        function_ref = data.get('functionRef')
        if isinstance(function_ref, str):
            function_ref = FunctionRef(ref_name=function_ref)
        elif isinstance(function_ref, dict):
            function_ref = FunctionRef(
                ref_name=function_ref['refName'],
                arguments=function_ref.get('arguments', {})
            )

        event_ref = data.get('eventRef')
        if isinstance(event_ref, dict):
            event_ref = EventRef(
                trigger_event_ref=event_ref.get('triggerEventRef'),
                result_event_ref=event_ref.get('resultEventRef'),
                data=event_ref.get('data')
            )
        else:
            event_ref = None

        sub_flow_ref = data.get('subFlowRef')
        if isinstance(sub_flow_ref, dict):
            sub_flow_ref = sub_flow_ref.get('workflowId')

        return Action(
            name=data.get('name'),
            function_ref=function_ref,
            event_ref=event_ref,
            sub_flow_ref=sub_flow_ref,
            sleep=data.get('sleep')
        )

    def _resolve_enum(self, enum_cls: Type[Enum], value: Any) -> Enum:
        """解析枚举值，优先使用属性源中的替换值"""
        if self.property_source is not None and isinstance(value, str):
            try:
                result = self.property_source.get(value)
                if result is not None:
                    return enum_cls(result)
            except Exception as e:
                logger.info(f"Exception trying to evaluate property: {e}")

        try:
            return enum_cls(value)
        except ValueError:
            raise WorkflowValidationError(f"Invalid {enum_cls.__name__} value '{value}'")
