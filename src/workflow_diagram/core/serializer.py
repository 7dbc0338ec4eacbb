"""
工作流序列化（对象模型 -> dict / JSON / YAML）
"""
import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict

import yaml

from ..models.workflow import Workflow, Start, End, Transition, FunctionRef


def _camel(name: str) -> str:
    head, *tail = name.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in tail)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (list, dict)) and not value)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value

    # 简写形式
    if isinstance(value, End) and value == End():
        return True
    if isinstance(value, Transition) and not value.produce_events and not value.compensate:
        return value.next_state
    if isinstance(value, Start) and value.schedule is None and value.state_name:
        return value.state_name
    if isinstance(value, FunctionRef) and not value.arguments:
        return value.ref_name

    if is_dataclass(value):
        result = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if _is_empty(item):
                continue
            result[_camel(f.name)] = _serialize(item)
        return result

    if isinstance(value, list):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    return value


def to_dict(workflow: Workflow) -> Dict[str, Any]:
    """转换为可再次解析的字典"""
    return _serialize(workflow)


def to_json(workflow: Workflow, indent: int = 2) -> str:
    return json.dumps(to_dict(workflow), indent=indent, ensure_ascii=False)


def to_yaml(workflow: Workflow) -> str:
    return yaml.safe_dump(to_dict(workflow), sort_keys=False, allow_unicode=True)
