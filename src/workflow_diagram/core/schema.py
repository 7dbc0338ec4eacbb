"""
工作流Schema定义与验证器
"""
from typing import Dict, Any, List, Optional
import json
from jsonschema import Draft7Validator
import logging


logger = logging.getLogger(__name__)


_TRANSITION_SCHEMA: Dict[str, Any] = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {
            "type": "object",
            "properties": {
                "nextState": {"type": "string", "minLength": 1},
                "produceEvents": {"type": "array"},
                "compensate": {"type": "boolean"}
            },
            "required": ["nextState"]
        }
    ]
}

_END_SCHEMA: Dict[str, Any] = {
    "oneOf": [
        {"type": "boolean"},
        {"type": "object"}
    ]
}

_DEFINITIONS_SCHEMA: Dict[str, Any] = {
    "oneOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": "object", "required": ["name"]}},
        {"type": "object"}
    ]
}


# 只约束构图所需的结构，不做完整的规范校验
WORKFLOW_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "version": {"type": ["string", "number"]},
        "description": {"type": "string"},
        "specVersion": {"type": "string"},
        "start": {
            "oneOf": [
                {"type": "string", "minLength": 1},
                {
                    "type": "object",
                    "properties": {
                        "stateName": {"type": "string"},
                        "schedule": {"type": ["string", "object"]}
                    }
                }
            ]
        },
        "events": _DEFINITIONS_SCHEMA,
        "functions": _DEFINITIONS_SCHEMA,
        "errors": _DEFINITIONS_SCHEMA,
        "states": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "type": {"type": "string", "minLength": 1},
                    "transition": _TRANSITION_SCHEMA,
                    "end": _END_SCHEMA,
                    "onErrors": {
                        "type": "array",
                        "items": {"type": "object", "required": ["errorRef"]}
                    },
                    "dataConditions": {
                        "type": "array",
                        "items": {"type": "object", "required": ["condition"]}
                    },
                    "eventConditions": {
                        "type": "array",
                        "items": {"type": "object", "required": ["eventRef"]}
                    },
                    "branches": {
                        "type": "array",
                        "items": {"type": "object", "required": ["name"]}
                    },
                    "onEvents": {
                        "type": "array",
                        "items": {"type": "object", "required": ["eventRefs"]}
                    }
                },
                "required": ["name", "type"]
            }
        }
    },
    "required": ["id", "name", "states"]
}


class SchemaValidator:
    """Schema验证器"""

    def __init__(self):
        self.validators_cache: Dict[str, Draft7Validator] = {}

    def validate(
        self,
        data: Dict[str, Any],
        schema: Optional[Dict[str, Any]] = None
    ) -> List[str]:
        """
        验证数据是否符合schema定义

        Args:
            data: 待验证的数据
            schema: JSON Schema定义，默认使用工作流schema

        Returns:
            验证错误列表，如果没有错误返回空列表
        """
        if schema is None:
            schema = WORKFLOW_SCHEMA

        errors = []

        # 获取或创建验证器
        schema_str = json.dumps(schema, sort_keys=True)
        if schema_str not in self.validators_cache:
            self.validators_cache[schema_str] = Draft7Validator(schema)

        validator = self.validators_cache[schema_str]

        # 收集所有验证错误，按路径排序保证输出稳定
        for error in sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path))):
            path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
            errors.append(f"{path}: {error.message}")

        if errors:
            logger.debug(f"Schema validation produced {len(errors)} error(s)")

        return errors
