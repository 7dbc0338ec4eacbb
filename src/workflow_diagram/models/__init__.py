"""Workflow definition models"""

from .workflow import (
    Workflow, State, StateType, EventKind, ActionMode, CompletionType,
    Start, End, Transition, ProduceEvent, EventDefinition, FunctionDefinition,
    ErrorDefinition, FunctionRef, EventRef, Action, OnEvents, Branch,
    DataCondition, EventCondition, DefaultCondition, OnError,
    EventState, OperationState, SwitchState, ParallelState, CallbackState,
    ForEachState, InjectState, DelayState, SleepState
)

__all__ = [
    "Workflow",
    "State",
    "StateType",
    "EventKind",
    "ActionMode",
    "CompletionType",
    "Start",
    "End",
    "Transition",
    "ProduceEvent",
    "EventDefinition",
    "FunctionDefinition",
    "ErrorDefinition",
    "FunctionRef",
    "EventRef",
    "Action",
    "OnEvents",
    "Branch",
    "DataCondition",
    "EventCondition",
    "DefaultCondition",
    "OnError",
    "EventState",
    "OperationState",
    "SwitchState",
    "ParallelState",
    "CallbackState",
    "ForEachState",
    "InjectState",
    "DelayState",
    "SleepState"
]
