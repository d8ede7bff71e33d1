# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
TaskPilot agent core.

Components:
    - PlanGenerator: objective or failure report -> validated Plan
    - TaskExecutor: runs a Plan's tasks in order with bounded self-correction
    - CancellationSignal: cooperative per-run cancellation
    - FailureMemory: failed attempts recorded during a run
    - EventEmitter: plan and task status notifications for the session host
"""

from taskpilot.agents.cancellation import CancellationSignal
from taskpilot.agents.types import (
    CancellationOutcome,
    ParsedPlan,
    Plan,
    PlanOutcome,
    RunContext,
    Task,
    TaskStatus,
    TaskType,
    ValidationFailure,
)
from taskpilot.agents.events import EventEmitter, PlanEvent, PlanEventKind
from taskpilot.agents.failure_memory import FailedAttempt, FailureMemory
from taskpilot.agents.structured import extract_json, parse_json_object, strip_thinking_tags
from taskpilot.agents.validator import validate_plan
from taskpilot.agents.resolver import resolve_parameters
from taskpilot.agents.planner import PlanGenerator
from taskpilot.agents.executor import ExecutionResult, RunStatus, TaskExecutor, merge_fragment

__all__ = [
    # Types
    "CancellationOutcome",
    "ParsedPlan",
    "Plan",
    "PlanOutcome",
    "RunContext",
    "Task",
    "TaskStatus",
    "TaskType",
    "ValidationFailure",
    # Cancellation
    "CancellationSignal",
    # Events
    "EventEmitter",
    "PlanEvent",
    "PlanEventKind",
    # Memory
    "FailedAttempt",
    "FailureMemory",
    # Parsing and validation
    "extract_json",
    "parse_json_object",
    "resolve_parameters",
    "strip_thinking_tags",
    "validate_plan",
    # Planning and execution
    "ExecutionResult",
    "PlanGenerator",
    "RunStatus",
    "TaskExecutor",
    "merge_fragment",
]
