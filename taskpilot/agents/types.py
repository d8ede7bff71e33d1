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
Core data types for plan generation and execution.

Defines the Plan/Task model that the planner produces and the executor
mutates, the tagged outcome returned by plan generation, and the RunContext
each caller owns for one run.

Example:
    >>> plan = Plan.from_dict(validated_json)
    >>> plan.tasks[0].status
    <TaskStatus.PENDING: 'pending'>
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from taskpilot.agents.cancellation import CancellationSignal

if TYPE_CHECKING:
    from taskpilot.agents.failure_memory import FailureMemory
    from taskpilot.llm.base import ChatMessage


class TaskType(str, Enum):
    """Execution weight of a task. Informational only."""

    SIMPLE_ACTION = "simple_action"
    AGENTIC_ACTION = "agentic_action"


class TaskStatus(str, Enum):
    """Status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Task:
    """
    One tool invocation plus its execution-time state.

    ``status``, ``result`` and ``retries`` are owned by the engine.

    Attributes:
        id: Identifier referenced by ``{{tasks[N].result}}``
        action: Tool name (dispatch key)
        description: Human-readable summary
        task_type: Informational execution weight
        parameters: Passed through to the tool
        status: Current status
        result: Tool output once completed (or failure text)
        retries: Retry/replan attempts consumed
        can_retry: Hint for the host that manual retry is possible
    """

    id: int
    action: str
    description: str
    task_type: TaskType = TaskType.SIMPLE_ACTION
    parameters: Dict[str, Any] = field(default_factory=dict)
    status: TaskStatus = TaskStatus.PENDING
    result: Optional[str] = None
    retries: int = 0
    can_retry: Optional[bool] = None

    def mark_in_progress(self) -> None:
        self.status = TaskStatus.IN_PROGRESS

    def mark_completed(self, result: str) -> None:
        self.status = TaskStatus.COMPLETED
        self.result = result

    def mark_failed(self, error: str) -> None:
        self.status = TaskStatus.FAILED
        self.result = error

    @property
    def is_terminal(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "id": self.id,
            "task_type": self.task_type.value,
            "action": self.action,
            "description": self.description,
            "parameters": self.parameters,
            "status": self.status.value,
            "result": self.result,
            "retries": self.retries,
        }
        if self.can_retry is not None:
            data["can_retry"] = self.can_retry
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """
        Build a task from a validated plan entry.

        Engine-owned fields are taken as-is; the validator has already reset them.
        """
        try:
            task_type = TaskType(data.get("task_type") or TaskType.SIMPLE_ACTION.value)
        except ValueError:
            task_type = TaskType.SIMPLE_ACTION
        return cls(
            id=int(data["id"]),
            action=data["action"],
            description=data["description"],
            task_type=task_type,
            parameters=dict(data.get("parameters") or {}),
            status=TaskStatus(data.get("status", TaskStatus.PENDING.value)),
            result=data.get("result"),
            retries=int(data.get("retries", 0)),
            can_retry=data.get("can_retry"),
        )

    def format_for_prompt(self) -> str:
        """Format task for an LLM prompt."""
        symbol = {
            TaskStatus.PENDING: "○",
            TaskStatus.IN_PROGRESS: "[partial]",
            TaskStatus.COMPLETED: "[ok]",
            TaskStatus.FAILED: "[fail]",
        }[self.status]
        return f"{symbol} {self.id}. {self.action}: {self.description}"


@dataclass
class Plan:
    """
    Structured, validated representation of an objective.

    Attributes:
        objective: What the run is trying to achieve
        scratchpad: Free-form notes, always a string
        tasks: Ordered task list; execution order is positional
        created_at: When the plan was created
        updated_at: When the plan was last modified
    """

    objective: str
    scratchpad: str = ""
    tasks: List[Task] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Plan":
        """Build a plan from a dictionary that passed validate_plan."""
        scratchpad = data.get("scratchpad", "")
        if not isinstance(scratchpad, str):
            scratchpad = json.dumps(scratchpad)
        return cls(
            objective=data["objective"],
            scratchpad=scratchpad,
            tasks=[Task.from_dict(t) for t in data.get("tasks", [])],
        )

    def get_task(self, task_id: int) -> Optional[Task]:
        """Find a task by id."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def index_of(self, task_id: int) -> int:
        """Position of the task with ``task_id``, or -1."""
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                return i
        return -1

    def next_task_id(self) -> int:
        """One past the highest id in the plan, or 1 for an empty plan."""
        return max((t.id for t in self.tasks), default=0) + 1

    def append_note(self, note: str) -> None:
        """Append a journal entry to the scratchpad."""
        self.scratchpad = f"{self.scratchpad}\n\n{note}" if self.scratchpad else note
        self.touch()

    def touch(self) -> None:
        self.updated_at = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "objective": self.objective,
            "scratchpad": self.scratchpad,
            "tasks": [t.to_dict() for t in self.tasks],
        }

    def get_progress_summary(self) -> str:
        """Get a summary of plan progress."""
        completed = sum(1 for t in self.tasks if t.status == TaskStatus.COMPLETED)
        return f"Progress: {completed}/{len(self.tasks)} tasks completed"

    def format_for_prompt(self) -> str:
        """Format plan for an LLM prompt."""
        lines = [f"Objective: {self.objective}", self.get_progress_summary()]
        lines.extend(t.format_for_prompt() for t in self.tasks)
        return "\n".join(lines)


# Tagged outcome of plan generation. Every consumer matches on the variant;
# all three expose plan / raw_response / error.


@dataclass
class ParsedPlan:
    """A validated plan."""

    plan: Plan
    raw_response: str
    attempts: int = 1

    @property
    def error(self) -> None:
        return None


@dataclass
class ValidationFailure:
    """No valid plan after the corrective budget was spent (or setup failed)."""

    error: str
    raw_response: str = ""
    attempts: int = 0

    @property
    def plan(self) -> None:
        return None


@dataclass
class CancellationOutcome:
    """The cancellation signal fired during generation."""

    reason: str = "Cancelled"
    raw_response: str = ""

    @property
    def plan(self) -> None:
        return None

    @property
    def error(self) -> str:
        return self.reason


PlanOutcome = Union[ParsedPlan, ValidationFailure, CancellationOutcome]


@dataclass
class RunContext:
    """
    Per-run state owned by the caller.

    Passed explicitly into the planner, executor and tools so that separate
    sessions can run concurrently without shared mutable state.

    Attributes:
        signal: Cancellation signal for the run
        model_override: Model to use instead of the service default
        allowed_tools: Names the planner may use (None = all enabled)
        chat_history: Prior conversation turns
        workspace: Project root for grounding and file tools
        failure_memory: Failed attempts recorded during this run
        replans_used: Replanning rounds consumed so far
        final_response: Text submitted by the terminal tool
        run_id: Identifier for logging
    """

    signal: CancellationSignal = field(default_factory=CancellationSignal)
    model_override: Optional[str] = None
    allowed_tools: Optional[List[str]] = None
    chat_history: List["ChatMessage"] = field(default_factory=list)
    workspace: Optional[Path] = None
    failure_memory: Optional["FailureMemory"] = None
    replans_used: int = 0
    final_response: Optional[str] = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def __post_init__(self) -> None:
        if self.failure_memory is None:
            from taskpilot.agents.failure_memory import FailureMemory
            self.failure_memory = FailureMemory()
        if self.workspace is not None and not isinstance(self.workspace, Path):
            self.workspace = Path(self.workspace)
