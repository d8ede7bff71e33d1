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
Plan validation and normalization.

``validate_plan`` checks a decoded model response against the plan contract
and normalizes it in place:

- ``objective`` must be a string, ``tasks`` a list
- ``scratchpad`` must be present; objects are stored as their JSON text
- every task needs a non-empty ``action`` and ``description``
- every ``action`` must name a tool in the allowed set
- ``status``/``result``/``retries`` are reset, whatever the model wrote

Usage:
    >>> validate_plan(data, allowed_tools)   # raises PlanValidationError
    >>> plan = Plan.from_dict(data)
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from taskpilot.agents.types import TaskStatus, TaskType
from taskpilot.exceptions import PlanValidationError
from taskpilot.tools.base import ToolDefinition

TASK_LIST_ALIASES = ("steps", "plan")
_TASK_TYPES = {t.value for t in TaskType}


def _tool_names(allowed_tools: Iterable[Union[ToolDefinition, str]]) -> Set[str]:
    return {t if isinstance(t, str) else t.name for t in allowed_tools}


def _coerce_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def validate_plan(
    raw_plan: Any,
    allowed_tools: Iterable[Union[ToolDefinition, str]],
) -> None:
    """
    Validate and normalize a decoded plan in place.

    Args:
        raw_plan: Object decoded from the model response
        allowed_tools: Tool definitions (or names) the plan may use

    Raises:
        PlanValidationError: Naming the first problem found
    """
    if not isinstance(raw_plan, dict):
        raise PlanValidationError(
            f"Plan must be a JSON object, got {type(raw_plan).__name__}."
        )

    if "tasks" not in raw_plan:
        for alias in TASK_LIST_ALIASES:
            if isinstance(raw_plan.get(alias), list):
                raw_plan["tasks"] = raw_plan.pop(alias)
                break

    objective = raw_plan.get("objective")
    if not isinstance(objective, str):
        raise PlanValidationError("Missing or invalid field 'objective' (expected a string).")

    if "scratchpad" not in raw_plan or raw_plan["scratchpad"] is None:
        raise PlanValidationError("Missing field 'scratchpad' (expected a string or object).")
    scratchpad = raw_plan["scratchpad"]
    if isinstance(scratchpad, (dict, list)):
        scratchpad = json.dumps(scratchpad)
    elif not isinstance(scratchpad, str):
        raise PlanValidationError(
            f"Invalid field 'scratchpad' (expected a string or object, got {type(scratchpad).__name__})."
        )

    tasks = raw_plan.get("tasks")
    if not isinstance(tasks, list):
        raise PlanValidationError("Missing or invalid field 'tasks' (expected an array).")

    valid_names = _tool_names(allowed_tools)
    seen_ids: Set[int] = set()
    next_id = 1

    for position, task in enumerate(tasks, 1):
        if not isinstance(task, dict):
            raise PlanValidationError(f"Task #{position} must be an object.")

        action = task.get("action")
        if not isinstance(action, str) or not action.strip():
            raise PlanValidationError(f"Task #{position} is missing 'action'.")
        if not isinstance(task.get("description"), str) or not task["description"].strip():
            raise PlanValidationError(f"Task #{position} ('{action}') is missing 'description'.")

        if action not in valid_names:
            raise PlanValidationError(
                f"Tool '{action}' is not allowed. Valid tools: {', '.join(sorted(valid_names))}."
            )

        parameters = task.get("parameters")
        if parameters is None:
            task["parameters"] = {}
        elif not isinstance(parameters, dict):
            raise PlanValidationError(
                f"Task #{position} ('{action}') has non-object 'parameters'."
            )

        task_id = _coerce_id(task.get("id"))
        if task_id is None:
            task_id = max(next_id, max(seen_ids, default=0) + 1)
        if task_id in seen_ids:
            raise PlanValidationError(f"Duplicate task id {task_id}.")
        seen_ids.add(task_id)
        task["id"] = task_id
        next_id = task_id + 1

        if task.get("task_type") not in _TASK_TYPES:
            task["task_type"] = TaskType.SIMPLE_ACTION.value

    # Normalize only once the whole plan is known to be valid
    raw_plan["scratchpad"] = scratchpad
    for task in tasks:
        task["status"] = TaskStatus.PENDING.value
        task["result"] = None
        task["retries"] = 0
        task.pop("can_retry", None)


def ensure_terminal_task(
    raw_plan: Dict[str, Any],
    allowed_tools: Iterable[Union[ToolDefinition, str]],
    terminal_tool: str = "submit_response",
) -> bool:
    """
    Append a terminal task when the plan does not end with one.

    Only applies when the terminal tool is allowed and the plan is non-empty.

    Returns:
        True if a task was appended
    """
    tasks: List[Dict[str, Any]] = raw_plan.get("tasks") or []
    if not tasks or terminal_tool not in _tool_names(allowed_tools):
        return False
    if tasks[-1].get("action") == terminal_tool:
        return False

    tasks.append({
        "id": max(int(t["id"]) for t in tasks) + 1,
        "task_type": TaskType.SIMPLE_ACTION.value,
        "action": terminal_tool,
        "description": "Report completion to the user.",
        "parameters": {"response": "All tasks completed successfully."},
        "status": TaskStatus.PENDING.value,
        "result": None,
        "retries": 0,
    })
    return True
