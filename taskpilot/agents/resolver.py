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
Result-reference resolution for task parameters.

The only substitution the executor performs is ``{{tasks[N].result}}``,
replaced by the literal result string of completed task N. There is no
expression evaluation: filters, attribute paths or any other template that
mentions ``tasks`` are rejected. Braces unrelated to task results (for
example a Jinja file the agent is writing) pass through untouched.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

from taskpilot.agents.types import Plan, TaskStatus
from taskpilot.exceptions import ParameterResolutionError
from taskpilot.utils.logger import logger

RESULT_REF_RE = re.compile(r"\{\{\s*tasks\[(\d+)\]\.result\s*\}\}")
TASK_TEMPLATE_RE = re.compile(r"\{\{[^{}]*\btasks\b[^{}]*\}\}")
# Filters or indexed lookups: likely an attempt at a result reference
SUSPICIOUS_TEMPLATE_RE = re.compile(r"\{\{[^{}]*(?:\||\[\s*\d+\s*\])[^{}]*\}\}")


def _resolve_string(value: str, plan: Plan) -> str:
    stripped = RESULT_REF_RE.sub("", value)
    unsupported = TASK_TEMPLATE_RE.search(stripped)
    if unsupported:
        raise ParameterResolutionError(
            f"Unsupported template '{unsupported.group(0)}': only {{{{tasks[N].result}}}} "
            f"is allowed, no expressions or filters."
        )
    for suspicious in SUSPICIOUS_TEMPLATE_RE.findall(stripped):
        logger.warning(
            f"[RESOLVER] Passing template '{suspicious}' through unchanged: only "
            f"{{{{tasks[N].result}}}} is substituted"
        )

    def substitute(match: "re.Match[str]") -> str:
        task_id = int(match.group(1))
        source = plan.get_task(task_id)
        if source is None:
            raise ParameterResolutionError(
                f"Could not resolve parameter: task {task_id} does not exist."
            )
        if source.status != TaskStatus.COMPLETED or source.result is None:
            raise ParameterResolutionError(
                f"Could not resolve parameter: source task {task_id} has not completed "
                f"successfully or has no result."
            )
        return source.result

    return RESULT_REF_RE.sub(substitute, value)


def _resolve_value(value: Any, plan: Plan) -> Any:
    if isinstance(value, str):
        return _resolve_string(value, plan)
    if isinstance(value, dict):
        return {k: _resolve_value(v, plan) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_value(v, plan) for v in value]
    return value


def resolve_parameters(parameters: Mapping[str, Any], plan: Plan) -> Dict[str, Any]:
    """
    Return a copy of ``parameters`` with result references substituted.

    Nested objects and arrays are walked; non-string leaves are copied as-is.

    Raises:
        ParameterResolutionError: Reference to a missing or unfinished task,
            or any other template mentioning ``tasks``
    """
    return {key: _resolve_value(value, plan) for key, value in parameters.items()}
