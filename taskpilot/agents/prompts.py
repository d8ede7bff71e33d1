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
Prompt builders for the plan generator.

Two request shapes exist:

- **Fresh generation**: system prompt + grounding block + prior
  conversation + objective.
- **Replanning**: system prompt + failure context only. The grounding block
  is deliberately absent to keep replanning requests small.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from taskpilot.agents.types import Plan, TaskStatus
from taskpilot.llm.base import ChatMessage, Role
from taskpilot.tools.base import ToolDefinition

GROUNDING_HEADER = "# PROJECT WORLD STATE"
COMPLETED_RESULT_PREVIEW_CHARS = 500

PLAN_FORMAT_EXAMPLE = """```json
{
  "objective": "...",
  "scratchpad": "Summary of findings and strategy...",
  "tasks": [
    { "id": 1, "task_type": "simple_action", "action": "...", "description": "...", "parameters": {} },
    { "id": 2, "task_type": "simple_action", "action": "%(terminal)s", "description": "Done", "parameters": { "response": "..." } }
  ]
}
```"""


def format_tool_descriptions(tools: Iterable[ToolDefinition]) -> str:
    return "\n".join(t.format_for_prompt() for t in tools)


def build_planner_system_prompt(
    allowed_tools: Sequence[ToolDefinition],
    terminal_tool: str = "submit_response",
    no_think_mode: bool = False,
    is_revision: bool = False,
) -> ChatMessage:
    """
    System instruction for plan generation.

    Enumerates the allowed tools with their parameters, states the single
    JSON object output contract and forbids inline result parsing.
    """
    role = "Plan Fixer" if is_revision else "Plan Architect"
    content = f"""You are the **{role}**. You turn an objective into an ordered list of tool calls.

### MANDATORY CONSTRAINTS:
1. **JSON ONLY**: Respond with exactly ONE JSON object. No prose before or after it.
2. **ALLOWED TOOLS ONLY**: Every task's "action" MUST be one of the tools listed below.
3. **NO INLINE PARSING**: Never embed expressions, filters or templating syntax
   (e.g. `{{{{ x | regex_search }}}}`) to extract data from earlier results. A task can only run
   a tool and observe its raw output. To pass a previous output verbatim, write the literal
   placeholder `{{{{tasks[N].result}}}}` where N is the id of an earlier task.
4. **NO REDUNDANCY**: Do not repeat steps that already succeeded.
5. **FINAL STEP**: The last task MUST be `{terminal_tool}` to report back to the user.

### Tools Available:
{format_tool_descriptions(allowed_tools)}

### Format:
{PLAN_FORMAT_EXAMPLE % {"terminal": terminal_tool}}
"""
    if no_think_mode:
        content = f"/no_think\n{content}"
    return ChatMessage.system(content)


def build_grounding_block(project_context: str, terminal_tool: str = "submit_response") -> str:
    """World-state snapshot plus the architect protocol for fresh plans."""
    return f"""{GROUNDING_HEADER}
Current environment and files:
{project_context}

# ARCHITECT PROTOCOL:
1. Output ONLY the JSON plan.
2. Every plan MUST end with `{terminal_tool}`.
3. **DO NOT USE TEMPLATES**: the only substitution available is `{{{{tasks[N].result}}}}`.
4. **INTELLIGENT PARAMETERS**: use the specific details found in the conversation history
   when crafting task parameters.
5. **NO REDUNDANCY**: if the history shows a step already succeeded, do not plan it again."""


def format_history(history: Sequence[ChatMessage], char_limit: int = 3000) -> str:
    """
    Render prior turns for the fresh-generation prompt.

    System turns are skipped; long messages are truncated to ``char_limit``.
    """
    turns = [m for m in history if m.role != Role.SYSTEM]
    if not turns:
        return ""

    lines = ["## PREVIOUS CONVERSATION HISTORY (Check this to avoid repeats)", ""]
    for message in turns:
        content = message.content
        if len(content) > char_limit:
            content = content[:char_limit] + "..."
        lines.append(f"**{message.role.value.upper()}**: {content}")
        lines.append("")
    lines.append("---")
    lines.append("")
    return "\n".join(lines)


def build_fresh_request(objective: str, grounding_block: str, history_text: str = "") -> str:
    return f'{grounding_block}\n\n{history_text}**OBJECTIVE:**\n"{objective}"\n\nGenerate the JSON plan.'


def _completed_tasks_summary(plan: Plan, before_task_id: int) -> str:
    lines = []
    cutoff = plan.index_of(before_task_id)
    kept = plan.tasks if cutoff == -1 else plan.tasks[:cutoff]
    for task in kept:
        if task.status != TaskStatus.COMPLETED:
            continue
        result = task.result or ""
        if len(result) > COMPLETED_RESULT_PREVIEW_CHARS:
            result = result[:COMPLETED_RESULT_PREVIEW_CHARS] + "..."
        lines.append(f"- Task {task.id} ({task.action}) completed. Result: {result}")
    return "\n".join(lines)


def build_replan_request(
    objective: str,
    existing_plan: Plan,
    failed_task_id: int,
    failure_reason: str,
    failure_memory_context: Optional[str] = None,
) -> str:
    """
    Failure-only context for a corrective plan fragment.

    Contains the objective, the failed task id and the literal failure text,
    plus the tasks that already completed so the fragment can reference them.
    """
    cutoff = existing_plan.index_of(failed_task_id)
    kept = existing_plan.tasks if cutoff == -1 else existing_plan.tasks[:cutoff]
    first_new_id = max((t.id for t in kept), default=0) + 1
    failed = existing_plan.get_task(failed_task_id)
    failed_line = (
        f"Task {failed_task_id} (`{failed.action}`: {failed.description})"
        if failed is not None else f"Task {failed_task_id}"
    )

    sections = [
        f'The original objective was: "{objective}".',
        f"We were executing a plan, but {failed_line} returned this result:",
        "---",
        failure_reason,
        "---",
    ]

    completed = _completed_tasks_summary(existing_plan, failed_task_id)
    if completed:
        sections.append("Tasks that already completed (you may reference them with {{tasks[N].result}}):")
        sections.append(completed)

    if failure_memory_context:
        sections.append(failure_memory_context)

    sections.append(
        f"Interpret this result or fix the error. Generate a NEW plan fragment that replaces "
        f"task {failed_task_id} and everything after it, and finishes the objective. "
        f"Number the new tasks starting at id {first_new_id}."
    )
    return "\n".join(sections)
