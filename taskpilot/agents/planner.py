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
Plan generation with strict output-contract enforcement.

The generator:
- Builds the planner system prompt from the allowed tool set
- Sends either a fresh-generation or a replanning request
- Strips thinking blocks and extracts the JSON payload from the reply
- Validates the payload and retries with a corrective request when the
  reply is malformed or invalid, within a bounded budget
- Reports the outcome as a tagged value instead of raising

Example:
    >>> generator = PlanGenerator(service, registry)
    >>> outcome = await generator.generate_and_parse_plan("Add a README", context=ctx)
    >>> if isinstance(outcome, ParsedPlan):
    ...     print(outcome.plan.tasks)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from taskpilot.agents.prompts import (
    build_fresh_request,
    build_grounding_block,
    build_planner_system_prompt,
    build_replan_request,
    format_history,
)
from taskpilot.agents.structured import build_corrective_prompt, parse_json_object
from taskpilot.agents.types import (
    CancellationOutcome,
    ParsedPlan,
    Plan,
    PlanOutcome,
    RunContext,
    ValidationFailure,
)
from taskpilot.agents.validator import ensure_terminal_task, validate_plan
from taskpilot.config import AgentConfig
from taskpilot.context import GroundingProvider, WorkspaceGroundingProvider
from taskpilot.exceptions import LLMError, OperationCancelledError, PlanError
from taskpilot.llm.base import ChatMessage, CompletionService
from taskpilot.tools.base import ToolDefinition
from taskpilot.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class PlanGenerator:
    """
    Turns an objective (or a failure report) into a validated Plan.

    Attributes:
        llm: Completion service
        registry: Tool registry providing the allow-listed tool set
        config: Agent configuration (corrective budget, prompts)
        grounding: Provider of the fresh-generation grounding block
    """

    def __init__(
        self,
        llm: CompletionService,
        registry: ToolRegistry,
        config: Optional[AgentConfig] = None,
        grounding: Optional[GroundingProvider] = None,
    ) -> None:
        self.llm = llm
        self.registry = registry
        self.config = config or AgentConfig()
        self.grounding = grounding or WorkspaceGroundingProvider()

    async def _compose_messages(
        self,
        objective: str,
        allowed_tools: Sequence[ToolDefinition],
        context: RunContext,
        existing_plan: Optional[Plan],
        failed_task_id: Optional[int],
        failure_reason: Optional[str],
        prior_messages: Sequence[ChatMessage],
    ) -> List[ChatMessage]:
        is_revision = existing_plan is not None and failed_task_id is not None
        messages = [
            build_planner_system_prompt(
                allowed_tools,
                terminal_tool=self.config.terminal_tool,
                no_think_mode=self.config.no_think_mode,
                is_revision=is_revision,
            )
        ]

        if is_revision:
            memory = context.failure_memory.get_memory_context() if context.failure_memory else ""
            messages.append(ChatMessage.user(build_replan_request(
                objective=objective,
                existing_plan=existing_plan,
                failed_task_id=failed_task_id,
                failure_reason=failure_reason or "Unknown failure",
                failure_memory_context=memory or None,
            )))
        else:
            project_context = await self.grounding.get_context(context)
            grounding_block = build_grounding_block(project_context, self.config.terminal_tool)
            history_text = format_history(prior_messages, self.config.history_message_char_limit)
            messages.append(ChatMessage.user(
                build_fresh_request(objective, grounding_block, history_text)
            ))
        return messages

    def _parse_and_validate(
        self,
        response: str,
        allowed_tools: Sequence[ToolDefinition],
    ) -> Plan:
        data, _ = parse_json_object(response)
        validate_plan(data, allowed_tools)
        if self.config.enforce_terminal_task and ensure_terminal_task(
            data, allowed_tools, self.config.terminal_tool
        ):
            logger.info(f"[PLANNER] Appended terminal task '{self.config.terminal_tool}'")
        return Plan.from_dict(data)

    async def generate_and_parse_plan(
        self,
        objective: str,
        existing_plan: Optional[Plan] = None,
        failed_task_id: Optional[int] = None,
        failure_reason: Optional[str] = None,
        context: Optional[RunContext] = None,
        model_override: Optional[str] = None,
        prior_messages: Optional[Sequence[ChatMessage]] = None,
        allowed_tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> PlanOutcome:
        """
        Generate a validated plan.

        Passing ``existing_plan`` and ``failed_task_id`` switches to replanning
        mode: the prompt carries only the failure context and the returned
        plan is a fragment meant to replace the failed task onward.

        Args:
            objective: Natural-language objective
            existing_plan: Plan being executed (replanning only)
            failed_task_id: Id of the failed task (replanning only)
            failure_reason: Failure text of that task (replanning only)
            context: Run context; supplies the cancellation signal
            model_override: Model to use instead of ``context.model_override``
            prior_messages: Conversation turns (defaults to ``context.chat_history``)
            allowed_tools: Allowed tool set (defaults to the registry's
                allow-listed view for ``context.allowed_tools``)

        Returns:
            ParsedPlan, ValidationFailure or CancellationOutcome
        """
        context = context or RunContext()
        signal = context.signal
        model = model_override or context.model_override
        tools = list(allowed_tools) if allowed_tools is not None else \
            self.registry.get_allowed_tools(context.allowed_tools)
        history = prior_messages if prior_messages is not None else context.chat_history
        mode = "replan" if existing_plan is not None and failed_task_id is not None else "fresh"

        logger.info(f"[PLANNER] Generating {mode} plan for: {objective[:100]}")

        try:
            messages = await self._compose_messages(
                objective, tools, context, existing_plan,
                failed_task_id, failure_reason, history,
            )
        except Exception as e:
            logger.error(f"[PLANNER] Prompt setup failed: {e}")
            return ValidationFailure(error=f"Setup failed: {e}")

        last_response = ""
        last_error = ""
        max_attempts = self.config.corrective_retries + 1

        for attempt in range(max_attempts):
            if signal.cancelled:
                logger.info("[PLANNER] Cancelled before completion request")
                return CancellationOutcome(signal.reason or "Cancelled", last_response)

            if attempt > 0:
                logger.info(f"[REPAIR] Corrective attempt {attempt}/{self.config.corrective_retries}")
                messages = messages + [
                    ChatMessage.assistant(last_response),
                    ChatMessage.user(build_corrective_prompt(last_response, [last_error])),
                ]

            try:
                last_response = await self.llm.send_chat(messages, signal, model)
            except OperationCancelledError as e:
                logger.info(f"[PLANNER] Completion request cancelled: {e}")
                return CancellationOutcome(str(e) or "Cancelled", last_response)
            except LLMError as e:
                logger.error(f"[PLANNER] Completion service failed: {e}")
                return ValidationFailure(
                    error=f"Completion service error: {e}",
                    raw_response=last_response,
                    attempts=attempt + 1,
                )
            except Exception as e:
                logger.error(f"[PLANNER] Completion service raised {type(e).__name__}: {e}")
                return ValidationFailure(
                    error=f"Completion service error: {e}",
                    raw_response=last_response,
                    attempts=attempt + 1,
                )

            if signal.cancelled:
                return CancellationOutcome(signal.reason or "Cancelled", last_response)

            try:
                plan = self._parse_and_validate(last_response, tools)
            except PlanError as e:
                last_error = str(e)
                logger.warning(f"[PLANNER] Attempt {attempt + 1}/{max_attempts} rejected: {last_error}")
                continue

            if existing_plan is None:
                plan.objective = plan.objective or objective
            self._log_plan(plan, "Plan Revised" if mode == "replan" else "Plan Created")
            return ParsedPlan(plan=plan, raw_response=last_response, attempts=attempt + 1)

        logger.error(f"[PLANNER] No valid plan after {max_attempts} attempt(s): {last_error}")
        return ValidationFailure(
            error=f"Failed to produce a valid plan after {max_attempts} attempt(s): {last_error}",
            raw_response=last_response,
            attempts=max_attempts,
        )

    def _log_plan(self, plan: Plan, title: str = "Execution Plan") -> None:
        """Log the plan in a readable framed block."""
        logger.info(f"\n{'='*60}")
        logger.info(f" {title}")
        logger.info(f"{'='*60}")
        logger.info(f"Objective: {plan.objective[:80]}{'...' if len(plan.objective) > 80 else ''}")
        logger.info(f"Tasks: {len(plan.tasks)}")
        for task in plan.tasks:
            logger.info(f"   ◯ {task.id}. {task.action}: {task.description}")
        logger.info(f"{'='*60}\n")
