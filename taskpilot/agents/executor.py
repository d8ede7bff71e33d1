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
Sequential plan execution with bounded self-correction.

The executor drives one Plan to completion or terminal failure:
- Runs tasks strictly in list order, one at a time
- Substitutes ``{{tasks[N].result}}`` references before dispatch
- Dispatches through the ToolRegistry and records results on the task
- On failure, re-attempts the task or asks the planner for a corrective
  fragment that replaces the failed task and everything after it
- Stops when the terminal tool completes, when tasks run out, on an
  unrecoverable failure, or when the run is cancelled

Two budgets bound self-correction: ``agent_max_retries`` per task and
``max_replans_per_run`` across the whole run.

Example:
    >>> executor = TaskExecutor(generator, registry, config)
    >>> result = await executor.run("Add type hints to utils.py", context)
    >>> result.status
    <RunStatus.COMPLETED: 'completed'>
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from taskpilot.agents.events import EventEmitter, PlanEvent, PlanEventKind
from taskpilot.agents.planner import PlanGenerator
from taskpilot.agents.resolver import RESULT_REF_RE, resolve_parameters
from taskpilot.agents.types import (
    CancellationOutcome,
    ParsedPlan,
    Plan,
    RunContext,
    Task,
    TaskStatus,
    ValidationFailure,
)
from taskpilot.config import AgentConfig
from taskpilot.exceptions import (
    OperationCancelledError,
    ParameterResolutionError,
    ToolExecutionError,
    UnknownToolError,
)
from taskpilot.tools.registry import ToolRegistry
from taskpilot.utils.logger import logger


class RunStatus(str, Enum):
    """Final state of a run."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ExecutionResult:
    """
    Outcome of a run, for the session host.

    Attributes:
        status: Final state
        message: Plain-text summary suitable for showing to the user
        plan: The plan as it stood when the run ended (None if planning failed)
        final_response: Text submitted through the terminal tool, if any
        replans: Replanning rounds used
    """

    status: RunStatus
    message: str
    plan: Optional[Plan] = None
    final_response: Optional[str] = None
    replans: int = 0

    @property
    def success(self) -> bool:
        return self.status == RunStatus.COMPLETED


@dataclass
class _TaskOutcome:
    success: bool
    output: str
    fatal: bool = False
    cancelled: bool = False


# Host hook for a task whose budget is spent: return True to skip it and go on
FailureHandler = Callable[[Task, Plan], Awaitable[bool]]


def _remap_references(value, id_map: Dict[int, int]):
    if isinstance(value, str):
        return RESULT_REF_RE.sub(
            lambda m: "{{tasks[%d].result}}" % id_map.get(int(m.group(1)), int(m.group(1))),
            value,
        )
    if isinstance(value, dict):
        return {k: _remap_references(v, id_map) for k, v in value.items()}
    if isinstance(value, list):
        return [_remap_references(v, id_map) for v in value]
    return value


def merge_fragment(plan: Plan, failed_task_id: int, fragment: Plan) -> int:
    """
    Replace the failed task and all later tasks with ``fragment``'s tasks.

    Fragment tasks are always renumbered from ``max(kept ids) + 1``. References
    to fragment ids that are not also kept ids are rewritten to match; references
    to kept tasks stay as they are.

    Returns:
        Index of the first replacement task

    Raises:
        ValueError: If ``failed_task_id`` is not in the plan
    """
    index = plan.index_of(failed_task_id)
    if index == -1:
        raise ValueError(f"Task {failed_task_id} is not part of the plan")

    del plan.tasks[index:]
    kept_ids = {t.id for t in plan.tasks}
    next_id = plan.next_task_id()
    id_map: Dict[int, int] = {}
    for offset, task in enumerate(fragment.tasks):
        if task.id not in kept_ids:
            id_map.setdefault(task.id, next_id + offset)
    for offset, task in enumerate(fragment.tasks):
        task.id = next_id + offset
        task.parameters = _remap_references(task.parameters, id_map)

    for task in fragment.tasks:
        task.status = TaskStatus.PENDING
        task.result = None
        task.retries = 0
        plan.tasks.append(task)
    plan.touch()
    return index


class TaskExecutor:
    """
    Runs a Plan's tasks in order and repairs it on failure.

    Attributes:
        planner: Plan generator used for initial plans and replanning
        registry: Tool registry used for dispatch
        config: Agent configuration (budgets, terminal tool)
        events: Emitter for session-host notifications
    """

    def __init__(
        self,
        planner: PlanGenerator,
        registry: ToolRegistry,
        config: Optional[AgentConfig] = None,
        events: Optional[EventEmitter] = None,
        failure_handler: Optional[FailureHandler] = None,
    ) -> None:
        self.planner = planner
        self.registry = registry
        self.config = config or planner.config
        self.events = events or EventEmitter()
        self.failure_handler = failure_handler

    async def _emit(
        self,
        kind: PlanEventKind,
        plan: Optional[Plan] = None,
        task: Optional[Task] = None,
        message: Optional[str] = None,
    ) -> None:
        await self.events.emit(PlanEvent(kind=kind, plan=plan, task=task, message=message))

    async def _finish(
        self,
        status: RunStatus,
        message: str,
        plan: Optional[Plan],
        context: RunContext,
    ) -> ExecutionResult:
        if status == RunStatus.COMPLETED:
            logger.info(f"[EXECUTOR] [ok] {message}")
        else:
            logger.warning(f"[EXECUTOR] [{status.value}] {message}")
        await self._emit(PlanEventKind.RUN_FINISHED, plan=plan, message=message)
        return ExecutionResult(
            status=status,
            message=message,
            plan=plan,
            final_response=context.final_response,
            replans=context.replans_used,
        )

    async def run(self, objective: str, context: Optional[RunContext] = None) -> ExecutionResult:
        """
        Generate a plan for ``objective`` and execute it.

        Args:
            objective: Natural-language objective
            context: Run context owned by the caller

        Returns:
            ExecutionResult describing how the run ended
        """
        context = context or RunContext()
        outcome = await self.planner.generate_and_parse_plan(objective, context=context)

        if isinstance(outcome, CancellationOutcome):
            return await self._finish(
                RunStatus.CANCELLED, f"Run cancelled during planning: {outcome.reason}", None, context
            )
        if isinstance(outcome, ValidationFailure):
            message = (
                "Plan generation failed: could not generate a valid plan, even after "
                f"self-correction attempts.\n\nError: {outcome.error}"
            )
            if outcome.raw_response:
                message += f"\n\nFinal raw response from model:\n{outcome.raw_response}"
            return await self._finish(RunStatus.FAILED, message, None, context)

        plan = outcome.plan
        await self._emit(PlanEventKind.PLAN_CREATED, plan=plan)
        return await self.execute(plan, context)

    async def execute(
        self,
        plan: Plan,
        context: Optional[RunContext] = None,
        start_index: int = 0,
    ) -> ExecutionResult:
        """
        Execute ``plan`` in place, starting at ``start_index``.

        Tasks that are not pending (already completed) are skipped.
        """
        context = context or RunContext()
        signal = context.signal
        index = start_index

        while index < len(plan.tasks):
            task = plan.tasks[index]
            if task.status != TaskStatus.PENDING:
                index += 1
                continue

            if signal.cancelled:
                return await self._finish(
                    RunStatus.CANCELLED, f"Run cancelled: {signal.reason}", plan, context
                )

            outcome = await self._run_task(task, plan, context)

            if outcome.cancelled:
                return await self._finish(
                    RunStatus.CANCELLED, f"Run cancelled: {signal.reason or outcome.output}", plan, context
                )

            if outcome.success:
                if task.action == self.config.terminal_tool:
                    if context.final_response is None:
                        context.final_response = task.result
                    return await self._finish(
                        RunStatus.COMPLETED, "Plan complete: final response submitted.", plan, context
                    )
                index += 1
                continue

            if outcome.fatal:
                task.can_retry = False
                await self._emit(PlanEventKind.PLAN_UPDATED, plan=plan, task=task)
                return await self._finish(
                    RunStatus.FAILED,
                    f"Execution halted: task {task.id} ({task.action}) cannot be dispatched: {outcome.output}",
                    plan,
                    context,
                )

            next_index = await self._handle_failure(task, index, plan, context)
            if isinstance(next_index, ExecutionResult):
                return next_index
            index = next_index

        return await self._finish(
            RunStatus.COMPLETED, "Plan complete: all tasks have been executed.", plan, context
        )

    async def _run_task(self, task: Task, plan: Plan, context: RunContext) -> _TaskOutcome:
        task.mark_in_progress()
        plan.touch()
        await self._emit(PlanEventKind.TASK_STARTED, plan=plan, task=task)
        logger.info(f"[EXECUTOR] > Task {task.id}: {task.action} - {task.description}")

        memory = context.failure_memory
        outcome: _TaskOutcome
        try:
            parameters = resolve_parameters(task.parameters, plan)
            if (
                self.config.block_repeated_failures
                and memory is not None
                and task.retries == 0
                and memory.has_failed_before(task.action, parameters)
            ):
                outcome = _TaskOutcome(
                    False,
                    f"Blocked: an identical call to '{task.action}' already failed earlier in this run.",
                )
            else:
                output = await self.registry.dispatch(task.action, parameters, context)
                outcome = _TaskOutcome(True, output)
        except OperationCancelledError as e:
            outcome = _TaskOutcome(False, f"Cancelled: {e}", cancelled=True)
        except UnknownToolError as e:
            outcome = _TaskOutcome(False, str(e), fatal=True)
        except ParameterResolutionError as e:
            outcome = _TaskOutcome(False, str(e))
        except ToolExecutionError as e:
            outcome = _TaskOutcome(False, str(e))
            if memory is not None:
                memory.record_failure(task.action, parameters, str(e))

        if outcome.success:
            task.mark_completed(outcome.output)
            logger.info(f"[EXECUTOR] [ok] Task {task.id} completed")
            await self._emit(PlanEventKind.TASK_COMPLETED, plan=plan, task=task)
        else:
            task.mark_failed(outcome.output)
            logger.warning(f"[EXECUTOR] [fail] Task {task.id} failed: {outcome.output[:200]}")
            await self._emit(PlanEventKind.TASK_FAILED, plan=plan, task=task)

        plan.append_note(
            f"Task {task.id} ({task.action}) {task.status.value}. Result:\n{task.result}"
        )
        return outcome

    async def _handle_failure(
        self,
        task: Task,
        index: int,
        plan: Plan,
        context: RunContext,
    ):
        """
        Apply the retry/replan policy to a failed task.

        Returns:
            The index to continue from, or an ExecutionResult to stop with
        """
        if task.retries >= self.config.agent_max_retries:
            return await self._exhausted(task, index, plan, context)

        if not self.config.replan_on_failure:
            retry = replace(task, status=TaskStatus.PENDING, result=None, retries=task.retries + 1)
            plan.tasks[index] = retry
            plan.append_note(f"Retrying task {task.id} (attempt {retry.retries}).")
            await self._emit(PlanEventKind.PLAN_UPDATED, plan=plan, task=retry)
            return index

        if context.replans_used >= self.config.max_replans_per_run:
            task.can_retry = True
            return await self._finish(
                RunStatus.FAILED,
                f"Execution halted: replanning limit ({self.config.max_replans_per_run}) reached "
                f"after task {task.id} failed: {task.result}",
                plan,
                context,
            )

        task.retries += 1
        context.replans_used += 1
        plan.append_note(
            f"---\nTask {task.id} failed. Attempting to self-correct (attempt {task.retries})...\n---"
        )
        await self._emit(PlanEventKind.PLAN_UPDATED, plan=plan, task=task)

        outcome = await self.planner.generate_and_parse_plan(
            plan.objective,
            existing_plan=plan,
            failed_task_id=task.id,
            failure_reason=task.result,
            context=context,
        )

        if isinstance(outcome, CancellationOutcome):
            return await self._finish(
                RunStatus.CANCELLED, f"Run cancelled during replanning: {outcome.reason}", plan, context
            )
        if not isinstance(outcome, ParsedPlan):
            plan.append_note(
                f"Self-correction failed: the fixer response was invalid.\n\nRaw response:\n{outcome.raw_response}"
            )
            return await self._finish(
                RunStatus.FAILED,
                f"Execution halted: failed to generate a revised plan. {outcome.error}",
                plan,
                context,
            )

        first = merge_fragment(plan, task.id, outcome.plan)
        plan.append_note(f"--- PLAN REVISED after failure of task {task.id} ---")
        logger.info(
            f"[EXECUTOR] Plan revised: {len(outcome.plan.tasks)} task(s) replace task {task.id} onward"
        )
        await self._emit(PlanEventKind.PLAN_REVISED, plan=plan, message=f"Replaced task {task.id} onward")
        return first

    async def _exhausted(self, task: Task, index: int, plan: Plan, context: RunContext):
        task.can_retry = True
        await self._emit(PlanEventKind.PLAN_UPDATED, plan=plan, task=task)

        if self.failure_handler is not None and await self.failure_handler(task, plan):
            plan.append_note(f"Continuing past failed task {task.id} at the user's request.")
            return index + 1

        return await self._finish(
            RunStatus.FAILED,
            f"Execution halted: task {task.id} ({task.description}) failed after "
            f"{task.retries} self-correction attempt(s): {task.result}",
            plan,
            context,
        )

    async def retry_task(
        self,
        plan: Plan,
        task_id: int,
        context: Optional[RunContext] = None,
    ) -> ExecutionResult:
        """
        Manually retry a failed task and continue the plan from there.

        The failed task is replaced by a fresh pending copy with a new budget,
        and its recorded failure is forgotten so the call is not blocked.

        Raises:
            ValueError: If the task does not exist or has not failed
        """
        index = plan.index_of(task_id)
        if index == -1:
            raise ValueError(f"Task {task_id} is not part of the plan")
        task = plan.tasks[index]
        if task.status != TaskStatus.FAILED:
            raise ValueError(f"Task {task_id} has not failed (status: {task.status.value})")

        context = context or RunContext()
        try:
            context.failure_memory.forget(task.action, resolve_parameters(task.parameters, plan))
        except ParameterResolutionError as e:
            logger.debug(f"[EXECUTOR] Nothing to forget for task {task_id}: {e}")

        plan.tasks[index] = replace(
            task, status=TaskStatus.PENDING, result=None, retries=0, can_retry=None
        )
        plan.append_note(f"Manual retry of task {task_id}.")
        await self._emit(PlanEventKind.PLAN_UPDATED, plan=plan, task=plan.tasks[index])
        return await self.execute(plan, context, start_index=index)


__all__ = [
    "ExecutionResult",
    "FailureHandler",
    "RunStatus",
    "TaskExecutor",
    "merge_fragment",
]
