# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for plan and task types."""

from pathlib import Path

from taskpilot.agents.failure_memory import FailureMemory
from taskpilot.agents.types import (
    CancellationOutcome,
    ParsedPlan,
    Plan,
    RunContext,
    Task,
    TaskStatus,
    TaskType,
    ValidationFailure,
)


class TestTask:
    """Tests for Task."""

    def test_defaults(self):
        t = Task(id=1, action="read_file", description="Read")
        assert t.status == TaskStatus.PENDING
        assert t.result is None
        assert t.retries == 0
        assert t.task_type == TaskType.SIMPLE_ACTION

    def test_status_transitions(self):
        t = Task(id=1, action="read_file", description="Read")
        t.mark_in_progress()
        assert t.status == TaskStatus.IN_PROGRESS
        assert not t.is_terminal
        t.mark_completed("content")
        assert t.is_terminal
        assert t.result == "content"

    def test_mark_failed_keeps_error_text(self):
        t = Task(id=1, action="read_file", description="Read")
        t.mark_failed("file not found")
        assert t.status == TaskStatus.FAILED
        assert t.result == "file not found"

    def test_from_dict_unknown_task_type(self):
        t = Task.from_dict({"id": "2", "action": "a", "description": "d", "task_type": "odd"})
        assert t.id == 2
        assert t.task_type == TaskType.SIMPLE_ACTION

    def test_to_dict_round_trip_fields(self):
        t = Task(id=3, action="echo", description="d", parameters={"text": "x"})
        data = t.to_dict()
        assert data["status"] == "pending"
        assert data["parameters"] == {"text": "x"}
        assert "can_retry" not in data
        t.can_retry = True
        assert t.to_dict()["can_retry"] is True


class TestPlan:
    """Tests for Plan."""

    def test_from_dict_stringifies_scratchpad(self):
        plan = Plan.from_dict({"objective": "o", "scratchpad": {"k": 1}, "tasks": []})
        assert plan.scratchpad == '{"k": 1}'

    def test_lookup_helpers(self):
        plan = Plan(objective="o", tasks=[
            Task(id=1, action="a", description="d"),
            Task(id=4, action="b", description="d"),
        ])
        assert plan.get_task(4).action == "b"
        assert plan.get_task(2) is None
        assert plan.index_of(4) == 1
        assert plan.index_of(9) == -1
        assert plan.next_task_id() == 5
        assert Plan(objective="o").next_task_id() == 1

    def test_append_note(self):
        plan = Plan(objective="o")
        plan.append_note("first")
        plan.append_note("second")
        assert plan.scratchpad == "first\n\nsecond"

    def test_progress_summary(self):
        done = Task(id=1, action="a", description="d")
        done.mark_completed("ok")
        plan = Plan(objective="o", tasks=[done, Task(id=2, action="b", description="d")])
        assert plan.get_progress_summary() == "Progress: 1/2 tasks completed"
        assert "[ok] 1. a: d" in plan.format_for_prompt()


class TestOutcomes:
    """Tests for the tagged plan generation outcomes."""

    def test_parsed_plan(self):
        outcome = ParsedPlan(plan=Plan(objective="o"), raw_response="{}")
        assert outcome.error is None

    def test_validation_failure(self):
        outcome = ValidationFailure(error="bad", raw_response="x", attempts=2)
        assert outcome.plan is None
        assert outcome.error == "bad"

    def test_cancellation(self):
        outcome = CancellationOutcome(reason="stop")
        assert outcome.plan is None
        assert outcome.error == "stop"


class TestRunContext:
    """Tests for RunContext."""

    def test_creates_failure_memory(self):
        ctx = RunContext()
        assert isinstance(ctx.failure_memory, FailureMemory)
        assert ctx.replans_used == 0
        assert not ctx.signal.cancelled

    def test_workspace_is_path(self, tmp_path):
        ctx = RunContext(workspace=str(tmp_path))
        assert isinstance(ctx.workspace, Path)

    def test_contexts_are_independent(self):
        a, b = RunContext(), RunContext()
        a.signal.cancel()
        assert not b.signal.cancelled
        assert a.failure_memory is not b.failure_memory
        assert a.run_id != b.run_id
