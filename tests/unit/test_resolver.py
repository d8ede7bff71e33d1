# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for result-reference resolution."""

from unittest.mock import patch

import pytest

from taskpilot.agents.resolver import resolve_parameters
from taskpilot.agents.types import Plan, Task, TaskStatus
from taskpilot.exceptions import ParameterResolutionError


@pytest.fixture
def plan():
    first = Task(id=1, action="echo", description="d")
    first.mark_completed("42")
    pending = Task(id=2, action="echo", description="d")
    return Plan(objective="o", tasks=[first, pending])


class TestResolveParameters:
    """Tests for resolve_parameters."""

    def test_substitutes_literal_result(self, plan):
        resolved = resolve_parameters({"text": "{{tasks[1].result}}"}, plan)
        assert resolved == {"text": "42"}

    def test_substitutes_inside_text(self, plan):
        resolved = resolve_parameters({"text": "Answer: {{ tasks[1].result }}!"}, plan)
        assert resolved["text"] == "Answer: 42!"

    def test_walks_nested_values(self, plan):
        params = {"a": ["{{tasks[1].result}}", 3], "b": {"c": "{{tasks[1].result}}"}, "n": None}
        resolved = resolve_parameters(params, plan)
        assert resolved == {"a": ["42", 3], "b": {"c": "42"}, "n": None}

    def test_original_is_not_mutated(self, plan):
        params = {"text": "{{tasks[1].result}}"}
        resolve_parameters(params, plan)
        assert params["text"] == "{{tasks[1].result}}"

    def test_result_is_not_re_expanded(self, plan):
        plan.tasks[0].result = "{{tasks[2].result}}"
        resolved = resolve_parameters({"text": "{{tasks[1].result}}"}, plan)
        assert resolved["text"] == "{{tasks[2].result}}"

    def test_missing_task(self, plan):
        with pytest.raises(ParameterResolutionError, match="does not exist"):
            resolve_parameters({"text": "{{tasks[9].result}}"}, plan)

    def test_unfinished_task(self, plan):
        with pytest.raises(ParameterResolutionError, match="has not completed"):
            resolve_parameters({"text": "{{tasks[2].result}}"}, plan)

    def test_failed_task(self, plan):
        plan.tasks[1].status = TaskStatus.FAILED
        plan.tasks[1].result = "boom"
        with pytest.raises(ParameterResolutionError):
            resolve_parameters({"text": "{{tasks[2].result}}"}, plan)

    @pytest.mark.parametrize("template", [
        "{{ tasks[1].result | regex_search('\\d+') }}",
        "{{tasks[1].output}}",
        "{{tasks.1.result}}",
    ])
    def test_expressions_rejected(self, plan, template):
        with pytest.raises(ParameterResolutionError, match="Unsupported template"):
            resolve_parameters({"text": template}, plan)

    def test_unrelated_braces_pass_through(self, plan):
        resolved = resolve_parameters({"content": "Hello {{ name }}"}, plan)
        assert resolved["content"] == "Hello {{ name }}"

    def test_plain_jinja_is_not_reported(self, plan):
        with patch("taskpilot.agents.resolver.logger") as mock_logger:
            resolve_parameters({"content": "Hello {{ name }}"}, plan)
        mock_logger.warning.assert_not_called()

    @pytest.mark.parametrize("template", [
        "{{ steps[0].output }}",
        "{{ result | regex_search }}",
    ])
    def test_reference_like_templates_are_reported(self, plan, template):
        with patch("taskpilot.agents.resolver.logger") as mock_logger:
            resolved = resolve_parameters({"text": template}, plan)
        assert resolved["text"] == template
        mock_logger.warning.assert_called_once()
        assert template in mock_logger.warning.call_args[0][0]
