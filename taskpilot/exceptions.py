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

"""Custom exceptions for TaskPilot.

This module defines the exception hierarchy used throughout TaskPilot.
All exceptions inherit from TaskPilotError for easy catching and handling.

Exception Hierarchy:
    TaskPilotError (base)
    ├── ConfigurationError - Configuration errors
    ├── LLMError - Completion service errors
    │   └── LLMProviderError - Transport/provider failures
    ├── PlanError - Plan generation errors
    │   ├── MalformedResponseError - No parseable JSON in the response
    │   └── PlanValidationError - JSON violates the plan contract
    ├── ParameterResolutionError - Bad task result reference
    ├── OperationCancelledError - The run was cancelled
    └── ToolError - Tool execution errors
        ├── ToolExecutionError - A tool reported failure
        └── UnknownToolError - Dispatch for an unregistered tool

Example:
    try:
        result = await registry.dispatch("read_file", {"path": "a.py"})
    except UnknownToolError:
        # Validation should have caught this
        raise
    except ToolExecutionError as e:
        # Recoverable: retry or replan
        logger.warning(f"Tool failed: {e}")
"""


class TaskPilotError(Exception):
    """Base exception for all TaskPilot errors.

    All custom exceptions in TaskPilot inherit from this class,
    allowing callers to catch every TaskPilot-specific error with
    a single except clause.
    """
    pass


class ConfigurationError(TaskPilotError):
    """Exception raised for configuration errors.

    Examples:
        - Missing completion service endpoint
        - Invalid retry budget values
    """
    pass


class LLMError(TaskPilotError):
    """Exception raised for completion service errors."""
    pass


class LLMProviderError(LLMError):
    """Exception raised when the completion service transport fails.

    Examples:
        - Endpoint unreachable
        - HTTP 5xx / 429 responses after transport retries
        - Response body without any choices
    """
    pass


class PlanError(TaskPilotError):
    """Base exception for plan generation failures.

    Both subclasses are recovered locally by the planner's bounded
    corrective-retry loop and only surface once that budget is spent.
    """
    pass


class MalformedResponseError(PlanError):
    """Exception raised when no JSON object can be extracted or parsed."""
    pass


class PlanValidationError(PlanError):
    """Exception raised when a parsed plan violates the plan contract.

    Examples:
        - Missing ``objective``, ``scratchpad`` or ``tasks``
        - A task without ``action`` or ``description``
        - A task whose action is not in the allowed tool set
    """
    pass


class ParameterResolutionError(TaskPilotError):
    """Exception raised when task parameters cannot be resolved.

    Raised for ``{{tasks[N].result}}`` references to tasks that do not
    exist or have not completed, and for any other template syntax.
    """
    pass


class OperationCancelledError(TaskPilotError):
    """Exception raised when the run's cancellation signal fires.

    Never retried and never triggers replanning.
    """
    pass


class ToolError(TaskPilotError):
    """Base exception for tool failures."""
    pass


class ToolExecutionError(ToolError):
    """Exception raised when a tool reports failure.

    Not fatal to the run: the executor retries or replans.
    """
    pass


class UnknownToolError(ToolError):
    """Exception raised when dispatch targets a tool that is not registered.

    Indicates a validation bug. The task fails without retry.
    """
    pass
