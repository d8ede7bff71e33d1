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
TaskPilot - an autonomous agent core that plans, validates and executes
tool-driven tasks with an LLM.

An objective is turned into a validated, ordered plan of tool calls, the
plan is executed task by task, and failures are repaired by asking the
model for a corrective plan fragment.
"""

__version__ = "0.1.0"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache-2.0"

from taskpilot.agents import (
    CancellationSignal,
    ExecutionResult,
    Plan,
    PlanGenerator,
    RunContext,
    RunStatus,
    Task,
    TaskExecutor,
)
from taskpilot.config import AgentConfig, LLMConfig
from taskpilot.llm import ChatMessage, CompletionService, OpenAICompatibleService
from taskpilot.tools import BaseTool, ToolDefinition, ToolRegistry, create_builtin_tools

__all__ = [
    # Agent core
    "CancellationSignal",
    "ExecutionResult",
    "Plan",
    "PlanGenerator",
    "RunContext",
    "RunStatus",
    "Task",
    "TaskExecutor",
    # Configuration
    "AgentConfig",
    "LLMConfig",
    # Completion service
    "ChatMessage",
    "CompletionService",
    "OpenAICompatibleService",
    # Tools
    "BaseTool",
    "ToolDefinition",
    "ToolRegistry",
    "create_builtin_tools",
]
