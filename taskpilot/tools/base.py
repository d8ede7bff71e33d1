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
Tool abstraction for the agent core.

A tool is a named, schema-described capability. Every tool exposes the same
single operation: take a parameter mapping, return a string or raise
ToolExecutionError. The registry and executor never know what a tool does
internally.

Example:
    >>> class EchoTool(BaseTool):
    ...     definition = ToolDefinition(
    ...         name="echo",
    ...         description="Echo the text back",
    ...         parameters=[ToolParameter("text", "string", "Text to echo")],
    ...     )
    ...     async def execute(self, parameters, context=None):
    ...         return parameters["text"]
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Mapping, Optional

if TYPE_CHECKING:
    from taskpilot.agents.types import RunContext


class PermissionGroup(str, Enum):
    """Coarse permission category used by hosts for global security settings."""

    SHELL_EXECUTION = "shell_execution"
    FILESYSTEM_WRITE = "filesystem_write"
    FILESYSTEM_READ = "filesystem_read"
    INTERNET_ACCESS = "internet_access"


@dataclass(frozen=True)
class ToolParameter:
    """
    One parameter of a tool.

    Attributes:
        name: Parameter name as it appears in a task's ``parameters``
        type: JSON-ish type name ("string", "number", "array", ...)
        description: What the parameter means
        required: Whether the tool needs it
    """

    name: str
    type: str
    description: str
    required: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "required": self.required,
        }


@dataclass(frozen=True)
class ToolDefinition:
    """
    Immutable description of a tool, shown to the planner.

    Attributes:
        name: Dispatch key
        description: One-line description
        parameters: Parameter schema
        is_agentic: Whether the tool itself calls a language model
        is_default: Whether the tool is enabled when the registry starts
        permission_group: Optional permission category
    """

    name: str
    description: str
    parameters: tuple = ()
    is_agentic: bool = False
    is_default: bool = True
    permission_group: Optional[PermissionGroup] = None

    def __post_init__(self) -> None:
        # Accept lists at construction but keep the stored value immutable
        if not isinstance(self.parameters, tuple):
            object.__setattr__(self, "parameters", tuple(self.parameters))

    def format_for_prompt(self) -> str:
        """Render as a bullet line for the planner system prompt."""
        params = ", ".join(
            f'"{p.name}" ({p.type}){"" if p.required else " [optional]"}: {p.description}'
            for p in self.parameters
        )
        return f"- **{self.name}**: {self.description} (Params: {params})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
            "is_agentic": self.is_agentic,
            "is_default": self.is_default,
            "permission_group": self.permission_group.value if self.permission_group else None,
        }


class BaseTool(ABC):
    """
    Abstract base class for tools.

    Subclasses set ``definition`` and implement ``execute``. Failures are
    reported by raising ToolExecutionError; any other exception raised from
    ``execute`` is treated the same way by the registry.
    """

    definition: ToolDefinition

    @property
    def name(self) -> str:
        """Dispatch key of this tool."""
        return self.definition.name

    @abstractmethod
    async def execute(
        self,
        parameters: Mapping[str, Any],
        context: Optional[RunContext] = None,
    ) -> str:
        """
        Run the tool.

        Args:
            parameters: Resolved task parameters
            context: The run's context (cancellation signal, workspace, ...)

        Returns:
            The tool's output as plain text

        Raises:
            ToolExecutionError: If the tool could not do its job
        """


ToolHandler = Callable[[Mapping[str, Any], Optional["RunContext"]], Awaitable[str]]


class FunctionTool(BaseTool):
    """Adapt a plain async function into a tool."""

    def __init__(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        self.definition = definition
        self._handler = handler

    async def execute(
        self,
        parameters: Mapping[str, Any],
        context: Optional[RunContext] = None,
    ) -> str:
        return await self._handler(parameters, context)


def tool(
    name: str,
    description: str,
    parameters: Optional[List[ToolParameter]] = None,
    **definition_kwargs: Any,
) -> Callable[[ToolHandler], FunctionTool]:
    """
    Decorator that turns an async function into a FunctionTool.

    Example:
        >>> @tool("greet", "Say hello", [ToolParameter("who", "string", "Name")])
        ... async def greet(parameters, context):
        ...     return f"Hello {parameters['who']}"
    """
    def decorator(handler: ToolHandler) -> FunctionTool:
        definition = ToolDefinition(
            name=name,
            description=description,
            parameters=tuple(parameters or ()),
            **definition_kwargs,
        )
        return FunctionTool(definition, handler)

    return decorator


def missing_required(definition: ToolDefinition, parameters: Mapping[str, Any]) -> List[str]:
    """
    Return names of required parameters absent from ``parameters``.

    Only key presence is checked. Values, empty strings included, are the
    tool's business.
    """
    return [p.name for p in definition.parameters if p.required and p.name not in parameters]


__all__ = [
    "BaseTool",
    "FunctionTool",
    "PermissionGroup",
    "ToolDefinition",
    "ToolHandler",
    "ToolParameter",
    "missing_required",
    "tool",
]
