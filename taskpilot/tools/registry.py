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
Tool registry: the single place that knows which tools exist.

The registry holds every registered tool plus an enabled subset. The planner
is shown an allow-listed view of the enabled tools for each run, and the
executor dispatches through the same registry by name.

Example:
    >>> registry = ToolRegistry()
    >>> registry.register_many(create_builtin_tools())
    >>> allowed = registry.get_allowed_tools(["read_file", "submit_response"])
    >>> output = await registry.dispatch("read_file", {"path": "README.md"}, context)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Set

from taskpilot.exceptions import (
    OperationCancelledError,
    ToolExecutionError,
    UnknownToolError,
)
from taskpilot.tools.base import BaseTool, ToolDefinition, missing_required
from taskpilot.utils.logger import logger

if TYPE_CHECKING:
    from taskpilot.agents.types import RunContext


class ToolRegistry:
    """
    Registry of tools with an enabled/allow-listed subset.

    Attributes:
        tools: All registered tools by name
        enabled: Names of tools currently enabled
    """

    def __init__(self, tools: Optional[Iterable[BaseTool]] = None) -> None:
        self._tools: Dict[str, BaseTool] = {}
        self._enabled: Set[str] = set()
        for t in tools or ():
            self.register(t)

    @property
    def tools(self) -> Dict[str, BaseTool]:
        return dict(self._tools)

    @property
    def enabled(self) -> Set[str]:
        return set(self._enabled)

    def register(self, tool: BaseTool, enabled: Optional[bool] = None) -> None:
        """
        Register a tool.

        Args:
            tool: Tool to register (replaces any tool with the same name)
            enabled: Force enabled state; defaults to the definition's is_default
        """
        name = tool.definition.name
        if name in self._tools:
            logger.warning(f"[REGISTRY] Replacing already registered tool '{name}'")
        self._tools[name] = tool

        if enabled is None:
            enabled = tool.definition.is_default
        if enabled:
            self._enabled.add(name)
        else:
            self._enabled.discard(name)
        logger.debug(f"[REGISTRY] Registered tool '{name}' (enabled={enabled})")

    def register_many(self, tools: Iterable[BaseTool]) -> None:
        """Register several tools."""
        for t in tools:
            self.register(t)

    def set_enabled_tools(self, names: Iterable[str]) -> None:
        """
        Replace the enabled set.

        Raises:
            UnknownToolError: If a name is not registered
        """
        names = set(names)
        unknown = names - set(self._tools)
        if unknown:
            raise UnknownToolError(f"Cannot enable unregistered tools: {', '.join(sorted(unknown))}")
        self._enabled = names

    def reset_enabled_tools(self) -> None:
        """Enable exactly the tools marked ``is_default``."""
        self._enabled = {n for n, t in self._tools.items() if t.definition.is_default}

    def get_tool(self, name: str) -> Optional[BaseTool]:
        """Return the tool if it is registered and enabled."""
        if name in self._enabled:
            return self._tools.get(name)
        return None

    def get_all_tools(self) -> List[ToolDefinition]:
        """Definitions of every registered tool."""
        return [t.definition for t in self._tools.values()]

    def get_enabled_tools(self) -> List[ToolDefinition]:
        """Definitions of every enabled tool, in registration order."""
        return [t.definition for n, t in self._tools.items() if n in self._enabled]

    def get_allowed_tools(self, names: Optional[Iterable[str]] = None) -> List[ToolDefinition]:
        """
        Allow-listed view for one run.

        Args:
            names: Narrower set requested by the caller; None means all enabled.
                Names that are not enabled are dropped with a warning.

        Returns:
            Tool definitions the planner may use
        """
        enabled = self.get_enabled_tools()
        if names is None:
            return enabled

        wanted = set(names)
        dropped = wanted - {d.name for d in enabled}
        if dropped:
            logger.warning(f"[REGISTRY] Ignoring tools that are not enabled: {', '.join(sorted(dropped))}")
        return [d for d in enabled if d.name in wanted]

    async def dispatch(
        self,
        name: str,
        parameters: Mapping[str, Any],
        context: Optional[RunContext] = None,
    ) -> str:
        """
        Execute a tool by name.

        Args:
            name: Tool name (a task's ``action``)
            parameters: Resolved parameters
            context: Run context handed to the tool

        Returns:
            The tool's string output

        Raises:
            UnknownToolError: Tool not registered or not enabled
            ToolExecutionError: The tool failed
            OperationCancelledError: The run was cancelled during the call
        """
        tool = self.get_tool(name)
        if tool is None:
            raise UnknownToolError(f"Tool '{name}' is not registered or not enabled")

        missing = missing_required(tool.definition, parameters)
        if missing:
            raise ToolExecutionError(
                f"Tool '{name}' is missing required parameter(s): {', '.join(missing)}"
            )

        signal = context.signal if context is not None else None
        try:
            if signal is not None:
                output = await signal.run(tool.execute(parameters, context))
            else:
                output = await tool.execute(parameters, context)
        except (ToolExecutionError, OperationCancelledError):
            raise
        except Exception as e:
            raise ToolExecutionError(f"Error executing '{name}': {e}") from e

        if output is None:
            return ""
        return output if isinstance(output, str) else str(output)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
