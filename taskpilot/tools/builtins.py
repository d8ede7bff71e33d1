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
Built-in tools available to every run.

- ``submit_response``: terminal tool; records the final answer for the user
- ``wait``: pause for a number of seconds (interruptible by cancellation)
- ``read_file`` / ``list_files``: read-only access to the run's workspace
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, List, Mapping, Optional

from taskpilot.agents.types import RunContext
from taskpilot.exceptions import ToolExecutionError
from taskpilot.tools.base import BaseTool, PermissionGroup, ToolDefinition, ToolParameter

MAX_READ_CHARS = 20000
MAX_WAIT_SECONDS = 300.0


def _workspace_path(context: Optional[RunContext], relative: str) -> Path:
    root = (context.workspace if context and context.workspace else Path.cwd()).resolve()
    target = (root / relative).resolve()
    if target != root and root not in target.parents:
        raise ToolExecutionError(f"Path '{relative}' is outside the workspace")
    return target


class SubmitResponseTool(BaseTool):
    """Terminal tool: hands the final response back to the session host."""

    definition = ToolDefinition(
        name="submit_response",
        description="Submit the final response to the user. Must be the last task of every plan.",
        parameters=(ToolParameter("response", "string", "The final answer or summary for the user"),),
    )

    async def execute(self, parameters: Mapping[str, Any], context: Optional[RunContext] = None) -> str:
        response = str(parameters.get("response", ""))
        if context is not None:
            context.final_response = response
        return response


class WaitTool(BaseTool):
    definition = ToolDefinition(
        name="wait",
        description="Pause execution for a number of seconds.",
        parameters=(ToolParameter("seconds", "number", "Seconds to wait"),),
        is_default=False,
    )

    async def execute(self, parameters: Mapping[str, Any], context: Optional[RunContext] = None) -> str:
        try:
            seconds = float(parameters.get("seconds", 0))
        except (TypeError, ValueError) as e:
            raise ToolExecutionError(f"Invalid 'seconds' value: {parameters.get('seconds')!r}") from e
        if seconds < 0 or seconds > MAX_WAIT_SECONDS:
            raise ToolExecutionError(f"'seconds' must be between 0 and {MAX_WAIT_SECONDS:g}")
        await asyncio.sleep(seconds)
        return f"Waited {seconds:g} second(s)."


class ReadFileTool(BaseTool):
    definition = ToolDefinition(
        name="read_file",
        description="Read a text file from the workspace.",
        parameters=(ToolParameter("path", "string", "File path relative to the workspace root"),),
        permission_group=PermissionGroup.FILESYSTEM_READ,
    )

    async def execute(self, parameters: Mapping[str, Any], context: Optional[RunContext] = None) -> str:
        path = _workspace_path(context, str(parameters["path"]))
        if not path.is_file():
            raise ToolExecutionError(f"File not found: {parameters['path']}")
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ToolExecutionError(f"Could not read {parameters['path']}: {e}") from e
        if len(text) > MAX_READ_CHARS:
            text = text[:MAX_READ_CHARS] + "\n... (truncated)"
        return text


class ListFilesTool(BaseTool):
    definition = ToolDefinition(
        name="list_files",
        description="List the entries of a workspace directory.",
        parameters=(
            ToolParameter("path", "string", "Directory relative to the workspace root", required=False),
        ),
        permission_group=PermissionGroup.FILESYSTEM_READ,
    )

    async def execute(self, parameters: Mapping[str, Any], context: Optional[RunContext] = None) -> str:
        relative = str(parameters.get("path") or ".")
        path = _workspace_path(context, relative)
        if not path.is_dir():
            raise ToolExecutionError(f"Not a directory: {relative}")
        entries = sorted(path.iterdir(), key=lambda p: (not p.is_dir(), p.name))
        lines = [f"{e.name}/" if e.is_dir() else e.name for e in entries]
        return "\n".join(lines) if lines else "(empty directory)"


def create_builtin_tools() -> List[BaseTool]:
    """Fresh instances of every built-in tool."""
    return [SubmitResponseTool(), WaitTool(), ReadFileTool(), ListFilesTool()]


__all__ = [
    "ListFilesTool",
    "ReadFileTool",
    "SubmitResponseTool",
    "WaitTool",
    "create_builtin_tools",
]
