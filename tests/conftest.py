# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures: a scripted completion service and a registry of fake tools."""

import json
from typing import Any, Dict, List, Optional, Sequence

import pytest

from taskpilot.agents.types import RunContext
from taskpilot.config import AgentConfig
from taskpilot.context import StaticGroundingProvider
from taskpilot.exceptions import ToolExecutionError
from taskpilot.llm.base import ChatMessage, CompletionService
from taskpilot.tools.base import ToolParameter, tool
from taskpilot.tools.builtins import SubmitResponseTool
from taskpilot.tools.registry import ToolRegistry

GROUNDING_TEXT = "## Project Tree\nsrc/\n  main.py\nREADME.md"


class ScriptedService(CompletionService):
    """
    Completion service that replays scripted replies.

    Each script entry is a reply string, an exception to raise, or a
    callable ``(messages, signal) -> str`` (sync or async).
    """

    def __init__(self, replies: Sequence[Any] = ()) -> None:
        self.replies = list(replies)
        self.calls: List[List[ChatMessage]] = []
        self.models: List[Optional[str]] = []

    async def send_chat(self, messages, signal=None, model_override=None) -> str:
        self.calls.append(list(messages))
        self.models.append(model_override)
        if not self.replies:
            raise AssertionError("ScriptedService ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(messages, signal)
            if hasattr(reply, "__await__"):
                reply = await reply
        return reply

    def get_model_name(self) -> Optional[str]:
        return "scripted"


def plan_json(tasks: List[Dict[str, Any]], objective: str = "o", scratchpad: Any = "s") -> str:
    """Serialize a plan the way a model would, inside a json fence."""
    body = json.dumps({"objective": objective, "scratchpad": scratchpad, "tasks": tasks})
    return f"```json\n{body}\n```"


def task(task_id: int, action: str, description: str = "d", **parameters: Any) -> Dict[str, Any]:
    return {"id": task_id, "action": action, "description": description, "parameters": parameters}


class FakeTools:
    """Records tool calls; ``fail`` maps a tool name to failure messages to raise in order."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.fail: Dict[str, List[str]] = {}
        self.files: Dict[str, str] = {"README.md": "# Demo", "answer.txt": "42"}

    def _maybe_fail(self, name: str) -> None:
        pending = self.fail.get(name)
        if pending:
            raise ToolExecutionError(pending.pop(0))

    def build(self) -> ToolRegistry:
        fake = self

        @tool("read_file", "Read a file", [ToolParameter("path", "string", "File path")])
        async def read_file(parameters, context):
            fake.calls.append(("read_file", dict(parameters)))
            fake._maybe_fail("read_file")
            path = parameters["path"]
            if path not in fake.files:
                raise ToolExecutionError(f"file not found: {path}")
            return fake.files[path]

        @tool("write_file", "Write a file", [
            ToolParameter("path", "string", "File path"),
            ToolParameter("content", "string", "Content"),
        ])
        async def write_file(parameters, context):
            fake.calls.append(("write_file", dict(parameters)))
            fake._maybe_fail("write_file")
            fake.files[parameters["path"]] = parameters["content"]
            return f"Wrote {parameters['path']}"

        @tool("echo", "Echo the text parameter", [ToolParameter("text", "string", "Text")])
        async def echo(parameters, context):
            fake.calls.append(("echo", dict(parameters)))
            fake._maybe_fail("echo")
            return parameters["text"]

        return ToolRegistry([read_file, write_file, echo, SubmitResponseTool()])


@pytest.fixture
def fake_tools() -> FakeTools:
    return FakeTools()


@pytest.fixture
def registry(fake_tools) -> ToolRegistry:
    return fake_tools.build()


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig()


@pytest.fixture
def grounding() -> StaticGroundingProvider:
    return StaticGroundingProvider(GROUNDING_TEXT)


@pytest.fixture
def run_context() -> RunContext:
    return RunContext()


@pytest.fixture
def make_plan():
    return plan_json


@pytest.fixture
def make_task():
    return task


@pytest.fixture
def scripted():
    """Factory for ScriptedService instances."""
    return ScriptedService
