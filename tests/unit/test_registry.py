# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for ToolRegistry and tool definitions."""

import asyncio

import pytest

from taskpilot.agents.types import RunContext
from taskpilot.exceptions import OperationCancelledError, ToolExecutionError, UnknownToolError
from taskpilot.tools.base import BaseTool, ToolDefinition, ToolParameter, tool
from taskpilot.tools.registry import ToolRegistry


class CountingTool(BaseTool):
    definition = ToolDefinition(
        name="count",
        description="Count characters",
        parameters=[ToolParameter("text", "string", "Text to count")],
    )

    async def execute(self, parameters, context=None):
        return len(parameters["text"])


class OptInTool(BaseTool):
    definition = ToolDefinition(name="opt_in", description="Disabled by default", is_default=False)

    async def execute(self, parameters, context=None):
        return None


class TestToolDefinition:
    """Tests for ToolDefinition."""

    def test_parameters_become_tuple(self):
        assert isinstance(CountingTool.definition.parameters, tuple)

    def test_format_for_prompt(self):
        line = CountingTool.definition.format_for_prompt()
        assert line == '- **count**: Count characters (Params: "text" (string): Text to count)'

    def test_optional_parameter_marked(self):
        d = ToolDefinition("t", "desc", [ToolParameter("p", "string", "x", required=False)])
        assert "[optional]" in d.format_for_prompt()


class TestRegistration:
    """Tests for registration and enablement."""

    def test_default_enablement(self):
        registry = ToolRegistry([CountingTool(), OptInTool()])
        assert registry.enabled == {"count"}
        assert len(registry) == 2
        assert "opt_in" in registry
        assert registry.get_tool("opt_in") is None

    def test_set_enabled_tools(self):
        registry = ToolRegistry([CountingTool(), OptInTool()])
        registry.set_enabled_tools(["opt_in"])
        assert [d.name for d in registry.get_enabled_tools()] == ["opt_in"]
        registry.reset_enabled_tools()
        assert registry.enabled == {"count"}

    def test_set_enabled_unknown(self):
        registry = ToolRegistry([CountingTool()])
        with pytest.raises(UnknownToolError, match="ghost"):
            registry.set_enabled_tools(["ghost"])

    def test_allowed_tools_narrowing(self):
        registry = ToolRegistry([CountingTool(), OptInTool()])
        assert [d.name for d in registry.get_allowed_tools()] == ["count"]
        assert [d.name for d in registry.get_allowed_tools(["count", "opt_in", "ghost"])] == ["count"]
        assert registry.get_allowed_tools([]) == []

    def test_replace_tool(self):
        registry = ToolRegistry([CountingTool()])
        registry.register(CountingTool(), enabled=False)
        assert len(registry) == 1
        assert registry.enabled == set()


class TestDispatch:
    """Tests for ToolRegistry.dispatch."""

    @pytest.mark.asyncio
    async def test_output_is_stringified(self):
        registry = ToolRegistry([CountingTool()])
        assert await registry.dispatch("count", {"text": "abc"}) == "3"

    @pytest.mark.asyncio
    async def test_none_becomes_empty_string(self):
        registry = ToolRegistry([OptInTool()])
        registry.set_enabled_tools(["opt_in"])
        assert await registry.dispatch("opt_in", {}) == ""

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        registry = ToolRegistry([CountingTool()])
        with pytest.raises(UnknownToolError):
            await registry.dispatch("ghost", {})

    @pytest.mark.asyncio
    async def test_disabled_tool_is_unknown(self):
        registry = ToolRegistry([OptInTool()])
        with pytest.raises(UnknownToolError):
            await registry.dispatch("opt_in", {})

    @pytest.mark.asyncio
    async def test_missing_required_parameter(self):
        registry = ToolRegistry([CountingTool()])
        with pytest.raises(ToolExecutionError, match="text"):
            await registry.dispatch("count", {})

    @pytest.mark.asyncio
    async def test_empty_string_satisfies_required_parameter(self):
        registry = ToolRegistry([CountingTool()])
        assert await registry.dispatch("count", {"text": ""}) == "0"

    @pytest.mark.asyncio
    async def test_unexpected_exception_wrapped(self):
        @tool("explode", "Raises")
        async def explode(parameters, context):
            raise KeyError("boom")

        registry = ToolRegistry([explode])
        with pytest.raises(ToolExecutionError, match="explode"):
            await registry.dispatch("explode", {})

    @pytest.mark.asyncio
    async def test_context_is_passed(self):
        seen = {}

        @tool("peek", "Records context")
        async def peek(parameters, context):
            seen["context"] = context
            return "ok"

        ctx = RunContext()
        await ToolRegistry([peek]).dispatch("peek", {}, ctx)
        assert seen["context"] is ctx

    @pytest.mark.asyncio
    async def test_cancellation_interrupts_tool(self):
        @tool("hang", "Never returns")
        async def hang(parameters, context):
            await asyncio.sleep(10)
            return "late"

        ctx = RunContext()
        asyncio.get_running_loop().call_later(0.01, ctx.signal.cancel, "stop")
        with pytest.raises(OperationCancelledError):
            await ToolRegistry([hang]).dispatch("hang", {}, ctx)
