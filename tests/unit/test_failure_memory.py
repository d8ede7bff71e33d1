# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for FailureMemory."""

from taskpilot.agents.failure_memory import FailureMemory


class TestFailureMemory:
    """Tests for FailureMemory."""

    def test_empty(self):
        memory = FailureMemory()
        assert len(memory) == 0
        assert memory.get_memory_context() == ""
        assert not memory.has_failed_before("read_file", {"path": "a"})

    def test_identical_call_detected(self):
        memory = FailureMemory()
        memory.record_failure("read_file", {"path": "a", "lines": 3}, "not found")
        assert memory.has_failed_before("read_file", {"lines": 3, "path": "a"})

    def test_different_parameters_or_tool(self):
        memory = FailureMemory()
        memory.record_failure("read_file", {"path": "a"}, "not found")
        assert not memory.has_failed_before("read_file", {"path": "b"})
        assert not memory.has_failed_before("write_file", {"path": "a"})

    def test_memory_context(self):
        memory = FailureMemory()
        memory.record_failure("read_file", {"path": "a"}, "E" * 1000)
        context = memory.get_memory_context()
        assert context.startswith("# ACTIONS PREVIOUSLY FAILED")
        assert "[FAILURE #1]" in context
        assert "`read_file`" in context
        assert "E" * 300 in context
        assert "E" * 301 not in context

    def test_clear(self):
        memory = FailureMemory()
        memory.record_failure("read_file", {}, "x")
        memory.clear()
        assert len(memory) == 0
        assert memory.failures == []

    def test_forget(self):
        memory = FailureMemory()
        memory.record_failure("read_file", {"path": "a"}, "x")
        memory.record_failure("read_file", {"path": "b"}, "y")
        assert memory.forget("read_file", {"path": "a"}) == 1
        assert not memory.has_failed_before("read_file", {"path": "a"})
        assert memory.has_failed_before("read_file", {"path": "b"})
