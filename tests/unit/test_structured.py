# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for JSON extraction from model responses."""

import json

import pytest

from taskpilot.agents.structured import (
    build_corrective_prompt,
    extract_json,
    parse_json_object,
    strip_thinking_tags,
)
from taskpilot.exceptions import MalformedResponseError


class TestStripThinkingTags:
    """Tests for strip_thinking_tags."""

    def test_removes_think_block(self):
        text = "<think>let me reason\nabout it</think>\n{\"a\": 1}"
        assert strip_thinking_tags(text) == '{"a": 1}'

    def test_removes_thinking_block_case_insensitive(self):
        text = "<THINKING>hmm</THINKING>answer"
        assert strip_thinking_tags(text) == "answer"

    def test_leaves_plain_text(self):
        assert strip_thinking_tags("  plain  ") == "plain"


class TestExtractJson:
    """Tests for extract_json."""

    @pytest.mark.parametrize("prefix,suffix", [
        ("", ""),
        ("Sure! Here is the plan:\n", "\nDone."),
        ("{not json} ", " trailing } brace"),
        ("Text with ``` stray ticks ", "\n```python\nprint(1)\n```"),
    ])
    def test_fenced_json_is_returned_verbatim(self, prefix, suffix):
        """Fenced content is returned byte-for-byte regardless of surrounding text."""
        payload = '{\n  "objective": "o",\n  "tasks": [ {"id": 1} ]\n}'
        text = f"{prefix}```json\n{payload}\n```{suffix}"
        assert extract_json(text) == payload

    def test_fence_wins_over_earlier_braces(self):
        text = 'Use {x} carefully. ```json\n{"a": 1}\n```'
        assert extract_json(text) == '{"a": 1}'

    def test_fence_with_embedded_backticks(self):
        """A code block inside a JSON string value does not end the fence early."""
        payload = json.dumps({"content": "```python\nprint(1)\n```"})
        text = f"```json\n{payload}\n```"
        assert extract_json(text) == payload

    def test_brace_span_without_fence(self):
        text = 'The plan is {"a": {"b": 2}} as requested.'
        assert extract_json(text) == '{"a": {"b": 2}}'

    def test_no_json(self):
        assert extract_json("no braces here") is None

    def test_single_brace(self):
        assert extract_json("} before {") is None


class TestParseJsonObject:
    """Tests for parse_json_object."""

    def test_parses_after_thinking(self):
        data, text = parse_json_object('<think>{"fake": true}</think>```json\n{"a": 1}\n```')
        assert data == {"a": 1}
        assert text == '{"a": 1}'

    def test_invalid_json_raises(self):
        with pytest.raises(MalformedResponseError, match="Invalid JSON"):
            parse_json_object("```json\n{broken,}\n```")

    def test_missing_json_raises(self):
        with pytest.raises(MalformedResponseError, match="No JSON object"):
            parse_json_object("I cannot help with that.")

    def test_non_object_raises(self):
        with pytest.raises(MalformedResponseError, match="list"):
            parse_json_object("```json\n[1, 2]\n```")


class TestCorrectivePrompt:
    """Tests for build_corrective_prompt."""

    def test_contains_errors_and_output(self):
        prompt = build_corrective_prompt("bad output", ["Tool 'x' is not allowed."])
        assert "- Tool 'x' is not allowed." in prompt
        assert "bad output" in prompt
        assert "Respond ONLY with the fixed JSON object" in prompt

    def test_truncates_long_output(self):
        prompt = build_corrective_prompt("x" * 10000, ["err"])
        assert "[truncated]" in prompt
        assert "x" * 4001 not in prompt
