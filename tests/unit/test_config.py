# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for configuration models."""

import pytest

from taskpilot.config import AgentConfig, LLMConfig, RetryConfig
from taskpilot.exceptions import ConfigurationError


class TestAgentConfig:
    """Tests for AgentConfig."""

    def test_defaults(self):
        config = AgentConfig()
        assert config.agent_max_retries == 1
        assert config.corrective_retries == 1
        assert config.max_replans_per_run == 5
        assert config.replan_on_failure is True
        assert config.terminal_tool == "submit_response"
        assert config.enforce_terminal_task is False

    def test_from_env(self):
        env = {
            "TASKPILOT_AGENT_MAX_RETRIES": "3",
            "TASKPILOT_REPLAN_ON_FAILURE": "false",
            "TASKPILOT_NO_THINK_MODE": "true",
        }
        config = AgentConfig.from_env(env)
        assert config.agent_max_retries == 3
        assert config.replan_on_failure is False
        assert config.no_think_mode is True

    def test_overrides_win(self):
        config = AgentConfig.from_env({"TASKPILOT_AGENT_MAX_RETRIES": "3"}, agent_max_retries=0)
        assert config.agent_max_retries == 0

    def test_none_overrides_ignored(self):
        config = AgentConfig.from_env({}, agent_max_retries=None)
        assert config.agent_max_retries == 1

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError, match="AgentConfig"):
            AgentConfig.from_env({"TASKPILOT_CORRECTIVE_RETRIES": "-1"})


class TestLLMConfig:
    """Tests for LLMConfig."""

    def test_defaults(self):
        config = LLMConfig()
        assert config.endpoint == "http://localhost:9600"
        assert config.request_timeout == 300.0
        assert isinstance(config.retry, RetryConfig)

    def test_from_env(self):
        env = {
            "TASKPILOT_LLM_ENDPOINT": "http://llm:8080",
            "TASKPILOT_LLM_MODEL": "qwen3",
            "TASKPILOT_LLM_TIMEOUT": "12.5",
        }
        config = LLMConfig.from_env(env, api_key="k")
        assert config.endpoint == "http://llm:8080"
        assert config.model == "qwen3"
        assert config.request_timeout == 12.5
        assert config.api_key == "k"

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError):
            LLMConfig.from_env({"TASKPILOT_LLM_TIMEOUT": "0"})
