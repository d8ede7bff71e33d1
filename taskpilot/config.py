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
Configuration models for TaskPilot.

All settings are Pydantic models so values are validated when the host
constructs them. Each top-level model offers ``from_env`` to pick up
``TASKPILOT_*`` environment variables, which is how the CLI configures
itself.

Example:
    >>> from taskpilot.config import AgentConfig
    >>> config = AgentConfig(agent_max_retries=2)
    >>> config.max_replans_per_run
    5
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from taskpilot.exceptions import ConfigurationError

ENV_PREFIX = "TASKPILOT_"


class RetryConfig(BaseModel):
    """
    Transport retry settings for completion service requests.

    Attributes:
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds
        max_delay: Upper bound for a single delay in seconds
        exponential_base: Base for exponential backoff
        jitter: Whether to randomize delays
    """

    max_retries: int = Field(default=3, ge=0)
    initial_delay: float = Field(default=1.0, ge=0.0)
    max_delay: float = Field(default=60.0, ge=0.0)
    exponential_base: float = Field(default=2.0, ge=1.0)
    jitter: bool = True


class LLMConfig(BaseModel):
    """
    Settings for the OpenAI-compatible completion service.

    ``request_timeout`` is the only timeout in the system; the agent core
    itself never times out a run.
    """

    endpoint: str = Field(default="http://localhost:9600", description="Base URL of the chat completions server")
    model: Optional[str] = Field(default=None, description="Default model name")
    api_key: Optional[str] = Field(default=None, description="Bearer token, if the server needs one")
    request_timeout: float = Field(default=300.0, gt=0.0, description="Per-request transport timeout in seconds")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "LLMConfig":
        """
        Build a config from ``TASKPILOT_LLM_*`` environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)
            **overrides: Explicit values that win over the environment

        Raises:
            ConfigurationError: If a value fails validation
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        mapping = {
            "endpoint": "LLM_ENDPOINT",
            "model": "LLM_MODEL",
            "api_key": "LLM_API_KEY",
            "request_timeout": "LLM_TIMEOUT",
            "temperature": "LLM_TEMPERATURE",
        }
        for field_name, suffix in mapping.items():
            raw = env.get(f"{ENV_PREFIX}{suffix}")
            if raw:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return _build(cls, values)


class AgentConfig(BaseModel):
    """
    Settings for plan generation and execution.

    Attributes:
        agent_max_retries: Per-task budget of retry/replan attempts
        max_replans_per_run: Cap on replanning rounds across a whole run
        corrective_retries: Corrective requests allowed per plan generation
        replan_on_failure: Replan on task failure (False re-attempts the task)
        no_think_mode: Prefix the planner system prompt with ``/no_think``
        history_message_char_limit: Truncation for prior conversation turns
        terminal_tool: Tool whose completion ends the run successfully
        block_repeated_failures: Refuse to re-dispatch a call that already failed
        enforce_terminal_task: Append the terminal tool to plans lacking it
    """

    agent_max_retries: int = Field(default=1, ge=0)
    max_replans_per_run: int = Field(default=5, ge=0)
    corrective_retries: int = Field(default=1, ge=0)
    replan_on_failure: bool = True
    no_think_mode: bool = False
    history_message_char_limit: int = Field(default=3000, gt=0)
    terminal_tool: str = "submit_response"
    block_repeated_failures: bool = True
    enforce_terminal_task: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "AgentConfig":
        """Build a config from ``TASKPILOT_*`` environment variables."""
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        mapping = {
            "agent_max_retries": "AGENT_MAX_RETRIES",
            "max_replans_per_run": "MAX_REPLANS",
            "corrective_retries": "CORRECTIVE_RETRIES",
            "replan_on_failure": "REPLAN_ON_FAILURE",
            "no_think_mode": "NO_THINK_MODE",
        }
        for field_name, suffix in mapping.items():
            raw = env.get(f"{ENV_PREFIX}{suffix}")
            if raw:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return _build(cls, values)


def _build(model: type, values: Dict[str, Any]) -> Any:
    try:
        return model(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {model.__name__}: {e}") from e
