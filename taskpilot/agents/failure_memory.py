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

"""Memory of failed tool calls within one run."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping


def _fingerprint(parameters: Mapping[str, Any]) -> str:
    return json.dumps(parameters, sort_keys=True, default=str)


@dataclass
class FailedAttempt:
    """A tool call that failed."""

    tool_name: str
    parameters: Dict[str, Any]
    error_output: str
    timestamp: float = field(default_factory=time.time)


class FailureMemory:
    """
    Records failed (tool, parameters) pairs.

    The executor refuses to dispatch an identical call twice, and the
    planner includes ``get_memory_context()`` in replanning prompts so the
    model picks a different strategy.
    """

    ERROR_PREVIEW_CHARS = 300

    def __init__(self) -> None:
        self._failures: List[FailedAttempt] = []

    @property
    def failures(self) -> List[FailedAttempt]:
        return list(self._failures)

    def record_failure(self, tool_name: str, parameters: Mapping[str, Any], error: str) -> None:
        self._failures.append(FailedAttempt(tool_name, dict(parameters), error))

    def has_failed_before(self, tool_name: str, parameters: Mapping[str, Any]) -> bool:
        key = _fingerprint(parameters)
        return any(
            f.tool_name == tool_name and _fingerprint(f.parameters) == key
            for f in self._failures
        )

    def forget(self, tool_name: str, parameters: Mapping[str, Any]) -> int:
        """Drop recorded failures of an identical call. Returns how many were removed."""
        key = _fingerprint(parameters)
        kept = [
            f for f in self._failures
            if not (f.tool_name == tool_name and _fingerprint(f.parameters) == key)
        ]
        removed = len(self._failures) - len(kept)
        self._failures = kept
        return removed

    def get_memory_context(self) -> str:
        """Prompt block listing previous failures, or "" if there are none."""
        if not self._failures:
            return ""

        lines = [
            "# ACTIONS PREVIOUSLY FAILED",
            "The following actions were already attempted and FAILED.",
            "The execution engine will block any identical attempt.",
            "Choose a different strategy, tool, or parameters.",
        ]
        for i, f in enumerate(self._failures, 1):
            lines.append("")
            lines.append(f"[FAILURE #{i}]")
            lines.append(f"- Tool: `{f.tool_name}`")
            lines.append(f"- Used Parameters: `{_fingerprint(f.parameters)}`")
            lines.append(f'- Error Result: "{f.error_output[:self.ERROR_PREVIEW_CHARS]}"')
        return "\n".join(lines)

    def clear(self) -> None:
        self._failures.clear()

    def __len__(self) -> int:
        return len(self._failures)
