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
Helpers for pulling structured JSON out of free-form model text.

This module provides:
- Removal of ``<think>``/``<thinking>`` reasoning blocks
- JSON extraction that tolerates prose before and after the payload
- The corrective prompt sent when a response could not be used

Extraction order:
1. A fenced block tagged ``json`` (```json ... ```)
2. The span from the first ``{`` to the last ``}``
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from taskpilot.exceptions import MalformedResponseError

_THINK_RE = re.compile(r"<(think|thinking)>.*?</\1>", re.DOTALL | re.IGNORECASE)
_OPEN_FENCE_RE = re.compile(r"```[ \t]*json\b[ \t]*\r?\n?", re.IGNORECASE)
_CLOSE_FENCE_RE = re.compile(r"\r?\n?[ \t]*```")

MAX_MALFORMED_OUTPUT_CHARS = 4000


def strip_thinking_tags(text: str) -> str:
    """Remove model reasoning blocks and surrounding whitespace."""
    return _THINK_RE.sub("", text).strip()


def _fenced_candidates(text: str) -> Iterator[str]:
    for opening in _OPEN_FENCE_RE.finditer(text):
        start = opening.end()
        for closing in _CLOSE_FENCE_RE.finditer(text, start):
            yield text[start:closing.start()]


def _is_json(candidate: str) -> bool:
    try:
        json.loads(candidate)
    except (TypeError, ValueError):
        return False
    return True


def extract_json(text: str) -> Optional[str]:
    """
    Locate the JSON payload in a model response.

    A ```json fence wins over bare braces. When the fenced payload itself
    contains triple backticks (code inside a string value), the closing
    fence that yields parseable JSON is chosen.

    Args:
        text: Response text, thinking blocks already stripped

    Returns:
        The JSON text exactly as it appears in the response, or None
    """
    first_fenced: Optional[str] = None
    for candidate in _fenced_candidates(text):
        if first_fenced is None:
            first_fenced = candidate
        if _is_json(candidate):
            return candidate
    if first_fenced is not None and first_fenced.strip():
        return first_fenced

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        return text[first_brace:last_brace + 1]
    return None


def parse_json_object(response: str) -> Tuple[Dict[str, Any], str]:
    """
    Strip, extract and decode the JSON object in ``response``.

    Returns:
        Tuple of (decoded object, extracted JSON text)

    Raises:
        MalformedResponseError: If no JSON object can be extracted or parsed
    """
    cleaned = strip_thinking_tags(response)
    json_text = extract_json(cleaned)
    if json_text is None:
        raise MalformedResponseError("No JSON object found in the response.")

    try:
        data = json.loads(json_text)
    except ValueError as e:
        raise MalformedResponseError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object at the top level, got {type(data).__name__}."
        )
    return data, json_text


def build_corrective_prompt(
    malformed_output: str,
    errors: List[str],
) -> str:
    """
    Build the prompt asking the model to fix its previous answer.

    Args:
        malformed_output: The response that could not be used
        errors: Specific error messages to fix

    Returns:
        Prompt text
    """
    errors_str = "\n".join(f"- {err}" for err in errors)

    if len(malformed_output) > MAX_MALFORMED_OUTPUT_CHARS:
        malformed_output = malformed_output[:MAX_MALFORMED_OUTPUT_CHARS] + "... [truncated]"

    return f"""CRITICAL ERROR: your previous response could not be used as a plan.

## Errors
{errors_str}

## Your Previous Output
{malformed_output}

## Instructions
Return the corrected plan that:
1. Fixes every error listed above
2. Keeps the same intent as your previous response
3. Uses only the tools listed in the system prompt

Respond ONLY with the fixed JSON object. No prose, no explanations."""
