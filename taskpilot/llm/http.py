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
OpenAI-compatible completion service over aiohttp.

Works with any server exposing ``POST /v1/chat/completions`` (OpenAI,
lollms, Ollama, vLLM, LM Studio, ...). The request timeout configured in
LLMConfig is the transport-level timeout the host layers on top of the
agent core.

Example:
    >>> service = OpenAICompatibleService(LLMConfig(endpoint="http://localhost:9600", model="qwen"))
    >>> text = await service.send_chat([ChatMessage.user("Hello")], signal)
    >>> await service.close()
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Sequence

import aiohttp

from taskpilot.agents.cancellation import CancellationSignal
from taskpilot.config import LLMConfig
from taskpilot.exceptions import ConfigurationError, LLMProviderError
from taskpilot.llm.base import ChatMessage, CompletionService, messages_to_dicts
from taskpilot.llm.retry import RetryHandler
from taskpilot.utils.logger import logger


class OpenAICompatibleService(CompletionService):
    """
    Completion service for OpenAI-style chat completion endpoints.

    Attributes:
        config: Endpoint, model and transport settings
    """

    COMPLETIONS_PATH = "/v1/chat/completions"

    def __init__(
        self,
        config: LLMConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        if not config.endpoint:
            raise ConfigurationError("LLMConfig.endpoint is required")
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._retry = RetryHandler(config.retry)

    def get_model_name(self) -> Optional[str]:
        return self.config.model

    @property
    def url(self) -> str:
        return f"{self.config.endpoint.rstrip('/')}{self.COMPLETIONS_PATH}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
            )
            self._owns_session = True
        return self._session

    def build_payload(
        self,
        messages: Sequence[ChatMessage],
        model_override: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Request body for the completions endpoint."""
        payload: Dict[str, Any] = {
            "messages": messages_to_dicts(messages),
            "temperature": self.config.temperature,
            "stream": False,
        }
        model = model_override or self.config.model
        if model:
            payload["model"] = model
        if self.config.max_tokens:
            payload["max_tokens"] = self.config.max_tokens
        return payload

    async def _post(self, payload: Dict[str, Any]) -> str:
        session = self._get_session()
        try:
            async with session.post(self.url, json=payload, headers=self._headers()) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise LLMProviderError(f"API error {resp.status}: {text[:500]}")
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise LLMProviderError(f"Connection error talking to {self.url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise LLMProviderError(
                f"Request timeout after {self.config.request_timeout}s"
            ) from e

        return self.parse_response(data)

    @staticmethod
    def parse_response(data: Dict[str, Any]) -> str:
        """
        Pull the reply text out of a completions response body.

        Raises:
            LLMProviderError: If the body has no usable choice
        """
        choices = data.get("choices") or []
        if not choices:
            raise LLMProviderError(f"Response contained no choices: {str(data)[:200]}")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if content is None:
            content = choices[0].get("text")
        if content is None:
            raise LLMProviderError("Response choice contained no content")
        return content

    async def send_chat(
        self,
        messages: Sequence[ChatMessage],
        signal: Optional[CancellationSignal] = None,
        model_override: Optional[str] = None,
    ) -> str:
        payload = self.build_payload(messages, model_override)
        logger.debug(
            f"[LLM] POST {self.url} model={payload.get('model')} messages={len(messages)}"
        )
        request = self._retry.execute_with_retry(self._post, payload)
        if signal is not None:
            return await signal.run(request)
        return await request

    async def close(self) -> None:
        """Close the underlying HTTP session if this service created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "OpenAICompatibleService":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
