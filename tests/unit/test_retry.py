# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for RetryHandler."""

from unittest.mock import AsyncMock, patch

import pytest

from taskpilot.config import RetryConfig
from taskpilot.exceptions import LLMProviderError, OperationCancelledError
from taskpilot.llm.retry import RetryHandler


@pytest.fixture
def handler():
    return RetryHandler(RetryConfig(max_retries=2, initial_delay=0.01, jitter=False))


class TestRetryHandler:
    """Tests for RetryHandler."""

    def test_delay_is_exponential_and_capped(self):
        h = RetryHandler(RetryConfig(initial_delay=1.0, max_delay=5.0, jitter=False))
        assert h._calculate_delay(0) == 1.0
        assert h._calculate_delay(2) == 4.0
        assert h._calculate_delay(10) == 5.0

    def test_retryable_detection(self, handler):
        assert handler._is_retryable_error(LLMProviderError("API error 503: busy"))
        assert handler._is_retryable_error(LLMProviderError("Rate limit exceeded"))
        assert not handler._is_retryable_error(LLMProviderError("API error 401: bad key"))

    @pytest.mark.asyncio
    async def test_success_after_retry(self, handler):
        func = AsyncMock(side_effect=[LLMProviderError("API error 500"), "ok"])
        with patch("taskpilot.llm.retry.asyncio.sleep", new=AsyncMock()):
            assert await handler.execute_with_retry(func) == "ok"
        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_raised_immediately(self, handler):
        func = AsyncMock(side_effect=LLMProviderError("API error 401: bad key"))
        with pytest.raises(LLMProviderError, match="401"):
            await handler.execute_with_retry(func)
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_exhausted(self, handler):
        func = AsyncMock(side_effect=LLMProviderError("API error 502"))
        with patch("taskpilot.llm.retry.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(LLMProviderError, match="after 2 retries"):
                await handler.execute_with_retry(func)
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_cancellation_never_retried(self, handler):
        func = AsyncMock(side_effect=OperationCancelledError("stop"))
        with pytest.raises(OperationCancelledError):
            await handler.execute_with_retry(func)
        assert func.await_count == 1
