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
Transport retry for completion service requests.

Exponential backoff with jitter for transient failures such as rate limits,
timeouts and 5xx responses. This is separate from the planner's corrective
retry: it re-sends the *same* request when the transport fails, never when
the model answers badly.

Cancellation is never retried.

Example:
    >>> handler = RetryHandler(RetryConfig(max_retries=3))
    >>> text = await handler.execute_with_retry(post_request, payload)
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Callable, Optional, Type, TypeVar

from taskpilot.config import RetryConfig
from taskpilot.exceptions import LLMProviderError, OperationCancelledError
from taskpilot.utils.logger import logger

T = TypeVar("T")


class RetryHandler:
    """
    Handles retry logic with exponential backoff and jitter.

    Attributes:
        config: Retry configuration settings
    """

    RETRYABLE_PATTERNS = (
        "rate limit",
        "timeout",
        "connection",
        "server error",
        "503",
        "502",
        "500",
        "429",
        "overloaded",
    )

    def __init__(self, config: Optional[RetryConfig] = None) -> None:
        self.config = config or RetryConfig()

    def _calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for a retry attempt.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = min(
            self.config.initial_delay * (self.config.exponential_base ** attempt),
            self.config.max_delay,
        )

        if self.config.jitter:
            delay = delay * (0.5 + random.random())

        return delay

    def _is_retryable_error(self, error: Exception) -> bool:
        if isinstance(error, asyncio.TimeoutError):
            return True
        error_str = str(error).lower()
        return any(pattern in error_str for pattern in self.RETRYABLE_PATTERNS)

    async def execute_with_retry(
        self,
        func: Callable[..., Any],
        *args: Any,
        retryable_exceptions: Optional[tuple[Type[Exception], ...]] = None,
        **kwargs: Any,
    ) -> Any:
        """
        Execute an async function with retry logic.

        Args:
            func: Async function to execute
            *args: Positional arguments for func
            retryable_exceptions: Exception types eligible for retry
            **kwargs: Keyword arguments for func

        Returns:
            Result from func

        Raises:
            OperationCancelledError: Immediately, never retried
            LLMProviderError: If all retries are exhausted
        """
        if retryable_exceptions is None:
            retryable_exceptions = (LLMProviderError, asyncio.TimeoutError)

        last_exception: Optional[Exception] = None

        for attempt in range(self.config.max_retries + 1):
            try:
                result = await func(*args, **kwargs)

                if attempt > 0:
                    logger.info(f"Request succeeded after {attempt} retries")

                return result

            except OperationCancelledError:
                raise

            except retryable_exceptions as e:
                last_exception = e

                if attempt >= self.config.max_retries:
                    logger.error(
                        f"Max retries ({self.config.max_retries}) exceeded. "
                        f"Last error: {e}"
                    )
                    break

                if not self._is_retryable_error(e):
                    logger.warning(f"Non-retryable error encountered: {e}")
                    raise

                delay = self._calculate_delay(attempt)
                logger.warning(
                    f"Request failed (attempt {attempt + 1}/{self.config.max_retries + 1}): {e}. "
                    f"Retrying in {delay:.2f}s..."
                )
                await asyncio.sleep(delay)

        raise LLMProviderError(
            f"Request failed after {self.config.max_retries} retries. "
            f"Last error: {last_exception}"
        ) from last_exception
