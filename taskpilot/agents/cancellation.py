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
Cooperative cancellation for agent runs.

One CancellationSignal exists per run. It is threaded through every
completion-service call and every tool dispatch; awaited work is raced
against the signal so a cancel interrupts in-flight requests instead of
waiting for them to settle.

Example:
    >>> signal = CancellationSignal()
    >>> response = await signal.run(service.send_chat(messages))
    >>> signal.cancel("user pressed stop")
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from taskpilot.exceptions import OperationCancelledError
from taskpilot.utils.logger import logger

T = TypeVar("T")


class CancellationSignal:
    """A one-shot cancellation flag that can be awaited."""

    def __init__(self) -> None:
        # Created on first await, inside the loop that waits on it
        self._event: Optional[asyncio.Event] = None
        self._cancelled = False
        self.reason: Optional[str] = None

    def _get_event(self) -> asyncio.Event:
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        return self._event

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._cancelled

    def cancel(self, reason: str = "Cancelled") -> None:
        """Fire the signal. Subsequent calls keep the first reason."""
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason
            if self._event is not None:
                self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if the signal has fired."""
        if self.cancelled:
            raise OperationCancelledError(self.reason or "Cancelled")

    async def wait(self) -> None:
        """Block until the signal fires."""
        await self._get_event().wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the signal fires first.

        The pending work is cancelled when the signal wins.

        Raises:
            OperationCancelledError: If the signal fired before completion
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError(self.reason or "Cancelled")
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._get_event().wait())
        try:
            done, _ = await asyncio.wait(
                {work, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            waiter.cancel()
            raise

        if work in done:
            waiter.cancel()
            return work.result()

        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"Abandoned work raised after cancellation: {e}")
        raise OperationCancelledError(self.reason or "Cancelled")
