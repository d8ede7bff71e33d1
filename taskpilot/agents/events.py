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
One-way status notifications for the session host.

The executor emits PlanEvents; a host subscribes to render plan and task
state. Subscribers can be sync or async. A failing subscriber is logged and
never interrupts the run.
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from taskpilot.agents.types import Plan, Task
from taskpilot.utils.logger import logger


class PlanEventKind(str, Enum):
    """Kinds of status change."""

    PLAN_CREATED = "plan_created"
    PLAN_UPDATED = "plan_updated"
    TASK_STARTED = "task_started"
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    PLAN_REVISED = "plan_revised"
    RUN_FINISHED = "run_finished"


@dataclass
class PlanEvent:
    """A status change of a plan or one of its tasks."""

    kind: PlanEventKind
    plan: Optional[Plan] = None
    task: Optional[Task] = None
    message: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (e.g. for a webview or SSE stream)."""
        return {
            "kind": self.kind.value,
            "plan": self.plan.to_dict() if self.plan else None,
            "task": self.task.to_dict() if self.task else None,
            "message": self.message,
            "timestamp": self.timestamp,
        }


EventCallback = Callable[[PlanEvent], Any]


class EventEmitter:
    """Fan-out of PlanEvents to subscribers."""

    def __init__(self) -> None:
        self._subscribers: List[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """
        Register a callback.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def emit(self, event: PlanEvent) -> None:
        for callback in list(self._subscribers):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"[EVENTS] Subscriber failed on {event.kind.value}: {e}")
