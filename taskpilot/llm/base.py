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
Completion service interface.

The agent core treats the language model as an opaque text-in/text-out
call: a list of chat messages goes in, a string comes out. Concrete
services (see ``taskpilot.llm.http``) own the protocol and provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

if TYPE_CHECKING:
    from taskpilot.agents.cancellation import CancellationSignal


class Role(str, Enum):
    """Chat message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ChatMessage:
    """
    A single chat turn.

    Attributes:
        role: Who produced the message
        content: Message text
    """

    role: Role
    content: str

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            self.role = Role(self.role)

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(Role.ASSISTANT, content)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the OpenAI-style wire dictionary."""
        return {"role": self.role.value, "content": self.content}


class CompletionService(ABC):
    """
    Abstract base class for completion services.

    Implementations must honour ``signal``: when it fires while a request is
    in flight, raise OperationCancelledError instead of returning.
    """

    @abstractmethod
    async def send_chat(
        self,
        messages: Sequence[ChatMessage],
        signal: Optional[CancellationSignal] = None,
        model_override: Optional[str] = None,
    ) -> str:
        """
        Send a conversation and return the model's reply text.

        Args:
            messages: Conversation to send
            signal: Run cancellation signal
            model_override: Model to use instead of the default

        Returns:
            Raw response text

        Raises:
            OperationCancelledError: If the signal fired
            LLMProviderError: On transport/provider failure
        """

    def get_model_name(self) -> Optional[str]:
        """Name of the default model, if known."""
        return None


def messages_to_dicts(messages: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in messages]
