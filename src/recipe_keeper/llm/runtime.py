"""Chat-completion gateway interface.

Extraction orchestrators talk to the model provider only through this
interface so the transport can be swapped or faked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class ChatCompletionRequest:
    user_message: str
    system_message: Optional[str] = None
    model_name: Optional[str] = None
    response_format: Optional[dict[str, Any]] = None
    model_parameters: Optional[dict[str, Any]] = None


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: Optional[str] = None


class ChatChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: int = 0
    message: ChatMessage = Field(default_factory=ChatMessage)
    finish_reason: Optional[str] = None


class ChatCompletionResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[ChatChoice] = Field(default_factory=list)
    usage: Optional[dict[str, Any]] = None

    @property
    def first_message_content(self) -> Optional[str]:
        if not self.choices:
            return None
        return self.choices[0].message.content


class ChatCompletionGateway:
    async def create_chat_completion(self, req: ChatCompletionRequest) -> ChatCompletionResponse:  # pragma: no cover - interface
        raise NotImplementedError
