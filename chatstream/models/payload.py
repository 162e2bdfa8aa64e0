"""
Outbound chat completion request payload.

The streaming core only relies on ``stream`` being true; the remaining
fields are passed through to the API unchanged.
"""

from typing import Any, Dict, List, Literal, Optional, Union

import orjson
from pydantic import BaseModel, Field, field_validator

from chatstream.config import Settings


class ImageURL(BaseModel):
    url: str
    detail: str = "auto"


class TextPart(BaseModel):
    """Text content part of a multimodal message"""
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Image content part of a multimodal message"""
    type: Literal["image_url"] = "image_url"
    image_url: ImageURL


class ChatMessage(BaseModel):
    role: str = Field(..., pattern="^(system|user|assistant)$")
    content: Union[str, List[Union[TextPart, ImagePart]]]


class OpenAIStreamPayload(BaseModel):
    model: str
    messages: List[ChatMessage]
    temperature: float = 1.0
    top_p: float = 1.0
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    stop: Optional[List[str]] = None
    n: int = 1
    logit_bias: Optional[Dict[str, Any]] = None
    user: Optional[str] = None
    max_tokens: int = 1024
    stream: bool = True

    @field_validator("stream")
    @classmethod
    def must_stream(cls, value: bool) -> bool:
        if not value:
            raise ValueError("stream must be true for a streaming payload")
        return value

    @classmethod
    def from_settings(
        cls, messages: List[Union[ChatMessage, dict]], settings: Settings
    ) -> "OpenAIStreamPayload":
        """Build a payload using the sampling defaults from ``settings``."""
        return cls(
            model=settings.model,
            messages=messages,
            temperature=settings.temperature,
            top_p=settings.top_p,
            presence_penalty=settings.presence_penalty,
            frequency_penalty=settings.frequency_penalty,
            max_tokens=settings.max_tokens,
        )

    def to_json(self) -> bytes:
        return orjson.dumps(self.model_dump(exclude_none=True))
