from __future__ import annotations

from pydantic import BaseModel, Field

from chatrelay.core.providers.base import MAX_OUTPUT_TOKENS, MAX_TEMPERATURE, Role


class ChatMessageModel(BaseModel):
    role: Role
    content: str = ""


class ChatRequestModel(BaseModel):
    messages: list[ChatMessageModel] = Field(default_factory=list)
    temperature: float | None = Field(default=None, ge=0.0, le=MAX_TEMPERATURE)
    max_tokens: int | None = Field(default=None, ge=1, le=MAX_OUTPUT_TOKENS)


class ProviderStatusModel(BaseModel):
    name: str
    enabled: bool
    reason: str
    wire_format: str | None = None
    models: list[str] = Field(default_factory=list)
