from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

MAX_TEMPERATURE = 2.0
MAX_OUTPUT_TOKENS = 32768


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class Message:
    role: Role
    content: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role(self.role))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(role=Role(data["role"]), content=str(data.get("content") or ""))

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


Conversation = tuple[Message, ...]


def as_conversation(messages: Iterable[Message | dict[str, Any]]) -> Conversation:
    return tuple(m if isinstance(m, Message) else Message.from_dict(m) for m in messages)


@dataclass(frozen=True, slots=True)
class GenerationParams:
    temperature: float = 0.7
    max_output_tokens: int = 800

    def __post_init__(self) -> None:
        if not 0.0 <= self.temperature <= MAX_TEMPERATURE:
            raise ValueError(f"temperature must be within [0, {MAX_TEMPERATURE}], got {self.temperature}")
        if not 1 <= self.max_output_tokens <= MAX_OUTPUT_TOKENS:
            raise ValueError(f"max_output_tokens must be within [1, {MAX_OUTPUT_TOKENS}], got {self.max_output_tokens}")


@dataclass(frozen=True, slots=True)
class WireRequest:
    url: str
    headers: dict[str, str]
    body: dict[str, Any]


@dataclass(frozen=True, slots=True)
class RawReply:
    status_code: int
    payload: Any = None


RequestBuilder = Callable[["ProviderSpec", str, Sequence[Message], GenerationParams], WireRequest]
TextExtractor = Callable[[Any], str]


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    """One enabled upstream: where to call it, with which credential, and how to talk to it."""

    name: str
    wire_format: str
    base_url: str
    api_key: str = field(repr=False)
    model_candidates: tuple[str, ...]
    build_request: RequestBuilder = field(repr=False, compare=False)
    extract_text: TextExtractor = field(repr=False, compare=False)
    timeout_seconds: float | None = None

    @property
    def auth_present(self) -> bool:
        return bool(self.api_key)
