from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    EMPTY_RESPONSE = "empty_response"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True, slots=True)
class Attempt:
    provider: str
    model: str
    outcome: AttemptOutcome
    detail: str = ""
    status_code: int | None = None
    latency_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "model": self.model,
            "outcome": self.outcome.value,
            "status": self.status_code,
            "message": self.detail,
        }


@dataclass(frozen=True, slots=True)
class CanonicalResponse:
    provider: str
    model: str
    content: str

    def __post_init__(self) -> None:
        if not self.content:
            raise ValueError("CanonicalResponse content must be non-empty")


@dataclass(frozen=True, slots=True)
class RelayResult:
    response: CanonicalResponse
    attempts: tuple[Attempt, ...]
