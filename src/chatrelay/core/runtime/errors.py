from __future__ import annotations

import re
from collections.abc import Sequence

from chatrelay.core.orchestrator.models import Attempt, AttemptOutcome

BODY_PREVIEW_CHARS = 500


def _compact_message(message: str, max_len: int = 220) -> str:
    msg = re.sub(r"\s+", " ", message)
    return msg.strip()[:max_len]


def compact_error_summary(exc: Exception, max_len: int = 220) -> str:
    return f"{exc.__class__.__name__}: {_compact_message(str(exc), max_len=max_len)}"


class RelayError(Exception):
    """Base class for everything the relay raises on purpose."""


class ConfigurationError(RelayError):
    """No provider has a usable credential, so nothing can be attempted."""


class EmptyConversationError(RelayError, ValueError):
    pass


class ProviderError(RelayError):
    """A single candidate was disqualified; the sequencer moves on to the next one."""

    outcome: AttemptOutcome = AttemptOutcome.TRANSPORT_ERROR
    status_code: int | None = None


class TransportError(ProviderError):
    outcome = AttemptOutcome.TRANSPORT_ERROR


class ProviderTimeoutError(ProviderError):
    outcome = AttemptOutcome.TIMEOUT

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"no response within {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class UpstreamError(ProviderError):
    outcome = AttemptOutcome.HTTP_ERROR

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body[:BODY_PREVIEW_CHARS]
        detail = f"HTTP {status_code}"
        if self.body:
            detail += f": {_compact_message(self.body)}"
        super().__init__(detail)


class EmptyResponseError(ProviderError):
    outcome = AttemptOutcome.EMPTY_RESPONSE

    def __init__(self, message: str = "provider returned no usable text") -> None:
        super().__init__(message)


class AllProvidersFailedError(RelayError):
    def __init__(self, attempts: Sequence[Attempt]) -> None:
        self.attempts = tuple(attempts)
        tried = ", ".join(f"{a.provider}/{a.model}={a.outcome.value}" for a in self.attempts)
        super().__init__(f"all providers failed ({len(self.attempts)} attempts): {tried}")
