from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Protocol, TypeVar

import httpx

from chatrelay.core.providers.base import RawReply, WireRequest
from chatrelay.core.runtime.errors import ProviderTimeoutError, TransportError, UpstreamError

T = TypeVar("T")


async def run_with_timeout(awaitable: Awaitable[T], timeout_seconds: float) -> T:
    return await asyncio.wait_for(awaitable, timeout=timeout_seconds)


class Invoker(Protocol):
    async def __call__(self, wire: WireRequest, timeout_seconds: float) -> RawReply: ...


class HttpInvoker:
    """Posts one wire request and bounds it by wall-clock time.

    A fresh client is opened per call so that a timed-out or failed call never
    leaves a pooled connection behind for the next candidate.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    async def _post(self, wire: WireRequest, timeout_seconds: float) -> httpx.Response:
        async with httpx.AsyncClient(transport=self.transport, timeout=timeout_seconds) as client:
            return await client.post(wire.url, headers=wire.headers, json=wire.body)

    async def __call__(self, wire: WireRequest, timeout_seconds: float) -> RawReply:
        try:
            response = await run_with_timeout(self._post(wire, timeout_seconds), timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise ProviderTimeoutError(timeout_seconds) from exc
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            raise UpstreamError(response.status_code, response.text)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        return RawReply(status_code=response.status_code, payload=payload)
