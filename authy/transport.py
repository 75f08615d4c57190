"""
HTTP transports that authenticate outbound requests with a bearer token.
"""

from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from authy.token import Token


def clone_request(request: httpx.Request) -> httpx.Request:
    """Copy a request with its own header set; the body stream is shared."""
    return httpx.Request(
        method=request.method,
        url=request.url,
        headers=request.headers.copy(),
        stream=request.stream,
        extensions=dict(request.extensions),
    )


class _BearerMixin:
    """Shared request decoration for the sync and async transports."""

    def __init__(self, token: "Token"):
        # Snapshot: a later refresh of the caller's token does not leak in
        self._token = token.model_copy()

    @property
    def token(self) -> "Token":
        return self._token

    def _authorize(self, request: httpx.Request) -> httpx.Request:
        outbound = clone_request(request)
        if not self._token.expired():
            outbound.headers["Authorization"] = f"Bearer {self._token.value}"
        return outbound


class BearerTransport(_BearerMixin, httpx.BaseTransport):
    """
    Transport injecting "Authorization: Bearer <token>".

    Expired tokens are passed through without the header; refreshing is
    the caller's decision.
    """

    def __init__(self, token: "Token", transport: httpx.BaseTransport | None = None):
        super().__init__(token)
        self._transport = transport or httpx.HTTPTransport()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self._transport.handle_request(self._authorize(request))

    def close(self) -> None:
        self._transport.close()


class AsyncBearerTransport(_BearerMixin, httpx.AsyncBaseTransport):
    """Async counterpart of BearerTransport."""

    def __init__(
        self, token: "Token", transport: httpx.AsyncBaseTransport | None = None
    ):
        super().__init__(token)
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._transport.handle_async_request(self._authorize(request))

    async def aclose(self) -> None:
        await self._transport.aclose()
