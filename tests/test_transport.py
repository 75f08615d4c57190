"""
Tests for the bearer token transports.
"""

import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from authy.oauth2.exchange import TokenGrant
from authy.token import Token
from authy.transport import BearerTransport, clone_request


API_URL = "https://api.example.com/user"


@pytest.fixture
def token():
    return Token(
        provider="github",
        value="T0KEN",
        token_type="bearer",
        expires_at=datetime.now(UTC) + timedelta(hours=1),
        refresh_token="r1",
    )


@pytest.fixture
def captured():
    return []


@pytest.fixture
def inner(captured):
    """Transport recording the requests it receives."""

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        # Mutating the outbound copy must not leak into the caller's request
        request.headers["X-Trace"] = "mutated"
        return httpx.Response(200, json={"login": "octocat"})

    return httpx.MockTransport(handler)


class TestBearerTransport:
    """Tests for Token.client() and BearerTransport."""

    def test_adds_bearer_header(self, token, inner, captured):
        with token.client(transport=inner) as client:
            response = client.get(API_URL)

        assert response.json() == {"login": "octocat"}
        assert captured[0].headers["Authorization"] == "Bearer T0KEN"

    def test_original_request_untouched(self, token, inner, captured):
        with token.client(transport=inner) as client:
            request = client.build_request("GET", API_URL, headers={"X-Trace": "1"})
            client.send(request)

        assert "Authorization" not in request.headers
        assert request.headers["X-Trace"] == "1"
        assert captured[0] is not request
        assert captured[0].headers["X-Trace"] == "mutated"

    def test_replaces_existing_authorization(self, token, inner, captured):
        with token.client(transport=inner) as client:
            client.get(API_URL, headers={"Authorization": "Basic Zm9vOmJhcg=="})

        assert captured[0].headers.get_list("Authorization") == ["Bearer T0KEN"]

    def test_expired_token_passes_through(self, token, inner, captured):
        token.expires_at = datetime.now(UTC) - timedelta(seconds=1)

        with token.client(transport=inner) as client:
            client.get(API_URL)

        assert "Authorization" not in captured[0].headers

    def test_client_holds_snapshot(self, token, inner, captured):
        """Refreshing the token does not update an existing client."""
        client = token.client(transport=inner)
        token.bind(lambda t: TokenGrant(access_token="NEW", token_type="bearer"))
        token.refresh()

        client.get(API_URL)
        client.close()

        assert token.value == "NEW"
        assert captured[0].headers["Authorization"] == "Bearer T0KEN"

    def test_request_body_forwarded(self, token, inner, captured):
        with token.client(transport=inner) as client:
            client.post(API_URL, json={"name": "repo"})

        assert captured[0].method == "POST"
        assert json.loads(captured[0].content) == {"name": "repo"}

    def test_clone_request_copies_headers(self):
        request = httpx.Request("GET", API_URL, headers={"Accept": "text/plain"})

        clone = clone_request(request)
        clone.headers["Accept"] = "application/json"

        assert request.headers["Accept"] == "text/plain"
        assert clone.url == request.url

    def test_transport_close_closes_inner(self, token):
        inner = httpx.MockTransport(lambda request: httpx.Response(204))
        closed = []
        inner.close = lambda: closed.append(True)

        BearerTransport(token, inner).close()

        assert closed == [True]


class TestAsyncBearerTransport:
    """Tests for Token.async_client()."""

    @pytest.mark.asyncio
    async def test_adds_bearer_header(self, token, inner, captured):
        async with token.async_client(transport=inner) as client:
            response = await client.get(API_URL)

        assert response.status_code == 200
        assert captured[0].headers["Authorization"] == "Bearer T0KEN"

    @pytest.mark.asyncio
    async def test_original_request_untouched(self, token, inner, captured):
        async with token.async_client(transport=inner) as client:
            request = client.build_request("GET", API_URL)
            await client.send(request)

        assert "Authorization" not in request.headers
