"""
Token endpoint client.

Exchanges an authorization code or a refresh token for an access token
(RFC 6749 sections 4.1.3 and 6) and parses the provider's answer.
"""

import re
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs

import httpx
from pydantic import BaseModel, Field

from authy.config import ClientConfig
from authy.core.exceptions import NetworkError, ProtocolError, ProviderError
from authy.oauth2.urls import resolve_endpoint
from authy.providers.models import ProviderConfig


# Non printable characters and backslashes are stripped from error fields
_ERROR_TEXT_RE = re.compile(r"[^\x20-\x7e]|\\")
_ERROR_URI_RE = re.compile(r"[^\x20-\x7e]|[ \\]")


class TokenGrant(BaseModel):
    """Access token data returned by a token endpoint."""

    access_token: str
    token_type: str
    scope: list[str] | None = Field(
        default=None, description="Granted scope, None when the provider omitted it"
    )
    expires_at: datetime | None = None
    refresh_token: str = ""
    raw: dict[str, list[str]] = Field(default_factory=dict, exclude=True)


def _first(values: dict[str, list[str]], key: str) -> str:
    items = values.get(key)
    return items[0] if items else ""


def error_from_response(
    values: dict[str, list[str]],
) -> ProviderError | ProtocolError:
    """
    Build the error for a response carrying an "error" key.

    Args:
        values: Decoded response body

    Returns:
        ProviderError with the sanitized fields, or ProtocolError when
        the error code is empty once sanitized
    """
    code = _ERROR_TEXT_RE.sub("", _first(values, "error"))
    if not code:
        return ProtocolError(raw=values)
    return ProviderError(
        code=code,
        description=_ERROR_TEXT_RE.sub("", _first(values, "error_description")),
        uri=_ERROR_URI_RE.sub("", _first(values, "error_uri")),
        raw=values,
    )


def parse_token_response(
    provider: ProviderConfig,
    values: dict[str, list[str]],
    strict_expires_in: bool = False,
) -> TokenGrant:
    """
    Turn a decoded token endpoint response into a TokenGrant.

    Args:
        provider: Provider metadata (scope delimiter)
        values: Decoded response body
        strict_expires_in: Raise instead of ignoring an unparseable
            expires_in value

    Raises:
        ProviderError: The response is an OAuth2 error
        ProtocolError: The response is neither a token nor an error
    """
    if "error" in values:
        raise error_from_response(values)

    access_token = _first(values, "access_token")
    token_type = _first(values, "token_type")
    if not access_token or not token_type:
        raise ProtocolError(raw=values)

    scope = None
    if raw_scope := _first(values, "scope"):
        scope = raw_scope.split(provider.scope_delimiter)

    expires_at = None
    if expires_in := _first(values, "expires_in"):
        try:
            expires_at = datetime.now(UTC) + timedelta(seconds=int(expires_in))
        except (ValueError, OverflowError) as e:
            if strict_expires_in:
                raise ProtocolError(
                    f"expires_in is not an integer: {expires_in!r}", raw=values
                ) from e

    return TokenGrant(
        access_token=access_token,
        token_type=token_type,
        scope=scope,
        expires_at=expires_at,
        refresh_token=_first(values, "refresh_token"),
        raw=values,
    )


class TokenExchangeClient:
    """
    Client for a provider's token endpoint.

    One POST per call, no retries. Pass an httpx.Client to share a
    connection pool or to set timeouts; otherwise a short-lived client
    is opened for each request.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        strict_expires_in: bool = False,
    ):
        self._http_client = http_client
        self.strict_expires_in = strict_expires_in

    def exchange(
        self,
        provider: ProviderConfig,
        client: ClientConfig,
        code: str,
        redirect_uri: str,
    ) -> TokenGrant:
        """
        Exchange an authorization code for an access token.

        Args:
            provider: Provider metadata
            client: Client credentials
            code: Authorization code from the callback
            redirect_uri: Same redirect URI used in the authorize request

        Returns:
            The granted token

        Raises:
            NetworkError, ProviderError, ProtocolError
        """
        return self._request_token(
            provider,
            client,
            {
                "grant_type": "authorization_code",
                "client_id": client.key,
                "client_secret": client.secret,
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )

    def refresh(
        self, provider: ProviderConfig, client: ClientConfig, refresh_token: str
    ) -> TokenGrant:
        """
        Obtain a new access token using a refresh token.

        Raises:
            NetworkError, ProviderError, ProtocolError
        """
        return self._request_token(
            provider,
            client,
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": client.key,
                "client_secret": client.secret,
            },
        )

    def _request_token(
        self, provider: ProviderConfig, client: ClientConfig, form: dict[str, str]
    ) -> TokenGrant:
        url = resolve_endpoint(provider, client, provider.access_url)
        body = self._post_form(url, form)
        values = parse_qs(body, keep_blank_values=True)
        return parse_token_response(provider, values, self.strict_expires_in)

    def _post_form(self, url: str, form: dict[str, str]) -> str:
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        try:
            if self._http_client is not None:
                response = self._http_client.post(url, data=form, headers=headers)
            else:
                with httpx.Client() as http_client:
                    response = http_client.post(url, data=form, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(f"Network error while requesting {url}: {e}") from e
        return response.text
