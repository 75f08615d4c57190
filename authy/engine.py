"""
Authy engine: drives the OAuth2 authorization-code flow.

authorize() starts an attempt by storing a CSRF state in the session
and returning the provider's authorization URL. access() validates the
callback against that state, exchanges the code and returns a Token.

The engine is immutable after construction and may be shared between
concurrent requests; all per-attempt data lives in the caller's session.
"""

import dataclasses
from types import MappingProxyType
from typing import NamedTuple

import httpx

from authy.config import AuthyConfig, ClientConfig
from authy.core.exceptions import (
    CSRFMismatchError,
    CSRFStateMissingError,
    MissingAuthorizationCodeError,
    NotImplementedFlowError,
    UnknownProviderError,
)
from authy.core.ports import Session
from authy.oauth2.exchange import TokenExchangeClient, TokenGrant
from authy.oauth2.request import InboundRequest
from authy.oauth2.state import new_state
from authy.oauth2.urls import authorize_url, callback_url
from authy.providers.models import ProviderConfig
from authy.providers.registry import ProviderRegistry, default_registry
from authy.token import Token


SCOPE_SEPARATOR = ","


def state_key(provider: str) -> str:
    """Session key holding the pending CSRF state of a provider."""
    return f"authy.{provider}.state"


def scope_key(state: str) -> str:
    """Session key holding the scope requested with a state."""
    return f"authy.{state}.scope"


class RegisteredProvider(NamedTuple):
    """Provider metadata paired with this engine's client configuration."""

    provider: ProviderConfig
    client: ClientConfig


class AccessResult(NamedTuple):
    """Outcome of a successful callback."""

    token: Token
    redirect_url: str


class Authy:
    """OAuth2 client engine for a set of configured providers."""

    def __init__(
        self,
        config: AuthyConfig,
        registry: ProviderRegistry | None = None,
        http_client: httpx.Client | None = None,
    ):
        """
        Resolve every configured provider against the registry.

        Args:
            config: Engine configuration and per-provider credentials
            registry: Provider metadata (built-in providers by default)
            http_client: Optional client used for token endpoint calls

        Raises:
            UnknownProviderError: A configured provider is not in the registry
        """
        self.config = config
        if registry is None:
            registry = default_registry()
        self._providers = MappingProxyType(
            {
                name: RegisteredProvider(registry.get(name), client)
                for name, client in config.providers.items()
            }
        )
        self._exchange = TokenExchangeClient(
            http_client, strict_expires_in=config.strict_expires_in
        )

    @property
    def providers(self) -> list[str]:
        return list(self._providers)

    def get_provider(self, name: str) -> RegisteredProvider:
        """
        Look up a provider configured on this engine.

        Raises:
            UnknownProviderError: If the provider is not configured here
        """
        try:
            return self._providers[name]
        except KeyError:
            raise UnknownProviderError(name) from None

    def _get_oauth2_provider(self, name: str) -> RegisteredProvider:
        registered = self.get_provider(name)
        if registered.provider.oauth != 2:
            raise NotImplementedFlowError(name, registered.provider.oauth)
        return registered

    def authorize(
        self, provider_name: str, session: Session, request: InboundRequest
    ) -> str:
        """
        Start an authorization attempt.

        Generates a CSRF state and stores it, with the requested scope, in
        the session. The session must not let the user see these values.

        Args:
            provider_name: Configured provider name
            session: The user's session
            request: The inbound request (used to derive the callback URI)

        Returns:
            Authorization URL to redirect the user to

        Raises:
            UnknownProviderError, NotImplementedFlowError,
            StateGenerationError, ConfigurationError
        """
        provider, client = self._get_oauth2_provider(provider_name)

        state = new_state()
        session.set(state_key(provider_name), state)
        session.set(scope_key(state), SCOPE_SEPARATOR.join(client.scope))

        attempt = dataclasses.replace(client, csrf_state=state)
        return authorize_url(
            provider, attempt, request, self.config.forwarded_https_header
        )

    def access(
        self, provider_name: str, session: Session, request: InboundRequest
    ) -> AccessResult:
        """
        Complete an authorization attempt from the provider's callback.

        Checks the state parameter against CSRF, then queries the provider
        for an access token using the code from the callback. Session
        entries are only consumed once the exchange succeeded.

        Args:
            provider_name: Configured provider name
            session: The user's session
            request: The callback request carrying code and state

        Returns:
            The token and the URL to send the user to

        Raises:
            UnknownProviderError, NotImplementedFlowError,
            CSRFStateMissingError, CSRFMismatchError,
            MissingAuthorizationCodeError, NetworkError, ProviderError,
            ProtocolError, ConfigurationError
        """
        provider, client = self._get_oauth2_provider(provider_name)

        state = session.get(state_key(provider_name))
        if not state:
            raise CSRFStateMissingError(provider_name)
        if request.param("state") != state:
            raise CSRFMismatchError(provider_name)

        stored_scope = session.get(scope_key(state)) or ""
        original_scope = [s for s in stored_scope.split(SCOPE_SEPARATOR) if s]

        code = request.param("code")
        if not code:
            raise MissingAuthorizationCodeError()

        redirect_uri = callback_url(request, self.config.forwarded_https_header)
        grant = self._exchange.exchange(provider, client, code, redirect_uri)

        # The state is single use
        session.delete(state_key(provider_name))
        session.delete(scope_key(state))

        token = Token.from_grant(provider_name, grant)
        token.bind(self._refresh_grant)
        if not token.scope:
            token.scope = original_scope

        return AccessResult(token, client.callback or self.config.callback)

    def token_from_serialized(self, data: str | bytes) -> Token:
        """
        Deserialize a token and bind it to this engine so refresh() works.

        Raises:
            pydantic.ValidationError: If data is not a serialized token
        """
        return Token.deserialize(data, refresher=self._refresh_grant)

    def _refresh_grant(self, token: Token) -> TokenGrant:
        provider, client = self.get_provider(token.provider)
        return self._exchange.refresh(provider, client, token.refresh_token)
