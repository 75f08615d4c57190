"""
Token returned on a successful authorization.

A Token knows when it expires, whether it can be refreshed, how to
serialize itself for session storage and how to build an HTTP client
that authenticates with it.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import httpx
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from authy.core.exceptions import ConfigurationError, RefreshNotSupportedError
from authy.oauth2.exchange import TokenGrant
from authy.transport import AsyncBearerTransport, BearerTransport


Refresher = Callable[["Token"], TokenGrant]


def _utc_now() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(UTC)


class Token(BaseModel):
    """
    OAuth access token for one provider.

    Serialized form (stable across restarts):
    {"version", "provider", "value", "scope", "type", "time", "refresh_token"}
    """

    version: int = Field(default=2, description="OAuth version of the token")
    provider: str = Field(description="Provider on which the token can be used")
    value: str = Field(description="The access token itself")
    scope: list[str] = Field(
        default_factory=list,
        description="Granted scopes; providers may let the user narrow them",
    )
    token_type: str = Field(default="", alias="type")
    expires_at: datetime | None = Field(
        default=None, alias="time", description="Expiry, None if it never expires"
    )
    refresh_token: str = Field(default="", description="Refresh token if one")

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    # Handed in by the engine so the token never references it directly
    _refresher: Refresher | None = PrivateAttr(default=None)

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive expiry times are taken as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @classmethod
    def from_grant(cls, provider: str, grant: TokenGrant) -> "Token":
        """Create an OAuth2 token from a token endpoint response."""
        return cls(
            version=2,
            provider=provider,
            value=grant.access_token,
            scope=grant.scope or [],
            token_type=grant.token_type,
            expires_at=grant.expires_at,
            refresh_token=grant.refresh_token,
        )

    @classmethod
    def deserialize(
        cls, data: str | bytes, refresher: Refresher | None = None
    ) -> "Token":
        """
        Decode a token produced by serialize().

        Raises:
            pydantic.ValidationError: If data is not a serialized token
        """
        token = cls.model_validate_json(data)
        token.bind(refresher)
        return token

    def serialize(self) -> str:
        """Serialize to JSON, e.g. for session storage."""
        return self.model_dump_json(by_alias=True)

    def bind(self, refresher: Refresher | None) -> None:
        """Attach the capability used by refresh()."""
        self._refresher = refresher

    def expired(self) -> bool:
        """True if the token has an expiry and it is not in the future."""
        if self.expires_at is None:
            return False
        return _utc_now() >= self.expires_at

    def is_refreshable(self) -> bool:
        """Whether or not the token can be refreshed via the provider's API."""
        return self.version == 2 and self.refresh_token != ""

    def refresh(self) -> None:
        """
        Refresh the access token in place.

        Only value, token_type, expires_at and refresh_token change. The
        token is left untouched if anything fails.

        When the provider answers without a refresh_token, the current one
        is kept instead of being cleared (RFC 6749 section 6), so the token
        stays refreshable.

        Raises:
            RefreshNotSupportedError: Token is not refreshable
            ConfigurationError: Token is not bound to an engine
            UnknownProviderError: Provider not registered on the engine
            NetworkError, ProviderError, ProtocolError: Token endpoint failure
        """
        if not self.is_refreshable():
            raise RefreshNotSupportedError(self.provider)
        if self._refresher is None:
            raise ConfigurationError(
                f"token for {self.provider} is not bound to an engine"
            )

        grant = self._refresher(self)

        self.value = grant.access_token
        self.token_type = grant.token_type
        self.expires_at = grant.expires_at
        # RFC 6749 section 6: the old refresh token stays valid if no new one
        if grant.refresh_token:
            self.refresh_token = grant.refresh_token

    def client(
        self, transport: httpx.BaseTransport | None = None, **kwargs
    ) -> httpx.Client:
        """
        HTTP client authenticating with this token.

        The client holds a snapshot; build a new one after refresh().
        """
        return httpx.Client(transport=BearerTransport(self, transport), **kwargs)

    def async_client(
        self, transport: httpx.AsyncBaseTransport | None = None, **kwargs
    ) -> httpx.AsyncClient:
        """Async variant of client()."""
        return httpx.AsyncClient(
            transport=AsyncBearerTransport(self, transport), **kwargs
        )
