"""
Exceptions raised by the OAuth2 engine.

Every failure is raised to the immediate caller. The web layer converts
them to HTTP responses in one place (see authy/web/router.py).
"""

from typing import Any


class AuthyError(Exception):
    """Base exception for all authy errors."""

    pass


class UnknownProviderError(AuthyError):
    """Provider is not in the registry or not configured on this engine."""

    def __init__(self, provider: str):
        super().__init__(f"unknown provider {provider}")
        self.provider = provider


class NotImplementedFlowError(AuthyError):
    """The provider uses an OAuth version this engine does not drive."""

    def __init__(self, provider: str, version: int):
        super().__init__(f"OAuth{version} flow of provider {provider} is not implemented")
        self.provider = provider
        self.version = version


class ConfigurationError(AuthyError):
    """Client configuration is incomplete for the requested operation."""

    pass


class StateGenerationError(AuthyError):
    """The secure random source could not produce a CSRF state."""

    pass


class CSRFError(AuthyError):
    """Base class for CSRF state validation failures."""

    pass


class CSRFStateMissingError(CSRFError):
    """
    No state stored in the session for this provider.

    Either the session expired, the flow was never started, or the
    callback was already consumed.
    """

    def __init__(self, provider: str):
        super().__init__(
            f"state token for {provider} is not set in session, possible CSRF"
        )
        self.provider = provider


class CSRFMismatchError(CSRFError):
    """The callback state parameter does not match the stored state."""

    def __init__(self, provider: str):
        super().__init__(f"invalid state param provided for {provider}, possible CSRF")
        self.provider = provider


class MissingAuthorizationCodeError(AuthyError):
    """The callback request carries no authorization code."""

    def __init__(self):
        super().__init__("code was not found in the query parameters")


class NetworkError(AuthyError):
    """The provider's token endpoint could not be reached."""

    pass


class OAuth2Error(AuthyError):
    """
    OAuth2 error response (RFC 6749 section 5.2).

    The raw decoded response is kept in case the server does something
    funky with its error output.
    """

    def __init__(
        self,
        code: str,
        description: str = "",
        uri: str = "",
        raw: dict[str, list[str]] | None = None,
    ):
        self.code = code
        self.description = description
        self.uri = uri
        self.raw: dict[str, list[str]] = raw or {}
        super().__init__(self._format())

    def _format(self) -> str:
        msg = self.code
        if self.description:
            msg += f": {self.description}"
        if self.uri:
            msg += f" (see {self.uri})"
        return msg

    def to_dict(self) -> dict[str, Any]:
        """Error fields without the raw response."""
        return {
            "code": self.code,
            "description": self.description,
            "uri": self.uri,
        }


class ProtocolError(OAuth2Error):
    """The provider's response could not be parsed as a token or an error."""

    DEFAULT_DESCRIPTION = "The response generated by the server could not be parsed"

    def __init__(
        self,
        description: str = DEFAULT_DESCRIPTION,
        raw: dict[str, list[str]] | None = None,
    ):
        super().__init__("invalid_response", description, raw=raw)


class ProviderError(OAuth2Error):
    """The provider answered with an explicit OAuth2 error body."""

    pass


class RefreshNotSupportedError(AuthyError):
    """Token has no refresh token or is not an OAuth2 token."""

    def __init__(self, provider: str):
        super().__init__(f"token for {provider} cannot be refreshed")
        self.provider = provider
